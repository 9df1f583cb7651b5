"""Aggregation view generator: per foreign key, child rollups per parent row."""

from typing import List

from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import SemanticType
from semdown.physical.mapper import TABLE_PREFIX
from semdown.physical.schema import ForeignKeySpec, PhysicalSchema, PhysicalTable
from semdown.utils.naming import snake_case
from .base import DialectConfig, register_generator


def _stem(table: str) -> str:
    return table[len(TABLE_PREFIX):] if table.startswith(TABLE_PREFIX) else table


def aggregation_view_name(child: PhysicalTable, fk: ForeignKeySpec) -> str:
    return f"agg_{_stem(fk.ref_table)}_{_stem(child.name)}_by_{snake_case(fk.column)}"


def render_aggregation(child: PhysicalTable, fk: ForeignKeySpec, dialect: DialectConfig) -> str:
    q = dialect.quote
    child_name = _stem(child.name)
    select: List[str] = [
        f"    p.{q(fk.ref_column)}",
        f"    COUNT(c.{q(fk.column)}) AS {q(f'{child_name}_count')}",
    ]
    for col in child.columns:
        if col.role != "attribute":
            continue
        if col.semantic_type == SemanticType.NUMBER:
            select.append(f"    SUM(c.{q(col.name)}) AS {q(f'total_{col.name}')}")
        elif col.semantic_type == SemanticType.DATE:
            select.append(f"    MAX(c.{q(col.name)}) AS {q(f'latest_{col.name}')}")
    return "\n".join(
        [
            f"{dialect.create_view} {q(aggregation_view_name(child, fk))} AS",
            "SELECT",
            ",\n".join(select),
            f"FROM {q(fk.ref_table)} p",
            f"LEFT JOIN {q(child.name)} c ON c.{q(fk.column)} = p.{q(fk.ref_column)}",
            f"GROUP BY p.{q(fk.ref_column)};",
        ]
    )


@register_generator("aggregation-views")
def generate_aggregations(
    graph: KnowledgeGraph, physical: PhysicalSchema, dialect: DialectConfig
) -> str:
    """One rollup view per foreign key: child count, sums of Number columns, latest Date values."""
    blocks = [
        render_aggregation(table, fk, dialect)
        for table in physical.tables.values()
        for fk in table.foreign_keys
    ]
    return "\n\n".join(blocks) + "\n" if blocks else ""
