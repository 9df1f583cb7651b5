"""Logical view generator."""

from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.physical.logical import BASE_ALIAS, LogicalView, build_logical_schema
from semdown.physical.schema import PhysicalSchema
from .base import DialectConfig, register_generator


def render_view(view: LogicalView, dialect: DialectConfig) -> str:
    q = dialect.quote
    select = ",\n".join(
        f"    {c.source_alias}.{q(c.source_column)}"
        + ("" if c.source_column == c.name else f" AS {q(c.name)}")
        for c in view.columns
    )
    lines = [
        f"{dialect.create_view} {q(view.name)} AS",
        "SELECT",
        select,
        f"FROM {q(view.base_table)} {BASE_ALIAS}",
    ]
    for join in view.joins:
        lines.append(
            f"LEFT JOIN {q(join.table)} {join.alias} "
            f"ON {join.alias}.{q(join.ref_column)} = {join.parent_alias}.{q(join.column)}"
        )
    return "\n".join(lines) + ";"


@register_generator("logical-views")
def generate_views(graph: KnowledgeGraph, physical: PhysicalSchema, dialect: DialectConfig) -> str:
    """One view per entity: stored columns plus derived columns through LEFT JOINs."""
    logical = build_logical_schema(graph, physical)
    return "\n\n".join(render_view(v, dialect) for v in logical.views.values()) + "\n"
