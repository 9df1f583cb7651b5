"""Physical DDL generator."""

import heapq
from typing import Dict, List, Set

from semdown.config.logging import get_logger
from semdown.errors import SchemaCycleError
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.physical.schema import PhysicalSchema, PhysicalTable
from .base import DialectConfig, register_generator

logger = get_logger(__name__)


def topo_sort_tables(schema: PhysicalSchema) -> List[PhysicalTable]:
    """
    Order tables so every referenced table comes before its referrers.

    Kahn's algorithm with a min-heap on entity index, so ties keep entity
    declaration order. Self references are ignored.

    Raises:
        SchemaCycleError: If the foreign key graph contains a cycle
    """
    by_name = schema.tables
    depends_on: Dict[str, Set[str]] = {name: set() for name in by_name}
    dependents: Dict[str, Set[str]] = {name: set() for name in by_name}
    for name, table in by_name.items():
        for fk in table.foreign_keys:
            if fk.ref_table == name or fk.ref_table not in by_name:
                continue
            depends_on[name].add(fk.ref_table)
            dependents[fk.ref_table].add(name)

    in_degree = {name: len(deps) for name, deps in depends_on.items()}
    heap = [(t.entity, name) for name, t in by_name.items() if in_degree[name] == 0]
    heapq.heapify(heap)
    ordered: List[PhysicalTable] = []
    while heap:
        _, name = heapq.heappop(heap)
        ordered.append(by_name[name])
        for dependent in dependents[name]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(heap, (by_name[dependent].entity, dependent))

    if len(ordered) < len(by_name):
        remaining = sorted(name for name, degree in in_degree.items() if degree > 0)
        raise SchemaCycleError(
            f"Circular foreign keys between tables: {', '.join(remaining)}",
            artifact="physical-ddl",
        )
    return ordered


def render_table(table: PhysicalTable, dialect: DialectConfig) -> str:
    q = dialect.quote
    lines = []
    for col in table.columns:
        line = f"    {q(col.name)} {dialect.sql_type(col.semantic_type)}"
        if not col.nullable:
            line += " NOT NULL"
        lines.append(line)
    if table.primary_key:
        lines.append(f"    PRIMARY KEY ({', '.join(q(c) for c in table.primary_key)})")
    for fk in table.foreign_keys:
        lines.append(
            f"    FOREIGN KEY ({q(fk.column)}) REFERENCES {q(fk.ref_table)} ({q(fk.ref_column)})"
        )
    body = ",\n".join(lines)
    return f"CREATE TABLE {q(table.name)} (\n{body}\n);"


@register_generator("physical-ddl")
def generate_ddl(graph: KnowledgeGraph, physical: PhysicalSchema, dialect: DialectConfig) -> str:
    """CREATE TABLE statements in foreign key dependency order."""
    tables = topo_sort_tables(physical)
    logger.debug(f"DDL order: {[t.name for t in tables]}")
    return "\n\n".join(render_table(t, dialect) for t in tables) + "\n"
