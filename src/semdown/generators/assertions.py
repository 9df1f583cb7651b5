"""Integrity test generator: one failing-row count query per rule."""

from typing import List, Optional

from semdown.config.logging import get_logger
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import CardinalityThreshold, Constraint, SubtypeRule
from semdown.physical.logical import build_logical_view
from semdown.physical.schema import PhysicalSchema
from semdown.utils.naming import pluralize
from .base import DialectConfig, register_generator

logger = get_logger(__name__)

# Every template counts the rows violating the rule; 0 means the rule holds
TEMPLATES = {
    "not-null": (
        "SELECT COUNT(*) AS failures\n"
        "FROM {table}\n"
        "WHERE {column} IS NULL;"
    ),
    "must-be-in-past": (
        "SELECT COUNT(*) AS failures\n"
        "FROM {table}\n"
        "WHERE {column} > {current_date};"
    ),
    "pattern-like": (
        "SELECT COUNT(*) AS failures\n"
        "FROM {table}\n"
        "WHERE {column} IS NOT NULL AND {column} NOT LIKE '{pattern}';"
    ),
    "min-count": (
        "SELECT COUNT(*) AS failures\n"
        "FROM {parent} p\n"
        "WHERE (SELECT COUNT(*) FROM {child} c WHERE c.{fk_column} = p.{pk_column}) < {min_count};"
    ),
    "primary-key-unique": (
        "SELECT COUNT(*) AS failures\n"
        "FROM (\n"
        "    SELECT {column} FROM {table} GROUP BY {column} HAVING COUNT(*) > 1\n"
        ") duplicates;"
    ),
}


def _sql_literal(value: str) -> str:
    return value.replace("'", "''")


def _attribute_target(
    graph: KnowledgeGraph, physical: PhysicalSchema, constraint: Constraint, dialect: DialectConfig
):
    """(relation, column) a constraint applies to: the table, or the view for derived attributes."""
    q = dialect.quote
    if constraint.derived:
        view = build_logical_view(graph, physical, constraint.entity)
        col = view.get_column(constraint.attribute)
        if col is None:
            return None
        return q(view.name), q(col.name)
    table = physical.table_for_entity(constraint.entity)
    attr = graph.get_attribute(constraint.entity, constraint.attribute)
    col = table.column_for_attribute(attr.index) if attr is not None else None
    if col is None:
        return None
    return q(table.name), q(col.name)


def _min_count_query(
    physical: PhysicalSchema,
    entity: int,
    relationship: int,
    min_count: int,
    dialect: DialectConfig,
) -> Optional[str]:
    q = dialect.quote
    fk = physical.foreign_key_for(relationship)
    child = physical.referencing_table(relationship)
    if fk is None or child is None:
        return None
    parent = physical.table_for_entity(entity)
    if fk.ref_table != parent.name:
        return None
    return TEMPLATES["min-count"].format(
        parent=q(parent.name),
        child=q(child.name),
        fk_column=q(fk.column),
        pk_column=q(fk.ref_column),
        min_count=min_count,
    )


def render_constraint(
    graph: KnowledgeGraph, physical: PhysicalSchema, constraint: Constraint, dialect: DialectConfig
) -> str:
    header = f"-- {constraint.kind}: {constraint.rationale}"
    if constraint.kind == "min-count":
        query = _min_count_query(
            physical, constraint.entity, constraint.relationship, constraint.min_count, dialect
        )
        if query is None:
            raise ValueError(f"No foreign key backs the rule '{constraint.rationale}'")
        return f"{header}\n{query}"

    target = _attribute_target(graph, physical, constraint, dialect)
    if target is None:
        raise ValueError(f"No column backs the rule '{constraint.rationale}'")
    relation, column = target
    query = TEMPLATES[constraint.kind].format(
        table=relation,
        column=column,
        current_date=dialect.current_date,
        pattern=_sql_literal(constraint.pattern or ""),
    )
    return f"{header}\n{query}"


def render_subtype_rule(
    graph: KnowledgeGraph, physical: PhysicalSchema, rule: SubtypeRule, dialect: DialectConfig
) -> Optional[str]:
    """Min-count assertion for `X is a Y with at least N Z`, when a foreign key links Z to X."""
    if not isinstance(rule.predicate, CardinalityThreshold):
        return None
    subtype = graph.entities[rule.subtype].name
    target = graph.entities[rule.predicate.target].name
    n = rule.predicate.min_count
    noun = target if n == 1 else pluralize(target)
    header = f"-- min-count: Every {subtype} must have at least {n} {noun}."

    for rel in graph.relationships:
        points_back = (
            rel.derivable
            and rel.source == rule.predicate.target
            and rel.target == rule.subtype
        )
        has_many = (
            rel.cardinality == "one_to_many"
            and rel.source == rule.subtype
            and rel.target == rule.predicate.target
        )
        if not (points_back or has_many):
            continue
        query = _min_count_query(physical, rule.subtype, rel.index, n, dialect)
        if query is not None:
            return f"{header}\n{query}"

    logger.warning(
        f"No foreign key links '{target}' to '{subtype}'; subtype rule is not testable"
    )
    return f"{header}\n-- not testable: no foreign key links {target} to {subtype}"


@register_generator("tests")
def generate_tests(graph: KnowledgeGraph, physical: PhysicalSchema, dialect: DialectConfig) -> str:
    """
    Assertion queries for constraints, subtype cardinality rules and declared keys.

    Each query returns the number of violating rows in a `failures` column.
    """
    blocks: List[str] = []
    for constraint in graph.constraints:
        blocks.append(render_constraint(graph, physical, constraint, dialect))
    for rule in graph.subtype_rules:
        block = render_subtype_rule(graph, physical, rule, dialect)
        if block:
            blocks.append(block)
    for entity in graph.entities:
        ident = graph.get_identifier(entity.index)
        if ident is None:
            continue
        table = physical.table_for_entity(entity.index)
        query = TEMPLATES["primary-key-unique"].format(
            table=dialect.quote(table.name), column=dialect.quote(table.primary_key[0])
        )
        blocks.append(f"-- primary-key-unique: Every {entity.name} has a unique {ident.name}.\n{query}")
    logger.debug(f"Generated {len(blocks)} assertion blocks")
    return "\n\n".join(blocks) + "\n" if blocks else ""
