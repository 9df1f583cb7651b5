"""Canonical model text rendering of a knowledge graph."""

from typing import List

from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import (
    AttributePresence,
    CardinalityThreshold,
    Constraint,
    SemanticType,
)
from semdown.physical.schema import PhysicalSchema
from semdown.utils.naming import indefinite_article, pluralize
from .base import DialectConfig, register_generator


def _a(name: str) -> str:
    return f"{indefinite_article(name)} {name}"


def _quote(value: str) -> str:
    return f"'{value}'" if '"' in value else f'"{value}"'


def _attribute_object(graph: KnowledgeGraph, attr) -> str:
    text = attr.name
    # A name that is also an entity needs its type to stay an attribute
    if attr.type_declared or graph.has_entity(attr.name):
        text += f" ({attr.semantic_type.value})"
    if attr.example:
        text += f", for example {_quote(attr.example)}"
    return text


def _count_noun(name: str, n: int) -> str:
    return name if n == 1 else pluralize(name)


def _constraint_bullet(graph: KnowledgeGraph, c: Constraint) -> str:
    subject = graph.entities[c.entity].name
    if c.kind == "min-count":
        target = graph.entities[c.target].name
        return f"- {subject} must have at least {c.min_count} **{_count_noun(target, c.min_count)}**."
    if c.kind == "must-be-in-past":
        return f"- {subject} must have {_a(c.attribute)} in the past."
    if c.kind == "pattern-like":
        return f"- {subject} must have {_a(c.attribute)} like '{c.pattern}'."
    return f"- {subject} must have {_a(c.attribute)}."


def entity_bullets(graph: KnowledgeGraph, entity: int) -> List[str]:
    """Facts about one entity as model text bullets, in declaration order."""
    name = graph.entities[entity].name
    bullets: List[str] = []
    rendered_rels = set()

    for attr in graph.get_attributes(entity):
        if attr.semantic_type == SemanticType.REFERENCE:
            rel = next(
                r for r in graph.get_relationships(entity)
                if r.target == attr.references and r.derivable
            )
            rendered_rels.add(rel.index)
            target = graph.entities[rel.target].name
            if rel.cardinality == "one_to_one":
                bullets.append(f"- {name} has exactly one **{target}**.")
            else:
                bullets.append(f"- {name} has {indefinite_article(target)} **{target}**.")
        elif attr.identifying:
            bullets.append(f"- {name} is identified by its {_attribute_object(graph, attr)}.")
        else:
            bullets.append(f"- {name} has {indefinite_article(attr.name)} {_attribute_object(graph, attr)}.")

    for rel in graph.get_relationships(entity):
        if rel.index in rendered_rels:
            continue
        target = graph.entities[rel.target].name
        if rel.cardinality == "one_to_many":
            bullets.append(f"- {name} has one or more **{pluralize(target)}**.")
        elif rel.cardinality == "one_to_one":
            bullets.append(f"- {name} has exactly one **{target}**.")
        else:
            bullets.append(f"- {name} has {indefinite_article(target)} **{target}**.")

    bullets.extend(_constraint_bullet(graph, c) for c in graph.constraints_for(entity))

    for rule in graph.subtype_rules:
        if rule.subtype != entity:
            continue
        base = graph.entities[rule.base].name
        bullet = f"- {name} is {indefinite_article(base)} **{base}**"
        if isinstance(rule.predicate, CardinalityThreshold):
            target = graph.entities[rule.predicate.target].name
            n = rule.predicate.min_count
            bullet += f" with at least {n} {_count_noun(target, n)}"
        elif isinstance(rule.predicate, AttributePresence):
            bullet += f" with {_a(rule.predicate.attribute)}"
        bullets.append(bullet + ".")
    return bullets


def describe_graph(graph: KnowledgeGraph) -> str:
    """
    Render a knowledge graph as model text.

    Declared entities become headers followed by their facts. Facts about
    referenced-only entities are written under the last header with an
    explicit subject, so re-parsing recreates them as stubs again.
    """
    blocks: List[str] = []
    for entity in graph.list_entities(include_stubs=False):
        header = f"**{entity.name}**"
        if entity.description:
            header += f": {entity.description}"
        blocks.append("\n".join([header] + entity_bullets(graph, entity.index)))

    stub_bullets: List[str] = []
    for entity in graph.entities:
        if not entity.declared:
            stub_bullets.extend(entity_bullets(graph, entity.index))
    if stub_bullets and blocks:
        blocks[-1] = "\n".join([blocks[-1]] + stub_bullets)
    return "\n\n".join(blocks) + "\n" if blocks else ""


@register_generator("graph-describe")
def generate_description(
    graph: KnowledgeGraph, physical: PhysicalSchema, dialect: DialectConfig
) -> str:
    """Canonical model text; compiling it again yields an equivalent graph."""
    return describe_graph(graph)
