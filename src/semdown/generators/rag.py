"""RAG document generator: flattened sentences per entity."""

from typing import List

from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import AttributePresence, CardinalityThreshold, SemanticType
from semdown.physical.schema import PhysicalSchema
from semdown.utils.naming import indefinite_article, pluralize
from .base import DialectConfig, register_generator


def _a(name: str) -> str:
    return f"{indefinite_article(name)} {name}"


def _cap_a(name: str) -> str:
    return f"{indefinite_article(name).capitalize()} {name}"


def entity_sentences(graph: KnowledgeGraph, entity: int) -> List[str]:
    ent = graph.entities[entity]
    name = ent.name
    lines = [f"## {name}"]
    if ent.description:
        lines.append(f"{name}: {ent.description}")
    if not ent.declared:
        lines.append(f"{name} is referenced but never described.")

    for attr in graph.get_attributes(entity):
        if attr.semantic_type == SemanticType.REFERENCE:
            continue
        sentence = f"{_cap_a(name)} has {_a(attr.name)} ({attr.semantic_type.value})"
        if attr.example:
            sentence += f", for example {attr.example}"
        lines.append(sentence + ".")
        if attr.identifying:
            lines.append(f"{_cap_a(name)} is identified by its {attr.name}.")

    for rel in graph.get_relationships(entity):
        target = graph.entities[rel.target].name
        if rel.cardinality == "one_to_many":
            lines.append(f"{_cap_a(name)} has one or more {pluralize(target)}.")
        elif rel.cardinality == "one_to_one":
            lines.append(f"{_cap_a(name)} has exactly one {target}.")
        else:
            lines.append(f"{_cap_a(name)} has {_a(target)}.")

    for d in graph.get_derived_attributes(entity):
        via = " -> ".join(graph.entities[graph.relationships[r].target].name for r in d.path)
        lines.append(
            f"{_cap_a(name)} also has {d.name} ({d.semantic_type.value}), derived through {via}."
        )

    for constraint in graph.constraints_for(entity):
        lines.append(f"Rule: {constraint.rationale}")

    for rule in graph.subtype_rules:
        if rule.subtype != entity:
            continue
        base = graph.entities[rule.base].name
        if rule.predicate is None:
            lines.append(f"Every {name} is {_a(base)}.")
        elif isinstance(rule.predicate, (CardinalityThreshold, AttributePresence)):
            lines.append(
                f"{_cap_a(base)} counts as {_a(name)} when it has "
                f"{rule.predicate.describe(graph)}."
            )
    return lines


@register_generator("rag-doc")
def generate_rag_doc(graph: KnowledgeGraph, physical: PhysicalSchema, dialect: DialectConfig) -> str:
    """Natural-language sentences per entity, ready for chunking and embedding."""
    sections = ["\n".join(entity_sentences(graph, e.index)) for e in graph.entities]
    return "\n\n".join(sections) + "\n" if sections else ""
