"""Natural-language / SQL pair generator."""

from typing import List, Optional

from pydantic import BaseModel

from semdown.ask.intents import QueryIntent
from semdown.ask.query import build_query
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import SemanticType
from semdown.physical.logical import LogicalView, build_logical_schema
from semdown.physical.schema import PhysicalSchema
from semdown.utils.naming import pluralize
from .base import DialectConfig, register_generator


class NlpPair(BaseModel):
    question: str
    sql: str
    shape: str
    entity: str


def _questions(graph: KnowledgeGraph, view: LogicalView):
    """(question, intent) pairs for one entity, in attribute order."""
    entity = graph.entities[view.entity]
    name = entity.name
    plural = pluralize(name)
    yield f"How many {plural} are there?", QueryIntent(shape="count", entity=name)

    ident = graph.get_identifier(entity.index)
    key_example: Optional[str] = ident.example if ident is not None else None

    for col in view.columns:
        if col.name == view.key_column or col.semantic_type == SemanticType.REFERENCE:
            continue
        attr = col.attribute
        if col.semantic_type == SemanticType.DATE:
            yield (
                f"What is the latest {attr} of any {name}?",
                QueryIntent(shape="max", entity=name, attribute=attr),
            )
            yield (
                f"What is the earliest {attr} of any {name}?",
                QueryIntent(shape="min", entity=name, attribute=attr),
            )
        elif col.semantic_type == SemanticType.NUMBER:
            yield (
                f"What is the highest {attr} of any {name}?",
                QueryIntent(shape="max", entity=name, attribute=attr),
            )
        if key_example is not None and ident is not None:
            yield (
                f"What is the {attr} of the {name} with {ident.name} {key_example}?",
                QueryIntent(shape="lookup", entity=name, attribute=attr, key_value=key_example),
            )
        example = _example_for(graph, col, view)
        if example is not None:
            yield (
                f"Which {plural} have {attr} {example}?",
                QueryIntent(
                    shape="filter", entity=name, filter_attribute=attr, filter_value=example
                ),
            )


def _example_for(graph: KnowledgeGraph, col, view: LogicalView) -> Optional[str]:
    if col.derived:
        for d in graph.get_derived_attributes(view.entity):
            if d.name == col.attribute:
                return graph.attributes[d.source_attribute].example
        return None
    attr = graph.get_attribute(view.entity, col.attribute)
    return attr.example if attr is not None else None


@register_generator("nlp-pairs")
def generate_nlp_pairs(graph: KnowledgeGraph, physical: PhysicalSchema, dialect: DialectConfig) -> str:
    """JSON lines of question/SQL pairs built with the planner's query shapes."""
    logical = build_logical_schema(graph, physical)
    lines: List[str] = []
    for view in logical.views.values():
        for question, intent in _questions(graph, view):
            sql, _ = build_query(intent, view, dialect)
            pair = NlpPair(question=question, sql=sql, shape=intent.shape, entity=intent.entity)
            lines.append(pair.model_dump_json())
    return "\n".join(lines) + "\n" if lines else ""
