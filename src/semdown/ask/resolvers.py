"""Deterministic keyword resolver."""

import re
from typing import List, Optional, Tuple

from semdown.errors import ResolverError
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import Entity, SemanticType
from semdown.utils.naming import pluralize
from .intents import QueryIntent

_COUNT = re.compile(r"\b(?:how many|number of|count)\b", re.IGNORECASE)
_MAX = re.compile(
    r"\b(?:latest|most recent|newest|last|maximum|max|highest|largest|biggest)\b", re.IGNORECASE
)
_MIN = re.compile(r"\b(?:earliest|oldest|first|minimum|min|lowest|smallest)\b", re.IGNORECASE)
_KEY = r"(?P<key>'[^']+'|\"[^\"]+\"|\S*\d\S*)"


def _clean_value(value: str) -> str:
    value = value.strip().rstrip("?.!").strip()
    if len(value) >= 2 and value[0] in "'\"" and value[-1] == value[0]:
        value = value[1:-1]
    return value


def _find(name: str, text: str) -> Optional[re.Match]:
    return re.search(rf"\b{re.escape(name)}\b", text, re.IGNORECASE)


class KeywordResolver:
    """
    Resolves questions by matching entity and attribute names and a few keywords.

    Examples:
        "How many orders are there?"            -> count Order
        "What is the latest order date?"        -> max Order.Order Date
        "Which customers have zipcode 12345?"   -> filter Customer.Zipcode = 12345
        "What is the name of person P-1?"       -> lookup Person P-1, attribute Name
    """

    def resolve(self, question: str, graph: KnowledgeGraph) -> QueryIntent:
        text = " ".join(question.split())
        entity, entity_match = self._match_entity(text, graph)
        attributes = self._attribute_names(graph, entity)

        filter_attr, filter_value = self._match_filter(text, attributes)
        attribute = self._match_attribute(text, attributes, exclude=filter_attr)

        if _COUNT.search(text):
            return QueryIntent(
                shape="count",
                entity=entity.name,
                filter_attribute=filter_attr,
                filter_value=filter_value,
            )
        if filter_attr is not None:
            return QueryIntent(
                shape="filter",
                entity=entity.name,
                attribute=attribute,
                filter_attribute=filter_attr,
                filter_value=filter_value,
            )
        for shape, pattern in (("max", _MAX), ("min", _MIN)):
            if pattern.search(text):
                return QueryIntent(shape=shape, entity=entity.name, attribute=attribute)

        key = re.search(rf"{re.escape(entity_match)}\s+(?:#|id\s+|number\s+)?{_KEY}", text, re.IGNORECASE)
        if key:
            return QueryIntent(
                shape="lookup",
                entity=entity.name,
                attribute=attribute,
                key_value=_clean_value(key.group("key")),
            )
        raise ResolverError(f"Could not tell what the question asks about '{entity.name}': {question}")

    def _match_entity(self, text: str, graph: KnowledgeGraph) -> Tuple[Entity, str]:
        best: Optional[Tuple[int, int, Entity, str]] = None
        for entity in graph.entities:
            for form in (pluralize(entity.name), entity.name):
                m = _find(form, text)
                if m is None:
                    continue
                rank = (-len(form), entity.index)
                if best is None or rank < best[:2]:
                    best = (rank[0], rank[1], entity, m.group(0))
        if best is None:
            raise ResolverError(f"No entity of the model is mentioned in: {text}")
        return best[2], best[3]

    def _attribute_names(self, graph: KnowledgeGraph, entity: Entity) -> List[str]:
        names = [
            a.name
            for a in graph.get_attributes(entity.index)
            if a.semantic_type != SemanticType.REFERENCE
        ]
        names += [d.name for d in graph.get_derived_attributes(entity.index)]
        return sorted(names, key=lambda n: (-len(n), n.casefold()))

    def _match_attribute(self, text: str, names: List[str], exclude: Optional[str]) -> Optional[str]:
        for name in names:
            if name != exclude and _find(name, text):
                return name
        return None

    def _match_filter(self, text: str, names: List[str]):
        for name in names:
            m = re.search(
                rf"\b(?:with|where|whose|having|has|have)\s+(?:the\s+|a\s+|an\s+)?"
                rf"{re.escape(name)}\s+(?:is\s+|=\s*|equal to\s+|equals\s+|of\s+)?(?P<value>.+)$",
                text,
                re.IGNORECASE,
            )
            if m and _clean_value(m.group("value")):
                return name, _clean_value(m.group("value"))
        return None, None
