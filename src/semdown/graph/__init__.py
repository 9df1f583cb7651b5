"""Knowledge graph: models, builder and derivation."""

from .builder import SemanticBuilder, build_graph, infer_type
from .derivation import derive_attributes, find_cycle
from .knowledge_graph import KnowledgeGraph
from .models import (
    Attribute,
    AttributePresence,
    CardinalityThreshold,
    Constraint,
    DerivedAttribute,
    Entity,
    Relationship,
    SemanticType,
    SubtypeRule,
)

__all__ = [
    "SemanticBuilder",
    "build_graph",
    "infer_type",
    "derive_attributes",
    "find_cycle",
    "KnowledgeGraph",
    "Attribute",
    "AttributePresence",
    "CardinalityThreshold",
    "Constraint",
    "DerivedAttribute",
    "Entity",
    "Relationship",
    "SemanticType",
    "SubtypeRule",
]
