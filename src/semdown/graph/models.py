"""Knowledge graph element models.

Entities, attributes and relationships live in index-addressable arenas on
the KnowledgeGraph; elements refer to each other by integer index, never by
object reference.
"""

from enum import Enum
from typing import TYPE_CHECKING, Annotated, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Discriminator
from semdown.utils.naming import indefinite_article, pluralize

if TYPE_CHECKING:
    from .knowledge_graph import KnowledgeGraph

Cardinality = Literal["one_to_one", "many_to_one", "one_to_many"]
ConstraintKind = Literal["not-null", "must-be-in-past", "pattern-like", "min-count"]

# Relationships that attributes are derived across
DERIVABLE: Tuple[str, ...] = ("many_to_one", "one_to_one")


class SemanticType(str, Enum):
    """Semantic type of an attribute."""

    STRING = "String"
    DATE = "Date"
    NUMBER = "Number"
    REFERENCE = "Reference"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Entity(_Frozen):
    """A business entity."""

    index: int
    name: str
    description: str = ""
    attribute_ids: Tuple[int, ...] = ()
    declared: bool = True  # False for referenced-only stubs
    line: Optional[int] = None


class Attribute(_Frozen):
    """An explicitly stated attribute of an entity."""

    index: int
    name: str
    entity: int
    semantic_type: SemanticType = SemanticType.STRING
    type_declared: bool = False
    nullable: bool = True
    required: bool = False
    identifying: bool = False
    example: Optional[str] = None
    provenance: Literal["explicit", "derived"] = "explicit"
    references: Optional[int] = None  # target entity of a Reference attribute
    line: Optional[int] = None


class DerivedAttribute(_Frozen):
    """An attribute reachable through one or more 'has a' relationships."""

    name: str
    entity: int
    path: Tuple[int, ...]  # relationship indexes, nearest first
    source_attribute: int  # explicit attribute at the end of the path
    semantic_type: SemanticType = SemanticType.STRING
    provenance: Literal["explicit", "derived"] = "derived"


class Relationship(_Frozen):
    """A directed relationship from `source` to `target`."""

    index: int
    source: int
    target: int
    cardinality: Cardinality = "many_to_one"
    line: Optional[int] = None

    @property
    def derivable(self) -> bool:
        return self.cardinality in DERIVABLE


class Constraint(_Frozen):
    """A rule over an entity's attributes or related rows."""

    entity: int
    kind: ConstraintKind
    attribute: Optional[str] = None  # explicit or derived attribute name
    derived: bool = False
    pattern: Optional[str] = None
    target: Optional[int] = None  # related entity for min-count
    min_count: Optional[int] = None
    relationship: Optional[int] = None  # relationship linking entity and target
    rationale: str = ""
    line: Optional[int] = None


class CardinalityThreshold(_Frozen):
    """Holds when an entity can relate to at least `min_count` rows of `target`."""

    kind: Literal["cardinality_threshold"] = "cardinality_threshold"
    target: int
    min_count: int = 1

    def holds(self, graph: "KnowledgeGraph", entity: int) -> bool:
        return graph.max_related_count(entity, self.target) >= self.min_count

    def describe(self, graph: "KnowledgeGraph") -> str:
        target = graph.entities[self.target].name
        if self.min_count == 1:
            return f"at least one {target}"
        return f"at least {self.min_count} {pluralize(target)}"


class AttributePresence(_Frozen):
    """Holds when an entity has (or derives) the named attribute."""

    kind: Literal["attribute_presence"] = "attribute_presence"
    attribute: str

    def holds(self, graph: "KnowledgeGraph", entity: int) -> bool:
        return graph.has_attribute(entity, self.attribute)

    def describe(self, graph: "KnowledgeGraph") -> str:
        return f"{indefinite_article(self.attribute)} {self.attribute}"


SubtypePredicate = Annotated[
    Union[CardinalityThreshold, AttributePresence],
    Discriminator("kind"),
]


class SubtypeRule(_Frozen):
    """`<subtype> is a <base> [with <predicate>]`, evaluated on demand."""

    subtype: int
    base: int
    predicate: Optional[SubtypePredicate] = None
    line: Optional[int] = None
