"""Statement nodes produced by the model text parser."""

from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Discriminator, Field
from semdown.diagnostics import Diagnostic

Cardinality = Literal["one_to_one", "many_to_one", "one_to_many"]
ConstraintKind = Literal["not-null", "must-be-in-past", "pattern-like", "min-count"]


class _Statement(BaseModel):
    """Fields shared by every statement node."""

    line: int
    text: str
    owner: Optional[str] = None  # entity header the statement appears under


class EntityDeclaration(_Statement):
    """`**Entity**: description` header."""

    kind: Literal["entity"] = "entity"
    name: str
    description: str = ""


class AttributeFact(_Statement):
    """`<Entity> has a <Attribute>` or `<Entity> is identified by <Attribute>`."""

    kind: Literal["attribute"] = "attribute"
    entity: str
    attribute: str
    declared_type: Optional[str] = None
    example: Optional[str] = None
    identifying: bool = False


class RelationshipFact(_Statement):
    """`<Entity> has a <OtherEntity>` and its cardinality variants."""

    kind: Literal["relationship"] = "relationship"
    entity: str
    target: str
    cardinality: Cardinality = "many_to_one"


class ConstraintFact(_Statement):
    """`<Entity> must have ...` rules."""

    kind: Literal["constraint"] = "constraint"
    entity: str
    constraint_kind: ConstraintKind
    attribute: Optional[str] = None
    pattern: Optional[str] = None  # SQL LIKE pattern for pattern-like
    target: Optional[str] = None  # related entity for min-count
    min_count: Optional[int] = None


class SubtypeCondition(BaseModel):
    """Condition of a subtype fact as written (`with at least one Order`)."""

    kind: Literal["cardinality", "attribute"]
    target: Optional[str] = None
    min_count: int = 1
    attribute: Optional[str] = None


class SubtypeFact(_Statement):
    """`<Entity> is a <Base> [with <condition>]`."""

    kind: Literal["subtype"] = "subtype"
    entity: str
    base: str
    condition: Optional[SubtypeCondition] = None


StatementNode = Annotated[
    Union[
        EntityDeclaration,
        AttributeFact,
        RelationshipFact,
        ConstraintFact,
        SubtypeFact,
    ],
    Discriminator("kind"),
]


class UnparsedBullet(BaseModel):
    """A bullet that matched no pattern; kept for user review."""

    line: int
    text: str
    owner: Optional[str] = None


class ParseResult(BaseModel):
    """Output of the parser."""

    statements: List[StatementNode] = Field(default_factory=list)
    unparsed: List[UnparsedBullet] = Field(default_factory=list)
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    entity_names: List[str] = Field(default_factory=list)  # declared, in order
