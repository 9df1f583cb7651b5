"""Model text parser: markdown dialect -> statement nodes."""

from .parser import parse_text
from .statements import (
    AttributeFact,
    ConstraintFact,
    EntityDeclaration,
    ParseResult,
    RelationshipFact,
    StatementNode,
    SubtypeCondition,
    SubtypeFact,
    UnparsedBullet,
)

__all__ = [
    "parse_text",
    "AttributeFact",
    "ConstraintFact",
    "EntityDeclaration",
    "ParseResult",
    "RelationshipFact",
    "StatementNode",
    "SubtypeCondition",
    "SubtypeFact",
    "UnparsedBullet",
]
