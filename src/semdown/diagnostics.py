"""Non-fatal compile diagnostics."""

from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

DiagnosticCode = Literal[
    "ParseWarning",
    "MissingDeclaration",
    "DuplicateDeclaration",
    "DuplicateAttribute",
    "ShadowedDerivedAttribute",
    "UnknownType",
    "ConstraintTypeMismatch",
    "SkippedJoin",
    "UnsourcedDerivedColumn",
    "DerivedColumnClash",
]


class Diagnostic(BaseModel):
    """Warning recorded while parsing, building the graph or laying out views."""

    model_config = ConfigDict(frozen=True)

    code: DiagnosticCode
    message: str
    line: Optional[int] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    def __str__(self) -> str:
        where = f"line {self.line}: " if self.line is not None else ""
        return f"[{self.code}] {where}{self.message}"
