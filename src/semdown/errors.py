"""Exception hierarchy for the compiler, generators and planner."""

from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from semdown.diagnostics import Diagnostic


class SemdownError(Exception):
    """Base class for all semdown errors."""


class CompileError(SemdownError):
    """
    Fatal error while turning model text into a knowledge graph.

    Carries every diagnostic accumulated before the failure so callers can
    show the warnings together with the fatal cause.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        diagnostics: Optional[Sequence["Diagnostic"]] = None,
    ):
        self.line = line
        self.diagnostics: List["Diagnostic"] = list(diagnostics or [])
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class DslSyntaxError(CompileError):
    """Structural violation in the model text (e.g. a bullet with no entity header)."""


class DuplicateEntityError(CompileError):
    """The same entity is declared twice with conflicting descriptions."""


class UnknownAttributeReferenceError(CompileError):
    """A constraint references an attribute or entity its owner cannot reach."""


class DerivationCycleError(CompileError):
    """The attribute derivation graph contains a cycle."""

    def __init__(self, cycle: Sequence[str], diagnostics=None):
        self.cycle = list(cycle)
        super().__init__(
            f"Circular 'has a' relationships: {' -> '.join(self.cycle)}",
            diagnostics=diagnostics,
        )


class GenerationError(SemdownError):
    """A generator failed to produce its artifact."""

    def __init__(
        self,
        message: str,
        artifact: Optional[str] = None,
        dialect: Optional[str] = None,
    ):
        self.artifact = artifact
        self.dialect = dialect
        super().__init__(message)


class SchemaCycleError(GenerationError):
    """The foreign key graph of the physical schema contains a cycle."""


class UngroundedReferenceError(SemdownError):
    """A query intent names an entity or attribute absent from the graph."""


class ResolverError(SemdownError):
    """A reference resolver could not turn a question into a query intent."""
