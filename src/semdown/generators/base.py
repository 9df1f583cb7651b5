"""Generator and dialect registries."""

from typing import Callable, Dict, FrozenSet, List, Tuple
from pydantic import BaseModel, ConfigDict, Field

from semdown.config.logging import get_logger
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import SemanticType
from semdown.physical.schema import PhysicalSchema

logger = get_logger(__name__)

ANY_DIALECT = "*"


class DialectConfig(BaseModel):
    """Everything a generator needs to know about a target SQL dialect."""

    model_config = ConfigDict(frozen=True)

    name: str
    sqlglot_dialect: str
    type_map: Dict[SemanticType, str]
    identifier_quote: Tuple[str, str] = ('"', '"')
    reserved_words: FrozenSet[str] = Field(default_factory=frozenset)
    current_date: str = "CURRENT_DATE"
    create_view: str = "CREATE VIEW"
    like_operator: str = "LIKE"

    def quote(self, identifier: str) -> str:
        """Quote an identifier only when it is a reserved word."""
        if identifier.lower() in self.reserved_words:
            left, right = self.identifier_quote
            return f"{left}{identifier}{right}"
        return identifier

    def sql_type(self, semantic_type: SemanticType) -> str:
        return self.type_map[semantic_type]


# Signature shared by every generator: pure function of its inputs
Generator = Callable[[KnowledgeGraph, PhysicalSchema, DialectConfig], str]

DIALECTS: Dict[str, DialectConfig] = {}
GENERATORS: Dict[Tuple[str, str], Generator] = {}


def register_dialect(config: DialectConfig) -> DialectConfig:
    """
    Register a dialect configuration.

    Args:
        config: Dialect configuration; replaces any dialect of the same name
    """
    DIALECTS[config.name] = config
    logger.debug(f"Registered dialect: {config.name}")
    return config


def get_dialect(name: str) -> DialectConfig:
    """
    Get a dialect configuration by name.

    Raises:
        KeyError: If the dialect is not registered
    """
    if name not in DIALECTS:
        available = ", ".join(sorted(DIALECTS))
        raise KeyError(f"Dialect '{name}' not found. Available dialects: {available}")
    return DIALECTS[name]


def list_dialects() -> List[str]:
    return sorted(DIALECTS)


def register_generator(kind: str, dialect: str = ANY_DIALECT):
    """
    Decorator registering a generator for an artifact kind.

    A generator registered for a specific dialect takes precedence over the
    dialect-independent one for the same kind.

    Example:
        @register_generator("rag-doc")
        def generate_rag(graph, physical, dialect): ...
    """

    def decorator(func: Generator) -> Generator:
        GENERATORS[(kind, dialect)] = func
        logger.debug(f"Registered generator: {kind} ({dialect})")
        return func

    return decorator


def get_generator(kind: str, dialect: str) -> Generator:
    """
    Get the generator for an artifact kind and dialect.

    Raises:
        KeyError: If no generator is registered for the kind
    """
    func = GENERATORS.get((kind, dialect)) or GENERATORS.get((kind, ANY_DIALECT))
    if func is None:
        available = ", ".join(list_kinds())
        raise KeyError(f"Artifact kind '{kind}' not found. Available kinds: {available}")
    return func


def list_kinds() -> List[str]:
    return sorted({kind for kind, _ in GENERATORS})
