"""Artifact generators, dialects and the generation runner."""

from .base import (
    ANY_DIALECT,
    DialectConfig,
    get_dialect,
    get_generator,
    list_dialects,
    list_kinds,
    register_dialect,
    register_generator,
)
from . import dialects  # noqa: F401  registers postgres, mysql, sqlite
from . import ddl, views, assertions, aggregations, matrix, nlp, rag, describe  # noqa: F401
from .runner import GenerationRun, artifact_key, generate, generate_many

__all__ = [
    "ANY_DIALECT",
    "DialectConfig",
    "get_dialect",
    "get_generator",
    "list_dialects",
    "list_kinds",
    "register_dialect",
    "register_generator",
    "GenerationRun",
    "artifact_key",
    "generate",
    "generate_many",
]
