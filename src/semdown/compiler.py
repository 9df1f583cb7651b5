"""Compile model text into a knowledge graph."""

from pathlib import Path

from semdown.config.logging import get_logger
from semdown.dsl.parser import parse_text
from semdown.graph.builder import build_graph
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.utils.model_io import load_model_text

logger = get_logger(__name__)


def compile_text(text: str) -> KnowledgeGraph:
    """
    Parse and build a knowledge graph from model text.

    Raises:
        CompileError: On any fatal parse or build error
    """
    parsed = parse_text(text)
    return build_graph(parsed)


def compile_file(path: Path) -> KnowledgeGraph:
    """Load a model file and compile it."""
    logger.info(f"Compiling {path}")
    return compile_text(load_model_text(Path(path)))
