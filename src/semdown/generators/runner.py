"""Generation runner: single-artifact entry point and concurrent fan-out."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from semdown.config.logging import get_logger
from semdown.config.settings import get_settings
from semdown.errors import GenerationError
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.physical.mapper import map_physical
from semdown.utils.error_logging import log_error
from .base import get_dialect, get_generator

logger = get_logger(__name__)

ArtifactRequest = Tuple[str, str]  # (kind, dialect)


def artifact_key(kind: str, dialect: str) -> str:
    return f"{kind}:{dialect}"


def generate(dialect: str, artifact_kind: str, graph: KnowledgeGraph) -> str:
    """
    Generate one artifact.

    Args:
        dialect: Registered dialect name (e.g. "postgres")
        artifact_kind: Registered artifact kind (e.g. "physical-ddl")
        graph: Knowledge graph

    Returns:
        Artifact text

    Raises:
        GenerationError: For an unknown kind or dialect, or any generator failure
    """
    try:
        config = get_dialect(dialect)
        func = get_generator(artifact_kind, dialect)
    except KeyError as e:
        raise GenerationError(str(e.args[0]), artifact=artifact_kind, dialect=dialect) from e

    try:
        physical = map_physical(graph)
        return func(graph, physical, config)
    except GenerationError as e:
        e.artifact = e.artifact or artifact_kind
        e.dialect = e.dialect or dialect
        raise
    except Exception as e:
        raise GenerationError(
            f"{artifact_kind} ({dialect}) failed: {e}", artifact=artifact_kind, dialect=dialect
        ) from e


@dataclass
class GenerationRun:
    """Outcome of a fan-out: artifacts and errors keyed by "<kind>:<dialect>"."""

    artifacts: Dict[str, str] = field(default_factory=dict)
    errors: Dict[str, GenerationError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def generate_many(
    graph: KnowledgeGraph,
    requests: Iterable[ArtifactRequest],
    max_workers: Optional[int] = None,
) -> GenerationRun:
    """
    Generate several artifacts concurrently.

    The graph is frozen and shared by every worker. A failing artifact is
    recorded in `errors` and never aborts its siblings.

    Args:
        graph: Knowledge graph
        requests: (kind, dialect) pairs; duplicates are generated once
        max_workers: Thread pool size (defaults to settings.max_workers)
    """
    unique = list(dict.fromkeys(requests))
    workers = max_workers or get_settings().max_workers
    run = GenerationRun()
    if not unique:
        return run

    logger.info(f"Generating {len(unique)} artifacts with {workers} workers")
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_key = {
            executor.submit(generate, dialect, kind, graph): (kind, dialect)
            for kind, dialect in unique
        }
        results: Dict[str, str] = {}
        for future in as_completed(future_to_key):
            kind, dialect = future_to_key[future]
            key = artifact_key(kind, dialect)
            try:
                results[key] = future.result()
                logger.debug(f"Generated {key} ({len(results[key])} chars)")
            except GenerationError as e:
                log_error(e, operation="generate artifact", artifact=kind, dialect=dialect)
                run.errors[key] = e

    # Report artifacts in request order, not completion order
    for kind, dialect in unique:
        key = artifact_key(kind, dialect)
        if key in results:
            run.artifacts[key] = results[key]

    logger.info(f"Generated {len(run.artifacts)} artifacts, {len(run.errors)} failed")
    return run
