"""Utilities for loading model text and saving generated artifacts."""

from pathlib import Path

ARTIFACT_EXTENSIONS = {
    "physical-ddl": "sql",
    "logical-views": "sql",
    "aggregation-views": "sql",
    "tests": "sql",
    "matrix": "csv",
    "nlp-pairs": "jsonl",
    "rag-doc": "txt",
    "graph-describe": "md",
}


def load_model_text(model_path: Path) -> str:
    """
    Load model text from a file.

    Args:
        model_path: Path to the markdown model file

    Returns:
        File contents

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty
    """
    model_path = Path(model_path)
    if not model_path.exists():
        raise FileNotFoundError(f"Model file not found: {model_path}")

    content = model_path.read_text(encoding="utf-8")
    if not content.strip():
        raise ValueError(f"Model file is empty: {model_path}")
    return content


def artifact_filename(kind: str, dialect: str) -> str:
    """File name for an artifact, e.g. `physical-ddl.postgres.sql`."""
    return f"{kind}.{dialect}.{ARTIFACT_EXTENSIONS.get(kind, 'txt')}"


def write_artifact(content: str, path: Path) -> Path:
    """
    Save an artifact to disk.

    Note:
        Creates parent directories if they don't exist. Newlines are written
        as-is so artifacts stay byte-identical across platforms.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    return path
