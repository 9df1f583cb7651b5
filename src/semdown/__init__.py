"""semdown: compile entity markdown into a knowledge graph and derived artifacts."""

__version__ = "0.1.0"

from .compiler import compile_file, compile_text

__all__ = ["compile_file", "compile_text", "__version__"]
