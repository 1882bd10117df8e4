"""treemirror - incremental directory tree mirroring."""

__version__ = "0.1.0"
