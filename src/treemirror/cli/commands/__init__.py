"""CLI commands for treemirror."""

from . import presets, run

__all__ = ["presets", "run"]
