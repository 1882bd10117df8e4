"""Main CLI entry point for treemirror."""  # pragma: no cover

from treemirror.cli.app import app  # pragma: no cover

# Register commands
from treemirror.cli.commands import presets, run  # pragma: no cover

__all__ = ["app", "presets", "run"]  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
