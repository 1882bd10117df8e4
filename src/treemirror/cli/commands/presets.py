"""Presets command for treemirror CLI."""

from rich.console import Console
from rich.table import Table

from treemirror.cli.app import app
from treemirror.models import ExtensionPreset

console = Console()


def build_presets_table() -> Table:
    table = Table(title="Extension presets")
    table.add_column("Preset", style="bold cyan")
    table.add_column("Included extensions", style="green")
    table.add_column("Excluded extensions", style="red")
    table.add_column("Skipped directories", style="yellow")

    for preset in ExtensionPreset:
        table.add_row(
            preset.value,
            ", ".join(preset.inclusions) or "-",
            ", ".join(preset.exclusions) or "-",
            ", ".join(preset.excluded_directories) or "-",
        )
    return table


@app.command()
def presets() -> None:
    """Show the available extension presets."""
    console.print(build_presets_table())
