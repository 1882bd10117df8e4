from typing import Optional

import typer


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        import treemirror

        typer.echo(f"treemirror version: {treemirror.__version__}")
        raise typer.Exit()


app = typer.Typer(name="treemirror", no_args_is_help=True)


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """treemirror - Incremental mirroring of a directory tree."""
