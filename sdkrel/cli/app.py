from __future__ import annotations

import typer

from sdkrel import __version__
from sdkrel.cli.commands.release_cmd import plan, pom, release


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


app.command()(release)
app.command()(plan)
app.command()(pom)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Release orchestration for multi-module SDKs."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)


def main() -> None:
    app()
