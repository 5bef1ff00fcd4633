"""CLI entry point: registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="contract-scope",
    help="Contract Scope - Risk signals and complexity scores for Solana programs",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Extract risk signals from Rust / Anchor programs and score their complexity.

    [bold cyan]Examples:[/bold cyan]

      contract-scope analyze ./my-program

      contract-scope analyze ./my-program --format json -o report.json

      contract-scope factors --category scores
    """
    if version:
        console.print(
            f"[bold cyan]Contract Scope[/bold cyan] version [green]{__version__}[/green]"
        )
        raise typer.Exit(0)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402
from .factors import factors as _factors  # noqa: F401, E402
