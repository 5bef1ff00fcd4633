"""List the reportable factors."""

import json
from typing import Optional

import typer
from rich.table import Table

from ..catalog import get_available_factors
from . import app
from ._common import console


@app.command()
def factors(
    category: Optional[str] = typer.Option(
        None,
        "--category",
        "-k",
        help="Only list one category (basic, scores, analysisFactors, performance)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List every factor a report carries, with its dotted path.

    [bold cyan]Examples:[/bold cyan]

      contract-scope factors

      contract-scope factors --category scores
    """
    catalog = get_available_factors()
    if category is not None:
        if category not in catalog:
            console.print(
                f"[red]Error:[/red] unknown category '{category}' "
                f"(choose from: {', '.join(catalog)})"
            )
            raise typer.Exit(1)
        catalog = {category: catalog[category]}

    if json_output:
        print(json.dumps(catalog, indent=2))
        return

    for key, group in catalog.items():
        table = Table(show_header=True, title=f"{group['category']} [dim]({key})[/dim]")
        table.add_column("Path", style="cyan")
        table.add_column("Name")
        table.add_column("Type", style="dim")
        table.add_column("Description")
        for path, info in group["factors"].items():
            table.add_row(path, info["name"], info["type"], info["description"])
        console.print(table)
        console.print()
