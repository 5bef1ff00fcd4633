"""Main analysis command."""

import json
from pathlib import Path
from typing import Any, List, Optional

import click
import typer
from rich.table import Table

from ..catalog import DEFAULT_FACTORS, get_available_factors, get_factor_info, get_factor_value
from ..core import ContractAnalyzer
from ..exceptions import ContractScopeError
from ..logging_config import setup_logging
from ..models import AnalysisReport
from . import app
from ._common import console, resolve_config, score_style

_SCORE_SUMMARY_KEYS = {
    "structural": ("totalLinesOfCode", "numFunctions", "maxCyclomaticComplexity"),
    "security": ("lowLevelOperations.unsafeCodeBlocks", "errorHandling.panicUsage", "errorHandling.unwrapUsage"),
    "systemic": ("cpiUsage", "constraintUsage", "externalDependencies.uniqueExternalCalls"),
    "economic": ("tokenomics.tokenTransfers", "tokenomics.complexMathOperations", "riskWeightSum"),
}


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, list):
        if value and isinstance(value[0], dict):
            return str(len(value))
        return "; ".join(str(v) for v in value) or "-"
    if value == "":
        return "-"
    return str(value)


def _output_rich(report: AnalysisReport, verbose: bool = False) -> None:
    data = report.to_dict()

    console.print()
    console.print(
        f"[bold cyan]{report.repository}[/bold cyan]  "
        f"framework=[green]{report.framework}[/green]  "
        f"files={report.performance.files_analyzed}  "
        f"time={report.performance.analysis_time_ms}ms"
    )
    console.print()

    table = Table(show_header=True, title="Complexity Scores")
    table.add_column("Dimension", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Inputs")
    for name, dim in report.scores.as_mapping().items():
        inputs = ", ".join(
            f"{key.split('.')[-1]}={_format_value(get_factor_value(dim.details, key))}"
            for key in _SCORE_SUMMARY_KEYS[name]
        )
        table.add_row(name, f"[{score_style(dim.score)}]{dim.score}[/]", inputs)
    console.print(table)

    if verbose:
        factor_paths = list(get_available_factors()["analysisFactors"]["factors"])
    else:
        factor_paths = [p for p in DEFAULT_FACTORS if p.startswith("analysisFactors.")]

    factors_table = Table(show_header=True, title="Key Factors")
    factors_table.add_column("Factor")
    factors_table.add_column("Category", style="dim")
    factors_table.add_column("Value", justify="right")
    for path in factor_paths:
        info = get_factor_info(path)
        factors_table.add_row(
            info["name"], info["category"], _format_value(get_factor_value(data, path))
        )
    console.print(factors_table)

    if report.augmentation_meta is not None:
        overridden = ", ".join(report.augmentation_meta.overridden) or "none"
        console.print(
            f"\n[bold]Augmented[/bold] ({report.augmentation_meta.workspace_id}): {overridden}"
        )


def _failing_dimensions(report: AnalysisReport, threshold: int) -> List[str]:
    return [
        name for name, dim in report.scores.as_mapping().items() if dim.score > threshold
    ]


@app.command()
def analyze(
    path: Path = typer.Argument(
        Path("."),
        help="Repository root to analyze",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    files: Optional[List[str]] = typer.Option(
        None,
        "--files",
        "-f",
        help="Only analyze files whose path contains this substring (repeatable)",
    ),
    output_format: str = typer.Option(
        "rich",
        "--format",
        help="Output format: rich | json",
        click_type=click.Choice(["rich", "json"], case_sensitive=False),
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the JSON report to this file",
        dir_okay=False,
    ),
    augment: Optional[bool] = typer.Option(
        None,
        "--augment/--no-augment",
        help="Ask the external analyzer for factor overrides",
    ),
    augment_url: Optional[str] = typer.Option(
        None,
        "--augment-url",
        help="Base URL of the external analyzer",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Augmentation timeout in seconds",
        min=0.1,
    ),
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Extraction threads (1 = sequential)",
        min=1,
        max=32,
    ),
    fail_above: Optional[int] = typer.Option(
        None,
        "--fail-above",
        help="Exit 1 if any dimension score exceeds this value",
        min=0,
        max=100,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Debug logging and every factor in the output",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
):
    """
    Analyze a repository of Rust / Anchor programs.

    [bold cyan]Examples:[/bold cyan]

      contract-scope analyze ./my-program

      contract-scope analyze . -f programs/amm -f programs/vault

      contract-scope analyze . --format json --fail-above 80

      contract-scope analyze . --augment --augment-url http://localhost:8080
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        settings = resolve_config(
            config=config,
            workers=workers,
            augment=augment,
            augment_url=augment_url,
            timeout=timeout,
            verbose=verbose,
            quiet=quiet,
        )

        analyzer = ContractAnalyzer(path, config=settings)
        report = analyzer.analyze(selected_files=files or None)

        if output is not None:
            output.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
            logger.info(f"Report written to {output}")

        if output_format.lower() == "json":
            print(json.dumps(report.to_dict(), indent=2))
        else:
            _output_rich(report, verbose=verbose)
            if output is not None:
                console.print(f"\n[dim]Report written to {output}[/dim]")

        if fail_above is not None:
            failing = _failing_dimensions(report, fail_above)
            if failing:
                console.print(
                    f"[red]--fail-above {fail_above}:[/red] {', '.join(failing)} exceeded"
                )
                raise typer.Exit(1)

    except typer.Exit:
        raise

    except ContractScopeError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during analysis")
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
