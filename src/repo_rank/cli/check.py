"""``repo-rank check`` and ``repo-rank rank``."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import MissingDataError, RepoRankError, ValidationError
from ..orchestrator import Aggregation
from . import app
from ._common import console, open_services, parse_identifier, resolve_settings


def _summary(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, dict) and "error" in value:
        return f"[red]{value['error']}[/red]: {value.get('message', '')}"
    if isinstance(value, list):
        return f"{len(value)} entries"
    if isinstance(value, dict):
        if "rank" in value:
            return f"[bold]{value['rank']}[/bold] ({value['value']:.1f})"
        if "packages" in value:
            return f"{len(value['packages'])} packages"
        return ", ".join(f"{k}={v}" for k, v in list(value.items())[:4])
    return str(value)


def print_aggregation(result: Aggregation) -> None:
    table = Table(title=str(result.record.identifier))
    table.add_column("Category", style="cyan")
    table.add_column("Value")
    for category, value in result.as_map().items():
        table.add_row(category, _summary(value))
    console.print(table)
    if result.complete:
        console.print(f"[green]{result.state.value}[/green]")
    else:
        console.print(f"[yellow]{result.state.value}[/yellow]")


@app.command()
def check(
    repository: str = typer.Argument(..., help="Repository, e.g. github.com/org/project"),
    branch: str = typer.Option("", "-b", "--branch", help="Branch (default branch if empty)"),
    refresh: bool = typer.Option(False, "--refresh", help="Clear the cache before analysing"),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Aggregate (or load from cache) the analysis of a repository."""
    settings = resolve_settings(config=config, verbose=verbose)
    identifier = parse_identifier(repository, branch)

    with open_services(settings) as services:
        try:
            with console.status(f"[cyan]Analysing {identifier}..."):
                result = services.aggregator.aggregate(identifier, refresh=refresh)
        except ValidationError as e:
            console.print(f"[red]{e.message}[/red]")
            raise typer.Exit(2)
        except RepoRankError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    print_aggregation(result)
    if not result.complete:
        raise typer.Exit(1)


@app.command()
def rank(
    repository: str = typer.Argument(..., help="Repository, e.g. github.com/org/project"),
    branch: str = typer.Option("", "-b", "--branch", help="Branch (default branch if empty)"),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
) -> None:
    """Print the cached rank letter without running any analysis."""
    settings = resolve_settings(config=config)
    identifier = parse_identifier(repository, branch)

    with open_services(settings) as services:
        try:
            letter = services.aggregator.repository(identifier).get_rank()
        except MissingDataError:
            console.print(f"[yellow]No rank cached for {identifier}[/yellow]")
            raise typer.Exit(1)
        except RepoRankError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    console.print(letter)
