"""Cache management commands."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import StoreError
from ..storage import DiskStore
from . import app
from ._common import console, open_services, parse_identifier, resolve_settings


@app.command()
def cache_info(
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
) -> None:
    """Show cache information and statistics."""
    settings = resolve_settings(config=config)

    with DiskStore(settings.store_path, ttl_seconds=settings.cache_ttl_seconds) as store:
        try:
            stats = store.stats()
        except StoreError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    console.print("[bold cyan]repo-rank Cache Info[/bold cyan]")
    console.print()
    console.print(f"Directory: [blue]{stats['directory']}[/blue]")
    console.print(f"Entries: [yellow]{stats['size']}[/yellow]")
    console.print(f"Size: [yellow]{stats['volume']} bytes[/yellow]")
    ttl = settings.cache_ttl_seconds
    console.print(f"TTL: [yellow]{f'{ttl}s' if ttl else 'never expires'}[/yellow]")


@app.command()
def cache_clear(
    repository: str = typer.Argument(..., help="Repository, e.g. github.com/org/project"),
    branch: str = typer.Option("", "-b", "--branch", help="Branch (default branch if empty)"),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
) -> None:
    """Remove every cached category of a repository."""
    settings = resolve_settings(config=config)
    identifier = parse_identifier(repository, branch)

    with open_services(settings) as services:
        try:
            services.aggregator.repository(identifier).clear_cache()
        except StoreError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    console.print(f"[green]Cache cleared for {identifier}[/green]")


@app.command()
def cached(
    repository: str = typer.Argument(..., help="Repository, e.g. github.com/org/project"),
    branch: str = typer.Option("", "-b", "--branch", help="Branch (default branch if empty)"),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
) -> None:
    """Report whether a repository is fully cached."""
    settings = resolve_settings(config=config)
    identifier = parse_identifier(repository, branch)

    with open_services(settings) as services:
        is_cached = services.aggregator.repository(identifier).is_cached()

    if is_cached:
        console.print(f"[green]{identifier} is fully cached[/green]")
    else:
        console.print(f"[yellow]{identifier} is not fully cached[/yellow]")
        raise typer.Exit(1)
