"""Shared CLI helpers."""

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console

from ..config import RankSettings, load_config
from ..exceptions import ConfigurationError
from ..logging_config import setup_logging
from ..models import RepositoryIdentifier
from ..orchestrator import Aggregator
from ..producers import GitHubProvider, HttpProducerGateway
from ..storage import KeyedStore, open_store

console = Console()


def resolve_settings(
    config: Optional[Path] = None,
    verbose: bool = False,
    **overrides,
) -> RankSettings:
    """Build settings from CLI options and configure logging."""
    if verbose:
        overrides["log_level"] = "debug"
    try:
        settings = load_config(config_file=config, **overrides)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2)
    setup_logging(settings.log_level, log_file=settings.log_file, show_path=verbose)
    return settings


@dataclass
class Services:
    settings: RankSettings
    store: KeyedStore
    gateway: HttpProducerGateway
    provider: GitHubProvider
    aggregator: Aggregator

    def close(self) -> None:
        self.gateway.close()
        self.provider.close()
        self.store.close()


@contextmanager
def open_services(settings: RankSettings) -> Iterator[Services]:
    """Construct the store and clients owned by one CLI invocation."""
    store = open_store(settings)
    gateway = HttpProducerGateway(settings.producer_url, timeout=settings.wait_bound_seconds)
    provider = GitHubProvider(
        api_url=settings.github_api_url,
        token=settings.github_token,
        required_language=settings.required_language,
    )
    aggregator = Aggregator(
        store,
        gateway,
        provider=provider,
        wait_bound=settings.wait_bound_seconds,
        linters=settings.linters,
    )
    services = Services(settings, store, gateway, provider, aggregator)
    try:
        yield services
    finally:
        services.close()


def parse_identifier(repository: str, branch: str = "") -> RepositoryIdentifier:
    return RepositoryIdentifier(repository.strip("/"), branch)
