"""``repo-rank serve``: HTTP surface."""

import logging
from pathlib import Path
from typing import Optional

import typer

from . import app
from ._common import console, open_services, resolve_settings

logger = logging.getLogger(__name__)


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to listen on"),
    host: Optional[str] = typer.Option(None, help="Host to bind to"),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Serve project data, refreshes and badges over HTTP."""
    import uvicorn

    from ..rank.remote import RemoteScoreCache, connect
    from ..server.app import create_app

    settings = resolve_settings(config=config, verbose=verbose, http_port=port, http_host=host)

    remote_factory = None
    if settings.redis_url:
        client = connect(settings.redis_url)

        def remote_factory(repository: str) -> RemoteScoreCache:
            return RemoteScoreCache(client, repository)

    with open_services(settings) as services:
        asgi_app = create_app(
            services.aggregator,
            provider=services.provider,
            remote=remote_factory,
            allow_origin=settings.allow_origin,
        )
        url = f"http://{settings.http_host}:{settings.http_port}"
        console.print(f"[bold]Listening[/bold] → {url}")
        console.print("[dim]Press Ctrl+C to stop[/dim]")
        uvicorn.run(
            asgi_app,
            host=settings.http_host,
            port=settings.http_port,
            log_level=settings.log_level,
        )
    logger.info("Server stopped")
