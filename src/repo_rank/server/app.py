"""Starlette ASGI application exposing cached repository ranks."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from ..exceptions import MissingDataError, RepoRankError, ValidationError
from ..models import RepositoryIdentifier
from ..orchestrator import Aggregator
from ..rank.remote import RemoteScoreCache
from . import badge

logger = logging.getLogger(__name__)

RemoteFactory = Callable[[str], RemoteScoreCache]


def send(data: Any = None, error: Optional[Exception] = None, status_code: int = 200) -> JSONResponse:
    """JSend reply: ``success`` with data, ``fail`` for client errors, ``error`` otherwise."""
    if error is None:
        return JSONResponse({"status": "success", "data": data}, status_code=status_code)
    if status_code < 500:
        return JSONResponse(
            {"status": "fail", "data": {"message": str(getattr(error, "message", error))}},
            status_code=status_code,
        )
    return JSONResponse({"status": "error", "message": str(error)}, status_code=status_code)


def _validation_status(error: ValidationError) -> int:
    return 404 if error.reason == "not-found" else 406


def create_app(
    aggregator: Aggregator,
    provider: Any = None,
    remote: Optional[RemoteFactory] = None,
    allow_origin: str = "*",
) -> Starlette:
    """Build the Starlette application.

    Args:
        aggregator: Aggregator wired to the store and producers
        provider: Source-hosting provider for /valid and /contents
        remote: Factory of remote score caches used as badge fallback
        allow_origin: CORS allowed origin
    """

    def _identifier(request: Request) -> RepositoryIdentifier:
        name = request.path_params["repository"].strip("/")
        return RepositoryIdentifier(name, request.query_params.get("branch", ""))

    async def _aggregate(request: Request, refresh: bool) -> JSONResponse:
        try:
            identifier = _identifier(request)
        except ValueError as e:
            return send(error=e, status_code=400)
        try:
            result = await run_in_threadpool(aggregator.aggregate, identifier, refresh)
        except ValidationError as e:
            return send(error=e, status_code=_validation_status(e))
        except RepoRankError as e:
            logger.error("Aggregation failed for %s: %s", identifier, e)
            return send(error=e, status_code=500)
        return send(result.as_map())

    async def project(request: Request) -> JSONResponse:
        return await _aggregate(request, refresh=False)

    async def refresh(request: Request) -> JSONResponse:
        return await _aggregate(request, refresh=True)

    async def badge_endpoint(request: Request) -> Response:
        """Rank letter from the cached score only; no producer is ever called."""
        try:
            identifier = _identifier(request)
        except ValueError:
            return _svg(badge.render_error())

        def lookup() -> Optional[str]:
            record = aggregator.repository(identifier)
            try:
                return record.get_rank()
            except MissingDataError:
                pass
            if remote is None:
                return None
            return remote(identifier.name).get_rank()

        try:
            rank = await run_in_threadpool(lookup)
        except RepoRankError as e:
            logger.info("No badge for %s: %s", identifier, e)
            rank = None
        if rank is None:
            return _svg(badge.render_error())
        return _svg(badge.render_rank(rank))

    async def valid(request: Request) -> JSONResponse:
        if provider is None:
            return send(error=RuntimeError("No hosting provider configured"), status_code=503)
        try:
            identifier = _identifier(request)
            await run_in_threadpool(provider.validate, identifier)
        except ValueError as e:
            return send(error=e, status_code=400)
        except ValidationError as e:
            return send(error=e, status_code=_validation_status(e))
        except RepoRankError as e:
            return send(error=e, status_code=502)
        return send(True)

    async def cached(request: Request) -> JSONResponse:
        try:
            identifier = _identifier(request)
        except ValueError as e:
            return send(error=e, status_code=400)
        record = aggregator.repository(identifier)
        return send(await run_in_threadpool(record.is_cached))

    async def contents(request: Request) -> Response:
        if provider is None:
            return send(error=RuntimeError("No hosting provider configured"), status_code=503)
        path = request.query_params.get("path")
        if not path:
            return send(error=ValueError("Missing path parameter"), status_code=400)
        try:
            identifier = _identifier(request)
            content = await run_in_threadpool(provider.get_file_content, identifier, path)
        except ValueError as e:
            return send(error=e, status_code=400)
        except ValidationError as e:
            return send(error=e, status_code=_validation_status(e))
        except RepoRankError as e:
            return send(error=e, status_code=502)
        if content is None:
            return send(error=FileNotFoundError(f"{path} not found"), status_code=404)
        return send(content.decode("utf-8", errors="replace"))

    routes = [
        Route("/project/{repository:path}", project),
        Route("/refresh/{repository:path}", refresh),
        Route("/badge/{repository:path}", badge_endpoint),
        Route("/valid/{repository:path}", valid),
        Route("/cached/{repository:path}", cached),
        Route("/contents/{repository:path}", contents),
    ]
    middleware = [Middleware(CORSMiddleware, allow_origins=[allow_origin], allow_methods=["GET"])]

    return Starlette(routes=routes, middleware=middleware)


def _svg(body: str) -> Response:
    return Response(
        content=body,
        media_type="image/svg+xml",
        headers={"Cache-Control": "no-cache, max-age=0"},
    )
