"""HTTP surface for repo-rank.

Requires the ``starlette`` and ``uvicorn`` dependencies.
"""

from __future__ import annotations

from .app import create_app

__all__ = ["create_app"]
