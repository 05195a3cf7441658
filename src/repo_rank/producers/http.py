"""Producer gateway calling the analysis functions over HTTP."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from .. import codec
from ..exceptions import (
    DeserializationError,
    ProducerTimeout,
    ProducerTransportError,
    ValidationError,
)
from ..logging_config import get_logger
from ..models import Category, RepositoryIdentifier
from .gateway import ProducerGateway

logger = get_logger(__name__)

# Remote function name for each category
FUNCTIONS = {
    Category.IMPORTS: "imports",
    Category.CODE_STATS: "codestats",
    Category.TEST_RESULTS: "testrunner",
    Category.LINT_MESSAGES: "lintmessages",
}

_VALIDATION_STATUSES = {400, 404, 422}


class HttpProducerGateway(ProducerGateway):
    """POSTs ``{repository, branch, linters}`` to ``<base_url>/<function>``.

    Replies are JSend documents: ``success`` carries the category payload,
    ``fail`` means the repository cannot be analysed.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 300.0,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def fetch(
        self,
        identifier: RepositoryIdentifier,
        category: Category,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        self.check_category(category)
        url = f"{self.base_url}/{FUNCTIONS[category]}"
        payload = {
            "repository": identifier.name,
            "branch": identifier.branch,
            "linters": list((params or {}).get("linters", ())),
        }

        try:
            response = self._client.post(url, json=payload, timeout=self.timeout)
        except httpx.TimeoutException:
            raise ProducerTimeout(category.value, self.timeout)
        except httpx.HTTPError as e:
            raise ProducerTransportError(
                f"Cannot reach producer {FUNCTIONS[category]}", category.value, str(e)
            )

        logger.debug("Producer %s answered %d for %s", FUNCTIONS[category], response.status_code, identifier)

        if response.status_code >= 500:
            raise ProducerTransportError(
                f"Producer {FUNCTIONS[category]} failed",
                category.value,
                f"HTTP {response.status_code}",
            )

        try:
            document = response.json()
        except ValueError as e:
            raise ProducerTransportError(
                f"Producer {FUNCTIONS[category]} sent an invalid reply", category.value, str(e)
            )

        if response.status_code in _VALIDATION_STATUSES or _jsend_status(document) == "fail":
            raise ValidationError(
                _jsend_message(document) or f"{identifier.name} cannot be analysed",
                category.value,
                f"HTTP {response.status_code}",
            )
        if response.status_code >= 400 or _jsend_status(document) == "error":
            raise ProducerTransportError(
                _jsend_message(document) or f"Producer {FUNCTIONS[category]} failed",
                category.value,
                f"HTTP {response.status_code}",
            )

        try:
            return codec.from_document(category, codec.strip_envelope(document))
        except DeserializationError as e:
            raise ProducerTransportError(
                f"Producer {FUNCTIONS[category]} sent an unexpected payload",
                category.value,
                e.reason,
            )

    def close(self) -> None:
        self._client.close()


def _jsend_status(document: Any) -> Optional[str]:
    if isinstance(document, dict):
        return document.get("status")
    return None


def _jsend_message(document: Any) -> Optional[str]:
    if not isinstance(document, dict):
        return None
    if document.get("message"):
        return str(document["message"])
    data = document.get("data")
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return None
