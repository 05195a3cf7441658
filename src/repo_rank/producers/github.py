"""GitHub as the source-hosting provider: existence, language and metadata checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import httpx

from ..exceptions import ProducerTransportError, ValidationError
from ..logging_config import get_logger
from ..models import Metadata, RepositoryIdentifier

logger = get_logger(__name__)

GITHUB_HOST = "github.com"


@dataclass
class RepositoryCheck:
    """Outcome of a provider lookup."""

    exists: bool
    primary_language_matches: bool = False
    metadata: Metadata = field(default_factory=Metadata)
    language: Optional[str] = None


def split_name(identifier: RepositoryIdentifier) -> tuple[str, str]:
    """``github.com/owner/project`` -> ``(owner, project)``.

    Raises:
        ValidationError: For other hosts or malformed names
    """
    parts = identifier.name.strip("/").split("/")
    if len(parts) != 3 or parts[0] != GITHUB_HOST or not all(parts):
        raise ValidationError(
            f"Unsupported repository {identifier.name}", reason="expected github.com/<owner>/<project>"
        )
    return parts[1], parts[2]


class GitHubProvider:
    """Thin client over the GitHub REST API."""

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        token: Optional[str] = None,
        required_language: str = "Go",
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.required_language = required_language
        self._client = client or httpx.Client(base_url=api_url, headers=headers, timeout=timeout)

    def check(self, identifier: RepositoryIdentifier) -> RepositoryCheck:
        """Look the repository up without raising on absence."""
        owner, project = split_name(identifier)
        response = self._get(f"/repos/{owner}/{project}")
        if response.status_code == 404:
            return RepositoryCheck(exists=False)
        self._raise_for_status(response)

        data = response.json()
        language = data.get("language") or ""
        return RepositoryCheck(
            exists=True,
            primary_language_matches=self.required_language in language,
            metadata=Metadata(
                image=(data.get("owner") or {}).get("avatar_url", ""),
                description=data.get("description") or "",
                stars=int(data.get("stargazers_count", 0)),
                last_push=_parse_timestamp(data.get("pushed_at")),
            ),
            language=language or None,
        )

    def validate(self, identifier: RepositoryIdentifier) -> RepositoryCheck:
        """Ensure the repository exists and contains applicable source code.

        Raises:
            ValidationError: If it does not
        """
        result = self.check(identifier)
        if not result.exists:
            raise ValidationError(
                f"Repository {identifier.name} not found", reason="not-found"
            )
        if not result.primary_language_matches:
            raise ValidationError(
                f"The repository doesn't contain {self.required_language} code",
                reason="language-mismatch",
            )
        return result

    def get_metadata(self, identifier: RepositoryIdentifier) -> Metadata:
        return self.validate(identifier).metadata

    def get_file_content(self, identifier: RepositoryIdentifier, path: str) -> Optional[bytes]:
        """Raw content of *path* on the identifier's branch, ``None`` if absent."""
        owner, project = split_name(identifier)
        params = {"ref": identifier.branch} if identifier.branch else None
        response = self._get(
            f"/repos/{owner}/{project}/contents/{path.lstrip('/')}",
            params=params,
            headers={"Accept": "application/vnd.github.raw"},
        )
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return response.content

    def close(self) -> None:
        self._client.close()

    def _get(self, url: str, **kwargs) -> httpx.Response:
        try:
            return self._client.get(url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("GitHub request %s failed: %s", url, e)
            raise ProducerTransportError("Cannot reach GitHub", reason=str(e))

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_error:
            raise ProducerTransportError(
                "GitHub request failed", reason=f"HTTP {response.status_code}"
            )


def _parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))
