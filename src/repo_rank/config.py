"""Configuration loading and management for repo-rank.

Configuration sources are merged in priority order:
    1. Defaults (defined in RankSettings)
    2. Global config (~/.repo-rank.toml)
    3. Project config (./repo-rank.toml)
    4. Explicit config file
    5. Environment variables (REPO_RANK_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> settings = load_config(http_port=9000)
    >>> settings.http_port
    9000
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

LogLevel = Literal["debug", "info", "warning", "error"]

# Linters run by default by the lint producer.
DEFAULT_LINTERS = (
    "deadcode",
    "dupl",
    "errcheck",
    "goconst",
    "gocyclo",
    "gofmt",
    "goimports",
    "golint",
    "gosimple",
    "ineffassign",
    "staticcheck",
    "vet",
    "vetshadow",
)


@dataclass(frozen=True)
class RankSettings:
    """Settings for the cache, the producers and the HTTP surface.

    Attributes:
        Cache:
            store_path: Directory of the durable key-value store
            cache_ttl_hours: Expiry for cached categories (0 = never expire)

        Producers:
            producer_url: Base URL of the analysis producer functions
            wait_bound_seconds: Global wait bound for one aggregation
            linters: Linter allow-list passed to the lint producer

        Source hosting:
            github_api_url: GitHub REST API root
            github_token: Access token (optional, raises rate limits)
            required_language: Primary language a repository must have

        Remote score cache:
            redis_url: Redis holding compressed producer outputs (optional)

        HTTP:
            http_host / http_port: Bind address
            allow_origin: Value of Access-Control-Allow-Origin

        Logging:
            log_level: debug/info/warning/error
            log_file: Optional log file
    """

    # Cache
    store_path: str = ".repo-rank-cache"
    cache_ttl_hours: int = 0

    # Producers
    producer_url: str = "http://127.0.0.1:9000/functions"
    wait_bound_seconds: float = 300.0
    linters: tuple[str, ...] = field(default_factory=lambda: DEFAULT_LINTERS)

    # Source hosting
    github_api_url: str = "https://api.github.com"
    github_token: Optional[str] = None
    required_language: str = "Go"

    # Remote score cache
    redis_url: Optional[str] = None

    # HTTP
    http_host: str = "127.0.0.1"
    http_port: int = 8080
    allow_origin: str = "*"

    # Logging
    log_level: LogLevel = "info"
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        Raises:
            InvalidConfigError: If a value is out of range
        """
        if self.cache_ttl_hours < 0:
            raise InvalidConfigError("cache_ttl_hours", self.cache_ttl_hours, "must be non-negative")
        if self.wait_bound_seconds <= 0:
            raise InvalidConfigError("wait_bound_seconds", self.wait_bound_seconds, "must be positive")
        if not 0 < self.http_port < 65536:
            raise InvalidConfigError("http_port", self.http_port, "must be between 1 and 65535")
        if self.log_level not in ("debug", "info", "warning", "error"):
            raise InvalidConfigError("log_level", self.log_level, "expected debug/info/warning/error")
        if not self.linters:
            raise InvalidConfigError("linters", self.linters, "must not be empty")

    @property
    def cache_ttl_seconds(self) -> Optional[int]:
        """TTL in seconds, or None when entries never expire."""
        if self.cache_ttl_hours == 0:
            return None
        return self.cache_ttl_hours * 3600


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> RankSettings:
    """Load settings with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); ``None``
            values are ignored

    Returns:
        Validated RankSettings instance

    Raises:
        ConfigurationError: If a config file or value is invalid
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".repo-rank.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / "repo-rank.toml"
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    if "linters" in merged:
        merged["linters"] = tuple(merged["linters"])

    try:
        return RankSettings(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from REPO_RANK_* environment variables.

    ``REPO_RANK_LINTERS`` is a comma-separated list; every other field maps
    to ``REPO_RANK_<FIELD_NAME>``.
    """
    type_hints = get_type_hints(RankSettings)
    result: dict[str, Any] = {}

    for field_name in RankSettings.__dataclass_fields__:
        env_key = f"REPO_RANK_{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        if field_name == "linters":
            result[field_name] = tuple(v.strip() for v in env_value.split(",") if v.strip())
            continue

        try:
            result[field_name] = _parse_env_value(env_value, type_hints[field_name])
        except ValueError as e:
            raise InvalidConfigError(field_name, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type."""
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        type_hint = non_none_types[0]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    return value


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file, flattening an optional ``[repo-rank]`` table."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")

    return data.get("repo-rank", data)
