"""Normalization of raw producer output before it is cached."""

from __future__ import annotations

import re
from typing import Iterable

from .models import LintMessages

# host/owner/project: one repository corresponds to one third party
_REPOSITORY_PREFIX = re.compile(r"^([\w.]+)/([\w-]+)/([\w-]+)")


def dedupe_imports(imports: Iterable[str]) -> list[str]:
    """Collapse import paths that belong to the same repository.

    >>> dedupe_imports(["host.com/org/a/sub1", "host.com/org/a/sub2", "other.com/pkg"])
    ['host.com/org/a', 'other.com/pkg']
    """
    collapsed = set()
    for path in imports:
        match = _REPOSITORY_PREFIX.match(path)
        collapsed.add(match.group(0) if match else path)
    return sorted(collapsed)


def filter_lint_messages(messages: LintMessages, linters: Iterable[str]) -> LintMessages:
    """Keep only the findings of allow-listed linters."""
    allowed = set(linters)
    return {linter: list(found) for linter, found in messages.items() if linter in allowed}
