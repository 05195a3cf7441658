"""Serialization of category values to and from cached bytes.

Stored documents are compact, key-sorted JSON so equal values always give
byte-identical documents. Values coming from the remote score cache are
gzip-compressed and may be wrapped in a JSend success envelope.
"""

from __future__ import annotations

import gzip
import json
import zlib
from datetime import datetime
from typing import Any

from .exceptions import DeserializationError
from .models import (
    Category,
    Checklist,
    ChecklistItem,
    LintMessage,
    Metadata,
    PackageResult,
    Score,
    ScoreDetail,
    TestResults,
)

# ── value -> document ────────────────────────────────────────────────


def _checklist_item(item: ChecklistItem) -> dict[str, str]:
    return {"Category": item.category, "Desc": item.desc, "Name": item.name}


def _datetime_doc(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def to_document(category: Category, value: Any) -> Any:
    """Convert a category value into a JSON-compatible document."""
    if category == Category.IMPORTS:
        return list(value)
    if category == Category.CODE_STATS:
        return dict(value)
    if category == Category.TEST_RESULTS:
        return {
            "checklist": {
                "Passed": [_checklist_item(i) for i in value.checklist.passed],
                "Failed": [_checklist_item(i) for i in value.checklist.failed],
            },
            "packages": [
                {
                    "name": p.name,
                    "success": p.success,
                    "coverage": p.coverage,
                    "execution_time": p.execution_time,
                }
                for p in value.packages
            ],
        }
    if category == Category.LINT_MESSAGES:
        return {
            linter: [
                {
                    "path": m.path,
                    "line": m.line,
                    "col": m.col,
                    "severity": m.severity,
                    "message": m.message,
                }
                for m in messages
            ]
            for linter, messages in value.items()
        }
    if category == Category.METADATA:
        return {
            "image": value.image,
            "description": value.description,
            "stars": value.stars,
            "last_push": _datetime_doc(value.last_push),
        }
    if category == Category.SCORE:
        return {
            "value": value.value,
            "rank": value.rank,
            "details": [
                {"category": d.category, "score": d.score, "weight": d.weight}
                for d in value.details
            ],
        }
    if category == Category.LAST_UPDATE:
        return _datetime_doc(value)
    if category == Category.EXECUTION_TIME:
        return float(value)
    raise ValueError(f"unknown category {category!r}")


# ── document -> value ────────────────────────────────────────────────


def _parse_datetime(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


def _items(raw: list[dict] | None) -> list[ChecklistItem]:
    return [
        ChecklistItem(category=i.get("Category", ""), desc=i.get("Desc", ""), name=i["Name"])
        for i in raw or []
    ]


def from_document(category: Category, doc: Any) -> Any:
    """Build a category value from its JSON document.

    Raises:
        DeserializationError: If the document does not have the expected shape
    """
    try:
        return _from_document(category, doc)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise DeserializationError(category.value, f"unexpected document shape: {e}")


def _from_document(category: Category, doc: Any) -> Any:
    if category == Category.IMPORTS:
        if not isinstance(doc, list):
            raise TypeError("expected a list of import paths")
        return [str(i) for i in doc]
    if category == Category.CODE_STATS:
        return {str(k): int(v) for k, v in doc.items()}
    if category == Category.TEST_RESULTS:
        checklist = doc.get("checklist") or {}
        return TestResults(
            checklist=Checklist(
                passed=_items(checklist.get("Passed")),
                failed=_items(checklist.get("Failed")),
            ),
            packages=[
                PackageResult(
                    name=p["name"],
                    success=bool(p["success"]),
                    coverage=float(p.get("coverage", 0.0)),
                    execution_time=float(p.get("execution_time", 0.0)),
                )
                for p in doc.get("packages") or []
            ],
        )
    if category == Category.LINT_MESSAGES:
        return {
            linter: [
                LintMessage(
                    path=m["path"],
                    line=int(m["line"]),
                    col=int(m.get("col", 0)),
                    severity=m.get("severity", "warning"),
                    message=m.get("message", ""),
                )
                for m in messages
            ]
            for linter, messages in doc.items()
        }
    if category == Category.METADATA:
        return Metadata(
            image=doc.get("image", ""),
            description=doc.get("description") or "",
            stars=int(doc.get("stars", 0)),
            last_push=_parse_datetime(doc.get("last_push")),
        )
    if category == Category.SCORE:
        return Score(
            value=float(doc["value"]),
            rank=doc["rank"],
            details=[
                ScoreDetail(category=d["category"], score=float(d["score"]), weight=float(d["weight"]))
                for d in doc.get("details", [])
            ],
        )
    if category == Category.LAST_UPDATE:
        if doc is None:
            raise ValueError("missing timestamp")
        return _parse_datetime(doc)
    if category == Category.EXECUTION_TIME:
        return float(doc)
    raise ValueError(f"unknown category {category!r}")


# ── bytes ────────────────────────────────────────────────────────────


def encode(category: Category, value: Any) -> bytes:
    doc = to_document(category, value)
    return json.dumps(doc, sort_keys=True, separators=(",", ":")).encode("utf-8")


def decode(category: Category, data: bytes) -> Any:
    """Decode stored bytes into a category value.

    Raises:
        DeserializationError: If the bytes are not a valid document
    """
    try:
        doc = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DeserializationError(category.value, f"invalid JSON: {e}")
    return from_document(category, doc)


# ── remote score cache ───────────────────────────────────────────────


def strip_envelope(doc: Any) -> Any:
    """Unwrap a JSend ``{"data": ..., "status": "success"}`` envelope.

    Documents that are not envelopes are returned unchanged.

    Raises:
        DeserializationError: If the envelope carries a non-success status
    """
    if isinstance(doc, dict) and set(doc) == {"data", "status"}:
        if doc["status"] != "success":
            raise DeserializationError("envelope", f"status is {doc['status']!r}")
        return doc["data"]
    return doc


def gzip_encode(data: bytes) -> bytes:
    # mtime=0 keeps the output deterministic
    return gzip.compress(data, mtime=0)


def gzip_decode(data: bytes) -> bytes:
    """Decompress gzip data; failure is a hard error, never absence."""
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise DeserializationError("gzip", str(e))


def decode_remote(category: Category, data: bytes, compressed: bool = True) -> Any:
    """Decode a value read from the remote score cache."""
    if compressed:
        data = gzip_decode(data)
    try:
        doc = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DeserializationError(category.value, f"invalid JSON: {e}")
    return from_document(category, strip_envelope(doc))
