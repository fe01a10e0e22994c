"""Classification of remote failures the reconciler may treat as success."""

from __future__ import annotations

from usermanager.gateway.base import RemoteError

DUPLICATE_STATUS_CODES = frozenset({400, 409})
DUPLICATE_MARKERS = ("exist", "already", "duplicate")

ABSENT_STATUS_CODES = frozenset({404, 409, 500})
ABSENT_MARKERS = (
    "not found",
    "no such",
    "exist",
    "already",
    "duplicate",
    "internal server error",
)


def is_tolerated_duplicate(exc: RemoteError) -> bool:
    """True when a create failed because the row is already there."""
    return _matches(exc, DUPLICATE_STATUS_CODES, DUPLICATE_MARKERS)


def is_tolerated_absent(exc: RemoteError) -> bool:
    """True when a delete failed because the row is already gone."""
    return _matches(exc, ABSENT_STATUS_CODES, ABSENT_MARKERS)


def _matches(exc: RemoteError, status_codes: frozenset[int], markers: tuple[str, ...]) -> bool:
    if exc.status_code not in status_codes:
        return False
    body = (exc.raw_body or "").casefold()
    return any(marker in body for marker in markers)
