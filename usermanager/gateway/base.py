"""Resource gateway interface and remote error model."""

from __future__ import annotations

import json
import threading
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Protocol


class ResourceKind(StrEnum):
    USER = "user"
    PROFILE = "profile"
    LIMITATION = "limitation"
    PROFILE_LIMITATION = "profile-limitation"
    USER_PROFILE = "user-profile"


class UserManagerError(Exception):
    """Base exception for the User-Manager client."""


class RemoteError(UserManagerError):
    """Raised for non-2xx responses, transport failures and unusable bodies."""

    def __init__(
        self,
        message: str,
        *,
        method: str,
        path: str,
        status_code: int | None = None,
        raw_body: str | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.path = path
        self.status_code = status_code
        self.raw_body = raw_body
        self.detail = detail

    def __str__(self) -> str:
        return (
            f"{super().__str__()} "
            f"(status={self.status_code}, method={self.method}, path={self.path})"
        )


class PlanCancelledError(UserManagerError):
    """Raised when a cancellation signal is observed between steps."""


class ResourceGateway(Protocol):
    def list_all(
        self,
        kind: ResourceKind,
        *,
        cancel: threading.Event | None = None,
    ) -> list[dict[str, Any]]:
        """Return every row of ``kind``."""

    def get(
        self,
        kind: ResourceKind,
        key: str,
        *,
        cancel: threading.Event | None = None,
    ) -> dict[str, Any]:
        """Return a single row addressed by name or identifier."""

    def create(
        self,
        kind: ResourceKind,
        fields: Mapping[str, Any],
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        """Create a row; for users this is an upsert by name."""

    def patch(
        self,
        kind: ResourceKind,
        key: str,
        fields: Mapping[str, Any],
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        """Update fields of an existing row."""

    def delete(
        self,
        kind: ResourceKind,
        key: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        """Delete a row addressed by name or identifier."""

    def command(
        self,
        kind: ResourceKind,
        command: str,
        fields: Mapping[str, Any],
        *,
        cancel: threading.Event | None = None,
    ) -> list[dict[str, Any]]:
        """Run a menu command such as ``monitor`` and return its result rows."""


def raise_if_cancelled(cancel: threading.Event | None, *, step: str) -> None:
    if cancel is not None and cancel.is_set():
        raise PlanCancelledError(f"cancelled before {step}")


def extract_error_detail(raw_body: str) -> str:
    """Prefer the router's ``detail``/``message`` field over the raw body."""
    try:
        payload = json.loads(raw_body)
    except ValueError:
        return raw_body
    if isinstance(payload, dict):
        for key in ("detail", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return raw_body
