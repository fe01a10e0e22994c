from __future__ import annotations

import threading
from collections.abc import Generator, Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from usermanager.api import UserManagerApi
from usermanager.config import get_settings
from usermanager.gateway.base import RemoteError, ResourceKind, raise_if_cancelled

READ_OPERATIONS = frozenset({"list", "get", "command"})


@dataclass
class FakeGateway:
    """In-memory stand-in for the RouterOS REST gateway."""

    rows: dict[ResourceKind, list[dict[str, Any]]] = field(
        default_factory=lambda: {kind: [] for kind in ResourceKind}
    )
    calls: list[tuple[str, ResourceKind, Any]] = field(default_factory=list)
    errors: dict[tuple[str, ResourceKind], list[Exception]] = field(default_factory=dict)
    monitors: dict[str, dict[str, Any]] = field(default_factory=dict)
    next_id: int = 1

    def seed(self, kind: ResourceKind, **fields: Any) -> dict[str, Any]:
        row = {".id": f"*{self.next_id:X}", **fields}
        self.next_id += 1
        self.rows[kind].append(row)
        return row

    def fail(self, operation: str, kind: ResourceKind, error: Exception) -> None:
        self.errors.setdefault((operation, kind), []).append(error)

    def writes(self) -> list[tuple[str, ResourceKind, Any]]:
        return [call for call in self.calls if call[0] not in READ_OPERATIONS]

    def list_all(
        self,
        kind: ResourceKind,
        *,
        cancel: threading.Event | None = None,
    ) -> list[dict[str, Any]]:
        self._enter("list", kind, None, cancel)
        return [dict(row) for row in self.rows[kind]]

    def get(
        self,
        kind: ResourceKind,
        key: str,
        *,
        cancel: threading.Event | None = None,
    ) -> dict[str, Any]:
        self._enter("get", kind, key, cancel)
        row = self._find(kind, key)
        if row is None:
            raise RemoteError(
                "routeros error: no such item",
                method="GET",
                path=f"/rest/user-manager/{kind.value}/{key}",
                status_code=404,
                raw_body='{"error":404,"message":"Not Found","detail":"no such item"}',
            )
        return dict(row)

    def create(
        self,
        kind: ResourceKind,
        fields: Mapping[str, Any],
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._enter("create", kind, dict(fields), cancel)
        if kind is ResourceKind.USER:
            existing = self._find(kind, str(fields["name"]))
            if existing is not None:
                existing.update(fields)
                return
        self.seed(kind, **dict(fields))

    def patch(
        self,
        kind: ResourceKind,
        key: str,
        fields: Mapping[str, Any],
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._enter("patch", kind, (key, dict(fields)), cancel)
        row = self._find(kind, key)
        if row is not None:
            row.update(fields)

    def delete(
        self,
        kind: ResourceKind,
        key: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._enter("delete", kind, key, cancel)
        row = self._find(kind, key)
        if row is not None:
            self.rows[kind].remove(row)

    def command(
        self,
        kind: ResourceKind,
        command: str,
        fields: Mapping[str, Any],
        *,
        cancel: threading.Event | None = None,
    ) -> list[dict[str, Any]]:
        self._enter("command", kind, (command, dict(fields)), cancel)
        result = self.monitors.get(str(fields.get("numbers")))
        return [dict(result)] if result is not None else []

    def _enter(
        self,
        operation: str,
        kind: ResourceKind,
        payload: Any,
        cancel: threading.Event | None,
    ) -> None:
        raise_if_cancelled(cancel, step=f"{operation} {kind.value}")
        self.calls.append((operation, kind, payload))
        pending = self.errors.get((operation, kind))
        if pending:
            raise pending.pop(0)

    def _find(self, kind: ResourceKind, key: str) -> dict[str, Any] | None:
        field_name = "name" if kind is ResourceKind.USER else ".id"
        return next((row for row in self.rows[kind] if row.get(field_name) == key), None)


@pytest.fixture()
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def api(fake_gateway: FakeGateway) -> UserManagerApi:
    return UserManagerApi(fake_gateway)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
