"""RouterOS REST adapter for User-Manager resources."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote

import httpx

from usermanager.gateway.base import (
    RemoteError,
    ResourceKind,
    extract_error_detail,
    raise_if_cancelled,
)

HTTPClientFactory = Callable[..., httpx.Client]

BASE_PATH = "/rest/user-manager"

logger = logging.getLogger(__name__)


class RouterOSRestGateway:
    def __init__(
        self,
        *,
        base_url: str,
        username: str,
        password: str,
        timeout_seconds: float = 10.0,
        verify_tls: bool = True,
        http_client_factory: HTTPClientFactory = httpx.Client,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._auth = httpx.BasicAuth(username, password)
        self._timeout_seconds = timeout_seconds
        self._verify_tls = verify_tls
        self._http_client_factory = http_client_factory

    def list_all(
        self,
        kind: ResourceKind,
        *,
        cancel: threading.Event | None = None,
    ) -> list[dict[str, Any]]:
        path = _collection_path(kind)
        response = self._request("GET", path, cancel=cancel)
        return _parse_json_rows(response, method="GET", path=path)

    def get(
        self,
        kind: ResourceKind,
        key: str,
        *,
        cancel: threading.Event | None = None,
    ) -> dict[str, Any]:
        path = _item_path(kind, key)
        response = self._request("GET", path, cancel=cancel)
        return _parse_json_object(response, method="GET", path=path)

    def create(
        self,
        kind: ResourceKind,
        fields: Mapping[str, Any],
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._request("PUT", _collection_path(kind), json_body=fields, cancel=cancel)

    def patch(
        self,
        kind: ResourceKind,
        key: str,
        fields: Mapping[str, Any],
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._request("PATCH", _item_path(kind, key), json_body=fields, cancel=cancel)

    def delete(
        self,
        kind: ResourceKind,
        key: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._request("DELETE", _item_path(kind, key), cancel=cancel)

    def command(
        self,
        kind: ResourceKind,
        command: str,
        fields: Mapping[str, Any],
        *,
        cancel: threading.Event | None = None,
    ) -> list[dict[str, Any]]:
        path = f"{_collection_path(kind)}/{command}"
        response = self._request("POST", path, json_body=fields, cancel=cancel)
        data = _parse_json(response, method="POST", path=path)
        # Commands answer with one object or a list of them.
        if isinstance(data, dict):
            return [data]
        return _rows_from(data, response, method="POST", path=path)

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Mapping[str, Any] | None = None,
        cancel: threading.Event | None = None,
    ) -> httpx.Response:
        raise_if_cancelled(cancel, step=f"{method} {path}")
        content = _encode_body(json_body) if json_body is not None else None
        logger.debug("%s %s", method, path)
        with self._http_client_factory(
            base_url=self._base_url,
            auth=self._auth,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
            timeout=self._timeout_seconds,
            verify=self._verify_tls,
        ) as client:
            try:
                response = client.request(method, path, content=content)
            except httpx.HTTPError as exc:
                raise RemoteError(
                    f"routeros request failed: {exc}",
                    method=method,
                    path=path,
                ) from exc

        _raise_for_status(response, method=method, path=path)
        return response


def _collection_path(kind: ResourceKind) -> str:
    return f"{BASE_PATH}/{kind.value}"


def _item_path(kind: ResourceKind, key: str) -> str:
    # Row identifiers such as "*1A" must reach the router unescaped.
    if kind is ResourceKind.USER:
        key = quote(key, safe="")
    return f"{BASE_PATH}/{kind.value}/{key}"


def _encode_body(fields: Mapping[str, Any]) -> bytes:
    body = {key: value for key, value in fields.items() if value is not None}
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


def _raise_for_status(response: httpx.Response, *, method: str, path: str) -> None:
    if response.is_success:
        return

    raw_body = response.text
    detail = extract_error_detail(raw_body.strip()) or response.reason_phrase
    raise RemoteError(
        f"routeros error: {detail[:240]}",
        method=method,
        path=path,
        status_code=response.status_code,
        raw_body=raw_body,
        detail=detail,
    )


def _parse_json_rows(response: httpx.Response, *, method: str, path: str) -> list[dict[str, Any]]:
    data = _parse_json(response, method=method, path=path)
    return _rows_from(data, response, method=method, path=path)


def _rows_from(
    data: Any,
    response: httpx.Response,
    *,
    method: str,
    path: str,
) -> list[dict[str, Any]]:
    if not isinstance(data, list):
        raise RemoteError(
            "routeros response payload must be a list",
            method=method,
            path=path,
            status_code=response.status_code,
            raw_body=response.text,
        )
    rows: list[dict[str, Any]] = []
    for item in data:
        if not isinstance(item, dict):
            raise RemoteError(
                "routeros response rows must be objects",
                method=method,
                path=path,
                status_code=response.status_code,
                raw_body=response.text,
            )
        rows.append(item)
    return rows


def _parse_json_object(response: httpx.Response, *, method: str, path: str) -> dict[str, Any]:
    data = _parse_json(response, method=method, path=path)
    if not isinstance(data, dict):
        raise RemoteError(
            "routeros response payload must be an object",
            method=method,
            path=path,
            status_code=response.status_code,
            raw_body=response.text,
        )
    return data


def _parse_json(response: httpx.Response, *, method: str, path: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise RemoteError(
            "routeros response was not valid JSON",
            method=method,
            path=path,
            status_code=response.status_code,
            raw_body=response.text,
        ) from exc
