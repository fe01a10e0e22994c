"""Gateway construction based on runtime settings."""

from __future__ import annotations

from pathlib import Path

import httpx

from usermanager.config import ClientSettings
from usermanager.gateway.rest import HTTPClientFactory, RouterOSRestGateway


def read_password_file(password_file: str) -> str:
    source = password_file.strip()
    if not source:
        raise ValueError("router password file path cannot be empty")

    try:
        password = Path(source).read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ValueError(f"failed to read router password file: {source}: {exc}") from exc

    if not password:
        raise ValueError(f"router password file is empty: {source}")
    return password


def resolve_router_password(settings: ClientSettings) -> str:
    password_file = settings.router_password_file.strip()
    if password_file:
        return read_password_file(password_file)

    if not settings.router_password:
        raise ValueError("ROUTEROS_PASSWORD or router.password_file is required")
    return settings.router_password


def create_gateway(
    settings: ClientSettings,
    *,
    http_client_factory: HTTPClientFactory = httpx.Client,
) -> RouterOSRestGateway:
    base_url = settings.router_base_url.strip()
    if not base_url:
        raise ValueError("router.base_url is required")
    username = settings.router_username.strip()
    if not username:
        raise ValueError("router.username is required")
    password = resolve_router_password(settings)

    return RouterOSRestGateway(
        base_url=base_url,
        username=username,
        password=password,
        timeout_seconds=settings.router_timeout_seconds,
        verify_tls=settings.router_verify_tls,
        http_client_factory=http_client_factory,
    )
