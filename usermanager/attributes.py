"""Codec for the RouterOS user ``attributes`` blob.

The router keeps RADIUS-style attributes for an account in a single string
field, for example ``Mikrotik-Rate-Limit:512k/1M,Session-Timeout:3600``.
Only three keys are understood here; anything else is dropped on decode and
never written back, so every write replaces the whole blob.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

RATE_LIMIT_KEY = "Mikrotik-Rate-Limit"
STATIC_IP_KEY = "Framed-IP-Address"
SESSION_TIMEOUT_KEY = "Session-Timeout"

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

_RECOGNIZED_KEYS = {
    RATE_LIMIT_KEY.lower(): RATE_LIMIT_KEY,
    STATIC_IP_KEY.lower(): STATIC_IP_KEY,
    SESSION_TIMEOUT_KEY.lower(): SESSION_TIMEOUT_KEY,
}


@dataclass(frozen=True, slots=True)
class UserAttributes:
    rate_limit: str | None = None
    static_ip: str | None = None
    session_timeout_seconds: int | None = None


def decode_attributes(blob: str | None) -> UserAttributes:
    if not blob or not blob.strip():
        return UserAttributes()

    values: dict[str, str] = {}
    for segment in blob.split(","):
        if not segment.strip():
            continue
        key, separator, value = segment.partition(":")
        if not separator:
            continue
        canonical_key = _RECOGNIZED_KEYS.get(key.strip().lower())
        if canonical_key is None or canonical_key in values:
            continue
        values[canonical_key] = value.strip()

    return UserAttributes(
        rate_limit=values.get(RATE_LIMIT_KEY),
        static_ip=values.get(STATIC_IP_KEY),
        session_timeout_seconds=_parse_seconds(values.get(SESSION_TIMEOUT_KEY)),
    )


def encode_attributes(attributes: UserAttributes) -> str:
    entries: list[str] = []
    rate_limit = (attributes.rate_limit or "").strip()
    if rate_limit:
        entries.append(f"{RATE_LIMIT_KEY}:{rate_limit}")
    static_ip = (attributes.static_ip or "").strip()
    if static_ip:
        entries.append(f"{STATIC_IP_KEY}:{static_ip}")
    if attributes.session_timeout_seconds is not None:
        entries.append(f"{SESSION_TIMEOUT_KEY}:{attributes.session_timeout_seconds}")
    return ",".join(entries)


def _parse_seconds(value: str | None) -> int | None:
    if value is None:
        return None
    if not _INTEGER_PATTERN.fullmatch(value):
        return None
    return int(value, 10)
