"""Account detail aggregation and status summaries."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from usermanager.api import UserManagerApi
from usermanager.attributes import UserAttributes, decode_attributes
from usermanager.gateway.base import RemoteError
from usermanager.models import UserMonitorInfo, UserProfileRecord, UserRecord, names_match

ACTIVE_LINK_STATE = "running-active"

_ROUTEROS_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_DURATION_TOKEN = re.compile(r"(\d+)([a-z])")
_DURATION_UNITS = {
    "w": timedelta(weeks=1),
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
}
_MISSING_USER_MARKERS = ("not found", "no such", "internal server error")


@dataclass(frozen=True, slots=True)
class ProfileDetails:
    profile: str
    limitations: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class UserDetails:
    user: UserRecord
    profiles: tuple[ProfileDetails, ...]
    attributes: UserAttributes
    monitor: UserMonitorInfo | None = None

    @property
    def rate_limit(self) -> str | None:
        return self.attributes.rate_limit

    @property
    def static_ip(self) -> str | None:
        return self.attributes.static_ip

    @property
    def session_timeout_seconds(self) -> int | None:
        return self.attributes.session_timeout_seconds


@dataclass(frozen=True, slots=True)
class AccountSummary:
    user: str
    actual_profile: str | None
    end_time: datetime | None
    remaining: timedelta | None
    total_download_bytes: int | None = None
    total_upload_bytes: int | None = None
    total_uptime: timedelta | None = None


def get_user_details(api: UserManagerApi, name: str) -> UserDetails:
    user = api.get_user(name)
    return _assemble_details(api, user, name)


def get_user_details_best_effort(api: UserManagerApi, name: str) -> UserDetails | None:
    """Fetch details, falling back to the user listing when a direct lookup fails.

    Some RouterOS builds answer ``GET /user/{name}`` for an unknown or oddly
    named account with a 500 instead of a 404. Returns None when the account
    is not in the listing either.
    """
    try:
        return get_user_details(api, name)
    except RemoteError as exc:
        if not _looks_like_missing_user(exc):
            raise

    matches = api.find_users_by_name(name)
    if not matches:
        return None
    return _assemble_details(api, matches[0], name)


def summarize_account(
    user: str,
    profile_links: Sequence[UserProfileRecord],
    *,
    monitor: UserMonitorInfo | None = None,
    now: datetime | None = None,
) -> AccountSummary:
    """Summarize the account's current plan, preferring the monitor's actual profile."""
    current_time = now or datetime.now(UTC)
    links = [link for link in profile_links if names_match(link.user, user)]
    active = next(
        (link for link in links if names_match(link.state, ACTIVE_LINK_STATE)),
        links[0] if links else None,
    )

    end_time = parse_end_time(active.end_time) if active is not None else None
    remaining: timedelta | None = None
    if end_time is not None:
        remaining = max(end_time - current_time, timedelta(0))

    counters = monitor or UserMonitorInfo()
    actual_profile = counters.actual_profile or (active.profile if active is not None else None)
    return AccountSummary(
        user=user,
        actual_profile=actual_profile or None,
        end_time=end_time,
        remaining=remaining,
        total_download_bytes=counters.total_download_bytes,
        total_upload_bytes=counters.total_upload_bytes,
        total_uptime=parse_routeros_duration(counters.total_uptime),
    )


def parse_end_time(value: str | None) -> datetime | None:
    if value is None or not value.strip():
        return None
    text = value.strip()
    for parse in (datetime.fromisoformat, _parse_routeros_time):
        try:
            parsed = parse(text)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    return None


def parse_routeros_duration(value: str | None) -> timedelta | None:
    """Parse RouterOS durations such as ``1w2d3h4m5s``."""
    if value is None or not value.strip():
        return None
    text = value.strip()
    total = timedelta(0)
    position = 0
    for match in _DURATION_TOKEN.finditer(text):
        if match.start() != position:
            return None
        unit = _DURATION_UNITS.get(match.group(2))
        if unit is None:
            return None
        total += unit * int(match.group(1))
        position = match.end()
    if position != len(text):
        return None
    return total


def _assemble_details(api: UserManagerApi, user: UserRecord, name: str) -> UserDetails:
    profile_names = _unique_names(link.profile for link in api.list_user_profiles_for(name))
    profile_limitations = api.list_profile_limitations()

    profiles: list[ProfileDetails] = []
    for profile in profile_names:
        limitations = _unique_names(
            link.limitation
            for link in profile_limitations
            if names_match(link.profile, profile)
        )
        profiles.append(ProfileDetails(profile=profile, limitations=tuple(limitations)))

    return UserDetails(
        user=user,
        profiles=tuple(profiles),
        attributes=decode_attributes(user.attributes),
        monitor=api.monitor_user_by_id(user.id or user.name),
    )


def _unique_names(values: Iterable[str]) -> list[str]:
    normalized: list[str] = []
    seen: set[str] = set()
    for value in values:
        stripped = value.strip()
        key = stripped.casefold()
        if not stripped or key in seen:
            continue
        seen.add(key)
        normalized.append(stripped)
    return normalized


def _parse_routeros_time(value: str) -> datetime:
    return datetime.strptime(value, _ROUTEROS_TIME_FORMAT)


def _looks_like_missing_user(exc: RemoteError) -> bool:
    if exc.status_code not in {404, 500}:
        return False
    body = (exc.raw_body or "").strip().casefold()
    return not body or any(marker in body for marker in _MISSING_USER_MARKERS)
