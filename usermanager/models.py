"""Typed User-Manager rows and wire payload normalization."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

ROW_ID_FIELD = ".id"


@dataclass(frozen=True, slots=True)
class UserRecord:
    name: str
    group: str | None = None
    disabled: str | None = None
    shared_users: str | None = None
    attributes: str | None = None
    id: str = ""

    @property
    def is_disabled(self) -> bool:
        return (self.disabled or "").strip().lower() in {"yes", "true"}

    @property
    def shared_users_count(self) -> int | None:
        return _coerce_optional_int(self.shared_users)


@dataclass(frozen=True, slots=True)
class ProfileRecord:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class LimitationRecord:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class ProfileLimitationRecord:
    id: str
    profile: str
    limitation: str


@dataclass(frozen=True, slots=True)
class UserProfileRecord:
    id: str
    user: str
    profile: str
    state: str | None = None
    end_time: str | None = None


@dataclass(frozen=True, slots=True)
class UserMonitorInfo:
    """Counters reported by the user ``monitor`` command."""

    actual_profile: str | None = None
    active_sessions: int | None = None
    total_download: str | None = None
    total_upload: str | None = None
    total_uptime: str | None = None

    @property
    def total_download_bytes(self) -> int | None:
        return _coerce_optional_int(self.total_download)

    @property
    def total_upload_bytes(self) -> int | None:
        return _coerce_optional_int(self.total_upload)


def names_match(left: str | None, right: str | None) -> bool:
    return (left or "").strip().casefold() == (right or "").strip().casefold()


def parse_user(data: Mapping[str, Any]) -> UserRecord:
    return UserRecord(
        name=_coerce_str(data.get("name")),
        group=_coerce_optional_str(data.get("group")),
        disabled=_coerce_optional_str(data.get("disabled")),
        shared_users=_coerce_optional_str(data.get("shared-users")),
        attributes=_coerce_optional_str(data.get("attributes")),
        id=_coerce_str(data.get(ROW_ID_FIELD)),
    )


def parse_profile(data: Mapping[str, Any]) -> ProfileRecord:
    return ProfileRecord(
        id=_coerce_str(data.get(ROW_ID_FIELD)),
        name=_coerce_str(data.get("name")),
    )


def parse_limitation(data: Mapping[str, Any]) -> LimitationRecord:
    return LimitationRecord(
        id=_coerce_str(data.get(ROW_ID_FIELD)),
        name=_coerce_str(data.get("name")),
    )


def parse_profile_limitation(data: Mapping[str, Any]) -> ProfileLimitationRecord:
    return ProfileLimitationRecord(
        id=_coerce_str(data.get(ROW_ID_FIELD)),
        profile=_coerce_str(data.get("profile")),
        limitation=_coerce_str(data.get("limitation")),
    )


def parse_user_profile(data: Mapping[str, Any]) -> UserProfileRecord:
    return UserProfileRecord(
        id=_coerce_str(data.get(ROW_ID_FIELD)),
        user=_coerce_str(data.get("user")),
        profile=_coerce_str(data.get("profile")),
        state=_coerce_optional_str(data.get("state")),
        end_time=_coerce_optional_str(data.get("end-time")),
    )


def parse_user_monitor(data: Mapping[str, Any]) -> UserMonitorInfo:
    return UserMonitorInfo(
        actual_profile=_coerce_optional_str(data.get("actual-profile")),
        active_sessions=_coerce_optional_int(data.get("active-sessions")),
        total_download=_coerce_optional_str(data.get("total-download")),
        total_upload=_coerce_optional_str(data.get("total-upload")),
        total_uptime=_coerce_optional_str(data.get("total-uptime")),
    )


def _coerce_str(value: Any) -> str:
    return _coerce_optional_str(value) or ""


def _coerce_optional_str(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def _coerce_optional_int(value: Any) -> int | None:
    if value is None:
        return None

    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None

    return None
