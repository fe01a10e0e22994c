"""Typed User-Manager operations over a resource gateway."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

from usermanager.attributes import UserAttributes, encode_attributes
from usermanager.gateway.base import ResourceGateway, ResourceKind
from usermanager.models import (
    LimitationRecord,
    ProfileLimitationRecord,
    ProfileRecord,
    UserMonitorInfo,
    UserProfileRecord,
    UserRecord,
    names_match,
    parse_limitation,
    parse_profile,
    parse_profile_limitation,
    parse_user,
    parse_user_monitor,
    parse_user_profile,
)
from usermanager.naming import wire_fields
from usermanager.provisioning.names import (
    StartPolicy,
    cap_transfer_bytes,
    format_transfer_limit,
    format_validity,
)

DEFAULT_USER_GROUP = "default"
MONITOR_COMMAND = "monitor"


class UserManagerApi:
    def __init__(
        self,
        gateway: ResourceGateway,
        *,
        scale_cap_by_billing_period: bool = False,
    ) -> None:
        self._gateway = gateway
        self._scale_cap_by_billing_period = scale_cap_by_billing_period

    @property
    def gateway(self) -> ResourceGateway:
        return self._gateway

    def list_users(self, *, cancel: threading.Event | None = None) -> list[UserRecord]:
        return [parse_user(row) for row in self._gateway.list_all(ResourceKind.USER, cancel=cancel)]

    def get_user(self, name: str, *, cancel: threading.Event | None = None) -> UserRecord:
        return parse_user(self._gateway.get(ResourceKind.USER, name, cancel=cancel))

    def find_users_by_name(
        self,
        name: str,
        *,
        cancel: threading.Event | None = None,
    ) -> list[UserRecord]:
        return [user for user in self.list_users(cancel=cancel) if names_match(user.name, name)]

    def monitor_user_by_id(
        self,
        user_id: str,
        *,
        cancel: threading.Event | None = None,
    ) -> UserMonitorInfo | None:
        """Run a one-shot ``monitor`` for a user row; None when the router reports nothing."""
        rows = self._gateway.command(
            ResourceKind.USER,
            MONITOR_COMMAND,
            {"numbers": user_id, "once": ""},
            cancel=cancel,
        )
        if not rows:
            return None
        return parse_user_monitor(rows[0])

    def monitor_user(
        self,
        name: str,
        *,
        cancel: threading.Event | None = None,
    ) -> UserMonitorInfo | None:
        user = self.get_user(name, cancel=cancel)
        return self.monitor_user_by_id(user.id or user.name, cancel=cancel)

    def list_profiles(self, *, cancel: threading.Event | None = None) -> list[ProfileRecord]:
        rows = self._gateway.list_all(ResourceKind.PROFILE, cancel=cancel)
        return [parse_profile(row) for row in rows]

    def list_limitations(self, *, cancel: threading.Event | None = None) -> list[LimitationRecord]:
        rows = self._gateway.list_all(ResourceKind.LIMITATION, cancel=cancel)
        return [parse_limitation(row) for row in rows]

    def list_profile_limitations(
        self,
        *,
        cancel: threading.Event | None = None,
    ) -> list[ProfileLimitationRecord]:
        rows = self._gateway.list_all(ResourceKind.PROFILE_LIMITATION, cancel=cancel)
        return [parse_profile_limitation(row) for row in rows]

    def list_user_profiles(
        self,
        *,
        cancel: threading.Event | None = None,
    ) -> list[UserProfileRecord]:
        rows = self._gateway.list_all(ResourceKind.USER_PROFILE, cancel=cancel)
        return [parse_user_profile(row) for row in rows]

    def list_user_profiles_for(
        self,
        user: str,
        *,
        cancel: threading.Event | None = None,
    ) -> list[UserProfileRecord]:
        return [
            link for link in self.list_user_profiles(cancel=cancel) if names_match(link.user, user)
        ]

    def upsert_user(
        self,
        name: str,
        password: str,
        shared_users: int,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._gateway.create(
            ResourceKind.USER,
            {
                "name": name,
                "password": password,
                "group": DEFAULT_USER_GROUP,
                "shared-users": shared_users,
            },
            cancel=cancel,
        )

    def patch_user(
        self,
        name: str,
        fields: Mapping[str, Any],
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        """Patch arbitrary user fields; keys may be given as ``sharedUsers`` or ``shared-users``."""
        self._gateway.patch(ResourceKind.USER, name, wire_fields(fields), cancel=cancel)

    def set_user_password(
        self,
        name: str,
        password: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self.patch_user(name, {"password": password}, cancel=cancel)

    def disable_user(
        self,
        name: str,
        disabled: bool = True,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self.patch_user(name, {"disabled": "yes" if disabled else "no"}, cancel=cancel)

    def enable_user(self, name: str, *, cancel: threading.Event | None = None) -> None:
        self.disable_user(name, False, cancel=cancel)

    def delete_user(self, name: str, *, cancel: threading.Event | None = None) -> None:
        self._gateway.delete(ResourceKind.USER, name, cancel=cancel)

    def set_user_attributes(
        self,
        name: str,
        rate_limit: str | None = None,
        static_ip: str | None = None,
        session_timeout: int | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        """Replace the whole attribute blob; an empty blob clears it."""
        blob = encode_attributes(
            UserAttributes(
                rate_limit=rate_limit,
                static_ip=static_ip,
                session_timeout_seconds=session_timeout,
            )
        )
        self.patch_user(name, {"attributes": blob}, cancel=cancel)

    def set_rate_limit(
        self,
        name: str,
        rate_limit: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self.set_user_attributes(name, rate_limit=rate_limit, cancel=cancel)

    def set_static_ip(
        self,
        name: str,
        static_ip: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self.set_user_attributes(name, static_ip=static_ip, cancel=cancel)

    def set_session_timeout(
        self,
        name: str,
        session_timeout_seconds: int,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self.set_user_attributes(name, session_timeout=session_timeout_seconds, cancel=cancel)

    def create_profile(
        self,
        name: str,
        start_policy: StartPolicy | str,
        days: int,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._gateway.create(
            ResourceKind.PROFILE,
            {
                "name": name,
                "price": "0",
                "starts-when": StartPolicy.parse(start_policy).api_value,
                "validity": format_validity(days),
            },
            cancel=cancel,
        )

    def create_limitation(
        self,
        name: str,
        cap_gib: int,
        days: int,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        total_bytes = cap_transfer_bytes(
            cap_gib,
            days,
            scale_by_billing_period=self._scale_cap_by_billing_period,
        )
        self._gateway.create(
            ResourceKind.LIMITATION,
            {"name": name, "transfer-limit": format_transfer_limit(total_bytes)},
            cancel=cancel,
        )

    def link_profile_to_limitation(
        self,
        profile: str,
        limitation: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._gateway.create(
            ResourceKind.PROFILE_LIMITATION,
            {"profile": profile, "limitation": limitation},
            cancel=cancel,
        )

    def delete_profile_limitation(
        self,
        link_id: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._gateway.delete(ResourceKind.PROFILE_LIMITATION, link_id, cancel=cancel)

    def link_user_to_profile(
        self,
        user: str,
        profile: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._gateway.create(
            ResourceKind.USER_PROFILE,
            {"user": user, "profile": profile},
            cancel=cancel,
        )

    def delete_user_profile(self, link_id: str, *, cancel: threading.Event | None = None) -> None:
        self._gateway.delete(ResourceKind.USER_PROFILE, link_id, cancel=cancel)
