"""Idempotent plan reconciliation against RouterOS User-Manager.

The router's create endpoints are not idempotent: creating a profile,
limitation or link that already exists either fails with wording that varies
between RouterOS builds or silently adds a duplicate row. Every step below
therefore lists current rows first, creates only when nothing matches, and
treats a duplicate-looking create failure as success.

Existing profile/limitation links are never deduplicated or deleted, and
profiles/limitations are never deleted. Only user-profile links are removed,
and only by an explicit renew.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import TypeVar

from usermanager.api import UserManagerApi
from usermanager.gateway.base import RemoteError, raise_if_cancelled
from usermanager.models import names_match
from usermanager.provisioning.names import PlanNames, StartPolicy, derive_plan_names
from usermanager.provisioning.tolerance import is_tolerated_absent, is_tolerated_duplicate

RowT = TypeVar("RowT")

logger = logging.getLogger(__name__)


def ensure_exists(
    *,
    resource: str,
    list_rows: Callable[[], Sequence[RowT]],
    matches: Callable[[RowT], bool],
    create: Callable[[], None],
    tolerate: Callable[[RemoteError], bool] = is_tolerated_duplicate,
) -> bool:
    """Create a row unless one already matches.

    Returns True when a create call went through, False when an existing row
    was found or the router reported the row as a duplicate.
    """
    if any(matches(row) for row in list_rows()):
        logger.debug("%s already present; skipping create", resource)
        return False

    try:
        create()
    except RemoteError as exc:
        if not tolerate(exc):
            raise
        logger.warning(
            "%s create reported a duplicate (status=%s); treating as present",
            resource,
            exc.status_code,
        )
        return False

    logger.info("created %s", resource)
    return True


class PlanReconciler:
    def __init__(self, api: UserManagerApi) -> None:
        self._api = api

    def apply_plan(
        self,
        account: str,
        password: str,
        days: int,
        cap_gib: int,
        seats: int,
        start_policy: StartPolicy | str = StartPolicy.ASSIGNED,
        rate_limit: str | None = None,
        static_ip: str | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> PlanNames:
        api = self._api
        policy = StartPolicy.parse(start_policy)

        raise_if_cancelled(cancel, step="account upsert")
        api.upsert_user(account, password, seats, cancel=cancel)

        raise_if_cancelled(cancel, step="attribute overwrite")
        api.set_user_attributes(account, rate_limit, static_ip, cancel=cancel)

        names = derive_plan_names(days, cap_gib, seats, policy)
        plan_name = names.plan_name
        cap_name = names.cap_name
        logger.info(
            "applying plan %s (cap=%s) to account %s", plan_name, cap_name or "none", account
        )

        raise_if_cancelled(cancel, step="profile ensure")
        ensure_exists(
            resource=f"profile {plan_name}",
            list_rows=lambda: api.list_profiles(cancel=cancel),
            matches=lambda row: names_match(row.name, plan_name),
            create=lambda: api.create_profile(plan_name, policy, days, cancel=cancel),
        )

        if cap_name is not None:
            raise_if_cancelled(cancel, step="limitation ensure")
            ensure_exists(
                resource=f"limitation {cap_name}",
                list_rows=lambda: api.list_limitations(cancel=cancel),
                matches=lambda row: names_match(row.name, cap_name),
                create=lambda: api.create_limitation(cap_name, cap_gib, days, cancel=cancel),
            )

            raise_if_cancelled(cancel, step="profile-limitation ensure")
            ensure_exists(
                resource=f"profile-limitation {plan_name}->{cap_name}",
                list_rows=lambda: api.list_profile_limitations(cancel=cancel),
                matches=lambda row: (
                    names_match(row.profile, plan_name) and names_match(row.limitation, cap_name)
                ),
                create=lambda: api.link_profile_to_limitation(plan_name, cap_name, cancel=cancel),
            )

        raise_if_cancelled(cancel, step="user-profile ensure")
        ensure_exists(
            resource=f"user-profile {account}->{plan_name}",
            list_rows=lambda: api.list_user_profiles(cancel=cancel),
            matches=lambda row: names_match(row.user, account) and names_match(row.profile, plan_name),
            create=lambda: api.link_user_to_profile(account, plan_name, cancel=cancel),
        )
        return names

    def renew_plan(
        self,
        account: str,
        password: str,
        days: int,
        cap_gib: int,
        seats: int,
        start_policy: StartPolicy | str = StartPolicy.ASSIGNED,
        rate_limit: str | None = None,
        static_ip: str | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> PlanNames:
        """Drop every profile link of the account, then apply the plan again."""
        self._remove_profile_links(account, best_effort=False, cancel=cancel)
        return self.apply_plan(
            account,
            password,
            days,
            cap_gib,
            seats,
            start_policy,
            rate_limit,
            static_ip,
            cancel=cancel,
        )

    def renew_plan_best_effort(
        self,
        account: str,
        password: str,
        days: int,
        cap_gib: int,
        seats: int,
        start_policy: StartPolicy | str = StartPolicy.ASSIGNED,
        rate_limit: str | None = None,
        static_ip: str | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> PlanNames:
        """Like :meth:`renew_plan`, skipping links the router reports as already gone."""
        self._remove_profile_links(account, best_effort=True, cancel=cancel)
        return self.apply_plan(
            account,
            password,
            days,
            cap_gib,
            seats,
            start_policy,
            rate_limit,
            static_ip,
            cancel=cancel,
        )

    def _remove_profile_links(
        self,
        account: str,
        *,
        best_effort: bool,
        cancel: threading.Event | None,
    ) -> None:
        raise_if_cancelled(cancel, step="user-profile listing")
        links = self._api.list_user_profiles_for(account, cancel=cancel)
        for link in links:
            raise_if_cancelled(cancel, step=f"user-profile delete {link.id}")
            try:
                self._api.delete_user_profile(link.id, cancel=cancel)
            except RemoteError as exc:
                if not best_effort or not is_tolerated_absent(exc):
                    raise
                logger.warning(
                    "ignoring delete failure for user-profile %s of %s (status=%s)",
                    link.id,
                    account,
                    exc.status_code,
                )
                continue
            logger.info("removed user-profile %s (%s -> %s)", link.id, link.user, link.profile)
