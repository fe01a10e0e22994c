from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from usermanager.api import UserManagerApi
from usermanager.details import (
    ProfileDetails,
    get_user_details,
    get_user_details_best_effort,
    parse_end_time,
    parse_routeros_duration,
    summarize_account,
)
from usermanager.gateway.base import RemoteError, ResourceKind
from usermanager.models import UserMonitorInfo, UserProfileRecord


if TYPE_CHECKING:
    from tests.conftest import FakeGateway


def test_get_user_details_deduplicates_profiles_and_limitations(
    fake_gateway: FakeGateway,
    api: UserManagerApi,
) -> None:
    _seed_alice(fake_gateway)

    details = get_user_details(api, "alice")

    assert details.user.name == "alice"
    assert details.profiles == (
        ProfileDetails(profile="BASIC", limitations=("10GB-30D",)),
        ProfileDetails(profile="Premium", limitations=("A", "B")),
    )
    assert details.rate_limit == "1M/2M"
    assert details.static_ip == "10.0.0.5"
    assert details.session_timeout_seconds is None
    assert details.monitor is None


def test_get_user_details_includes_monitor_counters(
    fake_gateway: FakeGateway,
    api: UserManagerApi,
) -> None:
    _seed_alice(fake_gateway)
    fake_gateway.monitors["*1"] = {
        "active-sessions": "0",
        "actual-profile": "BASIC",
        "total-download": "100",
        "total-upload": "200",
        "total-uptime": "1h",
    }

    details = get_user_details(api, "alice")

    assert details.monitor is not None
    assert details.monitor.actual_profile == "BASIC"
    assert details.monitor.total_download_bytes == 100


def test_get_user_details_propagates_missing_user(api: UserManagerApi) -> None:
    with pytest.raises(RemoteError) as exc_info:
        get_user_details(api, "ghost")

    assert exc_info.value.status_code == 404


def test_best_effort_details_fall_back_to_user_listing(
    fake_gateway: FakeGateway,
    api: UserManagerApi,
) -> None:
    _seed_alice(fake_gateway)
    fake_gateway.fail("get", ResourceKind.USER, _remote_error(500, "Internal Server Error"))

    details = get_user_details_best_effort(api, "ALICE")

    assert details is not None
    assert details.user.name == "alice"
    assert [profile.profile for profile in details.profiles] == ["BASIC", "Premium"]
    assert ("list", ResourceKind.USER, None) in fake_gateway.calls


def test_best_effort_details_return_none_for_unknown_user(api: UserManagerApi) -> None:
    assert get_user_details_best_effort(api, "ghost") is None


def test_best_effort_details_propagate_other_failures(
    fake_gateway: FakeGateway,
    api: UserManagerApi,
) -> None:
    fake_gateway.seed(ResourceKind.USER, name="alice")
    fake_gateway.fail("get", ResourceKind.USER, _remote_error(403, "not allowed"))

    with pytest.raises(RemoteError):
        get_user_details_best_effort(api, "alice")


def test_summarize_account_prefers_running_active_link() -> None:
    links = [
        _link("alice", "OLD", state="used", end_time="2025-12-01 00:00:00"),
        _link("Alice", "NEW", state="running-active", end_time="2026-01-10 00:00:00"),
        _link("bob", "OTHER", state="running-active", end_time="2026-02-01 00:00:00"),
    ]

    summary = summarize_account("alice", links, now=datetime(2026, 1, 1, tzinfo=UTC))

    assert summary.actual_profile == "NEW"
    assert summary.end_time == datetime(2026, 1, 10, tzinfo=UTC)
    assert summary.remaining == timedelta(days=9)


def test_summarize_account_prefers_monitor_profile_and_parses_counters() -> None:
    links = [_link("alice", "NEW", state="running-active", end_time="2026-01-10 00:00:00")]
    monitor = UserMonitorInfo(
        actual_profile="BASIC",
        total_download="100",
        total_upload="200",
        total_uptime="1d2h",
    )

    summary = summarize_account(
        "alice",
        links,
        monitor=monitor,
        now=datetime(2026, 1, 9, tzinfo=UTC),
    )

    assert summary.actual_profile == "BASIC"
    assert summary.remaining == timedelta(days=1)
    assert summary.total_download_bytes == 100
    assert summary.total_upload_bytes == 200
    assert summary.total_uptime == timedelta(days=1, hours=2)


def test_summarize_account_falls_back_to_link_profile_without_monitor_profile() -> None:
    links = [_link("alice", "NEW", state="running-active", end_time=None)]

    summary = summarize_account("alice", links, monitor=UserMonitorInfo(total_uptime="bogus"))
    no_links = summarize_account("alice", [], monitor=UserMonitorInfo(actual_profile="BASIC"))

    assert summary.actual_profile == "NEW"
    assert summary.total_uptime is None
    assert summary.total_download_bytes is None
    assert no_links.actual_profile == "BASIC"
    assert no_links.end_time is None


def test_summarize_account_clamps_remaining_time() -> None:
    links = [_link("alice", "P", state="running-active", end_time="2026-01-10T02:00:00+02:00")]

    summary = summarize_account("alice", links, now=datetime(2026, 3, 1, tzinfo=UTC))

    assert summary.end_time == datetime(2026, 1, 10, tzinfo=UTC)
    assert summary.remaining == timedelta(0)


def test_summarize_account_without_links_or_end_time() -> None:
    empty = summarize_account("alice", [])
    waiting = summarize_account("alice", [_link("alice", "P", state="waiting", end_time=None)])

    assert empty.actual_profile is None
    assert empty.remaining is None
    assert waiting.actual_profile == "P"
    assert waiting.end_time is None
    assert waiting.remaining is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2026-01-10 00:00:00", datetime(2026, 1, 10, tzinfo=UTC)),
        ("2026-01-10T00:00:00Z", datetime(2026, 1, 10, tzinfo=UTC)),
        ("", None),
        (None, None),
        ("next tuesday", None),
    ],
)
def test_parse_end_time(value: str | None, expected: datetime | None) -> None:
    assert parse_end_time(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1w2d3h4m5s", timedelta(weeks=1, days=2, hours=3, minutes=4, seconds=5)),
        ("30d", timedelta(days=30)),
        ("0s", timedelta(0)),
        ("", None),
        (None, None),
        ("5x", None),
        ("1d junk", None),
        ("abc", None),
    ],
)
def test_parse_routeros_duration(value: str | None, expected: timedelta | None) -> None:
    assert parse_routeros_duration(value) == expected


def _seed_alice(fake_gateway: FakeGateway) -> None:
    fake_gateway.seed(
        ResourceKind.USER,
        name="alice",
        attributes="Mikrotik-Rate-Limit:1M/2M,Framed-IP-Address:10.0.0.5",
    )
    fake_gateway.seed(ResourceKind.USER_PROFILE, user="alice", profile="BASIC")
    fake_gateway.seed(ResourceKind.USER_PROFILE, user="ALICE", profile="basic")
    fake_gateway.seed(ResourceKind.USER_PROFILE, user="alice", profile="Premium")
    fake_gateway.seed(ResourceKind.USER_PROFILE, user="bob", profile="Other")
    fake_gateway.seed(ResourceKind.PROFILE_LIMITATION, profile="basic", limitation="10GB-30D")
    fake_gateway.seed(ResourceKind.PROFILE_LIMITATION, profile="BASIC", limitation="10gb-30d")
    fake_gateway.seed(ResourceKind.PROFILE_LIMITATION, profile="Premium", limitation="A")
    fake_gateway.seed(ResourceKind.PROFILE_LIMITATION, profile="premium", limitation="B")


def _link(
    user: str,
    profile: str,
    *,
    state: str | None,
    end_time: str | None,
) -> UserProfileRecord:
    return UserProfileRecord(
        id="*1",
        user=user,
        profile=profile,
        state=state,
        end_time=end_time,
    )


def _remote_error(status_code: int, body: str) -> RemoteError:
    return RemoteError(
        "routeros error",
        method="GET",
        path="/rest/user-manager/user/alice",
        status_code=status_code,
        raw_body=body,
    )
