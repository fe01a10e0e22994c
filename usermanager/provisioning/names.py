"""Deterministic profile/limitation naming for dynamic plans."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

GIB = 1024 * 1024 * 1024
BILLING_PERIOD_DAYS = 30


class StartPolicy(StrEnum):
    ASSIGNED = "assigned"
    DEFERRED = "deferred"

    @property
    def api_value(self) -> str:
        """RouterOS ``starts-when`` value."""
        if self is StartPolicy.DEFERRED:
            return "first-auth"
        return "assigned"

    @classmethod
    def parse(cls, value: StartPolicy | str) -> StartPolicy:
        if isinstance(value, StartPolicy):
            return value
        normalized = value.strip().lower()
        if normalized == "first-auth":
            return cls.DEFERRED
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(
                f"unsupported start policy: {value!r}; expected 'assigned' or 'deferred'"
            ) from None


@dataclass(frozen=True, slots=True)
class PlanNames:
    plan_name: str
    cap_name: str | None


def derive_plan_names(
    days: int,
    cap_gib: int,
    seats: int,
    start_policy: StartPolicy | str,
) -> PlanNames:
    duration_tag = "INF" if days <= 0 else f"{days}D"
    seat_tag = "INFU" if seats <= 0 else f"{seats}U"
    state_tag = "onhold" if StartPolicy.parse(start_policy) is StartPolicy.DEFERRED else "active"

    if cap_gib == 0:
        return PlanNames(plan_name=f"UL-{duration_tag}-{seat_tag}-{state_tag}", cap_name=None)

    # Caps leave out seats and state so plans of equal size and duration share one.
    return PlanNames(
        plan_name=f"{cap_gib}GB-{duration_tag}-{seat_tag}-{state_tag}",
        cap_name=f"{cap_gib}GB-{duration_tag}",
    )


def cap_transfer_bytes(cap_gib: int, days: int, *, scale_by_billing_period: bool = False) -> int:
    if not scale_by_billing_period:
        return cap_gib * GIB
    period_days = days if days > 0 else BILLING_PERIOD_DAYS
    periods = max(1, round(period_days / BILLING_PERIOD_DAYS))
    return cap_gib * periods * GIB


def format_transfer_limit(total_bytes: int) -> str:
    return f"{total_bytes}B"


def format_validity(days: int) -> str | None:
    if days <= 0:
        return None
    return f"{days}d"
