"""Command line entry point for applying and renewing User-Manager plans."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from datetime import timedelta
from typing import TypeAlias

from usermanager.api import UserManagerApi
from usermanager.config import ClientSettings, get_settings
from usermanager.details import get_user_details_best_effort, summarize_account
from usermanager.gateway import RemoteError, create_gateway
from usermanager.provisioning.names import PlanNames, StartPolicy
from usermanager.provisioning.reconcile import PlanReconciler

ApiFactory: TypeAlias = Callable[[ClientSettings], UserManagerApi]


class CliValidationError(ValueError):
    """Raised when CLI input fails validation."""


def main(
    argv: Sequence[str] | None = None,
    *,
    api_factory: ApiFactory | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = _load_settings(args)
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        api = (api_factory or _default_api_factory)(settings)
        if args.command == "show":
            return _run_show(args, api=api)
        return _run_plan(args, api=api)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except RemoteError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m usermanager.cli.plans")
    parser.add_argument("--config", help="runtime config YAML path")
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser("apply", help="create or reuse a plan for a user")
    _add_plan_arguments(apply_parser)

    renew_parser = subparsers.add_parser(
        "renew", help="drop the user's plan links and apply the plan again"
    )
    _add_plan_arguments(renew_parser)
    renew_parser.add_argument(
        "--best-effort",
        action="store_true",
        help="skip link deletions the router reports as already gone",
    )

    show_parser = subparsers.add_parser("show", help="print a user's plans and attributes")
    show_parser.add_argument("--user", required=True)
    return parser


def _add_plan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--user", required=True)

    password_group = parser.add_mutually_exclusive_group(required=True)
    password_group.add_argument("--password")
    password_group.add_argument("--password-stdin", action="store_true")

    parser.add_argument("--days", type=int, required=True)
    parser.add_argument("--cap-gib", type=int, required=True)
    parser.add_argument("--seats", type=int, default=1)
    parser.add_argument(
        "--start-policy",
        choices=[policy.value for policy in StartPolicy],
        default=StartPolicy.ASSIGNED.value,
    )
    parser.add_argument("--rate-limit")
    parser.add_argument("--static-ip")


def _load_settings(args: argparse.Namespace) -> ClientSettings:
    if args.config:
        return ClientSettings.from_yaml(args.config)
    return get_settings()


def _default_api_factory(settings: ClientSettings) -> UserManagerApi:
    return UserManagerApi(
        create_gateway(settings),
        scale_cap_by_billing_period=settings.scale_cap_by_billing_period,
    )


def _run_plan(args: argparse.Namespace, *, api: UserManagerApi) -> int:
    user = _normalize_required(args.user, field="user")
    password = _resolve_password(args)
    if args.cap_gib < 0:
        raise CliValidationError(f"invalid cap: {args.cap_gib}")

    reconciler = PlanReconciler(api)
    plan_args = (
        user,
        password,
        args.days,
        args.cap_gib,
        args.seats,
        StartPolicy(args.start_policy),
        _normalize_optional_value(args.rate_limit),
        _normalize_optional_value(args.static_ip),
    )

    names: PlanNames
    if args.command == "apply":
        names = reconciler.apply_plan(*plan_args)
    elif args.best_effort:
        names = reconciler.renew_plan_best_effort(*plan_args)
    else:
        names = reconciler.renew_plan(*plan_args)

    print(
        f"{args.command} plan user={user} profile={names.plan_name} "
        f"limitation={names.cap_name or '-'}"
    )
    return 0


def _run_show(args: argparse.Namespace, *, api: UserManagerApi) -> int:
    user = _normalize_required(args.user, field="user")
    details = get_user_details_best_effort(api, user)
    if details is None:
        print(f"error: unknown user: {user}", file=sys.stderr)
        return 1

    summary = summarize_account(
        details.user.name,
        api.list_user_profiles_for(user),
        monitor=details.monitor,
    )
    print(
        f"user={details.user.name} disabled={details.user.is_disabled} "
        f"shared_users={details.user.shared_users_count}"
    )
    print(
        f"rate_limit={details.rate_limit or '-'} static_ip={details.static_ip or '-'} "
        f"session_timeout={_display(details.session_timeout_seconds)}"
    )
    for profile in details.profiles:
        print(f"profile={profile.profile} limitations={','.join(profile.limitations) or '-'}")
    if summary.end_time is not None:
        print(f"active={summary.actual_profile} ends={summary.end_time.isoformat()}")
    if details.monitor is not None:
        print(
            f"download={_display(summary.total_download_bytes)} "
            f"upload={_display(summary.total_upload_bytes)} "
            f"uptime={_display_seconds(summary.total_uptime)}"
        )
    return 0


def _display(value: int | None) -> str:
    return "-" if value is None else str(value)


def _display_seconds(value: timedelta | None) -> str:
    return "-" if value is None else str(int(value.total_seconds()))


def _resolve_password(args: argparse.Namespace) -> str:
    if bool(args.password_stdin):
        password = sys.stdin.readline().rstrip("\r\n")
    else:
        password = args.password or ""
    if not password:
        raise CliValidationError("password is required")
    return password


def _normalize_required(value: str, *, field: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise CliValidationError(f"{field} is required")
    return normalized


def _normalize_optional_value(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


if __name__ == "__main__":
    raise SystemExit(main())
