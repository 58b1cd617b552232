# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import date
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from dotenv import load_dotenv
from pydantic import BaseModel

from legatia.app import build_local_client, build_remote_client, sweep_expired
from legatia.client import Failure
from legatia.config import configure_logging
from legatia.domain.model import Sex

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from legatia.client import ClientReconciler, Result

log = logging.getLogger(__name__)


def _parse_sex(value: str) -> Sex:
    for sex in Sex:
        if sex.value.lower() == value.strip().lower():
            return sex
    choices = ", ".join(sex.value for sex in Sex)
    raise argparse.ArgumentTypeError(f"invalid sex {value!r} (choose from {choices})")


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid ISO date: {value}") from exc


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid UUID: {value}") from exc


def _add_profile_commands(subparsers: Any) -> None:
    profile = subparsers.add_parser("profile", help="Your own profile")
    profile_sub = profile.add_subparsers(dest="profile_command", required=True)
    create = profile_sub.add_parser("create", help="Register a profile for this identity")
    create.add_argument("--full-name", required=True)
    create.add_argument("--surname-at-birth", required=True)
    create.add_argument("--sex", type=_parse_sex, required=True)
    create.add_argument("--birthday", type=_parse_date, required=True, help="ISO date")
    create.add_argument("--birth-city", required=True)
    create.add_argument("--birth-country", required=True)
    profile_sub.add_parser("show", help="Show your profile")


def _add_family_commands(subparsers: Any) -> None:
    family = subparsers.add_parser("family", help="Families and ghost members")
    family_sub = family.add_subparsers(dest="family_command", required=True)

    create = family_sub.add_parser("create", help="Create a family you administer")
    create.add_argument("--name", required=True)
    create.add_argument("--description", default="")
    create.add_argument(
        "--hidden", action="store_true", help="Keep the family out of ghost profile matching"
    )

    show = family_sub.add_parser("show", help="Show one family")
    show.add_argument("family_id", type=_parse_uuid)

    family_sub.add_parser("list", help="Families you administer or belong to")

    ghost = family_sub.add_parser("add-ghost", help="Add a ghost member")
    ghost.add_argument("family_id", type=_parse_uuid)
    ghost.add_argument("--full-name", required=True)
    ghost.add_argument("--surname-at-birth", required=True)
    ghost.add_argument("--sex", type=_parse_sex, required=True)
    ghost.add_argument("--relationship", required=True, help="Relationship to the admin")
    ghost.add_argument("--birthday", type=_parse_date)
    ghost.add_argument("--birth-city")
    ghost.add_argument("--birth-country")
    ghost.add_argument("--death-date", type=_parse_date)

    visibility = family_sub.add_parser("visibility", help="Show or hide a family in matching")
    visibility.add_argument("family_id", type=_parse_uuid)
    visibility.add_argument("state", choices=("visible", "hidden"))


def _add_claim_commands(subparsers: Any) -> None:
    subparsers.add_parser("matches", help="Ghost members that look like you")

    claim = subparsers.add_parser("claim", help="Ghost profile claims")
    claim_sub = claim.add_subparsers(dest="claim_command", required=True)

    submit = claim_sub.add_parser("submit", help="Claim a ghost member as yourself")
    submit.add_argument("family_id", type=_parse_uuid)
    submit.add_argument("member_id", type=_parse_uuid)

    process = claim_sub.add_parser("process", help="Approve or reject a claim (admin)")
    process.add_argument("claim_id", type=_parse_uuid)
    process.add_argument("decision", choices=("approve", "reject"))
    process.add_argument("--message", help="Note passed on to the requester")

    claim_sub.add_parser("list", help="Claims you submitted")
    claim_sub.add_parser("pending", help="Pending claims on families you administer")


def _add_invitation_commands(subparsers: Any) -> None:
    invite = subparsers.add_parser("invite", help="Family invitations")
    invite_sub = invite.add_subparsers(dest="invite_command", required=True)

    send = invite_sub.add_parser("send", help="Invite a registered user (admin)")
    send.add_argument("family_id", type=_parse_uuid)
    send.add_argument("user_id")
    send.add_argument("--relationship", required=True, help="Relationship to the admin")
    send.add_argument("--message")

    respond = invite_sub.add_parser("respond", help="Accept or decline an invitation")
    respond.add_argument("invitation_id", type=_parse_uuid)
    respond.add_argument("answer", choices=("accept", "decline"))

    search = invite_sub.add_parser("search", help="Find registered users to invite")
    search.add_argument("query", help="Part of an identity, full name or surname")

    invite_sub.add_parser("list", help="Invitations you received")
    invite_sub.add_parser("sent", help="Invitations you sent")


def _add_notification_commands(subparsers: Any) -> None:
    notifications = subparsers.add_parser("notifications", help="Your notifications")
    notifications_sub = notifications.add_subparsers(
        dest="notifications_command", required=True
    )
    notifications_sub.add_parser("list", help="List notifications, newest first")
    read = notifications_sub.add_parser("read", help="Mark one notification as read")
    read.add_argument("notification_id", type=_parse_uuid)
    notifications_sub.add_parser("read-all", help="Mark every notification as read")


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="legatia", description="Claim ghost profiles and manage family invitations"
    )
    parser.add_argument(
        "--as",
        dest="identity",
        default=None,
        help="Identity to act as (defaults to LEGATIA_PRINCIPAL)",
    )
    parser.add_argument(
        "--remote",
        action="store_true",
        help="Talk to LEGATIA_REMOTE_URL instead of the local database",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_profile_commands(subparsers)
    _add_family_commands(subparsers)
    _add_claim_commands(subparsers)
    _add_invitation_commands(subparsers)
    _add_notification_commands(subparsers)
    subparsers.add_parser("sweep", help="Expire stale claims and invitations")
    return parser.parse_args(list(argv))


def _render(value: object) -> str:
    if isinstance(value, BaseModel):
        return value.model_dump_json(indent=2)
    if isinstance(value, list):
        return "\n".join(_render(item) for item in value) if value else "(none)"
    return str(value)


def _value[T](result: Result[T]) -> T:
    if isinstance(result, Failure):
        print(f"Error: {result}", file=sys.stderr)
        sys.exit(1)
    return result.value


def _report[T](result: Result[T]) -> T:
    value = _value(result)
    print(_render(value))
    return value


def _run_profile(client: ClientReconciler, args: argparse.Namespace) -> None:
    if args.profile_command == "create":
        _report(
            client.create_profile(
                full_name=args.full_name,
                surname_at_birth=args.surname_at_birth,
                sex=args.sex,
                birthday=args.birthday,
                birth_city=args.birth_city,
                birth_country=args.birth_country,
            )
        )
    else:
        _report(client.load_profile())


def _run_family(client: ClientReconciler, args: argparse.Namespace) -> None:
    match args.family_command:
        case "create":
            _report(
                client.create_family(
                    name=args.name, description=args.description, is_visible=not args.hidden
                )
            )
        case "show":
            _report(client.load_family(args.family_id))
        case "list":
            _report(client.refresh_families())
        case "add-ghost":
            _report(
                client.add_ghost_member(
                    args.family_id,
                    full_name=args.full_name,
                    surname_at_birth=args.surname_at_birth,
                    sex=args.sex,
                    relationship_to_admin=args.relationship,
                    birthday=args.birthday,
                    birth_city=args.birth_city,
                    birth_country=args.birth_country,
                    death_date=args.death_date,
                )
            )
        case _:
            _report(
                client.toggle_visibility(args.family_id, is_visible=args.state == "visible")
            )


def _run_claim(client: ClientReconciler, args: argparse.Namespace) -> None:
    match args.claim_command:
        case "submit":
            _report(client.submit_claim(args.family_id, args.member_id))
        case "process":
            _report(
                client.process_claim(
                    args.claim_id,
                    approve=args.decision == "approve",
                    admin_message=args.message,
                )
            )
        case "list":
            _report(client.refresh_my_claims())
        case _:
            _report(client.refresh_admin_claims())


def _run_invite(client: ClientReconciler, args: argparse.Namespace) -> None:
    match args.invite_command:
        case "send":
            _report(
                client.send_invitation(
                    args.family_id, args.user_id, args.relationship, args.message
                )
            )
        case "respond":
            _report(
                client.respond_to_invitation(args.invitation_id, accept=args.answer == "accept")
            )
        case "search":
            matches = _value(client.search_users(args.query))
            for match in matches:
                print(f"{match.identity}\t{match.full_name} ({match.surname_at_birth})")
            if not matches:
                print("(none)")
        case "list":
            _report(client.refresh_received_invitations())
        case _:
            _report(client.refresh_sent_invitations())


def _run_notifications(client: ClientReconciler, args: argparse.Namespace) -> None:
    match args.notifications_command:
        case "list":
            _report(client.refresh_notifications())
            print(f"Unread: {client.cache.unread_count}")
        case "read":
            _report(client.mark_notification_read(args.notification_id))
        case _:
            _report(client.mark_all_notifications_read())


def _build_client(args: argparse.Namespace) -> ClientReconciler:
    if args.remote:
        return build_remote_client(principal=args.identity)
    return build_local_client(args.identity or os.environ.get("LEGATIA_PRINCIPAL"))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.WARNING)

    try:
        if parsed_args.command == "sweep":
            if parsed_args.remote:
                raise ValueError("sweep runs against the local database only")  # noqa: TRY301
            result = sweep_expired()
            print(
                f"Expired {result.expired_claims} claims and "
                f"{result.expired_invitations} invitations"
            )
            return

        client = _build_client(parsed_args)
        match parsed_args.command:
            case "profile":
                _run_profile(client, parsed_args)
            case "family":
                _run_family(client, parsed_args)
            case "matches":
                _report(client.refresh_matches())
            case "claim":
                _run_claim(client, parsed_args)
            case "invite":
                _run_invite(client, parsed_args)
            case "notifications":
                _run_notifications(client, parsed_args)
            case _:
                raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except (ValueError, RuntimeError) as exc:
        log.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
