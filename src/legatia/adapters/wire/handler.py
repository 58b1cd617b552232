"""Dispatch remote calls by method name onto the service.

``RemoteCallHandler.handle`` never raises: every outcome is an envelope.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from pydantic import BaseModel, ValidationError

from legatia.domain.errors import ErrorKind, WorkflowError

from . import translator
from .schema import (
    AddMemberArguments,
    ClaimRef,
    CreateFamilyArguments,
    CreateProfileArguments,
    ErrorPayload,
    FamilyMemberRef,
    FamilyRef,
    NoArguments,
    NotificationRef,
    ProcessClaimArguments,
    ProcessInvitationArguments,
    SearchUsersArguments,
    SendInvitationArguments,
    ToggleVisibilityArguments,
    UpdateMemberArguments,
    UpdateProfileArguments,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from legatia.domain.model import Identity
    from legatia.service import FamilyTreeService

log = getLogger(__name__)

INTERNAL_ERROR_MESSAGE: Final[str] = "Internal server error"

type CallFunction = Callable[[FamilyTreeService, Identity | None, Any], object]


@dataclass(frozen=True, slots=True)
class _Route:
    arguments: type[BaseModel]
    call: CallFunction


_ROUTES: dict[str, _Route] = {}


def _route(
    name: str, arguments: type[BaseModel] = NoArguments
) -> Callable[[CallFunction], CallFunction]:
    def register(call: CallFunction) -> CallFunction:
        _ROUTES[name] = _Route(arguments, call)
        return call

    return register


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json")


def _dump_all(models: list[Any]) -> list[dict[str, Any]]:
    return [_dump(model) for model in models]


# Identity directory ---------------------------------------------------------------


@_route("create_profile", CreateProfileArguments)
def _create_profile(
    service: FamilyTreeService, caller: Identity | None, args: CreateProfileArguments
) -> object:
    profile = service.create_profile(
        caller,
        full_name=args.full_name,
        surname_at_birth=args.surname_at_birth,
        sex=args.sex,
        birthday=args.birthday,
        birth_city=args.birth_city,
        birth_country=args.birth_country,
    )
    return _dump(translator.profile_to_wire(profile))


@_route("update_profile", UpdateProfileArguments)
def _update_profile(
    service: FamilyTreeService, caller: Identity | None, args: UpdateProfileArguments
) -> object:
    profile = service.update_profile(caller, translator.profile_update_from_wire(args))
    return _dump(translator.profile_to_wire(profile))


@_route("get_profile")
def _get_profile(service: FamilyTreeService, caller: Identity | None, _: NoArguments) -> object:
    return _dump(translator.profile_to_wire(service.get_profile(caller)))


@_route("search_users", SearchUsersArguments)
def _search_users(
    service: FamilyTreeService, caller: Identity | None, args: SearchUsersArguments
) -> object:
    matches = service.search_users(caller, args.query)
    return _dump_all([translator.user_match_to_wire(match) for match in matches])


# Family store ---------------------------------------------------------------------


@_route("create_family", CreateFamilyArguments)
def _create_family(
    service: FamilyTreeService, caller: Identity | None, args: CreateFamilyArguments
) -> object:
    family = service.create_family(
        caller,
        name=args.name,
        description=args.description,
        is_visible=translator.first(args.is_visible) is not False,
    )
    return _dump(translator.family_to_wire(family))


@_route("get_family", FamilyRef)
def _get_family(service: FamilyTreeService, caller: Identity | None, args: FamilyRef) -> object:
    return _dump(translator.family_to_wire(service.get_family(caller, args.family_id)))


@_route("get_user_families")
def _get_user_families(
    service: FamilyTreeService, caller: Identity | None, _: NoArguments
) -> object:
    families = service.get_user_families(caller)
    return _dump_all([translator.family_to_wire(family) for family in families])


@_route("add_family_member", AddMemberArguments)
def _add_family_member(
    service: FamilyTreeService, caller: Identity | None, args: AddMemberArguments
) -> object:
    member = service.add_family_member(
        caller,
        args.family_id,
        full_name=args.full_name,
        surname_at_birth=args.surname_at_birth,
        sex=args.sex,
        relationship_to_admin=args.relationship_to_admin,
        birthday=translator.first(args.birthday),
        birth_city=translator.first(args.birth_city),
        birth_country=translator.first(args.birth_country),
        death_date=translator.first(args.death_date),
    )
    return _dump(translator.member_to_wire(member))


@_route("update_family_member", UpdateMemberArguments)
def _update_family_member(
    service: FamilyTreeService, caller: Identity | None, args: UpdateMemberArguments
) -> object:
    member = service.update_family_member(
        caller, args.family_id, args.member_id, translator.member_update_from_wire(args)
    )
    return _dump(translator.member_to_wire(member))


@_route("remove_family_member", FamilyMemberRef)
def _remove_family_member(
    service: FamilyTreeService, caller: Identity | None, args: FamilyMemberRef
) -> object:
    return service.remove_family_member(caller, args.family_id, args.member_id)


@_route("toggle_family_visibility", ToggleVisibilityArguments)
def _toggle_family_visibility(
    service: FamilyTreeService, caller: Identity | None, args: ToggleVisibilityArguments
) -> object:
    return service.toggle_family_visibility(caller, args.family_id, is_visible=args.is_visible)


# Matcher and claims ---------------------------------------------------------------


@_route("find_matching_ghost_profiles")
def _find_matching_ghost_profiles(
    service: FamilyTreeService, caller: Identity | None, _: NoArguments
) -> object:
    matches = service.find_matching_ghost_profiles(caller)
    return _dump_all([translator.match_to_wire(match) for match in matches])


@_route("submit_ghost_profile_claim", FamilyMemberRef)
def _submit_ghost_profile_claim(
    service: FamilyTreeService, caller: Identity | None, args: FamilyMemberRef
) -> object:
    claim = service.submit_ghost_profile_claim(caller, args.family_id, args.member_id)
    return _dump(translator.claim_to_wire(claim))


@_route("get_my_claim_requests")
def _get_my_claim_requests(
    service: FamilyTreeService, caller: Identity | None, _: NoArguments
) -> object:
    claims = service.get_my_claim_requests(caller)
    return _dump_all([translator.claim_to_wire(claim) for claim in claims])


@_route("get_pending_claims_for_admin")
def _get_pending_claims_for_admin(
    service: FamilyTreeService, caller: Identity | None, _: NoArguments
) -> object:
    claims = service.get_pending_claims_for_admin(caller)
    return _dump_all([translator.claim_to_wire(claim) for claim in claims])


@_route("get_claim_request", ClaimRef)
def _get_claim_request(
    service: FamilyTreeService, caller: Identity | None, args: ClaimRef
) -> object:
    return _dump(translator.claim_to_wire(service.get_claim_request(caller, args.claim_id)))


@_route("process_ghost_profile_claim", ProcessClaimArguments)
def _process_ghost_profile_claim(
    service: FamilyTreeService, caller: Identity | None, args: ProcessClaimArguments
) -> object:
    return service.process_ghost_profile_claim(
        caller,
        args.claim_id,
        approve=args.approve,
        admin_message=translator.first(args.admin_message),
    )


# Invitations ----------------------------------------------------------------------


@_route("send_family_invitation", SendInvitationArguments)
def _send_family_invitation(
    service: FamilyTreeService, caller: Identity | None, args: SendInvitationArguments
) -> object:
    return service.send_family_invitation(
        caller,
        args.family_id,
        args.user_id,
        args.relationship_to_admin,
        translator.first(args.message),
    )


@_route("get_my_invitations")
def _get_my_invitations(
    service: FamilyTreeService, caller: Identity | None, _: NoArguments
) -> object:
    invitations = service.get_my_invitations(caller)
    return _dump_all([translator.invitation_to_wire(invitation) for invitation in invitations])


@_route("get_sent_invitations")
def _get_sent_invitations(
    service: FamilyTreeService, caller: Identity | None, _: NoArguments
) -> object:
    invitations = service.get_sent_invitations(caller)
    return _dump_all([translator.invitation_to_wire(invitation) for invitation in invitations])


@_route("process_family_invitation", ProcessInvitationArguments)
def _process_family_invitation(
    service: FamilyTreeService, caller: Identity | None, args: ProcessInvitationArguments
) -> object:
    return service.process_family_invitation(caller, args.invitation_id, accept=args.accept)


# Notifications --------------------------------------------------------------------


@_route("get_my_notifications")
def _get_my_notifications(
    service: FamilyTreeService, caller: Identity | None, _: NoArguments
) -> object:
    notifications = service.get_my_notifications(caller)
    return _dump_all([translator.notification_to_wire(item) for item in notifications])


@_route("get_unread_notification_count")
def _get_unread_notification_count(
    service: FamilyTreeService, caller: Identity | None, _: NoArguments
) -> object:
    return service.get_unread_notification_count(caller)


@_route("mark_notification_read", NotificationRef)
def _mark_notification_read(
    service: FamilyTreeService, caller: Identity | None, args: NotificationRef
) -> object:
    return service.mark_notification_read(caller, args.notification_id)


@_route("mark_all_notifications_read")
def _mark_all_notifications_read(
    service: FamilyTreeService, caller: Identity | None, _: NoArguments
) -> object:
    return service.mark_all_notifications_read(caller)


METHODS: Final[frozenset[str]] = frozenset(_ROUTES)


def failure_envelope(kind: ErrorKind, message: str) -> dict[str, Any]:
    return {"err": ErrorPayload(kind=kind, message=message).model_dump(mode="json")}


def _validation_message(error: ValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in detail['loc']) or 'body'}: {detail['msg']}"
        for detail in error.errors()
    ]
    return "; ".join(problems)


class RemoteCallHandler:
    """Turn ``(method, caller, body)`` into an ``Envelope`` dict."""

    def __init__(self, service: FamilyTreeService) -> None:
        self.service = service

    def handle(
        self, method: str, caller: Identity | None, body: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        route = _ROUTES.get(method)
        if route is None:
            log.debug("Unknown remote method %r", method)
            return failure_envelope(ErrorKind.NOT_FOUND, f"Unknown method: {method}")
        try:
            arguments = route.arguments.model_validate(body or {})
            value = route.call(self.service, caller, arguments)
        except WorkflowError as exc:
            log.debug("%s failed for %s: %s", method, caller, exc.kind.value)
            return failure_envelope(exc.kind, exc.message)
        except ValidationError as exc:
            return failure_envelope(ErrorKind.INVALID_INPUT, _validation_message(exc))
        except Exception:
            log.exception("Unhandled error in remote method %s", method)
            return failure_envelope(ErrorKind.TRANSPORT, INTERNAL_ERROR_MESSAGE)
        return {"ok": value}
