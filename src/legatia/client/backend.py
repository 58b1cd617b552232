"""Typed client for the remote call surface.

A backend moves ``(method, body)`` to the remote actor and returns the envelope;
``RemoteClient`` turns envelopes into ``Success``/``Failure`` values carrying wire
models. Connectivity problems, HTTP status errors and payloads that do not decode
become ``Transport`` failures; nothing is raised to the caller.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from legatia.adapters.remote import RemoteResponseError
from legatia.adapters.wire import translator
from legatia.adapters.wire.schema import (
    AddMemberArguments,
    ClaimRef,
    ClaimRequestWire,
    CreateFamilyArguments,
    CreateProfileArguments,
    ErrorPayload,
    FamilyInvitationWire,
    FamilyMemberRef,
    FamilyRef,
    FamilyWire,
    GhostProfileMatchWire,
    MemberWire,
    NotificationRef,
    NotificationWire,
    ProcessClaimArguments,
    ProcessInvitationArguments,
    ProfileWire,
    SearchUsersArguments,
    SendInvitationArguments,
    ToggleVisibilityArguments,
    UserMatchWire,
)
from legatia.domain.errors import ErrorKind

from .results import Failure, Result, Success

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date
    from uuid import UUID

    from legatia.adapters.wire import RemoteCallHandler
    from legatia.domain.model import Identity, MemberUpdate, ProfileUpdate, Sex

log = getLogger(__name__)


class RemoteBackend(Protocol):
    def call(self, method: str, body: Mapping[str, Any]) -> Mapping[str, Any]: ...


class InProcessBackend:
    """Call the handler directly, acting as ``principal``."""

    def __init__(self, handler: RemoteCallHandler, principal: Identity | None) -> None:
        self.handler = handler
        self.principal = principal

    def call(self, method: str, body: Mapping[str, Any]) -> Mapping[str, Any]:
        return self.handler.handle(method, self.principal, body)


def _body(arguments: BaseModel | None = None) -> dict[str, Any]:
    if arguments is None:
        return {}
    return arguments.model_dump(mode="json", exclude_unset=True)


_PROFILE = TypeAdapter(ProfileWire)
_FAMILY = TypeAdapter(FamilyWire)
_FAMILIES = TypeAdapter(list[FamilyWire])
_MEMBER = TypeAdapter(MemberWire)
_MATCHES = TypeAdapter(list[GhostProfileMatchWire])
_CLAIM = TypeAdapter(ClaimRequestWire)
_CLAIMS = TypeAdapter(list[ClaimRequestWire])
_INVITATIONS = TypeAdapter(list[FamilyInvitationWire])
_NOTIFICATIONS = TypeAdapter(list[NotificationWire])
_USERS = TypeAdapter(list[UserMatchWire])
_TEXT = TypeAdapter(str)
_COUNT = TypeAdapter(int)


class RemoteClient:
    """One method per remote call; every method returns a ``Result``."""

    def __init__(self, backend: RemoteBackend) -> None:
        self.backend = backend

    def _invoke[T](
        self, method: str, body: Mapping[str, Any], adapter: TypeAdapter[T]
    ) -> Result[T]:
        try:
            envelope = self.backend.call(method, body)
        except (httpx.HTTPError, RemoteResponseError) as exc:
            log.warning("Remote call %s failed: %s", method, exc)
            return Failure(ErrorKind.TRANSPORT, str(exc) or type(exc).__name__)

        if envelope.get("err") is not None:
            try:
                error = ErrorPayload.model_validate(envelope["err"])
            except ValidationError:
                return Failure(ErrorKind.TRANSPORT, f"Undecodable failure from {method}")
            return Failure(error.kind, error.message)
        try:
            return Success(adapter.validate_python(envelope.get("ok")))
        except ValidationError:
            log.warning("Undecodable result from %s", method)
            return Failure(ErrorKind.TRANSPORT, f"Undecodable result from {method}")

    # Identity directory ----------------------------------------------------------

    def create_profile(
        self,
        *,
        full_name: str,
        surname_at_birth: str,
        sex: Sex,
        birthday: date,
        birth_city: str,
        birth_country: str,
    ) -> Result[ProfileWire]:
        arguments = CreateProfileArguments(
            full_name=full_name,
            surname_at_birth=surname_at_birth,
            sex=sex,
            birthday=birthday,
            birth_city=birth_city,
            birth_country=birth_country,
        )
        return self._invoke("create_profile", _body(arguments), _PROFILE)

    def update_profile(self, update: ProfileUpdate) -> Result[ProfileWire]:
        return self._invoke(
            "update_profile", _body(translator.profile_update_to_wire(update)), _PROFILE
        )

    def get_profile(self) -> Result[ProfileWire]:
        return self._invoke("get_profile", _body(), _PROFILE)

    def search_users(self, query: str) -> Result[list[UserMatchWire]]:
        return self._invoke("search_users", _body(SearchUsersArguments(query=query)), _USERS)

    # Family store ----------------------------------------------------------------

    def create_family(
        self, *, name: str, description: str, is_visible: bool = True
    ) -> Result[FamilyWire]:
        arguments = CreateFamilyArguments(
            name=name, description=description, is_visible=[is_visible]
        )
        return self._invoke("create_family", _body(arguments), _FAMILY)

    def get_family(self, family_id: UUID) -> Result[FamilyWire]:
        return self._invoke("get_family", _body(FamilyRef(family_id=family_id)), _FAMILY)

    def get_user_families(self) -> Result[list[FamilyWire]]:
        return self._invoke("get_user_families", _body(), _FAMILIES)

    def add_family_member(
        self,
        family_id: UUID,
        *,
        full_name: str,
        surname_at_birth: str,
        sex: Sex,
        relationship_to_admin: str,
        birthday: date | None = None,
        birth_city: str | None = None,
        birth_country: str | None = None,
        death_date: date | None = None,
    ) -> Result[MemberWire]:
        arguments = AddMemberArguments(
            family_id=family_id,
            full_name=full_name,
            surname_at_birth=surname_at_birth,
            sex=sex,
            relationship_to_admin=relationship_to_admin,
            birthday=translator.opt(birthday),
            birth_city=translator.opt(birth_city),
            birth_country=translator.opt(birth_country),
            death_date=translator.opt(death_date),
        )
        return self._invoke("add_family_member", _body(arguments), _MEMBER)

    def update_family_member(
        self, family_id: UUID, member_id: UUID, update: MemberUpdate
    ) -> Result[MemberWire]:
        arguments = translator.member_update_to_wire(family_id, member_id, update)
        return self._invoke("update_family_member", _body(arguments), _MEMBER)

    def remove_family_member(self, family_id: UUID, member_id: UUID) -> Result[str]:
        arguments = FamilyMemberRef(family_id=family_id, member_id=member_id)
        return self._invoke("remove_family_member", _body(arguments), _TEXT)

    def toggle_family_visibility(self, family_id: UUID, *, is_visible: bool) -> Result[str]:
        arguments = ToggleVisibilityArguments(family_id=family_id, is_visible=is_visible)
        return self._invoke("toggle_family_visibility", _body(arguments), _TEXT)

    # Matcher and claims ----------------------------------------------------------

    def find_matching_ghost_profiles(self) -> Result[list[GhostProfileMatchWire]]:
        return self._invoke("find_matching_ghost_profiles", _body(), _MATCHES)

    def submit_ghost_profile_claim(
        self, family_id: UUID, member_id: UUID
    ) -> Result[ClaimRequestWire]:
        arguments = FamilyMemberRef(family_id=family_id, member_id=member_id)
        return self._invoke("submit_ghost_profile_claim", _body(arguments), _CLAIM)

    def get_my_claim_requests(self) -> Result[list[ClaimRequestWire]]:
        return self._invoke("get_my_claim_requests", _body(), _CLAIMS)

    def get_pending_claims_for_admin(self) -> Result[list[ClaimRequestWire]]:
        return self._invoke("get_pending_claims_for_admin", _body(), _CLAIMS)

    def get_claim_request(self, claim_id: UUID) -> Result[ClaimRequestWire]:
        return self._invoke("get_claim_request", _body(ClaimRef(claim_id=claim_id)), _CLAIM)

    def process_ghost_profile_claim(
        self, claim_id: UUID, *, approve: bool, admin_message: str | None = None
    ) -> Result[str]:
        arguments = ProcessClaimArguments(
            claim_id=claim_id, approve=approve, admin_message=translator.opt(admin_message)
        )
        return self._invoke("process_ghost_profile_claim", _body(arguments), _TEXT)

    # Invitations -----------------------------------------------------------------

    def send_family_invitation(
        self,
        family_id: UUID,
        user_id: Identity,
        relationship_to_admin: str,
        message: str | None = None,
    ) -> Result[str]:
        arguments = SendInvitationArguments(
            family_id=family_id,
            user_id=user_id,
            relationship_to_admin=relationship_to_admin,
            message=translator.opt(message),
        )
        return self._invoke("send_family_invitation", _body(arguments), _TEXT)

    def get_my_invitations(self) -> Result[list[FamilyInvitationWire]]:
        return self._invoke("get_my_invitations", _body(), _INVITATIONS)

    def get_sent_invitations(self) -> Result[list[FamilyInvitationWire]]:
        return self._invoke("get_sent_invitations", _body(), _INVITATIONS)

    def process_family_invitation(self, invitation_id: UUID, *, accept: bool) -> Result[str]:
        arguments = ProcessInvitationArguments(invitation_id=invitation_id, accept=accept)
        return self._invoke("process_family_invitation", _body(arguments), _TEXT)

    # Notifications ---------------------------------------------------------------

    def get_my_notifications(self) -> Result[list[NotificationWire]]:
        return self._invoke("get_my_notifications", _body(), _NOTIFICATIONS)

    def get_unread_notification_count(self) -> Result[int]:
        return self._invoke("get_unread_notification_count", _body(), _COUNT)

    def mark_notification_read(self, notification_id: UUID) -> Result[str]:
        arguments = NotificationRef(notification_id=notification_id)
        return self._invoke("mark_notification_read", _body(arguments), _TEXT)

    def mark_all_notifications_read(self) -> Result[str]:
        return self._invoke("mark_all_notifications_read", _body(), _TEXT)
