"""Caller-side reconciliation of remote actions with the local cache.

Every action is one remote call plus the confirmed re-reads it needs. Changes
are staged on a deep copy of the cache and swapped in only when the whole action
has been confirmed; a failed action leaves the cache exactly as it was. Failures
which mean the server moved on without us (``AlreadyLinked``, ``AlreadyMember``,
``NotPending``) are followed by a separate confirmed refresh of the affected list.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Final

from legatia.domain.errors import ErrorKind, InvalidInputError
from legatia.domain.validation import (
    validate_description,
    validate_message,
    validate_name,
    validate_optional_name,
    validate_reason,
    validate_search_query,
)

from .cache import ClientCache
from .results import Failure, Success

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import date
    from uuid import UUID

    from legatia.adapters.wire.schema import (
        ClaimRequestWire,
        FamilyInvitationWire,
        FamilyWire,
        GhostProfileMatchWire,
        MemberWire,
        NotificationWire,
        ProfileWire,
        UserMatchWire,
    )
    from legatia.domain.model import Identity, MemberUpdate, ProfileUpdate, Sex

    from .backend import RemoteClient
    from .results import Result

log = getLogger(__name__)

RESYNC_KINDS: Final[frozenset[ErrorKind]] = frozenset(
    {ErrorKind.ALREADY_LINKED, ErrorKind.ALREADY_MEMBER, ErrorKind.NOT_PENDING}
)

type Action[T] = Callable[[ClientCache], Result[T]]


class _Busy(Exception):  # noqa: N818
    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key


def _locally_valid(check: Callable[[], object]) -> Failure | None:
    try:
        check()
    except InvalidInputError as exc:
        return Failure(ErrorKind.INVALID_INPUT, exc.message)
    return None


class ClientReconciler:
    """Owns the ``ClientCache`` and talks to the remote actor through ``RemoteClient``."""

    def __init__(self, client: RemoteClient, cache: ClientCache | None = None) -> None:
        self.client = client
        self._cache = cache or ClientCache()
        self._in_flight: set[str] = set()

    @property
    def cache(self) -> ClientCache:
        return self._cache

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    # Plumbing --------------------------------------------------------------------

    @contextmanager
    def _claim_keys(self, keys: tuple[str, ...]) -> Iterator[None]:
        for key in keys:
            if key in self._in_flight:
                raise _Busy(key)
        self._in_flight.update(keys)
        try:
            yield
        finally:
            self._in_flight.difference_update(keys)

    def _run[T](self, keys: tuple[str, ...], action: Action[T]) -> Result[T]:
        try:
            with self._claim_keys(keys):
                staged = self._cache.staged()
                result = action(staged)
                if isinstance(result, Success):
                    self._cache = staged
        except _Busy as busy:
            log.debug("Refusing overlapping action on %s", busy.key)
            return Failure(ErrorKind.ACTION_IN_FLIGHT, f"An action on {busy.key} is in progress")
        return result

    def _refetch_family(self, staged: ClientCache, family_id: UUID) -> None:
        fetched = self.client.get_family(family_id)
        if isinstance(fetched, Success):
            staged.families[family_id] = fetched.value
        else:
            log.info("Evicting family %s from cache: %s", family_id, fetched)
            staged.families.pop(family_id, None)

    def _resync_after(self, failure: Failure, *refreshers: Callable[[], object]) -> None:
        if failure.kind not in RESYNC_KINDS:
            return
        log.info("Server state moved (%s); refreshing", failure.kind.value)
        for refresh in refreshers:
            refresh()

    # Profile ---------------------------------------------------------------------

    def load_profile(self) -> Result[ProfileWire]:
        def action(staged: ClientCache) -> Result[ProfileWire]:
            result = self.client.get_profile()
            if isinstance(result, Success):
                staged.profile = result.value
            return result

        return self._run(("profile",), action)

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
        def check() -> None:
            validate_name(full_name, "full_name")
            validate_name(surname_at_birth, "surname_at_birth")
            validate_name(birth_city, "birth_city")
            validate_name(birth_country, "birth_country")

        if (invalid := _locally_valid(check)) is not None:
            return invalid

        def action(staged: ClientCache) -> Result[ProfileWire]:
            result = self.client.create_profile(
                full_name=full_name,
                surname_at_birth=surname_at_birth,
                sex=sex,
                birthday=birthday,
                birth_city=birth_city,
                birth_country=birth_country,
            )
            if isinstance(result, Success):
                staged.profile = result.value
            return result

        return self._run(("profile",), action)

    def update_profile(self, update: ProfileUpdate) -> Result[ProfileWire]:
        def action(staged: ClientCache) -> Result[ProfileWire]:
            result = self.client.update_profile(update)
            if isinstance(result, Success):
                staged.profile = result.value
            return result

        return self._run(("profile",), action)

    def search_users(self, query: str) -> Result[list[UserMatchWire]]:
        if (invalid := _locally_valid(lambda: validate_search_query(query))) is not None:
            return invalid
        return self.client.search_users(query)

    # Families --------------------------------------------------------------------

    def refresh_families(self) -> Result[list[FamilyWire]]:
        def action(staged: ClientCache) -> Result[list[FamilyWire]]:
            result = self.client.get_user_families()
            if isinstance(result, Success):
                staged.families = {family.id: family for family in result.value}
            return result

        return self._run(("families",), action)

    def load_family(self, family_id: UUID) -> Result[FamilyWire]:
        def action(staged: ClientCache) -> Result[FamilyWire]:
            result = self.client.get_family(family_id)
            if isinstance(result, Success):
                staged.families[family_id] = result.value
            return result

        return self._run((f"family:{family_id}",), action)

    def create_family(
        self, *, name: str, description: str = "", is_visible: bool = True
    ) -> Result[FamilyWire]:
        def check() -> None:
            validate_name(name, "name")
            validate_description(description)

        if (invalid := _locally_valid(check)) is not None:
            return invalid

        def action(staged: ClientCache) -> Result[FamilyWire]:
            result = self.client.create_family(
                name=name, description=description, is_visible=is_visible
            )
            if isinstance(result, Success):
                staged.families[result.value.id] = result.value
            return result

        return self._run(("families",), action)

    def add_ghost_member(
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
        def check() -> None:
            validate_name(full_name, "full_name")
            validate_name(surname_at_birth, "surname_at_birth")
            validate_name(relationship_to_admin, "relationship_to_admin")
            validate_optional_name(birth_city, "birth_city")
            validate_optional_name(birth_country, "birth_country")

        if (invalid := _locally_valid(check)) is not None:
            return invalid

        def action(staged: ClientCache) -> Result[MemberWire]:
            result = self.client.add_family_member(
                family_id,
                full_name=full_name,
                surname_at_birth=surname_at_birth,
                sex=sex,
                relationship_to_admin=relationship_to_admin,
                birthday=birthday,
                birth_city=birth_city,
                birth_country=birth_country,
                death_date=death_date,
            )
            if isinstance(result, Success):
                self._refetch_family(staged, family_id)
            return result

        return self._run((f"family:{family_id}",), action)

    def update_member(
        self, family_id: UUID, member_id: UUID, update: MemberUpdate
    ) -> Result[MemberWire]:
        def action(staged: ClientCache) -> Result[MemberWire]:
            result = self.client.update_family_member(family_id, member_id, update)
            if isinstance(result, Success):
                self._refetch_family(staged, family_id)
            return result

        return self._run((f"family:{family_id}", f"member:{member_id}"), action)

    def remove_member(self, family_id: UUID, member_id: UUID) -> Result[str]:
        def action(staged: ClientCache) -> Result[str]:
            result = self.client.remove_family_member(family_id, member_id)
            if isinstance(result, Success):
                self._refetch_family(staged, family_id)
                self._reload_admin_claims(staged)
            return result

        return self._run((f"family:{family_id}", f"member:{member_id}"), action)

    def toggle_visibility(self, family_id: UUID, *, is_visible: bool) -> Result[str]:
        def action(staged: ClientCache) -> Result[str]:
            result = self.client.toggle_family_visibility(family_id, is_visible=is_visible)
            if isinstance(result, Success):
                self._refetch_family(staged, family_id)
            return result

        return self._run((f"family:{family_id}",), action)

    # Matches and claims ----------------------------------------------------------

    def refresh_matches(self) -> Result[list[GhostProfileMatchWire]]:
        def action(staged: ClientCache) -> Result[list[GhostProfileMatchWire]]:
            result = self.client.find_matching_ghost_profiles()
            if isinstance(result, Success):
                staged.matches = result.value
            return result

        return self._run(("matches",), action)

    def submit_claim(self, family_id: UUID, member_id: UUID) -> Result[ClaimRequestWire]:
        def action(staged: ClientCache) -> Result[ClaimRequestWire]:
            result = self.client.submit_ghost_profile_claim(family_id, member_id)
            if isinstance(result, Success):
                staged.my_claims = {result.value.id: result.value, **staged.my_claims}
            return result

        result = self._run((f"member:{member_id}",), action)
        if isinstance(result, Failure):
            self._resync_after(result, self.refresh_my_claims, self.refresh_matches)
        return result

    def refresh_my_claims(self) -> Result[list[ClaimRequestWire]]:
        def action(staged: ClientCache) -> Result[list[ClaimRequestWire]]:
            result = self.client.get_my_claim_requests()
            if isinstance(result, Success):
                staged.my_claims = {claim.id: claim for claim in result.value}
            return result

        return self._run(("my_claims",), action)

    def refresh_admin_claims(self) -> Result[list[ClaimRequestWire]]:
        def action(staged: ClientCache) -> Result[list[ClaimRequestWire]]:
            return self._reload_admin_claims(staged)

        return self._run(("admin_claims",), action)

    def _reload_admin_claims(self, staged: ClientCache) -> Result[list[ClaimRequestWire]]:
        result = self.client.get_pending_claims_for_admin()
        if isinstance(result, Success):
            staged.admin_claims = {claim.id: claim for claim in result.value}
        return result

    def process_claim(
        self, claim_id: UUID, *, approve: bool, admin_message: str | None = None
    ) -> Result[str]:
        if admin_message and admin_message.strip():
            invalid = _locally_valid(lambda: validate_reason(admin_message))
            if invalid is not None:
                return invalid
        known = self._cache.admin_claims.get(claim_id)

        def action(staged: ClientCache) -> Result[str]:
            result = self.client.process_ghost_profile_claim(
                claim_id, approve=approve, admin_message=admin_message
            )
            if isinstance(result, Failure):
                return result
            staged.admin_claims.pop(claim_id, None)
            confirmed = self.client.get_claim_request(claim_id)
            if isinstance(confirmed, Success):
                family_id: UUID | None = confirmed.value.family_id
            else:
                family_id = known.family_id if known is not None else None
            if family_id is not None:
                self._refetch_family(staged, family_id)
            self._reload_admin_claims(staged)
            return result

        result = self._run((f"claim:{claim_id}",), action)
        if isinstance(result, Failure):
            refreshers: list[Callable[[], object]] = [self.refresh_admin_claims]
            if known is not None:
                family_id = known.family_id
                refreshers.append(lambda: self.load_family(family_id))
            self._resync_after(result, *refreshers)
        return result

    # Invitations -----------------------------------------------------------------

    def send_invitation(
        self,
        family_id: UUID,
        user_id: Identity,
        relationship_to_admin: str,
        message: str | None = None,
    ) -> Result[str]:
        def check() -> None:
            validate_name(relationship_to_admin, "relationship_to_admin")
            validate_message(message)
            if not user_id.strip():
                raise InvalidInputError("user_id cannot be empty")

        if (invalid := _locally_valid(check)) is not None:
            return invalid

        def action(staged: ClientCache) -> Result[str]:
            result = self.client.send_family_invitation(
                family_id, user_id, relationship_to_admin, message
            )
            if isinstance(result, Failure):
                return result
            sent = self.client.get_sent_invitations()
            if isinstance(sent, Success):
                staged.sent_invitations = {item.id: item for item in sent.value}
            else:
                log.warning("Could not refresh sent invitations: %s", sent)
            return result

        return self._run((f"family:{family_id}", f"invitee:{user_id}"), action)

    def refresh_received_invitations(self) -> Result[list[FamilyInvitationWire]]:
        def action(staged: ClientCache) -> Result[list[FamilyInvitationWire]]:
            result = self.client.get_my_invitations()
            if isinstance(result, Success):
                staged.received_invitations = {item.id: item for item in result.value}
            return result

        return self._run(("received_invitations",), action)

    def refresh_sent_invitations(self) -> Result[list[FamilyInvitationWire]]:
        def action(staged: ClientCache) -> Result[list[FamilyInvitationWire]]:
            result = self.client.get_sent_invitations()
            if isinstance(result, Success):
                staged.sent_invitations = {item.id: item for item in result.value}
            return result

        return self._run(("sent_invitations",), action)

    def respond_to_invitation(self, invitation_id: UUID, *, accept: bool) -> Result[str]:
        def action(staged: ClientCache) -> Result[str]:
            result = self.client.process_family_invitation(invitation_id, accept=accept)
            if isinstance(result, Failure):
                return result
            known = staged.received_invitations.get(invitation_id)
            received = self.client.get_my_invitations()
            if isinstance(received, Success):
                staged.received_invitations = {item.id: item for item in received.value}
            else:
                staged.received_invitations.pop(invitation_id, None)
            invitation = staged.received_invitations.get(invitation_id) or known
            if accept and invitation is not None:
                self._refetch_family(staged, invitation.family_id)
            return result

        result = self._run((f"invitation:{invitation_id}",), action)
        if isinstance(result, Failure):
            self._resync_after(result, self.refresh_received_invitations)
        return result

    # Notifications ---------------------------------------------------------------

    def refresh_notifications(self) -> Result[list[NotificationWire]]:
        def action(staged: ClientCache) -> Result[list[NotificationWire]]:
            return self._reload_notifications(staged)

        return self._run(("notifications",), action)

    def _reload_notifications(self, staged: ClientCache) -> Result[list[NotificationWire]]:
        listed = self.client.get_my_notifications()
        if isinstance(listed, Failure):
            return listed
        count = self.client.get_unread_notification_count()
        if isinstance(count, Failure):
            return count
        staged.notifications = {item.id: item for item in listed.value}
        staged.unread_count = count.value
        return listed

    def mark_notification_read(self, notification_id: UUID) -> Result[str]:
        def action(staged: ClientCache) -> Result[str]:
            result = self.client.mark_notification_read(notification_id)
            if isinstance(result, Failure):
                return result
            if isinstance(self._reload_notifications(staged), Failure):
                cached = staged.notifications.get(notification_id)
                if cached is not None and not cached.read:
                    staged.notifications[notification_id] = cached.model_copy(
                        update={"read": True}
                    )
                    staged.unread_count = max(staged.unread_count - 1, 0)
            return result

        return self._run((f"notification:{notification_id}", "notifications"), action)

    def mark_all_notifications_read(self) -> Result[str]:
        def action(staged: ClientCache) -> Result[str]:
            result = self.client.mark_all_notifications_read()
            if isinstance(result, Failure):
                return result
            if isinstance(self._reload_notifications(staged), Failure):
                staged.notifications = {
                    key: item.model_copy(update={"read": True})
                    for key, item in staged.notifications.items()
                }
                staged.unread_count = 0
            return result

        return self._run(("notifications",), action)
