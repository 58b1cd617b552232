"""Families and their ordered member lists.

A member is either a *ghost* (no linked identity) or *linked*. Linking happens once and
is never undone; the family keeps at most one member per identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from legatia.domain.errors import AlreadyLinkedError, AlreadyMemberError, NotFoundError
from legatia.domain.model.entity import Entity
from legatia.domain.model.primitives import (
    UNCHANGED,
    FieldUpdate,
    apply_optional,
    apply_required,
)

if TYPE_CHECKING:
    from datetime import date, datetime
    from uuid import UUID

    from legatia.domain.model.enums import Sex
    from legatia.domain.model.primitives import Identity


@dataclass(eq=False, kw_only=True)
class Member(Entity):
    full_name: str
    surname_at_birth: str
    sex: Sex
    birthday: date | None = None
    birth_city: str | None = None
    birth_country: str | None = None
    death_date: date | None = None
    relationship_to_admin: str
    created_by: Identity
    created_at: datetime
    position: int = 0
    linked_identity: Identity | None = None

    @property
    def is_ghost(self) -> bool:
        return self.linked_identity is None

    def apply(self, update: MemberUpdate) -> None:
        self.full_name = apply_required(self.full_name, update.full_name, "full_name")
        self.surname_at_birth = apply_required(
            self.surname_at_birth, update.surname_at_birth, "surname_at_birth"
        )
        self.sex = apply_required(self.sex, update.sex, "sex")
        self.birthday = apply_optional(self.birthday, update.birthday)
        self.birth_city = apply_optional(self.birth_city, update.birth_city)
        self.birth_country = apply_optional(self.birth_country, update.birth_country)
        self.death_date = apply_optional(self.death_date, update.death_date)
        self.relationship_to_admin = apply_required(
            self.relationship_to_admin, update.relationship_to_admin, "relationship_to_admin"
        )


@dataclass(frozen=True, kw_only=True)
class MemberUpdate:
    full_name: FieldUpdate[str] = UNCHANGED
    surname_at_birth: FieldUpdate[str] = UNCHANGED
    sex: FieldUpdate[Sex] = UNCHANGED
    birthday: FieldUpdate[date] = UNCHANGED
    birth_city: FieldUpdate[str] = UNCHANGED
    birth_country: FieldUpdate[str] = UNCHANGED
    death_date: FieldUpdate[date] = UNCHANGED
    relationship_to_admin: FieldUpdate[str] = UNCHANGED


@dataclass(eq=False, kw_only=True)
class Family(Entity):
    name: str
    description: str
    admin: Identity
    is_visible: bool = True
    created_at: datetime
    updated_at: datetime

    _members: list[Member] = field(default_factory=list["Member"], repr=False)

    @property
    def members(self) -> tuple[Member, ...]:
        return tuple(sorted(self._members, key=lambda member: member.position))

    @property
    def ghosts(self) -> tuple[Member, ...]:
        return tuple(member for member in self.members if member.is_ghost)

    def is_admin(self, identity: Identity) -> bool:
        return self.admin == identity

    def member(self, member_id: UUID) -> Member | None:
        for member in self._members:
            if member.id == member_id:
                return member
        return None

    def require_member(self, member_id: UUID) -> Member:
        member = self.member(member_id)
        if member is None:
            raise NotFoundError("Family member not found")
        return member

    def member_linked_to(self, identity: Identity) -> Member | None:
        for member in self._members:
            if member.linked_identity == identity:
                return member
        return None

    def has_access(self, identity: Identity) -> bool:
        return self.is_admin(identity) or self.member_linked_to(identity) is not None

    def add_member(self, member: Member, *, now: datetime) -> Member:
        if member.linked_identity is not None and self.member_linked_to(member.linked_identity):
            raise AlreadyMemberError("User is already a member of this family")
        member.position = max((existing.position for existing in self._members), default=-1) + 1
        self._members.append(member)
        self.updated_at = now
        return member

    def link_member(self, member_id: UUID, identity: Identity, *, now: datetime) -> Member:
        """Bind a ghost to ``identity``; the only way a ghost becomes linked."""

        member = self.require_member(member_id)
        if not member.is_ghost:
            raise AlreadyLinkedError("This profile has already been claimed")
        if self.member_linked_to(identity) is not None:
            raise AlreadyMemberError("User is already a member of this family")
        member.linked_identity = identity
        self.updated_at = now
        return member

    def remove_member(self, member_id: UUID, *, now: datetime) -> Member:
        member = self.require_member(member_id)
        self._members.remove(member)
        self.updated_at = now
        return member

    def set_visibility(self, *, is_visible: bool, now: datetime) -> None:
        self.is_visible = is_visible
        self.updated_at = now
