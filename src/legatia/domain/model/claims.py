"""Claim requests for ghost members and the snapshots they carry."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any
from uuid import UUID

from legatia.domain.errors import NotPendingError
from legatia.domain.model.entity import Entity
from legatia.domain.model.enums import ClaimStatus, Sex

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from legatia.domain.model.family import Member
    from legatia.domain.model.primitives import Identity
    from legatia.domain.model.profile import Profile


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_date(value: Any) -> date | None:
    return date.fromisoformat(value) if isinstance(value, str) and value else None


@dataclass(frozen=True, slots=True, kw_only=True)
class ProfileSnapshot:
    """Requester profile as it was when the claim was submitted."""

    identity: Identity
    full_name: str
    surname_at_birth: str
    sex: Sex
    birthday: date
    birth_city: str
    birth_country: str

    @classmethod
    def of(cls, profile: Profile) -> ProfileSnapshot:
        return cls(
            identity=profile.identity,
            full_name=profile.full_name,
            surname_at_birth=profile.surname_at_birth,
            sex=profile.sex,
            birthday=profile.birthday,
            birth_city=profile.birth_city,
            birth_country=profile.birth_country,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "full_name": self.full_name,
            "surname_at_birth": self.surname_at_birth,
            "sex": self.sex.value,
            "birthday": _iso(self.birthday),
            "birth_city": self.birth_city,
            "birth_country": self.birth_country,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ProfileSnapshot:
        birthday = _parse_date(payload.get("birthday"))
        if birthday is None:
            raise ValueError("Profile snapshot is missing a birthday")
        return cls(
            identity=str(payload["identity"]),
            full_name=str(payload["full_name"]),
            surname_at_birth=str(payload["surname_at_birth"]),
            sex=Sex(payload["sex"]),
            birthday=birthday,
            birth_city=str(payload["birth_city"]),
            birth_country=str(payload["birth_country"]),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class MemberSnapshot:
    """Ghost member as it was when the claim was submitted."""

    member_id: UUID
    full_name: str
    surname_at_birth: str
    sex: Sex
    birthday: date | None = None
    birth_city: str | None = None
    birth_country: str | None = None
    relationship_to_admin: str

    @classmethod
    def of(cls, member: Member) -> MemberSnapshot:
        return cls(
            member_id=member.id,
            full_name=member.full_name,
            surname_at_birth=member.surname_at_birth,
            sex=member.sex,
            birthday=member.birthday,
            birth_city=member.birth_city,
            birth_country=member.birth_country,
            relationship_to_admin=member.relationship_to_admin,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "member_id": str(self.member_id),
            "full_name": self.full_name,
            "surname_at_birth": self.surname_at_birth,
            "sex": self.sex.value,
            "birthday": _iso(self.birthday),
            "birth_city": self.birth_city,
            "birth_country": self.birth_country,
            "relationship_to_admin": self.relationship_to_admin,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> MemberSnapshot:
        return cls(
            member_id=UUID(str(payload["member_id"])),
            full_name=str(payload["full_name"]),
            surname_at_birth=str(payload["surname_at_birth"]),
            sex=Sex(payload["sex"]),
            birthday=_parse_date(payload.get("birthday")),
            birth_city=payload.get("birth_city"),
            birth_country=payload.get("birth_country"),
            relationship_to_admin=str(payload["relationship_to_admin"]),
        )


@dataclass(eq=False, kw_only=True)
class ClaimRequest(Entity):
    """A user's request to be recognised as a ghost member.

    ``Pending -> {Approved, Rejected, Expired}``; every non-Pending status is terminal.
    """

    requester: Identity
    family_id: UUID
    family_name: str
    member_id: UUID
    requester_profile: ProfileSnapshot
    member_snapshot: MemberSnapshot
    status: ClaimStatus = ClaimStatus.PENDING
    created_at: datetime
    decided_at: datetime | None = None
    decision_note: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is ClaimStatus.PENDING

    def is_stale(self, *, now: datetime, retention: timedelta) -> bool:
        return self.is_pending and now - self.created_at > retention

    def approve(self, *, now: datetime, note: str | None = None) -> None:
        self._decide(ClaimStatus.APPROVED, now=now, note=note)

    def reject(self, *, now: datetime, note: str | None = None) -> None:
        self._decide(ClaimStatus.REJECTED, now=now, note=note)

    def expire(self, *, now: datetime) -> None:
        self._decide(ClaimStatus.EXPIRED, now=now, note="Claim request expired")

    def _decide(self, status: ClaimStatus, *, now: datetime, note: str | None) -> None:
        if not self.is_pending:
            raise NotPendingError(f"Claim request has already been {self.status.value.lower()}")
        self.status = status
        self.decided_at = now
        self.decision_note = note
