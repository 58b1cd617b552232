from __future__ import annotations

from datetime import timedelta

import pytest

from legatia.domain.errors import NotPendingError
from legatia.domain.model import (
    ClaimRequest,
    ClaimStatus,
    FamilyInvitation,
    InvitationStatus,
    MemberSnapshot,
    ProfileSnapshot,
)
from tests.helpers.family_tree import T0, make_family, make_ghost, make_profile


def _claim() -> ClaimRequest:
    family = make_family()
    ghost = make_ghost(family)
    return ClaimRequest(
        requester="jane",
        family_id=family.id,
        family_name=family.name,
        member_id=ghost.id,
        requester_profile=ProfileSnapshot.of(make_profile()),
        member_snapshot=MemberSnapshot.of(ghost),
        created_at=T0,
    )


def test_claim_decisions_are_terminal() -> None:
    claim = _claim()
    decided = T0 + timedelta(days=1)

    claim.approve(now=decided, note="Welcome")

    assert claim.status is ClaimStatus.APPROVED
    assert claim.decided_at == decided
    assert claim.decision_note == "Welcome"
    for transition in (claim.approve, claim.reject, claim.expire):
        with pytest.raises(NotPendingError, match="already been approved"):
            transition(now=decided)


def test_claim_staleness_uses_retention() -> None:
    claim = _claim()
    retention = timedelta(days=30)

    assert not claim.is_stale(now=T0 + timedelta(days=29), retention=retention)
    assert not claim.is_stale(now=T0 + retention, retention=retention)
    assert claim.is_stale(now=T0 + retention + timedelta(seconds=1), retention=retention)

    claim.expire(now=T0 + retention + timedelta(seconds=1))

    assert claim.status is ClaimStatus.EXPIRED
    assert claim.decision_note == "Claim request expired"
    assert not claim.is_stale(now=T0 + timedelta(days=90), retention=retention)


def test_snapshots_are_detached_from_live_records() -> None:
    family = make_family()
    ghost = make_ghost(family, birth_city="Springfield")
    profile = make_profile()

    member_snapshot = MemberSnapshot.of(ghost)
    profile_snapshot = ProfileSnapshot.of(profile)
    ghost.full_name = "Someone Else"
    profile.birth_city = "Shelbyville"

    assert member_snapshot.full_name == "Jane Doe"
    assert profile_snapshot.birth_city == "Springfield"
    assert MemberSnapshot.from_dict(member_snapshot.to_dict()) == member_snapshot
    assert ProfileSnapshot.from_dict(profile_snapshot.to_dict()) == profile_snapshot


def test_invitation_decline_keeps_note_and_blocks_accept() -> None:
    invitation = FamilyInvitation(
        family_id=make_family().id,
        family_name="Doe",
        inviter="admin",
        invitee="jane",
        relationship_to_admin="Sister",
        created_at=T0,
    )

    invitation.decline(now=T0, note="Not now")

    assert invitation.status is InvitationStatus.DECLINED
    assert invitation.decision_note == "Not now"
    with pytest.raises(NotPendingError, match="already been declined"):
        invitation.accept(now=T0)
