from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

import pytest

from legatia.adapters.wire import METHODS, RemoteCallHandler
from legatia.adapters.wire.handler import INTERNAL_ERROR_MESSAGE
from legatia.adapters.wire.translator import from_nanos
from tests.helpers.family_tree import T0

if TYPE_CHECKING:
    from legatia.service import FamilyTreeService

PROFILE_BODY: dict[str, Any] = {
    "full_name": "Jane Doe",
    "surname_at_birth": "Doe",
    "sex": "female",
    "birthday": "1990-05-01",
    "birth_city": "Springfield",
    "birth_country": "USA",
}


@pytest.fixture
def handler(service: FamilyTreeService) -> RemoteCallHandler:
    return RemoteCallHandler(service)


def _ok(envelope: dict[str, Any]) -> Any:  # noqa: ANN401
    assert "err" not in envelope, envelope
    return envelope["ok"]


def _family_with_ghost(handler: RemoteCallHandler) -> tuple[str, str]:
    _ok(handler.handle("create_profile", "admin", {**PROFILE_BODY, "full_name": "Ada Admin"}))
    family = _ok(handler.handle("create_family", "admin", {"name": "Doe"}))
    member = _ok(
        handler.handle(
            "add_family_member",
            "admin",
            {
                "family_id": family["id"],
                "full_name": "Jane Doe",
                "surname_at_birth": "Doe",
                "sex": "FEMALE",
                "relationship_to_admin": "Cousin",
                "birthday": ["1990-05-01"],
            },
        )
    )
    return family["id"], member["id"]


def test_method_table_covers_the_remote_surface() -> None:
    assert len(METHODS) == 25
    assert {"process_ghost_profile_claim", "mark_all_notifications_read"} <= METHODS


def test_unknown_method_is_not_found(handler: RemoteCallHandler) -> None:
    assert handler.handle("drop_tables", "jane") == {
        "err": {"kind": "NotFound", "message": "Unknown method: drop_tables"}
    }


def test_anonymous_caller_is_rejected(handler: RemoteCallHandler) -> None:
    envelope = handler.handle("get_profile", None)

    assert envelope["err"]["kind"] == "NotAuthenticated"


def test_malformed_body_is_invalid_input(handler: RemoteCallHandler) -> None:
    envelope = handler.handle("create_profile", "jane", {"full_name": "Jane"})

    assert envelope["err"]["kind"] == "InvalidInput"
    assert "surname_at_birth" in envelope["err"]["message"]


def test_profile_round_trip_uses_nanosecond_timestamps(handler: RemoteCallHandler) -> None:
    profile = _ok(handler.handle("create_profile", "jane", PROFILE_BODY))

    assert profile["sex"] == "Female"
    assert profile["birthday"] == "1990-05-01"
    assert from_nanos(profile["created_at"]) == T0
    assert _ok(handler.handle("get_profile", "jane")) == profile


def test_update_profile_follows_the_tri_state_convention(handler: RemoteCallHandler) -> None:
    _ok(handler.handle("create_profile", "jane", PROFILE_BODY))

    updated = _ok(handler.handle("update_profile", "jane", {"birth_city": ["Shelbyville"]}))
    cleared = handler.handle("update_profile", "jane", {"birth_city": []})

    assert updated["birth_city"] == "Shelbyville"
    assert updated["full_name"] == "Jane Doe"
    assert cleared["err"] == {
        "kind": "InvalidInput",
        "message": "birth_city is required and cannot be cleared",
    }


def test_member_optional_fields_are_lists(handler: RemoteCallHandler) -> None:
    family_id, member_id = _family_with_ghost(handler)

    family = _ok(handler.handle("get_family", "admin", {"family_id": family_id}))
    [member] = family["members"]
    assert member["birthday"] == ["1990-05-01"]
    assert member["birth_city"] == []
    assert member["linked_identity"] == []

    updated = _ok(
        handler.handle(
            "update_family_member",
            "admin",
            {
                "family_id": family_id,
                "member_id": member_id,
                "birthday": [],
                "birth_city": ["Rome"],
            },
        )
    )
    assert updated["birthday"] == []
    assert updated["birth_city"] == ["Rome"]
    assert updated["full_name"] == "Jane Doe"


def test_claim_flow_over_the_wire(handler: RemoteCallHandler) -> None:
    family_id, member_id = _family_with_ghost(handler)
    _ok(handler.handle("create_profile", "jane", PROFILE_BODY))

    [match] = _ok(handler.handle("find_matching_ghost_profiles", "jane"))
    assert match["member_id"] == member_id
    claim = _ok(
        handler.handle(
            "submit_ghost_profile_claim", "jane", {"family_id": family_id, "member_id": member_id}
        )
    )
    assert claim["status"] == "Pending"
    assert claim["decided_at"] == []

    result = _ok(
        handler.handle(
            "process_ghost_profile_claim",
            "admin",
            {"claim_id": claim["id"], "approve": True, "admin_message": ["Welcome"]},
        )
    )
    assert result == "Claim approved successfully"
    decided = _ok(handler.handle("get_claim_request", "jane", {"claim_id": claim["id"]}))
    assert decided["status"] == "Approved"
    assert decided["decision_note"] == ["Welcome"]
    [notification] = _ok(handler.handle("get_my_notifications", "jane"))
    assert notification["read"] is False
    assert notification["metadata"] == [claim["id"]]
    assert _ok(handler.handle("get_unread_notification_count", "jane")) == 1


def test_invitation_flow_over_the_wire(handler: RemoteCallHandler) -> None:
    family_id, _ = _family_with_ghost(handler)
    _ok(handler.handle("create_profile", "jane", PROFILE_BODY))

    invitation_id = _ok(
        handler.handle(
            "send_family_invitation",
            "admin",
            {"family_id": family_id, "user_id": "jane", "relationship_to_admin": "Sister"},
        )
    )
    duplicate = handler.handle(
        "send_family_invitation",
        "admin",
        {"family_id": family_id, "user_id": "jane", "relationship_to_admin": "Sister"},
    )
    [received] = _ok(handler.handle("get_my_invitations", "jane"))

    assert received["id"] == invitation_id
    assert received["message"] == []
    assert duplicate["err"]["kind"] == "DuplicatePendingInvitation"
    assert _ok(
        handler.handle(
            "process_family_invitation", "jane", {"invitation_id": invitation_id, "accept": True}
        )
    ) == "Invitation accepted"
    [family] = _ok(handler.handle("get_user_families", "jane"))
    assert family["id"] == family_id


def test_unexpected_errors_become_transport_failures(caplog: pytest.LogCaptureFixture) -> None:
    class BrokenService:
        def get_profile(self, caller: str | None) -> object:
            raise KeyError(caller)

    handler = RemoteCallHandler(cast("FamilyTreeService", BrokenService()))

    envelope = handler.handle("get_profile", "jane")

    assert envelope == {"err": {"kind": "Transport", "message": INTERNAL_ERROR_MESSAGE}}
    assert "Unhandled error in remote method get_profile" in caplog.text
