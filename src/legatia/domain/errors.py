"""Typed workflow failures.

Every precondition the workflows check is raised as a subclass of
``WorkflowError`` carrying a stable ``kind``. The remote boundary turns these into
typed failure envelopes; nothing here is fatal to the process.
"""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar


class ErrorKind(StrEnum):
    NOT_AUTHENTICATED = "NotAuthenticated"

    # authorization
    NOT_ADMIN = "NotAdmin"
    NOT_INVITEE = "NotInvitee"
    NOT_REQUESTER = "NotRequester"
    NOT_RECIPIENT = "NotRecipient"
    NOT_MEMBER = "NotMember"

    # state-machine preconditions
    NOT_PENDING = "NotPending"
    DUPLICATE_CLAIM = "DuplicateClaim"
    DUPLICATE_PENDING_INVITATION = "DuplicatePendingInvitation"
    ALREADY_LINKED = "AlreadyLinked"
    ALREADY_MEMBER = "AlreadyMember"
    SELF_INVITE = "SelfInvite"

    NOT_FOUND = "NotFound"
    INVALID_INPUT = "InvalidInput"

    # client side only
    TRANSPORT = "Transport"
    ACTION_IN_FLIGHT = "ActionInFlight"


class WorkflowError(RuntimeError):
    """Base class for failures scoped to a single user action."""

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotAuthenticatedError(WorkflowError):
    kind = ErrorKind.NOT_AUTHENTICATED

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class NotAdminError(WorkflowError):
    kind = ErrorKind.NOT_ADMIN


class NotInviteeError(WorkflowError):
    kind = ErrorKind.NOT_INVITEE


class NotRequesterError(WorkflowError):
    kind = ErrorKind.NOT_REQUESTER


class NotRecipientError(WorkflowError):
    kind = ErrorKind.NOT_RECIPIENT


class NotMemberError(WorkflowError):
    kind = ErrorKind.NOT_MEMBER


class NotPendingError(WorkflowError):
    kind = ErrorKind.NOT_PENDING


class DuplicateClaimError(WorkflowError):
    kind = ErrorKind.DUPLICATE_CLAIM


class DuplicatePendingInvitationError(WorkflowError):
    kind = ErrorKind.DUPLICATE_PENDING_INVITATION


class AlreadyLinkedError(WorkflowError):
    kind = ErrorKind.ALREADY_LINKED


class AlreadyMemberError(WorkflowError):
    kind = ErrorKind.ALREADY_MEMBER


class SelfInviteError(WorkflowError):
    kind = ErrorKind.SELF_INVITE


class NotFoundError(WorkflowError):
    kind = ErrorKind.NOT_FOUND


class InvalidInputError(WorkflowError):
    kind = ErrorKind.INVALID_INPUT
