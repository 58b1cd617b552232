"""Workflow policy constants: matching threshold, retention windows, search limits."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from .env import optional_int_env
from .errors import ConfigurationError

DEFAULT_MATCH_THRESHOLD: Final[int] = 75
DEFAULT_CLAIM_RETENTION_DAYS: Final[int] = 30
DEFAULT_INVITATION_RETENTION_DAYS: Final[int] = 30
DEFAULT_SEARCH_RESULT_LIMIT: Final[int] = 20


@dataclass(frozen=True, slots=True)
class WorkflowPolicy:
    match_threshold: int = DEFAULT_MATCH_THRESHOLD
    claim_retention: timedelta = timedelta(days=DEFAULT_CLAIM_RETENTION_DAYS)
    invitation_retention: timedelta = timedelta(days=DEFAULT_INVITATION_RETENTION_DAYS)
    search_result_limit: int = DEFAULT_SEARCH_RESULT_LIMIT

    def __post_init__(self) -> None:
        if not 0 <= self.match_threshold <= 100:  # noqa: PLR2004
            raise ConfigurationError("match_threshold must lie within [0, 100]")
        if self.claim_retention <= timedelta(0) or self.invitation_retention <= timedelta(0):
            raise ConfigurationError("retention windows must be positive")


def get_workflow_policy() -> WorkflowPolicy:
    threshold = optional_int_env("LEGATIA_MATCH_THRESHOLD", DEFAULT_MATCH_THRESHOLD)
    claim_days = optional_int_env(
        "LEGATIA_CLAIM_RETENTION_DAYS", DEFAULT_CLAIM_RETENTION_DAYS, minimum=1
    )
    invitation_days = optional_int_env(
        "LEGATIA_INVITATION_RETENTION_DAYS", DEFAULT_INVITATION_RETENTION_DAYS, minimum=1
    )
    return WorkflowPolicy(
        match_threshold=threshold,
        claim_retention=timedelta(days=claim_days),
        invitation_retention=timedelta(days=invitation_days),
    )
