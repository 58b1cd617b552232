"""Remote actor boundary configuration for clients."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

REMOTE_TIMEOUT_SECONDS = 15.0
# Remote calls are non-idempotent POSTs; they are never re-sent.
REMOTE_RETRY = RetryPolicy(allowed_methods=frozenset())
PRINCIPAL_HEADER = "X-Legatia-Principal"


@dataclass(frozen=True)
class RemoteConfig:
    """Where the remote actor lives and which identity the client speaks for."""

    principal: str
    resilience: ResilienceConfig


def get_remote_config(*, resilience: ResilienceConfig | None = None) -> RemoteConfig:
    values = require_env_vars(("LEGATIA_REMOTE_URL", "LEGATIA_PRINCIPAL"))
    return RemoteConfig(
        principal=values["LEGATIA_PRINCIPAL"],
        resilience=resilience
        or ResilienceConfig(
            name="legatia",
            base_url=values["LEGATIA_REMOTE_URL"].rstrip("/"),
            timeout_seconds=REMOTE_TIMEOUT_SECONDS,
            retry=REMOTE_RETRY,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        ),
    )
