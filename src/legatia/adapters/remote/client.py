"""HTTP backend for the remote call surface."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from legatia.adapters.http_resilience import ResilientClient
from legatia.config.remote import PRINCIPAL_HEADER, RemoteConfig, get_remote_config

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from legatia.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

RPC_PATH_PREFIX = "/rpc/"


class RemoteResponseError(RuntimeError):
    """Raised when the remote end answers with something that is not an envelope."""


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _decode_envelope(payload: object) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise RemoteResponseError("Unexpected remote response payload")
    envelope = cast(dict[str, Any], payload)
    if ("ok" in envelope) == ("err" in envelope):
        raise RemoteResponseError("Remote response must carry exactly one of ok or err")
    return envelope


@dataclass(slots=True)
class HttpRemoteBackend:
    """``POST <base_url>/rpc/<method>`` with the caller identity in a header."""

    config: RemoteConfig = field(default_factory=get_remote_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    @property
    def principal(self) -> str:
        return self.config.principal

    def call(self, method: str, body: Mapping[str, Any]) -> dict[str, Any]:
        return asyncio.run(self._call_async(method, body))

    async def _call_async(self, method: str, body: Mapping[str, Any]) -> dict[str, Any]:
        async with self.client_factory(self.config.resilience) as client:
            response = await client.post(
                f"{RPC_PATH_PREFIX}{method}",
                json=dict(body),
                headers={PRINCIPAL_HEADER: self.config.principal},
            )
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            log.warning("Undecodable response for %s: %s", method, exc)
            raise RemoteResponseError("Remote response is not valid JSON") from exc
        return _decode_envelope(payload)
