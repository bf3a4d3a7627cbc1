"""JSON-over-HTTP channel to the Nootverse actor.

Each actor call is a ``POST <gateway>/<method>`` with body
``{"args": [...]}``. The gateway answers ``{"ok": <value>}`` on success or
``{"err": <reason>}`` when the actor rejects the call. Bigint arguments
(positions) are sent as JSON numbers; bigint results may come back as
decimal strings and are decoded by the store.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from nootverse_client.exceptions import ErrorCode, RejectedError, TransportError
from nootverse_client.remote.channel import ACTOR_METHODS

logger = logging.getLogger(__name__)

# HTTP statuses that mean the credential was not accepted
_AUTH_STATUSES = (401, 403)


class HttpActorChannel:
    """Calls actor methods through a JSON gateway using an httpx AsyncClient."""

    def __init__(
        self,
        base_url: str,
        credential: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the channel.

        Args:
            base_url: Gateway URL; method names are appended to it.
            credential: Opaque credential sent as a bearer token.
            timeout: Per-request timeout in seconds, None for no limit.
            client: Pre-built AsyncClient (tests pass one with a MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self._credential = credential
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def authenticated(self) -> bool:
        return self._credential is not None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._credential:
            headers["Authorization"] = f"Bearer {self._credential}"
        return headers

    async def call(self, method: str, *args: Any) -> Any:
        if method not in ACTOR_METHODS:
            raise RejectedError(f"Unknown actor method '{method}'", method=method)

        url = f"{self.base_url}/{method}"
        try:
            response = await self._client.post(
                url, json={"args": list(args)}, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.warning(f"Transport failure calling {method}: {e}")
            raise TransportError(
                f"Failed to reach the actor for {method}",
                method=method,
                original_error=e,
            ) from e

        if response.status_code in _AUTH_STATUSES:
            raise TransportError(
                f"Credential rejected calling {method}",
                method=method,
                code=ErrorCode.CREDENTIAL_REJECTED,
            )
        if response.status_code >= 500:
            raise TransportError(
                f"Gateway error {response.status_code} calling {method}",
                method=method,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RejectedError(
                f"Malformed reply from {method}",
                method=method,
                reason=response.text,
                code=ErrorCode.MALFORMED_RESPONSE,
            ) from e

        if not isinstance(payload, dict):
            raise RejectedError(
                f"Malformed reply from {method}",
                method=method,
                code=ErrorCode.MALFORMED_RESPONSE,
            )
        if "err" in payload or response.status_code >= 400:
            reason = str(payload.get("err", response.reason_phrase))
            raise RejectedError(f"Actor rejected {method}", method=method, reason=reason)
        if "ok" not in payload:
            raise RejectedError(
                f"Reply from {method} has neither 'ok' nor 'err'",
                method=method,
                code=ErrorCode.MALFORMED_RESPONSE,
            )
        return payload["ok"]

    async def aclose(self) -> None:
        """Close the underlying client if this channel created it."""
        if self._owns_client:
            await self._client.aclose()
