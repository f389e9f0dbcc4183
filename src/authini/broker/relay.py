"""
Relay session issuer.

Alternative to `LocalSessionIssuer`: session start is forwarded to a remote
authorization service, which owns code exchange and profile retrieval. The two issuers
are mutually exclusive; the application selects one at startup. Availability and
latency of session start are tied to the remote service, and failures are not retried.
"""
import asyncio
import json
import logging
from typing import Any, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from authini.broker.errors import ConfigurationError, UpstreamError
from authini.broker.sessions import SessionRequest

logger = logging.getLogger(__name__)


class RelaySessionIssuer:
    def __init__(
        self,
        http_session: ClientSession,
        url: Optional[str],
        token: Optional[str],
        timeout: float = 10.0,
    ) -> None:
        if not token:
            raise ConfigurationError("relay_token must be set when session_backend is relay")
        if not url:
            raise ConfigurationError("relay_url must be set when session_backend is relay")
        self.http_session = http_session
        self.url = url
        self.token = token
        self.timeout = ClientTimeout(total=timeout)

    async def issue(self, request: SessionRequest) -> str:
        body = {
            "client_id": request.client_id,
            "user_id": request.person_id,
            "expires_in_min": request.expires_in_min,
            "attributes": request.profile,
        }
        headers = {"Authorization": f"Bearer {self.token}"}

        try:
            async with self.http_session.post(
                self.url, json=body, headers=headers, timeout=self.timeout
            ) as resp:
                status = resp.status
                raw = await resp.read()
        except (ClientError, asyncio.TimeoutError) as e:
            logger.exception("relay: request to authorization service failed")
            raise UpstreamError.transport(e) from e

        if status != 200:
            raise UpstreamError.unexpected_status(
                status, raw.decode("utf-8", errors="replace")
            )

        try:
            data: Any = json.loads(raw)
        except ValueError as e:
            raise UpstreamError.malformed_response(str(e)) from e

        code = data.get("code") if isinstance(data, dict) else None
        if not isinstance(code, str) or len(code) == 0:
            raise UpstreamError.malformed_response("missing code")

        logger.info(
            "Relayed session for person %d and client %s",
            request.person_id,
            request.client_id,
        )
        return code
