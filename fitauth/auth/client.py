"""Client side of the token exchange relay."""

from __future__ import annotations

import logging

import httpx

from .errors import ServerError, UpstreamTimeoutError, UpstreamTokenError
from .schemas import TokenExchangeRequest, TokenResponse

logger = logging.getLogger(__name__)


class RelayClient:
    """Posts ``{code, redirect_uri, code_verifier}`` to the relay endpoint.

    This is the public-client half of the exchange: it never sees the client
    secret.
    """

    def __init__(
        self,
        relay_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.relay_url = relay_url
        self._timeout = timeout
        self._transport = transport

    async def exchange(self, request: TokenExchangeRequest) -> TokenResponse:
        """Exchange the authorization code through the relay.

        Raises UpstreamTokenError carrying the relay's status and body when
        the relay answers with a non-2xx status.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.relay_url,
                    json=request.model_dump(),
                )
        except httpx.TimeoutException:
            raise UpstreamTimeoutError("Token relay did not respond in time")
        except httpx.RequestError as e:
            logger.error("Token relay request failed: %s", type(e).__name__)
            raise ServerError("Token relay is unreachable")

        if not response.is_success:
            logger.warning("Token relay returned status %d", response.status_code)
            raise UpstreamTokenError(response.status_code, response.content)

        try:
            return TokenResponse.model_validate(response.json())
        except ValueError:
            raise ServerError("Token relay returned a malformed token response")
