"""Confidential token exchange relay.

The browser holds the authorization code and PKCE verifier; this endpoint
adds the client secret and performs the exchange with the provider. Provider
responses, successful or not, are passed back verbatim.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from pydantic import ValidationError

from fitauth.config import get_settings
from fitauth.metrics import record_token_exchange

from .errors import (
    ConfigurationError,
    InvalidRequestError,
    OAuthFlowError,
    ServerError,
    UpstreamTimeoutError,
    UpstreamTokenError,
)
from .rate_limit import limiter
from .schemas import (
    ConfidentialCredentials,
    ErrorResponse,
    TokenExchangeRequest,
    TokenResponse,
)

logger = logging.getLogger(__name__)

settings = get_settings()
router = APIRouter(prefix="/oauth", tags=["oauth"])


@dataclass(frozen=True)
class RelayResponse:
    """Upstream status and body, passed through untouched."""

    status_code: int
    body: bytes
    media_type: str = "application/json"

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class TokenRelay:
    """Performs the authorization code exchange on behalf of the browser."""

    def __init__(
        self,
        credentials: ConfidentialCredentials | None,
        timeout: float = 10.0,
    ):
        self._credentials = credentials
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return self._credentials is not None

    async def exchange(self, request: TokenExchangeRequest) -> RelayResponse:
        """Exchange an authorization code for tokens.

        Raises InvalidRequestError or ConfigurationError before any network
        activity, UpstreamTimeoutError when the provider does not answer in
        time and ServerError for other transport failures.
        """
        if request.missing_fields():
            record_token_exchange("invalid_request")
            raise InvalidRequestError()

        credentials = self._credentials
        if credentials is None:
            record_token_exchange("server_config")
            raise ConfigurationError(
                "Missing GOOGLE_CLIENT_ID or GOOGLE_CLIENT_SECRET env vars"
            )

        form = {
            "grant_type": "authorization_code",
            "code": request.code,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret.get_secret_value(),
            "redirect_uri": request.redirect_uri,
            "code_verifier": request.code_verifier,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    credentials.token_endpoint,
                    data=form,
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException:
            logger.warning(
                "Token endpoint %s timed out after %.1fs",
                credentials.token_endpoint,
                self._timeout,
            )
            record_token_exchange("upstream_timeout")
            raise UpstreamTimeoutError()
        except httpx.RequestError as e:
            logger.error(
                "Token endpoint request to %s failed: %s",
                credentials.token_endpoint,
                type(e).__name__,
            )
            record_token_exchange("server_error")
            raise ServerError("Token endpoint request failed")

        media_type = response.headers.get("content-type", "application/json")
        result = RelayResponse(
            status_code=response.status_code,
            body=response.content,
            media_type=media_type,
        )

        if result.ok:
            logger.info("Token exchange succeeded (status %d)", result.status_code)
            record_token_exchange("success")
        else:
            logger.warning(
                "Token endpoint returned status %d; relaying body", result.status_code
            )
            record_token_exchange("upstream_error")
        return result


@lru_cache
def get_token_relay() -> TokenRelay:
    """Relay built once from process configuration."""
    return TokenRelay(
        credentials=settings.confidential_credentials(),
        timeout=settings.TOKEN_EXCHANGE_TIMEOUT_SECONDS,
    )


class RelayExchanger:
    """Runs the relay exchange in-process for the login flow.

    Non-2xx relay results raise UpstreamTokenError with the provider body.
    """

    def __init__(self, relay: TokenRelay):
        self.relay = relay

    async def exchange(self, request: TokenExchangeRequest) -> TokenResponse:
        result = await self.relay.exchange(request)
        if not result.ok:
            raise UpstreamTokenError(result.status_code, result.body)
        try:
            return TokenResponse.model_validate_json(result.body)
        except ValueError:
            raise ServerError("Token endpoint returned a malformed token response")


@router.post(
    "/token",
    responses={
        400: {"model": ErrorResponse, "description": "Missing request fields"},
        500: {"model": ErrorResponse, "description": "Server configuration or internal error"},
        504: {"model": ErrorResponse, "description": "Token endpoint timed out"},
    },
)
@limiter.limit("30/minute")
async def token_exchange(
    request: Request,
    relay: TokenRelay = Depends(get_token_relay),
):
    """Exchange ``{code, redirect_uri, code_verifier}`` for provider tokens.

    The provider's status code and body are returned as-is, including
    provider error vocabularies such as ``invalid_grant``.
    """
    raw = await request.body()
    try:
        body = TokenExchangeRequest.model_validate_json(raw or b"{}")
    except ValidationError:
        record_token_exchange("server_error")
        raise ServerError("Malformed request body")

    try:
        result = await relay.exchange(body)
    except OAuthFlowError:
        raise
    except Exception:
        logger.exception("Unexpected token exchange failure")
        record_token_exchange("server_error")
        raise ServerError()

    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=result.media_type,
    )
