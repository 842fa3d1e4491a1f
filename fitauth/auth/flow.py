"""Login flow controller.

Drives one PKCE flow attempt per browser session::

    idle -> awaiting_redirect -> awaiting_callback -> validating
         -> exchanging -> authenticated | failed

``authenticated`` and ``failed`` are terminal for the attempt; ``reset``
returns to ``idle``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from typing import Protocol

from fitauth.config import get_settings
from fitauth.metrics import record_flow_outcome

from .callback import validate_callback
from .client import RelayClient
from .errors import ConfigurationError, OAuthFlowError
from .oauth import AuthorizationRequest
from .pkce import generate_code_challenge
from .relay import RelayExchanger, get_token_relay
from .schemas import OAuthClientConfig, TokenExchangeRequest, TokenResponse
from .session import FlowSession, FlowSessionStore

logger = logging.getLogger(__name__)

settings = get_settings()


class FlowStatus(StrEnum):
    """States of a single login attempt."""

    IDLE = "idle"
    AWAITING_REDIRECT = "awaiting_redirect"
    AWAITING_CALLBACK = "awaiting_callback"
    VALIDATING = "validating"
    EXCHANGING = "exchanging"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class TokenExchanger(Protocol):
    async def exchange(self, request: TokenExchangeRequest) -> TokenResponse: ...


@dataclass(frozen=True)
class FlowOutcome:
    """Result of handling a provider callback."""

    status: FlowStatus
    token: TokenResponse | None = None
    error: str | None = None

    @property
    def access_token(self) -> str | None:
        return self.token.access_token if self.token else None


class FlowController:
    """Owns the flow session lifecycle for browser sessions."""

    def __init__(
        self,
        config: OAuthClientConfig,
        store: FlowSessionStore,
        exchanger: TokenExchanger,
    ):
        self.config = config
        self.store = store
        self.exchanger = exchanger

    async def status(self, session_id: str) -> FlowStatus:
        """Status of the stored attempt for this browser session.

        A failed attempt keeps its verifier, so a retried callback may still
        succeed; until then it reports ``failed``.
        """
        session = await self.store.get(session_id)
        if session is None:
            return FlowStatus.IDLE
        if session.failed:
            return FlowStatus.FAILED
        return FlowStatus.AWAITING_CALLBACK

    def _transition(self, session_id: str, status: FlowStatus) -> None:
        logger.debug("Flow %s -> %s", session_id[:8], status)

    async def start_login(self, session_id: str) -> AuthorizationRequest:
        """Create a flow session and build the authorization request.

        Any in-flight flow for the same browser session is overwritten.
        """
        missing = self.config.missing_fields()
        if missing:
            raise ConfigurationError(
                f"Please configure {', '.join(name.upper() for name in missing)}"
            )

        session = await self.store.create(session_id)
        self._transition(session_id, FlowStatus.AWAITING_REDIRECT)

        request = AuthorizationRequest(
            authorization_endpoint=self.config.authorization_endpoint,
            client_id=self.config.client_id,
            redirect_uri=self.config.redirect_uri,
            scope=self.config.scope,
            code_challenge=generate_code_challenge(session.code_verifier),
            state=session.state,
        )
        self._transition(session_id, FlowStatus.AWAITING_CALLBACK)
        logger.info("Starting login flow for client %s", self.config.client_id)
        return request

    async def handle_callback(
        self, session_id: str | None, params: Mapping[str, str]
    ) -> FlowOutcome | None:
        """Validate a provider callback and exchange the code.

        Returns None when ``params`` are not a callback. Failures are
        reported as a failed outcome with a single message; nothing is
        retried.
        """
        if not params.get("code"):
            return None

        sid = session_id or ""
        self._transition(sid, FlowStatus.VALIDATING)
        session: FlowSession | None = None
        try:
            session = await self.store.get(sid) if sid else None
            exchange_request = validate_callback(params, session, self.config.redirect_uri)
            if exchange_request is None:
                return None

            self._transition(sid, FlowStatus.EXCHANGING)
            token = await self.exchanger.exchange(exchange_request)
            if not token.access_token:
                raise OAuthFlowError("Token response did not include an access_token")
        except OAuthFlowError as e:
            logger.warning("Login flow failed: %s", e.error)
            if session is not None:
                await self.store.fail(sid, session)
            self._transition(sid, FlowStatus.FAILED)
            record_flow_outcome(FlowStatus.FAILED)
            return FlowOutcome(status=FlowStatus.FAILED, error=e.description)

        await self.store.complete(sid)
        self._transition(sid, FlowStatus.AUTHENTICATED)
        record_flow_outcome(FlowStatus.AUTHENTICATED)
        logger.info("Login flow completed")
        return FlowOutcome(status=FlowStatus.AUTHENTICATED, token=token)

    async def reset(self, session_id: str) -> None:
        """Discard the flow session and return to idle."""
        await self.store.reset(session_id)
        self._transition(session_id, FlowStatus.IDLE)


@lru_cache
def get_flow_controller() -> FlowController:
    """Controller wired to the local relay, or to a remote one when RELAY_URL is set."""
    exchanger: TokenExchanger
    if settings.RELAY_URL:
        exchanger = RelayClient(
            settings.RELAY_URL,
            timeout=settings.TOKEN_EXCHANGE_TIMEOUT_SECONDS + 5,
        )
    else:
        exchanger = RelayExchanger(get_token_relay())
    return FlowController(
        config=settings.oauth_client_config(),
        store=FlowSessionStore(ttl=settings.FLOW_SESSION_TTL),
        exchanger=exchanger,
    )
