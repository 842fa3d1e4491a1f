"""Ephemeral per-browser flow session storage.

One browser session (identified by the session cookie) holds at most one
pending flow: the PKCE verifier and the anti-CSRF state. Starting a new login
overwrites it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from fitauth import valkey
from fitauth.auth.pkce import generate_code_verifier, generate_state

logger = logging.getLogger(__name__)

VERIFIER_KEY = "pkce_code_verifier"
STATE_KEY = "oauth_state"


@dataclass(frozen=True)
class FlowSession:
    """Verifier and state for one flow attempt."""

    state: str
    code_verifier: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    failed: bool = False

    @classmethod
    def new(cls) -> FlowSession:
        return cls(state=generate_state(), code_verifier=generate_code_verifier())

    def to_payload(self) -> dict[str, Any]:
        return {
            VERIFIER_KEY: self.code_verifier,
            STATE_KEY: self.state,
            "created_at": self.created_at.isoformat(),
            "failed": self.failed,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> FlowSession | None:
        """Rebuild a session; None when the verifier or state is missing."""
        verifier = payload.get(VERIFIER_KEY)
        state = payload.get(STATE_KEY)
        if not verifier or not state:
            return None
        created_at = payload.get("created_at")
        return cls(
            state=state,
            code_verifier=verifier,
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(UTC),
            failed=bool(payload.get("failed")),
        )


class FlowSessionStore:
    """Flow session management using Valkey."""

    PREFIX = "flow_session:"

    def __init__(self, ttl: int):
        self.ttl = ttl

    def _key(self, session_id: str) -> str:
        return f"{self.PREFIX}{session_id}"

    async def create(self, session_id: str) -> FlowSession:
        """Create a fresh flow session, replacing any in-flight one."""
        session = FlowSession.new()
        await valkey.save_json(self._key(session_id), session.to_payload(), self.ttl)
        logger.debug("Created flow session for browser session %s", session_id[:8])
        return session

    async def get(self, session_id: str) -> FlowSession | None:
        payload = await valkey.load_json(self._key(session_id))
        if payload is None:
            return None
        return FlowSession.from_payload(payload)

    async def fail(self, session_id: str, session: FlowSession) -> None:
        """Mark the attempt failed. The verifier and state are kept for a retry."""
        await valkey.save_json(
            self._key(session_id), replace(session, failed=True).to_payload(), self.ttl
        )

    async def complete(self, session_id: str) -> None:
        """Destroy the session after a successful exchange."""
        await valkey.delete(self._key(session_id))

    async def reset(self, session_id: str) -> None:
        """Clear the stored verifier and state."""
        await valkey.delete(self._key(session_id))
        logger.debug("Reset flow session for browser session %s", session_id[:8])
