"""Exception hierarchy for the login flow and token exchange relay.

Every error carries an OAuth-style ``error`` code, the HTTP status it renders
with, and a description that is safe to show to the end user.
"""

from __future__ import annotations


class OAuthFlowError(Exception):
    """Base exception for all login flow errors."""

    error = "server_error"
    status_code = 500
    default_description = "An unexpected error occurred"

    def __init__(self, description: str | None = None):
        self.description = description or self.default_description
        super().__init__(self.description)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "error_description": self.description}


class InvalidRequestError(OAuthFlowError):
    """Raised when a relay request is missing required fields."""

    error = "invalid_request"
    status_code = 400
    default_description = "Missing code, redirect_uri, or code_verifier"


class ConfigurationError(OAuthFlowError):
    """Raised when required client settings are absent."""

    error = "server_config"
    status_code = 500
    default_description = "OAuth client is not configured"


class CsrfMismatchError(OAuthFlowError):
    """Raised when the returned state does not match the stored state."""

    error = "csrf_mismatch"
    status_code = 400
    default_description = "State mismatch. Possible CSRF or stale session."


class SessionExpiredError(OAuthFlowError):
    """Raised when the PKCE verifier is missing at callback time."""

    error = "session_expired"
    status_code = 400
    default_description = (
        "Missing PKCE code_verifier in session. Please try logging in again."
    )


class ServerError(OAuthFlowError):
    """Raised for unexpected failures inside the relay."""


class UpstreamTimeoutError(OAuthFlowError):
    """Raised when the provider token endpoint does not answer in time."""

    error = "upstream_timeout"
    status_code = 504
    default_description = "Token endpoint did not respond in time"


class UpstreamTokenError(OAuthFlowError):
    """Raised when the token endpoint (or relay) returns a non-success status.

    ``body`` holds the upstream response verbatim.
    """

    error = "token_error"

    def __init__(self, status_code: int, body: bytes | str = b""):
        self.status_code = status_code
        self.body = body.encode() if isinstance(body, str) else body
        text = self.body.decode(errors="replace")
        super().__init__(f"Token request failed: {status_code} {text}".rstrip())


class FitnessApiError(OAuthFlowError):
    """Raised when the fitness aggregate API call fails."""

    error = "fitness_error"
    status_code = 502
    default_description = "Fitness API request failed"
