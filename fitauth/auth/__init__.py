from .errors import (
    ConfigurationError,
    CsrfMismatchError,
    InvalidRequestError,
    OAuthFlowError,
    ServerError,
    SessionExpiredError,
    UpstreamTimeoutError,
    UpstreamTokenError,
)
from .oauth import AuthorizationRequest, build_authorize_url
from .pkce import generate_code_challenge, generate_code_verifier, generate_state

__all__ = [
    "AuthorizationRequest",
    "build_authorize_url",
    "generate_code_challenge",
    "generate_code_verifier",
    "generate_state",
    "OAuthFlowError",
    "ConfigurationError",
    "CsrfMismatchError",
    "InvalidRequestError",
    "ServerError",
    "SessionExpiredError",
    "UpstreamTimeoutError",
    "UpstreamTokenError",
]
