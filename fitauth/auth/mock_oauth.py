"""Mock OAuth provider for development and testing.

Enable by setting MOCK_OAUTH_ENABLED=1 environment variable.
The authorize and token endpoints behave like a PKCE-enforcing provider so
the whole login flow can run without real credentials.
"""

import logging
import secrets
from urllib.parse import parse_qsl, urlencode

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from fitauth import valkey
from fitauth.config import get_settings

from .pkce import verify_code_challenge

logger = logging.getLogger(__name__)

settings = get_settings()
router = APIRouter(prefix="/mock/oauth", tags=["mock"])

CODE_PREFIX = "mock_oauth_code:"
CODE_TTL = 60
ACCESS_TOKEN_LIFETIME_SECONDS = 3599


def is_mock_oauth_enabled() -> bool:
    """Check if mock OAuth is enabled."""
    return settings.MOCK_OAUTH_ENABLED


def _oauth_error(error: str, description: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "error_description": description},
    )


@router.get("/authorize")
async def authorize(
    response_type: str = "",
    client_id: str = "",
    redirect_uri: str = "",
    scope: str = "",
    state: str = "",
    code_challenge: str = "",
    code_challenge_method: str = "",
):
    """Approve the request immediately and redirect back with a code."""
    if client_id != settings.GOOGLE_CLIENT_ID or not redirect_uri:
        return _oauth_error("invalid_client", "Unknown client or missing redirect_uri")

    def redirect_error(error: str, description: str) -> RedirectResponse:
        query = urlencode({"error": error, "error_description": description, "state": state})
        return RedirectResponse(url=f"{redirect_uri}?{query}")

    if response_type != "code":
        return redirect_error("unsupported_response_type", "Only 'code' is supported")
    if not code_challenge or code_challenge_method != "S256":
        return redirect_error("invalid_request", "PKCE with S256 is required")

    code = secrets.token_urlsafe(24)
    await valkey.save_json(
        f"{CODE_PREFIX}{code}",
        {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "scope": scope,
            "code_challenge": code_challenge,
        },
        CODE_TTL,
    )
    logger.info("Mock provider issued authorization code for client %s", client_id)
    return RedirectResponse(url=f"{redirect_uri}?{urlencode({'code': code, 'state': state})}")


@router.post("/token")
async def token(request: Request):
    """Redeem a mock authorization code (one-time use, PKCE verified)."""
    form = dict(parse_qsl((await request.body()).decode()))

    if form.get("grant_type") != "authorization_code":
        return _oauth_error("unsupported_grant_type", "Only authorization_code is supported")
    if form.get("client_id") != settings.GOOGLE_CLIENT_ID or not secrets.compare_digest(
        form.get("client_secret", "").encode(), settings.GOOGLE_CLIENT_SECRET.encode()
    ):
        return _oauth_error("invalid_client", "Client authentication failed", 401)

    record = await valkey.pop_json(f"{CODE_PREFIX}{form.get('code', '')}")
    if record is None:
        return _oauth_error("invalid_grant", "Malformed auth code.")
    if record["redirect_uri"] != form.get("redirect_uri"):
        return _oauth_error("invalid_grant", "redirect_uri mismatch")
    if not verify_code_challenge(form.get("code_verifier", ""), record["code_challenge"]):
        return _oauth_error("invalid_grant", "Missing code verifier.")

    return {
        "access_token": f"mock-{secrets.token_urlsafe(24)}",
        "token_type": "Bearer",
        "expires_in": ACCESS_TOKEN_LIFETIME_SECONDS,
        "scope": record["scope"],
    }
