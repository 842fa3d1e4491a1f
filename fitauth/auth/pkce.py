"""PKCE (Proof Key for Code Exchange) implementation."""

import base64
import hashlib
import secrets

VERIFIER_BYTES = 32
STATE_BYTES = 16


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    """Generate a cryptographically random code verifier (43 characters)."""
    return _b64url(secrets.token_bytes(VERIFIER_BYTES))


def generate_code_challenge(code_verifier: str) -> str:
    """Generate code challenge from code verifier using S256 method."""
    digest = hashlib.sha256(code_verifier.encode()).digest()
    return _b64url(digest)


def generate_state() -> str:
    """Generate an anti-CSRF state token, independent of the verifier."""
    return _b64url(secrets.token_bytes(STATE_BYTES))


def verify_code_challenge(code_verifier: str, code_challenge: str) -> bool:
    """Verify that code_verifier matches code_challenge."""
    expected = generate_code_challenge(code_verifier)
    return secrets.compare_digest(expected, code_challenge)
