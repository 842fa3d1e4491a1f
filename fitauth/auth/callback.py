"""Provider callback validation."""

import secrets
from collections.abc import Mapping

from fitauth.auth.errors import CsrfMismatchError, SessionExpiredError
from fitauth.auth.schemas import TokenExchangeRequest
from fitauth.auth.session import FlowSession


def validate_callback(
    params: Mapping[str, str],
    session: FlowSession | None,
    redirect_uri: str,
) -> TokenExchangeRequest | None:
    """Check a provider callback against the stored flow session.

    Returns None when ``params`` carry no ``code`` (not a callback). Raises
    SessionExpiredError when no verifier is stored and CsrfMismatchError when
    the returned state differs from the stored one. No network call happens
    here.
    """
    code = params.get("code")
    if not code:
        return None

    if session is None or not session.code_verifier:
        raise SessionExpiredError()

    returned_state = params.get("state") or ""
    if not session.state or not secrets.compare_digest(
        session.state.encode(), returned_state.encode()
    ):
        raise CsrfMismatchError()

    return TokenExchangeRequest(
        code=code,
        redirect_uri=redirect_uri,
        code_verifier=session.code_verifier,
    )
