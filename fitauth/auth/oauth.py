"""Authorization request construction."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

CODE_CHALLENGE_METHOD = "S256"


def build_authorize_url(
    endpoint: str,
    client_id: str,
    redirect_uri: str,
    scope: str,
    code_challenge: str,
    state: str,
) -> str:
    """Get the provider authorization URL for a PKCE authorization code flow.

    Query parameters already present on ``endpoint`` are kept; the flow
    parameters replace any of the same name.
    """
    parts = urlsplit(endpoint)
    params = dict(parse_qsl(parts.query, keep_blank_values=True))
    params.update(
        {
            "response_type": "code",
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "scope": scope,
            "code_challenge": code_challenge,
            "code_challenge_method": CODE_CHALLENGE_METHOD,
            "state": state,
        }
    )
    return urlunsplit(parts._replace(query=urlencode(params)))


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters for one flow attempt."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    scope: str
    code_challenge: str
    state: str
    code_challenge_method: str = CODE_CHALLENGE_METHOD

    def to_url(self) -> str:
        return build_authorize_url(
            self.authorization_endpoint,
            self.client_id,
            self.redirect_uri,
            self.scope,
            self.code_challenge,
            self.state,
        )
