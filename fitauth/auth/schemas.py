"""Auth schemas."""

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class OAuthClientConfig(BaseModel):
    """Public OAuth client settings; safe to expose to the browser."""

    model_config = ConfigDict(frozen=True)

    authorization_endpoint: str
    token_endpoint: str
    client_id: str
    redirect_uri: str
    scope: str

    def missing_fields(self) -> list[str]:
        """Names of settings required to start a login that are empty."""
        required = ("authorization_endpoint", "token_endpoint", "client_id")
        return [name for name in required if not getattr(self, name)]


class ConfidentialCredentials(BaseModel):
    """Server-side client credentials. Never sent to the browser."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: SecretStr
    token_endpoint: str


class TokenExchangeRequest(BaseModel):
    """Request body for the token exchange relay.

    Fields are optional so that missing values are reported as
    ``invalid_request`` rather than a schema error.
    """

    model_config = ConfigDict(frozen=True)

    code: str | None = Field(None, description="Authorization code from the provider")
    redirect_uri: str | None = Field(None, description="Redirect URI used in the authorize request")
    code_verifier: str | None = Field(None, description="PKCE code verifier for this flow")

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in ("code", "redirect_uri", "code_verifier")
            if not getattr(self, name)
        ]


class TokenResponse(BaseModel):
    """Provider token response.

    Treated as an opaque payload; only ``access_token`` is read.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str | None = Field(None, description="Bearer token for API calls")
    token_type: str | None = Field(None, description="Token type, usually 'Bearer'")
    expires_in: int | None = Field(None, description="Lifetime of the access token in seconds")
    scope: str | None = Field(None, description="Granted scopes")
    refresh_token: str | None = Field(None, description="Refresh token, if issued")


class ErrorResponse(BaseModel):
    """OAuth-style error body."""

    error: str = Field(..., description="Machine-readable error code")
    error_description: str = Field(..., description="Human-readable description")


class FlowOutcomeResponse(BaseModel):
    """Result of handling a provider callback."""

    status: str = Field(..., description="Flow status after the callback")
    access_token: str | None = Field(None, description="Access token when authenticated")
    error: str | None = Field(None, description="Human-readable failure message")


class StepsResponse(BaseModel):
    """Today's aggregated step count."""

    steps: int = Field(
        ..., description="Total steps for the local calendar day (midnight to 23:59:59.999)"
    )
    start_time_millis: int
    end_time_millis: int
