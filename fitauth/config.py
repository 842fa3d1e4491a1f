"""Application configuration."""

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import SecretStr

from fitauth.auth.schemas import ConfidentialCredentials, OAuthClientConfig

ENV_FILE = Path(os.getenv("FITAUTH_ENV_FILE", ".env"))

GOOGLE_SCOPE = (
    "openid profile email "
    "https://www.googleapis.com/auth/fitness.activity.read "
    "https://www.googleapis.com/auth/fitness.body.read"
)


def load_env_file(path: Path) -> None:
    """Load a .env file into os.environ without overriding existing values."""
    if path.is_file():
        load_dotenv(path, override=False)


load_env_file(ENV_FILE)


def read_secret(name: str, default: str = "") -> str:
    """Read secret from Docker secrets or environment variable."""
    secret_path = f"/run/secrets/{name}"
    if os.path.exists(secret_path):
        with open(secret_path) as f:
            return f.read().strip()
    return os.getenv(name.upper(), default)


def _flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings."""

    # Environment
    TESTING: bool = _flag("TESTING")
    MOCK_OAUTH_ENABLED: bool = _flag("MOCK_OAUTH_ENABLED")

    # URLs
    API_URL: str = os.getenv("API_URL", "http://localhost:3001")

    # Valkey (Redis-compatible)
    VALKEY_URL: str = os.getenv("VALKEY_URL", "redis://localhost:6379/0")

    # Flow session lifetime (seconds)
    FLOW_SESSION_TTL: int = int(os.getenv("FLOW_SESSION_TTL", "600"))
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "fitauth_sid")
    SESSION_COOKIE_SECURE: bool = _flag("SESSION_COOKIE_SECURE")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = _flag("RATE_LIMIT_ENABLED", "1") and not TESTING
    RATE_LIMIT_PER_MINUTE: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "20"))
    RATE_LIMIT_STORAGE_URI: str = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

    # OAuth - Google
    GOOGLE_AUTHORIZATION_ENDPOINT: str = os.getenv(
        "GOOGLE_AUTHORIZATION_ENDPOINT",
        f"{API_URL}/mock/oauth/authorize"
        if MOCK_OAUTH_ENABLED
        else "https://accounts.google.com/o/oauth2/v2/auth",
    )
    GOOGLE_TOKEN_ENDPOINT: str = os.getenv(
        "GOOGLE_TOKEN_ENDPOINT",
        f"{API_URL}/mock/oauth/token"
        if MOCK_OAUTH_ENABLED
        else "https://oauth2.googleapis.com/token",
    )
    GOOGLE_CLIENT_ID: str = read_secret("google_client_id", "")
    GOOGLE_CLIENT_SECRET: str = read_secret("google_client_secret", "")
    OAUTH_REDIRECT_URI: str = os.getenv("OAUTH_REDIRECT_URI", f"{API_URL}/")
    OAUTH_SCOPE: str = os.getenv("OAUTH_SCOPE", GOOGLE_SCOPE)

    # Token exchange relay; empty runs the exchange in-process
    RELAY_URL: str = os.getenv("RELAY_URL", "")
    TOKEN_EXCHANGE_TIMEOUT_SECONDS: float = float(
        os.getenv("TOKEN_EXCHANGE_TIMEOUT_SECONDS", "10")
    )

    # Google Fit
    FITNESS_AGGREGATE_URL: str = os.getenv(
        "FITNESS_AGGREGATE_URL",
        "https://www.googleapis.com/fitness/v1/users/me/dataset:aggregate",
    )

    # CORS
    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", API_URL).split(",")

    def oauth_client_config(self) -> OAuthClientConfig:
        """Public client settings used to build authorization requests."""
        return OAuthClientConfig(
            authorization_endpoint=self.GOOGLE_AUTHORIZATION_ENDPOINT,
            token_endpoint=self.GOOGLE_TOKEN_ENDPOINT,
            client_id=self.GOOGLE_CLIENT_ID,
            redirect_uri=self.OAUTH_REDIRECT_URI,
            scope=self.OAUTH_SCOPE,
        )

    def confidential_credentials(self) -> ConfidentialCredentials | None:
        """Server-side credentials, or None when client id or secret is unset."""
        if not self.GOOGLE_CLIENT_ID or not self.GOOGLE_CLIENT_SECRET:
            return None
        return ConfidentialCredentials(
            client_id=self.GOOGLE_CLIENT_ID,
            client_secret=SecretStr(self.GOOGLE_CLIENT_SECRET),
            token_endpoint=self.GOOGLE_TOKEN_ENDPOINT,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
