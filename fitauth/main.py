"""fitauth - Main application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from fitauth import __version__
from fitauth.auth import OAuthFlowError
from fitauth.auth.mock_oauth import is_mock_oauth_enabled
from fitauth.auth.mock_oauth import router as mock_oauth_router
from fitauth.auth.rate_limit import limiter
from fitauth.auth.relay import router as relay_router
from fitauth.auth.router import router as auth_router
from fitauth.config import get_settings
from fitauth.fitness import router as fitness_router
from fitauth.metrics import router as metrics_router
from fitauth.valkey import close_valkey

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    if settings.confidential_credentials() is None:
        logger.warning(
            "GOOGLE_CLIENT_ID or GOOGLE_CLIENT_SECRET is not set; "
            "token exchange requests will be rejected"
        )
    yield
    # Cleanup on shutdown
    await close_valkey()


app = FastAPI(
    title="fitauth",
    description="""
## PKCE Login with a Token Exchange Relay

Signs a browser user in with an OAuth 2.0 provider (Google by default) using
the Authorization Code flow with PKCE, while the client secret stays on the
server.

### Authentication Flow

1. Open `/login` to start the flow; the browser is redirected to the provider
2. The provider redirects back to `/` with `code` and `state`
3. State and the stored PKCE verifier are checked, then the code is exchanged
   by the relay (also exposed to browsers at `POST /oauth/token`)
4. Use the returned `access_token` in an `Authorization: Bearer <token>` header,
   e.g. for `/api/v1/fitness/steps/today`
5. `POST /reset` discards the pending flow

### Development Mode

Set `MOCK_OAUTH_ENABLED=1` to use the built-in mock provider instead of Google.
    """,
    version=__version__,
    lifespan=lifespan,
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT",
    },
)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(OAuthFlowError)
async def oauth_flow_error_handler(request: Request, exc: OAuthFlowError):
    """Render flow errors as OAuth-style JSON bodies."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(auth_router)
app.include_router(relay_router)

API_PREFIX = "/api/v1"
app.include_router(fitness_router, prefix=API_PREFIX)

# Metrics at root level (for Prometheus scraping)
app.include_router(metrics_router)

if is_mock_oauth_enabled():
    app.include_router(mock_oauth_router)


@app.get("/about")
async def about():
    """Service metadata."""
    return {
        "name": "fitauth",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
