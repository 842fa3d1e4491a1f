"""Browser-facing login routes."""

import secrets

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from fitauth.config import get_settings

from .flow import FlowController, FlowStatus, get_flow_controller
from .rate_limit import limiter
from .schemas import FlowOutcomeResponse

settings = get_settings()
router = APIRouter(tags=["auth"])


def _session_id(request: Request) -> str | None:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


@router.get("/login")
@limiter.limit("10/minute")
async def login(
    request: Request,
    controller: FlowController = Depends(get_flow_controller),
):
    """Start the OAuth flow with PKCE and redirect to the provider."""
    session_id = _session_id(request) or secrets.token_urlsafe(32)

    authorization = await controller.start_login(session_id)

    response = RedirectResponse(url=authorization.to_url())
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        session_id,
        max_age=settings.FLOW_SESSION_TTL,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.get("/", response_model=FlowOutcomeResponse, response_model_exclude_none=True)
async def callback(
    request: Request,
    controller: FlowController = Depends(get_flow_controller),
):
    """Landing page and redirect URI.

    With a ``code`` query parameter this completes the flow; otherwise it
    reports the current flow status: ``idle``, ``awaiting_callback``, or
    ``failed`` after an unsuccessful callback (the attempt can still be
    retried until the session expires or is reset).
    """
    session_id = _session_id(request)
    outcome = await controller.handle_callback(session_id, request.query_params)

    if outcome is None:
        status = await controller.status(session_id) if session_id else FlowStatus.IDLE
        return JSONResponse(
            content={"status": status, "redirect_uri": controller.config.redirect_uri}
        )

    return FlowOutcomeResponse(
        status=outcome.status,
        access_token=outcome.access_token,
        error=outcome.error,
    )


@router.post("/reset", response_model=FlowOutcomeResponse, response_model_exclude_none=True)
async def reset(
    request: Request,
    controller: FlowController = Depends(get_flow_controller),
):
    """Clear the stored verifier and state for this browser session."""
    session_id = _session_id(request)
    if session_id:
        await controller.reset(session_id)
    return FlowOutcomeResponse(status=FlowStatus.IDLE)
