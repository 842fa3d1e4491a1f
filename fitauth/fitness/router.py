"""Fitness data routes."""

from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fitauth.auth.schemas import StepsResponse
from fitauth.config import get_settings

from .client import GoogleFitClient, day_bounds_millis

settings = get_settings()
router = APIRouter(prefix="/fitness", tags=["fitness"])
bearer = HTTPBearer(auto_error=False)


@lru_cache
def get_fitness_client() -> GoogleFitClient:
    return GoogleFitClient(settings.FITNESS_AGGREGATE_URL)


@router.get("/steps/today", response_model=StepsResponse)
async def today_steps(
    tz: str | None = Query(None, description="IANA time zone for 'today'; server local time by default"),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    client: GoogleFitClient = Depends(get_fitness_client),
):
    """Aggregate today's step count using the caller's access token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No access token. Please log in first.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        now = datetime.now(ZoneInfo(tz)) if tz else datetime.now().astimezone()
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=400, detail=f"Unknown time zone: {tz}")

    start, end = day_bounds_millis(now)
    steps = await client.get_steps(credentials.credentials, start, end)
    return StepsResponse(steps=steps, start_time_millis=start, end_time_millis=end)
