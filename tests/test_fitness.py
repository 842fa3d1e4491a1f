"""Tests for the Google Fit steps client and route."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from httpx import AsyncClient

from fitauth.fitness.client import day_bounds_millis, sum_step_points

AGGREGATE_URL = "https://www.googleapis.com/fitness/v1/users/me/dataset:aggregate"

AGGREGATE_RESPONSE = {
    "bucket": [
        {
            "startTimeMillis": "1700000000000",
            "dataset": [
                {
                    "dataSourceId": "derived:com.google.step_count.delta",
                    "point": [
                        {"value": [{"intVal": 1200, "mapVal": []}]},
                        {"value": [{"intVal": 345, "mapVal": []}]},
                    ],
                },
                {"dataSourceId": "empty", "point": []},
            ],
        },
        {"dataset": [{"point": [{"value": []}, {"value": [{"fpVal": 1.5}]}]}]},
    ]
}


def test_sum_step_points():
    assert sum_step_points(AGGREGATE_RESPONSE) == 1545


def test_sum_step_points_empty():
    assert sum_step_points({}) == 0
    assert sum_step_points({"bucket": [{"dataset": None}]}) == 0


def test_day_bounds_millis():
    tz = timezone(timedelta(hours=9))
    now = datetime(2024, 3, 10, 15, 30, tzinfo=tz)

    start, end = day_bounds_millis(now)

    assert start == int(datetime(2024, 3, 10, tzinfo=tz).timestamp() * 1000)
    assert end - start == 86_400_000 - 1


@pytest.mark.asyncio
async def test_today_steps(client: AsyncClient, respx_mock):
    route = respx_mock.post(AGGREGATE_URL).mock(
        return_value=httpx.Response(200, json=AGGREGATE_RESPONSE)
    )

    response = await client.get(
        "/api/v1/fitness/steps/today",
        params={"tz": "UTC"},
        headers={"Authorization": "Bearer ya29.test"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["steps"] == 1545
    assert data["end_time_millis"] - data["start_time_millis"] == 86_400_000 - 1
    assert route.calls.last.request.headers["authorization"] == "Bearer ya29.test"


@pytest.mark.asyncio
async def test_today_steps_requires_token(client: AsyncClient):
    response = await client.get("/api/v1/fitness/steps/today")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_today_steps_unknown_timezone(client: AsyncClient):
    response = await client.get(
        "/api/v1/fitness/steps/today",
        params={"tz": "Mars/Olympus_Mons"},
        headers={"Authorization": "Bearer ya29.test"},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_today_steps_upstream_error(client: AsyncClient, respx_mock):
    respx_mock.post(AGGREGATE_URL).mock(
        return_value=httpx.Response(403, json={"error": {"message": "insufficient scopes"}})
    )

    response = await client.get(
        "/api/v1/fitness/steps/today",
        headers={"Authorization": "Bearer ya29.test"},
    )

    assert response.status_code == 502
    data = response.json()
    assert data["error"] == "fitness_error"
    assert data["error_description"].startswith("Google Fit error 403")


@pytest.mark.asyncio
async def test_today_steps_malformed_response(client: AsyncClient, respx_mock):
    respx_mock.post(AGGREGATE_URL).mock(
        return_value=httpx.Response(200, content=b"<html>not json</html>")
    )

    response = await client.get(
        "/api/v1/fitness/steps/today",
        headers={"Authorization": "Bearer ya29.test"},
    )

    assert response.status_code == 502
    assert response.json() == {
        "error": "fitness_error",
        "error_description": "Fitness API returned a malformed response",
    }


@pytest.mark.asyncio
async def test_steps_schema_describes_whole_day(client: AsyncClient):
    response = await client.get("/openapi.json")

    steps = response.json()["components"]["schemas"]["StepsResponse"]["properties"]["steps"]
    assert "calendar day" in steps["description"]
    assert "now" not in steps["description"]
