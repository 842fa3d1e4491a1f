"""Google Fit aggregate API client."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import Any

import httpx

from fitauth.auth.errors import FitnessApiError

logger = logging.getLogger(__name__)

STEP_COUNT_DATA_TYPE = "com.google.step_count.delta"
DAY_MILLIS = 86_400_000


def day_bounds_millis(now: datetime) -> tuple[int, int]:
    """Start and end of ``now``'s calendar day in epoch milliseconds."""
    start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    end = start + timedelta(days=1) - timedelta(milliseconds=1)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000)


def sum_step_points(data: dict[str, Any]) -> int:
    """Sum integer step values across all buckets, datasets and points."""
    steps = 0
    for bucket in data.get("bucket") or []:
        for dataset in bucket.get("dataset") or []:
            for point in dataset.get("point") or []:
                values = point.get("value") or []
                if not values:
                    continue
                value = values[0].get("intVal")
                if isinstance(value, int) and not isinstance(value, bool):
                    steps += value
    return steps


class GoogleFitClient:
    """Reads aggregated activity data with a bearer token."""

    def __init__(self, aggregate_url: str, timeout: float = 10.0):
        self.aggregate_url = aggregate_url
        self._timeout = timeout

    async def get_steps(self, access_token: str, start_millis: int, end_millis: int) -> int:
        """Total steps between the two instants."""
        body = {
            "aggregateBy": [{"dataTypeName": STEP_COUNT_DATA_TYPE}],
            "bucketByTime": {"durationMillis": DAY_MILLIS},
            "startTimeMillis": start_millis,
            "endTimeMillis": end_millis,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self.aggregate_url,
                    json=body,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.RequestError as e:
            logger.error("Fitness API request failed: %s", type(e).__name__)
            raise FitnessApiError()

        if response.status_code != 200:
            raise FitnessApiError(
                f"Google Fit error {response.status_code}: {response.text[:500]}"
            )
        try:
            data = response.json()
        except ValueError:
            raise FitnessApiError("Fitness API returned a malformed response")
        return sum_step_points(data)
