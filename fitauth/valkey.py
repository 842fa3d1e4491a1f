"""Valkey (Redis-compatible) client for ephemeral flow state."""

import json
from typing import Any

import redis.asyncio as redis

from fitauth.config import get_settings

settings = get_settings()

# Global connection pool
_pool: redis.ConnectionPool | None = None


async def get_valkey() -> redis.Redis:
    """Get Valkey client with connection pooling."""
    global _pool
    if _pool is None:
        _pool = redis.ConnectionPool.from_url(
            settings.VALKEY_URL,
            decode_responses=True,
        )
    return redis.Redis(connection_pool=_pool)


async def close_valkey():
    """Close Valkey connection pool."""
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None


async def save_json(key: str, data: dict[str, Any], ttl: int) -> None:
    """Save a JSON document with TTL."""
    client = await get_valkey()
    await client.setex(key, ttl, json.dumps(data))


async def load_json(key: str) -> dict[str, Any] | None:
    """Load a JSON document, or None if absent or expired."""
    client = await get_valkey()
    data = await client.get(key)
    if data:
        return json.loads(data)
    return None


async def pop_json(key: str) -> dict[str, Any] | None:
    """Get and delete a JSON document (one-time use)."""
    client = await get_valkey()

    # Get and delete atomically using pipeline
    pipe = client.pipeline()
    pipe.get(key)
    pipe.delete(key)
    results = await pipe.execute()

    data = results[0]
    if data:
        return json.loads(data)
    return None


async def delete(key: str) -> None:
    client = await get_valkey()
    await client.delete(key)
