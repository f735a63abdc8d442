"""Redis pool plus best-effort event publishing.

Redis is optional: without ``init_redis`` the rate limiter lets requests
through and ``publish_event`` is a no-op.
"""

import json
from typing import Any

import redis.asyncio as redis
import structlog

logger = structlog.get_logger()

_pool: redis.Redis | None = None


async def init_redis(url: str) -> None:
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the Redis client. Raises RuntimeError when Redis is not initialized."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


def get_optional_redis() -> redis.Redis | None:
    """Redis client or None (FastAPI dependency for services that publish events)."""
    return _pool


async def publish_event(client: Any, channel: str, payload: dict[str, Any]) -> None:  # noqa: ANN401
    """Publish a JSON event on ``pubsub:<channel>``. Failures are logged, never raised."""
    if client is None:
        return
    try:
        await client.publish(f"pubsub:{channel}", json.dumps(payload, default=str))
    except Exception:
        logger.warning("event_publish_failed", channel=channel, exc_info=True)
