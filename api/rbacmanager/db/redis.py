"""Redis connection for the subject directory."""

from functools import lru_cache

import redis

from rbacmanager.config.settings import settings
from rbacmanager.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_redis_pool() -> redis.ConnectionPool:
    """Shared pool with bounded socket timeouts."""
    return redis.ConnectionPool.from_url(
        settings.redis_url,
        decode_responses=True,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
        health_check_interval=settings.redis_health_check_interval,
    )


@lru_cache(maxsize=1)
def get_redis_client() -> redis.Redis:
    """Client over the shared pool, verified with a ping on first use."""
    client = redis.Redis(connection_pool=get_redis_pool())

    try:
        client.ping()
    except redis.RedisError as e:
        logger.error(f"Subject directory unreachable: {e}")
        raise

    logger.info("Subject directory connected")
    return client


def close_redis_connection():
    """Disconnect the pool if one was ever opened."""
    if not get_redis_pool.cache_info().currsize:
        return
    try:
        get_redis_pool().disconnect()
    except redis.RedisError as e:
        logger.error(f"Error closing Redis pool: {e}")
    finally:
        get_redis_pool.cache_clear()
        get_redis_client.cache_clear()
    logger.info("Redis connection pool closed")
