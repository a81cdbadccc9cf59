"""Database and cluster API clients package."""

from .kubernetes import close_api_client, get_api_client
from .redis import close_redis_connection, get_redis_client, get_redis_pool

__all__ = [
    "get_redis_client",
    "get_redis_pool",
    "close_redis_connection",
    "get_api_client",
    "close_api_client",
]
