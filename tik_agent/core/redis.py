"""
Optional Redis client for the product extraction cache. If redis_url is empty or the
connection fails, returns None and extraction always hits the network.
"""
import logging
from typing import Any

from tik_agent.config import get_settings
from tik_agent.services.product_cache import ProductCache

logger = logging.getLogger(__name__)

_redis_client: Any = None


def get_redis_client() -> Any:
    """Lazy singleton: one Redis client or None if disabled/unavailable."""
    global _redis_client
    if _redis_client is not None:
        return _redis_client
    url = (get_settings().redis_url or "").strip()
    if not url:
        return None
    try:
        from redis import Redis
        client = Redis.from_url(url, decode_responses=True)
        client.ping()
        _redis_client = client
        logger.info("Redis product cache connected: %s", url.split("@")[-1] if "@" in url else url)
        return _redis_client
    except Exception as e:
        logger.warning("Redis unavailable (product cache disabled): %s", e, exc_info=False)
        return None


def get_product_cache() -> ProductCache | None:
    """FastAPI dependency: ProductCache or None if Redis is disabled/down."""
    client = get_redis_client()
    return ProductCache(client) if client else None


def close_redis() -> None:
    """Graceful shutdown: close Redis connection."""
    global _redis_client
    if _redis_client is not None:
        try:
            _redis_client.close()
        except Exception as e:
            logger.warning("Redis close error: %s", e)
        _redis_client = None
