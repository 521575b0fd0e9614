"""
Redis cache for product extraction results. Cache-Aside: only successful (non-fallback)
extractions are stored, keyed by a hash of the URL.
All Redis errors are handled internally; never raise to caller. System works if Redis is down.
"""
import hashlib
import json
import logging
from typing import Any

from tik_agent.config import get_settings
from tik_agent.services.product_extractor import ExtractedProduct, ExtractionSource

logger = logging.getLogger(__name__)

PRODUCT_KEY_PREFIX = "product:"


def _key(url: str) -> str:
    return f"{PRODUCT_KEY_PREFIX}{hashlib.sha256(url.encode()).hexdigest()[:32]}"


class ProductCache:
    """Sync Redis cache for extracted products. Methods return None / no-op on Redis failure."""

    def __init__(self, redis_client: Any, ttl_seconds: int | None = None):
        self._redis = redis_client
        self._ttl = ttl_seconds or get_settings().product_cache_ttl_seconds

    def get(self, url: str) -> ExtractedProduct | None:
        if not self._redis:
            return None
        try:
            raw = self._redis.get(_key(url))
            if not raw:
                return None
            s = raw.decode() if isinstance(raw, bytes) else raw
            return ExtractedProduct.from_dict(json.loads(s))
        except Exception as e:
            logger.warning("Product cache get failed for %s: %s", url, e, exc_info=False)
            return None

    def set(self, url: str, product: ExtractedProduct) -> None:
        if not self._redis or product.source == ExtractionSource.FALLBACK:
            return
        try:
            self._redis.set(_key(url), json.dumps(product.to_dict()), ex=self._ttl)
        except Exception as e:
            logger.warning("Product cache set failed for %s: %s", url, e, exc_info=False)
