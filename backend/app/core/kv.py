import logging
import re
from typing import Any, Dict, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from litter_core import KeyNotFound

from .config import settings

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def escape_glob(prefix: str) -> str:
    """Escapes Redis MATCH metacharacters so the prefix is matched literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", prefix)


def _text(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisDelegate:
    """
    Persistent storage delegate backed by Redis.

    Unlike the in-process store, ``delete`` reports ``deleted: False`` when the
    key did not exist.
    """

    backend = "redis"

    def __init__(self, client: Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: Optional[str] = None) -> "RedisDelegate":
        return cls(Redis.from_url(url or settings.REDIS_URL, decode_responses=True))

    async def set(self, key: str, value: str) -> Dict[str, Any]:
        await self.client.set(key, value)
        return {"key": key, "value": value}

    async def get(self, key: str) -> Dict[str, Any]:
        value = await self.client.get(key)
        if value is None:
            raise KeyNotFound(key)
        return {"key": key, "value": _text(value)}

    async def list(self, prefix: str) -> Dict[str, List[str]]:
        keys = [
            _text(k) async for k in self.client.scan_iter(match=f"{escape_glob(prefix)}*")
        ]
        return {"keys": keys}

    async def delete(self, key: str) -> Dict[str, Any]:
        removed = await self.client.delete(key)
        return {"key": key, "deleted": bool(removed)}

    async def ping(self) -> bool:
        """Test Redis connection."""
        try:
            await self.client.ping()
            logger.info("Redis connection successful")
            return True
        except (RedisError, OSError) as e:
            logger.error(f"Redis connection failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((RedisError, OSError)),
    reraise=True,
)
async def connect_redis_delegate(url: Optional[str] = None) -> RedisDelegate:
    """Create the Redis delegate once the server answers, retrying at startup only."""
    delegate = RedisDelegate.from_url(url)
    logger.info("Attempting to connect to Redis")
    await delegate.client.ping()
    return delegate
