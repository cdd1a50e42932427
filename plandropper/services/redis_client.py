# plandropper/services/redis_client.py
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from plandropper.config import settings
from plandropper.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class RedisClient:
    """Pooled async Redis client. Every operation fails open: errors are logged
    and reported as a miss/False/None instead of raised."""

    def __init__(self, url: str, max_connections: int = 20):
        self.url = url
        self.max_connections = max_connections
        self.pool: ConnectionPool | None = None
        self.client: redis.Redis | None = None
        self._initialized = False

    @classmethod
    def from_settings(cls) -> "RedisClient":
        return cls(settings.REDIS_URL, max_connections=settings.REDIS_MAX_CONNECTIONS)

    async def initialize(self):
        """Initialize connection pool on startup"""
        if self._initialized:
            return

        try:
            self.pool = ConnectionPool.from_url(
                self.url,
                max_connections=self.max_connections,
                retry_on_timeout=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
                decode_responses=True,
            )
            self.client = redis.Redis(connection_pool=self.pool)

            result = await self.client.ping()
            logger.info("Redis ping successful", result=result)

            self._initialized = True
            logger.info("Redis client initialized", max_connections=self.max_connections)

        except Exception as e:
            logger.error("Failed to initialize Redis client", error=str(e))
            self._initialized = False
            raise RuntimeError("Redis initialization failed") from e

    async def close(self):
        """Clean shutdown"""
        try:
            if self.client:
                await self.client.aclose()
            if self.pool:
                await self.pool.disconnect()
            logger.info("Redis client closed")
        except Exception as e:
            logger.error("Error closing Redis client", error=str(e))
        finally:
            self._initialized = False

    async def ping(self) -> bool:
        """Test Redis connection"""
        if not self._initialized:
            return False
        try:
            return bool(await self.client.ping())
        except Exception as e:
            logger.error("Redis ping failed", error=str(e))
            return False

    async def get(self, key: str) -> str | None:
        if not self._initialized:
            return None
        try:
            result = await self.client.get(key)
            return result if result else None
        except Exception as e:
            logger.error("Redis GET failed", key=key[:30], error=str(e))
            return None

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool:
        if not self._initialized:
            return False
        try:
            if ttl_s:
                result = await self.client.setex(key, ttl_s, value)
            else:
                result = await self.client.set(key, value)
            return bool(result)
        except Exception as e:
            logger.error("Redis SET failed", key=key[:30], error=str(e))
            return False

    async def incr_with_ttl(self, key: str, ttl_s: int | None = None) -> int | None:
        """Increment a key and optionally refresh TTL atomically."""
        if not self._initialized:
            return None
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                if ttl_s:
                    pipe.expire(key, ttl_s)
                results = await pipe.execute()
            return int(results[0]) if results else None
        except Exception as e:
            logger.error("Redis INCR failed", key=key[:30], error=str(e))
            return None
