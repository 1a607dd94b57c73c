"""
Redis-backed store for live deployments.

Every Redis failure is surfaced as ``TransientIOError`` so the calling
task iteration can log it and back off.
"""

import logging
from typing import List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from core.exceptions import create_transient_error

from .base import DurableStore

logger = logging.getLogger("RedisStore")


class RedisStore(DurableStore):
    def __init__(self, url: str, prefix: str = ""):
        self._client = redis.Redis.from_url(url, decode_responses=True)
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(self._key(key))
        except RedisError as e:
            raise create_transient_error("RedisStore", "get", e) from e

    async def set(self, key: str, value: str, ttl: Optional[float] = None) -> None:
        try:
            if ttl is None:
                await self._client.set(self._key(key), value)
            else:
                await self._client.set(self._key(key), value, ex=int(ttl))
        except RedisError as e:
            raise create_transient_error("RedisStore", "set", e) from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except RedisError as e:
            raise create_transient_error("RedisStore", "delete", e) from e

    async def incr(self, key: str) -> int:
        try:
            return int(await self._client.incr(self._key(key)))
        except RedisError as e:
            raise create_transient_error("RedisStore", "incr", e) from e

    async def incr_float(self, key: str, amount: float) -> float:
        try:
            return float(await self._client.incrbyfloat(self._key(key), amount))
        except RedisError as e:
            raise create_transient_error("RedisStore", "incr_float", e) from e

    async def expire(self, key: str, ttl: float) -> None:
        try:
            await self._client.expire(self._key(key), int(ttl))
        except RedisError as e:
            raise create_transient_error("RedisStore", "expire", e) from e

    async def zadd(self, key: str, score: float, member: str) -> None:
        try:
            await self._client.zadd(self._key(key), {member: score})
        except RedisError as e:
            raise create_transient_error("RedisStore", "zadd", e) from e

    async def zrange_by_score(self, key: str, min_score: float, max_score: float) -> List[str]:
        try:
            return list(await self._client.zrangebyscore(self._key(key), min_score, max_score))
        except RedisError as e:
            raise create_transient_error("RedisStore", "zrange_by_score", e) from e

    async def zremrangebyscore(self, key: str, min_score: float, max_score: float) -> int:
        try:
            return int(await self._client.zremrangebyscore(self._key(key), min_score, max_score))
        except RedisError as e:
            raise create_transient_error("RedisStore", "zremrangebyscore", e) from e

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except RedisError as e:
            logger.warning(f"⚠️ Error closing Redis connection: {e}")
