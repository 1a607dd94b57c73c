import json
from abc import ABC, abstractmethod
from typing import Any, List, Optional


class DurableStore(ABC):
    """
    Shared key-value contract used for every counter, snapshot and history.

    Values are strings; JSON helpers are layered on top. Sorted sets hold
    history keys scored by timestamp.
    """

    # False when the data dies with the process
    persistent = True

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[float] = None) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def incr(self, key: str) -> int:
        pass

    @abstractmethod
    async def incr_float(self, key: str, amount: float) -> float:
        pass

    @abstractmethod
    async def expire(self, key: str, ttl: float) -> None:
        pass

    @abstractmethod
    async def zadd(self, key: str, score: float, member: str) -> None:
        pass

    @abstractmethod
    async def zrange_by_score(self, key: str, min_score: float, max_score: float) -> List[str]:
        pass

    @abstractmethod
    async def zremrangebyscore(self, key: str, min_score: float, max_score: float) -> int:
        """Remove sorted-set members scored within the range; returns how many were removed."""
        pass

    async def close(self) -> None:
        pass

    async def get_json(self, key: str) -> Optional[Any]:
        raw = await self.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set_json(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        await self.set(key, json.dumps(value), ttl=ttl)
