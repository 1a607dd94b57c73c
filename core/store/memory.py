"""
In-process store used for paper mode and tests.

Expiry is evaluated against an injectable time source, so tests can move
time forward without sleeping. Expired keys are dropped lazily on read
and swept on every write, so keys that are never read again do not
accumulate.
"""

import bisect
import heapq
import time
from typing import Callable, Dict, List, Optional, Tuple

from .base import DurableStore


class InMemoryStore(DurableStore):
    persistent = False

    def __init__(self, now: Callable[[], float] = time.time):
        self._now = now
        self._values: Dict[str, str] = {}
        self._expires: Dict[str, float] = {}
        self._deadlines: List[Tuple[float, str]] = []
        self._sorted: Dict[str, List[Tuple[float, str]]] = {}
        self._scores: Dict[str, Dict[str, float]] = {}

    def _purge(self, key: str) -> None:
        deadline = self._expires.get(key)
        if deadline is not None and self._now() >= deadline:
            self._values.pop(key, None)
            self._expires.pop(key, None)

    def _sweep(self) -> None:
        now = self._now()
        while self._deadlines and self._deadlines[0][0] <= now:
            deadline, key = heapq.heappop(self._deadlines)
            # Stale heap entry when the TTL was reset or removed since
            if self._expires.get(key) == deadline:
                self._values.pop(key, None)
                self._expires.pop(key, None)

    def _set_deadline(self, key: str, ttl: float) -> None:
        deadline = self._now() + ttl
        self._expires[key] = deadline
        heapq.heappush(self._deadlines, (deadline, key))

    async def get(self, key: str) -> Optional[str]:
        self._purge(key)
        return self._values.get(key)

    async def set(self, key: str, value: str, ttl: Optional[float] = None) -> None:
        self._sweep()
        self._values[key] = str(value)
        if ttl is None:
            self._expires.pop(key, None)
        else:
            self._set_deadline(key, ttl)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._expires.pop(key, None)
        self._sorted.pop(key, None)
        self._scores.pop(key, None)

    async def incr(self, key: str) -> int:
        self._sweep()
        self._purge(key)
        value = int(self._values.get(key, "0")) + 1
        self._values[key] = str(value)
        return value

    async def incr_float(self, key: str, amount: float) -> float:
        self._sweep()
        self._purge(key)
        value = float(self._values.get(key, "0")) + amount
        self._values[key] = repr(value)
        return value

    async def expire(self, key: str, ttl: float) -> None:
        self._purge(key)
        if key in self._values:
            self._set_deadline(key, ttl)

    async def zadd(self, key: str, score: float, member: str) -> None:
        self._sweep()
        entries = self._sorted.setdefault(key, [])
        scores = self._scores.setdefault(key, {})

        previous = scores.get(member)
        if previous is not None:
            del entries[bisect.bisect_left(entries, (previous, member))]

        scores[member] = float(score)
        bisect.insort(entries, (float(score), member))

    async def zrange_by_score(self, key: str, min_score: float, max_score: float) -> List[str]:
        entries = self._sorted.get(key, [])
        members = []
        for score, member in entries[bisect.bisect_left(entries, (min_score,)) :]:
            if score > max_score:
                break
            members.append(member)
        return members

    async def zremrangebyscore(self, key: str, min_score: float, max_score: float) -> int:
        entries = self._sorted.get(key)
        if not entries:
            return 0

        lo = bisect.bisect_left(entries, (min_score,))
        hi = lo
        while hi < len(entries) and entries[hi][0] <= max_score:
            hi += 1

        scores = self._scores[key]
        for _, member in entries[lo:hi]:
            scores.pop(member, None)
        del entries[lo:hi]
        return hi - lo
