"""
Artifact publishing.

Each artifact kind is written three ways:
- ``<kind>:latest``        overwritten on every publish
- ``<kind>:history:<ts>``  one entry per publish, expires after the retention window
- ``<kind>:timeline``      sorted set of history keys scored by timestamp
"""

import itertools
import json
import logging
from typing import Any, Dict, List, Optional

from config import system

from .store import DurableStore

logger = logging.getLogger("ArtifactPublisher")

RETENTION: Dict[str, float] = {
    "mood": system.MOOD_RETENTION,
    "market": system.MARKET_RETENTION,
    "policy": system.POLICY_RETENTION,
    "execution": system.EXECUTION_RETENTION,
    "risk": system.RISK_RETENTION,
}


class ArtifactPublisher:
    def __init__(self, store: DurableStore, retention: Optional[Dict[str, float]] = None):
        self.store = store
        self._sequence = itertools.count()
        self.retention = dict(RETENTION)
        if retention:
            self.retention.update(retention)

    async def publish(self, kind: str, timestamp: float, payload: Dict[str, Any]) -> None:
        ttl = self.retention.get(kind, system.MOOD_RETENTION)
        # The sequence suffix keeps publishes within the same millisecond apart
        history_key = f"{kind}:history:{int(timestamp * 1000)}-{next(self._sequence)}"

        await self.store.set_json(f"{kind}:latest", payload)
        await self.store.set_json(history_key, payload, ttl=ttl)
        await self.store.zadd(f"{kind}:timeline", timestamp, history_key)
        # Timeline members older than the retention window point at expired entries
        await self.store.zremrangebyscore(f"{kind}:timeline", float("-inf"), timestamp - ttl)

    async def latest(self, kind: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.store.get_json(f"{kind}:latest")
        except json.JSONDecodeError as e:
            logger.warning(f"⚠️ Corrupt {kind}:latest snapshot ignored: {e}")
            return None

    async def history(self, kind: str, start: float, end: float) -> List[Dict[str, Any]]:
        """Return every retained entry with ``start <= timestamp <= end`` in time order."""
        keys = await self.store.zrange_by_score(f"{kind}:timeline", start, end)
        entries = []
        for key in keys:
            data = await self.store.get_json(key)
            # Expired history entries leave dangling timeline members
            if data is not None:
                entries.append(data)
        return entries
