"""
Sentiment Aggregator for MoodAgent.
Turns a batch of scored samples into one AggregatedMood.

Weighted mean:
- effective weight = confidence * author weight
- raw score = Σ(value * w) / Σ(w), 0 when Σw is 0
- z-score of the raw score against the rolling score history
- three EMAs (short / medium / long) of the raw score
"""

import logging
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional, Sequence

from config import policy, system
from core import stats
from core.models import AggregatedMood, SentimentSample, Topic, TopicBreakdown

logger = logging.getLogger(__name__)


class SignalAggregator:
    """
    Stateful aggregator. Treat one instance as a single logical stream:
    overlapping calls from concurrent tasks are not supported.
    """

    def __init__(
        self,
        history_size: int = system.SCORE_HISTORY_SIZE,
        ema_short: int = policy.EMA_SHORT,
        ema_medium: int = policy.EMA_MEDIUM,
        ema_long: int = policy.EMA_LONG,
        now: Callable[[], float] = time.time,
    ):
        self.history_size = history_size
        self._now = now
        self._history: Deque[float] = deque(maxlen=history_size)
        self._ema5 = stats.ExponentialMovingAverage(ema_short)
        self._ema15 = stats.ExponentialMovingAverage(ema_medium)
        self._ema60 = stats.ExponentialMovingAverage(ema_long)

    @property
    def history(self) -> Sequence[float]:
        return tuple(self._history)

    def aggregate(self, samples: Sequence[SentimentSample]) -> AggregatedMood:
        # Empty batches must not pollute the trend state
        if not samples:
            return AggregatedMood.empty(self._now())

        total_value = 0.0
        total_weight = 0.0
        for sample in samples:
            weight = sample.confidence * sample.weight
            total_value += sample.value * weight
            total_weight += weight

        raw_score = total_value / total_weight if total_weight > 0 else 0.0

        self._history.append(raw_score)
        mu = stats.mean(self._history)
        sigma = stats.stddev(self._history)
        z = stats.z_score(raw_score, mu, sigma)

        mood = AggregatedMood(
            timestamp=self._now(),
            raw_score=raw_score,
            z_score=z,
            ema5=self._ema5.add(raw_score),
            ema15=self._ema15.add(raw_score),
            ema60=self._ema60.add(raw_score),
            volume=len(samples),
            topic_breakdown=self._topic_breakdown(samples),
        )

        logger.debug(f"Aggregated mood | raw={raw_score:.3f} z={z:.3f} volume={len(samples)}")
        return mood

    @staticmethod
    def _topic_breakdown(samples: Sequence[SentimentSample]) -> TopicBreakdown:
        own = sum(1 for s in samples if s.topic == Topic.OWN_ASSET)
        total = len(samples)
        return TopicBreakdown(own_asset=own / total, general_market=(total - own) / total)

    def current_emas(self) -> Dict[str, float]:
        return {"ema5": self._ema5.value, "ema15": self._ema15.value, "ema60": self._ema60.value}

    def reset(self) -> None:
        self._history.clear()
        self._ema5.reset()
        self._ema15.reset()
        self._ema60.reset()

    # --- Persistence ---

    def snapshot(self) -> Dict[str, Any]:
        return {
            "history": list(self._history),
            "ema5": self._ema5.value if self._ema5.initialized else None,
            "ema15": self._ema15.value if self._ema15.initialized else None,
            "ema60": self._ema60.value if self._ema60.initialized else None,
        }

    def restore(self, snapshot: Optional[Dict[str, Any]]) -> bool:
        """
        Reload persisted state. A missing or malformed snapshot leaves the
        aggregator empty and returns False.
        """
        if not snapshot:
            logger.warning("⚠️ No persisted aggregator state, starting from empty history")
            self.reset()
            return False

        try:
            history = [float(v) for v in snapshot["history"]]
            emas = [snapshot.get(name) for name in ("ema5", "ema15", "ema60")]
            emas = [None if v is None else float(v) for v in emas]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"⚠️ Corrupt aggregator state ({e}), starting from empty history")
            self.reset()
            return False

        self._history = deque(history[-self.history_size :], maxlen=self.history_size)
        self._ema5.restore(emas[0])
        self._ema15.restore(emas[1])
        self._ema60.restore(emas[2])
        logger.info(f"✅ Restored aggregator state ({len(self._history)} scores)")
        return True
