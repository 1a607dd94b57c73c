"""
Simulated collaborators - MoodAgent

Offline stand-ins for the sentiment pipeline, the market feed and the
chain, so the whole loop can run in paper mode. Randomness comes from a
seeded numpy Generator to keep runs reproducible.
"""

import logging
import time
import uuid
from collections import deque
from typing import Deque, Dict, List, Optional

import numpy as np

from config import system
from core.interfaces import ChainClient, MarketDataSource, SentimentSource
from core.models import Action, ExecutionRequest, ExecutionStatus, MarketSignal, SentimentSample, Topic
from core.stats import MovingAverage

logger = logging.getLogger(__name__)


class SimulatedSentimentSource(SentimentSource):
    """
    Random-walk crowd mood. Each batch scatters samples around the current
    mood; roughly one batch in ten is empty.
    """

    def __init__(
        self,
        seed: int = system.SEED,
        max_batch: int = 50,
        own_asset_share: float = 0.3,
        empty_batch_probability: float = 0.1,
    ):
        self._rng = np.random.default_rng(seed)
        self.max_batch = max_batch
        self.own_asset_share = own_asset_share
        self.empty_batch_probability = empty_batch_probability
        self._mood = 0.0

    async def fetch_batch(self) -> List[SentimentSample]:
        if self._rng.random() < self.empty_batch_probability:
            return []

        self._mood = float(np.clip(self._mood + self._rng.normal(0, 0.15), -1.0, 1.0))
        size = int(self._rng.integers(1, self.max_batch + 1))
        values = np.clip(self._rng.normal(self._mood, 0.3, size), -1.0, 1.0)
        confidences = self._rng.uniform(0.5, 1.0, size)
        weights = self._rng.lognormal(0.0, 0.5, size)
        own = self._rng.random(size) < self.own_asset_share

        return [
            SentimentSample(
                value=float(v),
                confidence=float(c),
                weight=float(w),
                topic=Topic.OWN_ASSET if o else Topic.GENERAL_MARKET,
            )
            for v, c, w, o in zip(values, confidences, weights, own)
        ]


class SimulatedMarketSource(MarketDataSource):
    """Geometric random-walk price with momentum over the last 10 observations."""

    def __init__(self, seed: int = system.SEED, start_price: float = 1.0, base_liquidity: float = 50_000.0):
        self._rng = np.random.default_rng(seed + 1)
        self._price = start_price
        self.base_liquidity = base_liquidity
        self._prices: Deque[float] = deque(maxlen=100)
        self._volume = MovingAverage(24)

    async def fetch_signal(self) -> MarketSignal:
        self._price *= float(np.exp(self._rng.normal(0, 0.01)))
        self._prices.append(self._price)

        prices = np.asarray(self._prices)
        change = (prices[-1] - prices[0]) / prices[0] * 100 if len(prices) >= 2 else 0.0
        if len(prices) >= 10:
            recent = prices[-10:]
            momentum = float(np.mean(np.diff(recent) / recent[:-1]))
        else:
            momentum = 0.0

        return MarketSignal(
            price=self._price,
            price_change_24h=float(change),
            volume_24h=self._volume.add(float(self._rng.lognormal(10, 0.5))),
            liquidity=float(self.base_liquidity * self._rng.uniform(0.5, 1.5)),
            momentum=momentum,
            large_transfers=int(self._rng.poisson(0.5)),
            timestamp=time.time(),
        )


class PaperChainClient(ChainClient):
    """
    Paper chain: every submission resolves after ``confirm_after`` polls,
    failing with probability ``failure_rate``. Balances move on confirmation.
    """

    def __init__(
        self,
        treasury_balance: float = 100_000.0,
        token_balance: float = 1_000_000.0,
        confirm_after: int = 2,
        failure_rate: float = 0.1,
        seed: Optional[int] = system.SEED,
    ):
        self.treasury_balance = treasury_balance
        self.token_balance = token_balance
        self.confirm_after = confirm_after
        self.failure_rate = failure_rate
        self._rng = np.random.default_rng(seed)
        self._requests: Dict[str, ExecutionRequest] = {}
        self._polls: Dict[str, int] = {}
        self._outcomes: Dict[str, ExecutionStatus] = {}

    async def submit(self, request: ExecutionRequest) -> str:
        reference = f"paper-{uuid.uuid4().hex[:16]}"
        self._requests[reference] = request
        self._polls[reference] = 0
        fails = self._rng.random() < self.failure_rate
        self._outcomes[reference] = ExecutionStatus.FAILED if fails else ExecutionStatus.CONFIRMED
        logger.info(f"🧾 Paper {request.action.value} submitted: {reference} amount={request.amount:.4f}")
        return reference

    async def get_status(self, reference: str) -> ExecutionStatus:
        if reference not in self._requests:
            raise KeyError(f"Unknown reference {reference}")

        polls = self._polls.get(reference)
        if polls is None:
            return self._outcomes[reference]

        polls += 1
        if polls < self.confirm_after:
            self._polls[reference] = polls
            return ExecutionStatus.PENDING

        del self._polls[reference]
        outcome = self._outcomes[reference]
        if outcome == ExecutionStatus.CONFIRMED:
            self._settle(self._requests[reference])
        return outcome

    def _settle(self, request: ExecutionRequest) -> None:
        if request.action == Action.BUYBACK:
            self.treasury_balance -= request.amount
        elif request.action == Action.BURN:
            self.token_balance -= request.amount

    async def get_treasury_balance(self) -> float:
        return self.treasury_balance

    async def get_token_balance(self) -> float:
        return self.token_balance
