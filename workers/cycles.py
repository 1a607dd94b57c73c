"""
Periodic workers.

Each worker is one ``PeriodicTask``: it does a single iteration in
``run_once`` and lets the base class handle cadence, error backoff and
cooperative stop. Collaborator failures simply raise out of
``run_once``; the iteration is logged and retried after the backoff.
"""

import asyncio
import logging
from typing import Optional

from config import system
from core.clock import Clock, PeriodicTask
from core.interfaces import ChainClient, MarketDataSource, SentimentSource
from core.models import AggregatedMood, MarketSignal
from core.observability.metrics import record_mood
from core.publisher import ArtifactPublisher
from decision.aggregator import SignalAggregator
from decision.risk_gate import RiskGate
from decision.state_machine import DecisionStateMachine
from executor.tracker import ExecutionTracker

AGGREGATOR_STATE_KEY = "mood:aggregator_state"

logger = logging.getLogger(__name__)


class SentimentCycleTask(PeriodicTask):
    def __init__(
        self,
        source: SentimentSource,
        aggregator: SignalAggregator,
        publisher: ArtifactPublisher,
        interval: float = system.SENTIMENT_INTERVAL,
        clock: Optional[Clock] = None,
    ):
        super().__init__("SentimentCycle", interval, system.ERROR_BACKOFF, clock)
        self.source = source
        self.aggregator = aggregator
        self.publisher = publisher

    async def restore(self) -> None:
        try:
            snapshot = await self.publisher.store.get_json(AGGREGATOR_STATE_KEY)
        except Exception as e:
            self.logger.warning(f"⚠️ Could not read aggregator state ({e}), starting empty")
            snapshot = None
        self.aggregator.restore(snapshot)

    async def run_once(self) -> None:
        samples = await self.source.fetch_batch()
        mood = self.aggregator.aggregate(samples)
        record_mood(mood.z_score, empty=mood.volume == 0)

        if mood.volume == 0:
            self.logger.debug("Empty sentiment batch, nothing published")
            return

        await self.publisher.publish("mood", mood.timestamp, mood.to_dict())
        await self.publisher.store.set_json(AGGREGATOR_STATE_KEY, self.aggregator.snapshot())
        self.logger.info(
            f"📊 Batch aggregated | samples={mood.volume} raw={mood.raw_score:.3f} z={mood.z_score:.3f}"
        )


class MarketCycleTask(PeriodicTask):
    def __init__(
        self,
        source: MarketDataSource,
        publisher: ArtifactPublisher,
        interval: float = system.MARKET_INTERVAL,
        clock: Optional[Clock] = None,
    ):
        super().__init__("MarketCycle", interval, system.ERROR_BACKOFF, clock)
        self.source = source
        self.publisher = publisher

    async def run_once(self) -> None:
        signal = await self.source.fetch_signal()
        await self.publisher.publish("market", signal.timestamp, signal.to_dict())
        self.logger.debug(
            f"Market signal | price={signal.price:.6f} momentum={signal.momentum:.4f} liquidity={signal.liquidity:.2f}"
        )


class DecisionCycleTask(PeriodicTask):
    """Reads the latest mood and market snapshot together, decides, and dispatches."""

    def __init__(
        self,
        publisher: ArtifactPublisher,
        machine: DecisionStateMachine,
        tracker: ExecutionTracker,
        interval: float = system.DECISION_INTERVAL,
        clock: Optional[Clock] = None,
    ):
        super().__init__("DecisionCycle", interval, system.ERROR_BACKOFF, clock)
        self.publisher = publisher
        self.machine = machine
        self.tracker = tracker

    async def run_once(self) -> None:
        mood_data, market_data = await asyncio.gather(
            self.publisher.latest("mood"),
            self.publisher.latest("market"),
        )
        if not mood_data or not market_data:
            self.logger.warning("⚠️ Missing mood or market data, skipping decision")
            return

        mood = AggregatedMood.from_dict(mood_data)
        market = MarketSignal.from_dict(market_data)

        decision = await self.machine.make_decision(mood, market)
        await self.tracker.dispatch(decision)


class TreasuryMonitorTask(PeriodicTask):
    def __init__(
        self,
        chain: ChainClient,
        risk_gate: RiskGate,
        interval: float = system.TREASURY_REFRESH_INTERVAL,
        clock: Optional[Clock] = None,
    ):
        super().__init__("TreasuryMonitor", interval, system.ERROR_BACKOFF, clock)
        self.chain = chain
        self.risk_gate = risk_gate

    async def run_once(self) -> None:
        balance = await self.chain.get_treasury_balance()
        await self.risk_gate.update_treasury_balance(balance)


class ExecutionPollTask(PeriodicTask):
    def __init__(
        self,
        tracker: ExecutionTracker,
        interval: float = system.EXECUTION_POLL_INTERVAL,
        clock: Optional[Clock] = None,
    ):
        super().__init__("ExecutionPoll", interval, system.ERROR_BACKOFF, clock)
        self.tracker = tracker

    async def run_once(self) -> None:
        finished = await self.tracker.poll()
        if finished:
            self.logger.info(f"🔄 {len(finished)} execution(s) reached a terminal status")
