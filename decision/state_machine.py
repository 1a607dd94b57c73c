"""
Decision State Machine for MoodAgent.

Consumes the latest AggregatedMood and MarketSignal and emits one
PolicyDecision per call by walking the ordered rule list. Spend-sized
rules consult the RiskGate inline; a rejection downgrades the tentative
action to NOOP and carries the rejection reason.

The only state carried between calls is the (ema15, ema60) pair history
used for crossover detection. It is persisted after every call so a
restart does not silently reset crossover detection.
"""

import logging
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Sequence

from config import system
from core.models import Action, AggregatedMood, DecisionSignals, MarketSignal, PolicyDecision
from core.observability.logging_config import get_logger
from core.observability.metrics import record_decision
from core.publisher import ArtifactPublisher
from core.stats import crossover

from .risk_gate import RiskGate
from .rules import DEFAULT_RULES, DecisionThresholds, Rule, RuleContext, RuleOutcome

EMA_HISTORY_KEY = "policy:ema_history"

logger = logging.getLogger("DecisionStateMachine")
audit = get_logger("DecisionAudit")


class DecisionStateMachine:
    def __init__(
        self,
        risk_gate: RiskGate,
        publisher: ArtifactPublisher,
        thresholds: Optional[DecisionThresholds] = None,
        rules: Sequence[Rule] = DEFAULT_RULES,
        history_size: int = system.EMA_PAIR_HISTORY_SIZE,
        now: Callable[[], float] = time.time,
    ):
        self.risk_gate = risk_gate
        self.publisher = publisher
        self.thresholds = thresholds or DecisionThresholds.from_config()
        self.rules = tuple(rules)
        self.history_size = history_size
        self._now = now
        self._ema15_history: Deque[float] = deque(maxlen=history_size)
        self._ema60_history: Deque[float] = deque(maxlen=history_size)
        self._last_timestamp = 0.0

    @property
    def ema15_history(self) -> List[float]:
        return list(self._ema15_history)

    @property
    def ema60_history(self) -> List[float]:
        return list(self._ema60_history)

    async def make_decision(self, mood: AggregatedMood, market: MarketSignal) -> PolicyDecision:
        try:
            # Every call feeds the pair history, whichever rule fires
            self._ema15_history.append(mood.ema15)
            self._ema60_history.append(mood.ema60)

            ctx = RuleContext(
                mood=mood,
                market=market,
                crossover=crossover(self._ema15_history, self._ema60_history),
                thresholds=self.thresholds,
            )
            rule, outcome = await self._evaluate(ctx)
            decision = self._build(outcome, mood.z_score, market.momentum, ctx.liquidity_ok)

            logger.info(
                f"🧭 Decision: {decision.action.value} [{rule.name}] | {decision.reason} | "
                f"z={mood.z_score:.2f} momentum={market.momentum:.3f}"
            )
            audit.info(
                "decision_made",
                action=decision.action.value,
                rule=rule.name,
                z_score=round(mood.z_score, 4),
                momentum=round(market.momentum, 6),
                liquidity_ok=ctx.liquidity_ok,
                size=decision.spend_amount,
            )
        except Exception as e:
            logger.error(f"❌ Decision making failed: {e}", exc_info=True)
            decision = self._build(RuleOutcome(Action.NOOP, "Error in decision making"), 0.0, 0.0, False)

        record_decision(decision.action.value, decision.spend_amount)
        await self._persist_history()
        await self._store_decision(decision)
        return decision

    async def _evaluate(self, ctx: RuleContext):
        for rule in self.rules:
            if rule.predicate(ctx):
                return rule, await rule.build(ctx, self.risk_gate)
        raise LookupError("No decision rule matched")

    def _build(self, outcome: RuleOutcome, z: float, momentum: float, liquidity_ok: bool) -> PolicyDecision:
        # Strictly increasing timestamps let the executor skip decisions it already handled
        timestamp = max(self._now(), self._last_timestamp + 1e-3)
        self._last_timestamp = timestamp
        return PolicyDecision(
            timestamp=timestamp,
            action=outcome.action,
            reason=outcome.reason,
            signals=DecisionSignals(mood_z_score=z, price_momentum=momentum, liquidity_ok=liquidity_ok),
            execution_params=outcome.execution_params,
        )

    # --- Persistence ---

    async def _store_decision(self, decision: PolicyDecision) -> None:
        try:
            await self.publisher.publish("policy", decision.timestamp, decision.to_dict())
        except Exception as e:
            logger.error(f"❌ Failed to store decision: {e}")

    async def _persist_history(self) -> None:
        try:
            await self.publisher.store.set_json(
                EMA_HISTORY_KEY,
                {"ema15": list(self._ema15_history), "ema60": list(self._ema60_history)},
            )
        except Exception as e:
            logger.error(f"❌ Failed to persist EMA history: {e}")

    async def restore(self) -> bool:
        """
        Reload the EMA pair history. Missing or corrupt history means
        starting empty (crossover detection resumes after two calls).
        """
        try:
            data: Optional[Dict[str, List[float]]] = await self.publisher.store.get_json(EMA_HISTORY_KEY)
        except Exception as e:
            logger.warning(f"⚠️ Could not read EMA history ({e}), starting empty")
            return False

        if not data:
            logger.warning("⚠️ No persisted EMA history, crossover detection starts empty")
            return False

        try:
            fast = [float(v) for v in data["ema15"]]
            slow = [float(v) for v in data["ema60"]]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"⚠️ Corrupt EMA history ({e}), starting empty")
            return False

        if len(fast) != len(slow):
            logger.warning("⚠️ EMA history series differ in length, starting empty")
            return False

        self._ema15_history = deque(fast[-self.history_size :], maxlen=self.history_size)
        self._ema60_history = deque(slow[-self.history_size :], maxlen=self.history_size)
        logger.info(f"✅ Restored EMA history ({len(self._ema15_history)} pairs)")
        return True

    # --- Reads ---

    async def latest_decision(self) -> Optional[PolicyDecision]:
        try:
            data = await self.publisher.latest("policy")
            return PolicyDecision.from_dict(data) if data else None
        except Exception as e:
            logger.error(f"❌ Failed to get latest decision: {e}")
            return None

    async def decision_history(self, start: float, end: float) -> List[PolicyDecision]:
        try:
            return [PolicyDecision.from_dict(d) for d in await self.publisher.history("policy", start, end)]
        except Exception as e:
            logger.error(f"❌ Failed to get historical decisions: {e}")
            return []
