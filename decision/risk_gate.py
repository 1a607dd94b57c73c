"""
Risk Gate for MoodAgent.

Validates proposed treasury spends against live constraints and keeps
the durable risk counters. All state lives in the DurableStore; the gate
assumes it is the only writer (one decision/execution process per store),
so ``can_execute`` followed by ``record_execution`` is not transactional.

Store layout:
- risk:kill_switch            "active" while halted
- risk:kill_switch_reason     human readable reason
- risk:daily_spent:<date>     float, UTC calendar day, 24h TTL
- risk:consecutive_losses     int
- risk:last_execution         epoch seconds
- treasury:balance            last observed balance
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from config import policy, system
from core.models import RiskCheck, RiskState
from core.observability.metrics import record_risk_rejection, update_risk_state
from core.publisher import ArtifactPublisher
from core.store import DurableStore

KILL_SWITCH_KEY = "risk:kill_switch"
KILL_SWITCH_REASON_KEY = "risk:kill_switch_reason"
DAILY_SPENT_PREFIX = "risk:daily_spent:"
CONSECUTIVE_LOSSES_KEY = "risk:consecutive_losses"
LAST_EXECUTION_KEY = "risk:last_execution"
TREASURY_BALANCE_KEY = "treasury:balance"


@dataclass(frozen=True)
class RiskLimits:
    max_daily_spend_percent: float = policy.MAX_DAILY_SPEND_PERCENT
    min_treasury_threshold: float = policy.MIN_TREASURY_THRESHOLD
    max_consecutive_losses: int = policy.MAX_CONSECUTIVE_LOSSES

    @classmethod
    def from_config(cls) -> "RiskLimits":
        return cls(
            max_daily_spend_percent=policy.MAX_DAILY_SPEND_PERCENT,
            min_treasury_threshold=policy.MIN_TREASURY_THRESHOLD,
            max_consecutive_losses=policy.MAX_CONSECUTIVE_LOSSES,
        )


class RiskGate:
    def __init__(
        self,
        store: DurableStore,
        limits: Optional[RiskLimits] = None,
        publisher: Optional[ArtifactPublisher] = None,
        now: Callable[[], float] = time.time,
    ):
        self.store = store
        self.limits = limits or RiskLimits.from_config()
        self.publisher = publisher
        self._now = now
        self.logger = logging.getLogger("RiskGate")

    def _daily_key(self) -> str:
        day = datetime.fromtimestamp(self._now(), tz=timezone.utc).strftime("%Y-%m-%d")
        return f"{DAILY_SPENT_PREFIX}{day}"

    # --- Checks ---

    async def can_execute(self, amount: float) -> RiskCheck:
        """
        Ordered short-circuit chain; the first failing check names the reason.
        Store failures reject the spend rather than propagate.
        """
        try:
            if await self.is_kill_switch_active():
                reason = await self.store.get(KILL_SWITCH_REASON_KEY)
                return self._reject("kill_switch", f"Kill switch is active: {reason or 'no reason given'}")

            treasury = await self.get_treasury_balance()
            min_reserve = treasury * self.limits.min_treasury_threshold
            if treasury - amount < min_reserve:
                return self._reject(
                    "reserve", f"Insufficient treasury balance (min reserve: {min_reserve:.2f})"
                )

            # Re-read: the treasury monitor may have refreshed it in the meantime
            treasury = await self.get_treasury_balance()
            daily_spent = await self.get_daily_spent()
            max_daily_spend = treasury * (self.limits.max_daily_spend_percent / 100)
            if daily_spent + amount > max_daily_spend:
                return self._reject(
                    "daily_limit",
                    f"Daily spend limit exceeded ({daily_spent:.2f}/{max_daily_spend:.2f})",
                )

            losses = await self.get_consecutive_losses()
            if losses >= self.limits.max_consecutive_losses:
                return self._reject("consecutive_losses", f"Too many consecutive losses ({losses})")

            return RiskCheck(allowed=True)

        except Exception as e:
            self.logger.error(f"❌ Risk check failed: {e}")
            record_risk_rejection("error")
            return RiskCheck(allowed=False, reason="Risk check error")

    def _reject(self, check: str, reason: str) -> RiskCheck:
        record_risk_rejection(check)
        self.logger.info(f"🚫 Spend rejected [{check}]: {reason}")
        return RiskCheck(allowed=False, reason=reason)

    # --- Mutations ---

    async def record_execution(self, amount: float, success: bool) -> None:
        """
        Count ``amount`` against today's budget (attempted spend counts even
        if it later fails) and update the loss streak.
        """
        try:
            key = self._daily_key()
            await self.store.incr_float(key, amount)
            await self.store.expire(key, system.DAY_SECONDS)

            if success:
                await self.store.set(CONSECUTIVE_LOSSES_KEY, "0")
            else:
                await self.store.incr(CONSECUTIVE_LOSSES_KEY)

            await self.store.set(LAST_EXECUTION_KEY, repr(self._now()))
            self.logger.info(f"📝 Execution recorded | amount={amount:.4f} success={success}")
            await self._publish_state()
        except Exception as e:
            self.logger.error(f"❌ Failed to record execution: {e}")

    async def activate_kill_switch(self, reason: str) -> None:
        await self.store.set(KILL_SWITCH_KEY, "active")
        await self.store.set(KILL_SWITCH_REASON_KEY, reason)
        self.logger.warning(f"🚨 Kill switch activated: {reason}")
        await self._publish_state()

    async def deactivate_kill_switch(self) -> None:
        await self.store.delete(KILL_SWITCH_KEY)
        await self.store.delete(KILL_SWITCH_REASON_KEY)
        self.logger.info("✅ Kill switch deactivated")
        await self._publish_state()

    async def update_treasury_balance(self, balance: float) -> None:
        await self.store.set(TREASURY_BALANCE_KEY, repr(float(balance)))
        self.logger.debug(f"Treasury balance updated: {balance}")
        await self._publish_state()

    # --- Reads ---

    async def is_kill_switch_active(self) -> bool:
        return await self.store.get(KILL_SWITCH_KEY) == "active"

    async def get_treasury_balance(self) -> float:
        balance = await self.store.get(TREASURY_BALANCE_KEY)
        return float(balance) if balance else 0.0

    async def get_daily_spent(self) -> float:
        spent = await self.store.get(self._daily_key())
        return float(spent) if spent else 0.0

    async def get_consecutive_losses(self) -> int:
        losses = await self.store.get(CONSECUTIVE_LOSSES_KEY)
        return int(losses) if losses else 0

    async def get_last_execution_time(self) -> Optional[float]:
        value = await self.store.get(LAST_EXECUTION_KEY)
        return float(value) if value else None

    async def get_risk_state(self) -> RiskState:
        active = await self.is_kill_switch_active()
        return RiskState(
            daily_spent=await self.get_daily_spent(),
            consecutive_losses=await self.get_consecutive_losses(),
            last_execution_time=await self.get_last_execution_time(),
            treasury_balance=await self.get_treasury_balance(),
            kill_switch_active=active,
            kill_switch_reason=await self.store.get(KILL_SWITCH_REASON_KEY) if active else None,
        )

    async def _publish_state(self) -> None:
        state = await self.get_risk_state()
        update_risk_state(
            state.treasury_balance, state.daily_spent, state.consecutive_losses, state.kill_switch_active
        )
        if self.publisher is not None:
            await self.publisher.publish("risk", self._now(), state.to_dict())
