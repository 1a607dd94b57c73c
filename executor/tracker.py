"""
Execution Tracker for MoodAgent.

Follows every dispatched action until the chain reports a terminal status:

    dispatched → pending → confirmed | failed

Spend accounting is optimistic: a successful submission records
``record_execution(amount, True)`` right away, and a later ``failed``
status records exactly one ``record_execution(amount, False)``. Pending
executions are polled, never resubmitted, and never time out.

The active set lives in memory only; a restart forgets pending
references.
"""

import logging
import time
from typing import Callable, Dict, List, Optional

from config import endpoints, policy
from core.interfaces import ChainClient
from core.models import Action, ExecutionRecord, ExecutionRequest, ExecutionStatus, PolicyDecision
from core.observability.metrics import record_execution_transition, update_active_executions
from core.publisher import ArtifactPublisher
from decision.risk_gate import RiskGate


class TrackedExecution:
    def __init__(self, reference: str, decision: PolicyDecision, request: ExecutionRequest, dispatched_at: float):
        self.reference = reference
        self.decision = decision
        self.request = request
        self.dispatched_at = dispatched_at
        self.polls = 0

    def describe(self, now: float) -> str:
        return f"after {self.polls} poll(s), {now - self.dispatched_at:.1f}s"

    @property
    def risk_amount(self) -> float:
        """Amount counted against the treasury budget (burns spend nothing)."""
        return self.decision.spend_amount


class ExecutionTracker:
    def __init__(
        self,
        chain: ChainClient,
        risk_gate: RiskGate,
        publisher: ArtifactPublisher,
        auto_execution: bool = endpoints.ENABLE_AUTO_EXECUTION,
        burn_enabled: bool = endpoints.ENABLE_BURN,
        burn_fraction: float = policy.BURN_FRACTION,
        now: Callable[[], float] = time.time,
    ):
        self.chain = chain
        self.risk_gate = risk_gate
        self.publisher = publisher
        self.auto_execution = auto_execution
        self.burn_enabled = burn_enabled
        self.burn_fraction = burn_fraction
        self._now = now
        self._active: Dict[str, TrackedExecution] = {}
        self._last_processed = 0.0
        self.logger = logging.getLogger("ExecutionTracker")

    @property
    def name(self) -> str:
        return "ExecutionTracker"

    # --- Dispatch ---

    async def dispatch(self, decision: PolicyDecision) -> Optional[ExecutionRecord]:
        """
        Submit a decision to the chain. Returns the record created for it,
        or None when there is nothing to execute.
        """
        if decision.timestamp <= self._last_processed:
            self.logger.debug(f"Decision {decision.timestamp} already processed, skipping")
            return None
        self._last_processed = decision.timestamp

        if decision.action in (Action.HODL, Action.NOOP):
            return None

        if not self.auto_execution:
            self.logger.info(f"⏸️ Auto-execution disabled, skipping {decision.action.value}")
            return await self._reject(decision, "Auto-execution disabled")

        if decision.action == Action.BUYBACK:
            request = await self._prepare_buyback(decision)
        elif decision.action == Action.BURN:
            request = await self._prepare_burn(decision)
        else:
            return await self._reject(decision, f"Unknown action {decision.action}")

        if isinstance(request, ExecutionRecord):
            return request

        try:
            reference = await self.chain.submit(request)
        except Exception as e:
            self.logger.error(f"❌ {decision.action.value} submission failed: {e}")
            record = await self._reject(decision, str(e))
            await self.risk_gate.record_execution(decision.spend_amount, False)
            return record

        if reference in self._active:
            self.logger.warning(f"👻 Reference {reference} is already tracked, not registering twice")
            return None

        self._active[reference] = TrackedExecution(reference, decision, request, self._now())
        update_active_executions(len(self._active))

        record = ExecutionRecord(
            decision=decision,
            status=ExecutionStatus.PENDING,
            reference=reference,
            amount_processed=request.amount,
            timestamp=self._now(),
        )
        self.logger.info(f"📝 Tracking {decision.action.value} {reference} (amount={request.amount:.4f})")

        await self.risk_gate.record_execution(decision.spend_amount, True)
        await self._publish(record)
        return record

    async def _prepare_buyback(self, decision: PolicyDecision):
        params = decision.execution_params
        if params is None or not params.size:
            return await self._reject(decision, "Missing execution parameters")

        # The gate is checked again: state may have moved since the decision was made
        check = await self.risk_gate.can_execute(params.size)
        if not check.allowed:
            return await self._reject(decision, check.reason or "Risk check failed")

        return ExecutionRequest(action=Action.BUYBACK, amount=params.size, max_slippage=params.max_slippage)

    async def _prepare_burn(self, decision: PolicyDecision):
        if not self.burn_enabled:
            return await self._reject(decision, "Burn feature disabled")

        try:
            holdings = await self.chain.get_token_balance()
        except Exception as e:
            self.logger.error(f"❌ Could not read token balance for burn: {e}")
            return await self._reject(decision, str(e))

        amount = holdings * self.burn_fraction
        if amount <= 0:
            return await self._reject(decision, "No tokens to burn")

        return ExecutionRequest(action=Action.BURN, amount=amount)

    async def _reject(self, decision: PolicyDecision, error: str) -> ExecutionRecord:
        record = ExecutionRecord(
            decision=decision,
            status=ExecutionStatus.FAILED,
            error=error,
            timestamp=self._now(),
        )
        self.logger.warning(f"⚠️ {decision.action.value} not dispatched: {error}")
        await self._publish(record)
        return record

    # --- Polling ---

    async def poll(self) -> List[ExecutionRecord]:
        """
        Query every active reference once. Returns the records that reached
        a terminal status during this poll.
        """
        finished: List[ExecutionRecord] = []

        for reference, tracked in list(self._active.items()):
            try:
                status = ExecutionStatus(await self.chain.get_status(reference))
            except Exception as e:
                self.logger.error(f"❌ Failed to check status of {reference}: {e}")
                continue

            tracked.polls += 1
            if not status.is_terminal:
                continue

            # Removed before any await; an overlapping poll that already took it skips it
            if self._active.pop(reference, None) is None:
                continue
            update_active_executions(len(self._active))

            record = ExecutionRecord(
                decision=tracked.decision,
                status=status,
                reference=reference,
                amount_processed=tracked.request.amount if status == ExecutionStatus.CONFIRMED else None,
                error="Transaction failed" if status == ExecutionStatus.FAILED else None,
                timestamp=self._now(),
            )

            label = f"{tracked.decision.action.value} {reference}"
            if status == ExecutionStatus.CONFIRMED:
                self.logger.info(f"✅ {label} confirmed {tracked.describe(self._now())}")
            else:
                self.logger.error(f"❌ {label} failed {tracked.describe(self._now())}")
                await self.risk_gate.record_execution(tracked.risk_amount, False)

            await self._publish(record)
            finished.append(record)

        return finished

    # --- Reads ---

    def active_references(self) -> Dict[str, PolicyDecision]:
        return {ref: tracked.decision for ref, tracked in self._active.items()}

    def is_tracking(self, reference: str) -> bool:
        return reference in self._active

    async def latest_record(self) -> Optional[ExecutionRecord]:
        try:
            data = await self.publisher.latest("execution")
            return ExecutionRecord.from_dict(data) if data else None
        except Exception as e:
            self.logger.error(f"❌ Failed to get latest execution: {e}")
            return None

    async def execution_history(self, start: float, end: float) -> List[ExecutionRecord]:
        try:
            return [ExecutionRecord.from_dict(d) for d in await self.publisher.history("execution", start, end)]
        except Exception as e:
            self.logger.error(f"❌ Failed to get execution history: {e}")
            return []

    async def _publish(self, record: ExecutionRecord) -> None:
        record_execution_transition(record.decision.action.value, record.status.value)
        try:
            await self.publisher.publish("execution", record.timestamp, record.to_dict())
        except Exception as e:
            self.logger.error(f"❌ Failed to store execution record: {e}")
