import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from core.interfaces import ChainClient
from core.models import (
    Action,
    DecisionSignals,
    ExecutionParams,
    ExecutionStatus,
    PolicyDecision,
    RiskCheck,
)
from core.publisher import ArtifactPublisher
from core.store import InMemoryStore
from decision.risk_gate import RiskGate
from executor.tracker import ExecutionTracker, TrackedExecution

NOW = 1_700_000_000.0


def decision(action=Action.BUYBACK, size=750.0, timestamp=NOW):
    params = ExecutionParams(size=size, max_slippage=2.0, dca_factor=0.5) if size else None
    return PolicyDecision(
        timestamp=timestamp,
        action=action,
        reason="test",
        signals=DecisionSignals(mood_z_score=-1.5, price_momentum=-0.01, liquidity_ok=True),
        execution_params=params,
    )


class TestExecutionTracker(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.chain = MagicMock(spec=ChainClient)
        self.chain.submit = AsyncMock(return_value="ref-1")
        self.chain.get_status = AsyncMock(return_value=ExecutionStatus.PENDING)
        self.chain.get_token_balance = AsyncMock(return_value=1000.0)

        self.gate = MagicMock(spec=RiskGate)
        self.gate.can_execute = AsyncMock(return_value=RiskCheck(allowed=True))
        self.gate.record_execution = AsyncMock()

        self.publisher = ArtifactPublisher(InMemoryStore(now=lambda: NOW))
        self.tracker = ExecutionTracker(
            self.chain,
            self.gate,
            self.publisher,
            auto_execution=True,
            burn_enabled=True,
            burn_fraction=0.1,
            now=lambda: NOW,
        )

    # --- Dispatch ---

    async def test_buyback_dispatch_registers_pending(self):
        record = await self.tracker.dispatch(decision())

        self.assertEqual(record.status, ExecutionStatus.PENDING)
        self.assertEqual(record.reference, "ref-1")
        self.assertEqual(record.amount_processed, 750.0)
        self.assertTrue(self.tracker.is_tracking("ref-1"))

        request = self.chain.submit.call_args.args[0]
        self.assertEqual(request.action, Action.BUYBACK)
        self.assertEqual(request.amount, 750.0)
        self.assertEqual(request.max_slippage, 2.0)

        self.gate.can_execute.assert_awaited_once_with(750.0)
        self.gate.record_execution.assert_awaited_once_with(750.0, True)

    async def test_hold_and_noop_are_not_dispatched(self):
        self.assertIsNone(await self.tracker.dispatch(decision(Action.HODL, size=0, timestamp=NOW)))
        self.assertIsNone(await self.tracker.dispatch(decision(Action.NOOP, size=0, timestamp=NOW + 1)))
        self.chain.submit.assert_not_called()
        self.gate.record_execution.assert_not_called()

    async def test_auto_execution_disabled(self):
        self.tracker.auto_execution = False
        record = await self.tracker.dispatch(decision())

        self.assertEqual(record.status, ExecutionStatus.FAILED)
        self.assertEqual(record.error, "Auto-execution disabled")
        self.chain.submit.assert_not_called()
        self.gate.record_execution.assert_not_called()

    async def test_gate_recheck_rejects_buyback(self):
        self.gate.can_execute = AsyncMock(return_value=RiskCheck(False, "Daily spend limit exceeded (50.00/50.00)"))
        record = await self.tracker.dispatch(decision())

        self.assertEqual(record.status, ExecutionStatus.FAILED)
        self.assertEqual(record.error, "Daily spend limit exceeded (50.00/50.00)")
        self.chain.submit.assert_not_called()
        self.gate.record_execution.assert_not_called()

    async def test_buyback_without_params(self):
        record = await self.tracker.dispatch(decision(size=0))
        self.assertEqual(record.error, "Missing execution parameters")
        self.chain.submit.assert_not_called()

    async def test_burn_sized_from_holdings(self):
        record = await self.tracker.dispatch(decision(Action.BURN, size=0))

        self.assertEqual(record.status, ExecutionStatus.PENDING)
        self.assertAlmostEqual(record.amount_processed, 100.0)
        request = self.chain.submit.call_args.args[0]
        self.assertEqual(request.action, Action.BURN)
        # Burns spend nothing from the treasury
        self.gate.record_execution.assert_awaited_once_with(0.0, True)
        self.gate.can_execute.assert_not_called()

    async def test_burn_disabled(self):
        self.tracker.burn_enabled = False
        record = await self.tracker.dispatch(decision(Action.BURN, size=0))
        self.assertEqual(record.error, "Burn feature disabled")
        self.chain.submit.assert_not_called()

    async def test_burn_without_tokens(self):
        self.chain.get_token_balance = AsyncMock(return_value=0.0)
        record = await self.tracker.dispatch(decision(Action.BURN, size=0))
        self.assertEqual(record.error, "No tokens to burn")
        self.chain.submit.assert_not_called()

    async def test_submit_error_counts_as_loss(self):
        self.chain.submit = AsyncMock(side_effect=ConnectionError("gateway down"))
        record = await self.tracker.dispatch(decision())

        self.assertEqual(record.status, ExecutionStatus.FAILED)
        self.assertEqual(record.error, "gateway down")
        self.assertEqual(self.tracker.active_references(), {})
        self.gate.record_execution.assert_awaited_once_with(750.0, False)

    async def test_same_decision_is_processed_once(self):
        d = decision()
        self.assertIsNotNone(await self.tracker.dispatch(d))
        self.assertIsNone(await self.tracker.dispatch(d))
        self.chain.submit.assert_awaited_once()

    async def test_duplicate_reference_not_registered_twice(self):
        await self.tracker.dispatch(decision(timestamp=NOW))
        self.assertIsNone(await self.tracker.dispatch(decision(timestamp=NOW + 1)))
        self.assertEqual(len(self.tracker.active_references()), 1)
        self.gate.record_execution.assert_awaited_once()

    # --- Polling ---

    async def test_pending_poll_leaves_risk_state_alone(self):
        await self.tracker.dispatch(decision())
        self.gate.record_execution.reset_mock()

        finished = await self.tracker.poll()

        self.assertEqual(finished, [])
        self.assertTrue(self.tracker.is_tracking("ref-1"))
        self.gate.record_execution.assert_not_called()
        self.assertEqual(self.tracker._active["ref-1"].polls, 1)

    async def test_overlapping_polls_report_terminal_status_once(self):
        await self.tracker.dispatch(decision())
        self.gate.record_execution.reset_mock()

        async def slow_failed(reference):
            await asyncio.sleep(0)
            return ExecutionStatus.FAILED

        self.chain.get_status = AsyncMock(side_effect=slow_failed)

        first, second = await asyncio.gather(self.tracker.poll(), self.tracker.poll())

        self.assertEqual(len(first) + len(second), 1)
        self.gate.record_execution.assert_awaited_once_with(750.0, False)

    def test_terminal_statuses(self):
        self.assertFalse(ExecutionStatus.PENDING.is_terminal)
        self.assertTrue(ExecutionStatus.CONFIRMED.is_terminal)
        self.assertTrue(ExecutionStatus.FAILED.is_terminal)

    def test_tracked_execution_describe(self):
        tracked = TrackedExecution("ref-1", decision(), None, dispatched_at=NOW)
        tracked.polls = 3
        self.assertEqual(tracked.describe(NOW + 12.5), "after 3 poll(s), 12.5s")

    async def test_failed_poll_removes_and_records_one_loss(self):
        await self.tracker.dispatch(decision())
        self.gate.record_execution.reset_mock()
        self.chain.get_status = AsyncMock(return_value=ExecutionStatus.FAILED)

        finished = await self.tracker.poll()

        self.assertEqual(len(finished), 1)
        self.assertEqual(finished[0].status, ExecutionStatus.FAILED)
        self.assertFalse(self.tracker.is_tracking("ref-1"))
        self.gate.record_execution.assert_awaited_once_with(750.0, False)

        # A second poll after removal changes nothing
        self.chain.get_status.reset_mock()
        self.assertEqual(await self.tracker.poll(), [])
        self.chain.get_status.assert_not_called()
        self.gate.record_execution.assert_awaited_once()

    async def test_confirmed_poll_removes_without_risk_update(self):
        await self.tracker.dispatch(decision())
        self.gate.record_execution.reset_mock()
        self.chain.get_status = AsyncMock(return_value=ExecutionStatus.CONFIRMED)

        finished = await self.tracker.poll()

        self.assertEqual(finished[0].status, ExecutionStatus.CONFIRMED)
        self.assertEqual(finished[0].amount_processed, 750.0)
        self.assertFalse(self.tracker.is_tracking("ref-1"))
        self.gate.record_execution.assert_not_called()

        latest = await self.tracker.latest_record()
        self.assertEqual(latest.status, ExecutionStatus.CONFIRMED)
        self.assertEqual(latest.reference, "ref-1")

    async def test_status_error_keeps_reference(self):
        await self.tracker.dispatch(decision())
        self.chain.get_status = AsyncMock(side_effect=TimeoutError("slow rpc"))

        self.assertEqual(await self.tracker.poll(), [])
        self.assertTrue(self.tracker.is_tracking("ref-1"))

    async def test_history_contains_every_transition(self):
        await self.tracker.dispatch(decision())
        self.chain.get_status = AsyncMock(return_value=ExecutionStatus.CONFIRMED)
        await self.tracker.poll()

        history = await self.tracker.execution_history(NOW - 1, NOW + 1)
        self.assertEqual([r.status for r in history], [ExecutionStatus.PENDING, ExecutionStatus.CONFIRMED])


class TestTrackerWithRealGate(unittest.IsolatedAsyncioTestCase):
    async def test_failed_execution_feeds_loss_counter(self):
        store = InMemoryStore(now=lambda: NOW)
        gate = RiskGate(store, now=lambda: NOW)
        await gate.update_treasury_balance(100_000.0)

        chain = MagicMock(spec=ChainClient)
        chain.submit = AsyncMock(return_value="ref-9")
        chain.get_status = AsyncMock(return_value=ExecutionStatus.FAILED)
        tracker = ExecutionTracker(chain, gate, ArtifactPublisher(store), auto_execution=True, now=lambda: NOW)

        await tracker.dispatch(decision(size=100.0))
        self.assertEqual(await gate.get_consecutive_losses(), 0)

        await tracker.poll()
        self.assertEqual(await gate.get_consecutive_losses(), 1)
        # Attempted amount counted at dispatch and again on failure
        self.assertAlmostEqual(await gate.get_daily_spent(), 200.0)

        await tracker.poll()
        self.assertEqual(await gate.get_consecutive_losses(), 1)
