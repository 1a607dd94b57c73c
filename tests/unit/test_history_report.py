import pytest

from core.models import Action, DecisionSignals, ExecutionParams, ExecutionRecord, ExecutionStatus, PolicyDecision
from core.publisher import ArtifactPublisher
from core.store import InMemoryStore
from utils.history_report import decisions_frame, executions_frame, load_report, summarize

NOW = 1_700_000_000.0


def decision(ts, action, size=None):
    return PolicyDecision(
        timestamp=ts,
        action=action,
        reason="r",
        signals=DecisionSignals(mood_z_score=-1.2, price_momentum=-0.01, liquidity_ok=True),
        execution_params=ExecutionParams(size=size, max_slippage=2.0, dca_factor=0.5) if size else None,
    )


@pytest.mark.asyncio
async def test_report_counts_actions_and_statuses():
    store = InMemoryStore(now=lambda: NOW)
    publisher = ArtifactPublisher(store)

    buyback = decision(NOW + 1, Action.BUYBACK, size=40.0)
    for d in (decision(NOW, Action.NOOP), buyback, decision(NOW + 2, Action.HODL), decision(NOW + 3, Action.NOOP)):
        await publisher.publish("policy", d.timestamp, d.to_dict())

    pending = ExecutionRecord(buyback, ExecutionStatus.PENDING, "ref-1", 40.0, timestamp=NOW + 1)
    confirmed = ExecutionRecord(buyback, ExecutionStatus.CONFIRMED, "ref-1", 40.0, timestamp=NOW + 5)
    for record in (pending, confirmed):
        await publisher.publish("execution", record.timestamp, record.to_dict())

    report = await load_report(store, NOW - 1, NOW + 10)
    summary = report["summary"]

    assert summary["decisions"] == 4
    assert summary["actions"] == {"NOOP": 2, "BUYBACK": 1, "HODL": 1}
    assert summary["buyback_volume"] == pytest.approx(40.0)
    assert summary["executions"] == 2
    assert summary["statuses"] == {"pending": 1, "confirmed": 1}
    assert summary["confirmed_amount"] == pytest.approx(40.0)
    assert list(report["executions"]["status"]) == ["pending", "confirmed"]


def test_empty_history():
    decisions = decisions_frame([])
    executions = executions_frame([])

    assert decisions.empty and executions.empty
    assert summarize(decisions, executions) == {
        "decisions": 0,
        "actions": {},
        "buyback_volume": 0.0,
        "executions": 0,
        "statuses": {},
        "confirmed_amount": 0.0,
    }


def test_decisions_frame_flattens_signals():
    frame = decisions_frame([decision(NOW, Action.BUYBACK, size=12.0).to_dict()])

    row = frame.iloc[0]
    assert row["action"] == "BUYBACK"
    assert row["size"] == 12.0
    assert row["mood_z_score"] == -1.2
    assert str(frame["time"].dt.tz) == "UTC"
