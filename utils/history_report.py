"""
History report - MoodAgent

Loads published decisions and execution records for a time window into
pandas DataFrames and prints a short summary per action.

Usage:
    python -m utils.history_report --hours 24
    python -m utils.history_report --redis-url redis://localhost:6379/0 --hours 6
"""

import argparse
import asyncio
import sys
import time
from typing import Any, Dict, List, Optional

import pandas as pd

from config import endpoints
from core.publisher import ArtifactPublisher
from core.store import DurableStore

DECISION_COLUMNS = ["time", "action", "reason", "mood_z_score", "price_momentum", "liquidity_ok", "size"]
EXECUTION_COLUMNS = ["time", "action", "status", "reference", "amount_processed", "error"]


def _to_time(frame: pd.DataFrame) -> pd.DataFrame:
    if not frame.empty:
        frame["time"] = pd.to_datetime(frame["time"], unit="s", utc=True)
        frame = frame.sort_values("time").reset_index(drop=True)
    return frame


def decisions_frame(records: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for record in records:
        signals = record.get("signals") or {}
        params = record.get("execution_params") or {}
        rows.append(
            {
                "time": record.get("timestamp"),
                "action": record.get("action"),
                "reason": record.get("reason", ""),
                "mood_z_score": signals.get("mood_z_score"),
                "price_momentum": signals.get("price_momentum"),
                "liquidity_ok": signals.get("liquidity_ok"),
                "size": params.get("size", 0.0),
            }
        )
    return _to_time(pd.DataFrame(rows, columns=DECISION_COLUMNS))


def executions_frame(records: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for record in records:
        rows.append(
            {
                "time": record.get("timestamp"),
                "action": (record.get("decision") or {}).get("action"),
                "status": record.get("status"),
                "reference": record.get("reference"),
                "amount_processed": record.get("amount_processed"),
                "error": record.get("error"),
            }
        )
    return _to_time(pd.DataFrame(rows, columns=EXECUTION_COLUMNS))


def summarize(decisions: pd.DataFrame, executions: pd.DataFrame) -> Dict[str, Any]:
    """Action counts, total buyback size and execution status counts."""
    summary: Dict[str, Any] = {
        "decisions": int(len(decisions)),
        "actions": decisions["action"].value_counts().to_dict() if not decisions.empty else {},
        "buyback_volume": 0.0,
        "executions": int(len(executions)),
        "statuses": {},
        "confirmed_amount": 0.0,
    }
    if not decisions.empty:
        summary["buyback_volume"] = float(decisions.loc[decisions["action"] == "BUYBACK", "size"].fillna(0).sum())
    if not executions.empty:
        summary["statuses"] = executions["status"].value_counts().to_dict()
        confirmed = executions[executions["status"] == "confirmed"]
        summary["confirmed_amount"] = float(confirmed["amount_processed"].fillna(0).sum())
    return summary


async def load_report(store: DurableStore, start: float, end: float) -> Dict[str, Any]:
    publisher = ArtifactPublisher(store)
    decisions, executions = await asyncio.gather(
        publisher.history("policy", start, end),
        publisher.history("execution", start, end),
    )
    decision_df = decisions_frame(decisions)
    execution_df = executions_frame(executions)
    return {
        "decisions": decision_df,
        "executions": execution_df,
        "summary": summarize(decision_df, execution_df),
    }


def print_report(report: Dict[str, Any]) -> None:
    summary = report["summary"]

    print("\n📊 DECISION HISTORY")
    print("-" * 60)
    print(f"{'ACTION':<12} | {'COUNT':<8}")
    print("-" * 60)
    for action, count in sorted(summary["actions"].items()):
        print(f"{action:<12} | {count:<8}")
    print("-" * 60)
    print(f"{'TOTAL':<12} | {summary['decisions']:<8}")
    print(f"Buyback volume proposed: {summary['buyback_volume']:.4f}")

    print("\n🧾 EXECUTIONS")
    print("-" * 60)
    for status, count in sorted(summary["statuses"].items()):
        print(f"{status:<12} | {count:<8}")
    print("-" * 60)
    print(f"{'TOTAL':<12} | {summary['executions']:<8}")
    print(f"Confirmed amount: {summary['confirmed_amount']:.4f}")

    executions = report["executions"]
    if not executions.empty:
        print("\nLast executions:")
        print(executions.tail(10).to_string(index=False))


async def _run(redis_url: str, hours: float) -> None:
    from core.store.redis_store import RedisStore

    store = RedisStore(redis_url)
    try:
        end = time.time()
        report = await load_report(store, end - hours * 3600, end)
    finally:
        await store.close()
    print_report(report)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="MoodAgent decision/execution history report")
    parser.add_argument("--redis-url", type=str, default=endpoints.REDIS_URL, help="Store URL (default: REDIS_URL)")
    parser.add_argument("--hours", type=float, default=24.0, help="Window size in hours (default: 24)")
    args = parser.parse_args(argv)

    if not args.redis_url:
        print("❌ No store configured: pass --redis-url or set REDIS_URL")
        return 1

    asyncio.run(_run(args.redis_url, args.hours))
    return 0


if __name__ == "__main__":
    sys.exit(main())
