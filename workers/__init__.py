"""Periodic workers that drive the core: sentiment, market, decision, treasury and execution polling."""

from .cycles import (
    AGGREGATOR_STATE_KEY,
    DecisionCycleTask,
    ExecutionPollTask,
    MarketCycleTask,
    SentimentCycleTask,
    TreasuryMonitorTask,
)

__all__ = [
    "AGGREGATOR_STATE_KEY",
    "DecisionCycleTask",
    "ExecutionPollTask",
    "MarketCycleTask",
    "SentimentCycleTask",
    "TreasuryMonitorTask",
]
