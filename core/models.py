"""
Record definitions for the MoodAgent core.

Every record round-trips through plain dicts so it can be stored as JSON.
"""

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Action(str, Enum):
    HODL = "HODL"
    BUYBACK = "BUYBACK"
    BURN = "BURN"
    NOOP = "NOOP"


class ExecutionStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.PENDING


class Topic(str, Enum):
    OWN_ASSET = "own_asset"
    GENERAL_MARKET = "general_market"


@dataclass(frozen=True)
class SentimentSample:
    """One scored piece of content, as handed over by the sentiment collaborator."""

    value: float  # -1 .. +1
    confidence: float  # 0 .. 1
    weight: float = 1.0  # author weight, >= 0
    topic: Topic = Topic.GENERAL_MARKET

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SentimentSample":
        return cls(
            value=float(data["value"]),
            confidence=float(data["confidence"]),
            weight=float(data.get("weight", 1.0)),
            topic=Topic(data.get("topic", Topic.GENERAL_MARKET.value)),
        )


@dataclass(frozen=True)
class TopicBreakdown:
    own_asset: float = 0.0
    general_market: float = 0.0


@dataclass(frozen=True)
class AggregatedMood:
    timestamp: float
    raw_score: float
    z_score: float
    ema5: float
    ema15: float
    ema60: float
    volume: int
    topic_breakdown: TopicBreakdown = field(default_factory=TopicBreakdown)

    @classmethod
    def empty(cls, timestamp: Optional[float] = None) -> "AggregatedMood":
        return cls(
            timestamp=time.time() if timestamp is None else timestamp,
            raw_score=0.0,
            z_score=0.0,
            ema5=0.0,
            ema15=0.0,
            ema60=0.0,
            volume=0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AggregatedMood":
        topics = data.get("topic_breakdown") or {}
        return cls(
            timestamp=float(data["timestamp"]),
            raw_score=float(data["raw_score"]),
            z_score=float(data["z_score"]),
            ema5=float(data["ema5"]),
            ema15=float(data["ema15"]),
            ema60=float(data["ema60"]),
            volume=int(data.get("volume", 0)),
            topic_breakdown=TopicBreakdown(
                own_asset=float(topics.get("own_asset", 0.0)),
                general_market=float(topics.get("general_market", 0.0)),
            ),
        )


@dataclass(frozen=True)
class MarketSignal:
    price: float
    price_change_24h: float
    volume_24h: float
    liquidity: float
    momentum: float
    large_transfers: int = 0
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketSignal":
        return cls(
            price=float(data["price"]),
            price_change_24h=float(data.get("price_change_24h", 0.0)),
            volume_24h=float(data.get("volume_24h", 0.0)),
            liquidity=float(data["liquidity"]),
            momentum=float(data["momentum"]),
            large_transfers=int(data.get("large_transfers", 0)),
            timestamp=float(data.get("timestamp", time.time())),
        )


@dataclass(frozen=True)
class ExecutionParams:
    size: float
    max_slippage: float
    dca_factor: float


@dataclass(frozen=True)
class DecisionSignals:
    """Snapshot of the inputs a decision was made from."""

    mood_z_score: float
    price_momentum: float
    liquidity_ok: bool


@dataclass(frozen=True)
class PolicyDecision:
    timestamp: float
    action: Action
    reason: str
    signals: DecisionSignals
    execution_params: Optional[ExecutionParams] = None

    @property
    def spend_amount(self) -> float:
        """Treasury spend this decision proposes (0 for actions that spend nothing)."""
        if self.execution_params is None:
            return 0.0
        return self.execution_params.size

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["action"] = self.action.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolicyDecision":
        params = data.get("execution_params")
        signals = data.get("signals") or {}
        return cls(
            timestamp=float(data["timestamp"]),
            action=Action(data["action"]),
            reason=data.get("reason", ""),
            signals=DecisionSignals(
                mood_z_score=float(signals.get("mood_z_score", 0.0)),
                price_momentum=float(signals.get("price_momentum", 0.0)),
                liquidity_ok=bool(signals.get("liquidity_ok", False)),
            ),
            execution_params=ExecutionParams(**params) if params else None,
        )


@dataclass(frozen=True)
class ExecutionRequest:
    """What the chain collaborator is asked to do."""

    action: Action
    amount: float
    max_slippage: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["action"] = self.action.value
        return data


@dataclass
class ExecutionRecord:
    decision: PolicyDecision
    status: ExecutionStatus
    reference: Optional[str] = None
    amount_processed: Optional[float] = None
    error: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "decision": self.decision.to_dict(),
            "reference": self.reference,
            "status": self.status.value,
            "amount_processed": self.amount_processed,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutionRecord":
        return cls(
            decision=PolicyDecision.from_dict(data["decision"]),
            status=ExecutionStatus(data["status"]),
            reference=data.get("reference"),
            amount_processed=data.get("amount_processed"),
            error=data.get("error"),
            timestamp=float(data.get("timestamp", time.time())),
        )


@dataclass(frozen=True)
class RiskCheck:
    allowed: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class RiskState:
    daily_spent: float
    consecutive_losses: int
    last_execution_time: Optional[float]
    treasury_balance: float
    kill_switch_active: bool
    kill_switch_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
