"""
Decision rules.

Rules are data: an ordered tuple of ``Rule`` entries evaluated
first-match-wins. Moving an entry changes precedence; later rules are
never consulted once an earlier predicate matches.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Tuple

from config import policy
from core.models import Action, AggregatedMood, ExecutionParams, MarketSignal
from core.stats import Crossover

if TYPE_CHECKING:
    from .risk_gate import RiskGate


@dataclass(frozen=True)
class DecisionThresholds:
    hype_threshold: float = policy.HYPE_THRESHOLD
    fud_threshold: float = policy.FUD_THRESHOLD
    momentum_positive: float = policy.MOMENTUM_POSITIVE
    momentum_negative: float = policy.MOMENTUM_NEGATIVE
    buyback_scale: float = policy.BUYBACK_SCALE
    dca_factor: float = policy.DCA_FACTOR
    max_slippage: float = policy.MAX_SLIPPAGE_PERCENT
    min_burn_liquidity: float = policy.MIN_BURN_LIQUIDITY

    @classmethod
    def from_config(cls) -> "DecisionThresholds":
        return cls(
            hype_threshold=policy.HYPE_THRESHOLD,
            fud_threshold=policy.FUD_THRESHOLD,
            momentum_positive=policy.MOMENTUM_POSITIVE,
            momentum_negative=policy.MOMENTUM_NEGATIVE,
            buyback_scale=policy.BUYBACK_SCALE,
            dca_factor=policy.DCA_FACTOR,
            max_slippage=policy.MAX_SLIPPAGE_PERCENT,
            min_burn_liquidity=policy.MIN_BURN_LIQUIDITY,
        )


@dataclass(frozen=True)
class RuleContext:
    mood: AggregatedMood
    market: MarketSignal
    crossover: Crossover
    thresholds: DecisionThresholds

    @property
    def liquidity_ok(self) -> bool:
        return self.market.liquidity > self.thresholds.min_burn_liquidity


@dataclass(frozen=True)
class RuleOutcome:
    action: Action
    reason: str
    execution_params: Optional[ExecutionParams] = None


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Callable[[RuleContext], bool]
    build: Callable[[RuleContext, "RiskGate"], Awaitable[RuleOutcome]]


# =====================================================
# 1. HOLD DURING HYPE
# =====================================================


def _is_hype(ctx: RuleContext) -> bool:
    t = ctx.thresholds
    return ctx.mood.z_score >= t.hype_threshold and ctx.market.momentum >= t.momentum_positive


async def _hold(ctx: RuleContext, gate: "RiskGate") -> RuleOutcome:
    return RuleOutcome(
        Action.HODL,
        f"High sentiment (z={ctx.mood.z_score:.2f}) and positive momentum - waiting",
    )


# =====================================================
# 2. BUY THE DIP
# =====================================================


def _is_dip(ctx: RuleContext) -> bool:
    t = ctx.thresholds
    return ctx.mood.z_score <= t.fud_threshold and ctx.market.momentum <= t.momentum_negative


def buyback_size(z_score: float, treasury_balance: float, thresholds: DecisionThresholds) -> float:
    return thresholds.buyback_scale * abs(z_score) * treasury_balance * thresholds.dca_factor


async def _buyback(ctx: RuleContext, gate: "RiskGate") -> RuleOutcome:
    t = ctx.thresholds
    treasury = await gate.get_treasury_balance()
    size = buyback_size(ctx.mood.z_score, treasury, t)

    check = await gate.can_execute(size)
    if not check.allowed:
        return RuleOutcome(Action.NOOP, f"Buyback blocked: {check.reason}")

    return RuleOutcome(
        Action.BUYBACK,
        f"Low sentiment (z={ctx.mood.z_score:.2f}) and negative momentum - buying opportunity",
        ExecutionParams(size=size, max_slippage=t.max_slippage, dca_factor=t.dca_factor),
    )


# =====================================================
# 3. BURN AFTER BEARISH CROSSOVER
# =====================================================


def _is_bearish_crossover(ctx: RuleContext) -> bool:
    return ctx.crossover == Crossover.DOWN and ctx.liquidity_ok


async def _burn(ctx: RuleContext, gate: "RiskGate") -> RuleOutcome:
    # Burn amount is sized by the execution layer from current holdings
    return RuleOutcome(Action.BURN, "Bearish EMA crossover detected - burning tokens")


# =====================================================
# 4. DEFAULT
# =====================================================


async def _wait(ctx: RuleContext, gate: "RiskGate") -> RuleOutcome:
    return RuleOutcome(Action.NOOP, "No clear signal - waiting")


DEFAULT_RULES: Tuple[Rule, ...] = (
    Rule("hold_during_hype", _is_hype, _hold),
    Rule("buy_the_dip", _is_dip, _buyback),
    Rule("bearish_crossover_burn", _is_bearish_crossover, _burn),
    Rule("default", lambda ctx: True, _wait),
)
