"""
Decision Module

Turns sentiment batches and market snapshots into gated trading
decisions (HODL/BUYBACK/BURN/NOOP).

It acts as the 'brain' of the system: aggregation, ordered rules and the
risk gate that every spend has to pass.
"""

from .aggregator import SignalAggregator
from .risk_gate import RiskGate, RiskLimits
from .rules import DEFAULT_RULES, DecisionThresholds, Rule
from .state_machine import DecisionStateMachine

__all__ = [
    "SignalAggregator",
    "RiskGate",
    "RiskLimits",
    "DecisionStateMachine",
    "DecisionThresholds",
    "Rule",
    "DEFAULT_RULES",
]
