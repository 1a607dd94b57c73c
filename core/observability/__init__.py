"""Observability Package."""

from .logging_config import (
    bind_context,
    configure_logging,
    get_logger,
)
from .metrics import (
    record_decision,
    record_execution_transition,
    record_mood,
    record_risk_rejection,
    record_task_error,
    update_active_executions,
    update_risk_state,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    # Metrics
    "record_mood",
    "record_decision",
    "record_risk_rejection",
    "record_execution_transition",
    "record_task_error",
    "update_active_executions",
    "update_risk_state",
]
