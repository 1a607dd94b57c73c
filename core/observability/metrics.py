"""
Prometheus Metrics for MoodAgent.

Collectors are module-level so every component records into the same
default registry. Exposition is left to the hosting process.
"""

from prometheus_client import Counter, Gauge, Histogram

# ============================================================================
# COUNTERS (monotonically increasing)
# ============================================================================

sentiment_batches_total = Counter(
    "sentiment_batches_total",
    "Total number of sentiment batches aggregated",
    ["result"],
)

decisions_total = Counter(
    "decisions_total",
    "Total number of policy decisions",
    ["action"],
)

risk_rejections_total = Counter(
    "risk_rejections_total",
    "Total number of spends rejected by the risk gate",
    ["check"],
)

execution_transitions_total = Counter(
    "execution_transitions_total",
    "Total number of execution status transitions",
    ["action", "status"],
)

task_errors_total = Counter(
    "task_errors_total",
    "Total number of failed periodic task iterations",
    ["task"],
)

# ============================================================================
# GAUGES (can go up and down)
# ============================================================================

mood_z_score = Gauge(
    "mood_z_score",
    "Latest aggregated mood z-score",
)

treasury_balance = Gauge(
    "treasury_balance",
    "Last observed treasury balance",
)

daily_spent = Gauge(
    "daily_spent",
    "Treasury spend recorded for the current day",
)

consecutive_losses = Gauge(
    "consecutive_losses",
    "Consecutive failed executions",
)

kill_switch_active = Gauge(
    "kill_switch_active",
    "Kill switch state (0=inactive, 1=active)",
)

active_executions = Gauge(
    "active_executions",
    "Executions currently pending confirmation",
)

# ============================================================================
# HISTOGRAMS (distribution of values)
# ============================================================================

buyback_size = Histogram(
    "buyback_size",
    "Proposed buyback size",
    buckets=[1, 5, 10, 50, 100, 500, 1000, 5000, 10000],
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def record_mood(z_score: float, empty: bool):
    """Record an aggregation result."""
    sentiment_batches_total.labels(result="empty" if empty else "aggregated").inc()
    if not empty:
        mood_z_score.set(z_score)


def record_decision(action: str, size: float = 0.0):
    """Record a policy decision."""
    decisions_total.labels(action=action).inc()
    if size > 0:
        buyback_size.observe(size)


def record_risk_rejection(check: str):
    """Record a risk gate rejection."""
    risk_rejections_total.labels(check=check).inc()


def record_execution_transition(action: str, status: str):
    """Record an execution status change."""
    execution_transitions_total.labels(action=action, status=status).inc()


def record_task_error(task: str):
    """Record a failed task iteration."""
    task_errors_total.labels(task=task).inc()


def update_risk_state(balance: float, spent: float, losses: int, kill_switch: bool):
    """Update risk gauges."""
    treasury_balance.set(balance)
    daily_spent.set(spent)
    consecutive_losses.set(losses)
    kill_switch_active.set(1 if kill_switch else 0)


def update_active_executions(count: int):
    """Update pending execution gauge."""
    active_executions.set(count)
