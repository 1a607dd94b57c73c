import asyncio

import pytest
import structlog

from core.clock import PeriodicTask, SystemClock, TaskRunner
from core.observability import bind_context, configure_logging, get_logger


@pytest.fixture(autouse=True)
def clean_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


def test_json_logging_includes_bound_context():
    configure_logging(log_level="DEBUG", log_format="json")
    bind_context(mode="paper")

    assert structlog.contextvars.get_contextvars() == {"mode": "paper"}
    assert get_logger("DecisionAudit") is not None


class ContextRecorder(PeriodicTask):
    def __init__(self, name):
        super().__init__(name, interval=60.0, clock=SystemClock())
        self.seen = None

    async def run_once(self):
        self.seen = structlog.contextvars.get_contextvars()


@pytest.mark.asyncio
async def test_each_periodic_task_logs_under_its_own_name():
    bind_context(mode="paper")
    tasks = [ContextRecorder("Sentiment"), ContextRecorder("Market")]
    runner = TaskRunner(tasks)

    await runner.start()
    await asyncio.sleep(0.01)
    await asyncio.wait_for(runner.stop(), timeout=1.0)

    assert tasks[0].seen == {"mode": "paper", "task": "Sentiment"}
    assert tasks[1].seen == {"mode": "paper", "task": "Market"}
    # Task bindings do not leak into the caller's context
    assert structlog.contextvars.get_contextvars() == {"mode": "paper"}
