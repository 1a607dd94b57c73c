"""
MoodAgent - Main Entry Point
Periodic sentiment → decision → execution loop

CLI Flags Reference:
| Flag | Default | Description |
|------|---------|-------------|
| `--mode` | `MOODAGENT_MODE` or `paper` | Collaborators (paper = simulated, live = HTTP + Redis) |
| `--timeout` | `None` | Stop after N minutes |
| `--auto-execute` | `ENABLE_AUTO_EXECUTION` | Dispatch BUYBACK/BURN decisions to the chain |
| `--enable-burn` | `ENABLE_BURN` | Allow BURN executions |
| `--kill-switch` | `None` | Activate the kill switch with a reason and exit |
| `--release-kill-switch` | `False` | Deactivate the kill switch and exit |
| `--log-level` | `LOG_LEVEL` | Logging level |
| `--log-format` | `LOG_FORMAT` | console or json |
"""

import argparse
import asyncio
import logging
import signal
import sys
import time
from dataclasses import dataclass, field
from typing import List, Optional

from config import endpoints, system
from core.clock import TaskRunner
from core.exceptions import ConfigurationError
from core.interfaces import ChainClient, MarketDataSource, SentimentSource
from core.observability import bind_context, configure_logging
from core.publisher import ArtifactPublisher
from core.sources import (
    HttpChainGateway,
    HttpMarketDataSource,
    HttpSentimentSource,
    PaperChainClient,
    SimulatedMarketSource,
    SimulatedSentimentSource,
)
from core.store import DurableStore, InMemoryStore
from core.store.redis_store import RedisStore
from decision import DecisionStateMachine, RiskGate, SignalAggregator
from executor import ExecutionTracker
from utils.history_report import load_report
from workers import (
    DecisionCycleTask,
    ExecutionPollTask,
    MarketCycleTask,
    SentimentCycleTask,
    TreasuryMonitorTask,
)

logger = logging.getLogger("MoodAgent")


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="MoodAgent sentiment-driven treasury agent")

    parser.add_argument(
        "--mode",
        type=str,
        default=system.MODE,
        choices=["paper", "live"],
        help="Execution mode (default: MOODAGENT_MODE or paper)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Stop after N minutes (default: run indefinitely)",
    )
    parser.add_argument(
        "--auto-execute",
        action="store_true",
        default=endpoints.ENABLE_AUTO_EXECUTION,
        help="Dispatch decisions to the chain (default: ENABLE_AUTO_EXECUTION)",
    )
    parser.add_argument(
        "--enable-burn",
        action="store_true",
        default=endpoints.ENABLE_BURN,
        help="Allow BURN executions (default: ENABLE_BURN)",
    )
    parser.add_argument("--kill-switch", type=str, metavar="REASON", help="Activate the kill switch and exit")
    parser.add_argument("--release-kill-switch", action="store_true", help="Deactivate the kill switch and exit")
    parser.add_argument("--log-level", type=str, default=system.LOG_LEVEL)
    parser.add_argument("--log-format", type=str, default=system.LOG_FORMAT, choices=["console", "json"])
    parser.add_argument("--log-file", type=str, default=None)

    return parser.parse_args(argv)


@dataclass
class Collaborators:
    store: DurableStore
    sentiment: SentimentSource
    market: MarketDataSource
    chain: ChainClient
    closers: List = field(default_factory=list)

    async def close(self) -> None:
        for closer in self.closers:
            try:
                await closer()
            except Exception as e:
                logger.error(f"❌ Error closing collaborator: {e}")


def build_collaborators(mode: str) -> Collaborators:
    """
    Paper mode uses simulated collaborators (and Redis only if REDIS_URL is
    set). Live mode needs every endpoint configured.

    Raises:
        ConfigurationError: live mode with missing endpoints.
    """
    if mode == "live":
        urls = endpoints.require_live_endpoints()
        store = RedisStore(urls["REDIS_URL"])
        sentiment = HttpSentimentSource(urls["SENTIMENT_ENDPOINT"])
        market = HttpMarketDataSource(urls["MARKET_ENDPOINT"])
        chain = HttpChainGateway(urls["CHAIN_GATEWAY_URL"], urls["TREASURY_ADDRESS"], urls["TOKEN_MINT"])
        return Collaborators(
            store, sentiment, market, chain, [sentiment.close, market.close, chain.close, store.close]
        )

    store = RedisStore(endpoints.REDIS_URL) if endpoints.REDIS_URL else InMemoryStore()
    return Collaborators(
        store,
        SimulatedSentimentSource(seed=system.SEED),
        SimulatedMarketSource(seed=system.SEED),
        PaperChainClient(seed=system.SEED),
        [store.close],
    )


async def run(args) -> int:
    try:
        collaborators = build_collaborators(args.mode)
    except ConfigurationError as e:
        logger.critical(f"🛑 Cannot start in {args.mode} mode: {e}")
        return 1

    bind_context(mode=args.mode)
    publisher = ArtifactPublisher(collaborators.store)
    risk_gate = RiskGate(collaborators.store, publisher=publisher)

    try:
        # Operator commands
        if (args.kill_switch or args.release_kill_switch) and not collaborators.store.persistent:
            logger.critical("🛑 Kill switch commands need a shared store: set REDIS_URL")
            return 1
        if args.kill_switch:
            await risk_gate.activate_kill_switch(args.kill_switch)
            return 0
        if args.release_kill_switch:
            await risk_gate.deactivate_kill_switch()
            return 0

        aggregator = SignalAggregator()
        machine = DecisionStateMachine(risk_gate, publisher)
        tracker = ExecutionTracker(
            collaborators.chain,
            risk_gate,
            publisher,
            auto_execution=args.auto_execute,
            burn_enabled=args.enable_burn,
        )

        sentiment_task = SentimentCycleTask(collaborators.sentiment, aggregator, publisher)
        await sentiment_task.restore()
        await machine.restore()

        runner = TaskRunner(
            [
                # Treasury first so the gate has a balance before the first decision
                TreasuryMonitorTask(collaborators.chain, risk_gate),
                sentiment_task,
                MarketCycleTask(collaborators.market, publisher),
                DecisionCycleTask(publisher, machine, tracker),
                ExecutionPollTask(tracker),
            ]
        )

        loop = asyncio.get_running_loop()

        def signal_handler():
            logger.info("🛑 Received shutdown signal")
            runner.request_stop()

        try:
            loop.add_signal_handler(signal.SIGTERM, signal_handler)
            loop.add_signal_handler(signal.SIGINT, signal_handler)
        except NotImplementedError:
            # Signal handlers are not supported on Windows
            pass

        if args.timeout:
            loop.call_later(args.timeout * 60, runner.request_stop)
            logger.info(f"⏱️ Will stop after {args.timeout} minutes")

        logger.info(
            f"🚀 Starting MoodAgent | Mode: {args.mode} | Auto-execution: {args.auto_execute} | "
            f"Burn: {args.enable_burn}"
        )
        started = time.time()
        await runner.start()
        await runner.wait()

        if tracker.active_references():
            logger.warning(f"⚠️ {len(tracker.active_references())} execution(s) still pending at shutdown")

        await _log_session_summary(collaborators.store, risk_gate, started)
        return 0
    finally:
        await collaborators.close()
        logger.info("🏁 Cleanup complete. Goodbye.")


async def _log_session_summary(store: DurableStore, risk_gate: RiskGate, started: float) -> None:
    try:
        report = await load_report(store, started, time.time())
        summary = report["summary"]
        state = await risk_gate.get_risk_state()

        logger.info("==========================================")
        logger.info("🏁 SESSION SUMMARY")
        logger.info(f"   Decisions: {summary['decisions']} {summary['actions']}")
        logger.info(f"   Executions: {summary['executions']} {summary['statuses']}")
        logger.info(f"   Confirmed amount: {summary['confirmed_amount']:.4f}")
        logger.info("   --------------------------------------")
        logger.info(f"   Treasury: {state.treasury_balance:.2f}")
        logger.info(f"   Spent today: {state.daily_spent:.2f}")
        logger.info(f"   Consecutive losses: {state.consecutive_losses}")
        logger.info(f"   Kill switch: {'ACTIVE' if state.kill_switch_active else 'off'}")
        logger.info("==========================================")
    except Exception as e:
        logger.error(f"❌ Error generating summary: {e}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(log_level=args.log_level, log_format=args.log_format, log_file=args.log_file)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
