"""
Contracts for the external collaborators.

The core never looks past these methods: scoring, price discovery and
chain-specific transaction handling all live behind them.
"""

from abc import ABC, abstractmethod
from typing import List

from .models import ExecutionRequest, ExecutionStatus, MarketSignal, SentimentSample


class SentimentSource(ABC):
    """Yields already-scored sentiment samples."""

    @abstractmethod
    async def fetch_batch(self) -> List[SentimentSample]:
        """Return a finite batch (possibly empty) of samples."""
        pass


class MarketDataSource(ABC):
    """Yields one market snapshot per call."""

    @abstractmethod
    async def fetch_signal(self) -> MarketSignal:
        pass


class ChainClient(ABC):
    """Dispatches sized actions and reports on them by opaque reference."""

    @abstractmethod
    async def submit(self, request: ExecutionRequest) -> str:
        """Fire-and-forget dispatch; returns the reference to poll."""
        pass

    @abstractmethod
    async def get_status(self, reference: str) -> ExecutionStatus:
        pass

    @abstractmethod
    async def get_treasury_balance(self) -> float:
        pass

    @abstractmethod
    async def get_token_balance(self) -> float:
        """Current holdings of the managed token (burn sizing input)."""
        pass

    async def close(self) -> None:
        pass
