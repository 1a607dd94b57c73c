"""Collaborator implementations: simulated (paper) and JSON-over-HTTP (live)."""

from .http import HttpChainGateway, HttpMarketDataSource, HttpSentimentSource
from .simulated import PaperChainClient, SimulatedMarketSource, SimulatedSentimentSource

__all__ = [
    "HttpChainGateway",
    "HttpMarketDataSource",
    "HttpSentimentSource",
    "PaperChainClient",
    "SimulatedMarketSource",
    "SimulatedSentimentSource",
]
