"""
JSON-over-HTTP collaborators - MoodAgent

Thin aiohttp clients for deployments where scoring, market data and
transaction handling run as separate services. Only plain JSON documents
cross the wire; nothing here knows about a particular chain.

Expected documents:
    GET  <sentiment>                      {"samples": [{"value", "confidence", "weight", "topic"}, ...]}
    GET  <market>                         {"price", "price_change_24h", "volume_24h", "liquidity", "momentum", ...}
    POST <gateway>/executions             {"reference": "..."}
    GET  <gateway>/executions/<ref>       {"status": "pending" | "confirmed" | "failed"}
    GET  <gateway>/treasury/<address>     {"balance": ...}
    GET  <gateway>/tokens/<mint>/balance  {"balance": ...}
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from config import endpoints
from core.exceptions import DataError, TransientIOError, create_transient_error
from core.interfaces import ChainClient, MarketDataSource, SentimentSource
from core.models import ExecutionRequest, ExecutionStatus, MarketSignal, SentimentSample


class JsonHttpClient:
    """Owns one aiohttp session and maps transport failures to TransientIOError."""

    def __init__(self, name: str, timeout: float = endpoints.HTTP_TIMEOUT_SECONDS):
        self.name = name
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self.logger = logging.getLogger(name)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        session = await self._get_session()
        try:
            async with session.request(method, url, json=payload) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise TransientIOError(
                        f"{self.name} {method} {url} returned {resp.status}",
                        {"status": resp.status, "body": text[:200]},
                    )
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"❌ HTTP request failed: {e}")
            raise create_transient_error(self.name, f"{method} {url}", e) from e

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


class HttpSentimentSource(SentimentSource):
    def __init__(self, url: str, client: Optional[JsonHttpClient] = None):
        self.url = url
        self.client = client or JsonHttpClient("HttpSentimentSource")

    async def fetch_batch(self) -> List[SentimentSample]:
        data = await self.client.request("GET", self.url)
        try:
            return [SentimentSample.from_dict(item) for item in data.get("samples", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise DataError("Malformed sentiment batch", {"error": str(e)}) from e

    async def close(self) -> None:
        await self.client.close()


class HttpMarketDataSource(MarketDataSource):
    def __init__(self, url: str, client: Optional[JsonHttpClient] = None):
        self.url = url
        self.client = client or JsonHttpClient("HttpMarketDataSource")

    async def fetch_signal(self) -> MarketSignal:
        data = await self.client.request("GET", self.url)
        try:
            return MarketSignal.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise DataError("Malformed market signal", {"error": str(e)}) from e

    async def close(self) -> None:
        await self.client.close()


class HttpChainGateway(ChainClient):
    def __init__(
        self,
        base_url: str,
        treasury_address: str,
        token_mint: str,
        client: Optional[JsonHttpClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.treasury_address = treasury_address
        self.token_mint = token_mint
        self.client = client or JsonHttpClient("HttpChainGateway")

    async def submit(self, request: ExecutionRequest) -> str:
        payload = request.to_dict()
        payload["token_mint"] = self.token_mint
        payload["treasury_address"] = self.treasury_address
        data = await self.client.request("POST", f"{self.base_url}/executions", payload)
        reference = data.get("reference")
        if not reference:
            raise DataError("Gateway did not return a reference", {"response": data})
        return str(reference)

    async def get_status(self, reference: str) -> ExecutionStatus:
        data = await self.client.request("GET", f"{self.base_url}/executions/{reference}")
        try:
            return ExecutionStatus(data["status"])
        except (KeyError, ValueError) as e:
            raise DataError("Unknown execution status", {"reference": reference, "response": data}) from e

    async def get_treasury_balance(self) -> float:
        data = await self.client.request("GET", f"{self.base_url}/treasury/{self.treasury_address}")
        return self._balance(data)

    async def get_token_balance(self) -> float:
        data = await self.client.request("GET", f"{self.base_url}/tokens/{self.token_mint}/balance")
        return self._balance(data)

    @staticmethod
    def _balance(data: Dict[str, Any]) -> float:
        try:
            return float(data["balance"])
        except (KeyError, TypeError, ValueError) as e:
            raise DataError("Malformed balance response", {"response": data}) from e

    async def close(self) -> None:
        await self.client.close()
