"""
====================================================
🔌 ENDPOINTS & FEATURE FLAGS — MOODAGENT
====================================================

External collaborator endpoints (read from the environment / .env)
and execution feature flags.
"""

import os
from typing import Dict, Optional

from dotenv import load_dotenv

from core.exceptions import ConfigurationError

load_dotenv()


def _flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() == "true"


# =====================================================
# 🗄️ STORE
# =====================================================

REDIS_URL: Optional[str] = os.getenv("REDIS_URL")


# =====================================================
# 🛰️ COLLABORATORS
# =====================================================

SENTIMENT_ENDPOINT: Optional[str] = os.getenv("SENTIMENT_ENDPOINT")
MARKET_ENDPOINT: Optional[str] = os.getenv("MARKET_ENDPOINT")
CHAIN_GATEWAY_URL: Optional[str] = os.getenv("CHAIN_GATEWAY_URL")
TREASURY_ADDRESS: Optional[str] = os.getenv("TREASURY_ADDRESS")
TOKEN_MINT: Optional[str] = os.getenv("TOKEN_MINT")

HTTP_TIMEOUT_SECONDS = 15.0


# =====================================================
# 🚦 FEATURE FLAGS
# =====================================================

ENABLE_AUTO_EXECUTION = _flag("ENABLE_AUTO_EXECUTION")
ENABLE_BURN = _flag("ENABLE_BURN")


def require_live_endpoints() -> Dict[str, str]:
    """
    Return every endpoint needed for live mode.

    Raises:
        ConfigurationError: if any of them is absent.
    """
    required = {
        "REDIS_URL": REDIS_URL,
        "SENTIMENT_ENDPOINT": SENTIMENT_ENDPOINT,
        "MARKET_ENDPOINT": MARKET_ENDPOINT,
        "CHAIN_GATEWAY_URL": CHAIN_GATEWAY_URL,
        "TREASURY_ADDRESS": TREASURY_ADDRESS,
        "TOKEN_MINT": TOKEN_MINT,
    }
    missing = sorted(name for name, value in required.items() if not value)
    if missing:
        raise ConfigurationError("Missing required live endpoints", {"missing": missing})
    return {name: value for name, value in required.items()}  # type: ignore[misc]
