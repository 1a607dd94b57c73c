"""
====================================================
🎯 SYSTEM CONFIGURATION — MOODAGENT
====================================================

Run mode, logging, loop cadence and buffer sizes.
"""

import os
from typing import Literal

# =====================================================
# 🎯 RUN MODE
# =====================================================

_MODE_ENV_VAR = "MOODAGENT_MODE"
_ALLOWED_MODES = {"paper", "live"}


def _get_mode(default: Literal["paper", "live"]) -> Literal["paper", "live"]:
    value = os.getenv(_MODE_ENV_VAR)
    if value:
        normalized = value.strip().lower()
        if normalized not in _ALLOWED_MODES:
            raise ValueError(f"Invalid MODE: {value}. Must be one of {_ALLOWED_MODES}")
        return normalized  # type: ignore[return-value]
    return default


# Modes:
#  - "paper" → simulated collaborators and in-memory store
#  - "live"  → HTTP collaborators and Redis store (endpoints required)
MODE: Literal["paper", "live"] = _get_mode("paper")


# =====================================================
# 🧾 LOGGING
# =====================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# "console" for development, "json" for production
LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()


# =====================================================
# ⏱️ LOOP CADENCE (seconds)
# =====================================================

SENTIMENT_INTERVAL = 30.0
MARKET_INTERVAL = 60.0
DECISION_INTERVAL = 60.0
TREASURY_REFRESH_INTERVAL = 60.0
EXECUTION_POLL_INTERVAL = 10.0

# Delay after a failed iteration before the loop resumes
ERROR_BACKOFF = 5.0


# =====================================================
# 🧮 ROLLING BUFFERS
# =====================================================

SCORE_HISTORY_SIZE = 1000
EMA_PAIR_HISTORY_SIZE = 100


# =====================================================
# 🗄️ RETENTION (seconds)
# =====================================================

DAY_SECONDS = 24 * 60 * 60
MOOD_RETENTION = 7 * DAY_SECONDS
MARKET_RETENTION = 7 * DAY_SECONDS
POLICY_RETENTION = 7 * DAY_SECONDS
RISK_RETENTION = 7 * DAY_SECONDS
EXECUTION_RETENTION = 30 * DAY_SECONDS


# =====================================================
# 🧱 REPRODUCIBILITY
# =====================================================

SEED = 42
