"""
====================================================
⚙️ MODULAR CONFIGURATION — MOODAGENT
====================================================

Usage:
    from config import policy, system, endpoints

    threshold = policy.HYPE_THRESHOLD
    mode = system.MODE
"""

from . import endpoints, policy, system

__all__ = [
    "policy",
    "system",
    "endpoints",
]
