import pytest

from config import endpoints, policy, system
from core.exceptions import ConfigurationError

LIVE_VARS = ["REDIS_URL", "SENTIMENT_ENDPOINT", "MARKET_ENDPOINT", "CHAIN_GATEWAY_URL", "TREASURY_ADDRESS", "TOKEN_MINT"]


def test_require_live_endpoints_reports_missing(monkeypatch):
    for name in LIVE_VARS:
        monkeypatch.setattr(endpoints, name, f"value-{name}")
    monkeypatch.setattr(endpoints, "TOKEN_MINT", None)
    monkeypatch.setattr(endpoints, "REDIS_URL", "")

    with pytest.raises(ConfigurationError) as exc:
        endpoints.require_live_endpoints()

    assert exc.value.details["missing"] == ["REDIS_URL", "TOKEN_MINT"]
    assert "Missing required live endpoints" in str(exc.value)


def test_require_live_endpoints_returns_all(monkeypatch):
    for name in LIVE_VARS:
        monkeypatch.setattr(endpoints, name, f"value-{name}")

    urls = endpoints.require_live_endpoints()
    assert urls == {name: f"value-{name}" for name in LIVE_VARS}


def test_mode_from_env(monkeypatch):
    monkeypatch.setenv("MOODAGENT_MODE", " LIVE ")
    assert system._get_mode("paper") == "live"

    monkeypatch.delenv("MOODAGENT_MODE")
    assert system._get_mode("paper") == "paper"


def test_invalid_mode_rejected(monkeypatch):
    monkeypatch.setenv("MOODAGENT_MODE", "testing")
    with pytest.raises(ValueError):
        system._get_mode("paper")


def test_flag_parsing(monkeypatch):
    monkeypatch.setenv("ENABLE_BURN", "True")
    assert endpoints._flag("ENABLE_BURN") is True
    monkeypatch.setenv("ENABLE_BURN", "yes")
    assert endpoints._flag("ENABLE_BURN") is False
    monkeypatch.delenv("ENABLE_BURN")
    assert endpoints._flag("ENABLE_BURN") is False


def test_policy_defaults():
    assert policy.HYPE_THRESHOLD == 1.5
    assert policy.FUD_THRESHOLD == -1.0
    assert policy.MAX_DAILY_SPEND_PERCENT == 5.0
    assert policy.MIN_TREASURY_THRESHOLD == 0.1
    assert policy.MAX_CONSECUTIVE_LOSSES == 3
    assert (policy.EMA_SHORT, policy.EMA_MEDIUM, policy.EMA_LONG) == (5, 15, 60)
