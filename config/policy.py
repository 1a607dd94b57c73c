"""
====================================================
🧭 POLICY CONFIGURATION — MOODAGENT
====================================================

Decision thresholds, risk limits and sizing constants.
"""

# =====================================================
# 📈 SENTIMENT THRESHOLDS (z-score)
# =====================================================

# z-score at or above which sentiment counts as hype
HYPE_THRESHOLD = 1.5

# z-score at or below which sentiment counts as FUD
FUD_THRESHOLD = -1.0


# =====================================================
# 🚀 MOMENTUM THRESHOLDS
# =====================================================

MOMENTUM_POSITIVE = 0.0
MOMENTUM_NEGATIVE = 0.0


# =====================================================
# 〰️ EMA WINDOWS
# =====================================================

EMA_SHORT = 5
EMA_MEDIUM = 15
EMA_LONG = 60


# =====================================================
# 💸 BUYBACK SIZING
# =====================================================

# size = BUYBACK_SCALE * |z| * treasury * DCA_FACTOR
BUYBACK_SCALE = 0.01
DCA_FACTOR = 0.5

# Max slippage passed to the execution layer (percent)
MAX_SLIPPAGE_PERCENT = 2.0

# Minimum pool liquidity (USD) before a burn is considered
MIN_BURN_LIQUIDITY = 10_000.0

# Fraction of current token holdings burned per BURN action
BURN_FRACTION = 0.1


# =====================================================
# 🛡️ RISK LIMITS
# =====================================================

MAX_DAILY_SPEND_PERCENT = 5.0  # % of treasury per calendar day
MIN_TREASURY_THRESHOLD = 0.1  # reserve floor as a fraction of treasury
MAX_CONSECUTIVE_LOSSES = 3
