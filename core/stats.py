"""
Numeric primitives for signal processing.

Pure functions and small accumulators, no I/O.
"""

from collections import deque
from enum import Enum
from typing import Deque, Optional, Sequence

import numpy as np


class Crossover(str, Enum):
    UP = "up"
    DOWN = "down"
    NONE = "none"


class MovingAverage:
    """Simple arithmetic mean over the last ``window`` values."""

    def __init__(self, window: int):
        if window < 1:
            raise ValueError(f"window must be >= 1, got {window}")
        self.window = window
        self._values: Deque[float] = deque(maxlen=window)

    def add(self, value: float) -> float:
        self._values.append(float(value))
        return self.value

    @property
    def value(self) -> float:
        if not self._values:
            return 0.0
        return float(np.mean(self._values))

    def reset(self) -> None:
        self._values.clear()


class ExponentialMovingAverage:
    """
    EMA with smoothing factor ``alpha = 2 / (window + 1)``.

    The first value seeds the average directly (no warm-up bias).
    """

    def __init__(self, window: int):
        if window < 1:
            raise ValueError(f"window must be >= 1, got {window}")
        self.window = window
        self.alpha = 2.0 / (window + 1)
        self._ema: Optional[float] = None

    def add(self, value: float) -> float:
        if self._ema is None:
            self._ema = float(value)
        else:
            self._ema = self.alpha * value + (1 - self.alpha) * self._ema
        return self._ema

    @property
    def value(self) -> float:
        return self._ema if self._ema is not None else 0.0

    @property
    def initialized(self) -> bool:
        return self._ema is not None

    def restore(self, value: Optional[float]) -> None:
        """Reload a persisted value (``None`` leaves the average uninitialized)."""
        self._ema = None if value is None else float(value)

    def reset(self) -> None:
        self._ema = None


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def stddev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by N)."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=0))


# Float noise on a constant series leaves a stddev around 1e-17
ZERO_STDDEV_TOLERANCE = 1e-12


def z_score(value: float, mu: float, sigma: float) -> float:
    if sigma <= ZERO_STDDEV_TOLERANCE * max(1.0, abs(mu)):
        return 0.0
    return (value - mu) / sigma


def crossover(fast: Sequence[float], slow: Sequence[float]) -> Crossover:
    """
    Compare the last two paired samples of two series.

    DOWN when fast was >= slow and is now strictly below it, UP for the
    mirror case, NONE otherwise (including fewer than two points).
    """
    if len(fast) < 2 or len(slow) < 2:
        return Crossover.NONE

    fast_prev, fast_curr = fast[-2], fast[-1]
    slow_prev, slow_curr = slow[-2], slow[-1]

    if fast_prev <= slow_prev and fast_curr > slow_curr:
        return Crossover.UP
    if fast_prev >= slow_prev and fast_curr < slow_curr:
        return Crossover.DOWN
    return Crossover.NONE
