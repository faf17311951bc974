"""Moving averages with SMA seeding, shared by the oscillator providers."""

import numpy as np
from numba import njit


def sma(values: np.ndarray, period: int) -> np.ndarray:
    """Simple moving average; first ``period - 1`` values are NaN."""
    n = len(values)
    out = np.full(n, np.nan)
    if n < period:
        return out

    cumsum = np.cumsum(np.insert(values.astype(np.float64), 0, 0.0))
    out[period - 1:] = (cumsum[period:] - cumsum[:-period]) / period
    return out


@njit
def _seeded_smoothing(values: np.ndarray, period: int, alpha: float) -> np.ndarray:
    n = len(values)
    out = np.full(n, np.nan)

    # Seed at the first full window of defined values
    start = -1
    run = 0
    for i in range(n):
        if np.isnan(values[i]):
            run = 0
        else:
            run += 1
            if run == period:
                start = i
                break

    if start < 0:
        return out

    out[start] = np.mean(values[start - period + 1:start + 1])
    for i in range(start + 1, n):
        out[i] = alpha * values[i] + (1 - alpha) * out[i - 1]

    return out


def ema_sma_init(values: np.ndarray, period: int) -> np.ndarray:
    """
    EMA with SMA initialization for reproducibility.

    Instead of ema[0] = values[0], the first value is the SMA of the first
    ``period`` defined values, which makes the EMA independent of the
    starting point after warmup. Leading NaNs are skipped.
    """
    values = np.ascontiguousarray(values, dtype=np.float64)
    return _seeded_smoothing(values, period, 2.0 / (period + 1))


def rma_sma_init(values: np.ndarray, period: int) -> np.ndarray:
    """Wilder's RMA (alpha = 1/period) with SMA initialization."""
    values = np.ascontiguousarray(values, dtype=np.float64)
    return _seeded_smoothing(values, period, 1.0 / period)
