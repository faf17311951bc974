"""
multidiv Test Fixtures

Synthetic bar generators for the divergence engine tests: a seeded sine
wave with noise and trend for realistic price movement, plus hand-built
frames where every pivot is placed explicitly.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import numpy as np
import polars as pl
import pytest


# =============================================================================
# Constants
# =============================================================================

SEED = 42
DEFAULT_ROWS = 1000
START = datetime(2024, 1, 1, 0, 0, 0)


# =============================================================================
# Generators
# =============================================================================

def timestamps(n_rows: int) -> list[datetime]:
    return [START + timedelta(minutes=i) for i in range(n_rows)]


def generate_test_ohlcv(
    n_rows: int,
    base_price: float = 100.0,
    amplitude: float = 10.0,
    period_bars: int = 100,
    noise_level: float = 0.02,
    trend: float = 0.0001,
    seed: int = SEED,
) -> pl.DataFrame:
    """
    Generate test OHLCV data: sine wave + noise + trend.

    Args:
        n_rows: Number of rows to generate
        base_price: Center price value (default $100)
        amplitude: Sine wave amplitude (default $10)
        period_bars: Bars per complete sine cycle (default 100)
        noise_level: Price noise as fraction (default 2%)
        trend: Linear trend per bar (default 0.01%)
        seed: Random seed for reproducibility

    Returns:
        pl.DataFrame with columns: timestamp, open, high, low, close, volume
    """
    rng = np.random.default_rng(seed)

    t = np.arange(n_rows)
    trend_component = base_price * trend * t
    sine_component = amplitude * np.sin(2 * np.pi * t / period_bars)
    base_wave = base_price + sine_component + trend_component

    noise = rng.normal(0, base_price * noise_level, n_rows)
    close_prices = base_wave + noise

    open_prices = np.empty(n_rows)
    open_prices[0] = close_prices[0]
    open_prices[1:] = close_prices[:-1]

    intrabar_range = np.abs(close_prices - open_prices) + base_price * noise_level
    high_prices = np.maximum(open_prices, close_prices) + np.abs(rng.normal(0, intrabar_range * 0.5))
    low_prices = np.minimum(open_prices, close_prices) - np.abs(rng.normal(0, intrabar_range * 0.5))

    base_volume = 1000.0
    price_changes = np.abs(np.diff(close_prices, prepend=close_prices[0]))
    volume_multiplier = 1 + (price_changes / close_prices) * 5
    volumes = np.abs(rng.normal(base_volume, base_volume * 0.3, n_rows)) * volume_multiplier

    return pl.DataFrame({
        "timestamp": timestamps(n_rows),
        "open": open_prices,
        "high": high_prices,
        "low": low_prices,
        "close": close_prices,
        "volume": volumes,
    })


def make_bars(lows: np.ndarray, highs: np.ndarray) -> pl.DataFrame:
    """Bars with explicit lows/highs; open and close sit mid-range."""
    lows = np.asarray(lows, dtype=np.float64)
    highs = np.asarray(highs, dtype=np.float64)
    mid = (lows + highs) / 2
    return pl.DataFrame({
        "timestamp": timestamps(len(lows)),
        "open": mid,
        "high": highs,
        "low": lows,
        "close": mid,
        "volume": np.full(len(lows), 1000.0),
    })


def bullish_scenario(n_rows: int = 30) -> tuple[pl.DataFrame, dict[str, np.ndarray]]:
    """
    Two oscillators that both show a regular bullish divergence.

    Price lows pivot at bar 10 (100) and bar 20 (90); oscillator A pivots
    low at 20 then 30, oscillator B at 25 then 35. Everything else is flat,
    so no other pivots exist.
    """
    lows = np.full(n_rows, 110.0)
    lows[10], lows[20] = 100.0, 90.0
    highs = np.full(n_rows, 120.0)

    osc_a = np.full(n_rows, 50.0)
    osc_a[10], osc_a[20] = 20.0, 30.0
    osc_b = np.full(n_rows, 60.0)
    osc_b[10], osc_b[20] = 25.0, 35.0

    return make_bars(lows, highs), {"a": osc_a, "b": osc_b}


# =============================================================================
# Pytest Fixtures
# =============================================================================

@pytest.fixture
def test_data() -> pl.DataFrame:
    """Standard test data for all tests."""
    return generate_test_ohlcv(n_rows=DEFAULT_ROWS)


@pytest.fixture
def scenario() -> tuple[pl.DataFrame, dict[str, np.ndarray]]:
    return bullish_scenario()
