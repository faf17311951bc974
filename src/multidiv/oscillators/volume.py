"""Volume-weighted oscillators: OBV, VW-MACD, CMF."""
from dataclasses import dataclass
from typing import ClassVar

import numpy as np
import polars as pl

from multidiv.oscillators._smoothing import sma
from multidiv.oscillators.base import Oscillator, volume_of


@dataclass
class Obv(Oscillator):
    """On Balance Volume (OBV), cumulative from the first bar.

    - direction = sign(close - prev_close)
    - obv = cumsum(direction * volume)

    Reference: Joseph Granville, "New Key to Stock Market Profits"
    """

    requires: ClassVar[list[str]] = ["close", "volume"]

    @property
    def name(self) -> str:
        return "obv"

    @property
    def warmup(self) -> int:
        return 1

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        close = df["close"].to_numpy().astype(np.float64)
        volume = volume_of(df)

        direction = np.sign(np.diff(close, prepend=close[0]))
        return np.cumsum(direction * volume)


def vwma(values: np.ndarray, volume: np.ndarray, period: int) -> np.ndarray:
    """Volume-weighted moving average; NaN where the window has no volume."""
    num = sma(values * volume, period)
    den = sma(volume, period)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(den > 0, num / den, np.nan)


@dataclass
class VwMacd(Oscillator):
    """Volume-weighted MACD: VWMA(close, fast) - VWMA(close, slow)."""

    fast: int = 12
    slow: int = 26

    requires: ClassVar[list[str]] = ["close", "volume"]
    test_params: ClassVar[list[dict]] = [{"fast": 12, "slow": 26}]

    @property
    def name(self) -> str:
        return f"vw_macd_{self.fast}_{self.slow}"

    @property
    def warmup(self) -> int:
        return max(self.fast, self.slow)

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        close = df["close"].to_numpy().astype(np.float64)
        volume = volume_of(df)
        return vwma(close, volume, self.fast) - vwma(close, volume, self.slow)


@dataclass
class Cmf(Oscillator):
    """Chaikin Money Flow (CMF).

    CLV = ((Close - Low) - (High - Close)) / (High - Low)
    CMF = SMA(CLV * Volume, period) / SMA(Volume, period)

    Bounded approximately -1 to +1. Zero when the window has no volume.

    Reference: Marc Chaikin
    """

    period: int = 21

    requires: ClassVar[list[str]] = ["high", "low", "close", "volume"]
    test_params: ClassVar[list[dict]] = [{"period": 21}, {"period": 10}]

    @property
    def name(self) -> str:
        return f"cmf_{self.period}"

    @property
    def warmup(self) -> int:
        return self.period

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        high = df["high"].to_numpy().astype(np.float64)
        low = df["low"].to_numpy().astype(np.float64)
        close = df["close"].to_numpy().astype(np.float64)
        volume = volume_of(df)

        hl_range = high - low
        with np.errstate(divide="ignore", invalid="ignore"):
            clv = np.where(hl_range > 0, ((close - low) - (high - close)) / hl_range, 0.0)

        num = sma(clv * volume, self.period)
        den = sma(volume, self.period)
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.where(den > 0, num / den, np.where(np.isnan(den), np.nan, 0.0))
