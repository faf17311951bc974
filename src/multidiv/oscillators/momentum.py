"""Price momentum oscillators: RSI, MACD line/histogram, Stochastic, CCI, MOM."""
from dataclasses import dataclass
from typing import ClassVar

import numpy as np
import polars as pl

from multidiv.oscillators._smoothing import ema_sma_init, rma_sma_init, sma
from multidiv.oscillators.base import Oscillator


@dataclass
class Rsi(Oscillator):
    """Relative Strength Index (RSI).

    RSI = 100 * avg_gain / (avg_gain + avg_loss)

    avg_gain/avg_loss use Wilder's smoothing (RMA) with SMA initialization.

    Reference: J. Welles Wilder, "New Concepts in Technical Trading Systems"
    """

    period: int = 14

    requires: ClassVar[list[str]] = ["close"]
    test_params: ClassVar[list[dict]] = [{"period": 14}, {"period": 7}]

    @property
    def name(self) -> str:
        return f"rsi_{self.period}"

    @property
    def warmup(self) -> int:
        return self.period

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        close = df["close"].to_numpy().astype(np.float64)

        diff = np.diff(close, prepend=close[0])
        diff[0] = 0

        gains = np.where(diff > 0, diff, 0.0)
        losses = np.where(diff < 0, -diff, 0.0)

        avg_gain = rma_sma_init(gains, self.period)
        avg_loss = rma_sma_init(losses, self.period)

        rs = avg_gain / (avg_loss + 1e-10)
        return 100 - (100 / (1 + rs))


@dataclass
class MacdLine(Oscillator):
    """MACD line: EMA(close, fast) - EMA(close, slow).

    Reference: Gerald Appel
    """

    fast: int = 12
    slow: int = 26

    test_params: ClassVar[list[dict]] = [{"fast": 12, "slow": 26}, {"fast": 5, "slow": 35}]

    @property
    def name(self) -> str:
        return f"macd_{self.fast}_{self.slow}"

    @property
    def warmup(self) -> int:
        return max(self.fast, self.slow)

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        close = df["close"].to_numpy()
        return ema_sma_init(close, self.fast) - ema_sma_init(close, self.slow)


@dataclass
class MacdHistogram(Oscillator):
    """MACD histogram: MACD - EMA(MACD, signal)."""

    fast: int = 12
    slow: int = 26
    signal: int = 9

    test_params: ClassVar[list[dict]] = [{"fast": 12, "slow": 26, "signal": 9}]

    @property
    def name(self) -> str:
        return f"macd_hist_{self.fast}_{self.slow}_{self.signal}"

    @property
    def warmup(self) -> int:
        return max(self.fast, self.slow) + self.signal - 1

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        macd = MacdLine(fast=self.fast, slow=self.slow).compute(df)
        # Seeds on the first `signal` defined MACD values
        return macd - ema_sma_init(macd, self.signal)


@dataclass
class Stochastic(Oscillator):
    """Smoothed Stochastic %K.

    %K raw = 100 * (close - lowest_low) / (highest_high - lowest_low)
    %K = SMA(%K raw, smooth_k)

    Reference: George Lane
    """

    k_period: int = 14
    smooth_k: int = 3

    requires: ClassVar[list[str]] = ["high", "low", "close"]
    test_params: ClassVar[list[dict]] = [{"k_period": 14, "smooth_k": 3}, {"k_period": 5, "smooth_k": 1}]

    @property
    def name(self) -> str:
        return f"stoch_k_{self.k_period}"

    @property
    def warmup(self) -> int:
        return self.k_period + self.smooth_k - 1

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        high = df["high"].to_numpy()
        low = df["low"].to_numpy()
        close = df["close"].to_numpy()
        n = len(close)

        raw_k = np.full(n, np.nan)
        for i in range(self.k_period - 1, n):
            hh = np.max(high[i - self.k_period + 1:i + 1])
            ll = np.min(low[i - self.k_period + 1:i + 1])

            if hh != ll:
                raw_k[i] = 100 * (close[i] - ll) / (hh - ll)
            else:
                raw_k[i] = 50.0  # Neutral when no range

        stoch_k = np.full(n, np.nan)
        start = self.k_period - 1
        stoch_k[start:] = sma(raw_k[start:], self.smooth_k)
        return stoch_k


@dataclass
class Cci(Oscillator):
    """Commodity Channel Index over a single source column.

    CCI = (src - SMA(src)) / (constant * MAD(src))

    Reference: Donald Lambert
    """

    period: int = 10
    constant: float = 0.015
    source: str = "close"

    test_params: ClassVar[list[dict]] = [{"period": 10}, {"period": 20, "constant": 0.015}]

    @property
    def name(self) -> str:
        return f"cci_{self.period}"

    @property
    def warmup(self) -> int:
        return self.period

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        src = df[self.source].to_numpy().astype(np.float64)
        n = len(src)
        cci = np.full(n, np.nan)

        for i in range(self.period - 1, n):
            window = src[i - self.period + 1:i + 1]
            mean = np.mean(window)
            mad = np.mean(np.abs(window - mean))

            if mad > 0:
                cci[i] = (src[i] - mean) / (self.constant * mad)
            else:
                cci[i] = 0.0

        return cci


@dataclass
class Momentum(Oscillator):
    """Momentum (MOM): close - close[n]."""

    period: int = 10

    test_params: ClassVar[list[dict]] = [{"period": 10}, {"period": 3}]

    @property
    def name(self) -> str:
        return f"mom_{self.period}"

    @property
    def warmup(self) -> int:
        return self.period + 1

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        close = df["close"].to_numpy().astype(np.float64)
        mom = np.full(len(close), np.nan)
        mom[self.period:] = close[self.period:] - close[:-self.period]
        return mom
