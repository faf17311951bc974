"""Directional movement oscillator."""

from dataclasses import dataclass
from typing import ClassVar

import numpy as np
import polars as pl

from multidiv.oscillators._smoothing import rma_sma_init
from multidiv.oscillators.base import Oscillator


@dataclass
class DiOscillator(Oscillator):
    """DI oscillator: +DI - -DI.

    +DI / -DI are Wilder-smoothed directional movement over Wilder-smoothed
    true range, in percent. Zero while the smoothed range is zero.

    Reference: Welles Wilder, "New Concepts in Technical Trading Systems"
    """

    period: int = 14

    requires: ClassVar[list[str]] = ["high", "low", "close"]
    test_params: ClassVar[list[dict]] = [{"period": 14}, {"period": 7}]

    @property
    def name(self) -> str:
        return f"di_osc_{self.period}"

    @property
    def warmup(self) -> int:
        return self.period

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        high = df["high"].to_numpy().astype(np.float64)
        low = df["low"].to_numpy().astype(np.float64)
        close = df["close"].to_numpy().astype(np.float64)

        tr = np.maximum(
            high - low,
            np.maximum(
                np.abs(high - np.roll(close, 1)), np.abs(low - np.roll(close, 1))
            ),
        )
        tr[0] = high[0] - low[0]

        up = high - np.roll(high, 1)
        dn = np.roll(low, 1) - low
        up[0] = dn[0] = 0

        pdm = np.where((up > dn) & (up > 0), up, 0.0)
        ndm = np.where((dn > up) & (dn > 0), dn, 0.0)

        atr = rma_sma_init(tr, self.period)
        smooth_pdm = rma_sma_init(pdm, self.period)
        smooth_ndm = rma_sma_init(ndm, self.period)

        with np.errstate(divide="ignore", invalid="ignore"):
            di = 100 * (smooth_pdm - smooth_ndm) / atr
        return np.where(atr == 0, 0.0, di)
