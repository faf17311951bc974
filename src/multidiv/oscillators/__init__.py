"""Oscillator providers - bar frame in, one bar-aligned series out.

Modules:
    momentum - RSI, MACD line/histogram, Stochastic, CCI, Momentum
    volume - OBV, VW-MACD, CMF
    trend - DI oscillator
"""

from multidiv.oscillators.base import Oscillator
from multidiv.oscillators.momentum import (
    Rsi,
    MacdLine,
    MacdHistogram,
    Stochastic,
    Cci,
    Momentum,
)
from multidiv.oscillators.volume import Obv, VwMacd, Cmf
from multidiv.oscillators.trend import DiOscillator


def default_oscillators() -> list[Oscillator]:
    """The ten oscillators of the classic "Multiple Divergences" study."""
    return [
        Rsi(period=14),
        MacdLine(fast=12, slow=26),
        MacdHistogram(fast=12, slow=26, signal=9),
        Stochastic(k_period=14, smooth_k=3),
        Cci(period=10),
        Momentum(period=10),
        Obv(),
        DiOscillator(period=14),
        VwMacd(fast=12, slow=26),
        Cmf(period=21),
    ]


__all__ = [
    "Oscillator",
    "Rsi",
    "MacdLine",
    "MacdHistogram",
    "Stochastic",
    "Cci",
    "Momentum",
    "Obv",
    "VwMacd",
    "Cmf",
    "DiOscillator",
    "default_oscillators",
]
