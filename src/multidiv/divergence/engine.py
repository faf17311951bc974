"""
Multi-Oscillator Divergence Confluence

Batch scan over a fixed bar history: detect price pivots once, run one
independent divergence pipeline per oscillator, count agreement per bar and
emit a marker wherever enough oscillators agree.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import ClassVar, Union

import numpy as np
import polars as pl

from multidiv.config import DivergenceConfig
from multidiv.divergence.aggregate import (
    DivergenceCounts,
    OscillatorScan,
    count_divergences,
    scan_oscillator,
)
from multidiv.divergence.pivot import pivot_mask
from multidiv.divergence.signals import emit_signals, signals_to_frame
from multidiv.errors import validate_bars, validate_series
from multidiv.models import SIGNAL_KINDS, Divergence, DivergenceSignal
from multidiv.oscillators import Oscillator, default_oscillators

logger = logging.getLogger(__name__)

SeriesInput = Union[Mapping[str, Sequence[float]], Sequence[Sequence[float]]]


@dataclass
class DivergenceResult:
    """Everything one scan produced."""

    counts: DivergenceCounts
    scans: list[OscillatorScan]
    signals: list[DivergenceSignal]
    warmup: int

    def divergences(self) -> list[Divergence]:
        """Every per-oscillator classification, ordered by confirmation bar."""
        found = [d for scan in self.scans for d in scan.divergences]
        return sorted(found, key=lambda d: d.confirm_index)


@dataclass
class MultiDivergence:
    """
    Multi-Oscillator Divergence Confluence Detector

    Every oscillator is checked independently for regular and hidden
    divergences against price at confirmed pivots; a signal fires at a
    confirmation bar when at least ``config.min_div_count`` oscillators
    report the same divergence kind there.

    Parameters
    ----------
    config : DivergenceConfig
        Pivot window, range gating, threshold, warm-up and per-kind flags
    oscillators : list of Oscillator
        Providers computed from the bars when no precomputed series are
        passed to :meth:`run`
    ts_col : str, default "timestamp"
        Bar time column

    Returns
    -------
    ``compute_pair`` adds the per-bar agreement counts:
    - multi_div_regular_bullish
    - multi_div_regular_bearish
    - multi_div_hidden_bullish
    - multi_div_hidden_bearish

    Examples
    --------
    >>> from multidiv import DivergenceConfig, MultiDivergence
    >>>
    >>> detector = MultiDivergence(config=DivergenceConfig(min_div_count=3))
    >>> signals = detector.detect(df)
    >>>
    >>> # Or supply oscillators computed elsewhere
    >>> result = detector.run(df, series={"rsi": rsi, "cci": cci})
    """

    config: DivergenceConfig = field(default_factory=DivergenceConfig)
    oscillators: list[Oscillator] = field(default_factory=default_oscillators)
    ts_col: str = "timestamp"

    requires: ClassVar[list[str]] = ["high", "low", "close"]
    outputs: ClassVar[list[str]] = [kind.column for kind in SIGNAL_KINDS]

    @property
    def warmup(self) -> int:
        """Warm-up bars when the configured oscillator providers are used."""
        provider_warmup = max((osc.warmup for osc in self.oscillators), default=0)
        return max(self.config.warmup, provider_warmup)

    def _resolve_series(
        self, df: pl.DataFrame, series: SeriesInput | None
    ) -> tuple[list[tuple[str, np.ndarray]], int]:
        if series is None:
            resolved = [(osc.name, osc.compute(df)) for osc in self.oscillators]
            return resolved, self.warmup

        if isinstance(series, Mapping):
            items = list(series.items())
        else:
            items = [(f"osc_{i}", values) for i, values in enumerate(series)]

        resolved = [(str(name), np.asarray(values, dtype=np.float64)) for name, values in items]
        return resolved, self.config.warmup

    def run(self, df: pl.DataFrame, series: SeriesInput | None = None) -> DivergenceResult:
        """
        Scan the full bar history.

        Parameters
        ----------
        df : pl.DataFrame
            Bars with ``ts_col``, ``high``, ``low`` (and whatever the
            oscillator providers require)
        series : mapping or sequence of arrays, optional
            Precomputed oscillators, one value per bar (NaN allowed). When
            omitted, ``self.oscillators`` are computed from ``df``.

        Returns
        -------
        DivergenceResult
        """
        validate_bars(df, self.ts_col)
        named, warmup = self._resolve_series(df, series)
        n = len(df)
        validate_series(n, named)

        cfg = self.config
        price_low = df["low"].to_numpy().astype(np.float64)
        price_high = df["high"].to_numpy().astype(np.float64)

        low_pivots = pivot_mask(price_low, cfg.lookback_left, cfg.lookback_right, high=False)
        high_pivots = pivot_mask(price_high, cfg.lookback_left, cfg.lookback_right, high=True)

        scans = [
            scan_oscillator(
                name,
                values,
                price_low,
                price_high,
                low_pivots,
                high_pivots,
                cfg,
                warmup=warmup,
            )
            for name, values in named
        ]

        counts = count_divergences(scans, n, warmup=warmup)
        signals = emit_signals(counts, df[self.ts_col].to_list(), cfg)

        logger.info(
            "Divergence scan: %d bars, %d oscillators, warmup %d, %d signals",
            n,
            len(scans),
            warmup,
            len(signals),
        )
        return DivergenceResult(counts=counts, scans=scans, signals=signals, warmup=warmup)

    def detect(self, df: pl.DataFrame, series: SeriesInput | None = None) -> list[DivergenceSignal]:
        return self.run(df, series).signals

    def signal_frame(self, df: pl.DataFrame, series: SeriesInput | None = None) -> pl.DataFrame:
        """Emitted signals as a frame whose ``time`` column keeps the bar time type."""
        return signals_to_frame(self.detect(df, series), df[self.ts_col].dtype)

    def compute_pair(self, df: pl.DataFrame, series: SeriesInput | None = None) -> pl.DataFrame:
        """Return ``df`` with the four per-bar agreement count columns added."""
        counts = self.run(df, series).counts
        return df.with_columns(
            [pl.Series(kind.column, counts.for_kind(kind)) for kind in SIGNAL_KINDS]
        )
