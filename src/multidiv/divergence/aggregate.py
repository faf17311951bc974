"""
Per-oscillator divergence scan and cross-oscillator aggregation.

Each oscillator runs its own PivotDetector -> PivotHistory ->
DivergenceClassifier pipeline with no shared state, so the pipelines are
independent and only meet in :func:`count_divergences`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
import polars as pl

from multidiv.config import DivergenceConfig
from multidiv.divergence.classifier import DivergenceClassifier
from multidiv.divergence.pivot import pivot_mask
from multidiv.models import (
    SIGNAL_KINDS,
    Divergence,
    DivergenceKind,
    PivotEvent,
    PivotKind,
)

logger = logging.getLogger(__name__)


@dataclass
class OscillatorScan:
    """Result of one oscillator pipeline.

    Attributes:
        name: Oscillator name.
        kinds: ``int8`` DivergenceKind codes indexed by confirmation bar.
        divergences: Every non-NONE classification, in bar order.
        pivots: Number of pivots the classifier observed.
    """

    name: str
    kinds: np.ndarray
    divergences: list[Divergence] = field(default_factory=list)
    pivots: int = 0

    def fired(self, kind: DivergenceKind) -> np.ndarray:
        return self.kinds == kind.value


def scan_oscillator(
    name: str,
    values: np.ndarray,
    price_low: np.ndarray,
    price_high: np.ndarray,
    low_pivots: np.ndarray,
    high_pivots: np.ndarray,
    config: DivergenceConfig,
    warmup: int = 0,
) -> OscillatorScan:
    """
    Run the pivot/classifier pipeline for a single oscillator.

    Parameters
    ----------
    name : str
        Oscillator name carried into each ``Divergence``
    values : np.ndarray
        Oscillator series aligned to bars (NaN allowed)
    price_low, price_high : np.ndarray
        Bar lows and highs
    low_pivots, high_pivots : np.ndarray
        Price pivot masks (lows on ``price_low``, highs on ``price_high``);
        an oscillator pivot only counts where price pivoted the same way
    config : DivergenceConfig
        Pivot window and range gating
    warmup : int, default 0
        Pivots confirmed before this bar are skipped entirely

    Returns
    -------
    OscillatorScan
    """
    values = np.asarray(values, dtype=np.float64)
    n = len(values)
    left, right = config.lookback_left, config.lookback_right

    osc_lows = pivot_mask(values, left, right, high=False) & low_pivots
    osc_highs = pivot_mask(values, left, right, high=True) & high_pivots

    kinds = np.zeros(n, dtype=np.int8)
    scan = OscillatorScan(name=name, kinds=kinds)
    classifier = DivergenceClassifier(config.range_lower, config.range_upper)

    # A strict low and a strict high cannot share a bar on one series.
    for p in np.flatnonzero(osc_lows | osc_highs):
        confirm = int(p) + right
        if confirm < warmup:
            continue

        if osc_lows[p]:
            event = PivotEvent(int(p), PivotKind.LOW, float(values[p]), float(price_low[p]))
        else:
            event = PivotEvent(int(p), PivotKind.HIGH, float(values[p]), float(price_high[p]))

        previous = classifier.history.previous(event.kind)
        kind = classifier.observe(event)
        scan.pivots += 1

        if kind is DivergenceKind.NONE:
            continue

        kinds[confirm] = kind.value
        scan.divergences.append(
            Divergence(
                oscillator=name,
                kind=kind,
                previous=previous,
                current=event,
                confirm_index=confirm,
            )
        )

    logger.debug(
        "Scanned %s: %d pivots, %d divergences", name, scan.pivots, len(scan.divergences)
    )
    return scan


@dataclass
class DivergenceCounts:
    """Per-bar tallies, one ``int64`` array per divergence kind."""

    regular_bullish: np.ndarray
    regular_bearish: np.ndarray
    hidden_bullish: np.ndarray
    hidden_bearish: np.ndarray

    def for_kind(self, kind: DivergenceKind) -> np.ndarray:
        if kind is DivergenceKind.NONE:
            raise ValueError("NONE has no count series")
        return getattr(self, kind.name.lower())

    def __len__(self) -> int:
        return len(self.regular_bullish)

    def to_frame(self) -> pl.DataFrame:
        return pl.DataFrame(
            {kind.column: self.for_kind(kind) for kind in SIGNAL_KINDS}
        )


def count_divergences(
    scans: list[OscillatorScan], n: int, warmup: int = 0
) -> DivergenceCounts:
    """
    Tally, per bar and kind, how many oscillators fired that kind.

    Bars before ``warmup`` are always zero.
    """
    if scans:
        codes = np.vstack([scan.kinds for scan in scans])
    else:
        codes = np.zeros((0, n), dtype=np.int8)

    tallies = {}
    for kind in SIGNAL_KINDS:
        tally = np.sum(codes == kind.value, axis=0).astype(np.int64)
        tally[: min(warmup, n)] = 0
        tallies[kind.name.lower()] = tally

    return DivergenceCounts(**tallies)
