"""Threshold gating of divergence counts into chart markers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import polars as pl

from multidiv.config import DivergenceConfig
from multidiv.divergence.aggregate import DivergenceCounts
from multidiv.models import (
    SIGNAL_KINDS,
    DivergenceKind,
    DivergenceSignal,
    MarkerPosition,
    MarkerShape,
)

SIGNAL_STYLES: dict[DivergenceKind, tuple[MarkerPosition, MarkerShape, str]] = {
    DivergenceKind.REGULAR_BULLISH: (MarkerPosition.BELOW_BAR, MarkerShape.LABEL_UP, "#008080"),
    DivergenceKind.REGULAR_BEARISH: (MarkerPosition.ABOVE_BAR, MarkerShape.LABEL_DOWN, "#FF0000"),
    DivergenceKind.HIDDEN_BULLISH: (MarkerPosition.BELOW_BAR, MarkerShape.LABEL_UP, "#008000"),
    DivergenceKind.HIDDEN_BEARISH: (MarkerPosition.ABOVE_BAR, MarkerShape.LABEL_DOWN, "#FFA500"),
}

SIGNAL_SCHEMA = {
    "bar_index": pl.Int64,
    "kind": pl.Utf8,
    "position": pl.Utf8,
    "shape": pl.Utf8,
    "color": pl.Utf8,
    "text": pl.Utf8,
    "count": pl.Int64,
}


def emit_signals(
    counts: DivergenceCounts,
    times: Sequence[Any],
    config: DivergenceConfig,
) -> list[DivergenceSignal]:
    """
    One signal per (bar, kind) whose count clears ``config.min_div_count``.

    Bars ascend; within a bar the order is regular bullish, regular bearish,
    hidden bullish, hidden bearish. Disabled kinds never emit. Consecutive
    qualifying bars each emit.
    """
    if len(times) != len(counts):
        raise ValueError(f"got {len(times)} timestamps for {len(counts)} bars")

    kinds = [kind for kind in SIGNAL_KINDS if config.enabled(kind)]
    signals = []

    for i in range(len(counts)):
        for kind in kinds:
            count = int(counts.for_kind(kind)[i])
            if count < config.min_div_count:
                continue

            position, shape, color = SIGNAL_STYLES[kind]
            signals.append(
                DivergenceSignal(
                    time=times[i],
                    bar_index=i,
                    kind=kind,
                    position=position,
                    shape=shape,
                    color=color,
                    text=str(count),
                    count=count,
                )
            )

    return signals


def signals_to_frame(
    signals: Sequence[DivergenceSignal], time_dtype: pl.DataType = pl.Null
) -> pl.DataFrame:
    """
    Tabular view of emitted signals, one row per marker.

    ``time_dtype`` is the bar time column type; an empty frame carries it so
    that empty and filled frames share one schema.
    """
    if not signals:
        return pl.DataFrame(schema={"time": time_dtype, **SIGNAL_SCHEMA})
    frame = pl.DataFrame([signal.to_dict() for signal in signals])
    if time_dtype != pl.Null:
        frame = frame.with_columns(pl.col("time").cast(time_dtype))
    return frame
