"""Input validation for the divergence scan."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import polars as pl

logger = logging.getLogger(__name__)

BAR_COLUMNS = ("open", "high", "low", "close")


class InputContractError(ValueError):
    """Bars or oscillator series violate the scan's input contract."""


def _fail(message: str) -> None:
    logger.warning("Rejecting divergence input: %s", message)
    raise InputContractError(message)


def validate_bars(df: pl.DataFrame, ts_col: str = "timestamp") -> None:
    """Non-empty, required columns present, strictly increasing timestamps."""
    if len(df) == 0:
        _fail("bar frame is empty")

    missing = [c for c in (ts_col, *BAR_COLUMNS) if c not in df.columns]
    if missing:
        _fail(f"bar frame is missing columns: {', '.join(missing)}")

    ts = df[ts_col]
    if ts.null_count() > 0:
        _fail(f"column {ts_col!r} contains nulls")
    if not ts.is_sorted() or ts.n_unique() != len(ts):
        _fail(f"column {ts_col!r} must be strictly increasing")


def validate_series(
    n_bars: int, series: Sequence[tuple[str, np.ndarray]]
) -> None:
    """Every oscillator is one-dimensional and exactly one value per bar."""
    for name, values in series:
        if values.ndim != 1:
            _fail(f"oscillator {name!r} must be one-dimensional, got shape {values.shape}")
        if len(values) != n_bars:
            _fail(f"oscillator {name!r} has {len(values)} values for {n_bars} bars")
