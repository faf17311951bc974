"""Common shape of an oscillator provider."""

from dataclasses import dataclass
from typing import ClassVar

import numpy as np
import polars as pl


@dataclass
class Oscillator:
    """Bars in, one bar-aligned float series out.

    Subclasses set ``requires`` and implement ``compute``, ``name`` and
    ``warmup``. Leading values that are not yet defined are NaN.
    """

    requires: ClassVar[list[str]] = ["close"]
    test_params: ClassVar[list[dict]] = [{}]

    @property
    def name(self) -> str:
        raise NotImplementedError

    @property
    def warmup(self) -> int:
        """Bars before the first defined output value."""
        raise NotImplementedError

    def compute(self, df: pl.DataFrame) -> np.ndarray:
        raise NotImplementedError

    def compute_pair(self, df: pl.DataFrame) -> pl.DataFrame:
        return df.with_columns(pl.Series(name=self.name, values=self.compute(df)))


def volume_of(df: pl.DataFrame) -> np.ndarray:
    """Bar volume as floats; zeros when the frame carries no volume."""
    if "volume" not in df.columns:
        return np.zeros(len(df), dtype=np.float64)
    return df["volume"].fill_null(0.0).to_numpy().astype(np.float64)
