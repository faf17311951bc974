"""Divergence engine configuration and YAML loading."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Any

import yaml

from multidiv.models import DivergenceKind

logger = logging.getLogger(__name__)

ENV_MIN_DIV_COUNT = "MULTIDIV_MIN_DIV_COUNT"


@dataclass(frozen=True)
class DivergenceConfig:
    """Parameters of one divergence scan.

    Attributes:
        min_div_count: Oscillators that must agree before a signal is emitted.
        lookback_left: Pivot window bars to the left of the candidate.
        lookback_right: Pivot window bars to the right; also the
            confirmation delay.
        range_lower: Minimum bar distance to the previous pivot (inclusive).
        range_upper: Maximum bar distance to the previous pivot (inclusive).
        warmup: Confirmation bars before this index are ignored entirely.
        show_regular_bullish: Emit regular bullish signals.
        show_regular_bearish: Emit regular bearish signals.
        show_hidden_bullish: Emit hidden bullish signals.
        show_hidden_bearish: Emit hidden bearish signals.
    """

    min_div_count: int = 2
    lookback_left: int = 3
    lookback_right: int = 1
    range_lower: int = 1
    range_upper: int = 60
    warmup: int = 0
    show_regular_bullish: bool = True
    show_regular_bearish: bool = True
    show_hidden_bullish: bool = True
    show_hidden_bearish: bool = True

    def __post_init__(self) -> None:
        if self.min_div_count < 1:
            raise ValueError(f"min_div_count must be >= 1, got {self.min_div_count}")
        if self.lookback_left < 1:
            raise ValueError(f"lookback_left must be >= 1, got {self.lookback_left}")
        if self.lookback_right < 1:
            raise ValueError(f"lookback_right must be >= 1, got {self.lookback_right}")
        if self.range_lower < 0:
            raise ValueError(f"range_lower must be >= 0, got {self.range_lower}")
        if self.range_lower > self.range_upper:
            raise ValueError(
                f"range_lower ({self.range_lower}) must not exceed "
                f"range_upper ({self.range_upper})"
            )
        if self.warmup < 0:
            raise ValueError(f"warmup must be >= 0, got {self.warmup}")

    def enabled(self, kind: DivergenceKind) -> bool:
        return {
            DivergenceKind.REGULAR_BULLISH: self.show_regular_bullish,
            DivergenceKind.REGULAR_BEARISH: self.show_regular_bearish,
            DivergenceKind.HIDDEN_BULLISH: self.show_hidden_bullish,
            DivergenceKind.HIDDEN_BEARISH: self.show_hidden_bearish,
        }.get(kind, False)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _env_min_div_count(value: int) -> int:
    env_val = os.getenv(ENV_MIN_DIV_COUNT)
    if env_val is None:
        return value
    try:
        parsed = int(env_val)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", ENV_MIN_DIV_COUNT, env_val)
        return value
    if parsed < 1:
        logger.warning("Ignoring %s=%r: must be >= 1", ENV_MIN_DIV_COUNT, env_val)
        return value
    return parsed


def config_from_dict(raw: dict[str, Any] | None) -> DivergenceConfig:
    """Build a config from a plain mapping.

    Accepts either the flat parameter mapping or one nested under a
    ``divergence`` key. Unknown keys are rejected, including keys beside
    the ``divergence`` section.
    """
    raw = dict(raw or {})
    if "divergence" in raw:
        siblings = sorted(set(raw) - {"divergence"})
        if siblings:
            raise ValueError(f"unknown divergence config keys: {', '.join(siblings)}")
        raw = dict(raw["divergence"] or {})

    known = {f.name for f in fields(DivergenceConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"unknown divergence config keys: {', '.join(unknown)}")

    defaults = DivergenceConfig()
    raw["min_div_count"] = _env_min_div_count(raw.get("min_div_count", defaults.min_div_count))
    return DivergenceConfig(**raw)


def load_config(path: str) -> DivergenceConfig:
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return config_from_dict(raw)
