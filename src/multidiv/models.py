"""Value types shared by the pivot detector, classifier and signal emitter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any


class PivotKind(str, Enum):
    """Direction of a swing pivot."""

    LOW = "low"
    HIGH = "high"


class DivergenceKind(IntEnum):
    """Classification of a single confirmed pivot.

    Exactly one value per pivot event; ``NONE`` covers ties, out-of-range
    distances and missing history. Integer codes let a whole scan live in
    an ``int8`` array indexed by confirmation bar.
    """

    NONE = 0
    REGULAR_BULLISH = 1
    REGULAR_BEARISH = 2
    HIDDEN_BULLISH = 3
    HIDDEN_BEARISH = 4

    @property
    def is_bullish(self) -> bool:
        return self in (DivergenceKind.REGULAR_BULLISH, DivergenceKind.HIDDEN_BULLISH)

    @property
    def column(self) -> str:
        """Output column name used by ``MultiDivergence.compute_pair``."""
        return f"multi_div_{self.name.lower()}"


# Emission order within one bar.
SIGNAL_KINDS: tuple[DivergenceKind, ...] = (
    DivergenceKind.REGULAR_BULLISH,
    DivergenceKind.REGULAR_BEARISH,
    DivergenceKind.HIDDEN_BULLISH,
    DivergenceKind.HIDDEN_BEARISH,
)


class MarkerPosition(str, Enum):
    BELOW_BAR = "belowBar"
    ABOVE_BAR = "aboveBar"


class MarkerShape(str, Enum):
    LABEL_UP = "labelUp"
    LABEL_DOWN = "labelDown"


@dataclass(frozen=True)
class PivotEvent:
    """A confirmed swing pivot on one series.

    Attributes:
        bar_index: Index of the pivot bar itself.
        kind: Low or high pivot.
        value: Series reading at ``bar_index``.
        price: Bar low (low pivot) or bar high (high pivot) at ``bar_index``.
    """

    bar_index: int
    kind: PivotKind
    value: float
    price: float

    def confirm_index(self, lookback_right: int) -> int:
        """First bar at which the pivot is knowable without look-ahead."""
        return self.bar_index + lookback_right


@dataclass(frozen=True)
class Divergence:
    """One classifier emission for one oscillator."""

    oscillator: str
    kind: DivergenceKind
    previous: PivotEvent
    current: PivotEvent
    confirm_index: int

    @property
    def distance(self) -> int:
        return self.current.bar_index - self.previous.bar_index


@dataclass(frozen=True)
class DivergenceSignal:
    """Composite marker handed to the rendering side.

    ``text`` is the agreeing-oscillator count as a string.
    """

    time: Any
    bar_index: int
    kind: DivergenceKind
    position: MarkerPosition
    shape: MarkerShape
    color: str
    text: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "bar_index": self.bar_index,
            "kind": self.kind.name.lower(),
            "position": self.position.value,
            "shape": self.shape.value,
            "color": self.color,
            "text": self.text,
            "count": self.count,
        }
