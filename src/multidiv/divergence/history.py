"""Per-oscillator memory of the most recent confirmed pivot of each kind."""

from __future__ import annotations

from multidiv.models import PivotEvent, PivotKind


class PivotHistory:
    """
    One slot per pivot kind.

    ``record`` overwrites the slot unconditionally; callers that need the
    old event for comparison must read ``previous`` first. Older pivots are
    discarded.
    """

    __slots__ = ("_slots",)

    def __init__(self) -> None:
        self._slots: dict[PivotKind, PivotEvent | None] = {
            PivotKind.LOW: None,
            PivotKind.HIGH: None,
        }

    def previous(self, kind: PivotKind) -> PivotEvent | None:
        return self._slots[kind]

    def record(self, event: PivotEvent) -> None:
        self._slots[event.kind] = event

    def clear(self) -> None:
        for kind in self._slots:
            self._slots[kind] = None

    def __repr__(self) -> str:
        return (
            f"PivotHistory(low={self._slots[PivotKind.LOW]!r}, "
            f"high={self._slots[PivotKind.HIGH]!r})"
        )
