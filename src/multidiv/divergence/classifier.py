"""
Divergence Classification

Compares a newly confirmed oscillator pivot against the previous pivot of
the same kind on the same oscillator.

Divergence Types:
-----------------
Regular Bullish: Price makes lower low (LL), oscillator makes higher low (HL)
Hidden Bullish:  Price makes higher low (HL), oscillator makes lower low (LL)
Regular Bearish: Price makes higher high (HH), oscillator makes lower high (LH)
Hidden Bearish:  Price makes lower high (LH), oscillator makes higher high (HH)

All comparisons are strict; a tie on either axis classifies as NONE.
"""

from __future__ import annotations

from multidiv.divergence.history import PivotHistory
from multidiv.models import DivergenceKind, PivotEvent, PivotKind


def in_range(distance: int, range_lower: int, range_upper: int) -> bool:
    """Inclusive bar-distance window check."""
    return range_lower <= distance <= range_upper


def classify(
    current: PivotEvent,
    previous: PivotEvent | None,
    range_lower: int,
    range_upper: int,
) -> DivergenceKind:
    """
    Classify ``current`` against ``previous``.

    Parameters
    ----------
    current : PivotEvent
        Newly confirmed pivot (value = oscillator, price = bar low/high)
    previous : PivotEvent or None
        Previous pivot of the same kind on the same oscillator
    range_lower, range_upper : int
        Inclusive bounds on ``current.bar_index - previous.bar_index``

    Returns
    -------
    DivergenceKind
        At most one non-NONE classification per event
    """
    if previous is None:
        return DivergenceKind.NONE
    if previous.kind is not current.kind:
        raise ValueError(
            f"cannot compare a {current.kind.value} pivot with a {previous.kind.value} pivot"
        )

    distance = current.bar_index - previous.bar_index
    if not in_range(distance, range_lower, range_upper):
        return DivergenceKind.NONE

    price, prev_price = current.price, previous.price
    osc, prev_osc = current.value, previous.value

    if current.kind is PivotKind.LOW:
        if price < prev_price and osc > prev_osc:
            return DivergenceKind.REGULAR_BULLISH
        if price > prev_price and osc < prev_osc:
            return DivergenceKind.HIDDEN_BULLISH
    else:
        if price > prev_price and osc < prev_osc:
            return DivergenceKind.REGULAR_BEARISH
        if price < prev_price and osc > prev_osc:
            return DivergenceKind.HIDDEN_BEARISH

    return DivergenceKind.NONE


class DivergenceClassifier:
    """
    Stateful classifier for one oscillator.

    Each call to :meth:`observe` classifies against the stored pivot of the
    same kind and then overwrites it, so events must arrive in increasing
    bar order.
    """

    def __init__(
        self,
        range_lower: int,
        range_upper: int,
        history: PivotHistory | None = None,
    ) -> None:
        self.range_lower = range_lower
        self.range_upper = range_upper
        self.history = history if history is not None else PivotHistory()

    def observe(self, event: PivotEvent) -> DivergenceKind:
        previous = self.history.previous(event.kind)
        if previous is not None and event.bar_index <= previous.bar_index:
            raise ValueError(
                f"pivot at bar {event.bar_index} arrived after bar {previous.bar_index}"
            )

        kind = classify(event, previous, self.range_lower, self.range_upper)
        self.history.record(event)
        return kind
