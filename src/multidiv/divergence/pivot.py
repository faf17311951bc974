"""
Pivot Detection Utilities

Functions for finding strict local extrema (highs and lows) in bar-aligned
series.

NON-REPAINT: a pivot at bar ``p`` needs ``lookback_right`` bars after it
before it can be evaluated, so it is only ever visible at bar
``p + lookback_right``. Windows that run off either end of the array are
"no pivot"; a NaN anywhere in the window (center included) is "no pivot".
"""

import numpy as np
from numba import njit

from multidiv.models import PivotEvent, PivotKind


def _is_pivot(
    series: np.ndarray,
    idx: int,
    lookback_left: int,
    lookback_right: int,
    high: bool,
) -> bool:
    n = len(series)
    if idx < lookback_left or idx + lookback_right >= n:
        return False

    center = series[idx]
    if np.isnan(center):
        return False

    for j in range(idx - lookback_left, idx + lookback_right + 1):
        if j == idx:
            continue
        neighbor = series[j]
        if np.isnan(neighbor):
            return False
        if high and neighbor >= center:
            return False
        if not high and neighbor <= center:
            return False

    return True


def is_pivot_low(
    series: np.ndarray, idx: int, lookback_left: int, lookback_right: int
) -> bool:
    """
    Check whether ``series[idx]`` is a strict local minimum.

    Parameters
    ----------
    series : np.ndarray
        Input series (NaN allowed)
    idx : int
        Candidate pivot bar
    lookback_left : int
        Bars that must lie strictly above the candidate on the left
    lookback_right : int
        Bars that must lie strictly above the candidate on the right

    Returns
    -------
    bool
        True only when every neighbor in the window is defined and
        strictly greater than the candidate
    """
    return _is_pivot(np.asarray(series, dtype=np.float64), idx, lookback_left, lookback_right, high=False)


def is_pivot_high(
    series: np.ndarray, idx: int, lookback_left: int, lookback_right: int
) -> bool:
    """Strict-greater-than mirror of :func:`is_pivot_low`."""
    return _is_pivot(np.asarray(series, dtype=np.float64), idx, lookback_left, lookback_right, high=True)


@njit
def _pivot_mask_kernel(
    values: np.ndarray, lookback_left: int, lookback_right: int, high: bool
) -> np.ndarray:
    n = len(values)
    mask = np.zeros(n, dtype=np.bool_)

    for i in range(lookback_left, n - lookback_right):
        center = values[i]
        if np.isnan(center):
            continue

        ok = True
        for j in range(i - lookback_left, i + lookback_right + 1):
            if j == i:
                continue
            v = values[j]
            if np.isnan(v):
                ok = False
                break
            if high:
                if v >= center:
                    ok = False
                    break
            elif v <= center:
                ok = False
                break

        mask[i] = ok

    return mask


def pivot_mask(
    series: np.ndarray,
    lookback_left: int,
    lookback_right: int,
    high: bool = False,
) -> np.ndarray:
    """
    Boolean pivot flags indexed by pivot bar.

    Element-wise identical to :func:`is_pivot_low` (or :func:`is_pivot_high`
    when ``high`` is set) evaluated at every index.

    Parameters
    ----------
    series : np.ndarray
        Input series
    lookback_left, lookback_right : int
        Window sizes on each side
    high : bool, default False
        Detect highs instead of lows

    Returns
    -------
    mask : np.ndarray
        ``mask[p]`` is True when bar ``p`` is a confirmed pivot; the flag is
        only knowable at bar ``p + lookback_right``
    """
    values = np.ascontiguousarray(series, dtype=np.float64)
    return _pivot_mask_kernel(values, lookback_left, lookback_right, high)


def confirmed_pivots(
    series: np.ndarray,
    price: np.ndarray,
    lookback_left: int,
    lookback_right: int,
    kind: PivotKind,
) -> list[PivotEvent]:
    """
    Pivot events of one kind in increasing bar order.

    ``price`` supplies ``PivotEvent.price``: pass bar lows for
    ``PivotKind.LOW`` and bar highs for ``PivotKind.HIGH``.
    """
    values = np.asarray(series, dtype=np.float64)
    mask = pivot_mask(values, lookback_left, lookback_right, high=kind is PivotKind.HIGH)

    return [
        PivotEvent(
            bar_index=int(idx),
            kind=kind,
            value=float(values[idx]),
            price=float(price[idx]),
        )
        for idx in np.flatnonzero(mask)
    ]
