"""
Divergence Detection Module

Price/oscillator divergence detection with multi-oscillator agreement.

Components:
- pivot: strict, non-repainting swing pivot detection
- history: most-recent pivot of each kind per oscillator
- classifier: regular/hidden, bullish/bearish classification
- aggregate: per-oscillator scan and per-bar agreement counts
- signals: threshold gating into chart markers
- engine: MultiDivergence, the full batch scan

Divergence Types:
- Regular Bullish: Price LL, Oscillator HL (reversal up)
- Regular Bearish: Price HH, Oscillator LH (reversal down)
- Hidden Bullish: Price HL, Oscillator LL (trend continuation up)
- Hidden Bearish: Price LH, Oscillator HH (trend continuation down)
"""

from multidiv.divergence.pivot import (
    is_pivot_low,
    is_pivot_high,
    pivot_mask,
    confirmed_pivots,
)
from multidiv.divergence.history import PivotHistory
from multidiv.divergence.classifier import DivergenceClassifier, classify
from multidiv.divergence.aggregate import (
    DivergenceCounts,
    OscillatorScan,
    count_divergences,
    scan_oscillator,
)
from multidiv.divergence.signals import SIGNAL_STYLES, emit_signals, signals_to_frame
from multidiv.divergence.engine import DivergenceResult, MultiDivergence

__all__ = [
    "is_pivot_low",
    "is_pivot_high",
    "pivot_mask",
    "confirmed_pivots",
    "PivotHistory",
    "DivergenceClassifier",
    "classify",
    "DivergenceCounts",
    "OscillatorScan",
    "count_divergences",
    "scan_oscillator",
    "SIGNAL_STYLES",
    "emit_signals",
    "signals_to_frame",
    "DivergenceResult",
    "MultiDivergence",
]
