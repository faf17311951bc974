from multidiv.config import DivergenceConfig, load_config, config_from_dict
from multidiv.errors import InputContractError
from multidiv.models import (
    PivotKind,
    PivotEvent,
    DivergenceKind,
    Divergence,
    DivergenceSignal,
    MarkerPosition,
    MarkerShape,
)
from multidiv.divergence import (
    MultiDivergence,
    DivergenceResult,
    emit_signals,
    signals_to_frame,
)
from multidiv.oscillators import default_oscillators

__all__ = [
    "DivergenceConfig",
    "load_config",
    "config_from_dict",
    "InputContractError",
    "PivotKind",
    "PivotEvent",
    "DivergenceKind",
    "Divergence",
    "DivergenceSignal",
    "MarkerPosition",
    "MarkerShape",
    "MultiDivergence",
    "DivergenceResult",
    "emit_signals",
    "signals_to_frame",
    "default_oscillators",
]
