"""
Sample chain slicing for octachain.

This package provides the components that place WAV inputs as slices of a chain:
- SliceAccumulator: admits inputs and places slices
"""

from octachain.slicer.slice import (
    MAX_SLICES,
    NO_LOOP_POINT,
    AccumulatedInputs,
    FinalizedBatch,
    LoopPointPolicy,
    PendingInput,
    Slice,
)
from octachain.slicer.accumulator import DEFAULT_TEMPO, SliceAccumulator

__all__ = [
    "MAX_SLICES",
    "NO_LOOP_POINT",
    "DEFAULT_TEMPO",
    "AccumulatedInputs",
    "FinalizedBatch",
    "LoopPointPolicy",
    "PendingInput",
    "Slice",
    "SliceAccumulator",
]
