"""
octachain: Octatrack sample chain generator.

Concatenates mono 16-bit WAV files into one chain and writes the .ot file
that marks each input as a slice.
"""

from octachain.audio.format import AudioSpec
from octachain.chain import GenerationResult, Slicer
from octachain.errors import (
    CapacityExceededError,
    DecodeError,
    FormatMismatchError,
    InputNotFoundError,
    OutputIoError,
    SlicerError,
    WriteError,
)
from octachain.slicer import LoopPointPolicy, Slice, SliceAccumulator

__all__ = [
    "AudioSpec",
    "CapacityExceededError",
    "DecodeError",
    "FormatMismatchError",
    "GenerationResult",
    "InputNotFoundError",
    "LoopPointPolicy",
    "OutputIoError",
    "Slice",
    "SliceAccumulator",
    "Slicer",
    "SlicerError",
    "WriteError",
]
