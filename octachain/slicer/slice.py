"""
Slice records and batch results.

A Slice marks where one input landed inside the concatenated chain. All
positions are in samples (mono frames).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Tuple

# The .ot record reserves exactly this many slice slots
MAX_SLICES = 64

# Loop point value the Octatrack reads as "no loop"
NO_LOOP_POINT = 0xFFFFFFFF


class LoopPointPolicy(enum.Enum):
    """
    How a slice's loop point is derived.

    SLICE_LENGTH: loop point equals the slice's real length
    NO_LOOP: loop point is the device's "no loop" marker
    """
    SLICE_LENGTH = "slice_length"
    NO_LOOP = "no_loop"

    def loop_point_for(self, length: int) -> int:
        if self is LoopPointPolicy.NO_LOOP:
            return NO_LOOP_POINT
        return length


@dataclass(frozen=True)
class Slice:
    """
    One input's position within the chain.

    Attributes:
        start_point: Offset of the slice's first sample in the chain
        length: Real (non-padding) samples contributed by the input
        loop_point: Loop point written to the .ot slot
    """
    start_point: int
    length: int
    loop_point: int

    @property
    def end_point(self) -> int:
        return self.start_point + self.length


@dataclass(frozen=True)
class PendingInput:
    """An admitted input file and the sample count read at admission."""
    path: str
    sample_count: int


@dataclass(frozen=True)
class AccumulatedInputs:
    """
    Result of the admission pass.

    max_file_length is final here: it is the padding width every input
    shares when the batch is materialized in evenly spaced mode.
    """
    inputs: Tuple[PendingInput, ...]
    max_file_length: int

    def emitted_length(self, input_: PendingInput, evenly_spaced: bool) -> int:
        if evenly_spaced:
            return self.max_file_length
        return input_.sample_count


@dataclass
class FinalizedBatch:
    """
    A materialized batch.

    Attributes:
        slices: Slices in admission order
        total_samples_written: Real plus padding samples in the chain
        sample_rate: Rate the batch was built at
        tempo: Tempo (BPM) configured for the batch
        evenly_spaced: Whether inputs were padded to a uniform width
    """
    slices: List[Slice] = field(default_factory=list)
    total_samples_written: int = 0
    sample_rate: int = 0
    tempo: int = 0
    evenly_spaced: bool = False

    @property
    def real_sample_count(self) -> int:
        return sum(s.length for s in self.slices)

    @property
    def padding_sample_count(self) -> int:
        return self.total_samples_written - self.real_sample_count
