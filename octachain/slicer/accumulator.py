"""
Slice accumulator.

Owns the run state of one batch: the pending input files, the longest input
seen so far, and the slices produced when the batch is materialized.

A batch goes through two passes:

- admission (add / accumulate): each file is validated and its sample count
  recorded; max_file_length grows as files are admitted
- materialization (materialize): inputs are written to the chain in
  admission order and slices are placed. This is the only place start
  points and padded widths are computed, so every input shares the final
  max_file_length when the chain is evenly spaced.
"""

from __future__ import annotations

import logging
import os
from typing import List, Tuple

import numpy as np

from octachain.audio import wav_io
from octachain.audio.format import AudioSpec, DEFAULT_SAMPLE_RATE
from octachain.errors import CapacityExceededError, DecodeError, SlicerError
from octachain.slicer.slice import (
    MAX_SLICES,
    AccumulatedInputs,
    FinalizedBatch,
    LoopPointPolicy,
    PendingInput,
    Slice,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPO = 124  # BPM


class SliceAccumulator:
    """
    Collects input files for one sample chain and places their slices.

    Attributes:
        sample_rate: Rate every input must have (Hz)
        tempo: Chain tempo (BPM)
        loop_policy: How slice loop points are derived
    """

    def __init__(
        self,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        tempo: int = DEFAULT_TEMPO,
        loop_policy: LoopPointPolicy = LoopPointPolicy.SLICE_LENGTH,
    ) -> None:
        self.sample_rate = sample_rate
        self.tempo = tempo
        self.loop_policy = loop_policy
        self._pending: List[PendingInput] = []
        self._slices: List[Slice] = []
        self._max_file_length = 0
        self._start_offset = 0

    @property
    def spec(self) -> AudioSpec:
        return AudioSpec.mono16(self.sample_rate)

    @property
    def pending(self) -> Tuple[PendingInput, ...]:
        return tuple(self._pending)

    @property
    def slices(self) -> Tuple[Slice, ...]:
        return tuple(self._slices)

    @property
    def max_file_length(self) -> int:
        return self._max_file_length

    @property
    def start_offset(self) -> int:
        return self._start_offset

    def add(self, path: str) -> PendingInput:
        """
        Admit one input file.

        Checks capacity, then existence, then format. A rejected file leaves
        the accumulator unchanged.

        Raises:
            CapacityExceededError: If 64 files are already pending
            InputNotFoundError: If the file is missing or unreadable
            FormatMismatchError: If the file is not mono s16 at sample_rate
            DecodeError: If the file cannot be decoded
        """
        path = os.fspath(path)
        logger.info("Adding file to list: %s", path)

        if len(self._pending) >= MAX_SLICES:
            logger.warning("Rejected '%s': all %d slice slots are taken", path, MAX_SLICES)
            raise CapacityExceededError(MAX_SLICES, path)

        try:
            samples = wav_io.decode(path, self.spec)
        except SlicerError as e:
            logger.warning("Rejected '%s': %s", path, e)
            raise

        pending = PendingInput(path=path, sample_count=int(samples.size))
        self._pending.append(pending)
        if pending.sample_count > self._max_file_length:
            self._max_file_length = pending.sample_count

        logger.debug(
            "Admitted '%s' as input %d (%d samples, max length %d)",
            path,
            len(self._pending),
            pending.sample_count,
            self._max_file_length,
        )
        return pending

    def accumulate(self) -> AccumulatedInputs:
        """Close the admission pass: pending inputs and the final padding width."""
        return AccumulatedInputs(
            inputs=tuple(self._pending),
            max_file_length=self._max_file_length,
        )

    def materialize(
        self,
        accumulated: AccumulatedInputs,
        evenly_spaced: bool,
        output_path: str,
    ) -> Tuple[List[Slice], int]:
        """
        Write every input to the chain and place its slice.

        The chain file is created for the first input and appended for each
        following one; each write is finalized before the next begins.
        Slices are placed from offset 0 on every call; the run state is left
        to finalize().

        Returns:
            (slices in admission order, samples written including padding)

        Raises:
            DecodeError, FormatMismatchError, InputNotFoundError, WriteError
        """
        spec = self.spec
        slices: List[Slice] = []
        start_offset = 0

        if not accumulated.inputs:
            with wav_io.create(output_path, spec):
                pass
            return slices, start_offset

        for index, input_ in enumerate(accumulated.inputs):
            logger.info("Processing file: %s", input_.path)
            samples = wav_io.decode(input_.path, spec)
            if samples.size != input_.sample_count:
                raise DecodeError(
                    f"'{input_.path}' changed since it was added "
                    f"({input_.sample_count} -> {samples.size} samples)"
                )

            emitted = accumulated.emitted_length(input_, evenly_spaced)
            if evenly_spaced and emitted > samples.size:
                chunk = np.zeros(emitted, dtype=np.int16)
                chunk[:samples.size] = samples
            else:
                chunk = samples

            open_chain = wav_io.create if index == 0 else wav_io.open_append
            with open_chain(output_path, spec) as writer:
                writer.write(chunk)

            slice_ = Slice(
                start_point=start_offset,
                length=input_.sample_count,
                loop_point=self.loop_policy.loop_point_for(input_.sample_count),
            )
            slices.append(slice_)
            start_offset += emitted

            logger.debug(
                "Slice %d: start=%d length=%d emitted=%d",
                index,
                slice_.start_point,
                slice_.length,
                emitted,
            )

        return slices, start_offset

    def finalize(self, evenly_spaced: bool, output_path: str) -> FinalizedBatch:
        """
        Materialize the batch into ``output_path`` and reset the run state.

        On success the accumulator returns to its defaults (including
        sample_rate and tempo). On failure the whole batch is aborted:
        produced slices are discarded, pending inputs are kept, and the chain
        file is left in an undefined state for the caller to discard.
        """
        accumulated = self.accumulate()
        logger.info(
            "Finalizing batch: %d files, evenly_spaced=%s, max length %d samples",
            len(accumulated.inputs),
            evenly_spaced,
            accumulated.max_file_length,
        )

        try:
            slices, total = self.materialize(accumulated, evenly_spaced, output_path)
        except SlicerError as e:
            logger.error("Batch aborted: %s", e)
            self._slices = []
            self._start_offset = 0
            raise

        self._slices = slices
        self._start_offset = total
        batch = FinalizedBatch(
            slices=slices,
            total_samples_written=total,
            sample_rate=self.sample_rate,
            tempo=self.tempo,
            evenly_spaced=evenly_spaced,
        )
        logger.info(
            "Batch finalized: %d slices, %d samples written (%d padding)",
            len(batch.slices),
            batch.total_samples_written,
            batch.padding_sample_count,
        )
        self.clear()
        return batch

    def clear(self) -> None:
        """Drop all inputs and slices and restore default rate and tempo."""
        self._pending = []
        self._slices = []
        self._max_file_length = 0
        self._start_offset = 0
        self.sample_rate = DEFAULT_SAMPLE_RATE
        self.tempo = DEFAULT_TEMPO
