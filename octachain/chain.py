"""
Slicer: builds an Octatrack sample chain (.wav + .ot) from WAV files.

Caller-facing surface:
    slicer = Slicer()
    slicer.configure(output_folder="out", output_filename="kit", tempo=120)
    slicer.add_file("kick.wav")
    slicer.add_file("snare.wav")
    result = slicer.generate(evenly_spaced=True)

Existing output files are removed first. The .ot file is written only after
every input has been appended to the chain WAV.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from octachain.audio.format import DEFAULT_SAMPLE_RATE
from octachain.errors import OutputIoError
from octachain.ot import encoder
from octachain.slicer.accumulator import DEFAULT_TEMPO, SliceAccumulator
from octachain.slicer.slice import FinalizedBatch, LoopPointPolicy, PendingInput

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_FILENAME = "output"
WAV_EXTENSION = ".wav"
OT_EXTENSION = ".ot"


@dataclass
class GenerationResult:
    """
    Outcome of one generate() call.

    Attributes:
        wav_path: Chain WAV that was written
        ot_path: .ot file that was written
        batch: Finalized batch the files describe
        ot_data: The 832 bytes written to ot_path
    """
    wav_path: str
    ot_path: str
    batch: FinalizedBatch
    ot_data: bytes


class Slicer:
    """
    Sample chain generator.

    Attributes:
        output_folder: Folder receiving <output_filename>.wav and .ot
        output_filename: Output name without extension
    """

    def __init__(
        self,
        output_folder: str = "",
        output_filename: str = DEFAULT_OUTPUT_FILENAME,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        tempo: int = DEFAULT_TEMPO,
        loop_policy: LoopPointPolicy = LoopPointPolicy.SLICE_LENGTH,
    ) -> None:
        self.output_folder = output_folder
        self.output_filename = output_filename
        self._accumulator = SliceAccumulator(
            sample_rate=sample_rate,
            tempo=tempo,
            loop_policy=loop_policy,
        )

    @property
    def accumulator(self) -> SliceAccumulator:
        return self._accumulator

    @property
    def sample_rate(self) -> int:
        return self._accumulator.sample_rate

    @property
    def tempo(self) -> int:
        return self._accumulator.tempo

    @property
    def wav_path(self) -> str:
        return os.path.join(self.output_folder, self.output_filename + WAV_EXTENSION)

    @property
    def ot_path(self) -> str:
        return os.path.join(self.output_folder, self.output_filename + OT_EXTENSION)

    def configure(
        self,
        output_folder: Optional[str] = None,
        output_filename: Optional[str] = None,
        sample_rate: Optional[int] = None,
        tempo: Optional[int] = None,
        loop_policy: Optional[LoopPointPolicy] = None,
    ) -> None:
        """
        Update output naming and run settings. None leaves a value unchanged.

        Raises:
            ValueError: If a value is invalid
        """
        if output_filename is not None:
            if not output_filename:
                raise ValueError("Output filename cannot be empty")
            self.output_filename = output_filename
        if output_folder is not None:
            self.output_folder = output_folder
        if sample_rate is not None:
            if sample_rate <= 0:
                raise ValueError(f"Invalid sample rate: {sample_rate} (must be > 0)")
            self._accumulator.sample_rate = sample_rate
        if tempo is not None:
            if tempo <= 0:
                raise ValueError(f"Invalid tempo: {tempo} (must be > 0)")
            self._accumulator.tempo = tempo
        if loop_policy is not None:
            self._accumulator.loop_policy = loop_policy

    def add_file(self, path: str) -> PendingInput:
        """Admit one input file (see SliceAccumulator.add)."""
        return self._accumulator.add(path)

    def clear(self) -> None:
        self._accumulator.clear()

    def _remove_if_present(self, path: str) -> None:
        if not os.path.isfile(path):
            return
        logger.warning("Removing existing file: %s", path)
        try:
            os.remove(path)
        except OSError as e:
            raise OutputIoError(f"Cannot remove existing file '{path}': {e}") from e

    def generate(self, evenly_spaced: bool = False) -> GenerationResult:
        """
        Write the chain WAV and its .ot file.

        Raises:
            OutputIoError: If output files cannot be removed or written
            DecodeError, FormatMismatchError, InputNotFoundError, WriteError:
                If an input cannot be appended; no .ot file is written
        """
        logger.info("Generating Octatrack files...")
        wav_path = self.wav_path
        ot_path = self.ot_path

        if self.output_folder:
            try:
                os.makedirs(self.output_folder, exist_ok=True)
            except OSError as e:
                raise OutputIoError(f"Cannot create output folder '{self.output_folder}': {e}") from e

        self._remove_if_present(wav_path)
        self._remove_if_present(ot_path)

        batch = self._accumulator.finalize(evenly_spaced, wav_path)
        ot_data = encoder.encode(batch.slices, batch.sample_rate, batch.tempo)

        logger.info("Generating Octatrack .ot file: %s", ot_path)
        try:
            with open(ot_path, "wb") as fh:
                fh.write(ot_data)
        except OSError as e:
            raise OutputIoError(f"Cannot write '{ot_path}': {e}") from e

        logger.info(
            "Finished writing Octatrack files: %s (%d slices)",
            ot_path,
            len(batch.slices),
        )
        return GenerationResult(wav_path=wav_path, ot_path=ot_path, batch=batch, ot_data=ot_data)
