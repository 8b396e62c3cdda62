"""
Audio format description for sample chains.

The Octatrack chain is always mono, signed 16-bit integer PCM. Only the
sample rate is configurable, and inputs are never converted: a file either
matches the run's AudioSpec exactly or it is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass

# ===== PCM FORMAT CONSTANTS ===== #
CHANNELS = 1
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8  # s16le
DEFAULT_SAMPLE_RATE = 44100  # Hz

SAMPLE_FORMAT_INT = "int"


@dataclass(frozen=True)
class AudioSpec:
    """
    Immutable per-run audio format.

    Attributes:
        channel_count: Number of interleaved channels
        sample_rate: Frames per second (Hz)
        bits_per_sample: Sample width in bits
        sample_format: Sample encoding; WAV PCM is always signed integer here
    """
    channel_count: int
    sample_rate: int
    bits_per_sample: int
    sample_format: str = SAMPLE_FORMAT_INT

    @classmethod
    def mono16(cls, sample_rate: int = DEFAULT_SAMPLE_RATE) -> "AudioSpec":
        """Canonical chain format: mono, s16, at the given rate."""
        if sample_rate <= 0:
            raise ValueError(f"Invalid sample rate: {sample_rate} (must be > 0)")
        return cls(
            channel_count=CHANNELS,
            sample_rate=sample_rate,
            bits_per_sample=BITS_PER_SAMPLE,
        )

    @property
    def sample_width(self) -> int:
        """Bytes per sample, as the wave module reports it."""
        return self.bits_per_sample // 8

    def __str__(self) -> str:
        return (
            f"{self.channel_count}ch/{self.sample_rate}Hz/"
            f"{self.bits_per_sample}bit/{self.sample_format}"
        )
