"""
Audio format and WAV codec for octachain.

Provides AudioSpec and the WAV decode / create / append service used to
build the concatenated chain file.
"""

from octachain.audio.format import AudioSpec
from octachain.audio.wav_io import WavAppendWriter, create, decode, open_append, read_spec

__all__ = [
    "AudioSpec",
    "WavAppendWriter",
    "create",
    "decode",
    "open_append",
    "read_spec",
]
