"""
Shared pytest fixtures for octachain contract tests.
"""
import struct
import wave

import numpy as np
import pytest


def create_test_wav_file(
    path: str,
    num_samples: int,
    sample_rate: int = 44100,
    channels: int = 1,
    sample_width: int = 2,
    frequency: float = 440.0
) -> np.ndarray:
    """
    Create a test WAV file with sine wave audio.

    Args:
        path: Path to create WAV file
        num_samples: Number of frames to write
        sample_rate: Sample rate (default: 44100)
        channels: Number of channels (default: 1)
        sample_width: Bytes per sample (default: 2)
        frequency: Frequency of sine wave in Hz (default: 440)

    Returns:
        The int16 samples of the first channel
    """
    t = np.arange(num_samples) / sample_rate
    samples = np.sin(2 * np.pi * frequency * t)
    samples_int16 = (samples * 0.8 * 32767).astype(np.int16)

    if channels == 2:
        frames = np.empty(num_samples * channels, dtype=np.int16)
        frames[0::2] = samples_int16  # Left channel
        frames[1::2] = samples_int16  # Right channel
        data = frames.tobytes()
    elif sample_width == 1:
        data = ((samples * 0.8 * 127) + 128).astype(np.uint8).tobytes()
    else:
        data = samples_int16.tobytes()

    with wave.open(path, 'wb') as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(sample_width)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(data)

    return samples_int16


def create_float_wav_file(path: str, num_samples: int, sample_rate: int = 44100) -> None:
    """Write a mono 32-bit IEEE float WAV (the wave module cannot)."""
    data = np.zeros(num_samples, dtype="<f4").tobytes()
    fmt = struct.pack("<HHIIHH", 3, 1, sample_rate, sample_rate * 4, 4, 32)
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt + b"data" + struct.pack("<I", len(data)) + data
    with open(path, "wb") as fh:
        fh.write(b"RIFF" + struct.pack("<I", len(body)) + body)


def create_extensible_wav_file(
    path: str,
    samples: np.ndarray,
    sample_rate: int = 44100,
    subformat: int = 1,
) -> None:
    """
    Write a mono WAVE_FORMAT_EXTENSIBLE file.

    subformat 1 stores the int16 samples as PCM; 3 stores them as float32.
    """
    if subformat == 3:
        data = (np.asarray(samples, dtype=np.float32) / 32768.0).astype("<f4").tobytes()
        width = 4
    else:
        data = np.asarray(samples, dtype="<i2").tobytes()
        width = 2
    guid = struct.pack("<H", subformat) + b"\x00\x00\x00\x00\x10\x00\x80\x00\x00\xaa\x00\x38\x9b\x71"
    fmt = struct.pack(
        "<HHIIHHHHI",
        0xFFFE, 1, sample_rate, sample_rate * width, width, width * 8,
        22, width * 8, 0x4,
    ) + guid
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt + b"data" + struct.pack("<I", len(data)) + data
    with open(path, "wb") as fh:
        fh.write(b"RIFF" + struct.pack("<I", len(body)) + body)


def read_wav_samples(path: str) -> np.ndarray:
    with wave.open(path, 'rb') as wav_file:
        return np.frombuffer(wav_file.readframes(wav_file.getnframes()), dtype="<i2")


@pytest.fixture
def make_wav(tmp_path):
    """
    Factory writing mono s16 WAVs into tmp_path.

    Usage: path = make_wav("kick.wav", 22050, sample_rate=44100)
    """
    def _make(name: str, num_samples: int, **kwargs) -> str:
        path = str(tmp_path / name)
        create_test_wav_file(path, num_samples, **kwargs)
        return path
    return _make


@pytest.fixture
def output_dir(tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    return out
