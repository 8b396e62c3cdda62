"""
WAV codec service for sample chains.

Decodes input WAV files to int16 sample arrays and writes the concatenated
chain. The chain writer supports append: each input is written by opening
the existing file, appending samples after the data chunk and patching the
RIFF and data chunk sizes, then closing it again before the next input.

Samples are carried as numpy int16 arrays (s16le on disk).
"""

from __future__ import annotations

import logging
import os
import struct
import wave
from typing import Optional, Tuple

import numpy as np

from octachain.audio.format import AudioSpec, SAMPLE_FORMAT_INT
from octachain.errors import DecodeError, FormatMismatchError, InputNotFoundError, WriteError

logger = logging.getLogger(__name__)

# RIFF layout
RIFF_HEADER_SIZE = 12  # "RIFF" <size> "WAVE"
CHUNK_HEADER_SIZE = 8  # <id> <size>
WAVE_FORMAT_PCM = 0x0001
WAVE_FORMAT_IEEE_FLOAT = 0x0003
WAVE_FORMAT_EXTENSIBLE = 0xFFFE
MAX_DATA_BYTES = 0xFFFFFFFF
# Tail shared by the KSDATAFORMAT_SUBTYPE_* GUIDs; the first two bytes hold
# the plain format tag.
SUBFORMAT_GUID_TAIL = b"\x00\x00\x00\x00\x10\x00\x80\x00\x00\xaa\x00\x38\x9b\x71"
EXTENSIBLE_FMT_SIZE = 40

SAMPLE_DTYPE = np.dtype("<i2")


def check_readable(path: str) -> None:
    """
    Raise InputNotFoundError unless path is an existing, readable file.
    """
    if not path or not os.path.isfile(path):
        raise InputNotFoundError(path)
    if not os.access(path, os.R_OK):
        raise InputNotFoundError(path, reason="File not readable")


def _probe_format_tag(path: str) -> Optional[int]:
    """
    Return the wFormatTag of a RIFF/WAVE file's fmt chunk, or None.

    Used to describe files the wave module refuses to open (float WAVs).
    """
    try:
        with open(path, "rb") as fh:
            header = fh.read(RIFF_HEADER_SIZE)
            if len(header) < RIFF_HEADER_SIZE or header[0:4] != b"RIFF" or header[8:12] != b"WAVE":
                return None
            while True:
                chunk = fh.read(CHUNK_HEADER_SIZE)
                if len(chunk) < CHUNK_HEADER_SIZE:
                    return None
                chunk_id, chunk_size = struct.unpack("<4sI", chunk)
                if chunk_id == b"fmt ":
                    body = fh.read(16)
                    if len(body) < 16:
                        return None
                    return struct.unpack("<H", body[0:2])[0]
                fh.seek(chunk_size + (chunk_size & 1), os.SEEK_CUR)
    except OSError:
        return None


class ExtensibleWavReader:
    """
    Reader for WAVE_FORMAT_EXTENSIBLE files carrying integer PCM.

    Exposes the subset of wave.Wave_read that decode() and read_spec() use.
    Older wave modules reject the extensible format tag outright.
    """

    def __init__(self, path: str, expected: Optional[AudioSpec] = None) -> None:
        self.path = path
        self._fh = open(path, "rb")
        try:
            self._parse(expected)
        except BaseException:
            self._fh.close()
            raise

    def _parse(self, expected: Optional[AudioSpec]) -> None:
        header = self._fh.read(RIFF_HEADER_SIZE)
        if len(header) < RIFF_HEADER_SIZE or header[0:4] != b"RIFF" or header[8:12] != b"WAVE":
            raise DecodeError(f"Cannot decode WAV '{self.path}': not a RIFF/WAVE file")

        fmt = None
        while True:
            chunk = self._fh.read(CHUNK_HEADER_SIZE)
            if len(chunk) < CHUNK_HEADER_SIZE:
                raise DecodeError(f"Cannot decode WAV '{self.path}': no data chunk")
            chunk_id, chunk_size = struct.unpack("<4sI", chunk)
            if chunk_id == b"fmt ":
                fmt = self._fh.read(chunk_size)
                if chunk_size & 1:
                    self._fh.seek(1, os.SEEK_CUR)
            elif chunk_id == b"data":
                if fmt is None:
                    raise DecodeError(f"Cannot decode WAV '{self.path}': data chunk before fmt chunk")
                self._data_start = self._fh.tell()
                self._data_size = chunk_size
                break
            else:
                self._fh.seek(chunk_size + (chunk_size & 1), os.SEEK_CUR)

        if len(fmt) < EXTENSIBLE_FMT_SIZE:
            raise DecodeError(f"Cannot decode WAV '{self.path}': extensible fmt chunk too short")
        (
            _tag,
            self._nchannels,
            self._framerate,
            _byte_rate,
            self._block_align,
            bits,
        ) = struct.unpack("<HHIIHH", fmt[0:16])
        subformat = fmt[24:40]
        if subformat[2:] != SUBFORMAT_GUID_TAIL:
            raise DecodeError(f"Cannot decode WAV '{self.path}': unknown subformat")
        subformat_tag = struct.unpack("<H", subformat[0:2])[0]
        if subformat_tag == WAVE_FORMAT_IEEE_FLOAT and expected is not None:
            raise FormatMismatchError(self.path, expected, "float WAV")
        if subformat_tag != WAVE_FORMAT_PCM:
            raise DecodeError(f"Cannot decode WAV '{self.path}': unsupported subformat {subformat_tag}")
        if self._nchannels == 0 or self._block_align == 0:
            raise DecodeError(f"Cannot decode WAV '{self.path}': bad channel count or block size")

        self._sampwidth = (bits + 7) // 8
        self._nframes = self._data_size // self._block_align

    def getnchannels(self) -> int:
        return self._nchannels

    def getframerate(self) -> int:
        return self._framerate

    def getsampwidth(self) -> int:
        return self._sampwidth

    def getnframes(self) -> int:
        return self._nframes

    def readframes(self, nframes: int) -> bytes:
        self._fh.seek(self._data_start)
        return self._fh.read(nframes * self._block_align)

    def close(self) -> None:
        self._fh.close()

    def __enter__(self) -> "ExtensibleWavReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _spec_from_wave(wf) -> AudioSpec:
    return AudioSpec(
        channel_count=wf.getnchannels(),
        sample_rate=wf.getframerate(),
        bits_per_sample=wf.getsampwidth() * 8,
        sample_format=SAMPLE_FORMAT_INT,
    )


def _open_for_read(path: str, expected: Optional[AudioSpec]):
    try:
        return wave.open(path, "rb")
    except (wave.Error, EOFError) as e:
        format_tag = _probe_format_tag(path)
        if format_tag == WAVE_FORMAT_EXTENSIBLE:
            try:
                return ExtensibleWavReader(path, expected)
            except OSError as read_error:
                raise DecodeError(f"Cannot open WAV '{path}': {read_error}") from read_error
        if expected is not None and format_tag == WAVE_FORMAT_IEEE_FLOAT:
            raise FormatMismatchError(path, expected, "float WAV") from e
        raise DecodeError(f"Cannot decode WAV '{path}': {e}") from e
    except OSError as e:
        raise DecodeError(f"Cannot open WAV '{path}': {e}") from e


def read_spec(path: str) -> Tuple[AudioSpec, int]:
    """
    Read a WAV file's format and length without decoding samples.

    Returns:
        (AudioSpec, frame count)

    Raises:
        InputNotFoundError: If the file is missing or unreadable
        DecodeError: If the file is not a WAV the codec understands
    """
    check_readable(path)
    with _open_for_read(path, None) as wf:
        return _spec_from_wave(wf), wf.getnframes()


def decode(path: str, expected: AudioSpec) -> np.ndarray:
    """
    Decode a WAV file to an int16 sample array.

    The file must match ``expected`` exactly; there is no conversion.

    Raises:
        InputNotFoundError: If the file is missing or unreadable
        FormatMismatchError: If the format differs from ``expected``
        DecodeError: If the file is corrupt or truncated
    """
    check_readable(path)
    with _open_for_read(path, expected) as wf:
        actual = _spec_from_wave(wf)
        if actual != expected:
            raise FormatMismatchError(path, expected, actual)
        nframes = wf.getnframes()
        try:
            raw = wf.readframes(nframes)
        except (wave.Error, EOFError, OSError) as e:
            raise DecodeError(f"Cannot read samples from '{path}': {e}") from e

    frame_bytes = expected.channel_count * expected.sample_width
    if len(raw) != nframes * frame_bytes:
        raise DecodeError(
            f"Truncated WAV '{path}': header declares {nframes} frames, "
            f"read {len(raw) // frame_bytes}"
        )

    samples = np.frombuffer(raw, dtype=SAMPLE_DTYPE)
    logger.debug("Decoded %d samples from '%s'", samples.size, path)
    return samples


def _locate_data_chunk(fh) -> Tuple[int, int]:
    """
    Find the data chunk of an open RIFF/WAVE file.

    Returns:
        (offset of the data chunk's size field, data size in bytes)
    """
    fh.seek(0)
    header = fh.read(RIFF_HEADER_SIZE)
    if len(header) < RIFF_HEADER_SIZE or header[0:4] != b"RIFF" or header[8:12] != b"WAVE":
        raise WriteError("Not a RIFF/WAVE file")
    while True:
        position = fh.tell()
        chunk = fh.read(CHUNK_HEADER_SIZE)
        if len(chunk) < CHUNK_HEADER_SIZE:
            raise WriteError("WAV file has no data chunk")
        chunk_id, chunk_size = struct.unpack("<4sI", chunk)
        if chunk_id == b"data":
            return position + 4, chunk_size
        fh.seek(chunk_size + (chunk_size & 1), os.SEEK_CUR)


class WavAppendWriter:
    """
    Appending writer for the concatenated chain WAV.

    One writer covers one open/append/close cycle. finalize() patches the
    RIFF and data sizes and flushes to disk; the next input must not be
    appended before the previous writer has been finalized.
    """

    def __init__(self, path: str, spec: AudioSpec) -> None:
        self.path = path
        self.spec = spec
        self._closed = False
        try:
            self._fh = open(path, "r+b")
        except OSError as e:
            raise WriteError(f"Cannot open '{path}' for append: {e}") from e

        try:
            self._size_offset, self._data_size = _locate_data_chunk(self._fh)
            data_start = self._size_offset + 4
            self._fh.seek(0, os.SEEK_END)
            file_size = self._fh.tell()
        except (WriteError, OSError) as e:
            self._fh.close()
            raise WriteError(f"Cannot append to '{path}': {e}") from e

        if data_start + self._data_size != file_size:
            self._fh.close()
            raise WriteError(f"Cannot append to '{path}': data chunk is not the last chunk")

        self._frames_written = 0

    @property
    def frames_written(self) -> int:
        """Frames appended through this writer."""
        return self._frames_written

    @property
    def total_frames(self) -> int:
        """Frames in the file's data chunk, including earlier appends."""
        return self._data_size // (self.spec.channel_count * self.spec.sample_width)

    def write(self, samples: np.ndarray) -> None:
        """Append int16 samples at the end of the data chunk."""
        if self._closed:
            raise WriteError(f"Writer for '{self.path}' is already finalized")

        data = np.asarray(samples, dtype=SAMPLE_DTYPE).tobytes()
        if self._data_size + len(data) > MAX_DATA_BYTES:
            raise WriteError(f"WAV data chunk of '{self.path}' would exceed 4 GiB")

        try:
            self._fh.seek(0, os.SEEK_END)
            self._fh.write(data)
        except OSError as e:
            raise WriteError(f"Cannot write samples to '{self.path}': {e}") from e

        self._data_size += len(data)
        self._frames_written += len(data) // (self.spec.channel_count * self.spec.sample_width)

    def finalize(self) -> None:
        """Patch chunk sizes, flush to disk and close the file."""
        if self._closed:
            return
        try:
            self._fh.seek(0, os.SEEK_END)
            file_size = self._fh.tell()
            self._fh.seek(4)
            self._fh.write(struct.pack("<I", file_size - 8))
            self._fh.seek(self._size_offset)
            self._fh.write(struct.pack("<I", self._data_size))
            self._fh.flush()
            os.fsync(self._fh.fileno())
        except OSError as e:
            raise WriteError(f"Cannot finalize '{self.path}': {e}") from e
        finally:
            self._closed = True
            self._fh.close()

    def close(self) -> None:
        """Close without patching sizes (used when a write failed)."""
        if not self._closed:
            self._closed = True
            self._fh.close()

    def __enter__(self) -> "WavAppendWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.finalize()
        else:
            self.close()


def create(path: str, spec: AudioSpec) -> WavAppendWriter:
    """
    Create an empty WAV file in ``spec`` and open it for appending.
    """
    try:
        with wave.open(path, "wb") as wf:
            wf.setnchannels(spec.channel_count)
            wf.setsampwidth(spec.sample_width)
            wf.setframerate(spec.sample_rate)
            wf.writeframes(b"")
    except (wave.Error, OSError) as e:
        raise WriteError(f"Cannot create WAV '{path}': {e}") from e
    logger.debug("Created chain WAV '%s' (%s)", path, spec)
    return WavAppendWriter(path, spec)


def open_append(path: str, spec: AudioSpec) -> WavAppendWriter:
    """
    Open an existing chain WAV for appending.

    Raises:
        WriteError: If the file is unreadable or not in ``spec``
    """
    try:
        with wave.open(path, "rb") as wf:
            actual = _spec_from_wave(wf)
    except (wave.Error, EOFError, OSError) as e:
        raise WriteError(f"Cannot open '{path}' for append: {e}") from e
    if actual != spec:
        raise WriteError(f"Cannot append to '{path}': format {actual} does not match {spec}")
    return WavAppendWriter(path, spec)

