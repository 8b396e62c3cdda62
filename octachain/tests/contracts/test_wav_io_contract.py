"""
Contract tests for the WAV codec service.

Covers exact-format decoding, create/append/finalize of the chain file and
failure reporting.
"""

import struct
import wave
from unittest.mock import patch

import numpy as np
import pytest

from octachain.audio import wav_io
from octachain.audio.format import AudioSpec
from octachain.errors import DecodeError, FormatMismatchError, InputNotFoundError, WriteError

from conftest import create_extensible_wav_file, create_test_wav_file, read_wav_samples


MONO_44K = AudioSpec.mono16(44100)


class TestAudioSpec:

    def test_mono16(self):
        spec = AudioSpec.mono16(48000)
        assert spec.channel_count == 1
        assert spec.sample_rate == 48000
        assert spec.bits_per_sample == 16
        assert spec.sample_format == "int"
        assert spec.sample_width == 2

    def test_invalid_rate(self):
        with pytest.raises(ValueError):
            AudioSpec.mono16(0)

    def test_specs_compare_by_value(self):
        assert AudioSpec.mono16(44100) == MONO_44K
        assert AudioSpec.mono16(48000) != MONO_44K


class TestDecode:

    def test_decode_returns_int16_samples(self, tmp_path):
        path = str(tmp_path / "a.wav")
        expected = create_test_wav_file(path, 500)
        samples = wav_io.decode(path, MONO_44K)
        assert samples.dtype == np.dtype("<i2")
        np.testing.assert_array_equal(samples, expected)

    def test_decode_missing_file(self, tmp_path):
        with pytest.raises(InputNotFoundError):
            wav_io.decode(str(tmp_path / "missing.wav"), MONO_44K)

    def test_decode_directory_is_not_found(self, tmp_path):
        with pytest.raises(InputNotFoundError):
            wav_io.decode(str(tmp_path), MONO_44K)

    def test_decode_format_mismatch(self, tmp_path):
        path = str(tmp_path / "a.wav")
        create_test_wav_file(path, 500, sample_rate=22050)
        with pytest.raises(FormatMismatchError) as exc_info:
            wav_io.decode(path, MONO_44K)
        assert exc_info.value.expected == MONO_44K
        assert exc_info.value.actual == AudioSpec.mono16(22050)

    def test_decode_truncated_file(self, tmp_path):
        path = tmp_path / "a.wav"
        create_test_wav_file(str(path), 500)
        path.write_bytes(path.read_bytes()[:-101])
        with pytest.raises(DecodeError):
            wav_io.decode(str(path), MONO_44K)

    def test_decode_not_a_wav(self, tmp_path):
        path = tmp_path / "a.wav"
        path.write_bytes(b"\x00" * 64)
        with pytest.raises(DecodeError):
            wav_io.decode(str(path), MONO_44K)

    def test_decode_extensible_pcm(self, tmp_path):
        path = str(tmp_path / "ext.wav")
        expected = np.arange(-5, 5, dtype=np.int16)
        create_extensible_wav_file(path, expected)
        samples = wav_io.decode(path, MONO_44K)
        np.testing.assert_array_equal(samples, expected)

        spec, frames = wav_io.read_spec(path)
        assert spec == MONO_44K
        assert frames == 10

    def test_decode_extensible_rate_mismatch(self, tmp_path):
        path = str(tmp_path / "ext.wav")
        create_extensible_wav_file(path, np.zeros(10, dtype=np.int16), sample_rate=48000)
        with pytest.raises(FormatMismatchError) as exc_info:
            wav_io.decode(path, MONO_44K)
        assert exc_info.value.actual == AudioSpec.mono16(48000)

    def test_decode_extensible_float_is_mismatch(self, tmp_path):
        path = str(tmp_path / "ext_float.wav")
        create_extensible_wav_file(path, np.zeros(10, dtype=np.int16), subformat=3)
        with pytest.raises(FormatMismatchError):
            wav_io.decode(path, MONO_44K)

    def test_extensible_reader_used_when_wave_refuses(self, tmp_path):
        path = str(tmp_path / "ext.wav")
        expected = np.arange(20, dtype=np.int16)
        create_extensible_wav_file(path, expected)
        with patch("octachain.audio.wav_io.wave.open", side_effect=wave.Error("unknown format: 65534")):
            samples = wav_io.decode(path, MONO_44K)
        np.testing.assert_array_equal(samples, expected)

    def test_read_spec(self, tmp_path):
        path = str(tmp_path / "a.wav")
        create_test_wav_file(path, 300, sample_rate=48000, channels=2)
        spec, frames = wav_io.read_spec(path)
        assert spec.channel_count == 2
        assert spec.sample_rate == 48000
        assert frames == 300


class TestChainWriter:

    def test_create_then_append(self, tmp_path):
        path = str(tmp_path / "chain.wav")
        first = np.arange(100, dtype=np.int16)
        second = -np.arange(50, dtype=np.int16)

        with wav_io.create(path, MONO_44K) as writer:
            writer.write(first)
            assert writer.frames_written == 100
        with wav_io.open_append(path, MONO_44K) as writer:
            writer.write(second)
            assert writer.total_frames == 150

        with wave.open(path, "rb") as wf:
            assert wf.getnchannels() == 1
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == 44100
            assert wf.getnframes() == 150
        np.testing.assert_array_equal(read_wav_samples(path), np.concatenate([first, second]))

    def test_riff_size_patched(self, tmp_path):
        path = tmp_path / "chain.wav"
        with wav_io.create(str(path), MONO_44K) as writer:
            writer.write(np.zeros(10, dtype=np.int16))
        data = path.read_bytes()
        assert struct.unpack("<I", data[4:8])[0] == len(data) - 8

    def test_append_refuses_other_format(self, tmp_path):
        path = str(tmp_path / "stereo.wav")
        create_test_wav_file(path, 10, channels=2)
        with pytest.raises(WriteError):
            wav_io.open_append(path, MONO_44K)

    def test_append_to_missing_file(self, tmp_path):
        with pytest.raises(WriteError):
            wav_io.open_append(str(tmp_path / "missing.wav"), MONO_44K)

    def test_write_after_finalize(self, tmp_path):
        writer = wav_io.create(str(tmp_path / "chain.wav"), MONO_44K)
        writer.finalize()
        with pytest.raises(WriteError):
            writer.write(np.zeros(1, dtype=np.int16))

    def test_create_in_missing_folder(self, tmp_path):
        with pytest.raises(WriteError):
            wav_io.create(str(tmp_path / "nope" / "chain.wav"), MONO_44K)
