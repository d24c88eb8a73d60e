"""
Unit tests for PCM conversion and WAV/raw output.
"""

import struct

import numpy as np
import pytest
import scipy.io.wavfile as wavfile
from audio import clamp, normalize, resample, save_raw, save_wav, to_pcm16


class TestConversion:
    """Tests for normalization, clamping and PCM16 conversion."""

    def test_normalize_peak(self):
        out = normalize(np.array([0.1, -0.4, 0.2]))
        assert np.max(np.abs(out)) == pytest.approx(1.0)
        assert out[1] == pytest.approx(-1.0)

    def test_normalize_silence(self):
        out = normalize(np.zeros(10))
        assert np.all(out == 0.0)

    def test_clamp(self):
        np.testing.assert_array_equal(clamp(np.array([2.0, -3.0, 0.5])), [1.0, -1.0, 0.5])

    def test_pcm16_clamps_instead_of_wrapping(self):
        pcm = to_pcm16(np.array([2.0, -3.0, 0.0]), normalize_audio=False)
        assert pcm.dtype == np.int16
        assert pcm[0] == 32767
        assert pcm[1] == -32767
        assert pcm[2] == 0

    def test_pcm16_normalized_full_scale(self):
        pcm = to_pcm16(np.array([0.001, -0.002, 0.0005]))
        assert np.max(np.abs(pcm.astype(np.int32))) == 32767

    def test_pcm16_rejects_non_finite(self):
        with pytest.raises(ValueError, match="non-finite"):
            to_pcm16(np.array([0.0, np.inf]))

    def test_pcm16_keeps_channels(self):
        pcm = to_pcm16(np.ones((8, 2)) * 0.5)
        assert pcm.shape == (8, 2)


class TestResample:
    """Tests for output resampling."""

    def test_length(self):
        samples = np.sin(np.linspace(0, 2 * np.pi, 800))
        assert len(resample(samples, 8000, 44100)) == 4410

    def test_same_rate_is_identity(self):
        samples = np.arange(5.0)
        np.testing.assert_array_equal(resample(samples, 8000, 8000), samples)

    def test_multichannel(self):
        samples = np.zeros((800, 2))
        assert resample(samples, 8000, 16000).shape == (1600, 2)


class TestWavOutput:
    """Tests for the RIFF/WAVE and raw writers."""

    def test_header_layout(self, tmp_path):
        path = tmp_path / "out.wav"
        n = 100
        save_wav(str(path), np.sin(np.linspace(0, 10, n)), 8000)

        data = path.read_bytes()
        assert len(data) == 44 + 2 * n
        assert data[0:4] == b'RIFF'
        assert struct.unpack('<I', data[4:8])[0] == 36 + 2 * n
        assert data[8:12] == b'WAVE'
        assert data[12:16] == b'fmt '
        fmt_size, format_code, channels, rate, byte_rate, block_align, bits = \
            struct.unpack('<IHHIIHH', data[16:36])
        assert fmt_size == 16
        assert format_code == 1
        assert channels == 1
        assert rate == 8000
        assert byte_rate == 16000
        assert block_align == 2
        assert bits == 16
        assert data[36:40] == b'data'
        assert struct.unpack('<I', data[40:44])[0] == 2 * n

    def test_stereo_round_trip(self, tmp_path):
        path = tmp_path / "stereo.wav"
        samples = np.stack([np.linspace(-1, 1, 50), np.linspace(1, -1, 50)], axis=1)
        save_wav(str(path), samples, 44100)
        rate, data = wavfile.read(str(path))
        assert rate == 44100
        assert data.shape == (50, 2)
        assert data.dtype == np.int16

    def test_target_rate(self, tmp_path):
        path = tmp_path / "resampled.wav"
        save_wav(str(path), np.random.default_rng(0).normal(size=800), 8000, target_sr=16000)
        rate, data = wavfile.read(str(path))
        assert rate == 16000
        assert len(data) == 1600

    def test_reports_save(self, tmp_path, capsys):
        path = tmp_path / "out.wav"
        save_wav(str(path), np.zeros(441), 44100)
        assert "Saved 0.010s of audio" in capsys.readouterr().out

    def test_raw_float32(self, tmp_path):
        path = tmp_path / "out.bin"
        samples = np.array([0.25, -1.5, 3.0])
        save_raw(str(path), samples)
        assert path.stat().st_size == 12
        np.testing.assert_array_equal(np.fromfile(str(path), dtype='<f4'), samples.astype(np.float32))

    def test_unwritable_path(self, tmp_path):
        with pytest.raises(OSError):
            save_raw(str(tmp_path / "missing" / "out.bin"), np.zeros(3))
