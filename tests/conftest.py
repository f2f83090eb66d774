"""
Shared fixtures for the test suite.

Signals are synthesised in memory or written to tmp_path with soundfile, so
the suite needs no audio corpus.
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
import soundfile as sf

from soundmark.audio import PCMBuffer

# ---------------------------------------------------------------------------
# Signal helpers
# ---------------------------------------------------------------------------

BAND_TONES_HZ = (600.0, 1900.0, 3200.0, 4200.0)
"""One tone per default filter bank, each on a 5 Hz bin centre at 10240 Hz."""

BAND_AMPLITUDES = (0.4, 0.25, 0.15, 0.1)


def _tone(freq_hz: float, seconds: float, sample_rate: int, amplitude: float = 0.5) -> np.ndarray:
    t = np.arange(int(round(seconds * sample_rate))) / sample_rate
    return amplitude * np.sin(2 * np.pi * freq_hz * t)


def _band_tones(seconds: float, sample_rate: int) -> np.ndarray:
    return sum(_tone(f, seconds, sample_rate, a) for f, a in zip(BAND_TONES_HZ, BAND_AMPLITUDES))


@pytest.fixture
def tone():
    """tone(freq_hz, seconds, sample_rate, amplitude=0.5) -> np.ndarray"""
    return _tone


@pytest.fixture
def band_tones():
    """band_tones(seconds, sample_rate) -> np.ndarray, four steady tones, one per bank."""
    return _band_tones


@pytest.fixture
def pcm():
    def _make(samples, sample_rate):
        return PCMBuffer.from_array(samples, sample_rate)
    return _make


@pytest.fixture
def write_wav(tmp_path):
    """write_wav(name, samples, sample_rate, subtype="PCM_16") -> Path"""
    def _write(name, samples, sample_rate, subtype="PCM_16"):
        path = tmp_path / name
        sf.write(str(path), samples, sample_rate, subtype=subtype)
        return path
    return _write


@pytest.fixture
def song_wav(write_wav):
    """Two seconds of the four band tones, 44.1 kHz mono PCM_16."""
    return write_wav("song.wav", _band_tones(2.0, 44100), 44100)
