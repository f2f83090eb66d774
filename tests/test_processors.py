"""tests/test_processors.py: SPL math, trace, estimator and silence gate."""

import math

import numpy as np
import pytest

from soundmark.loudness.dispatcher import AudioFrame
from soundmark.loudness.processors import (
    LoudnessEstimator,
    SilenceGate,
    SPLTrace,
    linear_to_decibel,
    local_energy,
    sound_pressure_level,
)


def _frame(samples, index=0, timestamp=0.0) -> AudioFrame:
    return AudioFrame(index=index, timestamp=timestamp, samples=np.asarray(samples, dtype=float), sample_rate=8000)


class TestSoundPressureLevel:
    def test_local_energy(self) -> None:
        assert local_energy([1.0, -2.0, 0.5]) == pytest.approx(5.25)

    def test_linear_and_db(self) -> None:
        linear, db = sound_pressure_level(np.full(100, 0.5))
        # sqrt(100 * 0.25) / 100
        assert linear == pytest.approx(0.05)
        assert db == pytest.approx(20 * math.log10(0.05))

    def test_silence_maps_to_floor(self) -> None:
        assert sound_pressure_level(np.zeros(2048)) == (0.0, -120.0)
        assert sound_pressure_level(np.zeros(2048), floor_db=-90.0) == (0.0, -90.0)

    def test_empty_buffer(self) -> None:
        assert sound_pressure_level(np.zeros(0)) == (0.0, -120.0)

    def test_linear_to_decibel(self) -> None:
        assert linear_to_decibel(1.0) == 0.0
        assert linear_to_decibel(0.0) == -120.0


class TestSPLTrace:
    def test_timestamps_must_increase(self) -> None:
        trace = SPLTrace()
        trace.append(0.0, -40.0)
        trace.append(0.5, -41.0)
        with pytest.raises(ValueError):
            trace.append(0.5, -42.0)
        with pytest.raises(ValueError):
            trace.append(0.1, -42.0)
        assert len(trace) == 2

    def test_views(self) -> None:
        trace = SPLTrace(linear=True)
        trace.append(0.0, 0.1)
        trace.append(1.0, 0.3)
        assert trace.unit == "linear"
        assert trace.timestamps == (0.0, 1.0)
        assert trace.levels == (0.1, 0.3)
        assert list(trace) == [(0.0, 0.1), (1.0, 0.3)]
        assert trace.as_dict() == {0.0: 0.1, 1.0: 0.3}
        assert trace[-1] == (1.0, 0.3)
        assert trace.mean() == pytest.approx(0.2)
        assert "2 frames" in repr(trace)

    def test_empty_mean_is_nan(self) -> None:
        assert math.isnan(SPLTrace().mean())


class TestLoudnessEstimator:
    def test_records_db_by_default(self) -> None:
        estimator = LoudnessEstimator()
        assert estimator.process(_frame(np.full(100, 0.5), timestamp=0.25)) is True
        assert estimator.trace.unit == "dB"
        assert estimator.trace[0] == (0.25, pytest.approx(20 * math.log10(0.05)))

    def test_records_linear(self) -> None:
        estimator = LoudnessEstimator(linear=True)
        estimator.process(_frame(np.full(100, 0.5)))
        assert estimator.trace.levels == (pytest.approx(0.05),)


class TestSilenceGate:
    def test_threshold(self) -> None:
        gate = SilenceGate(threshold_db=-60.0)
        assert gate.is_silence(np.zeros(64))
        assert gate.current_spl == -120.0
        assert not gate.is_silence(np.full(64, 0.5))
        assert gate.current_linear_spl == pytest.approx(0.5 / 8)

    def test_pass_through_never_stops(self) -> None:
        gate = SilenceGate()
        assert gate.process(_frame(np.zeros(64))) is True
        assert gate.silent_frames == 1

    def test_interrupting_stops_on_silence(self) -> None:
        gate = SilenceGate(pass_through_on_silence=False)
        assert gate.process(_frame(np.full(64, 0.5))) is True
        assert gate.process(_frame(np.zeros(64), index=1)) is False

    def test_mode_is_fixed(self) -> None:
        gate = SilenceGate(threshold_db=-50.0, pass_through_on_silence=False)
        assert gate.threshold_db == -50.0
        assert gate.pass_through_on_silence is False
        with pytest.raises(AttributeError):
            gate.threshold_db = -10.0
        with pytest.raises(AttributeError):
            gate.pass_through_on_silence = True
