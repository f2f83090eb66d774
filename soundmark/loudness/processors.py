import math
from typing import Dict, Iterator, List, Tuple

import numpy as np

from ..config import DEFAULT_SILENCE_THRESHOLD_DB, FLOOR_DB
from .dispatcher import AudioFrame, FrameStage


def local_energy(samples) -> float:
    """Sum of squared amplitudes of a buffer."""
    samples = np.asarray(samples, dtype=np.float64)
    return float(np.dot(samples, samples))


def linear_to_decibel(value: float, floor_db: float = FLOOR_DB) -> float:
    if value <= 0.0:
        return floor_db
    return 20.0 * math.log10(value)


def sound_pressure_level(samples, floor_db: float = FLOOR_DB) -> Tuple[float, float]:
    """
    (linear, dB) SPL of a buffer: linear = sqrt(energy) / length.

    Digital silence and empty buffers give (0.0, floor_db).
    """
    length = len(samples)
    if length == 0:
        return 0.0, floor_db
    linear = math.sqrt(local_energy(samples)) / length
    return linear, linear_to_decibel(linear, floor_db)


class SPLTrace:
    """
    Append-only, time-ordered (timestamp, level) pairs.

    Levels are linear SPL or dB SPL depending on `linear`. Timestamps must be
    strictly increasing.
    """

    def __init__(self, linear: bool = False):
        self.linear = linear
        self._timestamps: List[float] = []
        self._levels: List[float] = []

    def append(self, timestamp: float, level: float) -> None:
        if self._timestamps and timestamp <= self._timestamps[-1]:
            raise ValueError(
                f"timestamp {timestamp} does not follow {self._timestamps[-1]}"
            )
        self._timestamps.append(float(timestamp))
        self._levels.append(float(level))

    @property
    def unit(self) -> str:
        return "linear" if self.linear else "dB"

    @property
    def timestamps(self) -> Tuple[float, ...]:
        return tuple(self._timestamps)

    @property
    def levels(self) -> Tuple[float, ...]:
        return tuple(self._levels)

    def items(self) -> Iterator[Tuple[float, float]]:
        return zip(self._timestamps, self._levels)

    def as_dict(self) -> Dict[float, float]:
        return dict(self.items())

    def mean(self) -> float:
        if not self._levels:
            return math.nan
        return float(np.mean(self._levels))

    def __iter__(self):
        return self.items()

    def __len__(self) -> int:
        return len(self._levels)

    def __getitem__(self, index: int) -> Tuple[float, float]:
        return self._timestamps[index], self._levels[index]

    def __repr__(self) -> str:
        return f"SPLTrace({len(self)} frames, {self.unit})"


class LoudnessEstimator(FrameStage):
    """Records the SPL of every frame it sees into `trace`."""

    def __init__(self, linear: bool = False, floor_db: float = FLOOR_DB):
        self.linear = linear
        self.floor_db = floor_db
        self.trace = SPLTrace(linear=linear)

    def process(self, frame: AudioFrame) -> bool:
        linear_spl, db_spl = sound_pressure_level(frame.samples, self.floor_db)
        self.trace.append(frame.timestamp, linear_spl if self.linear else db_spl)
        return True


class SilenceGate(FrameStage):
    """
    Flags frames whose dB SPL falls below a threshold.

    With `pass_through_on_silence` the gate never stops the dispatcher and the
    flag is informational; otherwise the first silent frame stops it.
    """

    def __init__(self, threshold_db: float = DEFAULT_SILENCE_THRESHOLD_DB,
                 pass_through_on_silence: bool = True, floor_db: float = FLOOR_DB):
        self._threshold_db = threshold_db
        self._pass_through = pass_through_on_silence
        self.floor_db = floor_db
        self.current_spl = floor_db
        self.current_linear_spl = 0.0
        self.silent_frames = 0

    @property
    def threshold_db(self) -> float:
        return self._threshold_db

    @property
    def pass_through_on_silence(self) -> bool:
        return self._pass_through

    def is_silence(self, samples) -> bool:
        self.current_linear_spl, self.current_spl = sound_pressure_level(samples, self.floor_db)
        return self.current_spl < self._threshold_db

    def process(self, frame: AudioFrame) -> bool:
        silent = self.is_silence(frame.samples)
        if silent:
            self.silent_frames += 1
        if self._pass_through:
            return True
        return not silent
