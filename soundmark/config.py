# ---------- CONFIG ---------- #

from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import yaml

from .errors import ConfigError

# Fingerprinting: 2048-sample frames advancing by a quarter frame (overlap factor 4)
# at 10240 Hz give 20 frames per second and 1024 bins of 5 Hz each.
FRAME_SIZE = 2048
OVERLAP = 1536
TARGET_SR = 10240
NUM_BANKS = 4
POINTS_PER_BANK = 1
POINTS_PER_FRAME = 4  # a frame needs exactly this many robust points to be encoded
BIN_TOLERANCE = 1  # bins closer than this still count as the same peak when comparing
SPECTROGRAM_STRATEGY = "scipy"
STRATEGY_NAMES = ("scipy", "librosa", "torch")

# Loudness
LOUDNESS_FRAME_SIZE = 2048
LOUDNESS_OVERLAP = 0
FLOOR_DB = -120.0  # reported for digital silence instead of -inf
DEFAULT_SILENCE_THRESHOLD_DB = -70.0  # normal values are [-70, -30] dB SPL


class PeakRanking(str, Enum):
    """How peak suppression ranks cells inside a filter bank."""

    GLOBAL = "global"
    PER_FRAME = "per_frame"


@dataclass(frozen=True)
class FingerprintConfig:
    frame_size: int = FRAME_SIZE
    overlap: int = OVERLAP
    target_rate: int = TARGET_SR
    num_banks: int = NUM_BANKS
    points_per_bank: int = POINTS_PER_BANK
    points_per_frame: int = POINTS_PER_FRAME
    ranking: PeakRanking = PeakRanking.GLOBAL
    bin_tolerance: int = BIN_TOLERANCE
    strategy: str = SPECTROGRAM_STRATEGY

    def __post_init__(self):
        if self.frame_size < 2 or self.frame_size % 2:
            raise ConfigError(f"frame_size must be an even number >= 2, got {self.frame_size}")
        if not 0 <= self.overlap < self.frame_size:
            raise ConfigError(f"overlap must be in [0, frame_size), got {self.overlap}")
        if self.target_rate <= 0:
            raise ConfigError(f"target_rate must be positive, got {self.target_rate}")
        if not 1 <= self.num_banks <= self.frame_size // 2:
            raise ConfigError(f"num_banks must be in [1, {self.frame_size // 2}], got {self.num_banks}")
        if self.points_per_bank < 1:
            raise ConfigError(f"points_per_bank must be >= 1, got {self.points_per_bank}")
        if self.points_per_frame < 1:
            raise ConfigError(f"points_per_frame must be >= 1, got {self.points_per_frame}")
        if self.points_per_frame > self.num_banks * self.points_per_bank:
            raise ConfigError(
                f"points_per_frame ({self.points_per_frame}) exceeds num_banks * points_per_bank "
                f"({self.num_banks} * {self.points_per_bank}): no frame could ever be complete"
            )
        if self.bin_tolerance < 0:
            raise ConfigError(f"bin_tolerance must be >= 0, got {self.bin_tolerance}")
        if self.strategy not in STRATEGY_NAMES:
            raise ConfigError(f"strategy must be one of {list(STRATEGY_NAMES)}, got {self.strategy!r}")
        if not isinstance(self.ranking, PeakRanking):
            try:
                object.__setattr__(self, "ranking", PeakRanking(self.ranking))
            except ValueError:
                choices = [r.value for r in PeakRanking]
                raise ConfigError(f"ranking must be one of {choices}, got {self.ranking!r}") from None

    @property
    def step(self) -> int:
        """Samples between the starts of consecutive frames."""
        return self.frame_size - self.overlap

    @property
    def num_bins(self) -> int:
        return self.frame_size // 2

    @property
    def frame_duration_sec(self) -> float:
        return self.step / self.target_rate

    @property
    def frames_per_second(self) -> float:
        return self.target_rate / self.step


@dataclass(frozen=True)
class LoudnessConfig:
    frame_size: int = LOUDNESS_FRAME_SIZE
    overlap: int = LOUDNESS_OVERLAP
    floor_db: float = FLOOR_DB
    silence_threshold_db: float = DEFAULT_SILENCE_THRESHOLD_DB

    def __post_init__(self):
        if self.frame_size < 1:
            raise ConfigError(f"frame_size must be >= 1, got {self.frame_size}")
        if not 0 <= self.overlap < self.frame_size:
            raise ConfigError(f"overlap must be in [0, frame_size), got {self.overlap}")

    @property
    def step(self) -> int:
        return self.frame_size - self.overlap


def _build(cls, section: Any, name: str):
    if section is None:
        return cls()
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' section must be a mapping, got {type(section).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigError(f"unknown {name} option(s): {', '.join(unknown)}")
    return replace(cls(), **section)


def load_config(path: Union[str, Path]) -> Tuple[FingerprintConfig, LoudnessConfig]:
    """
    Read fingerprint and loudness settings from a YAML file.

    The file may contain a ``fingerprint:`` and a ``loudness:`` mapping; a
    missing section keeps the defaults above.
    """
    try:
        with open(path, "r") as f:
            raw: Dict[str, Any] = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    unknown = sorted(set(raw) - {"fingerprint", "loudness"})
    if unknown:
        raise ConfigError(f"unknown section(s) in {path}: {', '.join(unknown)}")

    return (
        _build(FingerprintConfig, raw.get("fingerprint"), "fingerprint"),
        _build(LoudnessConfig, raw.get("loudness"), "loudness"),
    )
