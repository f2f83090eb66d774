import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..audio import load_audio, source_name
from ..base import FingerprintService
from ..config import FingerprintConfig
from .codec import decode, encode
from .comparator import ComparisonResult, compare
from .peaks import RobustPoint, select_robust_points
from .spectrogram import Spectrogram, build_spectrogram

log = logging.getLogger(__name__)


class Timer:
    """Context manager for timing the steps of one extraction."""

    def __init__(self):
        self.timings: Dict[str, float] = {}

    @contextmanager
    def measure(self, label: str):
        start = time.perf_counter()
        yield
        elapsed = time.perf_counter() - start
        self.timings[label] = elapsed
        log.debug("%s: %.4fs", label, elapsed)

    @property
    def total(self) -> float:
        return sum(self.timings.values())


@dataclass(frozen=True)
class FingerprintAnalysis:
    """Everything one extraction produced, kept for inspection and plotting."""

    spectrogram: Spectrogram
    points: List[List[RobustPoint]]
    fingerprint: bytes
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def num_complete_frames(self) -> int:
        return len({p.frame for p in decode(self.fingerprint)})


class SpectralFingerprintService(FingerprintService):
    """
    Spectral peak fingerprinting.

    Resamples to a common rate, keeps the dominant peak(s) of each filter bank
    and encodes frames that have the full set of robust points.
    """

    def __init__(self, config: Optional[FingerprintConfig] = None):
        self.config = config or FingerprintConfig()

    @property
    def name(self) -> str:
        return "spectral"

    def analyze(self, source) -> FingerprintAnalysis:
        timer = Timer()
        config = self.config

        with timer.measure("Load audio"):
            pcm = load_audio(source)

        with timer.measure("Extract spectrogram"):
            spectrogram = build_spectrogram(pcm, config)

        with timer.measure("Select robust points"):
            points = select_robust_points(spectrogram, config.num_banks,
                                          config.points_per_bank, config.ranking)

        with timer.measure("Encode"):
            fingerprint = encode(points, config.points_per_frame)

        if not fingerprint:
            log.info("No complete frame in %s: empty fingerprint", source_name(source))
        log.debug("Fingerprint: %d bytes from %d frames (%.4fs total)",
                  len(fingerprint), spectrogram.num_frames, timer.total)
        return FingerprintAnalysis(spectrogram=spectrogram, points=points,
                                   fingerprint=fingerprint, timings=timer.timings)

    def calculate_fingerprint(self, source) -> bytes:
        """
        Frame and bin indices are stored as 16-bit values, so audio longer than
        65536 frames (about 54.6 minutes at the default 20 frames per second)
        raises FingerprintRangeError.
        """
        return self.analyze(source).fingerprint

    def compare_fingerprints(self, a: bytes, b: bytes) -> ComparisonResult:
        return compare(a, b, self.config)
