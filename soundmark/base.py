"""
Capability interfaces for audio analysis backends.

Fingerprinting and loudness analysis are independent capabilities: a backend
implements one or the other, and callers pick one by constructing it.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .config import DEFAULT_SILENCE_THRESHOLD_DB

if TYPE_CHECKING:
    from .audio import AudioSource
    from .fingerprint.comparator import ComparisonResult
    from .loudness.processors import SPLTrace


class FingerprintService(ABC):
    """
    Computes compact binary fingerprints and compares them.
    """

    @abstractmethod
    def calculate_fingerprint(self, source: "AudioSource") -> bytes:
        """
        Calculate the acoustic fingerprint of an audio source.

        Args:
            source: Path, binary file object or already decoded PCMBuffer

        Returns:
            Fingerprint bytes; empty for audio with no complete frame

        Raises:
            DecodeError: the source cannot be read
            FingerprintRangeError: the audio has more frames than a record can index
        """
        pass

    @abstractmethod
    def compare_fingerprints(self, a: bytes, b: bytes) -> "ComparisonResult":
        """
        Compare two fingerprints produced by calculate_fingerprint.

        Args:
            a: The reference fingerprint
            b: The comparison fingerprint

        Returns:
            Similarity in [0, 1] and the offset at which B best matches A

        Raises:
            MalformedFingerprintError: either input is not a whole number of records
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this backend."""
        pass


class AnalysisService(ABC):
    """
    Measures time-varying loudness of an audio source.
    """

    @abstractmethod
    def get_sound_pressure_levels(
        self,
        source: "AudioSource",
        linear: bool = False,
        silence_threshold_db: float = DEFAULT_SILENCE_THRESHOLD_DB,
    ) -> "SPLTrace":
        """
        Track sound pressure level over time.

        Args:
            source: Path, binary file object or already decoded PCMBuffer
            linear: If True, report linear SPL values; otherwise dB
            silence_threshold_db: Level below which a frame counts as silent

        Returns:
            Frame timestamps (seconds) mapped to SPL, in time order
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this backend."""
        pass
