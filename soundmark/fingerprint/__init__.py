"""
Spectral peak fingerprinting.

1. Resample to a common rate and extract a normalised magnitude spectrogram
2. Keep the strongest cell(s) of each filter bank
3. Encode frames with the full set of robust points as 8-byte records
4. Compare two fingerprints by voting over frame offsets
"""

from .codec import decode, encode, frame_count
from .comparator import ComparisonResult, compare
from .peaks import RobustPoint, select_robust_points
from .service import FingerprintAnalysis, SpectralFingerprintService
from .spectrogram import Spectrogram, build_spectrogram

__all__ = [
    'SpectralFingerprintService', 'FingerprintAnalysis', 'ComparisonResult', 'compare',
    'RobustPoint', 'select_robust_points', 'Spectrogram', 'build_spectrogram',
    'encode', 'decode', 'frame_count',
]
