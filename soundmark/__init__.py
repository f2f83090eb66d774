"""
soundmark - Audio fingerprinting and loudness analysis

This package provides two independent capabilities:
1. Fingerprinting: spectral peaks per filter bank, packed into 8-byte records
   and compared by offset voting
2. Loudness: a frame dispatcher feeding a silence gate and an SPL estimator
"""

from .audio import PCMBuffer, load_audio
from .base import AnalysisService, FingerprintService
from .config import FingerprintConfig, LoudnessConfig, PeakRanking, load_config
from .errors import ConfigError, DecodeError, FingerprintRangeError, MalformedFingerprintError, SoundmarkError
from .fingerprint import ComparisonResult, SpectralFingerprintService
from .loudness import EnergyAnalysisService, SPLTrace

__all__ = [
    'PCMBuffer', 'load_audio',
    'FingerprintService', 'AnalysisService',
    'FingerprintConfig', 'LoudnessConfig', 'PeakRanking', 'load_config',
    'SoundmarkError', 'DecodeError', 'MalformedFingerprintError', 'FingerprintRangeError', 'ConfigError',
    'SpectralFingerprintService', 'ComparisonResult',
    'EnergyAnalysisService', 'SPLTrace',
]
