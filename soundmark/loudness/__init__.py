"""
Loudness over time from local signal energy.
"""

from .dispatcher import AudioFrame, FrameDispatcher, FrameStage
from .processors import LoudnessEstimator, SilenceGate, SPLTrace
from .service import EnergyAnalysisService

__all__ = [
    'EnergyAnalysisService', 'SPLTrace', 'FrameDispatcher', 'FrameStage', 'AudioFrame',
    'SilenceGate', 'LoudnessEstimator',
]
