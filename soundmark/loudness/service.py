import logging
from typing import Optional

from ..audio import load_audio, source_name
from ..base import AnalysisService
from ..config import DEFAULT_SILENCE_THRESHOLD_DB, LoudnessConfig
from .dispatcher import FrameDispatcher
from .processors import LoudnessEstimator, SilenceGate, SPLTrace

log = logging.getLogger(__name__)


class EnergyAnalysisService(AnalysisService):
    """
    Loudness from local signal energy, one value per dispatcher frame.
    """

    def __init__(self, config: Optional[LoudnessConfig] = None):
        self.config = config or LoudnessConfig()

    @property
    def name(self) -> str:
        return "energy"

    def get_sound_pressure_levels(
        self,
        source,
        linear: bool = False,
        silence_threshold_db: float = DEFAULT_SILENCE_THRESHOLD_DB,
        *,
        interrupt_on_silence: bool = False,
    ) -> SPLTrace:
        """
        Args:
            source: Path, binary file object or PCMBuffer
            linear: If True, report linear SPL values; otherwise dB
            silence_threshold_db: Level below which a frame counts as silent
            interrupt_on_silence: Stop at the first silent frame instead of
                tracing the whole duration

        Returns:
            SPLTrace with one entry per frame processed
        """
        pcm = load_audio(source)
        floor_db = self.config.floor_db

        gate = SilenceGate(silence_threshold_db, pass_through_on_silence=not interrupt_on_silence,
                           floor_db=floor_db)
        estimator = LoudnessEstimator(linear=linear, floor_db=floor_db)
        dispatcher = FrameDispatcher(self.config.frame_size, self.config.overlap, [gate, estimator])
        dispatcher.run(pcm)

        trace = estimator.trace
        if gate.silent_frames:
            log.debug("%s: %d silent frame(s) below %.1f dB",
                      source_name(source), gate.silent_frames, silence_threshold_db)
        return trace
