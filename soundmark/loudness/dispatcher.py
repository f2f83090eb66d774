"""
Frame-by-frame streaming of a PCM buffer through a chain of stages.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import numpy as np

from ..audio import PCMBuffer, to_mono

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioFrame:
    index: int
    timestamp: float
    """Seconds from the start: samples preceding this frame / sample rate."""
    samples: np.ndarray
    sample_rate: int


class FrameStage(ABC):
    """One processing step of a FrameDispatcher."""

    @abstractmethod
    def process(self, frame: AudioFrame) -> bool:
        """Handle a frame; return False to stop the dispatcher."""
        pass

    def finish(self) -> None:
        """Called once after the last frame was dispatched."""
        pass


def iter_frames(samples: np.ndarray, sample_rate: int, frame_size: int,
                overlap: int = 0) -> Iterator[AudioFrame]:
    """
    Split a mono signal into frames of `frame_size` samples advancing by
    `frame_size - overlap`.

    Only full frames are yielded; a trailing partial frame is dropped, so
    every frame holds exactly `frame_size` samples.
    """
    step = frame_size - overlap
    last_start = len(samples) - frame_size
    for index, start in enumerate(range(0, last_start + 1, step)):
        yield AudioFrame(index=index, timestamp=start / sample_rate,
                         samples=samples[start:start + frame_size], sample_rate=sample_rate)


class FrameDispatcher:
    """
    Feeds every frame of a PCM buffer through the registered stages, in
    registration order, until the audio ends or a stage asks to stop.
    """

    def __init__(self, frame_size: int, overlap: int = 0,
                 stages: Optional[Sequence[FrameStage]] = None):
        if frame_size < 1:
            raise ValueError(f"frame_size must be >= 1, got {frame_size}")
        if not 0 <= overlap < frame_size:
            raise ValueError(f"overlap must be in [0, frame_size), got {overlap}")
        self.frame_size = frame_size
        self.overlap = overlap
        self.stages: List[FrameStage] = list(stages or [])

    def add_stage(self, stage: FrameStage) -> "FrameDispatcher":
        self.stages.append(stage)
        return self

    def run(self, pcm: PCMBuffer) -> int:
        """
        Dispatch the whole buffer.

        Returns:
            Number of frames that went through every stage.
        """
        mono = to_mono(pcm)
        completed = 0
        stopped_at = None
        try:
            for frame in iter_frames(mono.samples, mono.sample_rate, self.frame_size, self.overlap):
                if not all(stage.process(frame) for stage in self.stages):
                    stopped_at = frame
                    break
                completed += 1
        finally:
            for stage in self.stages:
                stage.finish()

        if stopped_at is not None:
            log.info("Dispatcher stopped at frame %d (%.3fs)", stopped_at.index, stopped_at.timestamp)
        log.debug("Dispatched %d frame(s) of %d samples through %d stage(s)",
                  completed, self.frame_size, len(self.stages))
        return completed
