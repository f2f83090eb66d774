"""
Spectrogram extraction for audio fingerprinting.

Every strategy frames the signal the same way (no centring, no padding, the
trailing partial frame dropped) so fingerprints do not depend on which STFT
implementation produced them.
"""

import logging
from dataclasses import dataclass

import librosa
import numpy as np
import scipy.signal

from ..audio import PCMBuffer, resample, to_mono
from ..config import FingerprintConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Spectrogram:
    """Magnitudes laid out [frame][bin], normalised to [0, 1] over the whole matrix."""

    data: np.ndarray
    sample_rate: int
    frame_size: int
    overlap: int

    @property
    def num_frames(self) -> int:
        return int(self.data.shape[0])

    @property
    def num_bins(self) -> int:
        return int(self.data.shape[1])

    @property
    def step(self) -> int:
        return self.frame_size - self.overlap

    @property
    def frame_duration_sec(self) -> float:
        return self.step / self.sample_rate

    def bin_frequencies(self) -> np.ndarray:
        """Centre frequency in Hz of each bin: F(k) = k * sample_rate / frame_size."""
        return np.arange(self.num_bins) * self.sample_rate / self.frame_size


def expected_num_frames(num_samples: int, frame_size: int, step: int) -> int:
    if num_samples < frame_size:
        return 0
    return (num_samples - frame_size) // step + 1


# ============================================================================
# STFT strategies: signal -> complex matrix (frame_size // 2 + 1, frames)
# ============================================================================

def _stft_scipy(signal, sample_rate, frame_size, overlap):
    _, _, stft = scipy.signal.stft(
        signal,
        fs=sample_rate,
        nperseg=frame_size,
        noverlap=overlap,
        window="hann",
        detrend=False,
        boundary=None,  # no boundary extension
        padded=False,   # no zero-padded trailing frame
    )
    return stft


def _stft_librosa(signal, sample_rate, frame_size, overlap):
    return librosa.stft(
        signal,
        n_fft=frame_size,
        hop_length=frame_size - overlap,
        window="hann",
        center=False,
    )


def _stft_torch(signal, sample_rate, frame_size, overlap):
    import torch

    x = torch.as_tensor(signal, dtype=torch.float64)
    window = torch.hann_window(frame_size, dtype=torch.float64)
    stft = torch.stft(
        x, n_fft=frame_size, hop_length=frame_size - overlap, window=window,
        center=False, return_complex=True,
    )
    return stft.cpu().numpy()


STRATEGIES = {
    "scipy": _stft_scipy,
    "librosa": _stft_librosa,
    "torch": _stft_torch,
}


def magnitude_frames(signal: np.ndarray, sample_rate: int, frame_size: int, overlap: int,
                     strategy: str = "scipy") -> np.ndarray:
    """
    Windowed magnitude transform of a mono signal.

    Returns:
        Array of shape (frames, frame_size // 2), not normalised. The Nyquist
        bin is discarded.
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy: {strategy}. Choose from {list(STRATEGIES.keys())}")

    n_bins = frame_size // 2
    n_frames = expected_num_frames(len(signal), frame_size, frame_size - overlap)
    if n_frames == 0:
        return np.zeros((0, n_bins), dtype=np.float64)

    stft = STRATEGIES[strategy](np.asarray(signal, dtype=np.float64), sample_rate, frame_size, overlap)
    # since stft is complex, we take the magnitude
    magnitudes = np.abs(stft[:n_bins, :n_frames]).T
    return np.ascontiguousarray(magnitudes, dtype=np.float64)


def normalize(magnitudes: np.ndarray) -> np.ndarray:
    """Divide by the global maximum; an all-zero matrix stays all-zero."""
    if magnitudes.size == 0:
        return magnitudes
    peak = float(magnitudes.max())
    if peak <= 0.0:
        return np.zeros_like(magnitudes)
    return magnitudes / peak


def build_spectrogram(pcm: PCMBuffer, config: FingerprintConfig) -> Spectrogram:
    """Mixdown, resample to the target rate, then frame and transform."""
    pcm = resample(to_mono(pcm), config.target_rate)
    magnitudes = magnitude_frames(pcm.samples, pcm.sample_rate, config.frame_size,
                                  config.overlap, config.strategy)
    data = normalize(magnitudes)
    log.debug("Spectrogram (%s): %d frames x %d bins", config.strategy, data.shape[0], data.shape[1])
    return Spectrogram(data=data, sample_rate=pcm.sample_rate,
                       frame_size=config.frame_size, overlap=config.overlap)
