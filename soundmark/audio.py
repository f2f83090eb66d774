import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import BinaryIO, Optional, Union

import librosa
import numpy as np
import soundfile as sf

from .errors import DecodeError

log = logging.getLogger(__name__)

AudioSource = Union[str, Path, BinaryIO, "PCMBuffer"]

_SUBTYPE_BITS = re.compile(r"(\d+)$")


@dataclass(frozen=True)
class PCMBuffer:
    """
    Decoded audio held in memory.

    `samples` is float, shape (n,) for mono or (n, channels) otherwise, with
    amplitudes nominally in [-1, 1]. The analysis code never mutates it.
    """

    samples: np.ndarray
    sample_rate: int
    channels: int = 1
    bit_depth: Optional[int] = None

    @classmethod
    def from_array(cls, samples, sample_rate: int, bit_depth: Optional[int] = None) -> "PCMBuffer":
        samples = np.asarray(samples, dtype=np.float64)
        channels = 1 if samples.ndim == 1 else samples.shape[1]
        return cls(samples=samples, sample_rate=int(sample_rate), channels=channels, bit_depth=bit_depth)

    @property
    def num_samples(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_sec(self) -> float:
        return self.num_samples / self.sample_rate


def source_name(source) -> str:
    """Short label for log messages."""
    if isinstance(source, PCMBuffer):
        return f"<pcm {source.num_samples} samples @ {source.sample_rate} Hz>"
    if isinstance(source, (str, Path)):
        return Path(source).name
    return str(getattr(source, "name", type(source).__name__))


def _bit_depth(subtype: str) -> Optional[int]:
    # soundfile subtypes look like PCM_16, PCM_24, FLOAT, DOUBLE, ...
    if subtype == "FLOAT":
        return 32
    if subtype == "DOUBLE":
        return 64
    match = _SUBTYPE_BITS.search(subtype)
    return int(match.group(1)) if match else None


def load_audio(source) -> PCMBuffer:
    """Decode a file path or binary file object into a PCMBuffer."""
    if isinstance(source, PCMBuffer):
        return source
    try:
        with sf.SoundFile(source) as f:
            signal = f.read(dtype="float64")
            buffer = PCMBuffer(
                samples=np.asarray(signal),
                sample_rate=f.samplerate,
                channels=f.channels,
                bit_depth=_bit_depth(f.subtype),
            )
    except (RuntimeError, OSError, TypeError) as exc:
        raise DecodeError(f"cannot decode audio source {source!r}: {exc}") from exc
    log.debug("Decoded %s: %d samples @ %d Hz, %d channel(s)",
              source_name(source), buffer.num_samples, buffer.sample_rate, buffer.channels)
    return buffer


def to_mono(pcm: PCMBuffer) -> PCMBuffer:
    if pcm.samples.ndim == 1:
        return pcm
    # signal is (num_samples, num_channels); librosa wants (channels, samples)
    mono = librosa.to_mono(np.ascontiguousarray(pcm.samples.T))
    return replace(pcm, samples=mono, channels=1)


def resample(pcm: PCMBuffer, target_rate: int) -> PCMBuffer:
    """Resample to `target_rate`, returning the input untouched if it already matches."""
    if pcm.sample_rate == target_rate:
        return pcm
    if pcm.num_samples == 0:
        return replace(pcm, sample_rate=target_rate)
    # librosa resamples along the last axis
    signal = pcm.samples if pcm.samples.ndim == 1 else pcm.samples.T
    resampled = librosa.resample(signal, orig_sr=pcm.sample_rate, target_sr=target_rate)
    if resampled.ndim > 1:
        resampled = resampled.T
    return replace(pcm, samples=np.asarray(resampled, dtype=np.float64), sample_rate=target_rate)


def cut_audio(pcm: PCMBuffer, clip_length_sec: float, start_sec: Optional[float] = None,
              seed: int = 42) -> PCMBuffer:
    """
    Cut a clip of `clip_length_sec` seconds.

    When `start_sec` is not given the start is drawn at random (seeded, so a
    benchmark run is reproducible). Clips longer than the audio return it whole.
    """
    clip_samples = int(clip_length_sec * pcm.sample_rate)
    total_samples = pcm.num_samples
    if clip_samples >= total_samples:
        return pcm
    if start_sec is None:
        rng = np.random.default_rng(seed)
        start = int(rng.integers(0, total_samples - clip_samples))
    else:
        start = min(int(start_sec * pcm.sample_rate), total_samples - clip_samples)
    return replace(pcm, samples=pcm.samples[start:start + clip_samples])


def inject_noise(pcm: PCMBuffer, snr_db: float, seed: Optional[int] = None) -> PCMBuffer:
    """
    Add white Gaussian noise to get the desired SNR in dB.
    """
    signal = pcm.samples.astype(float)

    # signal power (mean square)
    signal_power = np.mean(signal ** 2) if signal.size else 0.0
    if signal_power == 0:
        # nothing to scale the noise against
        return pcm

    noise_power = signal_power / (10 ** (snr_db / 10))
    rng = np.random.default_rng(seed)
    noise = rng.normal(0.0, np.sqrt(noise_power), size=signal.shape)
    return replace(pcm, samples=signal + noise)
