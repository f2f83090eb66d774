from typing import List, NamedTuple

import numpy as np

from ..config import PeakRanking
from .spectrogram import Spectrogram


class RobustPoint(NamedTuple):
    frame: int
    bin: int
    intensity: float  # normalised spectrogram value, in [0, 1]


def filter_banks(num_bins: int, num_banks: int):
    """
    Equal-width, contiguous (lo, hi) bin ranges, hi exclusive.

    bandwidth = num_bins // num_banks; the remainder bins at the top are unused.
    """
    bandwidth = num_bins // num_banks
    return [(b * bandwidth, (b + 1) * bandwidth) for b in range(num_banks)]


def suppress_band(band: np.ndarray, points_per_bank: int, ranking: PeakRanking) -> np.ndarray:
    """
    Zero every cell of a (frames, bandwidth) slice except the strongest ones.

    PER_FRAME keeps the `points_per_bank` highest cells of each frame,
    GLOBAL keeps the `points_per_bank` highest cells of the whole band.
    Ties go to the lower frame / bin index.
    """
    kept = np.zeros_like(band)
    if band.size == 0:
        return kept

    if ranking is PeakRanking.PER_FRAME:
        k = min(points_per_bank, band.shape[1])
        # stable sort on the negated values: descending, lowest bin first on ties
        top = np.argsort(-band, axis=1, kind="stable")[:, :k]
        rows = np.arange(band.shape[0])[:, None]
        kept[rows, top] = band[rows, top]
    else:
        flat = band.ravel()
        top = np.argsort(-flat, kind="stable")[:points_per_bank]
        kept.flat[top] = flat[top]
    return kept


def suppress(spectrogram: Spectrogram, num_banks: int, points_per_bank: int = 1,
             ranking: PeakRanking = PeakRanking.GLOBAL) -> np.ndarray:
    """Run peak suppression on every filter bank; returns a matrix the shape of the input."""
    data = spectrogram.data
    processed = np.zeros_like(data)
    for lo, hi in filter_banks(spectrogram.num_bins, num_banks):
        processed[:, lo:hi] = suppress_band(data[:, lo:hi], points_per_bank, ranking)
    return processed


def select_robust_points(spectrogram: Spectrogram, num_banks: int, points_per_bank: int = 1,
                         ranking: PeakRanking = PeakRanking.GLOBAL) -> List[List[RobustPoint]]:
    """
    Robust points grouped per frame.

    A cell is robust iff its intensity survives suppression with a value > 0.
    The result has one list per spectrogram frame (possibly empty), bins ascending.
    """
    processed = suppress(spectrogram, num_banks, points_per_bank, ranking)
    per_frame: List[List[RobustPoint]] = [[] for _ in range(spectrogram.num_frames)]
    frames, bins = np.nonzero(processed > 0)
    for t, k in zip(frames.tolist(), bins.tolist()):
        per_frame[t].append(RobustPoint(t, k, float(processed[t, k])))
    return per_frame
