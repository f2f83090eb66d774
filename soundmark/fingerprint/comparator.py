import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..config import FingerprintConfig
from .codec import decode, frame_count

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComparisonResult:
    similarity: float
    """0.0 (nothing in common) to 1.0 (exact match)."""

    offset_frames: int
    """Frame i of A lines up with frame i + offset_frames of B."""

    offset_seconds: float


def _index_by_bin(points) -> Dict[int, List[Tuple[int, float]]]:
    table: Dict[int, List[Tuple[int, float]]] = defaultdict(list)
    for frame, bin_, intensity in points:
        table[bin_].append((frame, intensity))
    return table


def offset_votes(points_a, points_b, bin_tolerance: int, max_offset: int) -> Dict[int, float]:
    """
    Accumulate match weight per frame offset.

    A point of A matches a point of B when their bins differ by at most
    `bin_tolerance`; the weight is the intensity similarity 1 - |iA - iB|.
    Each point of A adds only its best match for any given offset.
    """
    table = _index_by_bin(points_b)
    votes: Dict[int, float] = defaultdict(float)

    for frame_a, bin_a, intensity_a in points_a:
        best: Dict[int, float] = {}
        for bin_b in range(bin_a - bin_tolerance, bin_a + bin_tolerance + 1):
            for frame_b, intensity_b in table.get(bin_b, ()):
                offset = frame_b - frame_a
                if abs(offset) > max_offset:
                    continue
                weight = 1.0 - abs(intensity_a - intensity_b)
                if weight > best.get(offset, 0.0):
                    best[offset] = weight
        for offset, weight in best.items():
            votes[offset] += weight
    return votes


def compare(a: bytes, b: bytes, config: Optional[FingerprintConfig] = None) -> ComparisonResult:
    """
    Slide B against A by whole frames and score the best alignment.

    similarity(d) = weight(d) / (K * min(frames A, frames B)), clamped to [0, 1],
    where the frame counts are the complete (encoded) frames of each fingerprint.
    The best offset maximises similarity; ties go to the smallest |d|, then the
    smallest d.

    Raises:
        MalformedFingerprintError: either input is not a whole number of records
    """
    config = config or FingerprintConfig()
    points_a = decode(a)
    points_b = decode(b)

    frames_a = len({p.frame for p in points_a})
    frames_b = len({p.frame for p in points_b})
    if frames_a == 0 or frames_b == 0:
        log.debug("Empty fingerprint in comparison (%d vs %d frames)", frames_a, frames_b)
        return ComparisonResult(similarity=0.0, offset_frames=0, offset_seconds=0.0)

    max_offset = max(frame_count(a), frame_count(b))
    votes = offset_votes(points_a, points_b, config.bin_tolerance, max_offset)
    if not votes:
        return ComparisonResult(similarity=0.0, offset_frames=0, offset_seconds=0.0)

    denominator = config.points_per_frame * min(frames_a, frames_b)
    scores = {d: max(0.0, min(1.0, weight / denominator)) for d, weight in votes.items()}
    best_offset = min(scores, key=lambda d: (-scores[d], abs(d), d))
    similarity = scores[best_offset]

    log.debug("Compared %d vs %d points: %d candidate offsets, best %+d (%.4f)",
              len(points_a), len(points_b), len(votes), best_offset, similarity)
    return ComparisonResult(
        similarity=similarity,
        offset_frames=best_offset,
        offset_seconds=best_offset * config.frame_duration_sec,
    )
