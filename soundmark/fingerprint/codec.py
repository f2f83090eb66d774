"""
Binary fingerprint layout.

A fingerprint is a concatenation of 8-byte big-endian records, frame-major,
with no header or trailer:

    [uint16 frame index][uint16 bin index][uint32 intensity * (2^31 - 1)]

Frames without exactly K robust points write nothing, so an empty byte
string is a valid fingerprint of zero frames.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Sequence

import numpy as np

from ..errors import FingerprintRangeError, MalformedFingerprintError
from .peaks import RobustPoint

RECORD_SIZE = 8
RECORD_DTYPE = np.dtype([("frame", ">u2"), ("bin", ">u2"), ("intensity", ">u4")])
INTENSITY_SCALE = 2 ** 31 - 1
MAX_INDEX = 0xFFFF


def _quantize(intensity: float) -> int:
    # intensity is ranged from 0~1
    return int(min(max(intensity, 0.0), 1.0) * INTENSITY_SCALE)


def encode(points_per_frame: Sequence[Sequence[RobustPoint]], points_per_frame_required: int) -> bytes:
    """
    Pack complete frames into records.

    Args:
        points_per_frame: robust points grouped per frame, in frame order
        points_per_frame_required: K, the number of points a frame must have

    Returns:
        Fingerprint bytes, 8 per emitted point.

    Raises:
        FingerprintRangeError: a frame or bin index above 65535. At the default
            20 frames per second this caps fingerprints at about 54.6 minutes.
    """
    rows = []
    for points in points_per_frame:
        if len(points) != points_per_frame_required:
            continue  # incomplete frame, left out of the byte stream
        for frame, bin_, intensity in points:
            if not (0 <= frame <= MAX_INDEX and 0 <= bin_ <= MAX_INDEX):
                raise FingerprintRangeError(
                    f"point ({frame}, {bin_}) does not fit a 16-bit frame/bin index"
                )
            rows.append((frame, bin_, _quantize(intensity)))
    return np.array(rows, dtype=RECORD_DTYPE).tobytes()


def _records(fingerprint: bytes) -> np.ndarray:
    if len(fingerprint) % RECORD_SIZE:
        raise MalformedFingerprintError(
            f"fingerprint length {len(fingerprint)} is not a multiple of {RECORD_SIZE}"
        )
    return np.frombuffer(fingerprint, dtype=RECORD_DTYPE)


def decode(fingerprint: bytes) -> List[RobustPoint]:
    records = _records(fingerprint)
    return [
        RobustPoint(int(frame), int(bin_), int(raw) / INTENSITY_SCALE)
        for frame, bin_, raw in zip(records["frame"], records["bin"], records["intensity"])
    ]


def frame_count(fingerprint: bytes) -> int:
    """
    Number of frames of the fingerprinted audio, read from the last record.

    Trailing frames that had no complete point set wrote no records, so this
    can undercount the duration of the source audio.
    """
    records = _records(fingerprint)
    if records.size == 0:
        return 0
    return int(records["frame"][-1]) + 1


def group_by_frame(points: Iterable[RobustPoint]) -> Dict[int, List[RobustPoint]]:
    grouped: Dict[int, List[RobustPoint]] = defaultdict(list)
    for point in points:
        grouped[point.frame].append(point)
    return dict(grouped)
