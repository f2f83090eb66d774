import os
from pathlib import Path
from typing import Union

from .codec import RECORD_SIZE
from ..errors import MalformedFingerprintError

FINGERPRINT_SUFFIX = ".fp"


def save_fingerprint(fingerprint: bytes, path: Union[str, Path]) -> None:
    """Write the raw record bytes, nothing else."""
    with open(path, "wb") as f:
        f.write(fingerprint)


def load_fingerprint(path: Union[str, Path]) -> bytes:
    with open(path, "rb") as f:
        fingerprint = f.read()
    if len(fingerprint) % RECORD_SIZE:
        raise MalformedFingerprintError(
            f"{os.fspath(path)}: {len(fingerprint)} bytes is not a multiple of {RECORD_SIZE}"
        )
    return fingerprint


def fingerprint_path(audio_path: Union[str, Path], output_dir: Union[str, Path, None] = None) -> Path:
    """<output_dir>/<audio stem>.fp, next to the audio file when no directory is given."""
    audio_path = Path(audio_path)
    folder = Path(output_dir) if output_dir is not None else audio_path.parent
    return folder / f"{audio_path.stem}{FINGERPRINT_SUFFIX}"
