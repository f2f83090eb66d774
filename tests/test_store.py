"""tests/test_store.py: fingerprint files on disk."""

from pathlib import Path

import pytest

from soundmark.errors import MalformedFingerprintError
from soundmark.fingerprint.codec import encode
from soundmark.fingerprint.peaks import RobustPoint
from soundmark.fingerprint.store import fingerprint_path, load_fingerprint, save_fingerprint


def test_save_and_load(tmp_path) -> None:
    fingerprint = encode([[RobustPoint(0, 1, 0.5), RobustPoint(0, 2, 0.25)]], 2)
    path = tmp_path / "song.fp"
    save_fingerprint(fingerprint, path)
    assert path.stat().st_size == 16
    assert load_fingerprint(path) == fingerprint


def test_empty_fingerprint_file(tmp_path) -> None:
    path = tmp_path / "silence.fp"
    save_fingerprint(b"", path)
    assert load_fingerprint(path) == b""


def test_truncated_file_raises(tmp_path) -> None:
    path = tmp_path / "broken.fp"
    path.write_bytes(b"\x00" * 13)
    with pytest.raises(MalformedFingerprintError):
        load_fingerprint(path)


def test_fingerprint_path() -> None:
    assert fingerprint_path("music/song.flac") == Path("music/song.fp")
    assert fingerprint_path("music/song.flac", "out") == Path("out/song.fp")
