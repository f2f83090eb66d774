"""tests/test_packaging.py: project metadata."""

from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent


def test_metadata_references_existing_files() -> None:
    tomllib = pytest.importorskip("tomllib")
    with open(ROOT / "pyproject.toml", "rb") as f:
        project = tomllib.load(f)["project"]
    readme = project.get("readme")
    if readme is not None:
        assert (ROOT / readme).is_file()
        assert not readme.startswith("SPEC")
    assert project["scripts"]["soundmark"] == "soundmark.cli:main"
