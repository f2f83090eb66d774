"""tests/test_convert.py: format conversion and corpus helpers."""

import numpy as np
import pytest
import soundfile as sf

from soundmark.audio import PCMBuffer
from soundmark.convert import (
    ConversionParams,
    convert,
    duration_seconds,
    list_audio_files,
    remap_channels,
    resource_name,
    supported_extensions,
)
from soundmark.errors import DecodeError


@pytest.fixture
def stereo_wav(write_wav, tone):
    samples = np.stack([tone(440, 1.0, 44100), tone(660, 1.0, 44100)], axis=1)
    return write_wav("stereo.wav", samples, 44100)


class TestConvert:
    def test_channels_and_rate(self, stereo_wav, tmp_path) -> None:
        output = tmp_path / "mono.wav"
        size = convert(stereo_wav, output, ConversionParams(channels=1, sample_rate=22050))
        info = sf.info(str(output))
        assert size == output.stat().st_size
        assert info.channels == 1
        assert info.samplerate == 22050
        assert info.subtype == "PCM_16"
        assert info.frames == 22050

    def test_defaults_keep_source_properties(self, stereo_wav, tmp_path) -> None:
        output = tmp_path / "copy.wav"
        convert(stereo_wav, output)
        info = sf.info(str(output))
        assert (info.channels, info.samplerate, info.subtype) == (2, 44100, "PCM_16")

    def test_format_from_extension(self, stereo_wav, tmp_path) -> None:
        output = tmp_path / "song.flac"
        convert(stereo_wav, output)
        assert sf.info(str(output)).format == "FLAC"

    def test_unsupported_subtype_falls_back(self, write_wav, tone, tmp_path) -> None:
        source = write_wav("float.wav", tone(440, 0.5, 44100), 44100, subtype="FLOAT")
        output = tmp_path / "float.flac"
        convert(source, output)
        assert sf.info(str(output)).subtype == sf.default_subtype("FLAC")

    def test_explicit_subtype(self, stereo_wav, tmp_path) -> None:
        output = tmp_path / "float.wav"
        convert(stereo_wav, output, ConversionParams(subtype="FLOAT"))
        assert sf.info(str(output)).subtype == "FLOAT"

    def test_impossible_target_raises(self, stereo_wav, tmp_path) -> None:
        with pytest.raises(ValueError):
            convert(stereo_wav, tmp_path / "out.flac", ConversionParams(subtype="FLOAT"))

    def test_missing_input_raises(self, tmp_path) -> None:
        with pytest.raises(DecodeError):
            convert(tmp_path / "missing.wav", tmp_path / "out.wav")


class TestRemapChannels:
    def test_mono_to_stereo(self) -> None:
        stereo = remap_channels(PCMBuffer.from_array(np.array([0.1, 0.2]), 8000), 2)
        assert stereo.channels == 2
        np.testing.assert_allclose(stereo.samples, [[0.1, 0.1], [0.2, 0.2]])

    def test_unsupported_remap(self) -> None:
        with pytest.raises(ValueError):
            remap_channels(PCMBuffer.from_array(np.zeros((4, 2)), 8000), 3)


class TestHelpers:
    def test_duration(self, stereo_wav) -> None:
        assert duration_seconds(stereo_wav) == pytest.approx(1.0)

    def test_supported_extensions(self) -> None:
        assert {"wav", "flac"} <= supported_extensions()

    def test_list_audio_files(self, tmp_path, write_wav, tone) -> None:
        write_wav("b.wav", tone(440, 0.1, 8000), 8000)
        (tmp_path / "sub").mkdir()
        write_wav("sub/a.wav", tone(440, 0.1, 8000), 8000)
        (tmp_path / "notes.txt").write_text("not audio")
        assert [p.name for p in list_audio_files(tmp_path)] == ["b.wav", "a.wav"]
        assert [p.name for p in list_audio_files(tmp_path, recursive=False)] == ["b.wav"]

    @pytest.mark.parametrize(
        "locator, expected",
        [
            ("http://example.com/foo/bar/foo42?param=true", "foo42"),
            ("file:/some/path/foo42/", "foo42"),
            ("/music/track.wav", "track.wav"),
            ("track.wav", "track.wav"),
        ],
    )
    def test_resource_name(self, locator, expected) -> None:
        assert resource_name(locator) == expected
