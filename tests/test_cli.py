"""tests/test_cli.py: command line entry point."""

import csv

import numpy as np
import pytest
import soundfile as sf

from soundmark.cli import build_parser, main


class TestFingerprintCommand:
    def test_writes_fp_files(self, song_wav, tmp_path) -> None:
        out = tmp_path / "fps"
        assert main(["-q", "fingerprint", str(song_wav), "--output", str(out), "--ranking", "per_frame"]) == 0
        fp = out / "song.fp"
        assert fp.stat().st_size == 37 * 4 * 8

    def test_folder_input_and_plot(self, song_wav, tmp_path) -> None:
        plots = tmp_path / "plots"
        assert main(["-q", "fingerprint", str(song_wav.parent), "--plot", str(plots),
                     "--ranking", "per_frame"]) == 0
        assert (song_wav.parent / "song.fp").exists()
        assert (plots / "song.png").exists()

    def test_undecodable_file_fails(self, tmp_path) -> None:
        bad = tmp_path / "bad.wav"
        bad.write_bytes(b"garbage")
        assert main(["-q", "fingerprint", str(bad)]) == 1

    def test_too_many_frames_fails_per_file(self, write_wav, tmp_path) -> None:
        # two-sample frames: 65550 of them overflow the 16-bit frame index
        rng = np.random.default_rng(0)
        long_wav = write_wav("long.wav", rng.uniform(0.1, 0.9, 131100), 10240, subtype="FLOAT")
        config = tmp_path / "tiny_frames.yaml"
        config.write_text(
            "fingerprint:\n"
            "  frame_size: 2\n"
            "  overlap: 0\n"
            "  num_banks: 1\n"
            "  points_per_frame: 1\n"
            "  ranking: per_frame\n"
        )
        assert main(["-q", "--config", str(config), "fingerprint", str(long_wav)]) == 1
        assert not (tmp_path / "long.fp").exists()


class TestCompareCommand:
    def test_compare_fp_with_audio(self, song_wav, tmp_path, capsys) -> None:
        main(["-q", "fingerprint", str(song_wav), "--output", str(tmp_path), "--ranking", "per_frame"])
        capsys.readouterr()
        assert main(["-q", "compare", str(tmp_path / "song.fp"), str(song_wav), "--ranking", "per_frame"]) == 0
        out = capsys.readouterr().out
        assert "similarity:     1.0000" in out
        assert "offset frames:  +0" in out

    def test_malformed_fp_fails(self, song_wav, tmp_path) -> None:
        bad = tmp_path / "bad.fp"
        bad.write_bytes(b"\x00" * 5)
        assert main(["-q", "compare", str(bad), str(song_wav)]) == 1


class TestLoudnessCommand:
    def test_prints_trace(self, song_wav, capsys) -> None:
        assert main(["-q", "loudness", str(song_wav)]) == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 43  # 88200 samples in full 2048-sample frames

    def test_csv_output(self, song_wav, tmp_path) -> None:
        output = tmp_path / "levels.csv"
        assert main(["-q", "loudness", str(song_wav), "--linear", "--frame-size", "4410", "--csv", str(output)]) == 0
        with open(output, newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["timestamp_sec", "spl_linear"]
        assert len(rows) == 21
        assert float(rows[2][0]) == pytest.approx(0.1)

    def test_config_file(self, song_wav, tmp_path, capsys) -> None:
        config = tmp_path / "soundmark.yaml"
        config.write_text("loudness:\n  frame_size: 8820\n")
        assert main(["-q", "--config", str(config), "loudness", str(song_wav)]) == 0
        assert len(capsys.readouterr().out.strip().splitlines()) == 10

    def test_invalid_config_fails(self, song_wav, tmp_path) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("loudness:\n  window: 12\n")
        assert main(["-q", "--config", str(config), "loudness", str(song_wav)]) == 1


class TestConvertCommand:
    def test_convert(self, song_wav, tmp_path) -> None:
        output = tmp_path / "out.flac"
        assert main(["-q", "convert", str(song_wav), str(output), "--rate", "22050", "--channels", "2"]) == 0
        info = sf.info(str(output))
        assert (info.format, info.samplerate, info.channels) == ("FLAC", 22050, 2)


class TestBenchmarkCommand:
    def test_reports_every_condition(self, song_wav, capsys) -> None:
        assert main(["-q", "benchmark", str(song_wav), "--clip-length", "1", "--snr", "20",
                     "--ranking", "per_frame"]) == 0
        out = capsys.readouterr().out
        for name in ("clean", "clip_1s", "snr_20db", "clip_1s_snr_20db"):
            assert name in out
        clean = next(line for line in out.splitlines() if line.startswith("clean "))
        assert clean.endswith("mean similarity 1.0000 over 1 file(s)")


def test_command_is_required() -> None:
    with pytest.raises(SystemExit) as exc:
        build_parser().parse_args([])
    assert exc.value.code == 2
