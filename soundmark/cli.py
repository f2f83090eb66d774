#!/usr/bin/env python3
"""
soundmark command line interface.

Usage:
    soundmark fingerprint song.flac other.wav --output fingerprints/ --jobs 4
    soundmark compare fingerprints/song.fp query.wav
    soundmark loudness speech.wav --threshold -60 --csv levels.csv
    soundmark convert input.flac output.wav --rate 44100 --subtype PCM_16
    soundmark benchmark data/ --clip-length 10 --snr 5
"""

import argparse
import csv
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from joblib import Parallel, delayed
from tqdm import tqdm

from .audio import cut_audio, inject_noise, load_audio
from .config import FingerprintConfig, LoudnessConfig, PeakRanking, load_config
from .convert import ConversionParams, convert, list_audio_files, resource_name
from .errors import SoundmarkError
from .fingerprint.store import FINGERPRINT_SUFFIX, fingerprint_path, load_fingerprint, save_fingerprint
from .fingerprint.service import SpectralFingerprintService
from .log import LOGGER_NAME, format_section, setup_logging
from .loudness.service import EnergyAnalysisService

log = logging.getLogger(LOGGER_NAME)


@dataclass
class Condition:
    name: str
    clip_length_sec: Optional[float] = None
    snr_db: Optional[float] = None


def _expand_paths(paths: Sequence[str]) -> List[Path]:
    """Files as given; folders expanded to the supported audio files they contain."""
    expanded: List[Path] = []
    for p in map(Path, paths):
        if p.is_dir():
            expanded.extend(list_audio_files(p))
        else:
            expanded.append(p)
    return expanded


def _load_configs(args) -> Tuple[FingerprintConfig, LoudnessConfig]:
    if args.config:
        return load_config(args.config)
    return FingerprintConfig(), LoudnessConfig()


# ---------------------------------------------------------------------------
# fingerprint
# ---------------------------------------------------------------------------

def _fingerprint_one(audio_path: Path, config: FingerprintConfig, output_dir: Optional[Path],
                     plot_dir: Optional[Path]) -> Tuple[Path, Optional[int], Optional[str]]:
    service = SpectralFingerprintService(config)
    try:
        analysis = service.analyze(audio_path)
    except SoundmarkError as e:
        return audio_path, None, str(e)

    save_fingerprint(analysis.fingerprint, fingerprint_path(audio_path, output_dir))
    if plot_dir is not None:
        from .fingerprint.plot import plot_fingerprint
        plot_fingerprint(analysis, plot_dir / f"{audio_path.stem}.png")
    return audio_path, len(analysis.fingerprint), None


def cmd_fingerprint(args) -> int:
    config, _ = _load_configs(args)
    if args.ranking:
        config = replace(config, ranking=PeakRanking(args.ranking))

    audio_paths = _expand_paths(args.paths)
    if not audio_paths:
        log.warning("No audio files found")
        return 1
    output_dir = Path(args.output) if args.output else None
    plot_dir = Path(args.plot) if args.plot else None
    for folder in (output_dir, plot_dir):
        if folder is not None:
            folder.mkdir(parents=True, exist_ok=True)

    log.info(f"Fingerprinting {len(audio_paths)} file(s) with {args.jobs} job(s)")
    results = Parallel(n_jobs=args.jobs)(
        delayed(_fingerprint_one)(p, config, output_dir, plot_dir)
        for p in tqdm(audio_paths, desc="Fingerprinting", unit="file", disable=args.quiet)
    )

    failures = 0
    for audio_path, size, error in results:
        if error is not None:
            failures += 1
            log.error(f"{audio_path.name}: {error}")
        elif size == 0:
            log.warning(f"{audio_path.name}: empty fingerprint (no complete frame)")
        else:
            log.debug(f"{audio_path.name}: {size // 8} points")
    log.info(f"Wrote {len(results) - failures} fingerprint(s)")
    return 1 if failures else 0


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------

def _fingerprint_for(path: Path, service: SpectralFingerprintService) -> bytes:
    if path.suffix == FINGERPRINT_SUFFIX:
        return load_fingerprint(path)
    return service.calculate_fingerprint(path)


def cmd_compare(args) -> int:
    config, _ = _load_configs(args)
    if args.ranking:
        config = replace(config, ranking=PeakRanking(args.ranking))
    service = SpectralFingerprintService(config)

    a = _fingerprint_for(Path(args.a), service)
    b = _fingerprint_for(Path(args.b), service)
    result = service.compare_fingerprints(a, b)

    print(format_section(f"{resource_name(args.a)} v. {resource_name(args.b)}"))
    print(f"similarity:     {result.similarity:.4f}")
    print(f"offset frames:  {result.offset_frames:+d}")
    print(f"offset seconds: {result.offset_seconds:+.3f}")
    return 0


# ---------------------------------------------------------------------------
# loudness
# ---------------------------------------------------------------------------

def cmd_loudness(args) -> int:
    _, config = _load_configs(args)
    overrides = {}
    if args.frame_size is not None:
        overrides["frame_size"] = args.frame_size
    if args.overlap is not None:
        overrides["overlap"] = args.overlap
    if overrides:
        config = replace(config, **overrides)
    threshold = args.threshold if args.threshold is not None else config.silence_threshold_db

    service = EnergyAnalysisService(config)
    trace = service.get_sound_pressure_levels(
        args.path, linear=args.linear, silence_threshold_db=threshold,
        interrupt_on_silence=args.interrupt,
    )

    if args.csv:
        with open(args.csv, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["timestamp_sec", f"spl_{trace.unit}"])
            writer.writerows(trace.items())
        log.info(f"Wrote {len(trace)} frame(s) to {args.csv}")
    else:
        for timestamp, level in trace:
            print(f"{timestamp:10.4f}\t{level:.6f}" if trace.linear else f"{timestamp:10.4f}\t{level:8.2f}")

    if len(trace):
        log.info(f"{len(trace)} frame(s), mean {trace.mean():.4f} {trace.unit}")
    else:
        log.warning("Empty trace")
    return 0


# ---------------------------------------------------------------------------
# convert
# ---------------------------------------------------------------------------

def cmd_convert(args) -> int:
    params = ConversionParams(
        channels=args.channels,
        sample_rate=args.rate,
        subtype=args.subtype,
        file_format=args.format,
    )
    size = convert(args.input, args.output, params)
    log.info(f"Wrote {size} bytes to {args.output}")
    return 0


# ---------------------------------------------------------------------------
# benchmark
# ---------------------------------------------------------------------------

def cmd_benchmark(args) -> int:
    """Compare each file's fingerprint with degraded copies of itself."""
    config, _ = _load_configs(args)
    if args.ranking:
        config = replace(config, ranking=PeakRanking(args.ranking))
    service = SpectralFingerprintService(config)

    conditions = [Condition("clean")]
    if args.clip_length:
        conditions.append(Condition(f"clip_{args.clip_length:g}s", clip_length_sec=args.clip_length))
    if args.snr is not None:
        conditions.append(Condition(f"snr_{args.snr:g}db", snr_db=args.snr))
        if args.clip_length:
            conditions.append(Condition(f"clip_{args.clip_length:g}s_snr_{args.snr:g}db",
                                        clip_length_sec=args.clip_length, snr_db=args.snr))

    audio_paths = _expand_paths(args.paths)
    if not audio_paths:
        log.warning("No audio files found")
        return 1

    totals = {c.name: [] for c in conditions}
    for audio_path in tqdm(audio_paths, desc="Benchmark", unit="file", disable=args.quiet):
        pcm = load_audio(audio_path)
        reference = service.calculate_fingerprint(pcm)
        for condition in conditions:
            query = pcm
            if condition.clip_length_sec is not None:
                query = cut_audio(query, condition.clip_length_sec, seed=args.seed)
            if condition.snr_db is not None:
                query = inject_noise(query, condition.snr_db, seed=args.seed)
            result = service.compare_fingerprints(reference, service.calculate_fingerprint(query))
            totals[condition.name].append(result.similarity)
            log.debug(f"{audio_path.name} [{condition.name}]: {result.similarity:.4f} "
                      f"at {result.offset_seconds:+.3f}s")

    print(format_section("Benchmark"))
    for name, scores in totals.items():
        print(f"{name:<28} mean similarity {sum(scores) / len(scores):.4f} over {len(scores)} file(s)")
    return 0


# ---------------------------------------------------------------------------
# entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="soundmark", description="Audio fingerprinting and loudness analysis")
    parser.add_argument("--config", type=str, default=None, help="YAML file with fingerprint/loudness settings")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="No progress bars")
    sub = parser.add_subparsers(dest="command", required=True)

    ranking_choices = [r.value for r in PeakRanking]

    p = sub.add_parser("fingerprint", help="Write <stem>.fp fingerprints for audio files or folders")
    p.add_argument("paths", nargs="+")
    p.add_argument("--output", "-o", type=str, default=None, help="Output folder (default: next to the audio)")
    p.add_argument("--jobs", "-j", type=int, default=1, help="Parallel jobs (-1 = all cores)")
    p.add_argument("--plot", type=str, default=None, help="Folder for spectrogram/peak plots")
    p.add_argument("--ranking", choices=ranking_choices, default=None)
    p.set_defaults(func=cmd_fingerprint)

    p = sub.add_parser("compare", help="Compare two audio or .fp files")
    p.add_argument("a")
    p.add_argument("b")
    p.add_argument("--ranking", choices=ranking_choices, default=None)
    p.set_defaults(func=cmd_compare)

    p = sub.add_parser("loudness", help="Sound pressure level over time")
    p.add_argument("path")
    p.add_argument("--linear", action="store_true", help="Linear SPL instead of dB")
    p.add_argument("--threshold", type=float, default=None, help="Silence threshold in dB")
    p.add_argument("--interrupt", action="store_true", help="Stop at the first silent frame")
    p.add_argument("--frame-size", type=int, default=None)
    p.add_argument("--overlap", type=int, default=None)
    p.add_argument("--csv", type=str, default=None, help="Write the trace to a CSV file")
    p.set_defaults(func=cmd_loudness)

    p = sub.add_parser("convert", help="Convert channels / sample rate / encoding")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("--rate", type=int, default=None)
    p.add_argument("--channels", type=int, default=None)
    p.add_argument("--subtype", type=str, default=None, help="e.g. PCM_16, PCM_24, FLOAT")
    p.add_argument("--format", type=str, default=None, help="e.g. WAV, FLAC (default: from extension)")
    p.set_defaults(func=cmd_convert)

    p = sub.add_parser("benchmark", help="Self-similarity under clipping and noise")
    p.add_argument("paths", nargs="+")
    p.add_argument("--clip-length", type=float, default=None, help="Clip length in seconds")
    p.add_argument("--snr", type=float, default=None, help="SNR in dB for noise injection")
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--ranking", choices=ranking_choices, default=None)
    p.set_defaults(func=cmd_benchmark)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose)
    try:
        return args.func(args)
    except (SoundmarkError, ValueError) as e:
        log.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
