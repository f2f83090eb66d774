"""
Format conversion and file helpers for preparing an audio corpus.

Conversion is not on the analysis path: fingerprinting and loudness accept any
decodable file. It exists to normalise test material (e.g. to 16-bit WAV at
44.1 kHz) before comparing analyses across encodings.
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Set, Union
from urllib.parse import urlparse

import numpy as np
import soundfile as sf

from .audio import PCMBuffer, load_audio, resample, to_mono
from .errors import DecodeError

log = logging.getLogger(__name__)

PathLike = Union[str, Path]

# soundfile format names whose usual file extension differs from the name
_EXTRA_EXTENSIONS = {"AIFF": ("aif",), "MPEG": ("mp3",), "OGG": ("oga",)}


@dataclass(frozen=True)
class ConversionParams:
    """Target format; None keeps the source's value."""

    channels: Optional[int] = None
    sample_rate: Optional[int] = None
    subtype: Optional[str] = None  # soundfile subtype, e.g. "PCM_16"
    file_format: Optional[str] = None  # soundfile format, e.g. "WAV", "FLAC"

    def with_defaults(self, info, output_file: Optional[PathLike] = None) -> "ConversionParams":
        """
        Fill unspecified values from the source `info` (a soundfile info object).

        The format falls back to the output file extension, then the source
        format; a source subtype the target format cannot store falls back to
        the format's default subtype.
        """
        file_format = self.file_format
        if file_format is None and output_file is not None:
            suffix = Path(output_file).suffix.lstrip(".").upper()
            file_format = _format_for_extension(suffix)
        file_format = (file_format or info.format).upper()

        subtype = self.subtype
        if subtype is None:
            subtype = info.subtype
            if not sf.check_format(file_format, subtype):
                subtype = sf.default_subtype(file_format)

        return replace(
            self,
            channels=self.channels or info.channels,
            sample_rate=self.sample_rate or info.samplerate,
            subtype=subtype,
            file_format=file_format,
        )


def _format_for_extension(extension: str) -> Optional[str]:
    formats = sf.available_formats()
    if extension in formats:
        return extension
    for name, extras in _EXTRA_EXTENSIONS.items():
        if extension.lower() in extras and name in formats:
            return name
    return None


def remap_channels(pcm: PCMBuffer, channels: int) -> PCMBuffer:
    """Mix down to mono or duplicate mono to `channels`; other remaps are refused."""
    if channels == pcm.channels:
        return pcm
    if channels == 1:
        return to_mono(pcm)
    if pcm.channels == 1:
        samples = np.tile(pcm.samples.reshape(-1, 1), (1, channels))
        return replace(pcm, samples=samples, channels=channels)
    raise ValueError(f"cannot remap {pcm.channels} channels to {channels}")


def convert(input_file: PathLike, output_file: PathLike,
            params: Optional[ConversionParams] = None) -> int:
    """
    Decode `input_file`, convert channels / sample rate / encoding and write
    `output_file`.

    Returns:
        Size of the written file in bytes.

    Raises:
        DecodeError: the input cannot be read
        ValueError: the requested target cannot be produced
    """
    try:
        info = sf.info(os.fspath(input_file))
    except (RuntimeError, OSError) as exc:
        raise DecodeError(f"cannot read {input_file}: {exc}") from exc

    params = (params or ConversionParams()).with_defaults(info, output_file)
    if not sf.check_format(params.file_format, params.subtype):
        raise ValueError(f"{params.file_format} cannot store subtype {params.subtype}")

    pcm = load_audio(input_file)
    pcm = remap_channels(pcm, params.channels)
    pcm = resample(pcm, params.sample_rate)

    samples = pcm.samples
    if params.subtype.startswith("PCM") or params.subtype in ("ULAW", "ALAW"):
        # resampling can overshoot full scale
        samples = np.clip(samples, -1.0, 1.0)

    sf.write(os.fspath(output_file), samples, pcm.sample_rate,
             subtype=params.subtype, format=params.file_format)
    size = os.path.getsize(output_file)
    log.debug("Converted %s -> %s (%s/%s, %d Hz, %d ch): %d bytes",
              input_file, output_file, params.file_format, params.subtype,
              params.sample_rate, params.channels, size)
    return size


def duration_seconds(path: PathLike) -> float:
    try:
        return float(sf.info(os.fspath(path)).duration)
    except (RuntimeError, OSError) as exc:
        raise DecodeError(f"cannot read {path}: {exc}") from exc


def supported_extensions() -> Set[str]:
    """Lower-case file extensions (without dot) the installed libsndfile can decode."""
    extensions = set()
    for name in sf.available_formats():
        extensions.add(name.lower())
        extensions.update(_EXTRA_EXTENSIONS.get(name, ()))
    return extensions


def list_audio_files(folder: PathLike, recursive: bool = True) -> List[Path]:
    """Supported audio files under `folder`, sorted."""
    extensions = supported_extensions()
    pattern = "**/*" if recursive else "*"
    return sorted(
        p for p in Path(folder).glob(pattern)
        if p.is_file() and p.suffix.lstrip(".").lower() in extensions
    )


def resource_name(locator: str) -> str:
    """
    Last path segment of a URI or path, without query string or trailing slash.

    "http://example.com/foo/bar/foo42?param=true" -> "foo42"
    """
    path = urlparse(str(locator)).path or str(locator)
    return path.rstrip("/").rsplit("/", 1)[-1]
