"""
Exception types raised by soundmark.

All-silent or zero-length audio is not an error: it yields an empty
fingerprint or a floor-valued SPL trace.
"""


class SoundmarkError(Exception):
    """Base class for every error raised by the library."""


class DecodeError(SoundmarkError, OSError):
    """The audio source could not be read or decoded."""


class MalformedFingerprintError(SoundmarkError, ValueError):
    """Fingerprint bytes are not a whole number of 8-byte records."""


class ConfigError(SoundmarkError, ValueError):
    """Invalid configuration value or configuration file."""


class FingerprintRangeError(SoundmarkError, ValueError):
    """A frame or bin index does not fit the 16-bit fields of a record."""
