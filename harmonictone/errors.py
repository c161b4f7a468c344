from __future__ import annotations


class HarmonicToneError(Exception):
    """Base error for the harmonictone library."""


class InvalidParameterError(HarmonicToneError, ValueError):
    """Raised when a synthesis request cannot be validated."""


class DegenerateSpectrumError(HarmonicToneError):
    """Raised when no harmonic lands below the Nyquist bin."""
