"""
Architecture:

1. Resolution planning: FFT length from duration and sample rate
2. Spectral building: harmonic impulses, octave slope, phase
3. Symmetrize + invert: Hermitian full spectrum -> real waveform
4. Post-processing: truncate to the requested length, peak-normalize
"""

from __future__ import annotations

import logging
import math
from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray

from .config import ToneConfig
from .errors import DegenerateSpectrumError, InvalidParameterError

FloatArray: TypeAlias = NDArray[np.float64]
ComplexArray: TypeAlias = NDArray[np.complex128]
IntArray: TypeAlias = NDArray[np.int64]

_LOGGER = logging.getLogger("harmonictone.synth")

# =============================================================================
# CONSTANTS
# =============================================================================

# Below this duration the transform still spans 10 s, i.e. 0.1 Hz resolution.
MIN_SPECTRUM_SECONDS = 10.0

# Summing harmonics per octave adds 3 dB per octave on its own.
HARMONIC_DENSITY_DB_PER_OCTAVE = 3.0

_IMAG_RESIDUE_TOLERANCE = 1e-9


# =============================================================================
# RESOLUTION PLANNING
# =============================================================================


def plan_fft_length(sample_rate_hz: float, duration_s: float) -> int:
    """Transform length: at least 10 s of support, always even."""

    seconds = duration_s if duration_s >= MIN_SPECTRUM_SECONDS else MIN_SPECTRUM_SECONDS
    span = seconds * sample_rate_hz
    if not math.isfinite(span):
        raise InvalidParameterError(
            f"{seconds!r}s at {sample_rate_hz!r} Hz is too long to transform"
        )
    length = int(round(span))
    if length % 2 == 1:
        length += 1
    return length


def output_length(sample_rate_hz: float, duration_s: float) -> int:
    return int(math.floor(duration_s * sample_rate_hz))


def bin_width_hz(fft_length: int, sample_rate_hz: float) -> float:
    return sample_rate_hz / fft_length


# =============================================================================
# SPECTRAL BUILDING
# =============================================================================


def half_spectrum_length(fft_length: int) -> int:
    """Bins 1 .. N/2-1; DC and Nyquist are never populated."""
    return fft_length // 2 - 1


def fundamental_bin(fundamental_hz: float, fft_length: int, sample_rate_hz: float) -> int:
    position = fundamental_hz * fft_length / sample_rate_hz
    if not math.isfinite(position):
        raise DegenerateSpectrumError(
            f"fundamental {fundamental_hz!r} Hz lies far beyond the Nyquist frequency"
        )
    return int(np.rint(position))


def actual_fundamental_hz(f0_bin: int, fft_length: int, sample_rate_hz: float) -> float:
    return f0_bin * sample_rate_hz / fft_length


def check_fundamental_bin(f0_bin: int, fft_length: int) -> None:
    if f0_bin <= 0:
        raise InvalidParameterError(
            f"fundamental rounds to bin {f0_bin}; it must land above the DC bin"
        )
    if f0_bin > half_spectrum_length(fft_length):
        raise DegenerateSpectrumError(
            f"fundamental bin {f0_bin} is at or above the Nyquist bin {fft_length // 2}; "
            "no harmonics fit below Nyquist"
        )


def harmonic_bins(f0_bin: int, fft_length: int) -> IntArray:
    """1-based bin indices of the fundamental and every harmonic below Nyquist."""
    check_fundamental_bin(f0_bin, fft_length)
    return np.arange(f0_bin, half_spectrum_length(fft_length) + 1, f0_bin, dtype=np.int64)


def slope_envelope(fft_length: int, slope_db_per_octave: float) -> FloatArray:
    """Magnitude multiplier per half-spectrum bin, unity at N/4 (fs/4)."""

    exponent = (slope_db_per_octave - HARMONIC_DENSITY_DB_PER_OCTAVE) / 3.0
    index = np.arange(1, half_spectrum_length(fft_length) + 1, dtype=np.float64)
    return np.power(index / (fft_length / 4.0), exponent * 0.5)


def build_magnitudes(fft_length: int, f0_bin: int, slope_db_per_octave: float) -> FloatArray:
    """Pre-phase magnitudes of the half spectrum."""

    magnitudes = np.zeros(half_spectrum_length(fft_length), dtype=np.float64)
    magnitudes[harmonic_bins(f0_bin, fft_length) - 1] = 1.0
    magnitudes *= slope_envelope(fft_length, slope_db_per_octave)
    return magnitudes


def phase_values(
    config: ToneConfig,
    size: int,
    rng: np.random.Generator,
) -> float | FloatArray:
    """One shared angle for fixed phase, or an independent draw per bin."""

    if config.is_random_phase:
        return rng.uniform(0.0, 2.0 * np.pi, size=size)
    return config.phase_radians


def build_half_spectrum(
    config: ToneConfig,
    fft_length: int,
    f0_bin: int,
    rng: np.random.Generator,
) -> ComplexArray:
    magnitudes = build_magnitudes(fft_length, f0_bin, config.slope_db_per_octave)
    phases = phase_values(config, magnitudes.size, rng)
    return magnitudes * np.exp(1j * np.asarray(phases, dtype=np.float64))


# =============================================================================
# SYMMETRIZE + INVERT
# =============================================================================


def assemble_full_spectrum(half: ComplexArray) -> ComplexArray:
    """[DC=0, half, Nyquist=0, reversed conjugate half]; bin k mirrors bin N-k."""

    zero = np.zeros(1, dtype=np.complex128)
    return np.concatenate([zero, half, zero, np.conj(half[::-1])])


def invert_spectrum(full: ComplexArray) -> FloatArray:
    waveform = np.fft.ifft(full)
    residue = float(np.max(np.abs(waveform.imag))) if waveform.size else 0.0
    peak = float(np.max(np.abs(waveform.real))) if waveform.size else 0.0
    if residue > _IMAG_RESIDUE_TOLERANCE * max(peak, 1.0):
        _LOGGER.debug("Discarding imaginary residue %.3g from inverse transform", residue)
    return np.ascontiguousarray(waveform.real, dtype=np.float64)


# =============================================================================
# POST-PROCESSING
# =============================================================================


def truncate(waveform: FloatArray, length: int) -> FloatArray:
    if waveform.size > length:
        return waveform[:length]
    return waveform


def normalize_peak(waveform: FloatArray) -> FloatArray:
    """Scale so the largest absolute sample is exactly 1."""

    if waveform.size == 0:
        raise DegenerateSpectrumError("waveform is empty; nothing to normalize")
    peak = float(np.max(np.abs(waveform)))
    if not math.isfinite(peak):
        raise DegenerateSpectrumError("waveform contains non-finite samples")
    if peak == 0.0:
        raise DegenerateSpectrumError("waveform is silent; the spectrum has no energy")
    return waveform / peak
