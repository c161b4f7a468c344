from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from pydantic import BaseModel, ConfigDict

from .config import PhaseSetting, ToneConfig
from .errors import DegenerateSpectrumError, InvalidParameterError
from .result import ToneResult, tone_label
from .synth import (
    actual_fundamental_hz,
    assemble_full_spectrum,
    bin_width_hz,
    build_half_spectrum,
    check_fundamental_bin,
    fundamental_bin,
    invert_spectrum,
    normalize_peak,
    output_length,
    plan_fft_length,
    truncate,
)

_LOGGER = logging.getLogger("harmonictone.main")

# Snapping drift above this fraction of the requested fundamental is worth a warning.
_DRIFT_WARNING_RATIO = 0.01

RngInput = np.random.Generator | int | None


class TonePlan(BaseModel):
    """Resolved transform geometry for one request."""

    fft_length: int
    output_length: int
    bin_width_hz: float
    fundamental_bin: int
    actual_fundamental_hz: float
    harmonic_count: int

    model_config = ConfigDict(frozen=True, extra="forbid")


def _resolve_rng(rng: RngInput) -> np.random.Generator:
    match rng:
        case np.random.Generator():
            return rng
        case None:
            return np.random.default_rng()
        case bool():
            raise InvalidParameterError("rng must be a numpy Generator or an integer seed")
        case int():
            return np.random.default_rng(rng)
        case _:
            raise InvalidParameterError("rng must be a numpy Generator or an integer seed")


def plan(config: ToneConfig) -> TonePlan:
    """Validate a request and work out its FFT geometry without synthesizing."""

    fs = config.sample_rate_hz
    if config.fundamental_hz >= fs / 2.0:
        raise DegenerateSpectrumError(
            f"fundamental {config.fundamental_hz:g} Hz is at or above the Nyquist "
            f"frequency {fs / 2.0:g} Hz; no harmonics fit below it"
        )
    fft_length = plan_fft_length(fs, config.duration_s)
    length = output_length(fs, config.duration_s)
    if length <= 0:
        raise InvalidParameterError(
            f"duration {config.duration_s!r}s is shorter than one sample at {fs:g} Hz"
        )
    f0_bin = fundamental_bin(config.fundamental_hz, fft_length, fs)
    check_fundamental_bin(f0_bin, fft_length)
    actual = actual_fundamental_hz(f0_bin, fft_length, fs)
    result = TonePlan(
        fft_length=fft_length,
        output_length=length,
        bin_width_hz=bin_width_hz(fft_length, fs),
        fundamental_bin=f0_bin,
        actual_fundamental_hz=actual,
        harmonic_count=(fft_length // 2 - 1) // f0_bin,
    )
    _LOGGER.debug(
        "Planned N=%d (%.4g Hz bins), f0 %.6g Hz -> bin %d (%.6g Hz), %d harmonics",
        fft_length,
        result.bin_width_hz,
        config.fundamental_hz,
        f0_bin,
        actual,
        result.harmonic_count,
    )
    if abs(actual - config.fundamental_hz) > _DRIFT_WARNING_RATIO * config.fundamental_hz:
        _LOGGER.warning(
            "Fundamental %.6g Hz snapped to %.6g Hz (bin width %.4g Hz)",
            config.fundamental_hz,
            actual,
            result.bin_width_hz,
        )
    return result


def render(config: ToneConfig | None = None, *, rng: RngInput = None) -> ToneResult:
    """Synthesize one harmonic tone from a validated request."""

    request = config if config is not None else ToneConfig()
    return _render_planned(request, plan(request), rng)


def _render_planned(request: ToneConfig, tone_plan: TonePlan, rng: RngInput) -> ToneResult:
    generator = _resolve_rng(rng)

    start = time.perf_counter()
    half = build_half_spectrum(
        request,
        tone_plan.fft_length,
        tone_plan.fundamental_bin,
        generator,
    )
    waveform = invert_spectrum(assemble_full_spectrum(half))
    samples = normalize_peak(truncate(waveform, tone_plan.output_length))
    _LOGGER.debug(
        "Rendered %d samples in %.1f ms",
        samples.size,
        (time.perf_counter() - start) * 1000.0,
    )
    return ToneResult(
        samples=samples,
        sample_rate_hz=request.sample_rate_hz,
        label=tone_label(request.fundamental_hz),
        config=request,
        fft_length=tone_plan.fft_length,
        fundamental_bin=tone_plan.fundamental_bin,
        actual_fundamental_hz=tone_plan.actual_fundamental_hz,
    )


def synthesize_harmonic_tone(
    sample_rate_hz: float,
    duration_s: float,
    fundamental_hz: float,
    phase_degrees_or_random: PhaseSetting | str,
    slope_db_per_octave: float,
    *,
    rng: RngInput = None,
) -> ToneResult:
    config = ToneConfig.build(
        sample_rate_hz=sample_rate_hz,
        duration_s=duration_s,
        fundamental_hz=fundamental_hz,
        phase=phase_degrees_or_random,
        slope_db_per_octave=slope_db_per_octave,
    )
    return render(config, rng=rng)


def render_many(
    configs: Iterable[ToneConfig],
    *,
    max_workers: int | None = None,
    seed: int | None = None,
) -> list[ToneResult]:
    """Render independent requests in parallel; results keep input order.

    With ``seed`` every request gets its own spawned generator, so the batch is
    reproducible however the pool schedules it.
    """

    requests: Sequence[ToneConfig] = list(configs)
    if not requests:
        return []
    if seed is None:
        rngs: list[RngInput] = [None] * len(requests)
    else:
        children = np.random.SeedSequence(seed).spawn(len(requests))
        rngs = [np.random.default_rng(child) for child in children]

    # Every request is validated before any transform runs.
    plans = [plan(request) for request in requests]

    _LOGGER.debug("Rendering %d tones (max_workers=%s)", len(requests), max_workers)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(_render_planned, request, tone_plan, request_rng)
            for request, tone_plan, request_rng in zip(requests, plans, rngs)
        ]
        return [future.result() for future in futures]
