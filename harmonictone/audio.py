from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Callable, cast

import numpy as np
import soundfile as sf  # type: ignore[import]
from numpy.typing import NDArray

from .errors import InvalidParameterError

FloatArray = NDArray[np.float32]
AudioNumbers = NDArray[np.floating[Any]] | Sequence[float] | FloatArray


def as_mono(audio: AudioNumbers) -> FloatArray:
    """Flatten to float32 mono, pulling the peak back to 1.0 if it overshoots."""

    mono: FloatArray = np.asarray(audio, dtype=np.float32).reshape(-1)
    if mono.size == 0:
        return mono
    peak = float(np.max(np.abs(mono)))
    if peak > 1.0:
        mono = mono / peak
    return mono


def _integer_rate(sample_rate: float) -> int:
    rate = int(round(sample_rate))
    if rate <= 0 or not np.isclose(rate, sample_rate):
        raise InvalidParameterError(
            f"WAV output needs a positive integer sample rate, got {sample_rate!r}"
        )
    return rate


def write_wav(path: str | Path, audio: AudioNumbers, *, sample_rate: float) -> Path:
    """Write mono samples to a float WAV file."""

    target = Path(path)
    audio_obj: object = audio
    match audio_obj:
        case str() | bytes():
            raise InvalidParameterError("audio must be a sequence of samples, not text")
        case np.ndarray() | Sequence():
            pass
        case _:
            raise InvalidParameterError("audio must be a sequence of samples")

    rate = _integer_rate(sample_rate)
    write_fn = getattr(sf, "write", None)
    assert callable(write_fn)
    write_audio = cast(Callable[..., None], write_fn)
    # soundfile stubs are incomplete; cast is intentional for type safety.
    write_audio(target, as_mono(cast(AudioNumbers, audio_obj)), rate, subtype="FLOAT")
    return target
