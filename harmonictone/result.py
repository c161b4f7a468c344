from __future__ import annotations

from pathlib import Path

import numpy as np
from numpy.typing import DTypeLike, NDArray
from pydantic import BaseModel, ConfigDict, model_validator

from .audio import write_wav
from .config import ToneConfig
from .synth import FloatArray


def tone_label(fundamental_hz: float) -> str:
    return f"{fundamental_hz:g}Hz HarmonicTone"


class ToneResult(BaseModel):
    """Peak-normalized waveform plus everything needed to reproduce it."""

    samples: FloatArray
    sample_rate_hz: float
    label: str
    config: ToneConfig
    fft_length: int
    fundamental_bin: int
    actual_fundamental_hz: float

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    @model_validator(mode="after")
    def _freeze_samples(self) -> "ToneResult":
        samples = np.asarray(self.samples, dtype=np.float64)
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)
        return self

    @property
    def duration_s(self) -> float:
        return self.samples.size / self.sample_rate_hz

    @property
    def fundamental_drift_hz(self) -> float:
        return self.actual_fundamental_hz - self.config.fundamental_hz

    def to_numpy(self) -> FloatArray:
        return self.samples

    def __array__(
        self, dtype: DTypeLike | None = None, copy: bool | None = None
    ) -> NDArray[np.generic]:
        return np.asarray(self.samples, dtype=dtype)

    def __len__(self) -> int:
        return int(self.samples.size)

    def replay(self, rng: np.random.Generator | int | None = None) -> "ToneResult":
        """Synthesize again from the stored request."""
        from .main import render

        return render(self.config, rng=rng)

    def save(self, path: str | Path) -> Path:
        return write_wav(path, self.samples, sample_rate=self.sample_rate_hz)
