from __future__ import annotations

import logging
import math
from typing import Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidParameterError

_LOGGER = logging.getLogger("harmonictone.config")

RANDOM_PHASE = "random"

PhaseSetting = Union[float, Literal["random"]]

DEFAULT_SAMPLE_RATE_HZ = 48_000.0
DEFAULT_DURATION_S = 1.0
DEFAULT_FUNDAMENTAL_HZ = 1.0
DEFAULT_SLOPE_DB_PER_OCTAVE = 0.0


def _describe_errors(exc: ValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "request"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


class ToneConfig(BaseModel):
    """Immutable synthesis request.

    Defaults match the interactive parameter dialog:
    48 kHz, one second, 1 Hz fundamental, random phase and a 0 dB/oct slope.
    A slope of +3 dB/oct gives every harmonic the same magnitude, because the
    slope describes octave-summed energy rather than harmonic-to-harmonic steps.
    """

    sample_rate_hz: float = Field(default=DEFAULT_SAMPLE_RATE_HZ, gt=0.0)
    duration_s: float = Field(default=DEFAULT_DURATION_S, gt=0.0)
    fundamental_hz: float = Field(default=DEFAULT_FUNDAMENTAL_HZ, gt=0.0)
    phase: PhaseSetting = RANDOM_PHASE
    slope_db_per_octave: float = DEFAULT_SLOPE_DB_PER_OCTAVE

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("sample_rate_hz", "duration_s", "fundamental_hz", "slope_db_per_octave")
    @classmethod
    def _require_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value

    @field_validator("phase", mode="before")
    @classmethod
    def _parse_phase(cls, value: object) -> object:
        match value:
            case bool():
                raise ValueError("phase must be an angle in degrees or 'random'")
            case int() | float():
                degrees = float(value)
            case str() as text if text.strip().lower() == RANDOM_PHASE:
                return RANDOM_PHASE
            case str() as text:
                try:
                    degrees = float(text.strip())
                except ValueError as exc:
                    raise ValueError(
                        f"phase must be an angle in degrees or 'random', got {text!r}"
                    ) from exc
            case _:
                raise ValueError("phase must be an angle in degrees or 'random'")
        if not math.isfinite(degrees):
            raise ValueError("phase angle must be finite")
        return degrees

    @classmethod
    def build(cls, **fields: Any) -> "ToneConfig":
        """Validate fields, raising InvalidParameterError instead of pydantic errors."""
        return cls.from_dict(fields)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ToneConfig":
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            message = _describe_errors(exc)
            _LOGGER.debug("Rejected tone request %r: %s", dict(data), message)
            raise InvalidParameterError(message) from exc

    @property
    def is_random_phase(self) -> bool:
        return self.phase == RANDOM_PHASE

    @property
    def phase_radians(self) -> float:
        if self.is_random_phase:
            raise InvalidParameterError("random phase has no fixed angle")
        assert isinstance(self.phase, float)
        return math.pi * self.phase / 180.0

    def to_args(self) -> tuple[float, float, float, PhaseSetting, float]:
        return (
            self.sample_rate_hz,
            self.duration_s,
            self.fundamental_hz,
            self.phase,
            self.slope_db_per_octave,
        )
