from __future__ import annotations

from .config import RANDOM_PHASE, PhaseSetting, ToneConfig
from .errors import DegenerateSpectrumError, HarmonicToneError, InvalidParameterError
from .logging_utils import install_null_handler as _install_null_handler
from .main import TonePlan, plan, render, render_many, synthesize_harmonic_tone
from .result import ToneResult

__all__ = [
    "RANDOM_PHASE",
    "DegenerateSpectrumError",
    "HarmonicToneError",
    "InvalidParameterError",
    "PhaseSetting",
    "TonePlan",
    "ToneConfig",
    "ToneResult",
    "plan",
    "render",
    "render_many",
    "synthesize_harmonic_tone",
]

__version__ = "0.1.0"

_install_null_handler()
del _install_null_handler
