from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Iterable

from rich.console import Console
from rich.prompt import FloatPrompt, Prompt

from .config import (
    DEFAULT_DURATION_S,
    DEFAULT_FUNDAMENTAL_HZ,
    DEFAULT_SAMPLE_RATE_HZ,
    DEFAULT_SLOPE_DB_PER_OCTAVE,
    RANDOM_PHASE,
    ToneConfig,
)
from .errors import HarmonicToneError
from .logging_utils import configure_logging, debug_enabled, log_exception
from .main import TonePlan, plan, render
from .result import ToneResult

_LOGGER = logging.getLogger("harmonictone.cli")
_CONSOLE = Console()
_ERR_CONSOLE = Console(stderr=True)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_INVALID = 2

PHASE_PROMPT = "Phase in degrees (negative values are angles, not random), or 'random'"


def _add_tone_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--sample-rate", type=float, default=DEFAULT_SAMPLE_RATE_HZ)
    parser.add_argument("--duration", type=float, default=DEFAULT_DURATION_S)
    parser.add_argument("--fundamental", type=float, default=DEFAULT_FUNDAMENTAL_HZ)


def _add_render_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--seed", type=int, default=None, help="Seed for random phase.")
    parser.add_argument("--output", type=str, default=None, help="Write a WAV file.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="harmonictone",
        description="Synthesize harmonic tones in the frequency domain.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs on stderr.")
    sub = parser.add_subparsers(dest="command", required=True)

    render_cmd = sub.add_parser("render", help="Render one harmonic tone.")
    _add_tone_arguments(render_cmd)
    render_cmd.add_argument(
        "--phase",
        type=str,
        default=RANDOM_PHASE,
        help=(
            "Phase in degrees shared by every harmonic (negative values are angles too), "
            "or 'random' for an independent random phase per harmonic."
        ),
    )
    render_cmd.add_argument("--slope", type=float, default=DEFAULT_SLOPE_DB_PER_OCTAVE)
    _add_render_arguments(render_cmd)

    prompt_cmd = sub.add_parser("prompt", help="Ask for each parameter, then render.")
    _add_render_arguments(prompt_cmd)

    plan_cmd = sub.add_parser("plan", help="Show FFT length and bin snapping only.")
    _add_tone_arguments(plan_cmd)
    return parser


def prompt_config(console: Console | None = None) -> ToneConfig:
    """Collect a request interactively, offering the library defaults."""

    target = console or _CONSOLE
    defaults = ToneConfig()
    fields: dict[str, Any] = {
        "sample_rate_hz": FloatPrompt.ask(
            "Audio sampling rate (Hz)", default=defaults.sample_rate_hz, console=target
        ),
        "duration_s": FloatPrompt.ask(
            "Tone duration (s)", default=defaults.duration_s, console=target
        ),
        "fundamental_hz": FloatPrompt.ask(
            "Fundamental frequency (Hz)", default=defaults.fundamental_hz, console=target
        ),
        "phase": Prompt.ask(PHASE_PROMPT, default=str(defaults.phase), console=target),
        "slope_db_per_octave": FloatPrompt.ask(
            "Spectral magnitude slope (dB/octave)",
            default=defaults.slope_db_per_octave,
            console=target,
        ),
    }
    return ToneConfig.build(**fields)


def _plan_report(config: ToneConfig, tone_plan: TonePlan) -> Iterable[str]:
    yield f"FFT length: {tone_plan.fft_length} ({tone_plan.bin_width_hz:g} Hz bins)"
    yield f"Output samples: {tone_plan.output_length}"
    yield (
        f"Fundamental: {config.fundamental_hz:g} Hz -> bin {tone_plan.fundamental_bin} "
        f"({tone_plan.actual_fundamental_hz:g} Hz)"
    )
    yield f"Harmonics below Nyquist: {tone_plan.harmonic_count}"


def _render_report(result: ToneResult) -> Iterable[str]:
    yield f"[bold]{result.label}[/bold]"
    yield f"Samples: {len(result)} @ {result.sample_rate_hz:g} Hz ({result.duration_s:g} s)"
    yield (
        f"Actual fundamental: {result.actual_fundamental_hz:g} Hz "
        f"(bin {result.fundamental_bin} of N={result.fft_length})"
    )
    yield f"Phase: {result.config.phase}  Slope: {result.config.slope_db_per_octave:g} dB/oct"


def _print_lines(lines: Iterable[str]) -> None:
    for line in lines:
        _CONSOLE.print(line)


def _render_and_report(config: ToneConfig, *, seed: int | None, output: str | None) -> None:
    with _CONSOLE.status("Rendering harmonic tone"):
        result = render(config, rng=seed)
    _print_lines(_render_report(result))
    if output:
        path = result.save(Path(output))
        _CONSOLE.print(f"Wrote {path}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)
    config: ToneConfig | None = None
    try:
        if args.command == "render":
            config = ToneConfig.build(
                sample_rate_hz=args.sample_rate,
                duration_s=args.duration,
                fundamental_hz=args.fundamental,
                phase=args.phase,
                slope_db_per_octave=args.slope,
            )
            _render_and_report(config, seed=args.seed, output=args.output)
            return EXIT_OK

        if args.command == "prompt":
            config = prompt_config()
            _render_and_report(config, seed=args.seed, output=args.output)
            return EXIT_OK

        if args.command == "plan":
            config = ToneConfig.build(
                sample_rate_hz=args.sample_rate,
                duration_s=args.duration,
                fundamental_hz=args.fundamental,
            )
            _print_lines(_plan_report(config, plan(config)))
            return EXIT_OK

        parser.print_help()
        return EXIT_UNEXPECTED
    except HarmonicToneError as exc:
        _LOGGER.info("harmonictone %s rejected: %s", args.command, exc)
        _ERR_CONSOLE.print(f"[red]Error:[/red] {exc}")
        return EXIT_INVALID
    except Exception as exc:
        _LOGGER.warning(
            "harmonictone CLI failed: %s", exc, exc_info=args.verbose or debug_enabled()
        )
        log_exception("harmonictone CLI", exc, config=config)
        _ERR_CONSOLE.print(f"[red]Unexpected error:[/red] {type(exc).__name__}: {exc}")
        return EXIT_UNEXPECTED


if __name__ == "__main__":
    raise SystemExit(main())
