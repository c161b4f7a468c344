import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import soundfile as sf  # type: ignore[import]

import harmonictone.cli as cli
from harmonictone.config import RANDOM_PHASE, ToneConfig
from harmonictone.logging_utils import PACKAGE_LOGGER


@pytest.fixture(autouse=True)
def _log_to_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("HARMONICTONE_LOG_DIR", str(tmp_path / "logs"))
    logger = logging.getLogger(PACKAGE_LOGGER)
    before = list(logger.handlers)
    yield
    for handler in list(logger.handlers):
        if handler not in before:
            logger.removeHandler(handler)
            handler.close()


def test_render_writes_wav(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    target = tmp_path / "tone.wav"
    code = cli.main(
        [
            "render",
            "--fundamental",
            "100",
            "--phase",
            "0",
            "--slope",
            "3",
            "--duration",
            "0.5",
            "--output",
            str(target),
        ]
    )
    assert code == cli.EXIT_OK
    data, rate = sf.read(target)
    assert rate == 48_000
    assert data.shape == (24_000,)
    out = capsys.readouterr().out
    assert "100Hz HarmonicTone" in out


def test_render_random_phase_with_seed() -> None:
    assert cli.main(["render", "--fundamental", "220", "--seed", "3"]) == cli.EXIT_OK


def test_render_above_nyquist_exits_with_error(capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["render", "--fundamental", "30000"])
    assert code == cli.EXIT_INVALID
    assert "Nyquist" in capsys.readouterr().err


def test_render_rejects_bad_phase() -> None:
    assert cli.main(["render", "--phase", "sideways"]) == cli.EXIT_INVALID


def test_plan_prints_geometry(capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["plan", "--fundamental", "100", "--duration", "0.5"])
    assert code == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "FFT length: 480000" in out
    assert "Output samples: 24000" in out
    assert "bin 1000" in out


def test_prompt_uses_answers(monkeypatch: pytest.MonkeyPatch) -> None:
    answers = {
        "Audio sampling rate (Hz)": 8_000.0,
        "Tone duration (s)": 0.5,
        "Fundamental frequency (Hz)": 200.0,
        cli.PHASE_PROMPT: "90",
        "Spectral magnitude slope (dB/octave)": -3.0,
    }

    class _StubPrompt:
        @staticmethod
        def ask(prompt: str, **kwargs: object) -> object:
            return answers[prompt]

    monkeypatch.setattr(cli, "FloatPrompt", _StubPrompt)
    monkeypatch.setattr(cli, "Prompt", _StubPrompt)
    config = cli.prompt_config()
    assert config.sample_rate_hz == 8_000
    assert config.duration_s == 0.5
    assert config.fundamental_hz == 200
    assert config.phase == 90.0
    assert config.slope_db_per_octave == -3.0


def test_prompt_defaults_are_offered(monkeypatch: pytest.MonkeyPatch) -> None:
    class _DefaultPrompt:
        @staticmethod
        def ask(prompt: str, **kwargs: object) -> object:
            return kwargs["default"]

    monkeypatch.setattr(cli, "FloatPrompt", _DefaultPrompt)
    monkeypatch.setattr(cli, "Prompt", _DefaultPrompt)
    config = cli.prompt_config()
    assert config.phase == RANDOM_PHASE
    assert config.sample_rate_hz == 48_000


def test_unexpected_errors_are_logged_with_request(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    def _boom(*args: object, **kwargs: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(cli, "render", _boom)
    code = cli.main(["render", "--fundamental", "220", "--phase", "30"])
    assert code == cli.EXIT_UNEXPECTED
    text = (tmp_path / "logs" / "harmonictone.log").read_text(encoding="utf-8")
    assert "harmonictone CLI: RuntimeError: boom" in text
    assert '"fundamental_hz":220.0' in text
    assert '"phase":30.0' in text


def test_phase_prompt_says_negative_values_are_angles() -> None:
    assert "negative" in cli.PHASE_PROMPT
    assert "random" in cli.PHASE_PROMPT


def test_prompt_negative_phase_is_fixed_angle(monkeypatch: pytest.MonkeyPatch) -> None:
    class _StubPrompt:
        @staticmethod
        def ask(prompt: str, **kwargs: object) -> object:
            if prompt == cli.PHASE_PROMPT:
                return "-1"
            return kwargs["default"]

    monkeypatch.setattr(cli, "FloatPrompt", _StubPrompt)
    monkeypatch.setattr(cli, "Prompt", _StubPrompt)
    config = cli.prompt_config()
    assert config == ToneConfig.build(phase=-1.0)
    assert not config.is_random_phase


def test_verbose_flag_lowers_console_level() -> None:
    assert cli.main(["-v", "plan", "--fundamental", "100"]) == cli.EXIT_OK
    logger = logging.getLogger(PACKAGE_LOGGER)
    console = next(h for h in logger.handlers if h.get_name() == "harmonictone.console")
    assert console.level == logging.DEBUG
