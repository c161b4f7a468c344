import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.logging import RichHandler

from harmonictone import ToneConfig
from harmonictone.logging_utils import (
    PACKAGE_LOGGER,
    configure_logging,
    get_log_dir,
    get_log_path,
    install_null_handler,
    log_exception,
)


@pytest.fixture
def log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    monkeypatch.setenv("HARMONICTONE_LOG_DIR", str(tmp_path))
    monkeypatch.delenv("HARMONICTONE_DEBUG", raising=False)
    logger = logging.getLogger(PACKAGE_LOGGER)
    before = list(logger.handlers)
    yield tmp_path
    for handler in list(logger.handlers):
        if handler not in before:
            logger.removeHandler(handler)
            handler.close()


def _installed(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if h.get_name() and h.get_name().startswith("harmonictone.")]


def test_log_path_uses_env_override(log_dir: Path) -> None:
    assert get_log_dir() == log_dir
    assert get_log_path() == log_dir / "harmonictone.log"


def test_import_installs_only_a_null_handler() -> None:
    install_null_handler()
    install_null_handler()
    logger = logging.getLogger(PACKAGE_LOGGER)
    nulls = [h for h in logger.handlers if isinstance(h, logging.NullHandler)]
    assert len(nulls) == 1


def test_configure_logging_adds_console_and_file(log_dir: Path) -> None:
    path = configure_logging()
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers = _installed(logger)
    assert path == log_dir / "harmonictone.log"
    consoles = [h for h in handlers if isinstance(h, RichHandler)]
    files = [h for h in handlers if isinstance(h, logging.FileHandler)]
    assert len(consoles) == 1
    assert consoles[0].level == logging.WARNING
    assert len(files) == 1
    assert Path(files[0].baseFilename) == path


def test_configure_logging_twice_replaces_handlers(log_dir: Path) -> None:
    configure_logging()
    configure_logging(verbose=True)
    handlers = _installed(logging.getLogger(PACKAGE_LOGGER))
    assert len(handlers) == 2
    console = next(h for h in handlers if isinstance(h, RichHandler))
    assert console.level == logging.DEBUG


def test_debug_env_lowers_console_level(log_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HARMONICTONE_DEBUG", "1")
    configure_logging()
    console = next(
        h for h in _installed(logging.getLogger(PACKAGE_LOGGER)) if isinstance(h, RichHandler)
    )
    assert console.level == logging.DEBUG


def test_file_handler_records_debug_lines(log_dir: Path) -> None:
    path = configure_logging()
    assert path is not None
    logging.getLogger("harmonictone.main").debug("Planned N=%d", 480_000)
    for handler in _installed(logging.getLogger(PACKAGE_LOGGER)):
        handler.flush()
    assert "Planned N=480000" in path.read_text(encoding="utf-8")


def test_log_exception_records_request(log_dir: Path) -> None:
    config = ToneConfig.build(fundamental_hz=220, phase=45)
    try:
        raise ValueError("bad tone")
    except ValueError as exc:
        path = log_exception("render", exc, config=config)
    assert path == log_dir / "harmonictone.log"
    text = path.read_text(encoding="utf-8")
    assert "render: ValueError: bad tone" in text
    assert '"fundamental_hz":220.0' in text
    assert '"phase":45.0' in text
    assert "Traceback" in text


def test_log_exception_without_request(log_dir: Path) -> None:
    path = log_exception("plan", RuntimeError("boom"))
    assert path is not None
    text = path.read_text(encoding="utf-8")
    assert "plan: RuntimeError: boom" in text
    assert "request:" not in text
