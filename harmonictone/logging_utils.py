"""Logging setup for the command line; the library itself only installs a NullHandler."""

from __future__ import annotations

import logging
import os
import traceback
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from .config import ToneConfig

PACKAGE_LOGGER = "harmonictone"
LOG_DIR_ENV = "HARMONICTONE_LOG_DIR"
DEBUG_ENV = "HARMONICTONE_DEBUG"
LOG_FILE = "harmonictone.log"

_LOGGER = logging.getLogger("harmonictone.logging")
_CONSOLE_HANDLER = "harmonictone.console"
_FILE_HANDLER = "harmonictone.file"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def debug_enabled() -> bool:
    return bool(os.environ.get(DEBUG_ENV))


def get_log_dir() -> Path:
    configured = os.environ.get(LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "harmonictone" / "logs"


def get_log_path() -> Path:
    return get_log_dir() / LOG_FILE


def install_null_handler() -> None:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(handler, logging.NullHandler) for handler in logger.handlers):
        logger.addHandler(logging.NullHandler())


def _drop_installed_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if handler.get_name() in (_CONSOLE_HANDLER, _FILE_HANDLER):
            logger.removeHandler(handler)
            handler.close()


def configure_logging(*, verbose: bool = False) -> Path | None:
    """Send package logs to stderr through rich and to a debug log file.

    Calling it again replaces the handlers from the previous call. Returns the
    log file path, or None when the log directory is not writable.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG)
    _drop_installed_handlers(logger)

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    console_handler.set_name(_CONSOLE_HANDLER)
    console_handler.setLevel(logging.DEBUG if verbose or debug_enabled() else logging.WARNING)
    logger.addHandler(console_handler)

    path = get_log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        _LOGGER.warning("File logging disabled, cannot open %s: %s", path, exc)
        return None
    file_handler.set_name(_FILE_HANDLER)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(file_handler)
    return path


def log_exception(
    context: str,
    exc: BaseException,
    *,
    config: ToneConfig | None = None,
) -> Path | None:
    """Append a failure report, including the tone request if known, to the log file."""

    stamp = datetime.now().isoformat(timespec="seconds")
    lines = [f"[{stamp}] {context}: {type(exc).__name__}: {exc}\n"]
    if config is not None:
        lines.append(f"request: {config.model_dump_json()}\n")
    lines.extend(traceback.format_exception(type(exc), exc, exc.__traceback__))
    lines.append("\n")

    path = get_log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.writelines(lines)
    except OSError as log_exc:
        _LOGGER.warning("Failed to write %s: %s", path, log_exc)
        return None
    return path
