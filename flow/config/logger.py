import logging
import os
import threading
from functools import cache
from logging import Formatter
from pathlib import Path
from typing import Optional

import rich
from rich import reconfigure
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from flow.config.settings import LogLevel, Settings
from flow.config.text_styles import EMOJI_ERROR, EMOJI_WARN, FlowHighlighter, RICH_STYLES

LOG_FILE_NAME = "flow.log"

_log_lock = threading.RLock()

_log_dir: Optional[Path] = None

_file_handler: Optional[logging.Handler] = None

_console_handler: Optional[logging.Handler] = None


@cache
def get_highlighter():
    return FlowHighlighter()


@cache
def get_theme():
    return Theme(RICH_STYLES)


reconfigure(theme=get_theme(), highlighter=get_highlighter())


def get_console() -> Console:
    return rich.get_console()


def log_file_path() -> Optional[Path]:
    return _log_dir / LOG_FILE_NAME if _log_dir else None


def logging_setup(settings: Settings):
    """
    Set up or reset logging. Replaces previous flow handlers on the root logger.
    Verbose logging goes to the log file, important logging to the console.
    """
    global _log_dir, _file_handler, _console_handler

    with _log_lock:
        root = logging.getLogger()
        for handler in (_file_handler, _console_handler):
            if handler:
                root.removeHandler(handler)
                handler.close()

        _console_handler = RichHandler(
            console=get_console(),
            level=settings.console_log_level.value,
            show_time=False,
            show_path=False,
            show_level=False,
            highlighter=get_highlighter(),
            markup=True,
        )
        _console_handler.setLevel(settings.console_log_level.value)
        _console_handler.setFormatter(Formatter("%(message)s"))
        root.addHandler(_console_handler)

        try:
            os.makedirs(settings.log_dir, exist_ok=True)
            _file_handler = logging.FileHandler(settings.log_dir / LOG_FILE_NAME)
        except OSError as e:
            # Still usable without a log file (read-only home, etc.).
            _file_handler = None
            _log_dir = None
            root.warning("%s Could not open log file in %s: %s", EMOJI_WARN, settings.log_dir, e)
        else:
            _log_dir = settings.log_dir
            _file_handler.setLevel(settings.file_log_level.value)
            _file_handler.setFormatter(
                Formatter("%(asctime)s %(levelname).1s %(name)s - %(message)s")
            )
            root.addHandler(_file_handler)

        root.setLevel(min(settings.console_log_level.value, settings.file_log_level.value))


def prefix(line, emoji: str = "", warn_emoji: str = ""):
    emojis = f"{warn_emoji}{emoji}".strip()
    return " ".join(filter(None, [emojis, line]))


def prefix_args(args, emoji: str = "", warn_emoji: str = ""):
    if len(args) > 0:
        args = (prefix(args[0], emoji, warn_emoji),) + args[1:]
    return args


class CustomLogger:
    """
    Custom logger to be clearer about user messages.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def debug(self, *args, **kwargs):
        self.logger.debug(*prefix_args(args), **kwargs)

    def info(self, *args, **kwargs):
        self.logger.info(*prefix_args(args), **kwargs)

    def message(self, *args, **kwargs):
        self.logger.warning(*prefix_args(args), **kwargs)

    def warning(self, *args, **kwargs):
        self.logger.warning(*prefix_args(args, warn_emoji=EMOJI_WARN), **kwargs)

    def error(self, *args, **kwargs):
        self.logger.error(*prefix_args(args, warn_emoji=EMOJI_ERROR), **kwargs)

    def log(self, level: LogLevel, *args, **kwargs):
        getattr(self, level.name)(*args, **kwargs)

    # Fallback for other attributes/methods.
    def __getattr__(self, attr):
        return getattr(self.logger, attr)


def get_logger(name: str):
    return CustomLogger(name)


## Tests


def test_prefix_args():
    assert prefix_args(("Killed %s", "node")) == ("Killed %s", "node")
    assert prefix_args(("oops",), warn_emoji=EMOJI_WARN) == (f"{EMOJI_WARN} oops",)
    assert prefix_args(()) == ()


def test_custom_logger_levels(caplog):
    log = get_logger("flow.test")
    with caplog.at_level(logging.DEBUG, logger="flow.test"):
        log.message("Killed %s", "node")
        log.warning("Port %s busy", "8080")
        log.log(LogLevel.info, "note")

    messages = [(r.levelno, r.getMessage()) for r in caplog.records]
    assert (logging.WARNING, "Killed node") in messages
    assert (logging.WARNING, f"{EMOJI_WARN} Port 8080 busy") in messages
    assert (logging.INFO, "note") in messages


def test_logging_setup_writes_file(tmp_path):
    settings = Settings(
        console_log_level=LogLevel.error,
        file_log_level=LogLevel.info,
        log_dir=tmp_path / "logs",
        upgrade_script_path=tmp_path / "up.sh",
    )
    logging_setup(settings)
    get_logger("flow.test").info("hello file")
    assert _file_handler is not None
    _file_handler.flush()

    log_path = log_file_path()
    assert log_path == tmp_path / "logs" / LOG_FILE_NAME
    assert "hello file" in log_path.read_text()
