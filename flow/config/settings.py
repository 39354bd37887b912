import os
from enum import Enum
from logging import DEBUG, ERROR, INFO, WARNING
from pathlib import Path
from typing import Mapping, Optional

from pydantic.dataclasses import dataclass


APP_NAME = "flow"

APP_DESCRIPTION = "flow is CLI to do things fast"

LOG_DIR_PATH = "~/.local/flow/logs"

DEFAULT_UPGRADE_SCRIPT_PATH = "~/src/config/sh/upgrade-go-version.sh"

UPGRADE_SCRIPT_RELPATH = "sh/upgrade-go-version.sh"

KILL_PORT_PROMPT = "killPort> "

COMMAND_PALETTE_PROMPT = f"{APP_NAME}> "


class LogLevel(Enum):
    debug = DEBUG
    info = INFO
    warning = WARNING
    message = WARNING  # Same as warning, just for important console messages.
    error = ERROR

    @classmethod
    def parse(cls, level_str: str):
        canon_name = level_str.strip().lower()
        if canon_name == "warn":
            canon_name = "warning"
        try:
            return cls[canon_name]
        except KeyError:
            raise ValueError(
                f"Invalid log level: `{level_str}`. Valid options are: {', '.join(f'`{name}`' for name in cls.__members__)}"
            )

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Settings:
    console_log_level: LogLevel
    """The log level for console-based logging."""

    file_log_level: LogLevel
    """The log level for file-based logging."""

    log_dir: Path
    """Directory for the log file."""

    upgrade_script_path: Path
    """Script run by `update_go_version`."""

    kill_port_prompt: str = KILL_PORT_PROMPT
    """Prompt string for the interactive port picker."""


def _non_empty(environ: Mapping[str, str], key: str) -> Optional[str]:
    value = environ.get(key, "").strip()
    return value or None


def upgrade_script_path(environ: Mapping[str, str]) -> Path:
    """
    Where to find the Go upgrade script: an explicit path, else relative to the
    config root, else the default location in the home directory.
    """
    explicit = _non_empty(environ, "FLOW_UPGRADE_SCRIPT_PATH")
    if explicit:
        return Path(explicit).expanduser()

    config_root = _non_empty(environ, "FLOW_CONFIG_ROOT")
    if config_root:
        return Path(config_root).expanduser() / UPGRADE_SCRIPT_RELPATH

    return Path(DEFAULT_UPGRADE_SCRIPT_PATH).expanduser()


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Resolve settings once from the environment. The result is passed explicitly to
    commands and discarded when the command finishes.
    """
    if environ is None:
        environ = os.environ

    return Settings(
        console_log_level=LogLevel.parse(environ.get("FLOW_CONSOLE_LOG_LEVEL", "warning")),
        file_log_level=LogLevel.parse(environ.get("FLOW_FILE_LOG_LEVEL", "info")),
        log_dir=Path(_non_empty(environ, "FLOW_LOG_DIR") or LOG_DIR_PATH).expanduser(),
        upgrade_script_path=upgrade_script_path(environ),
    )


## Tests


def test_log_level_parse():
    assert LogLevel.parse("WARN") == LogLevel.warning
    assert LogLevel.parse(" debug ") == LogLevel.debug
    try:
        LogLevel.parse("loud")
        assert False, "expected ValueError"
    except ValueError as e:
        assert "loud" in str(e)


def test_upgrade_script_path():
    assert upgrade_script_path({"FLOW_UPGRADE_SCRIPT_PATH": "/opt/up.sh"}) == Path("/opt/up.sh")
    assert upgrade_script_path({"FLOW_CONFIG_ROOT": "/cfg"}) == Path(
        "/cfg/sh/upgrade-go-version.sh"
    )
    assert upgrade_script_path(
        {"FLOW_UPGRADE_SCRIPT_PATH": "  ", "FLOW_CONFIG_ROOT": "/cfg"}
    ) == Path("/cfg/sh/upgrade-go-version.sh")
    assert upgrade_script_path({}) == Path(DEFAULT_UPGRADE_SCRIPT_PATH).expanduser()


def test_load_settings():
    settings = load_settings({"FLOW_CONSOLE_LOG_LEVEL": "error", "FLOW_LOG_DIR": "/tmp/flowlogs"})
    assert settings.console_log_level == LogLevel.error
    assert settings.file_log_level == LogLevel.info
    assert settings.log_dir == Path("/tmp/flowlogs")
    assert settings.kill_port_prompt == "killPort> "
