"""
Platform-specific tools and utilities.
"""

import os
import subprocess
from pathlib import Path

from flow.config.logger import get_logger
from flow.errors import ExternalCommandError, SetupError
from flow.shell_tools.tool_deps import detect_platform, Tool, tool_check

log = get_logger(__name__)


def native_open(path: str | Path = ".") -> None:
    """
    Open a file or directory with the platform's default app (e.g. Finder).
    """
    path = str(path)
    platform = detect_platform()
    commands = Tool.opener.commands_for(platform)
    if not commands:
        raise SetupError(f"Opening files is not supported on {platform.value}")
    tool_check().require(Tool.opener)

    command = [commands[0], path]
    log.info("Opening: %s", path)
    try:
        subprocess.run(command, check=True)
    except OSError as e:
        raise ExternalCommandError(f"{' '.join(command)}: {e}") from e
    except subprocess.CalledProcessError as e:
        raise ExternalCommandError(f"{' '.join(command)}: exit status {e.returncode}") from e


def run_script(script_path: Path) -> None:
    """
    Run a script, with its output going straight to the terminal.
    """
    if not os.access(script_path, os.F_OK):
        raise SetupError(f"unable to access {script_path}: no such file")

    log.info("Running script: %s", script_path)
    try:
        subprocess.run([str(script_path)], check=True)
    except OSError as e:
        raise ExternalCommandError(f"running {script_path}: {e}") from e
    except subprocess.CalledProcessError as e:
        raise ExternalCommandError(f"running {script_path}: exit status {e.returncode}") from e


## Tests


def test_run_script_missing(tmp_path):
    try:
        run_script(tmp_path / "nope.sh")
        assert False, "expected SetupError"
    except SetupError as e:
        assert "unable to access" in str(e)


def test_run_script_failure(tmp_path, monkeypatch):
    script = tmp_path / "up.sh"
    script.write_text("#!/bin/sh\nexit 3\n")

    def fake_run(args, check):
        raise subprocess.CalledProcessError(3, args)

    monkeypatch.setattr(subprocess, "run", fake_run)
    try:
        run_script(script)
        assert False, "expected ExternalCommandError"
    except ExternalCommandError as e:
        assert str(e) == f"running {script}: exit status 3"


def test_run_script_forwards(tmp_path, monkeypatch):
    script = tmp_path / "up.sh"
    script.write_text("#!/bin/sh\n")
    calls = []
    monkeypatch.setattr(subprocess, "run", lambda args, check: calls.append(args))
    run_script(script)
    assert calls == [[str(script)]]


def test_native_open_uses_platform_command(monkeypatch):
    from flow.shell_tools.tool_deps import InstalledTools, OSPlatform

    calls = []
    monkeypatch.setattr("flow.shell_tools.native_tools.detect_platform", lambda: OSPlatform.linux)
    monkeypatch.setattr(
        "flow.shell_tools.native_tools.tool_check",
        lambda: InstalledTools({Tool.lsof: False, Tool.opener: "/usr/bin/xdg-open"}),
    )
    monkeypatch.setattr(subprocess, "run", lambda args, check: calls.append(args))
    native_open(".")
    assert calls == [["xdg-open", "."]]


def test_native_open_unsupported_platform(monkeypatch):
    from flow.shell_tools.tool_deps import OSPlatform

    monkeypatch.setattr(
        "flow.shell_tools.native_tools.detect_platform", lambda: OSPlatform.windows
    )
    try:
        native_open(".")
        assert False, "expected SetupError"
    except SetupError as e:
        assert "not supported on windows" in str(e)
