"""
Listing listening sockets with lsof, and signaling the processes that own them.
"""

import errno
import os
import signal
import subprocess
from typing import List

from flow.config.logger import get_logger
from flow.errors import QueryError, SetupError, SignalError
from flow.model.listening_model import ListeningProcess, parse_lsof_output
from flow.shell_tools.tool_deps import Tool, tool_check

log = get_logger(__name__)

LSOF_LISTEN_ARGS = ["lsof", "-nP", "-iTCP", "-sTCP:LISTEN"]


def run_lsof_listening() -> str:
    """
    Run lsof for TCP sockets in LISTEN state, without DNS or port-name lookups,
    and return its stdout.
    """
    try:
        tool_check().require(Tool.lsof)
    except SetupError as e:
        raise QueryError(f"lsof not found in PATH: {e}") from e

    log.info("Running: %s", " ".join(LSOF_LISTEN_ARGS))
    try:
        result = subprocess.run(LSOF_LISTEN_ARGS, capture_output=True, text=True)
    except OSError as e:
        raise QueryError(f"list listening ports: {e}") from e

    if result.returncode != 0:
        msg = (result.stderr or "").strip()
        cause = f"lsof exited with status {result.returncode}"
        if msg:
            raise QueryError(f"list listening ports: {msg}: {cause}")
        raise QueryError(f"list listening ports: {cause}")

    return result.stdout


def list_listening_processes() -> List[ListeningProcess]:
    processes = parse_lsof_output(run_lsof_listening())
    log.info("Found %s listening sockets", len(processes))
    return processes


def signal_process(pid: int, sig: int = signal.SIGTERM) -> None:
    """
    Ask a process to terminate. A process that is already gone counts as success.
    """
    try:
        os.kill(pid, sig)
    except ProcessLookupError:
        log.info("Process %s already gone, nothing to signal", pid)
    except OSError as e:
        raise SignalError(pid, e) from e
    else:
        log.info("Sent signal %s to pid %s", sig, pid)


## Tests


class _Completed:
    def __init__(self, returncode: int, stdout: str = "", stderr: str = ""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def _patch_lsof(monkeypatch, completed: _Completed, calls: list):
    from flow.shell_tools import tool_deps

    monkeypatch.setattr(
        "flow.shell_tools.lsof_tools.tool_check",
        lambda: tool_deps.InstalledTools({Tool.lsof: "/usr/sbin/lsof", Tool.opener: False}),
    )

    def fake_run(args, **kwargs):
        calls.append(args)
        return completed

    monkeypatch.setattr(subprocess, "run", fake_run)


def test_list_listening_processes(monkeypatch):
    calls: list = []
    output = (
        "COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME\n"
        "node 41235 levy 23u IPv4 0x1 0t0 TCP 127.0.0.1:3000 (LISTEN)\n"
    )
    _patch_lsof(monkeypatch, _Completed(0, stdout=output), calls)

    procs = list_listening_processes()
    assert calls == [LSOF_LISTEN_ARGS]
    assert [(p.command, p.pid, p.port) for p in procs] == [("node", 41235, "3000")]


def test_lsof_failure_includes_stderr(monkeypatch):
    calls: list = []
    _patch_lsof(monkeypatch, _Completed(1, stderr="lsof: WARNING: can't stat()\n"), calls)
    try:
        run_lsof_listening()
        assert False, "expected QueryError"
    except QueryError as e:
        assert str(e) == (
            "list listening ports: lsof: WARNING: can't stat(): lsof exited with status 1"
        )


def test_lsof_failure_without_stderr(monkeypatch):
    _patch_lsof(monkeypatch, _Completed(1), [])
    try:
        run_lsof_listening()
        assert False, "expected QueryError"
    except QueryError as e:
        assert str(e) == "list listening ports: lsof exited with status 1"


def test_lsof_missing(monkeypatch):
    from flow.shell_tools import tool_deps

    monkeypatch.setattr(
        "flow.shell_tools.lsof_tools.tool_check",
        lambda: tool_deps.InstalledTools({Tool.lsof: False, Tool.opener: False}),
    )
    try:
        run_lsof_listening()
        assert False, "expected QueryError"
    except QueryError as e:
        assert "lsof not found in PATH" in str(e)


def test_signal_process_already_gone(monkeypatch):
    def fake_kill(pid, sig):
        raise ProcessLookupError(errno.ESRCH, "No such process")

    monkeypatch.setattr(os, "kill", fake_kill)
    signal_process(99999)


def test_signal_process_permission_denied(monkeypatch):
    def fake_kill(pid, sig):
        raise PermissionError(errno.EPERM, "Operation not permitted")

    monkeypatch.setattr(os, "kill", fake_kill)
    try:
        signal_process(1)
        assert False, "expected SignalError"
    except SignalError as e:
        assert e.pid == 1
        assert isinstance(e.cause, PermissionError)


def test_signal_process_sends_sigterm(monkeypatch):
    sent = []
    monkeypatch.setattr(os, "kill", lambda pid, sig: sent.append((pid, sig)))
    signal_process(4242)
    assert sent == [(4242, signal.SIGTERM)]
