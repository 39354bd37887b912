"""
Find the process listening on a TCP port and ask it to terminate.

With a port, the listening sockets on that port are collapsed to one per process
and a single match is killed right away. Without a port, every listening socket is
offered in the fuzzy picker, so a process with several sockets appears several times.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from flow.config.logger import get_logger
from flow.config.settings import KILL_PORT_PROMPT
from flow.errors import SelectionError, UsageError
from flow.form_input.prompt_input import prompt_fuzzy_choice
from flow.model.listening_model import filter_by_port, ListeningProcess, unique_by_pid
from flow.shell_tools.lsof_tools import list_listening_processes, signal_process

log = get_logger(__name__)

KILL_PORT_USAGE = "flow kill_port [port]"

ListFunc = Callable[[], List[ListeningProcess]]
"""Returns the currently listening sockets."""

SelectFunc = Callable[[str, Sequence[str]], Optional[int]]
"""Given a prompt and display lines, returns the chosen index or None on cancel."""

SignalFunc = Callable[[int], None]
"""Asks a pid to terminate."""


class KillOutcome(Enum):
    killed = "killed"
    no_listening_ports = "no_listening_ports"
    no_match = "no_match"
    cancelled = "cancelled"


@dataclass(frozen=True)
class KillResult:
    outcome: KillOutcome
    process: Optional[ListeningProcess] = None
    port: Optional[str] = None

    @property
    def message(self) -> str:
        if self.outcome == KillOutcome.killed:
            assert self.process
            return (
                f"Killed {self.process.command} (pid {self.process.pid}) "
                f"listening on {self.process.address}"
            )
        elif self.outcome == KillOutcome.no_listening_ports:
            return "No listening TCP ports found."
        elif self.outcome == KillOutcome.no_match:
            return f"No listening process found on port {self.port}."
        else:
            return "Cancelled, nothing killed."


def normalize_port(port: Optional[str]) -> Optional[str]:
    if port is None:
        return None
    port = port.strip()
    if not port:
        raise UsageError("port cannot be empty", usage=KILL_PORT_USAGE)
    return port


class PortKiller:
    """
    Resolves which listening process to kill and kills it. Listing, picking, and
    signaling are passed in so each run is a fresh, self-contained query.
    """

    def __init__(
        self,
        list_func: ListFunc = list_listening_processes,
        select_func: SelectFunc = prompt_fuzzy_choice,
        signal_func: SignalFunc = signal_process,
        prompt: str = KILL_PORT_PROMPT,
    ):
        self.list_func = list_func
        self.select_func = select_func
        self.signal_func = signal_func
        self.prompt = prompt

    def select(self, candidates: List[ListeningProcess]) -> Optional[ListeningProcess]:
        lines = [proc.display_line() for proc in candidates]
        try:
            index = self.select_func(self.prompt, lines)
        except Exception as e:
            raise SelectionError(e) from e

        if index is None:
            return None
        if not 0 <= index < len(candidates):
            raise SelectionError(IndexError(f"selected index {index} out of range"))
        return candidates[index]

    def kill(self, proc: ListeningProcess) -> KillResult:
        log.info("Killing %s (pid %s) on %s", proc.command, proc.pid, proc.address)
        self.signal_func(proc.pid)
        return KillResult(KillOutcome.killed, process=proc, port=proc.port)

    def resolve(self, port: Optional[str] = None) -> KillResult:
        port = normalize_port(port)

        processes = self.list_func()
        if not processes:
            return KillResult(KillOutcome.no_listening_ports, port=port)

        if port is None:
            candidates = processes
        else:
            candidates = unique_by_pid(filter_by_port(processes, port))
            if not candidates:
                return KillResult(KillOutcome.no_match, port=port)
            if len(candidates) == 1:
                return self.kill(candidates[0])

        log.info("Choosing among %s candidates", len(candidates))
        selected = self.select(candidates)
        if selected is None:
            return KillResult(KillOutcome.cancelled, port=port)

        return self.kill(selected)


## Tests


def _proc(pid: int, port: str, command: str = "node") -> ListeningProcess:
    address = f"127.0.0.1:{port}"
    return ListeningProcess(
        command=command, user="levy", pid=pid, address=address, port=port, raw=address
    )


class _Recorder:
    def __init__(self, processes: List[ListeningProcess], choice: Optional[int] = 0):
        self.processes = processes
        self.choice = choice
        self.list_calls = 0
        self.prompts: List[Sequence[str]] = []
        self.signaled: List[int] = []

    def list(self) -> List[ListeningProcess]:
        self.list_calls += 1
        return self.processes

    def select(self, prompt: str, lines: Sequence[str]) -> Optional[int]:
        assert prompt == KILL_PORT_PROMPT
        self.prompts.append(list(lines))
        return self.choice

    def signal(self, pid: int) -> None:
        self.signaled.append(pid)

    def killer(self) -> PortKiller:
        return PortKiller(self.list, self.select, self.signal)


def test_auto_match_skips_selector():
    rec = _Recorder([_proc(10, "3000"), _proc(20, "8080"), _proc(20, "8080", "node2")])
    result = rec.killer().resolve("8080")
    assert result.outcome == KillOutcome.killed
    assert result.process == _proc(20, "8080")
    assert rec.prompts == []
    assert rec.signaled == [20]
    assert result.message == "Killed node (pid 20) listening on 127.0.0.1:8080"


def test_port_is_stripped():
    rec = _Recorder([_proc(20, "8080")])
    assert rec.killer().resolve(" 8080 ").outcome == KillOutcome.killed
    assert rec.signaled == [20]


def test_ambiguous_port_prompts_deduped():
    rec = _Recorder(
        [_proc(1, "8080"), _proc(2, "8080", "python"), _proc(1, "8080"), _proc(3, "9000")],
        choice=1,
    )
    result = rec.killer().resolve("8080")
    assert rec.prompts == [["node (1) 127.0.0.1:8080", "python (2) 127.0.0.1:8080"]]
    assert rec.signaled == [2]
    assert result.process and result.process.command == "python"


def test_no_port_shows_all_sockets():
    rec = _Recorder([_proc(5, "3000"), _proc(5, "3001"), _proc(6, "4000")], choice=2)
    result = rec.killer().resolve()
    assert rec.prompts == [
        ["node (5) 127.0.0.1:3000", "node (5) 127.0.0.1:3001", "node (6) 127.0.0.1:4000"]
    ]
    assert rec.signaled == [6]
    assert result.outcome == KillOutcome.killed


def test_no_port_single_socket_still_prompts():
    rec = _Recorder([_proc(5, "3000")], choice=0)
    rec.killer().resolve()
    assert len(rec.prompts) == 1
    assert rec.signaled == [5]


def test_cancel_sends_no_signal():
    rec = _Recorder([_proc(5, "3000"), _proc(6, "4000")], choice=None)
    result = rec.killer().resolve()
    assert result.outcome == KillOutcome.cancelled
    assert rec.signaled == []


def test_empty_listing_short_circuits():
    rec = _Recorder([])
    result = rec.killer().resolve()
    assert result.outcome == KillOutcome.no_listening_ports
    assert result.message == "No listening TCP ports found."
    assert rec.prompts == [] and rec.signaled == []

    result = rec.killer().resolve("8080")
    assert result.outcome == KillOutcome.no_listening_ports
    assert rec.prompts == [] and rec.signaled == []


def test_no_match_on_port():
    rec = _Recorder([_proc(5, "18080"), _proc(6, "8080x")])
    result = rec.killer().resolve("8080")
    assert result.outcome == KillOutcome.no_match
    assert result.message == "No listening process found on port 8080."
    assert rec.prompts == [] and rec.signaled == []


def test_empty_port_is_usage_error_before_query():
    rec = _Recorder([_proc(5, "3000")])
    try:
        rec.killer().resolve("   ")
        assert False, "expected UsageError"
    except UsageError as e:
        assert str(e) == "port cannot be empty"
    assert rec.list_calls == 0


def test_selector_failure_is_selection_error():
    def broken_select(prompt: str, lines: Sequence[str]) -> Optional[int]:
        raise RuntimeError("no tty")

    signaled: List[int] = []
    killer = PortKiller(
        lambda: [_proc(5, "3000"), _proc(6, "4000")], broken_select, signaled.append
    )
    try:
        killer.resolve()
        assert False, "expected SelectionError"
    except SelectionError as e:
        assert isinstance(e.cause, RuntimeError)
        assert str(e) == "select port: no tty"
    assert signaled == []


def test_selector_bad_index_is_selection_error():
    rec = _Recorder([_proc(5, "3000"), _proc(6, "4000")], choice=7)
    try:
        rec.killer().resolve()
        assert False, "expected SelectionError"
    except SelectionError:
        pass
    assert rec.signaled == []
