"""
Listening TCP sockets as reported by `lsof -nP -iTCP -sTCP:LISTEN`, and the
filtering used to pick which owning process to kill.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

MIN_LSOF_FIELDS = 9


@dataclass(frozen=True)
class ListeningProcess:
    """
    One listening socket and the process that owns it. A process with several
    listening sockets shows up once per socket.
    """

    command: str
    """Command name as lsof reports it. Not a path, and lsof may truncate it."""

    user: str

    pid: int

    address: str
    """Local address as reported, e.g. `127.0.0.1:8080` or `*:5432`."""

    port: str
    """Kept as a string since lsof can report service names instead of numbers."""

    raw: str
    """The unmodified lsof line."""

    def display_line(self) -> str:
        return f"{self.command} ({self.pid}) {self.address}"


def port_from_address(address: str) -> str:
    """
    The part of the address after the last colon. If there is no colon, or it is
    the last character, the whole address is the port.
    """
    idx = address.rfind(":")
    if idx >= 0 and idx + 1 < len(address):
        return address[idx + 1 :]
    return address


def parse_lsof_line(line: str) -> Optional[ListeningProcess]:
    fields = line.split()
    if len(fields) < MIN_LSOF_FIELDS:
        return None

    try:
        pid = int(fields[1])
    except ValueError:
        return None
    if pid <= 0:
        return None

    # Last field is the state, e.g. `(LISTEN)`.
    address = fields[-2]
    return ListeningProcess(
        command=fields[0],
        user=fields[2],
        pid=pid,
        address=address,
        port=port_from_address(address),
        raw=line,
    )


def parse_lsof_output(output: str) -> List[ListeningProcess]:
    """
    Parse lsof output into records, in lsof's order. The first line is always taken
    as the header. Lines that don't look like socket rows are skipped.
    """
    lines = output.splitlines()[1:]
    return [proc for proc in map(parse_lsof_line, lines) if proc]


def filter_by_port(processes: Iterable[ListeningProcess], port: str) -> List[ListeningProcess]:
    return [proc for proc in processes if proc.port == port]


def unique_by_pid(processes: Iterable[ListeningProcess]) -> List[ListeningProcess]:
    """
    Keep the first record seen for each pid, preserving order.
    """
    seen: set[int] = set()
    unique: List[ListeningProcess] = []
    for proc in processes:
        if proc.pid in seen:
            continue
        seen.add(proc.pid)
        unique.append(proc)
    return unique


## Tests

_lsof_header = "COMMAND     PID   USER   FD   TYPE             DEVICE SIZE/OFF NODE NAME"

_lsof_sample = f"""{_lsof_header}
rapportd    612   levy    8u  IPv4 0x6e2b4c51a3f1c0d1      0t0  TCP *:49152 (LISTEN)
rapportd    612   levy    9u  IPv6 0x6e2b4c51a3f1c0d2      0t0  TCP *:49152 (LISTEN)
node      41235   levy   23u  IPv4 0x6e2b4c51a3f1c0d3      0t0  TCP 127.0.0.1:3000 (LISTEN)
postgres    809   levy    7u  IPv6 0x6e2b4c51a3f1c0d4      0t0  TCP [::1]:5432 (LISTEN)
"""


def _proc(pid: int, port: str = "8080", command: str = "node") -> ListeningProcess:
    address = f"127.0.0.1:{port}"
    return ListeningProcess(
        command=command, user="levy", pid=pid, address=address, port=port, raw=address
    )


def test_parse_skips_header():
    procs = parse_lsof_output(_lsof_sample)
    assert len(procs) == 4
    assert [p.pid for p in procs] == [612, 612, 41235, 809]

    node = procs[2]
    assert node.command == "node"
    assert node.user == "levy"
    assert node.address == "127.0.0.1:3000"
    assert node.port == "3000"
    assert node.raw.startswith("node      41235")
    assert procs[3].port == "5432"
    assert procs[0].display_line() == "rapportd (612) *:49152"


def test_parse_header_only_or_empty():
    assert parse_lsof_output("") == []
    assert parse_lsof_output(_lsof_header + "\n") == []
    # The first line is dropped even if it is a data row.
    row = "node 41235 levy 23u IPv4 0x1 0t0 TCP 127.0.0.1:3000 (LISTEN)"
    assert parse_lsof_output(row) == []


def test_parse_drops_malformed_lines():
    output = "\n".join(
        [
            _lsof_header,
            "node 100 levy 23u IPv4 0x1 0t0 TCP 127.0.0.1:3000 (LISTEN)",
            "short 101 levy 23u IPv4 0x1 0t0 127.0.0.1:3001",  # 8 fields
            "node abc levy 23u IPv4 0x1 0t0 TCP 127.0.0.1:3002 (LISTEN)",
            "node 0 levy 23u IPv4 0x1 0t0 TCP 127.0.0.1:3003 (LISTEN)",
            "",
            "python 102 levy 4u IPv4 0x1 0t0 TCP *:8000 (LISTEN)",
        ]
    )
    procs = parse_lsof_output(output)
    assert [(p.pid, p.port) for p in procs] == [(100, "3000"), (102, "8000")]


def test_port_from_address():
    assert port_from_address("127.0.0.1:8080") == "8080"
    assert port_from_address("[::1]:5432") == "5432"
    assert port_from_address("*:http-alt") == "http-alt"
    assert port_from_address("localhost") == "localhost"
    assert port_from_address("127.0.0.1:") == "127.0.0.1:"
    assert port_from_address("") == ""


def test_filter_by_port_is_exact():
    procs = [_proc(1, "8080x"), _proc(2, "18080"), _proc(3, "8080"), _proc(4, "808")]
    assert [p.pid for p in filter_by_port(procs, "8080")] == [3]
    assert filter_by_port(procs, "9999") == []


def test_unique_by_pid_is_stable():
    procs = [_proc(5, "1"), _proc(7, "2"), _proc(5, "3"), _proc(9, "4"), _proc(7, "5")]
    unique = unique_by_pid(procs)
    assert [p.pid for p in unique] == [5, 7, 9]
    assert [p.port for p in unique] == ["1", "2", "4"]
    assert unique_by_pid([]) == []
