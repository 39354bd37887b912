from typing import Optional

from flow.commands.command_registry import CommandContext, flow_command
from flow.config.logger import get_logger
from flow.exec.port_killer import KillOutcome, KillResult, PortKiller
from flow.shell_ui.shell_output import print_result, print_status

log = get_logger(__name__)


def report_kill_result(result: KillResult) -> None:
    if result.outcome == KillOutcome.killed:
        print_result(result.message)
    else:
        print_status(result.message)


def port_killer_for(ctx: CommandContext) -> PortKiller:
    return PortKiller(prompt=ctx.settings.kill_port_prompt)


@flow_command
def kill_port(ctx: CommandContext, port: Optional[str] = None) -> None:
    """
    Kill a process by the port it listens on, optionally with fuzzy finder.

    With a port, the process listening on it is killed right away, or you pick
    one if several processes share the port. Without a port, pick from all
    listening sockets.
    """
    result = port_killer_for(ctx).resolve(port)
    log.info("kill_port result: %s", result.outcome.value)
    report_kill_result(result)


## Tests


def test_kill_port_command(monkeypatch, capsys, tmp_path):
    from flow.config.settings import load_settings
    from flow.model.listening_model import ListeningProcess

    proc = ListeningProcess(
        command="node", user="levy", pid=321, address="*:3000", port="3000", raw=""
    )
    signaled = []

    monkeypatch.setattr(
        "flow.commands.port_commands.port_killer_for",
        lambda ctx: PortKiller(lambda: [proc], lambda prompt, lines: None, signaled.append),
    )
    ctx = CommandContext(load_settings({"FLOW_LOG_DIR": str(tmp_path)}))

    kill_port(ctx, "3000")
    assert signaled == [321]
    assert "Killed node (pid 321) listening on *:3000" in capsys.readouterr().out

    kill_port(ctx, "4000")
    assert "No listening process found on port 4000." in capsys.readouterr().out

    kill_port(ctx)
    assert "Cancelled" in capsys.readouterr().out
    assert signaled == [321]
