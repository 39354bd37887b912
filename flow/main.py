"""
Main entry point for flow.
"""

import sys
from typing import List, Optional

import flow.commands  # noqa: F401
from flow.commands.command_registry import (
    all_commands,
    CommandContext,
    CommandFunction,
    look_up_command,
)
from flow.config.logger import get_logger
from flow.config.settings import APP_NAME, COMMAND_PALETTE_PROMPT, Settings
from flow.config.setup import setup
from flow.errors import FlowRuntimeError, InvalidInput, NONFATAL_EXCEPTIONS, UsageError
from flow.form_input.prompt_input import prompt_fuzzy_choice
from flow.help.command_help import (
    arg_count_range,
    command_summary,
    command_usage,
    print_command_help,
    print_root_help,
)
from flow.shell_tools.exception_printing import wrap_with_exception_printing

log = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2

HELP_FLAGS = ("--help", "-h")


def is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def select_command_args() -> Optional[List[str]]:
    """
    With no arguments on a terminal, let the user fuzzy-pick a command to run.
    Returns the arguments to run, an empty list if the user cancelled, or None if
    there is no terminal or the picker could not run.
    """
    if not is_interactive():
        return None

    commands = all_commands()
    names = list(commands)
    lines = [f"{name}  {command_summary(command)}" for name, command in commands.items()]
    try:
        index = prompt_fuzzy_choice(COMMAND_PALETTE_PROMPT, lines)
    except Exception as e:
        log.error("command palette: %s", e)
        return None

    if index is None:
        return []
    return [names[index]]


def open_current_directory() -> None:
    from flow.shell_tools.native_tools import native_open

    try:
        native_open(".")
    except FlowRuntimeError as e:
        print(f"open . failed: {e}")
        print_root_help()


def handle_top_level(args: List[str]) -> Optional[int]:
    """
    Handle invocations that aren't a plain command: no arguments, help, and version.
    Returns an exit status if handled, otherwise None.
    """
    if not args:
        open_current_directory()
        return EXIT_OK

    first = args[0]
    if first in HELP_FLAGS or first == "h":
        print_root_help()
        return EXIT_OK
    elif first == "--version":
        from flow.version import get_version

        print(get_version())
        return EXIT_OK
    elif first.startswith("-"):
        print(f"Unrecognized option: {first}", file=sys.stderr)
        return EXIT_USAGE

    if len(args) > 1 and args[-1] in HELP_FLAGS:
        if not print_command_help(first):
            print_root_help()
        return EXIT_OK

    return None


def check_arg_count(command: CommandFunction, args: List[str]) -> None:
    min_args, max_args = arg_count_range(command)
    if len(args) > max_args:
        raise UsageError(
            f"expected at most {max_args} argument{'s' if max_args != 1 else ''}, got {len(args)}",
            usage=command_usage(command),
        )
    if len(args) < min_args:
        raise UsageError(
            f"expected {min_args} argument{'s' if min_args != 1 else ''}, got {len(args)}",
            usage=command_usage(command),
        )


def print_usage(e: UsageError) -> None:
    if e.usage:
        print(f"Usage: {e.usage}", file=sys.stderr)


def run_command(name: str, args: List[str], settings: Settings) -> int:
    # Bad command names and argument counts are reported before the command runs.
    try:
        command = look_up_command(name)
        check_arg_count(command, args)
    except InvalidInput as e:
        log.error("%s", e)
        if isinstance(e, UsageError):
            print_usage(e)
        return EXIT_USAGE

    try:
        wrap_with_exception_printing(command)(CommandContext(settings=settings), *args)
    except UsageError as e:
        print_usage(e)
        return EXIT_USAGE
    except NONFATAL_EXCEPTIONS:
        # Already reported.
        return EXIT_ERROR

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    # Settings and logging are set up before anything else.
    settings = setup()
    log.info("%s invoked with: %s", APP_NAME, argv)

    if not argv:
        selected = select_command_args()
        if selected == []:
            return EXIT_OK
        if selected:
            argv = selected

    status = handle_top_level(argv)
    if status is None:
        status = run_command(argv[0], argv[1:], settings)
    return status


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()


## Tests


def test_unknown_command(capsys):
    assert main(["noSuchCommand"]) == EXIT_USAGE


def test_kill_port_too_many_args_before_query(monkeypatch, capsys):
    import flow.commands.port_commands as port_commands

    def fail_if_called(ctx):
        raise AssertionError("should not build a killer")

    monkeypatch.setattr(port_commands, "port_killer_for", fail_if_called)
    assert main(["killPort", "8080", "9090"]) == EXIT_USAGE
    err = capsys.readouterr().err
    assert "Usage: flow kill_port [port]" in err


def test_kill_port_empty_port(monkeypatch, capsys):
    import flow.commands.port_commands as port_commands
    from flow.exec.port_killer import PortKiller

    listed = []
    monkeypatch.setattr(
        port_commands,
        "port_killer_for",
        lambda ctx: PortKiller(
            lambda: listed.append(1) or [], lambda prompt, lines: None, lambda pid: None
        ),
    )
    assert main(["kill_port", "  "]) == EXIT_USAGE
    assert listed == []
    assert "Usage: flow kill_port [port]" in capsys.readouterr().err


def test_kill_port_errors_exit_nonzero(monkeypatch):
    import flow.commands.port_commands as port_commands
    from flow.errors import QueryError
    from flow.exec.port_killer import PortKiller

    def broken_list():
        raise QueryError("list listening ports: lsof exited with status 1")

    monkeypatch.setattr(
        port_commands,
        "port_killer_for",
        lambda ctx: PortKiller(broken_list, lambda prompt, lines: None, lambda pid: None),
    )
    assert main(["kill_port"]) == EXIT_ERROR


def test_kill_port_non_error_outcomes_exit_zero(monkeypatch, capsys):
    import flow.commands.port_commands as port_commands
    from flow.exec.port_killer import PortKiller

    monkeypatch.setattr(
        port_commands,
        "port_killer_for",
        lambda ctx: PortKiller(lambda: [], lambda prompt, lines: None, lambda pid: None),
    )
    assert main(["killPort"]) == EXIT_OK
    assert "No listening TCP ports found." in capsys.readouterr().out


def test_help_and_version(capsys):
    assert main(["--help"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "flow is CLI to do things fast" in out
    assert "kill_port" in out

    assert main(["help", "killPort"]) == EXIT_OK
    assert "flow kill_port [port]" in capsys.readouterr().out

    assert main(["kill_port", "--help"]) == EXIT_OK
    assert "Kill a process by the port it listens on" in capsys.readouterr().out

    assert main(["help", "nope"]) == EXIT_OK
    assert "Unknown help topic 'nope'" in capsys.readouterr().out

    assert main(["--bogus"]) == EXIT_USAGE


def test_no_args_falls_back_to_help(monkeypatch, capsys):
    monkeypatch.setattr("flow.main.is_interactive", lambda: False)
    import flow.shell_tools.native_tools as native_tools
    from flow.errors import SetupError

    def no_opener(path="."):
        raise SetupError("`opener` (open or xdg-open) needed but not found")

    monkeypatch.setattr(native_tools, "native_open", no_opener)
    assert main([]) == EXIT_OK
    out = capsys.readouterr().out
    assert "open . failed: `opener`" in out
    assert "Available Commands:" in out


def test_update_go_version_failure_exits_nonzero(monkeypatch, tmp_path):
    script = tmp_path / "up.sh"
    script.write_text("#!/bin/sh\nexit 3\n")
    script.chmod(0o755)
    monkeypatch.setenv("FLOW_UPGRADE_SCRIPT_PATH", str(script))

    assert main(["update_go_version"]) == EXIT_ERROR


def test_update_go_version_missing_script_exits_nonzero(monkeypatch, tmp_path):
    monkeypatch.setenv("FLOW_UPGRADE_SCRIPT_PATH", str(tmp_path / "missing.sh"))
    assert main(["updateGoVersion"]) == EXIT_ERROR


def test_no_args_command_palette(monkeypatch, capsys):
    from flow.version import get_version

    shown = []

    def pick_version(prompt, lines):
        shown.extend(lines)
        return [line.split()[0] for line in lines].index("version")

    monkeypatch.setattr("flow.main.is_interactive", lambda: True)
    monkeypatch.setattr("flow.main.prompt_fuzzy_choice", pick_version)
    assert main([]) == EXIT_OK
    assert get_version() in capsys.readouterr().out
    assert any(line.startswith("kill_port  Kill a process") for line in shown)


def test_no_args_command_palette_cancelled(monkeypatch):
    import flow.shell_tools.native_tools as native_tools

    def fail_if_called(path="."):
        raise AssertionError("should not open anything")

    monkeypatch.setattr("flow.main.is_interactive", lambda: True)
    monkeypatch.setattr("flow.main.prompt_fuzzy_choice", lambda prompt, lines: None)
    monkeypatch.setattr(native_tools, "native_open", fail_if_called)
    assert main([]) == EXIT_OK
