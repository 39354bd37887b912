import re
from dataclasses import dataclass
from typing import Any, Callable, Dict

from flow.config.logger import get_logger
from flow.config.settings import Settings
from flow.errors import InvalidCommand

log = get_logger(__name__)


@dataclass(frozen=True)
class CommandContext:
    """
    Everything a command needs that was resolved at command start.
    """

    settings: Settings


CommandFunction = Callable[..., Any]

_commands: Dict[str, CommandFunction] = {}


def flow_command(func: CommandFunction) -> CommandFunction:
    _commands[func.__name__] = func
    return func


def all_commands() -> Dict[str, CommandFunction]:
    """
    All commands, sorted by name.
    """
    return dict(sorted(_commands.items()))


def canonical_name(name: str) -> str:
    """
    Command names are snake_case but the camelCase spellings also work,
    e.g. `killPort` for `kill_port`.
    """
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name.strip()).lower()


def look_up_command(name: str) -> CommandFunction:
    cmd = _commands.get(canonical_name(name))
    if not cmd:
        raise InvalidCommand(f"Command `{name}` not found")
    return cmd


## Tests


def test_canonical_name():
    assert canonical_name("killPort") == "kill_port"
    assert canonical_name("updateGoVersion") == "update_go_version"
    assert canonical_name("kill_port") == "kill_port"
    assert canonical_name("version") == "version"


def test_look_up_command():
    @flow_command
    def sample_command(ctx: CommandContext) -> None:
        pass

    try:
        assert look_up_command("sampleCommand") is sample_command
        assert "sample_command" in all_commands()
        try:
            look_up_command("nopeCommand")
            assert False, "expected InvalidCommand"
        except InvalidCommand as e:
            assert "nopeCommand" in str(e)
    finally:
        _commands.pop("sample_command", None)
