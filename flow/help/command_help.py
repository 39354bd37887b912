import inspect
from textwrap import dedent
from typing import List, Tuple

from flow.commands.command_registry import all_commands, CommandFunction, look_up_command
from flow.config.settings import APP_DESCRIPTION, APP_NAME
from flow.errors import InvalidCommand
from flow.shell_ui.shell_output import cprint, format_name_and_description, print_help

GENERAL_HELP = f'Use "{APP_NAME} [command] --help" for more information about a command.'


def command_params(command: CommandFunction) -> List[inspect.Parameter]:
    """
    User-facing positional parameters, i.e. everything after the context argument.
    """
    params = list(inspect.signature(command).parameters.values())[1:]
    return [
        p
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]


def arg_count_range(command: CommandFunction) -> Tuple[int, int]:
    params = command_params(command)
    required = sum(1 for p in params if p.default is inspect.Parameter.empty)
    return required, len(params)


def command_usage(command: CommandFunction) -> str:
    args = []
    for param in command_params(command):
        if param.default is inspect.Parameter.empty:
            args.append(f"<{param.name}>")
        else:
            args.append(f"[{param.name}]")
    return " ".join([APP_NAME, command.__name__] + args)


def command_summary(command: CommandFunction) -> str:
    doc = dedent(command.__doc__ or "").strip()
    return doc.split("\n\n")[0].replace("\n", " ")


def print_command_function_help(command: CommandFunction) -> None:
    doc = dedent(command.__doc__ or "").strip()
    if doc:
        cprint(format_name_and_description(command.__name__, doc))
    else:
        print_help(f"Sorry, no help available for the `{command.__name__}` command.")
    cprint()
    cprint("Usage:")
    cprint(f"  {command_usage(command)}")


def print_command_help(name: str) -> bool:
    """
    Print help for one command. Returns False if there is no such command.
    """
    try:
        command = look_up_command(name)
    except InvalidCommand:
        return False
    print_command_function_help(command)
    return True


def print_root_help() -> None:
    commands = all_commands()
    width = max([len(name) for name in commands] + [len("help")]) + 2

    cprint(APP_DESCRIPTION)
    cprint()
    cprint("Usage:")
    cprint(f"  {APP_NAME} [command]")
    cprint()
    cprint("Available Commands:")
    for name, command in commands.items():
        cprint(f"  {name.ljust(width)} {command_summary(command)}")
    cprint()
    cprint("Flags:")
    cprint(f"  -h, --help   help for {APP_NAME}")
    cprint(f"  --version    version for {APP_NAME}")
    cprint()
    print_help(GENERAL_HELP)


## Tests


def _sample(ctx, port=None):
    """
    Kill a process by port.

    More details here.
    """


def _sample_required(ctx, url):
    pass


def test_command_usage():
    assert command_usage(_sample) == "flow _sample [port]"
    assert command_usage(_sample_required) == "flow _sample_required <url>"
    assert arg_count_range(_sample) == (0, 1)
    assert arg_count_range(_sample_required) == (1, 1)


def test_command_summary():
    assert command_summary(_sample) == "Kill a process by port."
    assert command_summary(_sample_required) == ""
