from typing import Optional

from flow.commands.command_registry import CommandContext, flow_command
from flow.config.logger import get_logger, log_file_path
from flow.config.settings import APP_NAME
from flow.help.command_help import print_command_help, print_root_help
from flow.shell_tools.native_tools import run_script
from flow.shell_tools.tool_deps import tool_check
from flow.shell_ui.shell_output import cprint, print_help, print_status

log = get_logger(__name__)


@flow_command
def version(ctx: CommandContext) -> None:
    """
    Reports the current version of flow.
    """
    from flow.version import get_version

    cprint(get_version())


@flow_command
def help(ctx: CommandContext, command_name: Optional[str] = None) -> None:
    """
    Help about any command.
    """
    if not command_name:
        print_root_help()
    elif not print_command_help(command_name):
        print_help(f"Unknown help topic {command_name!r}")


@flow_command
def check_tools(ctx: CommandContext) -> None:
    """
    Check that the external tools flow relies on are installed.
    """
    cprint("Checking for required tools:")
    cprint()
    cprint(tool_check().formatted())
    cprint()
    tool_check().warn_if_missing()
    log_path = log_file_path()
    if log_path:
        print_status("Logging to: %s", log_path)


@flow_command
def update_go_version(ctx: CommandContext) -> None:
    """
    Upgrade Go using the workspace script.

    The script is `$FLOW_UPGRADE_SCRIPT_PATH` if set, otherwise
    `$FLOW_CONFIG_ROOT/sh/upgrade-go-version.sh`, otherwise
    `~/src/config/sh/upgrade-go-version.sh`.
    """
    script_path = ctx.settings.upgrade_script_path
    log.info("%s: running %s", APP_NAME, script_path)
    run_script(script_path)
