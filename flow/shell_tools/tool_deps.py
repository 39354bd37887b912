"""
Platform-specific tools and utilities.
"""

import shutil
from enum import Enum
from functools import cache
from typing import Optional

from cachetools import cached, TTLCache
from pydantic.dataclasses import dataclass
from rich.text import Text
from xonsh.platform import ON_DARWIN, ON_LINUX, ON_WINDOWS

from flow.config.logger import get_logger
from flow.config.text_styles import EMOJI_WARN
from flow.errors import SetupError
from flow.shell_ui.shell_output import (
    cprint,
    format_name_and_description,
    format_paragraphs,
    format_success_or_failure,
)


log = get_logger(__name__)


class OSPlatform(Enum):
    macos = "macos"
    linux = "linux"
    windows = "windows"
    unknown = "unknown"


@cache
def detect_platform() -> OSPlatform:
    if ON_DARWIN:
        return OSPlatform.macos
    elif ON_LINUX:
        return OSPlatform.linux
    elif ON_WINDOWS:
        return OSPlatform.windows
    else:
        return OSPlatform.unknown


@dataclass(frozen=True)
class ToolDep:
    """
    Information about a tool dependency and how to install it.
    """

    command_names: tuple[str, ...]
    comment: Optional[str] = None
    warn_if_missing: bool = False

    brew_pkg: Optional[str] = None
    apt_pkg: Optional[str] = None

    platforms: tuple[str, ...] = ()
    """If set, the platform each of `command_names` runs on, in the same order."""


class Tool(Enum):
    """
    External tools that flow shells out to.
    """

    lsof = ToolDep(
        ("lsof",),
        comment="Needed by `kill_port` to list listening TCP sockets.",
        brew_pkg="lsof",
        apt_pkg="lsof",
        warn_if_missing=True,
    )
    opener = ToolDep(
        ("open", "xdg-open"),
        comment="Used to open the current directory when run without arguments.",
        apt_pkg="xdg-utils",
        platforms=(OSPlatform.macos.value, OSPlatform.linux.value),
    )

    def commands_for(self, platform: OSPlatform) -> tuple[str, ...]:
        """
        The command names to look for on the given platform.
        """
        if not self.value.platforms:
            return self.value.command_names
        return tuple(
            name
            for name, name_platform in zip(self.value.command_names, self.value.platforms)
            if name_platform == platform.value
        )

    @property
    def full_name(self) -> str:
        name = self.name
        if self.value.command_names:
            name += f" ({' or '.join(f'`{name}`' for name in self.value.command_names)})"
        return name


@dataclass(frozen=True)
class InstalledTools:
    """
    Info about which tools are installed.
    """

    tools: dict[Tool, str | bool]

    def has(self, *tools: Tool) -> bool:
        return all(self.tools[tool] for tool in tools)

    def require(self, *tools: Tool) -> None:
        for tool in tools:
            if not self.has(tool):
                print_missing_tool_help(tool)
                raise SetupError(
                    f"`{tool.name}` ({' or '.join(tool.value.command_names)}) needed but not found"
                )

    def missing_tools(self, *tools: Tool) -> list[Tool]:
        if not tools:
            tools = tuple(Tool)
        return [tool for tool in tools if not self.tools[tool]]

    def warn_if_missing(self, *tools: Tool) -> None:
        for tool in self.missing_tools(*tools):
            if tool.value.warn_if_missing:
                print_missing_tool_help(tool)

    def items(self) -> list[tuple[Tool, str | bool]]:
        return sorted(self.tools.items(), key=lambda item: item[0].name)

    def formatted(self) -> Text:
        texts: list[Text] = []
        for tool, path in self.items():
            found_str = "Found" if isinstance(path, bool) else f"Found: `{path}`"
            doc = format_success_or_failure(bool(path), true_str=found_str, false_str="Not found!")
            texts.append(format_name_and_description(tool.name, doc))

        return format_paragraphs(*texts)


def print_missing_tool_help(tool: Tool):
    warn_str = f"{EMOJI_WARN} {tool.full_name} was not found; it is recommended to install it."
    if tool.value.comment:
        warn_str += f" {tool.value.comment}"
    install_str = get_install_suggestion(tool)
    if install_str:
        warn_str += f" {install_str}"

    cprint(warn_str)


def get_install_suggestion(*missing_tools: Tool) -> Optional[str]:
    platform = detect_platform()
    brew_pkgs = [tool.value.brew_pkg for tool in missing_tools if tool.value.brew_pkg]
    apt_pkgs = [tool.value.apt_pkg for tool in missing_tools if tool.value.apt_pkg]

    if platform == OSPlatform.macos and brew_pkgs:
        return "On macOS, try using Homebrew: `brew install %s`" % " ".join(brew_pkgs)
    elif platform == OSPlatform.linux and apt_pkgs:
        return "On Linux, try using your package manager, e.g.: `sudo apt install %s`" % " ".join(
            apt_pkgs
        )
    return None


def which_tool(tool: Tool) -> str | None:
    names = tool.commands_for(detect_platform())
    return next(filter(None, (shutil.which(name) for name in names)), None)


_tools_cache = TTLCache(maxsize=1, ttl=5.0)


@cached(_tools_cache)
def tool_check() -> InstalledTools:
    """
    Check which third-party tools are installed.
    """
    tools: dict[Tool, str | bool] = {}
    for tool in Tool:
        tools[tool] = which_tool(tool) or False

    log.debug("Tool check: %s", tools)
    return InstalledTools(tools)


## Tests


def test_installed_tools():
    installed = InstalledTools({Tool.lsof: "/usr/sbin/lsof", Tool.opener: False})
    assert installed.has(Tool.lsof)
    assert not installed.has(Tool.lsof, Tool.opener)
    assert installed.missing_tools() == [Tool.opener]
    installed.require(Tool.lsof)
    try:
        installed.require(Tool.opener)
        assert False, "expected SetupError"
    except SetupError as e:
        assert "opener" in str(e)


def test_tool_check_uses_which(monkeypatch):
    monkeypatch.setattr("flow.shell_tools.tool_deps.detect_platform", lambda: OSPlatform.linux)
    monkeypatch.setattr(shutil, "which", lambda name: "/bin/xdg-open" if name == "xdg-open" else None)
    _tools_cache.clear()
    try:
        installed = tool_check()
        assert installed.tools[Tool.opener] == "/bin/xdg-open"
        assert installed.tools[Tool.lsof] is False
    finally:
        _tools_cache.clear()


def test_full_name():
    assert Tool.opener.full_name == "opener (`open` or `xdg-open`)"


def test_opener_command_per_platform():
    assert Tool.opener.commands_for(OSPlatform.macos) == ("open",)
    assert Tool.opener.commands_for(OSPlatform.linux) == ("xdg-open",)
    assert Tool.opener.commands_for(OSPlatform.windows) == ()
    assert Tool.lsof.commands_for(OSPlatform.linux) == ("lsof",)


def test_linux_ignores_open_alias(monkeypatch):
    # On Debian, `open` is an alias for openvt, which can't open files.
    monkeypatch.setattr(shutil, "which", lambda name: "/bin/open" if name == "open" else None)
    monkeypatch.setattr("flow.shell_tools.tool_deps.detect_platform", lambda: OSPlatform.linux)
    assert which_tool(Tool.opener) is None

    monkeypatch.setattr("flow.shell_tools.tool_deps.detect_platform", lambda: OSPlatform.macos)
    assert which_tool(Tool.opener) == "/bin/open"
