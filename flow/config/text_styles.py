"""
Settings that define the visual appearance of text outputs.
"""

import re

from rich.highlighter import _combine_regex, RegexHighlighter
from rich.style import Style

## Settings

CONSOLE_WRAP_WIDTH = 80
"""Wrap width for console output."""


## Colors

COLOR_STATUS = "yellow"

COLOR_HELP = "bright_blue"

COLOR_KEY = "bright_blue"

COLOR_VALUE = "cyan"

COLOR_PATH = "cyan"

COLOR_HINT = "bright_black"

COLOR_SUCCESS = "green"

COLOR_FAILURE = "bright_red"

COLOR_ERROR = "bright_red"


## Symbols and emojis

EMOJI_WARN = "△"

EMOJI_ERROR = EMOJI_WARN + EMOJI_WARN

EMOJI_SUCCESS = "[✓]"

EMOJI_SKIP = "[−]"

EMOJI_FAILURE = "[✗]"

EMOJI_TRUE = "✓"

EMOJI_FALSE = "✗"


def emoji_bool(value: bool) -> str:
    return EMOJI_TRUE if value else EMOJI_FALSE


## Rich setup


class FlowHighlighter(RegexHighlighter):
    """
    Highlighter for log and console output: status emojis, pids, addresses, and code spans.
    """

    base_style = "flow."
    highlights = [
        _combine_regex(
            f"(?P<success>{re.escape(EMOJI_SUCCESS)})",
            f"(?P<skip>{re.escape(EMOJI_SKIP)})",
            f"(?P<failure>{re.escape(EMOJI_FAILURE)})",
            f"(?P<warn>{re.escape(EMOJI_WARN)})",
        ),
        _combine_regex(
            r"\b(?P<pid>pid \d+)\b",
            r"(?P<address>(?:\[[0-9a-fA-F:]*\]|[0-9]{1,3}(?:\.[0-9]{1,3}){3}|\*):[\w*-]+)",
            r"(?P<path>\B(/[-\w._+]+)*\/)(?P<filename>[-\w._+]*)?",
            r"(?P<code_span>`[^`\n]+`)",
        ),
    ]


RICH_STYLES = {
    "flow.success": Style(color=COLOR_SUCCESS, bold=True),
    "flow.skip": Style(color=COLOR_SUCCESS, bold=True),
    "flow.failure": Style(color=COLOR_ERROR, bold=True),
    "flow.warn": Style(color=COLOR_VALUE, bold=True),
    "flow.pid": Style(color=COLOR_KEY),
    "flow.address": Style(color=COLOR_VALUE),
    "flow.path": Style(color=COLOR_PATH),
    "flow.filename": Style(color=COLOR_VALUE),
    "flow.code_span": Style(color=COLOR_VALUE, italic=False),
}
