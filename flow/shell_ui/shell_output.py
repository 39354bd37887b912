"""
Output to the shell UI. These are for user interaction, not logging.
"""

import textwrap
from enum import Enum
from typing import List, Optional

import rich.style
from rich.console import Group, OverflowMethod, RenderableType
from rich.text import Text

from flow.config.logger import get_console
from flow.config.text_styles import (
    COLOR_FAILURE,
    COLOR_HELP,
    COLOR_HINT,
    COLOR_KEY,
    COLOR_STATUS,
    COLOR_SUCCESS,
    CONSOLE_WRAP_WIDTH,
    emoji_bool,
)

DEFAULT_INDENT = "    "


class Wrap(Enum):
    """
    A few standard text wrapping styles.
    """

    NONE = "none"
    """No wrapping."""

    WRAP = "wrap"
    """Basic wrapping, one paragraph at a time."""

    WRAP_INDENT = "wrap_indent"
    """Wrap and also indent."""

    @property
    def should_wrap(self) -> bool:
        return self in [Wrap.WRAP, Wrap.WRAP_INDENT]

    @property
    def indent(self) -> str:
        return DEFAULT_INDENT if self == Wrap.WRAP_INDENT else ""


def fill_text(text: str, text_wrap: Wrap = Wrap.WRAP, width: int = CONSOLE_WRAP_WIDTH) -> str:
    if not text_wrap.should_wrap:
        return text
    paragraphs = text.split("\n\n")
    return "\n\n".join(
        textwrap.fill(
            paragraph,
            width=width,
            initial_indent=text_wrap.indent,
            subsequent_indent=text_wrap.indent,
        )
        for paragraph in paragraphs
    )


def format_name_and_description(
    name: str | Text, doc: str | Text, text_wrap: Wrap = Wrap.WRAP_INDENT
) -> Text:
    if isinstance(name, str):
        name = Text(name, style=COLOR_KEY)
    if isinstance(doc, str):
        doc = fill_text(textwrap.dedent(doc).strip(), text_wrap=text_wrap)

    return Text.assemble(name, (": ", COLOR_HINT), "\n", doc)


def format_paragraphs(*paragraphs: str | Text) -> Text:
    text: List[str | Text] = []
    for paragraph in paragraphs:
        if text:
            text.append("\n\n")
        text.append(paragraph)

    return Text.assemble(*text)


def format_success_or_failure(
    value: bool, true_str: str | Text = "", false_str: str | Text = "", space: str = ""
) -> Text:
    """
    Format a success or failure message with an emoji followed by the true or false string.
    If false_str is not provided, it will be the same as true_str.
    """
    emoji = Text(emoji_bool(value), style=COLOR_SUCCESS if value else COLOR_FAILURE)
    if true_str or false_str:
        return Text.assemble(emoji, space, true_str if value else (false_str or true_str))
    else:
        return emoji


null_style = rich.style.Style.null()


def rich_print(
    *args: RenderableType,
    width: Optional[int] = None,
    overflow: Optional[OverflowMethod] = "fold",
    **kwargs,
):
    console = get_console()
    if len(args) == 0:
        renderable = ""
    elif len(args) == 1:
        renderable = args[0]
    else:
        renderable = Group(*args)

    console.print(renderable, width=width, overflow=overflow, **kwargs)


def cprint(
    message: RenderableType = "",
    *args,
    text_wrap: Wrap = Wrap.NONE,
    color=None,
    end="\n",
):
    """
    Main way to print to the shell. Wraps `rich_print` with %-style args and text fill.
    """
    if not message:
        rich_print(Text("", style=null_style))
        return

    if isinstance(message, str):
        text = message % args if args else message
        rich_print(Text(fill_text(text, text_wrap), color or null_style), end=end)
    else:
        rich_print(message, end=end)


def print_status(message: str, *args, text_wrap: Wrap = Wrap.NONE):
    cprint(message, *args, text_wrap=text_wrap, color=COLOR_STATUS)


def print_result(message: str, *args, text_wrap: Wrap = Wrap.NONE):
    cprint(message, *args, text_wrap=text_wrap)


def print_help(message: str, *args, text_wrap: Wrap = Wrap.WRAP):
    cprint(message, *args, text_wrap=text_wrap, color=COLOR_HELP)


## Tests


def test_fill_text():
    long = "word " * 30
    filled = fill_text(long.strip(), Wrap.WRAP, width=20)
    assert all(len(line) <= 20 for line in filled.splitlines())
    assert fill_text("a\n  b", Wrap.NONE) == "a\n  b"
    assert fill_text("one\n\ntwo", Wrap.WRAP_INDENT).splitlines() == [
        "    one",
        "",
        "    two",
    ]


def test_format_success_or_failure():
    assert format_success_or_failure(True, "Found").plain == "✓Found"
    assert format_success_or_failure(False, "Found", "Not found!", space=" ").plain == (
        "✗ Not found!"
    )
    assert format_success_or_failure(False).plain == "✗"


def test_cprint_formats_args(capsys):
    cprint("Killed %s (pid %d)", "node", 42)
    assert "Killed node (pid 42)" in capsys.readouterr().out
