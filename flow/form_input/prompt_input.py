from typing import Optional, Sequence

from InquirerPy.base.control import Choice
from InquirerPy.prompts.fuzzy import FuzzyPrompt
from InquirerPy.utils import InquirerPyStyle

from flow.config.logger import get_logger

log = get_logger(__name__)

custom_style = InquirerPyStyle(
    {
        "questionmark": "ansibrightgreen",
        "answermark": "ansibrightblack",
        "answer": "ansicyan",
        "input": "ansicyan",
        "question": "ansibrightgreen bold",
        "answered_question": "ansibrightblack",
        "instruction": "ansibrightblack",
        "long_instruction": "ansibrightblack",
        "pointer": "ansibrightyellow",
        "marker": "ansiyellow",
        "fuzzy_prompt": "ansimagenta",
        "fuzzy_info": "ansiwhite",
        "fuzzy_border": "ansibrightblack",
        "fuzzy_match": "ansimagenta",
        "skipped": "ansibrightblack",
        "separator": "",
        "validator": "",
    }
)


def prompt_fuzzy_choice(prompt_text: str, choices: Sequence[str]) -> Optional[int]:
    """
    Let the user fuzzy-pick one of `choices`. Returns the index picked, or None if
    the user cancelled (ctrl-c, ctrl-d, or the skip key).
    """
    prompt = FuzzyPrompt(
        message=prompt_text,
        choices=[Choice(value=i, name=choice) for i, choice in enumerate(choices)],
        style=custom_style,
        qmark="",
        amark="",
        mandatory=False,
        border=True,
        info=True,
    )
    try:
        result = prompt.execute()
    except (KeyboardInterrupt, EOFError):
        log.info("Selection cancelled")
        return None

    if result is None:
        log.info("Selection skipped")
    return result


## Tests


def _fake_prompt(monkeypatch, outcome, seen: dict):
    class FakePrompt:
        def __init__(self, **kwargs):
            seen.update(kwargs)

        def execute(self):
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome

    monkeypatch.setattr("flow.form_input.prompt_input.FuzzyPrompt", FakePrompt)


def test_prompt_fuzzy_choice_cancel(monkeypatch):
    for outcome in [KeyboardInterrupt(), EOFError(), None]:
        _fake_prompt(monkeypatch, outcome, {})
        assert prompt_fuzzy_choice("killPort> ", ["a", "b"]) is None


def test_prompt_fuzzy_choice_returns_index(monkeypatch):
    seen: dict = {}
    _fake_prompt(monkeypatch, 2, seen)
    lines = ["node (1) *:3000", "node (1) *:3001", "python (2) 127.0.0.1:8000"]
    assert prompt_fuzzy_choice("killPort> ", lines) == 2

    assert seen["message"] == "killPort> "
    assert [(c.value, c.name) for c in seen["choices"]] == list(enumerate(lines))
    assert seen["mandatory"] is False


def test_prompt_fuzzy_choice_other_errors_propagate(monkeypatch):
    _fake_prompt(monkeypatch, RuntimeError("no terminal"), {})
    try:
        prompt_fuzzy_choice("killPort> ", ["a"])
        assert False, "expected RuntimeError"
    except RuntimeError as e:
        assert str(e) == "no terminal"
