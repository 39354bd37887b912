from typing import Callable, Optional, TypeVar

from flow.config.logger import get_logger
from flow.config.text_styles import COLOR_ERROR
from flow.errors import NONFATAL_EXCEPTIONS

log = get_logger(__name__)


def summarize_traceback(exception: Exception) -> str:
    exception_str = str(exception)
    lines = exception_str.splitlines()
    exc_type = type(exception).__name__
    return f"{exc_type}: " + "\n".join(
        [
            line
            for line in lines
            if line.strip() and not line.lstrip().startswith("Traceback")
            and not line.lstrip().startswith("The above exception") and not line.startswith("    ")
        ]
    )


R = TypeVar("R")


def wrap_with_exception_printing(func: Callable[..., R]) -> Callable[..., Optional[R]]:
    """
    Log nonfatal errors as a one-line summary (details go to the log file) and
    re-raise them so the caller can pick an exit status. Other errors propagate
    with their traceback.
    """

    def command(*args) -> Optional[R]:
        try:
            log.info(
                "Command function call: %s(%s)",
                func.__name__,
                (", ".join(str(arg) for arg in args)),
            )
            return func(*args)
        except NONFATAL_EXCEPTIONS as e:
            log.error(f"[{COLOR_ERROR}]Command error:[/{COLOR_ERROR}] %s", summarize_traceback(e))
            log.info("Command error details: %s", e, exc_info=True)
            raise

    command.__name__ = func.__name__
    command.__doc__ = func.__doc__
    command.__wrapped__ = func.__wrapped__ if hasattr(func, "__wrapped__") else func
    return command


## Tests


def test_summarize_traceback():
    from flow.errors import QueryError

    assert (
        summarize_traceback(QueryError("list listening ports: boom"))
        == "QueryError: list listening ports: boom"
    )
    assert summarize_traceback(ValueError("a\n    indented\nb")) == "ValueError: a\nb"


def test_wrap_reraises_nonfatal():
    from flow.errors import SignalError

    def failing(pid):
        raise SignalError(pid, PermissionError("denied"))

    wrapped = wrap_with_exception_printing(failing)
    assert wrapped.__name__ == "failing"
    try:
        wrapped(7)
        assert False, "expected SignalError"
    except SignalError as e:
        assert e.pid == 7
