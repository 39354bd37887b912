"""
Unified hierarchy of error types. These inherit from standard errors like
ValueError but are more fine-grained.
"""

from typing import Optional, Tuple, Type


class FlowRuntimeError(ValueError):
    """Base class for flow runtime errors."""

    pass


class SelfExplanatoryError(FlowRuntimeError):
    """Common errors that arise from 'normal' problems that are largely self-explanatory,
    i.e., no stack trace should be necessary when reporting to the user."""

    pass


class InvalidInput(SelfExplanatoryError):
    """Raised when the wrong kind of input is given to a command."""

    pass


class UsageError(InvalidInput):
    """Raised when a command gets the wrong number or shape of arguments."""

    def __init__(self, message: str, usage: str = ""):
        super().__init__(message)
        self.usage = usage


class InvalidCommand(InvalidInput):
    """Raised when a command is not valid."""

    pass


class SetupError(SelfExplanatoryError):
    """Raised when a tool is not installed or something in the environment
    isn't set up right."""

    pass


class QueryError(SelfExplanatoryError):
    """Raised when listing sockets fails or the listing tool is unavailable."""

    pass


class ExternalCommandError(SelfExplanatoryError):
    """Raised when an external command or script runs but exits with an error."""

    pass


class SelectionError(SelfExplanatoryError):
    """Raised when interactive selection fails for a reason other than the user cancelling."""

    def __init__(self, cause: BaseException):
        super().__init__(f"select port: {cause}")
        self.cause = cause


class SignalError(SelfExplanatoryError):
    """Raised when a termination signal can't be delivered to a live process."""

    def __init__(self, pid: int, cause: Optional[BaseException] = None):
        super().__init__(f"kill pid {pid}: {cause}")
        self.pid = pid
        self.cause = cause


def _nonfatal_exceptions() -> Tuple[Type[Exception], ...]:
    exceptions = [
        SelfExplanatoryError,
        FileNotFoundError,
        IOError,
    ]

    return tuple(exceptions)


NONFATAL_EXCEPTIONS = _nonfatal_exceptions()
"""Exceptions that are not fatal and usually don't merit a full stack trace."""


def is_fatal(exception: Exception) -> bool:
    for e in NONFATAL_EXCEPTIONS:
        if isinstance(exception, e):
            return False
    return True


## Tests


def test_error_messages():
    err = SignalError(4242, PermissionError(1, "Operation not permitted"))
    assert str(err) == "kill pid 4242: [Errno 1] Operation not permitted"
    assert err.pid == 4242

    sel = SelectionError(RuntimeError("terminal closed"))
    assert str(sel) == "select port: terminal closed"
    assert isinstance(sel.cause, RuntimeError)

    usage = UsageError("expected at most 1 argument, got 2", usage="flow kill_port [port]")
    assert usage.usage == "flow kill_port [port]"


def test_is_fatal():
    assert not is_fatal(QueryError("list listening ports: boom"))
    assert not is_fatal(UsageError("bad"))
    assert not is_fatal(FileNotFoundError("missing"))
    assert not is_fatal(ExternalCommandError("running up.sh: exit status 3"))
    assert is_fatal(RuntimeError("oops"))
    assert is_fatal(KeyError("x"))
