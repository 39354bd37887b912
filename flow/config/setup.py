import os
from typing import Mapping, Optional

from cachetools import cached
from dotenv import find_dotenv, load_dotenv

from flow.config.logger import logging_setup
from flow.config.settings import load_settings, Settings


def env_setup() -> str | None:
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)
    return dotenv_path


@cached(cache={})
def _logging_once(settings: Settings) -> None:
    logging_setup(settings)


def setup(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Resolve settings for a single command invocation and set up logging for them.
    Logging setup is idempotent for identical settings.
    """
    if environ is None:
        env_setup()
        environ = os.environ

    settings = load_settings(environ)
    _logging_once(settings)
    return settings


## Tests


def test_setup_is_idempotent(tmp_path):
    environ = {"FLOW_LOG_DIR": str(tmp_path), "FLOW_CONSOLE_LOG_LEVEL": "error"}
    first = setup(environ)
    second = setup(environ)
    assert first == second
    assert (tmp_path / "flow.log").exists()
