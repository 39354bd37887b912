import pytest


@pytest.fixture(autouse=True)
def flow_test_env(tmp_path, monkeypatch):
    """
    Keep test logs out of the home directory and ignore the user's flow config.
    """
    monkeypatch.setenv("FLOW_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("FLOW_CONSOLE_LOG_LEVEL", "warning")
    for key in ("FLOW_FILE_LOG_LEVEL", "FLOW_UPGRADE_SCRIPT_PATH", "FLOW_CONFIG_ROOT"):
        monkeypatch.delenv(key, raising=False)
