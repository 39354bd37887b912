from importlib import metadata
from pathlib import Path

import tomllib

DIST_NAME = "flow-cli"


def get_pyproject_version() -> str:
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    pyproject_data = tomllib.loads(pyproject_path.read_text())
    return pyproject_data["tool"]["poetry"]["version"]


def get_version() -> str:
    try:
        # Get the version from the installed package metadata.
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        # For development: running from a source checkout.
        return get_pyproject_version()


if __name__ == "__main__":
    print(get_version())
