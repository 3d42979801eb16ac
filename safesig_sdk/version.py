"""
Version information for the Safe signature SDK.

The version is declared once, in ``pyproject.toml``. Installed copies read
it from package metadata; source checkouts read the file directly.
"""
import importlib.metadata
import pathlib
import tomli

DISTRIBUTION_NAME = "safesig-sdk"
PYPROJECT_PATH = pathlib.Path(__file__).parent.parent / "pyproject.toml"

# Reported when neither metadata nor pyproject.toml is available
UNKNOWN_VERSION = "0.0.0"


def _pyproject_version(path: pathlib.Path = PYPROJECT_PATH) -> str:
    try:
        with path.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        return UNKNOWN_VERSION


def get_version() -> str:
    try:
        return importlib.metadata.version(DISTRIBUTION_NAME)
    except importlib.metadata.PackageNotFoundError:
        return _pyproject_version()


__version__ = get_version()
