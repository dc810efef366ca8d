"""
Version information for the IOTA toolkit.
"""
import importlib.metadata
import pathlib

import tomli

DEFAULT_VERSION = "0.3.0"

try:
    __version__ = importlib.metadata.version("iota-toolkit")
except importlib.metadata.PackageNotFoundError:
    # Source checkout: read pyproject.toml
    try:
        path = pathlib.Path(__file__).parent.parent / "pyproject.toml"
        with path.open("rb") as f:
            data = tomli.load(f)
        __version__ = data["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        __version__ = DEFAULT_VERSION
