"""Audius audio source: reference resolution and lazy media streaming."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("audius-source")
except PackageNotFoundError:
    # Development environment fallback
    __version__ = "0.1.0-dev"

__license__ = "MIT"

__all__ = ["__version__"]
