"""Bake: a minimal task runner driven by a ``Bakefile.py``."""

from importlib import metadata

__all__ = ["__version__"]


def __getattr__(name: str):
    if name == "__version__":
        return metadata.version("bake-runner")
    raise AttributeError(name)
