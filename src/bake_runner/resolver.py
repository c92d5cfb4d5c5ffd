"""Locate the project root and the task file."""

from __future__ import annotations

import dataclasses
import logging
import pathlib
from typing import Optional

from .errors import MissingValue, NotAFile, NotFound

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "Bakefile.py"


@dataclasses.dataclass(frozen=True, slots=True)
class ResolvedPaths:
    root: pathlib.Path
    file: pathlib.Path


def resolve_paths(
    explicit_file: Optional[str] = None,
    *,
    start: Optional[pathlib.Path] = None,
) -> ResolvedPaths:
    """Return the project root and task file.

    With ``explicit_file`` the root is the canonical parent directory of that
    path. Otherwise the directories from ``start`` (default: the current
    working directory) up to the filesystem root are searched for
    ``Bakefile.py``. The working directory is never changed here.
    """

    if explicit_file is not None:
        return _resolve_explicit(explicit_file)
    return _search_upwards(pathlib.Path.cwd() if start is None else start)


def _resolve_explicit(explicit_file: str) -> ResolvedPaths:
    if not explicit_file:
        raise MissingValue("File must not be empty")

    path = pathlib.Path(explicit_file)
    if not path.exists():
        raise NotFound(f"Specified file '{explicit_file}' does not exist")
    if not path.is_file():
        raise NotAFile(f"Specified path '{explicit_file}' is not actually a file")

    root = path.absolute().parent.resolve()
    resolved = ResolvedPaths(root=root, file=root / path.name)
    logger.debug("Using explicit task file %s", resolved.file)
    return resolved


def _search_upwards(start: pathlib.Path) -> ResolvedPaths:
    current = start.absolute().resolve()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_FILENAME
        logger.debug("Looking for %s", candidate)
        if candidate.is_file():
            return ResolvedPaths(root=directory, file=candidate)
    raise NotFound(f"Could not find '{DEFAULT_FILENAME}'")
