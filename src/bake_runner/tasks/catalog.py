"""Static discovery of the tasks declared in a task file."""

from __future__ import annotations

import logging
import pathlib
import re
from typing import Iterable, List, Tuple

logger = logging.getLogger(__name__)

TASK_PREFIX = "task_"

# Matches ``def task_<name>(`` at any indentation; the file is never executed.
DECLARATION_RE = re.compile(r"^\s*def\s+" + TASK_PREFIX + r"(\w+)\s*\(")

TaskCatalog = Tuple[str, ...]


def scan_lines(lines: Iterable[str]) -> TaskCatalog:
    names: List[str] = []
    for line in lines:
        match = DECLARATION_RE.match(line)
        if match:
            names.append(match.group(1))
    return tuple(names)


def scan_tasks(path: pathlib.Path) -> TaskCatalog:
    """Return task names declared in ``path`` in file order, duplicates kept."""

    with path.open("r", encoding="utf-8", errors="replace") as handle:
        catalog = scan_lines(handle)
    logger.debug("Scanned %d task declaration(s) in %s", len(catalog), path)
    return catalog


def render_catalog(catalog: TaskCatalog) -> List[str]:
    if not catalog:
        return ["Tasks:", "  -> (no tasks)"]
    return ["Tasks:", *(f"  -> {name}" for name in catalog)]
