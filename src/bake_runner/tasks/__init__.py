"""Task discovery for the bake runner."""

from .catalog import TaskCatalog, render_catalog, scan_tasks
from .registry import TaskDefinition, TaskHandler, TaskRegistry

__all__ = [
    "TaskCatalog",
    "TaskDefinition",
    "TaskHandler",
    "TaskRegistry",
    "render_catalog",
    "scan_tasks",
]
