"""Task registry built from the namespace of a loaded task file."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from ..errors import TaskNotFound
from .catalog import TASK_PREFIX

logger = logging.getLogger(__name__)

TaskHandler = Callable[..., Any]

INIT_HOOK = "init"


@dataclasses.dataclass(slots=True)
class TaskDefinition:
    name: str
    handler: TaskHandler

    def run(self, *args: str) -> Any:
        return self.handler(*args)


class TaskRegistry:
    """Book-keeping for the tasks a task file defines."""

    def __init__(self, init_hook: Optional[TaskHandler] = None) -> None:
        self._tasks: Dict[str, TaskDefinition] = {}
        self.init_hook = init_hook

    @classmethod
    def from_namespace(cls, namespace: Mapping[str, Any]) -> "TaskRegistry":
        init_hook = namespace.get(INIT_HOOK)
        registry = cls(init_hook if callable(init_hook) else None)
        for attribute, value in namespace.items():
            if attribute.startswith(TASK_PREFIX) and callable(value):
                registry.register(attribute[len(TASK_PREFIX):], value)
        logger.debug("Registered %d task(s)", len(registry._tasks))
        return registry

    def register(self, name: str, handler: TaskHandler) -> None:
        self._tasks[name] = TaskDefinition(name=name, handler=handler)

    def get(self, name: str) -> TaskDefinition:
        try:
            return self._tasks[name]
        except KeyError as exc:
            raise TaskNotFound(name) from exc

    def __contains__(self, name: str) -> bool:
        return name in self._tasks


__all__ = ["INIT_HOOK", "TaskDefinition", "TaskHandler", "TaskRegistry"]
