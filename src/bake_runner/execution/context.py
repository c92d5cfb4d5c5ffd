"""Invocation context handed from the command line to the engine."""

from __future__ import annotations

import dataclasses
import pathlib
from typing import Dict, Tuple

from ..config import RunConfig


@dataclasses.dataclass(frozen=True, slots=True)
class InvocationContext:
    """Everything one ``bake`` invocation needs to run a task."""

    project_root: pathlib.Path
    task_file: pathlib.Path
    explicit_file: bool
    variables: Dict[str, str]
    task_name: str
    task_args: Tuple[str, ...]
    config: RunConfig = dataclasses.field(default_factory=RunConfig)

    def environment(self) -> Dict[str, str]:
        """Return the bindings exported to the process and the task file."""

        bindings = dict(self.variables)
        bindings["BAKE_ROOT"] = str(self.project_root)
        bindings["BAKE_FILE"] = str(self.task_file)
        return bindings
