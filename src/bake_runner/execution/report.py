"""Reporting structures for task runs."""

from __future__ import annotations

import dataclasses
import enum
from typing import Tuple

from .trace import TraceFrame


class RunState(enum.Enum):
    IDLE = "idle"
    PARSED = "parsed"
    RESOLVED = "resolved"
    LOADED = "loaded"
    DISPATCHING = "dispatching"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclasses.dataclass(slots=True)
class RunReport:
    task_name: str
    state: RunState = RunState.IDLE
    exit_code: int = 0
    stacktrace: Tuple[TraceFrame, ...] = ()

    def as_dict(self) -> dict:
        return {
            "task": self.task_name,
            "state": self.state.value,
            "exit_code": self.exit_code,
            "stacktrace": [frame.render() for frame in self.stacktrace],
        }
