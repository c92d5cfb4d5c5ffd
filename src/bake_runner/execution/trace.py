"""Stacktrace capture for failed task runs."""

from __future__ import annotations

import dataclasses
import os
import pathlib
import traceback
from typing import Any, Callable, List, Optional, Tuple

_PACKAGE_DIR = pathlib.Path(__file__).resolve().parents[1]


@dataclasses.dataclass(frozen=True, slots=True)
class TraceFrame:
    function_name: str
    source_file: str
    line_number: int

    def render(self) -> str:
        return f"{self.function_name} ({self.source_file}:{self.line_number})"


def _is_runner_frame(filename: str) -> bool:
    try:
        path = pathlib.Path(filename).resolve()
    except (OSError, RuntimeError):
        return False
    return path == _PACKAGE_DIR or _PACKAGE_DIR in path.parents


def capture_stacktrace(exc: BaseException) -> Tuple[TraceFrame, ...]:
    """Return the frames of ``exc``'s traceback, innermost first.

    Frames that belong to the runner itself (the engine, the trap, the
    ``bake`` helpers) are left out so the trace only shows task code.
    """

    frames: List[TraceFrame] = []
    for summary in traceback.extract_tb(exc.__traceback__):
        if _is_runner_frame(summary.filename):
            continue
        frames.append(
            TraceFrame(
                function_name=summary.name,
                source_file=os.path.basename(summary.filename),
                line_number=summary.lineno or 0,
            )
        )
    frames.reverse()
    return tuple(frames)


def render_stacktrace(frames: Tuple[TraceFrame, ...]) -> List[str]:
    return [f"  in {frame.render()}" for frame in frames]


def handler_frame(handler: Callable[..., Any]) -> Optional[TraceFrame]:
    """Describe a task function that has already returned.

    Its frame is gone, so the ``def`` line stands in for the line number.
    """

    code = getattr(handler, "__code__", None)
    if code is None:
        return None
    return TraceFrame(
        function_name=code.co_name,
        source_file=os.path.basename(code.co_filename),
        line_number=code.co_firstlineno,
    )
