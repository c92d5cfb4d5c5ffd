"""Keep the working directory pinned to the project root while a task runs."""

from __future__ import annotations

import logging
import os
import pathlib
import sys
from types import FrameType
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

TraceFunction = Callable[[FrameType, str, Any], Optional[Callable[..., Any]]]


class PedanticCd:
    """Line-event hook that ``chdir``s back to the root before each statement.

    Only frames whose code comes from the task file are traced.
    """

    def __init__(self, root: pathlib.Path, task_file: pathlib.Path) -> None:
        self._root = str(root)
        self._filename = str(task_file)
        self._previous: Optional[TraceFunction] = None
        self._installed = False

    def install(self) -> None:
        if self._installed:
            return
        self._previous = sys.gettrace()
        sys.settrace(self._global_trace)
        # Frames already running (the caller of ``bake.cfg``) need their
        # local trace set explicitly.
        frame = sys._getframe(1)
        while frame is not None:
            if frame.f_code.co_filename == self._filename:
                frame.f_trace = self._local_trace
            frame = frame.f_back
        self._installed = True
        logger.debug("Pedantic cd enabled for %s", self._root)

    def uninstall(self) -> None:
        if not self._installed:
            return
        sys.settrace(self._previous)
        self._previous = None
        self._installed = False

    def _global_trace(self, frame: FrameType, event: str, arg: Any) -> Optional[TraceFunction]:
        if event == "call" and frame.f_code.co_filename == self._filename:
            return self._local_trace
        return None

    def _local_trace(self, frame: FrameType, event: str, arg: Any) -> Optional[TraceFunction]:
        if event == "line" and os.getcwd() != self._root:
            logger.debug("Task left %s, changing back", self._root)
            os.chdir(self._root)
        return self._local_trace
