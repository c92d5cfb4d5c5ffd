"""Load a task file and run one task under an error trap."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import types
from typing import Any, Callable, Dict, Optional

from ..api import TaskApi
from ..config import RunConfig
from ..errors import InternalError, TaskAborted, TaskFailure, TaskNotFound, UsageError
from ..presentation import Printer
from ..tasks.catalog import render_catalog, scan_tasks
from ..tasks.registry import TaskRegistry
from .context import InvocationContext
from .pedantic import PedanticCd
from .prescan import disables_big_print
from .report import RunReport, RunState
from .trace import capture_stacktrace, handler_frame, render_stacktrace

logger = logging.getLogger(__name__)

MODULE_NAME = "__bakefile__"
INTERRUPTED_EXIT_CODE = 130

_TRAPPED = (Exception, KeyboardInterrupt, SystemExit)


def failure_code(exc: BaseException) -> int:
    """Return the process exit code a failure should produce."""

    if isinstance(exc, TaskFailure):
        return exc.code
    if isinstance(exc, SystemExit):
        if exc.code is None:
            return 0
        if isinstance(exc.code, int):
            return exc.code
        return 1
    if isinstance(exc, subprocess.CalledProcessError):
        return exc.returncode or 1
    if isinstance(exc, KeyboardInterrupt):
        return INTERRUPTED_EXIT_CODE
    return 1


class _NonZeroReturn(TaskFailure):
    """A task or ``init`` returned a non-zero integer status."""

    def __init__(self, code: int, handler: Callable[..., Any]) -> None:
        super().__init__(code)
        self.handler = handler


def _check_result(result: Any, handler: Callable[..., Any]) -> None:
    # A non-zero integer return value is treated like a shell exit status.
    if isinstance(result, int) and not isinstance(result, bool) and result != 0:
        raise _NonZeroReturn(result, handler)


def _is_clean_exit(exc: BaseException) -> bool:
    return isinstance(exc, SystemExit) and failure_code(exc) == 0


class Engine:
    """Drives one invocation from a parsed context to a finished run."""

    def __init__(self, printer: Optional[Printer] = None) -> None:
        self._printer = printer or Printer()
        self._trapped = False

    def run(self, context: InvocationContext) -> RunReport:
        report = RunReport(task_name=context.task_name)

        os.environ.update(context.environment())
        self._enter(report, RunState.PARSED)

        os.chdir(context.project_root)
        self._enter(report, RunState.RESOLVED)

        pedantic = PedanticCd(context.project_root, context.task_file)
        api = TaskApi(
            root=context.project_root,
            file=context.task_file,
            config=context.config,
            printer=self._printer,
            pedantic=pedantic,
        )
        try:
            return self._load_and_dispatch(report, context, api, pedantic)
        finally:
            pedantic.uninstall()

    def _load_and_dispatch(
        self,
        report: RunReport,
        context: InvocationContext,
        api: TaskApi,
        pedantic: PedanticCd,
    ) -> RunReport:
        config = context.config
        try:
            namespace = self._load(context, api)
        except _TRAPPED as exc:
            if _is_clean_exit(exc):
                # The task file ended the process on purpose; nothing runs.
                logger.debug("%s exited cleanly while loading", context.task_file)
                self._enter(report, RunState.SUCCEEDED)
                return report
            return self._trap(report, exc, context, config)
        self._enter(report, RunState.LOADED)

        registry = TaskRegistry.from_namespace(namespace)
        self._enter(report, RunState.DISPATCHING)
        try:
            task = registry.get(context.task_name)
        except TaskNotFound as exc:
            self._printer.internal_error(str(exc))
            self._printer.lines(render_catalog(scan_tasks(context.task_file)))
            report.exit_code = 1
            self._enter(report, RunState.FAILED)
            return report

        source_lines = context.task_file.read_text(encoding="utf-8", errors="replace").splitlines()
        if disables_big_print(source_lines, context.task_name):
            logger.debug("Task '%s' turns big print off before it starts", context.task_name)
            config.big_print = False

        self._enter(report, RunState.RUNNING)
        if config.big_print:
            self._printer.big(f"-> RUNNING TASK '{context.task_name}'")
        try:
            if config.pedantic_cd:
                pedantic.install()
            if registry.init_hook is not None:
                _check_result(registry.init_hook(context.task_name), registry.init_hook)
            _check_result(task.run(*context.task_args), task.handler)
        except _TRAPPED as exc:
            if not _is_clean_exit(exc):
                return self._trap(report, exc, context, config)

        if config.big_print:
            self._printer.big("<- DONE")
        self._enter(report, RunState.SUCCEEDED)
        return report

    def _load(self, context: InvocationContext, api: TaskApi) -> Dict[str, Any]:
        """Execute the task file into a fresh module and return its namespace.

        Top-level statements run here as a side effect; no task is invoked.
        """

        logger.debug("Loading %s", context.task_file)
        source = context.task_file.read_text(encoding="utf-8")
        module = types.ModuleType(MODULE_NAME)
        module.__file__ = str(context.task_file)
        namespace = module.__dict__
        namespace.update(context.environment())
        namespace["bake"] = api
        api.bind(namespace)
        sys.modules[MODULE_NAME] = module

        code = compile(source, str(context.task_file), "exec")
        exec(code, namespace)
        return namespace

    def _trap(
        self,
        report: RunReport,
        exc: BaseException,
        context: InvocationContext,
        config: RunConfig,
    ) -> RunReport:
        if self._trapped:
            raise InternalError("Error trap fired more than once") from exc
        self._trapped = True

        code = failure_code(exc)
        report.exit_code = code
        self._enter(report, RunState.FAILED)
        logger.debug("Task '%s' failed with exit code %d", context.task_name, code, exc_info=exc)

        if isinstance(exc, UsageError):
            self._printer.big("<- ERROR")
            self._printer.internal_error(str(exc))
            return report

        if isinstance(exc, TaskAborted):
            self._printer.error(f"{exc.reason}. Exiting" if exc.reason else "Exiting")
            self._printer.big("<- ERROR")
        else:
            if isinstance(exc, SystemExit) and isinstance(exc.code, str):
                self._printer.error(exc.code)
            self._printer.big("<- ERROR")
            self._printer.internal_error(
                f"Your '{context.task_file.name}' did not exit successfully (exit code {code})"
            )

        if config.stacktrace:
            report.stacktrace = capture_stacktrace(exc)
            if isinstance(exc, _NonZeroReturn):
                frame = handler_frame(exc.handler)
                if frame is not None:
                    report.stacktrace = (frame, *report.stacktrace)
            self._printer.heading("Stacktrace:")
            self._printer.lines(render_stacktrace(report.stacktrace))
        return report

    def _enter(self, report: RunReport, state: RunState) -> None:
        logger.debug("%s -> %s", report.state.value, state.value)
        report.state = state
