"""Helpers exposed to task files under the name ``bake``."""

from __future__ import annotations

import logging
import os
import pathlib
import shutil
import subprocess
from typing import Any, Mapping, MutableMapping, Optional, Union

from .config import RunConfig
from .errors import TaskAborted, TaskFailure
from .execution.pedantic import PedanticCd
from .presentation import Printer

logger = logging.getLogger(__name__)

Command = Union[str, "os.PathLike[str]"]


class TaskApi:
    """The ``bake`` object a task file sees.

    ``cfg`` is the only way task code can change the run configuration.
    """

    def __init__(
        self,
        *,
        root: pathlib.Path,
        file: pathlib.Path,
        config: RunConfig,
        printer: Printer,
        pedantic: Optional[PedanticCd] = None,
    ) -> None:
        self._root = root
        self._file = file
        self._config = config
        self._printer = printer
        self._pedantic = pedantic
        self._namespace: Mapping[str, Any] = {}

    @property
    def root(self) -> pathlib.Path:
        return self._root

    @property
    def file(self) -> pathlib.Path:
        return self._file

    def bind(self, namespace: MutableMapping[str, Any]) -> None:
        self._namespace = namespace

    def cfg(self, option: str, value: str) -> None:
        """Edit configuration that affects the behavior of bake."""

        self._config.update(option, value)
        if self._pedantic is not None:
            if self._config.pedantic_cd:
                self._pedantic.install()
            else:
                self._pedantic.uninstall()

    def die(self, message: str = "") -> None:
        raise TaskAborted(message)

    def warn(self, message: str) -> None:
        self._printer.warn(message)

    def info(self, message: str) -> None:
        self._printer.info(message)

    def assert_not_empty(self, *names: str) -> None:
        """Die if any of the named variables is unset or empty."""

        for name in names:
            value = self._namespace.get(name)
            if value is None:
                value = os.environ.get(name)
            if value is None or value == "":
                self.die(f"Failed because variable '{name}' is empty")

    def assert_nonempty(self, *names: str) -> None:
        self._printer.internal_warning("'bake.assert_nonempty' is deprecated. Use 'bake.assert_not_empty' instead")
        self.assert_not_empty(*names)

    def assert_cmd(self, cmd: str) -> None:
        if not cmd:
            self.die("Argument must not be empty")
        if shutil.which(cmd) is None:
            self.die(f"Failed to find command '{cmd}'. Please install it before continuing")

    def run(self, command: Command, *args: str, check: bool = True) -> int:
        """Run ``command`` in the current directory and return its exit code.

        A string without extra ``args`` goes through the shell. A non-zero
        exit stops the task with that exit code unless ``check`` is false.
        """

        if args or not isinstance(command, str):
            argv = [os.fspath(command), *args]
            logger.debug("Running %s", argv)
            completed = subprocess.run(argv, check=False)
        else:
            logger.debug("Running shell command %r", command)
            completed = subprocess.run(command, shell=True, check=False)

        if check and completed.returncode != 0:
            raise TaskFailure(
                completed.returncode,
                f"Command {command!r} exited with code {completed.returncode}",
            )
        return completed.returncode
