"""Terminal output helpers: labelled messages, banners and task listings."""

from __future__ import annotations

import os
import shutil
import sys
from typing import Iterable, Mapping, Optional, TextIO

DEFAULT_COLUMNS = 80

_RESET = "\033[0m"
_RED = "\033[0;31m"
_YELLOW = "\033[1;33m"
_BLUE = "\033[0;34m"
_BOLD = "\033[1m"
_UNDERLINE = "\033[4m"


def color_enabled(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return ``True`` unless ``NO_COLOR`` is set or the terminal is ``dumb``."""

    env = os.environ if environ is None else environ
    return not ("NO_COLOR" in env or env.get("TERM") == "dumb")


def terminal_width() -> int:
    return shutil.get_terminal_size((DEFAULT_COLUMNS, 20)).columns


class Printer:
    """Writes diagnostics to stderr and informational messages to stdout.

    Streams are looked up on every write so that replaced ``sys`` streams
    (pytest's capture, redirected output) are honoured.
    """

    def __init__(
        self,
        *,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        color: Optional[bool] = None,
        width: Optional[int] = None,
    ) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self._color = color
        self._width = width

    @property
    def color(self) -> bool:
        if self._color is None:
            return color_enabled()
        return self._color

    @property
    def width(self) -> int:
        if self._width is None:
            return terminal_width()
        return self._width

    def error(self, text: str) -> None:
        self._labelled("Error", text, _RED, self._err())

    def warn(self, text: str) -> None:
        self._labelled("Warn", text, _YELLOW, self._err())

    def info(self, text: str) -> None:
        self._labelled("Info", text, _BLUE, self._out())

    def internal_error(self, text: str) -> None:
        self._labelled("Error (bake)", text, _RED, self._err())

    def internal_warning(self, text: str) -> None:
        self._labelled("Warn (bake)", text, _YELLOW, self._err())

    def big(self, text: str) -> None:
        """Print ``text`` padded with ``=`` to the full terminal width."""

        separator = "=" * max(self.width - len(text) - 1, 0)
        line = f"{text} {separator}"
        if self.color:
            line = f"{_BOLD}{line}{_RESET}"
        print(line, file=self._err())

    def heading(self, text: str) -> None:
        if self.color:
            text = f"{_UNDERLINE}{text}{_RESET}"
        print(text, file=self._err())

    def lines(self, lines: Iterable[str]) -> None:
        stream = self._err()
        for line in lines:
            print(line, file=stream)

    def _labelled(self, label: str, text: str, color: str, stream: TextIO) -> None:
        if self.color:
            print(f"{color}{label}:{_RESET} {text}", file=stream)
        else:
            print(f"{label}: {text}", file=stream)

    def _out(self) -> TextIO:
        return self._stdout or sys.stdout

    def _err(self) -> TextIO:
        return self._stderr or sys.stderr
