"""Best-effort look-ahead for tasks that switch off the big banners.

A task (or ``init``) whose first body line turns ``big-print`` off should not
get the ``RUNNING TASK`` banner that would otherwise print before its body
had a chance to run. Only the line directly after the ``def`` header is
inspected; blank lines, comments or docstrings in between defeat the check.
"""

from __future__ import annotations

import re
from typing import Sequence

from ..tasks.catalog import TASK_PREFIX
from ..tasks.registry import INIT_HOOK

_QUIET_RE = re.compile(r"^\s*bake\.cfg\(.*big-print.*no")


def _header_re(function_name: str) -> "re.Pattern[str]":
    return re.compile(r"^\s*def\s+" + re.escape(function_name) + r"\s*\(")


def disables_big_print(lines: Sequence[str], task_name: str) -> bool:
    headers = (_header_re(TASK_PREFIX + task_name), _header_re(INIT_HOOK))
    for index, line in enumerate(lines[:-1]):
        if any(header.match(line) for header in headers) and _QUIET_RE.match(lines[index + 1]):
            return True
    return False
