"""Command line interface for the bake task runner."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import sys
from importlib import metadata
from typing import Dict, List, NoReturn, Optional, Sequence, Tuple

from .config import ProjectSettings
from .errors import BakeError, InternalError, MissingValue, UsageError
from .execution.context import InvocationContext
from .execution.engine import Engine
from .presentation import Printer
from .resolver import DEFAULT_FILENAME, ResolvedPaths, resolve_paths
from .tasks.catalog import render_catalog, scan_tasks

logger = logging.getLogger(__name__)

USAGE = f"Usage: bake [-h|-v] [-f <{DEFAULT_FILENAME}>] [var=value ...] <task> [args ...]"


class _Parser(argparse.ArgumentParser):
    """Argument parser that raises instead of exiting with status 2."""

    def error(self, message: str) -> NoReturn:
        if "-f" in message and "expected one argument" in message:
            raise MissingValue("Flag '-f' requires a file path")
        raise UsageError(message)


class _HelpRequested(Exception):
    """Carries the partially parsed namespace out of argparse."""

    def __init__(self, namespace: argparse.Namespace) -> None:
        super().__init__()
        self.namespace = namespace


class _HelpAction(argparse.Action):
    """Stop parsing at ``-h``; whatever follows it is ignored."""

    def __init__(self, option_strings, dest, **kwargs) -> None:
        super().__init__(option_strings, dest, nargs=0, default=False, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> NoReturn:
        setattr(namespace, self.dest, True)
        raise _HelpRequested(namespace)


@dataclasses.dataclass(slots=True)
class ParsedArguments:
    file: Optional[str]
    help: bool
    version: bool
    remainder: List[str]
    consumed: int


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="bake", add_help=False, usage=USAGE)
    parser.add_argument("-f", dest="file", metavar="FILE", help="Path to the task file")
    parser.add_argument("-v", dest="version", action="store_true", help="Print the version")
    parser.add_argument("-h", dest="help", action=_HelpAction, help="Show usage and the available tasks")
    parser.add_argument("remainder", nargs=argparse.REMAINDER)
    return parser


def parse_arguments(argv: Sequence[str]) -> ParsedArguments:
    """Consume the leading flags of ``argv``.

    Everything from the first positional token on is returned untouched in
    ``remainder``; ``consumed`` counts the flag tokens in front of it.
    """

    try:
        args = build_parser().parse_args(list(argv))
    except _HelpRequested as stop:
        args = stop.namespace
    if args.file is not None and not args.file:
        raise MissingValue("File must not be empty")
    remainder = list(args.remainder or [])
    return ParsedArguments(
        file=args.file,
        help=args.help,
        version=args.version,
        remainder=remainder,
        consumed=len(argv) - len(remainder),
    )


def split_assignment(token: str) -> Optional[Tuple[str, str]]:
    name, separator, value = token.partition("=")
    if not separator or not name:
        return None
    return name, value


def split_assignments(tokens: Sequence[str]) -> Tuple[Dict[str, str], Optional[str], Tuple[str, ...]]:
    """Split ``tokens`` into leading assignments, the task name and its args."""

    assignments: Dict[str, str] = {}
    index = 0
    while index < len(tokens):
        pair = split_assignment(tokens[index])
        if pair is None:
            break
        name, value = pair
        assignments[name] = value
        index += 1

    if index >= len(tokens):
        return assignments, None, ()
    return assignments, tokens[index], tuple(tokens[index + 1:])


def _advance(argv: Sequence[str], count: int) -> List[str]:
    if count < 0 or count > len(argv):
        raise InternalError("Failed to shift")
    return list(argv[count:])


def _version() -> str:
    try:
        return metadata.version("bake-runner")
    except metadata.PackageNotFoundError:
        return "unknown"


def _configure_logging() -> None:
    level_name = os.environ.get("BAKE_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def _print_help(printer: Printer, explicit_file: Optional[str]) -> None:
    printer.lines([USAGE])
    try:
        paths = resolve_paths(explicit_file)
    except UsageError as exc:
        printer.internal_warning(f"{exc}. Cannot list tasks")
        return
    printer.lines(render_catalog(scan_tasks(paths.file)))


def build_context(
    paths: ResolvedPaths,
    *,
    explicit_file: bool,
    assignments: Dict[str, str],
    task_name: str,
    task_args: Tuple[str, ...],
) -> InvocationContext:
    settings = ProjectSettings.load(paths.root)
    variables = dict(settings.variables)
    variables.update(assignments)
    return InvocationContext(
        project_root=paths.root,
        task_file=paths.file,
        explicit_file=explicit_file,
        variables=variables,
        task_name=task_name,
        task_args=task_args,
        config=settings.config,
    )


def run(argv: Sequence[str], printer: Printer) -> int:
    parsed = parse_arguments(argv)
    if parsed.version:
        printer.lines([f"bake {_version()}"])

    if parsed.help:
        _print_help(printer, parsed.file)
        return 0

    paths = resolve_paths(parsed.file)
    remaining = _advance(argv, parsed.consumed)
    assignments, task_name, task_args = split_assignments(remaining)
    if not task_name:
        printer.internal_error("No valid task supplied")
        printer.lines(render_catalog(scan_tasks(paths.file)))
        return 1

    context = build_context(
        paths,
        explicit_file=parsed.file is not None,
        assignments=assignments,
        task_name=task_name,
        task_args=task_args,
    )
    logger.debug("Running task '%s' from %s", context.task_name, context.task_file)
    report = Engine(printer).run(context)
    return report.exit_code


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    _configure_logging()
    printer = Printer()
    try:
        return run(argv, printer)
    except InternalError as exc:
        printer.internal_error(f"{exc}. Exiting")
        return exc.exit_code
    except BakeError as exc:
        printer.internal_error(str(exc))
        return exc.exit_code


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
