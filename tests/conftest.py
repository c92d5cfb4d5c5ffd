import os
import pathlib
import sys
import textwrap

import pytest

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))


@pytest.fixture(autouse=True)
def _isolated_process_state():
    """Runs change the working directory and export variables; undo both."""

    saved_environ = dict(os.environ)
    saved_cwd = os.getcwd()
    os.environ["NO_COLOR"] = "1"
    os.environ["COLUMNS"] = "40"
    os.environ.pop("TERM", None)
    yield
    os.chdir(saved_cwd)
    os.environ.clear()
    os.environ.update(saved_environ)


@pytest.fixture(name="write_bakefile")
def fixture_write_bakefile(tmp_path):
    def _write(source: str, *, directory: pathlib.Path | None = None, name: str = "Bakefile.py") -> pathlib.Path:
        target = (directory or tmp_path) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(source), encoding="utf-8")
        return target

    return _write
