import os
import pathlib
import sys

import pytest

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from bake_runner import cli  # noqa: E402
from bake_runner.config import RunConfig  # noqa: E402
from bake_runner.execution.context import InvocationContext  # noqa: E402
from bake_runner.execution.engine import Engine, failure_code  # noqa: E402
from bake_runner.execution.report import RunState  # noqa: E402
from bake_runner.errors import TaskFailure  # noqa: E402
from bake_runner.presentation import Printer  # noqa: E402


@pytest.fixture(name="project")
def fixture_project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_variables_are_visible_to_the_task(project, write_bakefile, capsys):
    write_bakefile(
        """\
        import os

        def task_show(*args):
            print(f"{GREETING}|{os.environ['GREETING']}|{list(args)}")
        """
    )

    code = cli.main(["GREETING=hi", "GREETING=hello", "show", "NOT=assigned", "x"])

    assert code == 0
    assert capsys.readouterr().out == "hello|hello|['NOT=assigned', 'x']\n"
    assert "NOT" not in os.environ


def test_success_prints_banners(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_build():
            print("building")
        """
    )

    assert cli.main(["build"]) == 0

    captured = capsys.readouterr()
    assert captured.out == "building\n"
    assert captured.err.splitlines() == [
        "-> RUNNING TASK 'build' " + "=" * (40 - len("-> RUNNING TASK 'build'") - 1),
        "<- DONE " + "=" * 32,
    ]


def test_explicit_file_runs_from_its_directory(tmp_path, write_bakefile, monkeypatch, capsys):
    project = tmp_path / "project"
    custom = write_bakefile(
        """\
        import os

        def task_where():
            print(os.getcwd())
            print(BAKE_ROOT)
            print(os.environ["BAKE_FILE"])
        """,
        directory=project,
        name="Custom.sh",
    )
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)

    assert cli.main(["-f", str(custom), "where"]) == 0

    root = str(project.resolve())
    assert capsys.readouterr().out.splitlines() == [root, root, os.path.join(root, "Custom.sh")]


def test_unknown_task_prints_catalog_and_skips_init(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def init(name):
            print("init ran")

        def task_build():
            pass

        def task_build():
            pass
        """
    )

    assert cli.main(["deploy"]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.splitlines() == [
        "Error (bake): Task 'deploy' not found",
        "Tasks:",
        "  -> build",
        "  -> build",
    ]


def test_init_runs_before_the_task(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def init(name):
            print(f"init {name}")

        def task_build(flag):
            print(f"build {flag}")
        """
    )

    assert cli.main(["build", "--fast"]) == 0
    assert capsys.readouterr().out == "init build\nbuild --fast\n"


def test_failure_with_stacktrace(project, write_bakefile, capsys):
    write_bakefile(
        """\
        bake.cfg("stacktrace", "yes")


        def helper():
            raise SystemExit(7)


        def task_fail():
            helper()
        """
    )

    assert cli.main(["fail"]) == 7

    err = capsys.readouterr().err.splitlines()
    assert err[1].startswith("<- ERROR ")
    assert err[2] == "Error (bake): Your 'Bakefile.py' did not exit successfully (exit code 7)"
    assert err[3:] == [
        "Stacktrace:",
        "  in helper (Bakefile.py:5)",
        "  in task_fail (Bakefile.py:9)",
    ]


def test_returned_status_traces_the_task_function(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_fail():
            bake.cfg("stacktrace", "yes")
            return 7
        """
    )

    assert cli.main(["fail"]) == 7

    err = capsys.readouterr().err.splitlines()
    assert err[-2:] == ["Stacktrace:", "  in task_fail (Bakefile.py:1)"]


def test_init_returned_status_traces_init(project, write_bakefile, capsys):
    write_bakefile(
        """\
        bake.cfg("stacktrace", "yes")

        def init(name):
            return 3

        def task_build():
            pass
        """
    )

    assert cli.main(["build"]) == 3
    assert capsys.readouterr().err.splitlines()[-1] == "  in init (Bakefile.py:3)"


def test_stacktrace_innermost_frame_is_the_task(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_fail():
            bake.cfg("stacktrace", "yes")
            raise SystemExit(7)
        """
    )

    assert cli.main(["fail"]) == 7
    err = capsys.readouterr().err.splitlines()
    assert err[err.index("Stacktrace:") + 1] == "  in task_fail (Bakefile.py:3)"


def test_stacktrace_is_disabled_by_default(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_fail():
            raise RuntimeError("boom")
        """
    )

    assert cli.main(["fail"]) == 1

    err = capsys.readouterr().err
    assert "<- ERROR" in err
    assert "did not exit successfully (exit code 1)" in err
    assert "Stacktrace:" not in err


def test_nonzero_return_value_fails_the_task(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_check():
            return 4
        """
    )

    assert cli.main(["check"]) == 4
    assert "<- DONE" not in capsys.readouterr().err


def test_system_exit_zero_is_success(project, write_bakefile, capsys):
    write_bakefile(
        """\
        import sys

        def task_quit():
            sys.exit(0)
        """
    )

    assert cli.main(["quit"]) == 0
    assert "<- DONE" in capsys.readouterr().err


def test_interrupt_goes_through_the_error_path(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_wait():
            raise KeyboardInterrupt
        """
    )

    assert cli.main(["wait"]) == 130
    assert "(exit code 130)" in capsys.readouterr().err


def test_die_reports_the_reason(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_release():
            bake.die("No credentials")
        """
    )

    assert cli.main(["release"]) == 1

    err = capsys.readouterr().err.splitlines()
    assert err[1] == "Error: No credentials. Exiting"
    assert err[2].startswith("<- ERROR")
    assert len(err) == 3


def test_invalid_cfg_is_a_usage_error(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_build():
            bake.cfg("stacktrace", "maybe")
        """
    )

    assert cli.main(["build"]) == 1
    err = capsys.readouterr().err
    assert "Error (bake): Config property 'stacktrace' accepts only either 'yes' or 'no'" in err
    assert "Stacktrace:" not in err


def test_clean_exit_while_loading_is_not_an_error(project, write_bakefile, capsys):
    marker = project / "ran"
    write_bakefile(
        f"""\
        import sys

        sys.exit(0)

        def task_build():
            open({str(marker)!r}, "w").close()
        """
    )

    assert cli.main(["build"]) == 0

    err = capsys.readouterr().err
    assert "<- ERROR" not in err
    assert "did not exit successfully" not in err
    assert not marker.exists()


def test_failing_exit_while_loading_keeps_its_code(project, write_bakefile, capsys):
    write_bakefile(
        """\
        raise SystemExit(4)
        """
    )

    assert cli.main(["build"]) == 4
    assert "(exit code 4)" in capsys.readouterr().err


def test_load_failure_is_trapped(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_build(:
            pass
        """
    )

    assert cli.main(["build"]) == 1
    err = capsys.readouterr().err
    assert "<- ERROR" in err
    assert "RUNNING TASK" not in err


def test_first_line_big_print_off_suppresses_banners(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_quiet():
            bake.cfg("big-print", "no")
            print("quiet")
        """
    )

    assert cli.main(["quiet"]) == 0

    captured = capsys.readouterr()
    assert captured.out == "quiet\n"
    assert captured.err == ""


def test_info_goes_to_stdout_and_warn_to_stderr(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_talk():
            bake.cfg("big-print", "no")
            bake.info("hello")
            bake.warn("careful")
        """
    )

    assert cli.main(["talk"]) == 0

    captured = capsys.readouterr()
    assert captured.out == "Info: hello\n"
    assert captured.err == "Warn: careful\n"


def test_run_propagates_command_exit_code(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_sh():
            bake.run("exit 3")
        """
    )

    assert cli.main(["sh"]) == 3


def test_assert_helpers(project, write_bakefile, capsys):
    write_bakefile(
        """\
        FILLED = "yes"

        def task_vars():
            bake.assert_not_empty("FILLED", "EMPTY")

        def task_old():
            bake.assert_nonempty("FILLED")

        def task_cmd():
            bake.assert_cmd("definitely-not-an-installed-command")
        """
    )

    assert cli.main(["EMPTY=", "vars"]) == 1
    assert "Error: Failed because variable 'EMPTY' is empty. Exiting" in capsys.readouterr().err

    assert cli.main(["old"]) == 0
    assert "Warn (bake): 'bake.assert_nonempty' is deprecated" in capsys.readouterr().err

    assert cli.main(["cmd"]) == 1
    assert "Failed to find command 'definitely-not-an-installed-command'" in capsys.readouterr().err


def test_pedantic_cd_pins_the_working_directory(project, write_bakefile, capsys):
    write_bakefile(
        """\
        import os

        def task_wander():
            bake.cfg("pedantic-task-cd", "yes")
            os.chdir("/")
            print(os.getcwd())
        """
    )

    previous_trace = sys.gettrace()

    assert cli.main(["wander"]) == 0
    assert capsys.readouterr().out == f"{project.resolve()}\n"
    assert sys.gettrace() is previous_trace


def test_pedantic_cd_is_removed_when_the_task_is_missing(project, write_bakefile, capsys):
    write_bakefile(
        """\
        bake.cfg("pedantic-task-cd", "yes")

        def task_build():
            pass
        """
    )
    previous_trace = sys.gettrace()

    assert cli.main(["missing"]) == 1
    assert "Task 'missing' not found" in capsys.readouterr().err
    assert sys.gettrace() is previous_trace


def test_without_pedantic_cd_the_task_may_move(project, write_bakefile, capsys):
    write_bakefile(
        """\
        import os

        def task_wander():
            os.chdir("/")
            print(os.getcwd())
        """
    )

    assert cli.main(["wander"]) == 0
    assert capsys.readouterr().out == "/\n"


def test_settings_file_seeds_config_and_variables(project, write_bakefile, capsys):
    write_bakefile(
        """\
        def task_show():
            print(TARGET, MODE)
            raise SystemExit(2)
        """
    )
    (project / "Bakefile.yaml").write_text(
        "cfg:\n  stacktrace: yes\n  big-print: no\nvariables:\n  TARGET: release\n  MODE: fast\n",
        encoding="utf-8",
    )

    assert cli.main(["TARGET=debug", "show"]) == 2

    captured = capsys.readouterr()
    assert captured.out == "debug fast\n"
    assert "RUNNING TASK" not in captured.err
    assert "  in task_show (Bakefile.py:3)" in captured.err


def test_engine_report(tmp_path, write_bakefile, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = write_bakefile(
        """\
        def task_fail():
            raise TaskError()

        class TaskError(Exception):
            pass
        """
    )
    context = InvocationContext(
        project_root=tmp_path.resolve(),
        task_file=path.resolve(),
        explicit_file=True,
        variables={},
        task_name="fail",
        task_args=(),
        config=RunConfig(stacktrace=True, big_print=False),
    )

    report = Engine(Printer(color=False, width=40)).run(context)

    assert report.state is RunState.FAILED
    assert report.exit_code == 1
    assert report.as_dict() == {
        "task": "fail",
        "state": "failed",
        "exit_code": 1,
        "stacktrace": ["task_fail (Bakefile.py:2)"],
    }


def test_failure_code_mapping():
    import subprocess

    assert failure_code(TaskFailure(9)) == 9
    assert failure_code(SystemExit("message")) == 1
    assert failure_code(SystemExit(None)) == 0
    assert failure_code(subprocess.CalledProcessError(5, "cmd")) == 5
    assert failure_code(KeyboardInterrupt()) == 130
    assert failure_code(ValueError()) == 1
