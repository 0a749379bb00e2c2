from __future__ import annotations

import sys
from pathlib import Path

from flutter_grader.runner import CommandRunner


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def test_run_captures_stdout_and_stderr(tmp_path: Path) -> None:
    result = CommandRunner().run(
        _python("import sys; print('hello'); print('oops', file=sys.stderr)"),
        cwd=tmp_path,
        timeout=30,
    )

    assert result.completed
    assert result.exit_code == 0
    assert "hello" in result.stdout
    assert "oops" in result.stderr
    assert not result.timed_out


def test_run_uses_working_directory(tmp_path: Path) -> None:
    result = CommandRunner().run(_python("import os; print(os.getcwd())"), cwd=tmp_path, timeout=30)

    assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()


def test_nonzero_exit_is_reported(tmp_path: Path) -> None:
    result = CommandRunner().run(
        _python("import sys; print('bad things', file=sys.stderr); sys.exit(3)"),
        cwd=tmp_path,
        timeout=30,
    )

    assert not result.completed
    assert result.exit_code == 3
    message = result.describe_failure()
    assert "exited with code 3" in message
    assert "bad things" in message


def test_timeout_is_distinguished_from_nonzero_exit(tmp_path: Path) -> None:
    result = CommandRunner().run(_python("import time; time.sleep(10)"), cwd=tmp_path, timeout=0.5)

    assert result.timed_out
    assert not result.completed
    assert result.exit_code == -1
    assert "timed out" in result.describe_failure()
    assert "exited with code" not in result.describe_failure()


def test_missing_executable_returns_error(tmp_path: Path) -> None:
    result = CommandRunner().run(["definitely-not-a-real-toolchain-xyz"], cwd=tmp_path, timeout=5)

    assert not result.completed
    assert result.error
    assert "could not be executed" in result.describe_failure()


def test_environment_is_merged(tmp_path: Path) -> None:
    runner = CommandRunner(env={"GRADER_RUNNER_BASE": "a"})

    result = runner.run(
        _python("import os; print(os.environ['GRADER_RUNNER_BASE'] + os.environ['GRADER_RUNNER_CALL'])"),
        cwd=tmp_path,
        timeout=30,
        env={"GRADER_RUNNER_CALL": "b"},
    )

    assert result.stdout.strip() == "ab"


def test_null_byte_in_argv_returns_error(tmp_path: Path) -> None:
    result = CommandRunner().run(["echo", "a\x00b"], cwd=tmp_path, timeout=5)

    assert not result.completed
    assert not result.timed_out
    assert "null byte" in result.error
    assert "could not be executed" in result.describe_failure()
