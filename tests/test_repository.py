from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from flutter_grader.config import CLONE_TIMEOUT_SECONDS
from flutter_grader.models import CommandResult
from flutter_grader.repository import RepositoryFetcher, remove_workspace
from flutter_grader.runner import CommandRunner


class _CloneRunner:
    """Pretends to be git: optionally creates the target dir, then exits."""

    def __init__(self, *, exit_code: int = 0, create: bool = True) -> None:
        self.exit_code = exit_code
        self.create = create
        self.calls: list[dict[str, object]] = []

    def run(
        self,
        command: Sequence[str],
        cwd: Path,
        timeout: float,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        self.calls.append({"command": list(command), "cwd": cwd, "timeout": timeout, "env": env})
        if self.create:
            target = Path(command[-1])
            target.mkdir(parents=True)
            (target / "pubspec.yaml").write_text("name: app\n", encoding="utf-8")
        stderr = "" if self.exit_code == 0 else "fatal: repository not found"
        return CommandResult(command=list(command), exit_code=self.exit_code, stderr=stderr)


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/owner/repo",
        "https://www.github.com/owner/repo.git",
        "http://github.com/owner/repo",
    ],
)
def test_allowed_urls(url: str) -> None:
    assert RepositoryFetcher().is_allowed_url(url)


@pytest.mark.parametrize(
    "url",
    [
        "https://example.org/x/y",
        "https://GitHub.com/owner/repo",
        "https://github.com.evil.example/owner/repo",
        "https://gist.github.com/owner/abc",
        "ftp://github.com/owner/repo",
        "github.com/owner/repo",
        "not a url",
        "",
        "https://github.com/student/todo\x00",
        "https://github.com/student/todo\n--upload-pack=touch",
    ],
)
def test_rejected_urls(url: str) -> None:
    assert not RepositoryFetcher().is_allowed_url(url)


def test_custom_allow_list() -> None:
    fetcher = RepositoryFetcher(allowed_hosts=["gitlab.com"])

    assert fetcher.is_allowed_url("https://gitlab.com/owner/repo")
    assert not fetcher.is_allowed_url("https://github.com/owner/repo")


def test_validation_has_no_filesystem_side_effect(tmp_path: Path) -> None:
    root = tmp_path / "workspaces"
    fetcher = RepositoryFetcher(workspace_root=root, runner=_CloneRunner())

    fetcher.is_allowed_url("https://example.org/x/y")

    assert not root.exists()


def test_workspace_name_uses_owner_and_repo() -> None:
    fetcher = RepositoryFetcher()

    first = fetcher.workspace_name("https://github.com/owner/todo-app.git")
    second = fetcher.workspace_name("https://github.com/owner/todo-app.git")

    assert first.startswith("owner-todo-app-")
    assert ".git" not in first
    assert first != second


def test_workspace_name_without_path_segments() -> None:
    assert RepositoryFetcher().workspace_name("https://github.com/").startswith("repo-")


def test_clone_success_returns_workspace(tmp_path: Path) -> None:
    runner = _CloneRunner()
    fetcher = RepositoryFetcher(workspace_root=tmp_path / "workspaces", runner=runner)

    workspace = fetcher.clone("https://github.com/owner/repo")

    assert workspace is not None
    assert workspace.is_dir()
    assert workspace.parent == (tmp_path / "workspaces").resolve()
    call = runner.calls[0]
    assert call["command"] == [
        "git", "clone", "--depth", "1", "https://github.com/owner/repo", str(workspace)
    ]
    assert call["timeout"] == CLONE_TIMEOUT_SECONDS
    assert call["env"] == {"GIT_TERMINAL_PROMPT": "0"}


def test_clone_failure_returns_none_and_removes_partial_dir(tmp_path: Path) -> None:
    root = tmp_path / "workspaces"
    fetcher = RepositoryFetcher(workspace_root=root, runner=_CloneRunner(exit_code=128))

    assert fetcher.clone("https://github.com/owner/missing") is None
    assert list(root.iterdir()) == []


def test_clone_with_unlaunchable_command_returns_none(tmp_path: Path) -> None:
    root = tmp_path / "workspaces"
    fetcher = RepositoryFetcher(workspace_root=root, runner=CommandRunner())

    assert fetcher.clone("https://github.com/student/todo\x00") is None
    assert list(root.iterdir()) == []


def test_clone_reporting_success_without_directory_returns_none(tmp_path: Path) -> None:
    fetcher = RepositoryFetcher(workspace_root=tmp_path / "ws", runner=_CloneRunner(create=False))

    assert fetcher.clone("https://github.com/owner/repo") is None


def test_remove_workspace(tmp_path: Path) -> None:
    workspace = tmp_path / "ws"
    (workspace / "lib").mkdir(parents=True)
    (workspace / "lib" / "main.dart").write_text("void main() {}", encoding="utf-8")

    remove_workspace(workspace)
    remove_workspace(workspace)

    assert not workspace.exists()
