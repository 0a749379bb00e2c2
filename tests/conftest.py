from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from flutter_grader.models import CommandResult

MAIN_DART = """import 'package:flutter/material.dart';

void main() => runApp(const TodoApp());
"""


def write_flutter_project(root: Path, *, manifest: bool = True, entry_point: bool = True) -> Path:
    """Lay out a minimal Flutter project under root."""
    root.mkdir(parents=True, exist_ok=True)
    if manifest:
        (root / "pubspec.yaml").write_text("name: todo_app\n", encoding="utf-8")
    (root / "lib").mkdir(exist_ok=True)
    if entry_point:
        (root / "lib" / "main.dart").write_text(MAIN_DART, encoding="utf-8")
    return root


@pytest.fixture
def make_project() -> Callable[..., Path]:
    """Factory laying out Flutter projects with optional missing files."""
    return write_flutter_project


@pytest.fixture
def flutter_project(tmp_path: Path) -> Path:
    """A cloned-looking Flutter project with pubspec.yaml and lib/main.dart."""
    return write_flutter_project(tmp_path / "project")


@pytest.fixture
def command_result() -> Callable[..., CommandResult]:
    """Factory for CommandResult values with sensible defaults."""

    def _make(
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
        *,
        timed_out: bool = False,
        error: str | None = None,
        command: list[str] | None = None,
    ) -> CommandResult:
        return CommandResult(
            command=command or ["flutter"],
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            timed_out=timed_out,
            error=error,
        )

    return _make
