from __future__ import annotations

from pathlib import Path
from typing import Callable

from flutter_grader.structure import StructureValidator


def test_valid_project_passes(flutter_project: Path) -> None:
    outcome = StructureValidator().run(flutter_project)

    assert outcome.success
    assert outcome.message == "pubspec.yaml and lib/main.dart exist"


def test_both_files_missing(tmp_path: Path, make_project: Callable[..., Path]) -> None:
    project = make_project(tmp_path / "p", manifest=False, entry_point=False)

    outcome = StructureValidator().run(project)

    assert not outcome.success
    assert outcome.message == "pubspec.yaml and lib/main.dart are missing"


def test_manifest_missing(tmp_path: Path, make_project: Callable[..., Path]) -> None:
    project = make_project(tmp_path / "p", manifest=False)

    outcome = StructureValidator().run(project)

    assert not outcome.success
    assert outcome.message == "pubspec.yaml is missing"


def test_entry_point_missing(tmp_path: Path, make_project: Callable[..., Path]) -> None:
    project = make_project(tmp_path / "p", entry_point=False)

    outcome = StructureValidator().run(project)

    assert not outcome.success
    assert outcome.message == "lib/main.dart is missing"


def test_directory_named_like_manifest_does_not_count(tmp_path: Path, make_project: Callable[..., Path]) -> None:
    project = make_project(tmp_path / "p", manifest=False)
    (project / "pubspec.yaml").mkdir()

    outcome = StructureValidator().run(project)

    assert outcome.message == "pubspec.yaml is missing"
