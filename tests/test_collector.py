from __future__ import annotations

import os
from pathlib import Path

from flutter_grader.collector import collect_source_files


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_collects_dart_files_under_lib(flutter_project: Path) -> None:
    _write(flutter_project / "lib" / "src" / "widgets" / "todo_tile.dart", "class TodoTile {}")
    _write(flutter_project / "lib" / "README.md", "# notes")
    _write(flutter_project / "lib" / "generated.dart.bak", "old")
    _write(flutter_project / "test" / "widget_test.dart", "void main() {}")

    files = collect_source_files(flutter_project)

    assert [f.path for f in files] == ["main.dart", "src/widgets/todo_tile.dart"]
    assert files[1].content == "class TodoTile {}"


def test_missing_source_dir_yields_empty_list(tmp_path: Path) -> None:
    assert collect_source_files(tmp_path) == []


def test_empty_source_dir_yields_empty_list(tmp_path: Path) -> None:
    (tmp_path / "lib").mkdir()

    assert collect_source_files(tmp_path) == []


def test_unreadable_file_is_skipped(flutter_project: Path) -> None:
    (flutter_project / "lib" / "broken.dart").write_bytes(b"\xff\xfe\xfa invalid utf-8")

    files = collect_source_files(flutter_project)

    assert [f.path for f in files] == ["main.dart"]


def test_symlinks_are_not_followed(flutter_project: Path, tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    _write(outside / "secret.dart", "const secret = 1;")
    os.symlink(outside / "secret.dart", flutter_project / "lib" / "linked.dart")
    os.symlink(outside, flutter_project / "lib" / "linked_dir")

    files = collect_source_files(flutter_project)

    assert [f.path for f in files] == ["main.dart"]


def test_custom_subtree_and_extension(flutter_project: Path) -> None:
    _write(flutter_project / "test" / "widget_test.dart", "void main() {}")
    _write(flutter_project / "test" / "fixtures.json", "{}")

    files = collect_source_files(flutter_project, source_dirname="test", extension=".json")

    assert [f.path for f in files] == ["fixtures.json"]
