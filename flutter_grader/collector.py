"""
Source file collection for quality evaluation.
"""

import os
from pathlib import Path

from .config import SOURCE_DIRNAME, SOURCE_EXTENSION
from .logging import get_logger
from .models import CollectedFile

logger = get_logger("collector")


def collect_source_files(
    workspace: Path,
    source_dirname: str = SOURCE_DIRNAME,
    extension: str = SOURCE_EXTENSION,
) -> list[CollectedFile]:
    """
    Read every source file under one subtree of the workspace.

    Symbolic links are neither followed nor collected, so nothing outside the
    subtree is read and no location is visited twice.

    Args:
        workspace: Root of the cloned project.
        source_dirname: Subtree to walk, relative to the workspace.
        extension: File suffix to keep, e.g. ".dart".

    Returns:
        CollectedFile entries with paths relative to the subtree, in walk order.
        Empty if the subtree does not exist.
    """
    source_dir = workspace / source_dirname
    if not source_dir.is_dir() or source_dir.is_symlink():
        return []

    files: list[CollectedFile] = []
    for dirpath, dirnames, filenames in os.walk(source_dir, followlinks=False):
        dirnames.sort()
        for filename in sorted(filenames):
            if not filename.endswith(extension):
                continue
            full_path = Path(dirpath) / filename
            if full_path.is_symlink() or not full_path.is_file():
                continue
            relative_path = full_path.relative_to(source_dir).as_posix()
            try:
                content = full_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Failed to read file %s: %s", relative_path, e)
                continue
            files.append(CollectedFile(path=relative_path, content=content))

    return files
