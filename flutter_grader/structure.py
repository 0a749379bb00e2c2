"""
Structural validation of a cloned Flutter project.
"""

from pathlib import Path

from .config import ENTRY_POINT_PATH, MANIFEST_FILENAME
from .models import StageOutcome


class StructureValidator:
    """Checks that the manifest and the entry-point source file exist."""

    def __init__(
        self,
        manifest_path: str = MANIFEST_FILENAME,
        entry_point_path: str = ENTRY_POINT_PATH,
    ) -> None:
        self.manifest_path = manifest_path
        self.entry_point_path = entry_point_path

    def run(self, workspace: Path) -> StageOutcome:
        """
        Validate the workspace layout.

        Args:
            workspace: Root of the cloned project.

        Returns:
            StageOutcome whose message names exactly which file(s) are missing.
        """
        has_manifest = (workspace / self.manifest_path).is_file()
        has_entry_point = (workspace / self.entry_point_path).is_file()

        if not has_manifest and not has_entry_point:
            return StageOutcome(
                success=False,
                message=f"{self.manifest_path} and {self.entry_point_path} are missing",
            )
        if not has_manifest:
            return StageOutcome(success=False, message=f"{self.manifest_path} is missing")
        if not has_entry_point:
            return StageOutcome(success=False, message=f"{self.entry_point_path} is missing")

        return StageOutcome(
            success=True,
            message=f"{self.manifest_path} and {self.entry_point_path} exist",
        )
