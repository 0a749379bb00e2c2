"""
Repository fetching and workspace management.

Validates submitted repository URLs, shallow-clones them into uniquely named
workspaces, and removes those workspaces when a run ends.
"""

import re
import shutil
import time
import uuid
from pathlib import Path
from urllib.parse import urlparse

from .config import (
    ALLOWED_HOSTS,
    CLONE_TIMEOUT_SECONDS,
    DEFAULT_WORKSPACE_ROOT,
    GIT_CLONE_ARGS,
)
from .logging import get_logger
from .runner import CommandRunner

logger = get_logger("repository")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


class RepositoryFetcher:
    """
    Clones student repositories into ephemeral workspaces.
    """

    def __init__(
        self,
        workspace_root: Path = DEFAULT_WORKSPACE_ROOT,
        runner: CommandRunner | None = None,
        allowed_hosts: list[str] | None = None,
        timeout_seconds: int = CLONE_TIMEOUT_SECONDS,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            workspace_root: Directory under which workspaces are created.
            runner: Command runner used to invoke git.
            allowed_hosts: Exact hostnames accepted in repository URLs.
            timeout_seconds: Maximum time allowed for the clone.
        """
        self.workspace_root = workspace_root
        self.runner = runner or CommandRunner()
        self.allowed_hosts = list(allowed_hosts or ALLOWED_HOSTS)
        self.timeout_seconds = timeout_seconds

    def is_allowed_url(self, repo_url: str) -> bool:
        """
        Check that a URL parses and points at an allowed host.

        The host comparison is exact and case-sensitive. URLs containing
        control characters are rejected.
        """
        if _CONTROL_CHARS.search(repo_url):
            return False
        try:
            parsed = urlparse(repo_url)
            hostname = parsed.netloc.rsplit("@", 1)[-1].split(":", 1)[0]
        except ValueError:
            return False
        if parsed.scheme not in ("http", "https") or not hostname:
            return False
        return hostname in self.allowed_hosts

    def workspace_name(self, repo_url: str) -> str:
        """
        Build a unique directory name from the repository owner and name.

        Args:
            repo_url: Repository URL.

        Returns:
            Name of the form ``<owner>-<repo>-<millis>-<token>``.
        """
        segments = [s for s in urlparse(repo_url).path.split("/") if s]
        if len(segments) >= 2:
            owner, name = segments[0], segments[1]
            if name.endswith(".git"):
                name = name[: -len(".git")]
            base = _UNSAFE_CHARS.sub("_", f"{owner}-{name}")
        else:
            base = "repo"
        return f"{base}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"

    def clone(self, repo_url: str) -> Path | None:
        """
        Shallow-clone the default branch of a repository.

        Args:
            repo_url: Repository URL, already validated with is_allowed_url.

        Returns:
            Path to the new workspace, or None if the clone failed.
        """
        try:
            self.workspace_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Clone failed: cannot create %s: %s", self.workspace_root, e)
            return None
        workspace = (self.workspace_root / self.workspace_name(repo_url)).resolve()

        result = self.runner.run(
            [*GIT_CLONE_ARGS, repo_url, str(workspace)],
            cwd=self.workspace_root,
            timeout=self.timeout_seconds,
            env={"GIT_TERMINAL_PROMPT": "0"},
        )
        if not result.completed:
            logger.error("Clone failed: %s", result.describe_failure())
            remove_workspace(workspace)
            return None
        if not workspace.is_dir():
            logger.error("Clone reported success but %s does not exist", workspace)
            return None

        return workspace


def remove_workspace(workspace: Path) -> None:
    """
    Delete a workspace directory, logging instead of raising on failure.

    Args:
        workspace: Directory to remove.
    """
    if not workspace.exists():
        return
    try:
        shutil.rmtree(workspace)
        logger.info("Cleaned up repository: %s", workspace)
    except OSError as e:
        logger.warning("Failed to cleanup repository %s: %s", workspace, e)
