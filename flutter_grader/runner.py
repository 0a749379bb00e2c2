"""
Subprocess execution for toolchain commands.

Runs commands on the host machine with a working directory and timeout,
capturing output without raising on failure.
"""

import os
import subprocess
from pathlib import Path
from typing import Sequence

from .logging import get_logger
from .models import CommandResult

logger = get_logger("runner")


def _to_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class CommandRunner:
    """
    Runs external commands locally with host-level trust.

    Every outcome, including timeouts and missing executables, is returned as
    a CommandResult so callers can apply their own pass/fail heuristics.
    """

    def __init__(self, env: dict[str, str] | None = None) -> None:
        """
        Initialize the command runner.

        Args:
            env: Extra environment variables merged over os.environ for every command.
        """
        self.env = env or {}

    def run(
        self,
        command: Sequence[str],
        cwd: Path,
        timeout: float,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """
        Execute a command and capture its output.

        Args:
            command: Argv to execute (no shell).
            cwd: Working directory.
            timeout: Seconds to wait before killing the process.
            env: Extra environment variables for this command only.

        Returns:
            CommandResult with exit code, stdout, stderr and timeout flag.
        """
        argv = [str(part) for part in command]
        full_env = os.environ.copy()
        full_env.update(self.env)
        if env:
            full_env.update(env)

        logger.debug("Executing: %s (cwd=%s, timeout=%ss)", " ".join(argv), cwd, timeout)

        try:
            process = subprocess.run(
                argv,
                cwd=str(cwd),
                env=full_env,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("Command timed out after %ss: %s", timeout, " ".join(argv))
            return CommandResult(
                command=argv,
                exit_code=-1,
                stdout=_to_text(e.stdout),
                stderr=_to_text(e.stderr),
                timed_out=True,
            )
        except (OSError, ValueError) as e:
            # ValueError: argv or env holding a NUL byte never reaches exec
            logger.error("Failed to launch %s: %s", argv[0] if argv else "<empty>", e)
            return CommandResult(command=argv, exit_code=-1, error=str(e))

        return CommandResult(
            command=argv,
            exit_code=process.returncode,
            stdout=process.stdout or "",
            stderr=process.stderr or "",
        )
