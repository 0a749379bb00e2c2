"""
Toolchain stages run against a cloned Flutter project.

Each stage runs one command through the CommandRunner and turns the captured
output into a StageOutcome with its own heuristic. The heuristics live in each
stage's ``interpret`` method so toolchain output changes stay local to it.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from .config import (
    ANALYZE_COMMAND,
    ANALYZE_STDERR_ERROR_MARKER,
    ANALYZE_STDERR_INFO_MARKER,
    ANALYZE_STDOUT_ERROR_MARKER,
    ANALYZE_STDOUT_INFO_MARKER,
    ANALYZE_TIMEOUT_SECONDS,
    BUILD_COMMAND,
    BUILD_TIMEOUT_SECONDS,
    INSTALL_COMMAND,
    INSTALL_TIMEOUT_SECONDS,
    INSTALL_WARNING_MARKER,
    NO_TESTS_MARKERS,
    TEST_COMMAND,
    TEST_TIMEOUT_SECONDS,
    TESTS_FAILED_MARKER,
    TESTS_PASS_COUNT_MARKER,
    TESTS_PASSED_MARKER,
)
from .logging import get_logger
from .models import CommandResult, StageOutcome
from .runner import CommandRunner

logger = get_logger("stages")


class ToolchainStage(ABC):
    """
    A single toolchain command with a stage-specific pass/fail heuristic.
    """

    name: str = "stage"

    def __init__(
        self,
        command: list[str],
        timeout_seconds: float,
        runner: CommandRunner | None = None,
    ) -> None:
        """
        Initialize the stage.

        Args:
            command: Argv to run inside the workspace.
            timeout_seconds: Maximum time allowed for the command.
            runner: Command runner; a default local runner is created if omitted.
        """
        self.command = command
        self.timeout_seconds = timeout_seconds
        self.runner = runner or CommandRunner()

    def run(self, workspace: Path) -> StageOutcome:
        """Run the stage command in the workspace and interpret its output."""
        logger.info("Running %s", " ".join(self.command))
        result = self.runner.run(self.command, cwd=workspace, timeout=self.timeout_seconds)
        outcome = self.interpret(result)
        if not outcome.success:
            logger.error("%s failed: %s", self.name, outcome.message)
        return outcome

    @abstractmethod
    def interpret(self, result: CommandResult) -> StageOutcome:
        """Turn a command result into a pass/fail outcome."""


class InstallStage(ToolchainStage):
    """Dependency installation (``flutter pub get``)."""

    name = "install"

    def __init__(
        self,
        runner: CommandRunner | None = None,
        command: list[str] | None = None,
        timeout_seconds: float = INSTALL_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(command or INSTALL_COMMAND, timeout_seconds, runner)

    def interpret(self, result: CommandResult) -> StageOutcome:
        if not result.completed:
            return StageOutcome(
                success=False, message=result.describe_failure(), raw_output=result.output
            )
        # pub get reports some advisories on stderr; only non-warning stderr is fatal
        stderr = result.stderr.strip()
        if stderr and INSTALL_WARNING_MARKER not in stderr:
            return StageOutcome(success=False, message=stderr, raw_output=result.output)
        return StageOutcome(
            success=True,
            message="Dependencies installed successfully",
            raw_output=result.output,
        )


class BuildStage(ToolchainStage):
    """
    Compilation check.

    Runs static analysis first. Some toolchain versions exit non-zero for
    advisory-only findings, so when analysis does not complete a full build is
    attempted before the stage is declared failed.
    """

    name = "build"

    def __init__(
        self,
        runner: CommandRunner | None = None,
        command: list[str] | None = None,
        timeout_seconds: float = ANALYZE_TIMEOUT_SECONDS,
        fallback_command: list[str] | None = None,
        fallback_timeout_seconds: float = BUILD_TIMEOUT_SECONDS,
        info_overrides_errors: bool = True,
    ) -> None:
        """
        Initialize the build stage.

        Args:
            runner: Command runner.
            command: Static-analysis argv.
            timeout_seconds: Analysis timeout.
            fallback_command: Full-build argv tried when analysis does not complete.
            fallback_timeout_seconds: Full-build timeout.
            info_overrides_errors: When True, analysis output containing an
                info-level marker is accepted even if it also mentions errors.
        """
        super().__init__(command or ANALYZE_COMMAND, timeout_seconds, runner)
        self.fallback_command = fallback_command or BUILD_COMMAND
        self.fallback_timeout_seconds = fallback_timeout_seconds
        self.info_overrides_errors = info_overrides_errors

    def run(self, workspace: Path) -> StageOutcome:
        logger.info("Checking if app compiles")
        result = self.runner.run(self.command, cwd=workspace, timeout=self.timeout_seconds)
        if result.completed:
            outcome = self.interpret(result)
        else:
            logger.warning(
                "Analysis did not complete (%s), trying a full build", result.describe_failure()
            )
            build_result = self.runner.run(
                self.fallback_command, cwd=workspace, timeout=self.fallback_timeout_seconds
            )
            outcome = self.interpret_build(build_result)

        if not outcome.success:
            logger.error("Build check failed: %s", outcome.message)
        return outcome

    def interpret(self, result: CommandResult) -> StageOutcome:
        """Judge completed static-analysis output."""
        has_errors = (
            ANALYZE_STDERR_ERROR_MARKER in result.stderr
            or ANALYZE_STDOUT_ERROR_MARKER in result.stdout
        )
        has_info = (
            ANALYZE_STDERR_INFO_MARKER in result.stderr
            or ANALYZE_STDOUT_INFO_MARKER in result.stdout
        )
        if has_errors and not (self.info_overrides_errors and has_info):
            return StageOutcome(
                success=False,
                message="Code contains errors and does not compile",
                raw_output=result.output,
            )
        return StageOutcome(
            success=True, message="Code compiles successfully", raw_output=result.output
        )

    def interpret_build(self, result: CommandResult) -> StageOutcome:
        """Judge the fallback full-build result."""
        if result.completed:
            return StageOutcome(
                success=True, message="Code compiles successfully", raw_output=result.output
            )
        return StageOutcome(
            success=False, message=result.describe_failure(), raw_output=result.output
        )


class TestStage(ToolchainStage):
    """Test run (``flutter test``)."""

    __test__ = False  # not a pytest test class
    name = "test"

    def __init__(
        self,
        runner: CommandRunner | None = None,
        command: list[str] | None = None,
        timeout_seconds: float = TEST_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(command or TEST_COMMAND, timeout_seconds, runner)

    def interpret(self, result: CommandResult) -> StageOutcome:
        if result.completed:
            stdout = result.stdout
            if TESTS_PASSED_MARKER in stdout or (
                TESTS_PASS_COUNT_MARKER in stdout and TESTS_FAILED_MARKER not in stdout
            ):
                return StageOutcome(success=True, message="All tests passed", raw_output=result.output)
            return StageOutcome(
                success=False, message="Tests failed or no tests found", raw_output=result.output
            )

        if any(marker in result.output for marker in NO_TESTS_MARKERS):
            return StageOutcome(success=False, message="No tests found", raw_output=result.output)
        if result.timed_out or result.error:
            return StageOutcome(
                success=False, message=result.describe_failure(), raw_output=result.output
            )
        return StageOutcome(success=False, message="Tests failed", raw_output=result.output)
