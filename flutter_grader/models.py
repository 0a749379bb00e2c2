"""
Pydantic models for the Flutter Grader pipeline.

Defines the command and stage results produced while grading, the LLM
evaluation record, and the request/response payloads exchanged with callers.
"""

from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Base for wire payloads: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CommandResult(BaseModel):
    """
    Captured result of one external command.

    Attributes:
        command: The argv that was executed.
        exit_code: Process exit code (-1 when the process never finished).
        stdout: Captured standard output.
        stderr: Captured standard error.
        timed_out: Whether the timeout elapsed before the process exited.
        error: Launch error, e.g. the executable was not found.
    """

    model_config = ConfigDict(frozen=True)

    command: list[str] = Field(..., description="Executed argv")
    exit_code: int = Field(default=-1, description="Process exit code")
    stdout: str = Field(default="", description="Captured standard output")
    stderr: str = Field(default="", description="Captured standard error")
    timed_out: bool = Field(default=False, description="Whether the timeout elapsed")
    error: str | None = Field(default=None, description="Launch error, if any")

    @property
    def completed(self) -> bool:
        """True when the command ran to completion with a zero exit code."""
        return self.exit_code == 0 and not self.timed_out and self.error is None

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return f"{self.stdout}{self.stderr}"

    def describe_failure(self) -> str:
        """
        Human-readable reason the command did not complete.

        Returns:
            Message distinguishing a timeout, a launch error and a non-zero exit.
        """
        command = " ".join(self.command)
        if self.timed_out:
            return f"Command '{command}' timed out"
        if self.error:
            return f"Command '{command}' could not be executed: {self.error}"
        detail = self.stderr.strip() or self.stdout.strip()
        message = f"Command '{command}' exited with code {self.exit_code}"
        return f"{message}: {detail[-500:]}" if detail else message


class StageOutcome(BaseModel):
    """
    Result of one pipeline stage.

    Attributes:
        success: Whether the stage passed.
        message: Human-readable explanation.
        raw_output: Captured tool output backing the decision, if any.
    """

    model_config = ConfigDict(frozen=True)

    success: bool = Field(..., description="Whether the stage passed")
    message: str = Field(..., description="Human-readable explanation")
    raw_output: str | None = Field(default=None, description="Captured tool output")


class CollectedFile(BaseModel):
    """A source file gathered for quality evaluation."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path relative to the source directory")
    content: str = Field(..., description="File text")


class CheckResult(_CamelModel):
    """
    Audit record for one pipeline stage.

    Attributes:
        name: Display name of the check.
        passed: Whether the check passed.
        message: Explanation shown to the student.
        score: Points contributed by this check.
    """

    name: str = Field(..., description="Check name")
    passed: bool = Field(..., description="Whether the check passed")
    message: str = Field(default="", description="Check message")
    score: int = Field(default=0, ge=0, description="Points awarded by this check")


class QualityEvaluation(_CamelModel):
    """
    Code quality verdict returned by the LLM evaluator.

    Attributes:
        score: Points awarded, within the remaining budget.
        summary: Short overall assessment.
        strengths: Positive observations.
        weaknesses: Issues found.
        recommendation: Suggested next step for the student.
        available: False when the evaluator could not reach or use the model.
    """

    score: int = Field(default=0, ge=0, description="Points awarded")
    summary: str = Field(default="", description="Overall assessment")
    strengths: list[str] = Field(default_factory=list, description="Positive observations")
    weaknesses: list[str] = Field(default_factory=list, description="Issues found")
    recommendation: str = Field(default="", description="Suggested next step")
    available: bool = Field(default=True, exclude=True, description="Whether the model answered")


class EvaluationDetails(_CamelModel):
    """Which stages ran and passed, plus the quality sub-record when evaluated."""

    clone_successful: bool = False
    files_valid: bool = False
    pub_get_successful: bool = False
    build_successful: bool = False
    tests_passed: bool = False
    quality_evaluation: QualityEvaluation | None = None


class EvaluationRequest(_CamelModel):
    """Inbound evaluation request."""

    repo_url: str = Field(..., min_length=1, description="Repository URL to grade")

    @field_validator("repo_url")
    @classmethod
    def _must_look_like_url(cls, value: str) -> str:
        value = value.strip()
        parsed = urlparse(value)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("repoUrl must be a valid URL")
        return value


class EvaluationResponse(_CamelModel):
    """
    Final grading report for one repository.

    Attributes:
        total_score: Points earned.
        max_score: Maximum possible points.
        checks: Ordered per-stage audit records.
        feedback: Feedback text for the student.
        summary: Main summary shown to the student.
        details: Stage flags and the optional quality evaluation.
    """

    total_score: int = Field(..., ge=0, description="Points earned")
    max_score: int = Field(..., ge=0, description="Maximum possible points")
    checks: list[CheckResult] = Field(default_factory=list, description="Per-stage checks")
    feedback: str = Field(default="", description="Feedback text")
    summary: str = Field(default="", description="Main summary")
    details: EvaluationDetails = Field(
        default_factory=EvaluationDetails, description="Stage flags"
    )
