"""
Grading pipeline orchestration.

Runs clone, structure, install, build and test stages in order according to
a declarative scoring policy, then scores code quality with the LLM
evaluator. The workspace is always removed when a run ends.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .collector import collect_source_files
from .config import (
    GATING_FAILURE_CAP,
    MAX_SCORE,
    SOURCE_DIRNAME,
    SOURCE_EXTENSION,
    TEST_STAGE_SCORE,
)
from .config_loader import GraderConfig, resolve_api_key
from .errors import ClientInputError, GradingError, GradingServerError
from .llm_evaluator import CodeQualityEvaluator
from .logging import get_logger
from .models import (
    CheckResult,
    CollectedFile,
    EvaluationDetails,
    EvaluationResponse,
    StageOutcome,
)
from .repository import RepositoryFetcher, remove_workspace
from .runner import CommandRunner
from .stages import BuildStage, InstallStage, TestStage
from .structure import StructureValidator

logger = get_logger("pipeline")

QUALITY_CHECK_NAME = "Code Quality Evaluation"


@dataclass(frozen=True)
class StagePolicy:
    """
    Scoring rule for one pipeline stage.

    Attributes:
        key: Stage identifier, matched to the pipeline's stage handlers.
        check_name: Name reported in the CheckResult.
        detail_field: EvaluationDetails flag set when the stage passes.
        gating: Whether a failure stops the pipeline.
        score: Points awarded when the stage passes.
        failure_cap: Total score reported when a gating stage fails.
        failure_feedback: Feedback for a gating failure; the stage message is
            used when None.
    """

    key: str
    check_name: str
    detail_field: str
    gating: bool
    score: int = 0
    failure_cap: int = 0
    failure_feedback: str | None = None


PIPELINE_POLICY: tuple[StagePolicy, ...] = (
    StagePolicy(
        "clone", "Clone Repository", "clone_successful", gating=True, failure_cap=0,
        failure_feedback=f"Repository cloning failed. Score: 0/{MAX_SCORE}",
    ),
    StagePolicy(
        "structure", "Required Files Check", "files_valid", gating=True, failure_cap=0,
    ),
    StagePolicy(
        "install", "Flutter Pub Get", "pub_get_successful", gating=True,
        failure_cap=GATING_FAILURE_CAP,
        failure_feedback=f"Dependencies installation failed. Maximum score: {GATING_FAILURE_CAP}/{MAX_SCORE}",
    ),
    StagePolicy(
        "build", "Build Check", "build_successful", gating=True,
        failure_cap=GATING_FAILURE_CAP,
        failure_feedback=f"App does not compile. Maximum score: {GATING_FAILURE_CAP}/{MAX_SCORE}",
    ),
    StagePolicy(
        "tests", "Flutter Test", "tests_passed", gating=False, score=TEST_STAGE_SCORE,
    ),
)


@dataclass
class _Run:
    """Mutable state of one evaluation; owned by a single evaluate() call."""

    repo_url: str
    workspace: Path | None = None
    score: int = 0
    checks: list[CheckResult] = field(default_factory=list)
    details: EvaluationDetails = field(default_factory=EvaluationDetails)


class GradingPipeline:
    """
    Grades one repository end to end.

    Stages run sequentially. Gating failures stop the run with the capped score
    from the policy table; non-gating failures only forfeit that stage's points.
    """

    def __init__(
        self,
        fetcher: RepositoryFetcher,
        validator: StructureValidator,
        install_stage: InstallStage,
        build_stage: BuildStage,
        test_stage: TestStage,
        evaluator: CodeQualityEvaluator,
        collector: Callable[[Path], list[CollectedFile]] = collect_source_files,
        policy: tuple[StagePolicy, ...] = PIPELINE_POLICY,
        max_score: int = MAX_SCORE,
    ) -> None:
        self.fetcher = fetcher
        self.validator = validator
        self.install_stage = install_stage
        self.build_stage = build_stage
        self.test_stage = test_stage
        self.evaluator = evaluator
        self.collector = collector
        self.policy = policy
        self.max_score = max_score

        self._handlers: dict[str, Callable[[_Run], StageOutcome]] = {
            "clone": self._clone,
            "structure": self._check_structure,
            "install": lambda run: self.install_stage.run(run.workspace),
            "build": lambda run: self.build_stage.run(run.workspace),
            "tests": lambda run: self.test_stage.run(run.workspace),
        }
        unknown = [p.key for p in policy if p.key not in self._handlers]
        if unknown:
            raise ValueError(f"No stage handler for policy entries: {unknown}")
        if sum(p.score for p in policy) > max_score:
            raise ValueError("Stage scores exceed the maximum score")

    @classmethod
    def from_config(cls, config: GraderConfig) -> "GradingPipeline":
        """
        Build a pipeline wired to the local toolchain and the configured LLM.

        Args:
            config: Loaded grader configuration.

        Returns:
            Ready-to-use GradingPipeline.
        """
        runner = CommandRunner()
        return cls(
            fetcher=RepositoryFetcher(
                workspace_root=config.workspace_root,
                runner=runner,
                allowed_hosts=config.allowed_hosts,
            ),
            validator=StructureValidator(),
            install_stage=InstallStage(runner),
            build_stage=BuildStage(
                runner, info_overrides_errors=config.analyze_info_overrides_errors
            ),
            test_stage=TestStage(runner),
            evaluator=CodeQualityEvaluator(
                api_key=resolve_api_key(config.llm_api_key),
                model=config.llm_model,
                base_url=config.llm_base_url,
                assignment_description=config.assignment_description,
            ),
        )

    def evaluate(self, repo_url: str) -> EvaluationResponse:
        """
        Grade a repository.

        Args:
            repo_url: Repository URL on an allowed host.

        Returns:
            EvaluationResponse with score breakdown and feedback.

        Raises:
            ClientInputError: If the URL is malformed or its host is not allowed.
            ConfigurationError: If the LLM API key is missing.
            GradingServerError: For any other unexpected failure.
        """
        run = _Run(repo_url=repo_url)

        try:
            if not self.fetcher.is_allowed_url(repo_url):
                raise ClientInputError("Invalid GitHub repository URL")

            for policy in self.policy:
                outcome = self._handlers[policy.key](run)
                awarded = policy.score if outcome.success else 0
                run.score += awarded
                run.checks.append(
                    CheckResult(
                        name=policy.check_name,
                        passed=outcome.success,
                        message=outcome.message,
                        score=awarded,
                    )
                )
                setattr(run.details, policy.detail_field, outcome.success)

                if not outcome.success and policy.gating:
                    feedback = policy.failure_feedback or outcome.message
                    return self._respond(run, min(policy.failure_cap, self.max_score), feedback)

            return self._evaluate_quality(run)

        except GradingError as e:
            logger.error("Evaluation error: %s", e.message)
            raise
        except Exception as e:
            logger.exception("Evaluation error: %s", e)
            raise GradingServerError(f"Evaluation failed: {str(e) or 'Unknown error'}") from e
        finally:
            if run.workspace is not None:
                remove_workspace(run.workspace)

    def _clone(self, run: _Run) -> StageOutcome:
        logger.info("Cloning repository: %s", run.repo_url)
        run.workspace = self.fetcher.clone(run.repo_url)
        if run.workspace is None:
            return StageOutcome(success=False, message="Failed to clone repository")
        return StageOutcome(success=True, message="Repository cloned successfully")

    def _check_structure(self, run: _Run) -> StageOutcome:
        logger.info("Checking required files")
        return self.validator.run(run.workspace)

    def _evaluate_quality(self, run: _Run) -> EvaluationResponse:
        logger.info("Collecting %s/ files for quality evaluation", SOURCE_DIRNAME)
        files = self.collector(run.workspace)

        if not files:
            logger.warning("No files found in %s/ directory", SOURCE_DIRNAME)
            run.checks.append(
                CheckResult(
                    name=QUALITY_CHECK_NAME,
                    passed=False,
                    message=f"No {SOURCE_EXTENSION} files found under {SOURCE_DIRNAME}/",
                    score=0,
                )
            )
            return self._respond(
                run, run.score, f"Evaluation completed. Score: {run.score}/{self.max_score}"
            )

        remaining = self.max_score - run.score
        logger.info("Sending %d files for quality evaluation (max %d points)", len(files), remaining)
        result = self.evaluator.evaluate(files, remaining)

        score = min(max(result.score, 0), remaining)
        result = result.model_copy(update={"score": score})
        run.score += score
        run.checks.append(
            CheckResult(
                name=QUALITY_CHECK_NAME,
                passed=result.available,
                message="Code evaluated by LLM" if result.available else result.summary,
                score=score,
            )
        )
        run.details.quality_evaluation = result

        return self._respond(run, run.score, result.summary)

    def _respond(self, run: _Run, total_score: int, feedback: str) -> EvaluationResponse:
        logger.info("Evaluation finished. Score: %d/%d", total_score, self.max_score)
        return EvaluationResponse(
            total_score=total_score,
            max_score=self.max_score,
            checks=list(run.checks),
            feedback=feedback,
            summary=feedback,
            details=run.details.model_copy(),
        )
