"""
LLM-based code quality evaluation.

Sends the collected Flutter sources to an OpenAI-compatible chat completion
endpoint (Groq by default) and turns the answer into a bounded
QualityEvaluation, tolerating malformed model output.
"""

import json
import math
import re
from typing import Any, Callable

from openai import OpenAI, OpenAIError

from .config import (
    DEFAULT_ASSIGNMENT_DESCRIPTION,
    LIST_ITEM_MAX_CHARS,
    LIST_MAX_ITEMS,
    LLM_BASE_URL,
    LLM_MAX_COMPLETION_TOKENS,
    LLM_MODEL,
    LLM_TEMPERATURE,
    LLM_TIMEOUT_SECONDS,
    LLM_TOP_P,
    MAX_SCORE,
    RECOMMENDATION_MAX_CHARS,
    SALVAGED_SUMMARY_MAX_CHARS,
    SUMMARY_MAX_CHARS,
)
from .errors import ConfigurationError
from .logging import get_logger
from .models import CollectedFile, QualityEvaluation

logger = get_logger("llm")

_CODE_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_SCORE_PATTERNS = (
    re.compile(r'"score"\s*:\s*(\d+)', re.IGNORECASE),
    re.compile(r"score[:\s]+(\d+)", re.IGNORECASE),
)
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class EmptyResponseError(Exception):
    """The model answered without any message content."""


def build_code_blob(files: list[CollectedFile]) -> str:
    """Concatenate files in order, each preceded by a path header."""
    return "\n\n".join(f"// File: {f.path}\n{f.content}" for f in files)


def _coerce_score(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return 0


def _clamp(score: int, max_score: int) -> int:
    return min(max(score, 0), max(max_score, 0))


def _truncate(value: Any, limit: int) -> str:
    if value is None:
        return ""
    return str(value)[:limit]


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [_truncate(item, LIST_ITEM_MAX_CHARS) for item in value[:LIST_MAX_ITEMS]]


def parse_strict(raw: str, max_score: int) -> QualityEvaluation:
    """
    Parse a JSON answer, optionally wrapped in markdown code fences.

    Raises:
        ValueError: If the text is not a JSON object.
    """
    cleaned = _CODE_FENCE.sub("", raw).strip()
    try:
        parsed = json.loads(cleaned)
    except RecursionError as e:
        raise ValueError("JSON nesting is too deep") from e
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")

    summary = parsed.get("summary") or parsed.get("feedback") or "No summary provided"
    recommendation = parsed.get("recommendation") or parsed.get("recommendations") or ""
    return QualityEvaluation(
        score=_clamp(_coerce_score(parsed.get("score")), max_score),
        summary=_truncate(summary, SUMMARY_MAX_CHARS),
        strengths=_string_list(parsed.get("strengths")),
        weaknesses=_string_list(parsed.get("weaknesses")),
        recommendation=_truncate(recommendation, RECOMMENDATION_MAX_CHARS),
    )


def parse_lenient(raw: str, max_score: int) -> QualityEvaluation:
    """Salvage a score from free text; the summary is a prefix of the raw answer."""
    score = 0
    for pattern in _SCORE_PATTERNS:
        match = pattern.search(raw)
        if match:
            score = int(match.group(1))
            break
    return QualityEvaluation(
        score=_clamp(score, max_score),
        summary=raw[:SALVAGED_SUMMARY_MAX_CHARS] or "Evaluation completed",
    )


def parse_evaluation(raw: str, max_score: int) -> QualityEvaluation:
    """
    Turn a model answer into a QualityEvaluation, never raising.

    Tries a strict JSON parse, then a lenient score salvage, then falls back
    to an empty zero-score result.

    Args:
        raw: Message content returned by the model.
        max_score: Upper bound for the awarded score.

    Returns:
        QualityEvaluation with clamped score and truncated fields.
    """
    parsers: tuple[Callable[[str, int], QualityEvaluation], ...] = (parse_strict, parse_lenient)
    for parser in parsers:
        try:
            return parser(raw, max_score)
        except ValueError as e:  # json.JSONDecodeError is a ValueError
            logger.error("Failed to parse LLM response with %s: %s", parser.__name__, e)
    return QualityEvaluation(score=0, summary="Evaluation completed")


class CodeQualityEvaluator:
    """
    Grades Flutter code quality through a chat completion API.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = LLM_MODEL,
        base_url: str = LLM_BASE_URL,
        assignment_description: str = DEFAULT_ASSIGNMENT_DESCRIPTION,
        timeout_seconds: float = LLM_TIMEOUT_SECONDS,
        client: Any | None = None,
    ) -> None:
        """
        Initialize the evaluator.

        Args:
            api_key: Bearer credential for the API. May be None; evaluate() then
                raises ConfigurationError.
            model: Model identifier.
            base_url: OpenAI-compatible API base URL.
            assignment_description: Requirements the code is graded against.
            timeout_seconds: Request timeout.
            client: Pre-built OpenAI-compatible client, mainly for tests.
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.assignment_description = assignment_description
        self.timeout_seconds = timeout_seconds
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        return self._client

    def evaluate(self, files: list[CollectedFile], max_score: int) -> QualityEvaluation:
        """
        Score the collected sources out of max_score.

        Transport and API failures yield a zero-score result describing the
        failure instead of raising.

        Args:
            files: Collected source files, in collection order.
            max_score: Remaining score budget.

        Returns:
            QualityEvaluation with score in [0, max_score].

        Raises:
            ConfigurationError: If no API key was configured.
        """
        if not self.api_key:
            logger.error("LLM API key not configured")
            raise ConfigurationError(
                "LLM API key not configured. Please set the GROQ_API_KEY environment variable."
            )

        prompt = self.build_prompt(files, max_score)

        try:
            raw = self._complete(prompt)
        except (OpenAIError, EmptyResponseError) as e:
            logger.error("LLM evaluation failed: %s", e)
            return QualityEvaluation(
                score=0,
                summary=_truncate(f"Evaluation failed: {e}", SUMMARY_MAX_CHARS),
                available=False,
            )

        return parse_evaluation(raw, max_score)

    def _complete(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=LLM_TEMPERATURE,
            max_completion_tokens=LLM_MAX_COMPLETION_TOKENS,
            top_p=LLM_TOP_P,
            stream=False,
        )
        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content:
            raise EmptyResponseError("No response content from LLM API")
        return content

    def build_prompt(self, files: list[CollectedFile], max_score: int) -> str:
        """
        Build the evaluation prompt.

        Args:
            files: Collected source files.
            max_score: Score ceiling the model should grade against.

        Returns:
            Complete prompt string.
        """
        return f"""Evaluate the following Flutter code for the assignment:

{self.assignment_description}

The evaluation should be out of {max_score} points (this represents the code quality portion of the total {MAX_SCORE}-point assignment).

Here is the code:

{build_code_blob(files)}

Evaluate based on:
- Code quality and structure
- Implementation of the assignment requirements
- Best practices and Flutter conventions
- Error handling
- Code organization

Provide a CONCISE evaluation. Keep responses brief and to the point.

Respond in the following JSON format (keep text fields short):
{{
  "score": <number between 0 and {max_score}>,
  "summary": "<brief overall summary in 2-3 sentences, max {SUMMARY_MAX_CHARS} characters>",
  "strengths": ["<brief point, max {LIST_ITEM_MAX_CHARS} characters>", "..."],
  "weaknesses": ["<brief point, max {LIST_ITEM_MAX_CHARS} characters>", "..."],
  "recommendation": "<brief recommendation in 1-2 sentences, max {RECOMMENDATION_MAX_CHARS} characters>"
}}
List at most {LIST_MAX_ITEMS} strengths and {LIST_MAX_ITEMS} weaknesses."""
