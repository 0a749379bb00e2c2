"""FastAPI application exposing the grading pipeline over HTTP."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .config import DEFAULT_HOST, DEFAULT_PORT
from .errors import GradingError
from .logging import get_logger
from .models import EvaluationRequest, EvaluationResponse
from .pipeline import GradingPipeline

logger = get_logger("service")


class HealthResponse(BaseModel):
    status: str


def create_app(pipeline_factory: Callable[[], GradingPipeline]) -> FastAPI:
    """Create the FastAPI application serving evaluation requests."""

    app = FastAPI(title="Flutter Grader Service", version=__version__)

    async def get_pipeline() -> GradingPipeline:
        # One pipeline per request; runs never share workspaces.
        return pipeline_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post(
        "/evaluate",
        response_model=EvaluationResponse,
        response_model_by_alias=True,
    )
    async def evaluate(
        payload: EvaluationRequest,
        pipeline: GradingPipeline = Depends(get_pipeline),
    ) -> EvaluationResponse:
        logger.info("Received evaluation request for: %s", payload.repo_url)
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, pipeline.evaluate, payload.repo_url)
        logger.info("Evaluation completed. Score: %d/%d", result.total_score, result.max_score)
        return result

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Any, exc: RequestValidationError) -> JSONResponse:
        messages = [str(error.get("msg", "")) for error in exc.errors()]
        return JSONResponse(status_code=400, content={"detail": "; ".join(messages)})

    @app.exception_handler(GradingError)
    async def grading_error_handler(_: Any, exc: GradingError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    return app


def run_service(
    pipeline_factory: Callable[[], GradingPipeline],
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(pipeline_factory)
    uvicorn.run(app, host=host, port=port, log_config=None)
