"""
Exception types surfaced by the grading pipeline.

Each error carries the HTTP status code the service layer should answer with.
"""


class GradingError(Exception):
    """Base class for errors that abort an evaluation."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ClientInputError(GradingError):
    """The submitted repository locator is malformed or not allowed."""

    status_code = 400


class GradingServerError(GradingError):
    """The evaluation could not be completed because of a server-side failure."""

    status_code = 500


class ConfigurationError(GradingServerError):
    """The deployment is missing configuration it needs, such as the LLM API key."""
