"""
Configuration constants for the Flutter Grader pipeline.
"""

from pathlib import Path


# Score policy
MAX_SCORE: int = 20
TEST_STAGE_SCORE: int = 5
GATING_FAILURE_CAP: int = 5

# Execution timeouts (seconds)
CLONE_TIMEOUT_SECONDS: int = 120
INSTALL_TIMEOUT_SECONDS: int = 60
ANALYZE_TIMEOUT_SECONDS: int = 120
BUILD_TIMEOUT_SECONDS: int = 180
TEST_TIMEOUT_SECONDS: int = 120

# Toolchain commands
GIT_CLONE_ARGS: list[str] = ["git", "clone", "--depth", "1"]
INSTALL_COMMAND: list[str] = ["flutter", "pub", "get"]
ANALYZE_COMMAND: list[str] = ["flutter", "analyze"]
BUILD_COMMAND: list[str] = ["flutter", "build", "apk", "--debug"]
TEST_COMMAND: list[str] = ["flutter", "test"]

# Output markers used by the stage heuristics
INSTALL_WARNING_MARKER: str = "Warning"
ANALYZE_STDERR_ERROR_MARKER: str = "error"
ANALYZE_STDOUT_ERROR_MARKER: str = "error •"
ANALYZE_STDERR_INFO_MARKER: str = "info"
ANALYZE_STDOUT_INFO_MARKER: str = "info •"
TESTS_PASSED_MARKER: str = "All tests passed!"
TESTS_PASS_COUNT_MARKER: str = "+"
TESTS_FAILED_MARKER: str = "Some tests failed"
NO_TESTS_MARKERS: list[str] = ["No tests found", "No test file"]

# Project layout
MANIFEST_FILENAME: str = "pubspec.yaml"
ENTRY_POINT_PATH: str = "lib/main.dart"
SOURCE_DIRNAME: str = "lib"
SOURCE_EXTENSION: str = ".dart"

# Repository hosting
ALLOWED_HOSTS: list[str] = ["github.com", "www.github.com"]
DEFAULT_WORKSPACE_ROOT: Path = Path("temp-repos")

# LLM configuration (Groq exposes an OpenAI-compatible API)
LLM_BASE_URL: str = "https://api.groq.com/openai/v1"
LLM_MODEL: str = "openai/gpt-oss-120b"
LLM_TEMPERATURE: float = 0.3
LLM_TOP_P: float = 1.0
LLM_MAX_COMPLETION_TOKENS: int = 800
LLM_TIMEOUT_SECONDS: float = 60.0
API_KEY_ENV_VAR: str = "GROQ_API_KEY"
API_KEY_NETRC_MACHINE: str = "GROQ"

# Evaluation output limits
SUMMARY_MAX_CHARS: int = 300
LIST_ITEM_MAX_CHARS: int = 150
LIST_MAX_ITEMS: int = 5
RECOMMENDATION_MAX_CHARS: int = 200
SALVAGED_SUMMARY_MAX_CHARS: int = 200

DEFAULT_ASSIGNMENT_DESCRIPTION: str = """Create a Todo app with:
- Add todo
- Delete todo
- Mark todo as complete"""

# Service defaults
DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
