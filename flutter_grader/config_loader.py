"""
Configuration loader for the Flutter Grader.

Handles parsing and validation of YAML configuration files and resolution of
the LLM API key.
"""

import netrc
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from .config import (
    ALLOWED_HOSTS,
    API_KEY_ENV_VAR,
    API_KEY_NETRC_MACHINE,
    DEFAULT_ASSIGNMENT_DESCRIPTION,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_WORKSPACE_ROOT,
    LLM_BASE_URL,
    LLM_MODEL,
)
from .logging import get_logger

logger = get_logger("config")


class GraderConfig(BaseModel):
    """
    Configuration model for the grader.
    """
    workspace_root: Path = Field(DEFAULT_WORKSPACE_ROOT, description="Directory for cloned repositories")
    allowed_hosts: list[str] = Field(default_factory=lambda: list(ALLOWED_HOSTS), description="Accepted repository hosts")
    llm_base_url: str = Field(LLM_BASE_URL, description="OpenAI-compatible API base URL")
    llm_model: str = Field(LLM_MODEL, description="Model used for code quality evaluation")
    llm_api_key: Optional[str] = Field(None, description="API key; falls back to .netrc and environment")
    assignment_description: str = Field(DEFAULT_ASSIGNMENT_DESCRIPTION, description="Assignment requirements shown to the LLM")
    analyze_info_overrides_errors: bool = Field(
        True, description="Accept analysis output mentioning errors when info-level findings are also present"
    )

    host: str = Field(DEFAULT_HOST, description="Service bind address")
    port: int = Field(DEFAULT_PORT, description="Service port")
    verbose: bool = Field(False, description="Enable verbose output")


def load_config(config_path: Path) -> GraderConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        GraderConfig object with loaded values.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        yaml.YAMLError: If config file is invalid YAML.
        ValidationError: If config data is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        return GraderConfig()

    # Resolve the workspace root relative to the config file location
    if config_data.get("workspace_root"):
        path = Path(config_data["workspace_root"])
        if not path.is_absolute():
            config_data["workspace_root"] = config_path.parent / path

    return GraderConfig(**config_data)


def resolve_api_key(api_key: str | None = None) -> str | None:
    """
    Find the LLM API key.

    Priority: 1. Argument, 2. .netrc (machine GROQ), 3. Environment variable.

    Args:
        api_key: Explicitly configured key.

    Returns:
        The key, or None if none is configured anywhere.
    """
    if api_key:
        return api_key

    try:
        auth = netrc.netrc().authenticators(API_KEY_NETRC_MACHINE)
        if auth:
            # login holds the key, matching the OPENAI machine convention
            return auth[0] or auth[2]
    except (OSError, netrc.NetrcParseError) as e:
        logger.debug("No usable .netrc entry: %s", e)

    return os.environ.get(API_KEY_ENV_VAR) or None
