"""Process configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from github_mcp.github_client import DEFAULT_TIMEOUT_SECONDS, get_github_token_with_source

TIMEOUT_SECONDS_ENV_VAR = "GITHUB_MCP_TIMEOUT_SECONDS"
LOG_LEVEL_ENV_VAR = "GITHUB_MCP_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True, slots=True)
class ServerSettings:
    """Settings read once at startup."""

    token: str = field(repr=False)
    token_source: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL


def _read_timeout_seconds() -> float:
    """Parse the HTTP timeout override, if set."""
    raw_value = os.getenv(TIMEOUT_SECONDS_ENV_VAR)
    if raw_value is None or not raw_value.strip():
        return DEFAULT_TIMEOUT_SECONDS
    try:
        timeout_seconds = float(raw_value)
    except ValueError as error:
        raise ValueError(
            f"{TIMEOUT_SECONDS_ENV_VAR} must be a number, got '{raw_value}'."
        ) from error
    if timeout_seconds <= 0:
        raise ValueError(f"{TIMEOUT_SECONDS_ENV_VAR} must be positive, got '{raw_value}'.")
    return timeout_seconds


def load_settings() -> ServerSettings:
    """Load settings, failing fast when no GitHub token is configured."""
    token, token_source = get_github_token_with_source()
    return ServerSettings(
        token=token,
        token_source=token_source,
        timeout_seconds=_read_timeout_seconds(),
        log_level=(os.getenv(LOG_LEVEL_ENV_VAR) or DEFAULT_LOG_LEVEL).upper(),
    )
