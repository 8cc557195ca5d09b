"""
Environment-driven settings.

The CLI loads a .env file with python-dotenv before anything here is read, so
values may come from either the process environment or that file.
"""

import os
from typing import Optional

DEBUG_ENV_VAR = "BLOCK_PARSER_PARSE_DEBUG"
LOG_LEVEL_ENV_VAR = "BLOCK_PARSER_LOG_LEVEL"

_TRUTHY = ("1", "true", "yes", "on")


def is_debug_enabled() -> bool:
    """Whether parse results should carry the debug payloads."""
    return os.getenv(DEBUG_ENV_VAR, "").strip().lower() in _TRUTHY


def get_log_level(default: str = "INFO") -> str:
    return os.getenv(LOG_LEVEL_ENV_VAR, default).strip().upper() or default


def resolve_debug(debug: Optional[bool]) -> bool:
    """Explicit argument wins; otherwise fall back to the environment."""
    if debug is None:
        return is_debug_enabled()
    return bool(debug)
