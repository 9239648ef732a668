"""
Normalizer settings, read from environment variables.

Optionally seeded from a .env file (existing environment wins):
    NORMALIZER_MAX_ERROR_CHARS=600
    NORMALIZER_ROLE_POLICY_FILE=config/role_policies.yaml
    NORMALIZER_LOG_LEVEL=INFO
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_MAX_ERROR_CHARS = 600

ENV_MAX_ERROR_CHARS = "NORMALIZER_MAX_ERROR_CHARS"
ENV_ROLE_POLICY_FILE = "NORMALIZER_ROLE_POLICY_FILE"
ENV_LOG_LEVEL = "NORMALIZER_LOG_LEVEL"


class ConfigError(ValueError):
    pass


@dataclass
class NormalizerSettings:
    max_error_chars: int = DEFAULT_MAX_ERROR_CHARS   # Cut-off for unrecognized error text
    role_policy_file: str = ""                       # Optional YAML extending the role table
    log_level: str = "INFO"                          # CLI only; library code never configures logging


def load_env_file(env_file: str) -> None:
    """Load a .env file into os.environ without overriding what's already set."""
    path = Path(env_file)
    if not path.exists():
        return
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, value = line.split("=", 1)
                os.environ.setdefault(key.strip(), value.strip())


def load_settings(env_file: Optional[str] = None) -> NormalizerSettings:
    """Build settings from the environment (and an optional .env file)."""
    if env_file:
        load_env_file(env_file)

    raw_max = os.getenv(ENV_MAX_ERROR_CHARS, "").strip()
    max_error_chars = DEFAULT_MAX_ERROR_CHARS
    if raw_max:
        try:
            max_error_chars = int(raw_max)
        except ValueError:
            raise ConfigError(
                f"{ENV_MAX_ERROR_CHARS} must be an integer, got {raw_max!r}"
            ) from None
        if max_error_chars < 0:
            raise ConfigError(f"{ENV_MAX_ERROR_CHARS} must not be negative")

    return NormalizerSettings(
        max_error_chars=max_error_chars,
        role_policy_file=os.getenv(ENV_ROLE_POLICY_FILE, "").strip(),
        # Checked by the CLI only (validate_log_level); library calls ignore it
        log_level=os.getenv(ENV_LOG_LEVEL, "INFO").strip().upper() or "INFO",
    )


def validate_log_level(log_level: str) -> str:
    """Return the level name, or raise ConfigError if logging doesn't know it."""
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"{ENV_LOG_LEVEL} is not a logging level: {log_level!r}")
    return log_level
