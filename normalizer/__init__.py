"""
LLM turn normalizer. Sits between the provider API and the agent runner.

  - Error classification: raw provider errors → one friendly message
  - Role sanitizing: drop messages the target model API won't accept
  - User-facing text cleanup
"""

from normalizer.errors import (
    ClassifiedError, ErrorCategory, ErrorClassifier,
    classify_error_text, format_assistant_error,
)
from normalizer.models import AssistantTurn
from normalizer.roles import RolePolicy, sanitize_roles
from normalizer.text.sanitizer import sanitize_user_facing_text

__all__ = [
    "ClassifiedError", "ErrorCategory", "ErrorClassifier",
    "classify_error_text", "format_assistant_error",
    "AssistantTurn",
    "RolePolicy", "sanitize_roles",
    "sanitize_user_facing_text",
]
