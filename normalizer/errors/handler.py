"""
ErrorClassifier turns raw provider errors into friendly, stable messages.

Usage:
    from normalizer.errors import ErrorClassifier, format_assistant_error

    classifier = ErrorClassifier()

    classified = classifier.classify('400 Bad Request: Unexpected role "developer"')
    show_to_user(classified.message)

    # or straight from a failed assistant turn
    text = format_assistant_error(turn)
"""

import json
import logging
from dataclasses import replace
from functools import lru_cache
from http import HTTPStatus
from typing import Any, Optional

from botocore.exceptions import ClientError

from normalizer.config import DEFAULT_MAX_ERROR_CHARS, load_settings
from normalizer.errors.catalog import (
    ERROR_RULES,
    UNCATEGORIZED_RULE,
    UNKNOWN_ERROR_MESSAGE,
    ClassificationRule,
    find_offending_role,
    is_error_shaped,
)
from normalizer.errors.models import ClassifiedError, ErrorCategory
from normalizer.errors.payload import build_error_context
from normalizer.models.turn import as_turn
from normalizer.text.blocks import truncate

logger = logging.getLogger("normalizer.errors")

# Categories that mean the conversation itself is the problem
_HISTORY_CATEGORIES = (
    ErrorCategory.ROLE_ORDERING_CONFLICT,
    ErrorCategory.UNSUPPORTED_ROLE_TYPE,
    ErrorCategory.GENERIC_ROLE_ERROR,
    ErrorCategory.CONTEXT_OVERFLOW,
)


def describe_exception(error: Exception) -> str:
    """
    Render an exception as the raw error text a provider would have sent.

    botocore ClientError: "400 Bad Request: ValidationException: ..."
    SDK errors with status_code + dict body: "429 {...json...}"
    Anything else: str(error)
    """
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        code = details.get("Code", "")
        message = details.get("Message", "") or str(error)
        text = f"{code}: {message}" if code else message
        if isinstance(status, int):
            try:
                phrase = HTTPStatus(status).phrase
            except ValueError:
                return f"{status}: {text}"
            return f"{status} {phrase}: {text}"
        return text

    status = getattr(error, "status_code", None)
    body = getattr(error, "body", None)
    if isinstance(status, int) and isinstance(body, dict):
        return f"{status} {json.dumps(body)}"
    return str(error)


class ErrorClassifier:
    """Matches raw error text against the rule catalog and returns friendly messages."""

    def __init__(
        self,
        rules: Optional[list[ClassificationRule]] = None,
        max_error_chars: int = DEFAULT_MAX_ERROR_CHARS,
    ):
        self.rules = list(rules) if rules is not None else list(ERROR_RULES)
        self.max_error_chars = max_error_chars

    def classify(self, raw_text: Optional[str], context: str = "") -> ClassifiedError:
        """Classify a raw error string.

        Args:
            raw_text: Error text exactly as the provider returned it.
            context: Optional context string for logs (e.g. "chat", "anthropic-messages").

        Returns:
            A ClassifiedError. Never raises; unmatched text lands in UNCATEGORIZED.
        """
        raw_text = raw_text or ""
        if not raw_text.strip():
            classified = ClassifiedError(
                message=UNKNOWN_ERROR_MESSAGE,
                category=ErrorCategory.UNCATEGORIZED,
            )
            self._log_error(classified, context, matched=False)
            return classified

        ctx = build_error_context(raw_text)
        rule = self._match(ctx)

        message = rule.render(ctx)
        if rule.category == ErrorCategory.UNCATEGORIZED:
            message = truncate(message, self.max_error_chars)

        classified = ClassifiedError(
            message=message,
            category=rule.category,
            original_error=raw_text,
            effective_text=ctx.text,
            status_code=ctx.status_code,
        )
        if rule.category == ErrorCategory.UNSUPPORTED_ROLE_TYPE:
            classified = replace(classified, offending_role=find_offending_role(ctx.text))

        self._log_error(classified, context, matched=rule is not UNCATEGORIZED_RULE)
        return classified

    def handle(self, error: Exception, context: str = "") -> ClassifiedError:
        """Classify a caught provider exception."""
        return self.classify(describe_exception(error), context)

    def is_error_text(self, raw_text: Optional[str]) -> bool:
        """True if the text looks like a provider error any rule recognizes.

        Overflow wording alone isn't enough ("the prompt is too large" can be
        ordinary prose); it also needs a status line, an error body or an
        overflow error code.
        """
        if not raw_text or not raw_text.strip():
            return False
        ctx = build_error_context(raw_text)
        rule = self._match(ctx)
        if rule.category == ErrorCategory.CONTEXT_OVERFLOW:
            return is_error_shaped(ctx)
        return rule is not UNCATEGORIZED_RULE

    def format_turn(self, turn: Any) -> Optional[str]:
        """Friendly text for a failed assistant turn.

        Turns that didn't fail come back untouched: their error text (if
        any) is returned as-is.
        """
        turn = as_turn(turn)
        if not turn.failed:
            return turn.error_message
        return self.classify(turn.error_message, context=turn.log_context).message

    def _match(self, ctx) -> ClassificationRule:
        for rule in self.rules:
            if rule.matches(ctx):
                return rule
        return UNCATEGORIZED_RULE

    def _log_error(
        self, classified: ClassifiedError, context: str, matched: bool = True
    ) -> None:
        """Log the raw error with its category (raw text is never shown to users)."""
        prefix = f"[{context}] " if context else ""
        match_tag = classified.category.value.upper() if matched else "UNMATCHED"

        if classified.category in _HISTORY_CATEGORIES:
            logger.warning(f"{prefix}{match_tag}: {classified.original_error}")
        else:
            logger.info(f"{prefix}{match_tag}: {classified.original_error}")


@lru_cache(maxsize=1)
def get_default_classifier() -> ErrorClassifier:
    """Process-wide classifier configured from the environment."""
    settings = load_settings()
    return ErrorClassifier(max_error_chars=settings.max_error_chars)


def classify_error_text(raw_text: Optional[str]) -> str:
    """Friendly message for a raw provider error string."""
    return get_default_classifier().classify(raw_text).message


def format_assistant_error(turn: Any) -> Optional[str]:
    """Friendly message for a failed assistant turn (no-op for other turns)."""
    return get_default_classifier().format_turn(turn)
