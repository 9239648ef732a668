"""
Error rule catalog.

Maps known provider error shapes to friendly, stable messages.
When a new provider error shows up in production:
  1. Capture the raw error from logs
  2. Extend the matching pattern (or add a rule) here
  3. Keep the message short and point at /new when the history is the problem
  4. Add a unit test pinning its priority against the neighbouring rules
"""

import re
from dataclasses import dataclass
from typing import Callable

from normalizer.errors.models import ErrorCategory, ErrorContext
from normalizer.errors.payload import has_client_error_indicator
from normalizer.text.blocks import collapse_duplicate_paragraphs, strip_final_tags

NEW_CONVERSATION_HINT = "use /new to start a fresh conversation"

UNKNOWN_ERROR_MESSAGE = "LLM request failed with an unknown error."

ROLE_ORDERING_MESSAGE = (
    "Message ordering conflict: the conversation history is out of order for "
    f"this model. Please try again, and if it keeps happening, {NEW_CONVERSATION_HINT}."
)

UNSUPPORTED_ROLE_MESSAGE = (
    "This model does not support the message role type{role}. "
    f"{NEW_CONVERSATION_HINT.capitalize()}."
)

GENERIC_ROLE_MESSAGE = (
    "Role-related API error: the provider rejected a message in this conversation. "
    f"{NEW_CONVERSATION_HINT.capitalize()}."
)

CONTEXT_OVERFLOW_MESSAGE = (
    "Context overflow: the prompt is too large for the model. Try again with "
    f"less input, or {NEW_CONVERSATION_HINT}."
)

# ── Patterns ─────────────────────────────────────────────────────────────

ROLE_ORDERING_PATTERN = re.compile(
    r"\broles?\s+must\s+alternate"
    r"|\balternate\s+between\s+(?:the\s+)?user\s+and\s+assistant(?:\s+roles?)?"
    r"|\bincorrect\s+role\s+information"
    r"|\bmessages\.\d+\.role\b[^\n]*\bincorrect\s+role",
    re.IGNORECASE,
)

UNSUPPORTED_ROLE_PATTERN = re.compile(
    r"\b(?:unexpected|invalid|unsupported|unknown)\s+role\b"
    r"|\brole\b[^.\n]*\bnot\s+supported\b",
    re.IGNORECASE,
)

# The role value an unsupported-role error complains about, if it names one
OFFENDING_ROLE_PATTERN = re.compile(
    r"\brole\b(?:\s+type)?[\s:=]*[\"'`]?([A-Za-z_][\w-]*)",
    re.IGNORECASE,
)

KNOWN_ROLES = frozenset({
    "user", "assistant", "system", "developer", "tool", "function", "model",
    "toolresult", "tool_result",
})

ROLE_WORD_PATTERN = re.compile(r"\brole\b", re.IGNORECASE)

CONTEXT_OVERFLOW_PATTERN = re.compile(
    r"request[_\s-]too[_\s-]large"
    r"|(?:payload|request\s+entity|content|prompt\s+is)\s+too\s+large"
    r"|context[_\s-]length[_\s-]exceeded"
    r"|maximum\s+context\s+length"
    r"|exceeds\s+the\s+context\s+window"
    r"|prompt\s+is\s+too\s+long"
    r"|input\s+tokens\s+exceed"
    r"|context\s+overflow",
    re.IGNORECASE,
)

# Machine-readable overflow codes providers put in error bodies
OVERFLOW_ERROR_CODE_PATTERN = re.compile(
    r"\b(?:request_too_large|context_length_exceeded|model_context_window_exceeded)\b",
    re.IGNORECASE,
)


# ── Predicates ───────────────────────────────────────────────────────────


def is_role_ordering_error(ctx: ErrorContext) -> bool:
    return bool(ROLE_ORDERING_PATTERN.search(ctx.text))


def is_unsupported_role_error(ctx: ErrorContext) -> bool:
    return bool(UNSUPPORTED_ROLE_PATTERN.search(ctx.text))


def is_context_overflow_error(ctx: ErrorContext) -> bool:
    return bool(CONTEXT_OVERFLOW_PATTERN.search(ctx.text))


def is_generic_role_error(ctx: ErrorContext) -> bool:
    if is_context_overflow_error(ctx):
        return False
    return has_client_error_indicator(ctx) and bool(ROLE_WORD_PATTERN.search(ctx.text))


def is_http_status_error(ctx: ErrorContext) -> bool:
    return ctx.status_line is not None and ctx.status_line.is_error


def is_raw_provider_error(ctx: ErrorContext) -> bool:
    return ctx.payload is not None


def is_error_shaped(ctx: ErrorContext) -> bool:
    """Status line, JSON error body, or an overflow error code in the text."""
    return (
        ctx.status_line is not None
        or ctx.payload is not None
        or bool(OVERFLOW_ERROR_CODE_PATTERN.search(ctx.raw))
    )


def find_offending_role(text: str) -> str:
    """Name the rejected role, but only when it really is a role identifier."""
    for match in OFFENDING_ROLE_PATTERN.finditer(text):
        candidate = match.group(1).lower()
        if candidate in KNOWN_ROLES:
            return candidate
    return ""


# ── Renderers ────────────────────────────────────────────────────────────


def render_unsupported_role(ctx: ErrorContext) -> str:
    role = find_offending_role(ctx.text)
    return UNSUPPORTED_ROLE_MESSAGE.format(role=f' "{role}"' if role else "")


def render_http_status(ctx: ErrorContext) -> str:
    line = ctx.status_line
    if not line.reason:
        return f"HTTP {line.status_code}"
    return f"HTTP {line.status_code}: {line.reason}"


def render_raw_provider_error(ctx: ErrorContext) -> str:
    payload = ctx.payload
    label = f"LLM error {payload.error_type}" if payload.error_type else "LLM error"
    text = f"{label}: {payload.message}"
    if payload.request_id:
        text += f" (request_id: {payload.request_id})"
    return text


def render_uncategorized(ctx: ErrorContext) -> str:
    text = collapse_duplicate_paragraphs(strip_final_tags(ctx.text)).strip()
    return text or UNKNOWN_ERROR_MESSAGE


@dataclass(frozen=True)
class ClassificationRule:
    """One catalog entry: when it applies and what the user sees."""

    category: ErrorCategory
    matches: Callable[[ErrorContext], bool]
    render: Callable[[ErrorContext], str]


# Order matters: first match wins.
# Specific role patterns sit above the generic 400+role fallback, and the
# generic one refuses overflow text so overflow never reads as a role error.

ERROR_RULES: list[ClassificationRule] = [
    ClassificationRule(
        category=ErrorCategory.ROLE_ORDERING_CONFLICT,
        matches=is_role_ordering_error,
        render=lambda ctx: ROLE_ORDERING_MESSAGE,
    ),
    ClassificationRule(
        category=ErrorCategory.UNSUPPORTED_ROLE_TYPE,
        matches=is_unsupported_role_error,
        render=render_unsupported_role,
    ),
    ClassificationRule(
        category=ErrorCategory.GENERIC_ROLE_ERROR,
        matches=is_generic_role_error,
        render=lambda ctx: GENERIC_ROLE_MESSAGE,
    ),
    ClassificationRule(
        category=ErrorCategory.CONTEXT_OVERFLOW,
        matches=is_context_overflow_error,
        render=lambda ctx: CONTEXT_OVERFLOW_MESSAGE,
    ),
    ClassificationRule(
        category=ErrorCategory.HTTP_STATUS_ERROR,
        matches=is_http_status_error,
        render=render_http_status,
    ),
    ClassificationRule(
        category=ErrorCategory.RAW_PROVIDER_ERROR,
        matches=is_raw_provider_error,
        render=render_raw_provider_error,
    ),
]


# Pre-built fallback, always matches
UNCATEGORIZED_RULE = ClassificationRule(
    category=ErrorCategory.UNCATEGORIZED,
    matches=lambda ctx: True,
    render=render_uncategorized,
)
