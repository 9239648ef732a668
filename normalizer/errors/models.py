"""
Classified error models.

Every user-facing provider error ends up as a ClassifiedError: one stable
category, one friendly message.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """Which kind of provider failure a raw error string describes."""

    ROLE_ORDERING_CONFLICT = "role_ordering_conflict"
    UNSUPPORTED_ROLE_TYPE = "unsupported_role_type"
    GENERIC_ROLE_ERROR = "generic_role_error"
    CONTEXT_OVERFLOW = "context_overflow"
    HTTP_STATUS_ERROR = "http_status_error"
    RAW_PROVIDER_ERROR = "raw_provider_error"
    UNCATEGORIZED = "uncategorized"


@dataclass
class ProviderErrorPayload:
    """Structured error pulled out of a JSON-wrapped provider response."""

    message: str
    error_type: str = ""
    request_id: str = ""
    status_code: Optional[int] = None


@dataclass
class HttpStatusLine:
    """A leading HTTP status code with its reason text."""

    status_code: int
    reason: str

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


@dataclass
class ErrorContext:
    """
    Preprocessed view of one raw error string.
    Built once per classification, handed to every rule.
    """

    raw: str                                    # Exactly what the provider gave us
    text: str                                   # Effective text (nested message if JSON-wrapped)
    payload: Optional[ProviderErrorPayload] = None
    status_line: Optional[HttpStatusLine] = None

    @property
    def status_code(self) -> Optional[int]:
        if self.status_line:
            return self.status_line.status_code
        if self.payload:
            return self.payload.status_code
        return None


@dataclass
class ClassifiedError:
    """A provider error mapped to a category and a message for the user."""

    message: str                          # Friendly message for the user
    category: ErrorCategory
    original_error: str = ""              # Raw error (logged, never shown to user)
    effective_text: str = ""              # What the rules actually matched against
    offending_role: str = ""              # Role named by an unsupported-role error
    status_code: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": "error",
            "category": self.category.value,
            "message": self.message,
            "offending_role": self.offending_role,
            "status_code": self.status_code,
        }
