from normalizer.errors.models import ClassifiedError, ErrorCategory, ProviderErrorPayload
from normalizer.errors.handler import (
    ErrorClassifier,
    classify_error_text,
    format_assistant_error,
)

__all__ = [
    "ClassifiedError", "ErrorCategory", "ProviderErrorPayload",
    "ErrorClassifier", "classify_error_text", "format_assistant_error",
]
