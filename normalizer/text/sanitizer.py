"""
User-facing text sanitizer.

Last stop before assistant text reaches a channel: strips <final> markers,
swaps recognizable provider errors for their friendly message, and
collapses paragraphs a model repeated back to back.
"""

from typing import Optional

from normalizer.errors.handler import ErrorClassifier, get_default_classifier
from normalizer.text.blocks import collapse_duplicate_paragraphs, strip_final_tags


def sanitize_user_facing_text(
    text: Optional[str],
    classifier: Optional[ErrorClassifier] = None,
) -> Optional[str]:
    """
    Clean text for display. Idempotent: sanitizing twice changes nothing.

    Error-shaped text (role errors, overflow, HTTP status lines, JSON error
    payloads) becomes the classifier's friendly message; anything else only
    gets the structural cleanups.
    """
    if not text:
        return text

    classifier = classifier or get_default_classifier()
    stripped = strip_final_tags(text)

    if classifier.is_error_text(stripped):
        return classifier.classify(stripped, context="sanitize").message

    return collapse_duplicate_paragraphs(stripped)
