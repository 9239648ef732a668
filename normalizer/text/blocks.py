"""
Structural text cleanups shared by the error formatter and the
user-facing sanitizer.
"""

import re

# <final> ... </final> markers some models wrap their answer in
FINAL_TAG_PATTERN = re.compile(r"<\s*/?\s*final\s*>", re.IGNORECASE)

# Paragraph separator: a blank line (whitespace-only lines count)
PARAGRAPH_SEPARATOR_PATTERN = re.compile(r"(\n(?:[ \t]*\n)+)")


def strip_final_tags(text: str) -> str:
    """Remove <final> markers, keeping everything between and around them."""
    if not text:
        return text
    return FINAL_TAG_PATTERN.sub("", text)


def collapse_duplicate_paragraphs(text: str) -> str:
    """
    Collapse immediately repeated paragraphs into one.

    Only exact repeats of the previous kept paragraph go; anything that
    differs, and the separator in front of it, stays as written.
    """
    if not text:
        return text

    parts = PARAGRAPH_SEPARATOR_PATTERN.split(text)
    if len(parts) < 3:
        return text

    # split() with a capture group alternates: paragraph, separator, paragraph, ...
    kept = [parts[0]]
    last_paragraph = parts[0]
    for i in range(1, len(parts), 2):
        separator, paragraph = parts[i], parts[i + 1]
        if paragraph == last_paragraph and paragraph.strip():
            continue
        kept.append(separator)
        kept.append(paragraph)
        last_paragraph = paragraph

    return "".join(kept)


def truncate(text: str, max_chars: int) -> str:
    """Cut text to max_chars, marking the cut with an ellipsis."""
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[: max_chars - 1].rstrip() + "…"
