"""
Raw error preprocessing.

Provider errors arrive as plain prose, prose behind an HTTP status
("400 Bad Request: ..."), JSON bodies with a nested error message, or a
mix of these ("429 {...}"). Everything here is best effort: a parse that
doesn't work out returns None and the caller keeps the raw text.
"""

import json
import re
from http import HTTPStatus
from typing import Optional

from normalizer.errors.models import ErrorContext, HttpStatusLine, ProviderErrorPayload

# "Error: ...", "API error - ...", "Anthropic error: ..." in front of the real text
ERROR_PREFIX_PATTERN = re.compile(
    r"^(?:error|api\s*error|apierror|openai\s*error|anthropic\s*error|gateway\s*error)[:\s-]+",
    re.IGNORECASE,
)

# Three-digit code at the start, optionally behind "HTTP" / "HTTP/1.1".
# (?!\d) keeps "4000 tokens" from reading as 400.
STATUS_PREFIX_PATTERN = re.compile(
    r"^(?:HTTP(?:/\d(?:\.\d)?)?\s*)?(\d{3})(?!\d)(.*)$",
    re.IGNORECASE | re.DOTALL,
)

BAD_REQUEST_PREFIX_PATTERN = re.compile(r"^bad\s+request\s*[:\-]", re.IGNORECASE)

# Spellings providers use that http.HTTPStatus doesn't know
EXTRA_REASON_PHRASES = (
    "Payload Too Large",
    "Request Entity Too Large",
    "Content Too Large",
    "Unprocessable Content",
    "Unprocessable Entity",
    "Overloaded",
    "Service Overloaded",
    "Unknown Error",
)

REASON_PHRASES: tuple[str, ...] = tuple(
    sorted(
        {status.phrase.lower() for status in HTTPStatus}
        | {phrase.lower() for phrase in EXTRA_REASON_PHRASES},
        key=len,
        reverse=True,
    )
)


def strip_error_prefix(text: str) -> str:
    """Drop a leading "Error:" style label."""
    return ERROR_PREFIX_PATTERN.sub("", text, count=1)


def _starts_with_reason_phrase(text: str) -> bool:
    lowered = text.lower()
    for phrase in REASON_PHRASES:
        if not lowered.startswith(phrase):
            continue
        # "Not Found" must not match "Not Foundation"
        if len(lowered) == len(phrase) or not lowered[len(phrase)].isalnum():
            return True
    return False


def parse_http_status_line(text: str) -> Optional[HttpStatusLine]:
    """
    Recognize a leading HTTP status code.

    A number only counts as a status when it is followed by a known reason
    phrase ("500 Internal Server Error"), a colon ("400: bad input") or a
    JSON body ("429 {...}"). "400 days left" is just a sentence.
    """
    if not text:
        return None

    match = STATUS_PREFIX_PATTERN.match(text.strip())
    if not match:
        return None

    code = int(match.group(1))
    if not 100 <= code <= 599:
        return None

    rest = match.group(2)
    body = rest.strip()

    if body.startswith(":"):
        return HttpStatusLine(status_code=code, reason=body[1:].strip())
    if body.startswith("{"):
        return HttpStatusLine(status_code=code, reason=body)
    if rest[:1].isspace() and _starts_with_reason_phrase(body):
        return HttpStatusLine(status_code=code, reason=body)
    return None


def _string(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    return value if isinstance(value, int) else None


def _payload_from_dict(data: dict, status_code: Optional[int]) -> Optional[ProviderErrorPayload]:
    error = data.get("error")
    message = ""
    error_type = ""
    request_id = _string(data.get("request_id")) or _string(data.get("requestId"))

    if isinstance(error, dict):
        message = _string(error.get("message"))
        # Anthropic/OpenAI: "type"; OpenAI also "code"; Google: numeric "code" + "status"
        error_type = (
            _string(error.get("type"))
            or _string(error.get("code"))
            or _string(error.get("status"))
        )
        request_id = request_id or _string(error.get("request_id"))
        if status_code is None:
            status_code = _int(error.get("code")) or _int(error.get("status"))
    elif isinstance(error, str):
        message = error.strip()

    top_type = _string(data.get("type"))
    # Plain JSON output ({"message": "..."}) is not an error body
    if not isinstance(error, (dict, str)) and not top_type:
        return None

    if not message:
        message = _string(data.get("message")) or _string(data.get("detail"))
    if not message:
        return None

    if not error_type and top_type != "error":
        error_type = top_type

    if status_code is None:
        status_code = _int(data.get("status")) or _int(data.get("status_code"))

    return ProviderErrorPayload(
        message=message,
        error_type=error_type,
        request_id=request_id,
        status_code=status_code,
    )


def parse_error_payload(raw: str) -> Optional[ProviderErrorPayload]:
    """
    Pull the nested error out of a JSON-wrapped provider error.

    Looks at error.message, then top-level message (then detail, then a
    bare string error). The object must look like an error body: an
    "error" field or a "type" field. Returns None for anything else.
    That's a normal input, not a failure.
    """
    if not raw:
        return None

    text = strip_error_prefix(raw.strip())
    status_code = None

    status_line = parse_http_status_line(text)
    if status_line and status_line.reason.startswith("{"):
        status_code = status_line.status_code
        text = status_line.reason

    if not text.startswith("{"):
        return None

    try:
        data = json.loads(text)
    except ValueError:
        return None

    if not isinstance(data, dict):
        return None
    return _payload_from_dict(data, status_code)


def build_error_context(raw: Optional[str]) -> ErrorContext:
    """Preprocess a raw error string for the rule catalog."""
    raw = raw or ""
    payload = parse_error_payload(raw)

    status_line = parse_http_status_line(strip_error_prefix(raw.strip()))
    if status_line and status_line.reason.startswith("{"):
        # The status belongs to the JSON body; the payload carries it
        status_line = None
    elif status_line is None and payload:
        # {"error": {"message": "500 Internal Server Error"}}
        status_line = parse_http_status_line(payload.message)

    return ErrorContext(
        raw=raw,
        text=payload.message if payload else raw.strip(),
        payload=payload,
        status_line=status_line,
    )


def has_client_error_indicator(ctx: ErrorContext) -> bool:
    """True when the error is recognizably an HTTP 400-class rejection."""
    code = ctx.status_code
    if code is not None and 400 <= code < 500:
        return True
    if ctx.payload and ctx.payload.error_type.lower() == "invalid_request_error":
        return True
    # "Bad Request: ..." as a label, not "a bad request" inside a sentence
    return any(
        BAD_REQUEST_PREFIX_PATTERN.match(text)
        for text in (strip_error_prefix(ctx.raw.strip()), ctx.text)
    )
