"""
Assistant turn model.

Normalized result of one model call, as handed over by the LLM client.
Only the fields error formatting needs are kept.
"""

from dataclasses import dataclass
from typing import Any, Optional

STOP_REASON_ERROR = "error"


@dataclass
class AssistantTurn:
    """Normalized assistant turn."""

    stop_reason: str = ""                 # "stop", "tool_use", "error", ...
    error_message: Optional[str] = None   # Raw provider error text (only on failure)
    api: Optional[str] = None             # Model API the turn was sent to
    model: str = ""

    @property
    def failed(self) -> bool:
        return self.stop_reason == STOP_REASON_ERROR

    @property
    def log_context(self) -> str:
        """Log tag such as anthropic-messages:claude-sonnet."""
        return ":".join(part for part in (self.api or "", self.model) if part)

    @classmethod
    def from_dict(cls, data: dict) -> "AssistantTurn":
        """Accept both camelCase (LLM client) and snake_case keys."""
        return cls(
            stop_reason=data.get("stopReason", data.get("stop_reason", "")) or "",
            error_message=data.get("errorMessage", data.get("error_message")),
            api=data.get("api"),
            model=data.get("model", "") or "",
        )


def as_turn(turn: Any) -> AssistantTurn:
    """Coerce whatever the caller handed us into an AssistantTurn."""
    if isinstance(turn, AssistantTurn):
        return turn
    if isinstance(turn, dict):
        return AssistantTurn.from_dict(turn)
    return AssistantTurn(
        stop_reason=getattr(turn, "stop_reason", getattr(turn, "stopReason", "")) or "",
        error_message=getattr(turn, "error_message", getattr(turn, "errorMessage", None)),
        api=getattr(turn, "api", None),
        model=getattr(turn, "model", "") or "",
    )
