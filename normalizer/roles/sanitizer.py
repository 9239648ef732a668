"""
Role sanitizer. Drops messages the target model API won't accept.

Runs right before a conversation is serialized for a provider call.
Surviving messages keep their order and are passed through as the very
same objects; nothing about them is rewritten.
"""

import logging
from typing import Any, Iterable, Optional

from normalizer.roles.policy import RolePolicy, default_role_policies, resolve_role_policy

logger = logging.getLogger(__name__)


def message_role(message: Any) -> Optional[str]:
    """Role of a message dict or message object (None when it has none)."""
    if isinstance(message, dict):
        return message.get("role")
    return getattr(message, "role", None)


def sanitize_roles(
    messages: Iterable[Any],
    model_api: Optional[str] = None,
    policies: Optional[dict[str, RolePolicy]] = None,
) -> list:
    """
    Keep only messages whose role the model API supports.

    Args:
        messages: Conversation in order; dicts or objects with an optional role.
        model_api: Target API identifier (e.g. "anthropic-messages"). None or
            an unknown identifier means no filtering.
        policies: Role policy table; defaults to the configured table.

    Returns:
        A new list. Messages without a role always survive.
    """
    messages = list(messages)
    table = default_role_policies() if policies is None else policies
    policy = resolve_role_policy(model_api, table)
    if policy is None:
        return messages

    kept = []
    dropped: list[str] = []
    for message in messages:
        role = message_role(message)
        if role is None or policy.allows(role):
            kept.append(message)
        else:
            dropped.append(role)

    if dropped:
        logger.info(
            f"Dropped {len(dropped)} message(s) unsupported by {model_api} "
            f"({policy.family}): roles={dropped}"
        )
    return kept
