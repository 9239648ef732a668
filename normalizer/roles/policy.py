"""
Role policy table.

Single source of truth for which message roles each model API family
accepts. Adding a provider family means adding one entry here (or in the
YAML file named by NORMALIZER_ROLE_POLICY_FILE); no code paths change.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml

from normalizer.config import load_settings

logger = logging.getLogger(__name__)


class RolePolicyError(ValueError):
    pass


@dataclass(frozen=True)
class RolePolicy:
    """Roles one API family accepts, and the API identifiers that belong to it."""

    family: str                                          # e.g. "anthropic"
    allowed_roles: frozenset[str]
    api_prefixes: tuple[str, ...] = field(default_factory=tuple)

    def allows(self, role: str) -> bool:
        return role in self.allowed_roles

    def matches_api(self, model_api: Optional[str]) -> bool:
        """Prefix match, so preview/versioned variants inherit the family policy."""
        if not model_api:
            return False
        api = model_api.strip().lower()
        return any(api.startswith(prefix) for prefix in self.api_prefixes)


ROLE_POLICIES: dict[str, RolePolicy] = {
    "anthropic": RolePolicy(
        family="anthropic",
        allowed_roles=frozenset({"user", "assistant"}),
        api_prefixes=("anthropic",),  # anthropic-messages, anthropic-messages-beta, ...
    ),
    "google": RolePolicy(
        family="google",
        allowed_roles=frozenset({"user", "assistant", "tool"}),
        api_prefixes=(
            "google-gemini",  # google-gemini, google-gemini-preview, google-gemini-cli
            "google-generative-ai",
            "google-vertex",
            "gemini",
        ),
    ),
}


def resolve_role_policy(
    model_api: Optional[str],
    policies: Optional[dict[str, RolePolicy]] = None,
) -> Optional[RolePolicy]:
    """
    Find the policy for a model API identifier.
    None means no restriction: unknown and missing APIs are never filtered.
    """
    if not model_api:
        return None
    table = ROLE_POLICIES if policies is None else policies
    for policy in table.values():
        if policy.matches_api(model_api):
            return policy
    return None


def _string_list(value, field_name: str, family: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
        raise RolePolicyError(
            f"Role policy '{family}': {field_name} must be a list of non-empty strings"
        )
    return [v.strip() for v in value]


def load_role_policies(
    path: Path,
    base: Optional[dict[str, RolePolicy]] = None,
) -> dict[str, RolePolicy]:
    """
    Load role policies from a YAML file on top of a base table.

    File format:
        families:
          bedrock:
            allowed_roles: [user, assistant]
            api_prefixes: [bedrock-converse]

    A family already in the base table is replaced; fields left out of the
    file keep their base values.
    """
    path = Path(path)
    if not path.exists():
        raise RolePolicyError(f"Role policy file not found: {path}")

    with open(path) as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RolePolicyError(f"Role policy file {path} is not valid YAML: {e}") from e

    families = config.get("families") if isinstance(config, dict) else None
    if not isinstance(families, dict):
        raise RolePolicyError(f"Role policy file {path} needs a 'families' mapping")

    policies = dict(ROLE_POLICIES if base is None else base)
    for family, entry in families.items():
        if not isinstance(entry, dict):
            raise RolePolicyError(f"Role policy '{family}' must be a mapping")

        existing = policies.get(family)
        if "allowed_roles" in entry:
            allowed = frozenset(_string_list(entry["allowed_roles"], "allowed_roles", family))
        elif existing:
            allowed = existing.allowed_roles
        else:
            raise RolePolicyError(f"Role policy '{family}' is missing allowed_roles")

        if "api_prefixes" in entry:
            prefixes = tuple(
                p.lower() for p in _string_list(entry["api_prefixes"], "api_prefixes", family)
            )
        elif existing:
            prefixes = existing.api_prefixes
        else:
            prefixes = (str(family).lower(),)

        policies[family] = RolePolicy(
            family=family,
            allowed_roles=allowed,
            api_prefixes=prefixes,
        )

    logger.info(f"Loaded {len(families)} role policies from {path}: {sorted(families)}")
    return policies


@lru_cache(maxsize=1)
def default_role_policies() -> dict[str, RolePolicy]:
    """Built-in table, extended by NORMALIZER_ROLE_POLICY_FILE when it's set."""
    settings = load_settings()
    if not settings.role_policy_file:
        return ROLE_POLICIES
    return load_role_policies(Path(settings.role_policy_file))
