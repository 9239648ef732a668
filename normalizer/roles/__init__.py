from normalizer.roles.policy import (
    ROLE_POLICIES, RolePolicy, RolePolicyError, load_role_policies, resolve_role_policy,
)
from normalizer.roles.sanitizer import sanitize_roles

__all__ = [
    "ROLE_POLICIES", "RolePolicy", "RolePolicyError",
    "load_role_policies", "resolve_role_policy",
    "sanitize_roles",
]
