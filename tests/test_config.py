"""
Configuration tests.

Verifies env-driven settings and the YAML role policy file:
- Defaults apply when nothing is set; bad values fail loudly
- .env files seed the environment without overriding it
- Policy files extend/override the built-in role table
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from normalizer.config import (
    DEFAULT_MAX_ERROR_CHARS,
    ENV_LOG_LEVEL,
    ENV_MAX_ERROR_CHARS,
    ENV_ROLE_POLICY_FILE,
    ConfigError,
    load_settings,
    validate_log_level,
)
from normalizer.errors.catalog import ROLE_ORDERING_MESSAGE
from normalizer.errors.handler import classify_error_text, get_default_classifier
from normalizer.roles.policy import (
    ROLE_POLICIES,
    RolePolicyError,
    default_role_policies,
    load_role_policies,
    resolve_role_policy,
)
from normalizer.roles.sanitizer import sanitize_roles


# --- Fixtures ---


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without normalizer env vars."""
    for key in (ENV_MAX_ERROR_CHARS, ENV_ROLE_POLICY_FILE, ENV_LOG_LEVEL):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def policy_file(tmp_path):
    path = tmp_path / "role_policies.yaml"
    path.write_text(
        "families:\n"
        "  bedrock:\n"
        "    allowed_roles: [user, assistant]\n"
        "    api_prefixes: [bedrock-converse]\n"
        "  google:\n"
        "    allowed_roles: [user, assistant]\n"
    )
    return path


# --- Settings ---


def test_defaults():
    settings = load_settings()
    assert settings.max_error_chars == DEFAULT_MAX_ERROR_CHARS
    assert settings.role_policy_file == ""
    assert settings.log_level == "INFO"


def test_values_from_env(monkeypatch):
    monkeypatch.setenv(ENV_MAX_ERROR_CHARS, "120")
    monkeypatch.setenv(ENV_ROLE_POLICY_FILE, "policies.yaml")
    monkeypatch.setenv(ENV_LOG_LEVEL, "debug")

    settings = load_settings()
    assert settings.max_error_chars == 120
    assert settings.role_policy_file == "policies.yaml"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("key, value", [
    (ENV_MAX_ERROR_CHARS, "lots"),
    (ENV_MAX_ERROR_CHARS, "-1"),
])
def test_bad_values_raise(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigError):
        load_settings()


def test_validate_log_level():
    assert validate_log_level("DEBUG") == "DEBUG"
    with pytest.raises(ConfigError):
        validate_log_level("LOUD")


def test_bad_log_level_does_not_break_library_calls(monkeypatch):
    """Only the CLI configures logging, so only the CLI rejects the level."""
    monkeypatch.setenv(ENV_LOG_LEVEL, "verbose")
    default_role_policies.cache_clear()
    get_default_classifier.cache_clear()
    try:
        assert load_settings().log_level == "VERBOSE"

        kept = sanitize_roles([{"role": "user"}, {"role": "system"}], "anthropic-messages")
        assert kept == [{"role": "user"}]
        assert classify_error_text("roles must alternate") == ROLE_ORDERING_MESSAGE
    finally:
        default_role_policies.cache_clear()
        get_default_classifier.cache_clear()


def test_env_file_does_not_override_env(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# normalizer settings\n"
        f"{ENV_MAX_ERROR_CHARS}=80\n"
        "\n"
        f"{ENV_LOG_LEVEL}=WARNING\n"
    )
    monkeypatch.setenv(ENV_LOG_LEVEL, "ERROR")
    # load_env_file writes os.environ directly; let monkeypatch undo it
    monkeypatch.setenv(ENV_MAX_ERROR_CHARS, "")
    monkeypatch.delenv(ENV_MAX_ERROR_CHARS)

    settings = load_settings(str(env_file))
    assert settings.max_error_chars == 80
    assert settings.log_level == "ERROR"


def test_missing_env_file_is_fine(tmp_path):
    assert load_settings(str(tmp_path / "nope.env")).max_error_chars == DEFAULT_MAX_ERROR_CHARS


# --- Role policy file ---


def test_policy_file_adds_family(policy_file):
    policies = load_role_policies(policy_file)
    assert resolve_role_policy("bedrock-converse-stream", policies).family == "bedrock"

    messages = [{"role": "user"}, {"role": "system"}, {"role": "assistant"}]
    result = sanitize_roles(messages, "bedrock-converse-stream", policies)
    assert [m["role"] for m in result] == ["user", "assistant"]


def test_policy_file_overrides_family_keeps_prefixes(policy_file):
    policies = load_role_policies(policy_file)
    google = policies["google"]
    assert google.allowed_roles == frozenset({"user", "assistant"})
    assert google.api_prefixes == ROLE_POLICIES["google"].api_prefixes


def test_policy_file_leaves_builtin_table_alone(policy_file):
    load_role_policies(policy_file)
    assert "bedrock" not in ROLE_POLICIES
    assert "tool" in ROLE_POLICIES["google"].allowed_roles


@pytest.mark.parametrize("content", [
    "families: [not, a, mapping]\n",
    "something_else: {}\n",
    "families:\n  newfamily:\n    api_prefixes: [new]\n",
    "families:\n  anthropic:\n    allowed_roles: user\n",
    "families: {bad: yaml\n",
])
def test_bad_policy_files(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content)
    with pytest.raises(RolePolicyError):
        load_role_policies(path)


def test_missing_policy_file(tmp_path):
    with pytest.raises(RolePolicyError):
        load_role_policies(tmp_path / "missing.yaml")
