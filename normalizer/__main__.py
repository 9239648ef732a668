"""
Normalizer command line. Try classification and role filtering by hand.

Usage:
    python -m normalizer classify '400 Bad Request: Unexpected role "developer"'
    python -m normalizer sanitize "<final>Hello</final>"
    python -m normalizer roles --api anthropic-messages < messages.json

classify/sanitize read stdin when no text is given.
"""

import argparse
import json
import logging
import sys

from normalizer.config import ConfigError, load_settings, validate_log_level
from normalizer.errors.handler import ErrorClassifier
from normalizer.roles.policy import RolePolicyError, default_role_policies
from normalizer.roles.sanitizer import sanitize_roles
from normalizer.text.sanitizer import sanitize_user_facing_text

logger = logging.getLogger("normalizer.cli")


def _read_text(args) -> str:
    if args.text:
        return " ".join(args.text)
    return sys.stdin.read()


def _cmd_classify(args, classifier: ErrorClassifier) -> int:
    classified = classifier.classify(_read_text(args), context="cli")
    if args.json:
        print(json.dumps(classified.to_dict(), indent=2))
    else:
        print(classified.message)
    return 0


def _cmd_sanitize(args, classifier: ErrorClassifier) -> int:
    print(sanitize_user_facing_text(_read_text(args), classifier=classifier))
    return 0


def _cmd_roles(args, classifier: ErrorClassifier) -> int:
    try:
        messages = json.load(sys.stdin)
    except ValueError as e:
        logger.error(f"stdin is not valid JSON: {e}")
        return 2
    if not isinstance(messages, list):
        logger.error("stdin must hold a JSON array of messages")
        return 2

    kept = sanitize_roles(messages, args.api, default_role_policies())
    print(json.dumps(kept, indent=2, default=str))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m normalizer")
    parser.add_argument("--env-file", default=".env", help="Optional .env file to load")
    sub = parser.add_subparsers(dest="command", required=True)

    classify = sub.add_parser("classify", help="Friendly message for a raw provider error")
    classify.add_argument("text", nargs="*")
    classify.add_argument("--json", action="store_true", help="Print the full classification")
    classify.set_defaults(handler=_cmd_classify)

    sanitize = sub.add_parser("sanitize", help="Sanitize text for display")
    sanitize.add_argument("text", nargs="*")
    sanitize.set_defaults(handler=_cmd_sanitize)

    roles = sub.add_parser("roles", help="Filter a JSON message array for a model API")
    roles.add_argument("--api", default=None, help='Model API, e.g. "anthropic-messages"')
    roles.set_defaults(handler=_cmd_roles)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.env_file)
        log_level = validate_log_level(settings.log_level)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    classifier = ErrorClassifier(max_error_chars=settings.max_error_chars)
    try:
        return args.handler(args, classifier)
    except RolePolicyError as e:
        logger.error(f"Role policy error: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
