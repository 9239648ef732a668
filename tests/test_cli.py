"""
Command line tests.
"""

import io
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from normalizer.__main__ import main


def test_classify(capsys, tmp_path):
    code = main(["--env-file", str(tmp_path / ".env"), "classify", "500", "Internal", "Server", "Error"])
    assert code == 0
    assert capsys.readouterr().out.strip() == "HTTP 500: Internal Server Error"


def test_classify_json(capsys, tmp_path):
    main(["--env-file", str(tmp_path / ".env"), "classify", "--json", "invalid role: system"])
    data = json.loads(capsys.readouterr().out)
    assert data["category"] == "unsupported_role_type"
    assert data["offending_role"] == "system"


def test_sanitize_reads_stdin(capsys, monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "stdin", io.StringIO("Hi <final>there</final>!"))
    main(["--env-file", str(tmp_path / ".env"), "sanitize"])
    assert capsys.readouterr().out.strip() == "Hi there!"


def test_roles(capsys, monkeypatch, tmp_path):
    messages = [{"role": "user"}, {"role": "developer"}, {"role": "assistant"}]
    monkeypatch.setattr(sys, "stdin", io.StringIO(json.dumps(messages)))
    code = main(["--env-file", str(tmp_path / ".env"), "roles", "--api", "anthropic-messages"])
    assert code == 0
    assert [m["role"] for m in json.loads(capsys.readouterr().out)] == ["user", "assistant"]


def test_roles_rejects_non_array(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "stdin", io.StringIO('{"role": "user"}'))
    assert main(["--env-file", str(tmp_path / ".env"), "roles"]) == 2


def test_bad_log_level_rejected(capsys, monkeypatch, tmp_path):
    monkeypatch.setenv("NORMALIZER_LOG_LEVEL", "verbose")
    assert main(["--env-file", str(tmp_path / ".env"), "classify", "oops"]) == 2
    assert "NORMALIZER_LOG_LEVEL" in capsys.readouterr().err
