"""Test the phiguard command line."""

import base64
import json

import pytest

from phiguard.cli import main

from tests.conftest import TEST_ENCRYPTION_KEY


def test_generate_key(capsys):
    assert main(["generate-key"]) == 0

    key = capsys.readouterr().out.strip()
    assert len(base64.b64decode(key)) == 32


def test_check_compliance_fails_without_key(capsys):
    assert main(["check-compliance"]) == 1

    out = capsys.readouterr().out
    assert "NON-COMPLIANT" in out
    assert "HIPAA_ENCRYPTION_KEY" in out


def test_check_compliance_passes(monkeypatch, capsys):
    monkeypatch.setenv("HIPAA_ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)

    assert main(["check-compliance", "--json"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["is_compliant"] is True
    assert TEST_ENCRYPTION_KEY not in json.dumps(data)


def test_command_required():
    with pytest.raises(SystemExit):
        main([])
