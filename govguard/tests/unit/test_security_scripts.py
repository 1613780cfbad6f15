from __future__ import annotations

import json
from pathlib import Path

import pytest

from scripts.security_controls_run import main as controls_main
from scripts.threat_model_seed import main as threats_main


def _write_snapshot(tmp_path: Path, **overrides: object) -> Path:
    payload = {
        "project_id": "proj-cli",
        "sandbox_config": None,
        "has_mfa": False,
        "has_sso": False,
        "secrets_in_env": False,
        "logging_enabled": False,
        "encryption_at_rest": False,
        "encryption_in_transit": False,
        "egress_restricted": False,
        "model_allowlist": [],
        "data_retention_configured": False,
        "rbac_configured": False,
        "audit_logging": False,
    }
    payload.update(overrides)
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_controls_cli_demo(capsys: pytest.CaptureFixture[str]) -> None:
    assert controls_main(["--demo", "--project", "proj-demo"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"]["total_controls"] == 24
    assert payload["status"]["passed"] == 14
    assert payload["status"]["by_category"]["auth"] == {"total": 3, "passed": 1, "failed": 0}
    assert payload["audit_event"]["metadata"]["project_id"] == "proj-demo"


def test_controls_cli_fail_on_fail(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write_snapshot(tmp_path)
    assert controls_main(["--snapshot", str(path), "--fail-on-fail"]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"]["failed"] == 19
    assert payload["status"]["checks"][0]["checked_at"].endswith("+00:00")


def test_controls_cli_rejects_malformed_snapshot(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write_snapshot(tmp_path, has_mfa="yes")
    assert controls_main(["--snapshot", str(path)]) == 2
    assert "has_mfa" in capsys.readouterr().err


def test_threat_cli(capsys: pytest.CaptureFixture[str]) -> None:
    assert threats_main(["--project", "proj-cli"]) == 0
    items = json.loads(capsys.readouterr().out)
    assert len(items) == 16
    assert {item["mitigation_status"] for item in items} == {"open"}
