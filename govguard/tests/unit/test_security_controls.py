from __future__ import annotations

from collections import Counter

import pytest

from govguard.core.errors import CatalogDefinitionError
from govguard.services.security.controls import (
    CONTROL_CATALOG,
    CONTROL_CATEGORIES,
    ControlDefinition,
    ControlVerdict,
)
from govguard.services.security.snapshots import SandboxConfig, SecurityCheckInput, baseline_snapshot


def _hardened_snapshot(**overrides: object) -> SecurityCheckInput:
    # Every observable control is satisfied; only manual-review controls should warn.
    values = {
        "project_id": "proj-hardened",
        "sandbox_config": SandboxConfig(cloud_provider="aws", settings={}),
        "has_mfa": True,
        "has_sso": True,
        "secrets_in_env": False,
        "logging_enabled": True,
        "encryption_at_rest": True,
        "encryption_in_transit": True,
        "egress_restricted": True,
        "model_allowlist": ["model-a"],
        "data_retention_configured": True,
        "rbac_configured": True,
        "audit_logging": True,
    }
    values.update(overrides)
    return SecurityCheckInput(**values)


def _verdicts(snapshot: SecurityCheckInput) -> dict[str, ControlVerdict]:
    return {definition.control_id: definition.check(snapshot) for definition in CONTROL_CATALOG}


def _control(control_id: str) -> ControlDefinition:
    return next(definition for definition in CONTROL_CATALOG if definition.control_id == control_id)


def test_catalog_shape() -> None:
    assert len(CONTROL_CATALOG) == 24
    ids = [definition.control_id for definition in CONTROL_CATALOG]
    assert len(set(ids)) == 24
    counts = Counter(definition.category for definition in CONTROL_CATALOG)
    assert counts == {
        "auth": 3,
        "secrets": 3,
        "model_config": 3,
        "logging": 3,
        "egress": 2,
        "storage": 2,
        "data_retention": 2,
        "access_control": 3,
        "encryption": 3,
    }
    # Catalog order groups controls by category in the declared category order.
    seen = list(dict.fromkeys(definition.category for definition in CONTROL_CATALOG))
    assert tuple(seen) == CONTROL_CATEGORIES


def test_hardened_snapshot_only_warns_on_manual_review_controls() -> None:
    verdicts = _verdicts(_hardened_snapshot())
    warnings = sorted(cid for cid, verdict in verdicts.items() if verdict.result == "warning")
    assert warnings == ["ACL-003", "EGR-002", "ENC-003", "MDL-003", "RET-002", "SEC-002", "SEC-003"]
    assert all(verdict.result != "fail" for verdict in verdicts.values())
    for cid in warnings:
        assert "manual" in verdicts[cid].evidence_details.lower() or "cannot" in verdicts[cid].evidence_details.lower()


def test_remediation_present_exactly_when_not_passing() -> None:
    for snapshot in (_hardened_snapshot(), baseline_snapshot("proj-off"), _hardened_snapshot(secrets_in_env=True)):
        for verdict in _verdicts(snapshot).values():
            if verdict.result == "pass":
                assert verdict.remediation is None
            else:
                assert verdict.remediation


def test_secrets_in_env_toggle_flips_secret_dependent_controls() -> None:
    before = _verdicts(_hardened_snapshot())
    after = _verdicts(_hardened_snapshot(secrets_in_env=True))
    assert before["SEC-001"].result == "pass"
    assert after["SEC-001"].result == "fail"
    changed = sorted(cid for cid in before if before[cid].result != after[cid].result)
    assert changed == ["ACL-003", "SEC-001", "SEC-002", "SEC-003"]
    # Key management still warns but now reports partial encryption hygiene.
    assert after["ENC-003"].result == "warning"
    assert after["ENC-003"].evidence_details != before["ENC-003"].evidence_details


@pytest.mark.parametrize(
    ("control_id", "first", "second", "expected"),
    [
        ("AUTH-003", "has_sso", "has_mfa", ("pass", "warning", "warning", "fail")),
        ("LOG-003", "logging_enabled", "audit_logging", ("pass", "warning", "warning", "fail")),
        ("ACL-002", "rbac_configured", "has_sso", ("pass", "warning", "fail", "fail")),
        ("STO-002", "rbac_configured", "encryption_at_rest", ("pass", "warning", "fail", "fail")),
        ("ENC-003", "encryption_at_rest", "encryption_in_transit", ("warning", "warning", "warning", "fail")),
    ],
)
def test_compound_controls(control_id: str, first: str, second: str, expected: tuple[str, ...]) -> None:
    # Combinations ordered: both, first only, second only, neither.
    check = _control(control_id).check
    combos = [(True, True), (True, False), (False, True), (False, False)]
    results = tuple(
        check(_hardened_snapshot(**{first: a, second: b})).result for a, b in combos
    )
    assert results == expected


def test_sso_absence_warns_rather_than_fails() -> None:
    verdict = _control("AUTH-002").check(baseline_snapshot("proj-off"))
    assert verdict.result == "warning"


def test_allowlist_evidence_lists_models() -> None:
    verdict = _control("MDL-001").check(_hardened_snapshot(model_allowlist=["model-a", "model-b"]))
    assert verdict.result == "pass"
    assert verdict.evidence_details == "Model allowlist contains 2 approved model(s): model-a, model-b."


def test_sandbox_evidence_names_provider() -> None:
    verdict = _control("MDL-002").check(_hardened_snapshot())
    assert verdict.evidence_details == "Sandbox configured with cloud provider: aws."
    assert _control("MDL-002").check(_hardened_snapshot(sandbox_config=None)).result == "fail"


def test_dns_egress_warns_without_sandbox() -> None:
    check = _control("EGR-002").check
    assert check(_hardened_snapshot(sandbox_config=None)).result == "warning"
    assert check(_hardened_snapshot(egress_restricted=False)).result == "fail"


def test_service_account_governance_without_rbac() -> None:
    check = _control("ACL-003").check
    assert check(_hardened_snapshot(rbac_configured=False)).result == "warning"
    assert check(_hardened_snapshot(rbac_configured=False, secrets_in_env=True)).result == "fail"


def test_definition_rejects_unknown_category() -> None:
    with pytest.raises(CatalogDefinitionError):
        ControlDefinition(
            control_id="NET-001",
            control_name="Network Segmentation",
            category="network",
            description="",
            check=lambda snapshot: ControlVerdict("pass", "ok"),
        )


def test_verdict_validation() -> None:
    with pytest.raises(CatalogDefinitionError):
        ControlVerdict("skipped", "unknown kind")
    with pytest.raises(CatalogDefinitionError):
        ControlVerdict("fail", "missing remediation")
    with pytest.raises(CatalogDefinitionError):
        ControlVerdict("pass", "ok", "nothing to do")
    assert ControlVerdict("not_applicable", "n/a").remediation is None
