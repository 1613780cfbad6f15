from __future__ import annotations

# Re-export the security control engine and threat catalog for centralized imports.

from govguard.services.security.controls import (
    CONTROL_CATALOG,
    CONTROL_CATEGORIES,
    ControlDefinition,
    ControlVerdict,
)
from govguard.services.security.engine import (
    CategoryBreakdown,
    ControlCheck,
    SecurityControlStatus,
    describe_control_run,
    evaluate_security_controls,
    summarize_control_checks,
)
from govguard.services.security.identity import control_check_id, deterministic_id, threat_item_id
from govguard.services.security.snapshots import (
    SandboxConfig,
    SecurityCheckInput,
    baseline_snapshot,
    demo_snapshot,
    parse_snapshot,
)
from govguard.services.security.threats import (
    RISK_TIER_WEIGHTS,
    THREAT_CATEGORIES,
    THREAT_TEMPLATES,
    ThreatModelItem,
    ThreatTemplate,
    compute_risk_score,
    generate_threat_model,
)

__all__ = [
    "CONTROL_CATALOG",
    "CONTROL_CATEGORIES",
    "ControlDefinition",
    "ControlVerdict",
    "CategoryBreakdown",
    "ControlCheck",
    "SecurityControlStatus",
    "describe_control_run",
    "evaluate_security_controls",
    "summarize_control_checks",
    "control_check_id",
    "deterministic_id",
    "threat_item_id",
    "SandboxConfig",
    "SecurityCheckInput",
    "baseline_snapshot",
    "demo_snapshot",
    "parse_snapshot",
    "RISK_TIER_WEIGHTS",
    "THREAT_CATEGORIES",
    "THREAT_TEMPLATES",
    "ThreatModelItem",
    "ThreatTemplate",
    "compute_risk_score",
    "generate_threat_model",
]
