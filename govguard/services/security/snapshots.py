from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from govguard.core.config import get_settings
from govguard.core.errors import SnapshotValidationError


class SandboxConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    cloud_provider: str
    settings: dict[str, Any] = Field(default_factory=dict)


class SecurityCheckInput(BaseModel):
    """Configuration snapshot for one project, supplied wholesale by the caller.

    Every flag is required; the engine never infers or defaults a value. Only the
    sandbox descriptor may be absent.
    """

    # model_allowlist is a wire field name, not a pydantic hook.
    model_config = ConfigDict(frozen=True, extra="forbid", protected_namespaces=())

    project_id: str
    sandbox_config: SandboxConfig | None = None
    has_mfa: bool
    has_sso: bool
    secrets_in_env: bool
    logging_enabled: bool
    encryption_at_rest: bool
    encryption_in_transit: bool
    egress_restricted: bool
    model_allowlist: list[str]
    data_retention_configured: bool
    rbac_configured: bool
    audit_logging: bool


def parse_snapshot(raw: dict[str, Any], *, strict: bool | None = None) -> SecurityCheckInput:
    # Strict mode refuses coercions such as "true" -> True so bad request payloads surface early.
    if strict is None:
        strict = get_settings().security_strict_validation
    try:
        payload = dict(raw)
    except (TypeError, ValueError) as exc:
        raise SnapshotValidationError(
            f"Invalid configuration snapshot: expected a mapping, got {type(raw).__name__}"
        ) from exc
    try:
        # Validate the sandbox up front so strict mode receives a model instance.
        if isinstance(payload.get("sandbox_config"), dict):
            payload["sandbox_config"] = SandboxConfig.model_validate(payload["sandbox_config"], strict=strict)
        return SecurityCheckInput.model_validate(payload, strict=strict)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()})
        raise SnapshotValidationError(f"Invalid configuration snapshot: {', '.join(fields)}") from exc


def baseline_snapshot(project_id: str, sandbox: SandboxConfig | None = None) -> SecurityCheckInput:
    # All-off input used for projects that have never recorded their security posture.
    return SecurityCheckInput(
        project_id=project_id,
        sandbox_config=sandbox,
        has_mfa=False,
        has_sso=False,
        secrets_in_env=False,
        logging_enabled=False,
        encryption_at_rest=False,
        encryption_in_transit=False,
        egress_restricted=False,
        model_allowlist=[],
        data_retention_configured=False,
        rbac_configured=False,
        audit_logging=False,
    )


def demo_snapshot(project_id: str) -> SecurityCheckInput:
    settings = get_settings()
    return SecurityCheckInput(
        project_id=project_id,
        sandbox_config=SandboxConfig(
            cloud_provider=settings.security_demo_cloud_provider,
            settings={
                "region": settings.security_demo_region,
                "instance_type": settings.security_demo_instance_type,
            },
        ),
        has_mfa=True,
        has_sso=False,
        secrets_in_env=False,
        logging_enabled=True,
        encryption_at_rest=True,
        encryption_in_transit=True,
        egress_restricted=True,
        model_allowlist=["claude-sonnet-4-20250514", "claude-haiku-4-20250414"],
        data_retention_configured=True,
        rbac_configured=True,
        audit_logging=True,
    )
