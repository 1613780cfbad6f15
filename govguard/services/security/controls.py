from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from govguard.core.errors import CatalogDefinitionError
from govguard.services.security.snapshots import SecurityCheckInput


RESULT_PASS = "pass"
RESULT_FAIL = "fail"
RESULT_WARNING = "warning"
# Reserved: nothing in the catalog emits these, but stored checks and future controls may.
RESULT_NOT_APPLICABLE = "not_applicable"
RESULT_ERROR = "error"

CONTROL_RESULTS = frozenset(
    {RESULT_PASS, RESULT_FAIL, RESULT_WARNING, RESULT_NOT_APPLICABLE, RESULT_ERROR}
)
_REMEDIATION_REQUIRED = frozenset({RESULT_FAIL, RESULT_WARNING, RESULT_ERROR})

CONTROL_CATEGORIES: tuple[str, ...] = (
    "auth",
    "secrets",
    "model_config",
    "logging",
    "egress",
    "storage",
    "data_retention",
    "access_control",
    "encryption",
)


@dataclass(frozen=True)
class ControlVerdict:
    result: str
    evidence_details: str
    remediation: str | None = None

    def __post_init__(self) -> None:
        if self.result not in CONTROL_RESULTS:
            raise CatalogDefinitionError(f"Unknown control result: {self.result}")
        if self.result in _REMEDIATION_REQUIRED and not self.remediation:
            raise CatalogDefinitionError(f"Remediation is required for a {self.result} verdict")
        if self.result == RESULT_PASS and self.remediation is not None:
            raise CatalogDefinitionError("A pass verdict carries no remediation")


@dataclass(frozen=True)
class ControlDefinition:
    control_id: str
    control_name: str
    category: str
    description: str
    check: Callable[[SecurityCheckInput], ControlVerdict]

    def __post_init__(self) -> None:
        if self.category not in CONTROL_CATEGORIES:
            raise CatalogDefinitionError(f"Unknown control category {self.category!r} for {self.control_id}")


def _pass(evidence: str) -> ControlVerdict:
    return ControlVerdict(RESULT_PASS, evidence)


def _warn(evidence: str, remediation: str) -> ControlVerdict:
    return ControlVerdict(RESULT_WARNING, evidence, remediation)


def _fail(evidence: str, remediation: str) -> ControlVerdict:
    return ControlVerdict(RESULT_FAIL, evidence, remediation)


# Checks are ordered decision trees: strongest passing condition first, fail last.
# Anything that cannot be observed from the snapshot warns for manual review.


def _check_mfa(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.has_mfa:
        return _pass("MFA is enabled for the project.")
    return _fail(
        "MFA is not enabled.",
        "Enable multi-factor authentication for all users. Configure MFA enforcement in your "
        "identity provider (Okta, Azure AD, etc.).",
    )


def _check_sso(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.has_sso:
        return _pass("SSO integration is active.")
    return _warn(
        "SSO is not configured. Users may be using local credentials.",
        "Integrate SSO via SAML 2.0 or OIDC with your corporate identity provider to centralize "
        "authentication and enable session revocation.",
    )


def _check_session_management(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.has_sso and snapshot.has_mfa:
        return _pass("SSO and MFA are both active, providing strong session management.")
    if snapshot.has_sso or snapshot.has_mfa:
        return _warn(
            "Partial session management controls in place. Only one of SSO or MFA is active.",
            "Enable both SSO and MFA for comprehensive session management. Configure session "
            "timeout policies in your IdP.",
        )
    return _fail(
        "No SSO or MFA detected. Session management is weak.",
        "Implement SSO with enforced session timeouts and MFA. Configure token refresh rotation "
        "and idle session expiry.",
    )


def _check_secrets_in_env(snapshot: SecurityCheckInput) -> ControlVerdict:
    if not snapshot.secrets_in_env:
        return _pass("No secrets detected in environment variables.")
    return _fail(
        "Secrets detected in environment variables. This exposes credentials to process "
        "inspection and log leakage.",
        "Migrate all secrets to a dedicated secrets manager (HashiCorp Vault, AWS Secrets Manager, "
        "Azure Key Vault). Remove any secrets exposed to client-side bundles immediately.",
    )


def _check_secrets_rotation(snapshot: SecurityCheckInput) -> ControlVerdict:
    # Plaintext env secrets rule out managed rotation; otherwise the policy is unobservable.
    if snapshot.secrets_in_env:
        return _fail(
            "Secrets are stored in environment variables, making automated rotation impossible.",
            "Move secrets to a managed vault with automated rotation. Set rotation intervals of "
            "90 days or less for API keys.",
        )
    return _warn(
        "Secrets are not in environment variables. Rotation policy cannot be verified "
        "programmatically; manual review required.",
        "Ensure a documented rotation policy exists with rotation intervals no longer than "
        "90 days for AI provider API keys.",
    )


def _check_secret_scanning(snapshot: SecurityCheckInput) -> ControlVerdict:
    if not snapshot.secrets_in_env:
        return _warn(
            "Cannot programmatically verify pre-commit secret scanning is enabled. Manual review "
            "required.",
            "Install pre-commit hooks using tools like git-secrets, truffleHog, or gitleaks. Add "
            "secret scanning to CI pipeline.",
        )
    return _fail(
        "Secrets found in environment variables suggest secret scanning is not active or effective.",
        "Deploy git-secrets or gitleaks as pre-commit hooks and add CI-level secret scanning. "
        "Audit existing commits for leaked secrets.",
    )


def _check_model_allowlist(snapshot: SecurityCheckInput) -> ControlVerdict:
    allowlist = snapshot.model_allowlist
    if allowlist:
        return _pass(
            f"Model allowlist contains {len(allowlist)} approved model(s): {', '.join(allowlist)}."
        )
    return _fail(
        "No model allowlist configured. Any AI model or provider could be used without restriction.",
        "Define an explicit allowlist of approved AI models and providers. Configure enforcement "
        "in your proxy or API gateway.",
    )


def _check_sandbox(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.sandbox_config is not None:
        return _pass(f"Sandbox configured with cloud provider: {snapshot.sandbox_config.cloud_provider}.")
    return _fail(
        "No sandbox configuration found. AI tools may be running without proper isolation.",
        "Create a sandbox configuration specifying cloud provider, network isolation, and model "
        "access controls before deploying AI tools.",
    )


def _check_output_validation(snapshot: SecurityCheckInput) -> ControlVerdict:
    # Output validation is a process control; sandbox plus allowlist is the observable proxy.
    if snapshot.sandbox_config is not None and snapshot.model_allowlist:
        return _warn(
            "Sandbox and model allowlist are configured. Output validation controls cannot be "
            "verified programmatically; manual review recommended.",
            "Implement output sanitization layers: content filtering, code scanning, and human "
            "review gates for AI-generated outputs.",
        )
    return _fail(
        "Missing sandbox config or model allowlist. Output validation is likely not configured.",
        "Configure sandbox environment and model allowlist first. Then implement output "
        "validation including HTML sanitization for rendered content and static analysis for "
        "generated code.",
    )


def _check_app_logging(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.logging_enabled:
        return _pass("Application logging is enabled.")
    return _fail(
        "Application logging is disabled. Security incidents and operational issues will be "
        "undetectable.",
        "Enable structured logging for all API routes, authentication events, and AI model "
        "interactions. Use a centralized logging solution.",
    )


def _check_audit_trail(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.audit_logging:
        return _pass("Audit logging is enabled.")
    return _fail(
        "Audit logging is not enabled. Compliance and forensic requirements cannot be met.",
        "Enable audit logging for all governance actions: policy edits, gate approvals, data "
        "classification changes, and team membership updates.",
    )


def _check_ai_interaction_logging(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.logging_enabled and snapshot.audit_logging:
        return _pass(
            "Both application and audit logging are active, providing coverage for AI interaction "
            "logging."
        )
    if snapshot.logging_enabled or snapshot.audit_logging:
        return _warn(
            "Partial logging is in place. AI-specific interaction logging may have gaps.",
            "Ensure AI interactions are captured in both the application log and audit trail. Log "
            "prompt hashes, response lengths, model used, and token consumption.",
        )
    return _fail(
        "No logging is enabled. AI interactions are not being tracked.",
        "Enable both application and audit logging. Implement dedicated AI interaction logging "
        "including prompt metadata, response analysis, and cost tracking.",
    )


def _check_egress(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.egress_restricted:
        return _pass("Egress restrictions are configured.")
    return _fail(
        "Egress is unrestricted. AI tools and generated code could exfiltrate data to arbitrary "
        "external endpoints.",
        "Configure egress filtering via forward proxy or firewall rules. Allowlist only approved "
        "AI provider API endpoints (api.anthropic.com, api.openai.com, etc.).",
    )


def _check_dns_egress(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.egress_restricted and snapshot.sandbox_config is not None:
        return _warn(
            "Egress is restricted and sandbox is configured. DNS-level controls cannot be verified "
            "programmatically.",
            "Verify that DNS resolution in the sandbox uses a private DNS resolver with domain "
            "allowlisting. Block DNS-over-HTTPS to prevent bypass.",
        )
    if snapshot.egress_restricted:
        return _warn(
            "Egress is restricted but no sandbox config present. DNS-level controls should be "
            "verified manually.",
            "Configure a private DNS resolver in the sandbox environment. Implement DNS "
            "allowlisting for approved AI provider domains.",
        )
    return _fail(
        "No egress restrictions detected. DNS-level controls are likely absent.",
        "Implement network-level egress restrictions first, then configure DNS-level controls "
        "with domain allowlisting.",
    )


def _check_storage_encryption(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.encryption_at_rest:
        return _pass("Encryption at rest is enabled.")
    return _fail(
        "Encryption at rest is not enabled. Stored data including AI interaction logs and "
        "governance artifacts is vulnerable.",
        "Enable encryption at rest for all storage layers: database (PostgreSQL TDE or volume "
        "encryption), file storage (S3 SSE or equivalent), and backups.",
    )


def _check_storage_access(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.rbac_configured and snapshot.encryption_at_rest:
        return _pass(
            "RBAC is configured and encryption at rest is enabled, indicating storage access "
            "controls are in place."
        )
    if snapshot.rbac_configured:
        return _warn(
            "RBAC is configured but encryption at rest is not enabled.",
            "Enable encryption at rest in addition to RBAC. Ensure row-level security policies "
            "are active on all tables.",
        )
    return _fail(
        "RBAC is not configured. Storage may be accessible without proper authorization.",
        "Configure RBAC with least-privilege principles. Enable row-level security on all tables. "
        "Set storage bucket policies to private with signed URL access.",
    )


def _check_retention_policy(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.data_retention_configured:
        return _pass("Data retention policy is configured.")
    return _fail(
        "No data retention policy is configured. Data may be retained indefinitely, violating "
        "privacy regulations.",
        "Define retention periods for all data categories: AI interaction logs (90 days default), "
        "audit events (7 years for compliance), PII (per GDPR/CCPA requirements).",
    )


def _check_provider_data_handling(snapshot: SecurityCheckInput) -> ControlVerdict:
    # DPA status lives outside the snapshot, so the best case is a manual-review warning.
    if snapshot.model_allowlist and snapshot.data_retention_configured:
        return _warn(
            "Model allowlist and retention policy are configured. AI provider DPA status requires "
            "manual verification.",
            "Verify that Data Processing Agreements are signed with all AI providers on the "
            "allowlist. Confirm training opt-out and data deletion clauses.",
        )
    return _fail(
        "Missing model allowlist or retention policy. AI provider data handling agreements are "
        "likely incomplete.",
        "Configure a model allowlist first. Then negotiate and sign DPAs with each approved AI "
        "provider. Ensure training opt-out, data deletion rights, and sub-processor transparency.",
    )


def _check_rbac(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.rbac_configured:
        return _pass("RBAC is configured for the project.")
    return _fail(
        "RBAC is not configured. All users may have equal access to all features and data.",
        "Implement role-based access control with distinct permissions for admin, consultant, "
        "executive, IT, legal, engineering, and marketing roles.",
    )


def _check_least_privilege(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.rbac_configured and snapshot.has_sso:
        return _pass(
            "RBAC and SSO are configured, supporting least privilege enforcement through "
            "centralized identity management."
        )
    if snapshot.rbac_configured:
        return _warn(
            "RBAC is configured but SSO is not active. Least privilege may be harder to enforce "
            "without centralized identity.",
            "Configure SSO to centralize identity and enforce least privilege. Review role "
            "assignments quarterly to prevent privilege creep.",
        )
    return _fail(
        "Neither RBAC nor SSO is configured. Least privilege cannot be enforced.",
        "Implement RBAC with granular permissions and SSO with centralized group management. "
        "Conduct an access review and apply least privilege to all AI tool API keys.",
    )


def _check_service_accounts(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.rbac_configured and not snapshot.secrets_in_env:
        return _warn(
            "RBAC is configured and secrets are managed properly. Service account inventory "
            "requires manual verification.",
            "Maintain an inventory of all service accounts used by AI tools. Ensure each has "
            "minimum required permissions and is reviewed quarterly.",
        )
    if snapshot.secrets_in_env:
        return _fail(
            "Secrets in environment variables suggest service accounts are not properly managed.",
            "Inventory all service accounts. Move credentials to a secrets manager. Apply least "
            "privilege to each account. Set up automated credential rotation.",
        )
    return _warn(
        "Service account governance cannot be fully verified programmatically.",
        "Create a service account inventory. Assign owners to each account. Review permissions "
        "quarterly and rotate credentials.",
    )


def _check_encryption_at_rest(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.encryption_at_rest:
        return _pass("Encryption at rest is enabled.")
    return _fail(
        "Encryption at rest is not enabled.",
        "Enable AES-256 encryption at rest for all data stores: database, object storage, backup "
        "volumes, and local disk encryption for developer environments.",
    )


def _check_encryption_in_transit(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.encryption_in_transit:
        return _pass("Encryption in transit is enabled (TLS).")
    return _fail(
        "Encryption in transit is not enabled. API calls and data transfers are vulnerable to "
        "interception.",
        "Enforce TLS 1.2+ for all connections: AI provider API calls, database connections, "
        "internal service communication, and webhook endpoints. Disable TLS 1.0/1.1.",
    )


def _check_key_management(snapshot: SecurityCheckInput) -> ControlVerdict:
    if snapshot.encryption_at_rest and snapshot.encryption_in_transit and not snapshot.secrets_in_env:
        return _warn(
            "Encryption is enabled and secrets are managed. KMS configuration requires manual "
            "verification.",
            "Verify that encryption keys are stored in a cloud KMS (AWS KMS, Azure Key Vault, GCP "
            "Cloud KMS). Enable key rotation and audit logging.",
        )
    if snapshot.encryption_at_rest or snapshot.encryption_in_transit:
        return _warn(
            "Partial encryption is enabled. Key management practices require manual review.",
            "Implement a centralized KMS for all encryption keys. Enable automatic key rotation "
            "(annual minimum). Audit key access logs.",
        )
    return _fail(
        "Encryption is not enabled. Key management is not applicable without active encryption.",
        "Enable encryption at rest and in transit first. Then configure KMS with automated "
        "rotation and access audit logging.",
    )


CONTROL_CATALOG: tuple[ControlDefinition, ...] = (
    ControlDefinition(
        control_id="AUTH-001",
        control_name="Multi-Factor Authentication Enabled",
        category="auth",
        description="Verify that multi-factor authentication is enforced for all users accessing AI tools and governance dashboards.",
        check=_check_mfa,
    ),
    ControlDefinition(
        control_id="AUTH-002",
        control_name="SSO Integration Active",
        category="auth",
        description="Verify that Single Sign-On is configured for centralized identity management and session control.",
        check=_check_sso,
    ),
    ControlDefinition(
        control_id="AUTH-003",
        control_name="Session Management Controls",
        category="auth",
        description="Verify that session timeouts and token rotation are configured to limit the blast radius of compromised sessions.",
        check=_check_session_management,
    ),
    ControlDefinition(
        control_id="SEC-001",
        control_name="No Secrets in Environment Variables",
        category="secrets",
        description="Verify that API keys and credentials are not stored in plain-text environment variables or client-accessible code.",
        check=_check_secrets_in_env,
    ),
    ControlDefinition(
        control_id="SEC-002",
        control_name="Secrets Rotation Policy",
        category="secrets",
        description="Verify that a credential rotation policy is in place for all AI provider API keys and service accounts.",
        check=_check_secrets_rotation,
    ),
    ControlDefinition(
        control_id="SEC-003",
        control_name="Pre-Commit Secret Scanning",
        category="secrets",
        description="Verify that pre-commit hooks or CI checks scan for accidentally committed secrets in source code.",
        check=_check_secret_scanning,
    ),
    ControlDefinition(
        control_id="MDL-001",
        control_name="Model Allowlist Configured",
        category="model_config",
        description="Verify that only approved AI models/providers are permitted. An empty allowlist means any model can be used.",
        check=_check_model_allowlist,
    ),
    ControlDefinition(
        control_id="MDL-002",
        control_name="Sandbox Configuration Exists",
        category="model_config",
        description="Verify that a sandbox environment configuration is defined for isolated AI tool evaluation.",
        check=_check_sandbox,
    ),
    ControlDefinition(
        control_id="MDL-003",
        control_name="Model Output Validation",
        category="model_config",
        description="Verify that output validation controls are configured to sanitize and review AI-generated content before use.",
        check=_check_output_validation,
    ),
    ControlDefinition(
        control_id="LOG-001",
        control_name="Application Logging Enabled",
        category="logging",
        description="Verify that application-level logging is enabled for API calls, user actions, and AI interactions.",
        check=_check_app_logging,
    ),
    ControlDefinition(
        control_id="LOG-002",
        control_name="Audit Trail Logging",
        category="logging",
        description="Verify that an immutable audit trail captures all governance-relevant actions (policy changes, gate approvals, data access).",
        check=_check_audit_trail,
    ),
    ControlDefinition(
        control_id="LOG-003",
        control_name="AI Interaction Logging",
        category="logging",
        description="Verify that all AI model interactions (prompts, responses, token usage) are logged for analysis and compliance.",
        check=_check_ai_interaction_logging,
    ),
    ControlDefinition(
        control_id="EGR-001",
        control_name="Egress Restrictions Configured",
        category="egress",
        description="Verify that outbound network traffic from the sandbox is restricted to approved AI API endpoints only.",
        check=_check_egress,
    ),
    ControlDefinition(
        control_id="EGR-002",
        control_name="DNS-Level Egress Control",
        category="egress",
        description="Verify that DNS resolution is controlled to prevent AI tools from contacting unapproved domains.",
        check=_check_dns_egress,
    ),
    ControlDefinition(
        control_id="STO-001",
        control_name="Encryption at Rest",
        category="storage",
        description="Verify that all stored data (database, file uploads, configuration artifacts) is encrypted at rest.",
        check=_check_storage_encryption,
    ),
    ControlDefinition(
        control_id="STO-002",
        control_name="Storage Access Controls",
        category="storage",
        description="Verify that storage access is controlled through IAM policies and row-level security, not public access.",
        check=_check_storage_access,
    ),
    ControlDefinition(
        control_id="RET-001",
        control_name="Data Retention Policy Configured",
        category="data_retention",
        description="Verify that data retention periods are defined for AI interaction logs, governance artifacts, and user data.",
        check=_check_retention_policy,
    ),
    ControlDefinition(
        control_id="RET-002",
        control_name="AI Provider Data Handling",
        category="data_retention",
        description="Verify that AI provider data handling agreements are in place (no training on your data, deletion rights, DPA signed).",
        check=_check_provider_data_handling,
    ),
    ControlDefinition(
        control_id="ACL-001",
        control_name="Role-Based Access Control Configured",
        category="access_control",
        description="Verify that RBAC is enforced for all platform features, ensuring users only access resources appropriate to their role.",
        check=_check_rbac,
    ),
    ControlDefinition(
        control_id="ACL-002",
        control_name="Least Privilege Enforcement",
        category="access_control",
        description="Verify that the principle of least privilege is applied to AI tool access, API keys, and data access.",
        check=_check_least_privilege,
    ),
    ControlDefinition(
        control_id="ACL-003",
        control_name="Service Account Governance",
        category="access_control",
        description="Verify that service accounts used by AI tools have scoped permissions and are inventoried.",
        check=_check_service_accounts,
    ),
    ControlDefinition(
        control_id="ENC-001",
        control_name="Encryption at Rest",
        category="encryption",
        description="Verify that all data at rest is encrypted using industry-standard algorithms (AES-256 or equivalent).",
        check=_check_encryption_at_rest,
    ),
    ControlDefinition(
        control_id="ENC-002",
        control_name="Encryption in Transit",
        category="encryption",
        description="Verify that all data in transit is encrypted using TLS 1.2+ for API calls, database connections, and inter-service communication.",
        check=_check_encryption_in_transit,
    ),
    ControlDefinition(
        control_id="ENC-003",
        control_name="Key Management",
        category="encryption",
        description="Verify that encryption keys are managed through a KMS with access controls, rotation, and audit logging.",
        check=_check_key_management,
    ),
)
