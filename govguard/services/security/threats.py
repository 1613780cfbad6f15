from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
import logging

from govguard.core.errors import CatalogDefinitionError
from govguard.services.security.identity import threat_item_id


logger = logging.getLogger(__name__)

# Ordered low -> critical; weights drive the likelihood x impact risk matrix.
RISK_TIER_WEIGHTS: dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
}

THREAT_CATEGORIES: tuple[str, ...] = (
    "prompt_injection",
    "data_exfiltration",
    "over_permissioned_tools",
    "unsafe_output",
    "model_poisoning",
    "denial_of_service",
    "supply_chain",
    "privacy_violation",
)

MITIGATION_OPEN = "open"
MITIGATION_STATUSES = frozenset({MITIGATION_OPEN, "in_progress", "mitigated", "accepted"})


def compute_risk_score(likelihood: str, impact: str) -> int:
    try:
        return RISK_TIER_WEIGHTS[likelihood] * RISK_TIER_WEIGHTS[impact]
    except KeyError as exc:
        raise CatalogDefinitionError(f"Unknown risk tier: {exc.args[0]}") from exc


@dataclass(frozen=True)
class ThreatTemplate:
    category: str
    threat_name: str
    description: str
    likelihood: str
    impact: str
    recommended_controls: tuple[str, ...]
    current_controls: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.category not in THREAT_CATEGORIES:
            raise CatalogDefinitionError(f"Unknown threat category: {self.category}")
        for tier in (self.likelihood, self.impact):
            if tier not in RISK_TIER_WEIGHTS:
                raise CatalogDefinitionError(f"Unknown risk tier {tier!r} for {self.threat_name}")
        if not self.recommended_controls:
            raise CatalogDefinitionError(f"{self.threat_name} needs at least one recommended control")


@dataclass(frozen=True)
class ThreatModelItem:
    id: str
    project_id: str
    category: str
    threat_name: str
    description: str
    likelihood: str
    impact: str
    risk_score: int
    current_controls: list[str]
    recommended_controls: list[str]
    created_at: datetime
    updated_at: datetime
    mitigation_status: str = MITIGATION_OPEN
    owner_id: str | None = None
    owner_name: str | None = None
    due_date: date | None = None

    def __post_init__(self) -> None:
        if self.mitigation_status not in MITIGATION_STATUSES:
            raise CatalogDefinitionError(f"Unknown mitigation status: {self.mitigation_status}")


THREAT_TEMPLATES: tuple[ThreatTemplate, ...] = (
    ThreatTemplate(
        category="prompt_injection",
        threat_name="Direct Prompt Injection",
        description="An attacker crafts malicious input that overrides the AI model system prompt, causing the model to ignore safety instructions, reveal system internals, or execute unintended actions.",
        likelihood="high",
        impact="high",
        recommended_controls=(
            "Implement input sanitization and prompt boundary enforcement",
            "Use system prompt hardening with delimiters and instruction hierarchy",
            "Deploy prompt injection detection classifiers on all user inputs",
            "Implement output filtering to catch instruction-following leaks",
        ),
    ),
    ThreatTemplate(
        category="prompt_injection",
        threat_name="Indirect Prompt Injection via Data Sources",
        description="Malicious instructions are embedded in documents, code comments, or database records that the AI model processes, causing it to act on attacker-controlled directives.",
        likelihood="medium",
        impact="high",
        recommended_controls=(
            "Sanitize and validate all data sources before feeding to AI models",
            "Implement content security policies for AI-ingested documents",
            "Use separate AI calls for data retrieval vs. action execution",
            "Monitor for anomalous AI behavior patterns after processing external data",
        ),
    ),
    ThreatTemplate(
        category="data_exfiltration",
        threat_name="Sensitive Data Leakage to AI Provider",
        description="Confidential source code, credentials, PII, or proprietary business data is sent to external AI model APIs through prompts, file context, or RAG pipelines.",
        likelihood="high",
        impact="critical",
        recommended_controls=(
            "Deploy DLP scanning on all outbound AI API requests",
            "Implement data classification and enforce restrictions on confidential/restricted data",
            "Configure egress proxy with content inspection for AI provider endpoints",
            "Sign Data Processing Agreements with AI providers including no-training clauses",
            "Use on-premise or VPC-deployed models for restricted data workloads",
        ),
    ),
    ThreatTemplate(
        category="data_exfiltration",
        threat_name="AI-Assisted Data Extraction",
        description="An attacker uses AI coding tools to write code that exfiltrates data through side channels, encoded outputs, or seemingly benign API calls.",
        likelihood="medium",
        impact="high",
        recommended_controls=(
            "Restrict sandbox network egress to approved endpoints only",
            "Implement code review gates for all AI-generated code before merge",
            "Deploy runtime monitoring to detect unusual data access patterns",
            "Use static analysis to scan AI-generated code for data exfiltration patterns",
        ),
    ),
    ThreatTemplate(
        category="over_permissioned_tools",
        threat_name="Excessive Tool Permissions",
        description="AI coding agents are granted overly broad permissions (file system access, shell execution, network access) that exceed what is needed for their intended tasks.",
        likelihood="high",
        impact="high",
        recommended_controls=(
            "Apply least-privilege principle to all AI tool configurations",
            "Use allowlisted command sets instead of unrestricted shell access",
            "Restrict file system access to specific project directories only",
            "Implement approval workflows for elevated permission requests",
            "Audit tool permission usage and revoke unused capabilities quarterly",
        ),
    ),
    ThreatTemplate(
        category="over_permissioned_tools",
        threat_name="Unrestricted API Key Scope",
        description="AI tool service accounts or API keys have access to production systems, databases, or cloud resources beyond the sandbox environment.",
        likelihood="medium",
        impact="critical",
        recommended_controls=(
            "Scope API keys to sandbox environment only with resource-level restrictions",
            "Implement separate credential sets for sandbox, staging, and production",
            "Use short-lived tokens with automatic expiration instead of long-lived API keys",
            "Monitor API key usage for out-of-scope resource access",
        ),
    ),
    ThreatTemplate(
        category="unsafe_output",
        threat_name="Insecure Generated Code",
        description="AI models generate code containing security vulnerabilities such as SQL injection, XSS, hardcoded credentials, insecure deserialization, or missing input validation.",
        likelihood="high",
        impact="high",
        recommended_controls=(
            "Run SAST (Static Application Security Testing) on all AI-generated code",
            "Enforce mandatory code review for AI-generated pull requests",
            "Configure pre-commit hooks with security linting rules",
            "Maintain a vulnerability pattern library specific to AI-generated code",
            "Implement dependency scanning for AI-suggested packages",
        ),
    ),
    ThreatTemplate(
        category="unsafe_output",
        threat_name="Hallucinated Dependencies",
        description="AI models suggest importing non-existent packages or deprecated libraries, potentially leading to typosquatting attacks where malicious packages with similar names are installed.",
        likelihood="medium",
        impact="high",
        recommended_controls=(
            "Use a private package registry with allowlisted dependencies",
            "Verify all AI-suggested dependencies exist in official registries before installation",
            "Implement package provenance verification in CI/CD pipelines",
            "Monitor for newly published packages matching AI-suggested names (typosquatting detection)",
        ),
    ),
    ThreatTemplate(
        category="model_poisoning",
        threat_name="Compromised Model Weights",
        description="An attacker or supply chain compromise introduces backdoors or biases into the AI model through poisoned training data or weight manipulation.",
        likelihood="low",
        impact="critical",
        recommended_controls=(
            "Use only AI models from trusted, audited providers with published safety evaluations",
            "Validate model provenance and checksums when using self-hosted models",
            "Implement behavioral monitoring to detect sudden changes in model output patterns",
            "Maintain an approved model registry with version pinning",
        ),
    ),
    ThreatTemplate(
        category="model_poisoning",
        threat_name="Fine-Tuning Data Contamination",
        description="Custom fine-tuning or RAG data pipelines are contaminated with adversarial examples that cause the model to produce biased, harmful, or backdoored outputs.",
        likelihood="low",
        impact="high",
        recommended_controls=(
            "Validate and audit all training/fine-tuning data before use",
            "Implement data lineage tracking for RAG knowledge bases",
            "Use anomaly detection on model outputs after data pipeline updates",
            "Establish a data quality review process with multiple approvers",
        ),
    ),
    ThreatTemplate(
        category="denial_of_service",
        threat_name="AI API Rate Exhaustion",
        description="Malicious or runaway usage exhausts AI provider API rate limits or token budgets, causing service disruption for legitimate users and unexpected cost spikes.",
        likelihood="medium",
        impact="medium",
        recommended_controls=(
            "Implement per-user and per-project rate limits on AI API calls",
            "Set token budget caps with alerting thresholds",
            "Deploy circuit breakers to prevent cascading failures from API exhaustion",
            "Monitor AI API usage dashboards and configure cost anomaly alerts",
        ),
    ),
    ThreatTemplate(
        category="denial_of_service",
        threat_name="Resource Exhaustion via Generated Code",
        description="AI-generated code contains infinite loops, memory leaks, or resource-intensive operations that exhaust sandbox or production compute resources.",
        likelihood="medium",
        impact="medium",
        recommended_controls=(
            "Run AI-generated code in resource-constrained containers with CPU/memory limits",
            "Implement execution timeouts for all AI-triggered operations",
            "Use code review automation to detect potential resource exhaustion patterns",
            "Configure monitoring alerts for abnormal resource consumption in sandbox environments",
        ),
    ),
    ThreatTemplate(
        category="supply_chain",
        threat_name="Compromised AI Tool Extension",
        description="A malicious or compromised IDE extension, plugin, or CLI tool for AI coding assistance introduces backdoors, exfiltrates data, or tampers with generated code.",
        likelihood="medium",
        impact="critical",
        recommended_controls=(
            "Maintain an approved extension/plugin allowlist with version pinning",
            "Verify extension signatures and publisher identity before installation",
            "Monitor extension update channels and review changelogs for anomalies",
            "Deploy endpoint monitoring to detect unusual extension behavior",
        ),
    ),
    ThreatTemplate(
        category="supply_chain",
        threat_name="AI Provider Service Compromise",
        description="The AI model provider infrastructure is compromised, leading to data exposure, model tampering, or service manipulation affecting all API consumers.",
        likelihood="low",
        impact="critical",
        recommended_controls=(
            "Evaluate AI provider security posture (SOC 2 Type II, penetration test reports)",
            "Implement API response validation to detect anomalous or tampered outputs",
            "Maintain fallback AI providers for business continuity",
            "Include AI provider compromise in incident response playbooks",
            "Negotiate contractual notification requirements for security incidents",
        ),
    ),
    ThreatTemplate(
        category="privacy_violation",
        threat_name="PII Exposure in AI Prompts",
        description="Personally identifiable information (names, emails, SSNs, health data) is inadvertently included in AI model prompts, violating privacy regulations and data handling policies.",
        likelihood="high",
        impact="high",
        recommended_controls=(
            "Implement PII detection and redaction on all outbound AI prompts",
            "Train developers on data minimization principles for AI interactions",
            "Configure DLP policies specific to AI API endpoints",
            "Conduct regular audits of AI interaction logs for PII exposure",
            "Implement automated PII classification scanning on code repositories",
        ),
    ),
    ThreatTemplate(
        category="privacy_violation",
        threat_name="Cross-Border Data Transfer via AI",
        description="Data sent to AI providers may cross jurisdictional boundaries, violating GDPR, data residency requirements, or sector-specific regulations.",
        likelihood="medium",
        impact="high",
        recommended_controls=(
            "Map AI provider data processing regions and verify compliance with residency requirements",
            "Use region-specific AI API endpoints when available",
            "Ensure Standard Contractual Clauses or equivalent are in place for cross-border transfers",
            "Implement data classification to prevent restricted data from reaching cross-border AI endpoints",
        ),
    ),
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_threat_model(project_id: str) -> list[ThreatModelItem]:
    """Seed the default AI threat register for a project.

    Items come out in template order with mitigation status ``open`` and no owner;
    only the timestamps differ between calls for the same project.
    """
    now = _utc_now()
    items = [
        ThreatModelItem(
            # Index is the template's position in the full table, not within its category.
            id=threat_item_id(project_id, template.category, index),
            project_id=project_id,
            category=template.category,
            threat_name=template.threat_name,
            description=template.description,
            likelihood=template.likelihood,
            impact=template.impact,
            risk_score=compute_risk_score(template.likelihood, template.impact),
            current_controls=list(template.current_controls),
            recommended_controls=list(template.recommended_controls),
            created_at=now,
            updated_at=now,
        )
        for index, template in enumerate(THREAT_TEMPLATES)
    ]
    logger.debug("threat_model_generated project_id=%s items=%s", project_id, len(items))
    return items
