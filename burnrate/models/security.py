"""Security audit models."""

from enum import Enum

from pydantic import Field

from burnrate.models.base import CamelModel


class BashCategory(str, Enum):
    """Risk class of a shell command. Declaration order is match order."""

    SUDO = "sudo"
    DESTRUCTIVE = "destructive"
    PERMISSIONS = "permissions"
    NETWORK = "network"
    PACKAGE_MANAGERS = "packageManagers"
    SAFE = "safe"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FileAccess(CamelModel):
    path: str
    reads: int = 0
    writes: int = 0
    edits: int = 0
    total: int = 0
    sensitive: bool = False


class BashCommand(CamelModel):
    command: str
    session_id: str
    date: str | None = None
    category: BashCategory = BashCategory.SAFE


class DirectoryAccess(CamelModel):
    dir: str
    access_count: int = 0
    sensitive: bool = False


class DirectoryScope(CamelModel):
    in_project: list[DirectoryAccess] = Field(default_factory=list)
    outside_project: list[DirectoryAccess] = Field(default_factory=list)


class SecretFinding(CamelModel):
    """A shell command that appears to carry credentials.

    ``command`` is redacted; matched secrets keep only a short prefix.
    """

    session_id: str
    command: str
    types: list[str]
    date: str | None = None


class ExposedSecret(CamelModel):
    name: str
    preview: str


class McpRiskAssessment(CamelModel):
    name: str
    source: str | None = None
    command: str | None = None
    risk_level: RiskLevel = RiskLevel.LOW
    exposed_secrets: list[ExposedSecret] = Field(default_factory=list)
    reasons: list[str] = Field(default_factory=list)


class SessionActivity(CamelModel):
    """Per-session counts used as input to anomaly detection."""

    session_id: str
    project: str | None = None
    destructive_count: int = 0
    write_count: int = 0
    command_count: int = 0


class AnomalyFlag(CamelModel):
    metric: str
    value: int
    baseline: float
    ratio: float


class SessionAnomaly(CamelModel):
    session_id: str
    project: str | None = None
    flags: list[AnomalyFlag] = Field(default_factory=list)


class DangerousSession(CamelModel):
    """A session run in a permission mode that skips confirmations."""

    session_id: str
    project: str | None = None
    permission_mode: str
    date: str | None = None
    flagged_commands: list[BashCommand] = Field(default_factory=list)


class PermissionRules(CamelModel):
    scope: str
    allow: list[str] = Field(default_factory=list)
    broad_rules: list[str] = Field(default_factory=list)


class AuditSummary(CamelModel):
    total_files_accessed: int = 0
    total_bash_commands: int = 0
    flagged_bash_commands: int = 0
    total_directories: int = 0
    sensitive_flags: int = 0
    secrets_detected: int = 0
    dangerous_sessions: int = 0
    high_risk_integrations: int = 0
    anomalies: int = 0


def _empty_bash_commands() -> dict[str, list[BashCommand]]:
    return {category.value: [] for category in BashCategory}


class SecurityAudit(CamelModel):
    summary: AuditSummary = Field(default_factory=AuditSummary)
    file_access: list[FileAccess] = Field(default_factory=list)
    bash_commands: dict[str, list[BashCommand]] = Field(default_factory=_empty_bash_commands)
    directory_scope: DirectoryScope = Field(default_factory=DirectoryScope)
    secrets: list[SecretFinding] = Field(default_factory=list)
    dangerous_sessions: list[DangerousSession] = Field(default_factory=list)
    mcp_risk: list[McpRiskAssessment] = Field(default_factory=list)
    permissions: list[PermissionRules] = Field(default_factory=list)
    anomalies: list[SessionAnomaly] = Field(default_factory=list)
