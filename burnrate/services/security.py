"""Security audit over every tool call in every session.

Heuristic checks:
- sensitive file and directory access
- shell commands classified by risk
- credential-shaped strings in shell commands
- MCP server definitions that expose secrets or run unknown binaries
- sessions run in a confirmation-bypassing permission mode
- sessions whose destructive or write activity is far above the others
"""

import logging
import posixpath
import re
from typing import Any

from burnrate.models.config import AppConfig
from burnrate.models.security import (
    AnomalyFlag,
    AuditSummary,
    BashCategory,
    BashCommand,
    DangerousSession,
    DirectoryAccess,
    DirectoryScope,
    ExposedSecret,
    FileAccess,
    McpRiskAssessment,
    PermissionRules,
    RiskLevel,
    SecretFinding,
    SecurityAudit,
    SessionActivity,
    SessionAnomaly,
)
from burnrate.models.session import SessionRecord
from burnrate.services.config_reader import read_mcp_servers_raw, read_permission_settings
from burnrate.services.session_parser import tool_file_path
from burnrate.services.session_reader import ClaudeDataReader

logger = logging.getLogger(__name__)

SENSITIVE_PATTERNS = [
    re.compile(r"\.env($|\.)"),
    re.compile(r"\.ssh/"),
    re.compile(r"\.aws/"),
    re.compile(r"\.gnupg/"),
    re.compile(r"credential", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"\.pem$"),
    re.compile(r"\.key$"),
    re.compile(r"/etc/"),
    re.compile(r"/var/"),
]

# Checked in order; the first match wins.
BASH_PATTERNS: dict[BashCategory, re.Pattern] = {
    BashCategory.SUDO: re.compile(r"\bsudo\b"),
    BashCategory.DESTRUCTIVE: re.compile(
        r"\b(rm\s|rmdir|git\s+reset\s+--hard|git\s+clean|git\s+checkout\s+\.)"
    ),
    BashCategory.PERMISSIONS: re.compile(r"\b(chmod|chown|chgrp)\b"),
    BashCategory.NETWORK: re.compile(
        r"\b(curl|wget|ssh\s|scp\s|git\s+push|git\s+clone|git\s+fetch|git\s+pull)\b"
    ),
    BashCategory.PACKAGE_MANAGERS: re.compile(
        r"\b(npm\s+install|yarn\s+add|pip\s+install|cargo\s+install|brew\s+install"
        r"|apt\s+install|apt-get\s+install)\b"
    ),
}

FLAGGED_CATEGORIES = (
    BashCategory.SUDO,
    BashCategory.DESTRUCTIVE,
    BashCategory.PERMISSIONS,
    BashCategory.NETWORK,
)

SECRET_PATTERNS: dict[str, re.Pattern] = {
    "bearer_token": re.compile(r"\bBearer\s+[A-Za-z0-9\-._~+/]{16,}=*", re.IGNORECASE),
    "sk_api_key": re.compile(r"\bsk-[A-Za-z0-9_\-]{20,}"),
    "aws_access_key": re.compile(r"\bAKIA[0-9A-Z]{16}\b"),
    "github_token": re.compile(r"\bghp_[A-Za-z0-9]{36}\b"),
    "atlassian_token": re.compile(r"\bATATT[A-Za-z0-9_\-=]{20,}"),
    "token_param": re.compile(r"token=[^&\s'\"]+", re.IGNORECASE),
    "password_param": re.compile(r"password=[^&\s'\"]+", re.IGNORECASE),
    "password_flag": re.compile(r"--password(?:=|\s+)[^\s'\"]+", re.IGNORECASE),
}

REDACT_KEEP_CHARS = 6

SECRET_ENV_PATTERN = re.compile(r"token|key|secret|password|credential", re.IGNORECASE)
SAFE_MCP_COMMANDS = frozenset({"npx", "node", "python", "python3", "uvx", "docker"})
MCP_HIGH_RISK_SECRETS = 3

BROAD_RULE_PATTERN = re.compile(r"^Bash(\(\s*\*?\s*(:\s*\*)?\s*\))?$")

READ_TOOLS = frozenset({"read"})
WRITE_TOOLS = frozenset({"write"})
EDIT_TOOLS = frozenset({"edit"})
SEARCH_TOOLS = frozenset({"glob", "grep"})
SHELL_TOOLS = frozenset({"bash"})


def is_sensitive_path(path: str | None) -> bool:
    if not path:
        return False
    return any(pattern.search(path) for pattern in SENSITIVE_PATTERNS)


def classify_bash_command(command: str | None) -> BashCategory:
    """Return the first risk category the command matches, or SAFE."""
    if not command:
        return BashCategory.SAFE
    for category, pattern in BASH_PATTERNS.items():
        if pattern.search(command):
            return category
    return BashCategory.SAFE


def detect_secrets_in_command(command: str | None) -> list[str]:
    """Names of every secret signature found in the command."""
    if not command:
        return []
    return [name for name, pattern in SECRET_PATTERNS.items() if pattern.search(command)]


def redact_command(command: str) -> str:
    """Mask every secret match, keeping only a short prefix."""
    for pattern in SECRET_PATTERNS.values():
        command = pattern.sub(lambda m: m.group(0)[:REDACT_KEEP_CHARS] + "****", command)
    return command


def preview_secret(value: Any) -> str:
    text = "" if value is None else str(value)
    if len(text) <= 4:
        return "****"
    return text[:4] + "…"


def assess_mcp_risk(servers: dict[str, dict[str, Any]]) -> list[McpRiskAssessment]:
    """Rate each MCP server by the secrets it is given and how it is launched.

    High: three or more secret-looking env vars, or a launch command outside
    the known-safe list. Medium: one or two secrets. Low otherwise. Servers
    with no command (remote URL servers) are rated on their secrets alone.
    """
    results = []

    for name, definition in servers.items():
        env = definition.get("env")
        env = env if isinstance(env, dict) else {}
        exposed = [
            ExposedSecret(name=key, preview=preview_secret(value))
            for key, value in env.items()
            if SECRET_ENV_PATTERN.search(key)
        ]

        command = definition.get("command")
        command = command if isinstance(command, str) and command else None
        reasons = []
        risk = RiskLevel.LOW

        if len(exposed) >= MCP_HIGH_RISK_SECRETS:
            risk = RiskLevel.HIGH
            reasons.append(f"{len(exposed)} secrets passed through environment")
        elif exposed:
            risk = RiskLevel.MEDIUM
            reasons.append(f"{len(exposed)} secret(s) passed through environment")

        if command is not None and posixpath.basename(command) not in SAFE_MCP_COMMANDS:
            risk = RiskLevel.HIGH
            reasons.append(f"Unrecognized launch command: {command}")

        results.append(
            McpRiskAssessment(
                name=name,
                source=definition.get("source"),
                command=command,
                risk_level=risk,
                exposed_secrets=exposed,
                reasons=reasons,
            )
        )

    order = {RiskLevel.HIGH: 0, RiskLevel.MEDIUM: 1, RiskLevel.LOW: 2}
    results.sort(key=lambda r: order[r.risk_level])
    return results


def detect_anomalies(
    activities: list[SessionActivity],
    multiplier: float = 3.0,
    min_sessions: int = 3,
) -> list[SessionAnomaly]:
    """Flag sessions far above the leave-one-out average of the others.

    Each session is compared with the mean of every other session, so an
    outlier does not raise its own baseline. Nothing is flagged when that
    mean is zero, or when there are fewer than ``min_sessions`` sessions.
    """
    if len(activities) < max(min_sessions, 2):
        return []

    metrics = (
        ("destructiveCommands", "destructive_count"),
        ("writeOperations", "write_count"),
    )
    totals = {attr: sum(getattr(a, attr) for a in activities) for _, attr in metrics}
    others = len(activities) - 1

    anomalies = []
    for activity in activities:
        flags = []
        for metric, attr in metrics:
            value = getattr(activity, attr)
            baseline = (totals[attr] - value) / others
            if baseline > 0 and value > multiplier * baseline:
                flags.append(
                    AnomalyFlag(
                        metric=metric,
                        value=value,
                        baseline=round(baseline, 2),
                        ratio=round(value / baseline, 1),
                    )
                )
        if flags:
            anomalies.append(
                SessionAnomaly(session_id=activity.session_id, project=activity.project, flags=flags)
            )
    return anomalies


def find_broad_rules(allow: list[str]) -> list[str]:
    """Allow rules that grant unrestricted shell access."""
    return [rule for rule in allow if BROAD_RULE_PATTERN.match(rule.strip())]


class SecurityAuditor:
    """Runs the full-corpus security audit.

    The audit always covers every session; it takes no filters.
    """

    def __init__(self, reader: ClaudeDataReader, config: AppConfig | None = None):
        self.reader = reader
        self.config = config or AppConfig()

    def audit(self) -> SecurityAudit:
        file_counts: dict[str, dict[str, int]] = {}
        dir_counts: dict[str, int] = {}
        bash_commands: dict[str, list[BashCommand]] = {c.value: [] for c in BashCategory}
        secrets: list[SecretFinding] = []
        activities: list[SessionActivity] = []
        dangerous: list[DangerousSession] = []
        project_roots = {p for p in self.reader.project_work_dirs() if p}

        for record in self.reader.iter_session_records():
            if record.project_path:
                project_roots.add(record.project_path)

            activity, commands = self._scan_session(
                record, file_counts, dir_counts, bash_commands, secrets
            )
            activities.append(activity)

            mode = record.permission_mode
            if mode and mode in self.config.dangerous_permission_modes:
                dangerous.append(
                    DangerousSession(
                        session_id=record.session_id,
                        project=record.project_path,
                        permission_mode=mode,
                        date=record.date,
                        flagged_commands=[c for c in commands if c.category is not BashCategory.SAFE],
                    )
                )

        file_access = sorted(
            (
                FileAccess(
                    path=path,
                    reads=counts["reads"],
                    writes=counts["writes"],
                    edits=counts["edits"],
                    total=counts["reads"] + counts["writes"] + counts["edits"],
                    sensitive=is_sensitive_path(path),
                )
                for path, counts in file_counts.items()
            ),
            key=lambda f: f.total,
            reverse=True,
        )
        scope = self._directory_scope(dir_counts, project_roots)

        thresholds = self.config.thresholds
        anomalies = detect_anomalies(
            activities,
            multiplier=thresholds.anomaly_multiplier,
            min_sessions=thresholds.anomaly_min_sessions,
        )

        project_paths = sorted(project_roots)
        mcp_risk = assess_mcp_risk(read_mcp_servers_raw(self.reader.claude_dir, project_paths))
        permissions = [
            PermissionRules(scope=scope_name, allow=allow, broad_rules=find_broad_rules(allow))
            for scope_name, allow in read_permission_settings(
                self.reader.claude_dir, project_paths
            ).items()
        ]

        summary = AuditSummary(
            total_files_accessed=len(file_access),
            total_bash_commands=sum(len(v) for v in bash_commands.values()),
            flagged_bash_commands=sum(len(bash_commands[c.value]) for c in FLAGGED_CATEGORIES),
            total_directories=len(dir_counts),
            sensitive_flags=sum(1 for f in file_access if f.sensitive)
            + sum(1 for d in scope.outside_project if d.sensitive),
            secrets_detected=len(secrets),
            dangerous_sessions=len(dangerous),
            high_risk_integrations=sum(1 for r in mcp_risk if r.risk_level is RiskLevel.HIGH),
            anomalies=len(anomalies),
        )

        logger.info(
            f"Security audit: {summary.total_bash_commands} commands, "
            f"{summary.flagged_bash_commands} flagged, {summary.secrets_detected} secrets"
        )

        return SecurityAudit(
            summary=summary,
            file_access=file_access,
            bash_commands=bash_commands,
            directory_scope=scope,
            secrets=secrets,
            dangerous_sessions=dangerous,
            mcp_risk=mcp_risk,
            permissions=permissions,
            anomalies=anomalies,
        )

    def _scan_session(
        self,
        record: SessionRecord,
        file_counts: dict[str, dict[str, int]],
        dir_counts: dict[str, int],
        bash_commands: dict[str, list[BashCommand]],
        secrets: list[SecretFinding],
    ) -> tuple[SessionActivity, list[BashCommand]]:
        activity = SessionActivity(session_id=record.session_id, project=record.project_path)
        commands: list[BashCommand] = []

        for msg in record.assistant_messages:
            for tool in msg.tool_calls:
                name = tool.name.lower()

                if name in READ_TOOLS or name in WRITE_TOOLS or name in EDIT_TOOLS:
                    path = tool_file_path(tool.input)
                    if not path:
                        continue
                    counts = file_counts.setdefault(path, {"reads": 0, "writes": 0, "edits": 0})
                    if name in READ_TOOLS:
                        counts["reads"] += 1
                    elif name in WRITE_TOOLS:
                        counts["writes"] += 1
                        activity.write_count += 1
                    else:
                        counts["edits"] += 1
                        activity.write_count += 1
                    _track_dir(dir_counts, posixpath.dirname(path))

                elif name in SEARCH_TOOLS:
                    path = tool.input.get("path")
                    if isinstance(path, str) and path:
                        _track_dir(dir_counts, path.rstrip("/") or "/")

                elif name in SHELL_TOOLS:
                    command = tool.input.get("command")
                    if not isinstance(command, str) or not command:
                        continue
                    category = classify_bash_command(command)
                    entry = BashCommand(
                        command=command,
                        session_id=record.session_id,
                        date=msg.timestamp,
                        category=category,
                    )
                    bash_commands[category.value].append(entry)
                    commands.append(entry)
                    activity.command_count += 1
                    if category is BashCategory.DESTRUCTIVE:
                        activity.destructive_count += 1

                    found = detect_secrets_in_command(command)
                    if found:
                        secrets.append(
                            SecretFinding(
                                session_id=record.session_id,
                                command=redact_command(command),
                                types=found,
                                date=msg.timestamp,
                            )
                        )

        return activity, commands

    @staticmethod
    def _directory_scope(dir_counts: dict[str, int], project_roots: set[str]) -> DirectoryScope:
        scope = DirectoryScope()
        for directory, count in dir_counts.items():
            if any(directory.startswith(root) for root in project_roots):
                scope.in_project.append(DirectoryAccess(dir=directory, access_count=count))
            else:
                scope.outside_project.append(
                    DirectoryAccess(
                        dir=directory,
                        access_count=count,
                        sensitive=is_sensitive_path(directory + "/"),
                    )
                )
        scope.in_project.sort(key=lambda d: d.access_count, reverse=True)
        scope.outside_project.sort(key=lambda d: d.access_count, reverse=True)
        return scope


def _track_dir(dir_counts: dict[str, int], directory: str) -> None:
    if directory:
        dir_counts[directory] = dir_counts.get(directory, 0) + 1
