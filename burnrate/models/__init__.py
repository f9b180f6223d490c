"""Domain models for claude-burnrate."""

from burnrate.models.base import CamelModel
from burnrate.models.config import AppConfig, IndexerConfig, ThresholdConfig
from burnrate.models.overview import (
    CostSplit,
    DailyActivity,
    DailyCost,
    DailyModelTokens,
    DailyTokens,
    DateRange,
    LongestSession,
    ModelBreakdown,
    ModelDayCost,
    Overview,
    StatsCache,
    TokenComposition,
    TokenPercentages,
)
from burnrate.models.reports import (
    Achievement,
    BranchCost,
    BranchCosts,
    ClaudeSetup,
    Contributions,
    ExpensivePrompt,
    Gamification,
    Insight,
    Patterns,
    ProjectCost,
    Recommendation,
    Streak,
    ToolUsage,
)
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
from burnrate.models.session import (
    AssistantMessage,
    EditCall,
    EventType,
    Filters,
    IndexEntry,
    SessionProbe,
    SessionRecord,
    SessionSummary,
    ToolCall,
    Turn,
    UserMessage,
    WriteCall,
    WriteEditCalls,
)
from burnrate.models.usage import CostBreakdown, ModelCost, PricingEntry, TokenUsage, TotalCost

__all__ = [
    "CamelModel",
    # Config
    "AppConfig",
    "IndexerConfig",
    "ThresholdConfig",
    # Usage and pricing
    "CostBreakdown",
    "ModelCost",
    "PricingEntry",
    "TokenUsage",
    "TotalCost",
    # Sessions
    "AssistantMessage",
    "EditCall",
    "EventType",
    "Filters",
    "IndexEntry",
    "SessionProbe",
    "SessionRecord",
    "SessionSummary",
    "ToolCall",
    "Turn",
    "UserMessage",
    "WriteCall",
    "WriteEditCalls",
    # Overview
    "CostSplit",
    "DailyActivity",
    "DailyCost",
    "DailyModelTokens",
    "DailyTokens",
    "DateRange",
    "LongestSession",
    "ModelBreakdown",
    "ModelDayCost",
    "Overview",
    "StatsCache",
    "TokenComposition",
    "TokenPercentages",
    # Reports
    "Achievement",
    "BranchCost",
    "BranchCosts",
    "ClaudeSetup",
    "Contributions",
    "ExpensivePrompt",
    "Gamification",
    "Insight",
    "Patterns",
    "ProjectCost",
    "Recommendation",
    "Streak",
    "ToolUsage",
    # Security
    "AnomalyFlag",
    "AuditSummary",
    "BashCategory",
    "BashCommand",
    "DangerousSession",
    "DirectoryAccess",
    "DirectoryScope",
    "ExposedSecret",
    "FileAccess",
    "McpRiskAssessment",
    "PermissionRules",
    "RiskLevel",
    "SecretFinding",
    "SecurityAudit",
    "SessionActivity",
    "SessionAnomaly",
]
