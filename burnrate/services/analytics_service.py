"""Facade the web routes, CLI summary and exporter read reports through.

Owns the process-lifetime memo caches. The overview cache expires after a
short TTL. The session list lives until ``invalidate()``. The expensive
prompt ranking is computed once per process.
"""

import logging
from datetime import date, timedelta

from burnrate.models.config import AppConfig
from burnrate.models.overview import Overview, StatsCache
from burnrate.models.reports import (
    BranchCosts,
    Contributions,
    ExpensivePrompt,
    Gamification,
    Insight,
    Patterns,
    ProjectCost,
    Recommendation,
    ToolUsage,
)
from burnrate.models.security import SecurityAudit
from burnrate.models.session import Filters, SessionSummary
from burnrate.services.advanced_insights import get_advanced_insights
from burnrate.services.analytics_cache import MemoCache
from burnrate.services.config_reader import read_claude_config
from burnrate.services.contributions import get_contributions
from burnrate.services.expensive_prompts import build_expensive_prompts, filter_expensive_prompts
from burnrate.services.gamification import get_gamification
from burnrate.services.insights import generate_insights
from burnrate.services.overview import build_overview
from burnrate.services.patterns import get_patterns
from burnrate.services.projects import get_branch_costs, get_projects
from burnrate.services.recommendations import get_recommendations
from burnrate.services.security import SecurityAuditor
from burnrate.services.session_reader import ClaudeDataReader
from burnrate.services.sessions import apply_filters, build_all_sessions, get_unique_projects
from burnrate.services.stats_parser import parse_stats_cache
from burnrate.services.tool_usage import get_tool_usage

logger = logging.getLogger(__name__)


def _active(filters: Filters | None) -> bool:
    return filters is not None and filters.is_active


class AnalyticsService:
    """Computes and caches every report over one Claude data directory."""

    def __init__(self, config: AppConfig | None = None, reader: ClaudeDataReader | None = None):
        self.config = config or AppConfig()
        self.reader = reader or ClaudeDataReader(self.config.claude_path, self.config.indexer)

        self._overview_cache: MemoCache[Overview] = MemoCache(
            "overview", ttl=timedelta(seconds=self.config.overview_cache_ttl)
        )
        self._sessions_cache: MemoCache[list[SessionSummary]] = MemoCache("sessions")
        self._prompts_cache: MemoCache[list[ExpensivePrompt]] = MemoCache("expensive prompts")

    def invalidate(self) -> None:
        """Drop the overview and session caches.

        The expensive prompt ranking is a batch report and is kept.
        """
        self._overview_cache.invalidate()
        self._sessions_cache.invalidate()
        logger.info("Analytics caches invalidated")

    def load_stats_cache(self) -> StatsCache | None:
        return parse_stats_cache(self.reader.read_stats_cache())

    def get_all_sessions(self) -> list[SessionSummary]:
        return self._sessions_cache.get_or_compute(lambda: build_all_sessions(self.reader))

    def get_sessions(self, filters: Filters | None = None) -> list[SessionSummary]:
        return apply_filters(self.get_all_sessions(), filters)

    def get_project_list(self) -> list[str]:
        return get_unique_projects(self.get_all_sessions())

    def get_overview(self, filters: Filters | None = None, today: date | None = None) -> Overview:
        """Overview for the filters, or the memoized unfiltered overview.

        An unfiltered overview over a cache last computed before today is
        supplemented with the sessions dated after it.
        """
        if _active(filters):
            return build_overview(
                self.load_stats_cache(), filters, self.get_sessions(filters), today=today
            )
        return self._overview_cache.get_or_compute(lambda: self._unfiltered_overview(today))

    def _unfiltered_overview(self, today: date | None) -> Overview:
        cache = self.load_stats_cache()
        if cache is None:
            return build_overview(None)
        return build_overview(cache, sessions=self.get_all_sessions(), today=today)

    def get_projects(self, filters: Filters | None = None) -> list[ProjectCost]:
        return get_projects(self.get_sessions(filters))

    def get_branch_costs(self, filters: Filters | None = None) -> BranchCosts:
        return get_branch_costs(self.get_sessions(filters))

    def get_tool_usage(self, filters: Filters | None = None) -> ToolUsage:
        return get_tool_usage(self.reader.iter_session_records(), filters)

    def get_patterns(self, filters: Filters | None = None) -> Patterns:
        return get_patterns(self.get_overview(filters))

    def get_insights(self, filters: Filters | None = None) -> list[Insight]:
        setup = read_claude_config(self.config.claude_path)
        return generate_insights(self.get_overview(filters), self.get_sessions(filters), setup)

    def get_recommendations(self, filters: Filters | None = None) -> list[Recommendation]:
        return get_recommendations(self.get_overview(filters), self.get_sessions(filters))

    def get_gamification(self, filters: Filters | None = None) -> Gamification:
        return get_gamification(self.get_overview(filters), self.get_sessions(filters))

    def get_expensive_prompts(self, filters: Filters | None = None) -> list[ExpensivePrompt]:
        ranked = self._prompts_cache.get_or_compute(
            lambda: build_expensive_prompts(
                self.reader.iter_session_records(), limit=self.config.expensive_prompt_limit
            )
        )
        return filter_expensive_prompts(ranked, filters)

    def get_contributions(self) -> Contributions:
        return get_contributions(self.reader.iter_session_records(), self._work_dirs())

    def get_advanced_insights(self) -> list[Insight]:
        return get_advanced_insights(
            self.get_overview(),
            self.get_contributions(),
            self.reader.iter_session_records(),
            self.config.thresholds,
        )

    def get_security_audit(self) -> SecurityAudit:
        return SecurityAuditor(self.reader, self.config).audit()

    def _work_dirs(self) -> list[str]:
        return sorted({s.project for s in self.get_all_sessions() if s.project})
