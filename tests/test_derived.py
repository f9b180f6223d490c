"""Tests for the reports derived from the overview and session data."""

from datetime import date, datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from burnrate.models.overview import (
    DailyActivity,
    ModelBreakdown,
    Overview,
    TokenComposition,
)
from burnrate.models.reports import Contributions
from burnrate.models.session import (
    AssistantMessage,
    Filters,
    SessionRecord,
    SessionSummary,
    ToolCall,
    UserMessage,
)
from burnrate.models.usage import TokenUsage
from burnrate.services.advanced_insights import (
    ContextStats,
    WasteStats,
    get_advanced_insights,
    roi_insight,
)
from burnrate.services.contributions import get_contributions
from burnrate.services.expensive_prompts import (
    build_expensive_prompts,
    explain_cost,
    filter_expensive_prompts,
)
from burnrate.services.gamification import compute_score, compute_streak, get_gamification
from burnrate.services.insights import (
    cost_concentration,
    generate_insights,
    late_night,
    model_choice,
    short_sessions,
)
from burnrate.services.patterns import get_patterns
from burnrate.services.projects import get_branch_costs, get_projects
from burnrate.services.recommendations import get_recommendations
from burnrate.services.tool_usage import get_tool_usage

SONNET = "claude-sonnet-4-6"
OPUS = "claude-opus-4-6"


def tools(*names, **tool_input):
    return AssistantMessage(model=SONNET, tool_calls=[ToolCall(name=n, input=tool_input) for n in names])


def context_message(size):
    return AssistantMessage(model=SONNET, usage=TokenUsage(cache_read_input_tokens=size))


def session(session_id, cost=1.0, messages=10, model=SONNET, **fields):
    return SessionSummary(
        session_id=session_id,
        cost=cost,
        messages=messages,
        tokens_by_model={model: TokenUsage(output_tokens=100)},
        **fields,
    )


class TestProjects:
    """Tests for project and branch cost breakdowns."""

    def test_projects_by_cost(self):
        """Sessions without a project fall under Unknown."""
        projects = get_projects(
            [
                session("a", cost=1.0, project="/p1"),
                session("b", cost=5.0),
                session("c", cost=2.0, project="/p1"),
            ]
        )

        assert [(p.project, p.sessions, p.cost) for p in projects] == [
            ("Unknown", 1, 5.0),
            ("/p1", 2, 3.0),
        ]

    def test_branch_costs(self):
        """Average cost per session per project and branch."""
        costs = get_branch_costs(
            [
                session("a", cost=2.0, project="/p1", git_branch="feat"),
                session("b", cost=4.0, project="/p1", git_branch="feat"),
                session("c", cost=1.0),
            ]
        )

        assert costs.total_branches == 2
        top = costs.branches[0]
        assert (top.project, top.branch, top.avg_cost_per_session) == ("/p1", "feat", 3.0)
        assert (costs.branches[1].project, costs.branches[1].branch) == ("(unknown)", "(no branch)")


class TestToolUsage:
    """Tests for tool call counting."""

    def test_counts_and_ratio(self):
        record = SessionRecord(
            session_id="s",
            messages=[tools("Read", "Read", "Grep"), tools("Edit", "Bash")],
        )
        usage = get_tool_usage([record])

        assert usage.total_tool_calls == 5
        assert usage.tool_counts == {"Read": 2, "Grep": 1, "Edit": 1, "Bash": 1}
        assert usage.top_tools[0].name == "Read"
        assert usage.top_tools[0].percentage == 40.0
        assert usage.read_write_ratio == 3.0
        assert usage.avg_tools_per_session == 5.0

    def test_reads_without_writes(self):
        """The ratio is undefined when nothing was written."""
        record = SessionRecord(session_id="s", messages=[tools("Read")])
        assert get_tool_usage([record]).read_write_ratio is None

    def test_no_tools(self):
        usage = get_tool_usage([SessionRecord(session_id="s")])
        assert usage.read_write_ratio == 0.0
        assert usage.session_count == 1

    def test_filters_apply_per_session(self):
        record = SessionRecord(
            session_id="s",
            project_path="/a",
            first_timestamp=datetime(2026, 1, 5, tzinfo=timezone.utc),
            messages=[tools("Read")],
        )
        assert get_tool_usage([record], Filters(project="/b")).session_count == 0
        assert get_tool_usage([record], Filters(from_date="2026-01-05")).session_count == 1


class TestPatterns:
    """Tests for activity patterns."""

    def test_weeks_start_on_sunday(self):
        overview = Overview(
            daily_activity=[
                DailyActivity(date="2026-01-04", message_count=5),
                DailyActivity(date="2026-01-05", message_count=7),
                DailyActivity(date="2026-01-11", message_count=3),
            ],
            hour_counts={"10": 3, "14": 2, "bad": 9},
        )
        patterns = get_patterns(overview)

        weeks = [(w.week_start, w.week, w.messages, w.days) for w in patterns.weekly_comparison]
        assert weeks == [("2026-01-04", 2, 12, 2), ("2026-01-11", 3, 3, 1)]
        by_day = {d.day: d.count for d in patterns.day_of_week_counts}
        assert by_day["Sun"] == 8
        assert by_day["Mon"] == 7
        assert patterns.peak_hour == 10
        assert patterns.quiet_hour == 14

    def test_empty_overview(self):
        assert get_patterns(Overview(empty=True)).weekly_comparison == []


class TestGamification:
    """Tests for score, streaks and achievements."""

    @pytest.fixture
    def overview(self):
        days = ["2026-01-01", "2026-01-02", "2026-01-03", "2026-01-05", "2026-01-06"]
        return Overview(
            total_cost=150.0,
            total_sessions=2,
            total_messages=20,
            daily_activity=[DailyActivity(date=d) for d in days],
        )

    def test_streaks(self, overview):
        """The current run counts back from yesterday or today."""
        assert compute_streak(overview, today=date(2026, 1, 7)).model_dump() == {
            "current": 2,
            "longest": 3,
        }
        assert compute_streak(overview, today=date(2026, 1, 9)).current == 0

    def test_neutral_score_without_data(self):
        """Every factor defaults to 50."""
        score = compute_score(Overview(), [])
        assert score.total == 50
        assert score.factors.cache == 50

    def test_spend_milestones(self, overview):
        result = get_gamification(overview, [session("a"), session("b")], today=date(2026, 1, 7))
        achievements = {a.id: a for a in result.achievements}

        assert achievements["first_hundred"].unlocked
        assert achievements["first_hundred"].progress is None
        assert not achievements["big_spender"].unlocked
        assert achievements["big_spender"].progress == "$150.00 / $500 ($350.00 to go)"
        assert achievements["sonnet_savvy"].unlocked


class TestRecommendations:
    """Tests for rule-based recommendations."""

    def test_cache_rules_sorted_by_severity(self):
        overview = Overview(
            token_composition=TokenComposition(
                input=10, output=90, cache_read=10, cache_write=90, total=200
            )
        )
        recs = get_recommendations(overview, [])

        assert [(r.severity, r.title) for r in recs] == [
            ("high", "Low Cache Hit Rate"),
            ("medium", "High Cache Creation Overhead"),
            ("low", "Output-Heavy Usage"),
        ]

    def test_opus_heavy_spend(self):
        overview = Overview(
            total_cost=100.0,
            model_breakdown=[
                ModelBreakdown(model_id=OPUS, display_name="Opus", total_cost=95.0),
                ModelBreakdown(model_id=SONNET, display_name="Sonnet", total_cost=5.0),
            ],
        )
        recs = get_recommendations(overview, [])

        assert len(recs) == 1
        assert recs[0].estimated_savings == "Up to $76.00 if 80% of tasks used Sonnet"

    def test_empty_overview(self):
        assert get_recommendations(Overview(empty=True), [session("a")]) == []


class TestInsights:
    """Tests for individual insight rules."""

    def test_cost_concentration(self):
        sessions = [session("big", cost=100.0, summary="Migration")]
        sessions += [session(f"s{i}", cost=1.0) for i in range(9)]

        insight = cost_concentration(sessions)
        assert insight.title == "Just 1 conversation used 92% of all your spend"
        assert "(Migration)" in insight.description

    def test_cost_concentration_needs_five_sessions(self):
        assert cost_concentration([session("a", cost=10.0)]) is None

    def test_model_choice(self):
        sessions = [session(f"o{i}", messages=4, model=OPUS) for i in range(3)]
        assert model_choice(sessions).title == "3 simple conversations used Opus unnecessarily"

    def test_short_sessions(self):
        sessions = [session(f"s{i}", messages=2) for i in range(3)]
        sessions += [session("l1"), session("l2")]
        assert short_sessions(sessions).title == "60% of sessions are 3 messages or fewer"

    def test_late_night(self):
        overview = Overview(hour_counts={"23": 5, "0": 5, "10": 5, "11": 5, "12": 5})
        assert late_night(overview).title == "40% of your coding happens after 11 PM"

    def test_empty_overview_has_no_insights(self):
        assert generate_insights(Overview(empty=True), [session("a")]) == []


class TestAdvancedInsights:
    """Tests for ROI, context-window and retry analyses."""

    def test_roi_full_marks(self):
        overview = Overview(total_cost=10.0, total_sessions=5)
        contributions = Contributions(
            total_lines_written=2500,
            total_lines_edited=2500,
            total_files_touched=50,
            co_authored_commits=20,
        )
        insight = roi_insight(overview, contributions)

        assert insight.title == "ROI Score: 100/100 (High), 500 lines per dollar"
        assert insight.severity == "info"

    def test_roi_needs_contributions(self):
        assert roi_insight(Overview(total_cost=1.0), None) is None

    def test_context_window(self):
        stats = ContextStats()
        for i in range(2):
            stats.add(
                SessionRecord(
                    session_id=f"s{i}",
                    messages=[context_message(100_000), context_message(50_000), context_message(170_000)],
                )
            )

        assert stats.near_limit_sessions == 2
        assert stats.critical_sessions == 0
        assert stats.compactions == 2
        assert stats.to_insight().title == "Context window: 2 sessions near limit, avg peak 170.0K"

    def test_retry_patterns(self):
        stats = WasteStats()
        stats.add(SessionRecord(session_id="retry", messages=[tools("Edit", file_path="/a.py")] * 3))
        for i in range(2):
            stats.add(SessionRecord(session_id=f"ok{i}", messages=[tools("Read")] * 3))

        insight = stats.to_insight()
        assert insight.title.startswith("1 session had retry patterns")
        assert stats.examples == ["/a.py edited 3 times"]

    def test_short_sessions_are_skipped(self):
        stats = WasteStats()
        stats.add(SessionRecord(session_id="s", messages=[tools("Edit", file_path="/a.py")] * 2))
        assert stats.sessions_checked == 0

    def test_single_pass_over_records(self):
        records = iter([SessionRecord(session_id="s", messages=[context_message(1000)] * 2)])
        assert get_advanced_insights(Overview(), None, records) == []


class TestExpensivePrompts:
    """Tests for the expensive prompt ranking."""

    @pytest.fixture
    def record(self):
        return SessionRecord(
            session_id="s",
            project_path="/app",
            messages=[
                UserMessage(prompt_text="cheap", timestamp="2026-01-01T10:00:00Z"),
                AssistantMessage(model=SONNET, usage=TokenUsage(output_tokens=1000)),
                UserMessage(prompt_text="pricey", timestamp="2026-01-02T10:00:00Z"),
                AssistantMessage(
                    model=OPUS,
                    usage=TokenUsage(output_tokens=10_000),
                    tool_calls=[ToolCall(name="Bash"), ToolCall(name="Bash")],
                ),
                UserMessage(prompt_text="unanswered"),
            ],
        )

    def test_ranked_and_limited(self, record):
        prompts = build_expensive_prompts([record], limit=1)

        assert len(prompts) == 1
        top = prompts[0]
        assert top.prompt == "pricey"
        assert top.cost == pytest.approx(0.75)
        assert top.date == "2026-01-02"
        assert top.turn_index == 1
        assert top.tools_used == ["Bash"]
        assert top.reasons == ["Long response (10.0K output tokens at $75/M)"]

    def test_filters(self, record):
        prompts = build_expensive_prompts([record])
        filtered = filter_expensive_prompts(prompts, Filters(to_date="2026-01-01"))
        assert [p.prompt for p in filtered] == ["cheap"]

    def test_explain_cost_defaults(self):
        assert explain_cost(TokenUsage(), SONNET, 0) == ["Standard token usage"]
        assert explain_cost(TokenUsage(), OPUS, 0) == ["Opus model with standard token usage"]
        assert explain_cost(TokenUsage(), SONNET, 20) == [
            "Late in conversation (turn 21); accumulated context increases cost"
        ]


class TestContributions:
    """Tests for code contribution totals."""

    def test_lines_files_and_commits(self, tmp_path):
        record = SessionRecord(
            session_id="s",
            messages=[
                tools("Write", file_path="/a.py", content="a\nb\nc"),
                tools("Edit", file_path="/a.py", old_string="x", new_string="y\nz"),
                tools("Edit", file_path="/b.py", old_string="x", new_string="y"),
            ],
        )
        git = MagicMock(returncode=0, stdout="feat\n\nCo-Authored-By: Claude <c@x>\x00fix\n\x00")

        with patch("burnrate.services.contributions.subprocess.run", return_value=git) as run:
            result = get_contributions([record], [str(tmp_path), "/does/not/exist"])

        assert result.total_lines_written == 3
        assert result.total_lines_edited == 3
        assert result.total_files_touched == 2
        assert result.co_authored_commits == 1
        assert result.top_files[0].file == "/a.py"
        assert run.call_count == 1

    def test_git_failure_counts_nothing(self, tmp_path):
        with patch(
            "burnrate.services.contributions.subprocess.run", side_effect=FileNotFoundError
        ):
            assert get_contributions([], [str(tmp_path)]).co_authored_commits == 0
