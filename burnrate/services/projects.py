"""Cost breakdowns by project and by git branch."""

from burnrate.models.reports import BranchCost, BranchCosts, ProjectCost
from burnrate.models.session import SessionSummary

UNKNOWN_PROJECT = "Unknown"
NO_BRANCH = "(no branch)"

BRANCH_HELP = (
    "Cost aggregated by git branch shows how much each feature or fix cost to develop. "
    "High-cost branches usually mean complex features, large codebases or long debugging "
    "sessions. Keep branches focused, use Sonnet for routine work and start fresh sessions "
    "instead of keeping long ones open."
)


def get_projects(sessions: list[SessionSummary]) -> list[ProjectCost]:
    """Sessions, messages and cost per project, most expensive first."""
    by_project: dict[str, ProjectCost] = {}
    for s in sessions:
        key = s.project or UNKNOWN_PROJECT
        row = by_project.setdefault(key, ProjectCost(project=key))
        row.sessions += 1
        row.messages += s.messages
        row.cost += s.cost
    return sorted(by_project.values(), key=lambda p: p.cost, reverse=True)


def get_branch_costs(sessions: list[SessionSummary]) -> BranchCosts:
    """Cost per (project, branch) pair with the average cost per session."""
    by_branch: dict[tuple[str, str], BranchCost] = {}
    for s in sessions:
        project = s.project or "(unknown)"
        branch = s.git_branch or NO_BRANCH
        row = by_branch.setdefault((project, branch), BranchCost(branch=branch, project=project))
        row.sessions += 1
        row.messages += s.messages
        row.cost += s.cost

    branches = sorted(by_branch.values(), key=lambda b: b.cost, reverse=True)
    for b in branches:
        b.avg_cost_per_session = b.cost / b.sessions if b.sessions else 0.0

    return BranchCosts(branches=branches, total_branches=len(branches), help_text=BRANCH_HELP)
