"""Code the assistant produced: lines written, files touched, commits."""

import logging
import re
import subprocess
from collections.abc import Iterable
from pathlib import Path

from burnrate.models.reports import Contributions, TopFile
from burnrate.models.session import SessionRecord
from burnrate.services.session_parser import extract_write_edit_calls

logger = logging.getLogger(__name__)

CO_AUTHOR_PATTERN = re.compile(r"co-authored-by:?.*claude", re.IGNORECASE)
GIT_TIMEOUT_SECONDS = 5


def _line_count(text: str) -> int:
    return len(text.split("\n"))


def _run_git(repo_path: str, args: list[str]) -> str | None:
    """Run a git command in ``repo_path``; None on any failure."""
    path = Path(repo_path)
    if not path.is_dir():
        return None

    try:
        result = subprocess.run(
            ["git", "-C", str(path), *args],
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
        if result.returncode != 0:
            return None
        return result.stdout
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as e:
        logger.debug(f"Git command failed in {repo_path}: {e}")
        return None


def count_co_authored_commits(repo_path: str) -> int:
    """Commits whose message credits Claude as a co-author."""
    output = _run_git(repo_path, ["log", "--all", "--format=%B%x00"])
    if not output:
        return 0
    return sum(1 for message in output.split("\x00") if CO_AUTHOR_PATTERN.search(message))


def get_contributions(records: Iterable[SessionRecord], project_paths: list[str]) -> Contributions:
    """Summarize file writes and edits across sessions.

    Args:
        records: Fully parsed sessions.
        project_paths: Working directories checked for co-authored commits.
    """
    written = 0
    edited = 0
    file_counts: dict[str, int] = {}

    for record in records:
        calls = extract_write_edit_calls(record)
        for w in calls.writes:
            if w.content:
                written += _line_count(w.content)
            if w.file_path:
                file_counts[w.file_path] = file_counts.get(w.file_path, 0) + 1
        for e in calls.edits:
            if e.new_string:
                new_lines = _line_count(e.new_string)
                old_lines = _line_count(e.old_string)
                edited += abs(new_lines - old_lines) + min(new_lines, old_lines)
            if e.file_path:
                file_counts[e.file_path] = file_counts.get(e.file_path, 0) + 1

    commits = sum(count_co_authored_commits(p) for p in project_paths if p)

    top_files = sorted(
        (TopFile(file=path, changes=n) for path, n in file_counts.items()),
        key=lambda f: f.changes,
        reverse=True,
    )
    return Contributions(
        total_lines_written=written,
        total_lines_edited=edited,
        total_files_touched=len(file_counts),
        co_authored_commits=commits,
        top_files=top_files,
    )
