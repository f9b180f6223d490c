"""Discovery and indexing of session logs under the assistant's data dir.

Layout read here::

    <claude_dir>/stats-cache.json
    <claude_dir>/projects/<encoded-project-path>/sessions-index.json
    <claude_dir>/projects/<encoded-project-path>/<session-id>.jsonl

Every log file is represented exactly once by get_all_session_indexes():
index entries are trusted as-is, and files the index does not cover are
probed with a bounded read.
"""

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from burnrate.models.config import IndexerConfig
from burnrate.models.session import EventType, IndexEntry, SessionProbe, SessionRecord
from burnrate.services.session_parser import (
    extract_prompt_text,
    iter_jsonl_lines,
    parse_session_file,
    str_field,
)

logger = logging.getLogger(__name__)

STATS_CACHE_FILE = "stats-cache.json"
SESSIONS_INDEX_FILE = "sessions-index.json"
SESSION_SUFFIX = ".jsonl"


class DataSourceError(Exception):
    """A required input file exists but cannot be decoded."""


@dataclass
class ProjectDir:
    """A per-project directory of session logs."""

    name: str
    path: Path
    project_path: str


def decode_project_dir_name(name: str) -> str:
    """Best-effort decode of an encoded project directory name.

    The encoding replaces every path separator with "-", so hyphens that were
    part of the original path cannot be recovered.
    """
    if name.startswith("-"):
        name = "/" + name[1:]
    return name.replace("-", "/")


def _read_json_file(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class ClaudeDataReader:
    """Read-only access to the assistant's local data directory."""

    def __init__(self, claude_dir: str | Path, indexer: IndexerConfig | None = None):
        """Initialize the reader.

        Args:
            claude_dir: Root of the assistant's data directory.
            indexer: Probe bounds. Uses defaults if not provided.
        """
        self.claude_dir = Path(claude_dir).expanduser()
        self.indexer = indexer or IndexerConfig()

    @property
    def projects_dir(self) -> Path:
        return self.claude_dir / "projects"

    @property
    def stats_cache_path(self) -> Path:
        return self.claude_dir / STATS_CACHE_FILE

    def read_stats_cache(self) -> dict[str, Any] | None:
        """Read the raw stats cache.

        Returns:
            The decoded cache, or None if the file does not exist.

        Raises:
            DataSourceError: If the file exists but is not a JSON object.
        """
        path = self.stats_cache_path
        if not path.exists():
            return None
        try:
            data = _read_json_file(path)
        except json.JSONDecodeError as e:
            raise DataSourceError(f"Could not decode {path}: {e}") from e
        if not isinstance(data, dict):
            raise DataSourceError(f"Unexpected content in {path}")
        return data

    def list_project_dirs(self) -> list[ProjectDir]:
        if not self.projects_dir.is_dir():
            return []
        return [
            ProjectDir(
                name=entry.name,
                path=entry,
                project_path=decode_project_dir_name(entry.name),
            )
            for entry in sorted(self.projects_dir.iterdir())
            if entry.is_dir()
        ]

    def read_sessions_index(self, project_dir: str | Path) -> dict[str, Any] | None:
        """Read a project's precomputed session index.

        An unreadable index is logged and treated as absent so its sessions
        are still picked up by probing.
        """
        path = Path(project_dir) / SESSIONS_INDEX_FILE
        if not path.exists():
            return None
        try:
            data = _read_json_file(path)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session index {path}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def list_session_files(self, project_dir: str | Path) -> list[Path]:
        project_dir = Path(project_dir)
        if not project_dir.is_dir():
            return []
        return sorted(
            p for p in project_dir.iterdir() if p.is_file() and p.name.endswith(SESSION_SUFFIX)
        )

    def probe_session_file(self, path: str | Path) -> SessionProbe | None:
        """Read just enough of a session log to summarize it.

        Stops once more than ``probe_line_limit`` non-blank lines have been
        read, corrupt ones included, and the session id, working directory
        and first prompt are all known, or at end of file.

        Returns:
            A partial SessionProbe, or None if the file cannot be read.
        """
        path = Path(path)
        limit = self.indexer.probe_line_limit
        max_chars = self.indexer.first_prompt_max_chars

        session_id = None
        cwd = None
        git_branch = None
        first_prompt = None
        created = None
        modified = None
        message_count = 0
        lines_read = 0
        complete = True

        try:
            for event in iter_jsonl_lines(path):
                # Corrupt lines count toward the limit too.
                lines_read += 1
                if event is not None:
                    session_id = session_id or str_field(event, "sessionId")
                    cwd = cwd or str_field(event, "cwd")
                    git_branch = git_branch or str_field(event, "gitBranch")

                    timestamp = str_field(event, "timestamp")
                    if timestamp:
                        created = created or timestamp
                        modified = timestamp

                    event_type = EventType.of(event)
                    if event_type is not EventType.OTHER:
                        message_count += 1

                    message = event.get("message")
                    if (
                        first_prompt is None
                        and event_type is EventType.USER
                        and not event.get("isMeta")
                        and isinstance(message, dict)
                    ):
                        text = extract_prompt_text(message.get("content"))
                        if text:
                            first_prompt = text[:max_chars]

                if lines_read > limit and session_id and cwd and first_prompt:
                    complete = False
                    break
        except OSError as e:
            logger.debug(f"Could not probe {path}: {e}")
            return None

        return SessionProbe(
            session_id=session_id or path.stem,
            full_path=str(path),
            first_prompt=first_prompt or "No prompt",
            message_count=message_count,
            created=created,
            modified=modified,
            git_branch=git_branch,
            project_path=cwd,
            lines_read=lines_read,
            complete=complete,
        )

    def get_all_session_indexes(self) -> list[IndexEntry]:
        """List every session once across all project directories.

        Index entries come first and are trusted verbatim; log files whose
        base name is not already known are probed.
        """
        entries: list[IndexEntry] = []
        seen: set[str] = set()

        for project in self.list_project_dirs():
            index = self.read_sessions_index(project.path)
            if index and isinstance(index.get("entries"), list):
                owner_path = str_field(index, "originalPath") or project.project_path
                for raw in index["entries"]:
                    if not isinstance(raw, dict) or not raw.get("sessionId"):
                        continue
                    try:
                        entry = IndexEntry.model_validate(raw)
                    except ValidationError as e:
                        logger.warning(
                            f"Skipping malformed index entry {raw.get('sessionId')} "
                            f"in {project.name}: {e}"
                        )
                        continue
                    if entry.session_id in seen:
                        continue
                    seen.add(entry.session_id)
                    entry.project_dir = project.name
                    entry.project_path = owner_path
                    entries.append(entry)

            for file in self.list_session_files(project.path):
                if file.stem in seen:
                    continue
                seen.add(file.stem)

                probe = self.probe_session_file(file)
                if probe is None:
                    continue
                entries.append(
                    IndexEntry(
                        session_id=probe.session_id,
                        full_path=probe.full_path,
                        first_prompt=probe.first_prompt,
                        message_count=probe.message_count,
                        created=probe.created,
                        modified=probe.modified,
                        git_branch=probe.git_branch,
                        project_path=probe.project_path or project.project_path,
                        project_dir=project.name,
                    )
                )

        return entries

    def iter_session_records(self) -> Iterator[SessionRecord]:
        """Parse every session log in full, one at a time.

        Files that cannot be read are logged and skipped.
        """
        for project in self.list_project_dirs():
            for file in self.list_session_files(project.path):
                try:
                    yield parse_session_file(file)
                except OSError as e:
                    logger.warning(f"Skipping unreadable session {file}: {e}")

    def project_work_dirs(self) -> list[str]:
        return [p.project_path for p in self.list_project_dirs()]
