"""Session log models.

A session log is one JSON object per line. Only ``user`` and ``assistant``
events carry data we aggregate; every other event type is classified as
``other`` and ignored.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import Field

from burnrate.models.base import CamelModel
from burnrate.models.usage import TokenUsage


class EventType(str, Enum):
    """Kind of a raw log event."""

    USER = "user"
    ASSISTANT = "assistant"
    OTHER = "other"

    @classmethod
    def of(cls, event: dict[str, Any]) -> "EventType":
        raw = event.get("type")
        if raw == cls.USER.value:
            return cls.USER
        if raw == cls.ASSISTANT.value:
            return cls.ASSISTANT
        return cls.OTHER


class ToolCall(CamelModel):
    """A tool invocation block from an assistant message."""

    name: str = ""
    input: dict[str, Any] = Field(default_factory=dict)


class AssistantMessage(CamelModel):
    """A model turn."""

    type: Literal["assistant"] = "assistant"
    model: str | None = None
    usage: TokenUsage | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    timestamp: str | None = None


class UserMessage(CamelModel):
    """A human turn with its prompt text stripped of tag markup."""

    type: Literal["user"] = "user"
    prompt_text: str = ""
    timestamp: str | None = None


SessionMessage = Annotated[AssistantMessage | UserMessage, Field(discriminator="type")]


class SessionRecord(CamelModel):
    """A session log parsed in full."""

    session_id: str
    project_path: str | None = None
    git_branch: str | None = None
    permission_mode: str | None = None
    first_timestamp: datetime | None = None
    last_timestamp: datetime | None = None
    duration: int = Field(default=0, description="Milliseconds between first and last event")
    messages: list[SessionMessage] = Field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def assistant_messages(self) -> list[AssistantMessage]:
        return [m for m in self.messages if isinstance(m, AssistantMessage)]

    @property
    def user_messages(self) -> list[UserMessage]:
        return [m for m in self.messages if isinstance(m, UserMessage)]

    @property
    def date(self) -> str | None:
        """ISO date of the first event, if any event carried a timestamp."""
        if self.first_timestamp is None:
            return None
        return self.first_timestamp.date().isoformat()


class SessionProbe(CamelModel):
    """Partial view of a session log produced by a bounded read.

    ``complete`` is True only when the probe reached end of file, so
    ``message_count`` is exact only in that case.
    """

    session_id: str
    full_path: str
    first_prompt: str = "No prompt"
    message_count: int = 0
    created: str | None = None
    modified: str | None = None
    git_branch: str | None = None
    project_path: str | None = None
    lines_read: int = 0
    complete: bool = False


class WriteCall(CamelModel):
    file_path: str | None = None
    content: str = ""
    timestamp: str | None = None


class EditCall(CamelModel):
    file_path: str | None = None
    old_string: str = ""
    new_string: str = ""
    timestamp: str | None = None


class WriteEditCalls(CamelModel):
    writes: list[WriteCall] = Field(default_factory=list)
    edits: list[EditCall] = Field(default_factory=list)


class Turn(CamelModel):
    """A user prompt with the assistant messages that answered it."""

    prompt: UserMessage
    responses: list[AssistantMessage]
    turn_index: int


class IndexEntry(CamelModel):
    """One session known to the indexer, from an index file or a probe."""

    session_id: str
    full_path: str | None = None
    first_prompt: str | None = None
    summary: str | None = None
    message_count: int = 0
    created: str | None = None
    modified: str | None = None
    git_branch: str | None = None
    project_path: str | None = None
    project_dir: str | None = None
    is_sidechain: bool = False


class SessionSummary(CamelModel):
    """Lightweight per-session view used by most aggregations."""

    session_id: str
    date: str | None = None
    project: str | None = None
    summary: str | None = None
    first_prompt: str | None = None
    messages: int = 0
    cost: float = 0.0
    duration: int = 0
    git_branch: str | None = None
    tokens_by_model: dict[str, TokenUsage] = Field(default_factory=dict)
    tool_calls: int = 0
    started_at: str | None = None
    permission_mode: str | None = None


class Filters(CamelModel):
    """Inclusive ISO-date bounds and an exact project match."""

    from_date: str | None = Field(default=None, alias="from")
    to_date: str | None = Field(default=None, alias="to")
    project: str | None = None

    @property
    def is_active(self) -> bool:
        return bool(self.from_date or self.to_date or self.project)

    def matches(self, date: str | None, project: str | None) -> bool:
        """Whether a session with this date and project passes the filters.

        Date bounds exclude undated sessions.
        """
        if self.from_date and (not date or date < self.from_date):
            return False
        if self.to_date and (not date or date > self.to_date):
            return False
        if self.project and project != self.project:
            return False
        return True
