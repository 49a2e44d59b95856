"""Typed records derived from squad Markdown documents and issue trackers."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path


class MemberStatus(Enum):
    """Whether a member is currently busy."""

    WORKING = "working"
    IDLE = "idle"


class TaskStatus(Enum):
    """Lifecycle of a task synthesized from log entries."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class LogSource(Enum):
    """Which log stream an entry was read from."""

    ACTIVE = "active"        # orchestration-log/: drives status and tasks
    NARRATIVE = "narrative"  # log/: history only


@dataclass
class Task:
    """A unit of work keyed by issue number."""

    id: str
    title: str
    status: TaskStatus
    assignee: str
    started_at: datetime
    completed_at: datetime | None = None
    description: str | None = None


@dataclass
class Member:
    """A squad member and their derived status."""

    name: str
    role: str
    status: MemberStatus = MemberStatus.IDLE
    current_task: Task | None = None


@dataclass
class WorkItem:
    """An agent-attributed line from a "What Was Done" section."""

    agent: str
    description: str


@dataclass
class LogEntry:
    """One parsed session log."""

    timestamp: str
    date: str
    topic: str
    participants: list[str]
    summary: str
    related_issues: list[str] | None = None
    decisions: list[str] | None = None
    outcomes: list[str] | None = None
    title: str | None = None
    work_items: list[WorkItem] | None = None
    source: LogSource = LogSource.ACTIVE
    file_path: Path | None = None


@dataclass
class DecisionEntry:
    """A recorded decision from the ledger or a standalone file."""

    title: str
    file_path: Path
    line_number: int = 0  # 0-based heading line
    date: str | None = None
    author: str | None = None
    content: str | None = None


@dataclass
class WorkDetails:
    """A task together with its assignee and the log entries that mention it."""

    task: Task
    member: Member
    log_entries: list[LogEntry] | None = None


@dataclass
class CopilotCapabilities:
    """What the coding agent is allowed to pick up on its own."""

    auto_assign: bool = False
    good_fit: list[str] = field(default_factory=list)
    needs_review: list[str] = field(default_factory=list)
    not_suitable: list[str] = field(default_factory=list)


@dataclass
class IssueSourceConfig:
    """Where issues for this squad live and how they map to members."""

    repository: str
    owner: str
    repo: str
    filters: str | None = None
    matching: list[str] | None = None
    member_aliases: dict[str, str] | None = None
    upstream: str | None = None

    @property
    def effective_repository(self) -> str:
        """Upstream wins over the fork when configured."""
        return self.upstream or self.repository


@dataclass
class TeamRoster:
    """Result of parsing the roster document."""

    members: list[Member] = field(default_factory=list)
    owner: str | None = None
    repository: str | None = None
    copilot_capabilities: CopilotCapabilities | None = None
    issue_source: IssueSourceConfig | None = None


@dataclass
class IssueLabel:
    name: str
    color: str | None = None


@dataclass
class Issue:
    """An issue from the external tracker."""

    number: int
    title: str
    state: str = "open"
    labels: list[IssueLabel] = field(default_factory=list)
    assignee: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    closed_at: str | None = None
    body: str | None = None
    html_url: str | None = None

    @property
    def label_names(self) -> list[str]:
        return [label.name for label in self.labels]
