"""Core parsing and aggregation logic for squadlens."""

from .aggregator import SquadSnapshot, StateAggregator
from .cache import CacheEntry, IssueCache
from .decision_search import DecisionSearch, DecisionSearchCriteria
from .decisions import DecisionParser, sort_decisions
from .errors import IssueSourceError, SquadLensError
from .github_issues import GitHubIssueSource
from .issues import IssueCorrelator
from .models import (
    CopilotCapabilities,
    DecisionEntry,
    Issue,
    IssueLabel,
    IssueSourceConfig,
    LogEntry,
    LogSource,
    Member,
    MemberStatus,
    Task,
    TaskStatus,
    TeamRoster,
    WorkDetails,
    WorkItem,
)
from .provider import SquadDataProvider
from .roster import RosterParser
from .session_log import SessionLogParser, is_completion_signal
from .settings import SquadSettings
from .standup import StandupPeriod, StandupReport, StandupReportBuilder

__all__ = [
    "CacheEntry",
    "CopilotCapabilities",
    "DecisionEntry",
    "DecisionParser",
    "DecisionSearch",
    "DecisionSearchCriteria",
    "GitHubIssueSource",
    "Issue",
    "IssueCache",
    "IssueCorrelator",
    "IssueLabel",
    "IssueSourceConfig",
    "IssueSourceError",
    "LogEntry",
    "LogSource",
    "Member",
    "MemberStatus",
    "RosterParser",
    "SessionLogParser",
    "SquadDataProvider",
    "SquadLensError",
    "SquadSettings",
    "SquadSnapshot",
    "StandupPeriod",
    "StandupReport",
    "StandupReportBuilder",
    "StateAggregator",
    "Task",
    "TaskStatus",
    "TeamRoster",
    "WorkDetails",
    "WorkItem",
    "is_completion_signal",
    "sort_decisions",
]
