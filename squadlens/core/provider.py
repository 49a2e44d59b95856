"""Cached read access to a squad folder."""

import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path

from ..utils.squad_folder import TEAM_FILE, get_squad_folder_name, validate_folder_name
from .aggregator import SquadSnapshot, StateAggregator
from .cache import IssueCache
from .decision_search import DecisionSearch, DecisionSearchCriteria
from .decisions import DecisionParser
from .github_issues import GitHubIssueSource
from .issues import STRATEGIES, IssueCorrelator
from .models import DecisionEntry, Issue, IssueSourceConfig, LogEntry, Member, Task, WorkDetails
from .roster import RosterParser
from .session_log import SessionLogParser
from .settings import SquadSettings
from .standup import StandupPeriod, StandupReport, StandupReportBuilder

logger = logging.getLogger(__name__)


class SquadDataProvider:
    """Owns the current ``SquadSnapshot`` and the issue caches for one root.

    The snapshot is built lazily on first read and kept until ``refresh`` or
    ``set_root``. Builds that started before either call are thrown away and
    redone, so a reader never sees data from a previous root.

    Usage:
        provider = SquadDataProvider(Path("/project"))
        members = provider.list_members()
        provider.refresh()  # after files change
    """

    def __init__(
        self,
        root: Path,
        folder_name: str | None = None,
        issue_source=None,
        settings: SquadSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or SquadSettings()
        self._lock = threading.Lock()
        self._build_lock = threading.Lock()
        self._root = root
        self._folder_name = validate_folder_name(folder_name) if folder_name else get_squad_folder_name(root)
        self._snapshot: SquadSnapshot | None = None
        self._generation = 0

        self.issue_source = issue_source or GitHubIssueSource(
            token=self.settings.github_token,
            api_url=self.settings.github_api_url,
        )
        self.issue_cache = IssueCache(self.issue_source, ttl_seconds=self.settings.issue_ttl_seconds, clock=clock)

        self.roster_parser = RosterParser()
        self.log_parser = SessionLogParser()
        self.decision_parser = DecisionParser()
        self.aggregator = StateAggregator()
        self.search = DecisionSearch()

    @classmethod
    def from_settings(cls, settings: SquadSettings) -> "SquadDataProvider":
        root = settings.root or Path.cwd()
        return cls(root, folder_name=settings.squad_folder, settings=settings)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def folder_name(self) -> str:
        return self._folder_name

    @property
    def squad_dir(self) -> Path:
        with self._lock:
            return self._root / self._folder_name

    # Snapshot lifecycle

    def snapshot(self) -> SquadSnapshot:
        """Return the current snapshot, building it if needed."""
        with self._build_lock:
            while True:
                with self._lock:
                    if self._snapshot is not None:
                        return self._snapshot
                    generation = self._generation
                    squad_dir = self._root / self._folder_name

                snapshot = self._build(squad_dir)

                with self._lock:
                    if generation == self._generation:
                        self._snapshot = snapshot
                        return snapshot
                logger.debug("Discarding snapshot built for %s after invalidation", squad_dir)

    def _build(self, squad_dir: Path) -> SquadSnapshot:
        logger.debug("Building squad snapshot from %s", squad_dir)
        roster = self.roster_parser.parse_file(squad_dir / TEAM_FILE)
        agents = None if roster and roster.members else self.roster_parser.discover_agents(squad_dir)
        return self.aggregator.build(
            roster,
            self.log_parser.load_active(squad_dir),
            self.log_parser.load_narrative(squad_dir),
            self.decision_parser.load_decisions(squad_dir),
            agents=agents,
        )

    def refresh(self) -> None:
        """Drop all derived data; the next read re-parses everything."""
        with self._lock:
            self._snapshot = None
            self._generation += 1
            self.issue_cache.invalidate()

    def set_root(self, root: Path, folder_name: str | None = None) -> None:
        """Point at another project. Nothing from the old root survives."""
        folder = validate_folder_name(folder_name) if folder_name else get_squad_folder_name(root)
        with self._lock:
            self._root = root
            self._folder_name = folder
            self._snapshot = None
            self._generation += 1
            self.issue_cache.invalidate()
        logger.info("Squad root set to %s (%s)", root, folder)

    # Squad reads

    def list_members(self) -> list[Member]:
        return list(self.snapshot().members)

    def list_tasks(self) -> list[Task]:
        return list(self.snapshot().tasks)

    def list_tasks_for_member(self, name: str) -> list[Task]:
        return self.snapshot().tasks_for_member(name)

    def get_work_details(self, task_id: str) -> WorkDetails | None:
        return self.snapshot().work_details(task_id)

    def list_decisions(self, criteria: DecisionSearchCriteria | None = None) -> list[DecisionEntry]:
        decisions = list(self.snapshot().decisions)
        if criteria is None:
            return decisions
        return self.search.filter(decisions, criteria)

    def list_log_entries(self) -> list[LogEntry]:
        return list(self.snapshot().log_entries)

    # Issue reads

    def issue_source_config(self) -> IssueSourceConfig | None:
        roster = self.snapshot().roster
        return roster.issue_source if roster else None

    def get_issues(self, force: bool = False) -> list[Issue]:
        return self.issue_cache.get_open(self.issue_source_config(), force=force)

    def get_closed_issues(self, force: bool = False) -> list[Issue]:
        return self.issue_cache.get_closed(self.issue_source_config(), force=force)

    def get_issues_by_member(self) -> dict[str, list[Issue]]:
        return self._correlator().correlate(self.get_issues())

    def get_closed_issues_by_member(self) -> dict[str, list[Issue]]:
        return self._correlator().correlate(self.get_closed_issues())

    def _correlator(self) -> IssueCorrelator:
        config = self.issue_source_config()
        if config is None:
            return IssueCorrelator()
        strategies = None
        if config.matching:
            strategies = [name for name in config.matching if name in STRATEGIES]
            ignored = [name for name in config.matching if name not in STRATEGIES]
            if ignored:
                logger.warning("Ignoring unknown issue matching strategies: %s", ", ".join(ignored))
        return IssueCorrelator(strategies or None, config.member_aliases)

    def standup_report(self, period: StandupPeriod | str = StandupPeriod.DAY) -> StandupReport:
        return StandupReportBuilder().build(
            self.get_issues(),
            self.get_closed_issues(),
            self.list_decisions(),
            self.list_log_entries(),
            period,
        )
