"""Derive member status and tasks from parsed squad documents."""

import logging
from dataclasses import dataclass, field

from ..utils.markdown_parser import strip_inline_markup, strip_markdown_links
from .models import (
    DecisionEntry,
    LogEntry,
    Member,
    MemberStatus,
    Task,
    TaskStatus,
    TeamRoster,
    WorkDetails,
)
from .roster import DERIVED_ROLE
from .session_log import entry_moment, is_completion_signal, issue_refs, sort_newest_first

logger = logging.getLogger(__name__)


def _bare_name(name: str) -> str:
    return strip_inline_markup(strip_markdown_links(name)).strip()


def resolve_member(name: str | None, members: list[Member]) -> Member | None:
    """Find a member by exact name, then without link markup, then ignoring case."""
    if not name:
        return None
    for member in members:
        if member.name == name:
            return member
    bare = _bare_name(name)
    for member in members:
        if _bare_name(member.name) == bare:
            return member
    lowered = bare.lower()
    for member in members:
        if _bare_name(member.name).lower() == lowered:
            return member
    return None


def _task_id(task_id: str) -> str:
    return task_id.strip().lstrip("#").strip()


def _entry_issue_ids(entry: LogEntry) -> list[str]:
    refs = list(entry.related_issues or [])
    for outcome in entry.outcomes or []:
        for ref in issue_refs(outcome):
            if ref not in refs:
                refs.append(ref)
    return [_task_id(ref) for ref in refs if _task_id(ref)]


@dataclass
class SquadSnapshot:
    """One consistent view of the squad, rebuilt wholesale on refresh."""

    members: list[Member] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    log_entries: list[LogEntry] = field(default_factory=list)
    active_entries: list[LogEntry] = field(default_factory=list)
    decisions: list[DecisionEntry] = field(default_factory=list)
    roster: TeamRoster | None = None

    def find_member(self, name: str) -> Member | None:
        return resolve_member(name, self.members)

    def tasks_for_member(self, name: str) -> list[Task]:
        member = self.find_member(name)
        if member is None:
            return []
        return [task for task in self.tasks if task.assignee == member.name]

    def find_task(self, task_id: str) -> Task | None:
        wanted = _task_id(task_id)
        return next((task for task in self.tasks if task.id == wanted), None)

    def work_details(self, task_id: str) -> WorkDetails | None:
        task = self.find_task(task_id)
        if task is None:
            return None
        member = self.find_member(task.assignee)
        if member is None:
            return None
        entries = [e for e in self.active_entries if task.id in _entry_issue_ids(e)]
        return WorkDetails(task=task, member=member, log_entries=entries or None)


class StateAggregator:
    """Combines roster, logs and decisions into a ``SquadSnapshot``.

    A roster with members is authoritative for names and roles. Without one
    the agent folders supply members, and failing those the active-log
    participants do. Status and tasks come from active-work entries only; narrative entries are carried
    for display.
    """

    def build(
        self,
        roster: TeamRoster | None,
        active: list[LogEntry],
        narrative: list[LogEntry] | None = None,
        decisions: list[DecisionEntry] | None = None,
        agents: list[Member] | None = None,
    ) -> SquadSnapshot:
        active_sorted = sort_newest_first(active)
        members = self._members(roster, agents, active_sorted)
        tasks = self._tasks(active_sorted, members)
        self._apply_status(members, tasks, active_sorted)

        return SquadSnapshot(
            members=members,
            tasks=tasks,
            log_entries=sort_newest_first(list(active) + list(narrative or [])),
            active_entries=active_sorted,
            decisions=list(decisions or []),
            roster=roster,
        )

    @staticmethod
    def _members(
        roster: TeamRoster | None,
        agents: list[Member] | None,
        active_sorted: list[LogEntry],
    ) -> list[Member]:
        if roster and roster.members:
            return [Member(name=m.name, role=m.role) for m in roster.members]
        if agents:
            return [Member(name=m.name, role=m.role) for m in agents]

        names: list[str] = []
        for entry in active_sorted:
            for participant in entry.participants:
                if participant and participant not in names:
                    names.append(participant)
        return [Member(name=name, role=DERIVED_ROLE) for name in names]

    @staticmethod
    def _tasks(active_sorted: list[LogEntry], members: list[Member]) -> list[Task]:
        tasks: dict[str, Task] = {}
        unassigned: dict[str, Task] = {}

        # Oldest first so the earliest mention defines the task.
        for entry in reversed(active_sorted):
            started_at = entry_moment(entry)
            first_participant = entry.participants[0] if entry.participants else None

            for task_id in _entry_issue_ids(entry):
                task = tasks.get(task_id)
                if task is None:
                    task = Task(
                        id=task_id,
                        title=f"Issue #{task_id}",
                        status=TaskStatus.IN_PROGRESS,
                        assignee=first_participant or "",
                        started_at=started_at,
                        description=entry.summary,
                    )
                    tasks[task_id] = task
                elif not task.assignee and first_participant:
                    task.assignee = first_participant

            for outcome in entry.outcomes or []:
                if not is_completion_signal(outcome):
                    continue
                for ref in issue_refs(outcome):
                    task = tasks.get(_task_id(ref))
                    if task is not None and task.status != TaskStatus.COMPLETED:
                        task.status = TaskStatus.COMPLETED
                        task.completed_at = started_at

        result = []
        for task in tasks.values():
            member = resolve_member(task.assignee, members)
            if member is None:
                unassigned[task.id] = task
                continue
            task.assignee = member.name
            result.append(task)
        if unassigned:
            logger.debug("Dropped %d tasks without a known assignee: %s", len(unassigned), sorted(unassigned))
        return sorted(result, key=lambda t: t.started_at, reverse=True)

    @staticmethod
    def _apply_status(members: list[Member], tasks: list[Task], active_sorted: list[LogEntry]) -> None:
        if not active_sorted:
            return
        latest = active_sorted[0]
        current = set()
        for participant in latest.participants:
            member = resolve_member(participant, members)
            if member is not None:
                current.add(member.name)

        for member in members:
            if member.name not in current:
                continue
            in_progress = [t for t in tasks if t.assignee == member.name and t.status == TaskStatus.IN_PROGRESS]
            if in_progress:
                member.status = MemberStatus.WORKING
                member.current_task = in_progress[0]
