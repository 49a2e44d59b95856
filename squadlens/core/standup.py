"""Daily and weekly standup reports."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from ..utils.datetime_utils import first_date, parse_iso, to_date_key
from .models import DecisionEntry, Issue, LogEntry

BLOCKING_LABELS = {"blocked", "blocker", "blocking", "impediment"}

PRIORITY_ORDER = {
    "p0": 0,
    "priority:critical": 0,
    "urgent": 0,
    "p1": 1,
    "priority:high": 1,
    "high": 1,
    "p2": 2,
    "priority:medium": 2,
    "medium": 2,
    "p3": 3,
    "priority:low": 3,
    "low": 3,
}
DEFAULT_PRIORITY = 99
NEXT_STEPS_LIMIT = 5


class StandupPeriod(Enum):
    DAY = "day"
    WEEK = "week"

    @property
    def span(self) -> timedelta:
        return timedelta(days=1) if self is StandupPeriod.DAY else timedelta(days=7)


def is_blocking(issue: Issue) -> bool:
    return any(label.name.lower() in BLOCKING_LABELS for label in issue.labels)


def priority_of(issue: Issue) -> int:
    """Rank from the first priority label; unlabelled issues sort last."""
    for label in issue.labels:
        rank = PRIORITY_ORDER.get(label.name.lower())
        if rank is not None:
            return rank
    return DEFAULT_PRIORITY


@dataclass
class StandupReport:
    """What changed in the period and what to pick up next."""

    period: StandupPeriod
    period_start: datetime
    period_end: datetime
    closed_issues: list[Issue] = field(default_factory=list)
    new_issues: list[Issue] = field(default_factory=list)
    blocking_issues: list[Issue] = field(default_factory=list)
    next_steps: list[Issue] = field(default_factory=list)
    recent_decisions: list[DecisionEntry] = field(default_factory=list)
    recent_logs: list[LogEntry] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        return {
            "closed": len(self.closed_issues),
            "new": len(self.new_issues),
            "blocking": len(self.blocking_issues),
        }

    def to_markdown(self) -> str:
        label = "Daily" if self.period is StandupPeriod.DAY else "Weekly"
        lines = [
            f"# {label} Standup Report",
            "",
            f"**Period:** {to_date_key(self.period_start)} to {to_date_key(self.period_end)}",
            "",
            "## Summary",
            "",
            "| Metric | Count |",
            "|--------|-------|",
            f"| ✅ Issues Closed | {len(self.closed_issues)} |",
            f"| 📋 New Issues | {len(self.new_issues)} |",
            f"| 🚫 Blockers | {len(self.blocking_issues)} |",
            "",
        ]

        def issue_section(title: str, issues: list[Issue], suffix) -> None:
            if not issues:
                return
            lines.extend([f"## {title}", ""])
            for issue in issues:
                lines.append(f"- **#{issue.number}**: {issue.title}{suffix(issue)}")
            lines.append("")

        issue_section("✅ Closed Issues", self.closed_issues, lambda i: "")
        issue_section("📋 New Issues", self.new_issues, lambda i: "")
        issue_section(
            "🚫 Blockers",
            self.blocking_issues,
            lambda i: f" ({', '.join(i.label_names)})" if i.labels else "",
        )
        issue_section(
            "🎯 Suggested Next Steps",
            self.next_steps,
            lambda i: f" @{i.assignee}" if i.assignee else "",
        )

        if self.recent_decisions:
            lines.extend(["## 📌 Recent Decisions", ""])
            for decision in self.recent_decisions:
                author = f" ({decision.author})" if decision.author else ""
                lines.append(f"- **{decision.title}**{author}")
            lines.append("")

        return "\n".join(lines)


class StandupReportBuilder:
    """Build standup reports from issues, decisions and log entries."""

    def __init__(self, now: datetime | None = None):
        self._now = now

    def _current_time(self) -> datetime:
        if self._now is not None:
            return self._now
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def build(
        self,
        open_issues: list[Issue],
        closed_issues: list[Issue],
        decisions: list[DecisionEntry],
        log_entries: list[LogEntry],
        period: StandupPeriod | str = StandupPeriod.DAY,
    ) -> StandupReport:
        period = StandupPeriod(period) if isinstance(period, str) else period
        end = self._current_time()
        start = end - period.span
        start_key = to_date_key(start)

        def in_period(value: str | None) -> bool:
            moment = parse_iso(value)
            return moment is not None and start <= moment <= end

        def dated_since(value: str | None) -> bool:
            key = first_date(value)
            return key is not None and key >= start_key

        blocking = [issue for issue in open_issues if is_blocking(issue)]
        next_steps = sorted(
            (issue for issue in open_issues if not is_blocking(issue)),
            key=priority_of,
        )[:NEXT_STEPS_LIMIT]

        return StandupReport(
            period=period,
            period_start=start,
            period_end=end,
            closed_issues=[i for i in closed_issues if in_period(i.closed_at)],
            new_issues=[i for i in open_issues if in_period(i.created_at)],
            blocking_issues=blocking,
            next_steps=next_steps,
            recent_decisions=[d for d in decisions if dated_since(d.date)],
            recent_logs=[e for e in log_entries if dated_since(e.date)],
        )
