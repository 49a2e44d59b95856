"""Map external issues onto squad members."""

import logging
from collections.abc import Callable

from .models import Issue

logger = logging.getLogger(__name__)

SQUAD_LABEL_PREFIX = "squad:"

LABELS = "labels"
ASSIGNEES = "assignees"


def match_labels(issue: Issue, aliases: dict[str, str]) -> list[str]:
    """Members named by ``squad:<name>`` labels.

    The prefix comparison is case-sensitive: ``Squad:Alice`` is not a squad
    label. The remainder is lowercased to form the member key.
    """
    keys = []
    for label in issue.labels:
        if label.name.startswith(SQUAD_LABEL_PREFIX):
            key = label.name[len(SQUAD_LABEL_PREFIX):].strip().lower()
            if key:
                keys.append(key)
    return keys


def match_assignees(issue: Issue, aliases: dict[str, str]) -> list[str]:
    """Members whose registered tracker login equals the issue assignee."""
    if not issue.assignee:
        return []
    login = issue.assignee.lower()
    return [member.lower() for member, alias in aliases.items() if alias.lower() == login]


STRATEGIES: dict[str, Callable[[Issue, dict[str, str]], list[str]]] = {
    LABELS: match_labels,
    ASSIGNEES: match_assignees,
}


def default_strategies(aliases: dict[str, str] | None) -> list[str]:
    return [LABELS, ASSIGNEES] if aliases else [LABELS]


class IssueCorrelator:
    """Groups issues by member key (the lowercased member name).

    Usage:
        correlator = IssueCorrelator(["labels", "assignees"], {"Alice": "alice-gh"})
        by_member = correlator.correlate(issues)
    """

    def __init__(self, strategies: list[str] | None = None, aliases: dict[str, str] | None = None):
        self.aliases = dict(aliases or {})
        names = list(strategies) if strategies else default_strategies(self.aliases)
        unknown = [name for name in names if name not in STRATEGIES]
        if unknown:
            raise ValueError(f"Unknown matching strategy: {', '.join(unknown)}")
        self.strategies = names

    def correlate(self, issues: list[Issue]) -> dict[str, list[Issue]]:
        by_member: dict[str, list[Issue]] = {}
        seen: dict[str, set[int]] = {}

        for issue in issues:
            for name in self.strategies:
                for key in STRATEGIES[name](issue, self.aliases):
                    numbers = seen.setdefault(key, set())
                    if issue.number in numbers:
                        continue
                    numbers.add(issue.number)
                    by_member.setdefault(key, []).append(issue)

        logger.debug("Correlated %d issues to %d members", len(issues), len(by_member))
        return by_member

    def issues_for_member(self, issues: list[Issue], member_name: str) -> list[Issue]:
        return self.correlate(issues).get(member_name.lower(), [])
