"""Keyword search and filtering over decisions."""

from dataclasses import dataclass
from datetime import date, datetime

from ..utils.datetime_utils import to_date_key
from .models import DecisionEntry

TITLE_WEIGHT = 10
CONTENT_WEIGHT = 3
AUTHOR_WEIGHT = 5


@dataclass
class DecisionSearchCriteria:
    query: str | None = None
    start_date: str | None = None  # YYYY-MM-DD, inclusive
    end_date: str | None = None    # YYYY-MM-DD, inclusive
    author: str | None = None


@dataclass
class ScoredDecision:
    decision: DecisionEntry
    score: int


def _date_key(value: date | datetime | str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return to_date_key(value)
    return value.isoformat()


class DecisionSearch:
    """Scores decisions by term matches in title, content and author.

    Each whitespace-separated term adds its field weight once per field it
    appears in (case-insensitive substring match).
    """

    def score(self, decisions: list[DecisionEntry], query: str) -> list[ScoredDecision]:
        terms = [term for term in query.lower().split() if term]
        scored = []
        for decision in decisions:
            title = (decision.title or "").lower()
            content = (decision.content or "").lower()
            author = (decision.author or "").lower()
            total = 0
            for term in terms:
                if term in title:
                    total += TITLE_WEIGHT
                if term in content:
                    total += CONTENT_WEIGHT
                if term in author:
                    total += AUTHOR_WEIGHT
            scored.append(ScoredDecision(decision=decision, score=total))
        return scored

    def search(self, decisions: list[DecisionEntry], query: str) -> list[DecisionEntry]:
        """Matching decisions, best first; an empty query returns the input."""
        if not query or not query.strip():
            return decisions
        scored = [s for s in self.score(decisions, query.strip()) if s.score > 0]
        # Stable sort keeps the incoming (date) order among equal scores.
        scored.sort(key=lambda s: s.score, reverse=True)
        return [s.decision for s in scored]

    def filter_by_date(
        self,
        decisions: list[DecisionEntry],
        start: date | datetime | str | None = None,
        end: date | datetime | str | None = None,
    ) -> list[DecisionEntry]:
        """Inclusive date range; undated decisions never match."""
        start_key = _date_key(start) if start else "0000-00-00"
        end_key = _date_key(end) if end else "9999-99-99"
        return [d for d in decisions if d.date and start_key <= d.date <= end_key]

    def filter_by_author(self, decisions: list[DecisionEntry], author: str) -> list[DecisionEntry]:
        wanted = (author or "").strip().lower()
        if not wanted:
            return decisions
        return [d for d in decisions if d.author and wanted in d.author.lower()]

    def filter(self, decisions: list[DecisionEntry], criteria: DecisionSearchCriteria) -> list[DecisionEntry]:
        results = decisions
        if criteria.query and criteria.query.strip():
            results = self.search(results, criteria.query)
        if criteria.start_date or criteria.end_date:
            results = self.filter_by_date(results, criteria.start_date, criteria.end_date)
        if criteria.author and criteria.author.strip():
            results = self.filter_by_author(results, criteria.author)
        return results
