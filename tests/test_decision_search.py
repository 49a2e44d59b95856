"""Tests for decision search and filtering."""

from pathlib import Path

from squadlens.core.decision_search import DecisionSearch, DecisionSearchCriteria
from squadlens.core.models import DecisionEntry


def decision(title, date=None, author=None, content=None):
    return DecisionEntry(title=title, file_path=Path("decisions.md"), date=date, author=author, content=content)


DECISIONS = [
    decision("Use SQLite", "2026-01-10", "Alice", "Small embedded store."),
    decision("Adopt staged rollout", "2026-02-14", "Bob", "Roll out via sqlite flags."),
    decision("Undated note", None, "Carol"),
]


class TestSearch:
    """Tests for DecisionSearch.search."""

    def test_title_outranks_content(self):
        results = DecisionSearch().search(DECISIONS, "sqlite")
        assert [d.title for d in results] == ["Use SQLite", "Adopt staged rollout"]

    def test_scores(self):
        scored = DecisionSearch().score(DECISIONS, "alice sqlite")
        assert [s.score for s in scored] == [15, 3, 0]

    def test_empty_query_returns_input(self):
        assert DecisionSearch().search(DECISIONS, "  ") == DECISIONS

    def test_no_match(self):
        assert DecisionSearch().search(DECISIONS, "kubernetes") == []


class TestFilters:
    def test_date_range_inclusive_and_undated_excluded(self):
        results = DecisionSearch().filter_by_date(DECISIONS, "2026-01-10", "2026-02-01")
        assert [d.title for d in results] == ["Use SQLite"]

    def test_author_substring(self):
        assert [d.title for d in DecisionSearch().filter_by_author(DECISIONS, "bo")] == ["Adopt staged rollout"]

    def test_combined_criteria(self):
        criteria = DecisionSearchCriteria(query="sqlite", start_date="2026-02-01")
        assert [d.title for d in DecisionSearch().filter(DECISIONS, criteria)] == ["Adopt staged rollout"]
