"""Tests for issue-to-member correlation."""

import pytest

from squadlens.core.issues import IssueCorrelator
from squadlens.core.models import Issue, IssueLabel


def make_issue(number, labels=(), assignee=None):
    return Issue(
        number=number,
        title=f"Issue {number}",
        labels=[IssueLabel(name=name) for name in labels],
        assignee=assignee,
    )


class TestLabelStrategy:
    """Tests for the squad:<name> label strategy."""

    def test_lowercase_prefix_matches(self):
        issue = make_issue(1, ["squad:Alice"])
        assert IssueCorrelator(["labels"]).correlate([issue]) == {"alice": [issue]}

    def test_prefix_is_case_sensitive(self):
        matched = make_issue(1, ["squad:alice"])
        unmatched = make_issue(2, ["Squad:Alice"])
        result = IssueCorrelator(["labels"]).correlate([matched, unmatched])
        assert result == {"alice": [matched]}

    def test_multiple_members_and_dedup(self):
        issue = make_issue(3, ["squad:alice", "squad:bob", "squad:ALICE"])
        result = IssueCorrelator(["labels"]).correlate([issue, issue])
        assert result == {"alice": [issue], "bob": [issue]}

    def test_members_without_matches_absent(self):
        assert IssueCorrelator().correlate([make_issue(4, ["bug"])]) == {}


class TestAssigneeStrategy:
    """Tests for the alias-based assignee strategy."""

    def test_alias_match(self):
        issue = make_issue(5, assignee="alice-gh")
        correlator = IssueCorrelator(["assignees"], {"Alice": "alice-gh"})
        assert correlator.correlate([issue]) == {"alice": [issue]}

    def test_label_and_assignee_dedup(self):
        issue = make_issue(6, ["squad:alice"], assignee="alice-gh")
        correlator = IssueCorrelator(aliases={"Alice": "alice-gh"})
        assert correlator.strategies == ["labels", "assignees"]
        assert correlator.correlate([issue]) == {"alice": [issue]}

    def test_default_without_aliases_is_labels_only(self):
        assert IssueCorrelator().strategies == ["labels"]


class TestStrategyValidation:
    def test_unknown_strategy_raises(self):
        with pytest.raises(ValueError):
            IssueCorrelator(["labels", "telepathy"])

    def test_issues_for_member(self):
        issue = make_issue(7, ["squad:bob"])
        assert IssueCorrelator().issues_for_member([issue], "Bob") == [issue]
