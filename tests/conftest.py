"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path
import tempfile
import shutil


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_team_content():
    """Sample team.md roster."""
    return """# Team

**Owner:** Dana Scully (product)

## Members

| Name | Role | Charter | Status |
|------|------|---------|--------|
| Ripley | Coordinator | `.squad/agents/ripley/charter.md` | ✅ Active |
| Alice | Lead | `.squad/agents/alice/charter.md` | ✅ Active |
| Bob | Backend Dev | `.squad/agents/bob/charter.md` | 📋 Silent |
| Carol | Tester | `.squad/agents/carol/charter.md` | 🔨 Working |

## Issue Source

| Field | Value |
|-------|-------|
| **Repository** | github.com/acme/rocket |
| **Upstream** | — |
| **Matching** | labels, assignees |
| **Filters** | label:squad |

### Member Aliases

| Member | GitHub |
|--------|--------|
| Alice | alice-gh |
| Bob | @bobby |
"""


@pytest.fixture
def sample_log_content():
    """Sample orchestration log entry."""
    return """# Rocket launch prep

**Date:** 2026-02-14
**Participants:** Carol, Bob

## Summary
Prepared the launch checklist.

## Decisions
- Use staged rollout

## Outcomes
- Closed #12
- Working on #13

## Related Issues
- #12
- #13
"""


@pytest.fixture
def sample_decisions_content():
    """Sample decisions.md ledger."""
    return """# Decisions

## Decision: Use SQLite for local state

**Date:** 2026-01-10
**Author:** Alice

### Context
We need a small embedded store.

### 2026-02-14/15: Adopt staged rollout

**By:** Bob

Roll out to 10% first.

## Background

Not a decision.
"""


@pytest.fixture
def squad_root(temp_dir):
    """Builder for a project root with a squad folder.

    Usage:
        root = squad_root(team=..., active={"2026-02-14-x.md": "..."})
    """

    def build(
        team: str | None = None,
        active: dict[str, str] | None = None,
        narrative: dict[str, str] | None = None,
        decisions: str | None = None,
        decision_files: dict[str, str] | None = None,
        folder: str = ".squad",
        root: Path | None = None,
    ) -> Path:
        base = root or temp_dir
        squad_dir = base / folder
        squad_dir.mkdir(parents=True, exist_ok=True)
        if team is not None:
            (squad_dir / "team.md").write_text(team, encoding="utf-8")
        for dirname, files in (("orchestration-log", active), ("log", narrative), ("decisions", decision_files)):
            if files:
                for name, content in files.items():
                    path = squad_dir / dirname / name
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_text(content, encoding="utf-8")
        if decisions is not None:
            (squad_dir / "decisions.md").write_text(decisions, encoding="utf-8")
        return base

    return build


class FakeIssueSource:
    """Issue source double that records calls and can be told to fail."""

    def __init__(self, open_issues=None, closed_issues=None):
        self.open_issues = list(open_issues or [])
        self.open_by_repository: dict[str, list] = {}
        self.closed_issues = list(closed_issues or [])
        self.error: Exception | None = None
        self.open_calls = 0
        self.closed_calls = 0

    def fetch_open(self, config):
        self.open_calls += 1
        if self.error:
            raise self.error
        if config.effective_repository in self.open_by_repository:
            return list(self.open_by_repository[config.effective_repository])
        return list(self.open_issues)

    def fetch_closed(self, config, limit=50):
        self.closed_calls += 1
        if self.error:
            raise self.error
        return list(self.closed_issues)[:limit]


@pytest.fixture
def fake_issue_source():
    return FakeIssueSource()
