"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from squadlens.api.server import app
from squadlens.api.state import set_provider
from squadlens.core.models import Issue, IssueLabel
from squadlens.core.provider import SquadDataProvider


@pytest.fixture
def client(squad_root, sample_team_content, sample_log_content, sample_decisions_content, fake_issue_source):
    root = squad_root(
        team=sample_team_content,
        active={"2026-02-14-launch-prep.md": sample_log_content},
        decisions=sample_decisions_content,
    )
    fake_issue_source.open_issues = [
        Issue(number=12, title="Checklist", labels=[IssueLabel(name="squad:carol", color="00ff00")]),
    ]
    set_provider(SquadDataProvider(root, issue_source=fake_issue_source))
    yield TestClient(app)
    set_provider(None)


class TestSquadRoutes:
    """Tests for /api/squad."""

    def test_members(self, client):
        response = client.get("/api/squad/members")
        assert response.status_code == 200
        members = {m["name"]: m for m in response.json()}
        assert members["Carol"]["status"] == "working"
        assert members["Carol"]["currentTask"]["id"] == "13"
        assert members["Alice"]["currentTask"] is None

    def test_member_tasks(self, client):
        tasks = client.get("/api/squad/members/Carol/tasks").json()
        assert {t["id"]: t["status"] for t in tasks} == {"12": "completed", "13": "in_progress"}
        assert client.get("/api/squad/members/Nobody/tasks").json() == []

    def test_work_details(self, client):
        data = client.get("/api/squad/tasks/12").json()
        assert data["member"]["name"] == "Carol"
        assert data["logEntries"][0]["relatedIssues"] == ["#12", "#13"]
        assert client.get("/api/squad/tasks/999").status_code == 404

    def test_decisions(self, client):
        titles = [d["title"] for d in client.get("/api/squad/decisions").json()]
        assert titles == ["Adopt staged rollout", "Use SQLite for local state"]
        filtered = client.get("/api/squad/decisions", params={"author": "alice"}).json()
        assert [d["title"] for d in filtered] == ["Use SQLite for local state"]

    def test_logs(self, client):
        logs = client.get("/api/squad/logs").json()
        assert [l["topic"] for l in logs] == ["launch-prep"]
        assert logs[0]["source"] == "active"

    def test_refresh(self, client):
        assert client.post("/api/squad/refresh").json()["success"] is True

    def test_set_root(self, client, temp_dir):
        other = temp_dir / "other"
        (other / ".squad").mkdir(parents=True)
        (other / ".squad" / "team.md").write_text("## Members\n\n| Name | Role |\n|---|---|\n| Zoe | Ops |\n")

        assert client.post("/api/squad/root", json={"root": str(other)}).status_code == 200
        assert [m["name"] for m in client.get("/api/squad/members").json()] == ["Zoe"]

    def test_set_root_errors(self, client, temp_dir, caplog):
        assert client.post("/api/squad/root", json={"root": str(temp_dir / "missing")}).status_code == 404
        response = client.post("/api/squad/root", json={"root": str(temp_dir), "folderName": "../x"})
        assert response.status_code == 400
        assert "missing directory" in caplog.text
        assert "Rejected root switch to %s" % temp_dir in caplog.text


class TestIssueRoutes:
    """Tests for /api/issues and /api/standup."""

    def test_by_member(self, client):
        data = client.get("/api/issues/by-member").json()
        assert list(data) == ["carol"]
        assert data["carol"][0]["labels"] == [{"name": "squad:carol", "color": "00ff00"}]

    def test_by_member_rejects_bad_state(self, client):
        assert client.get("/api/issues/by-member", params={"state": "all"}).status_code == 422

    def test_closed(self, client, fake_issue_source):
        assert client.get("/api/issues/closed").json() == []
        client.get("/api/issues/closed", params={"refresh": "true"})
        assert fake_issue_source.closed_calls == 2

    def test_standup(self, client):
        data = client.get("/api/standup", params={"period": "week"}).json()
        assert data["period"] == "week"
        assert data["summary"]["blocking"] == 0
        assert [i["number"] for i in data["nextSteps"]] == [12]
        assert data["markdown"].startswith("# Weekly Standup Report")


class TestHealth:
    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["squadFolder"] == ".squad"
