"""Tests for status and task derivation."""

from squadlens.core.aggregator import DERIVED_ROLE, StateAggregator, resolve_member
from squadlens.core.models import LogEntry, LogSource, Member, MemberStatus, TaskStatus, TeamRoster
from squadlens.core.session_log import SessionLogParser


def make_entry(date, participants, related=None, outcomes=None, source=LogSource.ACTIVE, topic="x"):
    return LogEntry(
        timestamp=f"{date}T00:00:00Z",
        date=date,
        topic=topic,
        participants=list(participants),
        summary="Did things.",
        related_issues=related,
        outcomes=outcomes,
        source=source,
    )


def make_roster():
    return TeamRoster(members=[
        Member(name="Alice", role="Lead"),
        Member(name="Bob", role="Backend Dev"),
        Member(name="Carol", role="Tester"),
    ])


def by_name(snapshot):
    return {member.name: member for member in snapshot.members}


class TestStatusDerivation:
    """Tests for member status."""

    def test_working_member_and_task_states(self):
        entry = make_entry("2026-02-14", ["Carol"], related=["#12", "#13"], outcomes=["Closed #12"])
        snapshot = StateAggregator().build(make_roster(), [entry])

        members = by_name(snapshot)
        assert members["Carol"].status == MemberStatus.WORKING
        assert members["Carol"].current_task.id == "13"
        assert members["Alice"].status == MemberStatus.IDLE
        assert members["Bob"].status == MemberStatus.IDLE

        tasks = {task.id: task for task in snapshot.tasks}
        assert tasks["12"].status == TaskStatus.COMPLETED
        assert tasks["13"].status == TaskStatus.IN_PROGRESS
        assert tasks["12"].assignee == "Carol"

    def test_roster_status_is_ignored(self):
        roster = make_roster()
        roster.members[2].status = MemberStatus.WORKING
        snapshot = StateAggregator().build(roster, [])
        assert all(m.status == MemberStatus.IDLE for m in snapshot.members)

    def test_participant_without_open_task_is_idle(self):
        entry = make_entry("2026-02-14", ["Bob"], related=["#1"], outcomes=["Fixed #1"])
        snapshot = StateAggregator().build(make_roster(), [entry])
        assert by_name(snapshot)["Bob"].status == MemberStatus.IDLE

    def test_open_task_outside_latest_entry_is_idle(self):
        older = make_entry("2026-02-01", ["Alice"], related=["#3"])
        newer = make_entry("2026-02-10", ["Bob"])
        snapshot = StateAggregator().build(make_roster(), [newer, older])
        assert by_name(snapshot)["Alice"].status == MemberStatus.IDLE
        assert snapshot.find_task("3").status == TaskStatus.IN_PROGRESS

    def test_latest_entry_by_time_across_timestamp_formats(self):
        parser = SessionLogParser()
        morning = parser.parse_content(
            "**Participants:** Alice\n\nStarted #1.\n", "2026-02-14T0900-morning.md"
        )
        evening = parser.parse_content(
            "**Timestamp:** 2026-02-14 17:30\n**Participants:** Bob\n\nStarted #2.\n",
            "2026-02-14-evening.md",
        )
        snapshot = StateAggregator().build(make_roster(), [morning, evening])
        members = by_name(snapshot)
        assert members["Bob"].status == MemberStatus.WORKING
        assert members["Alice"].status == MemberStatus.IDLE
        assert [t.id for t in snapshot.tasks] == ["2", "1"]

    def test_narrative_entries_do_not_affect_status_or_tasks(self):
        active = make_entry("2026-02-01", ["Bob"])
        narrative = make_entry("2026-02-20", ["Alice"], related=["#99"], source=LogSource.NARRATIVE)
        snapshot = StateAggregator().build(make_roster(), [active], [narrative])
        assert by_name(snapshot)["Alice"].status == MemberStatus.IDLE
        assert snapshot.find_task("99") is None
        assert [e.source for e in snapshot.log_entries] == [LogSource.NARRATIVE, LogSource.ACTIVE]


class TestTaskDerivation:
    """Tests for task synthesis."""

    def test_earliest_mention_defines_task(self):
        older = make_entry("2026-02-01", ["Alice"], related=["#5"])
        newer = make_entry("2026-02-10", ["Bob"], related=["#5"])
        snapshot = StateAggregator().build(make_roster(), [newer, older])
        task = snapshot.find_task("#5")
        assert task.assignee == "Alice"
        assert task.started_at.date().isoformat() == "2026-02-01"

    def test_completion_is_sticky(self):
        older = make_entry("2026-02-01", ["Alice"], related=["#7"], outcomes=["Closed #7"])
        newer = make_entry("2026-02-10", ["Alice"], related=["#7"], outcomes=["Still poking at #7"])
        snapshot = StateAggregator().build(make_roster(), [older, newer])
        task = snapshot.find_task("7")
        assert task.status == TaskStatus.COMPLETED
        assert task.completed_at.date().isoformat() == "2026-02-01"

    def test_mention_without_signal_stays_in_progress(self):
        entry = make_entry("2026-02-01", ["Alice"], outcomes=["Reviewed #8"])
        snapshot = StateAggregator().build(make_roster(), [entry])
        assert snapshot.find_task("8").status == TaskStatus.IN_PROGRESS

    def test_duplicate_entries_are_idempotent(self):
        entry = make_entry("2026-02-14", ["Carol"], related=["#12", "#13"], outcomes=["Closed #12"])
        once = StateAggregator().build(make_roster(), [entry])
        twice = StateAggregator().build(make_roster(), [entry, entry])
        assert [(t.id, t.status) for t in once.tasks] == [(t.id, t.status) for t in twice.tasks]

    def test_unknown_assignee_drops_task(self):
        entry = make_entry("2026-02-01", ["Zed"], related=["#4"])
        snapshot = StateAggregator().build(make_roster(), [entry])
        assert snapshot.tasks == []

    def test_assignee_filled_by_later_entry(self):
        older = make_entry("2026-02-01", [], related=["#6"])
        newer = make_entry("2026-02-03", ["Bob"], related=["#6"])
        snapshot = StateAggregator().build(make_roster(), [older, newer])
        assert snapshot.find_task("6").assignee == "Bob"

    def test_tasks_newest_first(self):
        entries = [
            make_entry("2026-02-01", ["Alice"], related=["#1"]),
            make_entry("2026-02-05", ["Alice"], related=["#2"]),
        ]
        snapshot = StateAggregator().build(make_roster(), entries)
        assert [t.id for t in snapshot.tasks] == ["2", "1"]
        assert [t.id for t in snapshot.tasks_for_member("alice")] == ["2", "1"]


class TestMembers:
    """Tests for member list derivation."""

    def test_roster_absent_uses_participants(self):
        entry = make_entry("2026-02-01", ["Xander", "Yolanda"])
        snapshot = StateAggregator().build(None, [entry])
        assert [(m.name, m.role) for m in snapshot.members] == [
            ("Xander", DERIVED_ROLE),
            ("Yolanda", DERIVED_ROLE),
        ]

    def test_empty_roster_uses_participants(self):
        entry = make_entry("2026-02-01", ["Xander"])
        snapshot = StateAggregator().build(TeamRoster(), [entry])
        assert [m.name for m in snapshot.members] == ["Xander"]

    def test_agents_used_without_roster_members(self):
        entry = make_entry("2026-02-01", ["Keaton"], related=["#3"])
        agents = [Member(name="Keaton", role="Backend Dev"), Member(name="Verbal", role="Squad Member")]
        snapshot = StateAggregator().build(TeamRoster(), [entry], agents=agents)
        assert [(m.name, m.role) for m in snapshot.members] == [("Keaton", "Backend Dev"), ("Verbal", "Squad Member")]
        assert by_name(snapshot)["Keaton"].status == MemberStatus.WORKING
        assert snapshot.members[0] is not agents[0]

    def test_roster_beats_agents(self):
        snapshot = StateAggregator().build(make_roster(), [], agents=[Member(name="Keaton", role="Dev")])
        assert [m.name for m in snapshot.members] == ["Alice", "Bob", "Carol"]

    def test_resolve_member_variants(self):
        members = make_roster().members
        assert resolve_member("Carol", members).name == "Carol"
        assert resolve_member("[Carol](agents/carol.md)", members).name == "Carol"
        assert resolve_member("**carol**", members).name == "Carol"
        assert resolve_member("Dave", members) is None
        assert resolve_member("", members) is None


class TestWorkDetails:
    """Tests for SquadSnapshot.work_details."""

    def test_details_for_known_task(self):
        entry = make_entry("2026-02-14", ["Carol"], related=["#12"])
        other = make_entry("2026-02-10", ["Bob"], related=["#40"])
        snapshot = StateAggregator().build(make_roster(), [entry, other])
        details = snapshot.work_details("#12")
        assert details.task.id == "12"
        assert details.member.name == "Carol"
        assert details.log_entries == [entry]

    def test_unknown_task(self):
        snapshot = StateAggregator().build(make_roster(), [])
        assert snapshot.work_details("404") is None
