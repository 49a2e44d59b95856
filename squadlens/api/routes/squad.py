"""
Squad API routes
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from ...core.decision_search import DecisionSearchCriteria
from ...core.models import DecisionEntry, LogEntry, Member, Task
from ..state import get_provider, is_watching, start_watching

router = APIRouter()
logger = logging.getLogger(__name__)


class TaskResponse(BaseModel):
    id: str
    title: str
    status: str
    assignee: str
    startedAt: str
    completedAt: Optional[str] = None
    description: Optional[str] = None


class MemberResponse(BaseModel):
    name: str
    role: str
    status: str
    currentTask: Optional[TaskResponse] = None


class LogEntryResponse(BaseModel):
    timestamp: str
    date: str
    topic: str
    title: Optional[str] = None
    participants: list[str]
    summary: str
    relatedIssues: Optional[list[str]] = None
    decisions: Optional[list[str]] = None
    outcomes: Optional[list[str]] = None
    source: str
    filePath: Optional[str] = None


class WorkDetailsResponse(BaseModel):
    task: TaskResponse
    member: MemberResponse
    logEntries: Optional[list[LogEntryResponse]] = None


class DecisionResponse(BaseModel):
    title: str
    date: Optional[str] = None
    author: Optional[str] = None
    content: Optional[str] = None
    filePath: str
    lineNumber: int


class RefreshResponse(BaseModel):
    success: bool
    message: str


class SetRootRequest(BaseModel):
    """Request to point the server at another project."""
    root: str
    folderName: Optional[str] = None


def _task(task: Task) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        title=task.title,
        status=task.status.value,
        assignee=task.assignee,
        startedAt=task.started_at.isoformat(),
        completedAt=task.completed_at.isoformat() if task.completed_at else None,
        description=task.description,
    )


def _member(member: Member) -> MemberResponse:
    return MemberResponse(
        name=member.name,
        role=member.role,
        status=member.status.value,
        currentTask=_task(member.current_task) if member.current_task else None,
    )


def _log_entry(entry: LogEntry) -> LogEntryResponse:
    return LogEntryResponse(
        timestamp=entry.timestamp,
        date=entry.date,
        topic=entry.topic,
        title=entry.title,
        participants=entry.participants,
        summary=entry.summary,
        relatedIssues=entry.related_issues,
        decisions=entry.decisions,
        outcomes=entry.outcomes,
        source=entry.source.value,
        filePath=str(entry.file_path) if entry.file_path else None,
    )


def _decision(decision: DecisionEntry) -> DecisionResponse:
    return DecisionResponse(
        title=decision.title,
        date=decision.date,
        author=decision.author,
        content=decision.content,
        filePath=str(decision.file_path),
        lineNumber=decision.line_number,
    )


@router.get("/members")
def list_members() -> list[MemberResponse]:
    """List squad members with their derived status"""
    return [_member(m) for m in get_provider().list_members()]


@router.get("/members/{name}/tasks")
def list_member_tasks(name: str) -> list[TaskResponse]:
    """Tasks assigned to one member (empty for unknown members)"""
    return [_task(t) for t in get_provider().list_tasks_for_member(name)]


@router.get("/tasks/{task_id}")
def get_work_details(task_id: str) -> WorkDetailsResponse:
    """A task with its assignee and the log entries that mention it"""
    details = get_provider().get_work_details(task_id)
    if details is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return WorkDetailsResponse(
        task=_task(details.task),
        member=_member(details.member),
        logEntries=[_log_entry(e) for e in details.log_entries] if details.log_entries else None,
    )


@router.get("/decisions")
def list_decisions(
    q: Optional[str] = Query(None, description="Keyword query"),
    author: Optional[str] = Query(None, description="Author substring"),
    start: Optional[str] = Query(None, description="Start date (YYYY-MM-DD), inclusive"),
    end: Optional[str] = Query(None, description="End date (YYYY-MM-DD), inclusive"),
) -> list[DecisionResponse]:
    """Decisions, newest first, optionally searched and filtered"""
    criteria = None
    if q or author or start or end:
        criteria = DecisionSearchCriteria(query=q, start_date=start, end_date=end, author=author)
    return [_decision(d) for d in get_provider().list_decisions(criteria)]


@router.get("/logs")
def list_logs() -> list[LogEntryResponse]:
    """All log entries (active and narrative), newest first"""
    return [_log_entry(e) for e in get_provider().list_log_entries()]


@router.post("/refresh")
def refresh() -> RefreshResponse:
    """Discard cached squad and issue data"""
    get_provider().refresh()
    return RefreshResponse(success=True, message="Squad data will be re-read on next request")


@router.post("/root")
def set_root(request: SetRootRequest) -> RefreshResponse:
    """Switch to another project root"""
    root = Path(request.root).expanduser()
    if not root.is_dir():
        logger.warning("Rejected root switch to missing directory: %s", root)
        raise HTTPException(status_code=404, detail="Root directory not found")
    try:
        get_provider().set_root(root, request.folderName)
    except ValueError as e:
        logger.warning("Rejected root switch to %s: %s", root, e)
        raise HTTPException(status_code=400, detail=str(e))
    if is_watching():
        start_watching(get_provider())
    return RefreshResponse(success=True, message=f"Root set to {root}")
