"""
Issue API routes
"""

from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from ...core.models import Issue
from ..state import get_provider

router = APIRouter()


class LabelResponse(BaseModel):
    name: str
    color: Optional[str] = None


class IssueResponse(BaseModel):
    number: int
    title: str
    state: str
    labels: list[LabelResponse]
    assignee: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    closedAt: Optional[str] = None
    htmlUrl: Optional[str] = None


def issue_response(issue: Issue) -> IssueResponse:
    return IssueResponse(
        number=issue.number,
        title=issue.title,
        state=issue.state,
        labels=[LabelResponse(name=l.name, color=l.color) for l in issue.labels],
        assignee=issue.assignee,
        createdAt=issue.created_at,
        updatedAt=issue.updated_at,
        closedAt=issue.closed_at,
        htmlUrl=issue.html_url,
    )


@router.get("/by-member")
def issues_by_member(
    state: str = Query("open", pattern="^(open|closed)$", description="Issue state"),
) -> dict[str, list[IssueResponse]]:
    """Issues grouped by member key (lowercased member name)"""
    provider = get_provider()
    grouped = provider.get_closed_issues_by_member() if state == "closed" else provider.get_issues_by_member()
    return {member: [issue_response(i) for i in issues] for member, issues in grouped.items()}


@router.get("/closed")
def closed_issues(
    refresh: bool = Query(False, description="Bypass the issue cache"),
) -> list[IssueResponse]:
    """Recently closed issues"""
    return [issue_response(i) for i in get_provider().get_closed_issues(force=refresh)]
