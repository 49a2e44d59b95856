"""
Standup API routes
"""

from fastapi import APIRouter, Query
from pydantic import BaseModel

from ...utils.datetime_utils import to_date_key
from ..state import get_provider
from .issues import IssueResponse, issue_response


class StandupResponse(BaseModel):
    period: str
    periodStart: str
    periodEnd: str
    summary: dict[str, int]
    closedIssues: list[IssueResponse]
    newIssues: list[IssueResponse]
    blockingIssues: list[IssueResponse]
    nextSteps: list[IssueResponse]
    recentDecisions: list[str]
    recentLogs: list[str]
    markdown: str


router = APIRouter()


@router.get("")
def get_standup(
    period: str = Query("day", pattern="^(day|week)$", description="Report period"),
) -> StandupResponse:
    """Standup report for the last day or week"""
    report = get_provider().standup_report(period)
    return StandupResponse(
        period=report.period.value,
        periodStart=to_date_key(report.period_start),
        periodEnd=to_date_key(report.period_end),
        summary=report.summary,
        closedIssues=[issue_response(i) for i in report.closed_issues],
        newIssues=[issue_response(i) for i in report.new_issues],
        blockingIssues=[issue_response(i) for i in report.blocking_issues],
        nextSteps=[issue_response(i) for i in report.next_steps],
        recentDecisions=[d.title for d in report.recent_decisions],
        recentLogs=[e.title or e.topic for e in report.recent_logs],
        markdown=report.to_markdown(),
    )
