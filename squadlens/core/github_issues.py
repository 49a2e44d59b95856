"""GitHub REST issue source."""

import logging

import requests

from .errors import IssueSourceError
from .models import Issue, IssueLabel, IssueSourceConfig
from .settings import DEFAULT_GITHUB_API_URL

logger = logging.getLogger(__name__)

PER_PAGE = 100
CLOSED_LIMIT = 50
REQUEST_TIMEOUT = 30
USER_AGENT = "squadlens"


def map_api_issue(raw: dict) -> Issue:
    """Convert a REST API issue payload into an ``Issue``."""
    labels = []
    for label in raw.get("labels") or []:
        if isinstance(label, str):
            labels.append(IssueLabel(name=label))
        else:
            labels.append(IssueLabel(name=label.get("name") or "", color=label.get("color")))
    assignee = raw.get("assignee") or {}
    return Issue(
        number=int(raw["number"]),
        title=raw.get("title") or "",
        state=raw.get("state") or "open",
        labels=labels,
        assignee=assignee.get("login"),
        created_at=raw.get("created_at"),
        updated_at=raw.get("updated_at"),
        closed_at=raw.get("closed_at"),
        body=raw.get("body"),
        html_url=raw.get("html_url"),
    )


class GitHubIssueSource:
    """Fetches issues for the repository named in the roster's Issue Source.

    Authentication is optional; unauthenticated calls hit lower rate limits.
    """

    def __init__(
        self,
        token: str | None = None,
        api_url: str = DEFAULT_GITHUB_API_URL,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        })
        self.set_token(token)

    def set_token(self, token: str | None) -> None:
        self.token = token
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        else:
            self.session.headers.pop("Authorization", None)

    def fetch_open(self, config: IssueSourceConfig) -> list[Issue]:
        """All open issues, 100 per page. Pull requests are skipped.

        If a later page fails the pages already fetched are returned; a
        failure on the first page raises ``IssueSourceError``.
        """
        issues: list[Issue] = []
        page = 1
        while True:
            try:
                raw = self._get(
                    self._issues_path(config),
                    {"state": "open", "per_page": PER_PAGE, "page": page},
                )
            except IssueSourceError as exc:
                if issues:
                    logger.warning(
                        "GitHub API error on page %d, returning %d issues fetched so far: %s",
                        page,
                        len(issues),
                        exc,
                    )
                    break
                raise

            issues.extend(map_api_issue(item) for item in raw if "pull_request" not in item)
            if len(raw) < PER_PAGE:
                break
            page += 1
        return issues

    def fetch_closed(self, config: IssueSourceConfig, limit: int = CLOSED_LIMIT) -> list[Issue]:
        """Most recently updated closed issues, at most ``limit``."""
        if limit <= 0:
            raise ValueError("limit must be positive")
        raw = self._get(
            self._issues_path(config),
            {
                "state": "closed",
                "sort": "updated",
                "direction": "desc",
                "per_page": min(limit, PER_PAGE),
                "page": 1,
            },
        )
        return [map_api_issue(item) for item in raw if "pull_request" not in item][:limit]

    @staticmethod
    def _issues_path(config: IssueSourceConfig) -> str:
        return f"/repos/{config.effective_repository}/issues"

    def _get(self, path: str, params: dict) -> list[dict]:
        url = f"{self.api_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            payload = response.json()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise IssueSourceError(f"GitHub API returned {status} for {path}", status) from exc
        except requests.RequestException as exc:
            raise IssueSourceError(f"GitHub API request failed: {exc}") from exc
        except ValueError as exc:
            raise IssueSourceError(f"Failed to parse GitHub API response: {exc}") from exc

        if not isinstance(payload, list):
            raise IssueSourceError(f"Unexpected GitHub API payload for {path}")
        return payload
