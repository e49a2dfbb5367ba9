"""GitLab issue tracker implementation using direct REST API calls."""

import threading
import urllib.parse
from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from gitlab_roulette.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    ForbiddenError,
    NotAMemberError,
    NotFoundError,
    TransportError,
)
from gitlab_roulette.models.domain import Issue, IssueId, Member, MemberId, Project
from gitlab_roulette.providers.base import IssueTracker
from gitlab_roulette.utils.retry import retry

log = structlog.get_logger(__name__)

PER_PAGE = 100


def instance_url(project_url: str) -> str:
    """Base URL of the GitLab instance hosting ``project_url``.

    >>> instance_url("https://gitlab.example.com:8443/group/project")
    'https://gitlab.example.com:8443'
    """
    parsed = urllib.parse.urlsplit(project_url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(f'the url "{project_url}" is not valid')
    return f"{parsed.scheme}://{parsed.netloc}"


def normalize_web_url(url: str) -> str:
    """Strip the parts that do not identify a project (trailing slash, .git)."""
    url = url.strip().rstrip("/")
    if url.endswith(".git"):
        url = url[: -len(".git")]
    return url


class GitLabRestProvider(IssueTracker):
    """GitLab implementation using direct REST API v4 calls.

    Supports both gitlab.com and self-hosted instances. Requests are
    blocking; the underlying ``httpx.Client`` is thread-safe so the provider
    can serve the applier's thread pool.

    GitLab API notes:
    - Issues are addressed by their project-scoped 'iid'
    - Assignees are set by numeric user id ('assignee_ids'), so usernames
      are looked up among the project members first. The member list of a
      project is fetched once and kept for the lifetime of the provider
    - Authentication uses the 'PRIVATE-TOKEN' header
    - List endpoints are paginated; 'X-Next-Page' is empty on the last page
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        max_connections: int = 10,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize GitLab provider.

        Args:
            base_url: GitLab base URL (e.g., https://gitlab.com)
            token: Personal access token with the 'api' scope
            timeout: Per-request timeout in seconds
            max_connections: Connection pool size
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_base = f"{self.base_url}/api/v4"
        self._client = httpx.Client(
            base_url=self.api_base,
            headers={"PRIVATE-TOKEN": token},
            timeout=timeout,
            limits=httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_connections),
            transport=transport,
        )
        self._members: dict[int, dict[str, Member]] = {}
        self._members_lock = threading.Lock()

    @classmethod
    def from_project_url(cls, project_url: str, token: str, **kwargs: Any) -> "GitLabRestProvider":
        """Build a provider for the instance hosting ``project_url``."""
        return cls(instance_url(project_url), token, **kwargs)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitLabRestProvider":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @retry(max_attempts=3, backoff_factor=2.0, exceptions=(TransportError,))
    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, mapping failures onto the exception hierarchy."""
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        _raise_for_status(response)
        return response

    def _get_paginated(self, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page: str | None = "1"
        while page:
            query = {**(params or {}), "per_page": PER_PAGE, "page": page}
            response = self._request("GET", path, params=query)
            items.extend(response.json())
            page = response.headers.get("x-next-page") or None
        return items

    def list_projects(self) -> list[Project]:
        """List projects the token is a member of.

        Returns:
            List of Project objects
        """
        log.info("list_projects", base_url=self.base_url)

        data = self._get_paginated("/projects", params={"membership": "true", "simple": "true"})
        return [self._parse_project(item) for item in data]

    def resolve_project(self, url: str) -> Project | None:
        """Find the project whose web URL matches ``url``.

        Trailing slashes and a '.git' suffix are ignored on both sides.

        Args:
            url: Project web URL (e.g., https://gitlab.com/group/project)

        Returns:
            Project object or None if no accessible project matches
        """
        wanted = normalize_web_url(url)
        for project in self.list_projects():
            if normalize_web_url(project.web_url) == wanted:
                log.info("project_resolved", url=url, project_id=project.id)
                return project

        log.info("project_not_found", url=url)
        return None

    def list_members(self, project: Project) -> list[Member]:
        """List members of a project, including members inherited from groups."""
        log.info("list_members", project_id=project.id)

        data = self._get_paginated(f"/projects/{project.id}/members/all")
        members = [self._parse_member(item) for item in data]
        self._members[project.id] = {member.username.casefold(): member for member in members}
        return members

    def list_issues(
        self,
        project: Project,
        milestone: str | None = None,
        iids: Sequence[int] | None = None,
    ) -> list[Issue]:
        """List open issues of a project, oldest first.

        Args:
            project: Project owning the issues
            milestone: Milestone title to filter on
            iids: Issue iids to filter on

        Returns:
            List of Issue objects sorted by iid
        """
        log.info("list_issues", project_id=project.id, milestone=milestone)

        params: dict[str, Any] = {"state": "opened"}
        if milestone is not None:
            params["milestone"] = milestone
        if iids:
            params["iids[]"] = list(iids)

        data = self._get_paginated(f"/projects/{project.id}/issues", params=params)
        return sorted((self._parse_issue(item) for item in data), key=lambda issue: issue.iid)

    def find_member(self, project: Project, username: MemberId) -> Member:
        """Look up a project member by username.

        Raises:
            NotAMemberError: If no member has exactly this username
        """
        with self._members_lock:
            if project.id not in self._members:
                self.list_members(project)
            members = self._members[project.id]

        member = members.get(username.casefold())
        if member is not None:
            return member

        raise NotAMemberError(f"'{username}' is not a member of {project.path_with_namespace}")

    def set_assignee(self, project: Project, issue: IssueId, member: MemberId) -> None:
        """Replace the assignees of an issue with a single member.

        Args:
            project: Project owning the issue
            issue: Issue iid
            member: Username of the new assignee
        """
        log.info("set_assignee", project_id=project.id, issue=issue, member=member)

        target = self.find_member(project, member)
        encoded_issue = urllib.parse.quote(str(issue), safe="")
        try:
            self._request(
                "PUT",
                f"/projects/{project.id}/issues/{encoded_issue}",
                json={"assignee_ids": [target.id]},
            )
        except NotFoundError as e:
            raise NotFoundError(
                f"Issue {issue} not found in {project.path_with_namespace}",
                status_code=e.status_code,
                response_text=e.response_text,
            ) from e

    def _parse_project(self, data: dict[str, Any]) -> Project:
        """Convert GitLab API project data to Project model."""
        return Project(
            id=data["id"],
            name=data.get("name", ""),
            path_with_namespace=data.get("path_with_namespace", ""),
            web_url=data.get("web_url", ""),
        )

    def _parse_issue(self, data: dict[str, Any]) -> Issue:
        """Convert GitLab API issue data to Issue model."""
        milestone = data.get("milestone") or {}
        return Issue(
            iid=data["iid"],
            title=data.get("title", ""),
            milestone=milestone.get("title"),
        )

    def _parse_member(self, data: dict[str, Any]) -> Member:
        """Convert GitLab API member data to Member model."""
        return Member(
            id=data["id"],
            username=data["username"],
            name=data.get("name", ""),
        )


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return

    status = response.status_code
    request = response.request
    message = f"{request.method} {request.url.path} failed"
    text = response.text

    if status == 401:
        raise AuthenticationError("GitLab rejected the token", status_code=status, response_text=text)
    if status == 403:
        raise ForbiddenError(f"{message}: forbidden", status_code=status, response_text=text)
    if status == 404:
        raise NotFoundError(f"{message}: not found", status_code=status, response_text=text)
    raise ExternalServiceError(message, status_code=status, response_text=text)
