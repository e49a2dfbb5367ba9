"""Select the issues of a project to hand out.

Issues can be named one by one (``--issue``) or picked among the project's
open issues by milestone title, by an inclusive iid range, or both.
"""

import structlog

from gitlab_roulette.models.domain import Issue, Project
from gitlab_roulette.providers.base import IssueTracker

log = structlog.get_logger(__name__)


def select_issues(
    tracker: IssueTracker,
    project: Project,
    milestone: str | None = None,
    iid_range: tuple[int, int] | None = None,
) -> list[Issue]:
    """Open issues of ``project`` matching every given criterion, by iid.

    Args:
        tracker: Tracker to list the issues from
        project: Project owning the issues
        milestone: Milestone title the issues must belong to
        iid_range: Inclusive ``(first, last)`` iid bounds
    """
    issues = tracker.list_issues(project, milestone=milestone)
    if iid_range is not None:
        first, last = iid_range
        issues = [issue for issue in issues if first <= issue.iid <= last]

    issues = sorted(issues, key=lambda issue: issue.iid)
    log.info(
        "issues_selected",
        project_id=project.id,
        milestone=milestone,
        iid_range=iid_range,
        count=len(issues),
    )
    return issues
