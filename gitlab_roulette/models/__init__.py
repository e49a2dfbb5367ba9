"""Domain models for gitlab-roulette.

Key Models:
    - Project: GitLab project visible to the token
    - Issue: Open issue of a project
    - Member: Project member (user)
    - Assignment: Immutable issue -> member mapping built by the generator
    - ApplyResult: Outcome of assigning a single issue
    - RunSummary: Aggregated outcome of an apply run

Example:
    >>> from gitlab_roulette.models import Assignment
    >>> assignment = Assignment([(1, "alice"), (2, "bob")])
    >>> assignment[2]
    'bob'
"""

from gitlab_roulette.models.domain import (
    ApplyResult,
    Assignment,
    Issue,
    IssueId,
    Member,
    MemberId,
    Project,
    RunSummary,
)

__all__ = [
    "ApplyResult",
    "Assignment",
    "Issue",
    "IssueId",
    "Member",
    "MemberId",
    "Project",
    "RunSummary",
]
