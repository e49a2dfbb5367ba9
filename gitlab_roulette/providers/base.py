"""
Abstract base class for issue tracker clients.

The assignment applier and the CLI only talk to an IssueTracker, so any
implementation (the GitLab REST client, an in-memory fake in tests) can be
swapped in.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from gitlab_roulette.models.domain import Issue, IssueId, Member, MemberId, Project


class IssueTracker(ABC):
    """Capability interface of a remote issue tracker.

    Implementations must be safe to share between threads, since
    ``set_assignee`` may be called from several threads at once.
    """

    @abstractmethod
    def resolve_project(self, url: str) -> Project | None:
        """Find the project whose web URL is ``url``.

        Returns:
            The project, or None if no accessible project matches
        """
        pass

    @abstractmethod
    def list_projects(self) -> list[Project]:
        """List projects the current credential is a member of."""
        pass

    @abstractmethod
    def list_members(self, project: Project) -> list[Member]:
        """List members of ``project``, including inherited ones."""
        pass

    @abstractmethod
    def list_issues(
        self,
        project: Project,
        milestone: str | None = None,
        iids: Sequence[int] | None = None,
    ) -> list[Issue]:
        """List open issues of ``project``.

        Args:
            project: Project owning the issues
            milestone: Only issues of the milestone with this title
            iids: Only issues with these iids
        """
        pass

    @abstractmethod
    def set_assignee(self, project: Project, issue: IssueId, member: MemberId) -> None:
        """Make ``member`` the only assignee of ``issue``.

        Raises:
            NotFoundError: If the issue does not exist in the project
            NotAMemberError: If the username is not a project member
            ForbiddenError: If the credential may not edit the issue
            AuthenticationError: If the credential is rejected
            TransportError: If no response could be obtained
        """
        pass
