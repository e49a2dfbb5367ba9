"""
Domain models for gitlab-roulette.

These models are the normalized internal representation of the GitLab
entities the tool touches, plus the value types produced by the assignment
generator and applier. All of them are immutable once built.

Example:
    Building an assignment by hand::

        assignment = Assignment([(1, "alice"), (2, "bob")])
        for issue, member in assignment:
            print(issue, member)
"""

from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Union

from gitlab_roulette.exceptions import DuplicateIssueError, PerIssueApplyError

IssueId = Union[int, str]
"""Project-scoped issue identifier (the GitLab ``iid``)."""

MemberId = str
"""Username of a project member."""


@dataclass(frozen=True)
class Project:
    """A GitLab project visible to the current token."""

    id: int
    name: str
    path_with_namespace: str
    web_url: str

    def __str__(self) -> str:
        return self.path_with_namespace


@dataclass(frozen=True)
class Issue:
    """An issue of a project, addressed by its project-scoped iid."""

    iid: int
    title: str
    milestone: str | None = None

    def __str__(self) -> str:
        return f"#{self.iid}: {self.title}"


@dataclass(frozen=True)
class Member:
    """A user with access to a project."""

    id: int
    username: str
    name: str = ""

    def __str__(self) -> str:
        return f"{self.name} ({self.username})" if self.name else self.username


class Assignment:
    """Immutable, ordered mapping of issue identifier to member username.

    Each issue appears exactly once; a member may appear any number of
    times. Iterating yields ``(issue, member)`` pairs in the order the
    issues were supplied to the generator.

    Raises:
        DuplicateIssueError: If the same issue appears in more than one pair
    """

    __slots__ = ("_pairs", "_index")

    def __init__(self, pairs: Iterable[tuple[IssueId, MemberId]] = ()) -> None:
        pairs = tuple((issue, member) for issue, member in pairs)
        index: dict[IssueId, MemberId] = {}
        duplicates: list[IssueId] = []
        for issue, member in pairs:
            if issue in index:
                if issue not in duplicates:
                    duplicates.append(issue)
                continue
            index[issue] = member
        if duplicates:
            raise DuplicateIssueError(duplicates)

        self._pairs = pairs
        self._index = index

    def __len__(self) -> int:
        return len(self._pairs)

    def __iter__(self) -> Iterator[tuple[IssueId, MemberId]]:
        return iter(self._pairs)

    def __contains__(self, issue: object) -> bool:
        return issue in self._index

    def __getitem__(self, issue: IssueId) -> MemberId:
        return self._index[issue]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Assignment):
            return self._pairs == other._pairs
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._pairs)

    def __repr__(self) -> str:
        return f"Assignment({self.as_dict()!r})"

    @property
    def issues(self) -> tuple[IssueId, ...]:
        return tuple(issue for issue, _ in self._pairs)

    @property
    def members(self) -> frozenset[MemberId]:
        """Members that received at least one issue."""
        return frozenset(member for _, member in self._pairs)

    def as_dict(self) -> dict[IssueId, MemberId]:
        return dict(self._pairs)

    def load(self) -> dict[MemberId, int]:
        """Number of issues per member, most loaded first."""
        return dict(Counter(member for _, member in self._pairs).most_common())


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of assigning a single issue.

    Attributes:
        issue: Issue identifier
        member: Username the issue was assigned to (or meant for)
        error: The failure, or None on success
    """

    issue: IssueId
    member: MemberId
    error: PerIssueApplyError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, issue: IssueId, member: MemberId) -> "ApplyResult":
        return cls(issue=issue, member=member)

    @classmethod
    def failure(cls, issue: IssueId, member: MemberId, cause: BaseException) -> "ApplyResult":
        return cls(issue=issue, member=member, error=PerIssueApplyError(issue, member, cause))


@dataclass(frozen=True)
class RunSummary:
    """Aggregated outcome of an apply run, used for the final report."""

    results: tuple[ApplyResult, ...] = field(default_factory=tuple)

    EXIT_SUCCESS = 0
    EXIT_PARTIAL_FAILURE = 3

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def failures(self) -> list[ApplyResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def exit_code(self) -> int:
        """0 when every issue was assigned, 3 when at least one failed."""
        return self.EXIT_SUCCESS if self.failed == 0 else self.EXIT_PARTIAL_FAILURE

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "succeeded": self.succeeded, "failed": self.failed}
