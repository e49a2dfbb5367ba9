"""Random assignment of issues to members.

Two strategies are available:

    uniform:
        Each issue independently draws one member uniformly at random, with
        replacement. Some members may end up with several issues and others
        with none.

    balanced:
        Every member first receives ``len(issues) // len(members)`` slots.
        The remaining slots go to members drawn at random, then the slot
        list is shuffled and zipped with the issues.

The random source is injected so callers can reproduce a draw::

    >>> import random
    >>> generate([1, 2, 3], ["alice", "bob"], rng=random.Random(42))
"""

import random
from collections.abc import Sequence
from typing import Protocol

import structlog

from gitlab_roulette.exceptions import ConfigurationError, DuplicateIssueError, NoMembersError
from gitlab_roulette.models.domain import Assignment, IssueId, MemberId

log = structlog.get_logger(__name__)

UNIFORM = "uniform"
BALANCED = "balanced"
STRATEGIES = (UNIFORM, BALANCED)


class RandomSource(Protocol):
    """The subset of ``random.Random`` the generator relies on."""

    def choice(self, seq: Sequence[MemberId]) -> MemberId: ...

    def randrange(self, stop: int) -> int: ...

    def shuffle(self, x: list[int]) -> None: ...


def generate(
    issues: Sequence[IssueId],
    members: Sequence[MemberId],
    rng: RandomSource | None = None,
    strategy: str = UNIFORM,
) -> Assignment:
    """Assign every issue to exactly one member.

    Args:
        issues: Issue identifiers, in the order they should be reported
        members: Candidate usernames. Duplicates are kept and raise that
            member's odds.
        rng: Random source; a fresh ``random.Random()`` when omitted
        strategy: ``"uniform"`` or ``"balanced"``

    Returns:
        Assignment with one entry per issue, in input order

    Raises:
        NoMembersError: If ``members`` is empty, whatever ``issues`` holds
        DuplicateIssueError: If an issue identifier appears twice
        ConfigurationError: If ``strategy`` is unknown
    """
    if not members:
        raise NoMembersError()
    if strategy not in STRATEGIES:
        raise ConfigurationError(
            f"Unknown assignment strategy '{strategy}' (expected one of: {', '.join(STRATEGIES)})"
        )
    _check_unique(issues)

    if not issues:
        return Assignment()

    if rng is None:
        rng = random.Random()

    if strategy == BALANCED:
        slots = _balanced_slots(len(issues), len(members), rng)
        picks = [members[slot] for slot in slots]
    else:
        picks = [rng.choice(members) for _ in issues]

    assignment = Assignment(zip(issues, picks))
    log.debug(
        "assignment_generated",
        strategy=strategy,
        issues=len(assignment),
        members=len(members),
        load=assignment.load(),
    )
    return assignment


def _check_unique(issues: Sequence[IssueId]) -> None:
    seen: set[IssueId] = set()
    duplicates: list[IssueId] = []
    for issue in issues:
        if issue in seen and issue not in duplicates:
            duplicates.append(issue)
        seen.add(issue)
    if duplicates:
        raise DuplicateIssueError(duplicates)


def _balanced_slots(issue_count: int, member_count: int, rng: RandomSource) -> list[int]:
    """Member indexes, one per issue: an even share each plus randomly drawn leftovers."""
    per_member, rest = divmod(issue_count, member_count)
    slots = [index for index in range(member_count) for _ in range(per_member)]
    slots.extend(rng.randrange(member_count) for _ in range(rest))
    rng.shuffle(slots)
    return slots
