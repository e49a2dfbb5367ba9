"""Apply a generated assignment through an issue tracker.

Every (issue, member) pair results in exactly one ``set_assignee`` call.
A failing call is recorded and the run moves on to the next pair; nothing
is retried here and nothing already applied is rolled back.

Calls run sequentially by default. With ``max_workers > 1`` they are
dispatched on a thread pool and the results are put back in assignment
order before being returned.

Example:
    >>> results = apply(assignment, provider, project)
    >>> summary = summarize(results)
    >>> summary.failed
    0
"""

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor

import structlog

from gitlab_roulette.models.domain import ApplyResult, Assignment, IssueId, MemberId, Project, RunSummary
from gitlab_roulette.providers.base import IssueTracker

log = structlog.get_logger(__name__)

ResultCallback = Callable[[ApplyResult], None]


def apply(
    assignment: Assignment,
    client: IssueTracker,
    project: Project,
    max_workers: int = 1,
    on_result: ResultCallback | None = None,
) -> list[ApplyResult]:
    """Set the assignee of every issue in ``assignment``.

    Args:
        assignment: Issue -> member mapping to apply
        client: Tracker used for the ``set_assignee`` calls
        project: Project the issues belong to
        max_workers: Number of concurrent calls; 1 keeps the run sequential
        on_result: Called with each result as soon as it is known

    Returns:
        One ApplyResult per pair, in the assignment's order
    """
    if max_workers < 1:
        raise ValueError("max_workers must be at least 1")

    log.info(
        "apply_started",
        project=project.path_with_namespace,
        issues=len(assignment),
        max_workers=max_workers,
    )

    def run(pair: tuple[IssueId, MemberId]) -> ApplyResult:
        result = _apply_one(client, project, *pair)
        if on_result is not None:
            on_result(result)
        return result

    if max_workers == 1 or len(assignment) <= 1:
        results = [run(pair) for pair in assignment]
    else:
        # Executor.map yields in submission order, whatever the completion order
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="roulette") as pool:
            results = list(pool.map(run, assignment))

    summary = summarize(results)
    log.info("apply_finished", **summary.to_dict())
    return results


def _apply_one(client: IssueTracker, project: Project, issue: IssueId, member: MemberId) -> ApplyResult:
    try:
        client.set_assignee(project, issue, member)
    except Exception as e:
        log.warning("assignment_failed", issue=issue, member=member, error=str(e))
        return ApplyResult.failure(issue, member, e)

    log.info("assignment_applied", issue=issue, member=member)
    return ApplyResult.success(issue, member)


def summarize(results: Iterable[ApplyResult]) -> RunSummary:
    """Aggregate per-issue results into a run summary."""
    return RunSummary(results=tuple(results))
