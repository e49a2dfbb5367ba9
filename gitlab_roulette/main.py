"""CLI entry point for gitlab-roulette."""

import random
import sys

import click
import structlog
from click.core import ParameterSource

from gitlab_roulette import __version__
from gitlab_roulette.assignment import STRATEGIES, apply, generate, select_issues, summarize
from gitlab_roulette.config.settings import DEFAULT_CONFIG_FILE, RouletteSettings
from gitlab_roulette.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    ProjectResolutionError,
    RouletteError,
)
from gitlab_roulette.models.domain import ApplyResult, Assignment, Issue, IssueId, Project, RunSummary
from gitlab_roulette.providers.base import IssueTracker
from gitlab_roulette.providers.gitlab_rest import GitLabRestProvider
from gitlab_roulette.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


# Exit codes for semantic error reporting
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_PROJECT_ERROR = 2
EXIT_PARTIAL_FAILURE = RunSummary.EXIT_PARTIAL_FAILURE
EXIT_INTERRUPTED = 130


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    "config_file",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="File to use as config",
)
@click.option("--url", "-u", help="URL of the project")
@click.option("--token", "-t", help="GitLab token to use to connect")
@click.option("--issue", "-i", "issues", multiple=True, help="Issue iid to assign (repeatable)")
@click.option("--milestone", help="Assign the open issues of this milestone")
@click.option("--range", "issue_range", metavar="START-END", help="Assign the open issues with iids in this range")
@click.option("--member", "-m", "members", multiple=True, help="Username to assign issues to (repeatable)")
@click.option("--strategy", type=click.Choice(STRATEGIES), help="How members are drawn (default: uniform)")
@click.option("--seed", type=int, help="Seed the draw to make it reproducible")
@click.option("--workers", "max_workers", type=click.IntRange(1, 16), help="Concurrent assignment calls")
@click.option("--dry-run", is_flag=True, help="Show the assignment without applying it")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Apply without asking for confirmation")
@click.option("--no-input", is_flag=True, help="Never prompt; fail instead")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.option("--log-json", is_flag=True, help="Emit logs as JSON lines")
@click.version_option(__version__, prog_name="gitlab-roulette")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str,
    url: str | None,
    token: str | None,
    issues: tuple[str, ...],
    milestone: str | None,
    issue_range: str | None,
    members: tuple[str, ...],
    strategy: str | None,
    seed: int | None,
    max_workers: int | None,
    dry_run: bool,
    assume_yes: bool,
    no_input: bool,
    log_level: str,
    log_json: bool,
) -> None:
    """Randomly assign GitLab issues to project members.

    Flags override the values of the configuration file.

    Examples:
        gitlab-roulette -u https://gitlab.com/group/project -i 4 -i 5 -m alice -m bob
        gitlab-roulette --config team.yaml --strategy balanced --dry-run
        gitlab-roulette --config team.yaml --milestone "Sprint 12" --yes
    """
    configure_logging(log_level, json_output=log_json)

    overrides = {
        "url": url,
        "token": token,
        "issues": list(issues) or None,
        "milestone": milestone,
        "issue_range": issue_range,
        "members": list(members) or None,
        "strategy": strategy,
        "seed": seed,
        "max_workers": max_workers,
    }
    explicit_config = ctx.get_parameter_source("config_file") is not ParameterSource.DEFAULT

    try:
        settings = RouletteSettings.load(config_file, overrides, must_exist=explicit_config)
        rng = random.Random(settings.seed)
        assignment = generate(
            settings.issues,
            settings.members,
            rng=rng,
            strategy=settings.strategy,
        )
        if no_input and not (assume_yes or dry_run) and (assignment or settings.selects_issues):
            raise ConfigurationError("Confirmation required: pass --yes to apply without prompting")
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(EXIT_CONFIG_ERROR)

    if not assignment and not settings.selects_issues:
        click.echo("No issues to assign")
        sys.exit(EXIT_SUCCESS)

    try:
        with GitLabRestProvider.from_project_url(settings.url, settings.token.get_secret_value()) as provider:
            exit_code = run_roulette(
                provider,
                settings,
                assignment,
                rng=rng,
                dry_run=dry_run,
                assume_yes=assume_yes,
                interactive=not no_input,
            )
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except RouletteError as e:
        click.echo(f"Error: {e}", err=True)
        log.debug("project_resolution_error", exc_info=True)
        sys.exit(EXIT_PROJECT_ERROR)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(EXIT_INTERRUPTED)

    sys.exit(exit_code)


def run_roulette(
    tracker: IssueTracker,
    settings: RouletteSettings,
    assignment: Assignment,
    rng: random.Random | None = None,
    dry_run: bool = False,
    assume_yes: bool = False,
    interactive: bool = True,
) -> int:
    """Resolve the project, show the assignment, and apply it.

    When the settings select issues by milestone or range, ``assignment``
    is ignored and a new one is drawn with ``rng`` from the matching issues.

    Returns:
        Process exit code

    Raises:
        ProjectResolutionError: If the project cannot be determined
        ConfigurationError: If confirmation is needed but prompting is disabled
    """
    project = resolve_project(tracker, settings.url, interactive=interactive)

    if settings.selects_issues:
        selected = select_issues(tracker, project, milestone=settings.milestone, iid_range=settings.issue_range)
        if not selected:
            click.echo("No open issue matches the selection")
            return EXIT_SUCCESS
        issues = {issue.iid: issue for issue in selected}
        assignment = generate(list(issues), settings.members, rng=rng, strategy=settings.strategy)
    elif not assignment:
        click.echo("No issues to assign")
        return EXIT_SUCCESS
    else:
        issues = _fetch_issues(tracker, project, assignment)

    click.echo("")
    _print_assignment(tracker, project, assignment, issues)

    if dry_run:
        click.echo("\nDry run: no issue was assigned")
        return EXIT_SUCCESS

    if not assume_yes:
        if not interactive:
            raise ConfigurationError("Confirmation required: pass --yes to apply without prompting")
        if not click.confirm("Do you want to confirm this assignment?", default=False):
            click.echo("Exiting")
            return EXIT_SUCCESS

    results = apply(
        assignment,
        tracker,
        project,
        max_workers=settings.max_workers,
        on_result=_print_result,
    )
    summary = summarize(results)
    _print_summary(summary)
    return summary.exit_code


def resolve_project(tracker: IssueTracker, url: str, interactive: bool = True) -> Project:
    """Find the configured project, falling back to asking the user.

    Raises:
        ProjectResolutionError: If nothing matches and no choice can be made
    """
    project = tracker.resolve_project(url)
    if project is not None:
        click.echo(f"Found project: {project.name}")
        return project

    if not interactive:
        raise ProjectResolutionError(url)

    projects = tracker.list_projects()
    if not projects:
        raise ProjectResolutionError(url, f"No accessible project found for {url}, and the token has no projects")

    click.echo(f"No project found for {url}")
    for number, candidate in enumerate(projects, start=1):
        click.echo(f"  {number}. {candidate.path_with_namespace}")
    choice = click.prompt("Select a project", type=click.IntRange(1, len(projects)))

    project = projects[choice - 1]
    log.info("project_selected", project_id=project.id)
    return project


def _fetch_issues(tracker: IssueTracker, project: Project, assignment: Assignment) -> dict[IssueId, Issue]:
    iids = [issue for issue in assignment.issues if isinstance(issue, int)]
    if not iids:
        return {}
    try:
        return {issue.iid: issue for issue in tracker.list_issues(project, iids=iids)}
    except ExternalServiceError as e:
        log.warning("list_issues_failed", error=str(e))
        return {}


def _print_assignment(
    tracker: IssueTracker,
    project: Project,
    assignment: Assignment,
    issues: dict[IssueId, Issue],
) -> None:
    try:
        names = {member.username: str(member) for member in tracker.list_members(project)}
    except ExternalServiceError as e:
        log.warning("list_members_failed", error=str(e))
        names = {}

    for issue, member in assignment:
        click.echo(str(issues[issue]) if issue in issues else f"#{issue}")
        click.echo(f"\t{names.get(member, member)}")


def _print_result(result: ApplyResult) -> None:
    if result.succeeded:
        click.echo(f"  {click.style('[OK]', fg='green')} #{result.issue} -> {result.member}")
    else:
        assert result.error is not None
        click.echo(f"  {click.style('[FAIL]', fg='red')} #{result.issue} -> {result.member}: {result.error.cause}")


def _print_summary(summary: RunSummary) -> None:
    click.echo("")
    if summary.failed == 0:
        click.echo(click.style(f"{summary.succeeded} issues assigned!", fg="green", bold=True))
        return

    click.echo(
        click.style(
            f"{summary.succeeded} of {summary.total} issues assigned, {summary.failed} failed:",
            fg="red",
            bold=True,
        )
    )
    for failure in summary.failures:
        assert failure.error is not None
        click.echo(f"  {failure.error.message}")


if __name__ == "__main__":
    cli()
