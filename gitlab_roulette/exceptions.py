"""Custom exception hierarchy for gitlab-roulette.

Exception Hierarchy:
    RouletteError (base)
    ├── ConfigurationError
    │   ├── NoMembersError
    │   └── DuplicateIssueError
    ├── ProjectResolutionError
    ├── ExternalServiceError
    │   ├── AuthenticationError
    │   ├── ForbiddenError
    │   ├── NotFoundError
    │   ├── NotAMemberError
    │   └── TransportError
    └── PerIssueApplyError

Configuration and project resolution errors are fatal and abort the run
before (or instead of) any assignment call. Service errors raised while
assigning a single issue are wrapped in PerIssueApplyError and collected.

Example Usage:
    >>> from gitlab_roulette.exceptions import ConfigurationError
    >>> try:
    ...     settings = RouletteSettings.load(path)
    ... except ConfigurationError as e:
    ...     click.echo(f"Error: {e.message}", err=True)
"""

from typing import Any


class RouletteError(Exception):
    """Base exception for all gitlab-roulette errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(RouletteError):
    """Configuration-related errors.

    Raised before any remote call when the resolved configuration cannot
    produce a run.

    Examples:
        - Missing or malformed url
        - Missing token
        - Invalid YAML syntax in the config file
        - Empty member list
    """

    pass


class NoMembersError(ConfigurationError):
    """No member was supplied to assign issues to."""

    def __init__(self, message: str = "No members to assign the issues to") -> None:
        super().__init__(message)


class DuplicateIssueError(ConfigurationError):
    """The same issue identifier was supplied more than once.

    Attributes:
        duplicates: The repeated identifiers, in first-seen order
    """

    def __init__(self, duplicates: list[Any]) -> None:
        self.duplicates = duplicates
        listed = ", ".join(str(d) for d in duplicates)
        super().__init__(f"Duplicate issue identifiers: {listed}")


class ProjectResolutionError(RouletteError):
    """The configured url does not match any project accessible with the token.

    Attributes:
        url: The url that failed to resolve
    """

    def __init__(self, url: str, message: str | None = None) -> None:
        self.url = url
        super().__init__(message or f"No accessible project found for {url}")


class ExternalServiceError(RouletteError):
    """Communication with GitLab failed.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status code, when a response was received
        response_text: Response body text, when a response was received
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.response_text = response_text

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message)
        # Preserve original message (super sets self.message to full_message)
        self.message = message


class AuthenticationError(ExternalServiceError):
    """The token was rejected (HTTP 401)."""

    pass


class ForbiddenError(ExternalServiceError):
    """The token lacks permission for the operation (HTTP 403)."""

    pass


class NotFoundError(ExternalServiceError):
    """The project or issue does not exist or is not visible (HTTP 404)."""

    pass


class NotAMemberError(ExternalServiceError):
    """The username is not a member of the target project."""

    pass


class TransportError(ExternalServiceError):
    """The request never produced a response (DNS, connect, timeout...)."""

    pass


class PerIssueApplyError(RouletteError):
    """Assigning one issue failed.

    Recorded in the run summary; never aborts the remaining assignments.

    Attributes:
        issue: Issue identifier that could not be assigned
        member: Username the issue was meant for
        cause: The underlying exception
    """

    def __init__(self, issue: Any, member: str, cause: BaseException) -> None:
        self.issue = issue
        self.member = member
        self.cause = cause
        reason = str(cause) or type(cause).__name__
        super().__init__(f"Failed to assign issue {issue} to {member}: {reason}")
