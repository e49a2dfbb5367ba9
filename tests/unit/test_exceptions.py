"""Tests for the gitlab-roulette exception hierarchy."""

import pytest

from gitlab_roulette.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DuplicateIssueError,
    ExternalServiceError,
    ForbiddenError,
    NoMembersError,
    NotAMemberError,
    NotFoundError,
    PerIssueApplyError,
    ProjectResolutionError,
    RouletteError,
    TransportError,
)


@pytest.mark.parametrize(
    "exc_class,parent",
    [
        (ConfigurationError, RouletteError),
        (NoMembersError, ConfigurationError),
        (DuplicateIssueError, ConfigurationError),
        (ProjectResolutionError, RouletteError),
        (ExternalServiceError, RouletteError),
        (AuthenticationError, ExternalServiceError),
        (ForbiddenError, ExternalServiceError),
        (NotFoundError, ExternalServiceError),
        (NotAMemberError, ExternalServiceError),
        (TransportError, ExternalServiceError),
        (PerIssueApplyError, RouletteError),
    ],
)
def test_hierarchy(exc_class, parent):
    assert issubclass(exc_class, parent)


def test_base_message():
    error = RouletteError("something broke")

    assert error.message == "something broke"
    assert str(error) == "something broke"


def test_no_members_default_message():
    assert NoMembersError().message == "No members to assign the issues to"


def test_external_service_error_status():
    error = ExternalServiceError("PUT /projects/7/issues/2 failed", status_code=500, response_text="oops")

    assert error.message == "PUT /projects/7/issues/2 failed"
    assert str(error) == "PUT /projects/7/issues/2 failed (HTTP 500)"
    assert error.status_code == 500
    assert error.response_text == "oops"


def test_external_service_error_without_status():
    assert str(TransportError("connection refused")) == "connection refused"


def test_project_resolution_error():
    error = ProjectResolutionError("https://gitlab.example.com/nope")

    assert error.url == "https://gitlab.example.com/nope"
    assert "https://gitlab.example.com/nope" in error.message


def test_per_issue_apply_error():
    cause = ForbiddenError("forbidden", status_code=403)

    error = PerIssueApplyError(12, "alice", cause)

    assert error.issue == 12
    assert error.member == "alice"
    assert error.cause is cause
    assert error.message == "Failed to assign issue 12 to alice: forbidden (HTTP 403)"


def test_per_issue_apply_error_empty_cause():
    error = PerIssueApplyError(12, "alice", RuntimeError())

    assert error.message.endswith(": RuntimeError")
