"""Pytest configuration and shared fixtures."""

import os
import random
import threading
from pathlib import Path

import pytest
import structlog

from gitlab_roulette.models.domain import Issue, IssueId, Member, MemberId, Project
from gitlab_roulette.providers.base import IssueTracker

PROJECT_URL = "https://gitlab.example.com/team/backend"


class FakeTracker(IssueTracker):
    """In-memory issue tracker recording every assignment call."""

    def __init__(
        self,
        projects: list[Project] | None = None,
        members: list[Member] | None = None,
        issues: list[Issue] | None = None,
        failures: dict[IssueId, Exception] | None = None,
    ) -> None:
        self.projects = projects if projects is not None else [sample_project()]
        self.members = members if members is not None else sample_members()
        self.issues = issues if issues is not None else sample_issues()
        self.failures = failures or {}
        self.calls: list[tuple[IssueId, MemberId]] = []
        self._lock = threading.Lock()

    def resolve_project(self, url: str) -> Project | None:
        return next((p for p in self.projects if p.web_url == url.rstrip("/")), None)

    def list_projects(self) -> list[Project]:
        return list(self.projects)

    def list_members(self, project: Project) -> list[Member]:
        return list(self.members)

    def list_issues(self, project: Project, milestone: str | None = None, iids=None) -> list[Issue]:
        return [
            issue
            for issue in self.issues
            if (milestone is None or issue.milestone == milestone) and (iids is None or issue.iid in iids)
        ]

    def set_assignee(self, project: Project, issue: IssueId, member: MemberId) -> None:
        with self._lock:
            self.calls.append((issue, member))
        if issue in self.failures:
            raise self.failures[issue]


def sample_project() -> Project:
    return Project(id=7, name="Backend", path_with_namespace="team/backend", web_url=PROJECT_URL)


def sample_issues() -> list[Issue]:
    return [
        Issue(iid=1, title="Fix login redirect", milestone="Sprint 1"),
        Issue(iid=2, title="Add search endpoint", milestone="Sprint 1"),
        Issue(iid=3, title="Update install docs"),
        Issue(iid=5, title="Drop legacy settings", milestone="Sprint 2"),
        Issue(iid=8, title="Cache project list", milestone="Sprint 2"),
    ]


def sample_members() -> list[Member]:
    return [
        Member(id=1, username="alice", name="Alice Liddell"),
        Member(id=2, username="bob", name="Bob Stone"),
    ]


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo configure_logging calls so later tests never log to a closed stream."""
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep GITLAB_ROULETTE_* variables of the developer's shell out of tests."""
    for name in list(os.environ):
        if name.upper().startswith("GITLAB_ROULETTE_"):
            monkeypatch.delenv(name)


@pytest.fixture
def project() -> Project:
    return sample_project()


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def make_tracker():
    """Factory for FakeTracker instances with custom projects, members, issues or failures."""
    return FakeTracker


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for deterministic draws."""
    return random.Random(1234)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A complete configuration file."""
    path = tmp_path / "gitlab-roulette.yaml"
    path.write_text(
        f"""
url: {PROJECT_URL}
token: glpat-test-token
issues: [1, 2, 3]
members: [alice, bob]
"""
    )
    return path
