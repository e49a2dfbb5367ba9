"""Issue tracker clients.

Key Components:
    - IssueTracker: Abstract capability interface used by the applier and CLI
    - GitLabRestProvider: GitLab REST API v4 implementation
"""

from gitlab_roulette.providers.base import IssueTracker
from gitlab_roulette.providers.gitlab_rest import GitLabRestProvider

__all__ = ["GitLabRestProvider", "IssueTracker"]
