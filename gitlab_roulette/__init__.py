"""gitlab-roulette: randomly assign GitLab issues to project members."""

__version__ = "0.1.0"
