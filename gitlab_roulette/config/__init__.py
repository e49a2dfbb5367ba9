"""Configuration for gitlab-roulette.

Example:
    >>> from gitlab_roulette.config import RouletteSettings
    >>> settings = RouletteSettings.load("gitlab-roulette.yaml", {"token": "glpat-..."})
    >>> settings.members
    ['alice', 'bob']
"""

from gitlab_roulette.config.settings import DEFAULT_CONFIG_FILE, RouletteSettings

__all__ = ["DEFAULT_CONFIG_FILE", "RouletteSettings"]
