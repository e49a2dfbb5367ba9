"""Utility modules for gitlab-roulette.

Key Components:
    - logging_config: Structured logging setup with structlog
    - retry: Retry decorator for transient transport failures
"""
