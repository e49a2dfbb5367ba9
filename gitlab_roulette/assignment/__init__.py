"""Assignment generation and application.

Key Exports:
    generate: Build a random issue -> member Assignment
    select_issues: Pick open issues by milestone or iid range
    apply: Send an Assignment to an issue tracker, one call per issue
    summarize: Aggregate apply results into a RunSummary
"""

from gitlab_roulette.assignment.applier import apply, summarize
from gitlab_roulette.assignment.generator import BALANCED, STRATEGIES, UNIFORM, generate
from gitlab_roulette.assignment.selection import select_issues

__all__ = ["BALANCED", "STRATEGIES", "UNIFORM", "apply", "generate", "select_issues", "summarize"]
