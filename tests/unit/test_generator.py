"""Tests for gitlab_roulette/assignment/generator.py."""

import random
from collections import Counter
from unittest.mock import MagicMock

import pytest

from gitlab_roulette.assignment.generator import BALANCED, UNIFORM, generate
from gitlab_roulette.exceptions import ConfigurationError, DuplicateIssueError, NoMembersError
from gitlab_roulette.models.domain import Assignment


class TestGenerateCardinality:
    """Every issue gets exactly one member."""

    @pytest.mark.parametrize("strategy", [UNIFORM, BALANCED])
    @pytest.mark.parametrize("issue_count", [1, 2, 7, 50])
    @pytest.mark.parametrize("members", [["alice"], ["alice", "bob"], ["a", "b", "c", "d", "e"]])
    def test_one_entry_per_issue(self, rng, strategy, issue_count, members):
        issues = list(range(1, issue_count + 1))

        assignment = generate(issues, members, rng=rng, strategy=strategy)

        assert len(assignment) == issue_count
        assert set(assignment.issues) == set(issues)
        assert set(assignment.as_dict().values()) <= set(members)

    def test_preserves_issue_order(self, rng):
        issues = [30, 4, "ops-12", 17]

        assignment = generate(issues, ["alice", "bob"], rng=rng)

        assert assignment.issues == tuple(issues)
        assert [issue for issue, _ in assignment] == issues

    def test_single_member_gets_everything(self, rng):
        assignment = generate([1, 2, 3], ["alice"], rng=rng)

        assert assignment.as_dict() == {1: "alice", 2: "alice", 3: "alice"}

    def test_default_random_source(self):
        assignment = generate([1, 2, 3], ["alice", "bob"])

        assert len(assignment) == 3


class TestGenerateEdgeCases:
    """Empty inputs, duplicates and invalid strategies."""

    @pytest.mark.parametrize("issues", [[], [5], [1, 2, 3]])
    def test_no_members_fails(self, issues):
        with pytest.raises(NoMembersError):
            generate(issues, [])

    def test_no_members_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            generate([5], [])

    @pytest.mark.parametrize("strategy", [UNIFORM, BALANCED])
    def test_empty_issues_never_draws(self, strategy):
        rng = MagicMock(spec=random.Random)

        assignment = generate([], ["alice", "bob"], rng=rng, strategy=strategy)

        assert assignment == Assignment()
        assert len(assignment) == 0
        assert rng.method_calls == []

    def test_duplicate_issues_rejected(self, rng):
        with pytest.raises(DuplicateIssueError) as exc_info:
            generate([1, 2, 1, 3, 2], ["alice"], rng=rng)

        assert exc_info.value.duplicates == [1, 2]
        assert "1, 2" in exc_info.value.message

    def test_duplicate_members_are_distinct_targets(self):
        rng = MagicMock(spec=random.Random)
        rng.choice.side_effect = lambda seq: seq[1]

        assignment = generate([1], ["alice", "alice", "bob"], rng=rng)

        assert assignment[1] == "alice"
        rng.choice.assert_called_once_with(["alice", "alice", "bob"])

    def test_unknown_strategy(self, rng):
        with pytest.raises(ConfigurationError, match="Unknown assignment strategy"):
            generate([1], ["alice"], rng=rng, strategy="round-robin")


class TestRandomness:
    """Seeding and distribution behaviour."""

    @pytest.mark.parametrize("strategy", [UNIFORM, BALANCED])
    def test_same_seed_same_assignment(self, strategy):
        issues = list(range(20))
        members = ["alice", "bob", "carol"]

        first = generate(issues, members, rng=random.Random(99), strategy=strategy)
        second = generate(issues, members, rng=random.Random(99), strategy=strategy)

        assert first == second

    def test_uniform_draws_once_per_issue(self):
        rng = MagicMock(spec=random.Random)
        rng.choice.side_effect = lambda seq: seq[0]

        generate([1, 2, 3, 4], ["alice", "bob"], rng=rng, strategy=UNIFORM)

        assert rng.choice.call_count == 4

    def test_uniform_reaches_every_member(self):
        members = ["alice", "bob", "carol"]

        assignment = generate(list(range(300)), members, rng=random.Random(7))

        assert assignment.members == frozenset(members)

    def test_balanced_even_split(self, rng):
        members = ["alice", "bob", "carol", "dave", "erin"]

        assignment = generate(list(range(10)), members, rng=rng, strategy=BALANCED)

        assert Counter(assignment.as_dict().values()) == {member: 2 for member in members}

    def test_balanced_remainder_drawn_at_random(self, rng):
        members = ["alice", "bob", "carol"]

        assignment = generate(list(range(7)), members, rng=rng, strategy=BALANCED)

        load = Counter(assignment.as_dict().values())
        assert sum(load.values()) == 7
        assert all(load[member] >= 2 for member in members)

    def test_balanced_fewer_issues_than_members(self, rng):
        assignment = generate([1, 2], ["alice", "bob", "carol"], rng=rng, strategy=BALANCED)

        assert len(assignment) == 2
        assert set(assignment.as_dict().values()) <= {"alice", "bob", "carol"}
