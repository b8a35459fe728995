"""
Tests for bracket and schedule generation.
"""

import math
from itertools import combinations

import pytest

from src.tournament.models import BYE, Match, Stage
from src.tournament.scheduler import (
    build_knockout, build_round_robin, build_groups, assign_groups, group_label,
    circle_rounds, tie_winner, num_knockout_rounds, num_round_robin_rounds, num_pairings
)
from src.utils.errors import InvalidInputError


def ids(n):
    return [f"p{i}" for i in range(n)]


class TestKnockout:
    """Tests for knockout brackets."""

    def test_four_participants(self):
        """Round 0 pairs neighbours, round 1 is the final fed by both."""
        matches = build_knockout(["A", "B", "C", "D"])
        round0 = [m for m in matches if m.round == 0]
        finals = [m for m in matches if m.round == 1]

        assert [(m.slot1, m.slot2) for m in round0] == [("A", "B"), ("C", "D")]
        assert len(finals) == 1
        final = finals[0]
        assert final.feeds_into is None
        assert all(m.feeds_into == final.match_id for m in round0)
        assert final.slot1 is None and final.slot2 is None

    def test_round_count_and_single_terminal(self):
        """ceil(log2 N) rounds and exactly one terminal match."""
        for n in range(2, 20):
            matches = build_knockout(ids(n))
            rounds = {m.round for m in matches}
            assert len(rounds) == math.ceil(math.log2(n)), n
            assert len(rounds) == num_knockout_rounds(n)
            assert sum(1 for m in matches if m.feeds_into is None) == 1, n

    def test_feeds_into_later_round(self):
        """Every link points to a strictly later round."""
        for n in range(2, 20):
            matches = build_knockout(ids(n))
            by_id = {m.match_id: m for m in matches}
            for m in matches:
                if m.feeds_into is not None:
                    assert by_id[m.feeds_into].round > m.round

    def test_every_match_has_two_sources(self):
        """Each later-round match is fed by exactly two entries."""
        for n in range(3, 20):
            matches = build_knockout(ids(n))
            for target in [m for m in matches if m.round > 0]:
                sources = [m for m in matches if m.feeds_into == target.match_id]
                assert len(sources) == 2

    def test_odd_participant_gets_bye(self):
        """The trailing participant advances straight into the next round."""
        matches = build_knockout(["A", "B", "C"])
        byes = [m for m in matches if m.is_bye]
        assert len(byes) == 1
        bye = byes[0]
        assert bye.slot1 == "C" and bye.slot2 == BYE
        assert bye.winner == "C"
        assert bye.score1 is None and bye.score2 is None

        final = next(m for m in matches if m.feeds_into is None)
        assert "C" in final.participants

    def test_leftover_carried_forward(self):
        """With 5 participants the bye skips round 1 and meets the semi winner."""
        matches = build_knockout(ids(5))
        bye = next(m for m in matches if m.is_bye)
        target = next(m for m in matches if m.match_id == bye.feeds_into)
        assert target.round == 2
        assert target.feeds_into is None
        assert len([m for m in matches if m.round == 1]) == 1

    def test_two_legged(self):
        """Each pairing becomes two mirrored, linked legs."""
        matches = build_knockout(["A", "B", "C", "D"], two_legged=True)
        assert len(matches) == 6

        by_id = {m.match_id: m for m in matches}
        leg1s = [m for m in matches if m.leg == 1]
        assert len(leg1s) == 3
        for leg1 in leg1s:
            leg2 = by_id[leg1.partner_id]
            assert leg2.leg == 2
            assert leg2.partner_id == leg1.match_id
            assert (leg2.slot1, leg2.slot2) == (leg1.slot2, leg1.slot1)
            assert (leg2.round, leg2.position) == (leg1.round, leg1.position)
            assert leg2.feeds_into == leg1.feeds_into

        final_leg1 = next(m for m in leg1s if m.round == 1)
        for m in matches:
            if m.round == 0:
                assert m.feeds_into == final_leg1.match_id

    def test_too_few_participants(self):
        """A bracket needs two participants."""
        with pytest.raises(InvalidInputError):
            build_knockout(["A"])
        with pytest.raises(InvalidInputError):
            build_knockout([])


class TestRoundRobin:
    """Tests for circle-method schedules."""

    def test_even_count(self):
        """Each pair once, n-1 rounds of n/2 matches."""
        matches = build_round_robin(ids(6))
        assert len(matches) == 15
        pairs = {frozenset(m.participants) for m in matches}
        assert pairs == {frozenset(p) for p in combinations(ids(6), 2)}

        rounds = {m.round for m in matches}
        assert rounds == set(range(5))
        for r in rounds:
            in_round = [m for m in matches if m.round == r]
            assert len(in_round) == 3
            players = [p for m in in_round for p in m.participants]
            assert len(players) == len(set(players))

    def test_participant_appearances(self):
        """Each participant plays n-1 matches."""
        for n in range(2, 10):
            matches = build_round_robin(ids(n))
            for p in ids(n):
                assert sum(1 for m in matches if m.involves(p)) == n - 1

    def test_odd_count_omits_bye(self):
        """Five participants give five rounds of two matches."""
        matches = build_round_robin(ids(5))
        assert len(matches) == 10
        assert all(BYE not in m.participants for m in matches)
        for r in range(5):
            assert len([m for m in matches if m.round == r]) == 2
        assert num_round_robin_rounds(5) == 5

    def test_positions_within_round(self):
        """Positions count the real matches of each round."""
        matches = build_round_robin(ids(5))
        for r in range(5):
            positions = sorted(m.position for m in matches if m.round == r)
            assert positions == [0, 1]

    def test_second_leg_swaps_and_offsets(self):
        """Leg 2 repeats the schedule with swapped order and later rounds."""
        matches = build_round_robin(ids(4), legs_per_pairing=2)
        assert len(matches) == num_pairings(4, 2) == 12

        first_leg = [m for m in matches if m.round < 3]
        second_leg = [m for m in matches if m.round >= 3]
        assert len(first_leg) == len(second_leg) == 6

        for a, b in zip(first_leg, second_leg):
            assert b.round == a.round + 3
            assert (b.slot1, b.slot2) == (a.slot2, a.slot1)

    def test_stage_and_group_tags(self):
        """Generated matches carry the requested stage and group."""
        matches = build_round_robin(ids(3), stage=Stage.GROUP, group="B")
        assert all(m.stage == Stage.GROUP and m.group == "B" for m in matches)

    def test_degenerate_inputs(self):
        """Fewer than two participants give no matches; zero legs are rejected."""
        assert build_round_robin(["solo"]) == []
        with pytest.raises(InvalidInputError):
            build_round_robin(ids(4), legs_per_pairing=0)

    def test_circle_rounds_fix_first(self):
        """The first participant stays in the first pairing of every round."""
        for pairs in circle_rounds(ids(6)):
            assert pairs[0][0] == "p0"


class TestGroups:
    """Tests for group partitioning."""

    def test_balanced_assignment(self):
        """Index-modulo assignment keeps group sizes within one."""
        groups = assign_groups(ids(7), 3)
        assert groups == {
            "A": ["p0", "p3", "p6"],
            "B": ["p1", "p4"],
            "C": ["p2", "p5"],
        }

    def test_empty_groups_dropped(self):
        """More groups than participants leaves no empty groups."""
        groups = assign_groups(ids(3), 5)
        assert list(groups) == ["A", "B", "C"]
        assert all(len(members) == 1 for members in groups.values())

    def test_build_groups_schedules_each_group(self):
        """Each group gets its own round robin."""
        groups, matches = build_groups(ids(8), 2)
        assert len(matches) == 12
        for label, members in groups.items():
            group_matches = [m for m in matches if m.group == label]
            assert len(group_matches) == 6
            for m in group_matches:
                assert m.stage == Stage.GROUP
                assert set(m.participants) <= set(members)

    def test_invalid_group_count(self):
        """Zero groups are rejected."""
        with pytest.raises(InvalidInputError):
            assign_groups(ids(4), 0)

    def test_group_labels(self):
        """Labels run A..Z then AA."""
        assert group_label(0) == "A"
        assert group_label(25) == "Z"
        assert group_label(26) == "AA"


class TestTieWinner:
    """Tests for two-legged aggregate resolution."""

    def _legs(self, s1, s2, t1, t2):
        leg1 = Match("l1", "a", "b", 0, 0, Stage.KNOCKOUT, leg=1, partner_id="l2")
        leg2 = Match("l2", "b", "a", 0, 0, Stage.KNOCKOUT, leg=2, partner_id="l1")
        leg1.set_result("a" if s1 > s2 else "b", s1, s2)
        leg2.set_result("b" if t1 > t2 else "a", t1, t2)
        return leg1, leg2

    def test_aggregate_winner(self):
        """Larger aggregate differential wins even after losing a leg."""
        # a: +2 then -1
        assert tie_winner(*self._legs(3, 1, 3, 2)) == "a"
        # a: +1 then -3
        assert tie_winner(*self._legs(3, 2, 3, 0)) == "b"

    def test_level_aggregate_is_undecided(self):
        """Equal aggregates leave the tie open."""
        assert tie_winner(*self._legs(3, 1, 3, 1)) is None

    def test_needs_both_legs(self):
        """An unplayed leg leaves the tie open."""
        leg1 = Match("l1", "a", "b", 0, 0, Stage.KNOCKOUT, leg=1)
        leg2 = Match("l2", "b", "a", 0, 0, Stage.KNOCKOUT, leg=2)
        leg1.set_result("a", 3, 0)
        assert tie_winner(leg1, leg2) is None
