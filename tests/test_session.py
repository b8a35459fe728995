"""
Tests for the arena session.
"""

import pytest

from src.arena.competitor import Rarity
from src.arena.session import ArenaSession, SessionConfig
from src.history import DuelKind
from src.season.league import SeasonConfig
from src.tournament.engine import ApplyStatus
from src.tournament.models import Stage, TournamentFormat, TournamentSettings
from src.utils.errors import InvalidInputError, UnknownCompetitorError, UnknownTournamentError


def session_with(n, threshold=100, seed=1, divisions=1):
    config = SessionConfig(season=SeasonConfig(duel_threshold=threshold), seed=seed,
                           initial_divisions=divisions)
    session = ArenaSession(config)
    ids = [session.add_competitor(f"C{i}", rarity=Rarity.NORMAL).competitor_id for i in range(n)]
    return session, ids


class TestRoster:
    """Tests for roster and division management."""

    def test_new_competitors_enter_lowest_division(self):
        """Competitors join the lowest unlocked division."""
        session, ids = session_with(2)
        assert all(session.get_competitor(cid).division == 1 for cid in ids)
        session.unlock_division()
        late = session.add_competitor("Late")
        assert late.division == 2

    def test_rarity_rolled_when_missing(self):
        """A rarity is always assigned."""
        session = ArenaSession(SessionConfig(seed=5))
        assert isinstance(session.add_competitor("X").rarity, Rarity)

    def test_duplicate_id_rejected(self):
        """Ids are unique within the roster."""
        session = ArenaSession(SessionConfig(seed=5))
        session.add_competitor("X", competitor_id="x")
        with pytest.raises(InvalidInputError):
            session.add_competitor("Y", competitor_id="x")

    def test_unknown_competitor(self):
        """Unknown ids raise a typed error."""
        session, _ = session_with(1)
        with pytest.raises(UnknownCompetitorError):
            session.get_competitor("ghost")

    def test_unlock_limit(self):
        """Only the configured number of divisions can be unlocked."""
        session, _ = session_with(0)
        assert session.unlock_division() == 2
        assert session.unlock_division() == 3
        with pytest.raises(InvalidInputError):
            session.unlock_division()

    def test_remove_division_moves_members_up(self):
        """Members of a removed division join the one above."""
        session, _ = session_with(0, divisions=2)
        bottom = session.add_competitor("Bottom")
        assert bottom.division == 2
        changes = session.remove_division()
        assert bottom.division == 1
        assert session.unlocked_divisions == 1
        assert [(c.from_division, c.to_division) for c in changes] == [(2, 1)]
        with pytest.raises(InvalidInputError):
            session.remove_division()

    def test_invalid_initial_divisions(self):
        """Initial divisions must be within the configured range."""
        with pytest.raises(InvalidInputError):
            ArenaSession(SessionConfig(initial_divisions=4))


class TestDuels:
    """Tests for normal and world duels."""

    def test_duel_updates_everything(self):
        """A duel updates both competitors, history and the counter."""
        session, (a, b) = session_with(2)
        report = session.duel(a, b)

        winner = session.get_competitor(report.outcome.winner_id)
        loser_id = b if winner.competitor_id == a else a
        assert winner.stats.wins == 1
        assert winner.stats.league_points == report.outcome.differential
        assert session.get_competitor(loser_id).stats.losses == 1
        assert len(session.history) == 1
        assert report.record.kind == DuelKind.NORMAL
        assert session.duel_count == 1
        assert report.accepted

    def test_favored_must_be_in_duel(self):
        """Favoring a bystander is rejected."""
        session, (a, b, c) = session_with(3)
        with pytest.raises(InvalidInputError):
            session.duel(a, b, favored_id=c)
        report = session.duel(a, b, favored_id=a)
        assert session.get_competitor(a).stats.favored_count == 1
        assert report.record is not None

    def test_world_duel(self):
        """World duels never add the opponent to the roster."""
        session, (a,) = session_with(1)
        report = session.world_duel(a)
        assert len(session.roster) == 1
        assert report.record.kind == DuelKind.WORLD
        assert report.record.second_id is None
        assert report.record.second_name.endswith("(Bot)")
        assert len(report.deltas) == 1

    def test_season_runs_once_at_threshold(self):
        """The season closes exactly when the counter reaches the threshold."""
        session, (a, b) = session_with(2, threshold=3)
        reports = [session.duel(a, b) for _ in range(3)]

        assert [r.season is not None for r in reports] == [False, False, True]
        assert session.duel_count == 0
        assert session.seasons_played == 1
        assert all(c.stats.league_points == 0 for c in session.competitors)
        champion = session.get_competitor(reports[-1].season.champion_id)
        assert champion.stats.championships == 1

    def test_standings(self):
        """Division tables come from league points."""
        session, (a, b) = session_with(2)
        session.duel(a, b)
        table = session.standings(1)
        assert table[0].points > 0
        with pytest.raises(InvalidInputError):
            session.standings(2)

    def test_sessions_are_independent(self):
        """Two sessions share no counters."""
        first, (a, b) = session_with(2)
        second, _ = session_with(2)
        first.duel(a, b)
        assert first.duel_count == 1
        assert second.duel_count == 0
        assert len(second.history) == 0


class TestTournaments:
    """Tests for tournaments played through the session."""

    def test_play_to_completion(self):
        """Playing every match crowns a champion and records every duel."""
        session, ids = session_with(6, seed=11)
        t = session.create_tournament("Cup", ids, TournamentFormat.KNOCKOUT)

        played = 0
        while not t.is_finished:
            report = session.play_match(t.tournament_id)
            assert report.accepted
            played += 1

        assert played == 5
        assert len(session.history.for_tournament(t.tournament_id)) == 5
        assert session.duel_count == 5
        champion = session.get_competitor(t.winner)
        assert champion.stats.championships == 1
        assert sum(c.stats.wins for c in session.competitors) == 5
        assert sum(c.stats.losses for c in session.competitors) == 5

    def test_duplicate_result_changes_nothing(self):
        """A re-sent result leaves statistics, history and counter alone."""
        session, (a, b, c, d) = session_with(4)
        t = session.create_tournament("Cup", [a, b, c, d], TournamentFormat.KNOCKOUT)
        match = t.round_matches(Stage.KNOCKOUT, 0)[0]

        first = session.submit_result(t.tournament_id, match.match_id, a, 3, 1)
        assert first.accepted
        wins = session.get_competitor(a).stats.wins

        again = session.submit_result(t.tournament_id, match.match_id, a, 3, 1)
        assert not again.accepted
        assert session.get_competitor(a).stats.wins == wins
        assert len(session.history) == 1
        assert session.duel_count == 1

    def test_record_by_pair(self):
        """Results can be submitted by competitor pair."""
        session, (a, b) = session_with(2)
        t = session.create_tournament("Duo", [a, b], TournamentFormat.LEAGUE,
                                      TournamentSettings(legs_per_pairing=2))
        session.record_tournament_duel(t.tournament_id, b, a, b, 3, 2)
        session.record_tournament_duel(t.tournament_id, a, b, a, 3, 0)
        assert t.is_finished
        assert t.winner == a
        # re-delivery is ignored
        repeat = session.record_tournament_duel(t.tournament_id, a, b, a, 3, 0)
        assert not repeat.accepted
        assert len(session.history) == 2

    def test_repeated_pair_result_in_double_league(self):
        """A repeated result for a pair that meets twice is not taken as the second meeting."""
        session, (a, b) = session_with(2)
        t = session.create_tournament("Duo", [a, b], TournamentFormat.LEAGUE,
                                      TournamentSettings(legs_per_pairing=2))
        assert session.record_tournament_duel(t.tournament_id, a, b, a, 3, 1).accepted

        repeat = session.record_tournament_duel(t.tournament_id, a, b, a, 3, 1)
        assert not repeat.accepted
        assert repeat.apply.status == ApplyStatus.DUPLICATE
        assert session.get_competitor(a).stats.wins == 1
        assert len(session.history) == 1
        assert session.duel_count == 1
        assert not t.is_finished

        # the same scoreline in the second meeting needs the leg
        second = session.record_tournament_duel(t.tournament_id, b, a, a, 1, 3, leg=2)
        assert second.accepted
        assert t.is_finished
        assert t.winner == a
        assert session.get_competitor(a).stats.wins == 2

    def test_repeated_pair_result_in_two_legged_tie(self):
        """Re-sending a first-leg result leaves the second leg open."""
        session, (a, b, c, d) = session_with(4)
        t = session.create_tournament("Cup", [a, b, c, d], TournamentFormat.KNOCKOUT,
                                      TournamentSettings(two_legged=True))
        leg1, leg2 = t.round_matches(Stage.KNOCKOUT, 0)[:2]

        assert session.record_tournament_duel(t.tournament_id, a, b, a, 3, 0).accepted
        repeat = session.record_tournament_duel(t.tournament_id, a, b, a, 3, 0)

        assert not repeat.accepted
        assert session.get_competitor(a).stats.wins == 1
        assert len(session.history) == 1
        assert leg1.is_decided and not leg2.is_decided

        # a new result for the pair goes to the open second leg
        assert session.record_tournament_duel(t.tournament_id, b, a, b, 3, 2).accepted
        assert leg2.winner == b
        assert (leg2.score1, leg2.score2) == (3, 2)

    def test_hybrid_through_session(self):
        """A hybrid tournament moves from league to playoff."""
        session, ids = session_with(5, seed=4)
        t = session.create_tournament("Hybrid", ids, TournamentFormat.LEAGUE_PLAYOFF,
                                      TournamentSettings(knockout_size=2))
        while not t.is_finished:
            session.play_match(t.tournament_id)
        assert len(t.match_list(Stage.KNOCKOUT)) == 1
        assert len(session.history) == 11

    def test_tournament_duels_count_toward_season(self):
        """Tournament duels advance the season counter."""
        session, (a, b) = session_with(2, threshold=1)
        t = session.create_tournament("Cup", [a, b], TournamentFormat.KNOCKOUT)
        report = session.play_match(t.tournament_id)
        assert report.season is not None
        assert session.duel_count == 0

    def test_unknown_tournament_and_participants(self):
        """Unknown ids are rejected before anything is created."""
        session, (a, b) = session_with(2)
        with pytest.raises(UnknownTournamentError):
            session.play_match("missing")
        with pytest.raises(UnknownCompetitorError):
            session.create_tournament("Cup", [a, "ghost"], TournamentFormat.KNOCKOUT)
        assert session.tournaments == {}

    def test_play_match_requires_ready_match(self):
        """A finished tournament has nothing left to play."""
        session, (a, b) = session_with(2)
        t = session.create_tournament("Cup", [a, b], TournamentFormat.KNOCKOUT)
        session.play_match(t.tournament_id)
        with pytest.raises(InvalidInputError):
            session.play_match(t.tournament_id)


class FixedRandom:
    """Returns the same value for every roll."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value

    def choice(self, seq):
        return seq[0]

    def randint(self, a, b):
        return a


class TestTower:
    """Tests for the tower climb."""

    def _session(self, level):
        session = ArenaSession(SessionConfig(), rng=FixedRandom(0.5))
        competitor = session.add_competitor("Climber", level=level, rarity=Rarity.NORMAL)
        return session, competitor

    def test_climb_stops_at_first_loss(self):
        """Floor N is a level-N bot; an even duel is lost."""
        session, climber = self._session(level=5)
        run = session.climb_tower(climber.competitor_id)

        assert run.floors_cleared == 4
        assert not run.completed
        assert len(run.reports) == 5
        assert run.reports[-1].outcome.winner_id is None
        assert climber.stats.tower_level == 4
        assert climber.stats.wins == 4 and climber.stats.losses == 1
        assert climber.stats.world_duel_wins == 0
        assert [r.kind for r in session.history] == [DuelKind.TOWER] * 5
        assert session.duel_count == 5

    def test_full_climb(self):
        """A strong competitor clears every floor."""
        session, climber = self._session(level=20)
        run = session.climb_tower(climber.competitor_id)
        assert run.completed
        assert run.floors_cleared == 10
        assert climber.stats.tower_level == 10
        assert all(r.record.second_name.endswith("(Bot)") for r in run.reports)

    def test_best_floor_is_kept(self):
        """A worse climb does not lower the recorded tower level."""
        session, climber = self._session(level=5)
        climber.stats.tower_level = 7
        session.climb_tower(climber.competitor_id)
        assert climber.stats.tower_level == 7

    def test_unknown_climber(self):
        session, _ = self._session(level=1)
        with pytest.raises(UnknownCompetitorError):
            session.climb_tower("ghost")
