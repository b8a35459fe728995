"""
Tests for duel history and derived statistics.
"""

from src.history import DuelHistory, DuelKind, DuelRecord


def rec(first, second, winner, score=(3, 1), kind=DuelKind.NORMAL, **kwargs):
    s1, s2 = score if winner == first else (score[1], score[0])
    return DuelRecord(first_id=first, second_id=second, score1=s1, score2=s2,
                      winner_id=winner, kind=kind, **kwargs)


class TestDuelRecord:
    """Tests for single records."""

    def test_generated_fields(self):
        """Records get an id and a timestamp."""
        record = rec("a", "b", "a")
        assert record.record_id
        assert record.timestamp
        assert rec("a", "b", "a").record_id != record.record_id

    def test_loser_and_opponent(self):
        """Loser and opponent are derived from the sides."""
        record = rec("a", "b", "b")
        assert record.loser_id == "a"
        assert record.opponent_of("a") == "b"
        assert record.opponent_of("b") == "a"

    def test_synthetic_side(self):
        """A world duel lost to a generated opponent has no winner id."""
        record = DuelRecord(first_id="a", second_id=None, score1=1, score2=3,
                            winner_id=None, kind=DuelKind.WORLD, second_name="Golem (Bot)")
        assert record.loser_id == "a"
        assert not record.won_by("a")
        assert record.opponent_of("a") is None

    def test_serialization(self):
        """Records survive a dict round trip."""
        record = rec("a", "b", "a", kind=DuelKind.TOURNAMENT, tournament_id="t1", tournament_name="Cup")
        data = record.to_dict()
        assert data["kind"] == "tournament"
        assert DuelRecord.from_dict(data) == record


class TestDuelHistory:
    """Tests for history statistics."""

    def _history(self):
        history = DuelHistory()
        for record in [
            rec("a", "b", "a"),
            rec("a", "c", "a"),
            rec("b", "a", "a"),
            rec("a", "c", "c"),
            rec("a", "b", "a"),
            rec("b", "c", "b"),
        ]:
            history.append(record)
        return history

    def test_for_competitor(self):
        """Only duels involving the competitor are returned."""
        history = self._history()
        assert len(history) == 6
        assert len(history.for_competitor("a")) == 5
        assert len(history.for_competitor("c")) == 3

    def test_win_rate(self):
        """Win rate is computed from recorded duels."""
        history = self._history()
        assert history.win_rate("a") == 4 / 5
        assert history.win_rate("nobody") == 0.0

    def test_longest_streak(self):
        """Streaks follow chronological order."""
        history = self._history()
        assert history.longest_streak("a") == 3
        assert history.longest_streak("c") == 1
        assert history.longest_streak("b") == 1

    def test_rival_victories(self):
        """The most-beaten opponent is reported with the win count."""
        history = self._history()
        assert history.rival_victories("a") == ("b", 3)
        assert history.rival_victories("c") == ("a", 1)

    def test_rival_ignores_synthetic(self):
        """Generated opponents are not rivals."""
        history = DuelHistory()
        history.append(DuelRecord("a", None, 3, 0, "a", DuelKind.WORLD))
        assert history.rival_victories("a") is None

    def test_filters(self):
        """Records can be filtered by kind and tournament."""
        history = DuelHistory()
        history.append(rec("a", "b", "a", kind=DuelKind.TOURNAMENT, tournament_id="t1"))
        history.append(rec("a", "b", "b"))
        assert len(history.by_kind(DuelKind.TOURNAMENT)) == 1
        assert len(history.for_tournament("t1")) == 1

    def test_recent_newest_first(self):
        """Recent records come newest first."""
        history = self._history()
        recent = history.recent(2)
        assert [r.winner_id for r in recent] == ["b", "a"]
        assert history.recent(0) == []

    def test_serialization(self):
        """Histories survive a dict round trip in order."""
        history = self._history()
        restored = DuelHistory.from_dict(history.to_dict())
        assert [r.record_id for r in restored] == [r.record_id for r in history]
