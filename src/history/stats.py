"""
Statistics derived from the duel history.
"""
from collections import Counter
from typing import Dict, Iterator, List, Any, Optional, Tuple

from src.history.records import DuelKind, DuelRecord


class DuelHistory:
    """
    Chronological list of duel records.

    Records are appended as duels resolve; queries scan the list, so the
    history is the single source for streak and rivalry statistics.
    """

    def __init__(self, records: Optional[List[DuelRecord]] = None):
        self.records: List[DuelRecord] = list(records or [])

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[DuelRecord]:
        return iter(self.records)

    def append(self, record: DuelRecord):
        self.records.append(record)

    def recent(self, count: int = 10) -> List[DuelRecord]:
        """Most recent records, newest first."""
        if count <= 0:
            return []
        return list(reversed(self.records[-count:]))

    def for_competitor(self, competitor_id: str) -> List[DuelRecord]:
        return [r for r in self.records if r.involves(competitor_id)]

    def by_kind(self, kind: DuelKind) -> List[DuelRecord]:
        return [r for r in self.records if r.kind == kind]

    def for_tournament(self, tournament_id: str) -> List[DuelRecord]:
        return [r for r in self.records if r.tournament_id == tournament_id]

    def win_rate(self, competitor_id: str) -> float:
        """Fraction of recorded duels won, 0.0 with no duels."""
        duels = self.for_competitor(competitor_id)
        if not duels:
            return 0.0
        wins = sum(1 for r in duels if r.won_by(competitor_id))
        return wins / len(duels)

    def longest_streak(self, competitor_id: str) -> int:
        """Longest run of consecutive wins in chronological order."""
        streak = 0
        best = 0
        for record in self.for_competitor(competitor_id):
            if record.won_by(competitor_id):
                streak += 1
                best = max(best, streak)
            else:
                streak = 0
        return best

    def rival_victories(self, competitor_id: str) -> Optional[Tuple[str, int]]:
        """
        Opponent beaten most often by a competitor.

        Only roster opponents count. Ties go to the opponent beaten first.

        Returns:
            (opponent id, wins) or None if the competitor never beat anyone
        """
        wins: Counter = Counter()
        for record in self.for_competitor(competitor_id):
            opponent = record.opponent_of(competitor_id)
            if opponent is not None and record.won_by(competitor_id):
                wins[opponent] += 1
        if not wins:
            return None
        return wins.most_common(1)[0]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {"records": [r.to_dict() for r in self.records]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DuelHistory':
        """Create from dictionary."""
        return cls([DuelRecord.from_dict(r) for r in data.get("records", [])])
