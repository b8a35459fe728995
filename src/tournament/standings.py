"""
Point tables derived from match results.

A decided match awards its winner the absolute score differential; the
loser gets nothing. Tables are recomputed on demand and never stored.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from src.tournament.models import Match, Stage


@dataclass
class StandingEntry:
    """One row of a standings table."""
    competitor_id: str
    points: int = 0
    wins: int = 0
    played: int = 0

    @property
    def losses(self) -> int:
        return self.played - self.wins


def counts_for_standings(match: Match) -> bool:
    """Only genuine, fully recorded contests contribute to a table."""
    return match.is_decided and match.has_scores and not match.is_bye


def compute_standings(
    participant_ids: List[str],
    matches: Iterable[Match],
    stage: Optional[Stage] = None,
    group: Optional[str] = None
) -> List[StandingEntry]:
    """
    Rank participants by accumulated points.

    Ties keep the order of ``participant_ids``.

    Args:
        participant_ids: Participants to rank
        matches: Match list to aggregate
        stage: Only count matches of this stage
        group: Only count matches of this group

    Returns:
        StandingEntry list, best first
    """
    table: Dict[str, StandingEntry] = {
        p: StandingEntry(competitor_id=p) for p in participant_ids
    }

    for match in matches:
        if stage is not None and match.stage != stage:
            continue
        if group is not None and match.group != group:
            continue
        if not counts_for_standings(match):
            continue

        for side in match.participants:
            if side in table:
                table[side].played += 1

        entry = table.get(match.winner)
        if entry is not None:
            entry.points += abs(match.score1 - match.score2)
            entry.wins += 1

    # sorted() is stable, so equal points keep participant order
    return sorted(table.values(), key=lambda e: e.points, reverse=True)


def top_qualifiers(standings: List[StandingEntry], count: int) -> List[str]:
    """Ids of the first ``count`` entries of a table."""
    return [entry.competitor_id for entry in standings[:max(count, 0)]]
