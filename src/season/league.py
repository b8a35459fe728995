"""
Season cycle across divisions.

At the end of a season every active division is ranked by league points,
the top of the highest division is crowned champion, league points reset to
zero and competitors swap across adjacent division boundaries: the top of
the lower division is promoted and the bottom of the upper one relegated.
Division 1 relegates fewer competitors than the boundaries below it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional

from pydantic import BaseModel, Field

from src.arena.competitor import Competitor
from src.arena.progression import CompetitorDelta, award_championship
from src.tournament.standings import StandingEntry
from src.utils.constants import (
    LEAGUE_RESET_LIMIT, MAX_DIVISIONS, PROMOTION_SLOTS,
    RELEGATION_SLOTS, TOP_RELEGATION_SLOTS
)
from src.utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


class SeasonConfig(BaseModel):
    """Season settings."""
    duel_threshold: int = Field(default=LEAGUE_RESET_LIMIT, ge=1, description="Duels per season")
    promotion_slots: int = Field(default=PROMOTION_SLOTS, ge=0, description="Promoted from each lower division")
    relegation_slots: int = Field(default=RELEGATION_SLOTS, ge=0, description="Relegated below division 2 and lower")
    top_relegation_slots: int = Field(default=TOP_RELEGATION_SLOTS, ge=0, description="Relegated from division 1")
    max_divisions: int = Field(default=MAX_DIVISIONS, ge=1, description="Highest division number that can be unlocked")


@dataclass
class DivisionChange:
    """A competitor moving between divisions."""
    competitor_id: str
    from_division: int
    to_division: int

    @property
    def promoted(self) -> bool:
        return self.to_division < self.from_division

    def to_dict(self) -> Dict[str, Any]:
        return {
            "competitor_id": self.competitor_id,
            "from_division": self.from_division,
            "to_division": self.to_division,
        }


@dataclass
class SeasonResult:
    """Outcome of one season cycle."""
    champion_id: Optional[str]
    tables: Dict[int, List[StandingEntry]] = field(default_factory=dict)
    changes: List[DivisionChange] = field(default_factory=list)
    deltas: List[CompetitorDelta] = field(default_factory=list)

    @property
    def promoted(self) -> List[str]:
        return [c.competitor_id for c in self.changes if c.promoted]

    @property
    def relegated(self) -> List[str]:
        return [c.competitor_id for c in self.changes if not c.promoted]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "champion_id": self.champion_id,
            "tables": {
                str(div): [
                    {"competitor_id": e.competitor_id, "points": e.points,
                     "wins": e.wins, "played": e.played}
                    for e in table
                ]
                for div, table in self.tables.items()
            },
            "changes": [c.to_dict() for c in self.changes],
        }


def rank_division(competitors: List[Competitor], division: int) -> List[Competitor]:
    """Members of a division by league points, ties in roster order."""
    members = [c for c in competitors if c.division == division]
    return sorted(members, key=lambda c: c.stats.league_points, reverse=True)


def division_table(competitors: List[Competitor], division: int) -> List[StandingEntry]:
    """Standings table of a division from current league points."""
    return [
        StandingEntry(
            competitor_id=c.competitor_id,
            points=c.stats.league_points,
            wins=c.stats.wins,
            played=c.stats.total_duels
        )
        for c in rank_division(competitors, division)
    ]


def _relegation_slots(upper: int, config: SeasonConfig) -> int:
    return config.top_relegation_slots if upper == 1 else config.relegation_slots


def plan_division_moves(
    rankings: Dict[int, List[Competitor]],
    active_divisions: int,
    config: SeasonConfig
) -> Dict[str, int]:
    """
    Work out promotions and relegations from pre-move rankings.

    Boundaries are processed from the top down. A competitor promoted across
    one boundary is not considered for relegation at the next.

    Returns:
        competitor id -> new division
    """
    moves: Dict[str, int] = {}
    for upper in range(1, active_divisions):
        lower = upper + 1

        promoted = rankings.get(lower, [])[:config.promotion_slots]

        slots = _relegation_slots(upper, config)
        candidates = [c for c in rankings.get(upper, []) if c.competitor_id not in moves]
        relegated = candidates[-slots:] if slots > 0 else []

        for competitor in promoted:
            moves[competitor.competitor_id] = upper
        for competitor in relegated:
            moves[competitor.competitor_id] = lower

    return moves


def run_season_cycle(
    competitors: List[Competitor],
    unlocked_divisions: int,
    config: Optional[SeasonConfig] = None
) -> SeasonResult:
    """
    Close the current season.

    Must run exactly once per threshold crossing; running it twice would
    apply promotions twice.

    Args:
        competitors: Full roster (mutated in place)
        unlocked_divisions: Number of divisions in play
        config: Season settings (defaults if None)

    Returns:
        SeasonResult with champion, pre-reset tables and division changes

    Raises:
        InvalidInputError: If unlocked_divisions is below 1
    """
    config = config or SeasonConfig()
    if unlocked_divisions < 1:
        raise InvalidInputError(f"unlocked_divisions must be at least 1, got {unlocked_divisions}")

    active = min(unlocked_divisions, config.max_divisions)
    rankings = {d: rank_division(competitors, d) for d in range(1, active + 1)}
    result = SeasonResult(
        champion_id=None,
        tables={d: division_table(competitors, d) for d in range(1, active + 1)}
    )
    deltas: Dict[str, CompetitorDelta] = {}

    def delta_for(competitor: Competitor) -> CompetitorDelta:
        if competitor.competitor_id not in deltas:
            deltas[competitor.competitor_id] = CompetitorDelta(competitor_id=competitor.competitor_id)
        return deltas[competitor.competitor_id]

    # Champion: top of the highest division that has members
    for division in range(1, active + 1):
        if rankings[division]:
            champion = rankings[division][0]
            result.champion_id = champion.competitor_id
            award_championship(champion)
            delta_for(champion).championships += 1
            break

    for competitor in competitors:
        if competitor.stats.league_points:
            delta_for(competitor).league_points = -competitor.stats.league_points
            competitor.stats.league_points = 0

    moves = plan_division_moves(rankings, active, config)
    for competitor in competitors:
        new_division = moves.get(competitor.competitor_id)
        if new_division is None or new_division == competitor.division:
            continue
        change = DivisionChange(competitor.competitor_id, competitor.division, new_division)
        delta = delta_for(competitor)
        delta.division_from = competitor.division
        delta.division_to = new_division
        competitor.division = new_division
        result.changes.append(change)

    result.deltas = list(deltas.values())
    logger.info("Season closed: champion %s, %d promoted, %d relegated",
                result.champion_id, len(result.promoted), len(result.relegated))
    return result
