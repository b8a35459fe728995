"""
Competitor progression after each duel.

Applies wins, losses, league points, streaks, experience and level-ups to
roster competitors, and reports every change as a CompetitorDelta so that
callers (persistence, notifications) can replay the mutation stream.
"""
import random
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Any, Optional

from src.arena.competitor import Combatant, Competitor
from src.arena.duel import DuelOutcome
from src.utils.constants import (
    XP_PER_WIN, BASE_XP_NEEDED, XP_INCREMENT_PER_LEVEL,
    SKILL_CHANCE_ON_LEVEL_UP, SKILL_NAMES_POOL, FIRST
)


@dataclass
class CompetitorDelta:
    """Changes applied to a single competitor by one event."""
    competitor_id: str
    wins: int = 0
    losses: int = 0
    league_points: int = 0
    xp: int = 0
    levels: int = 0
    new_skills: List[str] = field(default_factory=list)
    streak: int = 0
    championships: int = 0
    world_duel_wins: int = 0
    favored: int = 0
    division_from: Optional[int] = None
    division_to: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return asdict(self)


def xp_needed(level: int) -> int:
    """Experience needed to leave the given level."""
    return BASE_XP_NEEDED + (level - 1) * XP_INCREMENT_PER_LEVEL


def apply_level_ups(
    competitor: Competitor,
    delta: CompetitorDelta,
    rng: Optional[random.Random] = None
) -> int:
    """
    Consume experience into level-ups.

    Each level-up has a 15% chance of granting a new skill.

    Returns:
        Number of levels gained
    """
    rng = rng or random.Random()
    gained = 0
    while competitor.xp >= xp_needed(competitor.level):
        competitor.xp -= xp_needed(competitor.level)
        competitor.level += 1
        gained += 1
        if rng.random() < SKILL_CHANCE_ON_LEVEL_UP:
            skill = rng.choice(SKILL_NAMES_POOL)
            competitor.skills.append(skill)
            delta.new_skills.append(skill)
    delta.levels += gained
    return gained


def record_win(
    competitor: Competitor,
    differential: int,
    world_duel: bool = False,
    rng: Optional[random.Random] = None
) -> CompetitorDelta:
    """Apply a duel win to a competitor."""
    stats = competitor.stats
    delta = CompetitorDelta(competitor_id=competitor.competitor_id)

    stats.wins += 1
    delta.wins = 1

    stats.league_points += differential
    delta.league_points = differential

    stats.current_streak += 1
    stats.longest_streak = max(stats.longest_streak, stats.current_streak)
    delta.streak = stats.current_streak

    if world_duel:
        stats.world_duel_wins += 1
        delta.world_duel_wins = 1

    xp = XP_PER_WIN * competitor.rarity.xp_multiplier
    competitor.xp += xp
    delta.xp = xp
    apply_level_ups(competitor, delta, rng)

    return delta


def record_loss(competitor: Competitor) -> CompetitorDelta:
    """Apply a duel loss to a competitor."""
    stats = competitor.stats
    stats.losses += 1
    stats.current_streak = 0
    return CompetitorDelta(competitor_id=competitor.competitor_id, losses=1, streak=0)


def apply_duel_outcome(
    first: Combatant,
    second: Combatant,
    outcome: DuelOutcome,
    favored_id: Optional[str] = None,
    world_duel: bool = False,
    rng: Optional[random.Random] = None
) -> List[CompetitorDelta]:
    """
    Update both sides of a finished duel.

    Synthetic opponents are skipped; they carry no statistics.

    Args:
        first: Combatant on the first side
        second: Combatant on the second side
        outcome: Finished duel
        favored_id: Competitor that was under a favor boost
        world_duel: Whether this was a world duel
        rng: Randomness source for skill rolls on level-up

    Returns:
        Deltas for every roster competitor involved
    """
    if outcome.winner_side == FIRST:
        winner, loser = first, second
    else:
        winner, loser = second, first

    deltas = []
    if not winner.is_synthetic:
        deltas.append(record_win(winner, outcome.differential, world_duel, rng))
    if not loser.is_synthetic:
        deltas.append(record_loss(loser))

    if favored_id is not None:
        for delta, side in zip(deltas, [c for c in (winner, loser) if not c.is_synthetic]):
            if side.competitor_id == favored_id:
                side.stats.favored_count += 1
                delta.favored = 1

    return deltas


def award_championship(competitor: Competitor) -> CompetitorDelta:
    """Credit a competitor with a championship."""
    competitor.stats.championships += 1
    return CompetitorDelta(competitor_id=competitor.competitor_id, championships=1)
