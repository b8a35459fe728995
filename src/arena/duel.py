"""
Best-of-5 duel resolution.

Win probability for the first side:
    p = 0.5 + (level_1 - level_2) * 0.02 + (skills_1 - skills_2) * 0.02
        +/- 0.05 favor boost, +/- 0.05 inspiration
clamped to [0.10, 0.90]. Each leg is an independent Bernoulli trial at p;
the duel stops as soon as one side has 3 legs.
"""
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from src.arena.competitor import Combatant
from src.utils.constants import (
    BASE_WIN_PROBABILITY, LEVEL_PROB_BOOST, SKILL_PROB_BOOST,
    FAVOR_PROB_BOOST, INSPIRED_PROB_BOOST, INSPIRATION_CHANCE,
    MIN_WIN_PROBABILITY, MAX_WIN_PROBABILITY,
    LEGS_PER_DUEL, LEGS_TO_WIN, VALID_SCORES, FIRST, SECOND
)
from src.utils.errors import InvalidInputError

_NOT_ROLLED = object()


@dataclass
class DuelOutcome:
    """Result of a single best-of-5 duel."""
    winner_side: int
    score1: int
    score2: int
    win_probability: float
    legs: List[int] = field(default_factory=list)
    inspired_side: Optional[int] = None
    winner_id: Optional[str] = None

    @property
    def differential(self) -> int:
        """Absolute score differential awarded as league points."""
        return abs(self.score1 - self.score2)

    @property
    def scores(self) -> Tuple[int, int]:
        return (self.score1, self.score2)


def _competitor_id(combatant: Combatant) -> Optional[str]:
    if combatant.is_synthetic:
        return None
    return combatant.competitor_id


def clamp_probability(prob: float) -> float:
    """Clamp a win probability so that no duel is ever decided in advance."""
    return max(MIN_WIN_PROBABILITY, min(MAX_WIN_PROBABILITY, prob))


def win_probability(
    first: Combatant,
    second: Combatant,
    favored_id: Optional[str] = None,
    inspired_side: Optional[int] = None
) -> float:
    """
    Probability that the first side wins a single leg.

    Args:
        first: Combatant on the first side
        second: Combatant on the second side
        favored_id: Id of a roster competitor under a favor boost, if any
        inspired_side: FIRST, SECOND or None

    Returns:
        Probability in [0.10, 0.90]
    """
    prob = BASE_WIN_PROBABILITY
    prob += (first.level - second.level) * LEVEL_PROB_BOOST
    prob += (first.skill_count - second.skill_count) * SKILL_PROB_BOOST

    if favored_id is not None:
        if favored_id == _competitor_id(first):
            prob += FAVOR_PROB_BOOST
        elif favored_id == _competitor_id(second):
            prob -= FAVOR_PROB_BOOST

    if inspired_side == FIRST:
        prob += INSPIRED_PROB_BOOST
    elif inspired_side == SECOND:
        prob -= INSPIRED_PROB_BOOST

    return clamp_probability(prob)


def roll_inspiration(rng: random.Random) -> Optional[int]:
    """
    Decide whether one side is inspired for this duel.

    With 5% probability a side is inspired; which one is a coin flip.
    """
    if rng.random() < INSPIRATION_CHANCE:
        return FIRST if rng.random() < 0.5 else SECOND
    return None


def play_legs(prob: float, rng: random.Random) -> List[int]:
    """
    Play up to five legs at a fixed probability, stopping once decided.

    Returns:
        Sequence of leg winners (FIRST or SECOND)
    """
    legs = []
    wins = {FIRST: 0, SECOND: 0}
    for _ in range(LEGS_PER_DUEL):
        leg_winner = FIRST if rng.random() < prob else SECOND
        legs.append(leg_winner)
        wins[leg_winner] += 1
        if wins[leg_winner] == LEGS_TO_WIN:
            break
    return legs


def resolve_duel(
    first: Combatant,
    second: Combatant,
    rng: Optional[random.Random] = None,
    favored_id: Optional[str] = None,
    inspired_side=_NOT_ROLLED
) -> DuelOutcome:
    """
    Simulate a best-of-5 duel.

    Args:
        first: Combatant on the first side
        second: Combatant on the second side
        rng: Randomness source (a fresh Random if None)
        favored_id: Id of a roster competitor under a favor boost
        inspired_side: Force FIRST, SECOND or None; rolled when omitted

    Returns:
        DuelOutcome with winner and scores

    Raises:
        InvalidInputError: If both sides are the same competitor
    """
    rng = rng or random.Random()

    first_id = _competitor_id(first)
    second_id = _competitor_id(second)
    if first_id is not None and first_id == second_id:
        raise InvalidInputError("A competitor cannot duel itself")

    if inspired_side is _NOT_ROLLED:
        inspired_side = roll_inspiration(rng)

    prob = win_probability(first, second, favored_id, inspired_side)
    legs = play_legs(prob, rng)

    score1 = legs.count(FIRST)
    score2 = legs.count(SECOND)
    winner_side = FIRST if score1 > score2 else SECOND

    return DuelOutcome(
        winner_side=winner_side,
        score1=score1,
        score2=score2,
        win_probability=prob,
        legs=legs,
        inspired_side=inspired_side,
        winner_id=first_id if winner_side == FIRST else second_id
    )


def is_valid_score(score1: int, score2: int) -> bool:
    """Check that a score pair is a finished best-of-5 result."""
    return (score1, score2) in VALID_SCORES
