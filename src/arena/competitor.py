"""
Competitors that take part in duels.

Two kinds of combatant exist:
- Competitor: a persistent roster member with statistics and a division
- SyntheticOpponent: a generated, throw-away opponent used for world duels

Both expose ``level`` and ``skill_count``, which is all the duel model needs,
and an ``is_synthetic`` tag so callers can tell them apart without shape
checks.
"""
import random
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Any, Optional

from src.utils.errors import InvalidInputError
from src.utils.constants import (
    LEGENDARY_CHANCE, SUPREME_CHANCE, ECCENTRIC_CHANCE,
    SYNTHETIC_MIN_LEVEL, SYNTHETIC_MAX_LEVEL, SYNTHETIC_MAX_SKILLS,
    SYNTHETIC_NAMES
)


class Rarity(Enum):
    """Rarity class of a competitor."""
    NORMAL = "normal"
    ECCENTRIC = "eccentric"
    SUPREME = "supreme"
    LEGENDARY = "legendary"

    @property
    def xp_multiplier(self) -> int:
        """Experience multiplier applied to every win."""
        return _XP_MULTIPLIERS[self]


_XP_MULTIPLIERS = {
    Rarity.NORMAL: 1,
    Rarity.ECCENTRIC: 2,
    Rarity.SUPREME: 3,
    Rarity.LEGENDARY: 4,
}


class Combatant(ABC):
    """
    Anything that can stand on one side of a duel.
    """

    is_synthetic: bool = False

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Name shown in duel lines and history."""
        pass

    @property
    @abstractmethod
    def skill_count(self) -> int:
        """Number of skills, used as a proxy for combat strength."""
        pass


@dataclass
class CompetitorStats:
    """Running statistics of a roster competitor."""
    wins: int = 0
    losses: int = 0
    league_points: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    championships: int = 0
    world_duel_wins: int = 0
    favored_count: int = 0
    tower_level: int = 0

    @property
    def total_duels(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        if self.total_duels == 0:
            return 0.0
        return self.wins / self.total_duels


@dataclass
class Competitor(Combatant):
    """A persistent roster member."""
    competitor_id: str
    name: str
    level: int = 1
    xp: int = 0
    skills: List[str] = field(default_factory=list)
    rarity: Rarity = Rarity.NORMAL
    division: int = 1
    stats: CompetitorStats = field(default_factory=CompetitorStats)

    def __post_init__(self):
        if self.level < 1:
            raise InvalidInputError(f"Level must be at least 1, got {self.level}")
        if self.division < 1:
            raise InvalidInputError(f"Division must be at least 1, got {self.division}")

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def skill_count(self) -> int:
        return len(self.skills)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        data = asdict(self)
        data['rarity'] = self.rarity.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Competitor':
        """Create from dictionary."""
        data = dict(data)
        data['rarity'] = Rarity(data.get('rarity', Rarity.NORMAL.value))
        data['stats'] = CompetitorStats(**data.get('stats', {}))
        data['skills'] = list(data.get('skills', []))
        return cls(**data)


@dataclass
class SyntheticOpponent(Combatant):
    """A generated opponent that never enters the roster."""
    name: str
    level: int
    skills: int = 0

    is_synthetic = True

    @property
    def display_name(self) -> str:
        return f"{self.name} (Bot)"

    @property
    def skill_count(self) -> int:
        return self.skills


def new_competitor_id() -> str:
    """Generate a unique competitor id."""
    return str(uuid.uuid4())


def roll_rarity(rng: Optional[random.Random] = None) -> Rarity:
    """
    Roll the rarity of a newly created competitor.

    1% legendary, 2% supreme, 5% eccentric, otherwise normal.
    """
    rng = rng or random.Random()
    roll = rng.random()
    if roll < LEGENDARY_CHANCE:
        return Rarity.LEGENDARY
    if roll < SUPREME_CHANCE:
        return Rarity.SUPREME
    if roll < ECCENTRIC_CHANCE:
        return Rarity.ECCENTRIC
    return Rarity.NORMAL


def generate_synthetic_opponent(
    rng: Optional[random.Random] = None,
    level: Optional[int] = None
) -> SyntheticOpponent:
    """
    Generate a random opponent that never enters the roster.

    World duels roll the level (2-13); the tower passes its floor number.
    Skills are always rolled (0-2).
    """
    rng = rng or random.Random()
    if level is None:
        level = rng.randint(SYNTHETIC_MIN_LEVEL, SYNTHETIC_MAX_LEVEL)
    return SyntheticOpponent(
        name=rng.choice(SYNTHETIC_NAMES),
        level=level,
        skills=rng.randint(0, SYNTHETIC_MAX_SKILLS)
    )
