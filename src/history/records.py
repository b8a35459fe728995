"""
Duel history records.

One DuelRecord is kept per resolved duel, whatever mode it was played in.
Synthetic opponents have no id; only their name is recorded.
"""
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional
import uuid


class DuelKind(Enum):
    """Competition mode a duel was played in."""
    NORMAL = "normal"
    TOURNAMENT = "tournament"
    WORLD = "world"
    TOWER = "tower"


@dataclass
class DuelRecord:
    """
    A single resolved duel.

    ``first_id``/``second_id`` are None for a synthetic side, and
    ``winner_id`` is None when a synthetic side won.
    """
    first_id: Optional[str]
    second_id: Optional[str]
    score1: int
    score2: int
    winner_id: Optional[str]
    kind: DuelKind = DuelKind.NORMAL
    first_name: Optional[str] = None
    second_name: Optional[str] = None
    tournament_id: Optional[str] = None
    tournament_name: Optional[str] = None
    record_id: str = ""
    timestamp: str = ""

    def __post_init__(self):
        """Generate record_id and timestamp if not provided."""
        if not self.record_id:
            self.record_id = str(uuid.uuid4())
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    @property
    def loser_id(self) -> Optional[str]:
        if self.winner_id is None:
            return self.first_id if self.first_id is not None else self.second_id
        return self.second_id if self.winner_id == self.first_id else self.first_id

    def involves(self, competitor_id: str) -> bool:
        return competitor_id in (self.first_id, self.second_id)

    def won_by(self, competitor_id: str) -> bool:
        return self.winner_id == competitor_id

    def opponent_of(self, competitor_id: str) -> Optional[str]:
        """Id of the other side (None for a synthetic opponent)."""
        if competitor_id == self.first_id:
            return self.second_id
        return self.first_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        data = asdict(self)
        data['kind'] = self.kind.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DuelRecord':
        """Create from dictionary."""
        data = dict(data)
        data['kind'] = DuelKind(data.get('kind', DuelKind.NORMAL.value))
        return cls(**data)
