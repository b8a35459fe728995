"""
Tournament data model.

Matches live in an id-keyed store on the Tournament. Every link between
matches (``feeds_into``, ``partner_id``, ``decider_for``) is a plain match id,
so a tournament can be snapshotted with ``to_dict`` and restored verbatim.
"""
import uuid
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Any, Optional, Tuple

from pydantic import BaseModel, Field

# Marker placed in a slot that will never receive an opponent
BYE = "__bye__"


class Stage(Enum):
    """Phase of a tournament a match belongs to."""
    GROUP = "group"
    LEAGUE = "league"
    KNOCKOUT = "knockout"


class TournamentFormat(Enum):
    """Supported tournament formats."""
    KNOCKOUT = "knockout"
    LEAGUE = "league"
    LEAGUE_PLAYOFF = "league_playoff"
    GROUPS_PLAYOFF = "groups_playoff"


class TournamentStatus(Enum):
    """Lifecycle state of a tournament."""
    ACTIVE = "active"
    FINISHED = "finished"


class TournamentSettings(BaseModel):
    """Format-specific settings for creating a tournament."""
    legs_per_pairing: int = Field(default=1, ge=1, description="Times each pair meets in a league or group")
    two_legged: bool = Field(default=False, description="Knockout ties are played over two legs")
    group_count: int = Field(default=2, ge=1, description="Number of groups (groups format)")
    advance_per_group: int = Field(default=2, ge=1, description="Qualifiers taken from each group")
    knockout_size: int = Field(default=4, ge=1, description="Qualifiers taken from the league (hybrid format)")


def new_match_id() -> str:
    """Generate a unique match id."""
    return uuid.uuid4().hex


@dataclass
class Match:
    """A single pairing between two slots."""
    match_id: str
    slot1: Optional[str]
    slot2: Optional[str]
    round: int
    position: int
    stage: Stage
    winner: Optional[str] = None
    score1: Optional[int] = None
    score2: Optional[int] = None
    feeds_into: Optional[str] = None
    group: Optional[str] = None
    leg: Optional[int] = None
    partner_id: Optional[str] = None
    decider_for: Optional[str] = None

    @property
    def is_bye(self) -> bool:
        return self.slot1 == BYE or self.slot2 == BYE

    @property
    def is_decided(self) -> bool:
        return self.winner is not None

    @property
    def is_ready(self) -> bool:
        """Both slots hold real competitors and no result exists yet."""
        return (
            not self.is_decided
            and not self.is_bye
            and self.slot1 is not None
            and self.slot2 is not None
        )

    @property
    def has_scores(self) -> bool:
        return self.score1 is not None and self.score2 is not None

    @property
    def participants(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.slot1, self.slot2)

    @property
    def loser(self) -> Optional[str]:
        if not self.is_decided or self.is_bye:
            return None
        return self.slot2 if self.winner == self.slot1 else self.slot1

    def involves(self, competitor_id: str) -> bool:
        return competitor_id in (self.slot1, self.slot2)

    def score_for(self, competitor_id: str) -> Tuple[int, int]:
        """Return (own score, opponent score) for one side of a decided match."""
        if competitor_id == self.slot1:
            return self.score1, self.score2
        return self.score2, self.score1

    def set_result(self, winner: str, score1: int, score2: int):
        self.winner = winner
        self.score1 = score1
        self.score2 = score2

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        data = asdict(self)
        data['stage'] = self.stage.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Match':
        """Create from dictionary."""
        data = dict(data)
        data['stage'] = Stage(data['stage'])
        return cls(**data)


def make_bye(competitor_id: str, round_: int, position: int, stage: Stage = Stage.KNOCKOUT) -> Match:
    """A degenerate match whose only participant advances immediately."""
    return Match(
        match_id=new_match_id(),
        slot1=competitor_id,
        slot2=BYE,
        round=round_,
        position=position,
        stage=stage,
        winner=competitor_id
    )


def place_in_slot(store: Dict[str, Match], target_id: str, competitor_id: str) -> bool:
    """
    Put a competitor into the first empty slot of a target match.

    When the target is the first leg of a two-legged tie, the second leg is
    kept as its mirror image.

    Returns:
        True if a slot was filled, False if the target was already full
    """
    target = store[target_id]
    if target.slot1 is None:
        target.slot1 = competitor_id
    elif target.slot2 is None:
        target.slot2 = competitor_id
    else:
        return False

    if target.partner_id is not None:
        partner = store[target.partner_id]
        partner.slot1 = target.slot2
        partner.slot2 = target.slot1
    return True


@dataclass
class Tournament:
    """A tournament and its full match store."""
    tournament_id: str
    name: str
    format: TournamentFormat
    participant_ids: List[str]
    settings: TournamentSettings = field(default_factory=TournamentSettings)
    matches: Dict[str, Match] = field(default_factory=dict)
    groups: Dict[str, List[str]] = field(default_factory=dict)
    status: TournamentStatus = TournamentStatus.ACTIVE
    winner: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status == TournamentStatus.FINISHED

    def add_matches(self, matches: List[Match]):
        for match in matches:
            self.matches[match.match_id] = match

    def get_match(self, match_id: str) -> Optional[Match]:
        return self.matches.get(match_id)

    def match_list(
        self,
        stage: Optional[Stage] = None,
        group: Optional[str] = None
    ) -> List[Match]:
        """Matches in insertion order, optionally scoped to a stage and group."""
        return [
            m for m in self.matches.values()
            if (stage is None or m.stage == stage)
            and (group is None or m.group == group)
        ]

    def round_matches(self, stage: Stage, round_: int) -> List[Match]:
        """Matches of one round of a stage, ordered by position and leg."""
        matches = [m for m in self.match_list(stage) if m.round == round_]
        return sorted(matches, key=lambda m: (m.position, m.leg or 0, m.decider_for is not None))

    def has_stage(self, stage: Stage) -> bool:
        return any(m.stage == stage for m in self.matches.values())

    def finish(self, winner: str):
        """Mark the tournament finished. Has no effect once finished."""
        if self.is_finished:
            return
        self.status = TournamentStatus.FINISHED
        self.winner = winner

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "tournament_id": self.tournament_id,
            "name": self.name,
            "format": self.format.value,
            "participant_ids": list(self.participant_ids),
            "settings": self.settings.model_dump(),
            "matches": [m.to_dict() for m in self.matches.values()],
            "groups": {label: list(ids) for label, ids in self.groups.items()},
            "status": self.status.value,
            "winner": self.winner,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Tournament':
        """Create from dictionary."""
        tournament = cls(
            tournament_id=data["tournament_id"],
            name=data["name"],
            format=TournamentFormat(data["format"]),
            participant_ids=list(data["participant_ids"]),
            settings=TournamentSettings(**data.get("settings", {})),
            groups={label: list(ids) for label, ids in data.get("groups", {}).items()},
            status=TournamentStatus(data.get("status", TournamentStatus.ACTIVE.value)),
            winner=data.get("winner"),
        )
        tournament.add_matches([Match.from_dict(m) for m in data.get("matches", [])])
        return tournament
