"""
Arena session: the roster, tournaments, history and season counter.

Every duel goes through the session so that statistics, history and the
season counter stay consistent across every competition mode. The
season cycle runs once each time the counter reaches the threshold, and the
counter is reset in the same call.

Usage:
    session = ArenaSession(SessionConfig(seed=7))
    a = session.add_competitor("Ayla")
    b = session.add_competitor("Bram")
    report = session.duel(a.competitor_id, b.competitor_id)
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.arena.competitor import (
    Competitor, Rarity, SyntheticOpponent, new_competitor_id, roll_rarity,
    generate_synthetic_opponent
)
from src.arena.duel import DuelOutcome, resolve_duel, win_probability
from src.arena.progression import CompetitorDelta, apply_duel_outcome, award_championship
from src.history import DuelHistory, DuelKind, DuelRecord
from src.season.league import (
    SeasonConfig, SeasonResult, DivisionChange, division_table, run_season_cycle
)
from src.tournament import engine
from src.tournament.engine import ApplyResult
from src.tournament.models import Tournament, TournamentFormat, TournamentSettings
from src.tournament.standings import StandingEntry
from src.utils.constants import FIRST, SECOND, TOWER_FLOORS
from src.utils.errors import (
    InvalidInputError, UnknownCompetitorError, UnknownTournamentError
)

logger = logging.getLogger(__name__)


@dataclass
class SessionConfig:
    """Configuration for an arena session."""
    season: SeasonConfig = field(default_factory=SeasonConfig)
    seed: Optional[int] = None
    initial_divisions: int = 1


@dataclass
class DuelReport:
    """
    Everything one duel changed.

    ``record`` is None when a tournament result was not accepted (already
    recorded); in that case nothing else changed either.
    """
    outcome: Optional[DuelOutcome]
    record: Optional[DuelRecord] = None
    deltas: List[CompetitorDelta] = field(default_factory=list)
    season: Optional[SeasonResult] = None
    apply: Optional[ApplyResult] = None

    @property
    def accepted(self) -> bool:
        return self.record is not None


@dataclass
class TowerRun:
    """One climb of the tower."""
    competitor_id: str
    floors_cleared: int = 0
    reports: List[DuelReport] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.floors_cleared == TOWER_FLOORS


class ArenaSession:
    """
    Owns all mutable arena state for one game.

    Several sessions can live in the same process without sharing anything.
    """

    def __init__(self, config: Optional[SessionConfig] = None, rng: Optional[random.Random] = None):
        """
        Initialize the session.

        Args:
            config: Session configuration (defaults if None)
            rng: Randomness source; seeded from config.seed if None
        """
        self.config = config or SessionConfig()
        self.rng = rng or random.Random(self.config.seed)

        max_divisions = self.config.season.max_divisions
        if not 1 <= self.config.initial_divisions <= max_divisions:
            raise InvalidInputError(
                f"initial_divisions must be between 1 and {max_divisions}"
            )

        self.roster: Dict[str, Competitor] = {}
        self.tournaments: Dict[str, Tournament] = {}
        self.history = DuelHistory()
        self.duel_count = 0
        self.seasons_played = 0
        self.unlocked_divisions = self.config.initial_divisions

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    @property
    def competitors(self) -> List[Competitor]:
        return list(self.roster.values())

    def get_competitor(self, competitor_id: str) -> Competitor:
        competitor = self.roster.get(competitor_id)
        if competitor is None:
            raise UnknownCompetitorError(competitor_id)
        return competitor

    def add_competitor(
        self,
        name: str,
        level: int = 1,
        skills: Optional[List[str]] = None,
        rarity: Optional[Rarity] = None,
        competitor_id: Optional[str] = None
    ) -> Competitor:
        """
        Add a competitor to the lowest unlocked division.

        Rarity is rolled when not given.
        """
        competitor_id = competitor_id or new_competitor_id()
        if competitor_id in self.roster:
            raise InvalidInputError(f"Competitor {competitor_id} already exists")

        competitor = Competitor(
            competitor_id=competitor_id,
            name=name,
            level=level,
            skills=list(skills or []),
            rarity=rarity or roll_rarity(self.rng),
            division=self.unlocked_divisions
        )
        self.roster[competitor_id] = competitor
        logger.debug("Added %s (%s) to division %d", name, competitor.rarity.value, competitor.division)
        return competitor

    # ------------------------------------------------------------------
    # Divisions
    # ------------------------------------------------------------------

    def unlock_division(self) -> int:
        """Open the next division. New competitors enter it from now on."""
        if self.unlocked_divisions >= self.config.season.max_divisions:
            raise InvalidInputError(
                f"All {self.config.season.max_divisions} divisions are already unlocked"
            )
        self.unlocked_divisions += 1
        logger.info("Unlocked division %d", self.unlocked_divisions)
        return self.unlocked_divisions

    def remove_division(self) -> List[DivisionChange]:
        """Close the lowest division; its members move up one."""
        if self.unlocked_divisions <= 1:
            raise InvalidInputError("Division 1 cannot be removed")

        removed = self.unlocked_divisions
        self.unlocked_divisions -= 1

        changes = []
        for competitor in self.competitors:
            if competitor.division == removed:
                changes.append(DivisionChange(competitor.competitor_id, removed, self.unlocked_divisions))
                competitor.division = self.unlocked_divisions

        logger.info("Removed division %d, %d competitors moved up", removed, len(changes))
        return changes

    def standings(self, division: int = 1) -> List[StandingEntry]:
        """League table of a division."""
        if not 1 <= division <= self.unlocked_divisions:
            raise InvalidInputError(f"Division {division} is not unlocked")
        return division_table(self.competitors, division)

    # ------------------------------------------------------------------
    # Duels
    # ------------------------------------------------------------------

    def _check_favored(self, favored_id: Optional[str], *competitor_ids: str):
        if favored_id is not None and favored_id not in competitor_ids:
            raise InvalidInputError(f"Favored competitor {favored_id} is not in this duel")

    def _count_duel(self) -> Optional[SeasonResult]:
        self.duel_count += 1
        if self.duel_count < self.config.season.duel_threshold:
            return None

        self.duel_count = 0
        self.seasons_played += 1
        logger.info("Season %d complete, running season cycle", self.seasons_played)
        return run_season_cycle(self.competitors, self.unlocked_divisions, self.config.season)

    def _finish_duel(
        self,
        outcome: DuelOutcome,
        record: DuelRecord,
        deltas: List[CompetitorDelta],
        apply: Optional[ApplyResult] = None
    ) -> DuelReport:
        self.history.append(record)
        season = self._count_duel()
        return DuelReport(outcome=outcome, record=record, deltas=deltas, season=season, apply=apply)

    def duel(self, first_id: str, second_id: str, favored_id: Optional[str] = None) -> DuelReport:
        """Play a normal duel between two roster competitors."""
        first = self.get_competitor(first_id)
        second = self.get_competitor(second_id)
        self._check_favored(favored_id, first_id, second_id)

        outcome = resolve_duel(first, second, self.rng, favored_id)
        deltas = apply_duel_outcome(first, second, outcome, favored_id, rng=self.rng)

        record = DuelRecord(
            first_id=first_id,
            second_id=second_id,
            score1=outcome.score1,
            score2=outcome.score2,
            winner_id=outcome.winner_id,
            kind=DuelKind.NORMAL,
            first_name=first.name,
            second_name=second.name
        )
        return self._finish_duel(outcome, record, deltas)

    def _bot_duel(
        self,
        competitor: Competitor,
        opponent: SyntheticOpponent,
        kind: DuelKind,
        favored: bool = False
    ) -> DuelReport:
        favored_id = competitor.competitor_id if favored else None

        outcome = resolve_duel(competitor, opponent, self.rng, favored_id)
        deltas = apply_duel_outcome(
            competitor, opponent, outcome, favored_id,
            world_duel=kind == DuelKind.WORLD, rng=self.rng
        )

        record = DuelRecord(
            first_id=competitor.competitor_id,
            second_id=None,
            score1=outcome.score1,
            score2=outcome.score2,
            winner_id=outcome.winner_id,
            kind=kind,
            first_name=competitor.name,
            second_name=opponent.display_name
        )
        return self._finish_duel(outcome, record, deltas)

    def world_duel(self, competitor_id: str, favored: bool = False) -> DuelReport:
        """Play a world duel against a freshly generated opponent."""
        competitor = self.get_competitor(competitor_id)
        opponent = generate_synthetic_opponent(self.rng)
        return self._bot_duel(competitor, opponent, DuelKind.WORLD, favored)

    def climb_tower(self, competitor_id: str, favored: bool = False) -> TowerRun:
        """
        Send a competitor up the tower.

        Floor N is a duel against a generated opponent of level N. The climb
        stops at the first loss or after the top floor. The competitor's
        ``tower_level`` keeps the best floor ever cleared.

        Args:
            competitor_id: Roster competitor making the climb
            favored: Whether the competitor is under a favor boost

        Returns:
            TowerRun with one report per floor fought
        """
        competitor = self.get_competitor(competitor_id)
        run = TowerRun(competitor_id=competitor_id)

        for floor in range(1, TOWER_FLOORS + 1):
            opponent = generate_synthetic_opponent(self.rng, level=floor)
            report = self._bot_duel(competitor, opponent, DuelKind.TOWER, favored)
            run.reports.append(report)
            if report.outcome.winner_id != competitor_id:
                break
            run.floors_cleared = floor

        if run.floors_cleared > competitor.stats.tower_level:
            competitor.stats.tower_level = run.floors_cleared
        logger.info("%s cleared %d/%d tower floors", competitor.name, run.floors_cleared, TOWER_FLOORS)
        return run

    # ------------------------------------------------------------------
    # Tournaments
    # ------------------------------------------------------------------

    def get_tournament(self, tournament_id: str) -> Tournament:
        tournament = self.tournaments.get(tournament_id)
        if tournament is None:
            raise UnknownTournamentError(tournament_id)
        return tournament

    def create_tournament(
        self,
        name: str,
        participant_ids: List[str],
        format: TournamentFormat,
        settings: Optional[TournamentSettings] = None
    ) -> Tournament:
        """Create a tournament between roster competitors."""
        for competitor_id in participant_ids:
            self.get_competitor(competitor_id)

        tournament = engine.create_tournament(name, participant_ids, format, settings)
        self.tournaments[tournament.tournament_id] = tournament
        return tournament

    def play_match(
        self,
        tournament_id: str,
        match_id: Optional[str] = None,
        favored_id: Optional[str] = None
    ) -> DuelReport:
        """
        Simulate a ready tournament match and submit its result.

        Args:
            tournament_id: Tournament to play in
            match_id: Match to play (first ready match if None)
            favored_id: Competitor under a favor boost, if any

        Raises:
            InvalidInputError: If the match is unknown or not ready
        """
        tournament = self.get_tournament(tournament_id)
        if match_id is None:
            pending = engine.pending_matches(tournament)
            if not pending:
                raise InvalidInputError(f"Tournament {tournament.name} has no match ready to play")
            match = pending[0]
        else:
            match = tournament.get_match(match_id)
            if match is None:
                raise InvalidInputError(f"Unknown match {match_id}")
            if not match.is_ready:
                raise InvalidInputError(f"Match {match_id} is not ready to play")

        first = self.get_competitor(match.slot1)
        second = self.get_competitor(match.slot2)
        self._check_favored(favored_id, match.slot1, match.slot2)

        outcome = resolve_duel(first, second, self.rng, favored_id)
        return self.submit_result(
            tournament_id, match.match_id, outcome.winner_id,
            outcome.score1, outcome.score2, outcome=outcome, favored_id=favored_id
        )

    def submit_result(
        self,
        tournament_id: str,
        match_id: str,
        winner_id: str,
        score1: int,
        score2: int,
        outcome: Optional[DuelOutcome] = None,
        favored_id: Optional[str] = None
    ) -> DuelReport:
        """
        Submit a tournament result and update statistics.

        Statistics, history and the season counter only change when the
        tournament accepted the result. A duplicate or conflicting result
        returns a report with ``accepted`` False.
        """
        tournament = self.get_tournament(tournament_id)
        applied = engine.apply_result(tournament, match_id, winner_id, score1, score2)
        if not applied.applied:
            return DuelReport(outcome=outcome, apply=applied)

        match = tournament.get_match(match_id)
        first = self.get_competitor(match.slot1)
        second = self.get_competitor(match.slot2)

        if outcome is None:
            outcome = DuelOutcome(
                winner_side=FIRST if winner_id == match.slot1 else SECOND,
                score1=score1,
                score2=score2,
                win_probability=win_probability(first, second, favored_id),
                winner_id=winner_id
            )

        deltas = apply_duel_outcome(first, second, outcome, favored_id, rng=self.rng)

        if applied.finished:
            champion = self.get_competitor(tournament.winner)
            deltas.append(award_championship(champion))
            logger.info("%s won tournament %r", champion.name, tournament.name)

        record = DuelRecord(
            first_id=first.competitor_id,
            second_id=second.competitor_id,
            score1=score1,
            score2=score2,
            winner_id=winner_id,
            kind=DuelKind.TOURNAMENT,
            first_name=first.name,
            second_name=second.name,
            tournament_id=tournament.tournament_id,
            tournament_name=tournament.name
        )
        return self._finish_duel(outcome, record, deltas, apply=applied)

    def record_tournament_duel(
        self,
        tournament_id: str,
        first_id: str,
        second_id: str,
        winner_id: str,
        first_score: int,
        second_score: int,
        leg: Optional[int] = None
    ) -> DuelReport:
        """
        Submit a tournament result identified by the pair of competitors.

        The match is chosen as in engine.locate_pair_match; pass ``leg`` when
        the pair meets more than once with the same result.
        """
        tournament = self.get_tournament(tournament_id)
        match = engine.locate_pair_match(
            tournament, first_id, second_id, winner_id, first_score, second_score, leg
        )
        score1, score2 = engine.slot_scores(match, first_id, first_score, second_score)
        return self.submit_result(tournament_id, match.match_id, winner_id, score1, score2)

    def tournament_standings(self, tournament_id: str, group: Optional[str] = None) -> List[StandingEntry]:
        return engine.tournament_standings(self.get_tournament(tournament_id), group)
