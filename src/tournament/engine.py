"""
Tournament state machine.

Creates tournaments, applies match results one at a time and, after every
result, re-runs the completion check for the tournament's format:

- knockout: finished once the final (or final tie) has a winner
- league: finished once every league match is decided
- league_playoff: league first, then a knockout between the top K
- groups_playoff: groups first, then a knockout between each group's top A

Results are applied in the order duels complete. Re-applying a result that
is already recorded is a no-op, so at-least-once delivery is safe.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from src.arena.duel import is_valid_score
from src.tournament.models import (
    BYE, Match, Stage, Tournament, TournamentFormat, TournamentSettings,
    new_match_id, place_in_slot
)
from src.tournament.scheduler import (
    build_knockout, build_round_robin, build_groups, tie_winner
)
from src.tournament.standings import compute_standings, top_qualifiers
from src.utils.constants import LEGS_TO_WIN
from src.utils.errors import InvalidInputError, InvalidResultError

logger = logging.getLogger(__name__)


class ApplyStatus(Enum):
    """What happened to a submitted result."""
    APPLIED = "applied"
    DUPLICATE = "duplicate"   # identical result was already recorded
    CONFLICT = "conflict"     # a different result was already recorded


@dataclass
class ApplyResult:
    """Outcome of submitting one match result."""
    status: ApplyStatus
    match_id: str
    finished: bool = False
    generated: List[str] = field(default_factory=list)

    @property
    def applied(self) -> bool:
        return self.status == ApplyStatus.APPLIED


def _validate_settings(settings: Union[TournamentSettings, Dict[str, Any], None]) -> TournamentSettings:
    if settings is None:
        return TournamentSettings()
    if isinstance(settings, TournamentSettings):
        settings = settings.model_dump()
    try:
        return TournamentSettings.model_validate(settings)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid tournament settings: {e}") from e


def create_tournament(
    name: str,
    participant_ids: List[str],
    format: TournamentFormat,
    settings: Union[TournamentSettings, Dict[str, Any], None] = None,
    tournament_id: Optional[str] = None
) -> Tournament:
    """
    Create a tournament with its first stage laid out.

    Args:
        name: Display name
        participant_ids: Ordered participant ids; order drives pairings
        format: Tournament format
        settings: TournamentSettings or a dict of its fields
        tournament_id: Optional id (random if None)

    Returns:
        New active Tournament

    Raises:
        InvalidInputError: Fewer than 2 participants, duplicates, or invalid settings
    """
    settings = _validate_settings(settings)
    participants = list(participant_ids)

    if len(participants) < 2:
        raise InvalidInputError("Need at least 2 participants for a tournament")
    if len(set(participants)) != len(participants):
        raise InvalidInputError("Participants must be distinct")
    if BYE in participants or any(not p for p in participants):
        raise InvalidInputError("Invalid participant id")

    tournament = Tournament(
        tournament_id=tournament_id or str(uuid.uuid4()),
        name=name,
        format=format,
        participant_ids=participants,
        settings=settings
    )

    if format == TournamentFormat.KNOCKOUT:
        tournament.add_matches(build_knockout(participants, settings.two_legged))
    elif format in (TournamentFormat.LEAGUE, TournamentFormat.LEAGUE_PLAYOFF):
        tournament.add_matches(build_round_robin(participants, settings.legs_per_pairing))
    elif format == TournamentFormat.GROUPS_PLAYOFF:
        groups, matches = build_groups(participants, settings.group_count, settings.legs_per_pairing)
        tournament.groups = groups
        tournament.add_matches(matches)
    else:
        raise InvalidInputError(f"Unknown tournament format: {format}")

    logger.info("Created %s tournament %r with %d participants and %d matches",
                format.value, name, len(participants), len(tournament.matches))

    # Degenerate layouts (e.g. groups of one) can already be complete
    advance_tournament(tournament)
    return tournament


# ---------------------------------------------------------------------------
# Knockout units: a single match, or a two-legged tie plus optional decider
# ---------------------------------------------------------------------------

def find_decider(tournament: Tournament, leg1_id: str) -> Optional[Match]:
    """Deciding match appended for a level tie, if any."""
    for match in tournament.matches.values():
        if match.decider_for == leg1_id:
            return match
    return None


def tie_legs(tournament: Tournament, match: Match) -> Optional[tuple]:
    """Return (leg1, leg2) of the tie a match belongs to, or None."""
    store = tournament.matches
    if match.decider_for is not None:
        leg1 = store[match.decider_for]
    elif match.partner_id is not None:
        leg1 = match if match.leg == 1 else store[match.partner_id]
    else:
        return None
    return leg1, store[leg1.partner_id]


def unit_winner(tournament: Tournament, match: Match) -> Optional[str]:
    """Winner of the bracket entry a match belongs to, or None if open."""
    legs = tie_legs(tournament, match)
    if legs is None:
        return match.winner

    leg1, leg2 = legs
    winner = tie_winner(leg1, leg2)
    if winner is not None:
        return winner

    decider = find_decider(tournament, leg1.match_id)
    return decider.winner if decider is not None else None


def _append_decider(tournament: Tournament, leg1: Match) -> Match:
    decider = Match(
        match_id=new_match_id(),
        slot1=leg1.slot1,
        slot2=leg1.slot2,
        round=leg1.round,
        position=leg1.position,
        stage=leg1.stage,
        feeds_into=leg1.feeds_into,
        group=leg1.group,
        decider_for=leg1.match_id
    )
    tournament.add_matches([decider])
    logger.info("Tie %s level on aggregate, added deciding match %s",
                leg1.match_id, decider.match_id)
    return decider


def terminal_unit(tournament: Tournament, stage: Stage = Stage.KNOCKOUT) -> Optional[Match]:
    """The final of a knockout stage (first leg for a two-legged final)."""
    for match in tournament.match_list(stage):
        if (match.feeds_into is None
                and match.decider_for is None
                and match.leg in (None, 1)
                and not match.is_bye):
            return match
    return None


def _propagate(tournament: Tournament, match: Match) -> List[str]:
    """
    Move the winner of a freshly decided bracket entry into its target slot.

    Returns:
        Ids of matches appended (a deciding match for a level tie)
    """
    winner = unit_winner(tournament, match)
    if winner is None:
        legs = tie_legs(tournament, match)
        if legs is not None:
            leg1, leg2 = legs
            if leg1.is_decided and leg2.is_decided and find_decider(tournament, leg1.match_id) is None:
                return [_append_decider(tournament, leg1).match_id]
        return []

    if match.feeds_into is not None:
        if not place_in_slot(tournament.matches, match.feeds_into, winner):
            logger.warning("Target %s of match %s already full", match.feeds_into, match.match_id)
    return []


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

def apply_result(
    tournament: Tournament,
    match_id: str,
    winner_id: str,
    score1: int,
    score2: int
) -> ApplyResult:
    """
    Record the result of one match and advance the tournament.

    Args:
        tournament: Tournament to update
        match_id: Match being reported
        winner_id: Winning competitor (must hold one of the slots)
        score1: Score of slot 1
        score2: Score of slot 2

    Returns:
        ApplyResult; DUPLICATE or CONFLICT when the match was already decided

    Raises:
        InvalidResultError: If the result does not fit the match. Nothing is
            mutated in that case.
    """
    match = tournament.get_match(match_id)
    if match is None:
        raise InvalidResultError(f"Unknown match {match_id} in tournament {tournament.tournament_id}")

    if match.is_decided:
        if match.winner == winner_id and (match.score1, match.score2) == (score1, score2):
            logger.debug("Match %s already has this result, ignoring", match_id)
            return ApplyResult(ApplyStatus.DUPLICATE, match_id)
        logger.warning("Match %s already decided (%s %s-%s), ignoring %s %s-%s",
                       match_id, match.winner, match.score1, match.score2,
                       winner_id, score1, score2)
        return ApplyResult(ApplyStatus.CONFLICT, match_id)

    if not match.is_ready:
        raise InvalidResultError(f"Match {match_id} is waiting for earlier results")
    if winner_id not in match.participants:
        raise InvalidResultError(f"{winner_id} does not play in match {match_id}")
    if not is_valid_score(score1, score2):
        raise InvalidResultError(f"Invalid best-of-5 score {score1}-{score2}")
    winner_score = score1 if winner_id == match.slot1 else score2
    if winner_score != LEGS_TO_WIN:
        raise InvalidResultError(f"Winner {winner_id} must have {LEGS_TO_WIN} points")

    match.set_result(winner_id, score1, score2)
    logger.debug("Match %s: %s %d-%d %s, winner %s",
                 match_id, match.slot1, score1, score2, match.slot2, winner_id)

    was_finished = tournament.is_finished
    generated = []
    if match.stage == Stage.KNOCKOUT:
        generated.extend(_propagate(tournament, match))
    generated.extend(m.match_id for m in advance_tournament(tournament))

    return ApplyResult(
        status=ApplyStatus.APPLIED,
        match_id=match_id,
        finished=tournament.is_finished and not was_finished,
        generated=generated
    )


def matches_between(tournament: Tournament, first_id: str, second_id: str) -> List[Match]:
    """Every match whose slots hold both competitors, in schedule order."""
    return [
        m for m in tournament.matches.values()
        if set(m.participants) == {first_id, second_id}
    ]


def find_match_between(
    tournament: Tournament,
    first_id: str,
    second_id: str,
    pending_only: bool = True
) -> Optional[Match]:
    """First match whose slots hold both competitors, in either order."""
    for match in matches_between(tournament, first_id, second_id):
        if pending_only and not match.is_ready:
            continue
        return match
    return None


def slot_scores(match: Match, first_id: str, first_score: int, second_score: int) -> Tuple[int, int]:
    """Map scores given in a caller's (first, second) order onto slot order."""
    if match.slot1 == first_id:
        return first_score, second_score
    return second_score, first_score


def locate_pair_match(
    tournament: Tournament,
    first_id: str,
    second_id: str,
    winner_id: str,
    first_score: int,
    second_score: int,
    leg: Optional[int] = None
) -> Match:
    """
    Pick the match a result addressed by competitor pair belongs to.

    With ``leg`` the result goes to the pair's leg-th meeting (1-based, in
    schedule order, deciders last). Without it:

    1. a decided meeting that already holds exactly this result is returned,
       so a repeated delivery lands on it as a duplicate;
    2. otherwise the first open meeting;
    3. otherwise the last decided meeting, where a different result is a
       conflict.

    Two meetings of the same pair with an identical result can only be told
    apart by passing ``leg``.

    Raises:
        InvalidResultError: If the pair never meets or ``leg`` is out of range
    """
    meetings = matches_between(tournament, first_id, second_id)
    if not meetings:
        raise InvalidResultError(f"No match between {first_id} and {second_id}")

    if leg is not None:
        if not 1 <= leg <= len(meetings):
            raise InvalidResultError(
                f"{first_id} and {second_id} meet {len(meetings)} time(s), no leg {leg}"
            )
        return meetings[leg - 1]

    for match in meetings:
        if (match.is_decided and match.winner == winner_id
                and (match.score1, match.score2) == slot_scores(match, first_id, first_score, second_score)):
            return match

    for match in meetings:
        if match.is_ready:
            return match

    decided = [m for m in meetings if m.is_decided]
    return decided[-1] if decided else meetings[0]


def record_duel(
    tournament: Tournament,
    first_id: str,
    second_id: str,
    winner_id: str,
    first_score: int,
    second_score: int,
    leg: Optional[int] = None
) -> ApplyResult:
    """
    Apply a duel result by the pair of competitors rather than by match id.

    The match is chosen by locate_pair_match and the scores are mapped to its
    slot order. A repeated delivery of a recorded result is a no-op.

    Raises:
        InvalidResultError: If the pair has no match in this tournament, or
            the chosen match rejects the result
    """
    match = locate_pair_match(
        tournament, first_id, second_id, winner_id, first_score, second_score, leg
    )
    score1, score2 = slot_scores(match, first_id, first_score, second_score)
    return apply_result(tournament, match.match_id, winner_id, score1, score2)


# ---------------------------------------------------------------------------
# Completion and stage generation
# ---------------------------------------------------------------------------

def stage_complete(tournament: Tournament, stage: Stage, group: Optional[str] = None) -> bool:
    """True when every match of a stage (or group) is decided."""
    return all(m.is_decided for m in tournament.match_list(stage, group))


def knockout_winner(tournament: Tournament) -> Optional[str]:
    final = terminal_unit(tournament)
    if final is None:
        return None
    return unit_winner(tournament, final)


def league_qualifiers(tournament: Tournament) -> List[str]:
    """Top K of the league table, K capped at the participant count."""
    standings = compute_standings(
        tournament.participant_ids, tournament.match_list(Stage.LEAGUE), Stage.LEAGUE
    )
    count = min(tournament.settings.knockout_size, len(tournament.participant_ids))
    return top_qualifiers(standings, count)


def group_qualifiers(tournament: Tournament) -> List[str]:
    """Each group's top A, concatenated in group order."""
    qualifiers = []
    for label, members in tournament.groups.items():
        standings = compute_standings(
            members, tournament.match_list(Stage.GROUP, label), Stage.GROUP, label
        )
        qualifiers.extend(top_qualifiers(standings, tournament.settings.advance_per_group))
    return qualifiers


def _start_playoff(tournament: Tournament, qualifiers: List[str]) -> List[Match]:
    if not qualifiers:
        logger.warning("Tournament %s has no qualifiers, nothing to generate",
                       tournament.tournament_id)
        return []
    if len(qualifiers) == 1:
        logger.info("Tournament %s: single qualifier %s wins directly",
                    tournament.tournament_id, qualifiers[0])
        tournament.finish(qualifiers[0])
        return []

    matches = build_knockout(qualifiers, tournament.settings.two_legged)
    tournament.add_matches(matches)
    logger.info("Tournament %s: knockout stage generated for %d qualifiers",
                tournament.tournament_id, len(qualifiers))
    return matches


def advance_tournament(tournament: Tournament) -> List[Match]:
    """
    Run the completion check and generate the next stage when due.

    Safe to call any number of times: a finished tournament, or one whose
    knockout stage already exists, is never regenerated.

    Returns:
        Newly generated matches (empty if nothing was generated)
    """
    if tournament.is_finished:
        return []

    fmt = tournament.format

    if fmt == TournamentFormat.KNOCKOUT or tournament.has_stage(Stage.KNOCKOUT):
        if fmt != TournamentFormat.KNOCKOUT:
            logger.debug("Tournament %s: knockout stage already exists", tournament.tournament_id)
        winner = knockout_winner(tournament)
        if winner is not None:
            tournament.finish(winner)
            logger.info("Tournament %s finished, winner %s", tournament.tournament_id, winner)
        return []

    if fmt == TournamentFormat.LEAGUE:
        if stage_complete(tournament, Stage.LEAGUE):
            standings = compute_standings(
                tournament.participant_ids, tournament.match_list(Stage.LEAGUE), Stage.LEAGUE
            )
            tournament.finish(standings[0].competitor_id)
            logger.info("Tournament %s finished, winner %s", tournament.tournament_id, tournament.winner)
        return []

    if fmt == TournamentFormat.LEAGUE_PLAYOFF:
        if not stage_complete(tournament, Stage.LEAGUE):
            return []
        return _start_playoff(tournament, league_qualifiers(tournament))

    if fmt == TournamentFormat.GROUPS_PLAYOFF:
        if not stage_complete(tournament, Stage.GROUP):
            return []
        return _start_playoff(tournament, group_qualifiers(tournament))

    return []


def pending_matches(tournament: Tournament) -> List[Match]:
    """Matches that can be played now, in schedule order."""
    return [m for m in tournament.matches.values() if m.is_ready]


def tournament_standings(tournament: Tournament, group: Optional[str] = None):
    """Standings of the league or group phase of a tournament."""
    if tournament.format == TournamentFormat.GROUPS_PLAYOFF:
        members = tournament.groups.get(group, []) if group else tournament.participant_ids
        return compute_standings(members, tournament.match_list(Stage.GROUP, group), Stage.GROUP, group)
    return compute_standings(
        tournament.participant_ids, tournament.match_list(Stage.LEAGUE), Stage.LEAGUE
    )
