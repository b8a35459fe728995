"""
Bracket and schedule generation.

Provides:
- build_knockout: single-elimination bracket, optionally with two-legged ties
- build_round_robin: circle-method league schedule with repeated legs
- build_groups: balanced group partitioning, each group a round robin
"""

from typing import Dict, List, Optional, Tuple

from src.tournament.models import (
    BYE, Match, Stage, make_bye, new_match_id, place_in_slot
)
from src.utils.errors import InvalidInputError


def _new_unit(
    slot1: Optional[str],
    slot2: Optional[str],
    round_: int,
    position: int,
    stage: Stage,
    two_legged: bool
) -> List[Match]:
    """
    Create one bracket entry: a single match or the two legs of a tie.

    Both legs of a tie carry the same ``feeds_into`` (the target entry's
    first match), since either leg may be the one that completes the tie.
    The winner only moves on once the tie as a whole is decided.
    """
    leg1 = Match(
        match_id=new_match_id(),
        slot1=slot1,
        slot2=slot2,
        round=round_,
        position=position,
        stage=stage
    )
    if not two_legged:
        return [leg1]

    leg2 = Match(
        match_id=new_match_id(),
        slot1=slot2,
        slot2=slot1,
        round=round_,
        position=position,
        stage=stage,
        leg=2,
        partner_id=leg1.match_id
    )
    leg1.leg = 1
    leg1.partner_id = leg2.match_id
    return [leg1, leg2]


def build_knockout(
    participant_ids: List[str],
    two_legged: bool = False,
    stage: Stage = Stage.KNOCKOUT
) -> List[Match]:
    """
    Build a knockout bracket from an ordered list of participants.

    Participants are paired in list order; a trailing odd participant gets a
    bye. Each later round pairs the previous round's entries; an odd leftover
    entry is carried forward without a new match. The last remaining entry is
    the final and has no ``feeds_into``.

    Args:
        participant_ids: Ordered participant ids (at least 2)
        two_legged: Whether every tie is played over two legs
        stage: Stage tag for the generated matches

    Returns:
        All bracket matches, earlier rounds first

    Raises:
        InvalidInputError: If fewer than 2 participants
    """
    if len(participant_ids) < 2:
        raise InvalidInputError("Need at least 2 participants for a knockout bracket")

    matches: List[Match] = []
    units: List[List[Match]] = []

    for position, i in enumerate(range(0, len(participant_ids), 2)):
        first = participant_ids[i]
        if i + 1 < len(participant_ids):
            unit = _new_unit(first, participant_ids[i + 1], 0, position, stage, two_legged)
        else:
            unit = [make_bye(first, 0, position, stage)]
        units.append(unit)
        matches.extend(unit)

    round_ = 1
    while len(units) > 1:
        next_units = []
        for j in range(0, len(units) - 1, 2):
            unit = _new_unit(None, None, round_, j // 2, stage, two_legged)
            for source in units[j] + units[j + 1]:
                source.feeds_into = unit[0].match_id
            next_units.append(unit)
            matches.extend(unit)

        # Odd leftover moves on untouched
        if len(units) % 2 == 1:
            next_units.append(units[-1])

        units = next_units
        round_ += 1

    store = {m.match_id: m for m in matches}
    for match in matches:
        if match.is_bye and match.feeds_into is not None:
            place_in_slot(store, match.feeds_into, match.winner)

    return matches


def circle_rounds(participant_ids: List[str]) -> List[List[Tuple[str, str]]]:
    """
    Pairings for a single round robin using the circle method.

    The first participant stays fixed while the rest rotate. For odd counts
    a BYE placeholder is added; its pairings are kept here and filtered by
    the caller.

    Returns:
        n-1 rounds of n/2 pairings (n counted after adding the bye)
    """
    arr = list(participant_ids)
    if len(arr) % 2 == 1:
        arr.append(BYE)

    n = len(arr)
    rounds = []
    for _ in range(n - 1):
        rounds.append([(arr[i], arr[n - 1 - i]) for i in range(n // 2)])
        arr = [arr[0], arr[-1]] + arr[1:-1]
    return rounds


def build_round_robin(
    participant_ids: List[str],
    legs_per_pairing: int = 1,
    stage: Stage = Stage.LEAGUE,
    group: Optional[str] = None
) -> List[Match]:
    """
    Generate a round-robin schedule.

    Every leg repeats the base schedule with round indices offset by
    (leg - 1) * (n - 1). On even-numbered legs the recorded order of each
    pairing is swapped.

    Args:
        participant_ids: Participant ids
        legs_per_pairing: Times each pair meets (at least 1)
        stage: Stage tag for the generated matches
        group: Optional group label

    Returns:
        List of Match objects; empty for fewer than 2 participants

    Raises:
        InvalidInputError: If legs_per_pairing is below 1
    """
    if legs_per_pairing < 1:
        raise InvalidInputError(f"legs_per_pairing must be at least 1, got {legs_per_pairing}")
    if len(participant_ids) < 2:
        return []

    base = circle_rounds(participant_ids)
    rounds_per_leg = len(base)

    matches = []
    for leg in range(1, legs_per_pairing + 1):
        offset = (leg - 1) * rounds_per_leg
        for round_index, pairs in enumerate(base):
            position = 0
            for a, b in pairs:
                if BYE in (a, b):
                    continue
                if leg % 2 == 0:
                    a, b = b, a
                matches.append(Match(
                    match_id=new_match_id(),
                    slot1=a,
                    slot2=b,
                    round=offset + round_index,
                    position=position,
                    stage=stage,
                    group=group
                ))
                position += 1

    return matches


def group_label(index: int) -> str:
    """Spreadsheet-style label for a group index: A, B, ..., Z, AA, AB, ..."""
    label = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        label = chr(ord('A') + remainder) + label
    return label


def assign_groups(participant_ids: List[str], group_count: int) -> Dict[str, List[str]]:
    """
    Distribute participants over groups by index modulo group count.

    Empty groups (more groups than participants) are dropped.

    Raises:
        InvalidInputError: If group_count is below 1
    """
    if group_count < 1:
        raise InvalidInputError(f"group_count must be at least 1, got {group_count}")

    buckets: List[List[str]] = [[] for _ in range(group_count)]
    for i, participant in enumerate(participant_ids):
        buckets[i % group_count].append(participant)

    return {group_label(i): bucket for i, bucket in enumerate(buckets) if bucket}


def build_groups(
    participant_ids: List[str],
    group_count: int,
    legs_per_pairing: int = 1
) -> Tuple[Dict[str, List[str]], List[Match]]:
    """
    Partition participants into groups and schedule each group.

    Returns:
        Tuple of (group label -> member ids, all group matches)
    """
    groups = assign_groups(participant_ids, group_count)
    matches = []
    for label, members in groups.items():
        matches.extend(build_round_robin(members, legs_per_pairing, Stage.GROUP, label))
    return groups, matches


def _differential(match: Match, competitor_id: str) -> int:
    own, opponent = match.score_for(competitor_id)
    return own - opponent


def tie_winner(leg1: Match, leg2: Match) -> Optional[str]:
    """
    Winner of a two-legged tie by aggregate score differential.

    Returns:
        The side with the larger aggregate, or None if either leg is
        undecided or the aggregate is level
    """
    if not (leg1.is_decided and leg2.is_decided):
        return None

    side_a, side_b = leg1.slot1, leg1.slot2
    aggregate = _differential(leg1, side_a) + _differential(leg2, side_a)
    if aggregate > 0:
        return side_a
    if aggregate < 0:
        return side_b
    return None


def num_knockout_rounds(num_participants: int) -> int:
    """Number of rounds in a knockout bracket of the given size."""
    if num_participants < 2:
        return 0
    return (num_participants - 1).bit_length()


def num_round_robin_rounds(num_participants: int, legs_per_pairing: int = 1) -> int:
    """Number of rounds in a round-robin schedule."""
    if num_participants < 2:
        return 0
    n = num_participants + (num_participants % 2)
    return (n - 1) * legs_per_pairing


def num_pairings(num_participants: int, legs_per_pairing: int = 1) -> int:
    """Number of matches in a round-robin schedule."""
    n = num_participants
    return n * (n - 1) // 2 * legs_per_pairing
