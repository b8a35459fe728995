"""
Display formatting for tournaments, divisions and duels.

Provides ASCII-formatted standings tables and bracket listings for terminal output.
"""

from typing import Dict, List, Optional

from src.arena.competitor import Competitor
from src.history.records import DuelRecord
from src.tournament.models import Match, Stage, Tournament, BYE
from src.tournament.standings import StandingEntry
from src.utils.constants import FIRST


def _name(names: Dict[str, str], competitor_id: Optional[str]) -> str:
    if competitor_id is None:
        return "TBD"
    if competitor_id == BYE:
        return "(bye)"
    return names.get(competitor_id, competitor_id)


def short_name(name: str, max_len: int = 20) -> str:
    """Truncate long names for display."""
    if len(name) <= max_len:
        return name
    return name[:max_len-2] + ".."


def format_standings(
    standings: List[StandingEntry],
    names: Dict[str, str],
    title: str = "STANDINGS",
    highlight: int = 0
) -> str:
    """
    Format a standings table as ASCII.

    Args:
        standings: Ranked entries
        names: competitor id -> display name
        title: Table title
        highlight: Mark the first N rows as qualifying

    Returns:
        Formatted string for terminal display
    """
    lines = []
    lines.append(f"=== {title} ===")
    lines.append("")

    # Header
    lines.append(f"{'Rank':<6}{'Competitor':<24}{'Pts':<6}{'W-L':<8}{'Played':<8}")
    lines.append("-" * 52)

    # Rows
    for i, entry in enumerate(standings, 1):
        marker = "*" if i <= highlight else " "
        wl = f"{entry.wins}-{entry.losses}"
        name = short_name(_name(names, entry.competitor_id))
        lines.append(f"{i:<5}{marker}{name:<24}{entry.points:<6}{wl:<8}{entry.played:<8}")

    return "\n".join(lines)


def format_match(match: Match, names: Dict[str, str]) -> str:
    """Format a single match line."""
    left = _name(names, match.slot1)
    right = _name(names, match.slot2)

    tag = ""
    if match.leg is not None:
        tag = f" [leg {match.leg}]"
    elif match.decider_for is not None:
        tag = " [decider]"

    if match.is_bye:
        return f"  {left} advances with a bye"
    if match.has_scores:
        return f"  {left} {match.score1}-{match.score2} {right}{tag}"
    return f"  {left} vs {right}{tag}"


def _round_title(stage: Stage, round_: int, last_round: int) -> str:
    if stage != Stage.KNOCKOUT:
        return f"Round {round_ + 1}"
    if round_ == last_round:
        return "Final"
    if round_ == last_round - 1:
        return "Semi-finals"
    return f"Round {round_ + 1}"


def format_stage(
    tournament: Tournament,
    stage: Stage,
    names: Dict[str, str],
    group: Optional[str] = None
) -> str:
    """Format all matches of a stage (or group) round by round."""
    matches = tournament.match_list(stage, group)
    if not matches:
        return ""

    rounds = sorted({m.round for m in matches})
    last_round = rounds[-1]

    lines = []
    for round_ in rounds:
        lines.append(_round_title(stage, round_, last_round) + ":")
        for match in tournament.round_matches(stage, round_):
            if group is None or match.group == group:
                lines.append(format_match(match, names))
    return "\n".join(lines)


def format_bracket(tournament: Tournament, names: Dict[str, str]) -> str:
    """
    Format every stage of a tournament.

    Groups are listed one after another, followed by the league and the
    knockout stage when present.
    """
    lines = []
    lines.append(f"Tournament: {tournament.name} ({tournament.format.value})")
    lines.append(f"Participants: {len(tournament.participant_ids)}")
    lines.append("")

    for label in tournament.groups:
        lines.append(f"--- Group {label} ---")
        lines.append(format_stage(tournament, Stage.GROUP, names, label))
        lines.append("")

    for stage, title in ((Stage.LEAGUE, "League"), (Stage.KNOCKOUT, "Knockout")):
        if tournament.has_stage(stage):
            lines.append(f"--- {title} ---")
            lines.append(format_stage(tournament, stage, names))
            lines.append("")

    if tournament.is_finished:
        lines.append(f"Winner: {_name(names, tournament.winner)}")
    return "\n".join(lines)


def format_division_tables(competitors: List[Competitor], unlocked_divisions: int) -> str:
    """Format the league table of every unlocked division."""
    names = {c.competitor_id: c.name for c in competitors}
    blocks = []
    for division in range(1, unlocked_divisions + 1):
        members = [c for c in competitors if c.division == division]
        members.sort(key=lambda c: c.stats.league_points, reverse=True)
        entries = [
            StandingEntry(c.competitor_id, c.stats.league_points, c.stats.wins, c.stats.total_duels)
            for c in members
        ]
        blocks.append(format_standings(entries, names, title=f"DIVISION {division}"))
    return "\n\n".join(blocks)


def format_season_summary(result, names: Dict[str, str], season_number: int = 0) -> str:
    """
    Format the outcome of a season cycle.

    Args:
        result: SeasonResult from the season cycle
        names: competitor id -> display name
        season_number: Shown in the header when positive
    """
    header = f"Season {season_number} finished" if season_number > 0 else "Season finished"
    lines = [f"=== {header} ==="]
    lines.append(f"Champion: {_name(names, result.champion_id) if result.champion_id else '---'}")

    for change in result.changes:
        verb = "promoted" if change.promoted else "relegated"
        lines.append(
            f"  {_name(names, change.competitor_id)} {verb}: "
            f"division {change.from_division} -> {change.to_division}"
        )
    return "\n".join(lines)


def format_duel_line(record: DuelRecord) -> str:
    """Format a history record as a single line."""
    first = record.first_name or record.first_id or "?"
    second = record.second_name or record.second_id or "?"
    if record.winner_id is None:
        winner = second if record.first_id is not None else first
    else:
        winner = first if record.winner_id == record.first_id else second

    context = f" ({record.tournament_name})" if record.tournament_name else ""
    return (f"[{record.kind.value}] {first} {record.score1}-{record.score2} {second}"
            f" -> {winner}{context}")


def format_legs(legs: List[int], first_name: str, second_name: str) -> List[str]:
    """Running score after every leg, for duel playback."""
    lines = []
    score1 = score2 = 0
    for i, side in enumerate(legs, 1):
        if side == FIRST:
            score1 += 1
            leg_winner = first_name
        else:
            score2 += 1
            leg_winner = second_name
        lines.append(f"  Leg {i}: {leg_winner} ({score1}-{score2})")
    return lines
