"""
Tournament module for knockout, league and hybrid competitions.

Provides:
- Tournament, Match: Data model with id-linked matches
- build_knockout, build_round_robin, build_groups: Bracket builders
- compute_standings: Point tables from match results
- create_tournament, apply_result: Tournament state machine
- ArenaStorage: Persists tournaments and arena state
"""

from src.tournament.models import (
    BYE, Match, Stage, Tournament, TournamentFormat, TournamentSettings, TournamentStatus
)
from src.tournament.scheduler import build_knockout, build_round_robin, build_groups, tie_winner
from src.tournament.standings import StandingEntry, compute_standings
from src.tournament.engine import (
    ApplyStatus, ApplyResult, create_tournament, apply_result, record_duel, pending_matches,
    locate_pair_match, slot_scores
)
from src.tournament.storage import ArenaStorage
from src.tournament.display import format_standings, format_bracket

__all__ = [
    'BYE',
    'Match',
    'Stage',
    'Tournament',
    'TournamentFormat',
    'TournamentSettings',
    'TournamentStatus',
    'build_knockout',
    'build_round_robin',
    'build_groups',
    'tie_winner',
    'StandingEntry',
    'compute_standings',
    'ApplyStatus',
    'ApplyResult',
    'create_tournament',
    'apply_result',
    'record_duel',
    'pending_matches',
    'locate_pair_match',
    'slot_scores',
    'ArenaStorage',
    'format_standings',
    'format_bracket',
]
