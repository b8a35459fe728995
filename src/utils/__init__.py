"""
Utilities module for the arena ladder.
"""
from src.utils.constants import (
    LEGS_PER_DUEL, LEGS_TO_WIN, VALID_SCORES,
    FIRST, SECOND, SIDE_NAMES,
    LEAGUE_RESET_LIMIT, MAX_DIVISIONS
)
from src.utils.errors import (
    ArenaError, InvalidInputError, InvalidResultError,
    UnknownCompetitorError, UnknownTournamentError
)
from src.utils.logging_config import setup_logging

__all__ = [
    'LEGS_PER_DUEL', 'LEGS_TO_WIN', 'VALID_SCORES',
    'FIRST', 'SECOND', 'SIDE_NAMES',
    'LEAGUE_RESET_LIMIT', 'MAX_DIVISIONS',
    'ArenaError', 'InvalidInputError', 'InvalidResultError',
    'UnknownCompetitorError', 'UnknownTournamentError',
    'setup_logging'
]
