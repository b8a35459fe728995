"""
Arena module: competitors, duel resolution and progression.

The session context lives in src.arena.session and is imported from there.
"""
from src.arena.competitor import (
    Rarity, Combatant, Competitor, CompetitorStats, SyntheticOpponent,
    new_competitor_id, roll_rarity, generate_synthetic_opponent
)
from src.arena.duel import DuelOutcome, win_probability, resolve_duel, is_valid_score
from src.arena.progression import CompetitorDelta, apply_duel_outcome, award_championship

__all__ = [
    'Rarity',
    'Combatant',
    'Competitor',
    'CompetitorStats',
    'SyntheticOpponent',
    'new_competitor_id',
    'roll_rarity',
    'generate_synthetic_opponent',
    'DuelOutcome',
    'win_probability',
    'resolve_duel',
    'is_valid_score',
    'CompetitorDelta',
    'apply_duel_outcome',
    'award_championship',
]
