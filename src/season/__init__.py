"""
Season module for division promotion and relegation.
"""
from src.season.league import (
    SeasonConfig, DivisionChange, SeasonResult,
    rank_division, division_table, plan_division_moves, run_season_cycle
)

__all__ = [
    'SeasonConfig', 'DivisionChange', 'SeasonResult',
    'rank_division', 'division_table', 'plan_division_moves', 'run_season_cycle'
]
