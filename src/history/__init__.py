"""
Duel history module.

Keeps one record per resolved duel and derives streak and rivalry statistics.
"""
from src.history.records import DuelKind, DuelRecord
from src.history.stats import DuelHistory

__all__ = [
    'DuelKind',
    'DuelRecord',
    'DuelHistory'
]
