#!/usr/bin/env python3
"""
Simulate league seasons with promotion and relegation.

Usage:
    python scripts/season.py --competitors 12 --divisions 3 --duels 300

Duels are drawn between random members of the same division, with the
occasional world duel against a generated opponent. Every duel counts toward
the season threshold; the season closes each time it is reached.
"""

import argparse
import random
import sys
from pathlib import Path

from tqdm import tqdm

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.arena.session import ArenaSession, SessionConfig
from src.season.league import SeasonConfig
from src.tournament.display import format_division_tables, format_season_summary
from src.tournament.storage import ArenaStorage
from src.utils.constants import LEAGUE_RESET_LIMIT, MAX_DIVISIONS
from src.utils.errors import ArenaError
from src.utils.logging_config import setup_logging


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Simulate league seasons across divisions.')
    parser.add_argument('--competitors', '-c', type=int, default=12,
                        help='Number of generated competitors (default: 12)')
    parser.add_argument('--divisions', '-d', type=int, default=MAX_DIVISIONS,
                        help=f'Divisions to unlock (default: {MAX_DIVISIONS})')
    parser.add_argument('--duels', '-n', type=int, default=3 * LEAGUE_RESET_LIMIT,
                        help='Total duels to simulate')
    parser.add_argument('--threshold', type=int, default=LEAGUE_RESET_LIMIT,
                        help=f'Duels per season (default: {LEAGUE_RESET_LIMIT})')
    parser.add_argument('--world-chance', type=float, default=0.1,
                        help='Chance that a duel is a world duel (default: 0.1)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for a reproducible run')
    parser.add_argument('--save', action='store_true',
                        help='Save the session to the data directory')
    parser.add_argument('--data-dir', type=str, default='data',
                        help='Directory for storing results (default: data)')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Hide the progress bar and season summaries')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging')
    return parser.parse_args()


def populate(session: ArenaSession, count: int, divisions: int, rng: random.Random):
    """
    Fill the divisions one after another.

    Competitors always enter the lowest unlocked division, so the next
    division is unlocked once the current one has its share.
    """
    per_division = max(1, count // divisions)
    for i in range(count):
        if i > 0 and i % per_division == 0 and session.unlocked_divisions < divisions:
            session.unlock_division()
        session.add_competitor(f"Fighter {i + 1}", level=rng.randint(1, 8))


def pick_pairing(session: ArenaSession, rng: random.Random):
    """Two random members of a random division with at least two members."""
    divisions = {}
    for competitor in session.competitors:
        divisions.setdefault(competitor.division, []).append(competitor.competitor_id)
    eligible = [members for members in divisions.values() if len(members) >= 2]
    if not eligible:
        return None
    return rng.sample(rng.choice(eligible), 2)


def main():
    """Main entry point."""
    args = parse_args()
    setup_logging(verbose=args.verbose)

    rng = random.Random(args.seed)
    try:
        config = SessionConfig(
            season=SeasonConfig(duel_threshold=args.threshold),
            seed=args.seed
        )
        session = ArenaSession(config, rng=rng)
        populate(session, args.competitors, min(args.divisions, config.season.max_divisions), rng)
    except (ArenaError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    names = {c.competitor_id: c.name for c in session.competitors}

    for _ in tqdm(range(args.duels), disable=args.quiet, desc="Duels"):
        if rng.random() < args.world_chance:
            report = session.world_duel(rng.choice(session.competitors).competitor_id)
        else:
            pairing = pick_pairing(session, rng)
            if pairing is None:
                print("Error: no division has two competitors")
                return 1
            report = session.duel(*pairing)

        if report.season is not None and not args.quiet:
            tqdm.write(format_season_summary(report.season, names, session.seasons_played))
            tqdm.write("")

    print("\n" + format_division_tables(session.competitors, session.unlocked_divisions))

    print(f"\nSeasons completed: {session.seasons_played}")
    print(f"Duels into current season: {session.duel_count}/{args.threshold}")

    top = sorted(session.competitors, key=lambda c: c.stats.championships, reverse=True)[:3]
    for competitor in top:
        streak = session.history.longest_streak(competitor.competitor_id)
        print(f"  {competitor.name}: {competitor.stats.championships} titles, "
              f"level {competitor.level}, longest streak {streak}")

    if args.save:
        storage = ArenaStorage(args.data_dir)
        storage.save_session(session)
        print(f"\nSaved to {storage.db_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
