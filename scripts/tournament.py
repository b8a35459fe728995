#!/usr/bin/env python3
"""
Simulate a tournament between generated competitors.

Usage:
    python scripts/tournament.py --format knockout --participants 8

Examples:
    # Quick knockout
    python scripts/tournament.py --format knockout --participants 6

    # Double round-robin league
    python scripts/tournament.py --format league --participants 5 --legs 2

    # League then top-4 playoff with two-legged ties
    python scripts/tournament.py --format league_playoff --participants 8 --knockout-size 4 --two-legged

    # Groups then playoff, saved to data/arena.db
    python scripts/tournament.py --format groups_playoff --participants 12 --groups 3 --advance 2 --save
"""

import argparse
import random
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.arena.session import ArenaSession, SessionConfig
from src.tournament.engine import league_qualifiers
from src.tournament.models import Stage, TournamentFormat, TournamentSettings
from src.tournament.storage import ArenaStorage
from src.tournament.display import format_bracket, format_standings, format_duel_line
from src.utils.constants import SKILL_NAMES_POOL
from src.utils.errors import ArenaError
from src.utils.logging_config import setup_logging

DEFAULT_NAMES = [
    "Ayla", "Bram", "Cora", "Dax", "Elin", "Finn", "Gwen", "Hale",
    "Iris", "Joss", "Kira", "Lev", "Mira", "Nox", "Orin", "Pia",
]


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Simulate a tournament between generated competitors.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Formats:
  knockout         Single elimination (optionally two-legged ties)
  league           Round robin, best points total wins
  league_playoff   Round robin, then knockout between the top K
  groups_playoff   Groups, then knockout between each group's top A
'''
    )

    parser.add_argument(
        '--format', '-f',
        type=str, default='knockout',
        choices=[f.value for f in TournamentFormat],
        help='Tournament format (default: knockout)'
    )
    parser.add_argument(
        '--participants', '-p',
        type=int, default=8,
        help='Number of generated competitors (default: 8)'
    )
    parser.add_argument(
        '--names',
        type=str, nargs='+', default=None,
        help='Competitor names (overrides --participants)'
    )
    parser.add_argument(
        '--legs',
        type=int, default=1,
        help='Times each pair meets in a league or group (default: 1)'
    )
    parser.add_argument(
        '--two-legged',
        action='store_true',
        help='Play knockout ties over two legs'
    )
    parser.add_argument(
        '--groups',
        type=int, default=2,
        help='Number of groups (default: 2)'
    )
    parser.add_argument(
        '--advance',
        type=int, default=2,
        help='Qualifiers per group (default: 2)'
    )
    parser.add_argument(
        '--knockout-size',
        type=int, default=4,
        help='League qualifiers for the playoff (default: 4)'
    )
    parser.add_argument(
        '--max-level',
        type=int, default=10,
        help='Highest level of a generated competitor (default: 10)'
    )
    parser.add_argument(
        '--seed',
        type=int, default=None,
        help='Random seed for a reproducible tournament'
    )
    parser.add_argument(
        '--save',
        action='store_true',
        help='Save the session to the data directory'
    )
    parser.add_argument(
        '--data-dir',
        type=str, default='data',
        help='Directory for storing results (default: data)'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Minimal output (only final results)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging'
    )

    return parser.parse_args()


def build_roster(session: ArenaSession, names, max_level: int, rng: random.Random):
    """Add competitors with random levels and skills to the session."""
    ids = []
    for name in names:
        level = rng.randint(1, max(1, max_level))
        skills = rng.sample(SKILL_NAMES_POOL, rng.randint(0, 3))
        competitor = session.add_competitor(name, level=level, skills=skills)
        ids.append(competitor.competitor_id)
    return ids


def run_tournament(session: ArenaSession, tournament_id: str, verbose: bool = True) -> int:
    """
    Play every match until the tournament finishes.

    Returns:
        Number of matches played
    """
    tournament = session.get_tournament(tournament_id)
    played = 0
    while not tournament.is_finished:
        report = session.play_match(tournament_id)
        played += 1
        if verbose:
            print(format_duel_line(report.record))
        if report.apply and report.apply.generated and verbose:
            print(f"  -> {len(report.apply.generated)} new match(es) scheduled")
    return played


def main():
    """Main entry point."""
    args = parse_args()
    setup_logging(verbose=args.verbose)

    rng = random.Random(args.seed)
    session = ArenaSession(SessionConfig(seed=args.seed), rng=rng)

    names = args.names or [
        DEFAULT_NAMES[i % len(DEFAULT_NAMES)] + ("" if i < len(DEFAULT_NAMES) else f" {i // len(DEFAULT_NAMES) + 1}")
        for i in range(args.participants)
    ]

    try:
        participant_ids = build_roster(session, names, args.max_level, rng)
        settings = TournamentSettings(
            legs_per_pairing=args.legs,
            two_legged=args.two_legged,
            group_count=args.groups,
            advance_per_group=args.advance,
            knockout_size=args.knockout_size
        )
        fmt = TournamentFormat(args.format)
        tournament = session.create_tournament("Arena Cup", participant_ids, fmt, settings)
    except (ArenaError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    id_names = {c.competitor_id: c.name for c in session.competitors}

    if not args.quiet:
        print(f"Tournament: {tournament.name} ({fmt.value})")
        print(f"Participants: {len(participant_ids)}")
        print(f"Scheduled matches: {len(tournament.matches)}")
        print("")

    played = run_tournament(session, tournament.tournament_id, verbose=not args.quiet)

    print("\n" + format_bracket(tournament, id_names))

    if fmt in (TournamentFormat.LEAGUE, TournamentFormat.LEAGUE_PLAYOFF):
        cutoff = len(league_qualifiers(tournament)) if fmt == TournamentFormat.LEAGUE_PLAYOFF else 0
        print(format_standings(session.tournament_standings(tournament.tournament_id), id_names,
                               title="LEAGUE TABLE", highlight=cutoff))
    elif fmt == TournamentFormat.GROUPS_PLAYOFF:
        for label in tournament.groups:
            print(format_standings(session.tournament_standings(tournament.tournament_id, label), id_names,
                                   title=f"GROUP {label}", highlight=settings.advance_per_group))
            print("")

    champion = session.get_competitor(tournament.winner)
    print(f"\nChampion: {champion.name} (level {champion.level}) after {played} matches")
    if tournament.has_stage(Stage.KNOCKOUT) and fmt != TournamentFormat.KNOCKOUT:
        print(f"Knockout matches: {len(tournament.match_list(Stage.KNOCKOUT))}")

    if args.save:
        storage = ArenaStorage(args.data_dir)
        storage.save_session(session)
        print(f"\nSaved to {storage.db_path}")

    print(f"\nTournament ID: {tournament.tournament_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
