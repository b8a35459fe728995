"""
Main script to play back a single duel between two competitors.

The duel is resolved in one step; the per-leg delay only paces the printout.
"""
import argparse
import sys
import time

from src.arena.competitor import Rarity
from src.arena.session import ArenaSession, SessionConfig
from src.tournament.display import format_legs, format_duel_line
from src.utils.constants import FIRST, TOWER_FLOORS
from src.utils.errors import ArenaError
from src.utils.logging_config import setup_logging


def play_duel(
    session: ArenaSession,
    first_id: str,
    second_id: str = None,
    favored_id: str = None,
    delay: float = 0.5,
    verbose: bool = True
):
    """
    Resolve a duel and print it leg by leg.

    Args:
        session: Session owning both competitors
        first_id: Competitor on the first side
        second_id: Competitor on the second side (world duel if None)
        favored_id: Competitor under a favor boost, if any
        delay: Seconds to wait between legs (for visualization)
        verbose: Whether to print the playback

    Returns:
        DuelReport of the duel
    """
    if second_id is None:
        report = session.world_duel(first_id, favored=favored_id == first_id)
    else:
        report = session.duel(first_id, second_id, favored_id)

    record = report.record
    outcome = report.outcome
    if verbose:
        print(f"{record.first_name} vs {record.second_name}")
        print(f"Win probability for {record.first_name}: {outcome.win_probability:.0%}")
        if outcome.inspired_side is not None:
            inspired = record.first_name if outcome.inspired_side == FIRST else record.second_name
            print(f"{inspired} is inspired!")
        print()

        for line in format_legs(outcome.legs, record.first_name, record.second_name):
            if delay > 0:
                time.sleep(delay)
            print(line)

        print()
        print(format_duel_line(record))

        for delta in report.deltas:
            if delta.levels:
                name = session.get_competitor(delta.competitor_id).name
                print(f"{name} reached level {session.get_competitor(delta.competitor_id).level}!")
            for skill in delta.new_skills:
                print(f"New skill learned: {skill}")

    return report


def main():
    parser = argparse.ArgumentParser(description='Play back a best-of-5 duel')
    parser.add_argument('--first', type=str, default='Ayla',
                        help='Name of the first competitor')
    parser.add_argument('--second', type=str, default='Bram',
                        help='Name of the second competitor')
    parser.add_argument('--level1', type=int, default=1,
                        help='Level of the first competitor (default: 1)')
    parser.add_argument('--level2', type=int, default=1,
                        help='Level of the second competitor (default: 1)')
    parser.add_argument('--skills1', type=int, default=0,
                        help='Skill count of the first competitor')
    parser.add_argument('--skills2', type=int, default=0,
                        help='Skill count of the second competitor')
    parser.add_argument('--favor', type=str, choices=['first', 'second'], default=None,
                        help='Give one side the favor boost')
    parser.add_argument('--world', action='store_true',
                        help='Duel the first competitor against a generated opponent')
    parser.add_argument('--tower', action='store_true',
                        help='Send the first competitor up the tower of bots')
    parser.add_argument('--delay', type=float, default=0.5,
                        help='Delay between legs in seconds (default: 0.5)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for a reproducible duel')
    parser.add_argument('--quiet', action='store_true',
                        help='Only print the final result')
    parser.add_argument('--log-level', type=str, default='WARNING',
                        help='Logging level (default: WARNING)')

    args = parser.parse_args()
    setup_logging(args.log_level)

    session = ArenaSession(SessionConfig(seed=args.seed))
    try:
        first = session.add_competitor(
            args.first, level=args.level1,
            skills=[f"Skill {i + 1}" for i in range(args.skills1)],
            rarity=Rarity.NORMAL
        )
        second = None
        if not (args.world or args.tower):
            second = session.add_competitor(
                args.second, level=args.level2,
                skills=[f"Skill {i + 1}" for i in range(args.skills2)],
                rarity=Rarity.NORMAL
            )
    except ArenaError as e:
        print(f"Error: {e}")
        return 1

    if args.tower:
        run = session.climb_tower(first.competitor_id, favored=args.favor == 'first')
        for report in run.reports:
            print(format_duel_line(report.record))
        print(f"{first.name} cleared {run.floors_cleared}/{TOWER_FLOORS} floors"
              + (" and conquered the tower!" if run.completed else ""))
        return 0

    favored_id = None
    if args.favor == 'first':
        favored_id = first.competitor_id
    elif args.favor == 'second' and second is not None:
        favored_id = second.competitor_id

    report = play_duel(
        session,
        first.competitor_id,
        second.competitor_id if second else None,
        favored_id=favored_id,
        delay=args.delay,
        verbose=not args.quiet
    )

    if args.quiet:
        print(format_duel_line(report.record))
    return 0


if __name__ == "__main__":
    sys.exit(main())
