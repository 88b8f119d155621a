"""
Monte Carlo RTP check for the calibrated math model.
Run with: python -m scripts.run_sim --spins 100000 --seed 42
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse
import time

import orjson

from little_wars.config import settings
from little_wars.simulation import simulate


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Little Wars Monte Carlo simulation")
    parser.add_argument("--spins", type=int, default=10000, help="Number of spins to play")
    parser.add_argument("--bet", type=float, default=1.0, help="Stake per spin")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (defaults to the clock)")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    seed = args.seed if args.seed is not None else int(time.time())

    report = simulate(spins=args.spins, bet=args.bet, seed=seed, config=settings.math)

    if args.json:
        print(orjson.dumps(report, option=orjson.OPT_INDENT_2).decode("utf-8"))
        return

    print("--- Little Wars Monte Carlo ---")
    print(f"spins: {report['spins']}, bet: {report['bet']}, seed: {report['seed']}")
    print(
        f"totalBet: {report['total_bet']:.2f}, totalWin: {report['total_win']:.2f}, "
        f"RTP: {report['rtp'] * 100:.2f}% (target {settings.math.base_rtp * 100:.2f}%)"
    )
    print(
        f"coins: {report['coins']}, matchRate: {report['match_rate'] * 100:.2f}%, "
        f"oppositeRate: {report['opposite_rate'] * 100:.2f}%"
    )
    tiles = report["final_tiles"]
    print(f"final tiles -> GREEN: {tiles['GREEN']}, ORANGE: {tiles['ORANGE']}")


if __name__ == "__main__":
    main()
