"""
Monte Carlo check of the calibrated math model.

Runs the calibrated generator through the resolver spin after spin, carrying
the board forward, and reports the observed return to player.
"""

from typing import Dict, Optional

from little_wars.config import MathConfig
from little_wars.core.board import Board
from little_wars.core.resolver import resolve_spin
from little_wars.core.rng import RandomSource, SeededRNG
from little_wars.core.symbols import CalibratedSymbolSource
from little_wars.core.types import Colour, SymbolType


def simulate(
    spins: int = 10000,
    bet: float = 1.0,
    seed: int = 1,
    config: Optional[MathConfig] = None,
    rows: int = 5,
    cols: int = 6,
    rng: Optional[RandomSource] = None,
) -> Dict:
    """
    Simulate calibrated spins from an evenly split board.

    Args:
        spins: Number of spins to play
        bet: Stake per spin
        seed: Seed for the reproducible random source
        config: Math model (defaults to MathConfig())
        rows: Board rows
        cols: Board columns
        rng: Random source override (seed is then informational only)

    Returns:
        Dict with totals, RTP, coin statistics and the final tile split
    """
    if spins <= 0:
        raise ValueError("spins must be positive")
    config = config or MathConfig()
    source = CalibratedSymbolSource(config, rng=rng or SeededRNG(seed))
    board = Board(rows, cols)

    total_win = 0.0
    coins = 0
    matches = 0

    for _ in range(spins):
        colours = board.colours()
        symbols = source.generate(board)
        result = resolve_spin(board, symbols, bet, config.colour_multipliers)
        total_win += result.spin_win
        for colour, symbol in zip(colours, symbols):
            if symbol.type != SymbolType.COIN:
                continue
            coins += 1
            if symbol.colour == colour:
                matches += 1
        board = Board.from_tiles(result.tiles)

    total_bet = spins * bet
    counts = board.count_colours()
    return {
        "spins": spins,
        "bet": bet,
        "seed": seed,
        "total_bet": total_bet,
        "total_win": total_win,
        "rtp": total_win / total_bet,
        "coins": coins,
        "match_rate": matches / coins if coins else 0.0,
        "opposite_rate": (coins - matches) / coins if coins else 0.0,
        "final_tiles": {colour.value: counts[colour] for colour in (Colour.GREEN, Colour.ORANGE)},
    }
