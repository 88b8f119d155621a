"""
Two-stage spin resolution.

Stage 1 pays coins against the board as it was when they landed. Stage 2
then applies every ownership change (coin flips, soldiers, tanks) and the
final tiers are recomputed. Keeping the passes apart means a spin's own
conversions can never change what that spin pays.
"""

from typing import Dict, List, Sequence, Tuple

from little_wars.config import MultiplierThreshold
from little_wars.core.board import Board
from little_wars.core.exceptions import SymbolCountMismatch
from little_wars.core.logger import get_logger
from little_wars.core.multipliers import calculate_multipliers
from little_wars.core.types import (
    Colour,
    Multipliers,
    SpinResolution,
    Symbol,
    SymbolType,
    Tile,
    TilePayout,
    tile_id,
)

logger = get_logger("resolver")


def resolve_spin(
    board: Board,
    symbols: Sequence[Symbol],
    bet: float,
    multiplier_tables: Dict[Colour, List[MultiplierThreshold]],
) -> SpinResolution:
    """
    Resolve one spin against a board.

    Args:
        board: Current ownership grid (left untouched)
        symbols: One symbol per tile, row-major
        bet: Stake the coin payouts are scaled by
        multiplier_tables: Per-colour tier thresholds

    Returns:
        SpinResolution with the mutated tiles, payouts and both the initial
        and final counts/multipliers
    """
    if len(symbols) != board.tile_count:
        raise SymbolCountMismatch(board.tile_count, len(symbols))

    working = board.copy()
    tiles = working.get_tiles()
    for tile, symbol in zip(tiles, symbols):
        working.set_tile_symbol(tile.id, symbol)

    initial_counts = working.count_colours()
    initial_multipliers = calculate_multipliers(initial_counts, multiplier_tables)

    payouts, pending_flips = _payout_pass(tiles, symbols, bet, initial_multipliers)

    for flip_id, colour in pending_flips:
        working.set_tile_colour(flip_id, colour)
    _apply_soldiers(working, tiles, symbols)
    _apply_tanks(working, tiles, symbols)

    counts = working.count_colours()
    multipliers = calculate_multipliers(counts, multiplier_tables)
    spin_win = sum(p.amount for p in payouts)

    logger.debug(
        f"Resolved spin: win={spin_win} payouts={len(payouts)} flips={len(pending_flips)} "
        f"counts={_fmt(initial_counts)}->{_fmt(counts)}"
    )

    return SpinResolution(
        symbols=list(symbols),
        tiles=working.get_tiles(),
        payouts=payouts,
        spin_win=spin_win,
        counts=counts,
        multipliers=multipliers,
        initial_counts=initial_counts,
        initial_multipliers=initial_multipliers,
    )


def _payout_pass(
    tiles: Sequence[Tile], symbols: Sequence[Symbol], bet: float, multipliers: Multipliers
) -> Tuple[List[TilePayout], List[Tuple[str, Colour]]]:
    payouts = []
    pending_flips = []
    for tile, symbol in zip(tiles, symbols):
        if symbol.type != SymbolType.COIN:
            continue
        if symbol.colour == tile.colour:
            win = bet * multipliers[tile.colour] * symbol.value
            payouts.append(TilePayout(tile_id=tile.id, amount=win))
        else:
            pending_flips.append((tile.id, symbol.colour))
    return payouts, pending_flips


def _apply_soldiers(board: Board, tiles: Sequence[Tile], symbols: Sequence[Symbol]):
    # Soldiers act in row-major order against the live board
    for tile, symbol in zip(tiles, symbols):
        if symbol.type != SymbolType.SOLDIER:
            continue
        current = board.get_tile(tile.id)
        if current.colour != symbol.colour:
            board.set_tile_colour(tile.id, symbol.colour)
            continue
        neighbours = board.get_adjacent(tile.id)
        target = next((n for n in neighbours if n.colour != symbol.colour), None)
        if target is None and neighbours:
            target = neighbours[0]
        if target is not None:
            board.set_tile_colour(target.id, symbol.colour)


def _apply_tanks(board: Board, tiles: Sequence[Tile], symbols: Sequence[Symbol]):
    for tile, symbol in zip(tiles, symbols):
        if symbol.type != SymbolType.TANK:
            continue
        for col in range(tile.col, board.cols):
            board.set_tile_colour(tile_id(tile.row, col), symbol.colour)


def _fmt(counts) -> str:
    return "/".join(str(counts[c]) for c in (Colour.GREEN, Colour.ORANGE))
