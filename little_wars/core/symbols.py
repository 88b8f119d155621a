"""
Symbol generators.

Every source satisfies one contract, `generate(board) -> list of symbols`
with exactly one symbol per tile in row-major order. The board is passed so
the weighted source can see columns and tile colours and the calibrated
source can see the colour split; none of them keep a reference to it.
"""

from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from little_wars.config import (
    CoinValueDistributionPerMatch,
    CoinValueWeight,
    MathConfig,
    SymbolDistribution,
)
from little_wars.core.board import Board
from little_wars.core.calibration import get_coin_probability_for_state, sample_coin_multiplier
from little_wars.core.exceptions import InvalidDistribution, LengthMismatch
from little_wars.core.rng import RandomSource, TrueRNG
from little_wars.core.types import (
    COLOURS,
    CoinSymbol,
    Colour,
    EmptySymbol,
    SoldierSymbol,
    Symbol,
    SymbolType,
    TankSymbol,
    Tile,
)

DISTRIBUTION_TOLERANCE = 0.0001


class SymbolSource(Protocol):
    def generate(self, board: Board) -> List[Symbol]:
        ...


def count_symbol_type(symbols: Sequence[Symbol], symbol_type: SymbolType) -> int:
    return sum(1 for s in symbols if s.type == symbol_type)


class FixedSymbolSource:
    """Returns a pre-supplied sequence. Used for tests and replaying outcomes."""

    def __init__(self, symbols: Sequence[Symbol]):
        self.symbols = list(symbols)

    def generate(self, board: Board) -> List[Symbol]:
        if len(self.symbols) != board.tile_count:
            raise LengthMismatch(board.tile_count, len(self.symbols))
        return list(self.symbols)


class WeightedSymbolSource:
    """
    Static per-symbol-type probabilities.

    Per tile: an optional tank draw (per-column weights, or the scalar
    `distribution.tank`), then one draw across empty/coin/soldier, a colour
    draw for any non-empty symbol, and a value draw for coins keyed by colour
    and by whether the coin lands on its own colour.
    """

    def __init__(
        self,
        distribution: SymbolDistribution,
        coin_value_distribution: Dict[Colour, CoinValueDistributionPerMatch],
        tank_reel_weights: Optional[Dict[Colour, List[float]]] = None,
        rng: Optional[RandomSource] = None,
    ):
        self._validate_distribution(distribution)
        self._validate_coin_distribution(coin_value_distribution)
        self._validate_tank_weights(tank_reel_weights or {})

        self.distribution = distribution
        self.coin_value_distribution = dict(coin_value_distribution)
        self.tank_reel_weights = {c: list(w) for c, w in (tank_reel_weights or {}).items()}
        self.rng = rng or TrueRNG()

    def generate(self, board: Board) -> List[Symbol]:
        return [self._random_symbol(tile) for tile in board.get_tiles()]

    def _random_symbol(self, tile: Tile) -> Symbol:
        green_tank, orange_tank = self._tank_weights(tile.col)
        tank_probability = green_tank + orange_tank
        if tank_probability > 0 and self.rng() < tank_probability:
            colour = Colour.GREEN if self.rng() < green_tank / tank_probability else Colour.ORANGE
            return TankSymbol(colour=colour)

        roll = self.rng()
        empty_cutoff = self.distribution.empty
        coin_cutoff = empty_cutoff + self.distribution.coin

        if roll < empty_cutoff:
            return EmptySymbol()
        if roll < coin_cutoff:
            colour = self._random_colour()
            return CoinSymbol(colour=colour, value=self._random_coin_value(colour, tile.colour))
        return SoldierSymbol(colour=self._random_colour())

    def _random_colour(self) -> Colour:
        return Colour.GREEN if self.rng() < 0.5 else Colour.ORANGE

    def _random_coin_value(self, coin_colour: Colour, tile_colour: Colour) -> float:
        per_match = self.coin_value_distribution[coin_colour]
        table = per_match.on_own if coin_colour == tile_colour else per_match.on_opposite
        return sample_coin_multiplier(table, self.rng)

    def _tank_weights(self, col: int) -> Tuple[float, float]:
        if not self.tank_reel_weights:
            half = self.distribution.tank / 2
            return half, half
        weights = []
        for colour in COLOURS:
            column_weights = self.tank_reel_weights.get(colour, [])
            weights.append(column_weights[col] if col < len(column_weights) else 0.0)
        return weights[0], weights[1]

    @staticmethod
    def _validate_distribution(distribution: SymbolDistribution):
        probabilities = (distribution.empty, distribution.coin, distribution.soldier, distribution.tank)
        if any(p < 0 for p in probabilities):
            raise InvalidDistribution("Symbol probabilities must be non-negative.")
        total = distribution.empty + distribution.coin + distribution.soldier
        if abs(total - 1) > DISTRIBUTION_TOLERANCE:
            raise InvalidDistribution("Symbol distribution must sum to 1.")
        if distribution.tank > 1:
            raise InvalidDistribution("Tank probability cannot exceed 1.")

    @staticmethod
    def _validate_coin_distribution(distribution: Dict[Colour, CoinValueDistributionPerMatch]):
        for colour in COLOURS:
            per_match = distribution.get(colour)
            if per_match is None:
                raise InvalidDistribution(f"Coin value distribution missing for {colour.value}.")
            for name, table in (("on_own", per_match.on_own), ("on_opposite", per_match.on_opposite)):
                _check_weights(table, f"Coin value distribution for {colour.value} ({name})")

    @staticmethod
    def _validate_tank_weights(weights: Dict[Colour, List[float]]):
        for colour, column_weights in weights.items():
            if any(w < 0 for w in column_weights):
                raise InvalidDistribution(f"Tank weights for {Colour(colour).value} must be non-negative.")
        columns = max((len(w) for w in weights.values()), default=0)
        for col in range(columns):
            total = sum(w[col] for w in weights.values() if col < len(w))
            if total > 1:
                raise InvalidDistribution(f"Tank weights for column {col} exceed 1.")


class CalibratedSymbolSource:
    """
    Math-model mode: only coins and empties. The coin probability is
    recomputed from the board each spin so the expected return equals
    `base_rtp` regardless of how the tiles are split.
    """

    def __init__(self, config: MathConfig, rng: Optional[RandomSource] = None):
        _check_weights(config.coin_multipliers, "Coin multiplier table")
        self.config = config
        self.rng = rng or TrueRNG()

    def coin_probability(self, board: Board) -> float:
        counts = board.count_colours()
        return get_coin_probability_for_state(counts[Colour.GREEN], counts[Colour.ORANGE], self.config)

    def generate(self, board: Board) -> List[Symbol]:
        p_coin = self.coin_probability(board)
        symbols: List[Symbol] = []
        for tile in board.get_tiles():
            if self.rng() < p_coin:
                matches_tile = self.rng() < self.config.match_probability
                colour = tile.colour if matches_tile else tile.colour.opposite
                value = sample_coin_multiplier(self.config.coin_multipliers, self.rng)
                symbols.append(CoinSymbol(colour=colour, value=value))
            else:
                symbols.append(EmptySymbol())
        return symbols


def _check_weights(table: Sequence[CoinValueWeight], label: str):
    if not table:
        raise InvalidDistribution(f"{label} is empty.")
    if any(entry.weight <= 0 for entry in table):
        raise InvalidDistribution(f"{label} must have positive weights.")
