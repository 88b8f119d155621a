"""
Math model for the calibrated generator.

The coin probability is derived from the board so that the expected payout of
a spin equals `base_rtp * bet` whatever the current tile split:

    p = base_rtp / (match_probability * mean_coin * sum(count_c * tier_c))
"""

from typing import Sequence

from little_wars.config import CoinValueWeight, MathConfig
from little_wars.core.multipliers import get_tier_multiplier
from little_wars.core.rng import RandomSource
from little_wars.core.types import Colour


def _clamp(x: float, low: float, high: float) -> float:
    return max(low, min(high, x))


def get_mean_coin_multiplier(coin_multipliers: Sequence[CoinValueWeight]) -> float:
    """Weighted mean of the coin value table (1 for an empty or weightless table)."""
    weight_sum = sum(entry.weight for entry in coin_multipliers)
    if weight_sum <= 0:
        return 1.0
    return sum(entry.value * entry.weight for entry in coin_multipliers) / weight_sum


def sample_coin_multiplier(coin_multipliers: Sequence[CoinValueWeight], rng: RandomSource) -> float:
    """
    Draw one value from a weighted table. The first entry whose cumulative
    weight exceeds the roll wins; a roll at the very top falls to the last entry.
    """
    total = sum(entry.weight for entry in coin_multipliers)
    if total <= 0:
        return 1.0
    roll = rng() * total
    for entry in coin_multipliers:
        if roll < entry.weight:
            return entry.value
        roll -= entry.weight
    return coin_multipliers[-1].value


def get_coin_probability_for_state(green_count: int, orange_count: int, config: MathConfig) -> float:
    """Per-tile coin probability for a board split, clamped to [0, max_coin_probability]."""
    mean_coin = get_mean_coin_multiplier(config.coin_multipliers)
    tier_green = get_tier_multiplier(green_count, config.colour_multipliers.get(Colour.GREEN, []))
    tier_orange = get_tier_multiplier(orange_count, config.colour_multipliers.get(Colour.ORANGE, []))

    denominator = config.match_probability * mean_coin * (
        green_count * tier_green + orange_count * tier_orange
    )
    if denominator <= 0:
        return 0.0
    return _clamp(config.base_rtp / denominator, 0.0, config.max_coin_probability)
