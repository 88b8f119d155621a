"""Tier multipliers: how many tiles a colour owns decides its payout multiplier."""

from typing import Dict, Iterable, List

from little_wars.config import MultiplierThreshold
from little_wars.core.types import COLOURS, Colour, ColourCounts, Multipliers


def get_tier_multiplier(count: int, thresholds: Iterable[MultiplierThreshold]) -> float:
    """
    Multiplier of the highest threshold whose `tiles_required` does not exceed
    `count`. Equal `tiles_required` entries resolve to the larger multiplier;
    1 when nothing qualifies. Unsorted tables are tolerated.
    """
    ordered = sorted(thresholds, key=lambda t: (t.tiles_required, t.multiplier))
    best = 1.0
    for threshold in ordered:
        if threshold.tiles_required > count:
            break
        best = threshold.multiplier
    return best


def calculate_multipliers(
    counts: ColourCounts, tables: Dict[Colour, List[MultiplierThreshold]]
) -> Multipliers:
    """Current multiplier for both colours."""
    return {
        colour: get_tier_multiplier(counts.get(colour, 0), tables.get(colour, []))
        for colour in COLOURS
    }
