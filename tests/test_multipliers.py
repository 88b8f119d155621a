import unittest

from little_wars.config import GameConfig, MultiplierThreshold
from little_wars.core.multipliers import calculate_multipliers, get_tier_multiplier
from little_wars.core.types import Colour


def thresholds(*pairs):
    return [MultiplierThreshold(tiles_required=t, multiplier=m) for t, m in pairs]


class TestTierMultiplier(unittest.TestCase):

    def test_below_lowest_threshold_is_one(self):
        table = thresholds((5, 2), (10, 3))
        self.assertEqual(get_tier_multiplier(0, table), 1)
        self.assertEqual(get_tier_multiplier(4, table), 1)

    def test_highest_qualifying_threshold_wins(self):
        table = thresholds((0, 1), (16, 2), (18, 3), (20, 5), (25, 10))
        self.assertEqual(get_tier_multiplier(15, table), 1)
        self.assertEqual(get_tier_multiplier(16, table), 2)
        self.assertEqual(get_tier_multiplier(19, table), 3)
        self.assertEqual(get_tier_multiplier(30, table), 10)

    def test_unsorted_table_is_tolerated(self):
        table = thresholds((25, 10), (16, 2), (0, 1), (20, 5), (18, 3))
        self.assertEqual(get_tier_multiplier(21, table), 5)

    def test_equal_thresholds_resolve_to_larger_multiplier(self):
        self.assertEqual(get_tier_multiplier(10, thresholds((10, 4), (10, 2))), 4)
        self.assertEqual(get_tier_multiplier(10, thresholds((10, 2), (10, 4))), 4)

    def test_empty_table_is_one(self):
        self.assertEqual(get_tier_multiplier(30, []), 1)

    def test_monotonic_for_default_tables(self):
        config = GameConfig()
        for colour in (Colour.GREEN, Colour.ORANGE):
            values = [get_tier_multiplier(n, config.multipliers[colour]) for n in range(31)]
            self.assertEqual(values, sorted(values), f"{colour} tiers not monotonic")

    def test_calculate_multipliers_for_even_board(self):
        config = GameConfig()
        result = calculate_multipliers({Colour.GREEN: 15, Colour.ORANGE: 15}, config.multipliers)
        self.assertEqual(result, {Colour.GREEN: 1, Colour.ORANGE: 2})


if __name__ == "__main__":
    unittest.main()
