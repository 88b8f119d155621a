import unittest
from unittest.mock import patch

from pydantic import ValidationError

from little_wars.config import (
    AppConfig,
    BetConfig,
    FreeSpinConfig,
    GameConfig,
    ResolverConfig,
    SpinResetRule,
)
from little_wars.core.board import Board
from little_wars.core.engine import GameEngine, create_engine
from little_wars.core.exceptions import (
    BoardShapeMismatch,
    InsufficientBalance,
    InvalidSnapshot,
    NoSpinsRemaining,
    ResolverMismatch,
    RoundInProgress,
)
from little_wars.core.resolver import resolve_spin
from little_wars.core.rgs import LocalSpinProvider, RemoteSpinProvider
from little_wars.core.rng import SeededRNG
from little_wars.core.symbols import CalibratedSymbolSource, FixedSymbolSource, WeightedSymbolSource
from little_wars.core.types import (
    CoinSymbol,
    Colour,
    EmptySymbol,
    RoundFields,
    SoldierSymbol,
    SpinOutcome,
    SymbolType,
    TankSymbol,
)


def blank():
    return [EmptySymbol() for _ in range(30)]


class SequenceSource:
    """Hands out one prepared symbol list per spin."""

    def __init__(self, spins):
        self.spins = [list(s) for s in spins]
        self.calls = 0

    def generate(self, board):
        symbols = self.spins[self.calls]
        self.calls += 1
        return symbols


class TamperingProvider:
    """Resolves locally but reports a round balance off by one."""

    def __init__(self, inner):
        self.inner = inner
        self.requests = []

    def get_spin(self, snapshot):
        self.requests.append(snapshot)
        outcome = self.inner.get_spin(snapshot)
        fields = RoundFields(
            balance=snapshot.balance + 1,
            total_win=0.0,
            free_spin_active=False,
            remaining_spins=0,
            max_spins_per_round=1,
        )
        return SpinOutcome(resolution=outcome.resolution, round=fields)


def make_engine(symbols=None, config=None, source=None):
    config = config or GameConfig()
    source = source or FixedSymbolSource(symbols if symbols is not None else blank())
    provider = LocalSpinProvider(source, config.multipliers)
    return GameEngine(config, provider)


class TestBaseRound(unittest.TestCase):

    def test_initial_state(self):
        state = make_engine().get_state()
        self.assertEqual(state.balance, 1000)
        self.assertEqual(state.bet, 1.0)
        self.assertFalse(state.round_active)
        self.assertEqual(state.tile_counts, {Colour.GREEN: 15, Colour.ORANGE: 15})
        self.assertEqual(state.multipliers, {Colour.GREEN: 1, Colour.ORANGE: 2})

    def test_matching_coin_is_banked_at_round_end(self):
        symbols = blank()
        symbols[0] = CoinSymbol(colour=Colour.GREEN, value=2)
        engine = make_engine(symbols)

        state = engine.spin()

        self.assertEqual(state.spin_win, 2)
        self.assertEqual(state.last_round_win, 2)
        self.assertEqual(state.total_win, 0)
        self.assertEqual(state.balance, 1001)
        self.assertFalse(state.round_active)
        self.assertEqual(state.remaining_spins, 0)
        self.assertEqual([p.tile_id for p in state.last_spin_payouts], ["0-0"])

    def test_opposite_coins_flip_tiles_and_move_tiers(self):
        symbols = blank()
        for i in range(3):
            symbols[i] = CoinSymbol(colour=Colour.ORANGE, value=1)
        engine = make_engine(symbols)

        state = engine.spin()

        self.assertEqual(state.spin_win, 0)
        self.assertEqual(state.balance, 999)
        self.assertEqual(state.tile_counts, {Colour.GREEN: 12, Colour.ORANGE: 18})
        self.assertEqual(state.multipliers[Colour.ORANGE], 2)
        self.assertEqual(state.initial_counts, {Colour.GREEN: 15, Colour.ORANGE: 15})

    def test_soldier_on_opposite_tile(self):
        symbols = blank()
        symbols[15] = SoldierSymbol(colour=Colour.GREEN)
        state = make_engine(symbols).spin()
        self.assertEqual(state.tile_counts, {Colour.GREEN: 16, Colour.ORANGE: 14})
        self.assertEqual(state.multipliers[Colour.GREEN], 2)

    def test_soldier_attacks_adjacent_tile(self):
        symbols = blank()
        symbols[14] = SoldierSymbol(colour=Colour.GREEN)
        state = make_engine(symbols).spin()
        colours = {t.id: t.colour for t in state.tiles}
        self.assertEqual(colours["3-2"], Colour.GREEN)

    def test_reset_rule_does_not_extend_a_base_round(self):
        symbols = blank()
        for i in (0, 1, 2):
            symbols[i] = SoldierSymbol(colour=Colour.GREEN)
        state = make_engine(symbols).spin()
        self.assertFalse(state.round_active)
        self.assertEqual(state.remaining_spins, 0)
        self.assertFalse(state.last_round_was_free_spin)

    def test_insufficient_balance_leaves_state_untouched(self):
        engine = make_engine(config=GameConfig(starting_balance=0.5))
        with self.assertRaises(InsufficientBalance):
            engine.spin()
        state = engine.get_state()
        self.assertEqual(state.balance, 0.5)
        self.assertFalse(state.round_active)

    def test_start_round_is_idempotent_while_active(self):
        engine = make_engine()
        engine.start_round()
        state = engine.start_round()
        self.assertEqual(state.balance, 999)
        self.assertEqual(state.remaining_spins, 1)
        self.assertTrue(state.round_active)


class TestBet(unittest.TestCase):

    def test_bet_snaps_to_configured_levels(self):
        engine = make_engine()
        self.assertEqual(engine.set_bet(0.7).bet, 1.0)
        self.assertEqual(engine.set_bet(500).bet, 100)
        self.assertEqual(engine.set_bet(5).bet, 5)

    def test_bet_is_clamped_without_levels(self):
        engine = make_engine(config=GameConfig(bet=BetConfig(levels=[])))
        self.assertEqual(engine.set_bet(500).bet, 100)
        self.assertEqual(engine.set_bet(0.05).bet, 0.2)
        self.assertEqual(engine.set_bet(3.4).bet, 3.4)

    def test_bet_rounds_to_step_without_levels(self):
        engine = make_engine(config=GameConfig(bet=BetConfig(levels=[], step=0.2)))
        self.assertEqual(engine.set_bet(3.25).bet, 3.2)
        self.assertEqual(engine.set_bet(0.35).bet, 0.4)
        self.assertEqual(engine.set_bet(99.95).bet, 100)

    def test_bet_cannot_change_mid_round(self):
        engine = make_engine()
        engine.start_round()
        with self.assertRaises(RoundInProgress):
            engine.set_bet(2.0)
        self.assertEqual(engine.get_state().bet, 1.0)


class TestFreeSpins(unittest.TestCase):

    def setUp(self):
        self.config = GameConfig(
            free_spin_mode=FreeSpinConfig(enabled=True, trigger_symbol=SymbolType.TANK, spins_per_round=3)
        )

    def test_free_spin_round_banks_once(self):
        trigger = blank()
        trigger[29] = TankSymbol(colour=Colour.ORANGE)
        trigger[0] = CoinSymbol(colour=Colour.GREEN, value=1)
        coin = blank()
        coin[0] = CoinSymbol(colour=Colour.GREEN, value=1)
        source = SequenceSource([trigger, coin, blank(), coin])
        engine = make_engine(config=self.config, source=source)

        state = engine.spin()
        self.assertTrue(state.free_spin_active)
        self.assertTrue(state.round_active)
        self.assertEqual(state.remaining_spins, 3)
        self.assertEqual(state.max_spins_per_round, 3)
        self.assertEqual(state.balance, 999)

        engine.spin()
        state = engine.spin()
        self.assertEqual(state.total_win, 2)
        self.assertEqual(state.remaining_spins, 1)
        self.assertEqual(state.balance, 999)

        state = engine.spin()
        self.assertEqual(source.calls, 4)
        self.assertFalse(state.round_active)
        self.assertFalse(state.free_spin_active)
        self.assertTrue(state.last_round_was_free_spin)
        self.assertEqual(state.last_round_win, 3)
        self.assertEqual(state.total_win, 0)
        self.assertEqual(state.balance, 1002)
        self.assertEqual(state.max_spins_per_round, 1)

    def test_reset_rule_is_capped_at_round_size(self):
        config = self.config.model_copy(
            update={"spin_reset_rules": [SpinResetRule(symbol_type=SymbolType.SOLDIER, min_count=1, reset_to_spins=10)]}
        )
        trigger = blank()
        trigger[29] = TankSymbol(colour=Colour.ORANGE)
        soldier = blank()
        soldier[0] = SoldierSymbol(colour=Colour.GREEN)
        engine = make_engine(config=config, source=SequenceSource([trigger, soldier]))

        engine.spin()
        state = engine.spin()

        self.assertEqual(state.remaining_spins, 3)
        self.assertEqual(state.max_spins_per_round, 3)

    def test_disabled_free_spins_ignore_trigger(self):
        config = GameConfig(free_spin_mode=FreeSpinConfig(enabled=False))
        symbols = blank()
        symbols[29] = TankSymbol(colour=Colour.ORANGE)
        state = make_engine(symbols, config=config).spin()
        self.assertFalse(state.round_active)
        self.assertFalse(state.last_round_was_free_spin)


class TestSnapshots(unittest.TestCase):

    def test_snapshot_is_frozen(self):
        state = make_engine().get_state()
        with self.assertRaises(ValidationError):
            state.balance = 5

    def test_snapshot_round_trip(self):
        symbols = blank()
        symbols[3] = CoinSymbol(colour=Colour.ORANGE, value=1)
        engine = make_engine(symbols)
        engine.spin()
        state = engine.get_state()

        rebuilt = GameEngine.from_snapshot(state, engine.config, engine.provider)

        self.assertEqual(rebuilt.get_state(), state)

    def test_no_spins_remaining(self):
        engine = make_engine()
        stuck = engine.get_state().model_copy(update={"round_active": True, "remaining_spins": 0})
        restored = GameEngine.from_snapshot(stuck, engine.config, engine.provider)
        with self.assertRaises(NoSpinsRemaining):
            restored.spin()

    def test_reported_round_fields_are_verified(self):
        config = GameConfig()
        inner = LocalSpinProvider(FixedSymbolSource(blank()), config.multipliers)
        provider = TamperingProvider(inner)
        engine = GameEngine(config, provider)

        with self.assertRaises(ResolverMismatch) as ctx:
            engine.spin()
        self.assertEqual(ctx.exception.field, "balance")
        self.assertEqual(provider.requests[0].remaining_spins, 0)
        self.assertTrue(provider.requests[0].round_active)


class WrongShapeProvider:
    """Resolves on a 6x5 board whatever the engine holds."""

    def get_spin(self, snapshot):
        board = Board(6, 5)
        resolution = resolve_spin(board, blank(), snapshot.bet, GameConfig().multipliers)
        return SpinOutcome(resolution=resolution)


class TestResolvedBoardShape(unittest.TestCase):

    def test_transposed_board_is_rejected(self):
        engine = GameEngine(GameConfig(), WrongShapeProvider())

        with self.assertRaises(BoardShapeMismatch):
            engine.spin()

        self.assertEqual((engine.board.rows, engine.board.cols), (5, 6))
        self.assertEqual(engine.get_state().balance, 999)

    def test_snapshot_with_missing_tiles_is_rejected(self):
        engine = make_engine()
        state = engine.get_state()
        gappy = state.model_copy(update={"tiles": state.tiles[:-1]})

        with self.assertRaises(InvalidSnapshot):
            GameEngine.from_snapshot(gappy, engine.config, engine.provider)


class TestFactories(unittest.TestCase):

    def test_default_engine_uses_weighted_local_provider(self):
        engine = create_engine(AppConfig(), rng=SeededRNG(1))
        self.assertIsInstance(engine.provider, LocalSpinProvider)
        self.assertIsInstance(engine.provider.symbol_source, WeightedSymbolSource)
        self.assertEqual(engine.get_state().balance, 1000)

    def test_live_play_draws_from_true_rng(self):
        with patch("little_wars.core.engine.TrueRNG") as true_rng:
            create_engine(AppConfig())
        true_rng.assert_called_once_with()

    def test_calibrated_strategy_uses_math_tables(self):
        config = AppConfig(resolver=ResolverConfig(strategy="calibrated", seed=5))
        engine = create_engine(config)
        self.assertIsInstance(engine.provider.symbol_source, CalibratedSymbolSource)
        self.assertEqual(engine.multiplier_tables, config.math.colour_multipliers)

    def test_remote_mode_uses_http_provider(self):
        config = AppConfig(resolver=ResolverConfig(mode="remote", remote_url="http://rgs.local"))
        engine = create_engine(config)
        self.assertIsInstance(engine.provider, RemoteSpinProvider)
        engine.provider.close()


if __name__ == "__main__":
    unittest.main()
