"""
Round / free-spin state machine.

Idle -> RoundActive -> Idle. A base round is exactly one spin; a free-spin
trigger turns the round into a multi-spin bonus whose winnings are banked
once, when the spin budget runs out.
"""

from typing import Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from little_wars.config import AppConfig, GameConfig, MultiplierThreshold
from little_wars.core.board import Board
from little_wars.core.exceptions import (
    BoardShapeMismatch,
    InsufficientBalance,
    InvalidSnapshot,
    NoSpinsRemaining,
    ResolverMismatch,
    RoundInProgress,
    SymbolCountMismatch,
)
from little_wars.core.logger import get_logger
from little_wars.core.multipliers import calculate_multipliers
from little_wars.core.rgs import LocalSpinProvider, RemoteSpinProvider, SpinProvider
from little_wars.core.rng import RandomSource, SeededRNG, TrueRNG
from little_wars.core.symbols import (
    CalibratedSymbolSource,
    SymbolSource,
    WeightedSymbolSource,
    count_symbol_type,
)
from little_wars.core.types import (
    Colour,
    ColourCounts,
    GameSnapshot,
    Multipliers,
    RoundFields,
    SpinOutcome,
    TilePayout,
)

logger = get_logger("engine")

_MONEY_TOLERANCE = 1e-9

TierTables = Dict[Colour, List[MultiplierThreshold]]


class RoundState(BaseModel):
    """Mutable bookkeeping owned by exactly one engine."""

    balance: float
    bet: float
    total_win: float = 0.0
    spin_win: float = 0.0
    last_round_win: Optional[float] = None
    last_spin_payouts: List[TilePayout] = Field(default_factory=list)
    free_spin_active: bool = False
    last_round_was_free_spin: bool = False
    initial_counts: Optional[ColourCounts] = None
    initial_multipliers: Optional[Multipliers] = None
    remaining_spins: int = 0
    max_spins_per_round: int = 1
    round_active: bool = False


class GameEngine:
    """
    One game session: owns the board and the round state.

    Not thread safe. Concurrent sessions each need their own engine.
    """

    def __init__(
        self,
        config: GameConfig,
        provider: SpinProvider,
        multiplier_tables: Optional[TierTables] = None,
        board: Optional[Board] = None,
        state: Optional[RoundState] = None,
    ):
        self.config = config
        self.provider = provider
        self.multiplier_tables: TierTables = multiplier_tables or config.multipliers
        self.board = board or Board(config.rows, config.cols)
        self._state = state or RoundState(
            balance=config.starting_balance, bet=config.bet.default_bet
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: GameSnapshot,
        config: GameConfig,
        provider: SpinProvider,
        multiplier_tables: Optional[TierTables] = None,
    ) -> "GameEngine":
        """Rebuild an engine from an externally held snapshot."""
        try:
            board = Board.from_tiles(snapshot.tiles)
        except ValueError as e:
            raise InvalidSnapshot(str(e)) from e
        fields = snapshot.model_dump(include=set(RoundState.model_fields))
        return cls(
            config,
            provider,
            multiplier_tables=multiplier_tables,
            board=board,
            state=RoundState(**fields),
        )

    # ==================== Queries ====================

    def get_state(self) -> GameSnapshot:
        counts = self.board.count_colours()
        return GameSnapshot(
            tiles=self.board.get_tiles(),
            tile_counts=counts,
            multipliers=calculate_multipliers(counts, self.multiplier_tables),
            **self._state.model_dump(),
        )

    @property
    def round_active(self) -> bool:
        return self._state.round_active

    # ==================== Transitions ====================

    def set_bet(self, bet: float) -> GameSnapshot:
        """
        Change the stake between rounds.

        With discrete levels configured the bet snaps to the first level at or
        above the request (the highest level when the request is above all of
        them); otherwise it is clamped to [min, max] and rounded to the bet step.
        """
        if self._state.round_active:
            raise RoundInProgress()

        bet_config = self.config.bet
        levels = sorted(bet_config.levels)
        if levels:
            snapped = next((level for level in levels if level >= bet), levels[-1])
        else:
            snapped = _snap_to_step(bet, bet_config.min, bet_config.max, bet_config.step)

        if snapped != bet:
            logger.debug(f"Bet {bet} snapped to {snapped}")
        self._state.bet = snapped
        return self.get_state()

    def start_round(self) -> GameSnapshot:
        """Deduct the bet and open a round. No-op while a round is active."""
        state = self._state
        if state.round_active:
            return self.get_state()
        if state.balance < state.bet:
            raise InsufficientBalance(state.balance, state.bet)

        pending_free_spins = state.free_spin_active

        state.balance -= state.bet
        state.total_win = 0.0
        state.spin_win = 0.0
        state.last_round_win = None
        state.last_spin_payouts = []
        state.initial_counts = None
        state.initial_multipliers = None
        if pending_free_spins:
            state.remaining_spins = self.config.free_spin_mode.spins_per_round
            state.max_spins_per_round = self.config.free_spin_mode.spins_per_round
            state.last_round_was_free_spin = True
        else:
            state.remaining_spins = 1
            state.max_spins_per_round = 1
            state.last_round_was_free_spin = False
        state.round_active = True
        self.board.clear_symbols()

        logger.info(
            f"Round started: bet={state.bet} balance={state.balance} spins={state.remaining_spins}"
        )
        return self.get_state()

    def spin(self) -> GameSnapshot:
        """Play one spin, starting a round first when idle."""
        if not self._state.round_active:
            self.start_round()
        if self._state.remaining_spins <= 0:
            raise NoSpinsRemaining()

        request = self.get_state().model_copy(
            update={"remaining_spins": self._state.remaining_spins - 1}
        )
        outcome = self.provider.get_spin(request)

        self._state.remaining_spins -= 1
        self.apply_outcome(outcome)
        return self.get_state()

    def apply_outcome(self, outcome: SpinOutcome):
        """
        Fold a resolved spin into the round: board, winnings, free-spin
        trigger, reset rules and, when the budget is spent, banking.
        """
        resolution = outcome.resolution
        if len(resolution.tiles) != self.board.tile_count:
            raise SymbolCountMismatch(self.board.tile_count, len(resolution.tiles))

        try:
            board = Board.from_tiles(resolution.tiles)
        except ValueError as e:
            raise BoardShapeMismatch(_shape(self.board), str(e)) from e
        if (board.rows, board.cols) != (self.board.rows, self.board.cols):
            raise BoardShapeMismatch(_shape(self.board), _shape(board))

        state = self._state
        self.board = board
        state.spin_win = resolution.spin_win
        state.total_win += resolution.spin_win
        state.last_spin_payouts = list(resolution.payouts)
        state.initial_counts = dict(resolution.initial_counts)
        state.initial_multipliers = dict(resolution.initial_multipliers)

        free_spin = self.config.free_spin_mode
        if free_spin.enabled and free_spin.trigger_symbol is not None:
            if count_symbol_type(resolution.symbols, free_spin.trigger_symbol) >= 1:
                if not state.free_spin_active:
                    logger.info(f"Free spins triggered: {free_spin.spins_per_round} spins")
                state.free_spin_active = True
                state.last_round_was_free_spin = True
                state.remaining_spins = free_spin.spins_per_round
                state.max_spins_per_round = free_spin.spins_per_round

        if state.free_spin_active:
            for rule in self.config.spin_reset_rules:
                if count_symbol_type(resolution.symbols, rule.symbol_type) >= rule.min_count:
                    target = min(rule.reset_to_spins, state.max_spins_per_round)
                    state.remaining_spins = max(state.remaining_spins, target)
        else:
            state.remaining_spins = 0

        if state.remaining_spins <= 0:
            self._close_round()

        if outcome.round is not None:
            self._verify_round_fields(outcome.round)

    def round_fields(self) -> RoundFields:
        state = self._state
        return RoundFields(
            balance=state.balance,
            total_win=state.total_win,
            free_spin_active=state.free_spin_active,
            remaining_spins=state.remaining_spins,
            max_spins_per_round=state.max_spins_per_round,
            last_round_win=state.last_round_win,
        )

    def _close_round(self):
        state = self._state
        win = state.total_win
        state.balance += win
        state.last_round_win = win
        state.total_win = 0.0
        state.free_spin_active = False
        state.max_spins_per_round = 1
        state.remaining_spins = 0
        state.round_active = False
        logger.info(f"Round closed: win={win} balance={state.balance}")

    def _verify_round_fields(self, reported: RoundFields):
        expected = self.round_fields()
        for name in ("balance", "total_win"):
            if abs(getattr(expected, name) - getattr(reported, name)) > _MONEY_TOLERANCE:
                raise ResolverMismatch(name, getattr(expected, name), getattr(reported, name))
        for name in ("free_spin_active", "remaining_spins", "max_spins_per_round"):
            if getattr(expected, name) != getattr(reported, name):
                raise ResolverMismatch(name, getattr(expected, name), getattr(reported, name))


def _shape(board: Board) -> str:
    return f"{board.rows}x{board.cols}"


def _snap_to_step(bet: float, low: float, high: float, step: float) -> float:
    """Clamp to [low, high] and round to the nearest step above `low`."""
    clamped = max(low, min(high, bet))
    snapped = round(low + round((clamped - low) / step) * step, 10)
    return min(high, snapped)


# ==================== Construction ====================


def create_symbol_source(app_config: AppConfig, rng: Optional[RandomSource] = None) -> SymbolSource:
    """Generator for the configured strategy."""
    if rng is None:
        seed = app_config.resolver.seed
        rng = SeededRNG(seed) if seed is not None else TrueRNG()

    if app_config.resolver.strategy == "calibrated":
        return CalibratedSymbolSource(app_config.math, rng=rng)

    game = app_config.game
    return WeightedSymbolSource(
        game.symbol_distribution,
        game.coin_value_distribution,
        tank_reel_weights=game.tank_reel_weights,
        rng=rng,
    )


def multiplier_tables_for(app_config: AppConfig) -> TierTables:
    if app_config.resolver.strategy == "calibrated":
        return app_config.math.colour_multipliers
    return app_config.game.multipliers


def create_local_provider(app_config: AppConfig, rng: Optional[RandomSource] = None) -> LocalSpinProvider:
    return LocalSpinProvider(create_symbol_source(app_config, rng), multiplier_tables_for(app_config))


def create_engine(
    app_config: AppConfig,
    rng: Optional[RandomSource] = None,
    http_client: Optional[httpx.Client] = None,
) -> GameEngine:
    """
    Build an engine wired to the configured resolver.

    Args:
        app_config: Loaded application configuration
        rng: Random source override for the local generator
        http_client: Client override for the remote resolver

    Returns:
        Fresh engine with the starting balance and default bet
    """
    resolver = app_config.resolver
    if resolver.mode == "remote":
        provider = RemoteSpinProvider(
            base_url=resolver.remote_url,
            client=http_client,
            timeout=resolver.timeout_seconds,
        )
    else:
        provider = create_local_provider(app_config, rng)

    return GameEngine(
        app_config.game,
        provider,
        multiplier_tables=multiplier_tables_for(app_config),
    )
