"""
Data types shared by the board, generators, resolver and engine.

Symbols are a tagged union on `type`, so snapshots and spin outcomes
round-trip through JSON for the external resolver boundary.
"""

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Colour(str, Enum):
    GREEN = "GREEN"
    ORANGE = "ORANGE"

    @property
    def opposite(self) -> "Colour":
        return Colour.ORANGE if self is Colour.GREEN else Colour.GREEN


COLOURS = (Colour.GREEN, Colour.ORANGE)


class SymbolType(str, Enum):
    EMPTY = "EMPTY"
    COIN = "COIN"
    SOLDIER = "SOLDIER"
    TANK = "TANK"


# ==================== Symbols ====================


class EmptySymbol(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["EMPTY"] = "EMPTY"


class CoinSymbol(BaseModel):
    """A coin pays on its own colour and flips the tile otherwise."""

    model_config = ConfigDict(frozen=True)

    type: Literal["COIN"] = "COIN"
    colour: Colour
    value: float


class SoldierSymbol(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["SOLDIER"] = "SOLDIER"
    colour: Colour


class TankSymbol(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["TANK"] = "TANK"
    colour: Colour


Symbol = Annotated[
    Union[EmptySymbol, CoinSymbol, SoldierSymbol, TankSymbol],
    Field(discriminator="type"),
]


# ==================== Board ====================


class Tile(BaseModel):
    row: int = Field(ge=0)
    col: int = Field(ge=0)
    colour: Colour
    symbol: Optional[Symbol] = None

    @computed_field
    @property
    def id(self) -> str:
        return tile_id(self.row, self.col)


def tile_id(row: int, col: int) -> str:
    return f"{row}-{col}"


ColourCounts = Dict[Colour, int]
Multipliers = Dict[Colour, float]


class TilePayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    tile_id: str
    amount: float


# ==================== Resolution ====================


class SpinResolution(BaseModel):
    """
    Everything one spin produced.

    `counts`/`multipliers` describe the board after all mutations and drive
    the next spin; `initial_counts`/`initial_multipliers` are the values the
    payouts were computed with, kept for display.
    """

    model_config = ConfigDict(frozen=True)

    symbols: List[Symbol]
    tiles: List[Tile]
    payouts: List[TilePayout] = Field(default_factory=list)
    spin_win: float = 0.0
    counts: ColourCounts
    multipliers: Multipliers
    initial_counts: ColourCounts
    initial_multipliers: Multipliers


class RoundFields(BaseModel):
    """Round bookkeeping an external resolver reports alongside a spin."""

    balance: float
    total_win: float
    free_spin_active: bool
    remaining_spins: int
    max_spins_per_round: int
    last_round_win: Optional[float] = None


class SpinOutcome(BaseModel):
    """What a spin provider hands back to the engine."""

    resolution: SpinResolution
    round: Optional[RoundFields] = None


# ==================== Snapshot ====================


class GameSnapshot(BaseModel):
    """Immutable, externally visible engine state."""

    model_config = ConfigDict(frozen=True)

    tiles: List[Tile]
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
    tile_counts: ColourCounts
    multipliers: Multipliers
    round_active: bool = False
