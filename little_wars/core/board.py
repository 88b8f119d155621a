"""
Ownership grid: per-tile colour plus the transient symbol overlay of the
current spin.
"""

from typing import Dict, List, Optional, Sequence

from little_wars.core.exceptions import TileNotFound
from little_wars.core.types import COLOURS, Colour, ColourCounts, Symbol, Tile

DEFAULT_ROWS = 5
DEFAULT_COLS = 6

# up, down, left, right
_NEIGHBOUR_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))


class Board:
    """
    Dense zero-based grid of tiles, stored row-major.

    Tile count and identities never change after construction; only colours
    and symbol overlays do.
    """

    def __init__(self, rows: int = DEFAULT_ROWS, cols: int = DEFAULT_COLS, tiles: Optional[Sequence[Tile]] = None):
        if rows < 1 or cols < 1:
            raise ValueError("Board needs at least one row and one column")
        self.rows = rows
        self.cols = cols
        if tiles is None:
            self._tiles = self._create_initial_tiles()
        else:
            self._tiles = self._validate_tiles(tiles)
        self._index: Dict[str, Tile] = {t.id: t for t in self._tiles}

    @classmethod
    def from_tiles(cls, tiles: Sequence[Tile]) -> "Board":
        """Rebuild a board from a snapshot's tile list (any order)."""
        if not tiles:
            raise ValueError("Cannot build a board from an empty tile list")
        rows = max(t.row for t in tiles) + 1
        cols = max(t.col for t in tiles) + 1
        return cls(rows, cols, tiles=tiles)

    @property
    def tile_count(self) -> int:
        return len(self._tiles)

    def copy(self) -> "Board":
        return Board(self.rows, self.cols, tiles=self._tiles)

    def get_tiles(self) -> List[Tile]:
        """Copies of every tile in row-major order."""
        return [t.model_copy() for t in self._tiles]

    def get_tile(self, tile_id: str) -> Tile:
        return self._lookup(tile_id).model_copy()

    def set_tile_symbol(self, tile_id: str, symbol: Optional[Symbol]):
        self._lookup(tile_id).symbol = symbol

    def set_tile_colour(self, tile_id: str, colour: Colour):
        self._lookup(tile_id).colour = Colour(colour)

    def count_colours(self) -> ColourCounts:
        counts = {colour: 0 for colour in COLOURS}
        for tile in self._tiles:
            counts[tile.colour] += 1
        return counts

    def colours(self) -> List[Colour]:
        return [t.colour for t in self._tiles]

    def get_adjacent(self, tile_id: str) -> List[Tile]:
        """Orthogonal neighbours in up, down, left, right order. No wraparound."""
        tile = self._lookup(tile_id)
        neighbours = []
        for d_row, d_col in _NEIGHBOUR_OFFSETS:
            row, col = tile.row + d_row, tile.col + d_col
            if 0 <= row < self.rows and 0 <= col < self.cols:
                neighbours.append(self._tiles[row * self.cols + col].model_copy())
        return neighbours

    def clear_symbols(self):
        for tile in self._tiles:
            tile.symbol = None

    def _lookup(self, tile_id: str) -> Tile:
        tile = self._index.get(tile_id)
        if tile is None:
            raise TileNotFound(tile_id)
        return tile

    def _create_initial_tiles(self) -> List[Tile]:
        # First half of the grid (row-major) starts GREEN, the rest ORANGE
        total = self.rows * self.cols
        green_quota = (total + 1) // 2
        tiles = []
        for row in range(self.rows):
            for col in range(self.cols):
                index = row * self.cols + col
                colour = Colour.GREEN if index < green_quota else Colour.ORANGE
                tiles.append(Tile(row=row, col=col, colour=colour))
        return tiles

    def _validate_tiles(self, tiles: Sequence[Tile]) -> List[Tile]:
        by_position = {}
        for tile in tiles:
            if tile.row >= self.rows or tile.col >= self.cols:
                raise ValueError(f"Tile {tile.id} lies outside a {self.rows}x{self.cols} board")
            if (tile.row, tile.col) in by_position:
                raise ValueError(f"Duplicate tile {tile.id}")
            by_position[(tile.row, tile.col)] = tile.model_copy()

        if len(by_position) != self.rows * self.cols:
            raise ValueError(
                f"Board of {self.rows}x{self.cols} needs {self.rows * self.cols} tiles, got {len(by_position)}"
            )
        return [by_position[(row, col)] for row in range(self.rows) for col in range(self.cols)]

    def __repr__(self):
        counts = self.count_colours()
        return f"Board({self.rows}x{self.cols}, GREEN={counts[Colour.GREEN]}, ORANGE={counts[Colour.ORANGE]})"
