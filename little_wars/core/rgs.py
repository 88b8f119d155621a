"""
Spin providers: where the engine gets a resolved spin from.

`LocalSpinProvider` runs the generator and resolver in process.
`RemoteSpinProvider` posts the engine snapshot to an external resolver that
applies the same rules and returns the same `SpinOutcome`.
"""

from typing import Dict, List, Optional, Protocol

import httpx
from pydantic import ValidationError

from little_wars.config import MultiplierThreshold
from little_wars.core.board import Board
from little_wars.core.exceptions import RemoteResolverError
from little_wars.core.logger import get_logger
from little_wars.core.resolver import resolve_spin
from little_wars.core.symbols import SymbolSource
from little_wars.core.types import Colour, GameSnapshot, SpinOutcome

logger = get_logger("rgs")

RGS_SPIN_PATH = "/api/rgs/spin"


class SpinProvider(Protocol):
    def get_spin(self, snapshot: GameSnapshot) -> SpinOutcome:
        ...


class LocalSpinProvider:
    def __init__(
        self,
        symbol_source: SymbolSource,
        multiplier_tables: Dict[Colour, List[MultiplierThreshold]],
    ):
        self.symbol_source = symbol_source
        self.multiplier_tables = multiplier_tables

    def get_spin(self, snapshot: GameSnapshot) -> SpinOutcome:
        board = Board.from_tiles(snapshot.tiles)
        symbols = self.symbol_source.generate(board)
        resolution = resolve_spin(board, symbols, snapshot.bet, self.multiplier_tables)
        return SpinOutcome(resolution=resolution)


class RemoteSpinProvider:
    """
    HTTP client for an external resolver.

    The remote side may fail or hang; every request is bounded by `timeout`
    and transport problems surface as RemoteResolverError. There is no retry
    here, a failed spin is reported to the caller.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 5.0,
        path: str = RGS_SPIN_PATH,
    ):
        if client is None:
            if not base_url:
                raise ValueError("RemoteSpinProvider needs a base_url or an httpx client")
            client = httpx.Client(base_url=base_url, timeout=timeout)
        self.client = client
        self.path = path

    def get_spin(self, snapshot: GameSnapshot) -> SpinOutcome:
        try:
            response = self.client.post(self.path, json=snapshot.model_dump(mode="json"))
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Remote resolver request failed: {e}")
            raise RemoteResolverError(f"Remote resolver request failed: {e}") from e

        try:
            return SpinOutcome.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Remote resolver returned an invalid payload: {e}")
            raise RemoteResolverError("Remote resolver returned an invalid payload") from e

    def close(self):
        self.client.close()
