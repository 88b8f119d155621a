"""
Error taxonomy for the game engine.

Caller errors reject an operation and leave state untouched.
Configuration errors indicate a setup bug and are fatal to the engine instance.
"""


class GameError(Exception):
    """Base class for every engine error."""

    status_code: int = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


# ==================== Caller Errors ====================


class CallerError(GameError):
    """The caller invoked an operation whose precondition does not hold."""


class InsufficientBalance(CallerError):
    status_code = 409

    def __init__(self, balance: float, bet: float):
        super().__init__(f"Insufficient balance: {balance} < bet {bet}")
        self.balance = balance
        self.bet = bet


class NoSpinsRemaining(CallerError):
    status_code = 409

    def __init__(self):
        super().__init__("No spins remaining in the current round")


class TileNotFound(CallerError):
    status_code = 404

    def __init__(self, tile_id: str):
        super().__init__(f"Tile not found: {tile_id}")
        self.tile_id = tile_id


class RoundInProgress(CallerError):
    status_code = 409

    def __init__(self):
        super().__init__("Bet cannot change while a round is active")


class InvalidSnapshot(CallerError):
    status_code = 422

    def __init__(self, reason: str):
        super().__init__(f"Invalid snapshot: {reason}")
        self.reason = reason


# ==================== Configuration Errors ====================


class ConfigurationError(GameError):
    """Malformed configuration or input detected at setup or first use."""

    status_code = 500


class InvalidDistribution(ConfigurationError):
    pass


class LengthMismatch(ConfigurationError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected {expected} symbols, fixed sequence has {actual}")
        self.expected = expected
        self.actual = actual


class SymbolCountMismatch(ConfigurationError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"Board has {expected} tiles but {actual} symbols were supplied")
        self.expected = expected
        self.actual = actual


class ResolverMismatch(ConfigurationError):
    def __init__(self, field: str, expected, reported):
        super().__init__(
            f"External resolver reported {field}={reported}, engine computed {expected}"
        )
        self.field = field
        self.expected = expected
        self.reported = reported


class BoardShapeMismatch(ConfigurationError):
    def __init__(self, expected: str, actual: str):
        super().__init__(f"Resolved board is {actual}, engine board is {expected}")
        self.expected = expected
        self.actual = actual


# ==================== Transport ====================


class RemoteResolverError(GameError):
    """The external resolver could not be reached or returned garbage."""

    status_code = 502
