"""
Configuration management for Little Wars.
Supports config.json with environment variable overrides.
All paths are resolved relative to the project root.
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from little_wars.core.types import Colour, SymbolType

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # python-dotenv not installed, use system env vars only

# Project root directory (parent of the 'little_wars' package)
PROJECT_ROOT = Path(__file__).parent.parent


def get_env(key: str, default: str = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes", "on")


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


class FrozenModel(BaseModel):
    """Configuration is loaded once and never mutated afterwards."""

    model_config = ConfigDict(frozen=True)


# ==================== Service Configuration ====================


class ServerConfig(FrozenModel):
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = True
    name: str = "Little Wars"
    session_ttl_seconds: int = 3600
    session_cleanup_interval: int = 300


class LoggingConfig(FrozenModel):
    level: str = "INFO"
    log_to_file: bool = False
    formatter: str = "color"


class RateLimitConfig(FrozenModel):
    enabled: bool = True
    game_requests: str = "30/minute"  # spins and round starts
    api_requests: str = "60/minute"


class ResolverConfig(FrozenModel):
    """Where spins are resolved and which generator feeds the local resolver."""

    mode: Literal["local", "remote"] = "local"
    strategy: Literal["weighted", "calibrated"] = "weighted"
    remote_url: Optional[str] = None
    timeout_seconds: float = 5.0
    seed: Optional[int] = None  # fixed seed for reproducible sessions


# ==================== Game Configuration ====================


class MultiplierThreshold(FrozenModel):
    tiles_required: int = Field(ge=0)
    multiplier: float = Field(ge=1)


class BetConfig(FrozenModel):
    min: float = 0.2
    max: float = 100.0
    step: float = Field(default=0.2, gt=0)
    default_bet: float = 1.0
    levels: List[float] = Field(
        default_factory=lambda: [0.2, 0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 50.0, 100.0]
    )


class SpinResetRule(FrozenModel):
    symbol_type: SymbolType
    min_count: int = Field(ge=1)
    reset_to_spins: int = Field(ge=0)


class SymbolDistribution(FrozenModel):
    """Empty/coin/soldier must sum to 1; tank is tested first on its own draw."""

    empty: float = 0.7
    coin: float = 0.15
    soldier: float = 0.15
    tank: float = 0.0


class CoinValueWeight(FrozenModel):
    value: float
    weight: float


class CoinValueDistributionPerMatch(FrozenModel):
    on_own: List[CoinValueWeight]
    on_opposite: List[CoinValueWeight]


class FreeSpinConfig(FrozenModel):
    enabled: bool = True
    trigger_symbol: Optional[SymbolType] = SymbolType.TANK
    spins_per_round: int = Field(default=5, ge=1)


def _default_tier_tables() -> Dict[Colour, List[MultiplierThreshold]]:
    return {
        Colour.GREEN: [
            MultiplierThreshold(tiles_required=0, multiplier=1),
            MultiplierThreshold(tiles_required=16, multiplier=2),
            MultiplierThreshold(tiles_required=18, multiplier=3),
            MultiplierThreshold(tiles_required=20, multiplier=5),
            MultiplierThreshold(tiles_required=25, multiplier=10),
        ],
        Colour.ORANGE: [
            MultiplierThreshold(tiles_required=0, multiplier=1),
            MultiplierThreshold(tiles_required=14, multiplier=2),
            MultiplierThreshold(tiles_required=20, multiplier=3),
            MultiplierThreshold(tiles_required=25, multiplier=5),
            MultiplierThreshold(tiles_required=30, multiplier=10),
        ],
    }


def _default_coin_values() -> Dict[Colour, CoinValueDistributionPerMatch]:
    own = [
        CoinValueWeight(value=1, weight=0.3),
        CoinValueWeight(value=2, weight=0.25),
        CoinValueWeight(value=3, weight=0.25),
        CoinValueWeight(value=25, weight=0.1),
        CoinValueWeight(value=50, weight=0.05),
        CoinValueWeight(value=100, weight=0.05),
    ]
    opposite = [
        CoinValueWeight(value=1, weight=0.5),
        CoinValueWeight(value=2, weight=0.3),
        CoinValueWeight(value=3, weight=0.2),
    ]
    return {
        colour: CoinValueDistributionPerMatch(on_own=own, on_opposite=opposite)
        for colour in (Colour.GREEN, Colour.ORANGE)
    }


def _default_tank_weights() -> Dict[Colour, List[float]]:
    # Tanks land more often on the left, where the sweep covers more of the row
    weights = [0.004, 0.003, 0.002, 0.001, 0.0005, 0.0]
    return {Colour.GREEN: list(weights), Colour.ORANGE: list(weights)}


class GameConfig(FrozenModel):
    starting_balance: float = Field(default=1000.0, ge=0)
    rows: int = Field(default=5, ge=1)
    cols: int = Field(default=6, ge=1)
    bet: BetConfig = Field(default_factory=BetConfig)
    spin_reset_rules: List[SpinResetRule] = Field(
        default_factory=lambda: [
            SpinResetRule(symbol_type=SymbolType.SOLDIER, min_count=3, reset_to_spins=5)
        ]
    )
    multipliers: Dict[Colour, List[MultiplierThreshold]] = Field(
        default_factory=_default_tier_tables
    )
    symbol_distribution: SymbolDistribution = Field(default_factory=SymbolDistribution)
    coin_value_distribution: Dict[Colour, CoinValueDistributionPerMatch] = Field(
        default_factory=_default_coin_values
    )
    tank_reel_weights: Dict[Colour, List[float]] = Field(default_factory=_default_tank_weights)
    free_spin_mode: FreeSpinConfig = Field(default_factory=FreeSpinConfig)


class MathConfig(FrozenModel):
    """Parameters of the calibrated (target-RTP) generator."""

    base_rtp: float = Field(default=0.95, gt=0)
    match_probability: float = Field(default=0.25, gt=0, le=1)
    max_coin_probability: float = Field(default=0.9, ge=0, le=1)
    coin_multipliers: List[CoinValueWeight] = Field(
        default_factory=lambda: [
            CoinValueWeight(value=1, weight=50),
            CoinValueWeight(value=2, weight=30),
            CoinValueWeight(value=3, weight=15),
            CoinValueWeight(value=25, weight=4),
            CoinValueWeight(value=50, weight=1),
            CoinValueWeight(value=100, weight=0.5),
        ]
    )
    colour_multipliers: Dict[Colour, List[MultiplierThreshold]] = Field(
        default_factory=_default_tier_tables
    )


class PathsConfig(FrozenModel):
    """All paths are relative to PROJECT_ROOT."""

    config_file: str = "config.json"
    log_file: str = "data/little_wars.log"

    def get_config_path(self) -> Path:
        return PROJECT_ROOT / self.config_file

    def get_log_path(self) -> Path:
        return PROJECT_ROOT / self.log_file


class AppConfig(FrozenModel):
    """Main application configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    game: GameConfig = Field(default_factory=GameConfig)
    math: MathConfig = Field(default_factory=MathConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


# ==================== Configuration Loading ====================


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from config.json with environment variable overrides.
    Environment variables take precedence over config.json values.
    """
    if config_path is None:
        config_path = PathsConfig(config_file=get_env("CONFIG_FILE", "config.json")).get_config_path()

    data = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

    if get_env("SERVER_HOST"):
        data.setdefault("server", {})["host"] = get_env("SERVER_HOST")
    if get_env("SERVER_PORT"):
        data.setdefault("server", {})["port"] = get_env_int("SERVER_PORT", 8000)
    if get_env("DEBUG"):
        data.setdefault("server", {})["debug"] = get_env_bool("DEBUG")

    if get_env("LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = get_env("LOG_LEVEL")
    if get_env("LOG_TO_FILE"):
        data.setdefault("logging", {})["log_to_file"] = get_env_bool("LOG_TO_FILE")
    if get_env("LOG_FORMATTER"):
        data.setdefault("logging", {})["formatter"] = get_env("LOG_FORMATTER")

    if get_env("RATE_LIMIT_ENABLED"):
        data.setdefault("rate_limit", {})["enabled"] = get_env_bool("RATE_LIMIT_ENABLED", True)
    if get_env("RATE_LIMIT_GAME_REQUESTS"):
        data.setdefault("rate_limit", {})["game_requests"] = get_env("RATE_LIMIT_GAME_REQUESTS")
    if get_env("RATE_LIMIT_API_REQUESTS"):
        data.setdefault("rate_limit", {})["api_requests"] = get_env("RATE_LIMIT_API_REQUESTS")

    if get_env("RESOLVER_MODE"):
        data.setdefault("resolver", {})["mode"] = get_env("RESOLVER_MODE")
    if get_env("RESOLVER_STRATEGY"):
        data.setdefault("resolver", {})["strategy"] = get_env("RESOLVER_STRATEGY")
    if get_env("REMOTE_RESOLVER_URL"):
        data.setdefault("resolver", {})["remote_url"] = get_env("REMOTE_RESOLVER_URL")
    if get_env("REMOTE_RESOLVER_TIMEOUT"):
        data.setdefault("resolver", {})["timeout_seconds"] = get_env_float(
            "REMOTE_RESOLVER_TIMEOUT", 5.0
        )

    return AppConfig(**data)


# Global config instance
settings = load_config()
