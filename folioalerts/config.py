"""Configuration loading for FolioAlerts.

Settings come from a TOML file (``~/.config/folioalerts/config.toml`` by
default, or the path in ``FOLIOALERTS_CONFIG``). A missing file means all
defaults::

    [engine]
    tick_interval_seconds = 60
    feed_timeout_seconds = 10
    max_workers = 4

    [store]
    db_path = "~/.config/folioalerts/folioalerts.db"

    [logging]
    level = "WARNING"

    [simulation]
    seed = 42
    prices = { BTC = 50000, ETH = 3000 }
    volumes = { BTC = 1e9 }
    supplies = { BTC = 19.7e6 }
"""

import os
from pathlib import Path
from typing import Literal, Optional

import toml
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from folioalerts.errors import ValidationError

CONFIG_DIR = Path.home() / ".config" / "folioalerts"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = CONFIG_DIR / "folioalerts.db"
CONFIG_ENV_VAR = "FOLIOALERTS_CONFIG"

DEFAULT_SIMULATED_PRICES = {
    "BTC": 50000.0,
    "ETH": 3000.0,
    "AAPL": 190.0,
    "MSFT": 410.0,
}


class EngineSettings(BaseModel):
    """Scheduler settings."""

    tick_interval_seconds: float = Field(default=60.0, gt=0)
    feed_timeout_seconds: float = Field(default=10.0, gt=0)
    max_workers: int = Field(default=4, ge=1)


class StoreSettings(BaseModel):
    """Alert store settings."""

    db_path: Path = Field(default=DEFAULT_DB_PATH)

    @field_validator("db_path")
    @classmethod
    def _expand(cls, value: Path) -> Path:
        return value.expanduser()


class LoggingSettings(BaseModel):
    """Logging settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper() if isinstance(value, str) else value


class SimulationSettings(BaseModel):
    """Settings for the simulated metric feed."""

    seed: Optional[int] = None
    prices: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_SIMULATED_PRICES))
    volumes: dict[str, float] = Field(default_factory=dict)
    supplies: dict[str, float] = Field(default_factory=dict)


class Settings(BaseModel):
    """Top-level FolioAlerts settings."""

    engine: EngineSettings = Field(default_factory=EngineSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)


def resolve_config_path(path: Optional[Path] = None) -> Path:
    """Pick the config file: explicit path, then environment, then default."""
    if path is not None:
        return Path(path).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        path: Config file path; see ``resolve_config_path``.

    Returns:
        Parsed settings, or defaults if the file does not exist.

    Raises:
        ValidationError: If the file cannot be parsed or has invalid values.
    """
    config_path = resolve_config_path(path)
    if not config_path.exists():
        return Settings()

    try:
        data = toml.load(config_path)
    except toml.TomlDecodeError as exc:
        raise ValidationError(f"Invalid TOML in {config_path}: {exc}") from exc

    try:
        return Settings.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid configuration in {config_path}: {exc}") from exc
