"""
Runtime settings for the Edge Estimator.

Everything environment-driven is read here, once, into a frozen
``Settings`` object.  Sport-specific model constants live in
``backend.core.sport_config`` and are *not* configurable from the
environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

from backend.core.sport_config import ALL_SPORT_IDS, AMBIGUOUS_SPORT_DEFAULT

load_dotenv()

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "data"


@dataclass(frozen=True)
class Settings:
    environment: str = "production"
    database_url: str = "sqlite:///./edge.db"
    stats_data_dir: Path = DEFAULT_DATA_DIR
    stats_reload_minutes: int = 60
    default_american_odds: int = -110
    default_kelly_fraction: float = 0.5
    ambiguous_sport_default: str = AMBIGUOUS_SPORT_DEFAULT
    cors_origins: Tuple[str, ...] = ("http://localhost:3000",)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (``.env`` is loaded on import)."""
        sport_default = os.getenv("AMBIGUOUS_SPORT_DEFAULT", AMBIGUOUS_SPORT_DEFAULT).lower()
        if sport_default not in ALL_SPORT_IDS:
            raise ValueError(
                f"AMBIGUOUS_SPORT_DEFAULT={sport_default!r} is not one of {ALL_SPORT_IDS}"
            )

        default_odds = int(os.getenv("DEFAULT_AMERICAN_ODDS", "-110"))
        if abs(default_odds) < 100:
            raise ValueError(f"DEFAULT_AMERICAN_ODDS={default_odds} is not valid American odds")

        origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
        return cls(
            environment=os.getenv("ENVIRONMENT", "production"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./edge.db"),
            stats_data_dir=Path(os.getenv("STATS_DATA_DIR", str(DEFAULT_DATA_DIR))),
            stats_reload_minutes=int(os.getenv("STATS_RELOAD_MINUTES", "60")),
            default_american_odds=default_odds,
            default_kelly_fraction=float(os.getenv("DEFAULT_KELLY_FRACTION", "0.5")),
            ambiguous_sport_default=sport_default,
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, built lazily on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
