"""
Engine Settings

Environment-driven configuration for the HTTP surface and caller defaults.
Engine defaults are owned by their engine modules and only overridden here.
Business assumptions (bucket collection days, average invoice size) are
module constants in their engines, not settings.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List
import os

from risk_scoring_engine import DEFAULT_MINIMUM_CASH
from rolling_forecast_engine import DEFAULT_GROWTH_RATE


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class EngineSettings:
    log_level: str = "INFO"
    api_title: str = "Financial Calculation Engine API"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    default_growth_rate: Decimal = DEFAULT_GROWTH_RATE
    minimum_cash: Decimal = DEFAULT_MINIMUM_CASH


def load_settings() -> EngineSettings:
    """Read settings from the environment"""
    return EngineSettings(
        log_level=os.getenv("FINANCE_ENGINE_LOG_LEVEL", "INFO").upper(),
        api_title=os.getenv("FINANCE_ENGINE_API_TITLE", "Financial Calculation Engine API"),
        cors_origins=_split_origins(os.getenv("FINANCE_ENGINE_CORS_ORIGINS", "*")),
        default_growth_rate=Decimal(os.getenv("FINANCE_ENGINE_DEFAULT_GROWTH_RATE", str(DEFAULT_GROWTH_RATE))),
        minimum_cash=Decimal(os.getenv("FINANCE_ENGINE_MINIMUM_CASH", str(DEFAULT_MINIMUM_CASH))),
    )


def get_settings() -> EngineSettings:
    return load_settings()
