"""Configuration management for the payroll engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    data_dir: Path
    company_name: str
    company_iban: str
    company_bic: str
    currency: str
    statutory_interest_rate: Decimal
    host: str
    port: int
    debug: bool
    log_level: str

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            data_dir=Path(os.getenv("PAYROLL_DATA_DIR", "data")),
            company_name=os.getenv("COMPANY_NAME", "Company BV"),
            company_iban=os.getenv("COMPANY_IBAN", ""),
            company_bic=os.getenv("COMPANY_BIC", ""),
            currency=os.getenv("DEFAULT_CURRENCY", "EUR"),
            statutory_interest_rate=Decimal(os.getenv("STATUTORY_INTEREST_RATE", "0.08")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
