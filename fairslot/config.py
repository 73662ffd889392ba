"""
FairSlot — Centralized configuration.

Loads all settings from .env and the process environment.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from fairslot/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite
    DATABASE_PATH: str = "data/fairslot.db"

    # Candidate scan
    LOOKAHEAD_DAYS: int = 28
    SCAN_GRANULARITY_MINUTES: int = 15
    CANDIDATE_CAP: int = 1000     # candidates evaluated per run; trades latency for completeness
    TOP_K: int = 5

    # Fairness
    FAIRNESS_LOOKBACK_DAYS: int = 28
    PENALTY_WEIGHT: float = 0.1
    ADJACENCY_WINDOW_MINUTES: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator(
        "LOOKAHEAD_DAYS",
        "SCAN_GRANULARITY_MINUTES",
        "CANDIDATE_CAP",
        "TOP_K",
        "FAIRNESS_LOOKBACK_DAYS",
        "ADJACENCY_WINDOW_MINUTES",
        mode="before",
    )
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)

    @field_validator("PENALTY_WEIGHT", mode="before")
    @classmethod
    def parse_float(cls, v: str | float) -> float:
        return float(v)

    @field_validator("SCAN_GRANULARITY_MINUTES", "CANDIDATE_CAP", "TOP_K")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return str(v).strip().upper() or "INFO"


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/fairslot.db"),
        LOOKAHEAD_DAYS=os.getenv("LOOKAHEAD_DAYS", "28"),
        SCAN_GRANULARITY_MINUTES=os.getenv("SCAN_GRANULARITY_MINUTES", "15"),
        CANDIDATE_CAP=os.getenv("CANDIDATE_CAP", "1000"),
        TOP_K=os.getenv("TOP_K", "5"),
        FAIRNESS_LOOKBACK_DAYS=os.getenv("FAIRNESS_LOOKBACK_DAYS", "28"),
        PENALTY_WEIGHT=os.getenv("PENALTY_WEIGHT", "0.1"),
        ADJACENCY_WINDOW_MINUTES=os.getenv("ADJACENCY_WINDOW_MINUTES", "30"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton, imported by all other modules as:
#   from fairslot.config import settings
settings = _load_settings()
