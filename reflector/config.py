"""
Reflector Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


@dataclass(frozen=True)
class Settings:
    """Immutable engine settings."""

    # --- Versioning ---
    ENGINE_VERSION: str = "1.0.0"

    # --- Construct scorer ---
    BOOTSTRAP_RESAMPLES: int = int(os.getenv("REFLECTOR_BOOTSTRAP_RESAMPLES", "1000"))
    # Unset = seed derived from the scored values (reproducible per input)
    BOOTSTRAP_SEED: Optional[int] = _optional_int("REFLECTOR_BOOTSTRAP_SEED")

    # --- Interpretation ---
    HIGH_TIER_CUTOFF: int = int(os.getenv("REFLECTOR_HIGH_TIER_CUTOFF", "70"))
    MODERATE_TIER_CUTOFF: int = int(os.getenv("REFLECTOR_MODERATE_TIER_CUTOFF", "40"))

    # --- Response integrity ---
    STRAIGHTLINE_MIN_RESPONSES: int = int(
        os.getenv("REFLECTOR_STRAIGHTLINE_MIN_RESPONSES", "10")
    )
    MIN_SECONDS_PER_ITEM: float = float(
        os.getenv("REFLECTOR_MIN_SECONDS_PER_ITEM", "2.0")
    )

    # --- Provenance journal ---
    PROVENANCE_MIN_ENTRIES: int = int(os.getenv("REFLECTOR_PROVENANCE_MIN_ENTRIES", "7"))


settings = Settings()
