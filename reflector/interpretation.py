"""
Composite & Interpretation Layer

Composite autonomy = fixed weighted blend of Epistemic Autonomy (60%)
and Reflective Flexibility (40%), rounded half-up.

Every construct score is bucketed into an ordered tier using the
TIER_CUTPOINTS constants: >= 70 high, >= 40 moderate, else low.
"""

from __future__ import annotations

from typing import Literal, Mapping

from reflector.config import settings
from reflector.item_bank import CONSTRUCT_METADATA
from reflector.scorer import ConstructScore, round_half_up

Tier = Literal["high", "moderate", "low"]

COMPOSITE_WEIGHTS: dict[str, float] = {"EAI": 0.6, "RF": 0.4}

# Ordered highest first: the first cut point a score reaches wins
TIER_CUTPOINTS: tuple[tuple[str, int], ...] = (
    ("high", settings.HIGH_TIER_CUTOFF),
    ("moderate", settings.MODERATE_TIER_CUTOFF),
)
FLOOR_TIER: Tier = "low"


def composite_score(scores: Mapping[str, ConstructScore]) -> int:
    """Weighted composite of the COMPOSITE_WEIGHTS constructs; missing ones count as 0."""
    total = 0.0
    for construct, weight in COMPOSITE_WEIGHTS.items():
        score = scores.get(construct)
        total += (score.raw if score is not None else 0) * weight
    return round_half_up(total)


def interpret(raw: float) -> Tier:
    """Map a 0-100 score onto its tier."""
    for tier, cutoff in TIER_CUTPOINTS:
        if raw >= cutoff:
            return tier
    return FLOOR_TIER


def interpret_scores(scores: Mapping[str, ConstructScore]) -> dict[str, Tier]:
    return {construct: interpret(score.raw) for construct, score in scores.items()}


def describe(construct: str, tier: str) -> str:
    """Human-readable interpretation text for a construct tier ("" if unknown)."""
    meta = CONSTRUCT_METADATA.get(construct, {})
    return meta.get("interpretation", {}).get(tier, "")
