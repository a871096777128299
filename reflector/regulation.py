"""
Schema Reclaim — Affective-Reactivity Improvement

Scores one regulation session: the subject rates emotional intensity
and belief certainty, does a paced breathing cycle, then re-rates
certainty.

Scoring (0-100, higher = better regulation):
  Start at 50.
  Certainty drop (pre - post):   +10 per point (negative when it rose)
  Breathing cycle completed:     +30
  Pre-session intensity (1-10):  -2 per point (intense emotion is harder
                                 to regulate)
  Floor at 0, cap at 100.

A session without a post-session certainty, or with an unreadable
pre-session certainty, scores 0.
"""

from __future__ import annotations

from typing import Iterable, Optional

from reflector.normalizer import coerce_value
from reflector.records import SchemaReclaim
from reflector.scorer import clamp, round_half_up

SCHEMAS: tuple[str, ...] = ("approval", "dependence", "punitiveness", "defectiveness")

ARD_BASE = 50
CERTAINTY_WEIGHT = 10
BREATHING_BONUS = 30
INTENSITY_PENALTY_MAX = 20      # At intensity 10


def certainty_shift(session: SchemaReclaim) -> Optional[float]:
    """Drop in certainty across the session, None when either rating is absent."""
    pre = coerce_value(session.pre_certainty)
    post = coerce_value(session.post_certainty)
    if pre is None or post is None:
        return None
    return pre - post


def ard_improvement(session: SchemaReclaim) -> int:
    shift = certainty_shift(session)
    if shift is None:
        return 0
    intensity = coerce_value(session.pre_intensity)
    penalty = (intensity / 10) * INTENSITY_PENALTY_MAX if intensity is not None else 0.0

    score = ARD_BASE + shift * CERTAINTY_WEIGHT - penalty
    if session.breathing_complete is True:
        score += BREATHING_BONUS
    return round_half_up(clamp(score))


def mean_ard_improvement(sessions: Iterable[SchemaReclaim]) -> Optional[int]:
    """Mean improvement over sessions that reached the belief check; None if none did."""
    scores = [ard_improvement(s) for s in sessions if certainty_shift(s) is not None]
    if not scores:
        return None
    return round_half_up(sum(scores) / len(scores))
