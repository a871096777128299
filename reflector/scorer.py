"""
Construct Scorer

Turns the normalized 1-7 values of one construct into a 0-100 score
with a bootstrapped confidence interval and, when at least three items
contribute, an internal-consistency estimate.

Scoring:
  raw       = ((mean - 1) / 6) * 100, rounded half-up, clamped to [0, 100]
  interval  = percentile bootstrap of the mean (B >= 1000 resamples,
              2.5th / 97.5th percentiles), widened to contain the sample
              mean, rounded outward, clamped to [0, 100]; with n >= 2 a
              zero-width interval is widened by MIN_HALF_WIDTH per side
  reliability (n >= 3 only) = single-respondent consistency estimate,
              see consistency_estimate()

Resampling is pseudo-random. Unless a generator or seed is supplied the
generator is seeded from the values themselves, so identical inputs
reproduce identical intervals.
"""

from __future__ import annotations

import hashlib
import math
import random
import statistics
from dataclasses import dataclass
from typing import Optional, Sequence

from reflector.config import settings
from reflector.item_bank import SCALE_MAX, SCALE_MIN

MIN_RESAMPLES = 1000
DEFAULT_ALPHA = 0.05
MIN_ITEMS_FOR_RELIABILITY = 3
MIN_HALF_WIDTH = 1

# Variance of uniform random answering on a 1-7 scale: (7^2 - 1) / 12
_RANDOM_RESPONDER_VARIANCE = ((SCALE_MAX - SCALE_MIN + 1) ** 2 - 1) / 12


# ============================================================
# HELPERS
# ============================================================

def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if x >= 0:
        return int(math.floor(x + 0.5))
    return -int(math.floor(-x + 0.5))


def clamp(x: float, lo: float = 0, hi: float = 100) -> float:
    return max(lo, min(hi, x))


def to_percent_scale(value: float) -> float:
    """Map a 1-7 scale value onto 0-100 (unclamped, unrounded)."""
    return ((value - SCALE_MIN) / (SCALE_MAX - SCALE_MIN)) * 100


def _seed_from_values(values: Sequence[float]) -> int:
    digest = hashlib.sha256(repr(tuple(values)).encode()).hexdigest()
    return int(digest[:16], 16)


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class ConstructScore:
    """Score of one construct for one subject."""
    raw: int                        # 0-100
    ci_lower: int                   # 95% CI lower bound, 0-100
    ci_upper: int                   # 95% CI upper bound, 0-100
    ci_width: int                   # Precision indicator
    n_items: int                    # Responses that contributed
    reliability: Optional[float] = None

    @classmethod
    def empty(cls) -> "ConstructScore":
        return cls(raw=0, ci_lower=0, ci_upper=0, ci_width=0, n_items=0)


# ============================================================
# ESTIMATORS
# ============================================================

def bootstrap_interval(
    values: Sequence[float],
    resamples: int = MIN_RESAMPLES,
    alpha: float = DEFAULT_ALPHA,
    rng: Optional[random.Random] = None,
) -> tuple[float, float]:
    """
    Percentile bootstrap interval for the mean, on the input's own scale.

    Draws `resamples` samples of len(values) with replacement, sorts the
    resample means and returns the values at the alpha/2 and 1 - alpha/2
    positions.
    """
    n = len(values)
    if n == 0:
        return 0.0, 0.0
    rng = rng or random.Random(_seed_from_values(values))

    means = []
    for _ in range(resamples):
        total = 0.0
        for _ in range(n):
            total += values[rng.randrange(n)]
        means.append(total / n)
    means.sort()

    # Small epsilon keeps float products like 0.975 * 1000 on the right index
    lower_idx = min(resamples - 1, int(math.floor((alpha / 2) * resamples + 1e-9)))
    upper_idx = min(resamples - 1, int(math.floor((1 - alpha / 2) * resamples + 1e-9)))
    return means[lower_idx], means[upper_idx]


def consistency_estimate(values: Sequence[float]) -> Optional[float]:
    """
    Single-respondent internal-consistency estimate.

    One subject answers each item once, so the item-by-respondent matrix a
    textbook coefficient needs does not exist here. This estimate compares
    the spread of the subject's normalized item values with the spread of a
    uniform random responder: 1 - var(values) / var(random), clamped to
    [0, 1]. Identical answers give 1.0; answers as scattered as random give
    ~0. It is not Cronbach's alpha; use cronbach_alpha() on cohort data.
    """
    if len(values) < MIN_ITEMS_FOR_RELIABILITY:
        return None
    var = statistics.pvariance(values)
    return round(clamp(1 - var / _RANDOM_RESPONDER_VARIANCE, 0.0, 1.0), 3)


def cronbach_alpha(matrix: Sequence[Sequence[float]]) -> Optional[float]:
    """
    Cronbach's alpha for a respondents x items matrix.

    α = (k / (k - 1)) * (1 - Σσ²ᵢ / σ²ₜ)

    Returns None when the coefficient is undefined: fewer than two items,
    fewer than two respondents, ragged rows, or zero total variance.
    """
    if len(matrix) < 2:
        return None
    k = len(matrix[0])
    if k < 2 or any(len(row) != k for row in matrix):
        return None

    item_vars = [statistics.pvariance([row[j] for row in matrix]) for j in range(k)]
    total_var = statistics.pvariance([sum(row) for row in matrix])
    if total_var == 0:
        return None
    return round((k / (k - 1)) * (1 - sum(item_vars) / total_var), 3)


# ============================================================
# CONSTRUCT SCORE
# ============================================================

def score_construct(
    values: Sequence[float],
    rng: Optional[random.Random] = None,
    resamples: Optional[int] = None,
) -> ConstructScore:
    """
    Score one construct from its normalized 1-7 values.

    An empty value list yields ConstructScore.empty(); this never raises.
    """
    values = list(values)
    if not values:
        return ConstructScore.empty()

    resamples = max(resamples or settings.BOOTSTRAP_RESAMPLES, MIN_RESAMPLES)
    if rng is None and settings.BOOTSTRAP_SEED is not None:
        rng = random.Random(settings.BOOTSTRAP_SEED)

    mean = statistics.fmean(values)
    raw = int(clamp(round_half_up(to_percent_scale(mean))))

    lower, upper = bootstrap_interval(values, resamples=resamples, rng=rng)
    lower, upper = min(lower, mean), max(upper, mean)
    ci_lower = int(clamp(math.floor(to_percent_scale(lower))))
    ci_upper = int(clamp(math.ceil(to_percent_scale(upper))))
    if ci_upper == ci_lower and len(values) >= 2:
        # Identical resamples collapse the interval; keep a one-point margin
        ci_lower = int(clamp(ci_lower - MIN_HALF_WIDTH))
        ci_upper = int(clamp(ci_upper + MIN_HALF_WIDTH))

    return ConstructScore(
        raw=raw,
        ci_lower=ci_lower,
        ci_upper=ci_upper,
        ci_width=ci_upper - ci_lower,
        n_items=len(values),
        reliability=consistency_estimate(values),
    )
