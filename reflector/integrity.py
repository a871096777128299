"""
Response-Integrity Auditor

Flags careless or low-effort answering in one assessment pass:

  - Acquiescence / extreme-response bias: share of answers at either end
    of the scale (1-2 or 6-7), as a 0-1 ratio
  - Straightlining: no more than two distinct values across more than
    STRAIGHTLINE_MIN_RESPONSES answers
  - Completion time: mean gap between consecutive answers below
    MIN_SECONDS_PER_ITEM

The flags are advisory. Scoring runs regardless; the flags travel with
the score output.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from reflector.config import settings
from reflector.normalizer import coerce_value
from reflector.records import Response

EXTREME_LOW = 2
EXTREME_HIGH = 6


@dataclass(frozen=True)
class ResponseIntegrity:
    """Advisory integrity flags for one assessment pass."""
    acquiescence_bias: float = 0.0          # 0-1
    straightlining: bool = False
    completion_time_flag: bool = False
    mean_seconds_per_item: Optional[float] = None


def audit_responses(
    responses: Iterable[Response],
    min_responses: Optional[int] = None,
    min_seconds_per_item: Optional[float] = None,
) -> ResponseIntegrity:
    """Compute integrity flags over the raw (un-normalized) responses."""
    responses = list(responses)
    if min_responses is None:
        min_responses = settings.STRAIGHTLINE_MIN_RESPONSES
    if min_seconds_per_item is None:
        min_seconds_per_item = settings.MIN_SECONDS_PER_ITEM

    values = [v for v in (coerce_value(r.value) for r in responses) if v is not None]
    if not values:
        return ResponseIntegrity()

    extreme = sum(1 for v in values if v <= EXTREME_LOW or v >= EXTREME_HIGH)
    acquiescence = round(extreme / len(values), 2)

    straightlining = len(set(values)) <= 2 and len(values) > min_responses

    # Epoch seconds so naive and aware datetimes can be ordered together.
    # Non-datetime timestamps are ignored.
    times = sorted(r.timestamp.timestamp() for r in responses if isinstance(r.timestamp, datetime))
    mean_gap = None
    if len(times) >= 2:
        gaps = [b - a for a, b in zip(times, times[1:])]
        mean_gap = sum(gaps) / len(gaps)

    return ResponseIntegrity(
        acquiescence_bias=acquiescence,
        straightlining=straightlining,
        completion_time_flag=mean_gap is not None and mean_gap < min_seconds_per_item,
        mean_seconds_per_item=round(mean_gap, 2) if mean_gap is not None else None,
    )
