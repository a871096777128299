"""
Response Normalizer

Converts raw responses onto the common 1-7 construct scale.
Reverse-coded rating items are inverted (v -> 8 - v); scenario
responses already carry the chosen option's score and pass through.

Responses that cannot be placed on the scale (unknown item, missing
or non-numeric value, value outside 1-7) are excluded silently.
"""

from __future__ import annotations

import math
from typing import Callable, Iterable, Optional

from reflector.item_bank import CONSTRUCTS, SCALE_MAX, SCALE_MIN, ScoredItem, get_item
from reflector.logging import get_logger
from reflector.records import Response

logger = get_logger("normalizer")

ItemLookup = Callable[[str], Optional[ScoredItem]]


def coerce_value(value) -> Optional[float]:
    """Return the value as a finite float, or None if it is malformed."""
    if value is None or isinstance(value, bool):
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(v):
        return None
    return v


def normalize_response(response: Response, item: Optional[ScoredItem]) -> Optional[float]:
    """
    Place one response on the 1-7 scale.

    Returns None when the response must be excluded from aggregation.
    """
    if item is None:
        logger.debug(
            "Response excluded",
            extra={"item_id": response.item_id, "reason": "unknown_item"},
        )
        return None

    v = coerce_value(response.value)
    if v is None:
        logger.debug(
            "Response excluded",
            extra={"item_id": response.item_id, "reason": "malformed_value"},
        )
        return None

    if not SCALE_MIN <= v <= SCALE_MAX:
        logger.debug(
            "Response excluded",
            extra={"item_id": response.item_id, "reason": "off_scale"},
        )
        return None

    if item.item_type == "rating" and item.reverse_coded:
        return (SCALE_MAX + 1) - v

    return v


def normalize_responses(
    responses: Iterable[Response],
    lookup: ItemLookup = get_item,
) -> dict[str, list[float]]:
    """Normalize a response set and group the usable values by construct."""
    grouped: dict[str, list[float]] = {c: [] for c in CONSTRUCTS}
    for response in responses:
        item = lookup(response.item_id)
        value = normalize_response(response, item)
        if value is None:
            continue
        grouped.setdefault(item.construct, []).append(value)
    return grouped
