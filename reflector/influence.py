"""
Influence Map — Information-Diet Diversity

Summarizes the sources a subject has mapped as feeding their beliefs:

  - Type diversity: distinct source types / all source types, 0-100
  - Ideological diversity: distinct perspectives / all perspectives, 0-100
  - Homophily: share of sources from the dominant perspective, 0-100
    (0 = diverse, 100 = echo chamber)
  - Overall diversity: 100 - homophily

An empty map yields the zero InfluenceDiversity.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from reflector.logging import get_logger
from reflector.records import InfluenceSource
from reflector.scorer import round_half_up

logger = get_logger("influence")

SOURCE_TYPES: tuple[str, ...] = ("podcast", "news", "social", "person", "community", "other")
PERSPECTIVES: tuple[str, ...] = (
    "left", "center-left", "center", "center-right", "right", "non-political",
)

ECHO_CHAMBER_HOMOPHILY = 60


@dataclass(frozen=True)
class InfluenceDiversity:
    """Diversity metrics for one subject's influence map."""
    type_diversity: int = 0
    ideological_diversity: int = 0
    homophily: int = 0
    overall_diversity: int = 0
    dominant_perspective: str = "none"
    total_sources: int = 0

    @property
    def echo_chamber(self) -> bool:
        return self.homophily > ECHO_CHAMBER_HOMOPHILY


def _label(value) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def influence_diversity(sources: Iterable[InfluenceSource]) -> InfluenceDiversity:
    """Compute diversity and homophily for a list of mapped sources."""
    sources = list(sources)
    if not sources:
        return InfluenceDiversity()

    types = {_label(s.source_type) for s in sources} & set(SOURCE_TYPES)
    perspective_counts = Counter(p for p in (_label(s.perspective) for s in sources) if p)
    known_perspectives = set(perspective_counts) & set(PERSPECTIVES)

    dominant, dominant_count = "none", 0
    if perspective_counts:
        dominant, dominant_count = perspective_counts.most_common(1)[0]
    homophily = dominant_count / len(sources) * 100

    result = InfluenceDiversity(
        type_diversity=round_half_up(len(types) / len(SOURCE_TYPES) * 100),
        ideological_diversity=round_half_up(len(known_perspectives) / len(PERSPECTIVES) * 100),
        homophily=round_half_up(homophily),
        overall_diversity=round_half_up(100 - homophily),
        dominant_perspective=dominant,
        total_sources=len(sources),
    )
    logger.debug(
        "Influence map analyzed",
        extra={"n_sources": len(sources), "reason": "echo_chamber" if result.echo_chamber else None},
    )
    return result


def missing_perspectives(sources: Iterable[InfluenceSource]) -> tuple[str, ...]:
    """Perspectives with no mapped source, in PERSPECTIVES order."""
    present = {_label(s.perspective) for s in sources}
    return tuple(p for p in PERSPECTIVES if p not in present)
