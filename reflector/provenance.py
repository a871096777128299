"""
Longitudinal Pattern Analyzer — Provenance Journal

Looks across a subject's provenance entries (where a belief came from,
who benefits from it, whether the evidence was checked) for recurring
patterns:

  - Source dependency: how concentrated belief intake is in a few sources
  - Evidence gaps: share of beliefs adopted without checking evidence
  - Top sources / beneficiary patterns: the most frequent labels
  - Certainty shift: how much reflecting on provenance moved certainty

Below PROVENANCE_MIN_ENTRIES entries no pattern is reported: the
result is the neutral ProvenancePattern.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from reflector.config import settings
from reflector.logging import get_logger
from reflector.normalizer import coerce_value
from reflector.records import ProvenanceEntry
from reflector.scorer import clamp, round_half_up

logger = get_logger("provenance")

DependencyLevel = Literal["high", "moderate", "low"]

TOP_N = 3

# Share of entries attributable to the top sources
HIGH_DEPENDENCY_RATIO = 0.6
MODERATE_DEPENDENCY_RATIO = 0.4

MIN_EVIDENCE_LENGTH = 20
NEGATION_MARKERS: tuple[str, ...] = (
    "not checked",
    "haven't",
    "have not",
    "didn't check",
    "did not check",
    "unchecked",
)

# Independence index
INDEPENDENCE_BASE = 100
HIGH_DEPENDENCY_PENALTY = 30
MODERATE_DEPENDENCY_PENALTY = 15
EVIDENCE_GAP_WEIGHT = 0.5
DIVERSE_BENEFICIARY_BONUS = 5
DIVERSE_BENEFICIARY_MIN = 3


@dataclass(frozen=True)
class ProvenancePattern:
    """Patterns detected across one subject's provenance entries."""
    source_dependency: str = "low"          # "high" | "moderate" | "low"
    top_sources: tuple[str, ...] = ()
    beneficiary_patterns: tuple[str, ...] = ()
    evidence_gaps: int = 0                  # % of entries, 0-100
    mean_certainty_shift: Optional[float] = None
    n_entries: int = 0


def _label(value) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _most_common(labels: Iterable[str], n: int = TOP_N) -> tuple[str, ...]:
    # Counter preserves insertion order and most_common() is a stable sort,
    # so ties resolve to the label seen first.
    counts = Counter(label for label in labels if label)
    return tuple(label for label, _ in counts.most_common(n))


def has_evidence_gap(entry: ProvenanceEntry) -> bool:
    """True when the entry records no real evidence check."""
    evidence = entry.evidence_checked if isinstance(entry.evidence_checked, str) else ""
    text = evidence.strip().lower()
    if len(text) < MIN_EVIDENCE_LENGTH:
        return True
    return any(marker in text for marker in NEGATION_MARKERS)


def dependency_level(entries: list[ProvenanceEntry]) -> DependencyLevel:
    """Classify source concentration from the top-three share of entries."""
    if not entries:
        return "low"
    counts = Counter(_label(e.source) for e in entries)
    counts.pop("", None)
    top_total = sum(count for _, count in counts.most_common(TOP_N))
    ratio = top_total / len(entries)
    if ratio > HIGH_DEPENDENCY_RATIO:
        return "high"
    if ratio > MODERATE_DEPENDENCY_RATIO:
        return "moderate"
    return "low"


def mean_certainty_shift(entries: Iterable[ProvenanceEntry]) -> Optional[float]:
    """Mean drop in certainty (before - after) over entries carrying both values."""
    shifts = []
    for entry in entries:
        before = coerce_value(entry.certainty_before)
        after = coerce_value(entry.certainty_after)
        if before is not None and after is not None:
            shifts.append(before - after)
    if not shifts:
        return None
    return round(sum(shifts) / len(shifts), 2)


def analyze_provenance(
    entries: Iterable[ProvenanceEntry],
    min_entries: Optional[int] = None,
) -> ProvenancePattern:
    """
    Detect source-dependency and evidence patterns in a provenance journal.

    Returns the neutral ProvenancePattern when fewer than `min_entries`
    entries exist.
    """
    entries = list(entries)
    if min_entries is None:
        min_entries = settings.PROVENANCE_MIN_ENTRIES
    if len(entries) < min_entries or not entries:
        return ProvenancePattern(n_entries=len(entries))

    gaps = sum(1 for e in entries if has_evidence_gap(e))
    beneficiaries = (
        _label(b) for e in entries for b in (e.beneficiaries or ()) if isinstance(b, str)
    )

    pattern = ProvenancePattern(
        source_dependency=dependency_level(entries),
        top_sources=_most_common(_label(e.source) for e in entries),
        beneficiary_patterns=_most_common(beneficiaries),
        evidence_gaps=round_half_up(gaps / len(entries) * 100),
        mean_certainty_shift=mean_certainty_shift(entries),
        n_entries=len(entries),
    )
    logger.debug(
        "Provenance analyzed",
        extra={"n_entries": pattern.n_entries, "source_dependency": pattern.source_dependency},
    )
    return pattern


def independence_index(
    entries: Iterable[ProvenanceEntry],
    min_entries: Optional[int] = None,
) -> int:
    """
    Independence Index (0-100).

    Scoring:
      Below the minimum entry count: 0.
      Start at 100.
      High source dependency:      -30
      Moderate source dependency:  -15
      Evidence gaps:               -0.5 per percentage point
      3+ beneficiary patterns:     +5 (considers who benefits)
      Floor at 0, cap at 100.
    """
    entries = list(entries)
    if min_entries is None:
        min_entries = settings.PROVENANCE_MIN_ENTRIES
    if len(entries) < min_entries or not entries:
        return 0

    pattern = analyze_provenance(entries, min_entries=min_entries)
    score = float(INDEPENDENCE_BASE)
    if pattern.source_dependency == "high":
        score -= HIGH_DEPENDENCY_PENALTY
    elif pattern.source_dependency == "moderate":
        score -= MODERATE_DEPENDENCY_PENALTY
    score -= pattern.evidence_gaps * EVIDENCE_GAP_WEIGHT
    if len(pattern.beneficiary_patterns) >= DIVERSE_BENEFICIARY_MIN:
        score += DIVERSE_BENEFICIARY_BONUS
    return int(clamp(round_half_up(score)))
