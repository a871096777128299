"""
Assessment Scoring — Baseline Mirror

Single entry point that runs one assessment pass end to end:

  responses -> normalize -> score each construct -> composite
            -> interpret tiers -> audit integrity

Everything is recomputed from the responses on every call. Nothing
here is persisted.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, Optional

from reflector.config import settings
from reflector.integrity import ResponseIntegrity, audit_responses
from reflector.interpretation import composite_score, interpret_scores
from reflector.item_bank import BASELINE_MIRROR_ITEMS, CONSTRUCTS, get_item
from reflector.logging import get_logger
from reflector.normalizer import normalize_responses
from reflector.records import Response
from reflector.scorer import ConstructScore, round_half_up, score_construct

logger = get_logger("assessment")

UNKNOWN_SUBJECT = "unknown"


@dataclass(frozen=True)
class ScoreOutput:
    """Full result of scoring one assessment pass."""
    assessment_id: str
    subject_id: str
    version: str
    scores: dict[str, ConstructScore]
    composite: int                          # 0-100
    response_integrity: ResponseIntegrity
    completion_percentage: int              # 0-100
    interpretation: dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return self.completion_percentage >= 100


def completion_percentage(responses: Iterable[Response], total_items: int = len(BASELINE_MIRROR_ITEMS)) -> int:
    """Share of bank items answered, counting each known item once."""
    if total_items <= 0:
        return 0
    answered = {r.item_id for r in responses if get_item(r.item_id) is not None}
    return min(100, round_half_up(len(answered) / total_items * 100))


def score_assessment(
    responses: Iterable[Response],
    assessment_id: str,
    rng: Optional[random.Random] = None,
) -> ScoreOutput:
    """
    Score every construct of one assessment pass.

    Responses for other assessments, unknown items and malformed values
    are excluded; an empty response set yields zero scores.
    """
    responses = [r for r in responses if r.assessment_id == assessment_id]
    subject_id = responses[0].subject_id if responses else UNKNOWN_SUBJECT

    grouped = normalize_responses(responses)
    scores = {c: score_construct(grouped.get(c, []), rng=rng) for c in CONSTRUCTS}
    integrity = audit_responses(responses)

    output = ScoreOutput(
        assessment_id=assessment_id,
        subject_id=subject_id,
        version=settings.ENGINE_VERSION,
        scores=scores,
        composite=composite_score(scores),
        response_integrity=integrity,
        completion_percentage=completion_percentage(responses),
        interpretation=interpret_scores(scores),
    )

    logger.info(
        "Assessment scored",
        extra={
            "subject_id": subject_id,
            "assessment_id": assessment_id,
            "n_items": sum(s.n_items for s in scores.values()),
            "composite": output.composite,
        },
    )
    if integrity.straightlining or integrity.completion_time_flag:
        logger.warning(
            "Response integrity flagged",
            extra={
                "subject_id": subject_id,
                "assessment_id": assessment_id,
                "reason": "straightlining" if integrity.straightlining else "completion_time",
            },
        )
    return output
