"""
Boundary Schemas — UI Payloads to Engine Records

Pydantic models that validate free-form UI state before it reaches
the engine. This is the only layer that rejects input: anything that
passes is converted with to_record() into the immutable records the
engine consumes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from reflector.free_text import build_restatement_artifact, score_falsification
from reflector.records import (
    FalsificationExercise,
    InfluenceSource,
    ProvenanceEntry,
    Reflection,
    RestatementArtifact,
    Response,
    SchemaReclaim,
)


# ============================================================
# ASSESSMENT
# ============================================================

class ResponseIn(BaseModel):
    """One answer from the assessment screen."""
    subject_id: str = Field(..., min_length=1, max_length=200)
    assessment_id: str = Field(..., min_length=1, max_length=200)
    item_id: str = Field(..., min_length=1, max_length=100)
    value: Optional[float] = Field(None, description="1-7 rating, or the chosen option's score.")
    timestamp: Optional[datetime] = None

    model_config = {"json_schema_extra": {"examples": [
        {"subject_id": "u-1", "assessment_id": "a-1", "item_id": "eai_01", "value": 6},
    ]}}

    def to_record(self) -> Response:
        return Response(
            subject_id=self.subject_id,
            assessment_id=self.assessment_id,
            item_id=self.item_id,
            value=self.value,
            timestamp=self.timestamp,
        )


# ============================================================
# EXERCISES
# ============================================================

class RestatementIn(BaseModel):
    """Steelman exercise submission. Scored on conversion."""
    original: str = Field(..., min_length=1, max_length=20_000)
    restatement: str = Field(..., min_length=1, max_length=20_000)
    belief: str = Field("", max_length=2_000)
    timestamp: Optional[datetime] = None

    def to_record(self) -> RestatementArtifact:
        return build_restatement_artifact(
            self.original, self.restatement, belief=self.belief, timestamp=self.timestamp,
        )


class FalsificationIn(BaseModel):
    """Falsifiability exercise submission. Scored on conversion."""
    belief: str = Field(..., min_length=1, max_length=2_000)
    falsifiers: list[str] = Field(..., min_length=1, max_length=20)
    timestamp: Optional[datetime] = None

    def to_record(self) -> FalsificationExercise:
        return score_falsification(self.belief, self.falsifiers, timestamp=self.timestamp)


class ReflectionIn(BaseModel):
    """Daily reflection."""
    text: str = Field(..., min_length=1, max_length=20_000)
    category: str = Field("meta", pattern="^(disconfirm|emotion|source|meta)$")
    insight_flagged: bool = False
    timestamp: Optional[datetime] = None

    def to_record(self) -> Reflection:
        return Reflection(
            text=self.text,
            category=self.category,
            insight_flagged=self.insight_flagged,
            timestamp=self.timestamp,
        )


# ============================================================
# PROVENANCE JOURNAL
# ============================================================

class ProvenanceEntryIn(BaseModel):
    """One provenance-journal entry."""
    belief: str = Field(..., min_length=1, max_length=2_000)
    source: str = Field(..., min_length=1, max_length=500,
                        description="Who the belief was first heard from.")
    first_heard: str = Field("", max_length=2_000)
    beneficiaries: list[str] = Field(default_factory=list, max_length=20)
    evidence_checked: str = Field("", max_length=5_000)
    certainty_before: Optional[int] = Field(None, ge=1, le=10)
    certainty_after: Optional[int] = Field(None, ge=1, le=10)
    timestamp: Optional[datetime] = None

    def to_record(self) -> ProvenanceEntry:
        return ProvenanceEntry(
            belief=self.belief,
            source=self.source,
            first_heard=self.first_heard,
            beneficiaries=tuple(b for b in self.beneficiaries if b.strip()),
            evidence_checked=self.evidence_checked,
            certainty_before=self.certainty_before,
            certainty_after=self.certainty_after,
            timestamp=self.timestamp,
        )


# ============================================================
# SCHEMA RECLAIM & INFLUENCE MAP
# ============================================================

class SchemaReclaimIn(BaseModel):
    """One Schema Reclaim session."""
    schema_name: str = Field(..., alias="schema",
                             pattern="^(approval|dependence|punitiveness|defectiveness)$")
    pre_intensity: int = Field(..., ge=1, le=10)
    pre_certainty: int = Field(..., ge=1, le=10)
    post_certainty: Optional[int] = Field(None, ge=1, le=10)
    breathing_complete: bool = False
    pre_emotion: str = Field("", max_length=200)
    post_emotion: str = Field("", max_length=200)
    timestamp: Optional[datetime] = None

    model_config = {"populate_by_name": True}

    def to_record(self) -> SchemaReclaim:
        return SchemaReclaim(
            schema=self.schema_name,
            pre_intensity=self.pre_intensity,
            pre_certainty=self.pre_certainty,
            post_certainty=self.post_certainty,
            breathing_complete=self.breathing_complete,
            pre_emotion=self.pre_emotion,
            post_emotion=self.post_emotion,
            timestamp=self.timestamp,
        )


class InfluenceSourceIn(BaseModel):
    """One source added to the influence map."""
    name: str = Field(..., min_length=1, max_length=500)
    source_type: str = Field("other", pattern="^(podcast|news|social|person|community|other)$")
    perspective: str = Field(
        "center", pattern="^(left|center-left|center|center-right|right|non-political)$",
    )
    influence: int = Field(3, ge=1, le=5)
    timestamp: Optional[datetime] = None

    def to_record(self) -> InfluenceSource:
        return InfluenceSource(
            name=self.name.strip(),
            source_type=self.source_type,
            perspective=self.perspective,
            influence=self.influence,
            timestamp=self.timestamp,
        )
