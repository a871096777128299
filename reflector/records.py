"""
Value Records

Immutable, fully-specified records the engine reads. Free-form UI
state is converted into these at the boundary (reflector.schemas), so
the engine can assume well-formed shapes. Numeric fields that may be
corrupted in storage stay Optional: None means "absent" and is skipped
during aggregation, never raised on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Response:
    """One answer to one bank item."""
    subject_id: str
    assessment_id: str
    item_id: str
    value: Optional[float]          # 1-7 rating, or the chosen option's score
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class RestatementArtifact:
    """A steelman exercise: an opposing argument and the subject's restatement."""
    original: str
    restatement: str
    charity_score: Optional[int]    # 0-100
    accuracy_score: Optional[int]   # 0-100
    strawman_detected: bool = False
    missing_key_points: tuple[str, ...] = ()
    weakening_signals: tuple[str, ...] = ()
    charity_markers: tuple[str, ...] = ()
    belief: str = ""
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class Falsifier:
    """A condition that would change the subject's mind, with its specificity."""
    text: str
    specificity: int                # 0-100


@dataclass(frozen=True)
class FalsificationExercise:
    """A falsifiability exercise: one belief and the falsifiers listed for it."""
    belief: str
    falsifiers: tuple[Falsifier, ...] = ()
    timestamp: Optional[datetime] = None

    @property
    def overall_score(self) -> int:
        """Mean specificity plus a bonus of 5 per falsifier (max 20), capped at 100."""
        if not self.falsifiers:
            return 0
        mean = sum(f.specificity for f in self.falsifiers) / len(self.falsifiers)
        bonus = min(len(self.falsifiers) * 5, 20)
        return min(100, int(mean + bonus + 0.5))


@dataclass(frozen=True)
class Reflection:
    """A daily free-text reflection."""
    text: str
    category: str = "meta"          # "disconfirm" | "emotion" | "source" | "meta"
    insight_flagged: bool = False
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class ProvenanceEntry:
    """One provenance-journal entry: where a belief came from and who it serves."""
    belief: str
    source: str                     # Who the belief was first heard from
    first_heard: str = ""           # Where / in what context
    beneficiaries: tuple[str, ...] = ()
    evidence_checked: str = ""
    certainty_before: Optional[int] = None   # 1-10
    certainty_after: Optional[int] = None    # 1-10
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class SchemaReclaim:
    """A Schema Reclaim session: emotion and certainty before and after regulation."""
    schema: str                     # "approval" | "dependence" | "punitiveness" | "defectiveness"
    pre_intensity: Optional[int]    # 1-10
    pre_certainty: Optional[int]    # 1-10
    post_certainty: Optional[int] = None     # 1-10, None until the belief check
    breathing_complete: bool = False
    pre_emotion: str = ""
    post_emotion: str = ""
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class InfluenceSource:
    """One source on the subject's influence map."""
    name: str
    source_type: str                # see reflector.influence.SOURCE_TYPES
    perspective: str                # see reflector.influence.PERSPECTIVES
    influence: int = 3              # 1-5
    timestamp: Optional[datetime] = None
