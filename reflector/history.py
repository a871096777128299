"""
History Provider

The engine never reaches for a global store. Callers hand it a
provider exposing a subject's histories and an unlock writer; any
object with these methods qualifies. A reader that returns None counts as
an empty history for that subject.

InMemoryHistoryProvider is the reference implementation used by the
test-suite and by embedders that keep state in process. Thread-safe
via a single lock.

Usage:
    provider = InMemoryHistoryProvider()
    provider.add_reflection("subject-1", Reflection(text="..."))
    engine = AchievementEngine(provider)
    new = engine.check("subject-1")
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Iterable, Optional, Protocol, runtime_checkable

from reflector.records import (
    FalsificationExercise,
    InfluenceSource,
    ProvenanceEntry,
    Reflection,
    RestatementArtifact,
    Response,
    SchemaReclaim,
)


@runtime_checkable
class HistoryProvider(Protocol):
    """What the engine reads from, and writes unlocks to."""

    def get_responses(self, subject_id: str, assessment_id: Optional[str] = None) -> list[Response]: ...

    def get_restatements(self, subject_id: str) -> list[RestatementArtifact]: ...

    def get_falsification_exercises(self, subject_id: str) -> list[FalsificationExercise]: ...

    def get_reflections(self, subject_id: str) -> list[Reflection]: ...

    def get_provenance_entries(self, subject_id: str) -> list[ProvenanceEntry]: ...

    def get_schema_reclaims(self, subject_id: str) -> list[SchemaReclaim]: ...

    def get_influence_sources(self, subject_id: str) -> list[InfluenceSource]: ...

    def get_unlocked_achievements(self, subject_id: str) -> set[str]: ...

    def unlock_achievement(self, unlock) -> None: ...


class InMemoryHistoryProvider:
    """Per-subject append-only histories held in process memory."""

    def __init__(self):
        self._responses: dict[str, list[Response]] = defaultdict(list)
        self._restatements: dict[str, list[RestatementArtifact]] = defaultdict(list)
        self._exercises: dict[str, list[FalsificationExercise]] = defaultdict(list)
        self._reflections: dict[str, list[Reflection]] = defaultdict(list)
        self._provenance: dict[str, list[ProvenanceEntry]] = defaultdict(list)
        self._reclaims: dict[str, list[SchemaReclaim]] = defaultdict(list)
        self._influence: dict[str, list[InfluenceSource]] = defaultdict(list)
        self._unlocks: dict[str, dict] = defaultdict(dict)
        self._lock = threading.Lock()

    # --- Writers ---

    def add_responses(self, responses: Iterable[Response]) -> None:
        with self._lock:
            for r in responses:
                self._responses[r.subject_id].append(r)

    def add_restatement(self, subject_id: str, artifact: RestatementArtifact) -> None:
        with self._lock:
            self._restatements[subject_id].append(artifact)

    def add_falsification_exercise(self, subject_id: str, exercise: FalsificationExercise) -> None:
        with self._lock:
            self._exercises[subject_id].append(exercise)

    def add_reflection(self, subject_id: str, reflection: Reflection) -> None:
        with self._lock:
            self._reflections[subject_id].append(reflection)

    def add_provenance_entry(self, subject_id: str, entry: ProvenanceEntry) -> None:
        with self._lock:
            self._provenance[subject_id].append(entry)

    def add_schema_reclaim(self, subject_id: str, session: SchemaReclaim) -> None:
        with self._lock:
            self._reclaims[subject_id].append(session)

    def add_influence_source(self, subject_id: str, source: InfluenceSource) -> None:
        with self._lock:
            self._influence[subject_id].append(source)

    def unlock_achievement(self, unlock) -> None:
        """Record an unlock. Re-recording an id keeps the first unlock."""
        with self._lock:
            self._unlocks[unlock.subject_id].setdefault(unlock.achievement_id, unlock)

    # --- Readers (return copies) ---

    def get_responses(self, subject_id: str, assessment_id: Optional[str] = None) -> list[Response]:
        with self._lock:
            responses = list(self._responses.get(subject_id, ()))
        if assessment_id is None:
            return responses
        return [r for r in responses if r.assessment_id == assessment_id]

    def get_restatements(self, subject_id: str) -> list[RestatementArtifact]:
        with self._lock:
            return list(self._restatements.get(subject_id, ()))

    def get_falsification_exercises(self, subject_id: str) -> list[FalsificationExercise]:
        with self._lock:
            return list(self._exercises.get(subject_id, ()))

    def get_reflections(self, subject_id: str) -> list[Reflection]:
        with self._lock:
            return list(self._reflections.get(subject_id, ()))

    def get_provenance_entries(self, subject_id: str) -> list[ProvenanceEntry]:
        with self._lock:
            return list(self._provenance.get(subject_id, ()))

    def get_schema_reclaims(self, subject_id: str) -> list[SchemaReclaim]:
        with self._lock:
            return list(self._reclaims.get(subject_id, ()))

    def get_influence_sources(self, subject_id: str) -> list[InfluenceSource]:
        with self._lock:
            return list(self._influence.get(subject_id, ()))

    def get_unlocked_achievements(self, subject_id: str) -> set[str]:
        with self._lock:
            return set(self._unlocks.get(subject_id, {}))

    def get_unlocks(self, subject_id: str) -> list:
        """Full unlock records, in unlock order."""
        with self._lock:
            return list(self._unlocks.get(subject_id, {}).values())
