"""
Achievement Rule Engine

A registry of named achievements, each a pure predicate over a
subject's aggregated history (streaks, assessment scores, exercise
artifacts, provenance patterns).

Check semantics:
  AchievementEngine.check() returns ONLY the achievements newly
  unlocked by that pass. Achievements the subject already holds are
  skipped before their predicate runs, and the provider's unlock
  writer is called exactly once per new unlock. A second check on
  unchanged history therefore returns [].

A predicate that raises on a corrupted record is logged and counted
as not satisfied; one bad record never aborts the pass. A provider
stream answered with None reads as empty history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Callable, Iterable, Optional

from reflector.assessment import ScoreOutput, score_assessment
from reflector.config import settings
from reflector.exceptions import AchievementRegistryError
from reflector.free_text import average_charity
from reflector.history import HistoryProvider
from reflector.item_bank import CONSTRUCTS
from reflector.logging import get_logger
from reflector.normalizer import coerce_value
from reflector.provenance import independence_index
from reflector.records import (
    FalsificationExercise,
    InfluenceSource,
    ProvenanceEntry,
    Reflection,
    RestatementArtifact,
    Response,
    SchemaReclaim,
)
from reflector.streak import StreakData, compute_streak

logger = get_logger("achievements")


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class SubjectHistory:
    """Everything the predicates may look at, gathered once per check."""
    subject_id: str
    responses: tuple[Response, ...] = ()
    restatements: tuple[RestatementArtifact, ...] = ()
    falsification_exercises: tuple[FalsificationExercise, ...] = ()
    reflections: tuple[Reflection, ...] = ()
    provenance_entries: tuple[ProvenanceEntry, ...] = ()
    schema_reclaims: tuple[SchemaReclaim, ...] = ()
    influence_sources: tuple[InfluenceSource, ...] = ()
    streak: StreakData = field(default_factory=StreakData)
    scores: Optional[ScoreOutput] = None    # Latest assessment pass, if any


@dataclass(frozen=True)
class AchievementDefinition:
    """A named unlock condition."""
    id: str
    name: str
    description: str
    icon: str
    category: str                   # "streak" | "module" | "reflection" | "achievement"
    rarity: str                     # "common" | "uncommon" | "rare" | "epic"
    condition: Callable[[SubjectHistory], bool]
    progress: Optional[Callable[[SubjectHistory], float]] = None


@dataclass(frozen=True)
class AchievementUnlock:
    """What the unlock writer receives for each newly earned achievement."""
    subject_id: str
    achievement_id: str
    name: str
    description: str
    icon: str
    unlocked_at: datetime


# ============================================================
# CONDITIONS
# ============================================================

# Maximum gap between the highest and lowest construct score
BALANCED_SPREAD = 20


def _ratio(count: float, target: float) -> float:
    return min(count / target, 1.0) if target > 0 else 0.0


def _insights(h: SubjectHistory) -> int:
    return sum(1 for r in h.reflections if r.insight_flagged)


def _charity_scores(h: SubjectHistory) -> list[float]:
    return [v for v in (coerce_value(a.charity_score) for a in h.restatements) if v is not None]


def _baseline_complete(h: SubjectHistory) -> bool:
    return h.scores is not None and h.scores.complete


def _balanced_mind(h: SubjectHistory) -> bool:
    """Every construct scored, none below the moderate tier, spread <= 20."""
    if h.scores is None:
        return False
    scores = [h.scores.scores.get(c) for c in CONSTRUCTS]
    if any(s is None or s.n_items == 0 for s in scores):
        return False
    raws = [s.raw for s in scores]
    if min(raws) < settings.MODERATE_TIER_CUTOFF:
        return False
    return max(raws) - min(raws) <= BALANCED_SPREAD


def _epistemic_autonomy(h: SubjectHistory) -> bool:
    has_all_exercises = all(len(stream) > 0 for stream in (
        h.falsification_exercises,
        h.restatements,
        h.provenance_entries,
        h.schema_reclaims,
        h.influence_sources,
    ))
    return has_all_exercises and len(h.reflections) >= 20 and h.streak.longest >= 30


def _intellectual_honesty(h: SubjectHistory) -> bool:
    if len(_charity_scores(h)) < 5:
        return False
    mean = average_charity(h.restatements)
    return mean is not None and mean >= 70


def _independent_thinker(h: SubjectHistory) -> bool:
    if len(h.provenance_entries) < 14:
        return False
    return independence_index(h.provenance_entries) > 75


def _streak(days: int) -> AchievementDefinition:
    names = {
        7: ("Week Warrior", "Maintained a 7-day reflection streak", "🔥", "common"),
        21: ("Habit Former", "Built a 21-day reflection habit", "⚡", "uncommon"),
        60: ("Mindfulness Master", "Sustained 60 days of daily reflection", "🧘", "rare"),
        100: ("Epistemic Sage", "Achieved 100 days of metacognitive practice", "👑", "epic"),
    }
    name, description, icon, rarity = names[days]
    return AchievementDefinition(
        id=f"streak_{days}",
        name=name,
        description=description,
        icon=icon,
        category="streak",
        rarity=rarity,
        condition=lambda h: h.streak.reached(days),
        progress=lambda h: _ratio(h.streak.current, days),
    )


# ============================================================
# REGISTRY
# ============================================================

ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    # Streaks
    _streak(7),
    _streak(21),
    _streak(60),
    _streak(100),

    # Modules
    AchievementDefinition(
        id="baseline_complete",
        name="Self-Aware",
        description="Completed the Baseline Mirror assessment",
        icon="🪞",
        category="module",
        rarity="common",
        condition=_baseline_complete,
        progress=lambda h: _ratio(h.scores.completion_percentage, 100) if h.scores else 0.0,
    ),
    AchievementDefinition(
        id="disconfirm_master",
        name="Falsification Expert",
        description="Completed 3 falsifiability exercises",
        icon="🎯",
        category="module",
        rarity="uncommon",
        condition=lambda h: len(h.falsification_exercises) >= 3,
        progress=lambda h: _ratio(len(h.falsification_exercises), 3),
    ),
    AchievementDefinition(
        id="steelman_initiate",
        name="Steelman Initiate",
        description="Completed a steelman restatement with 60+ charity score",
        icon="⚖️",
        category="module",
        rarity="common",
        condition=lambda h: any(v >= 60 for v in _charity_scores(h)),
    ),
    AchievementDefinition(
        id="source_detective",
        name="Source Detective",
        description="Logged 7 provenance journal entries",
        icon="🔍",
        category="module",
        rarity="common",
        condition=lambda h: len(h.provenance_entries) >= 7,
        progress=lambda h: _ratio(len(h.provenance_entries), 7),
    ),
    AchievementDefinition(
        id="schema_reclaimer",
        name="Emotional Regulator",
        description="Completed 2 Schema Reclaim sessions",
        icon="🛡️",
        category="module",
        rarity="uncommon",
        condition=lambda h: len(h.schema_reclaims) >= 2,
        progress=lambda h: _ratio(len(h.schema_reclaims), 2),
    ),
    AchievementDefinition(
        id="source_auditor",
        name="Information Detective",
        description="Mapped 5 influence sources",
        icon="🗺️",
        category="module",
        rarity="uncommon",
        condition=lambda h: len(h.influence_sources) >= 5,
        progress=lambda h: _ratio(len(h.influence_sources), 5),
    ),

    # Reflections
    AchievementDefinition(
        id="reflection_10",
        name="Thoughtful",
        description="Completed 10 daily reflections",
        icon="💭",
        category="reflection",
        rarity="common",
        condition=lambda h: len(h.reflections) >= 10,
        progress=lambda h: _ratio(len(h.reflections), 10),
    ),
    AchievementDefinition(
        id="insight_hunter",
        name="Insight Hunter",
        description="Flagged 5 insightful reflections",
        icon="💡",
        category="reflection",
        rarity="uncommon",
        condition=lambda h: _insights(h) >= 5,
        progress=lambda h: _ratio(_insights(h), 5),
    ),

    # Special achievements
    AchievementDefinition(
        id="balanced_mind",
        name="Balanced Mind",
        description="Achieved balanced scores across all constructs",
        icon="⚖️",
        category="achievement",
        rarity="rare",
        condition=_balanced_mind,
    ),
    AchievementDefinition(
        id="epistemic_autonomy",
        name="Epistemic Autonomy",
        description="Completed every exercise type and sustained a 30-day practice",
        icon="🌟",
        category="achievement",
        rarity="epic",
        condition=_epistemic_autonomy,
    ),
    AchievementDefinition(
        id="intellectual_honesty",
        name="Intellectual Honesty",
        description="Completed 5 steelman restatements with 70+ average charity",
        icon="🎯",
        category="achievement",
        rarity="rare",
        condition=_intellectual_honesty,
        progress=lambda h: _ratio(len(_charity_scores(h)), 5),
    ),
    AchievementDefinition(
        id="independent_thinker",
        name="Independent Thinker",
        description="Low source dependency + high evidence checking (II > 75)",
        icon="🦅",
        category="achievement",
        rarity="epic",
        condition=_independent_thinker,
    ),
)


def validate_registry(definitions: Iterable[AchievementDefinition]) -> None:
    """Raise AchievementRegistryError on blank or duplicate ids or non-callable conditions."""
    seen: set[str] = set()
    for definition in definitions:
        if not isinstance(definition.id, str) or not definition.id.strip():
            raise AchievementRegistryError("Achievement with blank id")
        if definition.id in seen:
            raise AchievementRegistryError(
                f"Duplicate achievement id: {definition.id}",
                {"achievement_id": definition.id},
            )
        if not callable(definition.condition):
            raise AchievementRegistryError(
                f"Condition of {definition.id} is not callable",
                {"achievement_id": definition.id},
            )
        seen.add(definition.id)


validate_registry(ACHIEVEMENTS)

_REGISTRY_INDEX: dict[str, AchievementDefinition] = {a.id: a for a in ACHIEVEMENTS}


def get_achievement(achievement_id: str) -> Optional[AchievementDefinition]:
    return _REGISTRY_INDEX.get(achievement_id)


def achievements_by_category(category: str) -> list[AchievementDefinition]:
    return [a for a in ACHIEVEMENTS if a.category == category]


def achievements_by_rarity(rarity: str) -> list[AchievementDefinition]:
    return [a for a in ACHIEVEMENTS if a.rarity == rarity]


# ============================================================
# HISTORY GATHERING
# ============================================================

def _as_date(as_of) -> Optional[date]:
    if isinstance(as_of, datetime):
        return as_of.date()
    return as_of


def gather_history(
    provider: HistoryProvider,
    subject_id: str,
    as_of: Optional[datetime] = None,
) -> SubjectHistory:
    """
    Read everything the predicates need from the provider.

    The latest assessment pass (the assessment of the most recently
    recorded response) is scored; streaks are computed from reflection
    timestamps. A stream the provider returns as None is empty.
    """
    responses = tuple(provider.get_responses(subject_id) or ())
    reflections = tuple(provider.get_reflections(subject_id) or ())

    scores = None
    if responses:
        scores = score_assessment(responses, responses[-1].assessment_id)

    streak = compute_streak(
        (r.timestamp for r in reflections),
        as_of=_as_date(as_of),
    )

    return SubjectHistory(
        subject_id=subject_id,
        responses=responses,
        restatements=tuple(provider.get_restatements(subject_id) or ()),
        falsification_exercises=tuple(provider.get_falsification_exercises(subject_id) or ()),
        reflections=reflections,
        provenance_entries=tuple(provider.get_provenance_entries(subject_id) or ()),
        schema_reclaims=tuple(provider.get_schema_reclaims(subject_id) or ()),
        influence_sources=tuple(provider.get_influence_sources(subject_id) or ()),
        streak=streak,
        scores=scores,
    )


# ============================================================
# ENGINE
# ============================================================

def _evaluate(definition: AchievementDefinition, history: SubjectHistory) -> bool:
    try:
        return bool(definition.condition(history))
    except Exception as e:
        logger.warning(
            "Achievement condition failed",
            extra={
                "subject_id": history.subject_id,
                "achievement_id": definition.id,
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        return False


def progress(achievement_id: str, history: SubjectHistory) -> float:
    """
    Progress towards an achievement, 0-1.

    Count-based achievements report their ratio; the rest report 1.0
    when satisfied and 0.0 otherwise. Unknown ids report 0.0.
    """
    definition = get_achievement(achievement_id)
    if definition is None:
        return 0.0
    if definition.progress is None:
        return 1.0 if _evaluate(definition, history) else 0.0
    try:
        return max(0.0, min(1.0, float(definition.progress(history))))
    except Exception as e:
        logger.warning(
            "Achievement progress failed",
            extra={"achievement_id": achievement_id, "error": str(e)},
        )
        return 0.0


class AchievementEngine:
    """Evaluates the registry against a subject's history and records unlocks."""

    def __init__(
        self,
        provider: HistoryProvider,
        registry: Iterable[AchievementDefinition] = ACHIEVEMENTS,
    ):
        self._registry = tuple(registry)
        validate_registry(self._registry)
        self._provider = provider

    @property
    def registry(self) -> tuple[AchievementDefinition, ...]:
        return self._registry

    def check(self, subject_id: str, as_of: Optional[datetime] = None) -> list[AchievementUnlock]:
        """
        Evaluate every achievement the subject does not hold yet.

        Returns the newly unlocked achievements only, in registry order.
        """
        history = gather_history(self._provider, subject_id, as_of=as_of)
        held = set(self._provider.get_unlocked_achievements(subject_id) or ())
        unlocked_at = _unlock_time(as_of)

        new: list[AchievementUnlock] = []
        for definition in self._registry:
            if definition.id in held:
                continue
            if not _evaluate(definition, history):
                continue

            unlock = AchievementUnlock(
                subject_id=subject_id,
                achievement_id=definition.id,
                name=definition.name,
                description=definition.description,
                icon=definition.icon,
                unlocked_at=unlocked_at,
            )
            self._provider.unlock_achievement(unlock)
            held.add(definition.id)
            new.append(unlock)
            logger.info(
                "Achievement unlocked",
                extra={"subject_id": subject_id, "achievement_id": definition.id},
            )

        return new


def _unlock_time(as_of) -> datetime:
    if isinstance(as_of, datetime):
        return as_of
    if isinstance(as_of, date):
        return datetime.combine(as_of, time.min, tzinfo=timezone.utc)
    return datetime.now(timezone.utc)
