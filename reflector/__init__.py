"""
Reflector — Scoring and Pattern-Detection Engine

Turns self-reflection exercise data into psychometric-style scores and
rule-driven achievement unlocks. Pure, synchronous, no I/O.

Public API:
  - score_assessment:     Baseline Mirror scoring (construct scores, CIs,
                          composite, tiers, integrity flags)
  - score_construct:      One construct from normalized 1-7 values
  - score_specificity:    Falsifier specificity (0-100)
  - score_restatement:    Steelman charity / accuracy
  - intellectual_honesty: Charity + accuracy blend across restatements
  - analyze_provenance:   Source-dependency and evidence-gap patterns
  - independence_index:   Independence Index from provenance entries
  - influence_diversity:  Influence Map diversity and homophily
  - ard_improvement:      Schema Reclaim regulation score
  - AchievementEngine:    Idempotent achievement checks via a HistoryProvider
  - export_scores_csv / generate_summary: Score export

Usage:
    from reflector import score_assessment, AchievementEngine
    from reflector import InMemoryHistoryProvider
"""

__version__ = "1.0.0"

from reflector.achievements import (
    ACHIEVEMENTS,
    AchievementDefinition,
    AchievementEngine,
    AchievementUnlock,
    SubjectHistory,
    gather_history,
    progress,
)
from reflector.assessment import ScoreOutput, score_assessment
from reflector.exceptions import AchievementRegistryError, ItemBankError, ReflectorError
from reflector.free_text import (
    FairnessResult,
    intellectual_honesty,
    score_falsification,
    score_restatement,
    score_specificity,
)
from reflector.history import HistoryProvider, InMemoryHistoryProvider
from reflector.influence import InfluenceDiversity, influence_diversity
from reflector.integrity import ResponseIntegrity, audit_responses
from reflector.interpretation import composite_score, interpret
from reflector.item_bank import BASELINE_MIRROR_ITEMS, CONSTRUCTS, ScoredItem, get_item
from reflector.provenance import ProvenancePattern, analyze_provenance, independence_index
from reflector.records import (
    Falsifier,
    FalsificationExercise,
    InfluenceSource,
    ProvenanceEntry,
    Reflection,
    RestatementArtifact,
    Response,
    SchemaReclaim,
)
from reflector.regulation import ard_improvement
from reflector.report import export_scores_csv, generate_summary
from reflector.scorer import ConstructScore, score_construct
from reflector.streak import StreakData, compute_streak

__all__ = [
    "ACHIEVEMENTS",
    "AchievementDefinition",
    "AchievementEngine",
    "AchievementUnlock",
    "SubjectHistory",
    "gather_history",
    "progress",
    "ScoreOutput",
    "score_assessment",
    "ReflectorError",
    "ItemBankError",
    "AchievementRegistryError",
    "FairnessResult",
    "intellectual_honesty",
    "score_falsification",
    "score_restatement",
    "score_specificity",
    "HistoryProvider",
    "InMemoryHistoryProvider",
    "ResponseIntegrity",
    "audit_responses",
    "composite_score",
    "interpret",
    "BASELINE_MIRROR_ITEMS",
    "CONSTRUCTS",
    "ScoredItem",
    "get_item",
    "ProvenancePattern",
    "analyze_provenance",
    "independence_index",
    "InfluenceDiversity",
    "influence_diversity",
    "ard_improvement",
    "Falsifier",
    "FalsificationExercise",
    "InfluenceSource",
    "ProvenanceEntry",
    "Reflection",
    "RestatementArtifact",
    "Response",
    "SchemaReclaim",
    "export_scores_csv",
    "generate_summary",
    "ConstructScore",
    "score_construct",
    "StreakData",
    "compute_streak",
]
