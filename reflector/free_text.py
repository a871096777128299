"""
Free-Text Heuristic Scorer

Deterministic, regex-based scoring of open-ended exercise text.
No model calls, no learned weights: identical text and identical
configuration always give identical scores.

Two modes:

  1. Specificity (falsifiability exercise)
     "What would change your mind?" answers earn points for concrete,
     testable conditions (figures, thresholds, if/then, replication)
     and lose points for vague or absolutist language.

  2. Fairness / charity (steelman exercise)
     A restatement of an opposing argument is compared against the
     original: dismissive framing, dropped key points and weakened
     evidence cost points; good-faith language earns them back.

Pattern lists and point values live in frozen config objects. Pass a
custom config to change them; never edit them per call site.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from reflector.normalizer import coerce_value
from reflector.records import Falsifier, FalsificationExercise, RestatementArtifact
from reflector.scorer import clamp, round_half_up


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class LexicalPattern:
    """
    A weighted lexical pattern. Every non-overlapping match of `regex`
    (case-insensitive) contributes `points` to the running score.
    """
    id: str
    regex: str
    points: int
    description: str = ""

    def count(self, text: str) -> int:
        return sum(1 for _ in re.finditer(self.regex, text, re.IGNORECASE))


@dataclass(frozen=True)
class FairnessResult:
    """Outcome of comparing a restatement against its original."""
    charity_score: int                      # 0-100
    accuracy_score: int                     # 0-100
    strawman_detected: bool
    missing_key_points: tuple[str, ...]
    weakening_signals: tuple[str, ...]
    charity_markers: tuple[str, ...]
    original_points: tuple[str, ...] = ()
    restatement_points: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "FairnessResult":
        return cls(
            charity_score=0, accuracy_score=0, strawman_detected=False,
            missing_key_points=(), weakening_signals=(), charity_markers=(),
        )


# ============================================================
# SPECIFICITY PATTERNS
# ============================================================

SPECIFIC_PATTERNS: tuple[LexicalPattern, ...] = (
    LexicalPattern("PERCENTAGE", r"\d+%", 15, "Percentages: 'polls show >60%'"),
    LexicalPattern("NUMBER", r"\d+", 15, "Figures: '5 peer-reviewed studies'"),
    LexicalPattern("MONEY", r"[$€£]\d+", 15, "Monetary values"),
    LexicalPattern("CONDITIONAL", r"\bif\b.*\bthen\b", 15, "Conditional logic"),
    LexicalPattern("THRESHOLD", r"\bwhen\b.*\bexceeds?\b", 15, "Threshold conditions"),
    LexicalPattern("PEER_REVIEW", r"peer.?review", 15, "Academic standards"),
    LexicalPattern("REPLICATION", r"\breplicat(?:ed|ion)\b", 15, "Scientific rigor"),
    LexicalPattern("EVIDENCE_STATEMENT", r"\bdata\b.*\bshows?\b|\bevidence\b.*\bindicates?\b", 15,
                   "Named evidence"),
    LexicalPattern("SPECIFIC", r"\bspecific(?:ally)?\b", 15, "Self-awareness of specificity"),
    LexicalPattern("MEASUREMENT", r"\bmeasur(?:e|able|ed)\b", 15, "Quantification awareness"),
)

VAGUE_PATTERNS: tuple[LexicalPattern, ...] = (
    LexicalPattern("NOTHING", r"\bnothing\b", -20, "'Nothing would change my mind'"),
    LexicalPattern("NEVER", r"\bnever\b", -20, "Absolutism"),
    LexicalPattern("ALWAYS", r"\balways\b", -20, "Absolutism"),
    LexicalPattern("CONSENSUS_APPEAL", r"\beveryone\s+(?:knows|agrees)\b", -20, "Appeal to consensus"),
    LexicalPattern("COMMON_SENSE", r"\bcommon\s+sense\b", -20, "Vague appeal"),
    LexicalPattern("OBVIOUS", r"\bobvious(?:ly)?\b", -20, "Unexamined certainty"),
    LexicalPattern("INTUITION", r"\bjust\b.*\b(?:feel|know)\b", -20, "Intuition over evidence"),
    LexicalPattern("RIGIDITY", r"\bcan(?:'|’)?t\s+(?:imagine|see|think)\b", -20, "Rigidity marker"),
)


@dataclass(frozen=True)
class SpecificityConfig:
    """Patterns and point values for specificity scoring."""
    specific_patterns: tuple[LexicalPattern, ...] = SPECIFIC_PATTERNS
    vague_patterns: tuple[LexicalPattern, ...] = VAGUE_PATTERNS
    # (minimum length exceeded, bonus) pairs; each one reached is added
    length_bonuses: tuple[tuple[int, int], ...] = ((100, 10), (200, 10))
    clause_separator: str = ","
    clause_points: int = 5
    clause_cap: int = 20


DEFAULT_SPECIFICITY = SpecificityConfig()


# ============================================================
# FAIRNESS PATTERNS
# ============================================================

STRAWMAN_PHRASES: tuple[str, ...] = (
    "basically saying",
    "just wants",
    "only cares about",
    "ignores",
    "doesn't care",
    "simply believes",
    "thinks everyone should",
)

CHARITY_PHRASES: tuple[str, ...] = (
    "legitimate concern",
    "valid point",
    "raises important",
    "compelling evidence",
    "acknowledges",
    "recognizes",
    "fair to say",
)

CAVEAT_WORDS: tuple[str, ...] = ("but", "although", "however", "despite")


@dataclass(frozen=True)
class FairnessConfig:
    """Patterns, thresholds and point values for steelman scoring."""
    strawman_phrases: tuple[str, ...] = STRAWMAN_PHRASES
    charity_phrases: tuple[str, ...] = CHARITY_PHRASES
    caveat_words: tuple[str, ...] = CAVEAT_WORDS
    quantitative_regex: str = r"\d+%|\d+\.\d+"
    # Key-point extraction
    sentence_split_regex: str = r"[.!?]+"
    min_point_length: int = 30
    max_points: int = 5
    overlap_threshold: float = 0.4
    # Weakening tolerances
    quantitative_tolerance: int = 1
    caveat_tolerance: int = 2
    # Points
    starting_score: int = 100
    strawman_penalty: int = 30
    missing_point_penalty: int = 10
    weakening_penalty: int = 15
    charity_bonus: int = 5


DEFAULT_FAIRNESS = FairnessConfig()

WEAKENING_REMOVED_EVIDENCE = "Removed specific quantitative evidence"
WEAKENING_ADDED_CAVEATS = "Added caveats not in original argument"


# ============================================================
# SPECIFICITY SCORING
# ============================================================

def specificity_breakdown(
    text: str, config: SpecificityConfig = DEFAULT_SPECIFICITY,
) -> tuple[int, dict]:
    """
    Score how specific and testable a falsifier is.

    Returns:
        (score, breakdown) where breakdown lists every contribution.

    Scoring:
      Start at 0.
      Specific patterns:  +15 per match
      Vague patterns:     -20 per match
      Length:             +10 over 100 chars, +10 more over 200
      Clauses:            +5 per comma, max +20
      Floor at 0, cap at 100.
    """
    text = text if isinstance(text, str) else ""
    breakdown: dict = {
        "pattern_points": [],
        "length_bonus": 0,
        "clause_bonus": 0,
    }
    if not text.strip():
        breakdown["final_score"] = 0
        return 0, breakdown

    score = 0
    for pattern in config.specific_patterns + config.vague_patterns:
        hits = pattern.count(text)
        if hits:
            pts = hits * pattern.points
            score += pts
            breakdown["pattern_points"].append({
                "pattern": pattern.id, "matches": hits, "points": pts,
            })

    length_bonus = sum(bonus for threshold, bonus in config.length_bonuses if len(text) > threshold)
    score += length_bonus
    breakdown["length_bonus"] = length_bonus

    clause_bonus = min(text.count(config.clause_separator) * config.clause_points, config.clause_cap)
    score += clause_bonus
    breakdown["clause_bonus"] = clause_bonus

    final = int(clamp(score))
    breakdown["final_score"] = final
    return final, breakdown


def score_specificity(text: str, config: SpecificityConfig = DEFAULT_SPECIFICITY) -> int:
    """Specificity score (0-100) of one falsifier text."""
    return specificity_breakdown(text, config)[0]


def score_falsification(
    belief: str,
    falsifier_texts: Iterable[str],
    timestamp: Optional[datetime] = None,
    config: SpecificityConfig = DEFAULT_SPECIFICITY,
) -> FalsificationExercise:
    """Score every falsifier listed for a belief. Blank entries are dropped."""
    falsifiers = tuple(
        Falsifier(text=t.strip(), specificity=score_specificity(t, config))
        for t in falsifier_texts
        if isinstance(t, str) and t.strip()
    )
    return FalsificationExercise(belief=belief or "", falsifiers=falsifiers, timestamp=timestamp)


# ============================================================
# FAIRNESS SCORING
# ============================================================

def extract_key_points(text: str, config: FairnessConfig = DEFAULT_FAIRNESS) -> list[str]:
    """The first few substantive sentences of a text."""
    if not isinstance(text, str):
        return []
    sentences = (s.strip() for s in re.split(config.sentence_split_regex, text))
    return [s for s in sentences if len(s) > config.min_point_length][: config.max_points]


def points_overlap(a: str, b: str, threshold: float = DEFAULT_FAIRNESS.overlap_threshold) -> bool:
    """True when two points share more than `threshold` of the smaller word set."""
    a_words = set(a.lower().split())
    b_words = set(b.lower().split())
    if not a_words or not b_words:
        return False
    overlap = len(a_words & b_words)
    return overlap > min(len(a_words), len(b_words)) * threshold


def detect_strawman(original: str, restatement: str, config: FairnessConfig = DEFAULT_FAIRNESS) -> bool:
    """Dismissive phrasing present in the restatement but absent from the original."""
    orig = original.lower()
    rest = restatement.lower()
    return any(p in rest and p not in orig for p in config.strawman_phrases)


def detect_weakening(
    original: str, restatement: str, config: FairnessConfig = DEFAULT_FAIRNESS,
) -> list[str]:
    """
    Signals that the restatement made the argument weaker than it was.

    Caveat words are counted per occurrence: a restatement that adds
    "but" three times trips the caveat signal.
    """
    signals = []

    orig_figures = len(re.findall(config.quantitative_regex, original))
    rest_figures = len(re.findall(config.quantitative_regex, restatement))
    if orig_figures > rest_figures + config.quantitative_tolerance:
        signals.append(WEAKENING_REMOVED_EVIDENCE)

    caveat_rx = r"\b(?:" + "|".join(re.escape(w) for w in config.caveat_words) + r")\b"
    orig_caveats = len(re.findall(caveat_rx, original, re.IGNORECASE))
    rest_caveats = len(re.findall(caveat_rx, restatement, re.IGNORECASE))
    if rest_caveats > orig_caveats + config.caveat_tolerance:
        signals.append(WEAKENING_ADDED_CAVEATS)

    return signals


def detect_charity_markers(text: str, config: FairnessConfig = DEFAULT_FAIRNESS) -> list[str]:
    lower = text.lower()
    return [p for p in config.charity_phrases if p in lower]


def score_restatement(
    original: str, restatement: str, config: FairnessConfig = DEFAULT_FAIRNESS,
) -> FairnessResult:
    """
    Score a steelman restatement against the original argument.

    Charity:
      Start at 100.
      Straw-man phrasing:   -30
      Missing key point:    -10 each
      Weakening signal:     -15 each
      Charity marker:       +5 each
      Floor at 0, cap at 100.

    Accuracy: share of restated key points that match an original key
    point, as 0-100.

    Blank input on either side yields FairnessResult.empty().
    """
    if not isinstance(original, str) or not isinstance(restatement, str):
        return FairnessResult.empty()
    if not original.strip() or not restatement.strip():
        return FairnessResult.empty()

    original_points = extract_key_points(original, config)
    restatement_points = extract_key_points(restatement, config)

    strawman = detect_strawman(original, restatement, config)
    missing = [
        op for op in original_points
        if not any(points_overlap(op, rp, config.overlap_threshold) for rp in restatement_points)
    ]
    weakening = detect_weakening(original, restatement, config)
    markers = detect_charity_markers(restatement, config)

    charity = config.starting_score
    charity -= config.strawman_penalty if strawman else 0
    charity -= len(missing) * config.missing_point_penalty
    charity -= len(weakening) * config.weakening_penalty
    charity += len(markers) * config.charity_bonus

    if original_points:
        covered = sum(
            1 for rp in restatement_points
            if any(points_overlap(op, rp, config.overlap_threshold) for op in original_points)
        )
        accuracy = int(clamp(round_half_up(covered / len(original_points) * 100)))
    else:
        accuracy = 0

    return FairnessResult(
        charity_score=int(clamp(charity)),
        accuracy_score=accuracy,
        strawman_detected=strawman,
        missing_key_points=tuple(missing),
        weakening_signals=tuple(weakening),
        charity_markers=tuple(markers),
        original_points=tuple(original_points),
        restatement_points=tuple(restatement_points),
    )


def build_restatement_artifact(
    original: str,
    restatement: str,
    belief: str = "",
    timestamp: Optional[datetime] = None,
    config: FairnessConfig = DEFAULT_FAIRNESS,
) -> RestatementArtifact:
    """Score a restatement and package it as a history artifact."""
    result = score_restatement(original, restatement, config)
    return RestatementArtifact(
        original=original or "",
        restatement=restatement or "",
        charity_score=result.charity_score,
        accuracy_score=result.accuracy_score,
        strawman_detected=result.strawman_detected,
        missing_key_points=result.missing_key_points,
        weakening_signals=result.weakening_signals,
        charity_markers=result.charity_markers,
        belief=belief or "",
        timestamp=timestamp,
    )


# ============================================================
# AGGREGATES
# ============================================================

def _mean_of(values: Iterable) -> Optional[float]:
    usable = [v for v in (coerce_value(x) for x in values) if v is not None]
    if not usable:
        return None
    return sum(usable) / len(usable)


def average_charity(artifacts: Iterable[RestatementArtifact]) -> Optional[float]:
    """Mean charity score, ignoring artifacts whose score is missing."""
    return _mean_of(a.charity_score for a in artifacts)


def average_accuracy(artifacts: Iterable[RestatementArtifact]) -> Optional[float]:
    return _mean_of(a.accuracy_score for a in artifacts)


def intellectual_honesty(artifacts: Iterable[RestatementArtifact]) -> int:
    """
    Blend of mean charity and mean accuracy across steelman artifacts.

    Missing scores are skipped; a side with no usable scores counts as 0.
    No artifacts -> 0.
    """
    artifacts = list(artifacts)
    if not artifacts:
        return 0
    charity = average_charity(artifacts) or 0.0
    accuracy = average_accuracy(artifacts) or 0.0
    return int(clamp(round_half_up((charity + accuracy) / 2)))
