"""
Tests for streaks, the history provider and the achievement rule engine.

The engine contract under test: check() returns only achievements newly
unlocked by that pass, and calls the unlock writer exactly once each.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from reflector.achievements import (
    ACHIEVEMENTS,
    AchievementDefinition,
    AchievementEngine,
    SubjectHistory,
    gather_history,
    get_achievement,
    progress,
    validate_registry,
)
from reflector.exceptions import AchievementRegistryError
from reflector.history import HistoryProvider, InMemoryHistoryProvider
from reflector.item_bank import BASELINE_MIRROR_ITEMS
from reflector.records import (
    FalsificationExercise,
    Falsifier,
    InfluenceSource,
    ProvenanceEntry,
    Reflection,
    RestatementArtifact,
    Response,
    SchemaReclaim,
)
from reflector.streak import StreakData, compute_streak

SUBJECT = "u-1"
DAY0 = datetime(2026, 1, 1, 20, 0, tzinfo=timezone.utc)


class CountingProvider(InMemoryHistoryProvider):
    """Records every call to the unlock writer."""

    def __init__(self):
        super().__init__()
        self.unlock_calls = []

    def unlock_achievement(self, unlock):
        self.unlock_calls.append(unlock.achievement_id)
        super().unlock_achievement(unlock)


class SparseProvider(InMemoryHistoryProvider):
    """A store with no stream or unlock set for a subject answers None."""

    def get_restatements(self, subject_id):
        return None

    def get_falsification_exercises(self, subject_id):
        return None

    def get_provenance_entries(self, subject_id):
        return None

    def get_schema_reclaims(self, subject_id):
        return None

    def get_influence_sources(self, subject_id):
        return None

    def get_unlocked_achievements(self, subject_id):
        return None


def _reflect(provider, days, insight=False, start=DAY0):
    for i in range(days):
        provider.add_reflection(
            SUBJECT, Reflection(text=f"day {i}", insight_flagged=insight, timestamp=start + timedelta(days=i)),
        )


def _artifact(charity, accuracy=80):
    return RestatementArtifact(original="o", restatement="r", charity_score=charity, accuracy_score=accuracy)


def _entry(source, beneficiaries=()):
    return ProvenanceEntry(
        belief="b", source=source, beneficiaries=tuple(beneficiaries),
        evidence_checked="Traced it to the primary dataset and read the methods",
    )


def _reclaim(post=5):
    return SchemaReclaim(schema="approval", pre_intensity=6, pre_certainty=8, post_certainty=post)


def _source(name, perspective="center"):
    return InfluenceSource(name=name, source_type="news", perspective=perspective)


def _answer_all(provider, level="high", assessment_id="a-1"):
    responses = []
    for item in BASELINE_MIRROR_ITEMS:
        if item.item_type == "scenario":
            scores = [o.score for o in item.options]
            value = max(scores) if level == "high" else min(scores)
        elif level == "high":
            value = 1 if item.reverse_coded else 7
        else:
            value = 7 if item.reverse_coded else 1
        responses.append(Response(SUBJECT, assessment_id, item.id, value))
    provider.add_responses(responses)


def _ids(unlocks):
    return {u.achievement_id for u in unlocks}


# ============================================================
# STREAKS
# ============================================================

class TestStreak:
    def test_empty(self):
        assert compute_streak([]) == StreakData()

    def test_consecutive_days(self):
        days = [date(2026, 1, d) for d in range(1, 6)]
        streak = compute_streak(days)
        assert streak.current == 5
        assert streak.longest == 5
        assert streak.last_activity == date(2026, 1, 5)

    def test_gap_resets_current(self):
        days = [date(2026, 1, d) for d in (1, 2, 3, 5, 6)]
        streak = compute_streak(days)
        assert streak.longest == 3
        assert streak.current == 2

    def test_alive_until_a_day_is_missed(self):
        days = [date(2026, 1, d) for d in (1, 2, 3)]
        assert compute_streak(days, as_of=date(2026, 1, 4)).current == 3
        assert compute_streak(days, as_of=date(2026, 1, 5)).current == 0
        assert compute_streak(days, as_of=date(2026, 1, 5)).longest == 3

    def test_same_day_counts_once(self):
        stamps = [DAY0, DAY0 + timedelta(hours=1), DAY0 + timedelta(days=1)]
        assert compute_streak(stamps).longest == 2

    def test_missing_timestamps_ignored(self):
        assert compute_streak([None, DAY0, "garbage"]).longest == 1

    def test_milestones(self):
        streak = compute_streak([date(2026, 1, 1) + timedelta(days=i) for i in range(21)])
        assert streak.reached(7) and streak.reached(21)
        assert streak.milestones == {7: True, 21: True, 60: False, 100: False}


# ============================================================
# HISTORY PROVIDER
# ============================================================

class TestInMemoryProvider:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryHistoryProvider(), HistoryProvider)

    def test_unknown_subject_is_empty(self):
        provider = InMemoryHistoryProvider()
        assert provider.get_responses("nobody") == []
        assert provider.get_unlocked_achievements("nobody") == set()

    def test_responses_filtered_by_assessment(self):
        provider = InMemoryHistoryProvider()
        provider.add_responses([
            Response(SUBJECT, "a-1", "eai_01", 5),
            Response(SUBJECT, "a-2", "eai_01", 3),
        ])
        assert len(provider.get_responses(SUBJECT)) == 2
        assert [r.value for r in provider.get_responses(SUBJECT, "a-2")] == [3]

    def test_readers_return_copies(self):
        provider = InMemoryHistoryProvider()
        _reflect(provider, 1)
        provider.get_reflections(SUBJECT).clear()
        assert len(provider.get_reflections(SUBJECT)) == 1

    def test_reclaim_and_influence_streams(self):
        provider = InMemoryHistoryProvider()
        provider.add_schema_reclaim(SUBJECT, _reclaim())
        provider.add_influence_source(SUBJECT, _source("Daily Brief"))
        assert provider.get_schema_reclaims(SUBJECT) == [_reclaim()]
        assert [s.name for s in provider.get_influence_sources(SUBJECT)] == ["Daily Brief"]
        assert provider.get_schema_reclaims("nobody") == []


# ============================================================
# REGISTRY
# ============================================================

class TestRegistry:
    def test_builtin_ids(self):
        ids = [a.id for a in ACHIEVEMENTS]
        assert len(ids) == len(set(ids)) == 16
        for expected in (
            "streak_7", "streak_21", "streak_60", "streak_100", "baseline_complete",
            "disconfirm_master", "reflection_10", "insight_hunter", "balanced_mind",
            "epistemic_autonomy", "steelman_initiate", "intellectual_honesty",
            "source_detective", "independent_thinker", "schema_reclaimer", "source_auditor",
        ):
            assert get_achievement(expected) is not None

    def test_duplicate_ids_rejected(self):
        dup = ACHIEVEMENTS + (ACHIEVEMENTS[0],)
        with pytest.raises(AchievementRegistryError):
            validate_registry(dup)
        with pytest.raises(AchievementRegistryError):
            AchievementEngine(InMemoryHistoryProvider(), registry=dup)

    def test_blank_id_rejected(self):
        blank = AchievementDefinition("", "n", "d", "i", "module", "common", lambda h: True)
        with pytest.raises(AchievementRegistryError):
            validate_registry([blank])


# ============================================================
# ENGINE
# ============================================================

class TestEngineIdempotence:
    def test_second_check_returns_nothing(self):
        provider = CountingProvider()
        _reflect(provider, 10)
        engine = AchievementEngine(provider)

        first = engine.check(SUBJECT)
        assert {"streak_7", "reflection_10"} <= _ids(first)

        second = engine.check(SUBJECT)
        assert second == []
        assert sorted(provider.unlock_calls) == sorted(_ids(first))

    def test_writer_called_once_per_unlock(self):
        provider = CountingProvider()
        _reflect(provider, 10)
        engine = AchievementEngine(provider)
        engine.check(SUBJECT)
        engine.check(SUBJECT)
        assert len(provider.unlock_calls) == len(set(provider.unlock_calls))

    def test_held_achievements_skipped(self):
        provider = CountingProvider()
        _reflect(provider, 7)
        engine = AchievementEngine(provider)
        assert "streak_7" in _ids(engine.check(SUBJECT))
        _reflect(provider, 3, start=DAY0 + timedelta(days=7))
        assert _ids(engine.check(SUBJECT)) == {"reflection_10"}

    def test_empty_history(self):
        assert AchievementEngine(InMemoryHistoryProvider()).check("nobody") == []

    def test_streams_answered_with_none_read_as_empty(self):
        provider = SparseProvider()
        _reflect(provider, 10)
        unlocked = _ids(AchievementEngine(provider).check(SUBJECT))
        assert {"streak_7", "reflection_10"} <= unlocked
        assert "source_detective" not in unlocked

    def test_gather_history_with_none_streams(self):
        history = gather_history(SparseProvider(), SUBJECT)
        assert history.restatements == ()
        assert history.provenance_entries == ()
        assert history.schema_reclaims == ()
        assert history.influence_sources == ()

    def test_unlock_record(self):
        provider = InMemoryHistoryProvider()
        _reflect(provider, 7)
        as_of = DAY0 + timedelta(days=6)
        unlock = AchievementEngine(provider).check(SUBJECT, as_of=as_of)[0]
        assert unlock.achievement_id == "streak_7"
        assert unlock.name == "Week Warrior"
        assert unlock.subject_id == SUBJECT
        assert unlock.unlocked_at == as_of
        assert provider.get_unlocks(SUBJECT)[0] == unlock


class TestConditions:
    def test_steelman_initiate(self):
        provider = InMemoryHistoryProvider()
        provider.add_restatement(SUBJECT, _artifact(59))
        engine = AchievementEngine(provider)
        assert "steelman_initiate" not in _ids(engine.check(SUBJECT))
        provider.add_restatement(SUBJECT, _artifact(60))
        assert "steelman_initiate" in _ids(engine.check(SUBJECT))

    def test_intellectual_honesty_end_to_end(self):
        provider = InMemoryHistoryProvider()
        for c, a in zip([85, 77, 79, 81, 83], [90, 82, 84, 86, 88]):
            provider.add_restatement(SUBJECT, _artifact(c, a))
        assert "intellectual_honesty" in _ids(AchievementEngine(provider).check(SUBJECT))

    def test_intellectual_honesty_needs_five(self):
        provider = InMemoryHistoryProvider()
        for c in (90, 90, 90, 90):
            provider.add_restatement(SUBJECT, _artifact(c))
        assert "intellectual_honesty" not in _ids(AchievementEngine(provider).check(SUBJECT))

    def test_null_charity_does_not_crash(self):
        provider = InMemoryHistoryProvider()
        for _ in range(5):
            provider.add_restatement(SUBJECT, _artifact(None, None))
        unlocked = _ids(AchievementEngine(provider).check(SUBJECT))
        assert "steelman_initiate" not in unlocked
        assert "intellectual_honesty" not in unlocked

    def test_disconfirm_master(self):
        provider = InMemoryHistoryProvider()
        for i in range(3):
            provider.add_falsification_exercise(
                SUBJECT, FalsificationExercise(belief=f"b{i}", falsifiers=(Falsifier("x", 50),)),
            )
        assert "disconfirm_master" in _ids(AchievementEngine(provider).check(SUBJECT))

    def test_insight_hunter(self):
        provider = InMemoryHistoryProvider()
        _reflect(provider, 5, insight=True)
        assert "insight_hunter" in _ids(AchievementEngine(provider).check(SUBJECT))

    def test_source_detective(self):
        provider = InMemoryHistoryProvider()
        for i in range(7):
            provider.add_provenance_entry(SUBJECT, _entry(f"s{i}"))
        unlocked = _ids(AchievementEngine(provider).check(SUBJECT))
        assert "source_detective" in unlocked
        assert "independent_thinker" not in unlocked

    def test_independent_thinker(self):
        provider = InMemoryHistoryProvider()
        labels = ("pharma", "government", "media")
        for i in range(14):
            provider.add_provenance_entry(SUBJECT, _entry(f"s{i}", (labels[i % 3],)))
        assert "independent_thinker" in _ids(AchievementEngine(provider).check(SUBJECT))

    def test_dependent_journal_not_independent(self):
        provider = InMemoryHistoryProvider()
        for _ in range(14):
            provider.add_provenance_entry(SUBJECT, _entry("cable news"))
        assert "independent_thinker" not in _ids(AchievementEngine(provider).check(SUBJECT))

    def test_baseline_complete_and_balanced(self):
        provider = InMemoryHistoryProvider()
        _answer_all(provider, "high")
        unlocked = _ids(AchievementEngine(provider).check(SUBJECT))
        assert "baseline_complete" in unlocked
        assert "balanced_mind" in unlocked

    def test_low_scores_not_balanced(self):
        provider = InMemoryHistoryProvider()
        _answer_all(provider, "low")
        unlocked = _ids(AchievementEngine(provider).check(SUBJECT))
        assert "baseline_complete" in unlocked
        assert "balanced_mind" not in unlocked

    def test_partial_assessment_not_complete(self):
        provider = InMemoryHistoryProvider()
        provider.add_responses([Response(SUBJECT, "a-1", "eai_01", 7)])
        assert "baseline_complete" not in _ids(AchievementEngine(provider).check(SUBJECT))

    def test_epistemic_autonomy(self):
        provider = InMemoryHistoryProvider()
        _reflect(provider, 30)
        provider.add_restatement(SUBJECT, _artifact(70))
        provider.add_falsification_exercise(SUBJECT, FalsificationExercise(belief="b"))
        provider.add_provenance_entry(SUBJECT, _entry("s"))
        provider.add_schema_reclaim(SUBJECT, _reclaim())
        provider.add_influence_source(SUBJECT, _source("Evening News"))
        unlocked = _ids(AchievementEngine(provider).check(SUBJECT))
        assert "epistemic_autonomy" in unlocked
        assert "streak_21" in unlocked
        assert "streak_60" not in unlocked

    def test_epistemic_autonomy_needs_every_exercise(self):
        provider = InMemoryHistoryProvider()
        _reflect(provider, 30)
        provider.add_restatement(SUBJECT, _artifact(70))
        provider.add_falsification_exercise(SUBJECT, FalsificationExercise(belief="b"))
        provider.add_provenance_entry(SUBJECT, _entry("s"))
        assert "epistemic_autonomy" not in _ids(AchievementEngine(provider).check(SUBJECT))

    def test_schema_reclaimer(self):
        provider = InMemoryHistoryProvider()
        provider.add_schema_reclaim(SUBJECT, _reclaim())
        engine = AchievementEngine(provider)
        assert "schema_reclaimer" not in _ids(engine.check(SUBJECT))
        provider.add_schema_reclaim(SUBJECT, _reclaim(post=7))
        assert "schema_reclaimer" in _ids(engine.check(SUBJECT))

    def test_source_auditor(self):
        provider = InMemoryHistoryProvider()
        for i in range(4):
            provider.add_influence_source(SUBJECT, _source(f"src {i}"))
        engine = AchievementEngine(provider)
        assert "source_auditor" not in _ids(engine.check(SUBJECT))
        provider.add_influence_source(SUBJECT, _source("src 4", "left"))
        assert "source_auditor" in _ids(engine.check(SUBJECT))

    def test_raising_condition_treated_as_unmet(self):
        def boom(history):
            raise ValueError("corrupted record")

        broken = AchievementDefinition("broken", "Broken", "d", "x", "module", "common", boom)
        registry = (broken,) + ACHIEVEMENTS
        provider = CountingProvider()
        _reflect(provider, 10)

        unlocked = _ids(AchievementEngine(provider, registry=registry).check(SUBJECT))
        assert "broken" not in unlocked
        assert "reflection_10" in unlocked


# ============================================================
# HISTORY & PROGRESS
# ============================================================

class TestGatherHistory:
    def test_scores_latest_assessment(self):
        provider = InMemoryHistoryProvider()
        _answer_all(provider, "low", "a-1")
        _answer_all(provider, "high", "a-2")
        history = gather_history(provider, SUBJECT)
        assert history.scores.assessment_id == "a-2"
        assert history.scores.composite == 100

    def test_no_responses_no_scores(self):
        history = gather_history(InMemoryHistoryProvider(), SUBJECT)
        assert history.scores is None
        assert history.streak == StreakData()

    def test_streak_uses_as_of(self):
        provider = InMemoryHistoryProvider()
        _reflect(provider, 5)
        later = DAY0 + timedelta(days=10)
        history = gather_history(provider, SUBJECT, as_of=later)
        assert history.streak.current == 0
        assert history.streak.longest == 5


class TestProgress:
    def test_count_ratio(self):
        history = SubjectHistory(
            subject_id=SUBJECT,
            reflections=tuple(Reflection(text="r") for _ in range(5)),
        )
        assert progress("reflection_10", history) == 0.5

    def test_streak_progress_uses_current(self):
        history = SubjectHistory(subject_id=SUBJECT, streak=StreakData(current=3, longest=10))
        assert progress("streak_7", history) == pytest.approx(3 / 7)

    def test_capped_at_one(self):
        history = SubjectHistory(
            subject_id=SUBJECT,
            reflections=tuple(Reflection(text="r") for _ in range(25)),
        )
        assert progress("reflection_10", history) == 1.0

    def test_reclaim_and_influence_ratios(self):
        history = SubjectHistory(
            subject_id=SUBJECT,
            schema_reclaims=(_reclaim(),),
            influence_sources=tuple(_source(f"s{i}") for i in range(2)),
        )
        assert progress("schema_reclaimer", history) == 0.5
        assert progress("source_auditor", history) == 0.4

    def test_binary_achievement(self):
        assert progress("balanced_mind", SubjectHistory(subject_id=SUBJECT)) == 0.0

    def test_unknown_id(self):
        assert progress("no_such_badge", SubjectHistory(subject_id=SUBJECT)) == 0.0
