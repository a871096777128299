"""
Tests for assessment scoring: normalizer, construct scorer,
composite / interpretation, integrity auditor, orchestrator and export.

Bootstrap intervals are asserted structurally (bracketing, width,
bounds), never by exact value.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from reflector.assessment import ScoreOutput, completion_percentage, score_assessment
from reflector.integrity import audit_responses
from reflector.interpretation import (
    COMPOSITE_WEIGHTS,
    composite_score,
    describe,
    interpret,
    interpret_scores,
)
from reflector.item_bank import BASELINE_MIRROR_ITEMS, CONSTRUCTS, get_item
from reflector.normalizer import coerce_value, normalize_response, normalize_responses
from reflector.records import Response
from reflector.report import CSV_HEADER, export_scores_csv, generate_summary
from reflector.scorer import (
    ConstructScore,
    bootstrap_interval,
    consistency_estimate,
    cronbach_alpha,
    round_half_up,
    score_construct,
)

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _resp(item_id, value, assessment_id="a-1", subject_id="u-1", timestamp=None):
    return Response(
        subject_id=subject_id, assessment_id=assessment_id,
        item_id=item_id, value=value, timestamp=timestamp,
    )


def _profile(level: str, assessment_id: str = "a-1") -> list[Response]:
    """Answer every bank item at the 'high', 'low' or 'mid' end."""
    responses = []
    for i, item in enumerate(BASELINE_MIRROR_ITEMS):
        if level == "mid":
            value = 4
        elif item.item_type == "scenario":
            scores = [o.score for o in item.options]
            value = max(scores) if level == "high" else min(scores)
        elif level == "high":
            value = 1 if item.reverse_coded else 7
        else:
            value = 7 if item.reverse_coded else 1
        responses.append(_resp(item.id, value, assessment_id, timestamp=T0 + timedelta(seconds=10 * i)))
    return responses


def _score(raw: int) -> ConstructScore:
    return ConstructScore(raw=raw, ci_lower=raw, ci_upper=raw, ci_width=0, n_items=1)


# ============================================================
# NORMALIZER
# ============================================================

class TestCoerceValue:
    def test_numbers_pass(self):
        assert coerce_value(5) == 5.0
        assert coerce_value("6") == 6.0

    @pytest.mark.parametrize("bad", [None, True, "abc", float("nan"), float("inf"), [3]])
    def test_malformed_is_none(self, bad):
        assert coerce_value(bad) is None


class TestNormalizeResponse:
    def test_forward_item_passes_through(self):
        assert normalize_response(_resp("eai_01", 6), get_item("eai_01")) == 6

    def test_reverse_item_inverted(self):
        assert normalize_response(_resp("eai_02", 6), get_item("eai_02")) == 2

    def test_reverse_seven_equals_forward_one(self):
        reversed_seven = normalize_response(_resp("eai_02", 7), get_item("eai_02"))
        forward_one = normalize_response(_resp("eai_01", 1), get_item("eai_01"))
        assert reversed_seven == forward_one == 1

    def test_scenario_passes_through(self):
        assert normalize_response(_resp("eai_11", 7), get_item("eai_11")) == 7

    def test_unknown_item_excluded(self):
        assert normalize_response(_resp("zzz_99", 5), None) is None

    def test_null_value_excluded(self):
        assert normalize_response(_resp("eai_01", None), get_item("eai_01")) is None

    @pytest.mark.parametrize("value", [0, 8, -1, 7.5])
    def test_off_scale_excluded(self, value):
        assert normalize_response(_resp("eai_01", value), get_item("eai_01")) is None


class TestNormalizeResponses:
    def test_groups_by_construct(self):
        grouped = normalize_responses([
            _resp("eai_01", 5), _resp("rf_02", 7), _resp("sa_07", 2),
        ])
        assert grouped["EAI"] == [5]
        assert grouped["RF"] == [1]
        assert grouped["SA"] == [2]
        assert grouped["ARD"] == []

    def test_every_construct_present_on_empty(self):
        assert normalize_responses([]) == {c: [] for c in CONSTRUCTS}

    def test_bad_records_dropped(self):
        grouped = normalize_responses([
            _resp("eai_01", 5), _resp("nope", 5), _resp("eai_03", None), _resp("eai_05", "x"),
        ])
        assert grouped["EAI"] == [5]


# ============================================================
# CONSTRUCT SCORER
# ============================================================

class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(83.5) == 84

    def test_negative_halves_away_from_zero(self):
        assert round_half_up(-2.5) == -3

    def test_below_half(self):
        assert round_half_up(2.49) == 2


class TestScoreConstruct:
    def test_empty_is_zero_record(self):
        score = score_construct([])
        assert score == ConstructScore.empty()
        assert score.reliability is None

    def test_all_high(self):
        assert score_construct([7] * 8).raw > 70

    def test_all_low(self):
        assert score_construct([1] * 8).raw < 30

    def test_all_mid(self):
        assert 40 <= score_construct([4] * 8).raw <= 60

    def test_raw_formula(self):
        # mean 5 -> (4 / 6) * 100 = 66.67 -> 67
        assert score_construct([4, 5, 6]).raw == 67

    @pytest.mark.parametrize("values", [
        [4, 4],
        [1, 7],
        [3, 5, 6],
        [7, 7, 7, 7],
        [1, 1, 1, 2],
        [2, 6, 3, 5, 4, 7, 1, 4, 5, 6, 3, 2],
    ])
    def test_interval_brackets_raw(self, values):
        score = score_construct(values)
        assert 0 <= score.ci_lower <= score.raw <= score.ci_upper <= 100
        assert score.ci_width == score.ci_upper - score.ci_lower
        assert score.ci_width > 0

    def test_single_value(self):
        score = score_construct([5])
        assert score.ci_lower <= score.raw <= score.ci_upper
        assert score.n_items == 1

    def test_deterministic_for_same_input(self):
        assert score_construct([2, 5, 6, 3, 7]) == score_construct([2, 5, 6, 3, 7])

    def test_explicit_rng(self):
        a = score_construct([2, 5, 6, 3, 7], rng=random.Random(42))
        b = score_construct([2, 5, 6, 3, 7], rng=random.Random(42))
        assert a == b

    def test_reliability_needs_three_items(self):
        assert score_construct([4, 5]).reliability is None
        assert score_construct([4, 5, 6]).reliability is not None

    def test_resamples_floor_enforced(self):
        score = score_construct([3, 4, 5], resamples=10)
        assert score.ci_lower <= score.raw <= score.ci_upper


class TestBootstrapInterval:
    def test_empty(self):
        assert bootstrap_interval([]) == (0.0, 0.0)

    def test_bounds_within_data_range(self):
        lower, upper = bootstrap_interval([1, 3, 7], rng=random.Random(1))
        assert 1 <= lower <= upper <= 7

    def test_constant_values(self):
        assert bootstrap_interval([5, 5, 5], rng=random.Random(1)) == (5, 5)


class TestReliability:
    def test_identical_answers_fully_consistent(self):
        assert consistency_estimate([4, 4, 4]) == 1.0

    def test_scattered_answers_floor_at_zero(self):
        assert consistency_estimate([1, 7, 1, 7]) == 0.0

    def test_within_unit_range(self):
        value = consistency_estimate([3, 4, 5, 4])
        assert 0.0 <= value <= 1.0

    def test_cronbach_consistent_matrix(self):
        assert cronbach_alpha([[1, 2], [2, 3], [3, 4]]) == 1.0

    def test_cronbach_undefined_cases(self):
        assert cronbach_alpha([[1, 2]]) is None
        assert cronbach_alpha([[1], [2]]) is None
        assert cronbach_alpha([[1, 2], [3]]) is None
        assert cronbach_alpha([[4, 4], [4, 4]]) is None


# ============================================================
# COMPOSITE & INTERPRETATION
# ============================================================

class TestComposite:
    def test_weights(self):
        assert COMPOSITE_WEIGHTS == {"EAI": 0.6, "RF": 0.4}

    @pytest.mark.parametrize("eai,rf", [(75, 50), (55, 52), (100, 0), (0, 100), (33, 67)])
    def test_exact_blend(self, eai, rf):
        scores = {"EAI": _score(eai), "RF": _score(rf), "SA": _score(10), "ARD": _score(90)}
        assert composite_score(scores) == round_half_up(eai * 0.6 + rf * 0.4)

    def test_missing_construct_counts_zero(self):
        assert composite_score({"EAI": _score(50)}) == 30


class TestInterpret:
    @pytest.mark.parametrize("raw,tier", [
        (100, "high"), (70, "high"), (69, "moderate"), (40, "moderate"), (39, "low"), (0, "low"),
    ])
    def test_cut_points(self, raw, tier):
        assert interpret(raw) == tier

    def test_interpret_scores(self):
        tiers = interpret_scores({"EAI": _score(80), "RF": _score(10)})
        assert tiers == {"EAI": "high", "RF": "low"}

    def test_describe(self):
        assert "independence" in describe("EAI", "high")
        assert describe("XYZ", "high") == ""


# ============================================================
# INTEGRITY AUDITOR
# ============================================================

class TestIntegrity:
    def test_empty(self):
        result = audit_responses([])
        assert result.acquiescence_bias == 0.0
        assert result.straightlining is False
        assert result.completion_time_flag is False

    def test_straightlining_one_value(self):
        responses = [_resp(f"eai_{i:02d}", 4) for i in range(1, 12)]
        assert audit_responses(responses).straightlining is True

    def test_straightlining_two_values(self):
        responses = [_resp(f"eai_{i:02d}", 4 if i % 2 else 5) for i in range(1, 13)]
        assert audit_responses(responses).straightlining is True

    def test_varied_set_not_straightlined(self):
        responses = [_resp(f"eai_{i:02d}", (i % 7) + 1) for i in range(1, 12)]
        assert audit_responses(responses).straightlining is False

    def test_ten_responses_below_threshold(self):
        responses = [_resp(f"eai_{i:02d}", 4) for i in range(1, 11)]
        assert audit_responses(responses).straightlining is False

    def test_acquiescence_ratio(self):
        responses = [_resp("eai_01", v) for v in (1, 2, 6, 7, 4)]
        assert audit_responses(responses).acquiescence_bias == 0.8

    def test_fast_completion_flagged(self):
        responses = [_resp("eai_01", 4, timestamp=T0 + timedelta(seconds=i)) for i in range(5)]
        result = audit_responses(responses)
        assert result.completion_time_flag is True
        assert result.mean_seconds_per_item == 1.0

    def test_normal_pace_not_flagged(self):
        responses = [_resp("eai_01", 4, timestamp=T0 + timedelta(seconds=5 * i)) for i in range(5)]
        assert audit_responses(responses).completion_time_flag is False

    def test_unordered_timestamps(self):
        stamps = [T0 + timedelta(seconds=s) for s in (20, 0, 10)]
        responses = [_resp("eai_01", 4, timestamp=t) for t in stamps]
        assert audit_responses(responses).mean_seconds_per_item == 10.0

    def test_single_timestamp_not_flagged(self):
        responses = [_resp("eai_01", 4, timestamp=T0), _resp("eai_03", 4)]
        assert audit_responses(responses).completion_time_flag is False

    def test_non_datetime_timestamps_ignored(self):
        responses = [
            _resp("eai_01", 4, timestamp=T0),
            _resp("eai_02", 4, timestamp="2026-03-01T09:00:05"),
            _resp("eai_03", 4, timestamp=1772355610),
            _resp("eai_04", 4, timestamp=T0 + timedelta(seconds=20)),
        ]
        result = audit_responses(responses)
        assert result.mean_seconds_per_item == 20.0
        assert result.completion_time_flag is False

    def test_corrupted_timestamp_does_not_abort_scoring(self):
        responses = [
            _resp("eai_01", 6, timestamp=T0),
            _resp("eai_02", 4, timestamp="2026-03-01T09:00:05"),
        ]
        output = score_assessment(responses, "a-1")
        assert output.scores["EAI"].n_items == 2
        assert output.response_integrity.mean_seconds_per_item is None


# ============================================================
# ASSESSMENT
# ============================================================

class TestScoreAssessment:
    def test_high_profile(self):
        output = score_assessment(_profile("high"), "a-1")
        assert isinstance(output, ScoreOutput)
        for construct in CONSTRUCTS:
            assert output.scores[construct].raw > 70
            assert output.interpretation[construct] == "high"
        assert output.composite == 100
        assert output.completion_percentage == 100
        assert output.complete is True
        assert output.subject_id == "u-1"

    def test_low_profile(self):
        output = score_assessment(_profile("low"), "a-1")
        for construct in CONSTRUCTS:
            assert output.scores[construct].raw < 30
            assert output.interpretation[construct] == "low"

    def test_mid_profile(self):
        output = score_assessment(_profile("mid"), "a-1")
        for construct in CONSTRUCTS:
            assert 40 <= output.scores[construct].raw <= 60

    def test_empty(self):
        output = score_assessment([], "a-1")
        assert output.subject_id == "unknown"
        assert output.composite == 0
        assert output.completion_percentage == 0
        assert all(s == ConstructScore.empty() for s in output.scores.values())

    def test_other_assessments_ignored(self):
        responses = _profile("high", "a-1") + _profile("low", "a-2")
        assert score_assessment(responses, "a-1").composite == 100
        assert score_assessment(responses, "a-2").composite < 30

    def test_corrupted_records_degrade(self):
        responses = [_resp("eai_01", 7), _resp("ghost", 7), _resp("eai_03", None), _resp("rf_01", "??")]
        output = score_assessment(responses, "a-1")
        assert output.scores["EAI"].n_items == 1
        assert output.scores["RF"].n_items == 0

    def test_completion_counts_known_items_once(self):
        responses = [_resp("eai_01", 5), _resp("eai_01", 6), _resp("ghost", 3)]
        assert completion_percentage(responses) == 3   # 1 / 36

    def test_flags_do_not_block_scoring(self):
        responses = _profile("high")
        output = score_assessment(responses, "a-1")
        assert output.response_integrity.straightlining is True
        assert output.scores["EAI"].raw == 100

    def test_version_stamped(self):
        from reflector.config import settings
        assert score_assessment(_profile("mid"), "a-1").version == settings.ENGINE_VERSION


# ============================================================
# EXPORT
# ============================================================

class TestReport:
    def test_csv_layout(self):
        csv_text = export_scores_csv(score_assessment(_profile("high"), "a-1"))
        lines = csv_text.split("\n")
        assert lines[0] == ",".join(CSV_HEADER)
        assert lines[0] == "Construct,Score,CI_Lower,CI_Upper,Interpretation,Items,Reliability"
        assert len(lines) == 1 + len(CONSTRUCTS)
        assert lines[1].startswith("EAI,100,")
        assert ",high,12," in lines[1]

    def test_csv_missing_reliability(self):
        csv_text = export_scores_csv(score_assessment([_resp("eai_01", 5)], "a-1"))
        assert csv_text.split("\n")[1].endswith(",N/A")

    def test_summary(self):
        summary = generate_summary(score_assessment(_profile("high"), "a-1"))
        assert summary.startswith("REFLECTOR AUTONOMY PROFILE")
        assert "COMPOSITE AUTONOMY: 100/100" in summary
        assert "EAI: 100/100 [HIGH]" in summary
        assert "95% CI:" in summary
        assert "INTEGRITY FLAGS: straightlining" in summary

    def test_summary_generated_at(self):
        summary = generate_summary(score_assessment([], "a-1"), generated_at=T0)
        assert f"Generated: {T0.isoformat()}" in summary
