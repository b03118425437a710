from datetime import datetime, timedelta, timezone

import pytest

from schemas.grading import GradeEvent, GradeKind
from services.grading import score_aggregator
from services.grading.errors import OutOfRangeValue

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def exercise(exercise_id, value, **kw):
    return GradeEvent(student_id=1, subject_id=1, season_id=1, kind=GradeKind.EXERCISE,
                      exercise_id=exercise_id, value=value, **kw)


def typed(kind, value, number=None, **kw):
    return GradeEvent(student_id=1, subject_id=1, season_id=1, kind=kind,
                      monthly_exam_number=number, value=value, **kw)


def test_exercise_sum_is_capped_at_ten():
    composite = score_aggregator.aggregate([exercise(11, 7), exercise(12, 6)])
    assert composite.exercises_score == 10
    assert composite.total == 10


def test_monthly_exams_are_averaged():
    composite = score_aggregator.aggregate([
        typed(GradeKind.MONTHLY_EXAM, 14, 1),
        typed(GradeKind.MONTHLY_EXAM, 18, 2),
    ])
    assert composite.monthly_exam == [14, 18]
    assert composite.monthly_total == 16


def test_single_monthly_exam_counts_alone():
    composite = score_aggregator.aggregate([typed(GradeKind.MONTHLY_EXAM, 12, 2)])
    assert composite.monthly_exam == [None, 12]
    assert composite.monthly_total == 12


def test_participation_caps_and_partial_presence():
    full = score_aggregator.aggregate([typed(GradeKind.BEHAVIOUR, 5), typed(GradeKind.ATTENDANCE, 5)])
    assert full.participation == 10

    partial = score_aggregator.aggregate([typed(GradeKind.ATTENDANCE, 3)])
    assert partial.behaviour is None
    assert partial.participation == 3


def test_absent_components_are_none_not_zero():
    composite = score_aggregator.aggregate([typed(GradeKind.SEASON_EXAM, 0)])
    assert composite.season_exam == 0
    assert composite.exercises_score is None
    assert composite.monthly_total is None
    assert composite.participation is None
    assert composite.total == 0


def test_full_marks_reach_exactly_one_hundred():
    composite = score_aggregator.aggregate([
        exercise(11, 10),
        typed(GradeKind.MONTHLY_EXAM, 20, 1),
        typed(GradeKind.MONTHLY_EXAM, 20, 2),
        typed(GradeKind.BEHAVIOUR, 5),
        typed(GradeKind.ATTENDANCE, 5),
        typed(GradeKind.SEASON_EXAM, 60),
    ])
    assert composite.total == 100


def test_aggregate_is_pure_and_order_independent():
    events = [exercise(11, 4), typed(GradeKind.SEASON_EXAM, 41), typed(GradeKind.MONTHLY_EXAM, 9, 1)]
    first = score_aggregator.aggregate(events)
    again = score_aggregator.aggregate(list(reversed(events)))
    assert first == again
    assert first.total == 54


def test_duplicate_identity_keeps_latest_graded_at():
    events = [
        exercise(11, 8, graded_at=NOW),
        exercise(11, 6, graded_at=NOW - timedelta(days=1)),
    ]
    assert score_aggregator.aggregate(events).exercises_score == 8


def test_mixed_scopes_are_refused():
    other = GradeEvent(student_id=2, subject_id=1, season_id=1, kind=GradeKind.ATTENDANCE, value=1)
    with pytest.raises(ValueError):
        score_aggregator.aggregate([typed(GradeKind.ATTENDANCE, 2), other])
    with pytest.raises(ValueError):
        score_aggregator.aggregate([])


@pytest.mark.parametrize(
    "kind, value, degree",
    [
        (GradeKind.MONTHLY_EXAM, 22, None),
        (GradeKind.ATTENDANCE, 6, None),
        (GradeKind.BEHAVIOUR, -1, None),
        (GradeKind.SEASON_EXAM, 61, None),
        (GradeKind.EXERCISE, 11, None),
        (GradeKind.EXERCISE, 6, 5),
        (GradeKind.EXERCISE, 1, 0),
        (GradeKind.SEASON_EXAM, float("nan"), None),
        (GradeKind.ATTENDANCE, float("inf"), None),
        (GradeKind.BEHAVIOUR, float("-inf"), None),
        (GradeKind.EXERCISE, float("nan"), 5),
    ],
)
def test_out_of_range_values_are_rejected_not_clamped(kind, value, degree):
    with pytest.raises(OutOfRangeValue) as exc_info:
        score_aggregator.validate_value(kind, value, degree)
    assert exc_info.value.code == "OUT_OF_RANGE_VALUE"


def test_in_range_values_pass_through():
    assert score_aggregator.validate_value(GradeKind.MONTHLY_EXAM, 20) == 20
    assert score_aggregator.validate_value(GradeKind.EXERCISE, 5, 5) == 5
    assert score_aggregator.validate_value(GradeKind.EXERCISE, 10, None) == 10
    assert score_aggregator.validate_value(GradeKind.EXERCISE, 0, 0) == 0
