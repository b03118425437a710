import pytest

from schemas.grading import GradeEvent, GradeKind
from services.grading import grade_key_policy
from services.grading.errors import InvalidGradeShape
from services.grading.grade_key_policy import ExerciseKey, TypedKey


def make_event(**overrides):
    values = dict(student_id=1, subject_id=1, season_id=1, kind=GradeKind.ATTENDANCE, value=4)
    values.update(overrides)
    return GradeEvent(**values)


def test_exercise_key_ignores_subject_and_season():
    first = make_event(kind=GradeKind.EXERCISE, exercise_id=11, subject_id=1, season_id=1)
    other = make_event(kind=GradeKind.EXERCISE, exercise_id=11, subject_id=2, season_id=2, value=9)
    assert grade_key_policy.classify(first) == ExerciseKey(1, 11)
    assert grade_key_policy.conflicts_with(first, other)


def test_typed_key_includes_exam_number():
    key = grade_key_policy.classify(make_event(kind=GradeKind.MONTHLY_EXAM, monthly_exam_number=2))
    assert key == TypedKey(1, 1, 1, GradeKind.MONTHLY_EXAM, 2)
    assert grade_key_policy.exam_slot(key) == 2


def test_typed_key_for_other_kinds_has_no_exam_number():
    key = grade_key_policy.classify(make_event(kind=GradeKind.SEASON_EXAM, value=50))
    assert key.monthly_exam_number is None
    assert grade_key_policy.exam_slot(key) == 0


def test_monthly_exams_one_and_two_are_distinct_records():
    first = make_event(kind=GradeKind.MONTHLY_EXAM, monthly_exam_number=1)
    second = make_event(kind=GradeKind.MONTHLY_EXAM, monthly_exam_number=2)
    assert not grade_key_policy.conflicts_with(first, second)


def test_same_kind_different_season_does_not_conflict():
    assert not grade_key_policy.conflicts_with(make_event(season_id=1), make_event(season_id=2))
    assert grade_key_policy.conflicts_with(make_event(value=1), make_event(value=5, notes="late"))


@pytest.mark.parametrize(
    "overrides",
    [
        dict(kind=GradeKind.MONTHLY_EXAM),
        dict(kind=GradeKind.MONTHLY_EXAM, monthly_exam_number=3),
        dict(kind=GradeKind.BEHAVIOUR, monthly_exam_number=1),
        dict(kind=GradeKind.EXERCISE),
        dict(kind=GradeKind.SEASON_EXAM, exercise_id=11),
    ],
)
def test_invalid_shapes_are_rejected(overrides):
    with pytest.raises(InvalidGradeShape) as exc_info:
        grade_key_policy.classify(make_event(**overrides))
    assert exc_info.value.code == "INVALID_GRADE_SHAPE"


def test_derive_exercise_scope_overrides_submitted_subject_and_season():
    event = make_event(kind=GradeKind.EXERCISE, exercise_id=11, subject_id=99, season_id=98)
    derived = grade_key_policy.derive_exercise_scope(event, subject_id=1, season_id=2)
    assert (derived.subject_id, derived.season_id) == (1, 2)
    assert event.subject_id == 99
