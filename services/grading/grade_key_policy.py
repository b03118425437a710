"""
성적 식별 키 정책

- kind=exercise      → ExerciseKey(student_id, exercise_id)
- 그 외 kind          → TypedKey(student_id, subject_id, season_id, kind, monthly_exam_number)
같은 키의 쓰기는 같은 레코드에 대한 덮어쓰기로 취급한다.
"""
from typing import NamedTuple, Optional, Union

from schemas.grading import GradeEvent, GradeKind
from services.grading.errors import InvalidGradeShape

MONTHLY_EXAM_NUMBERS = (1, 2)


class ExerciseKey(NamedTuple):
    student_id: int
    exercise_id: int


class TypedKey(NamedTuple):
    student_id: int
    subject_id: int
    season_id: int
    kind: GradeKind
    monthly_exam_number: Optional[int]


IdentityKey = Union[ExerciseKey, TypedKey]


def validate_shape(event: GradeEvent) -> None:
    kind = GradeKind(event.kind)

    if kind == GradeKind.MONTHLY_EXAM:
        if event.monthly_exam_number not in MONTHLY_EXAM_NUMBERS:
            raise InvalidGradeShape(
                f"monthly_exam requires monthly_exam_number 1 or 2, got {event.monthly_exam_number!r}",
                {"kind": kind.value, "monthly_exam_number": event.monthly_exam_number},
            )
    elif event.monthly_exam_number is not None:
        raise InvalidGradeShape(
            f"monthly_exam_number is only allowed for monthly_exam, not {kind.value}",
            {"kind": kind.value, "monthly_exam_number": event.monthly_exam_number},
        )

    if kind == GradeKind.EXERCISE:
        if event.exercise_id is None:
            raise InvalidGradeShape("exercise grades require exercise_id", {"kind": kind.value})
    elif event.exercise_id is not None:
        raise InvalidGradeShape(
            f"exercise_id is only allowed for exercise grades, not {kind.value}",
            {"kind": kind.value, "exercise_id": event.exercise_id},
        )


def classify(event: GradeEvent) -> IdentityKey:
    validate_shape(event)
    kind = GradeKind(event.kind)
    if kind == GradeKind.EXERCISE:
        return ExerciseKey(event.student_id, event.exercise_id)
    return TypedKey(event.student_id, event.subject_id, event.season_id, kind, event.monthly_exam_number)


def conflicts_with(existing: GradeEvent, candidate: GradeEvent) -> bool:
    """두 이벤트가 같은 논리 레코드인지 (같으면 candidate 가 existing 을 덮어씀)"""
    return classify(existing) == classify(candidate)


def derive_exercise_scope(event: GradeEvent, subject_id: int, season_id: int) -> GradeEvent:
    """연습문제 성적의 과목/시즌은 제출값이 아니라 연습문제 자신의 계층에서 가져온다"""
    return event.model_copy(update={"subject_id": subject_id, "season_id": season_id})


def exam_slot(key: IdentityKey) -> int:
    """저장용 회차 값: 월말고사는 1/2, 그 외는 0"""
    if isinstance(key, TypedKey) and key.monthly_exam_number is not None:
        return key.monthly_exam_number
    return 0
