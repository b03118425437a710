"""
종합 성적 계산

항목별 상한
- 연습문제 합계 10 / 월말고사 회차별 20 / 태도 5 / 출석 5 / 시즌 시험 60
- total = 연습문제 + 월말고사 반영점수 + (태도+출석) + 시즌 시험 ≤ 100

입력값 범위 검사는 쓰기 시점(validate_value)에서 하고, 계산 단계에서는 자동 보정하지 않는다.
"""
import math
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from schemas.grading import CompositeGrade, GradeEvent, GradeKind
from services.grading import grade_key_policy
from services.grading.errors import OutOfRangeValue

EXERCISES_CAP = 10.0
MONTHLY_EXAM_CAP = 20.0
PARTICIPATION_CAP = 10.0
DEFAULT_EXERCISE_DEGREE = 10.0

COMPONENT_CAPS = {
    GradeKind.MONTHLY_EXAM: MONTHLY_EXAM_CAP,
    GradeKind.ATTENDANCE: 5.0,
    GradeKind.BEHAVIOUR: 5.0,
    GradeKind.SEASON_EXAM: 60.0,
}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def max_value(kind: GradeKind, exercise_degree: Optional[float] = None) -> float:
    kind = GradeKind(kind)
    if kind == GradeKind.EXERCISE:
        # 배점 미지정일 때만 기본값, 0점 문제는 0 만 허용
        return DEFAULT_EXERCISE_DEGREE if exercise_degree is None else exercise_degree
    return COMPONENT_CAPS[kind]


def validate_value(kind: GradeKind, value: float, exercise_degree: Optional[float] = None) -> float:
    maximum = max_value(kind, exercise_degree)
    # NaN 은 모든 비교가 False 라서 범위 검사를 통과하므로 따로 거른다
    if value is None or not math.isfinite(value) or value < 0 or value > maximum:
        raise OutOfRangeValue(GradeKind(kind).value, value, maximum)
    return value


def _sort_key(event: GradeEvent):
    graded_at = event.graded_at
    if graded_at is None:
        return _EPOCH
    if graded_at.tzinfo is None:
        return graded_at.replace(tzinfo=timezone.utc)
    return graded_at


def _latest_by_identity(events: Iterable[GradeEvent]) -> Dict:
    latest = {}
    for event in sorted(events, key=_sort_key):
        latest[grade_key_policy.classify(event)] = event
    return latest


def monthly_total(first: Optional[float], second: Optional[float]) -> Optional[float]:
    present = [v for v in (first, second) if v is not None]
    if not present:
        return None
    return min(sum(present) / len(present), MONTHLY_EXAM_CAP)


def participation(behaviour: Optional[float], attendance: Optional[float]) -> Optional[float]:
    if behaviour is None and attendance is None:
        return None
    return min((behaviour or 0) + (attendance or 0), PARTICIPATION_CAP)


def aggregate(events: Iterable[GradeEvent]) -> CompositeGrade:
    """한 (학생, 과목, 시즌) 의 이벤트 집합 → 종합 성적 (순수 함수)"""
    events = list(events)
    if not events:
        raise ValueError("aggregate() needs at least one grade event")

    scopes = {(e.student_id, e.subject_id, e.season_id) for e in events}
    if len(scopes) > 1:
        raise ValueError(f"aggregate() got events for several student/subject/season keys: {sorted(scopes)}")
    student_id, subject_id, season_id = scopes.pop()

    exercise_values = []
    monthly = [None, None]
    typed = {}
    for key, event in _latest_by_identity(events).items():
        kind = GradeKind(event.kind)
        if kind == GradeKind.EXERCISE:
            exercise_values.append(event.value)
        elif kind == GradeKind.MONTHLY_EXAM:
            monthly[key.monthly_exam_number - 1] = event.value
        else:
            typed[kind] = event.value

    exercises_score = min(sum(exercise_values), EXERCISES_CAP) if exercise_values else None
    behaviour = typed.get(GradeKind.BEHAVIOUR)
    attendance = typed.get(GradeKind.ATTENDANCE)
    season_exam = typed.get(GradeKind.SEASON_EXAM)
    monthly_part = monthly_total(*monthly)
    participation_part = participation(behaviour, attendance)

    total = sum(v for v in (exercises_score, monthly_part, participation_part, season_exam) if v is not None)

    return CompositeGrade(
        student_id=student_id,
        subject_id=subject_id,
        season_id=season_id,
        exercises_score=exercises_score,
        monthly_exam=monthly,
        behaviour=behaviour,
        attendance=attendance,
        season_exam=season_exam,
        monthly_total=monthly_part,
        participation=participation_part,
        total=max(0.0, min(total, 100.0)),
    )
