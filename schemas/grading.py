"""
schemas/grading.py

- 채점 코어에서 사용하는 도메인/요청/응답 스키마 (Pydantic v2)
- 포함 내용:
  1) GradeKind: 채점 종류
  2) GradeEvent: 학생 1명에 대한 채점 1건
  3) CompositeGrade: 학생/과목/시즌별 종합 성적 (재계산 결과)
  4) BulkGradeRequest / BulkGradeResult: 반 단위 일괄 채점
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =========================================================
# 1) 채점 종류
# =========================================================

class GradeKind(str, Enum):
    EXERCISE = "exercise"
    MONTHLY_EXAM = "monthly_exam"
    ATTENDANCE = "attendance"
    BEHAVIOUR = "behaviour"
    SEASON_EXAM = "season_exam"


# =========================================================
# 2) 채점 이벤트
# =========================================================

class GradeEvent(BaseModel):
    """
    원본 채점 1건
    - exercise_id: kind=exercise 일 때만 존재
    - monthly_exam_number: kind=monthly_exam 일 때만 1 또는 2
    - season_id: 해석이 끝난 시즌 ID, season_ref는 입력 당시 텍스트(참고용)
    """
    student_id: int
    subject_id: int
    season_id: int
    kind: GradeKind
    value: float
    season_ref: Optional[str] = None
    exercise_id: Optional[int] = None
    monthly_exam_number: Optional[int] = None
    notes: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# =========================================================
# 3) 종합 성적
# =========================================================

class CompositeGrade(BaseModel):
    """
    학생/과목/시즌별 종합 성적
    - None 은 '미채점', 0 은 '0점 채점' (서로 다른 상태)
    - monthly_exam 은 항상 [1차, 2차] 두 칸
    """
    student_id: int
    subject_id: int
    season_id: int
    exercises_score: Optional[float] = None
    monthly_exam: List[Optional[float]] = Field(default_factory=lambda: [None, None])
    behaviour: Optional[float] = None
    attendance: Optional[float] = None
    season_exam: Optional[float] = None
    monthly_total: Optional[float] = None
    participation: Optional[float] = None
    total: float = Field(0.0, ge=0, le=100)
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")


# =========================================================
# 4) 일괄 채점 요청/결과
# =========================================================

class BulkGradeEntry(BaseModel):
    student_id: int
    value: Optional[float] = None     # 비어 있으면 이번 채점에서 건너뜀
    notes: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        # 폼에서 넘어오는 빈 문자열 → 미입력
        if isinstance(v, str) and not v.strip():
            return None
        return v


class BulkGradeRequest(BaseModel):
    """하나의 채점 이벤트(과목/시즌/종류)를 여러 학생에게 적용"""
    subject_id: int
    season_label: str
    kind: GradeKind
    monthly_exam_number: Optional[int] = None
    exercise_id: Optional[int] = None
    graded_date: Optional[datetime] = None
    entries: List[BulkGradeEntry] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class EntryStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    REJECTED = "rejected"


class EntryOutcome(BaseModel):
    student_id: int
    kind: GradeKind
    status: EntryStatus
    reason: Optional[str] = None      # 에러 코드 (예: OUT_OF_RANGE_VALUE)
    message: Optional[str] = None


class BulkGradeResult(BaseModel):
    subject_id: int
    season_id: int
    kind: GradeKind
    outcomes: List[EntryOutcome] = Field(default_factory=list)
    recomputed: int = 0

    @property
    def applied(self) -> int:
        return sum(1 for o in self.outcomes if o.status == EntryStatus.APPLIED)

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status == EntryStatus.SKIPPED)

    @property
    def rejected(self) -> int:
        return sum(1 for o in self.outcomes if o.status == EntryStatus.REJECTED)
