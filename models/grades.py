from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Float, String, Text, DateTime, UniqueConstraint
from database.db import Base


def _utcnow():
    return datetime.now(timezone.utc)


# ==========================================================
# 성적 이벤트: 식별 키가 서로 다른 두 가지 레코드 형태
# - ExerciseGrade : (student_id, exercise_id) 유일
# - TypedGrade    : (student_id, subject_id, season_id, kind, exam_slot) 유일
# ==========================================================

class ExerciseGrade(Base):
    __tablename__ = "exercise_grades"  # 연습문제별 성적 테이블

    id = Column(Integer, primary_key=True, index=True)          # 성적 고유 ID
    student_id = Column(Integer, nullable=False, index=True)   # 학생 ID
    exercise_id = Column(Integer, nullable=False, index=True)  # 연습문제 ID
    subject_id = Column(Integer, nullable=False, index=True)   # 과목 ID (연습문제에서 파생)
    season_id = Column(Integer, nullable=False, index=True)    # 시즌 ID (연습문제에서 파생)
    value = Column(Float, nullable=False)                      # 점수
    max_points = Column(Float, nullable=False, default=10)     # 채점 당시 연습문제 배점
    notes = Column(Text)                                       # 메모
    graded_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)  # 채점 일시
    graded_by = Column(String(100), nullable=False)            # 채점자
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("student_id", "exercise_id", name="uq_exercise_grade_identity"),
    )


class TypedGrade(Base):
    __tablename__ = "typed_grades"  # 월말고사/출석/태도/시즌시험 성적 테이블

    id = Column(Integer, primary_key=True, index=True)          # 성적 고유 ID
    student_id = Column(Integer, nullable=False, index=True)   # 학생 ID
    subject_id = Column(Integer, nullable=False, index=True)   # 과목 ID
    season_id = Column(Integer, nullable=False, index=True)    # 시즌 ID
    kind = Column(String(20), nullable=False)                  # monthly_exam / attendance / behaviour / season_exam
    exam_slot = Column(Integer, nullable=False, default=0)     # 월말고사 회차(1, 2), 그 외 종류는 0
    value = Column(Float, nullable=False)                      # 점수
    notes = Column(Text)                                       # 메모
    graded_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    graded_by = Column(String(100), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint(
            "student_id", "subject_id", "season_id", "kind", "exam_slot",
            name="uq_typed_grade_identity",
        ),
    )


class CompositeGrade(Base):
    __tablename__ = "composite_grades"  # 학생/과목/시즌별 종합 성적 (재계산 전용)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False, index=True)
    subject_id = Column(Integer, nullable=False)
    season_id = Column(Integer, nullable=False)
    exercises_score = Column(Float)       # 연습문제 합계 (최대 10)
    monthly_exam_1 = Column(Float)        # 1차 월말고사 (최대 20)
    monthly_exam_2 = Column(Float)        # 2차 월말고사 (최대 20)
    behaviour = Column(Float)             # 태도 (최대 5)
    attendance = Column(Float)            # 출석 (최대 5)
    season_exam = Column(Float)           # 시즌 시험 (최대 60)
    monthly_total = Column(Float)         # 월말고사 반영 점수 (최대 20)
    participation = Column(Float)         # 태도+출석 (최대 10)
    total = Column(Float, nullable=False, default=0)  # 종합 점수 (0~100)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", "season_id", name="uq_composite_grade_key"),
    )
