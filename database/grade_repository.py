"""
성적 저장소

- 성적 이벤트 쓰기는 식별 키(유니크 제약) 기준 단일 UPSERT 문으로 처리한다.
  sqlite/postgresql: INSERT ... ON CONFLICT DO UPDATE
  mysql           : INSERT ... ON DUPLICATE KEY UPDATE
- 커밋은 호출하는 서비스가 담당한다.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.orm import Session

from models.students import Student as StudentModel
from models.grades import (
    ExerciseGrade as ExerciseGradeModel,
    TypedGrade as TypedGradeModel,
    CompositeGrade as CompositeGradeModel,
)
from schemas.grading import CompositeGrade, GradeEvent, GradeKind
from services.grading.grade_key_policy import ExerciseKey, IdentityKey, exam_slot

logger = logging.getLogger(__name__)

_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
    "mysql": mysql.insert,
    "mariadb": mysql.insert,
}


def _upsert(db: Session, model, values: dict, key_columns: List[str], update_columns: List[str]):
    dialect = db.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Upsert is not supported for dialect '{dialect}'")

    stmt = insert(model).values(**values)
    updates = {column: values[column] for column in update_columns}
    if dialect in ("mysql", "mariadb"):
        stmt = stmt.on_duplicate_key_update(**updates)
    else:
        stmt = stmt.on_conflict_do_update(index_elements=key_columns, set_=updates)
    db.execute(stmt)


# ==========================================================
# [쓰기] 성적 이벤트 UPSERT
# ==========================================================

def upsert_event(db: Session, event: GradeEvent, key: IdentityKey, max_points: Optional[float] = None):
    now = datetime.now(timezone.utc)
    common = {
        "student_id": event.student_id,
        "subject_id": event.subject_id,
        "season_id": event.season_id,
        "value": event.value,
        "notes": event.notes,
        "graded_at": event.graded_at or now,
        "graded_by": event.graded_by or "system",
        "updated_at": now,
    }

    if isinstance(key, ExerciseKey):
        values = {**common, "exercise_id": key.exercise_id, "max_points": max_points}
        _upsert(
            db, ExerciseGradeModel, values,
            key_columns=["student_id", "exercise_id"],
            update_columns=["subject_id", "season_id", "value", "max_points", "notes", "graded_at", "graded_by", "updated_at"],
        )
    else:
        values = {**common, "kind": GradeKind(key.kind).value, "exam_slot": exam_slot(key)}
        _upsert(
            db, TypedGradeModel, values,
            key_columns=["student_id", "subject_id", "season_id", "kind", "exam_slot"],
            update_columns=["value", "notes", "graded_at", "graded_by", "updated_at"],
        )


def exercise_grade_scope(db: Session, student_id: int, exercise_id: int) -> Optional[Tuple[int, int]]:
    """이미 저장된 연습문제 성적의 (과목, 시즌), 없으면 None"""
    row = db.query(ExerciseGradeModel.subject_id, ExerciseGradeModel.season_id).filter(
        ExerciseGradeModel.student_id == student_id,
        ExerciseGradeModel.exercise_id == exercise_id,
    ).first()
    return (row.subject_id, row.season_id) if row else None


def lock_student_grades(db: Session, student_id: int):
    """
    종합 성적 재계산 직렬화용 잠금

    - 학생 행을 SELECT ... FOR UPDATE 로 잠가서 같은 학생의 재계산이 겹치지 않게 한다
      (종합 성적 행은 아직 없을 수 있으므로 항상 존재하는 학생 행을 잠금 대상으로 사용)
    - sqlite 는 FOR UPDATE 를 지원하지 않아 잠금 없이 실행된다 (DB 파일 단위 쓰기 잠금에 의존)
    """
    return db.query(StudentModel.id).filter(StudentModel.id == student_id).with_for_update().first()


# ==========================================================
# [읽기] 성적 이벤트
# ==========================================================

def exercise_row_to_event(row: ExerciseGradeModel) -> GradeEvent:
    return GradeEvent(
        student_id=row.student_id,
        subject_id=row.subject_id,
        season_id=row.season_id,
        kind=GradeKind.EXERCISE,
        exercise_id=row.exercise_id,
        value=row.value,
        notes=row.notes,
        graded_at=row.graded_at,
        graded_by=row.graded_by,
    )


def typed_row_to_event(row: TypedGradeModel) -> GradeEvent:
    return GradeEvent(
        student_id=row.student_id,
        subject_id=row.subject_id,
        season_id=row.season_id,
        kind=GradeKind(row.kind),
        monthly_exam_number=row.exam_slot or None,
        value=row.value,
        notes=row.notes,
        graded_at=row.graded_at,
        graded_by=row.graded_by,
    )


def load_events(db: Session, student_id: int, subject_id: int, season_id: int) -> List[GradeEvent]:
    """한 (학생, 과목, 시즌) 의 모든 이벤트"""
    exercise_rows = db.query(ExerciseGradeModel).filter(
        ExerciseGradeModel.student_id == student_id,
        ExerciseGradeModel.subject_id == subject_id,
        ExerciseGradeModel.season_id == season_id,
    ).all()
    typed_rows = db.query(TypedGradeModel).filter(
        TypedGradeModel.student_id == student_id,
        TypedGradeModel.subject_id == subject_id,
        TypedGradeModel.season_id == season_id,
    ).all()
    return [exercise_row_to_event(r) for r in exercise_rows] + [typed_row_to_event(r) for r in typed_rows]


def list_events(
    db: Session,
    student_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    season_id: Optional[int] = None,
    kind: Optional[GradeKind] = None,
    exercise_id: Optional[int] = None,
    class_id: Optional[int] = None,
    offset: int = 0,
    limit: int = 50,
) -> Tuple[int, List[dict]]:
    """
    필터 조건의 이벤트 목록 (최근 채점순), 두 테이블을 합쳐 페이징
    - class_id: 반 전체 학생의 기존 성적 (일괄 채점 화면 초기값)
    """
    class_students = None
    if class_id is not None:
        class_students = select(StudentModel.id).where(StudentModel.class_id == class_id)

    rows = []

    if kind in (None, GradeKind.EXERCISE):
        query = db.query(ExerciseGradeModel)
        if student_id is not None:
            query = query.filter(ExerciseGradeModel.student_id == student_id)
        if subject_id is not None:
            query = query.filter(ExerciseGradeModel.subject_id == subject_id)
        if season_id is not None:
            query = query.filter(ExerciseGradeModel.season_id == season_id)
        if exercise_id is not None:
            query = query.filter(ExerciseGradeModel.exercise_id == exercise_id)
        if class_students is not None:
            query = query.filter(ExerciseGradeModel.student_id.in_(class_students))
        rows += [("exercise", r.id, exercise_row_to_event(r)) for r in query.all()]

    if kind != GradeKind.EXERCISE and exercise_id is None:
        query = db.query(TypedGradeModel)
        if student_id is not None:
            query = query.filter(TypedGradeModel.student_id == student_id)
        if subject_id is not None:
            query = query.filter(TypedGradeModel.subject_id == subject_id)
        if season_id is not None:
            query = query.filter(TypedGradeModel.season_id == season_id)
        if kind is not None:
            query = query.filter(TypedGradeModel.kind == GradeKind(kind).value)
        if class_students is not None:
            query = query.filter(TypedGradeModel.student_id.in_(class_students))
        rows += [("typed", r.id, typed_row_to_event(r)) for r in query.all()]

    rows.sort(key=lambda item: (item[2].graded_at is not None, item[2].graded_at), reverse=True)
    page = rows[offset:offset + limit]
    return len(rows), [
        {"id": row_id, "record": record, **event.model_dump(mode="json")}
        for record, row_id, event in page
    ]


def delete_event(db: Session, record: str, grade_id: int) -> Optional[GradeEvent]:
    """이벤트 1건 삭제 후 삭제된 이벤트 반환 (없으면 None)"""
    model = ExerciseGradeModel if record == "exercise" else TypedGradeModel
    row = db.query(model).filter(model.id == grade_id).first()
    if row is None:
        return None
    event = exercise_row_to_event(row) if record == "exercise" else typed_row_to_event(row)
    db.delete(row)
    db.flush()
    return event


def season_is_referenced(db: Session, season_id: int) -> bool:
    for model in (ExerciseGradeModel, TypedGradeModel, CompositeGradeModel):
        if db.query(model.id).filter(model.season_id == season_id).first() is not None:
            return True
    return False


# ==========================================================
# [종합 성적] 저장/조회
# ==========================================================

def upsert_composite(db: Session, composite: CompositeGrade):
    first, second = composite.monthly_exam
    values = {
        "student_id": composite.student_id,
        "subject_id": composite.subject_id,
        "season_id": composite.season_id,
        "exercises_score": composite.exercises_score,
        "monthly_exam_1": first,
        "monthly_exam_2": second,
        "behaviour": composite.behaviour,
        "attendance": composite.attendance,
        "season_exam": composite.season_exam,
        "monthly_total": composite.monthly_total,
        "participation": composite.participation,
        "total": composite.total,
        "updated_at": datetime.now(timezone.utc),
    }
    _upsert(
        db, CompositeGradeModel, values,
        key_columns=["student_id", "subject_id", "season_id"],
        update_columns=[c for c in values if c not in ("student_id", "subject_id", "season_id")],
    )


def delete_composite(db: Session, student_id: int, subject_id: int, season_id: int) -> int:
    return db.query(CompositeGradeModel).filter(
        CompositeGradeModel.student_id == student_id,
        CompositeGradeModel.subject_id == subject_id,
        CompositeGradeModel.season_id == season_id,
    ).delete(synchronize_session=False)


def composite_row_to_schema(row: CompositeGradeModel) -> CompositeGrade:
    return CompositeGrade(
        student_id=row.student_id,
        subject_id=row.subject_id,
        season_id=row.season_id,
        exercises_score=row.exercises_score,
        monthly_exam=[row.monthly_exam_1, row.monthly_exam_2],
        behaviour=row.behaviour,
        attendance=row.attendance,
        season_exam=row.season_exam,
        monthly_total=row.monthly_total,
        participation=row.participation,
        total=row.total,
        updated_at=row.updated_at,
    )


def get_composite(db: Session, student_id: int, subject_id: int, season_id: int) -> Optional[CompositeGrade]:
    row = db.query(CompositeGradeModel).filter(
        CompositeGradeModel.student_id == student_id,
        CompositeGradeModel.subject_id == subject_id,
        CompositeGradeModel.season_id == season_id,
    ).first()
    return composite_row_to_schema(row) if row else None


def list_composites_for_student(db: Session, student_id: int) -> List[CompositeGrade]:
    rows = (
        db.query(CompositeGradeModel)
        .filter(CompositeGradeModel.student_id == student_id)
        .order_by(CompositeGradeModel.subject_id, CompositeGradeModel.season_id)
        .all()
    )
    return [composite_row_to_schema(r) for r in rows]
