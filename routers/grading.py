from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from database import grade_repository
from dependencies.security import require_grading_token, current_grader
from schemas.common import Pagination, make_meta
from schemas.grading import BulkGradeRequest, GradeKind
from services.grading.bulk_grade_applier import (
    apply_bulk_grade,
    delete_grade_event,
    get_composite_grade,
    get_composite_grades_for_student,
    recompute,
)

router = APIRouter(
    prefix="/grading",
    tags=["채점"],
    dependencies=[Depends(require_grading_token)],
)


# ==========================================================
# [1단계] 일괄 채점
# ==========================================================

# ✅ [BULK] 한 과목/시즌/종류 채점을 여러 학생에게 적용
# - 시즌 라벨 해석 실패 시 422 (SEASON_NOT_RESOLVED), 아무것도 저장하지 않음
# - 학생별 결과: applied / skipped / rejected(사유)
@router.post("/bulk")
def bulk_grade(
    request: BulkGradeRequest,
    graded_by: str = Depends(current_grader),
    db: Session = Depends(get_db),
):
    result = apply_bulk_grade(db, request, graded_by)
    return {
        "success": True,
        "data": {
            **result.model_dump(mode="json"),
            "applied": result.applied,
            "skipped": result.skipped,
            "rejected": result.rejected,
        },
        "message": "Bulk grading processed"
    }


# ==========================================================
# [2단계] 종합 성적 조회
# ==========================================================

# ✅ [READ] 학생 1명의 전체 종합 성적 (프로필/리포트 화면)
@router.get("/composite/student/{student_id}")
def read_student_composites(student_id: int, db: Session = Depends(get_db)):
    composites = get_composite_grades_for_student(db, student_id)
    return {
        "success": True,
        "data": [c.model_dump(mode="json") for c in composites]
    }


# ✅ [READ] 학생/과목/시즌 종합 성적
@router.get("/composite/{student_id}/{subject_id}/{season_id}")
def read_composite(student_id: int, subject_id: int, season_id: int, db: Session = Depends(get_db)):
    composite = get_composite_grade(db, student_id, subject_id, season_id)
    if composite is None:
        return {"success": False, "error": {"code": 404, "message": "Composite grade not found"}}
    return {"success": True, "data": composite.model_dump(mode="json")}


# ✅ [RECOMPUTE] 종합 성적 강제 재계산 (멱등)
@router.post("/recompute/{student_id}/{subject_id}/{season_id}")
def force_recompute(student_id: int, subject_id: int, season_id: int, db: Session = Depends(get_db)):
    composite = recompute(db, student_id, subject_id, season_id)
    return {
        "success": True,
        "data": composite.model_dump(mode="json") if composite else None,
        "message": "Composite grade recomputed" if composite else "No grade events, composite removed"
    }


# ==========================================================
# [3단계] 성적 이벤트 조회/삭제
# ==========================================================

# ✅ [READ] 채점 기록 목록 (최근 채점순)
@router.get("/events")
def read_events(
    student_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    season_id: Optional[int] = None,
    kind: Optional[GradeKind] = None,
    exercise_id: Optional[int] = None,
    class_id: Optional[int] = None,
    p: Pagination = Depends(),
    db: Session = Depends(get_db),
):
    total, items = grade_repository.list_events(
        db,
        student_id=student_id,
        subject_id=subject_id,
        season_id=season_id,
        kind=kind,
        exercise_id=exercise_id,
        class_id=class_id,
        offset=p.offset,
        limit=p.size,
    )
    return {
        "success": True,
        "data": items,
        "meta": make_meta(total, p.page, p.size).model_dump()
    }


# ✅ [DELETE] 연습문제 성적 삭제 (+ 종합 성적 재계산)
@router.delete("/events/exercise/{grade_id}")
def delete_exercise_grade(grade_id: int, db: Session = Depends(get_db)):
    return _delete_event(db, "exercise", grade_id)


# ✅ [DELETE] 월말고사/출석/태도/시즌시험 성적 삭제 (+ 종합 성적 재계산)
@router.delete("/events/typed/{grade_id}")
def delete_typed_grade(grade_id: int, db: Session = Depends(get_db)):
    return _delete_event(db, "typed", grade_id)


def _delete_event(db: Session, record: str, grade_id: int):
    event = delete_grade_event(db, record, grade_id)
    if event is None:
        return {"success": False, "error": {"code": 404, "message": "Grade not found"}}
    return {
        "success": True,
        "data": {"grade_id": grade_id, "record": record, "message": "Grade deleted successfully"}
    }
