import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database.db import get_db
from database.directory import list_seasons, season_exercise_points
from database.grade_repository import season_is_referenced
from models.seasons import Season as SeasonModel
from schemas.seasons import Season as SeasonSchema, SeasonCreate, SeasonUpdate
from services.grading import season_resolver
from services.grading.score_aggregator import EXERCISES_CAP

router = APIRouter(prefix="/seasons", tags=["시즌"])
logger = logging.getLogger(__name__)


def _season_out(season: SeasonModel) -> dict:
    return SeasonSchema.model_validate(season).model_dump()


def _check_unique(db: Session, name_en: Optional[str], order: Optional[int], exclude_id: Optional[int] = None):
    # 영어 이름과 순서는 시즌 간에 겹치면 안 됨
    query = db.query(SeasonModel)
    if exclude_id is not None:
        query = query.filter(SeasonModel.id != exclude_id)
    if name_en is not None and query.filter(SeasonModel.name_en == name_en).first():
        raise HTTPException(status_code=409, detail=f"Season name '{name_en}' already exists")
    if order is not None and query.filter(SeasonModel.order == order).first():
        raise HTTPException(status_code=409, detail=f"Season order {order} already exists")


# ==========================================================
# [1단계] 정적 라우터
# ==========================================================

# ✅ [READ] 전체 시즌 조회 (order 순)
@router.get("/")
def read_seasons(db: Session = Depends(get_db)):
    return {
        "success": True,
        "data": [_season_out(s) for s in list_seasons(db)]
    }


# ✅ [RESOLVE] 자유 입력 라벨 → 시즌
@router.get("/resolve")
def resolve_season(label: str, db: Session = Depends(get_db)):
    season = season_resolver.resolve(label, list_seasons(db))
    if season is None:
        return {"success": False, "error": {"code": 404, "message": f"Season label '{label}' not resolved"}}
    return {"success": True, "data": _season_out(season)}


# ✅ [CREATE] 시즌 추가
@router.post("/")
def create_season(season: SeasonCreate, db: Session = Depends(get_db)):
    _check_unique(db, season.name_en, season.order)
    db_season = SeasonModel(**season.model_dump())
    db.add(db_season)
    db.commit()
    db.refresh(db_season)
    logger.info(f"시즌 추가: id={db_season.id} order={db_season.order}")
    return {
        "success": True,
        "data": _season_out(db_season),
        "message": "Season created successfully"
    }


# ==========================================================
# [2단계] 동적 라우터
# ==========================================================

# ✅ [READ] 특정 시즌 조회
@router.get("/{season_id}")
def read_season(season_id: int, db: Session = Depends(get_db)):
    season = db.query(SeasonModel).filter(SeasonModel.id == season_id).first()
    if season is None:
        return {"success": False, "error": {"code": 404, "message": "Season not found"}}
    return {"success": True, "data": _season_out(season)}


# ✅ [READ] 시즌 연습문제 배점 합계 / 10점 버킷 잔여 배점
@router.get("/{season_id}/exercise-points")
def read_exercise_points(season_id: int, subject_id: Optional[int] = None, db: Session = Depends(get_db)):
    seasons = list_seasons(db)
    if not any(s.id == season_id for s in seasons):
        return {"success": False, "error": {"code": 404, "message": "Season not found"}}
    total_points = season_exercise_points(db, season_id, seasons, subject_id)
    return {
        "success": True,
        "data": {
            "season_id": season_id,
            "subject_id": subject_id,
            "total_points": total_points,
            "remaining_points": EXERCISES_CAP - total_points,
        }
    }


# ✅ [UPDATE] 시즌 수정 (id 는 변경 불가)
@router.put("/{season_id}")
def update_season(season_id: int, updated: SeasonUpdate, db: Session = Depends(get_db)):
    season = db.query(SeasonModel).filter(SeasonModel.id == season_id).first()
    if season is None:
        return {"success": False, "error": {"code": 404, "message": "Season not found"}}

    changes = updated.model_dump(exclude_unset=True)
    _check_unique(db, changes.get("name_en"), changes.get("order"), exclude_id=season_id)
    for key, value in changes.items():
        setattr(season, key, value)

    db.commit()
    db.refresh(season)
    return {
        "success": True,
        "data": _season_out(season),
        "message": "Season updated successfully"
    }


# ✅ [DELETE] 시즌 삭제 (성적이 참조 중이면 거절)
@router.delete("/{season_id}")
def delete_season(season_id: int, db: Session = Depends(get_db)):
    season = db.query(SeasonModel).filter(SeasonModel.id == season_id).first()
    if season is None:
        return {"success": False, "error": {"code": 404, "message": "Season not found"}}

    if season_is_referenced(db, season_id):
        raise HTTPException(status_code=409, detail="Season is referenced by grades and cannot be deleted")

    db.delete(season)
    db.commit()
    return {
        "success": True,
        "data": {"season_id": season_id, "message": "Season deleted successfully"}
    }
