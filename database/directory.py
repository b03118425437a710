"""
채점 코어가 사용하는 외부 디렉터리 조회
- 시즌 목록
- 연습문제 → 파트 → 단원 → (과목, 시즌 라벨, 배점)
- 학생 존재 여부
"""
from typing import Iterable, NamedTuple, Optional, Set

from sqlalchemy.orm import Session

from models.seasons import Season as SeasonModel
from models.students import Student as StudentModel
from models.exercises import Exercise as ExerciseModel
from models.parts import Part as PartModel
from models.chapters import Chapter as ChapterModel
from services.grading.season_resolver import resolve


class ExerciseScope(NamedTuple):
    exercise_id: int
    subject_id: int
    season_label: str
    degree: float


def list_seasons(db: Session):
    return db.query(SeasonModel).order_by(SeasonModel.order).all()


def load_exercise_scope(db: Session, exercise_id: Optional[int]) -> Optional[ExerciseScope]:
    if exercise_id is None:
        return None

    row = (
        db.query(ExerciseModel, ChapterModel)
        .join(PartModel, PartModel.id == ExerciseModel.part_id)
        .join(ChapterModel, ChapterModel.id == PartModel.chapter_id)
        .filter(ExerciseModel.id == exercise_id)
        .first()
    )
    if row is None:
        return None

    exercise, chapter = row
    return ExerciseScope(
        exercise_id=exercise.id,
        subject_id=chapter.subject_id,
        season_label=chapter.season_label,
        degree=exercise.degree,
    )


def existing_student_ids(db: Session, student_ids: Iterable[int]) -> Set[int]:
    ids = set(student_ids)
    if not ids:
        return set()
    rows = db.query(StudentModel.id).filter(StudentModel.id.in_(ids)).all()
    return {r[0] for r in rows}


def season_exercise_points(db: Session, season_id: int, seasons, subject_id: Optional[int] = None) -> float:
    """시즌(선택: 과목)에 속한 활성 연습문제 배점 합계"""
    # 단원의 시즌은 자유 텍스트이므로 라벨 해석 후 비교
    query = db.query(ChapterModel)
    if subject_id is not None:
        query = query.filter(ChapterModel.subject_id == subject_id)
    chapter_ids = []
    for chapter in query.all():
        season = resolve(chapter.season_label, seasons)
        if season is not None and season.id == season_id:
            chapter_ids.append(chapter.id)
    if not chapter_ids:
        return 0.0

    rows = (
        db.query(ExerciseModel.degree)
        .join(PartModel, PartModel.id == ExerciseModel.part_id)
        .filter(PartModel.chapter_id.in_(chapter_ids), ExerciseModel.is_active.is_(True))
        .all()
    )
    return float(sum(r[0] or 0 for r in rows))
