"""
성적 CSV 일괄 입력

- 컬럼: subject_id, season, kind, monthly_exam_number, exercise_id, student_id, value, notes
- 같은 (과목, 시즌, 종류, 회차, 연습문제) 행끼리 묶어서 BulkGradeApplier 로 적용
- 식별 키 기준 덮어쓰기이므로 같은 파일을 다시 실행해도 중복이 생기지 않는다
"""
import csv
import logging
from collections import OrderedDict

from sqlalchemy.orm import Session

from database.db import SessionLocal
from schemas.grading import BulkGradeEntry, BulkGradeRequest
from services.grading.bulk_grade_applier import BulkGradeApplier
from services.grading.errors import SeasonNotResolved

CSV_PATH = "data/grades.csv"  # ✅ 파일 경로
GRADER = "csv-import"

logger = logging.getLogger(__name__)


def _optional_int(raw):
    raw = (raw or "").strip()
    return int(raw) if raw else None


def build_requests(rows):
    """CSV 행 → 채점 이벤트 단위 BulkGradeRequest 목록"""
    groups = OrderedDict()
    for row in rows:
        key = (
            int(row["subject_id"]),
            row["season"].strip(),
            row["kind"].strip(),
            _optional_int(row.get("monthly_exam_number")),
            _optional_int(row.get("exercise_id")),
        )
        groups.setdefault(key, []).append(
            BulkGradeEntry(
                student_id=int(row["student_id"]),
                value=row.get("value"),
                notes=(row.get("notes") or "").strip() or None,
            )
        )

    return [
        BulkGradeRequest(
            subject_id=subject_id,
            season_label=season,
            kind=kind,
            monthly_exam_number=exam_number,
            exercise_id=exercise_id,
            entries=entries,
        )
        for (subject_id, season, kind, exam_number, exercise_id), entries in groups.items()
    ]


def migrate_grades(csv_path: str = CSV_PATH):
    db: Session = SessionLocal()
    applied = rejected = 0

    try:
        with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
            requests = build_requests(csv.DictReader(csvfile))

        applier = BulkGradeApplier(db)
        for request in requests:
            try:
                result = applier.apply(request, GRADER)
            except SeasonNotResolved as exc:
                # 시즌을 알 수 없는 묶음은 통째로 건너뜀
                logger.error(f"시즌 해석 실패로 묶음 건너뜀: {exc.message}")
                rejected += len(request.entries)
                continue
            applied += result.applied
            rejected += result.rejected
    finally:
        db.close()

    print(f"✅ 성적 CSV → DB 적용 완료 (applied={applied}, rejected={rejected})")
    return applied, rejected


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    migrate_grades()
