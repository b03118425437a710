"""
반 단위 일괄 채점

흐름
1) 시즌 라벨 해석 (실패 시 배치 전체 거절, 아무것도 쓰지 않음)
2) kind=exercise 이면 연습문제 계층(과목/시즌/배점) 확인
3) 학생별: 미입력 → skipped / 검증·저장 실패 → rejected / 통과 → 식별 키 UPSERT 후 커밋
4) 영향받은 (학생, 과목, 시즌) 종합 성적 재계산 (중간에 예외가 나도 수행)
"""
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config.settings import settings
from database import directory, grade_repository
from schemas.grading import (
    BulkGradeEntry,
    BulkGradeRequest,
    BulkGradeResult,
    CompositeGrade,
    EntryOutcome,
    EntryStatus,
    GradeEvent,
    GradeKind,
)
from services.grading import grade_key_policy, score_aggregator, season_resolver
from services.grading.errors import (
    BatchTimeout,
    ExerciseNotFound,
    GradeWriteFailed,
    GradingError,
    StudentNotFound,
    SubjectMismatch,
)

logger = logging.getLogger(__name__)

CompositeKey = Tuple[int, int, int]


class BulkGradeApplier:
    def __init__(
        self,
        db: Session,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.db = db
        self.timeout_seconds = settings.BULK_GRADE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self.clock = clock

    def apply(self, request: BulkGradeRequest, graded_by: str) -> BulkGradeResult:
        deadline = self.clock() + self.timeout_seconds
        kind = GradeKind(request.kind)

        seasons = directory.list_seasons(self.db)
        season = season_resolver.resolve_or_raise(request.season_label, seasons)
        logger.info(
            f"일괄 채점 시작: subject={request.subject_id} season={season.id} "
            f"kind={kind.value} entries={len(request.entries)} by={graded_by}"
        )

        scope_error, exercise_scope = self._check_exercise_scope(request, season, seasons)
        max_points = exercise_scope[2] if exercise_scope else None
        graded_at = request.graded_date or datetime.now(timezone.utc)
        existing = directory.existing_student_ids(self.db, (e.student_id for e in request.entries))

        result = BulkGradeResult(subject_id=request.subject_id, season_id=season.id, kind=kind)
        touched: Set[CompositeKey] = set()
        timed_out = False

        try:
            for entry in request.entries:
                if not timed_out and self.clock() > deadline:
                    timed_out = True
                    logger.warning(f"일괄 채점 제한 시간 초과: {self.timeout_seconds}s, 남은 항목은 거절 처리")
                if timed_out:
                    result.outcomes.append(self._rejected(entry, kind, BatchTimeout(self.timeout_seconds)))
                    continue

                if entry.value is None:
                    result.outcomes.append(EntryOutcome(student_id=entry.student_id, kind=kind, status=EntryStatus.SKIPPED))
                    continue

                try:
                    if scope_error is not None:
                        raise scope_error
                    if entry.student_id not in existing:
                        raise StudentNotFound(entry.student_id)

                    event = GradeEvent(
                        student_id=entry.student_id,
                        subject_id=request.subject_id,
                        season_id=season.id,
                        season_ref=request.season_label,
                        kind=kind,
                        exercise_id=request.exercise_id,
                        monthly_exam_number=request.monthly_exam_number,
                        value=entry.value,
                        notes=entry.notes,
                        graded_at=graded_at,
                        graded_by=graded_by,
                    )
                    if exercise_scope is not None:
                        event = grade_key_policy.derive_exercise_scope(event, exercise_scope[0], exercise_scope[1])
                    key = grade_key_policy.classify(event)
                    score_aggregator.validate_value(kind, entry.value, max_points)
                    touched |= self._write(event, key, max_points)
                except GradingError as exc:
                    logger.warning(f"채점 항목 거절: student={entry.student_id} kind={kind.value} reason={exc.code} ({exc.message})")
                    result.outcomes.append(self._rejected(entry, kind, exc))
                    continue

                result.outcomes.append(EntryOutcome(student_id=entry.student_id, kind=kind, status=EntryStatus.APPLIED))
        finally:
            # 예기치 못한 에러로 중단돼도 이미 커밋된 항목의 종합 성적은 맞춰 둔다
            result.recomputed = len(recompute_many(self.db, touched))

        logger.info(
            f"일괄 채점 완료: applied={result.applied} skipped={result.skipped} "
            f"rejected={result.rejected} recomputed={result.recomputed}"
        )
        return result

    # ------------------------------------------------------
    # 내부 처리
    # ------------------------------------------------------
    def _check_exercise_scope(self, request: BulkGradeRequest, season, seasons) -> Tuple[Optional[GradingError], Optional[Tuple[int, int, float]]]:
        """
        연습문제 계층 검증
        - 반환: (에러, (과목 ID, 시즌 ID, 배점))
        - 에러는 배치를 중단하지 않고 각 항목의 거절 사유로 사용
        """
        if GradeKind(request.kind) != GradeKind.EXERCISE or request.exercise_id is None:
            return None, None

        scope = directory.load_exercise_scope(self.db, request.exercise_id)
        if scope is None:
            return ExerciseNotFound(request.exercise_id), None

        if scope.subject_id != request.subject_id:
            return SubjectMismatch(
                f"Exercise {scope.exercise_id} belongs to subject {scope.subject_id}, not {request.subject_id}",
                {"exercise_id": scope.exercise_id, "subject_id": request.subject_id},
            ), None

        exercise_season = season_resolver.resolve(scope.season_label, seasons)
        if exercise_season is None or exercise_season.id != season.id:
            return SubjectMismatch(
                f"Exercise {scope.exercise_id} is in season '{scope.season_label}', not '{request.season_label}'",
                {"exercise_id": scope.exercise_id, "season_label": request.season_label},
            ), None

        return None, (scope.subject_id, exercise_season.id, scope.degree)

    def _write(self, event: GradeEvent, key, max_points: Optional[float]) -> Set[CompositeKey]:
        """
        항목 단위 UPSERT + 커밋, 재계산이 필요한 종합 성적 키를 반환
        - 연습문제 단원이 다른 시즌으로 옮겨진 경우 이전 (과목, 시즌) 키도 포함
        - DB 에러는 해당 항목만 롤백하고 GradeWriteFailed 로 거절 (앞서 반영된 항목은 유지)
        """
        keys = {(event.student_id, event.subject_id, event.season_id)}
        try:
            if isinstance(key, grade_key_policy.ExerciseKey):
                previous = grade_repository.exercise_grade_scope(self.db, key.student_id, key.exercise_id)
                if previous is not None:
                    keys.add((event.student_id, *previous))
            grade_repository.upsert_event(self.db, event, key, max_points)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"성적 저장 실패: student={event.student_id} kind={GradeKind(event.kind).value} error={exc}")
            raise GradeWriteFailed(event.student_id, exc.__class__.__name__) from exc
        except Exception:
            self.db.rollback()
            raise
        return keys

    @staticmethod
    def _rejected(entry: BulkGradeEntry, kind: GradeKind, exc: GradingError) -> EntryOutcome:
        return EntryOutcome(
            student_id=entry.student_id,
            kind=kind,
            status=EntryStatus.REJECTED,
            reason=exc.code,
            message=exc.message,
        )


# ==========================================================
# 종합 성적 재계산 / 조회 (외부 공개 함수)
# ==========================================================

def recompute(db: Session, student_id: int, subject_id: int, season_id: int) -> Optional[CompositeGrade]:
    """이벤트 전체로부터 다시 계산해서 저장 (이벤트가 없으면 종합 성적 삭제)"""
    # 이벤트 읽기 전에 잠금: 동시에 도는 재계산이 오래된 이벤트 집합으로 덮어쓰지 않게 한다
    grade_repository.lock_student_grades(db, student_id)
    events = grade_repository.load_events(db, student_id, subject_id, season_id)
    if not events:
        grade_repository.delete_composite(db, student_id, subject_id, season_id)
        db.commit()
        return None

    composite = score_aggregator.aggregate(events)
    grade_repository.upsert_composite(db, composite)
    db.commit()
    return composite


def recompute_many(db: Session, keys: Iterable[CompositeKey]) -> List[CompositeKey]:
    done = []
    for student_id, subject_id, season_id in sorted(set(keys)):
        recompute(db, student_id, subject_id, season_id)
        done.append((student_id, subject_id, season_id))
    return done


def apply_bulk_grade(db: Session, request: BulkGradeRequest, graded_by: str) -> BulkGradeResult:
    return BulkGradeApplier(db).apply(request, graded_by)


def get_composite_grade(db: Session, student_id: int, subject_id: int, season_id: int) -> Optional[CompositeGrade]:
    return grade_repository.get_composite(db, student_id, subject_id, season_id)


def get_composite_grades_for_student(db: Session, student_id: int) -> List[CompositeGrade]:
    return grade_repository.list_composites_for_student(db, student_id)


def delete_grade_event(db: Session, record: str, grade_id: int) -> Optional[GradeEvent]:
    """이벤트 1건 삭제 후 해당 종합 성적 재계산"""
    event = grade_repository.delete_event(db, record, grade_id)
    if event is None:
        return None
    db.commit()
    recompute(db, event.student_id, event.subject_id, event.season_id)
    logger.info(f"성적 삭제: record={record} id={grade_id} student={event.student_id}")
    return event
