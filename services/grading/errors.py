"""
채점 코어 에러 정의

- 모든 에러는 GradingError 하위 클래스이며 고정된 code 를 가진다.
- SeasonNotResolved 만 배치 전체를 중단시키고, 나머지는 해당 학생 항목만 거절한다.
"""
from typing import Any, Dict, Optional


class GradingError(Exception):
    """채점 코어 공통 에러"""

    code = "GRADING_ERROR"
    status_code = 400

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class SeasonNotResolved(GradingError):
    """시즌 라벨을 어떤 시즌으로도 해석할 수 없음 (배치 전체 거절)"""

    code = "SEASON_NOT_RESOLVED"
    status_code = 422

    def __init__(self, label: Optional[str]):
        super().__init__(f"Season label '{label}' does not match any season", {"season_label": label})
        self.label = label


class InvalidGradeShape(GradingError):
    """채점 종류와 monthly_exam_number / exercise_id 조합 오류"""

    code = "INVALID_GRADE_SHAPE"


class OutOfRangeValue(GradingError):
    """점수가 항목 상한/하한을 벗어남 (절대 자동 보정하지 않음)"""

    code = "OUT_OF_RANGE_VALUE"

    def __init__(self, kind: str, value: float, maximum: float):
        super().__init__(
            f"Grade {value} is outside the allowed range 0-{maximum:g} for {kind}",
            {"kind": kind, "value": value, "max": maximum},
        )


class SubjectMismatch(GradingError):
    """연습문제가 요청한 과목/시즌 계층에 속하지 않음"""

    code = "SUBJECT_MISMATCH"


class StudentNotFound(GradingError):
    code = "STUDENT_NOT_FOUND"

    def __init__(self, student_id: int):
        super().__init__(f"Student '{student_id}' not found", {"student_id": student_id})


class ExerciseNotFound(GradingError):
    code = "EXERCISE_NOT_FOUND"

    def __init__(self, exercise_id: Optional[int]):
        super().__init__(f"Exercise '{exercise_id}' not found", {"exercise_id": exercise_id})


class BatchTimeout(GradingError):
    """배치 제한 시간 초과 후 처리하지 못한 항목"""

    code = "TIMEOUT"
    status_code = 504

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"Bulk grading exceeded {timeout_seconds:g}s before this entry was applied",
            {"timeout_seconds": timeout_seconds},
        )


class GradeWriteFailed(GradingError):
    """DB 쓰기 실패 (해당 항목만 롤백, 나머지 항목은 계속 진행)"""

    code = "WRITE_FAILED"
    status_code = 503

    def __init__(self, student_id: int, reason: str):
        super().__init__(f"Grade for student '{student_id}' could not be saved: {reason}", {"student_id": student_id})
