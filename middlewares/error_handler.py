import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail, ErrorResponse
from services.grading.errors import GradingError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: str, extra=None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, extra=extra or {}), latency_ms=0)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def add_error_handlers(app: FastAPI):
    # ✅ 채점 코어 에러 (SeasonNotResolved 등 배치 단위 에러)
    @app.exception_handler(GradingError)
    async def grading_exception_handler(request: Request, exc: GradingError):
        logger.warning(f"{request.method} {request.url.path} → {exc.code}: {exc.message}")
        return _error_response(exc.status_code, exc.code, exc.message, exc.extra)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"처리되지 않은 예외: {request.method} {request.url.path}")
        return _error_response(500, "INTERNAL_ERROR", str(exc))
