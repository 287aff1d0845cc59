import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail, ErrorResponse
from services.exceptions import NetworkError, ReportError

logger = logging.getLogger(__name__)


def _error_body(code: str, message: str, context: dict = None) -> dict:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, context=context or None))
    return body.model_dump(mode="json", exclude_none=True)


def add_error_handlers(app: FastAPI):
    @app.exception_handler(ReportError)
    async def report_error_handler(request: Request, exc: ReportError):
        # 에러 종류(code)는 숨기지 않고 그대로 내려준다
        context = dict(exc.context)
        if isinstance(exc, NetworkError) and exc.upstream_status is not None:
            context["upstream_status"] = exc.upstream_status
        logger.warning("%s %s → %s: %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message, context),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("처리되지 않은 예외: %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", str(exc)),
        )
