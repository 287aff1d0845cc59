"""
services/exceptions.py

보고서 계산/출력/발행 과정에서 발생하는 예외 모음.
- 계산 컴포넌트는 예외를 삼키지 않고 그대로 올린다 (부분 집계 금지).
- 전역 에러 핸들러(middlewares/error_handler.py)가 status_code/code 로 응답을 만든다.
"""

from typing import Any, Dict, Optional


class ReportError(Exception):
    """보고서 서비스 예외의 기본 클래스"""

    status_code: int = 500
    code: str = "REPORT_ERROR"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ValidationError(ReportError):
    """잘못된 입력 (기간 형식, '전체 과목' 발행, 허용되지 않는 출결 상태 등)"""

    status_code = 422
    code = "VALIDATION_ERROR"


class DataShapeError(ReportError):
    """백엔드에서 받은 레코드의 필드 누락 / 숫자가 아닌 점수"""

    status_code = 422
    code = "DATA_SHAPE_ERROR"


class NetworkError(ReportError):
    """백엔드 요청 실패 (타임아웃, HTTP 오류, 연결 실패)"""

    status_code = 502
    code = "NETWORK_ERROR"

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.upstream_status = upstream_status


class StaleSelectionError(ReportError):
    """조회 도중 선택(반/기간)이 바뀌어 결과를 버려야 하는 경우"""

    status_code = 409
    code = "STALE_SELECTION"
