import httpx
import logging
from typing import Any, Dict, List, Optional, Union

from config.settings import settings
from schemas.attendance import AttendanceRecord
from schemas.scores import AssessmentRecord
from schemas.students import Student
from services import ingest
from services.exceptions import NetworkError
from services.period_resolver import ResolvedPeriod

logger = logging.getLogger(__name__)

ALL_SUBJECTS = "all"


class BackendClient:
    """학교관리 백엔드 REST 클라이언트 (조회 + 성적 발행)"""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.BACKEND_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        # 테스트에서는 httpx.MockTransport 주입
        self.transport = transport

    async def _make_request(self, method: str, endpoint: str, **kwargs) -> Any:
        """공통 HTTP 요청 처리 - 전송/HTTP 오류는 NetworkError 로 통일 (재시도 없음)"""
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, headers=self.headers, **kwargs)
                response.raise_for_status()
                return response.json() if response.content else None
        except httpx.TimeoutException:
            logger.warning("백엔드 응답 시간 초과: %s %s", method, endpoint)
            raise NetworkError("Backend request timed out", context={"endpoint": endpoint})
        except httpx.HTTPStatusError as e:
            logger.warning("백엔드 오류 (HTTP %s): %s %s", e.response.status_code, method, endpoint)
            raise NetworkError(
                f"Backend error (HTTP {e.response.status_code}): {_error_message(e.response)}",
                upstream_status=e.response.status_code,
                context={"endpoint": endpoint},
            )
        except httpx.HTTPError as e:
            logger.warning("백엔드 연결 실패: %s %s (%s)", method, endpoint, e)
            raise NetworkError(f"Backend connection failed: {e}", context={"endpoint": endpoint})
        except ValueError:
            raise NetworkError("Backend returned a non-JSON response", context={"endpoint": endpoint})

    # ===============================================================
    # 조회
    # ===============================================================

    async def get_teacher_classes(self) -> List[dict]:
        """요청한 교사가 담당하는 반 목록"""
        return ingest.parse_classes(await self._make_request("GET", "/classes/teacher/me"))

    async def get_students(self, class_id: int) -> List[Student]:
        """반 명단"""
        payload = await self._make_request("GET", "/students", params={"class_id": class_id})
        return ingest.parse_roster(payload)

    async def get_scores(
        self,
        class_id: int,
        subject_id: Union[int, str] = ALL_SUBJECTS,
        period: Optional[ResolvedPeriod] = None,
    ) -> List[AssessmentRecord]:
        """평가 점수 원본 (월별 기간이면 date_from/date_to 포함)"""
        params: Dict[str, Any] = {"class_id": class_id}
        if str(subject_id) != ALL_SUBJECTS:
            params["subject_id"] = subject_id
        if period is not None:
            params.update(period.query_params())
        payload = await self._make_request("GET", "/scores", params=params)
        return ingest.parse_scores(payload)

    async def get_attendance(self, class_id: int) -> List[AttendanceRecord]:
        """반 전체 출결 원본"""
        payload = await self._make_request("GET", "/attendance", params={"class_id": class_id})
        return ingest.parse_attendance(payload)

    # ===============================================================
    # 발행
    # ===============================================================

    async def post_academic_results(self, payload: Dict[str, Any]) -> Any:
        """학기/월별 성적 발행 (서버 측 upsert)"""
        return await self._make_request("POST", "/academic-results", json=payload)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or body)
    return str(body)
