"""
services/result_publisher.py

계산 완료된 성적(반 / 과목 / 기간 단위)을 POST /academic-results 본문으로 직렬화해서 전송
- '전체 과목' 집계는 발행 불가 → 네트워크 호출 전에 ValidationError
- 서버가 upsert 하므로 같은 기간을 다시 발행하면 덮어씀. 클라이언트는 비교/중복 제거 안 함
- 백엔드 실패는 NetworkError 그대로 호출자에게 (자동 재시도 없음)
"""

import logging
from typing import Any, Dict, Union

from schemas.periods import MonthlyPeriod, SemesterPeriod
from schemas.results import ComputedResult, PublishedResult, PublishPayload
from services.backend_client import ALL_SUBJECTS, BackendClient
from services.exceptions import ValidationError
from services.period_resolver import resolve

logger = logging.getLogger(__name__)

RESULT_TYPE = "Average"


def require_concrete_subject(subject_id: Union[int, str, None]) -> int:
    if subject_id is None or str(subject_id).strip().lower() in ("", ALL_SUBJECTS):
        raise ValidationError(
            "Cannot publish an 'all subjects' result. Select a specific subject.",
            {"subject_id": subject_id},
        )
    try:
        return int(subject_id)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid subject id '{subject_id}'", {"subject_id": subject_id})


def build_payload(
    class_id: int,
    subject_id: Union[int, str, None],
    period: Union[SemesterPeriod, MonthlyPeriod],
    results: Dict[int, ComputedResult],
) -> PublishPayload:
    concrete_subject = require_concrete_subject(subject_id)
    resolved = resolve(period)
    if not results:
        raise ValidationError("No results to publish. Calculate first.")

    entries = [
        PublishedResult(
            student_id=student_id,
            score=round(result.final_score, 2),
            grade=result.letter_grade,
            result_type=RESULT_TYPE,
        )
        # No Score 학생은 저장할 점수가 없으므로 제외
        for student_id, result in results.items()
        if result.has_score
    ]
    if not entries:
        raise ValidationError("No scored results to publish", {"class_id": class_id})
    return PublishPayload(
        class_id=class_id,
        subject_id=concrete_subject,
        academic_period=resolved.label,
        results=entries,
    )


async def publish(
    client: BackendClient,
    class_id: int,
    subject_id: Union[int, str, None],
    period: Union[SemesterPeriod, MonthlyPeriod],
    results: Dict[int, ComputedResult],
) -> Any:
    payload = build_payload(class_id, subject_id, period, results)
    logger.info(
        "성적 발행: class=%s subject=%s period=%s (%d명)",
        payload.class_id, payload.subject_id, payload.academic_period, len(payload.results),
    )
    return await client.post_academic_results(payload.model_dump(mode="json"))
