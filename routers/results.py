from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from typing import Literal, Optional, Union
from urllib.parse import quote

from dependencies.security import get_backend_client, selection_guard
from schemas.results import PublishRequest
from services import result_publisher, score_aggregator
from services.backend_client import ALL_SUBJECTS, BackendClient
from services.exceptions import ValidationError
from services.period_resolver import parse_period
from services.report_builder import build_score_report
from services.report_exporter import export_file
from services.report_loader import ReportLoader, Selection, SelectionGuard

router = APIRouter(prefix="/results", tags=["results"])


def _subject(subject_id: str) -> Union[int, str]:
    if str(subject_id).strip().lower() == ALL_SUBJECTS:
        return ALL_SUBJECTS
    try:
        return int(subject_id)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid subject id '{subject_id}'", {"subject_id": subject_id})


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


async def _score_report(
    client: BackendClient,
    guard: SelectionGuard,
    class_id: int,
    subject_id: str,
    period_kind: str,
    period: Optional[str],
    class_name: Optional[str],
    subject_name: Optional[str],
):
    selection = Selection(
        class_id=class_id,
        subject_id=_subject(subject_id),
        period=parse_period(period_kind, period),
    )
    snapshot = await ReportLoader(client, guard).load_scores(selection)
    return build_score_report(snapshot, class_name or str(class_id), subject_name)


# ==========================================================
# [계산] 반 성적 산출 (유형 평균 → 최종 점수 → 등급/합격)
# ==========================================================
@router.get("/{class_id}")
async def calculate_results(
    class_id: int,
    subject_id: str = Query(ALL_SUBJECTS, description="과목 ID 또는 all"),
    period_kind: str = Query("semester", description="semester | monthly"),
    period: Optional[str] = Query(None, description="Semester 1 / Semester 2 / Full Year 또는 YYYY-MM"),
    class_name: Optional[str] = Query(None, description="보고서 표시용 반 이름"),
    subject_name: Optional[str] = Query(None, description="보고서 표시용 과목명"),
    client: BackendClient = Depends(get_backend_client),
    guard: SelectionGuard = Depends(selection_guard("scores")),
):
    report = await _score_report(
        client, guard, class_id, subject_id, period_kind, period, class_name, subject_name
    )
    return {
        "success": True,
        "data": report.model_dump(mode="json"),
        "message": "Results calculated successfully",
    }


# ==========================================================
# [내보내기] PDF / Excel
# ==========================================================
@router.get("/{class_id}/export")
async def export_results(
    class_id: int,
    format: Literal["pdf", "xlsx"] = Query("pdf"),
    subject_id: str = Query(ALL_SUBJECTS),
    period_kind: str = Query("semester"),
    period: Optional[str] = Query(None),
    class_name: Optional[str] = Query(None),
    subject_name: Optional[str] = Query(None),
    client: BackendClient = Depends(get_backend_client),
    guard: SelectionGuard = Depends(selection_guard("scores-export")),
):
    report = await _score_report(
        client, guard, class_id, subject_id, period_kind, period, class_name, subject_name
    )
    return _attachment(*export_file(report.table, format))


# ==========================================================
# [발행] 과목 단위 성적 저장 (POST /academic-results)
# ==========================================================
@router.post("/{class_id}/publish")
async def publish_results(
    class_id: int,
    req: PublishRequest,
    client: BackendClient = Depends(get_backend_client),
    guard: SelectionGuard = Depends(selection_guard("publish")),
):
    # '전체 과목'이면 조회/전송 전에 바로 거절
    subject_id = result_publisher.require_concrete_subject(req.subject_id)
    period = parse_period(req.period_kind, req.period)

    snapshot = await ReportLoader(client, guard).load_scores(
        Selection(class_id=class_id, subject_id=subject_id, period=period)
    )
    results = score_aggregator.aggregate(snapshot.roster, snapshot.records)
    backend_response = await result_publisher.publish(client, class_id, subject_id, period, results)

    return {
        "success": True,
        "data": {
            "class_id": class_id,
            "subject_id": subject_id,
            "academic_period": snapshot.period.label,
            "published": sum(1 for r in results.values() if r.has_score),
            "skipped_no_score": sum(1 for r in results.values() if not r.has_score),
            "backend": backend_response,
        },
        "message": "Results published successfully",
    }
