from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from typing import Literal, Optional
from urllib.parse import quote

from dependencies.security import get_backend_client, selection_guard
from services.backend_client import BackendClient
from services.report_builder import build_attendance_report
from services.report_exporter import export_file
from services.report_loader import ReportLoader, Selection, SelectionGuard

router = APIRouter(prefix="/attendance-report", tags=["attendance report"])


async def _attendance_report(
    client: BackendClient,
    guard: SelectionGuard,
    class_id: int,
    month: str,
    class_name: Optional[str],
    search: Optional[str],
):
    selection = Selection(class_id=class_id, month=month)
    snapshot = await ReportLoader(client, guard).load_attendance(selection)
    return build_attendance_report(snapshot, class_name or str(class_id), search)


# ==========================================================
# [월별 출결] 학생 × 일 매트릭스 + 상태별 합계
# ==========================================================
@router.get("/{class_id}")
async def get_attendance_report(
    class_id: int,
    month: str = Query(..., description="조회 월 (예: 2024-02)"),
    search: Optional[str] = Query(None, description="이름/학번 검색"),
    class_name: Optional[str] = Query(None, description="보고서 표시용 반 이름"),
    client: BackendClient = Depends(get_backend_client),
    guard: SelectionGuard = Depends(selection_guard("attendance")),
):
    report = await _attendance_report(client, guard, class_id, month, class_name, search)
    return {
        "success": True,
        "data": report.model_dump(mode="json"),
        "message": f"{month} attendance report generated",
    }


# ==========================================================
# [내보내기] 가로 방향 PDF / Excel
# ==========================================================
@router.get("/{class_id}/export")
async def export_attendance_report(
    class_id: int,
    month: str = Query(...),
    format: Literal["pdf", "xlsx"] = Query("pdf"),
    search: Optional[str] = Query(None),
    class_name: Optional[str] = Query(None),
    client: BackendClient = Depends(get_backend_client),
    guard: SelectionGuard = Depends(selection_guard("attendance-export")),
):
    report = await _attendance_report(client, guard, class_id, month, class_name, search)
    content, media_type, filename = export_file(report.table, format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )
