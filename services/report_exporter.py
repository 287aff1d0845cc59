"""
services/report_exporter.py

계산 결과(ComputedResult / AttendanceSummary) → 고정 열 표

- 화면: TableModel (JSON 으로 그대로 내려감)
- 내보내기: TableModel → Document (가로 방향, 쪽 나눔, 열 너비 자동 맞춤) → PDF
            TableModel → Excel(.xlsx)
내보내기는 TableModel 의 셀 값을 그대로 쓴다. 다시 계산하지 않는다.
"""

import io
import re
from typing import Dict, List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from config.settings import settings
from schemas.attendance import AttendanceStatus, AttendanceSummary
from schemas.reports import Cell, Column, Document, DocumentColumn, DocumentPage, TableModel
from schemas.results import ComputedResult, SubjectGroup
from schemas.students import Student
from services.attendance_matrix import days_in_month
from services.exceptions import ValidationError
from services.pdf_service import pdf_service

# ✅ 상태 → 한 글자 코드 (화면/PDF/Excel 공통)
STATUS_GLYPHS: Dict[AttendanceStatus, str] = {
    AttendanceStatus.PRESENT: "I",
    AttendanceStatus.LATE: "L",
    AttendanceStatus.PERMISSION: "P",
    AttendanceStatus.ABSENT: "A",
}
# 요약 열 순서: Present, Late, Permission, Absent
SUMMARY_ORDER = (
    AttendanceStatus.PRESENT,
    AttendanceStatus.LATE,
    AttendanceStatus.PERMISSION,
    AttendanceStatus.ABSENT,
)
ATTENDANCE_LEGEND = "Legend: I = Present, L = Late, P = Permission, A = Absent"

# 가로 방향 기준 용지 폭(mm)
PAGE_WIDTHS_MM = {"A4": 297.0, "A3": 420.0, "Letter": 279.4}
PAGE_MARGIN_MM = 10.0

# 고정 열 너비(mm). 나머지 폭은 day/type 열이 나눠 가짐
FIXED_WIDTHS_MM = {
    "no": 10.0,
    "code": 18.0,
    "name": 35.0,
    "gender": 15.0,
    "score": 16.0,
    "grade": 13.0,
    "status": 20.0,
    "rank": 12.0,
}
SUMMARY_WIDTH_MM = 8.0


def safe_filename(*parts: str) -> str:
    name = "_".join(str(p) for p in parts if p not in (None, ""))
    return re.sub(r"[^\w\-]+", "_", name).strip("_")


def _fixed2(value: Optional[float]) -> str:
    return f"{value:.2f}" if value is not None else ""


def status_glyph(status: Optional[AttendanceStatus]) -> str:
    # 기록 없는 날은 빈 칸 (0 이나 '-' 는 상태로 오해될 수 있음)
    if status is None:
        return ""
    return STATUS_GLYPHS[status]


# ==========================================================
# [화면] 성적 표
# ==========================================================
def render_scores(
    roster: Sequence[Student],
    results: Dict[int, ComputedResult],
    types: Sequence[str],
    class_name: str,
    period_label: str,
    subject_name: Optional[str] = None,
    subjects: Optional[Sequence[SubjectGroup]] = None,
) -> TableModel:
    """
    subjects 가 주어지면 전체 과목 보기: 학번(ID) 열 + 과목별 평균 열
    (유형별 열 대신 과목마다 한 열, 값은 그 과목 유형 평균들의 평균)
    """
    columns = [Column(key="no", label="No")]
    if subjects is not None:
        columns.append(Column(key="code", label="ID"))
    columns += [
        Column(key="name", label="Student Name", align="left"),
        Column(key="gender", label="Gender"),
    ]
    if subjects is not None:
        columns += [Column(key=f"subject:{g.key}", label=g.name, kind="type") for g in subjects]
    else:
        columns += [Column(key=f"type:{t}", label=t, kind="type") for t in types]
    columns += [
        Column(key="score", label="Score", kind="summary"),
        Column(key="grade", label="Grade", kind="summary"),
        Column(key="status", label="Status", kind="summary"),
        Column(key="rank", label="Rank", kind="summary"),
    ]

    rows: List[List[Cell]] = []
    for index, student in enumerate(roster, start=1):
        result = results.get(student.id) or ComputedResult(student_id=student.id)
        row: List[Cell] = [index]
        if subjects is not None:
            row.append(student.student_code or student.id)
        row += [student.display_name, student.gender or ""]
        if subjects is not None:
            row += [_fixed2(result.subject_averages.get(g.key)) for g in subjects]
        else:
            row += [_fixed2(result.type_averages.get(t)) for t in types]
        row += [
            result.display_score or "",
            result.letter_grade.value if result.letter_grade else "",
            result.pass_status.value,
            result.rank if result.rank is not None else "",
        ]
        rows.append(row)

    subtitle = f"Class: {class_name} | Period: {period_label}"
    if subject_name:
        subtitle += f" | Subject: {subject_name}"
    return TableModel(
        title="Score Report",
        subtitle=subtitle,
        columns=columns,
        rows=rows,
        filename=safe_filename("scores", class_name, period_label),
    )


# ==========================================================
# [화면] 월별 출결 표
# ==========================================================
def sort_roster(roster: Sequence[Student]) -> List[Student]:
    return sorted(roster, key=lambda s: (s.last_name or "").lower())


def filter_roster(roster: Sequence[Student], search: Optional[str]) -> List[Student]:
    query = (search or "").strip().lower()
    if not query:
        return list(roster)
    return [
        s for s in roster
        if query in s.display_name.lower() or (s.student_code and query in s.student_code.lower())
    ]


def render_attendance(
    roster: Sequence[Student],
    summaries: Dict[int, AttendanceSummary],
    year_month: str,
    class_name: str,
    search: Optional[str] = None,
) -> TableModel:
    days = days_in_month(year_month)
    columns = [
        Column(key="no", label="No"),
        Column(key="name", label="Student Name", align="left"),
    ]
    columns += [Column(key=f"day_{d:02d}", label=f"{d:02d}", kind="day") for d in days]
    columns += [
        Column(key=f"total_{s.value}", label=STATUS_GLYPHS[s], kind="summary") for s in SUMMARY_ORDER
    ]

    rows: List[List[Cell]] = []
    for index, student in enumerate(filter_roster(sort_roster(roster), search), start=1):
        summary = summaries.get(student.id) or AttendanceSummary(student_id=student.id)
        row: List[Cell] = [index, student.display_name]
        row += [status_glyph(summary.days.get(d)) for d in days]
        row += [summary.tallies.get(s, 0) for s in SUMMARY_ORDER]
        rows.append(row)

    return TableModel(
        title="Monthly Attendance Report",
        subtitle=f"Class: {class_name} | Month: {year_month}",
        legend=ATTENDANCE_LEGEND,
        columns=columns,
        rows=rows,
        filename=safe_filename("attendance", class_name, year_month),
    )


# ==========================================================
# [내보내기] 쪽 나눔 문서
# ==========================================================
def _base_width(column: Column) -> float:
    if column.key.startswith("total_"):
        return SUMMARY_WIDTH_MM
    return FIXED_WIDTHS_MM.get(column.key, 0.0)


def _fit_widths(columns: Sequence[Column], usable_mm: float) -> List[float]:
    flexible_count = sum(1 for c in columns if c.kind in ("day", "type"))
    fixed_total = sum(_base_width(c) for c in columns if c.kind not in ("day", "type"))
    remaining = max(usable_mm - fixed_total, 0.0)

    widths = []
    for c in columns:
        if c.kind in ("day", "type"):
            widths.append(round(remaining / flexible_count, 2))
        elif c.key == "name" and not flexible_count:
            # 가변 열이 없으면 남는 폭은 이름 열로
            widths.append(round(_base_width(c) + remaining, 2))
        else:
            widths.append(_base_width(c))
    return widths


def paginate(
    table: TableModel,
    rows_per_page: Optional[int] = None,
    page_size: Optional[str] = None,
) -> Document:
    rows_per_page = max(1, rows_per_page or settings.REPORT_ROWS_PER_PAGE)
    page_size = page_size or settings.REPORT_PAGE_SIZE
    usable_mm = PAGE_WIDTHS_MM[page_size] - 2 * PAGE_MARGIN_MM

    widths = _fit_widths(table.columns, usable_mm)
    columns = [
        DocumentColumn(**c.model_dump(), width_mm=w) for c, w in zip(table.columns, widths)
    ]

    chunks = [table.rows[i:i + rows_per_page] for i in range(0, len(table.rows), rows_per_page)]
    pages = [DocumentPage(number=n, rows=chunk) for n, chunk in enumerate(chunks or [[]], start=1)]

    # 31일 열이 들어가는 출결표는 글자를 작게
    has_days = any(c.kind == "day" for c in table.columns)
    return Document(
        title=table.title,
        subtitle=table.subtitle,
        legend=table.legend,
        page_size=f"{page_size} landscape",
        font_size_pt=6 if has_days else 8,
        columns=columns,
        pages=pages,
        filename=table.filename,
    )


def to_xlsx(table: TableModel) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = table.title[:31]

    last_col = get_column_letter(len(table.columns))
    ws.merge_cells(f"A1:{last_col}1")
    ws["A1"] = table.title
    ws["A1"].font = Font(bold=True, size=12)
    ws["A1"].alignment = Alignment(horizontal="center")
    ws.append([table.subtitle or ""])
    ws.append([c.label for c in table.columns])
    for cell in ws[3]:
        cell.font = Font(bold=True)

    for row in table.rows:
        ws.append(list(row))

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


# ==========================================================
# [내보내기] 형식별 파일 생성
# ==========================================================
MEDIA_TYPES = {
    "pdf": "application/pdf",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def export_file(table: TableModel, fmt: str) -> Tuple[bytes, str, str]:
    """TableModel → (내용, media type, 파일명)"""
    if fmt == "pdf":
        content = pdf_service.render_document(paginate(table))
    elif fmt == "xlsx":
        content = to_xlsx(table)
    else:
        raise ValidationError(f"Unsupported export format '{fmt}'", {"allowed": sorted(MEDIA_TYPES)})
    return content, MEDIA_TYPES[fmt], f"{table.filename}.{fmt}"
