"""
services/attendance_matrix.py

명단 + 월(YYYY-MM) + 일별 출결 원본 → 학생별 (일 → 상태) 격자와 상태별 합계

- 열(day)은 해당 월의 실제 일수(28/29/30/31)만큼
- 다른 달의 기록은 무시 (다른 칸에 잘못 들어가지 않게)
- 합계는 격자에 들어간 칸 수와 항상 일치
"""

import calendar
import logging
from typing import Dict, Iterable, List, Sequence

from schemas.attendance import AttendanceRecord, AttendanceStatus, AttendanceSummary
from schemas.students import Student
from services.exceptions import ValidationError
from services.period_resolver import parse_year_month

logger = logging.getLogger(__name__)


def days_in_month(year_month: str) -> List[int]:
    year, month = parse_year_month(year_month)
    return list(range(1, calendar.monthrange(year, month)[1] + 1))


def _checked_status(record: AttendanceRecord, index: int) -> AttendanceStatus:
    status = record.status
    if isinstance(status, AttendanceStatus):
        return status
    try:
        return AttendanceStatus(status)
    except ValueError:
        raise ValidationError(
            f"Unknown attendance status '{status}' for student {record.student_id}",
            {"student_id": record.student_id, "record_index": index, "status": status},
        )


def build(
    roster: Sequence[Student],
    year_month: str,
    records: Iterable[AttendanceRecord],
) -> Dict[int, AttendanceSummary]:
    year, month = parse_year_month(year_month)
    summaries: Dict[int, AttendanceSummary] = {
        student.id: AttendanceSummary(student_id=student.id) for student in roster
    }

    duplicates = 0
    for index, record in enumerate(records):
        status = _checked_status(record, index)
        summary = summaries.get(record.student_id)
        if summary is None:
            continue
        if record.date.year != year or record.date.month != month:
            continue

        day = record.date.day
        previous = summary.days.get(day)
        if previous is not None:
            # 같은 (학생, 날짜) 중복 → 나중 기록 우선, 이전 합계는 되돌림
            duplicates += 1
            summary.tallies[previous] -= 1
        summary.days[day] = status
        summary.tallies[status] += 1

    if duplicates:
        logger.warning("%s 출결 중복 기록 %d건: 마지막 기록으로 덮어씀", year_month, duplicates)
    logger.info("출결 매트릭스 생성: %s, 학생 %d명", year_month, len(summaries))
    return summaries

