"""
services/ingest.py

백엔드 응답 → 엔티티 스키마 정규화 (조회 직후 한 번만)
- 응답 모양이 제각각: [...] / {"data": [...]} / {"data": {"data": [...]}}
- 필드 누락 / 숫자가 아닌 점수 → DataShapeError (어느 학생/레코드인지 포함)
- 허용되지 않는 출결 상태 → ValidationError
"""

import logging
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from schemas.attendance import AttendanceRecord, AttendanceStatus
from schemas.scores import AssessmentRecord
from schemas.students import Student
from services.exceptions import DataShapeError, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def unwrap_list(payload: Any) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            return data["data"]
        if data is None and not payload:
            return []
    raise DataShapeError(
        "Unexpected response shape, expected a list of records",
        {"type": type(payload).__name__},
    )


def _first_error(e: PydanticValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


def _parse_all(model: Type[M], payload: Any, kind: str) -> List[M]:
    items = []
    for index, raw in enumerate(unwrap_list(payload)):
        try:
            items.append(model.model_validate(raw))
        except PydanticValidationError as e:
            student_id = raw.get("student_id") if isinstance(raw, dict) else None
            raise DataShapeError(
                f"Malformed {kind} record at index {index}: {_first_error(e)}",
                {"kind": kind, "record_index": index, "student_id": student_id},
            )
    logger.debug("%s %d건 정규화", kind, len(items))
    return items


def parse_roster(payload: Any) -> List[Student]:
    return _parse_all(Student, payload, "student")


def parse_scores(payload: Any) -> List[AssessmentRecord]:
    return _parse_all(AssessmentRecord, payload, "score")


def parse_attendance(payload: Any) -> List[AttendanceRecord]:
    allowed = {s.value for s in AttendanceStatus}
    rows = unwrap_list(payload)
    for index, raw in enumerate(rows):
        status = raw.get("status") if isinstance(raw, dict) else None
        if status is not None and status not in allowed:
            raise ValidationError(
                f"Unknown attendance status '{status}'",
                {"record_index": index, "student_id": raw.get("student_id"), "allowed": sorted(allowed)},
            )
    return _parse_all(AttendanceRecord, rows, "attendance")


def parse_classes(payload: Any) -> List[dict]:
    return [c for c in unwrap_list(payload) if isinstance(c, dict)]
