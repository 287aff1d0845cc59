from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict
from datetime import date as date_type


# ✅ 출결 상태 - 닫힌 집합 (보고서 요약 열이 정확히 4개)
class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    PERMISSION = "permission"
    LATE = "late"


class AttendanceRecord(BaseModel):
    student_id: int                          # 학생 ID
    date: date_type                          # 날짜
    status: AttendanceStatus                 # 출결 상태

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("date", mode="before")
    @classmethod
    def _date_part(cls, v):
        # "2024-02-10T00:00:00.000Z" 처럼 시각이 붙어 와도 날짜만 사용
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


# ==========================================================
# [출력용 스키마] 월별 출결 매트릭스
# ==========================================================
class AttendanceSummary(BaseModel):
    student_id: int
    days: Dict[int, AttendanceStatus] = Field(default_factory=dict)   # 일(day) → 상태, 기록 없는 날은 키 없음
    tallies: Dict[AttendanceStatus, int] = Field(
        default_factory=lambda: {status: 0 for status in AttendanceStatus}
    )

    @property
    def total_marked(self) -> int:
        return sum(self.tallies.values())
