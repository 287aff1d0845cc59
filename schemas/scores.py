from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import date as date_type


# ✅ 평가 점수 원본 레코드 (0~10점 척도)
class AssessmentRecord(BaseModel):
    student_id: int                          # 학생 ID
    assessment_type: str                     # 평가 유형 (예: Midterm, Quiz) - 자유 입력
    score: float                             # 점수
    date: Optional[date_type] = None         # 평가 일자
    subject_id: Optional[int] = None         # 과목 ID
    subject_name: Optional[str] = None       # 과목명

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("assessment_type", mode="before")
    @classmethod
    def _strip_type(cls, v):
        # 앞뒤 공백 때문에 같은 유형이 둘로 갈라지지 않도록
        return str(v).strip() if v is not None else v

    @field_validator("date", mode="before")
    @classmethod
    def _date_part(cls, v):
        # "2024-02-10T00:00:00.000Z" 처럼 시각이 붙어 와도 날짜만 사용
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v
