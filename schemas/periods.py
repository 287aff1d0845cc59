"""
schemas/periods.py

보고 기간(ReportingPeriod) 태그 유니온
- SemesterPeriod: "Semester 1" / "Semester 2" / "Full Year" (날짜 범위 없음, 라벨만 백엔드로 전달)
- MonthlyPeriod : "YYYY-MM" (해당 월 1일 ~ 말일로 해석)
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

SEMESTER_LABELS = ("Semester 1", "Semester 2", "Full Year")


class SemesterPeriod(BaseModel):
    kind: Literal["semester"] = "semester"
    label: Literal["Semester 1", "Semester 2", "Full Year"] = "Semester 1"

    model_config = ConfigDict(frozen=True)


class MonthlyPeriod(BaseModel):
    kind: Literal["monthly"] = "monthly"
    year_month: str = Field(..., description="조회 월 (예: 2024-02)")

    model_config = ConfigDict(frozen=True)


ReportingPeriod = Annotated[Union[SemesterPeriod, MonthlyPeriod], Field(discriminator="kind")]
