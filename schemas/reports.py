from pydantic import BaseModel, Field
from typing import List, Literal, Optional, Union

from schemas.attendance import AttendanceSummary
from schemas.results import ClassStats, ComputedResult, SubjectGroup

Cell = Union[str, int]


# ==========================================================
# [화면용] 고정 열 표 모델
# ==========================================================
class Column(BaseModel):
    key: str                                        # 열 식별자 (예: "no", "name", "day_01", "type:Quiz")
    label: str                                      # 머리글
    kind: Literal["fixed", "day", "type", "summary"] = "fixed"
    align: Literal["left", "center", "right"] = "center"


class TableModel(BaseModel):
    title: str
    subtitle: Optional[str] = None
    legend: Optional[str] = None
    columns: List[Column]
    rows: List[List[Cell]] = Field(default_factory=list)   # 각 행 길이 == len(columns)
    filename: str                                   # 확장자 없는 내보내기 파일명


# ==========================================================
# [내보내기용] 쪽 나눔 문서 모델 (PDF)
# ==========================================================
class DocumentColumn(Column):
    width_mm: float                                 # 페이지 폭에 맞춘 열 너비


class DocumentPage(BaseModel):
    number: int
    rows: List[List[Cell]]


class Document(BaseModel):
    title: str
    subtitle: Optional[str] = None
    legend: Optional[str] = None
    page_size: str = "A4 landscape"
    font_size_pt: float = 8
    columns: List[DocumentColumn]
    pages: List[DocumentPage]
    filename: str

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def all_rows(self) -> List[List[Cell]]:
        return [row for page in self.pages for row in page.rows]


# ==========================================================
# [응답용] 보고서 묶음 (계산 결과 + 화면 표)
# ==========================================================
class ScoreReport(BaseModel):
    class_id: int
    subject_id: Union[int, str]
    academic_period: str
    assessment_types: List[str]
    results: List[ComputedResult]
    subjects: List[SubjectGroup] = Field(default_factory=list)   # 전체 과목 보기일 때만
    stats: ClassStats
    table: TableModel


class AttendanceReport(BaseModel):
    class_id: int
    month: str
    days: List[int]
    summaries: List[AttendanceSummary]
    table: TableModel
