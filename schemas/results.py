from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Dict, List, Optional, Union


class LetterGrade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"


class PassStatus(str, Enum):
    PASSED = "Passed"
    FAILED = "Failed"
    NO_SCORE = "No Score"


# ==========================================================
# [계산 결과] 학생 1명의 최종 성적
# ==========================================================
class ComputedResult(BaseModel):
    student_id: int
    final_score: Optional[float] = None             # 반올림 전 값 (등급 판정에 사용)
    letter_grade: Optional[LetterGrade] = None      # No Score 이면 None
    pass_status: PassStatus = PassStatus.NO_SCORE
    type_averages: Dict[str, float] = Field(default_factory=dict)   # 평가유형 → 유형 평균
    subject_averages: Dict[str, float] = Field(default_factory=dict)  # 전체 과목 보기: 과목 키 → 과목 평균
    rank: Optional[int] = None                      # 반 내 석차 (No Score 는 None)

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[misc]
    @property
    def display_score(self) -> Optional[str]:
        """소수 둘째 자리 고정 문자열 (표시/직렬화 전용)"""
        if self.final_score is None:
            return None
        return f"{self.final_score:.2f}"

    @property
    def has_score(self) -> bool:
        return self.final_score is not None


# 전체 과목 보기의 열 묶음 (과목 하나 = 평가유형 여러 개)
class SubjectGroup(BaseModel):
    key: str                                        # subject_id (없으면 과목명)
    name: str                                       # 표시용 과목명
    types: List[str] = Field(default_factory=list)  # 정렬된 평가유형


class ClassStats(BaseModel):
    total: int = 0
    passed: int = 0
    failed: int = 0
    no_score: int = 0
    average: Optional[float] = None                 # 점수가 있는 학생들의 최종 점수 평균


# ==========================================================
# [발행용 스키마] POST /academic-results 본문
# ==========================================================
class PublishedResult(BaseModel):
    student_id: int
    score: float
    grade: LetterGrade
    result_type: str = "Average"


class PublishPayload(BaseModel):
    class_id: int
    subject_id: int
    academic_period: str
    results: List[PublishedResult]


class PublishRequest(BaseModel):
    subject_id: Union[int, str]                     # "all" 이면 발행 불가
    period_kind: str = "semester"
    period: Optional[str] = None
