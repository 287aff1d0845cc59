from pydantic import BaseModel, ConfigDict, model_validator
from typing import Optional
from datetime import date


# ✅ 명단(roster) 한 명 - 한 번의 계산 동안 변경되지 않는 스냅샷
class Student(BaseModel):
    id: int                                  # 학생 ID (백엔드에 따라 student_id 로 오기도 함)
    first_name: str = ""                     # 이름
    last_name: str = ""                      # 성
    gender: Optional[str] = None             # 성별
    student_code: Optional[str] = None       # 학번
    enrollment_date: Optional[date] = None   # 입학일
    date_of_birth: Optional[date] = None     # 생년월일

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _normalize_id(cls, data):
        # {"student_id": 3} / {"id": 3} 두 형태 모두 허용
        if isinstance(data, dict) and data.get("id") is None and data.get("student_id") is not None:
            data = {**data, "id": data["student_id"]}
        return data

    @property
    def display_name(self) -> str:
        return f"{self.last_name} {self.first_name}".strip()
