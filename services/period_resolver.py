"""
services/period_resolver.py

사용자가 고른 보고 기간을 구체적인 날짜 조건으로 바꾼다.
- 월별: 해당 월 1일 ~ 말일(윤년 2월 포함)을 포함 범위로 매칭
- 학기: 로컬 날짜 필터 없음. 라벨은 백엔드가 이미 붙여 준 값을 그대로 통과시킨다.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple, Union

from schemas.periods import SEMESTER_LABELS, MonthlyPeriod, SemesterPeriod
from services.exceptions import ValidationError

_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True)
class ResolvedPeriod:
    label: str
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    def matches(self, record_date: Optional[date]) -> bool:
        if self.date_from is None or self.date_to is None:
            return True
        if record_date is None:
            return False
        return self.date_from <= record_date <= self.date_to

    def query_params(self) -> dict:
        """/scores 조회용 date_from/date_to (학기는 빈 dict)"""
        if self.date_from is None or self.date_to is None:
            return {}
        return {"date_from": self.date_from.isoformat(), "date_to": self.date_to.isoformat()}


def parse_year_month(year_month: str) -> Tuple[int, int]:
    m = _YEAR_MONTH_RE.match(str(year_month or "").strip())
    if not m:
        raise ValidationError(
            f"Invalid month '{year_month}', expected YYYY-MM",
            {"year_month": year_month},
        )
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise ValidationError(
            f"Invalid month '{year_month}', expected YYYY-MM",
            {"year_month": year_month},
        )
    return year, month


def month_bounds(year_month: str) -> Tuple[date, date]:
    year, month = parse_year_month(year_month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def resolve(period: Union[SemesterPeriod, MonthlyPeriod]) -> ResolvedPeriod:
    if isinstance(period, MonthlyPeriod):
        first, last = month_bounds(period.year_month)
        return ResolvedPeriod(label=period.year_month, date_from=first, date_to=last)
    if isinstance(period, SemesterPeriod):
        return ResolvedPeriod(label=period.label)
    raise ValidationError(f"Unresolved reporting period: {period!r}")


def parse_period(kind: str, value: Optional[str]) -> Union[SemesterPeriod, MonthlyPeriod]:
    """셀렉터 문자열(kind, value) → ReportingPeriod"""
    kind = (kind or "").strip().lower()
    if kind == "semester":
        label = value or SEMESTER_LABELS[0]
        if label not in SEMESTER_LABELS:
            raise ValidationError(
                f"Unknown semester label '{label}'",
                {"allowed": list(SEMESTER_LABELS)},
            )
        return SemesterPeriod(label=label)
    if kind == "monthly":
        # 형식 검증을 먼저 해서 잘못된 값이 MonthlyPeriod 에 들어가지 않게
        parse_year_month(value or "")
        return MonthlyPeriod(year_month=value.strip())
    raise ValidationError(f"Unknown period kind '{kind}'", {"allowed": ["semester", "monthly"]})
