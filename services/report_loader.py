"""
services/report_loader.py

선택(반 / 과목 / 기간)별 스냅샷 조회
- 조회마다 그 요청이 발행된 선택값으로 태그를 붙인다 (SelectionGuard)
- 조회가 끝났을 때 이미 새 선택이 발행되어 있으면 결과를 버린다 (StaleSelectionError)
- 가드는 교사(토큰) × 보고서 종류별로 요청 사이에 공유 (guard_registry)
- 스냅샷은 요청마다 새로 만든다. 계산 간 공유 상태 없음
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from schemas.attendance import AttendanceRecord
from schemas.periods import MonthlyPeriod, SemesterPeriod
from schemas.scores import AssessmentRecord
from schemas.students import Student
from services.backend_client import ALL_SUBJECTS, BackendClient
from services.exceptions import StaleSelectionError
from services.period_resolver import ResolvedPeriod, parse_year_month, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    class_id: int
    subject_id: Union[int, str] = ALL_SUBJECTS
    period: Optional[Union[SemesterPeriod, MonthlyPeriod]] = None
    month: Optional[str] = None          # 출결 보고서용 YYYY-MM


@dataclass(frozen=True)
class Ticket:
    generation: int
    selection: Selection


class SelectionGuard:
    """가장 최근에 발행된 선택만 결과를 반영할 수 있다"""

    def __init__(self):
        self._counter = itertools.count(1)
        self._latest: Optional[Ticket] = None

    def issue(self, selection: Selection) -> Ticket:
        ticket = Ticket(generation=next(self._counter), selection=selection)
        self._latest = ticket
        return ticket

    def is_current(self, ticket: Ticket) -> bool:
        return self._latest is not None and self._latest.generation == ticket.generation

    def accept(self, ticket: Ticket, value):
        if not self.is_current(ticket):
            logger.info("이전 선택의 조회 결과 폐기: %s", ticket.selection)
            raise StaleSelectionError(
                "Selection changed while the report was loading",
                {"class_id": ticket.selection.class_id},
            )
        return value


class GuardRegistry:
    """
    호출자(토큰) × 보고서 종류별 SelectionGuard 보관
    같은 교사가 보낸 요청끼리만 서로를 무효화한다 (프로세스 단위)
    """

    def __init__(self):
        self._guards: Dict[Tuple[str, str], SelectionGuard] = {}

    def get(self, owner: str, scope: str) -> SelectionGuard:
        key = (owner, scope)
        if key not in self._guards:
            self._guards[key] = SelectionGuard()
        return self._guards[key]


guard_registry = GuardRegistry()


@dataclass
class ScoreSnapshot:
    selection: Selection
    period: ResolvedPeriod
    roster: List[Student]
    records: List[AssessmentRecord] = field(default_factory=list)


@dataclass
class AttendanceSnapshot:
    selection: Selection
    roster: List[Student]
    records: List[AttendanceRecord] = field(default_factory=list)


class ReportLoader:
    def __init__(self, client: BackendClient, guard: Optional[SelectionGuard] = None):
        self.client = client
        self.guard = guard or SelectionGuard()

    async def load_scores(self, selection: Selection) -> ScoreSnapshot:
        # 기간 해석이 실패하면 네트워크 호출 없이 바로 실패
        resolved = resolve(selection.period or SemesterPeriod())
        ticket = self.guard.issue(selection)

        roster = await self.client.get_students(selection.class_id)
        records = await self.client.get_scores(selection.class_id, selection.subject_id, resolved)
        # 월별 기간은 백엔드가 걸러 줘도 날짜가 있는 레코드는 한 번 더 확인
        records = [r for r in records if r.date is None or resolved.matches(r.date)]

        snapshot = ScoreSnapshot(selection=selection, period=resolved, roster=roster, records=records)
        return self.guard.accept(ticket, snapshot)

    async def load_attendance(self, selection: Selection) -> AttendanceSnapshot:
        parse_year_month(selection.month or "")
        ticket = self.guard.issue(selection)

        roster = await self.client.get_students(selection.class_id)
        records = await self.client.get_attendance(selection.class_id)

        snapshot = AttendanceSnapshot(selection=selection, roster=roster, records=records)
        return self.guard.accept(ticket, snapshot)
