import asyncio

import httpx
import pytest

from schemas.periods import MonthlyPeriod, SemesterPeriod
from services.exceptions import StaleSelectionError, ValidationError
from services.report_loader import GuardRegistry, ReportLoader, Selection, SelectionGuard

STUDENTS = {"data": [{"id": 1, "first_name": "Dara", "last_name": "Sok"}]}


def test_selection_guard_only_accepts_latest_ticket():
    guard = SelectionGuard()
    first = guard.issue(Selection(class_id=1))
    second = guard.issue(Selection(class_id=2))

    assert not guard.is_current(first)
    assert guard.is_current(second)
    assert guard.accept(second, "ok") == "ok"
    with pytest.raises(StaleSelectionError):
        guard.accept(first, "late")


def test_monthly_load_sends_inclusive_bounds_and_drops_out_of_month_records(
    backend_client, fake_backend
):
    fake_backend.routes[("GET", "/students")] = STUDENTS
    fake_backend.routes[("GET", "/scores")] = [
        {"student_id": 1, "assessment_type": "Quiz", "score": 8, "date": "2024-02-29"},
        {"student_id": 1, "assessment_type": "Quiz", "score": 2, "date": "2024-03-01"},
        {"student_id": 1, "assessment_type": "Homework", "score": 6},
    ]
    selection = Selection(class_id=3, subject_id=12, period=MonthlyPeriod(year_month="2024-02"))

    snapshot = asyncio.run(ReportLoader(backend_client).load_scores(selection))

    params = fake_backend.calls[-1].url.params
    assert params["class_id"] == "3"
    assert params["subject_id"] == "12"
    assert params["date_from"] == "2024-02-01"
    assert params["date_to"] == "2024-02-29"
    assert [r.score for r in snapshot.records] == [8, 6]
    assert snapshot.period.label == "2024-02"


def test_all_subjects_omits_subject_param(backend_client, fake_backend):
    fake_backend.routes[("GET", "/students")] = STUDENTS
    fake_backend.routes[("GET", "/scores")] = []

    asyncio.run(
        ReportLoader(backend_client).load_scores(Selection(class_id=3, period=SemesterPeriod()))
    )

    params = fake_backend.calls[-1].url.params
    assert "subject_id" not in params
    assert "date_from" not in params


def test_invalid_month_fails_before_any_fetch(backend_client, fake_backend):
    loader = ReportLoader(backend_client)
    with pytest.raises(ValidationError):
        asyncio.run(loader.load_attendance(Selection(class_id=3, month="2024-13")))
    with pytest.raises(ValidationError):
        asyncio.run(
            loader.load_scores(Selection(class_id=3, period=MonthlyPeriod(year_month="March")))
        )
    assert fake_backend.calls == []


def test_result_of_superseded_selection_is_discarded(backend_client, fake_backend):
    guard = SelectionGuard()
    loader = ReportLoader(backend_client, guard=guard)

    def students_then_switch(request):
        # 조회 도중 사용자가 다른 반을 선택
        guard.issue(Selection(class_id=99))
        return httpx.Response(200, json=STUDENTS)

    fake_backend.routes[("GET", "/students")] = students_then_switch
    fake_backend.routes[("GET", "/attendance")] = []

    with pytest.raises(StaleSelectionError):
        asyncio.run(loader.load_attendance(Selection(class_id=3, month="2024-02")))


def test_overlapping_loads_keep_only_the_newest(backend_client, fake_backend):
    async def slow_students(request):
        await asyncio.sleep(0)
        return httpx.Response(200, json=STUDENTS)

    fake_backend.routes[("GET", "/students")] = slow_students
    fake_backend.routes[("GET", "/attendance")] = []
    loader = ReportLoader(backend_client)

    async def scenario():
        return await asyncio.gather(
            loader.load_attendance(Selection(class_id=3, month="2024-01")),
            loader.load_attendance(Selection(class_id=3, month="2024-02")),
            return_exceptions=True,
        )

    older, newer = asyncio.run(scenario())

    assert isinstance(older, StaleSelectionError)
    assert newer.selection.month == "2024-02"


def test_guard_registry_shares_guard_per_teacher_and_report_kind():
    registry = GuardRegistry()

    guard = registry.get("token-a", "attendance")
    assert registry.get("token-a", "attendance") is guard
    assert registry.get("token-a", "scores") is not guard
    assert registry.get("token-b", "attendance") is not guard

    # 다른 교사의 요청은 서로의 결과를 무효화하지 않는다
    ticket_a = guard.issue(Selection(class_id=1))
    registry.get("token-b", "attendance").issue(Selection(class_id=2))
    assert guard.is_current(ticket_a)
