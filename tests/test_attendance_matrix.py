from datetime import date

import pytest

from conftest import make_attendance, make_student
from schemas.attendance import AttendanceRecord, AttendanceStatus
from services.attendance_matrix import build, days_in_month
from services.exceptions import ValidationError


@pytest.mark.parametrize(
    "year_month,count",
    [("2024-02", 29), ("2023-02", 28), ("2024-04", 30), ("2024-01", 31), ("2100-02", 28), ("2000-02", 29)],
)
def test_days_in_month_uses_real_month_length(year_month, count):
    days = days_in_month(year_month)
    assert days == list(range(1, count + 1))


def test_build_sets_days_and_tallies(roster):
    records = [
        make_attendance(1, date(2024, 2, 1), "present"),
        make_attendance(1, date(2024, 2, 2), "late"),
        make_attendance(1, date(2024, 2, 29), "absent"),
        make_attendance(2, date(2024, 2, 5), "permission"),
    ]
    matrix = build(roster, "2024-02", records)

    assert list(matrix) == [1, 2, 3]
    assert matrix[1].days == {
        1: AttendanceStatus.PRESENT,
        2: AttendanceStatus.LATE,
        29: AttendanceStatus.ABSENT,
    }
    assert matrix[1].tallies[AttendanceStatus.PRESENT] == 1
    assert matrix[1].tallies[AttendanceStatus.LATE] == 1
    assert matrix[1].tallies[AttendanceStatus.ABSENT] == 1
    assert matrix[1].tallies[AttendanceStatus.PERMISSION] == 0
    assert matrix[2].days == {5: AttendanceStatus.PERMISSION}
    assert matrix[3].days == {}
    assert matrix[3].total_marked == 0


def test_records_from_other_months_are_ignored(roster):
    records = [
        make_attendance(1, date(2024, 1, 31), "absent"),
        make_attendance(1, date(2024, 3, 1), "absent"),
        make_attendance(1, date(2023, 2, 10), "absent"),
        make_attendance(1, date(2024, 2, 10), "present"),
    ]
    summary = build(roster, "2024-02", records)[1]

    assert summary.days == {10: AttendanceStatus.PRESENT}
    assert summary.tallies[AttendanceStatus.ABSENT] == 0


def test_tallies_always_match_day_grid(roster):
    statuses = ["present", "absent", "permission", "late"]
    records = [
        make_attendance(sid, date(2024, 4, day), statuses[(sid + day) % 4])
        for sid in (1, 2, 3)
        for day in range(1, 31, 2)
    ]
    for summary in build(roster, "2024-04", records).values():
        assert summary.total_marked == len(summary.days)
        for status in AttendanceStatus:
            assert summary.tallies[status] == sum(1 for s in summary.days.values() if s == status)


def test_duplicate_day_is_last_write_wins_and_keeps_tallies_consistent():
    roster = [make_student(1)]
    records = [
        make_attendance(1, date(2024, 5, 3), "absent"),
        make_attendance(1, date(2024, 5, 3), "present"),
    ]
    summary = build(roster, "2024-05", records)[1]

    assert summary.days == {3: AttendanceStatus.PRESENT}
    assert summary.tallies[AttendanceStatus.ABSENT] == 0
    assert summary.tallies[AttendanceStatus.PRESENT] == 1


def test_unknown_status_is_rejected():
    roster = [make_student(1)]
    bad = AttendanceRecord.model_construct(student_id=1, date=date(2024, 5, 3), status="sick")

    with pytest.raises(ValidationError) as exc:
        build(roster, "2024-05", [bad])
    assert exc.value.context["status"] == "sick"


def test_invalid_month_is_rejected(roster):
    with pytest.raises(ValidationError):
        build(roster, "2024-5", [])
