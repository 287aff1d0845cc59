import json
from datetime import date

import httpx
import pytest

from schemas.attendance import AttendanceRecord, AttendanceStatus
from schemas.scores import AssessmentRecord
from schemas.students import Student
from services.backend_client import BackendClient


def make_student(student_id, first="Dara", last="Sok", gender="Male", code=None):
    return Student(id=student_id, first_name=first, last_name=last, gender=gender, student_code=code)


def make_score(student_id, assessment_type, score, when=None, subject_id=None, subject_name=None):
    return AssessmentRecord(
        student_id=student_id,
        assessment_type=assessment_type,
        score=score,
        date=when,
        subject_id=subject_id,
        subject_name=subject_name,
    )


def make_attendance(student_id, when, status):
    return AttendanceRecord(student_id=student_id, date=when, status=AttendanceStatus(status))


@pytest.fixture
def roster():
    return [
        make_student(1, "Dara", "Sok", "Male", "S001"),
        make_student(2, "Sreyneang", "Chan", "Female", "S002"),
        make_student(3, "Vanna", "Keo", "Male", "S003"),
    ]


class FakeBackend:
    """경로별 JSON 응답을 돌려주고 호출 기록을 남기는 MockTransport 핸들러"""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        key = (request.method, request.url.path.replace("/api", "", 1))
        handler = self.routes.get(key)
        if handler is None:
            return httpx.Response(404, json={"message": f"no route {key}"})
        if callable(handler):
            return handler(request)
        return httpx.Response(200, json=handler)

    def sent_json(self, index=-1):
        return json.loads(self.calls[index].content)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def backend_client(fake_backend):
    return BackendClient(
        token="test-token",
        base_url="http://backend.test/api",
        transport=httpx.MockTransport(fake_backend),
    )


@pytest.fixture
def leap_day():
    return date(2024, 2, 29)
