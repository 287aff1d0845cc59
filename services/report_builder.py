"""
services/report_builder.py

스냅샷 → 계산 → 화면 표 까지 한 번에
(라우터는 이 함수들만 호출하고, 내보내기는 여기서 만든 TableModel 을 그대로 사용)
"""

from typing import Optional

from schemas.reports import AttendanceReport, ScoreReport
from services import attendance_matrix, report_exporter, score_aggregator
from services.backend_client import ALL_SUBJECTS
from services.report_loader import AttendanceSnapshot, ScoreSnapshot


def build_score_report(
    snapshot: ScoreSnapshot,
    class_name: str,
    subject_name: Optional[str] = None,
) -> ScoreReport:
    # 전체 과목이면 (과목, 유형) 묶음 + 과목별 열
    by_subject = str(snapshot.selection.subject_id).lower() == ALL_SUBJECTS
    results = score_aggregator.aggregate(snapshot.roster, snapshot.records, by_subject=by_subject)
    results = score_aggregator.rank_results(results)
    types = score_aggregator.assessment_types(snapshot.records, by_subject=by_subject)
    subjects = score_aggregator.subject_groups(snapshot.records) if by_subject else None

    table = report_exporter.render_scores(
        snapshot.roster,
        results,
        types,
        class_name=class_name,
        period_label=snapshot.period.label,
        subject_name=subject_name,
        subjects=subjects,
    )
    return ScoreReport(
        class_id=snapshot.selection.class_id,
        subject_id=snapshot.selection.subject_id,
        academic_period=snapshot.period.label,
        assessment_types=types,
        subjects=subjects or [],
        results=list(results.values()),
        stats=score_aggregator.class_stats(results),
        table=table,
    )


def build_attendance_report(
    snapshot: AttendanceSnapshot,
    class_name: str,
    search: Optional[str] = None,
) -> AttendanceReport:
    month = snapshot.selection.month
    summaries = attendance_matrix.build(snapshot.roster, month, snapshot.records)
    table = report_exporter.render_attendance(
        snapshot.roster, summaries, month, class_name=class_name, search=search
    )
    return AttendanceReport(
        class_id=snapshot.selection.class_id,
        month=month,
        days=attendance_matrix.days_in_month(month),
        summaries=list(summaries.values()),
        table=table,
    )
