"""
services/score_aggregator.py

명단 + 평가 점수 원본 → 학생별 최종 점수 / 등급 / 합격 여부

계산 규칙 (2단계 평균)
1) 학생별로 레코드를 나누고
2) 평가 유형별로 다시 나눠 유형 평균을 구한 뒤
3) 최종 점수 = 유형 평균들의 단순 평균
   (퀴즈 10번 + 시험 1번이어도 두 유형은 같은 비중)
등급 판정은 반올림 전 값으로 한다. 반올림은 표시/전송 때만.
전체 과목 보기(by_subject)에서는 (과목, 유형) 쌍이 한 묶음. 과목이 다르면 같은 "Quiz" 도 따로 평균.
"""

import logging
import math
from collections import defaultdict
from numbers import Real
from typing import Dict, Iterable, List, Optional, Sequence

from schemas.results import ClassStats, ComputedResult, LetterGrade, PassStatus, SubjectGroup
from schemas.scores import AssessmentRecord
from schemas.students import Student
from services.exceptions import DataShapeError

logger = logging.getLogger(__name__)

MAX_SCORE = 10
PASS_MARK = 5
UNKNOWN_SUBJECT = "Unknown"

# 높은 기준부터 검사, 처음 만족하는 등급 채택
GRADE_THRESHOLDS = (
    (9, LetterGrade.A),
    (8, LetterGrade.B),
    (7, LetterGrade.C),
    (6, LetterGrade.D),
    (5, LetterGrade.E),
)


def letter_grade(final_score: float) -> LetterGrade:
    for threshold, grade in GRADE_THRESHOLDS:
        if final_score >= threshold:
            return grade
    return LetterGrade.F


def pass_status(final_score: float) -> PassStatus:
    return PassStatus.PASSED if final_score >= PASS_MARK else PassStatus.FAILED


def _checked_score(record: AssessmentRecord, index: int) -> float:
    score = getattr(record, "score", None)
    if isinstance(score, bool) or not isinstance(score, Real) or not math.isfinite(score):
        raise DataShapeError(
            f"Non-numeric score for student {getattr(record, 'student_id', None)}",
            {"student_id": getattr(record, "student_id", None), "record_index": index, "score": score},
        )
    if not 0 <= score <= MAX_SCORE:
        raise DataShapeError(
            f"Score {score} out of range 0-{MAX_SCORE} for student {record.student_id}",
            {"student_id": record.student_id, "record_index": index, "score": score},
        )
    return float(score)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def subject_key(record: AssessmentRecord) -> str:
    if record.subject_id is not None:
        return str(record.subject_id)
    return record.subject_name or UNKNOWN_SUBJECT


def group_key(record: AssessmentRecord, by_subject: bool = False) -> str:
    """평균을 낼 묶음 키. 전체 과목 보기에서는 과목이 다르면 같은 유형명도 다른 묶음"""
    if not by_subject:
        return record.assessment_type
    return f"{subject_key(record)}:{record.assessment_type}"


def aggregate(
    roster: Sequence[Student],
    records: Iterable[AssessmentRecord],
    by_subject: bool = False,
) -> Dict[int, ComputedResult]:
    # 1) 학생별 → 2) 평가유형별 분할 (등장 순서 유지)
    roster_ids = {student.id for student in roster}
    grouped: Dict[int, Dict[str, List[float]]] = defaultdict(lambda: defaultdict(list))
    key_subjects: Dict[str, str] = {}
    skipped = 0

    for index, record in enumerate(records):
        score = _checked_score(record, index)
        if not record.assessment_type:
            raise DataShapeError(
                f"Missing assessment type for student {record.student_id}",
                {"student_id": record.student_id, "record_index": index},
            )
        if record.student_id not in roster_ids:
            skipped += 1
            continue
        key = group_key(record, by_subject)
        key_subjects[key] = subject_key(record)
        grouped[record.student_id][key].append(score)

    if skipped:
        logger.debug("명단에 없는 학생의 점수 %d건 제외", skipped)

    results: Dict[int, ComputedResult] = {}
    for student in roster:
        type_groups = grouped.get(student.id)
        if not type_groups:
            results[student.id] = ComputedResult(student_id=student.id)
            continue

        # 3) 유형 평균 → 4) 유형 평균들의 평균
        type_averages = {t: _mean(scores) for t, scores in type_groups.items()}
        final_score = _mean(list(type_averages.values()))

        subject_averages: Dict[str, float] = {}
        if by_subject:
            per_subject: Dict[str, List[float]] = defaultdict(list)
            for key, avg in type_averages.items():
                per_subject[key_subjects[key]].append(avg)
            subject_averages = {s: _mean(avgs) for s, avgs in per_subject.items()}

        results[student.id] = ComputedResult(
            student_id=student.id,
            final_score=final_score,
            letter_grade=letter_grade(final_score),
            pass_status=pass_status(final_score),
            type_averages=type_averages,
            subject_averages=subject_averages,
        )

    logger.info(
        "성적 산출 완료: 학생 %d명, 점수 보유 %d명",
        len(results),
        sum(1 for r in results.values() if r.has_score),
    )
    return results


def rank_results(results: Dict[int, ComputedResult]) -> Dict[int, ComputedResult]:
    """
    최종 점수 내림차순 석차 (동점은 같은 석차, 다음 석차는 순번 기준: 1,1,3)
    - No Score 학생은 석차 없음
    - 반환 dict 순서는 입력(명단) 순서 그대로
    """
    scored = sorted(
        (r for r in results.values() if r.has_score),
        key=lambda r: r.final_score,
        reverse=True,
    )
    ranks: Dict[int, int] = {}
    current_rank = 1
    previous: Optional[float] = None
    for index, result in enumerate(scored):
        if previous is not None and result.final_score < previous:
            current_rank = index + 1
        ranks[result.student_id] = current_rank
        previous = result.final_score

    return {
        student_id: result.model_copy(update={"rank": ranks.get(student_id)})
        for student_id, result in results.items()
    }


def class_stats(results: Dict[int, ComputedResult]) -> ClassStats:
    scores = [r.final_score for r in results.values() if r.has_score]
    return ClassStats(
        total=len(results),
        passed=sum(1 for r in results.values() if r.pass_status == PassStatus.PASSED),
        failed=sum(1 for r in results.values() if r.pass_status == PassStatus.FAILED),
        no_score=sum(1 for r in results.values() if r.pass_status == PassStatus.NO_SCORE),
        average=round(_mean(scores), 2) if scores else None,
    )


def assessment_types(records: Iterable[AssessmentRecord], by_subject: bool = False) -> List[str]:
    """필터된 레코드 전체에서 본 평가 유형 (정렬) - 모든 행이 같은 열을 갖도록"""
    if by_subject:
        return [f"{g.key}:{t}" for g in subject_groups(records) for t in g.types]
    return sorted({record.assessment_type for record in records})


def subject_groups(records: Iterable[AssessmentRecord]) -> List[SubjectGroup]:
    """전체 과목 보기의 열 묶음: 과목명 순, 과목 안에서는 평가유형 순"""
    names: Dict[str, str] = {}
    types: Dict[str, set] = defaultdict(set)
    for record in records:
        key = subject_key(record)
        names.setdefault(key, record.subject_name or key)
        types[key].add(record.assessment_type)

    groups = [SubjectGroup(key=k, name=names[k], types=sorted(types[k])) for k in names]
    return sorted(groups, key=lambda g: (g.name.lower(), g.key))
