import pytest

from conftest import make_score, make_student
from schemas.results import LetterGrade, PassStatus
from schemas.scores import AssessmentRecord
from services.exceptions import DataShapeError
from services.score_aggregator import (
    aggregate,
    assessment_types,
    class_stats,
    letter_grade,
    pass_status,
    rank_results,
    subject_groups,
)


def test_one_result_per_roster_member_including_students_without_records(roster):
    results = aggregate(roster, [make_score(1, "Quiz", 8)])

    assert list(results) == [1, 2, 3]
    assert results[2].pass_status == PassStatus.NO_SCORE
    assert results[2].final_score is None
    assert results[2].letter_grade is None
    assert results[2].display_score is None
    assert results[2].type_averages == {}


def test_single_type_final_score_is_plain_mean(roster):
    records = [make_score(1, "Quiz", s) for s in (6, 7, 9.5)]
    result = aggregate(roster, records)[1]

    assert result.final_score == pytest.approx((6 + 7 + 9.5) / 3)
    assert result.type_averages == {"Quiz": pytest.approx(7.5)}


def test_final_score_is_mean_of_type_means_not_of_raw_scores(roster):
    records = [make_score(1, "Quiz", 10) for _ in range(3)] + [make_score(1, "Midterm", 0)]
    result = aggregate(roster, records)[1]

    # 원점수 평균이면 7.5 이지만 유형 평균의 평균은 5.0
    assert result.final_score == pytest.approx(5.0)
    assert result.display_score == "5.00"
    assert result.letter_grade == LetterGrade.E
    assert result.pass_status == PassStatus.PASSED


def test_many_records_of_one_type_weigh_the_same_as_one_record_of_another(roster):
    records = [make_score(2, "Quiz", 9) for _ in range(10)] + [make_score(2, "Exam", 5)]
    result = aggregate(roster, records)[2]

    assert result.final_score == pytest.approx(7.0)
    assert result.letter_grade == LetterGrade.C


@pytest.mark.parametrize(
    "score,grade,status",
    [
        (4.999, LetterGrade.F, PassStatus.FAILED),
        (5.0, LetterGrade.E, PassStatus.PASSED),
        (5.999, LetterGrade.E, PassStatus.PASSED),
        (6.0, LetterGrade.D, PassStatus.PASSED),
        (6.999, LetterGrade.D, PassStatus.PASSED),
        (7.0, LetterGrade.C, PassStatus.PASSED),
        (7.999, LetterGrade.C, PassStatus.PASSED),
        (8.0, LetterGrade.B, PassStatus.PASSED),
        (8.999, LetterGrade.B, PassStatus.PASSED),
        (9.0, LetterGrade.A, PassStatus.PASSED),
        (10.0, LetterGrade.A, PassStatus.PASSED),
        (0.0, LetterGrade.F, PassStatus.FAILED),
    ],
)
def test_grade_thresholds(score, grade, status):
    assert letter_grade(score) == grade
    assert pass_status(score) == status


def test_grading_uses_unrounded_score():
    # 4.996 은 표시상 "5.00" 이지만 등급은 F
    roster = [make_student(1)]
    results = aggregate(roster, [make_score(1, "Quiz", 4.996)])

    assert results[1].display_score == "5.00"
    assert results[1].letter_grade == LetterGrade.F
    assert results[1].pass_status == PassStatus.FAILED


def test_assessment_types_are_trimmed_before_grouping():
    roster = [make_student(1)]
    records = [make_score(1, " Quiz", 4), make_score(1, "Quiz ", 8)]
    result = aggregate(roster, records)[1]

    assert result.type_averages == {"Quiz": pytest.approx(6.0)}


def test_records_of_students_outside_roster_are_ignored():
    roster = [make_student(1)]
    results = aggregate(roster, [make_score(1, "Quiz", 8), make_score(99, "Quiz", 1)])

    assert list(results) == [1]
    assert results[1].final_score == pytest.approx(8.0)


def test_non_numeric_score_fails_the_whole_pass():
    roster = [make_student(1), make_student(2)]
    bad = AssessmentRecord.model_construct(student_id=2, assessment_type="Quiz", score="abc", date=None)

    with pytest.raises(DataShapeError) as exc:
        aggregate(roster, [make_score(1, "Quiz", 8), bad])

    assert exc.value.context["student_id"] == 2
    assert exc.value.context["record_index"] == 1


def test_nan_and_out_of_range_scores_are_rejected():
    roster = [make_student(1)]
    with pytest.raises(DataShapeError):
        aggregate(roster, [make_score(1, "Quiz", float("nan"))])
    with pytest.raises(DataShapeError):
        aggregate(roster, [make_score(1, "Quiz", 85)])


def test_rank_shares_ties_and_skips_no_score():
    roster = [make_student(i) for i in range(1, 6)]
    records = [
        make_score(1, "Quiz", 7),
        make_score(2, "Quiz", 9),
        make_score(3, "Quiz", 9),
        make_score(4, "Quiz", 6),
    ]
    ranked = rank_results(aggregate(roster, records))

    assert list(ranked) == [1, 2, 3, 4, 5]
    assert [ranked[i].rank for i in range(1, 6)] == [3, 1, 1, 4, None]


def test_class_stats_exclude_no_score_from_average():
    roster = [make_student(i) for i in range(1, 4)]
    records = [make_score(1, "Quiz", 8), make_score(2, "Quiz", 3)]
    stats = class_stats(aggregate(roster, records))

    assert stats.total == 3
    assert stats.passed == 1
    assert stats.failed == 1
    assert stats.no_score == 1
    assert stats.average == pytest.approx(5.5)


def test_class_stats_without_any_scores():
    stats = class_stats(aggregate([make_student(1)], []))
    assert stats.average is None
    assert stats.no_score == 1


def test_assessment_types_span_whole_record_set_sorted():
    records = [make_score(1, "Quiz", 5), make_score(2, "Midterm", 5), make_score(3, "Final", 5)]
    assert assessment_types(records) == ["Final", "Midterm", "Quiz"]


@pytest.fixture
def two_subject_records():
    return [
        make_score(1, "Quiz", 10, subject_id=1, subject_name="Math"),
        make_score(1, "Quiz", 4, subject_id=2, subject_name="Khmer"),
        make_score(1, "Exam", 8, subject_id=2, subject_name="Khmer"),
    ]


def test_all_subjects_view_keeps_same_label_apart_per_subject(two_subject_records):
    result = aggregate([make_student(1)], two_subject_records, by_subject=True)[1]

    assert result.type_averages == {
        "1:Quiz": pytest.approx(10.0),
        "2:Quiz": pytest.approx(4.0),
        "2:Exam": pytest.approx(8.0),
    }
    assert result.final_score == pytest.approx(22 / 3)
    assert result.letter_grade == LetterGrade.C
    assert result.subject_averages == {"1": pytest.approx(10.0), "2": pytest.approx(6.0)}


def test_single_subject_grouping_is_by_label_only(two_subject_records):
    result = aggregate([make_student(1)], two_subject_records)[1]

    # 과목 구분 없이 Quiz 두 개가 한 묶음: (7 + 8) / 2
    assert result.type_averages == {"Quiz": pytest.approx(7.0), "Exam": pytest.approx(8.0)}
    assert result.final_score == pytest.approx(7.5)
    assert result.subject_averages == {}


def test_subject_groups_sorted_by_name_then_type(two_subject_records):
    groups = subject_groups(two_subject_records)

    assert [(g.key, g.name, g.types) for g in groups] == [
        ("2", "Khmer", ["Exam", "Quiz"]),
        ("1", "Math", ["Quiz"]),
    ]
    assert assessment_types(two_subject_records, by_subject=True) == ["2:Exam", "2:Quiz", "1:Quiz"]


def test_subject_without_id_is_keyed_by_name():
    records = [
        make_score(1, "Quiz", 6, subject_name="Science"),
        make_score(1, "Quiz", 9),
    ]
    result = aggregate([make_student(1)], records, by_subject=True)[1]

    assert set(result.subject_averages) == {"Science", "Unknown"}
    assert [g.key for g in subject_groups(records)] == ["Science", "Unknown"]
