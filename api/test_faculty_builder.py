# api/test_faculty_builder.py
from datetime import timedelta

import pytest

from factories import (
    T0, faculty, global_form, question, record, standard_form, subject, subject_response,
)
from feedback_app.analytics.domain import ActivationPeriod, AnalyticsFilters, SubjectResponse
from feedback_app.analytics.faculty_builder import AggregationOptions, build_analytics
from feedback_app.schemas.analytics import FormStatsOut

QUESTIONS = [
    question("q1", "scale", "Rate the lectures"),
    question("q2", "yesno", "Were classes on time?"),
    question("q3", "text", "Comments"),
]
FORM = standard_form(QUESTIONS)

ALICE = faculty("f-alice", "Alice", department="CSE")
BOB = faculty("f-bob", "Bob")
DS = subject("s1", "Data Structures", default=ALICE, sections=[("sec-b", BOB)])
LAB = subject("s2", "Networks Lab")


def _responses():
    return [
        record("r1", FORM, [(DS, {"q1": "5", "q2": "yes", "q3": "Great teacher"}), (LAB, {"q1": "3"})],
               section_id="sec-a", name="Asha Rao", roll="cs01"),
        record("r2", FORM, [(DS, {"q1": "2", "q2": "no"})], section_id="sec-b", name="Bilal", roll="cs02"),
        record("r3", FORM, [(LAB, {"q1": "4"})], section_id="sec-a", name="Chen", roll="CS01"),
    ]


def _names(out):
    return [fa.faculty.name for fa in out.faculty_analytics]


def test_groups_by_resolved_faculty():
    out = build_analytics(_responses(), FORM)

    assert _names(out) == ["Alice", "Bob", "Not Assigned"]
    alice, bob, unassigned = out.faculty_analytics
    assert alice.subjects == ["Data Structures"]
    assert alice.response_count == 1
    assert alice.question_analytics[0].average == pytest.approx(5.0)
    assert bob.question_analytics[0].average == pytest.approx(2.0)
    assert unassigned.subjects == ["Networks Lab"]
    assert unassigned.response_count == 2


def test_form_stats_and_overall_questions():
    out = build_analytics(_responses(), FORM)

    assert out.form.total_questions == 3
    assert out.form.is_global is False
    assert out.form_stats.total_responses == 3
    assert out.form_stats.unique_students == 2  # roll numbers compared case-insensitively
    assert out.form_stats.subjects == 2
    assert out.form_stats.courses == 1

    scale, yesno, text = out.question_analytics
    assert scale.total_responses == 4
    assert scale.average == pytest.approx(3.5)
    assert scale.response_rate == pytest.approx(100.0)
    assert yesno.response_rate == pytest.approx(50.0)
    assert text.sample_responses == ["Great teacher"]


@pytest.mark.parametrize("filters,names,total", [
    (AnalyticsFilters(section_id="sec-b"), ["Bob"], 1),
    (AnalyticsFilters(faculty_id="f-alice"), ["Alice"], 1),
    (AnalyticsFilters(faculty_id="not-assigned"), ["Not Assigned"], 2),
    (AnalyticsFilters(subject_id="s2"), ["Not Assigned"], 2),
    (AnalyticsFilters(student_name="asha"), ["Alice", "Not Assigned"], 1),
    (AnalyticsFilters(roll_number="CS0"), ["Alice", "Bob", "Not Assigned"], 3),
    (AnalyticsFilters(year=2), [], 0),
])
def test_filters(filters, names, total):
    out = build_analytics(_responses(), FORM, filters)
    assert _names(out) == names
    assert out.form_stats.total_responses == total


def test_faculty_filter_drops_other_subjects_of_same_response():
    out = build_analytics(_responses(), FORM, AnalyticsFilters(faculty_id="f-alice"))
    assert out.form_stats.subjects == 1
    assert out.question_analytics[0].total_responses == 1


def test_open_period_has_no_upper_bound():
    period = ActivationPeriod(start=T0)
    responses = [
        record("late", FORM, [(DS, {"q1": "4"})], submitted_at=T0 + timedelta(days=365)),
        record("early", FORM, [(DS, {"q1": "4"})], submitted_at=T0 - timedelta(hours=1)),
    ]
    out = build_analytics(responses, FORM, AnalyticsFilters(period=period))
    assert out.form_stats.total_responses == 1


def test_closed_period_is_inclusive():
    period = ActivationPeriod(start=T0, end=T0 + timedelta(days=1))
    responses = [
        record("edge", FORM, [(DS, {"q1": "4"})], submitted_at=T0 + timedelta(days=1)),
        record("after", FORM, [(DS, {"q1": "4"})], submitted_at=T0 + timedelta(days=2)),
        record("start", FORM, [(DS, {"q1": "4"})], submitted_at=T0),
    ]
    out = build_analytics(responses, FORM, AnalyticsFilters(period=period))
    assert out.form_stats.total_responses == 2


def test_global_form_single_group():
    carol = faculty("f-carol", "Carol Mehta", designation="Trainer")
    form = global_form(QUESTIONS, training_name="Soft Skills Training", assigned=[carol])
    responses = [
        record("g1", form, [(DS, {"q1": "4"})], section_id="sec-a"),
        record("g2", form, [(DS, {"q1": "2"})], section_id="sec-b"),
    ]
    # faculty filter does not apply to global forms
    out = build_analytics(responses, form, AnalyticsFilters(faculty_id="f-alice"))

    assert out.form.is_global is True
    assert out.form.training_name == "Soft Skills Training"
    assert [(f.id, f.designation) for f in out.form.assigned_faculty] == [("f-carol", "Trainer")]
    assert len(out.faculty_analytics) == 1
    group = out.faculty_analytics[0]
    assert (group.faculty.id, group.faculty.name) == ("overall", "Soft Skills Training")
    assert group.response_count == 2
    assert out.form_stats.subjects == 1
    assert out.form_stats.total_responses == 2


def test_empty_set_has_same_shape():
    full = build_analytics(_responses(), FORM).model_dump(by_alias=True)
    empty = build_analytics([], FORM)

    assert empty.model_dump(by_alias=True).keys() == full.keys()
    assert empty.form_stats == FormStatsOut()
    assert empty.faculty_analytics == []
    assert len(empty.question_analytics) == 3
    for qa in empty.question_analytics:
        assert qa.total_responses == 0
        assert qa.response_rate == 0.0
    assert empty.question_analytics[0].distribution == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}


def test_build_is_idempotent():
    responses = _responses()
    options = AggregationOptions(threshold=80)
    assert build_analytics(responses, FORM, options=options) == build_analytics(responses, FORM, options=options)


def test_length_mismatch_reads_missing_answers_as_absent():
    base = record("m1", FORM, [(DS, {})])
    sr = base.subject_responses[0]
    broken = SubjectResponse(subject_id=sr.subject_id, subject=sr.subject, form_id=FORM.id,
                             questions=sr.questions, answers=("4",))
    out = build_analytics([base.model_copy(update={"subject_responses": (broken,)})], FORM)

    assert out.question_analytics[0].total_responses == 1
    assert out.question_analytics[1].total_responses == 0
    assert out.question_analytics[2].total_responses == 0


def test_deleted_subject_falls_back_to_not_assigned():
    out = build_analytics([record("d1", FORM, [(None, {"q1": "3"})])], FORM)
    assert _names(out) == ["Not Assigned"]
    assert out.faculty_analytics[0].subjects == ["Unknown Subject"]


def test_other_form_subject_responses_excluded():
    other = standard_form(QUESTIONS, form_id="form-2")
    base = record("x1", FORM, [(DS, {"q1": "5"})])
    mixed = base.model_copy(update={
        "subject_responses": base.subject_responses + (subject_response(LAB, other, {"q1": "1"}),),
    })
    out = build_analytics([mixed], FORM)
    assert out.question_analytics[0].total_responses == 1
    assert _names(out) == ["Alice"]


def test_average_completion_time():
    responses = [
        record("t1", FORM, [(DS, {"q1": "4"})], took=timedelta(seconds=60)),
        record("t2", FORM, [(DS, {"q1": "4"})], took=timedelta(seconds=120)),
    ]
    out = build_analytics(responses, FORM)
    assert out.form_stats.average_completion_time_ms == pytest.approx(90_000.0)
