# api/test_api.py
from datetime import datetime, timedelta, timezone
from io import BytesIO
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from openpyxl import load_workbook

from feedback_app.models.course import Course, CourseSection, CourseTerm
from feedback_app.models.faculty import Faculty
from feedback_app.models.feedback_form import FeedbackForm, FormActivationPeriod, FormQuestion
from feedback_app.models.response import Response
from feedback_app.models.subject import Subject, SubjectSectionFaculty

API = "/api/v1"


# -------------------- helpers -------------------- #

@pytest.fixture
def seeded(db):
    course = Course(course_name="B.Tech CSE", course_code="BTCSE")
    term = CourseTerm(course=course, year=2, semester=1)
    sec_a = CourseSection(term=term, section_name="A")
    sec_b = CourseSection(term=term, section_name="B")
    alice = Faculty(name="Alice Kumar", phone_number="9000000001", department="CSE")
    bob = Faculty(name="Bob Das", phone_number="9000000002", department="CSE")
    ds = Subject(subject_name="Data Structures", course=course, year=2, semester=1, faculty=alice)
    ds.section_assignments.append(SubjectSectionFaculty(section=sec_b, faculty=bob))
    lab = Subject(subject_name="DS Lab", course=course, year=2, semester=1, is_lab=True)

    form = FeedbackForm(form_name="Mid-term feedback", is_active=True)
    form.questions = [
        FormQuestion(position=1, question_text="Rate the teaching", question_type="scale"),
        FormQuestion(position=2, question_text="Classes on time?", question_type="yesno"),
        FormQuestion(position=3, question_text="Best resource", question_type="multiplechoice",
                     options=["Slides", "Notes"]),
        FormQuestion(position=4, question_text="Comments", question_type="textarea", is_required=False),
    ]
    form.activation_periods = [FormActivationPeriod(start=datetime.now(timezone.utc) - timedelta(days=1))]

    db.add_all([course, alice, bob, ds, lab, form])
    db.commit()
    return SimpleNamespace(
        form_id=str(form.id),
        course_id=str(course.id),
        sec_a=str(sec_a.id),
        sec_b=str(sec_b.id),
        ds=str(ds.id),
        lab=str(lab.id),
        alice=str(alice.id),
        bob=str(bob.id),
        q=[str(q.id) for q in form.questions],
    )


def _payload(s, roll="cs2101", section=None, name="Asha Rao", ds_answers=None):
    q = s.q
    return {
        "formId": s.form_id,
        "studentName": name,
        "rollNumber": roll,
        "courseId": s.course_id,
        "year": 2,
        "semester": 1,
        "sectionId": section or s.sec_a,
        "subjects": [
            {"subjectId": s.ds, "answers": ds_answers or {q[0]: "5", q[1]: "yes", q[2]: "Slides", q[3]: "Great teacher"}},
            {"subjectId": s.lab, "answers": {q[0]: "4", q[1]: "no", q[2]: "more practice sessions"}},
        ],
    }


def _submit_two(client, s):
    r1 = client.post(f"{API}/student/submit-feedback", json=_payload(s))
    r2 = client.post(f"{API}/student/submit-feedback", json=_payload(
        s, roll="cs2102", section=s.sec_b, name="Bilal Khan",
        ds_answers={s.q[0]: "3", s.q[1]: "no", s.q[2]: ["Slides", "Notes"]},
    ))
    assert r1.status_code == 201, r1.text
    assert r2.status_code == 201, r2.text
    return r1.json()["id"], r2.json()["id"]


def _analytics(client, s, **params):
    return client.get(f"{API}/responses/analytics/questions", params={"formId": s.form_id, **params})


# -------------------- health -------------------- #

def test_health(client):
    assert client.get(f"{API}/healthz").json() == {"status": "ok"}
    assert client.get(f"{API}/health/db").json() == {"db": "ok"}


# -------------------- student submissions -------------------- #

def test_feedback_form_for_students(client, seeded):
    res = client.get(f"{API}/student/feedback-form/{seeded.form_id}")
    assert res.status_code == 200
    body = res.json()
    assert [q["questionType"] for q in body["questions"]] == ["scale", "yesno", "multiplechoice", "textarea"]
    assert body["currentPeriod"]["isOpen"] is True


def test_submit_then_duplicate_is_rejected(client, seeded):
    res = client.post(f"{API}/student/submit-feedback", json=_payload(seeded))
    assert res.status_code == 201, res.text
    assert res.json()["subjectCount"] == 2

    # same student, roll typed in another case
    dup = client.post(f"{API}/student/submit-feedback", json=_payload(seeded, roll="CS2101"))
    assert dup.status_code == 409

    status = client.get(f"{API}/student/response-status", params={
        "formId": seeded.form_id, "rollNumber": "cs2101", "courseId": seeded.course_id, "year": 2, "semester": 1,
    })
    assert status.json()["submitted"] is True


def test_lab_subject_answers_multiple_choice_as_text(client, seeded, db):
    res = client.post(f"{API}/student/submit-feedback", json=_payload(seeded))
    assert res.status_code == 201

    db.expire_all()
    stored = db.get(Response, UUID(res.json()["id"]))
    by_subject = {str(sr.subject_id): sr for sr in stored.subject_responses}
    assert by_subject[seeded.lab].questions[2]["question_type"] == "text"
    assert by_subject[seeded.ds].questions[2]["question_type"] == "multiplechoice"
    assert by_subject[seeded.ds].answers[:3] == ["5", "yes", "Slides"]


@pytest.mark.parametrize("answers,status", [
    ({0: "9", 1: "yes", 2: "Slides"}, 400),     # scale out of range
    ({0: "4", 1: "maybe", 2: "Slides"}, 400),   # not yes/no
    ({0: "4", 1: "yes", 2: "Videos"}, 400),     # unknown option
    ({0: "4", 1: "yes"}, 400),                  # required question missing
    ({0: "4", 1: "yes", 2: "Notes"}, 201),      # optional comment omitted
])
def test_submit_answer_validation(client, seeded, answers, status):
    ds_answers = {seeded.q[i]: v for i, v in answers.items()}
    res = client.post(f"{API}/student/submit-feedback", json=_payload(seeded, ds_answers=ds_answers))
    assert res.status_code == status, res.text


def test_submit_rejects_bad_references(client, seeded):
    body = _payload(seeded)
    body["year"] = 5
    assert client.post(f"{API}/student/submit-feedback", json=body).status_code == 422

    body = _payload(seeded)
    body["subjects"][0]["subjectId"] = str(uuid4())
    assert client.post(f"{API}/student/submit-feedback", json=body).status_code == 404

    body = _payload(seeded)
    body["subjects"].append(body["subjects"][0])
    assert client.post(f"{API}/student/submit-feedback", json=body).status_code == 400

    body = _payload(seeded)
    body["courseId"] = str(uuid4())
    assert client.post(f"{API}/student/submit-feedback", json=body).status_code == 404


# -------------------- analytics -------------------- #

def test_question_analytics_shape(client, seeded):
    _submit_two(client, seeded)

    res = _analytics(client, seeded)
    assert res.status_code == 200
    body = res.json()
    assert set(body) == {"form", "formStats", "questionAnalytics", "facultyAnalytics"}
    assert body["formStats"]["totalResponses"] == 2
    assert body["formStats"]["uniqueStudents"] == 2
    assert body["formStats"]["subjects"] == 2

    scale = body["questionAnalytics"][0]
    assert scale["questionType"] == "scale"
    assert scale["distribution"] == {"1": 0, "2": 0, "3": 1, "4": 2, "5": 1}
    assert scale["average"] == pytest.approx(4.0)

    names = [fa["faculty"]["name"] for fa in body["facultyAnalytics"]]
    assert names == ["Alice Kumar", "Bob Das", "Not Assigned"]
    assert body["facultyAnalytics"][2]["subjects"] == ["DS Lab"]


def test_faculty_filter_and_table_endpoint(client, seeded):
    _submit_two(client, seeded)

    res = client.get(f"{API}/responses/analytics/faculty-questions",
                     params={"formId": seeded.form_id, "facultyId": seeded.bob})
    assert res.status_code == 200
    rows = res.json()
    assert [r["faculty"]["name"] for r in rows] == ["Bob Das"]
    assert rows[0]["responseCount"] == 1

    res = _analytics(client, seeded, facultyId="not-assigned")
    assert [fa["faculty"]["name"] for fa in res.json()["facultyAnalytics"]] == ["Not Assigned"]


def test_unknown_form_is_404_but_empty_filter_is_200(client, seeded):
    assert client.get(f"{API}/responses/analytics/questions", params={"formId": str(uuid4())}).status_code == 404

    res = _analytics(client, seeded, courseId=str(uuid4()))
    assert res.status_code == 200
    body = res.json()
    assert body["formStats"]["totalResponses"] == 0
    assert body["facultyAnalytics"] == []
    assert len(body["questionAnalytics"]) == 4


@pytest.mark.parametrize("params", [
    {"year": 5},
    {"semester": 3},
    {"facultyId": "somebody"},
    {"courseId": "not-a-uuid"},
])
def test_invalid_filters_are_422(client, seeded, params):
    assert _analytics(client, seeded, **params).status_code == 422


def test_activation_period_filter(client, seeded):
    _submit_two(client, seeded)
    start = client.get(f"{API}/student/feedback-form/{seeded.form_id}").json()["currentPeriod"]["start"]

    res = _analytics(client, seeded, activationPeriodStart=start)
    assert res.status_code == 200
    assert res.json()["formStats"]["totalResponses"] == 2

    res = _analytics(client, seeded, activationPeriodStart="2001-01-01T00:00:00+00:00")
    assert res.status_code == 400


def test_compare_periods(client, seeded):
    _submit_two(client, seeded)
    client.patch(f"{API}/admin/feedback-forms/{seeded.form_id}/deactivate")
    client.patch(f"{API}/admin/feedback-forms/{seeded.form_id}/activate")

    res = client.get(f"{API}/responses/analytics/compare", params={"formId": seeded.form_id})
    assert res.status_code == 200
    body = res.json()
    assert [p["hasData"] for p in body["periods"]] == [True, False]
    assert [p["period"]["isOpen"] for p in body["periods"]] == [False, True]
    assert body["periods"][1]["analytics"]["formStats"]["totalResponses"] == 0
    for row in body["facultyComparison"]:
        assert len(row["periods"]) == 2
        assert row["periods"][1]["hasData"] is False
        assert row["periods"][1]["questionAnalytics"] is None

    bad = client.get(f"{API}/responses/analytics/compare",
                     params={"formId": seeded.form_id, "periods": "2001-01-01T00:00:00+00:00"})
    assert bad.status_code == 400


# -------------------- activation -------------------- #

def test_activate_and_deactivate(client, seeded):
    url = f"{API}/admin/feedback-forms/{seeded.form_id}"

    res = client.patch(f"{url}/activate")
    assert res.status_code == 400  # already open

    res = client.patch(f"{url}/deactivate")
    assert res.status_code == 200
    body = res.json()
    assert body["isActive"] is False
    assert [p["isOpen"] for p in body["activationPeriods"]] == [False]

    assert client.patch(f"{url}/deactivate").status_code == 400
    assert client.post(f"{API}/student/submit-feedback", json=_payload(seeded)).status_code == 400

    res = client.patch(f"{url}/activate")
    assert res.status_code == 200
    assert res.json()["isActive"] is True
    assert [p["isOpen"] for p in res.json()["activationPeriods"]] == [False, True]

    assert client.patch(f"{API}/admin/feedback-forms/{uuid4()}/activate").status_code == 404


# -------------------- raw responses -------------------- #

def test_listing_detail_and_delete(client, seeded):
    first_id, _ = _submit_two(client, seeded)

    page = client.get(f"{API}/responses", params={"formId": seeded.form_id, "limit": 1}).json()
    assert page["totalResponses"] == 2
    assert page["totalPages"] == 2
    assert page["hasNext"] is True
    assert page["hasPrev"] is False

    detail = client.get(f"{API}/responses/{first_id}")
    assert detail.status_code == 200
    subjects = detail.json()["subjectResponses"]
    assert [(s["subjectName"], s["facultyName"]) for s in subjects] == [
        ("Data Structures", "Alice Kumar"), ("DS Lab", "Not Assigned"),
    ]

    assert client.delete(f"{API}/responses/{first_id}").status_code == 204
    assert client.get(f"{API}/responses/{first_id}").status_code == 404
    assert client.delete(f"{API}/responses/{first_id}").status_code == 404


def test_listing_faculty_filter_follows_resolution(client, seeded):
    payload = _payload(seeded)
    payload["subjects"] = payload["subjects"][:1]  # Data Structures only, section A
    assert client.post(f"{API}/student/submit-feedback", json=payload).status_code == 201

    def total(faculty_id):
        params = {"formId": seeded.form_id, "facultyId": faculty_id}
        return client.get(f"{API}/responses", params=params).json()["totalResponses"]

    assert total("not-assigned") == 0
    assert total(seeded.bob) == 0  # Bob only teaches section B
    assert total(seeded.alice) == 1
    assert _analytics(client, seeded, facultyId="not-assigned").json()["formStats"]["totalResponses"] == 0

    res = client.post(f"{API}/student/submit-feedback", json=_payload(seeded, roll="cs2102", section=seeded.sec_b))
    assert res.status_code == 201
    assert total("not-assigned") == 1
    assert total(seeded.bob) == 1
    assert total(seeded.alice) == 1

    page = client.get(f"{API}/responses", params={"facultyId": "not-assigned", "limit": 1, "page": 2}).json()
    assert page["totalResponses"] == 1
    assert page["responses"] == []
    assert page["hasPrev"] is True


# -------------------- global forms -------------------- #

@pytest.fixture
def training_form(db, seeded):
    carol = Faculty(name="Carol Mehta", phone_number="9000000003", designation="Trainer", department="HR")
    gone = Faculty(name="Dev Iyer", phone_number="9000000004", is_active=False)
    form = FeedbackForm(form_name="Training feedback", is_global=True, training_name="Soft Skills", is_active=True)
    form.questions = [FormQuestion(position=1, question_text="Rate the session", question_type="scale")]
    form.activation_periods = [FormActivationPeriod(start=datetime.now(timezone.utc) - timedelta(days=2))]
    form.assigned_faculty = [carol, gone]
    db.add_all([carol, gone, form])
    db.commit()
    return SimpleNamespace(form_id=str(form.id), q=str(form.questions[0].id), carol=str(carol.id))


def test_global_form_lists_assigned_faculty(client, seeded, training_form):
    body = client.get(f"{API}/student/feedback-form/{training_form.form_id}").json()
    assert body["isGlobal"] is True
    assert body["trainingName"] == "Soft Skills"
    assert body["assignedFaculty"] == [
        {"id": training_form.carol, "name": "Carol Mehta", "designation": "Trainer", "department": "HR"},
    ]

    summary = client.get(f"{API}/responses/analytics/questions", params={"formId": training_form.form_id}).json()
    assert [f["name"] for f in summary["form"]["assignedFaculty"]] == ["Carol Mehta"]

    standard = client.get(f"{API}/student/feedback-form/{seeded.form_id}").json()
    assert standard["assignedFaculty"] == []


def test_global_form_listing_ignores_faculty_filter(client, seeded, training_form):
    res = client.post(f"{API}/student/submit-feedback", json={
        "formId": training_form.form_id,
        "studentName": "Asha Rao",
        "rollNumber": "cs2101",
        "courseId": seeded.course_id,
        "year": 2,
        "semester": 1,
        "sectionId": seeded.sec_a,
        "subjects": [{"subjectId": seeded.ds, "answers": {training_form.q: "4"}}],
    })
    assert res.status_code == 201, res.text

    params = {"formId": training_form.form_id, "facultyId": seeded.bob}
    assert client.get(f"{API}/responses", params=params).json()["totalResponses"] == 1


def test_stats_overview(client, seeded):
    _submit_two(client, seeded)
    body = client.get(f"{API}/responses/stats/overview").json()
    assert body["totalResponses"] == 2
    assert body["totalFaculty"] == 2
    assert body["recentResponses"] == 2
    assert len(body["dailyStats"]) == 7
    assert body["dailyStats"][-1]["count"] == 2


# -------------------- exports -------------------- #

def test_csv_export(client, seeded):
    _submit_two(client, seeded)

    res = client.get(f"{API}/responses/export/csv", params={"formId": seeded.form_id})
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert "attachment" in res.headers["content-disposition"]

    lines = res.text.strip().splitlines()
    assert lines[0].startswith("Student Name,Phone Number,Roll Number")
    assert "Q1: Rate the teaching" in lines[0]
    assert len(lines) == 5  # header + 2 responses x 2 subjects
    assert any("Slides; Notes" in line for line in lines)

    assert client.get(f"{API}/responses/export/csv",
                      params={"formId": seeded.form_id, "tz": "Mars/Olympus"}).status_code == 400


def test_xlsx_export(client, seeded):
    _submit_two(client, seeded)

    res = client.get(f"{API}/responses/export/xlsx", params={"formId": seeded.form_id})
    assert res.status_code == 200
    rows = list(load_workbook(BytesIO(res.content))["Summary"].iter_rows(values_only=True))
    assert rows[0][0] == "Year"
    assert {r[5] for r in rows[1:]} == {"Alice Kumar", "Bob Das", "Not Assigned"}


# -------------------- faculty import -------------------- #

def _import(client, rows, **params):
    return client.post(f"{API}/admin/imports/faculty", json={"rows": rows}, params=params)


def test_import_matches_by_phone_then_name(client, seeded, db):
    rows = [
        {"name": "Carol Menon", "phoneNumber": "+91 90000 00003", "department": "ECE",
         "courseName": "B.Tech CSE", "year": 2, "semester": 1, "subjectName": "Networks"},
        {"name": "Alice Kumar", "phoneNumber": "9000000001", "designation": "Professor"},
        {"name": "Bob Das", "department": "cse"},
        {"name": ""},
    ]
    res = _import(client, rows)
    assert res.status_code == 200
    body = res.json()
    assert body["faculty"] == {"inserted": 1, "updated": 2, "skipped": 1}
    assert body["subjects"]["inserted"] == 1
    assert [e["row"] for e in body["errors"]] == [4]

    db.expire_all()
    assert db.query(Faculty).count() == 3
    carol = db.query(Faculty).filter(Faculty.name == "Carol Menon").one()
    assert carol.phone_number == "+919000000003"
    assert db.get(Faculty, UUID(seeded.alice)).designation == "Professor"


def test_import_dry_run_writes_nothing(client, seeded, db):
    res = _import(client, [{"name": "Dan Roy", "phoneNumber": "9000000009"}], dryRun=True)
    assert res.status_code == 200
    assert res.json()["faculty"]["inserted"] == 1

    db.expire_all()
    assert db.query(Faculty).filter(Faculty.name == "Dan Roy").count() == 0


def test_import_section_assignment_replaces_default(client, seeded, db):
    res = _import(client, [{
        "name": "Bob Das", "phoneNumber": "9000000002", "courseName": "B.Tech CSE",
        "year": 2, "semester": 1, "subjectName": "Data Structures", "sectionName": "A",
    }])
    assert res.status_code == 200
    assert res.json()["subjects"]["updated"] == 1

    db.expire_all()
    ds = db.get(Subject, UUID(seeded.ds))
    assert ds.faculty_id is None
    assert {str(a.section_id): str(a.faculty_id) for a in ds.section_assignments} == {
        seeded.sec_a: seeded.bob, seeded.sec_b: seeded.bob,
    }


def test_import_unknown_course_is_row_error(client, seeded):
    res = _import(client, [{"name": "Eve", "courseName": "MBA", "year": 1, "semester": 1, "subjectName": "Finance"}])
    assert res.status_code == 200
    assert res.json()["errors"][0]["message"].startswith("course not found")
