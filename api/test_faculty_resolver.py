# api/test_faculty_resolver.py
from factories import faculty, subject
from feedback_app.analytics.domain import NOT_ASSIGNED
from feedback_app.analytics.faculty_resolver import resolve_faculty

ALICE = faculty("f-alice", "Alice")
BOB = faculty("f-bob", "Bob")


def test_section_override_wins_over_default():
    s = subject("s1", "Data Structures", default=ALICE, sections=[("sec-b", BOB)])

    assert resolve_faculty(s, "sec-b") == BOB
    assert resolve_faculty(s, "sec-a") == ALICE
    assert resolve_faculty(s, None) == ALICE


def test_same_subject_different_sections_resolve_independently():
    s = subject("s1", "Data Structures", default=ALICE, sections=[("sec-a", ALICE), ("sec-b", BOB)])
    assert [resolve_faculty(s, sec).name for sec in ("sec-a", "sec-b", "sec-c")] == ["Alice", "Bob", "Alice"]


def test_unresolved_maps_to_not_assigned():
    # 1. no subject at all
    assert resolve_faculty(None, "sec-a") == NOT_ASSIGNED
    # 2. no default, no matching section
    assert resolve_faculty(subject("s2", "Lab", sections=[("sec-x", BOB)]), "sec-a") == NOT_ASSIGNED
    # 3. section override whose faculty was deactivated
    assert resolve_faculty(subject("s3", "OS", default=ALICE, sections=[("sec-a", None)]), "sec-a") == NOT_ASSIGNED


def test_not_assigned_is_never_none():
    ref = resolve_faculty(subject("s4", "Maths"), None)
    assert ref is not None
    assert ref.name == "Not Assigned"
    assert ref.is_placeholder
