# api/feedback_app/analytics/faculty_resolver.py
from typing import Optional

from feedback_app.analytics.domain import NOT_ASSIGNED, FacultyRef, SubjectRef


def resolve_faculty(subject: Optional[SubjectRef], section_id: Optional[str]) -> FacultyRef:
    """
    Faculty accountable for one student's subject-response.

    A per-section override wins over the subject's default faculty. Anything
    unresolved (deleted subject, no assignment, deactivated faculty) maps to
    the NOT_ASSIGNED placeholder so grouping never sees ``None``.

    Must be called per response: two students of the same subject can land
    on different faculty through their sections.
    """
    if subject is None:
        return NOT_ASSIGNED

    if subject.section_faculty and section_id:
        for assignment in subject.section_faculty:
            if assignment.section_id == section_id:
                return assignment.faculty or NOT_ASSIGNED

    return subject.default_faculty or NOT_ASSIGNED
