# api/feedback_app/models/response.py
import uuid
from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, SmallInteger, JSON,
    UniqueConstraint, Uuid, func
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from feedback_app.db.base_class import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Response(Base):
    """One student submission; immutable after insert except for admin delete."""
    __tablename__ = "responses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_name = Column(String(200), nullable=False)
    student_phone = Column(String(20), nullable=True)
    roll_number = Column(String(50), nullable=False, index=True)

    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(SmallInteger, nullable=False)
    semester = Column(SmallInteger, nullable=False)
    section_id = Column(Uuid, ForeignKey("course_sections.id", ondelete="SET NULL"), nullable=True)
    form_id = Column(Uuid, ForeignKey("feedback_forms.id", ondelete="CASCADE"), nullable=False, index=True)

    # activation period captured by value
    period_start = Column(DateTime(timezone=True), nullable=False)
    period_end = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)  # form opened
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint(
            "roll_number", "course_id", "year", "semester", "period_start",
            name="uq_response_student_period",
        ),
    )

    course = relationship("Course")
    section = relationship("CourseSection")
    subject_responses = relationship(
        "SubjectResponse", back_populates="response",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="SubjectResponse.position",
    )


class SubjectResponse(Base):
    __tablename__ = "subject_responses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    response_id = Column(Uuid, ForeignKey("responses.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Uuid, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    form_id = Column(Uuid, ForeignKey("feedback_forms.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    questions = Column(JSONType, nullable=False)  # snapshot of the form questions at submit time
    answers = Column(JSONType, nullable=False)    # answers[i] <-> questions[i]

    response = relationship("Response", back_populates="subject_responses")
    subject = relationship("Subject")
