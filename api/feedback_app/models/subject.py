# api/feedback_app/models/subject.py
import uuid
from sqlalchemy import (
    Column, String, Boolean, ForeignKey, DateTime, SmallInteger,
    UniqueConstraint, Uuid, func
)
from sqlalchemy.orm import relationship

from feedback_app.db.base_class import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subject_name = Column(String(200), nullable=False)
    subject_code = Column(String(50), nullable=True)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(SmallInteger, nullable=False)
    semester = Column(SmallInteger, nullable=False)
    faculty_id = Column(Uuid, ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True, index=True)  # default faculty
    is_lab = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("course_id", "year", "semester", "subject_name", name="uq_subject_per_term"),
    )

    course = relationship("Course")
    faculty = relationship("Faculty", back_populates="default_subjects")
    section_assignments = relationship(
        "SubjectSectionFaculty", back_populates="subject",
        cascade="all, delete-orphan", passive_deletes=True,
    )


class SubjectSectionFaculty(Base):
    """Per-section faculty override for a subject."""
    __tablename__ = "subject_section_faculty"

    subject_id = Column(Uuid, ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True)
    section_id = Column(Uuid, ForeignKey("course_sections.id", ondelete="CASCADE"), primary_key=True)
    faculty_id = Column(Uuid, ForeignKey("faculty.id", ondelete="CASCADE"), nullable=False, index=True)

    subject = relationship("Subject", back_populates="section_assignments")
    section = relationship("CourseSection")
    faculty = relationship("Faculty", back_populates="section_assignments")
