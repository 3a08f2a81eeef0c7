# api/feedback_app/models/course.py
import uuid
from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, DateTime, SmallInteger,
    UniqueConstraint, CheckConstraint, Uuid, func
)
from sqlalchemy.orm import relationship

from feedback_app.db.base_class import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    course_name = Column(String(200), nullable=False)
    course_code = Column(String(50), nullable=False, unique=True, index=True)  # stored upper-case
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    terms = relationship(
        "CourseTerm", back_populates="course",
        cascade="all, delete-orphan", order_by="(CourseTerm.year, CourseTerm.semester)",
    )


class CourseTerm(Base):
    """One (year, semester) entry of a course."""
    __tablename__ = "course_terms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(SmallInteger, nullable=False)
    semester = Column(SmallInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint("course_id", "year", "semester", name="uq_course_term"),
        CheckConstraint("year BETWEEN 1 AND 4", name="ck_course_term_year"),
        CheckConstraint("semester BETWEEN 1 AND 2", name="ck_course_term_semester"),
    )

    course = relationship("Course", back_populates="terms")
    sections = relationship(
        "CourseSection", back_populates="term",
        cascade="all, delete-orphan", order_by="CourseSection.section_name",
    )


class CourseSection(Base):
    __tablename__ = "course_sections"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    term_id = Column(Uuid, ForeignKey("course_terms.id", ondelete="CASCADE"), nullable=False, index=True)
    section_name = Column(String(50), nullable=False)
    student_count = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("term_id", "section_name", name="uq_section_per_term"),
    )

    term = relationship("CourseTerm", back_populates="sections")
