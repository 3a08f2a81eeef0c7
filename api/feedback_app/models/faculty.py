# api/feedback_app/models/faculty.py
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Uuid, func
from sqlalchemy.orm import relationship

from feedback_app.db.base_class import Base


class Faculty(Base):
    __tablename__ = "faculty"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False, index=True)
    phone_number = Column(String(20), unique=True, nullable=True)  # natural key for bulk import
    designation = Column(String(120), nullable=True)
    department = Column(String(200), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)  # soft delete

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    default_subjects = relationship("Subject", back_populates="faculty", passive_deletes=True)
    section_assignments = relationship(
        "SubjectSectionFaculty", back_populates="faculty",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def subject_ids(self) -> set:
        # Derived from both assignment variants so it can never drift from Subject
        ids = {s.id for s in self.default_subjects}
        ids.update(a.subject_id for a in self.section_assignments)
        return ids
