# api/feedback_app/models/feedback_form.py
import uuid
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, ForeignKey, DateTime, JSON, Table, Index, Uuid,
    func, text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from feedback_app.db.base_class import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")

QUESTION_TYPES = ("text", "textarea", "scale", "yesno", "multiplechoice")

form_assigned_faculty = Table(
    "form_assigned_faculty",
    Base.metadata,
    Column("form_id", Uuid, ForeignKey("feedback_forms.id", ondelete="CASCADE"), primary_key=True),
    Column("faculty_id", Uuid, ForeignKey("faculty.id", ondelete="CASCADE"), primary_key=True),
)


class FeedbackForm(Base):
    __tablename__ = "feedback_forms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    form_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=False)
    is_global = Column(Boolean, nullable=False, default=False)
    training_name = Column(String(255), nullable=True)  # only for global forms
    created_by = Column(String(120), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    questions = relationship(
        "FormQuestion", back_populates="form",
        cascade="all, delete-orphan", order_by="FormQuestion.position",
    )
    activation_periods = relationship(
        "FormActivationPeriod", back_populates="form",
        cascade="all, delete-orphan", order_by="FormActivationPeriod.start",
    )
    assigned_faculty = relationship("Faculty", secondary=form_assigned_faculty)

    @property
    def open_period(self):
        for p in self.activation_periods:
            if p.end is None:
                return p
        return None


class FormQuestion(Base):
    __tablename__ = "form_questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id = Column(Uuid, ForeignKey("feedback_forms.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(20), nullable=False)  # text|textarea|scale|yesno|multiplechoice
    options = Column(JSONType, nullable=True)           # multiplechoice only
    is_required = Column(Boolean, nullable=False, default=True)
    scale_min = Column(Integer, nullable=False, default=1)
    scale_max = Column(Integer, nullable=False, default=5)

    form = relationship("FeedbackForm", back_populates="questions")


class FormActivationPeriod(Base):
    __tablename__ = "form_activation_periods"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id = Column(Uuid, ForeignKey("feedback_forms.id", ondelete="CASCADE"), nullable=False, index=True)
    start = Column(DateTime(timezone=True), nullable=False)
    end = Column(DateTime(timezone=True), nullable=True)  # NULL = currently open

    __table_args__ = (
        # at most one open period per form
        Index(
            "uq_form_open_period", "form_id", unique=True,
            postgresql_where=text('"end" IS NULL'), sqlite_where=text('"end" IS NULL'),
        ),
    )

    form = relationship("FeedbackForm", back_populates="activation_periods")
