"""init schema: courses, faculty, subjects, forms, responses

Revision ID: 0001_init_schema
Revises:
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '0001_init_schema'
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'courses',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('course_name', sa.String(200), nullable=False),
        sa.Column('course_code', sa.String(50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_courses_course_code', 'courses', ['course_code'], unique=True)

    op.create_table(
        'course_terms',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('year', sa.SmallInteger(), nullable=False),
        sa.Column('semester', sa.SmallInteger(), nullable=False),
        sa.UniqueConstraint('course_id', 'year', 'semester', name='uq_course_term'),
        sa.CheckConstraint('year BETWEEN 1 AND 4', name='ck_course_term_year'),
        sa.CheckConstraint('semester BETWEEN 1 AND 2', name='ck_course_term_semester'),
    )
    op.create_index('ix_course_terms_course_id', 'course_terms', ['course_id'])

    op.create_table(
        'course_sections',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('term_id', sa.Uuid(), sa.ForeignKey('course_terms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('section_name', sa.String(50), nullable=False),
        sa.Column('student_count', sa.Integer(), nullable=True),
        sa.UniqueConstraint('term_id', 'section_name', name='uq_section_per_term'),
    )
    op.create_index('ix_course_sections_term_id', 'course_sections', ['term_id'])

    op.create_table(
        'faculty',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('phone_number', sa.String(20), nullable=True, unique=True),
        sa.Column('designation', sa.String(120), nullable=True),
        sa.Column('department', sa.String(200), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_faculty_name', 'faculty', ['name'])

    op.create_table(
        'subjects',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('subject_name', sa.String(200), nullable=False),
        sa.Column('subject_code', sa.String(50), nullable=True),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('year', sa.SmallInteger(), nullable=False),
        sa.Column('semester', sa.SmallInteger(), nullable=False),
        sa.Column('faculty_id', sa.Uuid(), sa.ForeignKey('faculty.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_lab', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('course_id', 'year', 'semester', 'subject_name', name='uq_subject_per_term'),
    )
    op.create_index('ix_subjects_course_id', 'subjects', ['course_id'])
    op.create_index('ix_subjects_faculty_id', 'subjects', ['faculty_id'])

    op.create_table(
        'subject_section_faculty',
        sa.Column('subject_id', sa.Uuid(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('section_id', sa.Uuid(), sa.ForeignKey('course_sections.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('faculty_id', sa.Uuid(), sa.ForeignKey('faculty.id', ondelete='CASCADE'), nullable=False),
    )
    op.create_index('ix_subject_section_faculty_faculty_id', 'subject_section_faculty', ['faculty_id'])

    op.create_table(
        'feedback_forms',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('form_name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_global', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('training_name', sa.String(255), nullable=True),
        sa.Column('created_by', sa.String(120), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'form_questions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('form_id', sa.Uuid(), sa.ForeignKey('feedback_forms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(20), nullable=False),
        sa.Column('options', JSONType, nullable=True),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('scale_min', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('scale_max', sa.Integer(), nullable=False, server_default='5'),
    )
    op.create_index('ix_form_questions_form_id', 'form_questions', ['form_id'])

    op.create_table(
        'form_activation_periods',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('form_id', sa.Uuid(), sa.ForeignKey('feedback_forms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_form_activation_periods_form_id', 'form_activation_periods', ['form_id'])
    # at most one open period per form
    op.create_index(
        'uq_form_open_period', 'form_activation_periods', ['form_id'], unique=True,
        postgresql_where=sa.text('"end" IS NULL'), sqlite_where=sa.text('"end" IS NULL'),
    )

    op.create_table(
        'form_assigned_faculty',
        sa.Column('form_id', sa.Uuid(), sa.ForeignKey('feedback_forms.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('faculty_id', sa.Uuid(), sa.ForeignKey('faculty.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'responses',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('student_name', sa.String(200), nullable=False),
        sa.Column('student_phone', sa.String(20), nullable=True),
        sa.Column('roll_number', sa.String(50), nullable=False),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('year', sa.SmallInteger(), nullable=False),
        sa.Column('semester', sa.SmallInteger(), nullable=False),
        sa.Column('section_id', sa.Uuid(), sa.ForeignKey('course_sections.id', ondelete='SET NULL'), nullable=True),
        sa.Column('form_id', sa.Uuid(), sa.ForeignKey('feedback_forms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('roll_number', 'course_id', 'year', 'semester', 'period_start',
                            name='uq_response_student_period'),
    )
    op.create_index('ix_responses_roll_number', 'responses', ['roll_number'])
    op.create_index('ix_responses_course_id', 'responses', ['course_id'])
    op.create_index('ix_responses_form_id', 'responses', ['form_id'])
    op.create_index('ix_responses_submitted_at', 'responses', ['submitted_at'])

    op.create_table(
        'subject_responses',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('response_id', sa.Uuid(), sa.ForeignKey('responses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.Uuid(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('form_id', sa.Uuid(), sa.ForeignKey('feedback_forms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('questions', JSONType, nullable=False),
        sa.Column('answers', JSONType, nullable=False),
    )
    op.create_index('ix_subject_responses_response_id', 'subject_responses', ['response_id'])
    op.create_index('ix_subject_responses_subject_id', 'subject_responses', ['subject_id'])
    op.create_index('ix_subject_responses_form_id', 'subject_responses', ['form_id'])


def downgrade():
    op.drop_table('subject_responses')
    op.drop_table('responses')
    op.drop_table('form_assigned_faculty')
    op.drop_index('uq_form_open_period', table_name='form_activation_periods')
    op.drop_table('form_activation_periods')
    op.drop_table('form_questions')
    op.drop_table('feedback_forms')
    op.drop_table('subject_section_faculty')
    op.drop_table('subjects')
    op.drop_table('faculty')
    op.drop_table('course_sections')
    op.drop_table('course_terms')
    op.drop_index('ix_courses_course_code', table_name='courses')
    op.drop_table('courses')
