"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create assessments table
    op.create_table(
        'assessments',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('audience', sa.String(255), nullable=False),
        sa.Column('owner_id', sa.String(255), nullable=False),
        sa.Column('access_token', sa.String(32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_assessments'),
        sa.UniqueConstraint('access_token', name='uq_assessments_access_token')
    )
    op.create_index('ix_assessments_owner_id', 'assessments', ['owner_id'])

    # Create questions table
    op.create_table(
        'questions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('assessment_id', sa.String(36), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('modality', sa.String(32), nullable=False),
        sa.Column('time_budget_seconds', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('canonical_answer', sa.Text(), nullable=True),
        sa.Column('tolerance', sa.Integer(), nullable=False),
        sa.Column('attachment_type', sa.String(32), nullable=True),
        sa.Column('attachment_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_questions'),
        sa.ForeignKeyConstraint(
            ['assessment_id'], ['assessments.id'],
            name='fk_questions_assessment_id_assessments', ondelete='CASCADE'
        ),
        sa.UniqueConstraint('assessment_id', 'position', name='uq_questions_assessment_id_position')
    )
    op.create_index('ix_questions_assessment_id', 'questions', ['assessment_id'])

    # Create question_options table
    op.create_table(
        'question_options',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('question_id', sa.String(36), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_question_options'),
        sa.ForeignKeyConstraint(
            ['question_id'], ['questions.id'],
            name='fk_question_options_question_id_questions', ondelete='CASCADE'
        )
    )
    op.create_index('ix_question_options_question_id', 'question_options', ['question_id'])

    # Create attempts table
    op.create_table(
        'attempts',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('assessment_id', sa.String(36), nullable=False),
        sa.Column('participant_id', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('current_question_index', sa.Integer(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_attempts'),
        sa.ForeignKeyConstraint(
            ['assessment_id'], ['assessments.id'],
            name='fk_attempts_assessment_id_assessments', ondelete='CASCADE'
        ),
        sa.UniqueConstraint(
            'assessment_id', 'participant_id', name='uq_attempts_assessment_id_participant_id'
        )
    )
    op.create_index('ix_attempts_assessment_id', 'attempts', ['assessment_id'])
    op.create_index('ix_attempts_participant_id', 'attempts', ['participant_id'])

    # Create recorded_answers table
    op.create_table(
        'recorded_answers',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('attempt_id', sa.String(36), nullable=False),
        sa.Column('question_id', sa.String(36), nullable=False),
        sa.Column('text_answer', sa.Text(), nullable=True),
        sa.Column('selected_option_ids', sa.JSON(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('earned_points', sa.Integer(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_recorded_answers'),
        sa.ForeignKeyConstraint(
            ['attempt_id'], ['attempts.id'],
            name='fk_recorded_answers_attempt_id_attempts', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['question_id'], ['questions.id'],
            name='fk_recorded_answers_question_id_questions', ondelete='CASCADE'
        ),
        sa.UniqueConstraint(
            'attempt_id', 'question_id', name='uq_recorded_answers_attempt_id_question_id'
        )
    )
    op.create_index('ix_recorded_answers_attempt_id', 'recorded_answers', ['attempt_id'])

    # Create location_samples table
    op.create_table(
        'location_samples',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('attempt_id', sa.String(36), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_location_samples'),
        sa.ForeignKeyConstraint(
            ['attempt_id'], ['attempts.id'],
            name='fk_location_samples_attempt_id_attempts', ondelete='CASCADE'
        )
    )
    op.create_index('ix_location_samples_attempt_id', 'location_samples', ['attempt_id'])


def downgrade():
    op.drop_table('location_samples')
    op.drop_table('recorded_answers')
    op.drop_table('attempts')
    op.drop_table('question_options')
    op.drop_table('questions')
    op.drop_table('assessments')
