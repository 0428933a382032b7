"""Initial schema: profiles, pipeline entries, call attempts, weekly performance, sales credits, coaching

Revision ID: 3f9c1a7d2e40
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c1a7d2e40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('profiles',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('full_name', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('pipeline_entries',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('stage', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pipeline_entries_user_id', 'pipeline_entries', ['user_id'])

    op.create_table('call_attempts',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('pipeline_entry_id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('attempt_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('next_follow_up', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['pipeline_entry_id'], ['pipeline_entries.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_call_attempts_pipeline_entry_id', 'call_attempts', ['pipeline_entry_id'])

    op.create_table('performance_metrics',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('week_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sales_amount', sa.Float(), nullable=False),
        sa.Column('calls_made', sa.Integer(), nullable=False),
        sa.Column('meetings_booked', sa.Integer(), nullable=False),
        sa.Column('leads_generated', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'week_number', 'year', name='uq_performance_metric_user_week'),
    )
    op.create_index('ix_performance_metrics_user_id', 'performance_metrics', ['user_id'])

    op.create_table('sales_credits',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('pipeline_entry_id', sa.Text(), nullable=False),
        sa.Column('performance_metric_id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('credited_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['pipeline_entry_id'], ['pipeline_entries.id']),
        sa.ForeignKeyConstraint(['performance_metric_id'], ['performance_metrics.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pipeline_entry_id'),
    )

    op.create_table('coaching_programs',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('program_sessions',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('program_id', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('session_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['program_id'], ['coaching_programs.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('user_assignments',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('session_id', sa.Text(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['session_id'], ['program_sessions.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_assignments_user_id', 'user_assignments', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_user_assignments_user_id', table_name='user_assignments')
    op.drop_table('user_assignments')
    op.drop_table('program_sessions')
    op.drop_table('coaching_programs')
    op.drop_table('sales_credits')
    op.drop_index('ix_performance_metrics_user_id', table_name='performance_metrics')
    op.drop_table('performance_metrics')
    op.drop_index('ix_call_attempts_pipeline_entry_id', table_name='call_attempts')
    op.drop_table('call_attempts')
    op.drop_index('ix_pipeline_entries_user_id', table_name='pipeline_entries')
    op.drop_table('pipeline_entries')
    op.drop_table('profiles')
