"""create goals and records tables

Revision ID: 3e1b7c9d2f40
Revises:
Create Date: 2025-12-13 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3e1b7c9d2f40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()
    if 'goals' not in tables:
        op.create_table(
            'goals',
            sa.Column('id', sa.String(36), primary_key=True, nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('weekly_target_minutes', sa.Integer(), nullable=False),
            sa.Column('week_start_day', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False),
        )
        op.create_index('ix_goals_is_active', 'goals', ['is_active'])
    if 'records' not in tables:
        op.create_table(
            'records',
            sa.Column('id', sa.String(36), primary_key=True, nullable=False),
            sa.Column('goal_id', sa.String(36), nullable=False),
            sa.Column('date', sa.DateTime(), nullable=False),
            sa.Column('duration_minutes', sa.Integer(), nullable=False),
            sa.Column('start_time', sa.DateTime(), nullable=True),
            sa.Column('end_time', sa.DateTime(), nullable=True),
            sa.Column('clock_in_time', sa.DateTime(), nullable=True),
            sa.Column('clock_out_time', sa.DateTime(), nullable=True),
            sa.Column('clock_session', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('work_duration_minutes', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('notes', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_records_goal_date', 'records', ['goal_id', 'date'])


def downgrade() -> None:
    # Safe drop if exists
    op.execute('DROP TABLE IF EXISTS records')
    op.execute('DROP TABLE IF EXISTS goals')
