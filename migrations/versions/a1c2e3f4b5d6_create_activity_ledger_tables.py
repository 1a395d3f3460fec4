"""create activity ledger tables

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-03-02 10:12:40.118211

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c2e3f4b5d6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'missions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('deleted_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'activity_reports',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), server_default='draft', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('currency', sa.String(length=3), server_default='EUR', nullable=False),
        sa.Column('total_days', sa.Numeric(precision=10, scale=2), server_default='0', nullable=False),
        sa.Column('total_amount_cents', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('submitted_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('locked_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_activity_reports_owner_id', 'activity_reports', ['owner_id'])
    op.create_index('ix_activity_reports_owner_period', 'activity_reports', ['owner_id', 'year', 'month'])

    op.create_table(
        'entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('unit_price_cents', sa.BigInteger(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('deleted_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_entries_date', 'entries', ['date'])

    # Relation tables (no business foreign keys on entries)
    op.create_table(
        'entry_reports',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entry_id', sa.Integer(), nullable=False),
        sa.Column('report_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('entry_id'),
    )
    op.create_index('ix_entry_reports_report_id', 'entry_reports', ['report_id'])

    op.create_table(
        'entry_missions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entry_id', sa.Integer(), nullable=False),
        sa.Column('mission_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('entry_id'),
    )
    op.create_index('ix_entry_missions_mission_id', 'entry_missions', ['mission_id'])

    op.create_table(
        'report_missions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('report_id', sa.Integer(), nullable=False),
        sa.Column('mission_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('report_id', 'mission_id', name='uq_report_mission'),
    )
    op.create_index('ix_report_missions_report_id', 'report_missions', ['report_id'])
    op.create_index('ix_report_missions_mission_id', 'report_missions', ['mission_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_report_missions_mission_id', table_name='report_missions')
    op.drop_index('ix_report_missions_report_id', table_name='report_missions')
    op.drop_table('report_missions')
    op.drop_index('ix_entry_missions_mission_id', table_name='entry_missions')
    op.drop_table('entry_missions')
    op.drop_index('ix_entry_reports_report_id', table_name='entry_reports')
    op.drop_table('entry_reports')
    op.drop_index('ix_entries_date', table_name='entries')
    op.drop_table('entries')
    op.drop_index('ix_activity_reports_owner_period', table_name='activity_reports')
    op.drop_index('ix_activity_reports_owner_id', table_name='activity_reports')
    op.drop_table('activity_reports')
    op.drop_table('missions')
