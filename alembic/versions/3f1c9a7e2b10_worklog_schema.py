"""worklog schema

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-19 10:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('last_report_edit_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'name', name='uq_project_user_name'),
        sa.UniqueConstraint('user_id', 'code', name='uq_project_user_code'),
    )
    op.create_index('ix_projects_id', 'projects', ['id'])
    op.create_index('ix_projects_user_id', 'projects', ['user_id'])

    op.create_table(
        'daily_reports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('is_plan', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'date', 'is_plan', name='uq_daily_report_user_date_plan'),
    )
    op.create_index('ix_daily_reports_id', 'daily_reports', ['id'])
    op.create_index('ix_daily_reports_user_id', 'daily_reports', ['user_id'])

    op.create_table(
        'report_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('report_id', sa.Integer(), sa.ForeignKey('daily_reports.id', ondelete='CASCADE'), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_report_items_id', 'report_items', ['id'])
    op.create_index('ix_report_items_report_id', 'report_items', ['report_id'])
    op.create_index('ix_report_items_project_id', 'report_items', ['project_id'])

    op.create_table(
        'period_reports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('kind', sa.String(8), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('period_index', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('generated_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'kind', 'year', 'period_index', name='uq_period_report_key'),
    )
    op.create_index('ix_period_reports_id', 'period_reports', ['id'])
    op.create_index('ix_period_reports_user_id', 'period_reports', ['user_id'])

    op.create_table(
        'project_todos',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('priority', sa.String(8), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_project_todos_id', 'project_todos', ['id'])
    op.create_index('ix_project_todos_user_id', 'project_todos', ['user_id'])
    op.create_index('ix_project_todos_project_id', 'project_todos', ['project_id'])

    op.create_table(
        'work_breakdown_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('work_breakdown_items.id'), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('is_expanded', sa.Boolean(), nullable=True),
        sa.Column('status', sa.String(8), nullable=False),
        sa.Column('tags', sa.Text(), nullable=True),
        sa.Column('members', sa.Text(), nullable=True),
        sa.Column('progress_notes', sa.Text(), nullable=True),
        sa.Column('planned_start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('planned_end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('actual_start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('actual_end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_milestone', sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('level >= 0 AND level <= 4', name='ck_work_item_level'),
    )
    op.create_index('ix_work_breakdown_items_id', 'work_breakdown_items', ['id'])
    op.create_index('ix_work_breakdown_items_user_id', 'work_breakdown_items', ['user_id'])
    op.create_index('ix_work_breakdown_items_project_id', 'work_breakdown_items', ['project_id'])
    op.create_index('ix_work_breakdown_items_parent_id', 'work_breakdown_items', ['parent_id'])

    op.create_table(
        'work_breakdown_shares',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('share_token', sa.String(32), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_work_breakdown_shares_id', 'work_breakdown_shares', ['id'])
    op.create_index('ix_work_breakdown_shares_user_id', 'work_breakdown_shares', ['user_id'])
    op.create_index('ix_work_breakdown_shares_share_token', 'work_breakdown_shares', ['share_token'], unique=True)

    op.create_table(
        'project_weekly_reports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_plan', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'year', 'week_number', name='uq_project_weekly_report_key'),
        sa.CheckConstraint('week_number >= 1 AND week_number <= 53', name='ck_project_weekly_week'),
    )
    op.create_index('ix_project_weekly_reports_id', 'project_weekly_reports', ['id'])
    op.create_index('ix_project_weekly_reports_user_id', 'project_weekly_reports', ['user_id'])

    op.create_table(
        'project_weekly_report_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('report_id', sa.Integer(), sa.ForeignKey('project_weekly_reports.id', ondelete='CASCADE'), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('work_item_id', sa.Integer(), sa.ForeignKey('work_breakdown_items.id', ondelete='SET NULL'), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_project_weekly_report_items_id', 'project_weekly_report_items', ['id'])
    op.create_index('ix_project_weekly_report_items_report_id', 'project_weekly_report_items', ['report_id'])
    op.create_index('ix_project_weekly_report_items_project_id', 'project_weekly_report_items', ['project_id'])
    op.create_index('ix_project_weekly_report_items_work_item_id', 'project_weekly_report_items', ['work_item_id'])


def downgrade() -> None:
    op.drop_table('project_weekly_report_items')
    op.drop_table('project_weekly_reports')
    op.drop_table('work_breakdown_shares')
    op.drop_table('work_breakdown_items')
    op.drop_table('project_todos')
    op.drop_table('period_reports')
    op.drop_table('report_items')
    op.drop_table('daily_reports')
    op.drop_table('projects')
    op.drop_table('users')
