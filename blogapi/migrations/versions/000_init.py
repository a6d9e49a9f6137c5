"""create accounts table

Revision ID: 0001
Revises: 
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=30), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('google_id', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('profile_photo', sa.String(), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='viewer'),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verification_code', sa.String(length=6), nullable=True),
        sa.Column('verification_code_expiry', sa.DateTime(timezone=True), nullable=True),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lock_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('refresh_token', sa.String(), nullable=True),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username', name='uq_accounts_username'),
        sa.UniqueConstraint('email', name='uq_accounts_email'),
        sa.UniqueConstraint('google_id', name='uq_accounts_google_id'),
        sa.CheckConstraint("role IN ('viewer', 'author', 'admin')", name='ck_accounts_role'),
        sa.CheckConstraint('password_hash IS NOT NULL OR google_id IS NOT NULL', name='ck_accounts_credential'),
    )


def downgrade() -> None:
    op.drop_table('accounts')
