"""create user_settings table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "user_settings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("hf_token", sa.Text(), nullable=True),
        sa.Column("tiktok_client_id", sa.Text(), nullable=True),
        sa.Column("tiktok_client_secret", sa.Text(), nullable=True),
        sa.Column("tiktok_access_token", sa.Text(), nullable=True),
        sa.Column("tiktok_refresh_token", sa.Text(), nullable=True),
        sa.Column("tiktok_token_expiry", sa.DateTime(), nullable=True),
        sa.Column("video_length", sa.Integer(), nullable=True, server_default="8"),
        sa.Column("video_quality", sa.String(16), nullable=True, server_default="balanced"),
        sa.Column("default_privacy", sa.String(32), nullable=True, server_default="PUBLIC_TO_EVERYONE"),
        sa.Column("enable_comments", sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column("enable_duets", sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column("enable_stitch", sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("user_settings")
