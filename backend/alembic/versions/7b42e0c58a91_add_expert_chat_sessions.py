"""add expert chat sessions

Revision ID: 7b42e0c58a91
Revises: 3c1f9a2d7e10
Create Date: 2026-09-09 10:41:52.630127

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7b42e0c58a91'
down_revision: Union[str, Sequence[str], None] = '3c1f9a2d7e10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "expert_chat_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("admin_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("messages", sa.JSON(), nullable=False),
        sa.Column("user_request_reason", sa.Text(), nullable=True),
        sa.Column("urgency", sa.String(length=16), nullable=True),
        sa.Column("mental_issue_root", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_expert_chat_sessions_id", "expert_chat_sessions", ["id"])
    op.create_index("ix_expert_chat_sessions_user_id", "expert_chat_sessions", ["user_id"])
    op.create_index("ix_expert_chat_sessions_status", "expert_chat_sessions", ["status"])


def downgrade() -> None:
    op.drop_index("ix_expert_chat_sessions_status", table_name="expert_chat_sessions")
    op.drop_index("ix_expert_chat_sessions_user_id", table_name="expert_chat_sessions")
    op.drop_index("ix_expert_chat_sessions_id", table_name="expert_chat_sessions")
    op.drop_table("expert_chat_sessions")
