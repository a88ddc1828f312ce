"""add assessments and recommendations

Revision ID: e5d803b6c274
Revises: 7b42e0c58a91
Create Date: 2026-09-15 16:22:08.914455

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'e5d803b6c274'
down_revision: Union[str, Sequence[str], None] = '7b42e0c58a91'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "assessment_results",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category_scores", sa.JSON(), nullable=False),
        sa.Column("overall_severity", sa.String(), nullable=False),
        sa.Column("primary_concerns", sa.JSON(), nullable=False),
        sa.Column("recommendations", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_assessment_results_id", "assessment_results", ["id"])
    op.create_index("ix_assessment_results_user_id", "assessment_results", ["user_id"])

    op.create_table(
        "recommendations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "assessment_result_id",
            sa.Integer(),
            sa.ForeignKey("assessment_results.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", sa.SmallInteger(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_recommendations_id", "recommendations", ["id"])
    op.create_index(
        "ix_recommendations_assessment_result_id",
        "recommendations",
        ["assessment_result_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_recommendations_assessment_result_id", table_name="recommendations")
    op.drop_index("ix_recommendations_id", table_name="recommendations")
    op.drop_table("recommendations")

    op.drop_index("ix_assessment_results_user_id", table_name="assessment_results")
    op.drop_index("ix_assessment_results_id", table_name="assessment_results")
    op.drop_table("assessment_results")
