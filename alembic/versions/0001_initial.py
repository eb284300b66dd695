"""initial scoring schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _rating() -> sa.Numeric:
    return sa.Numeric(precision=5, scale=2, asdecimal=False)


def upgrade() -> None:
    op.create_table(
        "assessments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "dimensions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("assessment_id", sa.Integer(), nullable=False),
        sa.Column("dimension_key", sa.String(length=100), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["assessment_id"], ["assessments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("assessment_id", "dimension_key", name="uq_dimension_per_assessment"),
    )
    op.create_index("ix_dimensions_assessment_id", "dimensions", ["assessment_id"], unique=False)

    op.create_table(
        "topics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("dimension_id", sa.Integer(), nullable=False),
        sa.Column("topic_key", sa.String(length=100), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["dimension_id"], ["dimensions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dimension_id", "topic_key", name="uq_topic_per_dimension"),
    )
    op.create_index("ix_topics_dimension_id", "topics", ["dimension_id"], unique=False)

    bound = sa.Numeric(precision=3, scale=1, asdecimal=False)
    op.create_table(
        "topic_recommendations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("score_min", bound, nullable=True),
        sa.Column("score_max", bound, nullable=True),
        sa.Column("target_min", bound, nullable=True),
        sa.Column("target_max", bound, nullable=True),
        sa.Column("gap_min", bound, nullable=True),
        sa.Column("gap_max", bound, nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("why", sa.Text(), nullable=True),
        sa.Column("what", sa.Text(), nullable=True),
        sa.Column("how", sa.Text(), nullable=True),
        sa.Column("action_items", sa.JSON(), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "category IN ('Quick Win', 'Project', 'Big Bet')", name="ck_recommendation_category"
        ),
        sa.CheckConstraint("priority >= 0 AND priority <= 100", name="ck_recommendation_priority"),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_topic_recommendations_topic_id", "topic_recommendations", ["topic_id"], unique=False
    )
    op.create_index(
        "ix_topic_recommendations_active",
        "topic_recommendations",
        ["topic_id", "is_active"],
        unique=False,
    )

    op.create_table(
        "assessment_responses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("assessment_id", sa.Integer(), nullable=False),
        sa.Column("respondent", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("last_updated_at", sa.DateTime(), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("answered_questions", sa.Integer(), nullable=False),
        sa.Column("progress_percentage", _rating(), nullable=False),
        sa.Column("overall_score", _rating(), nullable=True),
        sa.Column("overall_gap", _rating(), nullable=True),
        sa.CheckConstraint("status IN ('in_progress', 'completed')", name="ck_response_status"),
        sa.ForeignKeyConstraint(["assessment_id"], ["assessments.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_assessment_responses_assessment_id",
        "assessment_responses",
        ["assessment_id"],
        unique=False,
    )
    op.create_index(
        "ix_assessment_responses_status", "assessment_responses", ["status"], unique=False
    )

    op.create_table(
        "topic_responses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("response_id", sa.Integer(), nullable=False),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("current_rating", _rating(), nullable=True),
        sa.Column("target_rating", _rating(), nullable=True),
        sa.Column("gap", _rating(), nullable=True),
        sa.Column("normalized_gap", _rating(), nullable=True),
        sa.Column("answered_at", sa.DateTime(), nullable=False),
        sa.Column("time_spent_seconds", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "(current_rating IS NULL OR (current_rating >= 1 AND current_rating <= 5)) "
            "AND (target_rating IS NULL OR (target_rating >= 1 AND target_rating <= 5))",
            name="ck_topic_response_ratings",
        ),
        sa.ForeignKeyConstraint(
            ["response_id"], ["assessment_responses.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("response_id", "topic_id", name="uq_topic_response"),
    )
    op.create_index(
        "ix_topic_responses_response_id", "topic_responses", ["response_id"], unique=False
    )
    op.create_index("ix_topic_responses_topic_id", "topic_responses", ["topic_id"], unique=False)

    op.create_table(
        "computed_priorities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("response_id", sa.Integer(), nullable=False),
        sa.Column("dimension_id", sa.Integer(), nullable=False),
        sa.Column("dimension_score", _rating(), nullable=False),
        sa.Column("dimension_gap", _rating(), nullable=False),
        sa.Column("priority_score", _rating(), nullable=False),
        sa.Column("rank_order", sa.Integer(), nullable=False),
        sa.Column("recommendations", sa.JSON(), nullable=False),
        sa.Column("computed_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["response_id"], ["assessment_responses.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["dimension_id"], ["dimensions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("response_id", "dimension_id", name="uq_dimension_priority"),
    )
    op.create_index(
        "ix_computed_priorities_response",
        "computed_priorities",
        ["response_id", "priority_score"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_computed_priorities_response", table_name="computed_priorities")
    op.drop_table("computed_priorities")
    op.drop_index("ix_topic_responses_topic_id", table_name="topic_responses")
    op.drop_index("ix_topic_responses_response_id", table_name="topic_responses")
    op.drop_table("topic_responses")
    op.drop_index("ix_assessment_responses_status", table_name="assessment_responses")
    op.drop_index("ix_assessment_responses_assessment_id", table_name="assessment_responses")
    op.drop_table("assessment_responses")
    op.drop_index("ix_topic_recommendations_active", table_name="topic_recommendations")
    op.drop_index("ix_topic_recommendations_topic_id", table_name="topic_recommendations")
    op.drop_table("topic_recommendations")
    op.drop_index("ix_topics_dimension_id", table_name="topics")
    op.drop_table("topics")
    op.drop_index("ix_dimensions_assessment_id", table_name="dimensions")
    op.drop_table("dimensions")
    op.drop_table("assessments")
