"""create engagement schema

Revision ID: 3a1f9c2e7b40
Revises:
Create Date: 2026-10-18 09:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "3a1f9c2e7b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "channels",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("subscriber_count", sa.BigInteger(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_channels_id"), "channels", ["id"], unique=False)
    op.create_index(op.f("ix_channels_user_id"), "channels", ["user_id"], unique=False)

    op.create_table(
        "channel_metrics_snapshots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("channel_id", sa.String(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("subscriber_count", sa.BigInteger(), nullable=True),
        sa.Column("new_subscribers", sa.Integer(), nullable=True),
        sa.Column("posts_count", sa.Integer(), nullable=True),
        sa.Column("total_views", sa.BigInteger(), nullable=True),
        sa.Column("total_reactions", sa.BigInteger(), nullable=True),
        sa.Column("engagement_rate", sa.Float(), nullable=True),
        sa.Column("estimated_ad_revenue", sa.Float(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(), nullable=True),
        sa.ForeignKeyConstraint(["channel_id"], ["channels.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("channel_id", "date", name="uq_snapshot_channel_date"),
    )
    op.create_index(op.f("ix_channel_metrics_snapshots_id"), "channel_metrics_snapshots", ["id"], unique=False)
    op.create_index(
        op.f("ix_channel_metrics_snapshots_channel_id"), "channel_metrics_snapshots", ["channel_id"], unique=False
    )

    op.create_table(
        "post_metrics",
        sa.Column("post_id", sa.String(), nullable=False),
        sa.Column("channel_id", sa.String(), nullable=False),
        sa.Column("post_date", sa.TIMESTAMP(), nullable=False),
        sa.Column("content_type", sa.String(), nullable=True),
        sa.Column("post_length", sa.Integer(), nullable=True),
        sa.Column("has_media", sa.Boolean(), nullable=True),
        sa.Column("views", sa.BigInteger(), nullable=True),
        sa.Column("reactions", sa.BigInteger(), nullable=True),
        sa.Column("shares", sa.BigInteger(), nullable=True),
        sa.Column("forwards", sa.BigInteger(), nullable=True),
        sa.Column("engagement_rate", sa.Float(), nullable=True),
        sa.Column("hashtags", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(), nullable=True),
        sa.ForeignKeyConstraint(["channel_id"], ["channels.id"]),
        sa.PrimaryKeyConstraint("post_id"),
    )
    op.create_index(op.f("ix_post_metrics_post_id"), "post_metrics", ["post_id"], unique=False)
    op.create_index(op.f("ix_post_metrics_channel_id"), "post_metrics", ["channel_id"], unique=False)
    op.create_index(op.f("ix_post_metrics_post_date"), "post_metrics", ["post_date"], unique=False)

    op.create_table(
        "recommendations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("channel_id", sa.String(), nullable=False),
        sa.Column("recommendation_type", sa.String(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("confidence_score", sa.Float(), nullable=False),
        sa.Column("expected_impact_percentage", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("is_dismissed", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(), nullable=True),
        sa.ForeignKeyConstraint(["channel_id"], ["channels.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_recommendations_id"), "recommendations", ["id"], unique=False)
    op.create_index(op.f("ix_recommendations_channel_id"), "recommendations", ["channel_id"], unique=False)
    op.create_index(op.f("ix_recommendations_is_active"), "recommendations", ["is_active"], unique=False)
    op.create_index(
        op.f("ix_recommendations_expected_impact_percentage"),
        "recommendations",
        ["expected_impact_percentage"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("recommendations")
    op.drop_table("post_metrics")
    op.drop_table("channel_metrics_snapshots")
    op.drop_table("channels")
