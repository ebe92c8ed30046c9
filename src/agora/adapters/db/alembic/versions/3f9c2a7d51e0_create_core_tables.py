"""Create core tables

Revision ID: 3f9c2a7d51e0
Revises:
Create Date: 2026-10-19

"""

# pylint: disable=invalid-name

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from agora.adapters.db.types import PORTABLE_JSON, StringEnum, UTCDateTime
from agora.domain.value_objects import (
    BillingInterval,
    ChannelPermission,
    ContentType,
    DiscountType,
    LessonType,
    NotificationType,
    SubscriptionStatus,
)

# pylint: disable=no-member

# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d51e0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id(name: str = "id", nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.String(length=36), nullable=nullable)


def _audit(updated: bool = True, archivable: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", UTCDateTime(), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", UTCDateTime(), nullable=False))
    if archivable:
        columns.append(sa.Column("deleted_at", UTCDateTime(), nullable=True))
    columns.append(
        sa.Column(
            "version",
            sa.Integer(),
            nullable=False,
            comment="Optimistic concurrency version (starts at 1).",
        )
    )
    return columns


def _keys(table: str) -> list[sa.schema.Constraint]:
    return [
        sa.PrimaryKeyConstraint("id", name=op.f(f"pk_{table}")),
        sa.CheckConstraint(
            "version >= 1", name=op.f(f"ck_{table}_positive_version")
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "communities",
        _id(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("primary_color", sa.String(length=7), nullable=False),
        _id("owner_id"),
        *_audit(),
        *_keys("communities"),
        comment="Tenant communities.",
    )
    op.create_index(op.f("ix_communities_owner_id"), "communities", ["owner_id"])

    op.create_table(
        "posts",
        _id(),
        _id("community_id"),
        _id("author_id"),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_pinned", sa.Boolean(), nullable=False),
        sa.Column("is_solved", sa.Boolean(), nullable=False),
        sa.Column("like_count", sa.Integer(), nullable=False),
        sa.Column("helpful_count", sa.Integer(), nullable=False),
        sa.Column("comment_count", sa.Integer(), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False),
        sa.Column("published_at", UTCDateTime(), nullable=True),
        *_audit(),
        *_keys("posts"),
        comment="Discussion posts. published_at NULL means draft.",
    )
    op.create_index(
        op.f("ix_posts_community_id_is_pinned_created_at"),
        "posts",
        ["community_id", "is_pinned", "created_at"],
    )

    op.create_table(
        "comments",
        _id(),
        _id("post_id"),
        _id("author_id"),
        _id("parent_id", nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("like_count", sa.Integer(), nullable=False),
        sa.Column("helpful_count", sa.Integer(), nullable=False),
        *_audit(),
        *_keys("comments"),
        comment="Comments and single-level replies on posts.",
    )
    op.create_index(
        op.f("ix_comments_post_id_created_at"), "comments", ["post_id", "created_at"]
    )

    op.create_table(
        "likes",
        _id(),
        _id("user_id"),
        _id("post_id", nullable=True),
        _id("comment_id", nullable=True),
        *_audit(updated=False, archivable=False),
        *_keys("likes"),
        sa.CheckConstraint(
            "(post_id IS NULL) <> (comment_id IS NULL)",
            name=op.f("ck_likes_exactly_one_target"),
        ),
        comment="Likes of posts or comments. Deleted, never archived.",
    )
    op.create_index(op.f("ix_likes_user_id_post_id"), "likes", ["user_id", "post_id"])
    op.create_index(
        op.f("ix_likes_user_id_comment_id"), "likes", ["user_id", "comment_id"]
    )

    op.create_table(
        "post_drafts",
        _id(),
        _id("post_id", nullable=True),
        _id("user_id"),
        sa.Column(
            "content", PORTABLE_JSON, nullable=False, comment="Editor state object."
        ),
        sa.Column("saved_at", UTCDateTime(), nullable=False),
        sa.Column("expires_at", UTCDateTime(), nullable=False),
        *_audit(updated=False, archivable=False),
        *_keys("post_drafts"),
        comment="Autosaved post drafts. Deleted once expired, never archived.",
    )
    op.create_index(
        op.f("ix_post_drafts_user_id_post_id"), "post_drafts", ["user_id", "post_id"]
    )
    op.create_index(
        op.f("ix_post_drafts_expires_at"), "post_drafts", ["expires_at"]
    )

    op.create_table(
        "content_versions",
        _id(),
        sa.Column("content_type", StringEnum(ContentType), nullable=False),
        _id("content_id"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        *_audit(updated=False, archivable=False),
        *_keys("content_versions"),
        sa.CheckConstraint(
            "version_number >= 1",
            name=op.f("ck_content_versions_positive_version_number"),
        ),
        sa.UniqueConstraint(
            "content_id",
            "version_number",
            name=op.f("uq_content_versions_content_id_version_number"),
        ),
        comment="Immutable snapshots of post and comment content.",
    )

    op.create_table(
        "courses",
        _id(),
        _id("community_id"),
        _id("instructor_id"),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False),
        sa.Column("published_at", UTCDateTime(), nullable=True),
        *_audit(),
        *_keys("courses"),
    )
    op.create_index(op.f("ix_courses_community_id"), "courses", ["community_id"])

    op.create_table(
        "lessons",
        _id(),
        _id("course_id"),
        _id("section_id", nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("lesson_type", StringEnum(LessonType), nullable=False),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("pdf_url", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("drip_available_at", UTCDateTime(), nullable=True),
        *_audit(),
        *_keys("lessons"),
    )
    op.create_index(
        op.f("ix_lessons_course_id_order"), "lessons", ["course_id", "order"]
    )

    op.create_table(
        "course_progress",
        _id(),
        _id("user_id"),
        _id("course_id"),
        sa.Column(
            "completed_lesson_ids",
            PORTABLE_JSON,
            nullable=False,
            comment="JSON array of completed lesson IDs, in completion order.",
        ),
        _id("last_accessed_lesson_id", nullable=True),
        sa.Column("completed_at", UTCDateTime(), nullable=True),
        *_audit(archivable=False),
        *_keys("course_progress"),
        sa.UniqueConstraint(
            "user_id", "course_id", name=op.f("uq_course_progress_user_id_course_id")
        ),
    )

    op.create_table(
        "certificates",
        _id(),
        _id("course_id"),
        _id("user_id"),
        sa.Column("user_name", sa.String(length=255), nullable=False),
        sa.Column("course_name", sa.String(length=200), nullable=False),
        sa.Column("instructor_name", sa.String(length=255), nullable=False),
        sa.Column("issued_at", UTCDateTime(), nullable=False),
        sa.Column("pdf_url", sa.Text(), nullable=True),
        sa.Column("verification_code", sa.String(length=8), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        *_keys("certificates"),
        sa.UniqueConstraint(
            "user_id", "course_id", name=op.f("uq_certificates_user_id_course_id")
        ),
        sa.UniqueConstraint(
            "verification_code", name=op.f("uq_certificates_verification_code")
        ),
        comment="Course completion certificates.",
    )

    op.create_table(
        "spaces",
        _id(),
        _id("community_id"),
        _id("parent_space_id", nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(length=100), nullable=True),
        sa.Column("color", sa.String(length=7), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        _id("created_by"),
        *_audit(),
        *_keys("spaces"),
    )
    op.create_index(
        op.f("ix_spaces_community_id_position"), "spaces", ["community_id", "position"]
    )

    op.create_table(
        "channels",
        _id(),
        _id("community_id"),
        _id("space_id", nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("permission", StringEnum(ChannelPermission), nullable=False),
        _id("required_tier_id", nullable=True),
        sa.Column("icon", sa.String(length=100), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        _id("created_by"),
        *_audit(),
        *_keys("channels"),
    )
    op.create_index(
        op.f("ix_channels_community_id_position"),
        "channels",
        ["community_id", "position"],
    )

    op.create_table(
        "payment_tiers",
        _id(),
        _id("community_id"),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price_monthly", sa.Integer(), nullable=False, comment="Cents."),
        sa.Column("price_annual", sa.Integer(), nullable=False, comment="Cents."),
        sa.Column("features", PORTABLE_JSON, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_audit(),
        *_keys("payment_tiers"),
    )
    op.create_index(
        op.f("ix_payment_tiers_community_id"), "payment_tiers", ["community_id"]
    )

    op.create_table(
        "coupons",
        _id(),
        _id("community_id"),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("discount_type", StringEnum(DiscountType), nullable=False),
        sa.Column(
            "discount_value",
            sa.Integer(),
            nullable=False,
            comment="Percent (1-100) or cents depending on discount_type.",
        ),
        sa.Column("expires_at", UTCDateTime(), nullable=True),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("used_count", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_audit(),
        *_keys("coupons"),
        sa.UniqueConstraint(
            "community_id", "code", name=op.f("uq_coupons_community_id_code")
        ),
    )

    op.create_table(
        "subscriptions",
        _id(),
        _id("user_id"),
        _id("community_id"),
        _id("payment_tier_id"),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        sa.Column("status", StringEnum(SubscriptionStatus), nullable=False),
        sa.Column("interval", StringEnum(BillingInterval), nullable=False),
        sa.Column("current_period_start", UTCDateTime(), nullable=False),
        sa.Column("current_period_end", UTCDateTime(), nullable=False),
        sa.Column("cancel_at_period_end", sa.Boolean(), nullable=False),
        sa.Column("trial_ends_at", UTCDateTime(), nullable=True),
        *_audit(),
        *_keys("subscriptions"),
    )
    op.create_index(
        op.f("ix_subscriptions_user_id_community_id"),
        "subscriptions",
        ["user_id", "community_id"],
    )
    op.create_index(
        op.f("ix_subscriptions_stripe_subscription_id"),
        "subscriptions",
        ["stripe_subscription_id"],
    )

    op.create_table(
        "notifications",
        _id(),
        _id("user_id"),
        _id("community_id"),
        sa.Column("notification_type", StringEnum(NotificationType), nullable=False),
        sa.Column("message", sa.String(length=500), nullable=False),
        sa.Column("link_url", sa.Text(), nullable=True),
        _id("actor_id", nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("deleted_at", UTCDateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_keys("notifications"),
    )
    op.create_index(
        op.f("ix_notifications_user_id_is_read"),
        "notifications",
        ["user_id", "is_read"],
    )


def downgrade() -> None:
    """Downgrade schema."""

    for table in (
        "notifications",
        "subscriptions",
        "coupons",
        "payment_tiers",
        "channels",
        "spaces",
        "certificates",
        "course_progress",
        "lessons",
        "courses",
        "content_versions",
        "post_drafts",
        "likes",
        "comments",
        "posts",
        "communities",
    ):
        op.drop_table(table)
