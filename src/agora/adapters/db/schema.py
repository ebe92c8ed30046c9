"""Relational schema for agora.

One table per aggregate. Column names match the fields of the aggregate's
persistence record, so rows map straight onto records and back. Every table
carries a ``version`` column used for optimistic concurrency and a nullable
``deleted_at`` where the aggregate supports archiving.

Constraints (enforced here):

| Constraint                                   | Purpose                           |
|----------------------------------------------|-----------------------------------|
| CHECK(version >= 1)                          | stored versions start at 1        |
| UNIQUE(community_id, code) on coupons        | coupon codes unique per community |
| UNIQUE(user_id, course_id) on progress       | one progress per user and course  |
| UNIQUE(user_id, course_id) on certificates   | one certificate per user, course  |
| UNIQUE(verification_code) on certificates    | a code names one certificate      |
| UNIQUE(content_id, version_number)           | one snapshot per version number   |
| CHECK(exactly one target) on likes           | a like hits a post or a comment   |
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

from agora.domain.value_objects import (
    BillingInterval,
    ChannelPermission,
    ContentType,
    DiscountType,
    LessonType,
    NotificationType,
    SubscriptionStatus,
)

from .types import PORTABLE_JSON, StringEnum, UTCDateTime

__all__ = [
    "certificates",
    "channels",
    "comments",
    "communities",
    "content_versions",
    "coupons",
    "course_progress",
    "courses",
    "lessons",
    "likes",
    "metadata",
    "notifications",
    "payment_tiers",
    "post_drafts",
    "posts",
    "spaces",
    "subscriptions",
    "TABLES",
]

# Deterministic constraint names keep Alembic diffs stable across backends.
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(table_name)s_%(column_0_N_name)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

ID_LENGTH = 36  # ULIDs are 26 chars, UUID strings 36


def _id_column(name: str = "id", nullable: bool = False, **kwargs) -> Column:
    return Column(name, String(ID_LENGTH), nullable=nullable, **kwargs)


def _audit_columns(updated: bool = True, archivable: bool = True) -> list[Column]:
    columns = [Column("created_at", UTCDateTime(), nullable=False)]
    if updated:
        columns.append(Column("updated_at", UTCDateTime(), nullable=False))
    if archivable:
        columns.append(Column("deleted_at", UTCDateTime(), nullable=True))
    columns.append(
        Column(
            "version",
            Integer,
            nullable=False,
            comment="Optimistic concurrency version (starts at 1).",
        )
    )
    return columns


def _positive_version() -> CheckConstraint:
    return CheckConstraint("version >= 1", name="positive_version")


# --- Communities & posts ---

communities = Table(
    "communities",
    metadata,
    _id_column(primary_key=True),
    Column("name", String(100), nullable=False),
    Column("logo_url", Text, nullable=True),
    Column("primary_color", String(7), nullable=False),
    _id_column("owner_id"),
    *_audit_columns(),
    _positive_version(),
    Index(None, "owner_id"),
    comment="Tenant communities.",
)

posts = Table(
    "posts",
    metadata,
    _id_column(primary_key=True),
    _id_column("community_id"),
    _id_column("author_id"),
    Column("title", String(200), nullable=False),
    Column("content", Text, nullable=False),
    Column("is_pinned", Boolean, nullable=False),
    Column("is_solved", Boolean, nullable=False),
    Column("like_count", Integer, nullable=False),
    Column("helpful_count", Integer, nullable=False),
    Column("comment_count", Integer, nullable=False),
    Column("view_count", Integer, nullable=False),
    Column("published_at", UTCDateTime(), nullable=True),
    *_audit_columns(),
    _positive_version(),
    Index(None, "community_id", "is_pinned", "created_at"),
    comment="Discussion posts. published_at NULL means draft.",
)

comments = Table(
    "comments",
    metadata,
    _id_column(primary_key=True),
    _id_column("post_id"),
    _id_column("author_id"),
    _id_column("parent_id", nullable=True),
    Column("content", Text, nullable=False),
    Column("like_count", Integer, nullable=False),
    Column("helpful_count", Integer, nullable=False),
    *_audit_columns(),
    _positive_version(),
    Index(None, "post_id", "created_at"),
    comment="Comments and single-level replies on posts.",
)

likes = Table(
    "likes",
    metadata,
    _id_column(primary_key=True),
    _id_column("user_id"),
    _id_column("post_id", nullable=True),
    _id_column("comment_id", nullable=True),
    *_audit_columns(updated=False, archivable=False),
    _positive_version(),
    CheckConstraint(
        "(post_id IS NULL) <> (comment_id IS NULL)", name="exactly_one_target"
    ),
    Index(None, "user_id", "post_id"),
    Index(None, "user_id", "comment_id"),
    comment="Likes of posts or comments. Deleted, never archived.",
)

post_drafts = Table(
    "post_drafts",
    metadata,
    _id_column(primary_key=True),
    _id_column("post_id", nullable=True),
    _id_column("user_id"),
    Column("content", PORTABLE_JSON, nullable=False, comment="Editor state object."),
    Column("saved_at", UTCDateTime(), nullable=False),
    Column("expires_at", UTCDateTime(), nullable=False),
    *_audit_columns(updated=False, archivable=False),
    _positive_version(),
    Index(None, "user_id", "post_id"),
    Index(None, "expires_at"),
    comment="Autosaved post drafts. Deleted once expired, never archived.",
)

content_versions = Table(
    "content_versions",
    metadata,
    _id_column(primary_key=True),
    Column("content_type", StringEnum(ContentType), nullable=False),
    _id_column("content_id"),
    Column("content", Text, nullable=False),
    Column("version_number", Integer, nullable=False),
    *_audit_columns(updated=False, archivable=False),
    _positive_version(),
    CheckConstraint("version_number >= 1", name="positive_version_number"),
    UniqueConstraint("content_id", "version_number"),
    comment="Immutable snapshots of post and comment content.",
)

# --- Courses ---

courses = Table(
    "courses",
    metadata,
    _id_column(primary_key=True),
    _id_column("community_id"),
    _id_column("instructor_id"),
    Column("title", String(200), nullable=False),
    Column("description", Text, nullable=False),
    Column("is_published", Boolean, nullable=False),
    Column("published_at", UTCDateTime(), nullable=True),
    *_audit_columns(),
    _positive_version(),
    Index(None, "community_id"),
)

lessons = Table(
    "lessons",
    metadata,
    _id_column(primary_key=True),
    _id_column("course_id"),
    _id_column("section_id", nullable=True),
    Column("title", String(200), nullable=False),
    Column("content", Text, nullable=False),
    Column("lesson_type", StringEnum(LessonType), nullable=False),
    Column("video_url", Text, nullable=True),
    Column("pdf_url", Text, nullable=True),
    Column("order", Integer, nullable=False),
    Column("drip_available_at", UTCDateTime(), nullable=True),
    *_audit_columns(),
    _positive_version(),
    Index(None, "course_id", "order"),
)

course_progress = Table(
    "course_progress",
    metadata,
    _id_column(primary_key=True),
    _id_column("user_id"),
    _id_column("course_id"),
    Column(
        "completed_lesson_ids",
        PORTABLE_JSON,
        nullable=False,
        comment="JSON array of completed lesson IDs, in completion order.",
    ),
    _id_column("last_accessed_lesson_id", nullable=True),
    Column("completed_at", UTCDateTime(), nullable=True),
    *_audit_columns(archivable=False),
    _positive_version(),
    UniqueConstraint("user_id", "course_id"),
)

certificates = Table(
    "certificates",
    metadata,
    _id_column(primary_key=True),
    _id_column("course_id"),
    _id_column("user_id"),
    Column("user_name", String(255), nullable=False),
    Column("course_name", String(200), nullable=False),
    Column("instructor_name", String(255), nullable=False),
    Column("issued_at", UTCDateTime(), nullable=False),
    Column("pdf_url", Text, nullable=True),
    Column("verification_code", String(8), nullable=False),
    Column("version", Integer, nullable=False),
    _positive_version(),
    UniqueConstraint("user_id", "course_id"),
    UniqueConstraint("verification_code"),
    comment="Course completion certificates.",
)

# --- Spaces & channels ---

spaces = Table(
    "spaces",
    metadata,
    _id_column(primary_key=True),
    _id_column("community_id"),
    _id_column("parent_space_id", nullable=True),
    Column("name", String(100), nullable=False),
    Column("description", Text, nullable=False),
    Column("icon", String(100), nullable=True),
    Column("color", String(7), nullable=True),
    Column("position", Integer, nullable=False),
    _id_column("created_by"),
    *_audit_columns(),
    _positive_version(),
    Index(None, "community_id", "position"),
)

channels = Table(
    "channels",
    metadata,
    _id_column(primary_key=True),
    _id_column("community_id"),
    _id_column("space_id", nullable=True),
    Column("name", String(100), nullable=False),
    Column("description", Text, nullable=False),
    Column("permission", StringEnum(ChannelPermission), nullable=False),
    _id_column("required_tier_id", nullable=True),
    Column("icon", String(100), nullable=True),
    Column("position", Integer, nullable=False),
    _id_column("created_by"),
    *_audit_columns(),
    _positive_version(),
    Index(None, "community_id", "position"),
)

# --- Payments ---

payment_tiers = Table(
    "payment_tiers",
    metadata,
    _id_column(primary_key=True),
    _id_column("community_id"),
    Column("name", String(100), nullable=False),
    Column("description", Text, nullable=False),
    Column("price_monthly", Integer, nullable=False, comment="Cents."),
    Column("price_annual", Integer, nullable=False, comment="Cents."),
    Column("features", PORTABLE_JSON, nullable=False),
    Column("is_active", Boolean, nullable=False),
    *_audit_columns(),
    _positive_version(),
    Index(None, "community_id"),
)

coupons = Table(
    "coupons",
    metadata,
    _id_column(primary_key=True),
    _id_column("community_id"),
    Column("code", String(50), nullable=False),
    Column("discount_type", StringEnum(DiscountType), nullable=False),
    Column(
        "discount_value",
        Integer,
        nullable=False,
        comment="Percent (1-100) or cents depending on discount_type.",
    ),
    Column("expires_at", UTCDateTime(), nullable=True),
    Column("max_uses", Integer, nullable=True),
    Column("used_count", Integer, nullable=False),
    Column("is_active", Boolean, nullable=False),
    *_audit_columns(),
    _positive_version(),
    UniqueConstraint("community_id", "code"),
)

subscriptions = Table(
    "subscriptions",
    metadata,
    _id_column(primary_key=True),
    _id_column("user_id"),
    _id_column("community_id"),
    _id_column("payment_tier_id"),
    Column("stripe_subscription_id", String(255), nullable=True),
    Column("stripe_customer_id", String(255), nullable=True),
    Column("status", StringEnum(SubscriptionStatus), nullable=False),
    Column("interval", StringEnum(BillingInterval), nullable=False),
    Column("current_period_start", UTCDateTime(), nullable=False),
    Column("current_period_end", UTCDateTime(), nullable=False),
    Column("cancel_at_period_end", Boolean, nullable=False),
    Column("trial_ends_at", UTCDateTime(), nullable=True),
    *_audit_columns(),
    _positive_version(),
    Index(None, "user_id", "community_id"),
    Index(None, "stripe_subscription_id"),
)

# --- Notifications ---

notifications = Table(
    "notifications",
    metadata,
    _id_column(primary_key=True),
    _id_column("user_id"),
    _id_column("community_id"),
    Column("notification_type", StringEnum(NotificationType), nullable=False),
    Column("message", String(500), nullable=False),
    Column("link_url", Text, nullable=True),
    _id_column("actor_id", nullable=True),
    Column("is_read", Boolean, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("deleted_at", UTCDateTime(), nullable=True),
    Column("version", Integer, nullable=False),
    _positive_version(),
    Index(None, "user_id", "is_read"),
)

#: Table per repository kind, used by the SQLAlchemy repositories.
TABLES = {
    "Community": communities,
    "Post": posts,
    "Comment": comments,
    "Like": likes,
    "Post draft": post_drafts,
    "Content version": content_versions,
    "Course": courses,
    "Lesson": lessons,
    "Course progress": course_progress,
    "Certificate": certificates,
    "Space": spaces,
    "Channel": channels,
    "Payment tier": payment_tiers,
    "Coupon": coupons,
    "Subscription": subscriptions,
    "Notification": notifications,
}
