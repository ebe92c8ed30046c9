"""SQLAlchemy-backed repository implementations.

Every repository works on the :class:`~sqlalchemy.engine.Connection` owned by
the unit of work and never commits on its own. Rows map one-to-one onto the
aggregates' persistence records (see :mod:`agora.adapters.db.schema`).

Optimistic concurrency is enforced with a compare-and-swap ``UPDATE ... WHERE
version = :expected``. Zero affected rows means the aggregate either vanished
or was stored by someone else since it was loaded.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any, ClassVar, Generic

from sqlalchemy import Select, Table, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from agora.adapters.db import schema
from agora.domain.aggregates import (
    Certificate,
    Channel,
    Comment,
    Community,
    ContentVersion,
    Coupon,
    Course,
    CourseProgress,
    Lesson,
    Like,
    Notification,
    PaymentTier,
    Post,
    PostDraft,
    Space,
    Subscription,
)
from agora.domain.utils import dataclass_from_mapping
from agora.domain.value_objects import SubscriptionStatus
from agora.interfaces import repositories
from agora.interfaces.errors import (
    ConcurrencyConflictError,
    DuplicateEntityError,
    EntityNotFoundError,
)
from agora.interfaces.repositories import A

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

# pylint: disable=too-many-ancestors


class SqlAlchemyRepository(Generic[A]):
    """Mixin mapping aggregates to rows of one table."""

    AGGREGATE: ClassVar[type[Any]]
    TABLE: ClassVar[Table]
    KIND: ClassVar[str]

    def __init__(self, connection: Connection) -> None:
        super().__init__()
        self.connection = connection

    # --- Interface implementation ---

    def _add(self, aggregate: A) -> None:
        row = self._to_row(aggregate.to_persistence())
        row["version"] = 1
        try:
            self.connection.execute(insert(self.TABLE).values(**row))
        except IntegrityError as e:
            raise DuplicateEntityError(self.KIND, aggregate.id) from e

    def _update(self, aggregate: A) -> None:
        row = self._to_row(aggregate.to_persistence())
        row["version"] = aggregate.version + 1
        del row["id"]
        stmt = (
            update(self.TABLE)
            .where(self.TABLE.c.id == aggregate.id)
            .where(self.TABLE.c.version == aggregate.version)
            .values(**row)
        )
        if self.connection.execute(stmt).rowcount == 1:
            return

        stored = self.connection.execute(
            select(self.TABLE.c.version).where(self.TABLE.c.id == aggregate.id)
        ).scalar_one_or_none()
        if stored is None:
            raise EntityNotFoundError(self.KIND, aggregate.id)
        raise ConcurrencyConflictError(
            self.KIND, aggregate.id, aggregate.version, stored
        )

    def _get(self, aggregate_id: str, include_archived: bool) -> A | None:
        found = self._fetch(
            self._select(include_archived).where(self.TABLE.c.id == aggregate_id)
        )
        return found[0] if found else None

    # --- Query helpers ---

    def _select(self, include_archived: bool = False) -> Select:
        stmt = select(self.TABLE)
        if not include_archived and "deleted_at" in self.TABLE.c:
            stmt = stmt.where(self.TABLE.c.deleted_at.is_(None))
        return stmt

    def _fetch(self, stmt: Select) -> list[A]:
        rows = self.connection.execute(stmt).mappings().all()
        aggregates = [
            self.AGGREGATE.reconstitute(
                dataclass_from_mapping(self.AGGREGATE.RECORD_TYPE, row)
            )
            for row in rows
        ]
        self.seen.update(aggregates)  # type: ignore[attr-defined]
        return aggregates

    def _fetch_one(self, stmt: Select) -> A | None:
        found = self._fetch(stmt.limit(1))
        return found[0] if found else None

    def _count(self, *criteria) -> int:
        stmt = select(func.count()).select_from(self.TABLE).where(*criteria)
        return self.connection.execute(stmt).scalar_one()

    @staticmethod
    def _to_row(record: Any) -> dict[str, Any]:
        row = {}
        for f in dataclasses.fields(record):
            value = getattr(record, f.name)
            row[f.name] = list(value) if isinstance(value, tuple) else value
        return row


# ============================================================================
#                               Communities & posts
# ============================================================================


class SqlAlchemyCommunityRepository(
    SqlAlchemyRepository[Community], repositories.CommunityRepository
):
    """SQLAlchemy community repository."""

    AGGREGATE = Community
    TABLE = schema.communities

    def list_by_owner(self, owner_id, include_archived=False):
        t = self.TABLE
        return self._fetch(
            self._select(include_archived)
            .where(t.c.owner_id == owner_id)
            .order_by(t.c.created_at)
        )


class SqlAlchemyPostRepository(SqlAlchemyRepository[Post], repositories.PostRepository):
    """SQLAlchemy post repository."""

    AGGREGATE = Post
    TABLE = schema.posts

    def list_by_community(
        self, community_id, published_only=False, include_archived=False
    ):
        t = self.TABLE
        stmt = self._select(include_archived).where(t.c.community_id == community_id)
        if published_only:
            stmt = stmt.where(t.c.published_at.is_not(None))
        return self._fetch(stmt.order_by(t.c.is_pinned.desc(), t.c.created_at.desc()))


class SqlAlchemyCommentRepository(
    SqlAlchemyRepository[Comment], repositories.CommentRepository
):
    """SQLAlchemy comment repository."""

    AGGREGATE = Comment
    TABLE = schema.comments

    def list_by_post(self, post_id, include_archived=False):
        t = self.TABLE
        return self._fetch(
            self._select(include_archived)
            .where(t.c.post_id == post_id)
            .order_by(t.c.created_at)
        )


class SqlAlchemyLikeRepository(SqlAlchemyRepository[Like], repositories.LikeRepository):
    """SQLAlchemy like repository."""

    AGGREGATE = Like
    TABLE = schema.likes

    def find_by_user_and_post(self, user_id, post_id):
        t = self.TABLE
        return self._fetch_one(
            self._select().where(t.c.user_id == user_id, t.c.post_id == post_id)
        )

    def find_by_user_and_comment(self, user_id, comment_id):
        t = self.TABLE
        return self._fetch_one(
            self._select().where(t.c.user_id == user_id, t.c.comment_id == comment_id)
        )

    def count_by_post(self, post_id):
        return self._count(self.TABLE.c.post_id == post_id)

    def delete(self, like_id):
        result = self.connection.execute(
            self.TABLE.delete().where(self.TABLE.c.id == like_id)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError(self.KIND, like_id)


class SqlAlchemyPostDraftRepository(
    SqlAlchemyRepository[PostDraft], repositories.PostDraftRepository
):
    """SQLAlchemy post draft repository."""

    AGGREGATE = PostDraft
    TABLE = schema.post_drafts

    def find_by_user_and_post(self, user_id, post_id):
        t = self.TABLE
        target = t.c.post_id.is_(None) if post_id is None else t.c.post_id == post_id
        return self._fetch_one(self._select().where(t.c.user_id == user_id, target))

    def list_by_user(self, user_id):
        t = self.TABLE
        return self._fetch(
            self._select().where(t.c.user_id == user_id).order_by(t.c.saved_at.desc())
        )

    def delete(self, draft_id):
        result = self.connection.execute(
            self.TABLE.delete().where(self.TABLE.c.id == draft_id)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError(self.KIND, draft_id)

    def delete_expired(self, now):
        result = self.connection.execute(
            self.TABLE.delete().where(self.TABLE.c.expires_at < now)
        )
        return result.rowcount


class SqlAlchemyContentVersionRepository(
    SqlAlchemyRepository[ContentVersion], repositories.ContentVersionRepository
):
    """SQLAlchemy content version repository."""

    AGGREGATE = ContentVersion
    TABLE = schema.content_versions

    def list_by_content(self, content_id):
        t = self.TABLE
        return self._fetch(
            self._select()
            .where(t.c.content_id == content_id)
            .order_by(t.c.version_number.desc())
        )

    def find_by_content_and_number(self, content_id, version_number):
        t = self.TABLE
        return self._fetch_one(
            self._select().where(
                t.c.content_id == content_id, t.c.version_number == version_number
            )
        )

    def find_latest(self, content_id):
        t = self.TABLE
        return self._fetch_one(
            self._select()
            .where(t.c.content_id == content_id)
            .order_by(t.c.version_number.desc())
        )


# ============================================================================
#                               Courses
# ============================================================================


class SqlAlchemyCourseRepository(
    SqlAlchemyRepository[Course], repositories.CourseRepository
):
    """SQLAlchemy course repository."""

    AGGREGATE = Course
    TABLE = schema.courses

    def list_by_community(self, community_id, include_archived=False):
        t = self.TABLE
        return self._fetch(
            self._select(include_archived)
            .where(t.c.community_id == community_id)
            .order_by(t.c.created_at)
        )


class SqlAlchemyLessonRepository(
    SqlAlchemyRepository[Lesson], repositories.LessonRepository
):
    """SQLAlchemy lesson repository."""

    AGGREGATE = Lesson
    TABLE = schema.lessons

    def list_by_course(self, course_id, include_archived=False):
        t = self.TABLE
        return self._fetch(
            self._select(include_archived)
            .where(t.c.course_id == course_id)
            .order_by(t.c["order"], t.c.created_at)
        )


class SqlAlchemyCourseProgressRepository(
    SqlAlchemyRepository[CourseProgress], repositories.CourseProgressRepository
):
    """SQLAlchemy course progress repository."""

    AGGREGATE = CourseProgress
    TABLE = schema.course_progress

    def find_by_user_and_course(self, user_id, course_id):
        t = self.TABLE
        return self._fetch_one(
            self._select().where(t.c.user_id == user_id, t.c.course_id == course_id)
        )


class SqlAlchemyCertificateRepository(
    SqlAlchemyRepository[Certificate], repositories.CertificateRepository
):
    """SQLAlchemy certificate repository."""

    AGGREGATE = Certificate
    TABLE = schema.certificates

    def find_by_user_and_course(self, user_id, course_id):
        t = self.TABLE
        return self._fetch_one(
            self._select().where(t.c.user_id == user_id, t.c.course_id == course_id)
        )

    def find_by_verification_code(self, code):
        return self._fetch_one(
            self._select().where(self.TABLE.c.verification_code == code)
        )

    def list_by_user(self, user_id):
        t = self.TABLE
        return self._fetch(
            self._select().where(t.c.user_id == user_id).order_by(t.c.issued_at.desc())
        )


# ============================================================================
#                               Spaces & channels
# ============================================================================


class SqlAlchemySpaceRepository(
    SqlAlchemyRepository[Space], repositories.SpaceRepository
):
    """SQLAlchemy space repository."""

    AGGREGATE = Space
    TABLE = schema.spaces

    def list_by_community(self, community_id, include_archived=False):
        t = self.TABLE
        return self._fetch(
            self._select(include_archived)
            .where(t.c.community_id == community_id)
            .order_by(t.c.position, t.c.created_at)
        )


class SqlAlchemyChannelRepository(
    SqlAlchemyRepository[Channel], repositories.ChannelRepository
):
    """SQLAlchemy channel repository."""

    AGGREGATE = Channel
    TABLE = schema.channels

    def list_by_community(self, community_id, include_archived=False):
        t = self.TABLE
        return self._fetch(
            self._select(include_archived)
            .where(t.c.community_id == community_id)
            .order_by(t.c.position, t.c.created_at)
        )


# ============================================================================
#                               Payments
# ============================================================================


class SqlAlchemyPaymentTierRepository(
    SqlAlchemyRepository[PaymentTier], repositories.PaymentTierRepository
):
    """SQLAlchemy payment tier repository."""

    AGGREGATE = PaymentTier
    TABLE = schema.payment_tiers

    def list_by_community(
        self, community_id, active_only=False, include_archived=False
    ):
        t = self.TABLE
        stmt = self._select(include_archived).where(t.c.community_id == community_id)
        if active_only:
            stmt = stmt.where(t.c.is_active.is_(True))
        return self._fetch(stmt.order_by(t.c.price_monthly, t.c.created_at))

    def find_free_tier(self, community_id):
        t = self.TABLE
        return self._fetch_one(
            self._select()
            .where(
                t.c.community_id == community_id,
                t.c.is_active.is_(True),
                t.c.price_monthly == 0,
                t.c.price_annual == 0,
            )
            .order_by(t.c.created_at)
        )


class SqlAlchemyCouponRepository(
    SqlAlchemyRepository[Coupon], repositories.CouponRepository
):
    """SQLAlchemy coupon repository."""

    AGGREGATE = Coupon
    TABLE = schema.coupons

    def find_by_code(self, code, community_id):
        t = self.TABLE
        return self._fetch_one(
            self._select().where(
                t.c.community_id == community_id, t.c.code == code.strip().upper()
            )
        )


class SqlAlchemySubscriptionRepository(
    SqlAlchemyRepository[Subscription], repositories.SubscriptionRepository
):
    """SQLAlchemy subscription repository."""

    AGGREGATE = Subscription
    TABLE = schema.subscriptions

    def find_by_user_and_community(self, user_id, community_id):
        t = self.TABLE
        return self._fetch_one(
            self._select()
            .where(t.c.user_id == user_id, t.c.community_id == community_id)
            .order_by(t.c.created_at.desc())
        )

    def find_by_stripe_subscription_id(self, stripe_subscription_id):
        t = self.TABLE
        return self._fetch_one(
            self._select().where(t.c.stripe_subscription_id == stripe_subscription_id)
        )

    def count_active_by_community(self, community_id):
        t = self.TABLE
        return self._count(
            t.c.community_id == community_id,
            t.c.status.in_([SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING]),
            t.c.deleted_at.is_(None),
        )


# ============================================================================
#                               Notifications
# ============================================================================


class SqlAlchemyNotificationRepository(
    SqlAlchemyRepository[Notification], repositories.NotificationRepository
):
    """SQLAlchemy notification repository."""

    AGGREGATE = Notification
    TABLE = schema.notifications

    def list_for_user(
        self, user_id, community_id=None, unread_only=False, limit=None
    ):
        t = self.TABLE
        stmt = self._select().where(t.c.user_id == user_id)
        if community_id is not None:
            stmt = stmt.where(t.c.community_id == community_id)
        if unread_only:
            stmt = stmt.where(t.c.is_read.is_(False))
        stmt = stmt.order_by(t.c.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return self._fetch(stmt)

    def count_unread(self, user_id, community_id=None):
        t = self.TABLE
        criteria = [t.c.user_id == user_id, t.c.is_read.is_(False), t.c.deleted_at.is_(None)]
        if community_id is not None:
            criteria.append(t.c.community_id == community_id)
        return self._count(*criteria)
