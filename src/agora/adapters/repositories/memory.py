"""In-memory repository implementations.

Records are kept in an :class:`InMemoryData` store and lost when it is
discarded. Used by unit tests and :func:`agora.bootstrap.bootstrap_in_memory`.

These implementations pass the same contract tests as the SQLAlchemy ones.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable
from typing import Any, ClassVar, Generic

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
from agora.domain.value_objects import SubscriptionStatus
from agora.interfaces import repositories
from agora.interfaces.errors import (
    ConcurrencyConflictError,
    DuplicateEntityError,
    EntityNotFoundError,
)
from agora.interfaces.repositories import A

from .memory_store import InMemoryData

# pylint: disable=too-many-ancestors


class InMemoryRepository(Generic[A]):
    """Mixin holding the record bookkeeping shared by every in-memory repository."""

    AGGREGATE: ClassVar[type[Any]]
    STORE_FIELD: ClassVar[str]
    KIND: ClassVar[str]

    def __init__(self, data: InMemoryData) -> None:
        super().__init__()
        self._data = data

    @property
    def _records(self) -> dict[str, Any]:
        return getattr(self._data, self.STORE_FIELD)

    # --- Interface implementation ---

    def _add(self, aggregate: A) -> None:
        if aggregate.id in self._records:
            raise DuplicateEntityError(self.KIND, aggregate.id)
        self._records[aggregate.id] = dataclasses.replace(
            aggregate.to_persistence(), version=1
        )

    def _update(self, aggregate: A) -> None:
        stored = self._records.get(aggregate.id)
        if stored is None:
            raise EntityNotFoundError(self.KIND, aggregate.id)
        if stored.version != aggregate.version:
            raise ConcurrencyConflictError(
                self.KIND, aggregate.id, aggregate.version, stored.version
            )
        self._records[aggregate.id] = dataclasses.replace(
            aggregate.to_persistence(), version=aggregate.version + 1
        )

    def _get(self, aggregate_id: str, include_archived: bool) -> A | None:
        record = self._records.get(aggregate_id)
        if record is None or (not include_archived and _is_archived(record)):
            return None
        return self.AGGREGATE.reconstitute(record)

    # --- Query helpers ---

    def _select(
        self,
        predicate: Callable[[Any], bool],
        include_archived: bool = False,
        sort_key: Callable[[Any], Any] | None = None,
        reverse: bool = False,
        limit: int | None = None,
    ) -> list[A]:
        records: Iterable[Any] = (
            r
            for r in self._records.values()
            if predicate(r) and (include_archived or not _is_archived(r))
        )
        if sort_key is not None:
            records = sorted(records, key=sort_key, reverse=reverse)
        selected = list(records)
        if limit is not None:
            selected = selected[:limit]
        aggregates = [self.AGGREGATE.reconstitute(r) for r in selected]
        self.seen.update(aggregates)  # type: ignore[attr-defined]
        return aggregates

    def _first(self, predicate: Callable[[Any], bool], **kwargs) -> A | None:
        found = self._select(predicate, limit=1, **kwargs)
        return found[0] if found else None


def _is_archived(record: Any) -> bool:
    return getattr(record, "deleted_at", None) is not None


# ============================================================================
#                               Communities & posts
# ============================================================================


class InMemoryCommunityRepository(
    InMemoryRepository[Community], repositories.CommunityRepository
):
    """In-memory community repository."""

    AGGREGATE = Community
    STORE_FIELD = "communities"

    def list_by_owner(self, owner_id, include_archived=False):
        return self._select(
            lambda r: r.owner_id == owner_id,
            include_archived,
            sort_key=lambda r: r.created_at,
        )


class InMemoryPostRepository(InMemoryRepository[Post], repositories.PostRepository):
    """In-memory post repository."""

    AGGREGATE = Post
    STORE_FIELD = "posts"

    def list_by_community(
        self, community_id, published_only=False, include_archived=False
    ):
        return self._select(
            lambda r: r.community_id == community_id
            and (not published_only or r.published_at is not None),
            include_archived,
            sort_key=lambda r: (r.is_pinned, r.created_at),
            reverse=True,
        )


class InMemoryCommentRepository(
    InMemoryRepository[Comment], repositories.CommentRepository
):
    """In-memory comment repository."""

    AGGREGATE = Comment
    STORE_FIELD = "comments"

    def list_by_post(self, post_id, include_archived=False):
        return self._select(
            lambda r: r.post_id == post_id,
            include_archived,
            sort_key=lambda r: r.created_at,
        )


class InMemoryLikeRepository(InMemoryRepository[Like], repositories.LikeRepository):
    """In-memory like repository."""

    AGGREGATE = Like
    STORE_FIELD = "likes"

    def find_by_user_and_post(self, user_id, post_id):
        return self._first(lambda r: r.user_id == user_id and r.post_id == post_id)

    def find_by_user_and_comment(self, user_id, comment_id):
        return self._first(
            lambda r: r.user_id == user_id and r.comment_id == comment_id
        )

    def count_by_post(self, post_id):
        return sum(1 for r in self._records.values() if r.post_id == post_id)

    def delete(self, like_id):
        if self._records.pop(like_id, None) is None:
            raise EntityNotFoundError(self.KIND, like_id)


class InMemoryPostDraftRepository(
    InMemoryRepository[PostDraft], repositories.PostDraftRepository
):
    """In-memory post draft repository."""

    AGGREGATE = PostDraft
    STORE_FIELD = "post_drafts"

    def find_by_user_and_post(self, user_id, post_id):
        return self._first(lambda r: r.user_id == user_id and r.post_id == post_id)

    def list_by_user(self, user_id):
        return self._select(
            lambda r: r.user_id == user_id,
            sort_key=lambda r: r.saved_at,
            reverse=True,
        )

    def delete(self, draft_id):
        if self._records.pop(draft_id, None) is None:
            raise EntityNotFoundError(self.KIND, draft_id)

    def delete_expired(self, now):
        expired = [k for k, r in self._records.items() if r.expires_at < now]
        for key in expired:
            del self._records[key]
        return len(expired)


class InMemoryContentVersionRepository(
    InMemoryRepository[ContentVersion], repositories.ContentVersionRepository
):
    """In-memory content version repository."""

    AGGREGATE = ContentVersion
    STORE_FIELD = "content_versions"

    def _add(self, aggregate):
        if any(
            r.content_id == aggregate.content_id
            and r.version_number == aggregate.version_number
            for r in self._records.values()
        ):
            raise DuplicateEntityError(
                self.KIND, f"{aggregate.content_id}@{aggregate.version_number}"
            )
        super()._add(aggregate)

    def list_by_content(self, content_id):
        return self._select(
            lambda r: r.content_id == content_id,
            sort_key=lambda r: r.version_number,
            reverse=True,
        )

    def find_by_content_and_number(self, content_id, version_number):
        return self._first(
            lambda r: r.content_id == content_id
            and r.version_number == version_number
        )

    def find_latest(self, content_id):
        return self._first(
            lambda r: r.content_id == content_id,
            sort_key=lambda r: r.version_number,
            reverse=True,
        )


# ============================================================================
#                               Courses
# ============================================================================


class InMemoryCourseRepository(
    InMemoryRepository[Course], repositories.CourseRepository
):
    """In-memory course repository."""

    AGGREGATE = Course
    STORE_FIELD = "courses"

    def list_by_community(self, community_id, include_archived=False):
        return self._select(
            lambda r: r.community_id == community_id,
            include_archived,
            sort_key=lambda r: r.created_at,
        )


class InMemoryLessonRepository(
    InMemoryRepository[Lesson], repositories.LessonRepository
):
    """In-memory lesson repository."""

    AGGREGATE = Lesson
    STORE_FIELD = "lessons"

    def list_by_course(self, course_id, include_archived=False):
        return self._select(
            lambda r: r.course_id == course_id,
            include_archived,
            sort_key=lambda r: (r.order, r.created_at),
        )


class InMemoryCourseProgressRepository(
    InMemoryRepository[CourseProgress], repositories.CourseProgressRepository
):
    """In-memory course progress repository."""

    AGGREGATE = CourseProgress
    STORE_FIELD = "course_progress"

    def find_by_user_and_course(self, user_id, course_id):
        return self._first(
            lambda r: r.user_id == user_id and r.course_id == course_id
        )


class InMemoryCertificateRepository(
    InMemoryRepository[Certificate], repositories.CertificateRepository
):
    """In-memory certificate repository."""

    AGGREGATE = Certificate
    STORE_FIELD = "certificates"

    def _add(self, aggregate):
        for r in self._records.values():
            if (r.user_id, r.course_id) == (aggregate.user_id, aggregate.course_id):
                raise DuplicateEntityError(
                    self.KIND, f"{aggregate.user_id}/{aggregate.course_id}"
                )
            if r.verification_code == aggregate.verification_code:
                raise DuplicateEntityError(self.KIND, aggregate.verification_code)
        super()._add(aggregate)

    def find_by_user_and_course(self, user_id, course_id):
        return self._first(
            lambda r: r.user_id == user_id and r.course_id == course_id
        )

    def find_by_verification_code(self, code):
        return self._first(lambda r: r.verification_code == code)

    def list_by_user(self, user_id):
        return self._select(
            lambda r: r.user_id == user_id,
            sort_key=lambda r: r.issued_at,
            reverse=True,
        )


# ============================================================================
#                               Spaces & channels
# ============================================================================


class InMemorySpaceRepository(InMemoryRepository[Space], repositories.SpaceRepository):
    """In-memory space repository."""

    AGGREGATE = Space
    STORE_FIELD = "spaces"

    def list_by_community(self, community_id, include_archived=False):
        return self._select(
            lambda r: r.community_id == community_id,
            include_archived,
            sort_key=lambda r: (r.position, r.created_at),
        )


class InMemoryChannelRepository(
    InMemoryRepository[Channel], repositories.ChannelRepository
):
    """In-memory channel repository."""

    AGGREGATE = Channel
    STORE_FIELD = "channels"

    def list_by_community(self, community_id, include_archived=False):
        return self._select(
            lambda r: r.community_id == community_id,
            include_archived,
            sort_key=lambda r: (r.position, r.created_at),
        )


# ============================================================================
#                               Payments
# ============================================================================


class InMemoryPaymentTierRepository(
    InMemoryRepository[PaymentTier], repositories.PaymentTierRepository
):
    """In-memory payment tier repository."""

    AGGREGATE = PaymentTier
    STORE_FIELD = "payment_tiers"

    def list_by_community(
        self, community_id, active_only=False, include_archived=False
    ):
        return self._select(
            lambda r: r.community_id == community_id
            and (not active_only or r.is_active),
            include_archived,
            sort_key=lambda r: (r.price_monthly, r.created_at),
        )

    def find_free_tier(self, community_id):
        return self._first(
            lambda r: r.community_id == community_id
            and r.is_active
            and r.price_monthly == 0
            and r.price_annual == 0,
            sort_key=lambda r: r.created_at,
        )


class InMemoryCouponRepository(
    InMemoryRepository[Coupon], repositories.CouponRepository
):
    """In-memory coupon repository."""

    AGGREGATE = Coupon
    STORE_FIELD = "coupons"

    def find_by_code(self, code, community_id):
        normalized = code.strip().upper()
        return self._first(
            lambda r: r.community_id == community_id and r.code == normalized
        )


class InMemorySubscriptionRepository(
    InMemoryRepository[Subscription], repositories.SubscriptionRepository
):
    """In-memory subscription repository."""

    AGGREGATE = Subscription
    STORE_FIELD = "subscriptions"

    def find_by_user_and_community(self, user_id, community_id):
        return self._first(
            lambda r: r.user_id == user_id and r.community_id == community_id,
            sort_key=lambda r: r.created_at,
            reverse=True,
        )

    def find_by_stripe_subscription_id(self, stripe_subscription_id):
        return self._first(
            lambda r: r.stripe_subscription_id == stripe_subscription_id
        )

    def count_active_by_community(self, community_id):
        live = (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)
        return sum(
            1
            for r in self._records.values()
            if r.community_id == community_id
            and r.status in live
            and not _is_archived(r)
        )


# ============================================================================
#                               Notifications
# ============================================================================


class InMemoryNotificationRepository(
    InMemoryRepository[Notification], repositories.NotificationRepository
):
    """In-memory notification repository."""

    AGGREGATE = Notification
    STORE_FIELD = "notifications"

    def list_for_user(
        self, user_id, community_id=None, unread_only=False, limit=None
    ):
        return self._select(
            lambda r: r.user_id == user_id
            and (community_id is None or r.community_id == community_id)
            and (not unread_only or not r.is_read),
            sort_key=lambda r: r.created_at,
            reverse=True,
            limit=limit,
        )

    def count_unread(self, user_id, community_id=None):
        return sum(
            1
            for r in self._records.values()
            if r.user_id == user_id
            and (community_id is None or r.community_id == community_id)
            and not r.is_read
            and not _is_archived(r)
        )
