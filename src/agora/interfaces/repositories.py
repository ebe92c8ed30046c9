"""Repository interfaces.

One port per aggregate. Repositories store aggregates through their
``to_persistence()`` records and hand back re-validated aggregates via
``reconstitute()``.

Conventions shared by every implementation:
  - ``get`` and the ``list_*`` / ``find_*`` finders hide archived aggregates
    unless ``include_archived=True`` is passed.
  - ``add`` stores a new aggregate at version 1. ``update`` succeeds only if the
    stored version equals the aggregate's ``version``, then bumps both.
  - Every aggregate a repository returns or accepts is added to ``seen`` so
    the unit of work can collect the domain events it queued.
"""

from __future__ import annotations

import abc
from datetime import datetime
from typing import ClassVar, Generic, TypeVar

from agora.domain.aggregates import (
    Aggregate,
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
from agora.interfaces.errors import EntityNotFoundError

A = TypeVar("A", bound=Aggregate)


class AbstractRepository(abc.ABC, Generic[A]):
    """Common contract of all repositories."""

    KIND: ClassVar[str]  # e.g., "Community", used in error messages

    def __init__(self) -> None:
        self.seen: set[Aggregate] = set()

    def add(self, aggregate: A) -> None:
        """Store a new aggregate.

        Raises:
            DuplicateEntityError: If an aggregate with the same ID is stored.
        """
        self._add(aggregate)
        aggregate.mark_persisted(1)
        self.seen.add(aggregate)

    def update(self, aggregate: A) -> None:
        """Store the current state of a previously loaded aggregate.

        Raises:
            EntityNotFoundError: If the aggregate was never stored.
            ConcurrencyConflictError: If someone else stored it since it was loaded.
        """
        self._update(aggregate)
        aggregate.mark_persisted(aggregate.version + 1)
        self.seen.add(aggregate)

    def get(self, aggregate_id: str, include_archived: bool = False) -> A | None:
        """Get an aggregate by its ID.

        Args:
            aggregate_id: The aggregate's ID.
            include_archived: Also return archived aggregates.

        Returns:
            The aggregate if found, otherwise None.
        """
        aggregate = self._get(aggregate_id, include_archived)
        if aggregate is not None:
            self.seen.add(aggregate)
        return aggregate

    def require(self, aggregate_id: str, include_archived: bool = False) -> A:
        """Like :meth:`get` but raise :class:`EntityNotFoundError` when missing."""
        aggregate = self.get(aggregate_id, include_archived)
        if aggregate is None:
            raise EntityNotFoundError(self.KIND, aggregate_id)
        return aggregate

    @abc.abstractmethod
    def _add(self, aggregate: A) -> None:
        """Insert the aggregate's record."""

    @abc.abstractmethod
    def _update(self, aggregate: A) -> None:
        """Replace the aggregate's record, checking its version."""

    @abc.abstractmethod
    def _get(self, aggregate_id: str, include_archived: bool) -> A | None:
        """Load one aggregate, or None."""


class ArchivableRepository(AbstractRepository[A]):
    """Repository for aggregates with soft-delete semantics."""

    def archive(self, aggregate_id: str) -> None:
        """Archive the aggregate through its own ``archive()`` rules.

        Raises:
            EntityNotFoundError: If no such aggregate exists.
            InvalidTransitionError: If the aggregate refuses to be archived.
        """
        aggregate = self.require(aggregate_id, include_archived=True)
        aggregate.archive()  # type: ignore[attr-defined]
        self.update(aggregate)

    def restore(self, aggregate_id: str) -> None:
        """Restore an archived aggregate.

        Raises:
            EntityNotFoundError: If no such aggregate exists.
            NotArchivedError: If the aggregate is not archived.
        """
        aggregate = self.require(aggregate_id, include_archived=True)
        aggregate.restore()  # type: ignore[attr-defined]
        self.update(aggregate)


# ============================================================================
#                               Communities & posts
# ============================================================================


class CommunityRepository(ArchivableRepository[Community]):
    """Contract for storing communities."""

    KIND = "Community"

    @abc.abstractmethod
    def list_by_owner(
        self, owner_id: str, include_archived: bool = False
    ) -> list[Community]:
        """List the communities owned by a user, oldest first."""


class PostRepository(ArchivableRepository[Post]):
    """Contract for storing posts."""

    KIND = "Post"

    @abc.abstractmethod
    def list_by_community(
        self,
        community_id: str,
        published_only: bool = False,
        include_archived: bool = False,
    ) -> list[Post]:
        """List a community's posts, pinned first and then newest first."""


class CommentRepository(ArchivableRepository[Comment]):
    """Contract for storing comments."""

    KIND = "Comment"

    @abc.abstractmethod
    def list_by_post(
        self, post_id: str, include_archived: bool = False
    ) -> list[Comment]:
        """List a post's comments and replies, oldest first."""


class LikeRepository(AbstractRepository[Like]):
    """Contract for storing likes. Likes are deleted, never archived."""

    KIND = "Like"

    @abc.abstractmethod
    def find_by_user_and_post(self, user_id: str, post_id: str) -> Like | None:
        """Find a user's like of a post."""

    @abc.abstractmethod
    def find_by_user_and_comment(self, user_id: str, comment_id: str) -> Like | None:
        """Find a user's like of a comment."""

    @abc.abstractmethod
    def count_by_post(self, post_id: str) -> int:
        """Count the likes of a post."""

    @abc.abstractmethod
    def delete(self, like_id: str) -> None:
        """Remove a like.

        Raises:
            EntityNotFoundError: If no such like exists.
        """


class PostDraftRepository(AbstractRepository[PostDraft]):
    """Contract for storing post drafts. Expired drafts are deleted, never archived."""

    KIND = "Post draft"

    @abc.abstractmethod
    def find_by_user_and_post(
        self, user_id: str, post_id: str | None
    ) -> PostDraft | None:
        """Find a user's draft of a post, or of a new post when *post_id* is None."""

    @abc.abstractmethod
    def list_by_user(self, user_id: str) -> list[PostDraft]:
        """List a user's drafts, most recently saved first."""

    @abc.abstractmethod
    def delete(self, draft_id: str) -> None:
        """Remove a draft.

        Raises:
            EntityNotFoundError: If no such draft exists.
        """

    @abc.abstractmethod
    def delete_expired(self, now: datetime) -> int:
        """Remove every draft that expired before *now* and return how many."""


class ContentVersionRepository(AbstractRepository[ContentVersion]):
    """Contract for storing content versions. Versions are never changed."""

    KIND = "Content version"

    @abc.abstractmethod
    def list_by_content(self, content_id: str) -> list[ContentVersion]:
        """List the versions of a post or comment, latest first."""

    @abc.abstractmethod
    def find_by_content_and_number(
        self, content_id: str, version_number: int
    ) -> ContentVersion | None:
        """Find one numbered version of a post or comment."""

    @abc.abstractmethod
    def find_latest(self, content_id: str) -> ContentVersion | None:
        """Find the highest-numbered version of a post or comment."""


# ============================================================================
#                               Courses
# ============================================================================


class CourseRepository(ArchivableRepository[Course]):
    """Contract for storing courses."""

    KIND = "Course"

    @abc.abstractmethod
    def list_by_community(
        self, community_id: str, include_archived: bool = False
    ) -> list[Course]:
        """List a community's courses, oldest first."""


class LessonRepository(ArchivableRepository[Lesson]):
    """Contract for storing lessons."""

    KIND = "Lesson"

    @abc.abstractmethod
    def list_by_course(
        self, course_id: str, include_archived: bool = False
    ) -> list[Lesson]:
        """List a course's lessons by ascending ``order``."""


class CourseProgressRepository(AbstractRepository[CourseProgress]):
    """Contract for storing course progress."""

    KIND = "Course progress"

    @abc.abstractmethod
    def find_by_user_and_course(
        self, user_id: str, course_id: str
    ) -> CourseProgress | None:
        """Find a user's progress in a course."""


class CertificateRepository(AbstractRepository[Certificate]):
    """Contract for storing certificates."""

    KIND = "Certificate"

    @abc.abstractmethod
    def find_by_user_and_course(
        self, user_id: str, course_id: str
    ) -> Certificate | None:
        """Find the certificate a user holds for a course."""

    @abc.abstractmethod
    def find_by_verification_code(self, code: str) -> Certificate | None:
        """Find a certificate by its verification code."""

    @abc.abstractmethod
    def list_by_user(self, user_id: str) -> list[Certificate]:
        """List a user's certificates, most recently issued first."""


# ============================================================================
#                               Spaces & channels
# ============================================================================


class SpaceRepository(ArchivableRepository[Space]):
    """Contract for storing spaces."""

    KIND = "Space"

    @abc.abstractmethod
    def list_by_community(
        self, community_id: str, include_archived: bool = False
    ) -> list[Space]:
        """List a community's spaces by ascending ``position``."""


class ChannelRepository(ArchivableRepository[Channel]):
    """Contract for storing channels."""

    KIND = "Channel"

    @abc.abstractmethod
    def list_by_community(
        self, community_id: str, include_archived: bool = False
    ) -> list[Channel]:
        """List a community's channels by ascending ``position``."""


# ============================================================================
#                               Payments
# ============================================================================


class PaymentTierRepository(ArchivableRepository[PaymentTier]):
    """Contract for storing payment tiers."""

    KIND = "Payment tier"

    @abc.abstractmethod
    def list_by_community(
        self,
        community_id: str,
        active_only: bool = False,
        include_archived: bool = False,
    ) -> list[PaymentTier]:
        """List a community's tiers, cheapest monthly price first."""

    @abc.abstractmethod
    def find_free_tier(self, community_id: str) -> PaymentTier | None:
        """Find the community's active tier priced at zero, if any."""


class CouponRepository(ArchivableRepository[Coupon]):
    """Contract for storing coupons."""

    KIND = "Coupon"

    @abc.abstractmethod
    def find_by_code(self, code: str, community_id: str) -> Coupon | None:
        """Find a coupon by code within a community.

        Note:
            `code` lookup is case-insensitive; implementers should uppercase it.
        """


class SubscriptionRepository(ArchivableRepository[Subscription]):
    """Contract for storing subscriptions."""

    KIND = "Subscription"

    @abc.abstractmethod
    def find_by_user_and_community(
        self, user_id: str, community_id: str
    ) -> Subscription | None:
        """Find the most recently created live subscription of a user."""

    @abc.abstractmethod
    def find_by_stripe_subscription_id(
        self, stripe_subscription_id: str
    ) -> Subscription | None:
        """Find a subscription by its payment gateway ID."""

    @abc.abstractmethod
    def count_active_by_community(self, community_id: str) -> int:
        """Count the ACTIVE or TRIALING subscriptions of a community."""


# ============================================================================
#                               Notifications
# ============================================================================


class NotificationRepository(ArchivableRepository[Notification]):
    """Contract for storing notifications."""

    KIND = "Notification"

    @abc.abstractmethod
    def list_for_user(
        self,
        user_id: str,
        community_id: str | None = None,
        unread_only: bool = False,
        limit: int | None = None,
    ) -> list[Notification]:
        """List a user's notifications, newest first."""

    @abc.abstractmethod
    def count_unread(self, user_id: str, community_id: str | None = None) -> int:
        """Count a user's unread notifications."""
