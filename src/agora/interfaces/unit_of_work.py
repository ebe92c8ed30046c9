"""Unit of Work interface for agora.

Defines the AbstractUnitOfWork contract: a context-managed unit of work
exposing one repository per aggregate and abstract commit/rollback methods.
"""

from __future__ import annotations

import abc
from collections.abc import Iterator

from agora.domain.events import DomainEvent

from .repositories import (
    AbstractRepository,
    CertificateRepository,
    ChannelRepository,
    CommentRepository,
    CommunityRepository,
    ContentVersionRepository,
    CouponRepository,
    CourseProgressRepository,
    CourseRepository,
    LessonRepository,
    LikeRepository,
    NotificationRepository,
    PaymentTierRepository,
    PostDraftRepository,
    PostRepository,
    SpaceRepository,
    SubscriptionRepository,
)


class AbstractUnitOfWork(abc.ABC):
    """Contract for a transactional unit of work."""

    communities: CommunityRepository
    posts: PostRepository
    comments: CommentRepository
    likes: LikeRepository
    post_drafts: PostDraftRepository
    content_versions: ContentVersionRepository
    courses: CourseRepository
    lessons: LessonRepository
    course_progress: CourseProgressRepository
    certificates: CertificateRepository
    spaces: SpaceRepository
    channels: ChannelRepository
    payment_tiers: PaymentTierRepository
    coupons: CouponRepository
    subscriptions: SubscriptionRepository
    notifications: NotificationRepository

    def __enter__(self) -> AbstractUnitOfWork:
        """Enter the unit of work context and return the unit.

        Implementations may acquire transactional resources here.
        """
        return self

    def __exit__(self, *args):
        """Exit the unit of work context.

        Default behavior is to roll back on exit.
        """
        self.rollback()

    def repositories(self) -> tuple[AbstractRepository, ...]:
        """The repositories bound so far (none before the first ``with`` block)."""
        names = (
            "communities",
            "posts",
            "comments",
            "likes",
            "post_drafts",
            "content_versions",
            "courses",
            "lessons",
            "course_progress",
            "certificates",
            "spaces",
            "channels",
            "payment_tiers",
            "coupons",
            "subscriptions",
            "notifications",
        )
        return tuple(
            repository
            for name in names
            if (repository := getattr(self, name, None)) is not None
        )

    def collect_new_events(self) -> Iterator[DomainEvent]:
        """Drain the pending events of every aggregate the repositories have seen."""
        for repository in self.repositories():
            for aggregate in repository.seen:
                yield from aggregate.dequeue_uncommitted()

    @abc.abstractmethod
    def commit(self):
        """Persist changes and finalize the transaction."""

    @abc.abstractmethod
    def rollback(self):
        """Revert changes and clean up transactional resources."""
