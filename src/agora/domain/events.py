"""Events

Domain events are immutable records of a meaningful state transition. Aggregates
queue them while a command method runs; the service layer drains them with
``Aggregate.dequeue_uncommitted()`` and hands them to subscribers. Every event
carries enough data for a subscriber to act without re-fetching the aggregate.
"""

import abc
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from agora.domain.utils import utc_now
from agora.domain.value_objects import (
    ContentType,
    DiscountType,
    LessonType,
    ChannelPermission,
    NotificationType,
    SubscriptionStatus,
)

# pylint: disable=too-many-lines


@dataclass(frozen=True, slots=True)
class DomainEvent(abc.ABC):
    """Base class for all domain events.
    Requires a way to determine the owning aggregate ID.
    """

    name: ClassVar[str]
    """Dotted event name, e.g. ``"channel.created"``."""

    occurred_at: datetime = field(default_factory=utc_now, kw_only=True)

    @property
    @abc.abstractmethod
    def aggregate_id(self) -> str:
        """Return the ID of the aggregate this event belongs to."""


# ============================================================================
#                               Community
# ============================================================================


@dataclass(frozen=True, slots=True)
class CommunityEvent(DomainEvent):
    """Base class for community events."""

    community_id: str

    @property
    def aggregate_id(self) -> str:
        return self.community_id


@dataclass(frozen=True, slots=True)
class CommunityCreated(CommunityEvent):
    """A community has been created."""

    name = "community.created"

    community_name: str
    logo_url: str | None
    primary_color: str
    owner_id: str


@dataclass(frozen=True, slots=True)
class CommunityUpdated(CommunityEvent):
    """A community's branding has changed."""

    name = "community.updated"

    changes: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class CommunityOwnershipTransferred(CommunityEvent):
    """A community has a new owner."""

    name = "community.ownership_transferred"

    previous_owner_id: str
    new_owner_id: str


@dataclass(frozen=True, slots=True)
class CommunityArchived(CommunityEvent):
    """A community has been archived."""

    name = "community.archived"


@dataclass(frozen=True, slots=True)
class CommunityRestored(CommunityEvent):
    """A community has been restored."""

    name = "community.restored"


# ============================================================================
#                               Posts & comments
# ============================================================================


@dataclass(frozen=True, slots=True)
class PostEvent(DomainEvent):
    """Base class for post events."""

    post_id: str

    @property
    def aggregate_id(self) -> str:
        return self.post_id


@dataclass(frozen=True, slots=True)
class PostCreated(PostEvent):
    """A draft post has been created."""

    name = "post.created"

    community_id: str
    author_id: str
    title: str


@dataclass(frozen=True, slots=True)
class PostUpdated(PostEvent):
    """A post's title or content has changed."""

    name = "post.updated"

    changes: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class PostPublished(PostEvent):
    """A post has been published."""

    name = "post.published"

    community_id: str
    author_id: str
    published_at: datetime


@dataclass(frozen=True, slots=True)
class PostPinned(PostEvent):
    """A post has been pinned."""

    name = "post.pinned"


@dataclass(frozen=True, slots=True)
class PostUnpinned(PostEvent):
    """A post has been unpinned."""

    name = "post.unpinned"


@dataclass(frozen=True, slots=True)
class PostSolved(PostEvent):
    """A post has been marked as solved."""

    name = "post.solved"


@dataclass(frozen=True, slots=True)
class PostUnsolved(PostEvent):
    """A post is no longer marked as solved."""

    name = "post.unsolved"


@dataclass(frozen=True, slots=True)
class PostArchived(PostEvent):
    """A post has been archived."""

    name = "post.archived"


@dataclass(frozen=True, slots=True)
class PostRestored(PostEvent):
    """A post has been restored."""

    name = "post.restored"


@dataclass(frozen=True, slots=True)
class CommentEvent(DomainEvent):
    """Base class for comment events."""

    comment_id: str
    post_id: str

    @property
    def aggregate_id(self) -> str:
        return self.comment_id


@dataclass(frozen=True, slots=True)
class CommentCreated(CommentEvent):
    """A comment (or reply) has been added to a post."""

    name = "comment.created"

    author_id: str
    parent_id: str | None
    content: str


@dataclass(frozen=True, slots=True)
class CommentUpdated(CommentEvent):
    """A comment's content has changed."""

    name = "comment.updated"


@dataclass(frozen=True, slots=True)
class CommentArchived(CommentEvent):
    """A comment has been archived."""

    name = "comment.archived"


@dataclass(frozen=True, slots=True)
class CommentRestored(CommentEvent):
    """A comment has been restored."""

    name = "comment.restored"


@dataclass(frozen=True, slots=True)
class LikeCreated(DomainEvent):
    """A user liked a post or a comment."""

    name = "like.created"

    like_id: str
    user_id: str
    post_id: str | None
    comment_id: str | None

    @property
    def aggregate_id(self) -> str:
        return self.like_id


@dataclass(frozen=True, slots=True)
class PostDraftEvent(DomainEvent):
    """Base class for post draft events."""

    draft_id: str
    user_id: str

    @property
    def aggregate_id(self) -> str:
        return self.draft_id


@dataclass(frozen=True, slots=True)
class PostDraftSaved(PostDraftEvent):
    """A draft was autosaved, for a new post or an existing one."""

    name = "post_draft.saved"

    post_id: str | None
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class ContentVersionRecorded(DomainEvent):
    """A snapshot of a post's or a comment's content has been recorded."""

    name = "content_version.recorded"

    content_version_id: str
    content_type: ContentType
    content_id: str
    version_number: int

    @property
    def aggregate_id(self) -> str:
        return self.content_version_id


# ============================================================================
#                               Courses
# ============================================================================


@dataclass(frozen=True, slots=True)
class CourseEvent(DomainEvent):
    """Base class for course events."""

    course_id: str

    @property
    def aggregate_id(self) -> str:
        return self.course_id


@dataclass(frozen=True, slots=True)
class CourseCreated(CourseEvent):
    """A draft course has been created."""

    name = "course.created"

    community_id: str
    instructor_id: str
    title: str


@dataclass(frozen=True, slots=True)
class CourseUpdated(CourseEvent):
    """A course's title or description has changed."""

    name = "course.updated"

    changes: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class CoursePublished(CourseEvent):
    """A course has been published."""

    name = "course.published"

    community_id: str
    published_at: datetime


@dataclass(frozen=True, slots=True)
class CourseUnpublished(CourseEvent):
    """A course has been moved back to draft."""

    name = "course.unpublished"


@dataclass(frozen=True, slots=True)
class CourseArchived(CourseEvent):
    """A course has been archived."""

    name = "course.archived"


@dataclass(frozen=True, slots=True)
class CourseRestored(CourseEvent):
    """A course has been restored."""

    name = "course.restored"


@dataclass(frozen=True, slots=True)
class LessonEvent(DomainEvent):
    """Base class for lesson events."""

    lesson_id: str
    course_id: str

    @property
    def aggregate_id(self) -> str:
        return self.lesson_id


@dataclass(frozen=True, slots=True)
class LessonCreated(LessonEvent):
    """A lesson has been added to a course."""

    name = "lesson.created"

    lesson_type: LessonType
    order: int


@dataclass(frozen=True, slots=True)
class LessonUpdated(LessonEvent):
    """A lesson's content or position has changed."""

    name = "lesson.updated"

    changes: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class LessonDripScheduled(LessonEvent):
    """A lesson's drip date has been set (or cleared when ``available_at`` is None)."""

    name = "lesson.drip_scheduled"

    available_at: datetime | None


@dataclass(frozen=True, slots=True)
class LessonArchived(LessonEvent):
    """A lesson has been archived."""

    name = "lesson.archived"


@dataclass(frozen=True, slots=True)
class LessonRestored(LessonEvent):
    """A lesson has been restored."""

    name = "lesson.restored"


@dataclass(frozen=True, slots=True)
class CourseProgressEvent(DomainEvent):
    """Base class for course progress events."""

    progress_id: str
    user_id: str
    course_id: str

    @property
    def aggregate_id(self) -> str:
        return self.progress_id


@dataclass(frozen=True, slots=True)
class CourseProgressStarted(CourseProgressEvent):
    """A user has started a course."""

    name = "course_progress.started"


@dataclass(frozen=True, slots=True)
class LessonCompleted(CourseProgressEvent):
    """A user has completed a lesson."""

    name = "course_progress.lesson_completed"

    lesson_id: str


@dataclass(frozen=True, slots=True)
class LessonMarkedIncomplete(CourseProgressEvent):
    """A previously completed lesson has been marked incomplete."""

    name = "course_progress.lesson_incomplete"

    lesson_id: str


@dataclass(frozen=True, slots=True)
class CourseCompleted(CourseProgressEvent):
    """A user has completed a course."""

    name = "course_progress.course_completed"

    completed_at: datetime


@dataclass(frozen=True, slots=True)
class CertificateEvent(DomainEvent):
    """Base class for certificate events."""

    certificate_id: str
    user_id: str
    course_id: str

    @property
    def aggregate_id(self) -> str:
        return self.certificate_id


@dataclass(frozen=True, slots=True)
class CertificateIssued(CertificateEvent):
    """A completion certificate has been issued."""

    name = "certificate.issued"

    verification_code: str


@dataclass(frozen=True, slots=True)
class CertificatePdfAttached(CertificateEvent):
    """The rendered PDF of a certificate has been stored."""

    name = "certificate.pdf_attached"

    pdf_url: str


# ============================================================================
#                               Spaces & channels
# ============================================================================


@dataclass(frozen=True, slots=True)
class ChannelEvent(DomainEvent):
    """Base class for channel events."""

    channel_id: str
    community_id: str

    @property
    def aggregate_id(self) -> str:
        return self.channel_id


@dataclass(frozen=True, slots=True)
class ChannelCreated(ChannelEvent):
    """A channel has been created."""

    name = "channel.created"

    channel_name: str
    permission: ChannelPermission
    space_id: str | None


@dataclass(frozen=True, slots=True)
class ChannelUpdated(ChannelEvent):
    """A channel's details, permission, icon or position have changed."""

    name = "channel.updated"

    channel_name: str


@dataclass(frozen=True, slots=True)
class ChannelArchived(ChannelEvent):
    """A channel has been archived."""

    name = "channel.archived"


@dataclass(frozen=True, slots=True)
class ChannelRestored(ChannelEvent):
    """A channel has been restored."""

    name = "channel.restored"


@dataclass(frozen=True, slots=True)
class SpaceEvent(DomainEvent):
    """Base class for space events."""

    space_id: str
    community_id: str

    @property
    def aggregate_id(self) -> str:
        return self.space_id


@dataclass(frozen=True, slots=True)
class SpaceCreated(SpaceEvent):
    """A space has been created."""

    name = "space.created"

    space_name: str
    parent_space_id: str | None


@dataclass(frozen=True, slots=True)
class SpaceUpdated(SpaceEvent):
    """A space's details, appearance or position have changed."""

    name = "space.updated"

    space_name: str


@dataclass(frozen=True, slots=True)
class SpaceArchived(SpaceEvent):
    """A space has been archived."""

    name = "space.archived"


@dataclass(frozen=True, slots=True)
class SpaceRestored(SpaceEvent):
    """A space has been restored."""

    name = "space.restored"


# ============================================================================
#                               Payments
# ============================================================================


@dataclass(frozen=True, slots=True)
class PaymentTierEvent(DomainEvent):
    """Base class for payment tier events."""

    tier_id: str

    @property
    def aggregate_id(self) -> str:
        return self.tier_id


@dataclass(frozen=True, slots=True)
class PaymentTierCreated(PaymentTierEvent):
    """A payment tier has been created."""

    name = "payment_tier.created"

    community_id: str
    tier_name: str
    price_monthly: int
    price_annual: int


@dataclass(frozen=True, slots=True)
class PaymentTierUpdated(PaymentTierEvent):
    """A payment tier's details, prices or features have changed."""

    name = "payment_tier.updated"

    changes: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class PaymentTierActivated(PaymentTierEvent):
    """A payment tier is available for purchase again."""

    name = "payment_tier.activated"


@dataclass(frozen=True, slots=True)
class PaymentTierDeactivated(PaymentTierEvent):
    """A payment tier is no longer available for purchase."""

    name = "payment_tier.deactivated"


@dataclass(frozen=True, slots=True)
class PaymentTierArchived(PaymentTierEvent):
    """A payment tier has been archived."""

    name = "payment_tier.archived"


@dataclass(frozen=True, slots=True)
class PaymentTierRestored(PaymentTierEvent):
    """A payment tier has been restored."""

    name = "payment_tier.restored"


@dataclass(frozen=True, slots=True)
class CouponEvent(DomainEvent):
    """Base class for coupon events."""

    coupon_id: str

    @property
    def aggregate_id(self) -> str:
        return self.coupon_id


@dataclass(frozen=True, slots=True)
class CouponCreated(CouponEvent):
    """A coupon has been created."""

    name = "coupon.created"

    community_id: str
    code: str
    discount_type: DiscountType
    discount_value: int


@dataclass(frozen=True, slots=True)
class CouponRedeemed(CouponEvent):
    """A coupon has been used once more."""

    name = "coupon.redeemed"

    code: str
    used_count: int


@dataclass(frozen=True, slots=True)
class CouponActivated(CouponEvent):
    """A coupon has been activated."""

    name = "coupon.activated"


@dataclass(frozen=True, slots=True)
class CouponDeactivated(CouponEvent):
    """A coupon has been deactivated."""

    name = "coupon.deactivated"


@dataclass(frozen=True, slots=True)
class CouponArchived(CouponEvent):
    """A coupon has been archived."""

    name = "coupon.archived"


@dataclass(frozen=True, slots=True)
class CouponRestored(CouponEvent):
    """A coupon has been restored."""

    name = "coupon.restored"


@dataclass(frozen=True, slots=True)
class SubscriptionEvent(DomainEvent):
    """Base class for subscription events."""

    subscription_id: str

    @property
    def aggregate_id(self) -> str:
        return self.subscription_id


@dataclass(frozen=True, slots=True)
class SubscriptionCreated(SubscriptionEvent):
    """A subscription has been created."""

    name = "subscription.created"

    user_id: str
    community_id: str
    payment_tier_id: str
    status: SubscriptionStatus
    trial_ends_at: datetime | None


@dataclass(frozen=True, slots=True)
class SubscriptionStatusUpdated(SubscriptionEvent):
    """A subscription moved from one status to another."""

    name = "subscription.status_updated"

    old_status: SubscriptionStatus
    new_status: SubscriptionStatus


@dataclass(frozen=True, slots=True)
class SubscriptionTrialStarted(SubscriptionEvent):
    """A subscription entered its trial period."""

    name = "subscription.trial_started"

    trial_ends_at: datetime


@dataclass(frozen=True, slots=True)
class SubscriptionCancelled(SubscriptionEvent):
    """A subscription was cancelled, immediately or at the end of the period."""

    name = "subscription.cancelled"

    user_id: str
    community_id: str
    cancel_at_period_end: bool


@dataclass(frozen=True, slots=True)
class SubscriptionRenewed(SubscriptionEvent):
    """A subscription's billing period has been advanced."""

    name = "subscription.renewed"

    user_id: str
    new_period_end: datetime


@dataclass(frozen=True, slots=True)
class SubscriptionPaymentFailed(SubscriptionEvent):
    """A subscription payment failed and the subscription is past due."""

    name = "subscription.payment_failed"

    user_id: str
    community_id: str


@dataclass(frozen=True, slots=True)
class SubscriptionArchived(SubscriptionEvent):
    """A subscription has been archived."""

    name = "subscription.archived"


@dataclass(frozen=True, slots=True)
class SubscriptionRestored(SubscriptionEvent):
    """A subscription has been restored."""

    name = "subscription.restored"


# ============================================================================
#                               Notifications
# ============================================================================


@dataclass(frozen=True, slots=True)
class NotificationEvent(DomainEvent):
    """Base class for notification events."""

    notification_id: str
    user_id: str

    @property
    def aggregate_id(self) -> str:
        return self.notification_id


@dataclass(frozen=True, slots=True)
class NotificationCreated(NotificationEvent):
    """A notification has been created for a user."""

    name = "notification.created"

    community_id: str
    notification_type: NotificationType
    message: str
    actor_id: str | None


@dataclass(frozen=True, slots=True)
class NotificationRead(NotificationEvent):
    """A notification has been marked as read."""

    name = "notification.read"


@dataclass(frozen=True, slots=True)
class NotificationUnread(NotificationEvent):
    """A notification has been marked as unread."""

    name = "notification.unread"


@dataclass(frozen=True, slots=True)
class NotificationArchived(NotificationEvent):
    """A notification has been archived."""

    name = "notification.archived"


@dataclass(frozen=True, slots=True)
class NotificationRestored(NotificationEvent):
    """A notification has been restored."""

    name = "notification.restored"


# Registry of domain event types, keyed by event name
DOMAIN_EVENT_REGISTRY: dict[str, type[DomainEvent]] = {
    obj.name: obj
    for obj in list(globals().values())
    if isinstance(obj, type) and issubclass(obj, DomainEvent) and "name" in vars(obj)
}
