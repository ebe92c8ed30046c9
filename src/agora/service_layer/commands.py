"""Module defining Commands.

Commands are immutable requests for one use case. Some of them only read
state (e.g. :class:`CalculateCheckout`) and their handler returns a result
through the message bus.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from agora.domain.metrics import PeriodCounts
from agora.domain.utils import UNSET, Unset
from agora.domain.value_objects import (
    BillingInterval,
    ChannelPermission,
    DiscountType,
    LessonType,
    NotificationType,
    SubscriptionStatus,
)

# pylint: disable=too-many-instance-attributes


@dataclass(frozen=True)
class Command:
    """Base class for all commands."""


# ============================================================================
#                               Communities
# ============================================================================


@dataclass(frozen=True)
class CreateCommunity(Command):
    """Create a community owned by ``owner_id``."""

    name: str
    owner_id: str
    logo_url: str | None = None
    primary_color: str = "#0066CC"


@dataclass(frozen=True)
class UpdateCommunityBranding(Command):
    """Change the supplied branding fields. Only the owner may do this."""

    community_id: str
    requested_by: str
    name: str | None = None
    logo_url: str | None | Unset = UNSET
    primary_color: str | None = None


@dataclass(frozen=True)
class TransferCommunityOwnership(Command):
    community_id: str
    requested_by: str
    new_owner_id: str


@dataclass(frozen=True)
class ArchiveCommunity(Command):
    community_id: str
    requested_by: str


@dataclass(frozen=True)
class RestoreCommunity(Command):
    community_id: str
    requested_by: str


# ============================================================================
#                               Posts, comments & likes
# ============================================================================


@dataclass(frozen=True)
class CreatePost(Command):
    """Create a draft post, optionally publishing it right away."""

    community_id: str
    author_id: str
    title: str
    content: str
    publish: bool = False


@dataclass(frozen=True)
class UpdatePost(Command):
    """Change a post's title and/or content. Only the author may do this."""

    post_id: str
    requested_by: str
    title: str | None = None
    content: str | None = None


@dataclass(frozen=True)
class PublishPost(Command):
    post_id: str
    requested_by: str


@dataclass(frozen=True)
class PinPost(Command):
    post_id: str


@dataclass(frozen=True)
class UnpinPost(Command):
    post_id: str


@dataclass(frozen=True)
class MarkPostSolved(Command):
    post_id: str


@dataclass(frozen=True)
class MarkPostUnsolved(Command):
    post_id: str


@dataclass(frozen=True)
class ArchivePost(Command):
    post_id: str


@dataclass(frozen=True)
class ToggleLike(Command):
    """Like a post or comment, or take the like back if it exists.

    Exactly one of ``post_id`` and ``comment_id`` must be given.
    """

    user_id: str
    post_id: str | None = None
    comment_id: str | None = None


@dataclass(frozen=True)
class AddComment(Command):
    """Comment on a post, or reply to a top-level comment."""

    post_id: str
    author_id: str
    content: str
    parent_id: str | None = None


@dataclass(frozen=True)
class UpdateComment(Command):
    comment_id: str
    requested_by: str
    content: str


@dataclass(frozen=True)
class ArchiveComment(Command):
    comment_id: str


@dataclass(frozen=True)
class SaveDraft(Command):
    """Autosave editor content, replacing the user's draft for the same post.

    ``post_id`` is None for a draft of a post not yet created.
    """

    user_id: str
    content: Mapping[str, Any]
    post_id: str | None = None


@dataclass(frozen=True)
class DeleteDraft(Command):
    draft_id: str
    requested_by: str


@dataclass(frozen=True)
class PurgeExpiredDrafts(Command):
    """Delete every draft whose expiry has passed. Returns how many went."""


@dataclass(frozen=True)
class ListContentVersions(Command):
    """Edit history of a post or comment, latest version first."""

    content_id: str


@dataclass(frozen=True)
class RestorePostVersion(Command):
    """Put an earlier version's content back into a post."""

    post_id: str
    requested_by: str
    version_number: int


# ============================================================================
#                               Courses & lessons
# ============================================================================


@dataclass(frozen=True)
class CreateCourse(Command):
    community_id: str
    instructor_id: str
    title: str
    description: str


@dataclass(frozen=True)
class UpdateCourse(Command):
    course_id: str
    requested_by: str
    title: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class PublishCourse(Command):
    course_id: str
    requested_by: str


@dataclass(frozen=True)
class UnpublishCourse(Command):
    course_id: str
    requested_by: str


@dataclass(frozen=True)
class ArchiveCourse(Command):
    course_id: str
    requested_by: str


@dataclass(frozen=True)
class AddLesson(Command):
    """Add a lesson to a course. ``order`` defaults to after the last lesson."""

    course_id: str
    title: str
    lesson_type: LessonType
    content: str = ""
    video_url: str | None = None
    pdf_url: str | None = None
    order: int | None = None
    section_id: str | None = None


@dataclass(frozen=True)
class UpdateLesson(Command):
    lesson_id: str
    title: str | None = None
    content: str | None = None
    video_url: str | None | Unset = UNSET
    pdf_url: str | None | Unset = UNSET
    order: int | None = None


@dataclass(frozen=True)
class ScheduleLessonDrip(Command):
    lesson_id: str
    available_at: datetime


@dataclass(frozen=True)
class ClearLessonDrip(Command):
    lesson_id: str


@dataclass(frozen=True)
class StartCourseProgress(Command):
    """Start tracking a user's progress in a course (idempotent)."""

    user_id: str
    course_id: str


@dataclass(frozen=True)
class CompleteLesson(Command):
    user_id: str
    course_id: str
    lesson_id: str


@dataclass(frozen=True)
class MarkLessonIncomplete(Command):
    user_id: str
    course_id: str
    lesson_id: str


@dataclass(frozen=True)
class RecordLessonAccess(Command):
    user_id: str
    course_id: str
    lesson_id: str


@dataclass(frozen=True)
class IssueCertificate(Command):
    """Issue the completion certificate of a course to a user.

    Names are printed on the certificate as given.
    """

    user_id: str
    course_id: str
    user_name: str
    instructor_name: str


@dataclass(frozen=True)
class AttachCertificatePdf(Command):
    certificate_id: str
    pdf_url: str


@dataclass(frozen=True)
class VerifyCertificate(Command):
    """Look up a certificate by its verification code (None if unknown)."""

    verification_code: str


@dataclass(frozen=True)
class ListCertificates(Command):
    user_id: str


# ============================================================================
#                               Spaces & channels
# ============================================================================


@dataclass(frozen=True)
class CreateSpace(Command):
    community_id: str
    name: str
    created_by: str
    description: str = ""
    parent_space_id: str | None = None
    icon: str | None = None
    color: str | None = None
    position: int = 0


@dataclass(frozen=True)
class CreateChannel(Command):
    community_id: str
    name: str
    permission: ChannelPermission
    created_by: str
    description: str = ""
    space_id: str | None = None
    required_tier_id: str | None = None
    icon: str | None = None
    position: int = 0


@dataclass(frozen=True)
class UpdateChannelPermission(Command):
    channel_id: str
    permission: ChannelPermission
    required_tier_id: str | None = None


@dataclass(frozen=True)
class CheckChannelAccess(Command):
    """Query: may ``user_id`` read the channel? The handler returns a bool."""

    user_id: str
    channel_id: str


# ============================================================================
#                               Payments
# ============================================================================


@dataclass(frozen=True)
class CreatePaymentTier(Command):
    community_id: str
    name: str
    description: str
    price_monthly: int
    price_annual: int
    features: tuple[str, ...] = ()
    is_active: bool = True


@dataclass(frozen=True)
class UpdatePaymentTier(Command):
    tier_id: str
    name: str | None = None
    description: str | None = None
    price_monthly: int | None = None
    price_annual: int | None = None


@dataclass(frozen=True)
class ActivatePaymentTier(Command):
    tier_id: str


@dataclass(frozen=True)
class DeactivatePaymentTier(Command):
    tier_id: str


@dataclass(frozen=True)
class AddTierFeature(Command):
    tier_id: str
    feature: str


@dataclass(frozen=True)
class RemoveTierFeature(Command):
    tier_id: str
    feature: str


@dataclass(frozen=True)
class CreateCoupon(Command):
    community_id: str
    code: str
    discount_type: DiscountType
    discount_value: int
    expires_at: datetime | None = None
    max_uses: int | None = None


@dataclass(frozen=True)
class DeactivateCoupon(Command):
    coupon_id: str


@dataclass(frozen=True)
class RedeemCoupon(Command):
    code: str
    community_id: str


@dataclass(frozen=True)
class CalculateCheckout(Command):
    """Query: price a tier for an interval, with an optional coupon."""

    tier_id: str
    interval: BillingInterval
    coupon_code: str | None = None


@dataclass(frozen=True)
class StartSubscription(Command):
    """Subscribe a user to a tier, starting with the trial period."""

    user_id: str
    community_id: str
    tier_id: str
    interval: BillingInterval


@dataclass(frozen=True)
class CancelSubscription(Command):
    """Schedule cancellation at period end. Only the subscriber may do this."""

    subscription_id: str
    requested_by: str


@dataclass(frozen=True)
class CompleteCheckout(Command):
    """Gateway reported a completed checkout session."""

    user_id: str
    community_id: str
    tier_id: str
    interval: BillingInterval
    stripe_subscription_id: str
    stripe_customer_id: str
    current_period_start: datetime
    current_period_end: datetime
    trial_ends_at: datetime | None = None


@dataclass(frozen=True)
class SyncSubscription(Command):
    """Gateway reported an updated subscription."""

    stripe_subscription_id: str
    status: SubscriptionStatus | None
    current_period_end: datetime
    cancel_at_period_end: bool = False


@dataclass(frozen=True)
class DeleteSubscription(Command):
    """Gateway reported a deleted subscription."""

    stripe_subscription_id: str


@dataclass(frozen=True)
class RecordPaymentSucceeded(Command):
    stripe_subscription_id: str


@dataclass(frozen=True)
class RecordPaymentFailed(Command):
    stripe_subscription_id: str


# ============================================================================
#                               Notifications & dashboard
# ============================================================================


@dataclass(frozen=True)
class CreateNotification(Command):
    user_id: str
    community_id: str
    notification_type: NotificationType
    message: str
    link_url: str | None = None
    actor_id: str | None = None


@dataclass(frozen=True)
class MarkNotificationRead(Command):
    notification_id: str
    requested_by: str


@dataclass(frozen=True)
class MarkNotificationUnread(Command):
    notification_id: str
    requested_by: str


@dataclass(frozen=True)
class MarkAllNotificationsRead(Command):
    """Mark every unread notification of a user read; returns how many."""

    user_id: str
    community_id: str | None = None


@dataclass(frozen=True)
class BuildDashboardMetrics(Command):
    """Query: compare two period snapshots into :class:`DashboardMetrics`."""

    current: PeriodCounts
    previous: PeriodCounts
    comparison_period: str = "vs previous 30 days"
