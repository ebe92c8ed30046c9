"""Aggregates package.


All aggregates are defined in this package and inherit from one of the base
classes in `base.py`. They are re-exported here to provide a single, convenient
import path.
"""

from .base import Aggregate, ArchivableAggregate
from .certificate import Certificate, CertificateRecord
from .channel import Channel, ChannelRecord
from .comment import Comment, CommentRecord
from .community import Community, CommunityRecord
from .content_version import ContentVersion, ContentVersionRecord
from .coupon import Coupon, CouponRecord
from .course import Course, CourseRecord
from .course_progress import CourseProgress, CourseProgressRecord
from .lesson import Lesson, LessonRecord
from .like import Like, LikeRecord
from .notification import Notification, NotificationRecord
from .payment_tier import PaymentTier, PaymentTierRecord
from .post import Post, PostRecord
from .post_draft import PostDraft, PostDraftRecord
from .space import Space, SpaceRecord
from .subscription import Subscription, SubscriptionRecord

__all__ = [
    "Aggregate",
    "ArchivableAggregate",
    "Certificate",
    "CertificateRecord",
    "Channel",
    "ChannelRecord",
    "Comment",
    "CommentRecord",
    "Community",
    "CommunityRecord",
    "ContentVersion",
    "ContentVersionRecord",
    "Coupon",
    "CouponRecord",
    "Course",
    "CourseProgress",
    "CourseProgressRecord",
    "CourseRecord",
    "Lesson",
    "LessonRecord",
    "Like",
    "LikeRecord",
    "Notification",
    "NotificationRecord",
    "PaymentTier",
    "PaymentTierRecord",
    "Post",
    "PostDraft",
    "PostDraftRecord",
    "PostRecord",
    "Space",
    "SpaceRecord",
    "Subscription",
    "SubscriptionRecord",
]
