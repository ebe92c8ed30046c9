"""Handlers for notification use cases and comment fan-out."""

import logging
import re
from collections.abc import Callable

from agora.domain import events
from agora.domain.aggregates import Notification
from agora.domain.value_objects import NotificationType
from agora.interfaces.id_generator import IdGenerator
from agora.interfaces.unit_of_work import AbstractUnitOfWork
from agora.service_layer import commands
from agora.service_layer.errors import AccessDeniedError

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"(?<![\w@])@([A-Za-z0-9][A-Za-z0-9_-]*)")


def create_notification(
    cmd: commands.CreateNotification,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> str:
    notification = Notification.create(
        aggregate_id=id_generator.new_id(),
        user_id=cmd.user_id,
        community_id=cmd.community_id,
        notification_type=cmd.notification_type,
        message=cmd.message,
        link_url=cmd.link_url,
        actor_id=cmd.actor_id,
    )
    with uow:
        uow.notifications.add(notification)
        uow.commit()
    return notification.id


def mark_notification_read(
    cmd: commands.MarkNotificationRead, uow: AbstractUnitOfWork
) -> None:
    with uow:
        notification = _require_own(uow, cmd.notification_id, cmd.requested_by)
        notification.mark_as_read()
        uow.notifications.update(notification)
        uow.commit()


def mark_notification_unread(
    cmd: commands.MarkNotificationUnread, uow: AbstractUnitOfWork
) -> None:
    with uow:
        notification = _require_own(uow, cmd.notification_id, cmd.requested_by)
        notification.mark_as_unread()
        uow.notifications.update(notification)
        uow.commit()


def mark_all_notifications_read(
    cmd: commands.MarkAllNotificationsRead, uow: AbstractUnitOfWork
) -> int:
    """Mark every unread notification of a user as read.

    Returns:
        The number of notifications marked.
    """

    with uow:
        unread = uow.notifications.list_for_user(
            cmd.user_id, community_id=cmd.community_id, unread_only=True
        )
        for notification in unread:
            notification.mark_as_read()
            uow.notifications.update(notification)
        uow.commit()
    return len(unread)


def _require_own(
    uow: AbstractUnitOfWork, notification_id: str, user_id: str
) -> Notification:
    notification = uow.notifications.require(notification_id)
    if notification.user_id != user_id:
        raise AccessDeniedError(user_id, f"access notification {notification_id}")
    return notification


# ============================================================================
#                               Event handlers
# ============================================================================


def extract_mentions(content: str) -> list[str]:
    """Return the distinct ``@user-id`` mentions in *content*, in order."""
    return list(dict.fromkeys(MENTION_PATTERN.findall(content)))


def notify_comment_created(
    event: events.CommentCreated,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> None:
    """Notify the people a new comment concerns.

    A reply notifies the parent comment's author, a top-level comment the
    post's author. Every user mentioned in the content is notified as well.
    The comment's author is never notified of their own comment.
    """

    with uow:
        post = uow.posts.require(event.post_id, include_archived=True)
        link_url = (
            f"/communities/{post.community_id}/posts/{post.id}"
            f"#comment-{event.comment_id}"
        )

        recipients: dict[str, tuple[NotificationType, str]] = {}
        if event.parent_id is not None:
            parent = uow.comments.require(event.parent_id, include_archived=True)
            recipients[parent.author_id] = (
                NotificationType.REPLY,
                "Someone replied to your comment",
            )
        else:
            recipients[post.author_id] = (
                NotificationType.COMMENT_ON_POST,
                f'New comment on your post "{post.title}"',
            )
        for user_id in extract_mentions(event.content):
            recipients.setdefault(
                user_id,
                (NotificationType.MENTION, "You were mentioned in a comment"),
            )
        recipients.pop(event.author_id, None)

        for user_id, (notification_type, message) in recipients.items():
            uow.notifications.add(
                Notification.create(
                    aggregate_id=id_generator.new_id(),
                    user_id=user_id,
                    community_id=post.community_id,
                    notification_type=notification_type,
                    message=message[:500],
                    link_url=link_url,
                    actor_id=event.author_id,
                )
            )
        uow.commit()

    logger.debug(
        "Comment %s: %d notification(s) sent", event.comment_id, len(recipients)
    )


COMMAND_HANDLERS: dict[type, Callable[..., object]] = {
    commands.CreateNotification: create_notification,
    commands.MarkNotificationRead: mark_notification_read,
    commands.MarkNotificationUnread: mark_notification_unread,
    commands.MarkAllNotificationsRead: mark_all_notifications_read,
}

EVENT_HANDLERS: dict[type, list[Callable[..., None]]] = {
    events.CommentCreated: [notify_comment_created],
}
