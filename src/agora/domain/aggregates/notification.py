"""Aggregate representing an in-app notification."""

from dataclasses import dataclass
from datetime import datetime

from agora.domain import errors, events
from agora.domain.utils import utc_now
from agora.domain.value_objects import NotificationType

from .base import Aggregate

# pylint: disable=too-many-arguments

MAX_MESSAGE_LENGTH = 500


@dataclass(frozen=True, slots=True)
class NotificationRecord:
    """Persisted state of a notification."""

    id: str
    user_id: str
    community_id: str
    notification_type: NotificationType
    message: str
    link_url: str | None
    actor_id: str | None
    is_read: bool
    created_at: datetime
    deleted_at: datetime | None
    version: int = 0


class Notification(Aggregate):
    """A message telling a user that something happened in a community.

    Notifications carry no ``updated_at``. They can be archived, which blocks
    marking them read or unread until restored.
    """

    RECORD_TYPE = NotificationRecord
    ENTITY_NAME = "Notification"

    def __init__(
        self,
        aggregate_id: str,
        user_id: str,
        community_id: str,
        notification_type: NotificationType,
        message: str,
        link_url: str | None,
        actor_id: str | None,
        is_read: bool,
        created_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, version)
        _validate_message(message)
        self._user_id = user_id
        self._community_id = community_id
        self._notification_type = notification_type
        self._message = message
        self._link_url = link_url
        self._actor_id = actor_id
        self._is_read = is_read
        self._deleted_at = deleted_at

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        user_id: str,
        community_id: str,
        notification_type: NotificationType,
        message: str,
        *,
        link_url: str | None = None,
        actor_id: str | None = None,
    ) -> "Notification":
        """Create a new, unread notification.

        Raises:
            ValidationError: If the message is empty or longer than 500 characters.
        """
        notification = cls(
            aggregate_id,
            user_id=user_id,
            community_id=community_id,
            notification_type=notification_type,
            message=message,
            link_url=link_url,
            actor_id=actor_id,
            is_read=False,
            created_at=utc_now(),
        )
        notification._record(
            events.NotificationCreated(
                notification_id=aggregate_id,
                user_id=user_id,
                community_id=community_id,
                notification_type=notification_type,
                message=message,
                actor_id=actor_id,
            )
        )
        return notification

    # --- Properties ---

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def community_id(self) -> str:
        return self._community_id

    @property
    def notification_type(self) -> NotificationType:
        return self._notification_type

    @property
    def message(self) -> str:
        return self._message

    @property
    def link_url(self) -> str | None:
        return self._link_url

    @property
    def actor_id(self) -> str | None:
        return self._actor_id

    @property
    def is_read(self) -> bool:
        return self._is_read

    @property
    def deleted_at(self) -> datetime | None:
        return self._deleted_at

    @property
    def is_archived(self) -> bool:
        return self._deleted_at is not None

    # --- State Transitions ---

    def mark_as_read(self) -> None:
        self._ensure_not_archived()
        if self._is_read:
            raise errors.InvalidTransitionError("Notification is already marked as read")
        self._is_read = True
        self._record(
            events.NotificationRead(notification_id=self.id, user_id=self._user_id)
        )

    def mark_as_unread(self) -> None:
        self._ensure_not_archived()
        if not self._is_read:
            raise errors.InvalidTransitionError(
                "Notification is already marked as unread"
            )
        self._is_read = False
        self._record(
            events.NotificationUnread(notification_id=self.id, user_id=self._user_id)
        )

    def archive(self) -> None:
        if self.is_archived:
            raise errors.AlreadyArchivedError(self.ENTITY_NAME, self.id)
        self._deleted_at = utc_now()
        self._record(
            events.NotificationArchived(notification_id=self.id, user_id=self._user_id)
        )

    def restore(self) -> None:
        if not self.is_archived:
            raise errors.NotArchivedError(self.ENTITY_NAME, self.id)
        self._deleted_at = None
        self._record(
            events.NotificationRestored(notification_id=self.id, user_id=self._user_id)
        )

    def _ensure_not_archived(self) -> None:
        if self.is_archived:
            raise errors.ArchivedEntityError(self.ENTITY_NAME, self.id)


def _validate_message(message: str) -> None:
    if not message or not message.strip():
        raise errors.ValidationError("Notification message cannot be empty")
    if len(message) > MAX_MESSAGE_LENGTH:
        raise errors.ValidationError(
            f"Notification message too long (max {MAX_MESSAGE_LENGTH} characters)"
        )
