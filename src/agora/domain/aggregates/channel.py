"""Aggregate representing a discussion channel."""

from dataclasses import dataclass
from datetime import datetime

from agora.domain import errors, events
from agora.domain.utils import utc_now
from agora.domain.value_objects import ChannelPermission

from .base import ArchivableAggregate

# pylint: disable=too-many-arguments,too-many-instance-attributes,too-many-locals


@dataclass(frozen=True, slots=True)
class ChannelRecord:
    """Persisted state of a channel."""

    id: str
    community_id: str
    space_id: str | None
    name: str
    description: str
    permission: ChannelPermission
    required_tier_id: str | None
    icon: str | None
    position: int
    created_by: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


class Channel(ArchivableAggregate):
    """A channel in a community, either standalone or inside a space.

    Tier-gated channels name the payment tier a member must hold; no other
    permission may carry a tier.
    """

    RECORD_TYPE = ChannelRecord
    ENTITY_NAME = "Channel"

    def __init__(
        self,
        aggregate_id: str,
        community_id: str,
        space_id: str | None,
        name: str,
        description: str,
        permission: ChannelPermission,
        required_tier_id: str | None,
        icon: str | None,
        position: int,
        created_by: str,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, updated_at, deleted_at, version)
        _validate_name(name)
        _validate_description(description)
        permission = _validate_permission(permission, required_tier_id)
        _validate_position(position)
        self._community_id = community_id
        self._space_id = space_id
        self._name = name
        self._description = description
        self._permission = permission
        self._required_tier_id = required_tier_id
        self._icon = icon
        self._position = position
        self._created_by = created_by

    # --- Construction Paths ---

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        community_id: str,
        name: str,
        description: str,
        permission: ChannelPermission,
        created_by: str,
        *,
        space_id: str | None = None,
        required_tier_id: str | None = None,
        icon: str | None = None,
        position: int = 0,
    ) -> "Channel":
        """Create a new channel.

        Args:
            aggregate_id (str): The unique identifier for the channel.
            community_id (str): The community the channel belongs to.
            name (str): 1 to 100 characters.
            description (str): At most 500 characters.
            permission (ChannelPermission): Who may access the channel.
            created_by (str): The user creating the channel.
            space_id (str | None): The space holding the channel, if any.
            required_tier_id (str | None): Required for, and only allowed on,
                TIER_GATED channels.
            icon (str | None): Optional icon name.
            position (int): Sort position, zero or more.

        Returns:
            Channel: The newly created channel.

        Raises:
            ValidationError: If any field is invalid.
        """
        now = utc_now()
        channel = cls(
            aggregate_id,
            community_id=community_id,
            space_id=space_id,
            name=name,
            description=description,
            permission=permission,
            required_tier_id=required_tier_id,
            icon=icon,
            position=position,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        channel._record(
            events.ChannelCreated(
                channel_id=aggregate_id,
                community_id=community_id,
                channel_name=name,
                permission=channel.permission,
                space_id=space_id,
            )
        )
        return channel

    # --- Properties ---

    @property
    def community_id(self) -> str:
        return self._community_id

    @property
    def space_id(self) -> str | None:
        return self._space_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def permission(self) -> ChannelPermission:
        return self._permission

    @property
    def required_tier_id(self) -> str | None:
        return self._required_tier_id

    @property
    def icon(self) -> str | None:
        return self._icon

    @property
    def position(self) -> int:
        return self._position

    @property
    def created_by(self) -> str:
        return self._created_by

    # --- State Transitions ---

    def update_details(self, name: str, description: str) -> None:
        self.ensure_not_archived()
        _validate_name(name)
        _validate_description(description)
        self._name = name
        self._description = description
        self._changed()

    def update_permission(
        self, permission: ChannelPermission, required_tier_id: str | None = None
    ) -> None:
        """Change who may access the channel.

        Raises:
            ArchivedEntityError: If the channel is archived.
            ValidationError: If the permission and tier do not fit together.
        """
        self.ensure_not_archived()
        self._permission = _validate_permission(permission, required_tier_id)
        self._required_tier_id = required_tier_id
        self._changed()

    def update_icon(self, icon: str | None) -> None:
        self.ensure_not_archived()
        self._icon = icon
        self._changed()

    def update_position(self, position: int) -> None:
        self.ensure_not_archived()
        _validate_position(position)
        self._position = position
        self._changed()

    # --- Queries ---

    @property
    def is_public(self) -> bool:
        return self._permission is ChannelPermission.PUBLIC

    @property
    def is_members_only(self) -> bool:
        return self._permission is ChannelPermission.MEMBERS_ONLY

    @property
    def is_tier_gated(self) -> bool:
        return self._permission is ChannelPermission.TIER_GATED

    def has_access(self, user_tier_id: str | None) -> bool:
        """Whether a member holding *user_tier_id* may access the channel.

        Membership itself is checked by the caller; only tier-gated channels
        look at the tier.
        """
        if self.is_tier_gated:
            return user_tier_id is not None and user_tier_id == self._required_tier_id
        return True

    @property
    def belongs_to_space(self) -> bool:
        return self._space_id is not None

    @property
    def is_standalone(self) -> bool:
        return self._space_id is None

    # --- Lifecycle Events ---

    def _archived_event(self) -> events.DomainEvent:
        return events.ChannelArchived(
            channel_id=self.id, community_id=self._community_id
        )

    def _restored_event(self) -> events.DomainEvent:
        return events.ChannelRestored(
            channel_id=self.id, community_id=self._community_id
        )

    # --- Internal Helpers ---

    def _changed(self) -> None:
        self._touch()
        self._record(
            events.ChannelUpdated(
                channel_id=self.id,
                community_id=self._community_id,
                channel_name=self._name,
            )
        )


def _validate_name(name: str) -> None:
    if not name or not name.strip():
        raise errors.ValidationError("Channel name cannot be empty")
    if len(name) > 100:
        raise errors.ValidationError("Channel name cannot exceed 100 characters")


def _validate_description(description: str) -> None:
    if len(description) > 500:
        raise errors.ValidationError("Channel description cannot exceed 500 characters")


def _validate_permission(
    permission: ChannelPermission | str, required_tier_id: str | None
) -> ChannelPermission:
    try:
        permission = ChannelPermission(permission)
    except ValueError as exc:
        raise errors.ValidationError("Invalid channel permission") from exc
    if permission is ChannelPermission.TIER_GATED and not required_tier_id:
        raise errors.ValidationError("Tier-gated channels must specify a required tier")
    if permission is not ChannelPermission.TIER_GATED and required_tier_id:
        raise errors.ValidationError("Only tier-gated channels can have a required tier")
    return permission


def _validate_position(position: int) -> None:
    if position < 0:
        raise errors.ValidationError("Channel position cannot be negative")
