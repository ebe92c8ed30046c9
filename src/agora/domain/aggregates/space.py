"""Aggregate representing a space, a group of channels."""

from dataclasses import dataclass
from datetime import datetime

from agora.domain import errors, events
from agora.domain.utils import utc_now

from .base import ArchivableAggregate

# pylint: disable=too-many-arguments,too-many-instance-attributes,too-many-locals


@dataclass(frozen=True, slots=True)
class SpaceRecord:
    """Persisted state of a space."""

    id: str
    community_id: str
    parent_space_id: str | None
    name: str
    description: str
    icon: str | None
    color: str | None
    position: int
    created_by: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


class Space(ArchivableAggregate):
    """A space grouping channels, optionally nested one level under a parent."""

    RECORD_TYPE = SpaceRecord
    ENTITY_NAME = "Space"

    def __init__(
        self,
        aggregate_id: str,
        community_id: str,
        parent_space_id: str | None,
        name: str,
        description: str,
        icon: str | None,
        color: str | None,
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
        _validate_position(position)
        self._community_id = community_id
        self._parent_space_id = parent_space_id
        self._name = name
        self._description = description
        self._icon = icon
        self._color = color
        self._position = position
        self._created_by = created_by

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        community_id: str,
        name: str,
        description: str,
        created_by: str,
        *,
        parent_space_id: str | None = None,
        icon: str | None = None,
        color: str | None = None,
        position: int = 0,
    ) -> "Space":
        now = utc_now()
        space = cls(
            aggregate_id,
            community_id=community_id,
            parent_space_id=parent_space_id,
            name=name,
            description=description,
            icon=icon,
            color=color,
            position=position,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        space._record(
            events.SpaceCreated(
                space_id=aggregate_id,
                community_id=community_id,
                space_name=name,
                parent_space_id=parent_space_id,
            )
        )
        return space

    # --- Properties ---

    @property
    def community_id(self) -> str:
        return self._community_id

    @property
    def parent_space_id(self) -> str | None:
        return self._parent_space_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def icon(self) -> str | None:
        return self._icon

    @property
    def color(self) -> str | None:
        return self._color

    @property
    def position(self) -> int:
        return self._position

    @property
    def created_by(self) -> str:
        return self._created_by

    @property
    def is_parent_space(self) -> bool:
        """True for a top-level space."""
        return self._parent_space_id is None

    @property
    def is_child_space(self) -> bool:
        return self._parent_space_id is not None

    # --- State Transitions ---

    def update_details(self, name: str, description: str) -> None:
        self.ensure_not_archived()
        _validate_name(name)
        _validate_description(description)
        self._name = name
        self._description = description
        self._changed()

    def update_appearance(self, icon: str | None, color: str | None) -> None:
        self.ensure_not_archived()
        self._icon = icon
        self._color = color
        self._changed()

    def update_position(self, position: int) -> None:
        self.ensure_not_archived()
        _validate_position(position)
        self._position = position
        self._changed()

    # --- Lifecycle Events ---

    def _archived_event(self) -> events.DomainEvent:
        return events.SpaceArchived(space_id=self.id, community_id=self._community_id)

    def _restored_event(self) -> events.DomainEvent:
        return events.SpaceRestored(space_id=self.id, community_id=self._community_id)

    def _changed(self) -> None:
        self._touch()
        self._record(
            events.SpaceUpdated(
                space_id=self.id,
                community_id=self._community_id,
                space_name=self._name,
            )
        )


def _validate_name(name: str) -> None:
    if not name or not name.strip():
        raise errors.ValidationError("Space name cannot be empty")
    if len(name) > 100:
        raise errors.ValidationError("Space name cannot exceed 100 characters")


def _validate_description(description: str) -> None:
    if len(description) > 500:
        raise errors.ValidationError("Space description cannot exceed 500 characters")


def _validate_position(position: int) -> None:
    if position < 0:
        raise errors.ValidationError("Space position cannot be negative")
