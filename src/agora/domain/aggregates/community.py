"""Aggregate representing a community."""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from agora.domain import errors, events
from agora.domain.utils import (
    UNSET,
    Unset,
    check_text_length,
    is_web_url,
    utc_now,
)

from .base import ArchivableAggregate

# pylint: disable=too-many-arguments

DEFAULT_PRIMARY_COLOR = "#0066CC"

_NAME_PATTERN = re.compile(r"[a-zA-Z0-9\s_-]+")
_HEX_COLOR_PATTERN = re.compile(r"#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})")


@dataclass(frozen=True, slots=True)
class CommunityRecord:
    """Persisted state of a community."""

    id: str
    name: str
    logo_url: str | None
    primary_color: str
    owner_id: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


class Community(ArchivableAggregate):
    """A branded community owned by a single user."""

    RECORD_TYPE = CommunityRecord
    ENTITY_NAME = "Community"

    def __init__(
        self,
        aggregate_id: str,
        name: str,
        logo_url: str | None,
        primary_color: str,
        owner_id: str,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, updated_at, deleted_at, version)
        _validate_name(name)
        if logo_url is not None:
            _validate_logo_url(logo_url)
        _validate_primary_color(primary_color)
        self._name = name
        self._logo_url = logo_url
        self._primary_color = primary_color
        self._owner_id = owner_id

    # --- Construction Paths ---

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        name: str,
        owner_id: str,
        logo_url: str | None = None,
        primary_color: str = DEFAULT_PRIMARY_COLOR,
    ) -> "Community":
        """Create a new community.

        Args:
            aggregate_id (str): The unique identifier for the community.
            name (str): Display name, 3 to 100 letters, digits, spaces, hyphens
                or underscores.
            owner_id (str): The user who owns the community.
            logo_url (str | None): Optional http(s) URL of the logo.
            primary_color (str): Brand color as ``#RGB`` or ``#RRGGBB``.

        Returns:
            Community: The newly created community.

        Raises:
            ValidationError: If any field is invalid.
        """
        now = utc_now()
        community = cls(
            aggregate_id,
            name=name,
            logo_url=logo_url,
            primary_color=primary_color,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        community._record(
            events.CommunityCreated(
                community_id=aggregate_id,
                community_name=name,
                logo_url=logo_url,
                primary_color=primary_color,
                owner_id=owner_id,
            )
        )
        return community

    # --- Properties ---

    @property
    def name(self) -> str:
        return self._name

    @property
    def logo_url(self) -> str | None:
        return self._logo_url

    @property
    def primary_color(self) -> str:
        return self._primary_color

    @property
    def owner_id(self) -> str:
        return self._owner_id

    # --- State Transitions ---

    def update_branding(
        self,
        *,
        name: str | None = None,
        logo_url: str | None | Unset = UNSET,
        primary_color: str | None = None,
    ) -> None:
        """Update the supplied branding fields, leaving the others untouched.

        Pass ``logo_url=None`` to remove the logo.

        Raises:
            ArchivedEntityError: If the community is archived.
            ValidationError: If a supplied field is invalid.
        """
        self.ensure_not_archived()
        changes: dict[str, Any] = {}
        if name is not None:
            _validate_name(name)
            changes["name"] = name
        if logo_url is not UNSET:
            if logo_url is not None:
                _validate_logo_url(logo_url)
            changes["logo_url"] = logo_url
        if primary_color is not None:
            _validate_primary_color(primary_color)
            changes["primary_color"] = primary_color

        self._name = changes.get("name", self._name)
        self._logo_url = changes.get("logo_url", self._logo_url)
        self._primary_color = changes.get("primary_color", self._primary_color)
        self._touch()
        self._record(events.CommunityUpdated(community_id=self.id, changes=changes))

    def transfer_ownership(self, new_owner_id: str) -> None:
        """Hand the community over to another user.

        Raises:
            ArchivedEntityError: If the community is archived.
            ValidationError: If the new owner id is empty.
            InvalidTransitionError: If the new owner is the current owner.
        """
        self.ensure_not_archived()
        if not new_owner_id or not new_owner_id.strip():
            raise errors.ValidationError("New owner ID is required")
        if new_owner_id == self._owner_id:
            raise errors.InvalidTransitionError(
                "New owner must be different from current owner"
            )
        previous = self._owner_id
        self._owner_id = new_owner_id
        self._touch()
        self._record(
            events.CommunityOwnershipTransferred(
                community_id=self.id,
                previous_owner_id=previous,
                new_owner_id=new_owner_id,
            )
        )

    # --- Lifecycle Events ---

    def _archived_event(self) -> events.DomainEvent:
        return events.CommunityArchived(community_id=self.id)

    def _restored_event(self) -> events.DomainEvent:
        return events.CommunityRestored(community_id=self.id)


def _validate_name(name: str) -> None:
    check_text_length(name, "Community name", minimum=3, maximum=100, strip=False)
    if not _NAME_PATTERN.fullmatch(name):
        raise errors.ValidationError(
            "Community name can only contain letters, numbers, spaces, "
            "hyphens, and underscores"
        )


def _validate_logo_url(url: str) -> None:
    if not is_web_url(url):
        raise errors.ValidationError("Invalid logo URL format")


def _validate_primary_color(color: str) -> None:
    if not color or not color.strip():
        raise errors.ValidationError("Primary color is required")
    if not _HEX_COLOR_PATTERN.fullmatch(color):
        raise errors.ValidationError(
            "Primary color must be a valid hex color code (e.g., #0066CC or #06C)"
        )
