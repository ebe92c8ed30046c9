"""Base classes for all aggregates."""

import abc
from dataclasses import fields
from datetime import datetime
from typing import Any, ClassVar, TypeVar

from agora.domain.errors import (
    AlreadyArchivedError,
    ArchivedEntityError,
    NotArchivedError,
)
from agora.domain.events import DomainEvent
from agora.domain.utils import utc_now

A = TypeVar("A", bound="Aggregate")


class Aggregate(abc.ABC):
    """Generic base class for all aggregates.

    Aggregates are built through exactly two construction paths, ``create``
    (implemented by each concrete aggregate) and :meth:`reconstitute`. Both end
    up in ``__init__``, which validates every field, so a corrupted stored
    record fails to load rather than producing an invalid object.
    """

    RECORD_TYPE: ClassVar[type[Any]]
    """Frozen dataclass holding the persisted state of the aggregate.

    Field names must match the aggregate's public attributes; ``id`` maps to
    the ``aggregate_id`` constructor argument.
    """

    ENTITY_NAME: ClassVar[str]
    """Human-readable name used in lifecycle error messages (e.g. ``"Course"``)."""

    def __init__(self, aggregate_id: str, created_at: datetime, version: int = 0) -> None:
        self._id = aggregate_id
        self._created_at = created_at
        self._version = version
        self._pending_events: list[DomainEvent] = []

    # --- Construction Paths ---

    @classmethod
    def reconstitute(cls: type[A], record: Any) -> A:
        """Rebuild an aggregate from its persisted record.

        Args:
            record: An instance of the aggregate's ``RECORD_TYPE``.

        Returns:
            The aggregate, re-validated.

        Raises:
            TypeError: If *record* is not of the aggregate's record type.
            ValidationError: If any stored field violates its invariant.
        """
        if not isinstance(record, cls.RECORD_TYPE):
            raise TypeError(
                f"{cls.__name__} cannot be rebuilt from {type(record).__name__}"
            )
        values = {f.name: getattr(record, f.name) for f in fields(record)}
        values["aggregate_id"] = values.pop("id")
        return cls(**values)

    def to_persistence(self) -> Any:
        """Snapshot the aggregate's state into its record type."""
        return self.RECORD_TYPE(
            **{f.name: getattr(self, f.name) for f in fields(self.RECORD_TYPE)}
        )

    # --- Properties ---

    @property
    def id(self) -> str:
        """The aggregate's identity."""
        return self._id

    @property
    def created_at(self) -> datetime:
        """When the aggregate was first created."""
        return self._created_at

    @property
    def version(self) -> int:
        """The persisted version the aggregate was loaded at (0 if never stored)."""
        return self._version

    # --- Plumbing ---

    def mark_persisted(self, version: int) -> None:
        """Record the version a repository just stored the aggregate at."""
        self._version = version

    def _record(self, event: DomainEvent) -> None:
        self._pending_events.append(event)

    def dequeue_uncommitted(self) -> list[DomainEvent]:
        """Dequeue all uncommitted events.

        Returns:
            A list of all events recorded since the last call to this method.

        Note: This is NOT thread-safe. It is the caller's responsibility to ensure
        that no other operations are performed on the aggregate between calls to this
        method.
        """

        uncommitted_events = self._pending_events
        self._pending_events = []
        return uncommitted_events

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r})"


class ArchivableAggregate(Aggregate):
    """Aggregate with an ``updated_at`` stamp and soft-delete semantics.

    ``deleted_at`` being set means the aggregate is archived. While archived,
    every mutator other than :meth:`restore` raises :class:`ArchivedEntityError`.
    """

    def __init__(
        self,
        aggregate_id: str,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, version)
        self._updated_at = updated_at
        self._deleted_at = deleted_at

    @property
    def updated_at(self) -> datetime:
        """When the aggregate last changed."""
        return self._updated_at

    @property
    def deleted_at(self) -> datetime | None:
        """When the aggregate was archived, or None."""
        return self._deleted_at

    @property
    def is_archived(self) -> bool:
        """True if the aggregate is archived."""
        return self._deleted_at is not None

    # --- Lifecycle ---

    def archive(self) -> None:
        """Archive (soft delete) the aggregate.

        Raises:
            AlreadyArchivedError: If the aggregate is already archived.
            InvalidTransitionError: If the concrete aggregate forbids archiving
                in its current state.
        """
        if self.is_archived:
            raise AlreadyArchivedError(self.ENTITY_NAME, self._id)
        self._check_can_archive()
        self._deleted_at = utc_now()
        self._updated_at = self._deleted_at
        self._record(self._archived_event())

    def restore(self) -> None:
        """Restore an archived aggregate.

        Raises:
            NotArchivedError: If the aggregate is not archived.
        """
        if not self.is_archived:
            raise NotArchivedError(self.ENTITY_NAME, self._id)
        self._deleted_at = None
        self._touch()
        self._record(self._restored_event())

    def _check_can_archive(self) -> None:
        """Hook for aggregates that forbid archiving in some states."""

    @abc.abstractmethod
    def _archived_event(self) -> DomainEvent:
        """Build the event recorded when the aggregate is archived."""

    @abc.abstractmethod
    def _restored_event(self) -> DomainEvent:
        """Build the event recorded when the aggregate is restored."""

    # --- Guards ---

    def ensure_not_archived(self) -> None:
        """Raise :class:`ArchivedEntityError` if the aggregate is archived."""
        if self.is_archived:
            raise ArchivedEntityError(self.ENTITY_NAME, self._id)

    def _touch(self) -> None:
        self._updated_at = utc_now()
