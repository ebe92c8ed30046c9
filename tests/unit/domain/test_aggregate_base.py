"""Unit tests for the Aggregate and ArchivableAggregate base classes."""

from dataclasses import dataclass, replace
from datetime import datetime

import pytest

from agora.domain import errors
from agora.domain.aggregates.base import ArchivableAggregate
from agora.domain.events import DomainEvent
from agora.domain.utils import utc_now

# pylint: disable=protected-access,magic-value-comparison,too-few-public-methods


@dataclass(frozen=True, slots=True)
class FakeRecord:
    """Persisted state of the fake aggregate."""

    id: str
    label: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


@dataclass(frozen=True, slots=True)
class FakeEvent(DomainEvent):
    """A fake event for testing purposes."""

    name = "fake.event"

    fake_id: str

    @property
    def aggregate_id(self) -> str:
        return self.fake_id


@dataclass(frozen=True, slots=True)
class FakeArchived(FakeEvent):
    name = "fake.archived"


@dataclass(frozen=True, slots=True)
class FakeRestored(FakeEvent):
    name = "fake.restored"


class FakeAggregate(ArchivableAggregate):
    """A fake aggregate for testing the base classes."""

    RECORD_TYPE = FakeRecord
    ENTITY_NAME = "Fake"

    def __init__(
        self,
        aggregate_id: str,
        label: str,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, updated_at, deleted_at, version)
        if not label:
            raise errors.ValidationError("Label is required")
        self._label = label
        self.locked = False

    @classmethod
    def create(cls, aggregate_id: str, label: str) -> "FakeAggregate":
        now = utc_now()
        fake = cls(aggregate_id, label, now, now)
        fake._record(FakeEvent(fake_id=aggregate_id))
        return fake

    @property
    def label(self) -> str:
        return self._label

    def rename(self, label: str) -> None:
        self.ensure_not_archived()
        self._label = label
        self._touch()

    def _check_can_archive(self) -> None:
        if self.locked:
            raise errors.InvalidTransitionError("Fake is locked")

    def _archived_event(self) -> DomainEvent:
        return FakeArchived(fake_id=self.id)

    def _restored_event(self) -> DomainEvent:
        return FakeRestored(fake_id=self.id)


class TestConstructionPaths:
    """Tests for create, reconstitute and to_persistence."""

    @staticmethod
    def test_create_starts_at_version_zero():
        """A freshly created aggregate has never been stored."""
        fake = FakeAggregate.create("fake-1", "first")
        assert fake.version == 0
        assert fake.id == "fake-1"
        assert not fake.is_archived

    @staticmethod
    def test_to_persistence_snapshots_state():
        """The record mirrors the public attributes."""
        fake = FakeAggregate.create("fake-1", "first")
        record = fake.to_persistence()
        assert isinstance(record, FakeRecord)
        assert record.id == "fake-1"
        assert record.label == "first"
        assert record.created_at == fake.created_at
        assert record.deleted_at is None
        assert record.version == 0

    @staticmethod
    def test_reconstitute_rebuilds_equal_state():
        """Reconstituting a record gives back the same state without events."""
        fake = FakeAggregate.create("fake-1", "first")
        record = replace(fake.to_persistence(), version=3)
        rebuilt = FakeAggregate.reconstitute(record)
        assert rebuilt.to_persistence() == record
        assert rebuilt.version == 3
        assert not rebuilt.dequeue_uncommitted()

    @staticmethod
    def test_reconstitute_revalidates():
        """A corrupted record fails to load instead of producing an invalid object."""
        fake = FakeAggregate.create("fake-1", "first")
        record = replace(fake.to_persistence(), label="")
        with pytest.raises(errors.ValidationError, match="Label is required"):
            FakeAggregate.reconstitute(record)

    @staticmethod
    def test_reconstitute_rejects_foreign_record():
        """Only the aggregate's own record type is accepted."""

        @dataclass(frozen=True)
        class OtherRecord:
            id: str

        with pytest.raises(TypeError, match="FakeAggregate cannot be rebuilt"):
            FakeAggregate.reconstitute(OtherRecord(id="x"))

    @staticmethod
    def test_repr_names_type_and_id():
        assert repr(FakeAggregate.create("fake-1", "first")) == "FakeAggregate(id='fake-1')"


class TestPendingEvents:
    """Tests for the pending event queue."""

    @staticmethod
    def test_dequeue_returns_and_clears_events():
        """Events are handed out exactly once."""
        fake = FakeAggregate.create("fake-1", "first")
        drained = fake.dequeue_uncommitted()
        assert [type(e) for e in drained] == [FakeEvent]
        assert not fake.dequeue_uncommitted()

    @staticmethod
    def test_mark_persisted_sets_version():
        fake = FakeAggregate.create("fake-1", "first")
        fake.mark_persisted(1)
        assert fake.version == 1


class TestArchiving:
    """Tests for the soft-delete lifecycle."""

    @staticmethod
    def test_archive_sets_deleted_at_and_updated_at():
        """Archiving stamps deleted_at and bumps updated_at to the same instant."""
        fake = FakeAggregate.create("fake-1", "first")
        before = fake.updated_at
        fake.archive()
        assert fake.is_archived
        assert fake.deleted_at is not None
        assert fake.updated_at == fake.deleted_at
        assert fake.updated_at >= before

    @staticmethod
    def test_archive_records_event():
        fake = FakeAggregate.create("fake-1", "first")
        fake.dequeue_uncommitted()
        fake.archive()
        assert [type(e) for e in fake.dequeue_uncommitted()] == [FakeArchived]

    @staticmethod
    def test_archive_twice_raises():
        fake = FakeAggregate.create("fake-1", "first")
        fake.archive()
        with pytest.raises(errors.AlreadyArchivedError, match="Fake is already archived"):
            fake.archive()

    @staticmethod
    def test_archive_hook_can_refuse():
        """Aggregates may forbid archiving in some states."""
        fake = FakeAggregate.create("fake-1", "first")
        fake.locked = True
        with pytest.raises(errors.InvalidTransitionError, match="Fake is locked"):
            fake.archive()
        assert not fake.is_archived

    @staticmethod
    def test_mutators_refuse_archived_aggregate():
        """Every mutator but restore raises on an archived aggregate."""
        fake = FakeAggregate.create("fake-1", "first")
        fake.archive()
        with pytest.raises(errors.ArchivedEntityError, match="Cannot modify archived fake"):
            fake.rename("second")
        assert fake.label == "first"

    @staticmethod
    def test_restore_clears_deleted_at():
        fake = FakeAggregate.create("fake-1", "first")
        fake.archive()
        fake.dequeue_uncommitted()
        fake.restore()
        assert not fake.is_archived
        assert fake.deleted_at is None
        assert [type(e) for e in fake.dequeue_uncommitted()] == [FakeRestored]
        fake.rename("second")
        assert fake.label == "second"

    @staticmethod
    def test_restore_requires_archived():
        fake = FakeAggregate.create("fake-1", "first")
        with pytest.raises(errors.NotArchivedError, match="Fake is not archived"):
            fake.restore()
