"""Unit of Work implementations for agora.

- :class:`SqlAlchemyUnitOfWork` opens one Connection per ``with`` block and
  hands it to SQLAlchemy repositories.
- :class:`InMemoryUnitOfWork` stages writes on a copy of an
  :class:`InMemoryData` store and merges them back on commit.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from agora.adapters.repositories import memory
from agora.adapters.repositories import sqlalchemy as sa_repos
from agora.adapters.repositories.memory_store import InMemoryData
from agora.interfaces.errors import ConcurrencyConflictError, DuplicateEntityError
from agora.interfaces.unit_of_work import AbstractUnitOfWork

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """SQLAlchemy-backed Unit of Work."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.connection: Connection

    def __enter__(self):
        self.connection = self.engine.connect()
        self.communities = sa_repos.SqlAlchemyCommunityRepository(self.connection)
        self.posts = sa_repos.SqlAlchemyPostRepository(self.connection)
        self.comments = sa_repos.SqlAlchemyCommentRepository(self.connection)
        self.likes = sa_repos.SqlAlchemyLikeRepository(self.connection)
        self.post_drafts = sa_repos.SqlAlchemyPostDraftRepository(self.connection)
        self.content_versions = sa_repos.SqlAlchemyContentVersionRepository(
            self.connection
        )
        self.courses = sa_repos.SqlAlchemyCourseRepository(self.connection)
        self.lessons = sa_repos.SqlAlchemyLessonRepository(self.connection)
        self.course_progress = sa_repos.SqlAlchemyCourseProgressRepository(
            self.connection
        )
        self.certificates = sa_repos.SqlAlchemyCertificateRepository(self.connection)
        self.spaces = sa_repos.SqlAlchemySpaceRepository(self.connection)
        self.channels = sa_repos.SqlAlchemyChannelRepository(self.connection)
        self.payment_tiers = sa_repos.SqlAlchemyPaymentTierRepository(self.connection)
        self.coupons = sa_repos.SqlAlchemyCouponRepository(self.connection)
        self.subscriptions = sa_repos.SqlAlchemySubscriptionRepository(
            self.connection
        )
        self.notifications = sa_repos.SqlAlchemyNotificationRepository(
            self.connection
        )
        return super().__enter__()

    def __exit__(self, *args):
        super().__exit__(*args)
        self.connection.close()

    def commit(self):
        self.connection.commit()

    def rollback(self):
        self.connection.rollback()


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """In-memory Unit of Work for tests and throwaway sessions.

    Writes are staged on a private copy of the shared store and only become
    visible to later units of work on :meth:`commit`. Commit merges just the
    records this unit touched, and refuses with
    :class:`~agora.interfaces.errors.ConcurrencyConflictError` when another
    unit committed one of them since it was loaded. Units sharing one store
    therefore behave like concurrent database transactions.
    """

    _commit_lock = threading.Lock()

    def __init__(self, data: InMemoryData | None = None):
        self.data = data if data is not None else InMemoryData()
        self._base = self.data.copy()
        self._staged = self._base.copy()
        self.committed = False
        self._bind(self._staged)

    def __enter__(self):
        self._base = self.data.copy()
        self._staged = self._base.copy()
        self._bind(self._staged)
        return super().__enter__()

    def _bind(self, staged: InMemoryData) -> None:
        self.communities = memory.InMemoryCommunityRepository(staged)
        self.posts = memory.InMemoryPostRepository(staged)
        self.comments = memory.InMemoryCommentRepository(staged)
        self.likes = memory.InMemoryLikeRepository(staged)
        self.post_drafts = memory.InMemoryPostDraftRepository(staged)
        self.content_versions = memory.InMemoryContentVersionRepository(staged)
        self.courses = memory.InMemoryCourseRepository(staged)
        self.lessons = memory.InMemoryLessonRepository(staged)
        self.course_progress = memory.InMemoryCourseProgressRepository(staged)
        self.certificates = memory.InMemoryCertificateRepository(staged)
        self.spaces = memory.InMemorySpaceRepository(staged)
        self.channels = memory.InMemoryChannelRepository(staged)
        self.payment_tiers = memory.InMemoryPaymentTierRepository(staged)
        self.coupons = memory.InMemoryCouponRepository(staged)
        self.subscriptions = memory.InMemorySubscriptionRepository(staged)
        self.notifications = memory.InMemoryNotificationRepository(staged)

    def commit(self):
        with self._commit_lock:
            changes = list(self._staged_changes())
            for kind, shared, key, loaded, _ in changes:
                current = shared.get(key)
                if current is loaded:
                    continue
                if loaded is None:
                    raise DuplicateEntityError(kind, key)
                raise ConcurrencyConflictError(
                    kind, key, loaded.version, getattr(current, "version", None)
                )
            for _, shared, key, _, staged in changes:
                if staged is None:
                    del shared[key]
                else:
                    shared[key] = staged
            self._rebase()
        self.committed = True
        logger.debug("in-memory unit of work committed %d record(s)", len(changes))

    def rollback(self):
        self._rebase()

    def _rebase(self) -> None:
        """Start over from the shared store's current content."""
        self._base = self.data.copy()
        self._staged.overwrite_with(self._base)

    def _staged_changes(self) -> Iterator[tuple[str, dict, str, Any, Any]]:
        """Yield ``(kind, shared mapping, key, loaded, staged)`` per touched record.

        Records are immutable and replaced on every write, so identity tells
        whether this unit wrote a record. ``None`` stands for "absent".
        """
        for repository in self.repositories():
            store_field = repository.STORE_FIELD  # type: ignore[attr-defined]
            shared = getattr(self.data, store_field)
            loaded = getattr(self._base, store_field)
            staged = getattr(self._staged, store_field)
            for key in loaded.keys() | staged.keys():
                before, after = loaded.get(key), staged.get(key)
                if before is not after:
                    yield repository.KIND, shared, key, before, after
