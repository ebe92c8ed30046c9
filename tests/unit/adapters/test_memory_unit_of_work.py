"""Unit tests for the in-memory unit of work and its shared store."""

import pytest

from agora.adapters.repositories.memory_store import InMemoryData
from agora.adapters.unit_of_work import InMemoryUnitOfWork
from agora.domain import events
from agora.interfaces.errors import ConcurrencyConflictError, DuplicateEntityError

# pylint: disable=magic-value-comparison


class TestInMemoryData:
    """Tests for the backing store."""

    @staticmethod
    def test_copy_is_independent(make_community):
        data = InMemoryData()
        community = make_community(aggregate_id="community-1")
        data.communities["community-1"] = community.to_persistence()
        clone = data.copy()
        clone.communities.clear()
        assert "community-1" in data.communities

    @staticmethod
    def test_overwrite_with_keeps_mapping_identity():
        data = InMemoryData()
        mapping = data.posts
        other = InMemoryData(posts={"post-1": object()})
        data.overwrite_with(other)
        assert data.posts is mapping
        assert set(data.posts) == {"post-1"}


class TestInMemoryUnitOfWork:
    """Tests for staging, commit and rollback."""

    @staticmethod
    def test_commit_publishes_staged_writes(make_community):
        uow = InMemoryUnitOfWork()
        with uow:
            uow.communities.add(make_community(aggregate_id="community-1"))
            uow.commit()
        assert uow.committed
        assert "community-1" in uow.data.communities
        with uow:
            assert uow.communities.get("community-1") is not None

    @staticmethod
    def test_exit_without_commit_discards_writes(make_community):
        uow = InMemoryUnitOfWork()
        with uow:
            uow.communities.add(make_community(aggregate_id="community-1"))
        assert not uow.committed
        assert not uow.data.communities
        with uow:
            assert uow.communities.get("community-1") is None

    @staticmethod
    def test_units_sharing_data_see_committed_state(make_post):
        data = InMemoryData()
        writer = InMemoryUnitOfWork(data)
        reader = InMemoryUnitOfWork(data)
        with writer:
            writer.posts.add(make_post(aggregate_id="post-1"))
            writer.commit()
        with reader:
            post = reader.posts.get("post-1")
        assert post is not None
        assert post.version == 1

    @staticmethod
    def test_repositories_usable_outside_with_block(make_post):
        """Tests may inspect committed state without opening a new block."""
        uow = InMemoryUnitOfWork()
        with uow:
            uow.posts.add(make_post(aggregate_id="post-1"))
            uow.commit()
        assert uow.posts.get("post-1") is not None

    @staticmethod
    def test_collect_new_events_drains_seen_aggregates(make_post, make_comment):
        uow = InMemoryUnitOfWork()
        with uow:
            uow.posts.add(make_post(aggregate_id="post-1"))
            uow.comments.add(make_comment(aggregate_id="comment-1"))
            collected = list(uow.collect_new_events())
            assert {type(e) for e in collected} == {
                events.PostCreated,
                events.CommentCreated,
            }
            assert not list(uow.collect_new_events())

    @staticmethod
    def test_exposes_every_repository():
        assert len(InMemoryUnitOfWork().repositories()) == 16


class TestInMemoryUnitOfWorkConcurrency:
    """Units sharing one store behave like overlapping transactions."""

    @staticmethod
    @pytest.fixture
    def data(make_coupon) -> InMemoryData:
        data = InMemoryData()
        seed = InMemoryUnitOfWork(data)
        with seed:
            seed.coupons.add(make_coupon(aggregate_id="coupon-1"))
            seed.commit()
        return data

    @staticmethod
    def test_second_of_two_overlapping_redemptions_conflicts(data):
        first, second = InMemoryUnitOfWork(data), InMemoryUnitOfWork(data)
        with first, second:
            a = first.coupons.require("coupon-1")
            b = second.coupons.require("coupon-1")
            a.use()
            b.use()
            first.coupons.update(a)
            second.coupons.update(b)
            first.commit()
            with pytest.raises(ConcurrencyConflictError) as excinfo:
                second.commit()

        assert excinfo.value.expected == 1
        assert excinfo.value.actual == 2
        stored = data.coupons["coupon-1"]
        assert stored.used_count == 1
        assert stored.version == 2

    @staticmethod
    def test_retry_after_conflict_sees_the_winner(data):
        first, second = InMemoryUnitOfWork(data), InMemoryUnitOfWork(data)
        with second:
            late = second.coupons.require("coupon-1")
            with first:
                coupon = first.coupons.require("coupon-1")
                coupon.use()
                first.coupons.update(coupon)
                first.commit()
            late.use()
            second.coupons.update(late)
            with pytest.raises(ConcurrencyConflictError):
                second.commit()

        with second:
            coupon = second.coupons.require("coupon-1")
            coupon.use()
            second.coupons.update(coupon)
            second.commit()
        assert data.coupons["coupon-1"].used_count == 2
        assert data.coupons["coupon-1"].version == 3

    @staticmethod
    def test_commit_merges_only_touched_records(data, make_post):
        writer, other = InMemoryUnitOfWork(data), InMemoryUnitOfWork(data)
        with writer, other:
            writer.posts.add(make_post(aggregate_id="post-1"))
            coupon = other.coupons.require("coupon-1")
            coupon.deactivate()
            other.coupons.update(coupon)
            other.commit()
            writer.commit()

        assert "post-1" in data.posts
        assert data.coupons["coupon-1"].is_active is False

    @staticmethod
    def test_same_id_added_by_two_units_is_a_duplicate(make_post):
        data = InMemoryData()
        first, second = InMemoryUnitOfWork(data), InMemoryUnitOfWork(data)
        with first, second:
            first.posts.add(make_post(aggregate_id="post-1"))
            second.posts.add(make_post(aggregate_id="post-1"))
            first.commit()
            with pytest.raises(DuplicateEntityError):
                second.commit()

    @staticmethod
    def test_failed_commit_publishes_nothing(data, make_post):
        first, second = InMemoryUnitOfWork(data), InMemoryUnitOfWork(data)
        with first, second:
            for uow in (first, second):
                coupon = uow.coupons.require("coupon-1")
                coupon.use()
                uow.coupons.update(coupon)
            second.posts.add(make_post(aggregate_id="post-1"))
            first.commit()
            with pytest.raises(ConcurrencyConflictError):
                second.commit()

        assert "post-1" not in data.posts
