"""Contract tests for the repository finders.

Aggregates are backdated through their persistence records so orderings
never depend on how fast the test machine creates them.
"""

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from agora.domain.value_objects import ContentType, SubscriptionStatus
from agora.interfaces.errors import DuplicateEntityError, EntityNotFoundError

# pylint: disable=magic-value-comparison

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def aged(aggregate, minutes):
    """Rebuild *aggregate* as if it had been created ``minutes`` after T0."""
    record = aggregate.to_persistence()
    created_at = T0 + timedelta(minutes=minutes)
    changes = {"created_at": created_at}
    if hasattr(record, "updated_at"):
        changes["updated_at"] = created_at
    return type(aggregate).reconstitute(dataclasses.replace(record, **changes))


def _store(make_uow, repo_name, *aggregates):
    with make_uow() as uow:
        repo = getattr(uow, repo_name)
        for aggregate in aggregates:
            repo.add(aggregate)
        uow.commit()


def _ids(aggregates):
    return [a.id for a in aggregates]


class TestCommunityFinders:
    """list_by_owner."""

    @staticmethod
    def test_list_by_owner(make_uow, make_community):
        _store(
            make_uow,
            "communities",
            aged(make_community(aggregate_id="c-2", owner_id="alice"), 2),
            aged(make_community(aggregate_id="c-1", owner_id="alice"), 1),
            aged(make_community(aggregate_id="c-3", owner_id="bob"), 3),
        )
        with make_uow() as uow:
            assert _ids(uow.communities.list_by_owner("alice")) == ["c-1", "c-2"]
            assert uow.communities.list_by_owner("carol") == []


class TestPostFinders:
    """list_by_community ordering and filters."""

    @staticmethod
    @pytest.fixture
    def stored_posts(make_uow, make_post):
        older_pinned = make_post(aggregate_id="p-pinned", published=True)
        older_pinned.pin()
        _store(
            make_uow,
            "posts",
            aged(older_pinned, 1),
            aged(make_post(aggregate_id="p-old", published=True), 2),
            aged(make_post(aggregate_id="p-new", published=True), 4),
            aged(make_post(aggregate_id="p-draft"), 3),
            aged(make_post(aggregate_id="p-other", community_id="c-2"), 5),
        )

    @staticmethod
    @pytest.mark.usefixtures("stored_posts")
    def test_pinned_first_then_newest(make_uow):
        with make_uow() as uow:
            posts = uow.posts.list_by_community("community-1")
        assert _ids(posts) == ["p-pinned", "p-new", "p-draft", "p-old"]

    @staticmethod
    @pytest.mark.usefixtures("stored_posts")
    def test_published_only(make_uow):
        with make_uow() as uow:
            posts = uow.posts.list_by_community("community-1", published_only=True)
        assert _ids(posts) == ["p-pinned", "p-new", "p-old"]

    @staticmethod
    @pytest.mark.usefixtures("stored_posts")
    def test_archived_hidden(make_uow):
        with make_uow() as uow:
            uow.posts.archive("p-new")
            uow.commit()
        with make_uow() as uow:
            assert "p-new" not in _ids(uow.posts.list_by_community("community-1"))
            assert "p-new" in _ids(
                uow.posts.list_by_community("community-1", include_archived=True)
            )


class TestCommentFinders:
    """list_by_post."""

    @staticmethod
    def test_oldest_first(make_uow, make_comment):
        _store(
            make_uow,
            "comments",
            aged(make_comment(aggregate_id="cm-2"), 2),
            aged(make_comment(aggregate_id="cm-1"), 1),
            aged(make_comment(aggregate_id="cm-x", post_id="post-2"), 0),
        )
        with make_uow() as uow:
            assert _ids(uow.comments.list_by_post("post-1")) == ["cm-1", "cm-2"]


class TestLikeFinders:
    """Lookups, counting and hard delete."""

    @staticmethod
    @pytest.fixture
    def stored_likes(make_uow, make_like):
        _store(
            make_uow,
            "likes",
            make_like(aggregate_id="l-1", user_id="u-1", post_id="post-1"),
            make_like(aggregate_id="l-2", user_id="u-2", post_id="post-1"),
            make_like(aggregate_id="l-3", user_id="u-1", comment_id="comment-1"),
        )

    @staticmethod
    @pytest.mark.usefixtures("stored_likes")
    def test_find(make_uow):
        with make_uow() as uow:
            assert uow.likes.find_by_user_and_post("u-1", "post-1").id == "l-1"
            assert uow.likes.find_by_user_and_post("u-3", "post-1") is None
            assert uow.likes.find_by_user_and_comment("u-1", "comment-1").id == "l-3"
            assert uow.likes.find_by_user_and_comment("u-2", "comment-1") is None

    @staticmethod
    @pytest.mark.usefixtures("stored_likes")
    def test_count_and_delete(make_uow):
        with make_uow() as uow:
            assert uow.likes.count_by_post("post-1") == 2
            uow.likes.delete("l-1")
            uow.commit()
        with make_uow() as uow:
            assert uow.likes.count_by_post("post-1") == 1
            assert uow.likes.get("l-1") is None

    @staticmethod
    @pytest.mark.usefixtures("stored_likes")
    def test_delete_missing_raises(make_uow):
        with make_uow() as uow:
            with pytest.raises(EntityNotFoundError):
                uow.likes.delete("l-404")


class TestCourseFinders:
    """Courses, lessons and progress."""

    @staticmethod
    def test_courses_by_community(make_uow, make_course):
        _store(
            make_uow,
            "courses",
            aged(make_course(aggregate_id="co-2"), 2),
            aged(make_course(aggregate_id="co-1"), 1),
        )
        with make_uow() as uow:
            assert _ids(uow.courses.list_by_community("community-1")) == ["co-1", "co-2"]

    @staticmethod
    def test_lessons_by_order(make_uow, make_lesson):
        _store(
            make_uow,
            "lessons",
            aged(make_lesson(aggregate_id="le-b", order=1), 1),
            aged(make_lesson(aggregate_id="le-a", order=1), 0),
            aged(make_lesson(aggregate_id="le-0", order=0), 5),
        )
        with make_uow() as uow:
            lessons = uow.lessons.list_by_course("course-1")
        assert _ids(lessons) == ["le-0", "le-a", "le-b"]

    @staticmethod
    def test_progress_by_user_and_course(make_uow, make_progress):
        _store(make_uow, "course_progress", make_progress(aggregate_id="pr-1"))
        with make_uow() as uow:
            found = uow.course_progress.find_by_user_and_course("student-1", "course-1")
            assert found is not None and found.id == "pr-1"
            assert uow.course_progress.find_by_user_and_course("student-2", "course-1") is None


class TestSpaceAndChannelFinders:
    """Both lists sort by position."""

    @staticmethod
    def test_spaces_by_position(make_uow, make_space):
        first = make_space(aggregate_id="sp-first", position=0)
        second = make_space(aggregate_id="sp-second", position=3)
        _store(make_uow, "spaces", aged(second, 0), aged(first, 1))
        with make_uow() as uow:
            assert _ids(uow.spaces.list_by_community("community-1")) == [
                "sp-first",
                "sp-second",
            ]

    @staticmethod
    def test_channels_by_position(make_uow, make_channel):
        first = make_channel(aggregate_id="ch-first", position=0)
        second = make_channel(aggregate_id="ch-second", position=2)
        _store(make_uow, "channels", aged(second, 0), aged(first, 1))
        with make_uow() as uow:
            assert _ids(uow.channels.list_by_community("community-1")) == [
                "ch-first",
                "ch-second",
            ]


class TestPaymentFinders:
    """Tiers and coupons."""

    @staticmethod
    def test_tiers_cheapest_first(make_uow, make_tier):
        inactive = make_tier(aggregate_id="t-inactive", price_monthly=500)
        inactive.deactivate()
        _store(
            make_uow,
            "payment_tiers",
            aged(make_tier(aggregate_id="t-pro", price_monthly=2000), 0),
            aged(make_tier(aggregate_id="t-free", price_monthly=0, price_annual=0), 1),
            aged(inactive, 2),
        )
        with make_uow() as uow:
            tiers = uow.payment_tiers
            assert _ids(tiers.list_by_community("community-1")) == [
                "t-free",
                "t-inactive",
                "t-pro",
            ]
            assert _ids(tiers.list_by_community("community-1", active_only=True)) == [
                "t-free",
                "t-pro",
            ]
            assert tiers.find_free_tier("community-1").id == "t-free"
            assert tiers.find_free_tier("community-2") is None

    @staticmethod
    def test_coupon_code_lookup_is_normalized(make_uow, make_coupon):
        _store(make_uow, "coupons", make_coupon(aggregate_id="cp-1", code="save20"))
        with make_uow() as uow:
            assert uow.coupons.find_by_code("  Save20 ", "community-1").id == "cp-1"
            assert uow.coupons.find_by_code("SAVE20", "community-2") is None
            assert uow.coupons.find_by_code("SAVE30", "community-1") is None


class TestSubscriptionFinders:
    """Lookups and the live subscription count."""

    @staticmethod
    def test_latest_for_user_and_community(make_uow, make_subscription):
        _store(
            make_uow,
            "subscriptions",
            aged(make_subscription(aggregate_id="s-old"), 0),
            aged(make_subscription(aggregate_id="s-new"), 10),
        )
        with make_uow() as uow:
            found = uow.subscriptions.find_by_user_and_community("member-1", "community-1")
        assert found.id == "s-new"

    @staticmethod
    def test_by_stripe_subscription_id(make_uow, make_subscription):
        subscription = make_subscription(aggregate_id="s-1")
        subscription.update_stripe_ids("sub_123", "cus_456")
        _store(make_uow, "subscriptions", subscription)
        with make_uow() as uow:
            assert uow.subscriptions.find_by_stripe_subscription_id("sub_123").id == "s-1"
            assert uow.subscriptions.find_by_stripe_subscription_id("sub_999") is None

    @staticmethod
    def test_count_active(make_uow, make_subscription):
        active = make_subscription(aggregate_id="s-active", user_id="m-1")
        active.activate()
        cancelled = make_subscription(aggregate_id="s-cancelled", user_id="m-2")
        cancelled.cancel_immediately()
        archived = make_subscription(aggregate_id="s-archived", user_id="m-3")
        archived.archive()
        _store(
            make_uow,
            "subscriptions",
            active,
            make_subscription(aggregate_id="s-trial", user_id="m-4"),
            cancelled,
            archived,
            make_subscription(aggregate_id="s-elsewhere", community_id="community-2"),
        )
        with make_uow() as uow:
            assert active.status is SubscriptionStatus.ACTIVE
            assert uow.subscriptions.count_active_by_community("community-1") == 2


class TestNotificationFinders:
    """Inbox listing and the unread counter."""

    @staticmethod
    @pytest.fixture
    def stored_notifications(make_uow, make_notification):
        read = make_notification(aggregate_id="n-read")
        read.mark_as_read()
        _store(
            make_uow,
            "notifications",
            aged(make_notification(aggregate_id="n-1"), 1),
            aged(read, 2),
            aged(make_notification(aggregate_id="n-3"), 3),
            aged(make_notification(aggregate_id="n-elsewhere", community_id="c-2"), 4),
            aged(make_notification(aggregate_id="n-other-user", user_id="member-2"), 5),
        )

    @staticmethod
    @pytest.mark.usefixtures("stored_notifications")
    def test_list_newest_first(make_uow):
        with make_uow() as uow:
            inbox = uow.notifications
            assert _ids(inbox.list_for_user("member-1")) == [
                "n-elsewhere",
                "n-3",
                "n-read",
                "n-1",
            ]
            assert _ids(inbox.list_for_user("member-1", community_id="community-1")) == [
                "n-3",
                "n-read",
                "n-1",
            ]
            assert _ids(
                inbox.list_for_user("member-1", community_id="community-1", unread_only=True)
            ) == ["n-3", "n-1"]
            assert _ids(inbox.list_for_user("member-1", limit=2)) == ["n-elsewhere", "n-3"]

    @staticmethod
    @pytest.mark.usefixtures("stored_notifications")
    def test_count_unread(make_uow):
        with make_uow() as uow:
            assert uow.notifications.count_unread("member-1") == 3
            assert uow.notifications.count_unread("member-1", community_id="community-1") == 2
            uow.notifications.archive("n-1")
            uow.commit()
        with make_uow() as uow:
            assert uow.notifications.count_unread("member-1", community_id="community-1") == 1


def stamped(aggregate, minutes, *fields):
    """Rebuild *aggregate* with each of *fields* set ``minutes`` after T0."""
    moment = T0 + timedelta(minutes=minutes)
    record = dataclasses.replace(
        aggregate.to_persistence(), **{field: moment for field in fields}
    )
    return type(aggregate).reconstitute(record)


class TestPostDraftFinders:
    """Draft lookup per user and post, and expiry purge."""

    @staticmethod
    @pytest.fixture
    def stored_drafts(make_uow, make_post_draft):
        def saved(draft_id, minutes, **overrides):
            draft = make_post_draft(aggregate_id=draft_id, **overrides)
            draft = stamped(draft, minutes, "saved_at", "created_at")
            record = dataclasses.replace(
                draft.to_persistence(),
                expires_at=draft.saved_at + timedelta(days=7),
            )
            return type(draft).reconstitute(record)

        _store(
            make_uow,
            "post_drafts",
            saved("d-new-post", 1),
            saved("d-edit", 2, post_id="post-1"),
            saved("d-other-user", 3, user_id="user-2"),
        )

    @staticmethod
    @pytest.mark.usefixtures("stored_drafts")
    def test_find_by_user_and_post(make_uow):
        with make_uow() as uow:
            drafts = uow.post_drafts
            assert drafts.find_by_user_and_post("user-1", None).id == "d-new-post"
            assert drafts.find_by_user_and_post("user-1", "post-1").id == "d-edit"
            assert drafts.find_by_user_and_post("user-2", "post-1") is None

    @staticmethod
    @pytest.mark.usefixtures("stored_drafts")
    def test_list_by_user_latest_first(make_uow):
        with make_uow() as uow:
            assert _ids(uow.post_drafts.list_by_user("user-1")) == ["d-edit", "d-new-post"]
            stored = uow.post_drafts.require("d-edit")
            assert stored.content == {"title": "Work in progress", "body": "<p>Hello</p>"}

    @staticmethod
    @pytest.mark.usefixtures("stored_drafts")
    def test_delete_expired(make_uow):
        cutoff = T0 + timedelta(days=7, minutes=2, seconds=30)
        with make_uow() as uow:
            assert uow.post_drafts.delete_expired(cutoff) == 2
            uow.commit()
        with make_uow() as uow:
            assert _ids(uow.post_drafts.list_by_user("user-2")) == ["d-other-user"]
            assert uow.post_drafts.list_by_user("user-1") == []

    @staticmethod
    @pytest.mark.usefixtures("stored_drafts")
    def test_delete(make_uow):
        with make_uow() as uow:
            uow.post_drafts.delete("d-edit")
            uow.commit()
        with make_uow() as uow:
            assert uow.post_drafts.get("d-edit") is None
            with pytest.raises(EntityNotFoundError):
                uow.post_drafts.delete("d-edit")


class TestContentVersionFinders:
    """Version history per piece of content."""

    @staticmethod
    @pytest.fixture
    def stored_versions(make_uow, make_content_version):
        _store(
            make_uow,
            "content_versions",
            make_content_version(aggregate_id="v-1", content="one"),
            make_content_version(aggregate_id="v-3", content="three", version_number=3),
            make_content_version(aggregate_id="v-2", content="two", version_number=2),
            make_content_version(
                aggregate_id="v-comment",
                content_type=ContentType.COMMENT,
                content_id="comment-1",
            ),
        )

    @staticmethod
    @pytest.mark.usefixtures("stored_versions")
    def test_history_latest_first(make_uow):
        with make_uow() as uow:
            versions = uow.content_versions
            assert _ids(versions.list_by_content("post-1")) == ["v-3", "v-2", "v-1"]
            assert versions.find_latest("post-1").content == "three"
            assert versions.find_by_content_and_number("post-1", 2).id == "v-2"
            assert versions.find_by_content_and_number("post-1", 4) is None
            assert versions.find_latest("post-404") is None
            comment = versions.require("v-comment")
            assert comment.content_type is ContentType.COMMENT

    @staticmethod
    @pytest.mark.usefixtures("stored_versions")
    def test_version_number_is_unique_per_content(make_uow, make_content_version):
        with pytest.raises(DuplicateEntityError):
            with make_uow() as uow:
                uow.content_versions.add(
                    make_content_version(aggregate_id="v-again", version_number=2)
                )
                uow.commit()


class TestCertificateFinders:
    """Certificate lookup by user, course and verification code."""

    @staticmethod
    @pytest.fixture
    def stored_certificates(make_uow, make_certificate):
        _store(
            make_uow,
            "certificates",
            stamped(
                make_certificate(aggregate_id="cert-1", verification_code="AAAA1111"),
                1,
                "issued_at",
            ),
            stamped(
                make_certificate(
                    aggregate_id="cert-2",
                    course_id="course-2",
                    verification_code="BBBB2222",
                ),
                2,
                "issued_at",
            ),
            make_certificate(aggregate_id="cert-other", user_id="student-2"),
        )

    @staticmethod
    @pytest.mark.usefixtures("stored_certificates")
    def test_finders(make_uow):
        with make_uow() as uow:
            certificates = uow.certificates
            assert certificates.find_by_user_and_course("student-1", "course-2").id == "cert-2"
            assert certificates.find_by_user_and_course("student-2", "course-2") is None
            assert certificates.find_by_verification_code("AAAA1111").id == "cert-1"
            assert certificates.find_by_verification_code("ZZZZ0000") is None
            assert _ids(certificates.list_by_user("student-1")) == ["cert-2", "cert-1"]

    @staticmethod
    @pytest.mark.usefixtures("stored_certificates")
    @pytest.mark.parametrize(
        "overrides",
        [
            {"course_id": "course-1", "verification_code": "CCCC3333"},
            {"course_id": "course-9", "verification_code": "AAAA1111"},
        ],
    )
    def test_unique_per_course_and_code(make_uow, make_certificate, overrides):
        with pytest.raises(DuplicateEntityError):
            with make_uow() as uow:
                uow.certificates.add(make_certificate(aggregate_id="cert-x", **overrides))
                uow.commit()
