"""Unit tests for the Comment and Like aggregates."""

from datetime import datetime, timezone

import pytest

from agora.domain import errors, events
from agora.domain.aggregates import Comment, Like

# pylint: disable=magic-value-comparison,too-few-public-methods


class TestComment:
    """Tests for the Comment aggregate."""

    @staticmethod
    def test_top_level_comment(make_comment):
        comment = make_comment(aggregate_id="comment-1")
        assert comment.is_top_level
        assert not comment.is_reply
        (event,) = comment.dequeue_uncommitted()
        assert isinstance(event, events.CommentCreated)
        assert event.aggregate_id == "comment-1"
        assert event.post_id == "post-1"
        assert event.parent_id is None
        assert event.content == "Great post, thanks for sharing!"

    @staticmethod
    def test_reply(make_comment):
        reply = make_comment(parent_id="comment-1")
        assert reply.is_reply
        assert reply.parent_id == "comment-1"

    @staticmethod
    @pytest.mark.parametrize(
        "content, message",
        [
            ("", "Comment content is required"),
            ("   ", "Comment content is required"),
            ("x" * 5001, "Comment content must not exceed 5000 characters"),
        ],
    )
    def test_invalid_content(make_comment, content, message):
        with pytest.raises(errors.ValidationError, match=message):
            make_comment(content=content)

    @staticmethod
    def test_max_length_accepted(make_comment):
        assert len(make_comment(content="x" * 5000).content) == 5000

    @staticmethod
    def test_update(make_comment):
        comment = make_comment()
        comment.dequeue_uncommitted()
        comment.update("Edited: thanks again")
        assert comment.content == "Edited: thanks again"
        (event,) = comment.dequeue_uncommitted()
        assert isinstance(event, events.CommentUpdated)

    @staticmethod
    def test_like_counter_floors_at_zero(make_comment):
        comment = make_comment()
        comment.decrement_like_count()
        assert comment.like_count == 0
        comment.increment_like_count()
        comment.increment_helpful_count()
        assert comment.like_count == 1
        assert comment.helpful_count == 1

    @staticmethod
    def test_archived_comment_is_read_only(make_comment):
        comment = make_comment()
        comment.archive()
        with pytest.raises(errors.ArchivedEntityError, match="Cannot modify archived comment"):
            comment.update("Too late")

    @staticmethod
    def test_reconstitute_round_trip(make_comment):
        comment = make_comment(parent_id="comment-1")
        rebuilt = Comment.reconstitute(comment.to_persistence())
        assert rebuilt.to_persistence() == comment.to_persistence()


class TestLike:
    """Tests for the Like aggregate."""

    @staticmethod
    def test_post_like(make_like):
        like = make_like(aggregate_id="like-1")
        assert like.is_post_like
        assert not like.is_comment_like
        assert like.target_id == "post-1"
        assert like.target_type == "post"
        (event,) = like.dequeue_uncommitted()
        assert isinstance(event, events.LikeCreated)
        assert event.aggregate_id == "like-1"
        assert event.comment_id is None

    @staticmethod
    def test_comment_like(make_like):
        like = make_like(comment_id="comment-1")
        assert like.is_comment_like
        assert like.post_id is None
        assert like.target_id == "comment-1"
        assert like.target_type == "comment"

    @staticmethod
    def test_post_id_required():
        with pytest.raises(errors.ValidationError, match="Post ID is required when liking a post"):
            Like.create_for_post("like-1", "user-1", "")

    @staticmethod
    def test_comment_id_required():
        with pytest.raises(
            errors.ValidationError, match="Comment ID is required when liking a comment"
        ):
            Like.create_for_comment("like-1", "user-1", "")

    @staticmethod
    def test_exactly_one_target_on_reconstitute():
        """A stored like pointing at both or neither target fails to load."""
        now = datetime.now(timezone.utc)
        both = Like.RECORD_TYPE(
            id="like-1", user_id="u", post_id="p", comment_id="c", created_at=now
        )
        neither = Like.RECORD_TYPE(
            id="like-1", user_id="u", post_id=None, comment_id=None, created_at=now
        )
        with pytest.raises(
            errors.ValidationError,
            match="Like cannot be associated with both a post and a comment",
        ):
            Like.reconstitute(both)
        with pytest.raises(
            errors.ValidationError,
            match="Like must be associated with either a post or a comment",
        ):
            Like.reconstitute(neither)

    @staticmethod
    def test_like_is_not_archivable(make_like):
        assert not hasattr(make_like(), "archive")
