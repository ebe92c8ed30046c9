"""Handlers for posts, comments, likes, drafts and version history."""

import logging
from collections.abc import Callable
from typing import NamedTuple

from agora.domain import errors, events
from agora.domain.aggregates import Comment, ContentVersion, Like, Post, PostDraft
from agora.domain.utils import utc_now
from agora.domain.value_objects import ContentType
from agora.interfaces.errors import EntityNotFoundError
from agora.interfaces.id_generator import IdGenerator
from agora.interfaces.unit_of_work import AbstractUnitOfWork
from agora.service_layer import commands
from agora.service_layer.errors import (
    AccessDeniedError,
    CommentNestingError,
    CurrentVersionRestoreError,
)

logger = logging.getLogger(__name__)


class LikeResult(NamedTuple):
    """Outcome of :func:`toggle_like`."""

    liked: bool
    like_count: int


# ============================================================================
#                               Posts
# ============================================================================


def create_post(
    cmd: commands.CreatePost, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> str:
    """Create a post (draft unless ``cmd.publish``) and return its ID."""

    post = Post.create(
        aggregate_id=id_generator.new_id(),
        community_id=cmd.community_id,
        author_id=cmd.author_id,
        title=cmd.title,
        content=cmd.content,
    )
    if cmd.publish:
        post.publish()

    with uow:
        uow.communities.require(cmd.community_id)
        uow.posts.add(post)
        uow.commit()
    return post.id


def update_post(cmd: commands.UpdatePost, uow: AbstractUnitOfWork) -> None:
    with uow:
        post = _require_authored(uow, cmd.post_id, cmd.requested_by)
        post.update(title=cmd.title, content=cmd.content)
        uow.posts.update(post)
        uow.commit()


def publish_post(cmd: commands.PublishPost, uow: AbstractUnitOfWork) -> None:
    with uow:
        post = _require_authored(uow, cmd.post_id, cmd.requested_by)
        post.publish()
        uow.posts.update(post)
        uow.commit()


def _change_post(post_id: str, uow: AbstractUnitOfWork, change: Callable[[Post], None]):
    with uow:
        post = uow.posts.require(post_id)
        change(post)
        uow.posts.update(post)
        uow.commit()


def pin_post(cmd: commands.PinPost, uow: AbstractUnitOfWork) -> None:
    _change_post(cmd.post_id, uow, Post.pin)


def unpin_post(cmd: commands.UnpinPost, uow: AbstractUnitOfWork) -> None:
    _change_post(cmd.post_id, uow, Post.unpin)


def mark_post_solved(cmd: commands.MarkPostSolved, uow: AbstractUnitOfWork) -> None:
    _change_post(cmd.post_id, uow, Post.mark_solved)


def mark_post_unsolved(
    cmd: commands.MarkPostUnsolved, uow: AbstractUnitOfWork
) -> None:
    _change_post(cmd.post_id, uow, Post.mark_unsolved)


def archive_post(cmd: commands.ArchivePost, uow: AbstractUnitOfWork) -> None:
    with uow:
        uow.posts.archive(cmd.post_id)
        uow.commit()


def _require_authored(uow: AbstractUnitOfWork, post_id: str, user_id: str) -> Post:
    post = uow.posts.require(post_id)
    if post.author_id != user_id:
        raise AccessDeniedError(user_id, f"edit post {post_id}")
    return post


# ============================================================================
#                               Likes
# ============================================================================


def toggle_like(
    cmd: commands.ToggleLike, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> LikeResult:
    """Like the target, or remove the user's existing like of it.

    The target's like counter follows the change.
    """

    if (cmd.post_id is None) == (cmd.comment_id is None):
        raise errors.ValidationError(
            "Like must be associated with either a post or a comment"
        )

    with uow:
        target: Post | Comment
        if cmd.post_id is not None:
            target = uow.posts.require(cmd.post_id)
            existing = uow.likes.find_by_user_and_post(cmd.user_id, target.id)
        else:
            target = uow.comments.require(str(cmd.comment_id))
            existing = uow.likes.find_by_user_and_comment(cmd.user_id, target.id)

        if existing is not None:
            uow.likes.delete(existing.id)
            target.decrement_like_count()
            liked = False
        else:
            like_id = id_generator.new_id()
            if isinstance(target, Post):
                like = Like.create_for_post(like_id, cmd.user_id, target.id)
            else:
                like = Like.create_for_comment(like_id, cmd.user_id, target.id)
            uow.likes.add(like)
            target.increment_like_count()
            liked = True

        if isinstance(target, Post):
            uow.posts.update(target)
        else:
            uow.comments.update(target)
        uow.commit()
        return LikeResult(liked=liked, like_count=target.like_count)


# ============================================================================
#                               Comments
# ============================================================================


def add_comment(
    cmd: commands.AddComment, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> str:
    """Comment on a post and bump its comment count. Returns the comment ID.

    Raises:
        CommentNestingError: If ``parent_id`` names a reply.
        ValidationError: If ``parent_id`` names a comment on another post.
        EntityNotFoundError: If the post or parent comment does not exist.
    """

    with uow:
        post = uow.posts.require(cmd.post_id)
        if cmd.parent_id is not None:
            parent = uow.comments.require(cmd.parent_id)
            if parent.post_id != post.id:
                raise errors.ValidationError(
                    "Parent comment belongs to a different post"
                )
            if parent.is_reply:
                raise CommentNestingError(parent.id)

        comment = Comment.create(
            aggregate_id=id_generator.new_id(),
            post_id=post.id,
            author_id=cmd.author_id,
            content=cmd.content,
            parent_id=cmd.parent_id,
        )
        post.increment_comment_count()
        uow.comments.add(comment)
        uow.posts.update(post)
        uow.commit()
    return comment.id


def update_comment(cmd: commands.UpdateComment, uow: AbstractUnitOfWork) -> None:
    with uow:
        comment = uow.comments.require(cmd.comment_id)
        if comment.author_id != cmd.requested_by:
            raise AccessDeniedError(cmd.requested_by, f"edit comment {comment.id}")
        comment.update(cmd.content)
        uow.comments.update(comment)
        uow.commit()


def archive_comment(cmd: commands.ArchiveComment, uow: AbstractUnitOfWork) -> None:
    """Archive a comment and decrement its post's comment count."""

    with uow:
        comment = uow.comments.require(cmd.comment_id)
        comment.archive()
        uow.comments.update(comment)
        post = uow.posts.get(comment.post_id)
        if post is not None:
            post.decrement_comment_count()
            uow.posts.update(post)
        uow.commit()


# ============================================================================
#                               Drafts
# ============================================================================


def save_draft(
    cmd: commands.SaveDraft, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> str:
    """Save the user's draft for a post (or a new post) and return its ID.

    A user keeps at most one draft per post; saving again replaces the content
    and extends the expiry.
    """

    with uow:
        if cmd.post_id is not None:
            uow.posts.require(cmd.post_id)
        draft = uow.post_drafts.find_by_user_and_post(cmd.user_id, cmd.post_id)
        if draft is None:
            draft = PostDraft.create(
                aggregate_id=id_generator.new_id(),
                user_id=cmd.user_id,
                content=cmd.content,
                post_id=cmd.post_id,
            )
            uow.post_drafts.add(draft)
        else:
            draft.update_content(cmd.content)
            uow.post_drafts.update(draft)
        uow.commit()
    return draft.id


def delete_draft(cmd: commands.DeleteDraft, uow: AbstractUnitOfWork) -> None:
    with uow:
        draft = uow.post_drafts.require(cmd.draft_id)
        if draft.user_id != cmd.requested_by:
            raise AccessDeniedError(cmd.requested_by, f"delete draft {draft.id}")
        uow.post_drafts.delete(draft.id)
        uow.commit()


def purge_expired_drafts(
    cmd: commands.PurgeExpiredDrafts,  # pylint: disable=unused-argument
    uow: AbstractUnitOfWork,
) -> int:
    with uow:
        purged = uow.post_drafts.delete_expired(utc_now())
        uow.commit()
    logger.info("Purged %d expired draft(s)", purged)
    return purged


# ============================================================================
#                               Version history
# ============================================================================


def list_content_versions(
    cmd: commands.ListContentVersions, uow: AbstractUnitOfWork
) -> list[ContentVersion]:
    with uow:
        return uow.content_versions.list_by_content(cmd.content_id)


def restore_post_version(
    cmd: commands.RestorePostVersion, uow: AbstractUnitOfWork
) -> None:
    """Copy an earlier version's content back into the post.

    The restored content is recorded as a new version by
    :func:`record_post_version`, so history only ever grows.

    Raises:
        EntityNotFoundError: If the post or the version does not exist.
        CurrentVersionRestoreError: If the version is the latest one.
    """

    with uow:
        post = _require_authored(uow, cmd.post_id, cmd.requested_by)
        target = uow.content_versions.find_by_content_and_number(
            post.id, cmd.version_number
        )
        if target is None:
            raise EntityNotFoundError(
                uow.content_versions.KIND, f"{post.id}#{cmd.version_number}"
            )
        latest = uow.content_versions.find_latest(post.id)
        if latest is not None and latest.version_number == cmd.version_number:
            raise CurrentVersionRestoreError(post.id, cmd.version_number)
        post.update(content=target.content)
        uow.posts.update(post)
        uow.commit()


# ============================================================================
#                               Event handlers
# ============================================================================


def log_post_published(event: events.PostPublished) -> None:
    logger.info(
        "Post %s published in community %s by %s",
        event.post_id,
        event.community_id,
        event.author_id,
    )


def record_post_version(
    event: events.PostCreated | events.PostUpdated,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> None:
    """Snapshot a post's content when it is created or its content changes."""

    if isinstance(event, events.PostUpdated) and "content" not in event.changes:
        return
    with uow:
        post = uow.posts.require(event.post_id, include_archived=True)
        _add_version(uow, id_generator, ContentType.POST, post.id, post.content)
        uow.commit()


def record_comment_version(
    event: events.CommentCreated | events.CommentUpdated,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> None:
    with uow:
        comment = uow.comments.require(event.comment_id, include_archived=True)
        _add_version(
            uow, id_generator, ContentType.COMMENT, comment.id, comment.content
        )
        uow.commit()


def _add_version(
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
    content_type: ContentType,
    content_id: str,
    content: str,
) -> None:
    latest = uow.content_versions.find_latest(content_id)
    number = 1 if latest is None else latest.version_number + 1
    uow.content_versions.add(
        ContentVersion.create(
            aggregate_id=id_generator.new_id(),
            content_type=content_type,
            content_id=content_id,
            content=content,
            version_number=number,
        )
    )
    logger.debug("%s %s: recorded version %d", content_type.value, content_id, number)


COMMAND_HANDLERS: dict[type, Callable[..., object]] = {
    commands.CreatePost: create_post,
    commands.UpdatePost: update_post,
    commands.PublishPost: publish_post,
    commands.PinPost: pin_post,
    commands.UnpinPost: unpin_post,
    commands.MarkPostSolved: mark_post_solved,
    commands.MarkPostUnsolved: mark_post_unsolved,
    commands.ArchivePost: archive_post,
    commands.ToggleLike: toggle_like,
    commands.AddComment: add_comment,
    commands.UpdateComment: update_comment,
    commands.ArchiveComment: archive_comment,
    commands.SaveDraft: save_draft,
    commands.DeleteDraft: delete_draft,
    commands.PurgeExpiredDrafts: purge_expired_drafts,
    commands.ListContentVersions: list_content_versions,
    commands.RestorePostVersion: restore_post_version,
}

EVENT_HANDLERS: dict[type, list[Callable[..., None]]] = {
    events.PostPublished: [log_post_published],
    events.PostCreated: [record_post_version],
    events.PostUpdated: [record_post_version],
    events.CommentCreated: [record_comment_version],
    events.CommentUpdated: [record_comment_version],
}
