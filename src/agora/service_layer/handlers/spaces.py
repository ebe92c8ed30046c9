"""Handlers for spaces and channels."""

from collections.abc import Callable

from agora.domain import errors
from agora.domain.aggregates import Channel, Space
from agora.interfaces.id_generator import IdGenerator
from agora.interfaces.unit_of_work import AbstractUnitOfWork
from agora.service_layer import commands
from agora.service_layer.errors import SpaceNestingError


def create_space(
    cmd: commands.CreateSpace, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> str:
    """Create a space and return its ID.

    Raises:
        EntityNotFoundError: If the parent space does not exist.
        SpaceNestingError: If the parent space is itself a child space.
        ValidationError: If the parent space is in another community.
    """

    with uow:
        uow.communities.require(cmd.community_id)
        if cmd.parent_space_id is not None:
            parent = uow.spaces.require(cmd.parent_space_id)
            _require_same_community(parent, cmd.community_id)
            if not parent.is_parent_space:
                raise SpaceNestingError(parent.id)

        space = Space.create(
            aggregate_id=id_generator.new_id(),
            community_id=cmd.community_id,
            name=cmd.name,
            description=cmd.description,
            created_by=cmd.created_by,
            parent_space_id=cmd.parent_space_id,
            icon=cmd.icon,
            color=cmd.color,
            position=cmd.position,
        )
        uow.spaces.add(space)
        uow.commit()
    return space.id


def create_channel(
    cmd: commands.CreateChannel, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> str:
    """Create a channel, standalone or inside a space, and return its ID.

    Raises:
        ValidationError: If the space is in another community.
    """

    with uow:
        uow.communities.require(cmd.community_id)
        if cmd.space_id is not None:
            space = uow.spaces.require(cmd.space_id)
            _require_same_community(space, cmd.community_id)

        channel = Channel.create(
            aggregate_id=id_generator.new_id(),
            community_id=cmd.community_id,
            name=cmd.name,
            description=cmd.description,
            permission=cmd.permission,
            created_by=cmd.created_by,
            space_id=cmd.space_id,
            required_tier_id=cmd.required_tier_id,
            icon=cmd.icon,
            position=cmd.position,
        )
        uow.channels.add(channel)
        uow.commit()
    return channel.id


def _require_same_community(space: Space, community_id: str) -> None:
    if space.community_id != community_id:
        raise errors.ValidationError(
            f"Space {space.id} belongs to a different community"
        )


def update_channel_permission(
    cmd: commands.UpdateChannelPermission, uow: AbstractUnitOfWork
) -> None:
    with uow:
        channel = uow.channels.require(cmd.channel_id)
        channel.update_permission(cmd.permission, cmd.required_tier_id)
        uow.channels.update(channel)
        uow.commit()


def check_channel_access(
    cmd: commands.CheckChannelAccess, uow: AbstractUnitOfWork
) -> bool:
    """Whether the user may read the channel.

    Public channels are open to everyone. Members-only channels need the
    community owner or a live (ACTIVE or TRIALING) subscription. Tier-gated
    channels need a live subscription to the required tier.
    """

    with uow:
        channel = uow.channels.require(cmd.channel_id)
        if channel.is_public:
            return True

        community = uow.communities.require(channel.community_id)
        if community.owner_id == cmd.user_id:
            return True

        subscription = uow.subscriptions.find_by_user_and_community(
            cmd.user_id, channel.community_id
        )
        if subscription is None or not subscription.has_access:
            return False
        return channel.has_access(subscription.payment_tier_id)


COMMAND_HANDLERS: dict[type, Callable[..., object]] = {
    commands.CreateSpace: create_space,
    commands.CreateChannel: create_channel,
    commands.UpdateChannelPermission: update_channel_permission,
    commands.CheckChannelAccess: check_channel_access,
}
