"""Handlers for community use cases."""

import logging
from collections.abc import Callable

from agora.domain.aggregates import Community
from agora.interfaces.id_generator import IdGenerator
from agora.interfaces.unit_of_work import AbstractUnitOfWork
from agora.service_layer import commands
from agora.service_layer.errors import AccessDeniedError

logger = logging.getLogger(__name__)


def create_community(
    cmd: commands.CreateCommunity,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> str:
    """Create a community and return its ID."""

    community = Community.create(
        aggregate_id=id_generator.new_id(),
        name=cmd.name,
        owner_id=cmd.owner_id,
        logo_url=cmd.logo_url,
        primary_color=cmd.primary_color,
    )
    with uow:
        uow.communities.add(community)
        uow.commit()
    logger.info("Created community %s (%s)", community.name, community.id)
    return community.id


def update_community_branding(
    cmd: commands.UpdateCommunityBranding, uow: AbstractUnitOfWork
) -> None:
    with uow:
        community = _require_owned(uow, cmd.community_id, cmd.requested_by)
        community.update_branding(
            name=cmd.name, logo_url=cmd.logo_url, primary_color=cmd.primary_color
        )
        uow.communities.update(community)
        uow.commit()


def transfer_community_ownership(
    cmd: commands.TransferCommunityOwnership, uow: AbstractUnitOfWork
) -> None:
    with uow:
        community = _require_owned(uow, cmd.community_id, cmd.requested_by)
        community.transfer_ownership(cmd.new_owner_id)
        uow.communities.update(community)
        uow.commit()


def archive_community(cmd: commands.ArchiveCommunity, uow: AbstractUnitOfWork) -> None:
    with uow:
        community = _require_owned(uow, cmd.community_id, cmd.requested_by)
        community.archive()
        uow.communities.update(community)
        uow.commit()


def restore_community(cmd: commands.RestoreCommunity, uow: AbstractUnitOfWork) -> None:
    with uow:
        community = _require_owned(
            uow, cmd.community_id, cmd.requested_by, include_archived=True
        )
        community.restore()
        uow.communities.update(community)
        uow.commit()


def _require_owned(
    uow: AbstractUnitOfWork,
    community_id: str,
    user_id: str,
    include_archived: bool = False,
) -> Community:
    community = uow.communities.require(community_id, include_archived)
    if community.owner_id != user_id:
        raise AccessDeniedError(user_id, f"manage community {community_id}")
    return community


COMMAND_HANDLERS: dict[type, Callable[..., object]] = {
    commands.CreateCommunity: create_community,
    commands.UpdateCommunityBranding: update_community_branding,
    commands.TransferCommunityOwnership: transfer_community_ownership,
    commands.ArchiveCommunity: archive_community,
    commands.RestoreCommunity: restore_community,
}
