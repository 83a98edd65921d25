"""Per-user registry of shared entities linked into the user's own view.

One row per (user, entity) pair; the registry knows nothing about ownership
or whether the entity still exists.
"""

import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from models import Link
from store import write_unit

logger = structlog.get_logger()


async def link_entity(session: AsyncSession, user_id: str, entity_id: str, type: str) -> Link:
    """Link an entity for a user. Linking again only refreshes ``linked_at``."""
    now = datetime.datetime.now(datetime.timezone.utc)
    async with write_unit(session, f"link {type}"):
        link = await session.get(Link, (user_id, entity_id))
        if link is None:
            link = Link(user_id=user_id, entity_id=entity_id, type=type, linked_at=now)
            session.add(link)
        else:
            link.type = type
            link.linked_at = now
    logger.info("Entity linked", user_id=user_id, entity_id=entity_id, type=type)
    return link


async def unlink_entity(session: AsyncSession, user_id: str, entity_id: str) -> bool:
    """Remove a link. Returns False when there was nothing to remove."""
    async with write_unit(session, "unlink entity"):
        link = await session.get(Link, (user_id, entity_id))
        if link is None:
            return False
        await session.delete(link)
    logger.info("Entity unlinked", user_id=user_id, entity_id=entity_id)
    return True


async def list_linked_ids(session: AsyncSession, user_id: str, type: str) -> set[str]:
    result = await session.scalars(
        select(Link.entity_id).where(Link.user_id == user_id, Link.type == type)
    )
    return set(result)
