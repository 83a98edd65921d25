"""Views that combine ownership with the link registry."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from links import list_linked_ids
from models import Collection, Project
from schemas import (
    CollectionSummary, ProjectSummary, DashboardView,
    SharedCollection, SharedProject, SharedPool,
)
import store


async def _fetch_by_ids(session: AsyncSession, model, ids: set[str]) -> list:
    # ids of deleted entities simply don't come back
    if not ids:
        return []
    result = await session.scalars(select(model).where(model.id.in_(ids)))
    return list(result)


def merge_owned_and_linked(owned: list, linked: list) -> list:
    """Owned items first, then linked items whose id is not already owned.

    Linked items are flagged ``is_linked``; an owner who also linked their own
    item sees it once, unflagged.
    """
    owned_ids = {item.id for item in owned}
    unique_linked = [
        item.model_copy(update={"is_linked": True})
        for item in linked
        if item.id not in owned_ids
    ]
    return owned + unique_linked


async def get_dashboard(session: AsyncSession, user_id: str) -> DashboardView:
    owned_collections = await store.list_collections_by_owner(session, user_id)
    owned_projects = await store.list_projects_by_owner(session, user_id)

    linked_collection_ids = await list_linked_ids(session, user_id, "collection")
    linked_project_ids = await list_linked_ids(session, user_id, "project")

    linked_collections = await _fetch_by_ids(session, Collection, linked_collection_ids)
    linked_projects = await _fetch_by_ids(session, Project, linked_project_ids)

    return DashboardView(
        collections=merge_owned_and_linked(
            [CollectionSummary.model_validate(c) for c in owned_collections],
            [CollectionSummary.model_validate(c) for c in linked_collections],
        ),
        projects=merge_owned_and_linked(
            [ProjectSummary.model_validate(p) for p in owned_projects],
            [ProjectSummary.model_validate(p) for p in linked_projects],
        ),
    )


async def get_shared_pool(session: AsyncSession, user_id: str) -> SharedPool:
    """Everything shared by anyone, plus which of it the caller has linked."""
    collections = await store.list_shared_collections(session)
    projects = await store.list_shared_projects(session)
    linked_ids = (
        await list_linked_ids(session, user_id, "collection")
        | await list_linked_ids(session, user_id, "project")
    )

    return SharedPool(
        collections=[
            SharedCollection.model_validate(c).model_copy(
                update={"is_owner": c.owner_id == user_id, "is_linked": c.id in linked_ids}
            )
            for c in collections
        ],
        projects=[
            SharedProject.model_validate(p).model_copy(
                update={"is_owner": p.owner_id == user_id, "is_linked": p.id in linked_ids}
            )
            for p in projects
        ],
        linked_ids=sorted(linked_ids),
    )
