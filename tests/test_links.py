"""Tests for the link registry and the dashboard/shared-pool views."""

from sqlalchemy import select

import store
from dashboard import get_dashboard, get_shared_pool, merge_owned_and_linked
from links import link_entity, unlink_entity, list_linked_ids
from models import Link
from schemas import CollectionIn, CollectionUpdate, ProjectIn, ProjectUpdate, CollectionSummary


async def test_link_twice_keeps_one_row(session) -> None:
    first = await link_entity(session, "user1", "c1", "collection")
    first_linked_at = first.linked_at
    await link_entity(session, "user1", "c1", "collection")

    rows = list(await session.scalars(select(Link).where(Link.user_id == "user1", Link.entity_id == "c1")))
    assert len(rows) == 1
    assert rows[0].linked_at >= first_linked_at


async def test_unlink_missing_is_noop(session) -> None:
    assert await unlink_entity(session, "user1", "never-linked") is False


async def test_unlink_removes_link(session) -> None:
    await link_entity(session, "user1", "p1", "project")
    assert await unlink_entity(session, "user1", "p1") is True
    assert await list_linked_ids(session, "user1", "project") == set()


async def test_list_linked_ids_by_user_and_type(session) -> None:
    await link_entity(session, "user1", "c1", "collection")
    await link_entity(session, "user1", "c2", "collection")
    await link_entity(session, "user1", "p1", "project")
    await link_entity(session, "user2", "c3", "collection")

    assert await list_linked_ids(session, "user1", "collection") == {"c1", "c2"}
    assert await list_linked_ids(session, "user1", "project") == {"p1"}
    assert await list_linked_ids(session, "user1", "task") == set()


def test_merge_drops_linked_items_already_owned() -> None:
    owned = [CollectionSummary(id="a", name="A", owner_id="u"), CollectionSummary(id="b", name="B", owner_id="u")]
    linked = [CollectionSummary(id="b", name="B", owner_id="u"), CollectionSummary(id="c", name="C", owner_id="v")]

    merged = merge_owned_and_linked(owned, linked)

    assert [item.id for item in merged] == ["a", "b", "c"]
    assert [item.is_linked for item in merged] == [False, False, True]


async def test_dashboard_owned_first_then_linked(session) -> None:
    mine = await store.create_collection(session, "user1", CollectionIn(name="Mine"))
    theirs = await store.create_collection(session, "user2", CollectionIn(name="Theirs"))
    await store.update_collection(session, theirs.id, CollectionUpdate(is_shared=True))
    their_project = await store.create_project(session, "user2", ProjectIn(name="Their project"))
    await store.update_project(session, their_project.id, ProjectUpdate(is_shared=True))

    await link_entity(session, "user1", theirs.id, "collection")
    await link_entity(session, "user1", their_project.id, "project")

    view = await get_dashboard(session, "user1")

    assert [(c.id, c.is_linked) for c in view.collections] == [(mine.id, False), (theirs.id, True)]
    assert [(p.id, p.is_linked) for p in view.projects] == [(their_project.id, True)]


async def test_dashboard_self_link_counted_once(session) -> None:
    """Test an owner who links their own collection sees it once, not flagged as linked."""
    mine = await store.create_collection(session, "user1", CollectionIn(name="Mine"))
    await link_entity(session, "user1", mine.id, "collection")

    view = await get_dashboard(session, "user1")

    assert len(view.collections) == 1
    assert view.collections[0].id == mine.id
    assert view.collections[0].is_linked is False


async def test_dashboard_drops_stale_links(session) -> None:
    """Test links to deleted entities are silently left out."""
    theirs = await store.create_collection(session, "user2", CollectionIn(name="Gone soon"))
    await link_entity(session, "user1", theirs.id, "collection")
    await store.delete_collection(session, theirs.id)

    view = await get_dashboard(session, "user1")

    assert view.collections == []
    assert await list_linked_ids(session, "user1", "collection") == {theirs.id}


async def test_dashboard_empty(session) -> None:
    view = await get_dashboard(session, "nobody")
    assert view.collections == []
    assert view.projects == []


async def test_shared_pool_marks_owner_and_links(session) -> None:
    mine = await store.create_collection(session, "user1", CollectionIn(name="Mine"))
    theirs = await store.create_collection(session, "user2", CollectionIn(name="Theirs"))
    private = await store.create_collection(session, "user2", CollectionIn(name="Private"))
    await store.update_collection(session, mine.id, CollectionUpdate(is_shared=True))
    await store.update_collection(session, theirs.id, CollectionUpdate(is_shared=True))
    await link_entity(session, "user1", theirs.id, "collection")

    pool = await get_shared_pool(session, "user1")

    by_id = {c.id: c for c in pool.collections}
    assert set(by_id) == {mine.id, theirs.id}
    assert private.id not in by_id
    assert by_id[mine.id].is_owner is True
    assert by_id[mine.id].is_linked is False
    assert by_id[theirs.id].is_owner is False
    assert by_id[theirs.id].is_linked is True
    assert pool.linked_ids == [theirs.id]
    assert pool.projects == []
