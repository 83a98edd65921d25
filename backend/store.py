"""Data access for collections, labels, projects, phases and events.

Every function is stateless and takes the session it should run on; functions
that create rows also take the id of the calling user, which becomes the
row's owner. Reads return ``None`` for a missing row, writes raise
``NotFoundError``. Each write runs as one unit: any database error inside it,
at execute or at commit, rolls the whole unit back and is raised as
``PersistenceError``.
"""

from contextlib import asynccontextmanager

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from errors import NotFoundError, PersistenceError
from models import Collection, Label, Project, Phase, Event
from schemas import (
    CollectionIn, CollectionUpdate, LabelIn, LabelUpdate,
    ProjectIn, ProjectUpdate, PhaseIn, PhaseUpdate, EventIn, EventUpdate,
)

logger = structlog.get_logger()


@asynccontextmanager
async def write_unit(session: AsyncSession, action: str):
    """Run the block and commit; on a database error roll back and raise ``PersistenceError``.

    ``action`` reads like "delete collection" and ends up in the user-facing message.
    """
    try:
        yield
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Write failed", action=action, error=str(e))
        raise PersistenceError(action) from e


def apply_changes(row, changes) -> None:
    # only fields the caller sent; send "" rather than null to clear text
    for field, value in changes.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(row, field, value)


# --- collections ---

async def create_collection(session: AsyncSession, user_id: str, body: CollectionIn) -> Collection:
    collection = Collection(
        name=body.name,
        description=body.description,
        owner_id=user_id,
        is_shared=False,
    )
    async with write_unit(session, "create collection"):
        session.add(collection)
    logger.info("Collection created", collection_id=collection.id, owner_id=user_id)
    return collection


async def get_collection(session: AsyncSession, collection_id: str) -> Collection | None:
    """Load a collection and then its labels (two reads, no snapshot between them)."""
    result = await session.execute(
        select(Collection)
        .options(selectinload(Collection.labels))
        .where(Collection.id == collection_id)
    )
    return result.scalar_one_or_none()


async def list_collections_by_owner(session: AsyncSession, owner_id: str) -> list[Collection]:
    result = await session.scalars(select(Collection).where(Collection.owner_id == owner_id))
    return list(result)


async def list_shared_collections(session: AsyncSession) -> list[Collection]:
    result = await session.scalars(select(Collection).where(Collection.is_shared.is_(True)))
    return list(result)


async def update_collection(session: AsyncSession, collection_id: str, changes: CollectionUpdate) -> Collection:
    async with write_unit(session, "update collection"):
        collection = await session.get(Collection, collection_id)
        if collection is None:
            raise NotFoundError("Collection", collection_id)
        apply_changes(collection, changes)
    logger.info("Collection updated", collection_id=collection_id, fields=sorted(changes.model_fields_set))
    return collection


async def delete_collection(session: AsyncSession, collection_id: str) -> None:
    """Delete a collection together with its labels in one transaction."""
    async with write_unit(session, "delete collection"):
        collection = await session.get(Collection, collection_id)
        if collection is None:
            raise NotFoundError("Collection", collection_id)

        label_ids = list(await session.scalars(select(Label.id).where(Label.collection_id == collection_id)))
        if label_ids:
            await session.execute(delete(Label).where(Label.id.in_(label_ids)))
        await session.execute(delete(Collection).where(Collection.id == collection_id))
    logger.info("Collection deleted", collection_id=collection_id, labels_deleted=len(label_ids))


# --- labels ---

async def create_label(session: AsyncSession, user_id: str, collection_id: str, body: LabelIn) -> Label:
    async with write_unit(session, "create label"):
        if await session.get(Collection, collection_id) is None:
            raise NotFoundError("Collection", collection_id)

        label = Label(
            collection_id=collection_id,
            name=body.name,
            color=body.color,
            icon=body.icon,
            description=body.description,
            assign_permissions=body.assign_permissions.model_dump(),
            owner_id=user_id,
        )
        session.add(label)
    logger.info("Label created", label_id=label.id, collection_id=collection_id)
    return label


async def _get_label(session: AsyncSession, collection_id: str, label_id: str) -> Label:
    label = await session.get(Label, label_id)
    if label is None or label.collection_id != collection_id:
        raise NotFoundError("Label", label_id)
    return label


async def update_label(session: AsyncSession, collection_id: str, label_id: str, changes: LabelUpdate) -> Label:
    async with write_unit(session, "update label"):
        label = await _get_label(session, collection_id, label_id)
        apply_changes(label, changes)
    logger.info("Label updated", label_id=label_id, fields=sorted(changes.model_fields_set))
    return label


async def delete_label(session: AsyncSession, collection_id: str, label_id: str) -> None:
    async with write_unit(session, "delete label"):
        label = await _get_label(session, collection_id, label_id)
        await session.delete(label)
    logger.info("Label deleted", label_id=label_id, collection_id=collection_id)


# --- projects ---

async def create_project(session: AsyncSession, user_id: str, body: ProjectIn) -> Project:
    project = Project(
        name=body.name,
        description=body.description,
        owner_id=user_id,
        is_shared=False,
    )
    async with write_unit(session, "create project"):
        session.add(project)
    logger.info("Project created", project_id=project.id, owner_id=user_id)
    return project


async def get_project(session: AsyncSession, project_id: str) -> Project | None:
    """Load a project, then its phases and events."""
    result = await session.execute(
        select(Project)
        .options(selectinload(Project.phases), selectinload(Project.events))
        .where(Project.id == project_id)
    )
    return result.scalar_one_or_none()


async def list_projects_by_owner(session: AsyncSession, owner_id: str) -> list[Project]:
    result = await session.scalars(select(Project).where(Project.owner_id == owner_id))
    return list(result)


async def list_shared_projects(session: AsyncSession) -> list[Project]:
    result = await session.scalars(select(Project).where(Project.is_shared.is_(True)))
    return list(result)


async def update_project(session: AsyncSession, project_id: str, changes: ProjectUpdate) -> Project:
    async with write_unit(session, "update project"):
        project = await session.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        apply_changes(project, changes)
    logger.info("Project updated", project_id=project_id, fields=sorted(changes.model_fields_set))
    return project


async def delete_project(session: AsyncSession, project_id: str) -> None:
    """Delete a project with all of its phases and events in one transaction."""
    async with write_unit(session, "delete project"):
        project = await session.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project", project_id)

        phase_ids = list(await session.scalars(select(Phase.id).where(Phase.project_id == project_id)))
        event_ids = list(await session.scalars(select(Event.id).where(Event.project_id == project_id)))
        if phase_ids:
            await session.execute(delete(Phase).where(Phase.id.in_(phase_ids)))
        if event_ids:
            await session.execute(delete(Event).where(Event.id.in_(event_ids)))
        await session.execute(delete(Project).where(Project.id == project_id))
    logger.info(
        "Project deleted",
        project_id=project_id,
        phases_deleted=len(phase_ids),
        events_deleted=len(event_ids),
    )


async def _require_project(session: AsyncSession, project_id: str) -> None:
    if await session.get(Project, project_id) is None:
        raise NotFoundError("Project", project_id)


# --- phases ---

async def create_phase(session: AsyncSession, user_id: str, project_id: str, body: PhaseIn) -> Phase:
    async with write_unit(session, "create phase"):
        await _require_project(session, project_id)
        phase = Phase(
            project_id=project_id,
            name=body.name,
            start_date=body.start_date,
            end_date=body.end_date,
            owner_id=user_id,
        )
        session.add(phase)
    logger.info("Phase created", phase_id=phase.id, project_id=project_id)
    return phase


async def _get_phase(session: AsyncSession, project_id: str, phase_id: str) -> Phase:
    phase = await session.get(Phase, phase_id)
    if phase is None or phase.project_id != project_id:
        raise NotFoundError("Phase", phase_id)
    return phase


async def update_phase(session: AsyncSession, project_id: str, phase_id: str, changes: PhaseUpdate) -> Phase:
    async with write_unit(session, "update phase"):
        phase = await _get_phase(session, project_id, phase_id)
        apply_changes(phase, changes)
    logger.info("Phase updated", phase_id=phase_id, fields=sorted(changes.model_fields_set))
    return phase


async def delete_phase(session: AsyncSession, project_id: str, phase_id: str) -> None:
    async with write_unit(session, "delete phase"):
        phase = await _get_phase(session, project_id, phase_id)
        await session.delete(phase)
    logger.info("Phase deleted", phase_id=phase_id, project_id=project_id)


# --- events ---

async def create_event(session: AsyncSession, user_id: str, project_id: str, body: EventIn) -> Event:
    async with write_unit(session, "create event"):
        await _require_project(session, project_id)
        event = Event(
            project_id=project_id,
            name=body.name,
            start_date=body.start_date,
            end_date=body.end_date,
            location=body.location,
            guest_emails=body.guest_emails,
            owner_id=user_id,
            is_shared=False,
        )
        session.add(event)
    logger.info("Event created", event_id=event.id, project_id=project_id)
    return event


async def _get_event(session: AsyncSession, project_id: str, event_id: str) -> Event:
    event = await session.get(Event, event_id)
    if event is None or event.project_id != project_id:
        raise NotFoundError("Event", event_id)
    return event


async def update_event(session: AsyncSession, project_id: str, event_id: str, changes: EventUpdate) -> Event:
    async with write_unit(session, "update event"):
        event = await _get_event(session, project_id, event_id)
        apply_changes(event, changes)
    logger.info("Event updated", event_id=event_id, fields=sorted(changes.model_fields_set))
    return event


async def delete_event(session: AsyncSession, project_id: str, event_id: str) -> None:
    async with write_unit(session, "delete event"):
        event = await _get_event(session, project_id, event_id)
        await session.delete(event)
    logger.info("Event deleted", event_id=event_id, project_id=project_id)
