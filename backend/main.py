from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI
from typing import List
import structlog

from db import engine, Base, get_session
from deps import get_current_user_id
from errors import NotFoundError, PersistenceError, AnalysisError
from analyzer import analyze_meeting_notes, get_llm_client, open_llm_client, close_llm_client
from dashboard import get_dashboard, get_shared_pool
from links import link_entity, unlink_entity, list_linked_ids
from log import configure_logging
from schemas import (
    ActionResult, AnalysisResult, MeetingNotesIn, LinkIn, LinkType,
    CollectionIn, CollectionUpdate, CollectionOut, CollectionSummary, LabelIn, LabelUpdate,
    ProjectIn, ProjectUpdate, ProjectOut, ProjectSummary, PhaseIn, PhaseUpdate, EventIn, EventUpdate,
    DashboardView, SharedPool,
)
from settings import settings
import store

configure_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
logger = structlog.get_logger()

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def home():
    return {"message": "Planboard API is running 🚀"}

@app.get("/health")
def health():
    return {"status": "ok"}

@app.on_event("startup")
async def on_startup():
    open_llm_client()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

@app.on_event("shutdown")
async def on_shutdown():
    await close_llm_client()
    await engine.dispose()

# --- error handling: every failure becomes a {message, error, errors} result ---

def action_result(status_code: int, message: str, error: str, errors: dict | None = None) -> JSONResponse:
    body = ActionResult(message=message, error=error, errors=errors)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"] if part != "body") or "body"
        msg = err["msg"].removeprefix("Value error, ")
        errors.setdefault(field, []).append(msg)
    first = next(iter(errors.values()))[0] if errors else "Invalid input."
    return action_result(422, "Validation failed.", first, errors)

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return action_result(404, f"{exc.entity} not found.", str(exc))

@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return action_result(500, "An unexpected error occurred.", f"Failed to {exc.action}. Please try again later.")

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database read failed", path=request.url.path, error=str(exc))
    return action_result(500, "An unexpected error occurred.", "Failed to load data. Please try again later.")

@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    return action_result(502, "An unexpected error occurred.", "Failed to analyze notes. Please try again later.")

# --- collections ---

@app.post("/collections", response_model=ActionResult, response_model_exclude_none=True)
async def create_collection(
    body: CollectionIn,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    collection = await store.create_collection(db, user_id, body)
    return ActionResult(message="Collection created successfully.", id=collection.id)

@app.get("/collections", response_model=List[CollectionSummary])
async def list_collections(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    return await store.list_collections_by_owner(db, user_id)

@app.get("/collections/shared", response_model=List[CollectionSummary])
async def list_shared_collections(db: AsyncSession = Depends(get_session)):
    return await store.list_shared_collections(db)

@app.get("/collections/{collection_id}", response_model=CollectionOut)
async def get_collection(collection_id: str, db: AsyncSession = Depends(get_session)):
    collection = await store.get_collection(db, collection_id)
    if not collection:
        raise HTTPException(status_code=404, detail="Collection not found")
    return collection

@app.patch("/collections/{collection_id}", response_model=ActionResult, response_model_exclude_none=True)
async def update_collection(
    collection_id: str,
    body: CollectionUpdate,
    db: AsyncSession = Depends(get_session),
):
    await store.update_collection(db, collection_id, body)
    if body.is_shared is not None:
        message = f"Collection {'shared' if body.is_shared else 'unshared'}."
    else:
        message = "Collection updated successfully."
    return ActionResult(message=message, id=collection_id)

@app.delete("/collections/{collection_id}", response_model=ActionResult, response_model_exclude_none=True)
async def delete_collection(collection_id: str, db: AsyncSession = Depends(get_session)):
    await store.delete_collection(db, collection_id)
    return ActionResult(message="Collection deleted successfully.", id=collection_id)

# --- labels ---

@app.post("/collections/{collection_id}/labels", response_model=ActionResult, response_model_exclude_none=True)
async def create_label(
    collection_id: str,
    body: LabelIn,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    label = await store.create_label(db, user_id, collection_id, body)
    return ActionResult(message="Label created successfully.", id=label.id)

@app.patch("/collections/{collection_id}/labels/{label_id}", response_model=ActionResult, response_model_exclude_none=True)
async def update_label(
    collection_id: str,
    label_id: str,
    body: LabelUpdate,
    db: AsyncSession = Depends(get_session),
):
    await store.update_label(db, collection_id, label_id, body)
    return ActionResult(message="Label updated successfully.", id=label_id)

@app.delete("/collections/{collection_id}/labels/{label_id}", response_model=ActionResult, response_model_exclude_none=True)
async def delete_label(collection_id: str, label_id: str, db: AsyncSession = Depends(get_session)):
    await store.delete_label(db, collection_id, label_id)
    return ActionResult(message="Label deleted successfully.", id=label_id)

# --- projects ---

@app.post("/projects", response_model=ActionResult, response_model_exclude_none=True)
async def create_project(
    body: ProjectIn,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    project = await store.create_project(db, user_id, body)
    return ActionResult(message="Project created successfully.", id=project.id)

@app.get("/projects", response_model=List[ProjectSummary])
async def list_projects(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    return await store.list_projects_by_owner(db, user_id)

@app.get("/projects/shared", response_model=List[ProjectSummary])
async def list_shared_projects(db: AsyncSession = Depends(get_session)):
    return await store.list_shared_projects(db)

@app.get("/projects/{project_id}", response_model=ProjectOut)
async def get_project(project_id: str, db: AsyncSession = Depends(get_session)):
    project = await store.get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project

@app.patch("/projects/{project_id}", response_model=ActionResult, response_model_exclude_none=True)
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    db: AsyncSession = Depends(get_session),
):
    await store.update_project(db, project_id, body)
    if body.is_shared is not None:
        message = f"Project {'shared' if body.is_shared else 'unshared'}."
    else:
        message = "Project updated successfully."
    return ActionResult(message=message, id=project_id)

@app.delete("/projects/{project_id}", response_model=ActionResult, response_model_exclude_none=True)
async def delete_project(project_id: str, db: AsyncSession = Depends(get_session)):
    await store.delete_project(db, project_id)
    return ActionResult(message="Project deleted successfully.", id=project_id)

# --- phases ---

@app.post("/projects/{project_id}/phases", response_model=ActionResult, response_model_exclude_none=True)
async def create_phase(
    project_id: str,
    body: PhaseIn,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    phase = await store.create_phase(db, user_id, project_id, body)
    return ActionResult(message="Phase created successfully.", id=phase.id)

@app.patch("/projects/{project_id}/phases/{phase_id}", response_model=ActionResult, response_model_exclude_none=True)
async def update_phase(
    project_id: str,
    phase_id: str,
    body: PhaseUpdate,
    db: AsyncSession = Depends(get_session),
):
    await store.update_phase(db, project_id, phase_id, body)
    return ActionResult(message="Phase updated successfully.", id=phase_id)

@app.delete("/projects/{project_id}/phases/{phase_id}", response_model=ActionResult, response_model_exclude_none=True)
async def delete_phase(project_id: str, phase_id: str, db: AsyncSession = Depends(get_session)):
    await store.delete_phase(db, project_id, phase_id)
    return ActionResult(message="Phase deleted successfully.", id=phase_id)

# --- events ---

@app.post("/projects/{project_id}/events", response_model=ActionResult, response_model_exclude_none=True)
async def create_event(
    project_id: str,
    body: EventIn,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    event = await store.create_event(db, user_id, project_id, body)
    return ActionResult(message="Event created successfully.", id=event.id)

@app.patch("/projects/{project_id}/events/{event_id}", response_model=ActionResult, response_model_exclude_none=True)
async def update_event(
    project_id: str,
    event_id: str,
    body: EventUpdate,
    db: AsyncSession = Depends(get_session),
):
    await store.update_event(db, project_id, event_id, body)
    return ActionResult(message="Event updated successfully.", id=event_id)

@app.delete("/projects/{project_id}/events/{event_id}", response_model=ActionResult, response_model_exclude_none=True)
async def delete_event(project_id: str, event_id: str, db: AsyncSession = Depends(get_session)):
    await store.delete_event(db, project_id, event_id)
    return ActionResult(message="Event deleted successfully.", id=event_id)

# --- links, dashboard, shared pool ---

@app.get("/links")
async def get_linked_ids(
    type: LinkType,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    ids = await list_linked_ids(db, user_id, type)
    return {"type": type, "ids": sorted(ids)}

@app.post("/links", response_model=ActionResult, response_model_exclude_none=True)
async def link(
    body: LinkIn,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    await link_entity(db, user_id, body.entity_id, body.type)
    return ActionResult(message=f"{body.type.capitalize()} linked.", id=body.entity_id)

@app.delete("/links/{entity_id}", response_model=ActionResult, response_model_exclude_none=True)
async def unlink(
    entity_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    removed = await unlink_entity(db, user_id, entity_id)
    message = "Unlinked." if removed else "Nothing to unlink."
    return ActionResult(message=message, id=entity_id)

@app.get("/dashboard", response_model=DashboardView)
async def dashboard(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    return await get_dashboard(db, user_id)

@app.get("/shared", response_model=SharedPool)
async def shared_pool(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    return await get_shared_pool(db, user_id)

# --- meeting notes ---

@app.post("/meeting-notes/analyze", response_model=AnalysisResult, response_model_exclude_none=True)
async def analyze_notes(body: MeetingNotesIn, client: AsyncOpenAI | None = Depends(get_llm_client)):
    result = await analyze_meeting_notes(client, body.meeting_notes)
    return AnalysisResult(message="Analysis successful.", result=result)
