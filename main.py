import time
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware

from auth import CurrentUser
from catalog import (
    DESIGN_PHASES,
    DesignPhase,
    Deliverable,
    available_deliverables,
    get_phase,
    group_by_phase,
)
from config import get_settings
from db import ProjectStore, get_store
from errors import NotFoundError, TrackerError, ValidationError, tracker_error_handler
from kanban import Column, build_board
from logs import configure_logging
from models import (
    AddTasksInput,
    CommentInput,
    DocumentInput,
    ProfileInput,
    Project,
    ProjectInput,
    ProjectUpdate,
    ProjectWithTasks,
    StatusInput,
    Task,
    TaskComment,
    TaskDocument,
    UpdateEdit,
    UpdateInput,
    UserProfile,
)
from mood import MoodChart, Window, build_chart, shift_anchor

configure_logging()
settings = get_settings()
logger = structlog.get_logger()

# FastAPI setup
app = FastAPI(title=settings.app_name, version=settings.app_version)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(TrackerError, tracker_error_handler)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception("request_failed", error=str(e))
        raise
    logger.info(
        "request_completed",
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return response


def requested_tasks(data: ProjectInput) -> Dict[str, List[str]]:
    if not data.tasks and data.deliverable_ids:
        return group_by_phase(data.deliverable_ids)
    return data.tasks


def check_tasks(tasks: Dict[str, List[str]]):
    """Reject phases and deliverables that are not in the catalog."""
    for phase_title, deliverable_ids in tasks.items():
        phase = get_phase(phase_title)
        if phase is None:
            raise ValidationError(f"Unknown phase: {phase_title}")
        known = {d.id for d in phase.deliverables}
        unknown = [d for d in deliverable_ids if d not in known]
        if unknown:
            raise ValidationError(
                f"Unknown deliverables for {phase_title}: {', '.join(unknown)}"
            )


@app.get("/health")
async def health():
    return {"status": "ok"}


# Catalog

@app.get("/catalog", response_model=List[DesignPhase])
def list_catalog():
    return DESIGN_PHASES


@app.get("/catalog/{phase}/available", response_model=List[Deliverable])
def list_available(
    phase: str,
    user: CurrentUser,
    project_id: Optional[str] = None,
    q: str = "",
    store: ProjectStore = Depends(get_store),
):
    if get_phase(phase) is None:
        raise NotFoundError(f"Unknown phase: {phase}")
    existing = []
    if project_id:
        existing = store.get_project_with_tasks(project_id).tasks.get(phase, [])
    return available_deliverables(phase, existing, q)


# Projects

@app.get("/projects", response_model=List[Project])
def list_projects(user: CurrentUser, store: ProjectStore = Depends(get_store)):
    return store.list_projects()


@app.post("/projects", response_model=Project, status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectInput, user: CurrentUser, store: ProjectStore = Depends(get_store)
):
    tasks = requested_tasks(data)
    check_tasks(tasks)
    return store.create_project(data.title, data.description or None, tasks, user.id)


@app.get("/projects/{project_id}", response_model=ProjectWithTasks)
def get_project(project_id: str, user: CurrentUser, store: ProjectStore = Depends(get_store)):
    return store.get_project_with_tasks(project_id)


@app.put("/projects/{project_id}", response_model=Project)
def update_project(
    project_id: str,
    data: ProjectInput,
    user: CurrentUser,
    store: ProjectStore = Depends(get_store),
):
    tasks = requested_tasks(data)
    check_tasks(tasks)
    return store.update_project(
        project_id, data.title, data.description or None, tasks, user.id
    )


@app.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: str, user: CurrentUser, store: ProjectStore = Depends(get_store)):
    store.delete_project(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Tasks and board

@app.post(
    "/projects/{project_id}/tasks",
    response_model=List[Task],
    status_code=status.HTTP_201_CREATED,
)
def add_tasks(
    project_id: str,
    data: AddTasksInput,
    user: CurrentUser,
    store: ProjectStore = Depends(get_store),
):
    check_tasks({data.phase: data.deliverable_ids})
    return store.add_tasks(project_id, data.phase, data.deliverable_ids, user.id)


@app.patch("/tasks/{task_id}/status", response_model=Task)
def update_task_status(
    task_id: str, data: StatusInput, user: CurrentUser, store: ProjectStore = Depends(get_store)
):
    return store.update_task_status(task_id, data.status)


@app.get("/projects/{project_id}/board", response_model=List[Column])
def get_board(project_id: str, user: CurrentUser, store: ProjectStore = Depends(get_store)):
    project = store.get_project_with_tasks(project_id)
    cards = [card for cards in project.tasks_by_status.values() for card in cards]
    return build_board(cards).as_columns()


@app.patch("/projects/{project_id}/board/{task_id}", response_model=List[Column])
def move_card(
    project_id: str,
    task_id: str,
    data: StatusInput,
    user: CurrentUser,
    store: ProjectStore = Depends(get_store),
):
    project = store.get_project_with_tasks(project_id)
    board = build_board(card for cards in project.tasks_by_status.values() for card in cards)
    if board.find(task_id) is None:
        raise NotFoundError("Task not found on this project")
    board.move(task_id, data.status, store.update_task_status)
    return board.as_columns()


# Documents

@app.get("/tasks/{task_id}/documents", response_model=List[TaskDocument])
def list_documents(task_id: str, user: CurrentUser, store: ProjectStore = Depends(get_store)):
    return store.list_documents(task_id)


@app.post(
    "/tasks/{task_id}/documents",
    response_model=TaskDocument,
    status_code=status.HTTP_201_CREATED,
)
def add_document(
    task_id: str, data: DocumentInput, user: CurrentUser, store: ProjectStore = Depends(get_store)
):
    return store.add_document(task_id, data.title, data.url, user.id)


@app.put("/documents/{document_id}", response_model=TaskDocument)
def update_document(
    document_id: str,
    data: DocumentInput,
    user: CurrentUser,
    store: ProjectStore = Depends(get_store),
):
    return store.update_document(document_id, data.title, data.url)


@app.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(document_id: str, user: CurrentUser, store: ProjectStore = Depends(get_store)):
    store.delete_document(document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Comments

@app.get("/tasks/{task_id}/comments", response_model=List[TaskComment])
def list_comments(task_id: str, user: CurrentUser, store: ProjectStore = Depends(get_store)):
    return store.list_comments(task_id)


@app.post(
    "/tasks/{task_id}/comments",
    response_model=TaskComment,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    task_id: str, data: CommentInput, user: CurrentUser, store: ProjectStore = Depends(get_store)
):
    return store.add_comment(task_id, user.id, data.content)


@app.put("/comments/{comment_id}", response_model=TaskComment)
def update_comment(
    comment_id: str, data: CommentInput, user: CurrentUser, store: ProjectStore = Depends(get_store)
):
    return store.update_comment(comment_id, data.content, user.id)


@app.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(comment_id: str, user: CurrentUser, store: ProjectStore = Depends(get_store)):
    store.delete_comment(comment_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Updates and mood

@app.get("/projects/{project_id}/updates", response_model=List[ProjectUpdate])
def list_updates(project_id: str, user: CurrentUser, store: ProjectStore = Depends(get_store)):
    return store.list_updates(project_id)


@app.post(
    "/projects/{project_id}/updates",
    response_model=ProjectUpdate,
    status_code=status.HTTP_201_CREATED,
)
def post_update(
    project_id: str, data: UpdateInput, user: CurrentUser, store: ProjectStore = Depends(get_store)
):
    return store.add_update(project_id, user.id, data.content, data.mood)


@app.put("/updates/{update_id}", response_model=ProjectUpdate)
def edit_update(
    update_id: str, data: UpdateEdit, user: CurrentUser, store: ProjectStore = Depends(get_store)
):
    return store.update_update(update_id, data.content, user.id)


@app.delete("/updates/{update_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_update(update_id: str, user: CurrentUser, store: ProjectStore = Depends(get_store)):
    store.delete_update(update_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/projects/{project_id}/mood", response_model=MoodChart)
def get_mood_chart(
    project_id: str,
    user: CurrentUser,
    window: Window = Window.ALL,
    anchor: Optional[date] = None,
    offset: int = Query(0, description="Periods to move from the anchor"),
    store: ProjectStore = Depends(get_store),
):
    anchor = anchor or datetime.now(timezone.utc).date()
    anchor = shift_anchor(anchor, window, offset)
    return build_chart(store.list_updates(project_id), window, anchor)


# Profile

@app.get("/profile", response_model=UserProfile)
def get_profile(user: CurrentUser, store: ProjectStore = Depends(get_store)):
    return store.get_profile(user.id) or UserProfile(id=user.id, email=user.email)


@app.put("/profile", response_model=UserProfile)
def update_profile(
    data: ProfileInput, user: CurrentUser, store: ProjectStore = Depends(get_store)
):
    return store.upsert_profile(user.id, user.email, data.name)
