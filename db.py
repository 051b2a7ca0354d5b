"""Data access layer over the hosted Supabase backend.

Every call goes through ``ProjectStore._execute`` so that backend failures
surface as ``BackendError`` and get logged in one place.
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Tuple

import structlog
from postgrest.exceptions import APIError
from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from supabase import Client, create_client

from config import get_settings
from errors import BackendError, NotFoundError, PermissionDeniedError, ValidationError
from models import (
    BoardCard,
    Mood,
    Project,
    ProjectUpdate,
    ProjectWithTasks,
    Task,
    TaskComment,
    TaskDocument,
    TaskStatus,
    UserProfile,
)

logger = structlog.get_logger()

UNKNOWN_USER = "Unknown User"

_url_adapter = TypeAdapter(AnyUrl)


@lru_cache
def get_client() -> Client:
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_key)


def get_store() -> "ProjectStore":
    return ProjectStore(get_client())


def normalize_url(url: str) -> str:
    """Prefix ``https://`` unless the URL is already http(s) and reject anything unparsable."""
    url = (url or "").strip()
    if not url:
        raise ValidationError("Please enter a URL")
    if not url.lower().startswith(("http://", "https://")):
        url = f"https://{url}"
    try:
        parsed = _url_adapter.validate_python(url)
    except PydanticValidationError:
        raise ValidationError(f"Please enter a valid URL: {url}")
    if not parsed.host:
        raise ValidationError(f"Please enter a valid URL: {url}")
    return url


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_content(content: str) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Content cannot be empty")
    return content


def _task_pairs(tasks_by_phase: Dict[str, List[str]]) -> List[Tuple[str, str]]:
    pairs = []
    seen = set()
    for phase, deliverable_ids in tasks_by_phase.items():
        for deliverable_id in deliverable_ids:
            if (phase, deliverable_id) not in seen:
                seen.add((phase, deliverable_id))
                pairs.append((phase, deliverable_id))
    return pairs


def shape_project(project_row: dict, task_rows: Iterable[dict]) -> ProjectWithTasks:
    """Build the phase, lookup and status views of a project's tasks."""
    by_phase: Dict[str, List[str]] = {}
    task_ids: Dict[str, str] = {}
    by_status: Dict[TaskStatus, List[BoardCard]] = {s: [] for s in TaskStatus}
    seen = set()

    for row in task_rows:
        task = Task.model_validate(row)
        if task.id in seen:
            continue
        seen.add(task.id)
        by_phase.setdefault(task.phase, []).append(task.deliverable_id)
        task_ids[task.deliverable_id] = task.id
        by_status[task.status].append(
            BoardCard(
                deliverable_id=task.deliverable_id,
                task_id=task.id,
                phase=task.phase,
                status=task.status,
            )
        )

    return ProjectWithTasks(
        **Project.model_validate(project_row).model_dump(),
        tasks=by_phase,
        task_ids=task_ids,
        tasks_by_status=by_status,
    )


class ProjectStore:
    def __init__(self, client: Client):
        self.client = client

    def _execute(self, query, operation: str, **context) -> List[dict]:
        try:
            response = query.execute()
        except APIError as exc:
            message = exc.message or str(exc)
            logger.error("backend_call_failed", operation=operation, error=message, **context)
            raise BackendError(message) from exc
        return response.data or []

    def _table(self, name: str):
        return self.client.table(name)

    def _one(self, table: str, row_id: str, label: str) -> dict:
        rows = self._execute(
            self._table(table).select("*").eq("id", row_id), f"get_{label}", id=row_id
        )
        if not rows:
            raise NotFoundError(f"{label.replace('_', ' ').capitalize()} not found")
        return rows[0]

    # Projects

    def list_projects(self) -> List[Project]:
        rows = self._execute(
            self._table("projects").select("*").order("created_at", desc=True),
            "list_projects",
        )
        return [Project.model_validate(r) for r in rows]

    def list_tasks(self, project_id: str) -> List[Task]:
        rows = self._execute(
            self._table("tasks").select("*").eq("project_id", project_id).order("created_at"),
            "list_tasks",
            project_id=project_id,
        )
        return [Task.model_validate(r) for r in rows]

    def get_project_with_tasks(self, project_id: str) -> ProjectWithTasks:
        project_row = self._one("projects", project_id, "project")
        task_rows = self._execute(
            self._table("tasks").select("*").eq("project_id", project_id).order("created_at"),
            "list_tasks",
            project_id=project_id,
        )
        return shape_project(project_row, task_rows)

    def _insert_tasks(
        self, project_id: str, pairs: List[Tuple[str, str]], creator_id: Optional[str]
    ) -> List[Task]:
        if not pairs:
            return []
        records = [
            {
                "project_id": project_id,
                "phase": phase,
                "deliverable_id": deliverable_id,
                "status": TaskStatus.TODO.value,
                "created_by": creator_id,
            }
            for phase, deliverable_id in pairs
        ]
        rows = self._execute(
            self._table("tasks").insert(records),
            "insert_tasks",
            project_id=project_id,
            count=len(records),
        )
        return [Task.model_validate(r) for r in rows]

    def create_project(
        self,
        title: str,
        description: Optional[str],
        tasks_by_phase: Dict[str, List[str]],
        creator_id: Optional[str],
    ) -> Project:
        rows = self._execute(
            self._table("projects").insert(
                {"title": title, "description": description, "created_by": creator_id}
            ),
            "create_project",
        )
        project = Project.model_validate(rows[0])
        # A failure here leaves an empty project behind; nothing rolls it back.
        self._insert_tasks(project.id, _task_pairs(tasks_by_phase), creator_id)
        logger.info("project_created", project_id=project.id, title=title)
        return project

    def update_project(
        self,
        project_id: str,
        title: str,
        description: Optional[str],
        tasks_by_phase: Dict[str, List[str]],
        creator_id: Optional[str],
    ) -> Project:
        """Update project fields and reconcile its task set with ``tasks_by_phase``.

        Tasks whose (phase, deliverable) pair is still wanted are left alone,
        so their status, comments and documents survive the edit.
        """
        rows = self._execute(
            self._table("projects")
            .update({"title": title, "description": description, "updated_at": _now()})
            .eq("id", project_id),
            "update_project",
            project_id=project_id,
        )
        if not rows:
            raise NotFoundError("Project not found")

        wanted = _task_pairs(tasks_by_phase)
        wanted_set = set(wanted)
        kept = set()
        stale = []
        for task in self.list_tasks(project_id):
            key = (task.phase, task.deliverable_id)
            if key in wanted_set and key not in kept:
                kept.add(key)
            else:
                stale.append(task.id)

        if stale:
            self._execute(
                self._table("tasks").delete().in_("id", stale),
                "delete_tasks",
                project_id=project_id,
                count=len(stale),
            )
        added = self._insert_tasks(
            project_id, [p for p in wanted if p not in kept], creator_id
        )
        logger.info(
            "project_updated",
            project_id=project_id,
            tasks_kept=len(kept),
            tasks_removed=len(stale),
            tasks_added=len(added),
        )
        return Project.model_validate(rows[0])

    def delete_project(self, project_id: str) -> None:
        self._execute(
            self._table("projects").delete().eq("id", project_id),
            "delete_project",
            project_id=project_id,
        )
        logger.info("project_deleted", project_id=project_id)

    def add_tasks(
        self,
        project_id: str,
        phase: str,
        deliverable_ids: List[str],
        creator_id: Optional[str],
    ) -> List[Task]:
        existing = {
            t.deliverable_id for t in self.list_tasks(project_id) if t.phase == phase
        }
        pairs = _task_pairs({phase: [d for d in deliverable_ids if d not in existing]})
        added = self._insert_tasks(project_id, pairs, creator_id)
        logger.info("tasks_added", project_id=project_id, phase=phase, count=len(added))
        return added

    def update_task_status(self, task_id: str, status: TaskStatus) -> Task:
        status = TaskStatus(status)
        rows = self._execute(
            self._table("tasks")
            .update({"status": status.value, "updated_at": _now()})
            .eq("id", task_id),
            "update_task_status",
            task_id=task_id,
        )
        if not rows:
            raise NotFoundError("Task not found")
        logger.info("task_status_updated", task_id=task_id, status=status.value)
        return Task.model_validate(rows[0])

    # Documents

    def list_documents(self, task_id: str) -> List[TaskDocument]:
        rows = self._execute(
            self._table("task_documents").select("*").eq("task_id", task_id).order("created_at"),
            "list_documents",
            task_id=task_id,
        )
        return [TaskDocument.model_validate(r) for r in rows]

    def add_document(
        self, task_id: str, title: str, url: str, creator_id: Optional[str]
    ) -> TaskDocument:
        rows = self._execute(
            self._table("task_documents").insert(
                {
                    "task_id": task_id,
                    "title": title,
                    "url": normalize_url(url),
                    "created_by": creator_id,
                }
            ),
            "add_document",
            task_id=task_id,
        )
        return TaskDocument.model_validate(rows[0])

    def update_document(self, document_id: str, title: str, url: str) -> TaskDocument:
        rows = self._execute(
            self._table("task_documents")
            .update({"title": title, "url": normalize_url(url), "updated_at": _now()})
            .eq("id", document_id),
            "update_document",
            document_id=document_id,
        )
        if not rows:
            raise NotFoundError("Document not found")
        return TaskDocument.model_validate(rows[0])

    def delete_document(self, document_id: str) -> None:
        self._execute(
            self._table("task_documents").delete().eq("id", document_id),
            "delete_document",
            document_id=document_id,
        )

    # Authors

    def _authors(self, user_ids: Iterable[str]) -> Dict[str, UserProfile]:
        ids = sorted({u for u in user_ids if u})
        if not ids:
            return {}
        rows = self._execute(
            self._table("user_profiles").select("id, email, name").in_("id", ids),
            "resolve_authors",
            count=len(ids),
        )
        return {r["id"]: UserProfile.model_validate(r) for r in rows}

    def _with_authors(self, rows: List[dict]) -> List[dict]:
        profiles = self._authors(r.get("user_id") for r in rows)
        resolved = []
        for row in rows:
            profile = profiles.get(row.get("user_id"))
            name = UNKNOWN_USER
            email = None
            if profile:
                email = profile.email
                name = profile.name or profile.email or UNKNOWN_USER
            resolved.append({**row, "user_name": name, "user_email": email})
        return resolved

    def _require_author(self, table: str, row_id: str, label: str, user_id: Optional[str]):
        if user_id is None:
            return
        row = self._one(table, row_id, label)
        if row.get("user_id") != user_id:
            raise PermissionDeniedError(f"Only the author can change this {label}")

    # Comments

    def list_comments(self, task_id: str) -> List[TaskComment]:
        rows = self._execute(
            self._table("task_comments").select("*").eq("task_id", task_id).order("created_at"),
            "list_comments",
            task_id=task_id,
        )
        return [TaskComment.model_validate(r) for r in self._with_authors(rows)]

    def add_comment(self, task_id: str, user_id: str, content: str) -> TaskComment:
        rows = self._execute(
            self._table("task_comments").insert(
                {"task_id": task_id, "user_id": user_id, "content": _require_content(content)}
            ),
            "add_comment",
            task_id=task_id,
        )
        return TaskComment.model_validate(self._with_authors(rows)[0])

    def update_comment(
        self, comment_id: str, content: str, user_id: Optional[str] = None
    ) -> TaskComment:
        content = _require_content(content)
        self._require_author("task_comments", comment_id, "comment", user_id)
        rows = self._execute(
            self._table("task_comments")
            .update({"content": content, "updated_at": _now()})
            .eq("id", comment_id),
            "update_comment",
            comment_id=comment_id,
        )
        if not rows:
            raise NotFoundError("Comment not found")
        return TaskComment.model_validate(self._with_authors(rows)[0])

    def delete_comment(self, comment_id: str, user_id: Optional[str] = None) -> None:
        self._require_author("task_comments", comment_id, "comment", user_id)
        self._execute(
            self._table("task_comments").delete().eq("id", comment_id),
            "delete_comment",
            comment_id=comment_id,
        )

    # Updates

    def list_updates(self, project_id: str) -> List[ProjectUpdate]:
        rows = self._execute(
            self._table("project_updates")
            .select("*")
            .eq("project_id", project_id)
            .order("created_at", desc=True),
            "list_updates",
            project_id=project_id,
        )
        return [ProjectUpdate.model_validate(r) for r in self._with_authors(rows)]

    def add_update(
        self, project_id: str, user_id: str, content: str, mood: Mood
    ) -> ProjectUpdate:
        rows = self._execute(
            self._table("project_updates").insert(
                {
                    "project_id": project_id,
                    "user_id": user_id,
                    "content": _require_content(content),
                    "mood": Mood(mood).value,
                }
            ),
            "add_update",
            project_id=project_id,
        )
        logger.info("update_posted", project_id=project_id, mood=Mood(mood).value)
        return ProjectUpdate.model_validate(self._with_authors(rows)[0])

    def update_update(
        self, update_id: str, content: str, user_id: Optional[str] = None
    ) -> ProjectUpdate:
        content = _require_content(content)
        self._require_author("project_updates", update_id, "update", user_id)
        rows = self._execute(
            self._table("project_updates")
            .update({"content": content, "updated_at": _now()})
            .eq("id", update_id),
            "update_update",
            update_id=update_id,
        )
        if not rows:
            raise NotFoundError("Update not found")
        return ProjectUpdate.model_validate(self._with_authors(rows)[0])

    def delete_update(self, update_id: str, user_id: Optional[str] = None) -> None:
        self._require_author("project_updates", update_id, "update", user_id)
        self._execute(
            self._table("project_updates").delete().eq("id", update_id),
            "delete_update",
            update_id=update_id,
        )

    # Profiles

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        rows = self._execute(
            self._table("user_profiles").select("*").eq("id", user_id),
            "get_profile",
            user_id=user_id,
        )
        return UserProfile.model_validate(rows[0]) if rows else None

    def upsert_profile(
        self, user_id: str, email: Optional[str], name: Optional[str]
    ) -> UserProfile:
        name = (name or "").strip() or None
        rows = self._execute(
            self._table("user_profiles").upsert({"id": user_id, "email": email, "name": name}),
            "upsert_profile",
            user_id=user_id,
        )
        return UserProfile.model_validate(rows[0])
