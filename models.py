from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class Mood(str, Enum):
    NOT_GREAT = "not_great"
    OKAY = "okay"
    GOOD = "good"
    GREAT = "great"


# Rows as stored in the backend

class Project(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None


class Task(BaseModel):
    id: str
    project_id: str
    phase: str
    deliverable_id: str
    status: TaskStatus = TaskStatus.TODO
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None


class TaskDocument(BaseModel):
    id: str
    task_id: str
    title: str
    url: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None


class TaskComment(BaseModel):
    id: str
    task_id: str
    user_id: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_name: str = "Unknown User"
    user_email: Optional[str] = None


class ProjectUpdate(BaseModel):
    id: str
    project_id: str
    user_id: str
    content: str
    mood: Mood = Mood.GOOD
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_name: str = "Unknown User"
    user_email: Optional[str] = None


class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


# Derived views

class BoardCard(BaseModel):
    deliverable_id: str
    task_id: str
    phase: str
    status: TaskStatus


class ProjectWithTasks(Project):
    tasks: Dict[str, List[str]] = {}
    task_ids: Dict[str, str] = {}
    tasks_by_status: Dict[TaskStatus, List[BoardCard]] = {}


# Request bodies

class ProjectInput(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    tasks: Dict[str, List[str]] = {}
    # flat selection, grouped by catalog phase when `tasks` is empty
    deliverable_ids: List[str] = []


class AddTasksInput(BaseModel):
    phase: str
    deliverable_ids: List[str] = Field(..., min_length=1)


class StatusInput(BaseModel):
    status: TaskStatus


class DocumentInput(BaseModel):
    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class CommentInput(BaseModel):
    content: str


class UpdateInput(BaseModel):
    content: str
    mood: Mood


class UpdateEdit(BaseModel):
    content: str


class ProfileInput(BaseModel):
    name: Optional[str] = None
