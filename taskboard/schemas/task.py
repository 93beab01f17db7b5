from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from taskboard.schemas.common import CamelModel, reject_blank, reject_explicit_nulls
from taskboard.utils.sanitization import sanitize_text, strip_text


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(CamelModel):
    id: str
    title: str
    description: str
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    project_id: str | None = None
    user_id: str
    created_at: datetime
    updated_at: datetime
    due_date: date | None = None


class TaskCreate(CamelModel):
    title: str | None = Field(None, max_length=200)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    project_id: str | None = None
    due_date: date | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_text(v)

    @field_validator("project_id", mode="before")
    @classmethod
    def blank_project_is_none(cls, v):
        v = strip_text(v)
        return v or None


class TaskUpdate(TaskCreate):
    """Only the fields present in the request body are applied."""

    @model_validator(mode="after")
    def check_nulls(self):
        # projectId and dueDate may be cleared with null, the rest may not
        reject_explicit_nulls(self, ("title", "description", "status", "priority"))
        reject_blank(self, ("title", "description"))
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class TaskStats(CamelModel):
    total: int
    todo: int
    in_progress: int
    completed: int


class TaskResponse(BaseModel):
    task: Task


class TaskListResponse(BaseModel):
    tasks: list[Task]


class TaskStatsResponse(BaseModel):
    stats: TaskStats
