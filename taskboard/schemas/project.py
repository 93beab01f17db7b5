from datetime import datetime

from pydantic import BaseModel, field_validator, model_validator

from taskboard.schemas.common import CamelModel, reject_blank, reject_explicit_nulls
from taskboard.utils.sanitization import sanitize_text


class Project(CamelModel):
    id: str
    name: str
    description: str = ""
    user_id: str
    created_at: datetime
    updated_at: datetime


class ProjectCreate(CamelModel):
    name: str | None = None
    description: str | None = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_text(v)


class ProjectUpdate(ProjectCreate):
    @model_validator(mode="after")
    def check_nulls(self):
        reject_explicit_nulls(self, ("name", "description"))
        reject_blank(self, ("name",))
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ProjectStats(CamelModel):
    total: int


class ProjectResponse(BaseModel):
    project: Project


class ProjectListResponse(BaseModel):
    projects: list[Project]


class ProjectStatsResponse(BaseModel):
    stats: ProjectStats
