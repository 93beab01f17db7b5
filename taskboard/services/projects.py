from datetime import datetime

from taskboard.exceptions import ValidationError
from taskboard.schemas.project import Project, ProjectCreate, ProjectStats
from taskboard.services.entity_store import OwnedEntityStore, new_id


class ProjectStore(OwnedEntityStore[Project]):
    key = "projects"
    model = Project

    def build(self, dto: ProjectCreate, user_id: str, now: datetime) -> Project:
        if not dto.name:
            raise ValidationError("Name is required")
        return Project(
            id=new_id(),
            name=dto.name,
            description=dto.description or "",
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )

    async def get_stats(self, user_id: str) -> ProjectStats:
        return ProjectStats(total=len(await self.get_by_user_id(user_id)))
