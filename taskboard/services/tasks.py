from datetime import datetime

from taskboard.exceptions import ValidationError
from taskboard.schemas.task import Task, TaskCreate, TaskPriority, TaskStats, TaskStatus
from taskboard.services.entity_store import OwnedEntityStore, new_id


class TaskStore(OwnedEntityStore[Task]):
    key = "tasks"
    model = Task

    def build(self, dto: TaskCreate, user_id: str, now: datetime) -> Task:
        if not dto.title or not dto.description:
            raise ValidationError("Title and description are required")
        return Task(
            id=new_id(),
            title=dto.title,
            description=dto.description,
            status=dto.status or TaskStatus.TODO,
            priority=dto.priority or TaskPriority.MEDIUM,
            project_id=dto.project_id,
            user_id=user_id,
            created_at=now,
            updated_at=now,
            due_date=dto.due_date,
        )

    async def filter(
        self,
        user_id: str,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        project_id: str | None = None,
    ) -> list[Task]:
        tasks = await self.get_by_user_id(user_id)
        if status is not None:
            tasks = [t for t in tasks if t.status == status]
        if priority is not None:
            tasks = [t for t in tasks if t.priority == priority]
        if project_id is not None:
            tasks = [t for t in tasks if t.project_id == project_id]
        return tasks

    async def get_stats(self, user_id: str) -> TaskStats:
        tasks = await self.get_by_user_id(user_id)
        return TaskStats(
            total=len(tasks),
            todo=sum(1 for t in tasks if t.status == TaskStatus.TODO),
            in_progress=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
            completed=sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
        )
