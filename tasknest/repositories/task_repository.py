"""
SQLAlchemy task repository.

All relationship loading is explicit; lookups refresh instances already in the
session identity map so assignment changes made through Core statements show up.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import case, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tasknest.models.base import utcnow
from tasknest.models.task import Task
from tasknest.models.task_assignment import TaskAssignment
from tasknest.repositories.base import TaskFilter, TaskRepository

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SQLAlchemyTaskRepository(TaskRepository):
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, task: Task) -> Task:
        self.db.add(task)
        await self.db.flush()
        return task

    async def find_by_id(self, task_id: UUID) -> Task | None:
        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id)
            .options(
                selectinload(Task.creator),
                selectinload(Task.organization),
                selectinload(Task.assignments).selectinload(TaskAssignment.user),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_tasks(self, criteria: TaskFilter) -> tuple[list[Task], int]:
        if not criteria.organization_ids:
            return [], 0

        stmt = select(Task).where(Task.organization_id.in_(criteria.organization_ids))

        if criteria.assigned_to is not None:
            stmt = stmt.where(
                Task.id.in_(
                    select(TaskAssignment.task_id).where(
                        TaskAssignment.user_id == criteria.assigned_to
                    )
                )
            )
        if criteria.due_from is not None:
            stmt = stmt.where(Task.due_date >= criteria.due_from)
        if criteria.due_until is not None:
            stmt = stmt.where(Task.due_date < criteria.due_until)
        if criteria.status is not None:
            stmt = stmt.where(Task.status == criteria.status)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar_one()

        if criteria.sort_by_due_date:
            stmt = stmt.order_by(
                case((Task.due_date.is_(None), 1), else_=0),
                Task.due_date.asc(),
                Task.created_at.desc(),
            )
        else:
            stmt = stmt.order_by(Task.created_at.desc())

        if criteria.paginated:
            stmt = stmt.offset(criteria.offset).limit(criteria.page_size)

        stmt = stmt.options(selectinload(Task.creator))
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def save(self, task: Task) -> Task:
        await self.db.flush()
        return task

    async def delete(self, task_id: UUID) -> None:
        await self.db.execute(
            delete(TaskAssignment).where(TaskAssignment.task_id == task_id)
        )
        await self.db.execute(delete(Task).where(Task.id == task_id))
        await self.db.flush()

    async def is_assigned(self, task_id: UUID, user_id: UUID) -> bool:
        result = await self.db.execute(
            select(TaskAssignment.task_id).where(
                TaskAssignment.task_id == task_id,
                TaskAssignment.user_id == user_id,
            )
        )
        return result.first() is not None

    async def assign(self, task_id: UUID, user_ids: list[UUID]) -> None:
        if not user_ids:
            return
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Assignment upsert not supported on {dialect}")

        now = utcnow()
        stmt = (
            insert(TaskAssignment)
            .values([
                {"task_id": task_id, "user_id": user_id, "created_at": now}
                for user_id in user_ids
            ])
            .on_conflict_do_nothing(index_elements=["task_id", "user_id"])
        )
        await self.db.execute(stmt)

    async def unassign(self, task_id: UUID, user_ids: list[UUID]) -> None:
        if not user_ids:
            return
        await self.db.execute(
            delete(TaskAssignment).where(
                TaskAssignment.task_id == task_id,
                TaskAssignment.user_id.in_(user_ids),
            )
        )
