import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, Hashable, Iterable, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from worklog.models.project import Project
from worklog.models.report import DailyReport
from worklog.models.todo import Todo
from worklog.services.daily_reports import get_or_create_daily_report, append_item, mark_report_edited

logger = logging.getLogger(__name__)

PRIORITIES = ("high", "medium", "low")
STATUSES = ("not_started", "in_progress", "completed")
COMPLETED = "completed"


@dataclass
class Counts:
    high: int = 0
    medium: int = 0
    low: int = 0
    in_progress: int = 0
    not_started: int = 0

    def add(self, todo) -> None:
        if todo.status != COMPLETED and todo.priority in PRIORITIES:
            setattr(self, todo.priority, getattr(self, todo.priority) + 1)
        if todo.status == "in_progress":
            self.in_progress += 1
        elif todo.status == "not_started":
            self.not_started += 1


@dataclass
class TodoRollup:
    per_project: Dict[Hashable, Counts] = field(default_factory=dict)
    overall: Counts = field(default_factory=Counts)
    recently_completed: List = field(default_factory=list)


def rollup(todos: Iterable, recent_limit: int = 10) -> TodoRollup:
    """Badge counts per project and overall; completed items only feed the recent list."""
    result = TodoRollup()
    completed = []
    for todo in todos:
        result.per_project.setdefault(todo.project_id, Counts()).add(todo)
        result.overall.add(todo)
        if todo.status == COMPLETED:
            completed.append(todo)

    completed.sort(key=_completed_sort_key, reverse=True)
    result.recently_completed = completed[:recent_limit]
    return result


def _completed_sort_key(todo):
    completed_at = todo.completed_at
    if completed_at is None:
        return datetime.min
    # SQLite hands back naive datetimes
    return completed_at.replace(tzinfo=None)


async def count_active(db: AsyncSession, user_id: int, project_id: int) -> int:
    result = await db.execute(
        select(func.count(Todo.id))
        .where(Todo.user_id == user_id)
        .where(Todo.project_id == project_id)
        .where(Todo.status != COMPLETED)
    )
    return result.scalar_one() or 0


async def complete_todo(db: AsyncSession, user, todo: Todo, project: Project, completed_date: date) -> DailyReport:
    """Mark the to-do done and log it on that day's work entry, in one commit."""
    todo.status = COMPLETED
    todo.completed_at = datetime.combine(completed_date, datetime.now(timezone.utc).timetz())

    report = await get_or_create_daily_report(db, user.id, completed_date, is_plan=False)
    append_item(report, project, todo.content)
    mark_report_edited(user)

    db.add_all([todo, report, user])
    await db.commit()
    await db.refresh(todo)
    logger.info("todo %s completed on %s, logged to daily report %s", todo.id, completed_date, report.id)
    return report
