import logging
from datetime import date, timedelta
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from worklog.config import settings
from worklog.database import get_db
from worklog.core.auth import get_current_user
from worklog.models.project import Project
from worklog.models.todo import Todo
from worklog.routers.projects import get_owned_project
from worklog.schemas.todo import (
    TodoCreate, TodoUpdate, TodoComplete, TodoResponse, WeekTodoResponse,
    TodoSummaryResponse, CountsResponse, TodoCompleteResponse, TodoDeleteResponse
)
from worklog.services.periods import compute_week
from worklog.services.todos import COMPLETED, rollup, count_active, complete_todo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/todos", tags=["todos"])

LIMIT_DETAIL = f"每个项目最多只能添加{settings.TODO_ACTIVE_LIMIT}个待办"


async def _get_owned_todo(db: AsyncSession, todo_id: int, user_id: int) -> Todo:
    result = await db.execute(
        select(Todo)
        .where(Todo.id == todo_id)
        .where(Todo.user_id == user_id)
    )
    todo = result.scalar_one_or_none()
    if not todo:
        raise HTTPException(404, "待办不存在或无权限访问")
    return todo


async def _ensure_capacity(db: AsyncSession, user_id: int, project_id: int):
    if await count_active(db, user_id, project_id) >= settings.TODO_ACTIVE_LIMIT:
        logger.warning("todo limit reached for user %s project %s", user_id, project_id)
        raise HTTPException(400, LIMIT_DETAIL)


@router.get("", response_model=List[TodoResponse])
async def list_todos(
    project_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    query = (
        select(Todo)
        .where(Todo.user_id == current_user.id)
        .order_by(Todo.due_date, Todo.id)
    )
    if project_id is not None:
        query = query.where(Todo.project_id == project_id)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/summary", response_model=TodoSummaryResponse)
async def todo_summary(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    result = await db.execute(select(Todo).where(Todo.user_id == current_user.id))
    summary = rollup(result.scalars().all(), settings.RECENT_COMPLETED_LIMIT)
    return TodoSummaryResponse(
        per_project={pid: CountsResponse.model_validate(counts) for pid, counts in summary.per_project.items()},
        overall=CountsResponse.model_validate(summary.overall),
        recently_completed=[TodoResponse.model_validate(t) for t in summary.recently_completed],
    )


@router.get("/this-week", response_model=List[WeekTodoResponse])
async def this_week_todos(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Open to-dos due in the current Monday-to-Sunday week."""
    week = compute_week(date.today())
    result = await db.execute(
        select(Todo, Project.name)
        .join(Project, Project.id == Todo.project_id)
        .where(Todo.user_id == current_user.id)
        .where(Todo.status != COMPLETED)
        .where(Todo.due_date >= week.start_date)
        .where(Todo.due_date <= week.end_date)
        .order_by(Todo.due_date, Todo.id)
    )
    return [
        WeekTodoResponse(**TodoResponse.model_validate(todo).model_dump(), project_name=name)
        for todo, name in result.all()
    ]


@router.post("", response_model=TodoResponse, status_code=201)
async def create_todo(
    todo_in: TodoCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await get_owned_project(db, todo_in.project_id, current_user.id)
    await _ensure_capacity(db, current_user.id, todo_in.project_id)

    todo = Todo(
        user_id=current_user.id,
        project_id=todo_in.project_id,
        content=todo_in.content.strip(),
        priority=todo_in.priority,
        due_date=todo_in.due_date or date.today() + timedelta(days=1),
        status=todo_in.status
    )
    db.add(todo)
    await db.commit()
    await db.refresh(todo)
    return todo


@router.put("/{todo_id}", response_model=TodoResponse)
async def update_todo(
    todo_id: int,
    todo_in: TodoUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    todo = await _get_owned_todo(db, todo_id, current_user.id)
    changes = todo_in.model_dump(exclude_unset=True, exclude_none=True)

    new_status = changes.get("status")
    if new_status == COMPLETED and todo.status != COMPLETED:
        raise HTTPException(400, "完成待办需要确认完成日期")
    if new_status and new_status != COMPLETED and todo.status == COMPLETED:
        # reopening counts against the active limit
        await _ensure_capacity(db, current_user.id, todo.project_id)
        todo.completed_at = None

    for field, value in changes.items():
        setattr(todo, field, value.strip() if field == "content" else value)

    db.add(todo)
    await db.commit()
    await db.refresh(todo)
    return todo


@router.post("/{todo_id}/complete", response_model=TodoCompleteResponse)
async def complete(
    todo_id: int,
    complete_in: TodoComplete,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    todo = await _get_owned_todo(db, todo_id, current_user.id)
    if todo.status == COMPLETED:
        raise HTTPException(400, "待办已完成")
    project = await get_owned_project(db, todo.project_id, current_user.id)

    report = await complete_todo(db, current_user, todo, project, complete_in.completed_date)
    return TodoCompleteResponse(
        todo=TodoResponse.model_validate(todo),
        daily_report_id=report.id,
        daily_report_date=report.date,
    )


@router.delete("/{todo_id}", response_model=TodoDeleteResponse)
async def delete_todo(
    todo_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    todo = await _get_owned_todo(db, todo_id, current_user.id)
    project_id = todo.project_id
    await db.delete(todo)
    await db.commit()
    return TodoDeleteResponse(
        message="待办已删除",
        remaining_active=await count_active(db, current_user.id, project_id),
    )
