import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from worklog.database import get_db
from worklog.core.auth import get_current_user
from worklog.models.project import Project
from worklog.models.project_report import ProjectWeeklyReportItem
from worklog.models.report import ReportItem
from worklog.models.todo import Todo
from worklog.models.work_breakdown import WorkBreakdownItem, WorkBreakdownShare
from worklog.schemas.project import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectListResponse, ProjectCreatedResponse
)
from worklog.services import work_breakdown

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])

NAME_MAX = 100
CODE_MAX = 50
DESCRIPTION_MAX = 500


def validate_project_fields(name: Optional[str], code: Optional[str], description: Optional[str], require_name: bool):
    if require_name and not name:
        raise HTTPException(400, "项目名称不能为空")
    if name is not None and len(name) > NAME_MAX:
        raise HTTPException(400, f"项目名称不能超过{NAME_MAX}个字符")
    if code and len(code) > CODE_MAX:
        raise HTTPException(400, f"项目编码不能超过{CODE_MAX}个字符")
    if description and len(description) > DESCRIPTION_MAX:
        raise HTTPException(400, f"项目描述不能超过{DESCRIPTION_MAX}个字符")


async def ensure_unique(db: AsyncSession, user_id: int, name: Optional[str], code: Optional[str], exclude_id: Optional[int] = None):
    if name:
        query = select(Project.id).where(Project.user_id == user_id, Project.name == name)
        if exclude_id is not None:
            query = query.where(Project.id != exclude_id)
        if (await db.execute(query)).first():
            raise HTTPException(400, "项目名称已存在")
    if code:
        query = select(Project.id).where(Project.user_id == user_id, Project.code == code)
        if exclude_id is not None:
            query = query.where(Project.id != exclude_id)
        if (await db.execute(query)).first():
            raise HTTPException(400, "项目编码已存在")


async def get_owned_project(db: AsyncSession, project_id: int, user_id: int) -> Project:
    result = await db.execute(
        select(Project)
        .where(Project.id == project_id)
        .where(Project.user_id == user_id)
    )
    project = result.scalar_one_or_none()
    if not project:
        raise HTTPException(404, "项目不存在或无权限访问")
    return project


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    active_only: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    query = (
        select(Project)
        .where(Project.user_id == current_user.id)
        .order_by(Project.created_at.desc(), Project.id.desc())
    )
    if active_only:
        query = query.where(Project.is_active.is_(True))
    projects = (await db.execute(query)).scalars().all()
    return ProjectListResponse(projects=[ProjectResponse.model_validate(p) for p in projects], total=len(projects))


@router.post("", response_model=ProjectCreatedResponse, status_code=201)
async def create_project(
    project_in: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    validate_project_fields(project_in.name, project_in.code, project_in.description, require_name=True)
    await ensure_unique(db, current_user.id, project_in.name, project_in.code)

    project = Project(
        user_id=current_user.id,
        name=project_in.name,
        code=project_in.code or None,
        description=project_in.description or None,
        is_active=project_in.is_active
    )
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return ProjectCreatedResponse(project=ProjectResponse.model_validate(project), message="项目创建成功")


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    project = await get_owned_project(db, project_id, current_user.id)
    changes = project_in.model_dump(exclude_unset=True)

    if "name" in changes:
        validate_project_fields(changes["name"], None, None, require_name=True)
    validate_project_fields(None, changes.get("code"), changes.get("description"), require_name=False)
    await ensure_unique(db, current_user.id, changes.get("name"), changes.get("code"), exclude_id=project.id)

    if "name" in changes:
        project.name = changes["name"]
    if "code" in changes:
        project.code = changes["code"] or None
    if "description" in changes:
        project.description = changes["description"] or None
    if changes.get("is_active") is not None:
        project.is_active = changes["is_active"]

    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project


@router.delete("/{project_id}")
async def delete_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    project = await get_owned_project(db, project_id, current_user.id)

    daily_refs = await db.execute(
        select(func.count(ReportItem.id)).where(ReportItem.project_id == project.id)
    )
    weekly_refs = await db.execute(
        select(func.count(ProjectWeeklyReportItem.id)).where(ProjectWeeklyReportItem.project_id == project.id)
    )
    if daily_refs.scalar_one() or weekly_refs.scalar_one():
        raise HTTPException(400, "该项目已有日报或周报记录，请改为停用")

    await db.execute(delete(WorkBreakdownShare).where(WorkBreakdownShare.project_id == project.id))
    await db.execute(delete(Todo).where(Todo.project_id == project.id))
    items = await work_breakdown.load_items(db, project.id, current_user.id)
    # children before parents
    for item in sorted(items, key=lambda i: i.level, reverse=True):
        await db.execute(delete(WorkBreakdownItem).where(WorkBreakdownItem.id == item.id))
    await db.delete(project)
    await db.commit()
    work_breakdown.tree_cache.invalidate((project_id, current_user.id))
    logger.info("project %s deleted by user %s", project_id, current_user.id)
    return {"message": "项目已删除"}
