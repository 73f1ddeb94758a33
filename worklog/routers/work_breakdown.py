from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from worklog.database import get_db
from worklog.core.auth import get_current_user
from worklog.routers.projects import get_owned_project
from worklog.schemas.work_breakdown import (
    WorkItemCreate, WorkItemUpdate, WorkItemMove, WorkItemResponse,
    WorkBreakdownTreeResponse, WorkItemDeleteResponse
)
from worklog.services import work_breakdown
from worklog.services.work_breakdown import WorkBreakdownError

router = APIRouter(prefix="/api/work-breakdown", tags=["work-breakdown"])


async def _get_owned_item(db: AsyncSession, item_id: int, user_id: int):
    item = await work_breakdown.get_item(db, item_id, user_id)
    if not item:
        raise HTTPException(404, "工作项不存在或无权限访问")
    return item


@router.get("/{project_id}", response_model=WorkBreakdownTreeResponse)
async def get_tree(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await get_owned_project(db, project_id, current_user.id)
    tree = await work_breakdown.get_tree(db, project_id, current_user.id)
    return WorkBreakdownTreeResponse(project_id=project_id, items=tree)


@router.post("/{project_id}/items", response_model=WorkItemResponse, status_code=201)
async def create_item(
    project_id: int,
    item_in: WorkItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await get_owned_project(db, project_id, current_user.id)
    fields = item_in.model_dump(exclude={"parent_id"})
    fields["name"] = fields["name"].strip()
    try:
        return await work_breakdown.add_item(db, project_id, current_user.id, item_in.parent_id, fields)
    except WorkBreakdownError as e:
        raise HTTPException(400, str(e))


@router.put("/items/{item_id}", response_model=WorkItemResponse)
async def update_item(
    item_id: int,
    item_in: WorkItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    item = await _get_owned_item(db, item_id, current_user.id)
    fields = item_in.model_dump(exclude_unset=True)
    if fields.get("name") is not None:
        fields["name"] = fields["name"].strip()
    # status and name can not be cleared
    for required in ("name", "status", "position"):
        if required in fields and fields[required] is None:
            del fields[required]
    return await work_breakdown.update_item(db, item, fields)


@router.post("/items/{item_id}/move", response_model=WorkItemResponse)
async def move_item(
    item_id: int,
    move_in: WorkItemMove,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    item = await _get_owned_item(db, item_id, current_user.id)
    try:
        return await work_breakdown.move_item(db, item, move_in.parent_id, move_in.position)
    except WorkBreakdownError as e:
        raise HTTPException(400, str(e))


@router.delete("/items/{item_id}", response_model=WorkItemDeleteResponse)
async def delete_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    item = await _get_owned_item(db, item_id, current_user.id)
    deleted = await work_breakdown.delete_item(db, item)
    return WorkItemDeleteResponse(message="工作项已删除", deleted=deleted)
