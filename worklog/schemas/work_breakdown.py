from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Literal

WorkStatus = Literal["未开始", "进行中", "已暂停", "已完成"]

class WorkItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    position: Optional[int] = Field(None, ge=0)
    status: WorkStatus = "未开始"
    tags: Optional[str] = None
    members: Optional[str] = None
    progress_notes: Optional[str] = None
    planned_start_time: Optional[datetime] = None
    planned_end_time: Optional[datetime] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    is_milestone: bool = False

class WorkItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    position: Optional[int] = Field(None, ge=0)
    is_expanded: Optional[bool] = None
    status: Optional[WorkStatus] = None
    tags: Optional[str] = None
    members: Optional[str] = None
    progress_notes: Optional[str] = None
    planned_start_time: Optional[datetime] = None
    planned_end_time: Optional[datetime] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    is_milestone: Optional[bool] = None

class WorkItemMove(BaseModel):
    parent_id: Optional[int] = None
    position: Optional[int] = Field(None, ge=0)

class WorkItemResponse(BaseModel):
    id: int
    project_id: int
    parent_id: Optional[int]
    name: str
    description: Optional[str]
    level: int
    position: int
    is_expanded: Optional[bool]
    status: str
    tags: Optional[str]
    members: Optional[str]
    progress_notes: Optional[str]
    planned_start_time: Optional[datetime]
    planned_end_time: Optional[datetime]
    actual_start_time: Optional[datetime]
    actual_end_time: Optional[datetime]
    is_milestone: Optional[bool]

    model_config = {"from_attributes": True}

class WorkItemNode(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    level: int
    position: int
    is_expanded: Optional[bool] = None
    status: Optional[str] = None
    tags: Optional[str] = None
    members: Optional[str] = None
    progress_notes: Optional[str] = None
    planned_start_time: Optional[datetime] = None
    planned_end_time: Optional[datetime] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    is_milestone: Optional[bool] = None
    progress: float
    children: List["WorkItemNode"] = []

class WorkBreakdownTreeResponse(BaseModel):
    project_id: int
    items: List[WorkItemNode]

class WorkItemDeleteResponse(BaseModel):
    message: str
    deleted: int

WorkItemNode.model_rebuild()
