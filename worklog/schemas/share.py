from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from .work_breakdown import WorkItemNode

class ShareCreate(BaseModel):
    project_id: int
    password: Optional[str] = Field(None, max_length=100)
    expires_in_days: Optional[int] = Field(None, ge=1, le=365)

class ShareUpdate(BaseModel):
    password: Optional[str] = Field(None, max_length=100)  # "" removes the password
    expires_in_days: Optional[int] = Field(None, ge=1, le=365)  # null removes the expiry
    is_active: Optional[bool] = None

class SharePasswordCheck(BaseModel):
    password: str = Field(..., min_length=1)

class ShareResponse(BaseModel):
    id: int
    share_token: str
    share_url: str
    project_id: int
    project_name: Optional[str]
    project_code: Optional[str]
    has_password: bool
    expires_at: Optional[datetime]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

class ShareListResponse(BaseModel):
    shares: List[ShareResponse]

class SharedProject(BaseModel):
    id: int
    name: str
    code: Optional[str]
    description: Optional[str]

class ShareInfo(BaseModel):
    has_password: bool
    expires_at: Optional[datetime]

class PublicShareResponse(BaseModel):
    project: SharedProject
    work_items: List[WorkItemNode]
    share_info: ShareInfo
