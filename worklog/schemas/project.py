from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

class ProjectCreate(BaseModel):
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True

    @field_validator("name", "code", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "code", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

class ProjectResponse(BaseModel):
    id: int
    name: str
    code: Optional[str]
    description: Optional[str]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]
    total: int

class ProjectCreatedResponse(BaseModel):
    project: ProjectResponse
    message: str
