from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List

class ProjectReportItemIn(BaseModel):
    project_id: Optional[int] = None
    work_item_id: Optional[int] = None
    content: str = ""

class ProjectReportSave(BaseModel):
    is_plan: bool = False
    items: List[ProjectReportItemIn]

class ProjectReportItemResponse(BaseModel):
    id: int
    project_id: int
    work_item_id: Optional[int]
    content: str

    model_config = {"from_attributes": True}

class ProjectReportResponse(BaseModel):
    id: int
    year: int
    week_number: int
    start_date: date
    end_date: date
    label: str
    is_plan: bool
    items: List[ProjectReportItemResponse]
    updated_at: Optional[datetime]

class ProjectReportSummary(BaseModel):
    id: int
    year: int
    week_number: int
    start_date: date
    end_date: date
    is_plan: bool
    item_count: int

class ProjectReportWeek(BaseModel):
    year: int
    week_number: int
    start_date: date
    end_date: date
    label: str
    has_report: bool
