from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List, Literal

class ReportItemIn(BaseModel):
    project_id: int
    content: str = Field(..., min_length=1, max_length=500)

    @field_validator("content")
    @classmethod
    def single_line(cls, value):
        if "\n" in value or "\r" in value:
            raise ValueError("内容不能包含换行")
        return value

class DailyReportCreate(BaseModel):
    date: date
    is_plan: bool = False
    items: List[ReportItemIn] = Field(..., min_length=1)

class DailyReportImport(BaseModel):
    date: date
    is_plan: bool = False
    content: str = Field(..., min_length=1)

class ReportItemResponse(BaseModel):
    id: int
    project_id: int
    project_name: str
    project_code: Optional[str]
    content: str
    position: int

class DailyReportResponse(BaseModel):
    id: int
    date: date
    is_plan: bool
    items: List[ReportItemResponse]
    content: str  # legacy "[Name (Code)] text" rendering, one line per item
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

class DailyReportImportResponse(BaseModel):
    report: Optional[DailyReportResponse]
    imported: int
    skipped_lines: List[str]


class DayStatusResponse(BaseModel):
    date: date
    has_report: bool
    is_plan: bool

class PeriodSummary(BaseModel):
    year: int
    index: int  # week number or month number
    start_date: date
    end_date: date
    label: str
    report_status: str  # "generated", "pending", "not_available"
    generated_at: Optional[datetime] = None
    daily_status: List[DayStatusResponse]

class WeeklyGenerateRequest(BaseModel):
    reference_date: date
    confirm_empty: bool = False

class MonthlyGenerateRequest(BaseModel):
    year: int = Field(..., ge=1900, le=2100)
    month: int = Field(..., ge=1, le=12)
    confirm_empty: bool = False

class PeriodReportUpdate(BaseModel):
    content: str

class PeriodReportResponse(BaseModel):
    id: int
    kind: Literal["week", "month"]
    year: int
    period_index: int
    start_date: date
    end_date: date
    content: str
    status: str  # "generated" or "draft"
    generated_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

class PeriodPreviewResponse(BaseModel):
    kind: Literal["week", "month"]
    year: int
    period_index: int
    start_date: date
    end_date: date
    label: str
    content: str
    is_empty: bool
