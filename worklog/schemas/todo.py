from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List, Dict, Literal

Priority = Literal["high", "medium", "low"]
Status = Literal["not_started", "in_progress", "completed"]

class TodoCreate(BaseModel):
    project_id: int
    content: str = Field(..., min_length=1, max_length=500)
    priority: Priority = "medium"
    due_date: Optional[date] = None  # defaults to tomorrow
    status: Literal["not_started", "in_progress"] = "not_started"

    @field_validator("content")
    @classmethod
    def single_line(cls, value):
        if "\n" in value or "\r" in value:
            raise ValueError("内容不能包含换行")
        return value

class TodoUpdate(BaseModel):
    content: Optional[str] = Field(None, min_length=1, max_length=500)
    priority: Optional[Priority] = None
    due_date: Optional[date] = None
    status: Optional[Status] = None

    @field_validator("content")
    @classmethod
    def single_line(cls, value):
        if value is not None and ("\n" in value or "\r" in value):
            raise ValueError("内容不能包含换行")
        return value

class TodoComplete(BaseModel):
    completed_date: date

class TodoResponse(BaseModel):
    id: int
    project_id: int
    content: str
    priority: str
    due_date: date
    status: str
    completed_at: Optional[datetime]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}

class WeekTodoResponse(TodoResponse):
    project_name: str

class CountsResponse(BaseModel):
    high: int
    medium: int
    low: int
    in_progress: int
    not_started: int

    model_config = {"from_attributes": True}

class TodoSummaryResponse(BaseModel):
    per_project: Dict[int, CountsResponse]
    overall: CountsResponse
    recently_completed: List[TodoResponse]

class TodoCompleteResponse(BaseModel):
    todo: TodoResponse
    daily_report_id: int
    daily_report_date: date

class TodoDeleteResponse(BaseModel):
    message: str
    remaining_active: int
