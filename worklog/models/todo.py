from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, func
from worklog.database import Base

class Todo(Base):
    __tablename__ = "project_todos"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    priority = Column(String(8), nullable=False, default="medium")      # high, medium, low
    due_date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False, default="not_started")  # not_started, in_progress, completed
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
