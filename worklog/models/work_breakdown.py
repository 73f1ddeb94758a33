from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from worklog.database import Base

class WorkBreakdownItem(Base):
    __tablename__ = "work_breakdown_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("work_breakdown_items.id"), nullable=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    level = Column(Integer, nullable=False, default=0)     # 0..4
    position = Column(Integer, nullable=False, default=0)  # order among siblings
    is_expanded = Column(Boolean, default=True)
    status = Column(String(8), nullable=False, default="未开始")
    tags = Column(Text, nullable=True)     # comma separated
    members = Column(Text, nullable=True)  # comma separated
    progress_notes = Column(Text, nullable=True)
    planned_start_time = Column(DateTime(timezone=True), nullable=True)
    planned_end_time = Column(DateTime(timezone=True), nullable=True)
    actual_start_time = Column(DateTime(timezone=True), nullable=True)
    actual_end_time = Column(DateTime(timezone=True), nullable=True)
    is_milestone = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("level >= 0 AND level <= 4", name="ck_work_item_level"),
    )


class WorkBreakdownShare(Base):
    __tablename__ = "work_breakdown_shares"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    share_token = Column(String(32), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    project = relationship("Project", lazy="selectin")
