from sqlalchemy import Column, Integer, Text, Date, DateTime, Boolean, ForeignKey, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
from worklog.database import Base

class ProjectWeeklyReport(Base):
    __tablename__ = "project_weekly_reports"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)         # ISO week-numbering year
    week_number = Column(Integer, nullable=False)  # ISO week, 1..53
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_plan = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "ProjectWeeklyReportItem",
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="ProjectWeeklyReportItem.id",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "year", "week_number", name="uq_project_weekly_report_key"),
        CheckConstraint("week_number >= 1 AND week_number <= 53", name="ck_project_weekly_week"),
    )


class ProjectWeeklyReportItem(Base):
    __tablename__ = "project_weekly_report_items"

    id = Column(Integer, primary_key=True, index=True)
    report_id = Column(Integer, ForeignKey("project_weekly_reports.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    work_item_id = Column(Integer, ForeignKey("work_breakdown_items.id", ondelete="SET NULL"), nullable=True, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    report = relationship("ProjectWeeklyReport", back_populates="items")
