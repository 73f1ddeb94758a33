from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from worklog.models.project import Project
from worklog.models.report import DailyReport, ReportItem
from worklog.services.aggregation import DailyEntry


async def get_owned_projects(db: AsyncSession, user_id: int, project_ids: Iterable[int]) -> Dict[int, Project]:
    ids = set(project_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(Project)
        .where(Project.user_id == user_id)
        .where(Project.id.in_(ids))
    )
    return {project.id: project for project in result.scalars().all()}


async def get_daily_report(db: AsyncSession, user_id: int, day: date, is_plan: bool) -> Optional[DailyReport]:
    result = await db.execute(
        select(DailyReport)
        .where(DailyReport.user_id == user_id)
        .where(DailyReport.date == day)
        .where(DailyReport.is_plan == is_plan)
        .options(selectinload(DailyReport.items).selectinload(ReportItem.project))
    )
    return result.scalar_one_or_none()


async def get_or_create_daily_report(db: AsyncSession, user_id: int, day: date, is_plan: bool = False) -> DailyReport:
    report = await get_daily_report(db, user_id, day, is_plan)
    if report is None:
        report = DailyReport(user_id=user_id, date=day, is_plan=is_plan, items=[])
        db.add(report)
        await db.flush()
    return report


def append_item(report: DailyReport, project: Project, content: str) -> ReportItem:
    position = max((item.position for item in report.items), default=-1) + 1
    item = ReportItem(project_id=project.id, project=project, content=content, position=position)
    report.items.append(item)
    return item


def mark_report_edited(user) -> None:
    user.last_report_edit_at = datetime.now(timezone.utc)


async def load_daily_reports(
    db: AsyncSession,
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    is_plan: Optional[bool] = None,
) -> List[DailyReport]:
    query = (
        select(DailyReport)
        .where(DailyReport.user_id == user_id)
        .options(selectinload(DailyReport.items).selectinload(ReportItem.project))
        .order_by(DailyReport.date, DailyReport.is_plan)
    )
    if start_date is not None:
        query = query.where(DailyReport.date >= start_date)
    if end_date is not None:
        query = query.where(DailyReport.date <= end_date)
    if is_plan is not None:
        query = query.where(DailyReport.is_plan == is_plan)
    result = await db.execute(query)
    return list(result.scalars().all())


async def load_entries(db: AsyncSession, user_id: int, start_date: date, end_date: date) -> List[DailyEntry]:
    reports = await load_daily_reports(db, user_id, start_date, end_date)
    return [DailyEntry.from_report(report) for report in reports]
