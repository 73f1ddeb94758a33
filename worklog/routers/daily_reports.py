import logging
from datetime import date
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from worklog.database import get_db
from worklog.core.auth import get_current_user
from worklog.models.project import Project
from worklog.models.report import DailyReport, ReportItem
from worklog.schemas.report import (
    DailyReportCreate, DailyReportImport, DailyReportResponse, ReportItemResponse, DailyReportImportResponse
)
from worklog.services.aggregation import DailyEntry, format_line
from worklog.services.daily_reports import (
    get_owned_projects, get_or_create_daily_report, append_item, mark_report_edited, load_daily_reports
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/daily-reports", tags=["daily-reports"])


def to_response(report: DailyReport) -> DailyReportResponse:
    return DailyReportResponse(
        id=report.id,
        date=report.date,
        is_plan=report.is_plan,
        items=[
            ReportItemResponse(
                id=item.id,
                project_id=item.project_id,
                project_name=item.project.name,
                project_code=item.project.code,
                content=item.content,
                position=item.position,
            )
            for item in report.items
        ],
        content=DailyEntry.from_report(report).to_text(),
        created_at=report.created_at,
        updated_at=report.updated_at,
    )


async def _reload(db: AsyncSession, report_id: int) -> DailyReport:
    result = await db.execute(
        select(DailyReport)
        .where(DailyReport.id == report_id)
        .options(selectinload(DailyReport.items).selectinload(ReportItem.project))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _get_owned_report(db: AsyncSession, report_id: int, user_id: int) -> DailyReport:
    result = await db.execute(
        select(DailyReport)
        .where(DailyReport.id == report_id)
        .where(DailyReport.user_id == user_id)
        .options(selectinload(DailyReport.items).selectinload(ReportItem.project))
    )
    report = result.scalar_one_or_none()
    if not report:
        raise HTTPException(404, "日报不存在或无权限访问")
    return report


@router.post("", response_model=DailyReportResponse)
async def save_daily_report(
    report_in: DailyReportCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Create or replace the user's entry for (date, is_plan)."""
    projects = await get_owned_projects(db, current_user.id, (item.project_id for item in report_in.items))
    missing = {item.project_id for item in report_in.items} - set(projects)
    if missing:
        raise HTTPException(400, f"项目不存在或无权限访问: {sorted(missing)}")

    items = [item for item in report_in.items if item.content.strip()]
    if not items:
        raise HTTPException(400, "至少需要一条工作记录")

    report = await get_or_create_daily_report(db, current_user.id, report_in.date, report_in.is_plan)
    report.items.clear()
    await db.flush()
    for item in items:
        append_item(report, projects[item.project_id], item.content.strip())
    mark_report_edited(current_user)

    db.add_all([report, current_user])
    await db.commit()
    return to_response(await _reload(db, report.id))


@router.post("/import", response_model=DailyReportImportResponse)
async def import_daily_report(
    import_in: DailyReportImport,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Import a legacy free-text entry of "[Name (Code)] text" lines, appending to the day."""
    result = await db.execute(select(Project).where(Project.user_id == current_user.id))
    by_key = {(p.name, p.code or ""): p for p in result.scalars().all()}

    entry = DailyEntry.from_text(import_in.date, import_in.content, import_in.is_plan)
    matched, skipped = [], []
    for line in entry.lines:
        project = by_key.get((line.project_name, line.project_code))
        if project is None or not line.text.strip():
            skipped.append(format_line(line))
            continue
        matched.append((project, line.text.strip()))
    skipped.extend(entry.unparsed)

    if not matched:
        return DailyReportImportResponse(report=None, imported=0, skipped_lines=skipped)

    report = await get_or_create_daily_report(db, current_user.id, import_in.date, import_in.is_plan)
    for project, text in matched:
        append_item(report, project, text)
    mark_report_edited(current_user)
    db.add_all([report, current_user])
    await db.commit()

    if skipped:
        logger.warning("import for user %s skipped %d lines", current_user.id, len(skipped))
    return DailyReportImportResponse(
        report=to_response(await _reload(db, report.id)),
        imported=len(matched),
        skipped_lines=skipped,
    )


@router.get("", response_model=List[DailyReportResponse])
async def list_daily_reports(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    is_plan: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(400, "开始日期不能晚于结束日期")
    reports = await load_daily_reports(db, current_user.id, start_date, end_date, is_plan)
    return [to_response(report) for report in reports]


@router.get("/{report_id}", response_model=DailyReportResponse)
async def get_daily_report(
    report_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return to_response(await _get_owned_report(db, report_id, current_user.id))


@router.delete("/{report_id}")
async def delete_daily_report(
    report_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    report = await _get_owned_report(db, report_id, current_user.id)
    await db.delete(report)
    mark_report_edited(current_user)
    db.add(current_user)
    await db.commit()
    return {"message": "日报已删除"}
