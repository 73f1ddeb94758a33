from datetime import date
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from worklog.database import get_db
from worklog.core.auth import get_current_user
from worklog.models.project_report import ProjectWeeklyReport, ProjectWeeklyReportItem
from worklog.models.work_breakdown import WorkBreakdownItem
from worklog.schemas.project_report import (
    ProjectReportSave, ProjectReportResponse, ProjectReportItemResponse, ProjectReportSummary, ProjectReportWeek
)
from worklog.services.daily_reports import get_owned_projects
from worklog.services.periods import Period, compute_iso_week, iso_week

router = APIRouter(prefix="/api/project-reports", tags=["project-reports"])


def resolve_week(year: int, week: int) -> Period:
    try:
        return iso_week(year, week)
    except ValueError:
        raise HTTPException(400, "无效的周数")


def to_response(report: ProjectWeeklyReport, period: Period) -> ProjectReportResponse:
    return ProjectReportResponse(
        id=report.id,
        year=report.year,
        week_number=report.week_number,
        start_date=report.start_date,
        end_date=report.end_date,
        label=period.label,
        is_plan=report.is_plan,
        items=[ProjectReportItemResponse.model_validate(item) for item in report.items],
        updated_at=report.updated_at,
    )


async def _get_report(db: AsyncSession, user_id: int, year: int, week: int) -> Optional[ProjectWeeklyReport]:
    result = await db.execute(
        select(ProjectWeeklyReport)
        .where(ProjectWeeklyReport.user_id == user_id)
        .where(ProjectWeeklyReport.year == year)
        .where(ProjectWeeklyReport.week_number == week)
        .options(selectinload(ProjectWeeklyReport.items))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@router.get("", response_model=List[ProjectReportSummary])
async def list_project_reports(
    year: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    query = (
        select(ProjectWeeklyReport)
        .where(ProjectWeeklyReport.user_id == current_user.id)
        .order_by(ProjectWeeklyReport.year.desc(), ProjectWeeklyReport.week_number.desc())
    )
    if year is not None:
        query = query.where(ProjectWeeklyReport.year == year)
    reports = (await db.execute(query)).scalars().all()
    return [
        ProjectReportSummary(
            id=r.id,
            year=r.year,
            week_number=r.week_number,
            start_date=r.start_date,
            end_date=r.end_date,
            is_plan=r.is_plan,
            item_count=len(r.items),
        )
        for r in reports
    ]


@router.get("/current", response_model=ProjectReportWeek)
async def current_project_report_week(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """The ISO week containing today and whether its report exists yet."""
    period = compute_iso_week(date.today())
    report = await _get_report(db, current_user.id, period.year, period.index)
    return ProjectReportWeek(
        year=period.year,
        week_number=period.index,
        start_date=period.start_date,
        end_date=period.end_date,
        label=period.label,
        has_report=report is not None,
    )


@router.get("/{year}/{week}", response_model=ProjectReportResponse)
async def get_project_report(
    year: int,
    week: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    period = resolve_week(year, week)
    report = await _get_report(db, current_user.id, year, week)
    if not report:
        raise HTTPException(404, "周报不存在")
    return to_response(report, period)


@router.put("/{year}/{week}", response_model=ProjectReportResponse)
async def save_project_report(
    year: int,
    week: int,
    report_in: ProjectReportSave,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Replace the week's items in one transaction."""
    period = resolve_week(year, week)
    items = [i for i in report_in.items if i.project_id and i.content.strip()]
    if not items:
        raise HTTPException(400, "至少需要一条包含项目和内容的记录")

    projects = await get_owned_projects(db, current_user.id, (i.project_id for i in items))
    if len(projects) != len({i.project_id for i in items}):
        raise HTTPException(400, "项目不存在或无权限访问")

    work_item_ids = {i.work_item_id for i in items if i.work_item_id}
    if work_item_ids:
        result = await db.execute(
            select(WorkBreakdownItem.id, WorkBreakdownItem.project_id)
            .where(WorkBreakdownItem.id.in_(work_item_ids))
            .where(WorkBreakdownItem.user_id == current_user.id)
        )
        owners = dict(result.all())
        for i in items:
            if i.work_item_id and owners.get(i.work_item_id) != i.project_id:
                raise HTTPException(400, "工作项不存在或不属于该项目")

    report = await _get_report(db, current_user.id, year, week)
    if report is None:
        report = ProjectWeeklyReport(
            user_id=current_user.id,
            year=year,
            week_number=week,
            start_date=period.start_date,
            end_date=period.end_date,
            items=[],
        )
        db.add(report)
    report.is_plan = report_in.is_plan
    report.items.clear()
    await db.flush()
    for i in items:
        report.items.append(ProjectWeeklyReportItem(
            project_id=i.project_id,
            work_item_id=i.work_item_id,
            content=i.content.strip(),
        ))
    await db.commit()

    return to_response(await _get_report(db, current_user.id, year, week), period)


@router.delete("/{year}/{week}")
async def delete_project_report(
    year: int,
    week: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    resolve_week(year, week)
    report = await _get_report(db, current_user.id, year, week)
    if not report:
        raise HTTPException(404, "周报不存在")
    await db.delete(report)
    await db.commit()
    return {"message": "周报已删除"}
