import logging
from datetime import date, datetime, timezone
from typing import List, Literal
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from worklog.config import settings
from worklog.database import get_db
from worklog.core.auth import get_current_user
from worklog.schemas.report import (
    PeriodSummary, DayStatusResponse, WeeklyGenerateRequest, MonthlyGenerateRequest,
    PeriodReportUpdate, PeriodReportResponse, PeriodPreviewResponse
)
from worklog.services import periods as period_calc
from worklog.services.aggregation import aggregate, daily_status, completion_status, GENERATED, PENDING
from worklog.services.daily_reports import load_entries
from worklog.services.period_reports import (
    EmptyPeriodError, PeriodKeyConflictError, generate_period_report, get_period_report, get_period_reports
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])

KINDS = {"weekly": period_calc.WEEK, "monthly": period_calc.MONTH}

EMPTY_PERIOD_DETAIL = "该周期内没有日报数据，确认后才会保存空报告"
KEY_CONFLICT_DETAIL = "该周编号已被同年另一周的报告占用，无法覆盖"


def resolve_period(kind: str, year: int, index: int) -> period_calc.Period:
    try:
        if KINDS[kind] == period_calc.WEEK:
            return period_calc.week_from_key(year, index)
        if not 1 <= index <= 12:
            raise ValueError("month out of range")
        return period_calc.month_from_key(year, index)
    except ValueError:
        raise HTTPException(400, "无效的报告周期")


async def _list_periods(db: AsyncSession, user_id: int, periods: List[period_calc.Period], with_days: bool):
    """Status rows for a window of periods, newest first."""
    start = min(p.start_date for p in periods)
    end = max(p.end_date for p in periods)
    entries = await load_entries(db, user_id, start, end)
    stored = await get_period_reports(db, user_id, periods[0].kind, periods)

    summaries = []
    for period in periods:
        report = stored.get((period.year, period.index))
        if report is not None:
            status = GENERATED
        elif period.kind == period_calc.WEEK:
            # weeks can always be generated
            status = PENDING
        else:
            status = completion_status(entries, period)

        days = daily_status(entries, period) if with_days else []
        summaries.append(PeriodSummary(
            year=period.year,
            index=period.index,
            start_date=period.start_date,
            end_date=period.end_date,
            label=period.label,
            report_status=status,
            generated_at=report.generated_at if report is not None else None,
            daily_status=[DayStatusResponse(date=d.date, has_report=d.has_report, is_plan=d.is_plan) for d in days],
        ))
    return summaries


@router.get("/weekly", response_model=List[PeriodSummary])
async def list_weekly_reports(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    weeks = period_calc.trailing_weeks(date.today(), settings.WEEKLY_REPORT_WINDOW)
    return await _list_periods(db, current_user.id, weeks, with_days=True)


@router.get("/monthly", response_model=List[PeriodSummary])
async def list_monthly_reports(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    months = period_calc.trailing_months(date.today(), settings.MONTHLY_REPORT_WINDOW)
    return await _list_periods(db, current_user.id, months, with_days=False)


async def _generate(db: AsyncSession, user_id: int, period: period_calc.Period, confirm_empty: bool):
    try:
        return await generate_period_report(db, user_id, period, confirm_empty)
    except EmptyPeriodError:
        logger.warning("refused empty %s report %s-%s for user %s", period.kind, period.year, period.index, user_id)
        raise HTTPException(400, EMPTY_PERIOD_DETAIL)
    except PeriodKeyConflictError as e:
        logger.warning(
            "refused %s report %s-%s for user %s: key holds %s",
            period.kind, period.year, period.index, user_id, e.stored.start_date,
        )
        raise HTTPException(409, KEY_CONFLICT_DETAIL)


@router.post("/weekly/generate", response_model=PeriodReportResponse)
async def generate_weekly_report(
    request: WeeklyGenerateRequest,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    period = period_calc.compute_week(request.reference_date)
    return await _generate(db, current_user.id, period, request.confirm_empty)


@router.post("/monthly/generate", response_model=PeriodReportResponse)
async def generate_monthly_report(
    request: MonthlyGenerateRequest,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    period = period_calc.month_from_key(request.year, request.month)
    return await _generate(db, current_user.id, period, request.confirm_empty)


@router.get("/{kind}/{year}/{index}", response_model=PeriodReportResponse)
async def get_report(
    kind: Literal["weekly", "monthly"],
    year: int,
    index: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    period = resolve_period(kind, year, index)
    report = await get_period_report(db, current_user.id, period.kind, period.year, period.index)
    if not report:
        raise HTTPException(404, "报告尚未生成")
    return report


@router.put("/{kind}/{year}/{index}", response_model=PeriodReportResponse)
async def update_report(
    kind: Literal["weekly", "monthly"],
    year: int,
    index: int,
    report_in: PeriodReportUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    period = resolve_period(kind, year, index)
    report = await get_period_report(db, current_user.id, period.kind, period.year, period.index)
    if not report:
        raise HTTPException(404, "报告尚未生成")

    report.content = report_in.content
    report.status = "draft"
    report.updated_at = datetime.now(timezone.utc)
    db.add(report)
    await db.commit()
    await db.refresh(report)
    return report


@router.get("/{kind}/{year}/{index}/preview", response_model=PeriodPreviewResponse)
async def preview_report(
    kind: Literal["weekly", "monthly"],
    year: int,
    index: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    period = resolve_period(kind, year, index)
    entries = await load_entries(db, current_user.id, period.start_date, period.end_date)
    content = aggregate(entries, period)
    return PeriodPreviewResponse(
        kind=period.kind,
        year=period.year,
        period_index=period.index,
        start_date=period.start_date,
        end_date=period.end_date,
        label=period.label,
        content=content,
        is_empty=not content,
    )
