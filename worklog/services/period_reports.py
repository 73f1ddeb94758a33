import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from worklog.models.report import PeriodReport
from worklog.services.aggregation import aggregate
from worklog.services.daily_reports import load_entries
from worklog.services.periods import Period

logger = logging.getLogger(__name__)

KEY_COLUMNS = ["user_id", "kind", "year", "period_index"]


class EmptyPeriodError(Exception):
    """Aggregation produced nothing and the caller did not confirm saving it."""

    def __init__(self, period: Period):
        super().__init__(f"no report data for {period.kind} {period.year}-{period.index}")
        self.period = period


class PeriodKeyConflictError(Exception):
    """The stored row under this (kind, year, index) key covers different dates.

    Monday-first week keys repeat when a year ends with a week starting on
    Dec 29-31: that week and the year's first week are both (year, 1).
    """

    def __init__(self, period: Period, stored: PeriodReport):
        super().__init__(
            f"{period.kind} {period.year}-{period.index} already holds "
            f"{stored.start_date}..{stored.end_date}"
        )
        self.period = period
        self.stored = stored


def _insert_for(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise RuntimeError(f"period report upsert not supported on {dialect}")


async def get_period_report(db: AsyncSession, user_id: int, kind: str, year: int, index: int):
    result = await db.execute(
        select(PeriodReport)
        .where(PeriodReport.user_id == user_id)
        .where(PeriodReport.kind == kind)
        .where(PeriodReport.year == year)
        .where(PeriodReport.period_index == index)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def upsert_period_report(db: AsyncSession, user_id: int, period: Period, content: str) -> PeriodReport:
    """Single-statement insert-or-update on the (user, kind, year, index) key."""
    now = datetime.now(timezone.utc)
    insert = _insert_for(db)
    stmt = insert(PeriodReport).values(
        user_id=user_id,
        kind=period.kind,
        year=period.year,
        period_index=period.index,
        start_date=period.start_date,
        end_date=period.end_date,
        content=content,
        status="generated",
        generated_at=now,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=KEY_COLUMNS,
        set_={
            "content": stmt.excluded.content,
            "status": "generated",
            "generated_at": stmt.excluded.generated_at,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    await db.execute(stmt)
    await db.commit()
    return await get_period_report(db, user_id, period.kind, period.year, period.index)


async def generate_period_report(db: AsyncSession, user_id: int, period: Period, confirm_empty: bool = False) -> PeriodReport:
    stored = await get_period_report(db, user_id, period.kind, period.year, period.index)
    if stored is not None and stored.start_date != period.start_date:
        raise PeriodKeyConflictError(period, stored)

    entries = await load_entries(db, user_id, period.start_date, period.end_date)
    content = aggregate(entries, period)
    if not content and not confirm_empty:
        raise EmptyPeriodError(period)

    report = await upsert_period_report(db, user_id, period, content)
    logger.info(
        "generated %s report %s-%s for user %s (%d chars)",
        period.kind, period.year, period.index, user_id, len(content),
    )
    return report


async def get_period_reports(
    db: AsyncSession, user_id: int, kind: str, periods: Iterable[Period]
) -> Dict[Tuple[int, int], PeriodReport]:
    starts = {(p.year, p.index): p.start_date for p in periods}
    if not starts:
        return {}
    result = await db.execute(
        select(PeriodReport)
        .where(PeriodReport.user_id == user_id)
        .where(PeriodReport.kind == kind)
        .where(PeriodReport.year.in_({year for year, _ in starts}))
    )
    # a shared week key only counts when the stored dates match too
    return {
        (report.year, report.period_index): report
        for report in result.scalars().all()
        if starts.get((report.year, report.period_index)) == report.start_date
    }
