import logging
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete
from worklog.models.work_breakdown import WorkBreakdownShare

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"^[a-f0-9]{32}$", re.IGNORECASE)

ACTIVE = "active"
DISABLED = "disabled"
EXPIRED = "expired"


def generate_share_token() -> str:
    return secrets.token_hex(16)


def is_valid_share_token(token: str) -> bool:
    return bool(token and TOKEN_PATTERN.match(token))


def _as_utc(moment: datetime) -> datetime:
    # SQLite drops tzinfo; stored values are UTC
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def expiry_from_days(expires_in_days: Optional[int], now: Optional[datetime] = None) -> Optional[datetime]:
    if not expires_in_days:
        return None
    return (now or datetime.now(timezone.utc)) + timedelta(days=expires_in_days)


def share_state(share: WorkBreakdownShare, now: Optional[datetime] = None) -> str:
    if not share.is_active:
        return DISABLED
    if share.expires_at is not None and (now or datetime.now(timezone.utc)) > _as_utc(share.expires_at):
        return EXPIRED
    return ACTIVE


def build_share_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/share/{token}"


async def cleanup_expired_shares(db: AsyncSession) -> int:
    """Delete expired shares in the caller's transaction; the caller commits."""
    result = await db.execute(
        delete(WorkBreakdownShare)
        .where(WorkBreakdownShare.expires_at.is_not(None))
        .where(WorkBreakdownShare.expires_at < datetime.now(timezone.utc))
    )
    if result.rowcount:
        logger.info("purging %d expired shares", result.rowcount)
    return result.rowcount or 0
