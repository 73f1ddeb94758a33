import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from worklog.config import settings
from worklog.database import get_db
from worklog.core.auth import get_current_user
from worklog.models.work_breakdown import WorkBreakdownShare
from worklog.routers.projects import get_owned_project
from worklog.schemas.share import (
    ShareCreate, ShareUpdate, SharePasswordCheck, ShareResponse, ShareListResponse,
    SharedProject, ShareInfo, PublicShareResponse
)
from worklog.services import work_breakdown
from worklog.services.shares import (
    DISABLED, EXPIRED, generate_share_token, is_valid_share_token, expiry_from_days,
    share_state, build_share_url, cleanup_expired_shares
)
from worklog.utils.password import hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/work-breakdown-shares", tags=["shares"])
public_router = APIRouter(prefix="/api/share", tags=["shares"])


def _base_url(request: Request) -> str:
    return settings.SITE_URL or str(request.base_url)


def to_response(share: WorkBreakdownShare, base_url: str) -> ShareResponse:
    return ShareResponse(
        id=share.id,
        share_token=share.share_token,
        share_url=build_share_url(base_url, share.share_token),
        project_id=share.project_id,
        project_name=share.project.name if share.project else None,
        project_code=share.project.code if share.project else None,
        has_password=bool(share.password_hash),
        expires_at=share.expires_at,
        is_active=share.is_active,
        created_at=share.created_at,
        updated_at=share.updated_at,
    )


async def _get_owned_share(db: AsyncSession, share_id: int, user_id: int) -> WorkBreakdownShare:
    result = await db.execute(
        select(WorkBreakdownShare)
        .where(WorkBreakdownShare.id == share_id)
        .where(WorkBreakdownShare.user_id == user_id)
    )
    share = result.scalar_one_or_none()
    if not share:
        raise HTTPException(404, "分享不存在或无权限访问")
    return share


@router.post("", response_model=ShareResponse, status_code=201)
async def create_share(
    share_in: ShareCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await get_owned_project(db, share_in.project_id, current_user.id)
    await cleanup_expired_shares(db)

    share = WorkBreakdownShare(
        user_id=current_user.id,
        project_id=share_in.project_id,
        share_token=generate_share_token(),
        password_hash=hash_password(share_in.password) if share_in.password else None,
        expires_at=expiry_from_days(share_in.expires_in_days),
        is_active=True
    )
    db.add(share)
    await db.commit()
    await db.refresh(share, attribute_names=["project", "created_at", "updated_at"])
    logger.info("share %s created for project %s by user %s", share.id, share.project_id, current_user.id)
    return to_response(share, _base_url(request))


@router.get("", response_model=ShareListResponse)
async def list_shares(
    request: Request,
    project_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    query = (
        select(WorkBreakdownShare)
        .where(WorkBreakdownShare.user_id == current_user.id)
        .order_by(WorkBreakdownShare.created_at.desc(), WorkBreakdownShare.id.desc())
    )
    if project_id is not None:
        query = query.where(WorkBreakdownShare.project_id == project_id)
    shares = (await db.execute(query)).scalars().all()
    base_url = _base_url(request)
    return ShareListResponse(shares=[to_response(share, base_url) for share in shares])


@router.put("/{share_id}", response_model=ShareResponse)
async def update_share(
    share_id: int,
    share_in: ShareUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    share = await _get_owned_share(db, share_id, current_user.id)
    provided = share_in.model_fields_set

    if "password" in provided:
        share.password_hash = hash_password(share_in.password) if share_in.password else None
    if "expires_in_days" in provided:
        share.expires_at = expiry_from_days(share_in.expires_in_days)
    if share_in.is_active is not None:
        share.is_active = share_in.is_active

    db.add(share)
    await db.commit()
    await db.refresh(share)
    return to_response(share, _base_url(request))


@router.delete("/{share_id}")
async def delete_share(
    share_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    share = await _get_owned_share(db, share_id, current_user.id)
    await db.delete(share)
    await db.commit()
    return {"message": "分享已删除"}


async def _get_public_share(db: AsyncSession, token: str) -> WorkBreakdownShare:
    if not is_valid_share_token(token):
        raise HTTPException(400, "无效的分享链接")
    result = await db.execute(
        select(WorkBreakdownShare).where(WorkBreakdownShare.share_token == token)
    )
    share = result.scalar_one_or_none()
    if not share:
        raise HTTPException(404, "分享不存在")

    state = share_state(share)
    if state == DISABLED:
        raise HTTPException(403, "分享已被停用")
    if state == EXPIRED:
        raise HTTPException(403, "分享链接已过期")
    return share


def _password_required(detail: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": detail, "requires_password": True})


@public_router.get("/{token}", response_model=PublicShareResponse)
async def view_share(
    token: str,
    password: Optional[str] = None,
    project_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db)
):
    share = await _get_public_share(db, token)
    if share.password_hash:
        if not password:
            return _password_required("该分享需要密码访问")
        if not verify_password(password, share.password_hash):
            return _password_required("密码错误")
    if project_id is not None and project_id != share.project_id:
        raise HTTPException(404, "分享不存在")

    project = share.project
    tree = await work_breakdown.get_tree(db, share.project_id, share.user_id)
    return PublicShareResponse(
        project=SharedProject(id=project.id, name=project.name, code=project.code, description=project.description),
        work_items=tree,
        share_info=ShareInfo(has_password=bool(share.password_hash), expires_at=share.expires_at),
    )


@public_router.post("/{token}")
async def check_share_password(
    token: str,
    check_in: SharePasswordCheck,
    db: AsyncSession = Depends(get_db)
):
    share = await _get_public_share(db, token)
    if not share.password_hash:
        raise HTTPException(400, "该分享未设置密码")
    if not verify_password(check_in.password, share.password_hash):
        raise HTTPException(401, "密码错误")
    return {"message": "密码验证成功"}
