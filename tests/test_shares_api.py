from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update

from conftest import create_project, register_and_login
from worklog.models.work_breakdown import WorkBreakdownShare


async def make_share(client, headers, project_id, **extra):
    resp = await client.post("/api/work-breakdown-shares", json={"project_id": project_id, **extra}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_create_share_returns_url(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    share = await make_share(client, auth_headers, alpha["id"], expires_in_days=7)

    assert len(share["share_token"]) == 32
    assert share["share_url"] == f"http://test/share/{share['share_token']}"
    assert share["has_password"] is False
    assert share["expires_at"] is not None
    assert share["project_name"] == "Alpha"


async def test_share_requires_own_project_and_valid_expiry(client, auth_headers):
    other = await register_and_login(client, email="bob@example.com")
    theirs = await create_project(client, other, name="Theirs", code="T")

    resp = await client.post("/api/work-breakdown-shares", json={"project_id": theirs["id"]}, headers=auth_headers)
    assert resp.status_code == 404

    mine = await create_project(client, auth_headers)
    resp = await client.post(
        "/api/work-breakdown-shares",
        json={"project_id": mine["id"], "expires_in_days": 366},
        headers=auth_headers,
    )
    assert resp.status_code == 422


async def test_public_view_without_password(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    await client.post(f"/api/work-breakdown/{alpha['id']}/items", json={"name": "root"}, headers=auth_headers)
    share = await make_share(client, auth_headers, alpha["id"])

    resp = await client.get(f"/api/share/{share['share_token']}")
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["project"]["name"] == "Alpha"
    assert [n["name"] for n in body["work_items"]] == ["root"]
    assert body["share_info"] == {"has_password": False, "expires_at": None}


async def test_public_view_error_cases(client, auth_headers, session_factory):
    alpha = await create_project(client, auth_headers)
    share = await make_share(client, auth_headers, alpha["id"])
    token = share["share_token"]

    assert (await client.get("/api/share/not-a-token")).status_code == 400
    resp = await client.get(f"/api/share/{'0' * 32}")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "分享不存在"

    resp = await client.get(f"/api/share/{token}", params={"project_id": alpha["id"] + 100})
    assert resp.status_code == 404

    await client.put(f"/api/work-breakdown-shares/{share['id']}", json={"is_active": False}, headers=auth_headers)
    resp = await client.get(f"/api/share/{token}")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "分享已被停用"

    await client.put(f"/api/work-breakdown-shares/{share['id']}", json={"is_active": True}, headers=auth_headers)
    async with session_factory() as session:
        await session.execute(
            update(WorkBreakdownShare)
            .where(WorkBreakdownShare.id == share["id"])
            .values(expires_at=datetime.now(timezone.utc) - timedelta(days=1))
        )
        await session.commit()
    resp = await client.get(f"/api/share/{token}")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "分享链接已过期"


async def test_password_protected_share(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    share = await make_share(client, auth_headers, alpha["id"], password="s3cret")
    token = share["share_token"]
    assert share["has_password"] is True

    resp = await client.get(f"/api/share/{token}")
    assert resp.status_code == 401
    assert resp.json()["requires_password"] is True

    resp = await client.get(f"/api/share/{token}", params={"password": "wrong"})
    assert resp.status_code == 401

    resp = await client.get(f"/api/share/{token}", params={"password": "s3cret"})
    assert resp.status_code == 200
    assert resp.json()["share_info"]["has_password"] is True

    resp = await client.post(f"/api/share/{token}", json={"password": "s3cret"})
    assert resp.json() == {"message": "密码验证成功"}
    resp = await client.post(f"/api/share/{token}", json={"password": "nope"})
    assert resp.status_code == 401


async def test_password_check_without_password_is_bad_request(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    share = await make_share(client, auth_headers, alpha["id"])
    resp = await client.post(f"/api/share/{share['share_token']}", json={"password": "x"})
    assert resp.status_code == 400


async def test_update_clears_password_and_expiry(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    share = await make_share(client, auth_headers, alpha["id"], password="s3cret", expires_in_days=3)

    resp = await client.put(
        f"/api/work-breakdown-shares/{share['id']}",
        json={"password": "", "expires_in_days": None},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["has_password"] is False
    assert resp.json()["expires_at"] is None


async def test_list_and_delete(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    share = await make_share(client, auth_headers, alpha["id"])

    resp = await client.get("/api/work-breakdown-shares", headers=auth_headers)
    assert [s["id"] for s in resp.json()["shares"]] == [share["id"]]

    resp = await client.delete(f"/api/work-breakdown-shares/{share['id']}", headers=auth_headers)
    assert resp.status_code == 200
    resp = await client.get("/api/work-breakdown-shares", headers=auth_headers)
    assert resp.json()["shares"] == []


async def test_creating_a_share_purges_expired_ones(client, auth_headers, session_factory):
    alpha = await create_project(client, auth_headers)
    old = await make_share(client, auth_headers, alpha["id"])
    async with session_factory() as session:
        await session.execute(
            update(WorkBreakdownShare)
            .where(WorkBreakdownShare.id == old["id"])
            .values(expires_at=datetime.now(timezone.utc) - timedelta(days=1))
        )
        await session.commit()

    await make_share(client, auth_headers, alpha["id"])
    async with session_factory() as session:
        ids = (await session.execute(select(WorkBreakdownShare.id))).scalars().all()
    assert old["id"] not in ids


async def test_rejected_share_request_purges_nothing(client, auth_headers, session_factory):
    alpha = await create_project(client, auth_headers)
    old = await make_share(client, auth_headers, alpha["id"])
    async with session_factory() as session:
        await session.execute(
            update(WorkBreakdownShare)
            .where(WorkBreakdownShare.id == old["id"])
            .values(expires_at=datetime.now(timezone.utc) - timedelta(days=1))
        )
        await session.commit()

    other = await register_and_login(client, email="bob@example.com")
    theirs = await create_project(client, other, name="Theirs", code="T")
    resp = await client.post("/api/work-breakdown-shares", json={"project_id": theirs["id"]}, headers=auth_headers)
    assert resp.status_code == 404

    async with session_factory() as session:
        ids = (await session.execute(select(WorkBreakdownShare.id))).scalars().all()
    assert old["id"] in ids
