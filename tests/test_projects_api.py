from conftest import create_project, register_and_login


async def test_requires_authentication(client):
    resp = await client.get("/api/projects")
    assert resp.status_code in (401, 403)


async def test_create_and_list_newest_first(client, auth_headers):
    resp = await client.post("/api/projects", json={"name": "  Alpha  ", "code": "A1"}, headers=auth_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "项目创建成功"
    assert body["project"]["name"] == "Alpha"

    await create_project(client, auth_headers, name="Beta", code="B1")

    resp = await client.get("/api/projects", headers=auth_headers)
    data = resp.json()
    assert data["total"] == 2
    assert [p["name"] for p in data["projects"]] == ["Beta", "Alpha"]


async def test_name_is_required_and_bounded(client, auth_headers):
    resp = await client.post("/api/projects", json={"name": "   "}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "项目名称不能为空"

    resp = await client.post("/api/projects", json={"name": "x" * 101}, headers=auth_headers)
    assert resp.status_code == 400

    resp = await client.post("/api/projects", json={"name": "ok", "code": "c" * 51}, headers=auth_headers)
    assert resp.status_code == 400

    resp = await client.post("/api/projects", json={"name": "ok", "description": "d" * 501}, headers=auth_headers)
    assert resp.status_code == 400


async def test_duplicate_name_or_code_rejected(client, auth_headers):
    await create_project(client, auth_headers, name="Alpha", code="A1")

    resp = await client.post("/api/projects", json={"name": "Alpha", "code": "Z9"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "项目名称已存在"

    resp = await client.post("/api/projects", json={"name": "Other", "code": "A1"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "项目编码已存在"


async def test_names_are_unique_per_user_only(client, auth_headers):
    await create_project(client, auth_headers, name="Alpha", code="A1")
    other = await register_and_login(client, email="bob@example.com")
    await create_project(client, other, name="Alpha", code="A1")

    resp = await client.get("/api/projects", headers=other)
    assert resp.json()["total"] == 1


async def test_active_only_filter_and_update(client, auth_headers):
    alpha = await create_project(client, auth_headers, name="Alpha", code="A1")
    await create_project(client, auth_headers, name="Beta", code="B1")

    resp = await client.put(f"/api/projects/{alpha['id']}", json={"is_active": False}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    resp = await client.get("/api/projects", params={"active_only": True}, headers=auth_headers)
    assert [p["name"] for p in resp.json()["projects"]] == ["Beta"]


async def test_update_rejects_duplicate_code(client, auth_headers):
    await create_project(client, auth_headers, name="Alpha", code="A1")
    beta = await create_project(client, auth_headers, name="Beta", code="B1")

    resp = await client.put(f"/api/projects/{beta['id']}", json={"code": "A1"}, headers=auth_headers)
    assert resp.status_code == 400


async def test_other_users_project_is_not_found(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    other = await register_and_login(client, email="bob@example.com")

    resp = await client.put(f"/api/projects/{alpha['id']}", json={"name": "Mine"}, headers=other)
    assert resp.status_code == 404


async def test_delete_refused_when_daily_reports_reference_project(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    await client.post("/api/daily-reports", json={
        "date": "2024-03-04",
        "items": [{"project_id": alpha["id"], "content": "wrote spec"}],
    }, headers=auth_headers)

    resp = await client.delete(f"/api/projects/{alpha['id']}", headers=auth_headers)
    assert resp.status_code == 400


async def test_delete_removes_todos_and_work_items(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    await client.post("/api/todos", json={"project_id": alpha["id"], "content": "x"}, headers=auth_headers)
    root = await client.post(f"/api/work-breakdown/{alpha['id']}/items", json={"name": "root"}, headers=auth_headers)
    await client.post(
        f"/api/work-breakdown/{alpha['id']}/items",
        json={"name": "child", "parent_id": root.json()["id"]},
        headers=auth_headers,
    )

    resp = await client.delete(f"/api/projects/{alpha['id']}", headers=auth_headers)
    assert resp.status_code == 200

    resp = await client.get("/api/todos", headers=auth_headers)
    assert resp.json() == []
    resp = await client.get("/api/projects", headers=auth_headers)
    assert resp.json()["total"] == 0
