from datetime import date, timedelta

from conftest import create_project


async def add_todo(client, headers, project_id, content="task", **extra):
    return await client.post("/api/todos", json={"project_id": project_id, "content": content, **extra}, headers=headers)


async def test_create_defaults_due_date_to_tomorrow(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    resp = await add_todo(client, auth_headers, alpha["id"])
    assert resp.status_code == 201
    body = resp.json()
    assert body["due_date"] == (date.today() + timedelta(days=1)).isoformat()
    assert body["priority"] == "medium"
    assert body["status"] == "not_started"


async def test_active_limit_per_project(client, auth_headers):
    alpha = await create_project(client, auth_headers, name="Alpha", code="A1")
    beta = await create_project(client, auth_headers, name="Beta", code="B1")
    for i in range(10):
        resp = await add_todo(client, auth_headers, alpha["id"], content=f"t{i}")
        assert resp.status_code == 201

    resp = await add_todo(client, auth_headers, alpha["id"], content="one too many")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "每个项目最多只能添加10个待办"

    resp = await add_todo(client, auth_headers, beta["id"])
    assert resp.status_code == 201


async def test_completion_appends_to_daily_report(client, auth_headers):
    alpha = await create_project(client, auth_headers, name="Alpha", code="A1")
    todo = (await add_todo(client, auth_headers, alpha["id"], content="ship release")).json()

    resp = await client.post(f"/api/todos/{todo['id']}/complete", json={"completed_date": "2024-03-04"}, headers=auth_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["todo"]["status"] == "completed"
    assert body["todo"]["completed_at"].startswith("2024-03-04")
    assert body["daily_report_date"] == "2024-03-04"

    report = (await client.get(f"/api/daily-reports/{body['daily_report_id']}", headers=auth_headers)).json()
    assert report["is_plan"] is False
    assert report["content"] == "[Alpha (A1)] ship release"

    resp = await client.post(f"/api/todos/{todo['id']}/complete", json={"completed_date": "2024-03-04"}, headers=auth_headers)
    assert resp.status_code == 400


async def test_completion_appends_after_existing_items(client, auth_headers):
    alpha = await create_project(client, auth_headers, name="Alpha", code="A1")
    await client.post("/api/daily-reports", json={
        "date": "2024-03-04",
        "items": [{"project_id": alpha["id"], "content": "wrote spec"}],
    }, headers=auth_headers)
    todo = (await add_todo(client, auth_headers, alpha["id"], content="fixed bug")).json()

    resp = await client.post(f"/api/todos/{todo['id']}/complete", json={"completed_date": "2024-03-04"}, headers=auth_headers)
    report = (await client.get(f"/api/daily-reports/{resp.json()['daily_report_id']}", headers=auth_headers)).json()
    assert report["content"] == "[Alpha (A1)] wrote spec\n[Alpha (A1)] fixed bug"


async def test_generic_update_can_not_complete(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    todo = (await add_todo(client, auth_headers, alpha["id"])).json()

    resp = await client.put(f"/api/todos/{todo['id']}", json={"status": "completed"}, headers=auth_headers)
    assert resp.status_code == 400

    resp = await client.put(f"/api/todos/{todo['id']}", json={"status": "in_progress", "priority": "high"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "in_progress"
    assert resp.json()["priority"] == "high"


async def test_reopen_respects_limit(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    done = (await add_todo(client, auth_headers, alpha["id"], content="done")).json()
    await client.post(f"/api/todos/{done['id']}/complete", json={"completed_date": "2024-03-04"}, headers=auth_headers)
    for i in range(10):
        await add_todo(client, auth_headers, alpha["id"], content=f"t{i}")

    resp = await client.put(f"/api/todos/{done['id']}", json={"status": "not_started"}, headers=auth_headers)
    assert resp.status_code == 400


async def test_reopen_clears_completion_time(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    todo = (await add_todo(client, auth_headers, alpha["id"])).json()
    await client.post(f"/api/todos/{todo['id']}/complete", json={"completed_date": "2024-03-04"}, headers=auth_headers)

    resp = await client.put(f"/api/todos/{todo['id']}", json={"status": "not_started"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["completed_at"] is None


async def test_summary_counts(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    await add_todo(client, auth_headers, alpha["id"], priority="high")
    done = (await add_todo(client, auth_headers, alpha["id"], priority="high")).json()
    await add_todo(client, auth_headers, alpha["id"], priority="medium", status="in_progress")
    await client.post(f"/api/todos/{done['id']}/complete", json={"completed_date": "2024-03-04"}, headers=auth_headers)

    resp = await client.get("/api/todos/summary", headers=auth_headers)
    body = resp.json()
    expected = {"high": 1, "medium": 1, "low": 0, "in_progress": 1, "not_started": 1}
    assert body["overall"] == expected
    assert body["per_project"][str(alpha["id"])] == expected
    assert [t["id"] for t in body["recently_completed"]] == [done["id"]]


async def test_this_week_lists_open_todos_due_this_week(client, auth_headers):
    alpha = await create_project(client, auth_headers, name="Alpha", code="A1")
    monday = date.today() - timedelta(days=date.today().weekday())
    await add_todo(client, auth_headers, alpha["id"], content="this week", due_date=monday.isoformat())
    await add_todo(client, auth_headers, alpha["id"], content="next week", due_date=(monday + timedelta(days=7)).isoformat())

    resp = await client.get("/api/todos/this-week", headers=auth_headers)
    body = resp.json()
    assert [t["content"] for t in body] == ["this week"]
    assert body[0]["project_name"] == "Alpha"


async def test_delete_reports_remaining_active(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    first = (await add_todo(client, auth_headers, alpha["id"])).json()
    await add_todo(client, auth_headers, alpha["id"])

    resp = await client.delete(f"/api/todos/{first['id']}", headers=auth_headers)
    assert resp.json() == {"message": "待办已删除", "remaining_active": 1}


async def test_list_filters_by_project(client, auth_headers):
    alpha = await create_project(client, auth_headers, name="Alpha", code="A1")
    beta = await create_project(client, auth_headers, name="Beta", code="B1")
    await add_todo(client, auth_headers, alpha["id"])
    await add_todo(client, auth_headers, beta["id"])

    resp = await client.get("/api/todos", params={"project_id": beta["id"]}, headers=auth_headers)
    assert [t["project_id"] for t in resp.json()] == [beta["id"]]


async def test_content_must_be_one_line(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    resp = await add_todo(client, auth_headers, alpha["id"], content="first\n[Ghost (G1)] injected")
    assert resp.status_code == 422

    todo = (await add_todo(client, auth_headers, alpha["id"])).json()
    resp = await client.put(f"/api/todos/{todo['id']}", json={"content": "a\r\nb"}, headers=auth_headers)
    assert resp.status_code == 422
    resp = await client.put(f"/api/todos/{todo['id']}", json={"content": "renamed"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["content"] == "renamed"
