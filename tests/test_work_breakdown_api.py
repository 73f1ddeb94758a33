from conftest import create_project, register_and_login


async def add_item(client, headers, project_id, name, parent_id=None, **extra):
    resp = await client.post(
        f"/api/work-breakdown/{project_id}/items",
        json={"name": name, "parent_id": parent_id, **extra},
        headers=headers,
    )
    return resp


async def tree(client, headers, project_id):
    resp = await client.get(f"/api/work-breakdown/{project_id}", headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["items"]


async def test_tree_with_progress_rollup(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    root = (await add_item(client, auth_headers, alpha["id"], "root")).json()
    await add_item(client, auth_headers, alpha["id"], "a", root["id"], status="已完成")
    await add_item(client, auth_headers, alpha["id"], "b", root["id"], status="进行中")

    items = await tree(client, auth_headers, alpha["id"])
    assert len(items) == 1
    assert [c["name"] for c in items[0]["children"]] == ["a", "b"]
    assert [c["level"] for c in items[0]["children"]] == [1, 1]
    assert items[0]["progress"] == 75


async def test_tree_reflects_updates_despite_cache(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    item = (await add_item(client, auth_headers, alpha["id"], "only")).json()
    assert (await tree(client, auth_headers, alpha["id"]))[0]["progress"] == 0

    resp = await client.put(f"/api/work-breakdown/items/{item['id']}", json={"status": "已完成"}, headers=auth_headers)
    assert resp.status_code == 200
    assert (await tree(client, auth_headers, alpha["id"]))[0]["progress"] == 100


async def test_depth_is_limited_to_five_levels(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    parent_id = None
    for level in range(5):
        resp = await add_item(client, auth_headers, alpha["id"], f"level {level}", parent_id)
        assert resp.status_code == 201
        parent_id = resp.json()["id"]

    resp = await add_item(client, auth_headers, alpha["id"], "too deep", parent_id)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "工作分解最多支持5级"


async def test_move_relevels_subtree_and_rejects_cycles(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    a = (await add_item(client, auth_headers, alpha["id"], "a")).json()
    b = (await add_item(client, auth_headers, alpha["id"], "b")).json()
    b1 = (await add_item(client, auth_headers, alpha["id"], "b1", b["id"])).json()

    resp = await client.post(f"/api/work-breakdown/items/{b['id']}/move", json={"parent_id": a["id"]}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["level"] == 1

    items = await tree(client, auth_headers, alpha["id"])
    assert [n["name"] for n in items] == ["a"]
    moved = items[0]["children"][0]
    assert moved["name"] == "b"
    assert moved["children"][0]["id"] == b1["id"]
    assert moved["children"][0]["level"] == 2

    resp = await client.post(f"/api/work-breakdown/items/{a['id']}/move", json={"parent_id": b1["id"]}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "不能移动到自身或其下级工作项"


async def test_delete_removes_descendants(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    root = (await add_item(client, auth_headers, alpha["id"], "root")).json()
    child = (await add_item(client, auth_headers, alpha["id"], "child", root["id"])).json()
    await add_item(client, auth_headers, alpha["id"], "grandchild", child["id"])
    await add_item(client, auth_headers, alpha["id"], "sibling")

    resp = await client.delete(f"/api/work-breakdown/items/{root['id']}", headers=auth_headers)
    assert resp.json() == {"message": "工作项已删除", "deleted": 3}
    assert [n["name"] for n in await tree(client, auth_headers, alpha["id"])] == ["sibling"]


async def test_items_are_private(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    item = (await add_item(client, auth_headers, alpha["id"], "mine")).json()
    other = await register_and_login(client, email="bob@example.com")

    resp = await client.get(f"/api/work-breakdown/{alpha['id']}", headers=other)
    assert resp.status_code == 404
    resp = await client.put(f"/api/work-breakdown/items/{item['id']}", json={"name": "x"}, headers=other)
    assert resp.status_code == 404


async def test_unknown_parent_rejected(client, auth_headers):
    alpha = await create_project(client, auth_headers)
    resp = await add_item(client, auth_headers, alpha["id"], "orphan", 9999)
    assert resp.status_code == 400
