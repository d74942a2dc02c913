"""
测试文件夹HTTP接口：状态码与统一响应格式
"""
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from app.db.database import get_db
from app.utils.auth import create_access_token
from main import app

from tests.conftest import ALICE, BOB


def auth_headers(user_id: int):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
async def client(session_factory, db):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def create(client, name, parent_id=None, user_id=ALICE):
    response = await client.post(
        "/api/folders",
        json={"name": name, "parentId": parent_id},
        headers=auth_headers(user_id),
    )
    return response


async def test_requires_authentication(client):
    response = await client.get("/api/folders/root/contents")
    assert response.status_code == 401

    response = await client.get(
        "/api/folders/root/contents", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


async def test_create_and_get_folder(client):
    response = await create(client, "Docs")
    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 200
    assert body["data"]["name"] == "Docs"
    assert body["data"]["depth"] == 0
    assert body["data"]["parentId"] is None
    assert body["data"]["ownerId"] == ALICE
    docs_id = body["data"]["id"]

    child = (await create(client, "2024", docs_id)).json()["data"]
    assert child["parentId"] == docs_id
    assert child["depth"] == 1

    response = await client.get(f"/api/folders/{child['id']}", headers=auth_headers(ALICE))
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "2024"


async def test_contents_and_breadcrumb(client):
    docs_id = (await create(client, "Docs")).json()["data"]["id"]
    y2024_id = (await create(client, "2024", docs_id)).json()["data"]["id"]
    reports_id = (await create(client, "Reports", y2024_id)).json()["data"]["id"]

    response = await client.get(f"/api/folders/{docs_id}/contents", headers=auth_headers(ALICE))
    data = response.json()["data"]
    assert data["folder"]["id"] == docs_id
    assert [f["name"] for f in data["folders"]] == ["2024"]
    assert data["files"] == []

    response = await client.get("/api/folders/root/contents", headers=auth_headers(ALICE))
    data = response.json()["data"]
    assert data["folder"] is None
    assert [f["name"] for f in data["folders"]] == ["Docs"]

    response = await client.get(f"/api/folders/{reports_id}/ancestors", headers=auth_headers(ALICE))
    assert response.status_code == 200
    assert [item["name"] for item in response.json()["data"]["items"]] == ["Docs", "2024"]


async def test_rename_move_and_delete(client):
    docs_id = (await create(client, "Docs")).json()["data"]["id"]
    y2024_id = (await create(client, "2024", docs_id)).json()["data"]["id"]
    (await create(client, "Q1", y2024_id)).json()

    response = await client.put(
        f"/api/folders/{docs_id}/rename", json={"name": "Documents"}, headers=auth_headers(ALICE)
    )
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Documents"

    response = await client.put(
        f"/api/folders/{y2024_id}/move", json={"parentId": None}, headers=auth_headers(ALICE)
    )
    assert response.status_code == 200
    assert response.json()["data"]["depth"] == 0
    assert response.json()["data"]["parentId"] is None

    response = await client.delete(f"/api/folders/{y2024_id}", headers=auth_headers(ALICE))
    assert response.status_code == 200
    assert response.json()["data"] == {"deletedFolderCount": 2, "archivedFileCount": 0}

    response = await client.get(f"/api/folders/{y2024_id}", headers=auth_headers(ALICE))
    assert response.status_code == 404


async def test_error_responses(client):
    docs_id = (await create(client, "Docs")).json()["data"]["id"]
    child_id = (await create(client, "2024", docs_id)).json()["data"]["id"]

    # 非法名称
    response = await create(client, "a:b")
    assert response.status_code == 400
    assert response.json()["code"] == 400
    assert response.json()["data"] is None

    # 同名
    response = await create(client, "Docs")
    assert response.status_code == 409
    assert response.json()["message"] == "同名文件夹已存在"

    # 移动到子文件夹下
    response = await client.put(
        f"/api/folders/{docs_id}/move", json={"parentId": child_id}, headers=auth_headers(ALICE)
    )
    assert response.status_code == 400

    # 其他用户
    response = await client.get(f"/api/folders/{docs_id}", headers=auth_headers(BOB))
    assert response.status_code == 403
    response = await client.delete(f"/api/folders/{docs_id}", headers=auth_headers(BOB))
    assert response.status_code == 403

    # 不存在
    response = await client.get(f"/api/folders/{uuid.uuid4()}", headers=auth_headers(ALICE))
    assert response.status_code == 404
    assert response.json()["code"] == 404
