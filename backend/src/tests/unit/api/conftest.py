"""Fixtures for API tests: the real app with the database and storage swapped out."""

import httpx
import pytest

from plugstore.api import dependencies as deps
from plugstore.main import app
from plugstore.services.release_file_storage import ReleaseFileStorage

MASTER_HEADERS = {"Authorization": "Bearer test-master-key"}


@pytest.fixture
def storage(tmp_path):
    return ReleaseFileStorage(tmp_path / "storage", max_size=1024)


@pytest.fixture
async def client(db_session, storage):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_storage] = lambda: storage
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def master_headers():
    return dict(MASTER_HEADERS)


@pytest.fixture
def register_and_login(client):
    """Register a user through the API and return (user_json, cookie_headers)."""

    async def _do(username: str = "alice01", password: str = "password123"):
        response = await client.post(
            "/api/v1/users",
            json={"username": username, "email": f"{username}@example.com", "password": password},
        )
        assert response.status_code == 201, response.text
        login = await client.post("/api/v1/auth/sessions", json={"username": username, "password": password})
        assert login.status_code == 201, login.text
        session_id = login.cookies["sessionId"]
        client.cookies.clear()
        return response.json()["data"], {"Cookie": f"sessionId={session_id}"}

    return _do
