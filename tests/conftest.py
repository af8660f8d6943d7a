# tests/conftest.py
import asyncio
import os
import shutil
import tempfile

import pytest

# Settings are cached on first import, so point the app at a throwaway
# SQLite database before anything from `app` is imported.
_DB_DIR = tempfile.mkdtemp(prefix="family-calendar-tests-")
os.environ["DB_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["APP_ENV"] = "test"
os.environ.pop("API_KEY", None)

from fastapi.testclient import TestClient  # noqa: E402

from app.db.session import reset_db  # noqa: E402
from app.main import create_app  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    """
    Shared TestClient fixture for all API tests.

    The schema is recreated once per session; tests create their own
    members and events and only assert on what they created.
    """
    asyncio.run(reset_db())

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client

    shutil.rmtree(_DB_DIR, ignore_errors=True)


@pytest.fixture
def make_member(client):
    """
    Factory creating a family member through the API and returning its id.
    """

    def _make(name: str, color: str = "#3b82f6") -> str:
        response = client.post("/members", json={"name": name, "color": color})
        assert response.status_code == 201, response.text
        return response.json()["id"]

    return _make
