import os

# Settings refuse to load without credentials; tests never reach either service
os.environ.setdefault("DEEPSEEK_API_KEY", "test-deepseek-key")
os.environ.setdefault("POSTGRES_PASSWORD", "test-password")

from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from src.main import app
from src.database import get_db
from src.llm.factory import get_analysis_llm, get_compliance_llm
from factories import failing_llm


@pytest.fixture
def mock_db() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest_asyncio.fixture(scope="function")
async def async_client(mock_db: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    """Client for testing API endpoints against a mocked session and an unreachable LLM."""
    async def override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_analysis_llm] = lambda: failing_llm()
    app.dependency_overrides[get_compliance_llm] = lambda: failing_llm()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
