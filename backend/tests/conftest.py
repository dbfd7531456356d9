"""
Biowiki — Test Configuration (conftest.py)
===========================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── temp_storage:       fresh storage root directory
    ├── webs:               WebCollection over temp_storage
    ├── home_web:           a created "Home" web
    ├── sample_detail:      a PageDetail named "WebHome"
    ├── sample_png_bytes:   tiny PNG payload for attachment tests
    ├── wiki_service:       WikiService over temp_storage
    └── test_client:        HTTPX AsyncClient talking to a fresh app
"""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Before any biowiki import: keep test runs quiet
os.environ["BIOWIKI_LOG_LEVEL"] = "WARNING"

from biowiki.config import Settings  # noqa: E402
from biowiki.locks import StoreLocks  # noqa: E402
from biowiki.schemas.wiki import PageDetail  # noqa: E402
from biowiki.services.wiki_service import WikiService  # noqa: E402
from biowiki.stores.webs import WebCollection  # noqa: E402


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh, empty storage root (pytest cleans tmp_path up)."""
    storage_dir = tmp_path / "wiki"
    storage_dir.mkdir()
    return storage_dir


@pytest.fixture
def webs(temp_storage):
    return WebCollection(temp_storage)


@pytest.fixture
def home_web(webs):
    return webs.create("Home")


@pytest.fixture
def sample_detail():
    return PageDetail(
        name="WebHome",
        title="Welcome",
        content="This is the home page of the Home web.",
    )


@pytest.fixture
def sample_png_bytes():
    """PNG signature plus an IHDR chunk header; enough to round-trip bytes."""
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
        b"\x1f\x15\xc4\x89"
    )


@pytest.fixture
def wiki_service(webs):
    return WikiService(webs=webs, locks=StoreLocks(), max_body_size=1_048_576)


@pytest_asyncio.fixture
async def test_client(temp_storage):
    """
    HTTPX AsyncClient routed straight into a new app bound to temp_storage.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from biowiki.main import create_app

    app = create_app(Settings(storage_root=str(temp_storage), log_level="WARNING"))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
