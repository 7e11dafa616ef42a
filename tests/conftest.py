"""Pytest configuration and shared fixtures.

Every test gets its own main database and organisation databases under
tmp_path, services are wired exactly as in production.
"""

from typing import Any, AsyncGenerator, Dict

import pytest
import pytest_asyncio

from teamauth.core.application import Application
from teamauth.services import create_application
from tests.helpers import create_organisation, create_user


# ============================================================================
# Application Fixtures
# ============================================================================

@pytest.fixture
def database_urls(tmp_path) -> Dict[str, str]:
    """SQLite URLs for the main database and the organisation databases."""
    return {
        "database_url": f"sqlite+aiosqlite:///{tmp_path}/main.db",
        "tenant_database_url": f"sqlite+aiosqlite:///{tmp_path}/tenants/{{name}}.db",
    }


@pytest_asyncio.fixture
async def application(database_urls) -> AsyncGenerator[Application, None]:
    """Configured and set up application, closed after the test."""
    app = create_application(**database_urls)
    await app.setup()
    yield app
    await app.close()


# ============================================================================
# Domain Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def alice(application) -> Dict[str, Any]:
    return await create_user(application, "Alice")


@pytest_asyncio.fixture
async def bob(application) -> Dict[str, Any]:
    return await create_user(application, "Bob")


@pytest_asyncio.fixture
async def acme(application, alice) -> Dict[str, Any]:
    """Organisation owned by Alice."""
    return await create_organisation(application, alice, "Acme")
