"""
Fixtures for API integration tests.

The app is served in-process through httpx.ASGITransport. Lifespan is not
run; the shared `container` fixture is already initialized.
"""

import httpx
import pytest

from frappeur.main import create_app


@pytest.fixture
async def api_client(container):
    """AsyncClient bound to an app built around the test container."""
    app = create_app(container=container)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
