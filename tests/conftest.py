from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient

from tests.factories import make_app, make_client

# Pytest only picks up fixtures from conftest.py files. Fixtures defined in other
# modules (like tests/seeds.py) are invisible unless we register them here.
# A plain `import tests.seeds` won't work; pytest_plugins is the way to do it.
pytest_plugins = ["tests.seeds"]


@pytest.fixture
def app(schema_folder: Path) -> FastAPI:
    """App with the test routers and the seeded schema folder."""
    return make_app(schema_folder)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with make_client(app) as client:
        yield client
