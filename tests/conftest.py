from __future__ import annotations

from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from filterable_models import Base

BUILDER_METHODS = (
    "where",
    "where_in",
    "where_null",
    "where_not_null",
    "where_date",
    "where_json_contains",
    "where_has",
    "has",
    "any_of",
)


@pytest.fixture
def query() -> MagicMock:
    """A mock QueryBuilder whose methods all return the builder itself."""
    builder = MagicMock(name="query")
    for method in BUILDER_METHODS:
        getattr(builder, method).return_value = builder
    return builder


@pytest.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()
