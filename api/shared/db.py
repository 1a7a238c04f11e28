"""Request-scoped database session dependency for FastAPI routers."""
from typing import Any, AsyncGenerator

import structlog
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer
from infra.resources import DatabaseResource

logger = structlog.get_logger(__name__)


@inject
async def get_db_session(
    db: DatabaseResource = Depends(
        Provide[ApplicationContainer.infrastructure.database]
    ),
) -> AsyncGenerator[AsyncSession, Any]:
    """Yield one AsyncSession per request.

    While the tables are missing every request looks them up again, so running
    ``alembic upgrade head`` takes effect without a restart.
    """
    if not db.schema_ready and await db.check_schema():
        logger.info("Database schema is now available")
    session = db.get_session()
    try:
        yield session
    finally:
        await session.close()
