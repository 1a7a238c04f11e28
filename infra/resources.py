"""Infrastructure resources: database.

This module is part of the infra layer and must not import from application features.
"""
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import MetaData, inspect, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

logger = structlog.get_logger(__name__)

POSTGRES_SESSION_SETTINGS = {"lock_timeout": "4s", "statement_timeout": "8s"}


class DatabaseResource:
    """Database resource for dependency injection.

    ``metadata`` lists the tables the application needs; :meth:`check_schema`
    records whether they exist so repositories can fail with a typed error
    instead of a driver-specific one.
    """

    def __init__(
        self,
        database_url: str,
        metadata: Optional[MetaData] = None,
        auto_create_schema: bool = False,
    ):
        self.database_url = database_url
        self.metadata = metadata
        self.auto_create_schema = auto_create_schema
        self.engine = None
        self.session_factory = None
        self.schema_ready = False
        self.missing_tables: List[str] = []

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``create_async_engine``.

        Postgres timeouts are session settings of every pooled connection,
        so each request session runs with them.
        """
        options: Dict[str, Any] = {"echo": False, "pool_pre_ping": True}
        if self.database_url.startswith("sqlite"):
            return options
        options["pool_recycle"] = 3600
        if self.database_url.startswith("postgresql+asyncpg"):
            options["connect_args"] = {"server_settings": dict(POSTGRES_SESSION_SETTINGS)}
        return options

    async def init(self):
        """Initialize database connection."""
        self.engine = create_async_engine(self.database_url, **self.engine_options())
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        return self

    @property
    def dialect(self) -> str:
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.engine.dialect.name

    async def check_schema(self) -> bool:
        """Refresh ``schema_ready`` from the tables that exist right now."""
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        if self.metadata is None:
            self.schema_ready = True
            return True

        async with self.engine.connect() as conn:
            existing = await conn.run_sync(
                lambda sync_conn: set(inspect(sync_conn).get_table_names())
            )
        self.missing_tables = sorted(set(self.metadata.tables) - existing)
        self.schema_ready = not self.missing_tables
        return self.schema_ready

    async def create_schema(self) -> None:
        """Create missing tables from metadata (development and tests)."""
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        if self.metadata is None:
            return
        async with self.engine.begin() as conn:
            await conn.run_sync(self.metadata.create_all)
        await self.check_schema()

    async def prepare(self) -> None:
        """Verify connectivity and the schema, creating it when configured to."""
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))

        if not await self.check_schema():
            if self.auto_create_schema:
                logger.info("Creating missing tables", tables=self.missing_tables)
                await self.create_schema()
            else:
                logger.warning(
                    "Database schema is not initialized",
                    missing_tables=self.missing_tables,
                )

    def get_session(self) -> AsyncSession:
        """Get database session (synchronous accessor)."""
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        session = self.session_factory()
        session.info["schema_ready"] = self.schema_ready
        session.info["missing_tables"] = list(self.missing_tables)
        return session

    async def shutdown(self):
        """Shutdown database connection."""
        if self.engine:
            await self.engine.dispose()
