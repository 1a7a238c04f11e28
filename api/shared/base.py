"""Base classes and common patterns for the application's repositories."""
from abc import ABC
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.shared.entities.base import BaseEntity
from api.shared.exceptions import StoreNotInitializedError
from api.shared.utils import is_valid_uuid

T = TypeVar("T", bound=BaseEntity)

SCHEMA_READY_KEY = "schema_ready"


class BaseRepository(ABC, Generic[T]):
    """Base repository with the create/read operations shared by entities.

    Sessions handed out by :class:`infra.resources.DatabaseResource` carry a
    ``schema_ready`` flag in ``session.info``; every operation refuses to touch
    the database with :class:`StoreNotInitializedError` when it is false.
    """

    model: Type[T]

    def __init__(self, session: AsyncSession):
        self.session = session

    def ensure_ready(self) -> None:
        if not self.session.info.get(SCHEMA_READY_KEY, True):
            raise StoreNotInitializedError(
                missing_tables=list(self.session.info.get("missing_tables", []))
            )

    async def create(self, entity: T) -> T:
        """Create new entity and commit it."""
        self.ensure_ready()
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def get_by_id(self, entity_id: Any) -> Optional[T]:
        """Get entity by ID; malformed ids simply do not exist."""
        self.ensure_ready()
        if not is_valid_uuid(entity_id):
            return None
        stmt = select(self.model).where(self.model.id == str(entity_id))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_field(
        self,
        field_name: str,
        value: Any,
        *,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        """Get entities by field value, ordered by ``order_by`` (``-name`` for desc)."""
        self.ensure_ready()
        field = getattr(self.model, field_name)
        stmt = select(self.model).where(field == value)

        if order_by:
            if order_by.startswith("-"):
                stmt = stmt.order_by(getattr(self.model, order_by[1:]).desc())
            else:
                stmt = stmt.order_by(getattr(self.model, order_by).asc())

        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
