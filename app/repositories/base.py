"""Base repository for database operations."""

from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.errors.database import DatabaseError, DuplicateEntryError


class BaseRepository[ModelT: SQLModel]:
    """
    Base repository implementing common CRUD operations.

    Writes are committed by the repository itself so that once a mutation
    returns, the change is visible to every other session.

    Attributes:
        model: The SQLModel database model type.
        id_field: The name of the primary key field (default: "id").
        unique_field: Column whose unique index maps to `DuplicateEntryError`.
    """

    model: type[ModelT]
    id_field: str = "id"
    unique_field: str | None = None

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize repository with database session.

        Args:
            session: Async database session
        """
        self.session = session

    async def get_by_id(self, record_id: UUID) -> ModelT | None:
        """
        Get a record by its ID.

        Args:
            record_id: Record UUID

        Returns:
            ModelT | None: Record if found, None otherwise
        """
        id_column = getattr(self.model, self.id_field)
        result = await self.session.execute(select(self.model).where(id_column == record_id))
        return result.scalar_one_or_none()

    async def apply(self, record: ModelT, data: dict[str, Any]) -> ModelT:
        """Overwrite the given fields on a record and save it."""
        for key, value in data.items():
            setattr(record, key, value)
        return await self._save(record)

    async def delete(self, record_id: UUID) -> bool:
        """
        Delete a record by ID.

        Args:
            record_id: Record UUID

        Returns:
            bool: True if record was deleted, False if not found
        """
        record = await self.get_by_id(record_id)
        if not record:
            return False

        await self.session.delete(record)
        await self.session.commit()
        return True

    async def count(self) -> int:
        """
        Count total records.

        Returns:
            int: Total number of records
        """
        result = await self.session.execute(select(func.count()).select_from(self.model))
        count = result.scalar()
        return count if count is not None else 0

    async def _save(self, record: ModelT) -> ModelT:
        """
        Add a record, commit, and refresh it from the database.

        Args:
            record: Record to add

        Returns:
            ModelT: Refreshed record

        Raises:
            DuplicateEntryError: If a unique constraint is violated
            DatabaseError: For other integrity errors
        """
        try:
            self.session.add(record)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            error_msg = str(e.orig) if e.orig else str(e)
            if "unique" in error_msg.lower() or "duplicate" in error_msg.lower():
                raise DuplicateEntryError(field=self.unique_field or "value") from e
            raise DatabaseError(detail=f"Database integrity error: {error_msg}") from e
        await self.session.refresh(record)
        return record
