"""User repository for database operations."""

from enum import StrEnum
from typing import cast
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.sql.expression import ColumnElement

from app.models.user import UserDB
from app.repositories.base import BaseRepository
from app.schemas.user import UserCreate, UserUpdate
from app.utils.helpers import utc_now


class UserRepository(BaseRepository[UserDB]):
    """
    Repository for User database operations.

    Listing is newest first; search is a case-insensitive substring match on
    name, occupation or phone.
    """

    model = UserDB
    unique_field = "phone"

    def _search_filter(self, search: str) -> ColumnElement[bool]:
        columns = (UserDB.name, UserDB.occupation, UserDB.phone)
        return or_(
            *(
                cast(ColumnElement[str], column).icontains(search, autoescape=True)
                for column in columns
            ),
        )

    async def create(self, user: UserCreate, image: str = "") -> UserDB:
        """
        Create a new user in the database.

        Args:
            user: Validated creation form
            image: Uploaded avatar URL

        Returns:
            UserDB: Created user database model

        Raises:
            DuplicateEntryError: If the phone number already exists
        """
        now = utc_now()
        db_user = UserDB(
            name=user.name,
            gender=user.gender.value,
            birthday=user.birthday,
            occupation=user.occupation.value,
            phone=user.phone,
            image=image,
            created_at=now,
            updated_at=now,
        )
        return await self._save(db_user)

    async def list_paginated(
        self,
        page: int = 1,
        limit: int = 6,
        search: str | None = None,
    ) -> tuple[list[UserDB], int]:
        """
        Get one page of users and the size of the filtered set.

        Args:
            page: 1-based page number
            limit: Page size
            search: Optional substring filter

        Returns:
            tuple[list[UserDB], int]: Users on the page and the total match count
        """
        statement = select(UserDB)
        count_statement = select(func.count()).select_from(UserDB)
        if search:
            condition = self._search_filter(search)
            statement = statement.where(condition)
            count_statement = count_statement.where(condition)

        total = (await self.session.execute(count_statement)).scalar() or 0
        offset = (page - 1) * limit
        if offset >= total:
            return [], total

        statement = (
            statement.order_by(
                cast(ColumnElement[object], UserDB.created_at).desc(),
                cast(ColumnElement[object], UserDB.id).desc(),
            )
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all()), total

    async def update(
        self,
        user_id: UUID,
        user_update: UserUpdate,
        image: str | None = None,
    ) -> UserDB | None:
        """
        Apply a partial update; only supplied fields are overwritten.

        Args:
            user_id: User UUID
            user_update: Validated update form
            image: New avatar URL, ``None`` keeps the stored one

        Returns:
            UserDB | None: Updated user if found, None otherwise

        Raises:
            DuplicateEntryError: If the new phone number belongs to another user
        """
        db_user = await self.get_by_id(user_id)
        if not db_user:
            return None

        update_data = {
            key: str(value) if isinstance(value, StrEnum) else value
            for key, value in user_update.model_dump(exclude_unset=True, exclude_none=True).items()
        }
        if image is not None:
            update_data["image"] = image
        update_data["updated_at"] = utc_now()

        return await self.apply(db_user, update_data)
