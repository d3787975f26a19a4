from __future__ import annotations

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.ids import is_valid_id
from app.models.user import User


class UserDirectory:
    """
    Read-only lookup of users by id.

    Users are owned by the external directory; this service only resolves
    ids to (id, name, email). Malformed ids resolve to None.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str | None) -> User | None:
        if not user_id or not is_valid_id(user_id, "usr"):
            return None
        stmt = select(User).where(User.id == user_id)
        return (await self.db.execute(stmt)).scalar_one_or_none()


def get_user_directory(db: AsyncSession = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)
