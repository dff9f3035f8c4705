"""User repository: name lookups for display titles."""
from __future__ import annotations

from typing import Dict, Iterable
from uuid import UUID

from sqlalchemy import select

from careops.infra.database.models.user import User
from careops.infra.database.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def get_full_names(self, ids: Iterable[UUID]) -> Dict[UUID, str]:
        wanted = {i for i in ids if i is not None}
        if not wanted:
            return {}
        stmt = select(User.id, User.full_name).where(User.id.in_(wanted))
        result = await self.session.execute(stmt)
        return {row.id: row.full_name for row in result.all()}
