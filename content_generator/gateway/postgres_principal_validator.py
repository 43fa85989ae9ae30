"""Gateway: principal validation against the users table."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from content_generator.db.tables import users_table
from content_generator.domain.errors import PrincipalValidationError


class PostgresPrincipalValidator:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def validate(self, principal_id: str, required_role: str | None = None) -> None:
        stmt = select(users_table.c.role).where(users_table.c.id == principal_id)
        async with self._session_factory() as session:
            role = (await session.execute(stmt)).scalar_one_or_none()

        if role is None:
            raise PrincipalValidationError(f"Principal '{principal_id}' not found")
        if required_role and role != required_role:
            raise PrincipalValidationError(
                f"Principal '{principal_id}' has role '{role}', '{required_role}' is required"
            )
