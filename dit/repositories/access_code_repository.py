# dit/repositories/access_code_repository.py
# Read-only lookups against provisioned access codes

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dit.models.access_codes_table import access_codes


class AccessCodeRepository:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find_active(self, code: str) -> dict[str, Any] | None:
        """Return {code, type} of the active record matching code (case-insensitive)."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(access_codes.c.code, access_codes.c.type)
                .where(func.upper(access_codes.c.code) == code.upper())
                .where(access_codes.c.active.is_(True))
                .limit(1)
            )
            row = result.mappings().first()
            return dict(row) if row else None

    async def add(self, code: str, kind: str = "album", active: bool = True) -> None:
        """Provision a code (seeding scripts and tests)."""
        async with self._session_factory() as session:
            await session.execute(
                access_codes.insert().values(code=code.upper(), type=kind, active=active)
            )
            await session.commit()
