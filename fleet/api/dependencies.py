"""FastAPI dependency injection helpers."""

from typing import Optional

from fastapi import Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fleet.infrastructure.database import async_session_factory


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_current_actor_id(
    x_actor_id: Optional[str] = Header(None, description="Authenticated user id"),
) -> int:
    """
    Identity of the user making the request.

    Authentication happens upstream; the gateway forwards the resolved user
    id in ``X-Actor-Id``.
    """
    if x_actor_id is None or not x_actor_id.strip().isdigit():
        raise HTTPException(status_code=401, detail="Missing or invalid X-Actor-Id header")
    return int(x_actor_id)
