"""
FastAPI dependencies for database access and shared lookups.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.client import Client
from app.models.quote import Quote
from app.services.rate_tables import DEFAULT_RATE_TABLES, RateTables


def get_rate_tables() -> RateTables:
    """Rate tables used by the costing endpoints (overridable in tests)."""
    return DEFAULT_RATE_TABLES


DbSession = Annotated[AsyncSession, Depends(get_db)]
Rates = Annotated[RateTables, Depends(get_rate_tables)]


async def get_quote_or_404(db: AsyncSession, quote_id: int) -> Quote:
    result = await db.execute(select(Quote).where(Quote.id == quote_id))
    quote = result.scalar_one_or_none()
    if not quote:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Quote not found",
        )
    return quote


async def get_client_or_404(db: AsyncSession, client_id: int) -> Client:
    result = await db.execute(select(Client).where(Client.id == client_id))
    client = result.scalar_one_or_none()
    if not client:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found",
        )
    return client
