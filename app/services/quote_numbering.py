"""
Quote numbering service - sequential numbering per calendar year.

Uses SELECT ... FOR UPDATE for atomic allocation.
Format: {PREFIX}-{YEAR}-{XXXXXX}  (e.g., TPQ-2026-000142)
"""

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.quote import QuoteNumberSequence


def format_quote_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:06d}"


async def get_next_quote_number(
    db: AsyncSession,
    year: int | None = None,
    prefix: str | None = None,
) -> tuple[str, int]:
    """
    Atomically allocate the next quote number.

    Args:
        db: Database session (must be within a transaction)
        year: Calendar year (defaults to current year)
        prefix: Number prefix (defaults to settings.quote_number_prefix)

    Returns:
        (formatted_number, sequence), e.g. ("TPQ-2026-000142", 142)
    """
    if year is None:
        year = date.today().year
    if prefix is None:
        prefix = get_settings().quote_number_prefix

    # Try to lock the existing sequence row
    result = await db.execute(
        select(QuoteNumberSequence)
        .where(QuoteNumberSequence.year == year)
        .with_for_update()
    )
    seq = result.scalar_one_or_none()

    if seq is None:
        # First quote of the year: create the sequence
        seq = QuoteNumberSequence(year=year, last_sequence=0)
        db.add(seq)
        await db.flush()

    seq.last_sequence += 1
    next_seq = seq.last_sequence

    return format_quote_number(prefix, year, next_seq), next_seq
