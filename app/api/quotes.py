"""
Quote endpoints - CRUD, copy, cost breakdown and client documents.

Every write refreshes the stored prices from the costing engine. The
breakdown endpoint returns the full agency view (internal costs,
profitability, Erasmus+); preview and PDF are the client-facing document.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select

from app.api.costing import AdhocServiceInput, Amount, Headcount
from app.api.deps import DbSession, Rates, get_client_or_404, get_quote_or_404
from app.models.quote import Quote
from app.services.costing_engine import CostBreakdown
from app.services.destination_resolver import Country
from app.services.quotation_calculator import (
    calculate_for_quote,
    profitability_summary,
    refresh_quote_prices,
)
from app.services.quote_numbering import get_next_quote_number
from app.services.quote_pdf import QuotePdfError, generate_pdf_bytes, render_quote_html

logger = logging.getLogger(__name__)

router = APIRouter()

# Columns a copy must not carry over
_COPY_EXCLUDED_COLUMNS = {"id", "quote_number", "created_at", "updated_at"}


# ============================================================================
# Schemas
# ============================================================================

class QuoteCreate(BaseModel):
    client_id: Optional[int] = None

    # Trip
    destination: str = Field(..., min_length=1, max_length=255)
    trip_type: str = Field("educational", max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[str] = Field(None, max_length=50)  # derived from dates when omitted
    number_of_students: Headcount = 0
    number_of_teachers: Headcount = 0

    # School (defaults to the client's details)
    school_name: Optional[str] = Field(None, max_length=255)
    contact_person: Optional[str] = Field(None, max_length=255)
    school_address: Optional[str] = None

    # Custom pricing
    student_accommodation_per_day: Optional[Amount] = None
    teacher_accommodation_per_day: Optional[Amount] = None
    breakfast_per_day: Optional[Amount] = None
    lunch_per_day: Optional[Amount] = None
    dinner_per_day: Optional[Amount] = None
    transport_card_total: Optional[Amount] = None
    student_coordination_fee_total: Optional[Amount] = None
    teacher_coordination_fee_total: Optional[Amount] = None
    airport_transfer_per_person: Optional[Amount] = None

    adhoc_services: List[AdhocServiceInput] = []

    # Internal costs
    cost_student_accommodation_per_day: Optional[Amount] = None
    cost_teacher_accommodation_per_day: Optional[Amount] = None
    cost_breakfast_per_day: Optional[Amount] = None
    cost_lunch_per_day: Optional[Amount] = None
    cost_dinner_per_day: Optional[Amount] = None
    cost_local_transportation_card: Optional[Amount] = None
    cost_student_coordination: Optional[Amount] = None
    cost_teacher_coordination: Optional[Amount] = None
    cost_local_coordinator: Optional[Amount] = None

    notes: Optional[str] = None


class QuoteUpdate(BaseModel):
    client_id: Optional[int] = None
    destination: Optional[str] = Field(None, min_length=1, max_length=255)
    trip_type: Optional[str] = Field(None, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[str] = Field(None, max_length=50)
    number_of_students: Optional[Headcount] = None
    number_of_teachers: Optional[Headcount] = None
    school_name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_person: Optional[str] = Field(None, max_length=255)
    school_address: Optional[str] = None

    student_accommodation_per_day: Optional[Amount] = None
    teacher_accommodation_per_day: Optional[Amount] = None
    breakfast_per_day: Optional[Amount] = None
    lunch_per_day: Optional[Amount] = None
    dinner_per_day: Optional[Amount] = None
    transport_card_total: Optional[Amount] = None
    student_coordination_fee_total: Optional[Amount] = None
    teacher_coordination_fee_total: Optional[Amount] = None
    airport_transfer_per_person: Optional[Amount] = None

    adhoc_services: Optional[List[AdhocServiceInput]] = None

    cost_student_accommodation_per_day: Optional[Amount] = None
    cost_teacher_accommodation_per_day: Optional[Amount] = None
    cost_breakfast_per_day: Optional[Amount] = None
    cost_lunch_per_day: Optional[Amount] = None
    cost_dinner_per_day: Optional[Amount] = None
    cost_local_transportation_card: Optional[Amount] = None
    cost_student_coordination: Optional[Amount] = None
    cost_teacher_coordination: Optional[Amount] = None
    cost_local_coordinator: Optional[Amount] = None

    notes: Optional[str] = None


class QuoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    quote_number: str
    client_id: Optional[int] = None
    destination: str
    trip_type: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: str
    number_of_students: int
    number_of_teachers: int
    school_name: str
    contact_person: Optional[str] = None
    school_address: Optional[str] = None

    student_accommodation_per_day: Optional[float] = None
    teacher_accommodation_per_day: Optional[float] = None
    breakfast_per_day: Optional[float] = None
    lunch_per_day: Optional[float] = None
    dinner_per_day: Optional[float] = None
    transport_card_total: Optional[float] = None
    student_coordination_fee_total: Optional[float] = None
    teacher_coordination_fee_total: Optional[float] = None
    airport_transfer_per_person: Optional[float] = None

    adhoc_services: Optional[List[Dict[str, Any]]] = None

    cost_student_accommodation_per_day: Optional[float] = None
    cost_teacher_accommodation_per_day: Optional[float] = None
    cost_breakfast_per_day: Optional[float] = None
    cost_lunch_per_day: Optional[float] = None
    cost_dinner_per_day: Optional[float] = None
    cost_local_transportation_card: Optional[float] = None
    cost_student_coordination: Optional[float] = None
    cost_teacher_coordination: Optional[float] = None
    cost_local_coordinator: Optional[float] = None

    price_per_student: float
    price_per_teacher: float
    total_price: float
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProfitabilitySummary(BaseModel):
    revenue: float
    costs: float
    gross_profit: float
    net_profit: float
    gross_margin_percentage: float
    net_margin_percentage: float


class QuoteListItem(QuoteResponse):
    country: Country
    profitability: ProfitabilitySummary


# ============================================================================
# Helpers
# ============================================================================

def duration_from_dates(start: date, end: date) -> str:
    """Duration text from trip dates, as the quote form computes it."""
    return f"{(end - start).days} days"


def _check_dates(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be on or after start_date",
        )


def _dump_adhoc_services(services: List[AdhocServiceInput]) -> List[Dict[str, Any]]:
    return [service.model_dump() for service in services]


# ============================================================================
# Endpoints
# ============================================================================

@router.get("", response_model=List[QuoteListItem])
async def list_quotes(db: DbSession, rate_tables: Rates):
    """
    List quotes, newest first.

    Each row carries the margin figures recomputed from the current rate
    tables, for the dashboard.
    """
    result = await db.execute(select(Quote).order_by(Quote.created_at.desc(), Quote.id.desc()))
    items = []
    for quote in result.scalars().all():
        breakdown = calculate_for_quote(quote, rate_tables)
        item = QuoteResponse.model_validate(quote).model_dump()
        items.append(QuoteListItem(
            **item,
            country=breakdown.country,
            profitability=ProfitabilitySummary(**profitability_summary(breakdown)),
        ))
    return items


@router.post("", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
async def create_quote(data: QuoteCreate, db: DbSession, rate_tables: Rates):
    """Create a quote, allocate its number and store its prices."""
    _check_dates(data.start_date, data.end_date)

    values = data.model_dump(exclude={"adhoc_services"})
    values["adhoc_services"] = _dump_adhoc_services(data.adhoc_services)

    if data.client_id is not None:
        client = await get_client_or_404(db, data.client_id)
        if not values.get("school_name"):
            values["school_name"] = client.fiscal_name
        if not values.get("school_address"):
            parts = [client.address, client.postcode, client.city, client.country]
            values["school_address"] = ", ".join(p for p in parts if p) or None

    if not values.get("school_name"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="school_name is required when no client is selected",
        )

    if not values.get("duration"):
        if data.start_date and data.end_date:
            values["duration"] = duration_from_dates(data.start_date, data.end_date)
        else:
            values["duration"] = "7 days"

    quote_number, _ = await get_next_quote_number(db)
    quote = Quote(quote_number=quote_number, **values)
    refresh_quote_prices(quote, rate_tables)

    db.add(quote)
    await db.commit()
    await db.refresh(quote)

    logger.info(f"Created quote {quote.quote_number} for {quote.school_name}")
    return QuoteResponse.model_validate(quote)


@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(quote_id: int, db: DbSession):
    quote = await get_quote_or_404(db, quote_id)
    return QuoteResponse.model_validate(quote)


@router.patch("/{quote_id}", response_model=QuoteResponse)
async def update_quote(quote_id: int, data: QuoteUpdate, db: DbSession, rate_tables: Rates):
    """Partially update a quote and refresh its prices."""
    quote = await get_quote_or_404(db, quote_id)

    update_data = data.model_dump(exclude_unset=True, exclude={"adhoc_services"})
    if data.adhoc_services is not None:
        update_data["adhoc_services"] = _dump_adhoc_services(data.adhoc_services)

    for required in ("destination", "school_name", "trip_type", "duration",
                     "number_of_students", "number_of_teachers"):
        if required in update_data and update_data[required] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{required} cannot be empty",
            )

    if update_data.get("client_id") is not None:
        await get_client_or_404(db, update_data["client_id"])

    _check_dates(
        update_data.get("start_date", quote.start_date),
        update_data.get("end_date", quote.end_date),
    )

    for field, value in update_data.items():
        setattr(quote, field, value)

    # Dates changed without an explicit duration: keep them consistent
    if ("start_date" in update_data or "end_date" in update_data) and "duration" not in update_data:
        if quote.start_date and quote.end_date:
            quote.duration = duration_from_dates(quote.start_date, quote.end_date)

    refresh_quote_prices(quote, rate_tables)

    await db.commit()
    await db.refresh(quote)
    return QuoteResponse.model_validate(quote)


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quote(quote_id: int, db: DbSession):
    quote = await get_quote_or_404(db, quote_id)
    await db.delete(quote)
    await db.commit()


@router.post("/{quote_id}/copy", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
async def copy_quote(quote_id: int, db: DbSession, rate_tables: Rates):
    """Duplicate a quote under a new quote number."""
    original = await get_quote_or_404(db, quote_id)

    values = {
        column.key: getattr(original, column.key)
        for column in Quote.__table__.columns
        if column.key not in _COPY_EXCLUDED_COLUMNS
    }
    values["adhoc_services"] = list(original.adhoc_services or [])

    quote_number, _ = await get_next_quote_number(db)
    quote = Quote(quote_number=quote_number, **values)
    refresh_quote_prices(quote, rate_tables)

    db.add(quote)
    await db.commit()
    await db.refresh(quote)

    logger.info(f"Copied quote {original.quote_number} to {quote.quote_number}")
    return QuoteResponse.model_validate(quote)


@router.get("/{quote_id}/breakdown", response_model=CostBreakdown)
async def get_quote_breakdown(quote_id: int, db: DbSession, rate_tables: Rates):
    """Full cost breakdown, including internal costs and profitability."""
    quote = await get_quote_or_404(db, quote_id)
    return calculate_for_quote(quote, rate_tables)


@router.get("/{quote_id}/preview", response_class=HTMLResponse)
async def preview_quote(quote_id: int, db: DbSession, rate_tables: Rates):
    """Client-facing quote document as HTML."""
    quote = await get_quote_or_404(db, quote_id)
    breakdown = calculate_for_quote(quote, rate_tables)
    return HTMLResponse(render_quote_html(quote, breakdown))


@router.get("/{quote_id}/pdf")
async def download_quote_pdf(quote_id: int, db: DbSession, rate_tables: Rates):
    """Client-facing quote document as a PDF attachment."""
    quote = await get_quote_or_404(db, quote_id)
    breakdown = calculate_for_quote(quote, rate_tables)

    try:
        pdf_bytes = generate_pdf_bytes(quote, breakdown)
    except QuotePdfError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"PDF generation failed: {e.message}",
        )

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="quote-{quote.quote_number}.pdf"'},
    )
