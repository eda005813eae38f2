"""
Client management endpoints.

CRUD for schools, bulk import from CSV, and the quotes of a client.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy import select

from app.api.deps import DbSession, get_client_or_404
from app.api.quotes import QuoteResponse
from app.models.quote import Quote
from app.models.client import Client
from app.services.client_import import ClientData, import_client_rows, parse_csv_text

router = APIRouter()


# ============ SCHEMAS ============

class ClientCreate(ClientData):
    pass


class ClientUpdate(BaseModel):
    fiscal_name: Optional[str] = Field(None, min_length=1, max_length=255)
    tax_id: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postcode: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fiscal_name: str
    tax_id: Optional[str] = None
    email: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CsvImportRequest(BaseModel):
    csv_data: List[Dict[str, Any]]


class CsvImportResponse(BaseModel):
    imported: int
    errors: int
    clients: List[ClientResponse]
    error_details: List[Dict[str, Any]]


# ============ ENDPOINTS ============

@router.get("", response_model=List[ClientResponse])
async def list_clients(db: DbSession):
    """List all clients, ordered by fiscal name."""
    result = await db.execute(select(Client).order_by(Client.fiscal_name))
    return [ClientResponse.model_validate(c) for c in result.scalars().all()]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(data: ClientCreate, db: DbSession):
    client = Client(**data.model_dump())
    db.add(client)
    await db.commit()
    await db.refresh(client)
    return ClientResponse.model_validate(client)


@router.post("/import-csv", response_model=CsvImportResponse)
async def import_clients_csv(data: CsvImportRequest, db: DbSession):
    """
    Import clients from rows parsed client-side.

    Invalid rows are reported in error_details and skipped; valid rows are
    imported.
    """
    result = await import_client_rows(db, data.csv_data)
    return CsvImportResponse(
        imported=result["imported"],
        errors=result["errors"],
        clients=[ClientResponse.model_validate(c) for c in result["clients"]],
        error_details=result["error_details"],
    )


@router.post("/import-csv/file", response_model=CsvImportResponse)
async def import_clients_csv_file(db: DbSession, file: UploadFile = File(...)):
    """Import clients from an uploaded CSV file (header line required)."""
    content = await file.read()
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file must be UTF-8 encoded",
        )

    rows = parse_csv_text(text)
    if not rows:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file contains no data rows",
        )

    result = await import_client_rows(db, rows)
    return CsvImportResponse(
        imported=result["imported"],
        errors=result["errors"],
        clients=[ClientResponse.model_validate(c) for c in result["clients"]],
        error_details=result["error_details"],
    )


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, db: DbSession):
    client = await get_client_or_404(db, client_id)
    return ClientResponse.model_validate(client)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(client_id: int, data: ClientUpdate, db: DbSession):
    client = await get_client_or_404(db, client_id)

    update_data = data.model_dump(exclude_unset=True)
    if "fiscal_name" in update_data and update_data["fiscal_name"] is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="fiscal_name cannot be empty",
        )
    for field, value in update_data.items():
        setattr(client, field, value)

    await db.commit()
    await db.refresh(client)
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}")
async def delete_client(client_id: int, db: DbSession):
    """Delete a client. Its quotes are kept and unlinked."""
    client = await get_client_or_404(db, client_id)

    quotes = await db.execute(select(Quote).where(Quote.client_id == client_id))
    for quote in quotes.scalars().all():
        quote.client_id = None

    await db.delete(client)
    await db.commit()
    return {"message": "Client deleted successfully"}


@router.get("/{client_id}/quotes", response_model=List[QuoteResponse])
async def list_client_quotes(client_id: int, db: DbSession):
    await get_client_or_404(db, client_id)
    result = await db.execute(
        select(Quote)
        .where(Quote.client_id == client_id)
        .order_by(Quote.created_at.desc(), Quote.id.desc())
    )
    return [QuoteResponse.model_validate(q) for q in result.scalars().all()]
