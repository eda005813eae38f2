"""
Client import service - bulk creation of clients from spreadsheet rows.

Rows come either as already-parsed dicts (the front-end parses the CSV and
posts the rows) or as raw CSV text from an uploaded file. Column names may
be the camelCase keys used by the front-end ("fiscalName") or the
spreadsheet headers ("Fiscal Name").

Each row is validated on its own: valid rows are imported, invalid rows are
reported with their 1-based row number and the import carries on.
"""

import csv
import io
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.client import Client

logger = logging.getLogger(__name__)


# Accepted column names per client field, in lookup order
CSV_FIELD_ALIASES: Dict[str, tuple] = {
    "fiscal_name": ("fiscalName", "Fiscal Name", "fiscal_name"),
    "tax_id": ("taxId", "Tax ID", "tax_id"),
    "email": ("email", "Email"),
    "country": ("country", "Country"),
    "city": ("city", "City"),
    "postcode": ("postcode", "Postcode"),
    "address": ("address", "Address"),
}


class ClientData(BaseModel):
    """Validated client fields, shared by the API and the importer."""

    fiscal_name: str = Field(..., min_length=1, max_length=255)
    tax_id: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postcode: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None

    @field_validator("fiscal_name", mode="before")
    @classmethod
    def strip_fiscal_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tax_id", "email", "country", "city", "postcode", "address", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


def map_csv_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Pick each client field from the first alias present in the row."""
    mapped = {}
    for field, aliases in CSV_FIELD_ALIASES.items():
        value = ""
        for alias in aliases:
            if row.get(alias):
                value = row[alias]
                break
        mapped[field] = value
    return mapped


def parse_csv_text(text: str) -> List[Dict[str, str]]:
    """Parse CSV text with a header line into row dicts."""
    # Spreadsheet exports often start with a UTF-8 BOM
    text = text.lstrip("\ufeff")
    reader = csv.DictReader(io.StringIO(text))
    return [
        {(key or "").strip(): (value or "") for key, value in row.items()}
        for row in reader
    ]


def _format_errors(exc: ValidationError) -> List[Dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


async def import_client_rows(
    db: AsyncSession,
    rows: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Validate and insert client rows.

    Returns:
        {
            "imported": int,
            "errors": int,
            "clients": [Client, ...],
            "error_details": [{"row": int, "errors": [...]}, ...],
        }
    """
    created: List[Client] = []
    error_details: List[Dict[str, Any]] = []

    for index, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            error_details.append({
                "row": index,
                "errors": [{"field": "row", "message": "Row must be an object"}],
            })
            continue

        try:
            data = ClientData.model_validate(map_csv_row(row))
        except ValidationError as e:
            error_details.append({"row": index, "errors": _format_errors(e)})
            continue

        client = Client(**data.model_dump())
        db.add(client)
        created.append(client)

    if created:
        await db.flush()
        await db.commit()
        for client in created:
            await db.refresh(client)

    logger.info(f"Imported {len(created)} clients ({len(error_details)} rows rejected)")

    return {
        "imported": len(created),
        "errors": len(error_details),
        "clients": created,
        "error_details": error_details,
    }
