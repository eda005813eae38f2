"""
Client model - schools and institutions that request quotes.
"""

from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import EntityBase

if TYPE_CHECKING:
    from app.models.quote import Quote


class Client(EntityBase):
    """A school (fiscal entity) quotes are issued to."""

    __tablename__ = "clients"

    fiscal_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    tax_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Postal address
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    postcode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    quotes: Mapped[List["Quote"]] = relationship(
        "Quote",
        back_populates="client",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, fiscal_name='{self.fiscal_name}')>"
