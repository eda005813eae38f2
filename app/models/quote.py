"""
Quote models - priced trip proposals and their numbering sequence.

Pricing inputs are stored as entered; derived prices (per student, per
teacher, total) are refreshed from the costing engine on every save.
"""

from datetime import date
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import String, Date, Integer, Float, JSON, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, BigIntPK, EntityBase
from app.services.costing_engine import AdhocService, CustomPricing, InternalCosts

if TYPE_CHECKING:
    from app.models.client import Client


CUSTOM_PRICING_FIELDS = tuple(CustomPricing.model_fields)
INTERNAL_COST_FIELDS = tuple(InternalCosts.model_fields)


class Quote(EntityBase):
    """A quote for an educational trip."""

    __tablename__ = "quotes"

    quote_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True, index=True)

    client_id: Mapped[Optional[int]] = mapped_column(
        BigIntPK,
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Trip
    destination: Mapped[str] = mapped_column(String(255), nullable=False)
    trip_type: Mapped[str] = mapped_column(String(100), nullable=False, default="educational")
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    duration: Mapped[str] = mapped_column(String(50), nullable=False, default="7 days")
    number_of_students: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    number_of_teachers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # School (copied from the client at creation, editable per quote)
    school_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    school_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Custom pricing - daily rates
    student_accommodation_per_day: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    teacher_accommodation_per_day: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    breakfast_per_day: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    lunch_per_day: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dinner_per_day: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Custom pricing - per trip amounts
    transport_card_total: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    student_coordination_fee_total: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    teacher_coordination_fee_total: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    airport_transfer_per_person: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Ad hoc services: [{name: str, price_per_person: float}]
    adhoc_services: Mapped[Optional[list]] = mapped_column(JSON, default=list)

    # Internal costs (profitability only, never shown to the client)
    cost_student_accommodation_per_day: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost_teacher_accommodation_per_day: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost_breakfast_per_day: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost_lunch_per_day: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost_dinner_per_day: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost_local_transportation_card: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost_student_coordination: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost_teacher_coordination: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost_local_coordinator: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Calculated pricing (refreshed on save)
    price_per_student: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    price_per_teacher: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_price: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    client: Mapped[Optional["Client"]] = relationship("Client", back_populates="quotes")

    def __repr__(self) -> str:
        return f"<Quote(number='{self.quote_number}', destination='{self.destination}')>"

    def custom_pricing(self) -> CustomPricing:
        """Stored client rates; empty columns take the engine defaults."""
        values = {name: getattr(self, name) for name in CUSTOM_PRICING_FIELDS}
        return CustomPricing(**{k: v for k, v in values.items() if v is not None})

    def internal_costs(self) -> InternalCosts:
        """Stored supplier costs; empty columns take the engine defaults."""
        values = {name: getattr(self, name) for name in INTERNAL_COST_FIELDS}
        return InternalCosts(**{k: v for k, v in values.items() if v is not None})

    def adhoc_service_list(self) -> List[AdhocService]:
        return [
            AdhocService(
                name=service.get("name", ""),
                price_per_person=service.get("price_per_person") or 0,
            )
            for service in (self.adhoc_services or [])
            if isinstance(service, dict)
        ]


class QuoteNumberSequence(Base):
    """Last allocated quote number per year."""

    __tablename__ = "quote_number_sequences"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("year", name="uq_quote_number_sequences_year"),
    )
